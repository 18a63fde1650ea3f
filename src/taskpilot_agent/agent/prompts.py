# taskpilot_agent/agent/prompts.py
"""
System prompt for the reasoning loop.

The system message carries the serialized EnhancedContext and the current
timestamp so the model reasons about the user's actual situation.
"""

from __future__ import annotations

from datetime import datetime

from taskpilot_agent.models.context import EnhancedContext

ASSISTANT_PROMPT = """You are a productivity assistant that manages the user's tasks and time tracking.

Use the available tools to read or change data; never claim a change you did not make with a tool.
- Call tools when the request needs data or a change. Respond with tool calls only in that case.
- Changes beyond creating a task may be shown to the user for confirmation. If a tool result says
  the user cancelled, acknowledge it and do not retry the same change.
- When a tool fails, explain the problem briefly or retry with corrected arguments.
- When you have everything you need, answer concisely without calling tools.

Use the context below to tailor your answer (workload, deadlines, energy, time of day)."""

MODEL_ERROR_MESSAGE = "I'm sorry, I encountered an error processing your request. Please try again."

CANCELLED_MESSAGE = "The request was cancelled."


def build_system_message(
    context: EnhancedContext,
    now: datetime,
    system_prompt: str = ASSISTANT_PROMPT,
) -> str:
    """
    Build the complete system message with instructions and context.

    Args:
        context: Enhanced context for this turn
        now: Current timestamp
        system_prompt: Instructions placed before the context blocks

    Returns:
        Complete system message string
    """
    parts: list[str] = []

    if system_prompt:
        parts.append(system_prompt)

    parts.append(f"<CURRENT_TIME>\n{now.isoformat()}\n</CURRENT_TIME>")
    parts.append(f"<CONTEXT_JSON>\n{context.model_dump_json()}\n</CONTEXT_JSON>")

    return "\n\n".join(parts)
