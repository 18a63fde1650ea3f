# taskpilot_agent/agent/__init__.py
"""
Reasoning/acting loop, model invocation interface and system prompt.

Usage:
    from taskpilot_agent.agent import OpenAIChatModel, ReActLoop

    loop = ReActLoop(OpenAIChatModel(), registry, gate, aggregator, max_iterations=5)
    result = await loop.run("create a task to review the quarterly report", base_context)
    print(result.status, result.message)
"""

from taskpilot_agent.agent.model import ModelClient, OpenAIChatModel, parse_completion, to_wire_message
from taskpilot_agent.agent.prompts import ASSISTANT_PROMPT, MODEL_ERROR_MESSAGE, build_system_message
from taskpilot_agent.agent.react_loop import ReActLoop, cap_exceeded_message

__all__ = [
    "ReActLoop",
    "cap_exceeded_message",
    "ModelClient",
    "OpenAIChatModel",
    "parse_completion",
    "to_wire_message",
    "ASSISTANT_PROMPT",
    "MODEL_ERROR_MESSAGE",
    "build_system_message",
]
