# taskpilot_agent/models/turn.py
"""Trace and result models for one reasoning/acting turn."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field

from taskpilot_agent.models.context import ContextAggregationResult, Intent
from taskpilot_agent.models.enums import ReActStepType, TurnStatus
from taskpilot_agent.models.messages import Message, ToolCallRequest
from taskpilot_agent.models.tools import ToolExecutionResult


class ReActStep(BaseModel):
    """A single step of the reasoning trace."""

    step_type: ReActStepType
    iteration: int
    content: str = Field(default="")
    tool_call: ToolCallRequest | None = Field(default=None)
    tool_result: ToolExecutionResult | None = Field(default=None)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    duration_ms: float | None = Field(default=None)


class TurnResult(BaseModel):
    """Everything the host needs after a turn ends."""

    message: str
    status: TurnStatus
    iterations: int = Field(default=0)
    messages: list[Message] = Field(default_factory=list, description="Conversation without the system message")
    tool_results: list[ToolExecutionResult] = Field(default_factory=list)
    steps: list[ReActStep] = Field(default_factory=list)
    intent: Intent | None = Field(default=None)
    context: ContextAggregationResult | None = Field(default=None)

    @property
    def data_modified(self) -> bool:
        return any(r.metadata.data_modified for r in self.tool_results)
