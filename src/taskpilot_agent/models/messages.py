# taskpilot_agent/models/messages.py
"""Conversation messages and model-issued tool calls."""

from __future__ import annotations

from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from taskpilot_agent.models.enums import MessageRole


def _call_id() -> str:
    return f"call_{uuid4().hex[:12]}"


class ToolCallRequest(BaseModel):
    """A structured request from the model to run one tool."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Registered tool name")
    args: dict[str, Any] = Field(default_factory=dict)
    id: str = Field(default_factory=_call_id, description="Correlation id")


class Message(BaseModel):
    """
    One entry of the conversation.

    ``tool`` messages carry the correlation id and tool name of the call they
    answer; ``assistant`` messages may carry tool call requests.
    """

    model_config = ConfigDict(frozen=True)

    role: MessageRole
    content: str = Field(default="")
    tool_calls: list[ToolCallRequest] = Field(default_factory=list)
    tool_call_id: str | None = Field(default=None)
    name: str | None = Field(default=None)

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)

    @classmethod
    def system(cls, content: str) -> Message:
        return cls(role=MessageRole.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> Message:
        return cls(role=MessageRole.USER, content=content)

    @classmethod
    def assistant(cls, content: str = "", tool_calls: list[ToolCallRequest] | None = None) -> Message:
        return cls(role=MessageRole.ASSISTANT, content=content, tool_calls=tool_calls or [])

    @classmethod
    def tool(cls, content: str, tool_call_id: str, name: str) -> Message:
        return cls(role=MessageRole.TOOL, content=content, tool_call_id=tool_call_id, name=name)
