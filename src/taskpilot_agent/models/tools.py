# taskpilot_agent/models/tools.py
"""Tool definitions, parameter schemas and the uniform result envelope."""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from taskpilot_agent.models.actions import ActionChange
from taskpilot_agent.models.enums import ParameterType, PermissionLevel

# =============================================================================
# Definitions
# =============================================================================


class ParameterSchema(BaseModel):
    """Schema of a single tool argument."""

    model_config = ConfigDict(frozen=True)

    type: ParameterType
    required: bool = Field(default=False)
    enum: list[Any] | None = Field(default=None)
    description: str = Field(default="")


class ToolDefinition(BaseModel):
    """
    A callable tool as advertised to the model.

    Registered once at startup and read-only afterwards.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    parameters: dict[str, ParameterSchema] = Field(default_factory=dict)
    required_permission: PermissionLevel = Field(default=PermissionLevel.READ_ONLY)
    mutating: bool = Field(default=False, description="Whether the tool changes stored data")

    @property
    def required_parameters(self) -> list[str]:
        return [name for name, schema in self.parameters.items() if schema.required]

    def to_function_schema(self) -> dict[str, Any]:
        """Render as a Chat Completions ``function`` tool definition."""
        properties: dict[str, Any] = {}
        for name, schema in self.parameters.items():
            prop: dict[str, Any] = {"type": schema.type.value}
            if schema.description:
                prop["description"] = schema.description
            if schema.enum is not None:
                prop["enum"] = list(schema.enum)
            properties[name] = prop

        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": {
                    "type": "object",
                    "properties": properties,
                    "required": self.required_parameters,
                },
            },
        }


# =============================================================================
# Results
# =============================================================================


class ToolExecutionMetadata(BaseModel):
    """Bookkeeping attached to every tool result."""

    model_config = ConfigDict(frozen=True)

    execution_time_ms: float = Field(default=0.0)
    tool_name: str
    permissions: list[PermissionLevel] = Field(default_factory=list)
    data_modified: bool = Field(default=False)


class ToolExecutionResult(BaseModel):
    """
    Uniform result envelope for one tool call.

    ``error`` keeps the raw failure text for logs; ``user_message`` is always
    safe to show to a human.
    """

    model_config = ConfigDict(frozen=True)

    success: bool
    data: Any | None = Field(default=None)
    error: str | None = Field(default=None)
    error_type: str | None = Field(default=None)
    user_message: str
    requires_confirmation: bool = Field(default=False)
    metadata: ToolExecutionMetadata

    @property
    def tool_name(self) -> str:
        return self.metadata.tool_name

    def to_tool_content(self) -> str:
        """JSON payload appended to the conversation as a ``tool`` message."""
        payload: dict[str, Any] = {
            "success": self.success,
            "message": self.user_message,
        }
        if self.data is not None:
            payload["data"] = self.data
        if not self.success:
            payload["error_type"] = self.error_type
            # Handler exception text stays out of the conversation
            if self.error_type != "execution":
                payload["error"] = self.error
        return json.dumps(payload, default=str)


# =============================================================================
# Action plans for mutating tools
# =============================================================================


class AlternativeToolCall(BaseModel):
    """A substitute tool call offered instead of the primary action."""

    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    description: str = Field(default="")
    tool_name: str
    args: dict[str, Any] = Field(default_factory=dict)


class ToolActionPlan(BaseModel):
    """What a mutating tool call will do, described before it runs."""

    title: str
    description: str = Field(default="")
    changes: list[ActionChange] = Field(default_factory=list)
    reversible: bool = Field(default=True)
    alternatives: list[AlternativeToolCall] = Field(default_factory=list)
