# taskpilot_agent/exceptions.py
"""
Exception hierarchy for the agent core.

Tool-level errors never abort a turn: the registry converts them into a
failed ToolExecutionResult that is fed back to the model. ModelInvocationError
ends the current turn. ContextAggregationError is always recovered locally.
"""

from __future__ import annotations

from typing import Any


class TaskPilotError(Exception):
    """Base class for all agent core errors."""


# --- Tool errors ---


class ToolError(TaskPilotError):
    """Base for errors raised while resolving or running a tool call."""

    error_type = "tool_error"

    def __init__(self, message: str, tool_name: str | None = None):
        super().__init__(message)
        self.tool_name = tool_name


class ToolNotFoundError(ToolError):
    """The model asked for a tool that is not registered."""

    error_type = "tool_not_found"

    def __init__(self, tool_name: str):
        super().__init__("unknown tool", tool_name=tool_name)


class ToolValidationError(ToolError):
    """Arguments do not match the tool's parameter schema."""

    error_type = "validation"

    def __init__(self, tool_name: str, field: str, reason: str):
        super().__init__(f"{field}: {reason}", tool_name=tool_name)
        self.field = field
        self.reason = reason


class PermissionDeniedError(ToolError):
    """The caller lacks the permission the tool requires."""

    error_type = "permission_denied"

    def __init__(self, tool_name: str, missing_permission: str):
        super().__init__(f"missing permission: {missing_permission}", tool_name=tool_name)
        self.missing_permission = missing_permission


class ToolExecutionError(ToolError):
    """The tool handler raised."""

    error_type = "execution"

    def __init__(self, tool_name: str, cause: BaseException):
        super().__init__(f"{type(cause).__name__}: {cause}", tool_name=tool_name)
        self.cause = cause


class ToolRegistrationError(TaskPilotError):
    """A tool definition or handler was rejected at registration time."""


# --- Model / context errors ---


class ModelInvocationError(TaskPilotError):
    """The model call failed or returned output that could not be parsed."""

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.cause = cause


class ContextAggregationError(TaskPilotError):
    """Building the enhanced context failed; callers degrade to defaults."""


class ConfirmationCancelled(TaskPilotError):
    """
    A human declined a proposed action.

    This is a normal outcome rather than a failure; it ends only the tool call
    it applies to.
    """

    def __init__(self, title: str, details: dict[str, Any] | None = None):
        super().__init__(f"cancelled by user: {title}")
        self.title = title
        self.details = details or {}


# --- Store errors ---


class StoreError(TaskPilotError):
    """The task/session store could not complete an operation."""


class TaskNotFoundError(StoreError):
    """No task (or session) exists with the requested id."""

    def __init__(self, entity_id: str, kind: str = "task"):
        super().__init__(f"{kind} not found: {entity_id}")
        self.entity_id = entity_id
        self.kind = kind
