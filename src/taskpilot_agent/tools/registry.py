# taskpilot_agent/tools/registry.py
"""
Tool Registry / Execution Bridge.

Maps tool names to a definition, an async handler and an optional action-plan
builder. Everything is validated once, at registration time.

Execution algorithm for execute(name, args):
1. Look up the tool. Unknown name -> failure, error "unknown tool".
2. Validate args against the parameter schema. The first failing field is
   reported; nothing runs.
3. Check the caller's permissions against the tool's required level.
4. Invoke the handler, timing it.
5. Wrap handler errors into a failure whose user_message is safe to show;
   the raw error text is kept in ``error`` for logs.

Tool-level errors never escape: every path returns a ToolExecutionResult.
"""

from __future__ import annotations

import inspect
import logging
import time
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

from taskpilot_agent.exceptions import (
    ConfirmationCancelled,
    PermissionDeniedError,
    TaskNotFoundError,
    ToolError,
    ToolExecutionError,
    ToolNotFoundError,
    ToolRegistrationError,
    ToolValidationError,
)
from taskpilot_agent.models.enums import ParameterType, PermissionLevel
from taskpilot_agent.models.messages import ToolCallRequest
from taskpilot_agent.models.tools import (
    ParameterSchema,
    ToolActionPlan,
    ToolDefinition,
    ToolExecutionMetadata,
    ToolExecutionResult,
)
from taskpilot_agent.tools.execution_log import ToolExecutionLog
from taskpilot_agent.tools.formatter import ResultFormatter

logger = logging.getLogger(__name__)

ToolHandler = Callable[[dict[str, Any]], Awaitable[Any]]
PlanBuilder = Callable[[dict[str, Any]], Awaitable[ToolActionPlan]]

_TYPE_CHECKS: dict[ParameterType, Callable[[Any], bool]] = {
    ParameterType.STRING: lambda v: isinstance(v, str),
    # bool is an int subclass but never a valid number
    ParameterType.NUMBER: lambda v: isinstance(v, (int, float)) and not isinstance(v, bool),
    ParameterType.INTEGER: lambda v: isinstance(v, int) and not isinstance(v, bool),
    ParameterType.BOOLEAN: lambda v: isinstance(v, bool),
    ParameterType.OBJECT: lambda v: isinstance(v, dict),
    ParameterType.ARRAY: lambda v: isinstance(v, list),
}


def _is_async_callable(fn: Any) -> bool:
    return inspect.iscoroutinefunction(fn) or inspect.iscoroutinefunction(getattr(fn, "__call__", None))


def _to_data(value: Any) -> Any:
    """Make handler output JSON-friendly."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, dict):
        return {k: _to_data(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_data(v) for v in value]
    return value


def permission_satisfied(required: PermissionLevel, granted: Iterable[PermissionLevel]) -> bool:
    granted = set(granted)
    return required == PermissionLevel.READ_ONLY or required in granted or PermissionLevel.FULL_ACCESS in granted


@dataclass(frozen=True)
class RegisteredTool:
    definition: ToolDefinition
    handler: ToolHandler
    plan: PlanBuilder | None = None


class ToolRegistry:
    """
    Explicit registry instance; construct once and inject into the loop.

    ``permissions`` are the caller's default grants; ``execute`` accepts an
    override per call.
    """

    def __init__(
        self,
        permissions: Iterable[PermissionLevel] = (PermissionLevel.READ_ONLY,),
        execution_log: ToolExecutionLog | None = None,
        formatter: ResultFormatter | None = None,
        clock: Callable[[], float] = time.perf_counter,
    ):
        self.permissions = list(permissions)
        self.execution_log = execution_log
        self.formatter = formatter or ResultFormatter()
        self._clock = clock
        self._tools: dict[str, RegisteredTool] = {}

    # =========================================================================
    # Registration
    # =========================================================================

    def register(
        self,
        definition: ToolDefinition,
        handler: ToolHandler,
        *,
        plan: PlanBuilder | None = None,
    ) -> None:
        name = definition.name
        if not name or not name.strip():
            raise ToolRegistrationError("tool name must not be empty")
        if name in self._tools:
            raise ToolRegistrationError(f"tool already registered: {name}")
        if not _is_async_callable(handler):
            raise ToolRegistrationError(f"handler for {name} must be an async callable")
        if plan is not None and not _is_async_callable(plan):
            raise ToolRegistrationError(f"plan builder for {name} must be an async callable")
        if definition.mutating and definition.required_permission == PermissionLevel.READ_ONLY:
            raise ToolRegistrationError(f"mutating tool {name} cannot require only read_only permission")

        for param, schema in definition.parameters.items():
            if schema.enum is not None:
                if not schema.enum:
                    raise ToolRegistrationError(f"{name}.{param}: enum must not be empty")
                bad = [v for v in schema.enum if not _TYPE_CHECKS[schema.type](v)]
                if bad:
                    raise ToolRegistrationError(f"{name}.{param}: enum values {bad} are not {schema.type.value}")

        self._tools[name] = RegisteredTool(definition=definition, handler=handler, plan=plan)
        logger.info(f"Registered tool {name} (permission={definition.required_permission.value})")

    def list(self) -> list[ToolDefinition]:
        return [t.definition for t in self._tools.values()]

    def get(self, name: str) -> ToolDefinition | None:
        tool = self._tools.get(name)
        return tool.definition if tool else None

    def has(self, name: str) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    # =========================================================================
    # Validation
    # =========================================================================

    @staticmethod
    def validate_args(definition: ToolDefinition, args: Any) -> None:
        """Raise ToolValidationError for the first failing field."""
        if not isinstance(args, dict):
            raise ToolValidationError(definition.name, "args", "must be an object")

        for field, schema in definition.parameters.items():
            value = args.get(field)
            if value is None:
                if schema.required:
                    raise ToolValidationError(definition.name, field, "is required")
                continue
            if not _TYPE_CHECKS[schema.type](value):
                raise ToolValidationError(definition.name, field, f"must be of type {schema.type.value}")
            if schema.enum is not None and value not in schema.enum:
                allowed = ", ".join(str(v) for v in schema.enum)
                raise ToolValidationError(definition.name, field, f"must be one of: {allowed}")

        for field in args:
            if field not in definition.parameters:
                raise ToolValidationError(definition.name, field, "is not a parameter of this tool")

    def preflight(
        self,
        name: str,
        args: Any,
        *,
        permissions: Iterable[PermissionLevel] | None = None,
    ) -> ToolExecutionResult | None:
        """
        Steps 1-3 of execution without running anything.

        Returns the failure result, or None if the call may proceed.
        """
        granted = list(self.permissions if permissions is None else permissions)
        try:
            self._check(name, args, granted)
        except ToolError as e:
            return self._failure(name, e, granted)
        return None

    def _check(self, name: str, args: Any, granted: list[PermissionLevel]) -> RegisteredTool:
        tool = self._tools.get(name)
        if tool is None:
            raise ToolNotFoundError(name)

        self.validate_args(tool.definition, args)

        required = tool.definition.required_permission
        if not permission_satisfied(required, granted):
            raise PermissionDeniedError(name, required.value)
        return tool

    # =========================================================================
    # Execution
    # =========================================================================

    async def execute(
        self,
        name: str,
        args: Any,
        *,
        permissions: Iterable[PermissionLevel] | None = None,
    ) -> ToolExecutionResult:
        granted = list(self.permissions if permissions is None else permissions)

        try:
            tool = self._check(name, args, granted)
        except ToolError as e:
            result = self._failure(name, e, granted)
            self._record(name, args, result)
            return result

        started = self._clock()
        try:
            data = await tool.handler(dict(args))
        except Exception as e:
            result = self._error_result(name, e, granted, elapsed_ms=self._elapsed_ms(started))
        else:
            data = _to_data(data)
            result = ToolExecutionResult(
                success=True,
                data=data,
                user_message=self.formatter.format_success(name, data),
                metadata=ToolExecutionMetadata(
                    execution_time_ms=self._elapsed_ms(started),
                    tool_name=name,
                    permissions=granted,
                    data_modified=tool.definition.mutating,
                ),
            )
            logger.debug(f"Tool {name} succeeded in {result.metadata.execution_time_ms:.1f}ms")

        self._record(name, args, result)
        return result

    async def execute_call(
        self,
        call: ToolCallRequest,
        *,
        permissions: Iterable[PermissionLevel] | None = None,
    ) -> ToolExecutionResult:
        return await self.execute(call.name, call.args, permissions=permissions)

    async def describe(self, call: ToolCallRequest) -> ToolActionPlan | None:
        """
        Describe what a mutating call will change.

        Returns None for read-only tools and tools without a plan builder.
        Errors from the plan builder propagate.
        """
        tool = self._tools.get(call.name)
        if tool is None or not tool.definition.mutating or tool.plan is None:
            return None
        return await tool.plan(dict(call.args))

    def is_mutating(self, name: str) -> bool:
        tool = self._tools.get(name)
        return bool(tool and tool.definition.mutating)

    # =========================================================================
    # Results
    # =========================================================================

    def _elapsed_ms(self, started: float) -> float:
        return (self._clock() - started) * 1000

    def error_result(self, call: ToolCallRequest, error: Exception) -> ToolExecutionResult:
        """Failure result for an error raised on behalf of ``call`` outside execute()."""
        result = self._error_result(call.name, error, list(self.permissions))
        self._record(call.name, call.args, result)
        return result

    def _error_result(
        self,
        name: str,
        error: Exception,
        granted: list[PermissionLevel],
        elapsed_ms: float = 0.0,
    ) -> ToolExecutionResult:
        if isinstance(error, ToolError):
            # Handlers may raise typed tool errors (e.g. a missing task reference)
            return self._failure(name, error, granted, elapsed_ms=elapsed_ms)
        if isinstance(error, TaskNotFoundError):
            result = self._failure(name, ToolError(str(error), tool_name=name), granted, elapsed_ms=elapsed_ms)
            return result.model_copy(update={"error_type": "not_found", "user_message": f"Could not find that {error.kind}."})

        wrapped = ToolExecutionError(name, error)
        logger.error(f"Tool {name} failed: {wrapped}")
        return self._failure(name, wrapped, granted, elapsed_ms=elapsed_ms)

    def _failure(
        self,
        name: str,
        error: ToolError,
        granted: list[PermissionLevel],
        elapsed_ms: float = 0.0,
    ) -> ToolExecutionResult:
        return ToolExecutionResult(
            success=False,
            error=str(error),
            error_type=error.error_type,
            user_message=self._user_message(name, error),
            metadata=ToolExecutionMetadata(
                execution_time_ms=elapsed_ms,
                tool_name=name,
                permissions=granted,
                data_modified=False,
            ),
        )

    @staticmethod
    def _user_message(name: str, error: ToolError) -> str:
        if isinstance(error, ToolNotFoundError):
            return f"'{name}' is not an available tool."
        if isinstance(error, ToolValidationError):
            return f"Invalid input for {name}: {error}"
        if isinstance(error, PermissionDeniedError):
            return f"Not allowed to run {name}: {error}"
        if isinstance(error, ToolExecutionError):
            return f"Sorry, {name.replace('_', ' ')} could not be completed."
        return f"{name} failed: {error}"

    def cancelled_result(self, call: ToolCallRequest, title: str) -> ToolExecutionResult:
        """Result for a call the human declined; nothing ran."""
        cancelled = ConfirmationCancelled(title, details={"tool": call.name, "args": call.args})
        result = ToolExecutionResult(
            success=False,
            error=str(cancelled),
            error_type="cancelled",
            user_message=f"Cancelled by user: {title}",
            metadata=ToolExecutionMetadata(
                tool_name=call.name,
                permissions=list(self.permissions),
                data_modified=False,
            ),
        )
        self._record(call.name, call.args, result)
        return result

    def _record(self, name: str, args: Any, result: ToolExecutionResult) -> None:
        if self.execution_log is not None:
            self.execution_log.record(name, args if isinstance(args, dict) else {}, result)


def parameter(
    type: ParameterType,
    description: str = "",
    *,
    required: bool = False,
    enum: list[Any] | None = None,
) -> ParameterSchema:
    """Shorthand for building parameter schemas."""
    return ParameterSchema(type=type, description=description, required=required, enum=enum)
