# tests/test_registry.py
"""
Tests for tools/registry.py (ToolRegistry, permission checks, argument validation).
"""

from __future__ import annotations

import json

import pytest

from taskpilot_agent.exceptions import (
    TaskNotFoundError,
    ToolRegistrationError,
    ToolValidationError,
)
from taskpilot_agent.models.enums import ParameterType, PermissionLevel, ToolOutcome
from taskpilot_agent.models.messages import ToolCallRequest
from taskpilot_agent.models.tasks import Task
from taskpilot_agent.models.tools import ToolActionPlan, ToolDefinition
from taskpilot_agent.tools.execution_log import ToolExecutionLog
from taskpilot_agent.tools.registry import ToolRegistry, parameter, permission_satisfied

ECHO = ToolDefinition(
    name="echo",
    description="Echo the text back",
    parameters={
        "text": parameter(ParameterType.STRING, "Text to echo", required=True),
        "times": parameter(ParameterType.INTEGER, "Repeat count"),
        "mode": parameter(ParameterType.STRING, "Casing", enum=["upper", "lower"]),
    },
)

RENAME = ToolDefinition(
    name="rename",
    description="Rename something",
    parameters={"title": parameter(ParameterType.STRING, required=True)},
    required_permission=PermissionLevel.MODIFY_TASKS,
    mutating=True,
)


async def echo(args):
    text = args["text"] * args.get("times", 1)
    if args.get("mode") == "upper":
        text = text.upper()
    return {"text": text}


async def rename(args):
    return {"task": Task(id="t1", title=args["title"])}


async def explode(args):
    raise RuntimeError("secret stack detail")


async def missing(args):
    raise TaskNotFoundError("t-404")


async def plan_rename(args):
    return ToolActionPlan(title="Rename", description=f"Rename to {args['title']}")


@pytest.fixture
def log():
    return ToolExecutionLog()


@pytest.fixture
def tools(log):
    registry = ToolRegistry(permissions=[PermissionLevel.MODIFY_TASKS], execution_log=log)
    registry.register(ECHO, echo)
    registry.register(RENAME, rename, plan=plan_rename)
    return registry


# ===========================================================================
# Registration
# ===========================================================================


class TestRegistration:
    def test_list_get_has(self, tools):
        assert [d.name for d in tools.list()] == ["echo", "rename"]
        assert tools.get("echo") is ECHO
        assert tools.get("nope") is None
        assert tools.has("rename")
        assert "echo" in tools
        assert len(tools) == 2

    def test_duplicate_name_rejected(self, tools):
        with pytest.raises(ToolRegistrationError, match="already registered"):
            tools.register(ECHO, echo)

    def test_empty_name_rejected(self):
        with pytest.raises(ToolRegistrationError):
            ToolRegistry().register(ToolDefinition(name=" ", description="blank"), echo)

    def test_sync_handler_rejected(self):
        with pytest.raises(ToolRegistrationError, match="async"):
            ToolRegistry().register(ToolDefinition(name="sync", description="d"), lambda args: None)

    def test_sync_plan_rejected(self):
        with pytest.raises(ToolRegistrationError, match="plan builder"):
            ToolRegistry().register(RENAME, rename, plan=lambda args: None)

    def test_async_callable_object_accepted(self):
        class Handler:
            async def __call__(self, args):
                return None

        registry = ToolRegistry()
        registry.register(ToolDefinition(name="obj", description="d"), Handler())
        assert registry.has("obj")

    def test_mutating_read_only_tool_rejected(self):
        definition = ToolDefinition(name="wipe", description="d", mutating=True)
        with pytest.raises(ToolRegistrationError, match="read_only"):
            ToolRegistry().register(definition, echo)

    def test_enum_type_mismatch_rejected(self):
        definition = ToolDefinition(
            name="bad",
            description="d",
            parameters={"level": parameter(ParameterType.INTEGER, enum=[1, "two"])},
        )
        with pytest.raises(ToolRegistrationError, match="enum"):
            ToolRegistry().register(definition, echo)

    def test_empty_enum_rejected(self):
        definition = ToolDefinition(
            name="bad",
            description="d",
            parameters={"level": parameter(ParameterType.STRING, enum=[])},
        )
        with pytest.raises(ToolRegistrationError):
            ToolRegistry().register(definition, echo)


class TestFunctionSchema:
    def test_schema_shape(self):
        schema = ECHO.to_function_schema()
        assert schema["type"] == "function"
        params = schema["function"]["parameters"]
        assert params["required"] == ["text"]
        assert params["properties"]["mode"] == {"type": "string", "description": "Casing", "enum": ["upper", "lower"]}


# ===========================================================================
# Permissions
# ===========================================================================


class TestPermissions:
    def test_read_only_always_satisfied(self):
        assert permission_satisfied(PermissionLevel.READ_ONLY, [])

    def test_exact_grant(self):
        assert permission_satisfied(PermissionLevel.TIMER_CONTROL, [PermissionLevel.TIMER_CONTROL])
        assert not permission_satisfied(PermissionLevel.TIMER_CONTROL, [PermissionLevel.MODIFY_TASKS])

    def test_full_access_covers_everything(self):
        for level in PermissionLevel:
            assert permission_satisfied(level, [PermissionLevel.FULL_ACCESS])

    @pytest.mark.asyncio
    async def test_denied_names_missing_permission(self, tools):
        result = await tools.execute("rename", {"title": "x"}, permissions=[PermissionLevel.READ_ONLY])

        assert result.success is False
        assert result.error_type == "permission_denied"
        assert "modify_tasks" in result.error
        assert result.metadata.data_modified is False


# ===========================================================================
# Validation
# ===========================================================================


class TestValidation:
    @pytest.mark.parametrize(
        "args,field,reason",
        [
            ({}, "text", "is required"),
            ({"text": None}, "text", "is required"),
            ({"text": 5}, "text", "must be of type string"),
            ({"text": "a", "times": 1.5}, "times", "must be of type integer"),
            ({"text": "a", "times": True}, "times", "must be of type integer"),
            ({"text": "a", "mode": "title"}, "mode", "must be one of: upper, lower"),
            ({"text": "a", "colour": "red"}, "colour", "is not a parameter of this tool"),
        ],
    )
    def test_first_failing_field_is_reported(self, args, field, reason):
        with pytest.raises(ToolValidationError) as exc_info:
            ToolRegistry.validate_args(ECHO, args)
        assert exc_info.value.field == field
        assert exc_info.value.reason == reason

    def test_non_dict_args(self):
        with pytest.raises(ToolValidationError) as exc_info:
            ToolRegistry.validate_args(ECHO, ["text"])
        assert exc_info.value.field == "args"

    @pytest.mark.asyncio
    async def test_invalid_args_do_not_run_handler(self, log):
        calls = []

        async def handler(args):
            calls.append(args)

        registry = ToolRegistry(execution_log=log)
        registry.register(ToolDefinition(name="t", description="d", parameters=ECHO.parameters), handler)
        result = await registry.execute("t", {"text": 1})

        assert calls == []
        assert result.error_type == "validation"
        assert result.user_message.startswith("Invalid input for t")

    def test_preflight_does_not_record(self, tools, log):
        assert tools.preflight("echo", {"text": "hi"}) is None
        failure = tools.preflight("nope", {})
        assert failure.error_type == "tool_not_found"
        assert len(log) == 0


# ===========================================================================
# Execution
# ===========================================================================


class TestExecute:
    @pytest.mark.asyncio
    async def test_success(self, tools):
        result = await tools.execute("echo", {"text": "ab", "times": 2, "mode": "upper"})

        assert result.success is True
        assert result.data == {"text": "ABAB"}
        assert result.user_message == "Echo completed successfully"
        assert result.metadata.tool_name == "echo"
        assert result.metadata.data_modified is False
        assert result.metadata.execution_time_ms >= 0

    @pytest.mark.asyncio
    async def test_models_are_serialized_and_mutation_flagged(self, tools):
        result = await tools.execute("rename", {"title": "New"})

        assert result.data["task"]["title"] == "New"
        assert result.metadata.data_modified is True

    @pytest.mark.asyncio
    async def test_unknown_tool_is_stable(self, tools):
        first = await tools.execute("teleport", {"to": "mars"})
        second = await tools.execute("teleport", {"to": "mars"})

        assert first.success is False
        assert first.error == "unknown tool"
        assert first.error_type == "tool_not_found"
        assert first.model_dump() == second.model_dump()

    @pytest.mark.asyncio
    async def test_handler_error_is_sanitized(self, log):
        registry = ToolRegistry(execution_log=log)
        registry.register(ToolDefinition(name="flaky_tool", description="d"), explode)
        result = await registry.execute("flaky_tool", {})

        assert result.success is False
        assert result.error_type == "execution"
        assert "secret stack detail" in result.error
        assert "secret" not in result.user_message
        assert result.user_message == "Sorry, flaky tool could not be completed."
        assert "secret" not in result.to_tool_content()

    @pytest.mark.asyncio
    async def test_missing_entity_maps_to_not_found(self):
        registry = ToolRegistry()
        registry.register(ToolDefinition(name="lookup", description="d"), missing)
        result = await registry.execute("lookup", {})

        assert result.error_type == "not_found"
        assert result.user_message == "Could not find that task."

    @pytest.mark.asyncio
    async def test_execute_call(self, tools):
        result = await tools.execute_call(ToolCallRequest(name="echo", args={"text": "x"}))
        assert result.data == {"text": "x"}

    @pytest.mark.asyncio
    async def test_every_execution_is_logged(self, tools, log):
        await tools.execute("echo", {"text": "x"})
        await tools.execute("nope", {})

        entries = log.get_recent_calls(limit=10)
        assert [e.tool_name for e in entries] == ["nope", "echo"]
        assert entries[0].outcome == ToolOutcome.FAILURE
        assert entries[1].outcome == ToolOutcome.SUCCESS


# ===========================================================================
# Plans and cancellations
# ===========================================================================


class TestDescribe:
    @pytest.mark.asyncio
    async def test_describe_mutating_tool(self, tools):
        plan = await tools.describe(ToolCallRequest(name="rename", args={"title": "New"}))
        assert plan.title == "Rename"

    @pytest.mark.asyncio
    async def test_describe_read_only_tool(self, tools):
        assert await tools.describe(ToolCallRequest(name="echo", args={"text": "x"})) is None

    def test_is_mutating(self, tools):
        assert tools.is_mutating("rename") is True
        assert tools.is_mutating("echo") is False
        assert tools.is_mutating("nope") is False

    def test_cancelled_result(self, tools, log):
        call = ToolCallRequest(name="rename", args={"title": "New"})
        result = tools.cancelled_result(call, "Rename")

        assert result.success is False
        assert result.error_type == "cancelled"
        assert result.error == "cancelled by user: Rename"
        assert result.user_message == "Cancelled by user: Rename"
        assert json.loads(result.to_tool_content())["error"] == "cancelled by user: Rename"
        assert log.get_recent_calls()[0].outcome == ToolOutcome.CANCELLED

    def test_error_result_for_plan_failures(self, tools):
        call = ToolCallRequest(name="rename", args={"title": "New"})
        result = tools.error_result(call, TaskNotFoundError("t1"))
        assert result.error_type == "not_found"
