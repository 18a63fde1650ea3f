# tests/test_models.py
"""
Tests for the data model: messages, tool results, tasks and context envelopes.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta

import pytest
from pydantic import ValidationError

from taskpilot_agent.models import (
    EnhancedContext,
    EnvironmentalFactors,
    Message,
    MessageRole,
    TimeOfDay,
    ToolCallRequest,
    ToolExecutionMetadata,
    ToolExecutionResult,
    TurnResult,
    TurnStatus,
)
from taskpilot_agent.models.context import WorkingHours
from taskpilot_agent.models.enums import TaskStatus
from taskpilot_agent.models.tasks import Task, TaskFilter, TimerSession


def _result(success: bool = True, **fields) -> ToolExecutionResult:
    fields.setdefault("user_message", "ok")
    fields.setdefault("metadata", ToolExecutionMetadata(tool_name="create_task", data_modified=success))
    return ToolExecutionResult(success=success, **fields)


class TestMessages:
    def test_factories(self):
        assert Message.system("s").role == MessageRole.SYSTEM
        assert Message.user("u").content == "u"
        tool = Message.tool("{}", "call_1", "get_tasks")
        assert (tool.role, tool.tool_call_id, tool.name) == (MessageRole.TOOL, "call_1", "get_tasks")

    def test_assistant_with_tool_calls(self):
        call = ToolCallRequest(name="get_tasks")
        message = Message.assistant(tool_calls=[call])
        assert message.has_tool_calls is True
        assert Message.assistant("done").has_tool_calls is False

    def test_tool_call_ids_are_generated(self):
        first, second = ToolCallRequest(name="a"), ToolCallRequest(name="a")
        assert first.id.startswith("call_")
        assert first.id != second.id

    def test_messages_are_frozen(self):
        with pytest.raises(ValidationError):
            Message.user("u").content = "changed"


class TestToolExecutionResult:
    def test_success_content(self):
        content = json.loads(_result(data={"task": {"title": "x"}}).to_tool_content())
        assert content == {"success": True, "message": "ok", "data": {"task": {"title": "x"}}}

    def test_failure_content_keeps_safe_error(self):
        content = json.loads(_result(False, error="title: is required", error_type="validation").to_tool_content())
        assert content["error_type"] == "validation"
        assert content["error"] == "title: is required"

    def test_execution_error_text_stays_out_of_content(self):
        result = _result(False, error="KeyError: 'db_password'", error_type="execution")
        content = json.loads(result.to_tool_content())
        assert "error" not in content
        assert "db_password" not in result.to_tool_content()

    def test_tool_name_comes_from_metadata(self):
        assert _result().tool_name == "create_task"

    def test_results_are_frozen(self):
        with pytest.raises(ValidationError):
            _result().success = False


class TestTasks:
    def test_is_open(self):
        assert Task(title="x").is_open is True
        assert Task(title="x", status=TaskStatus.ARCHIVED).is_open is False

    def test_session_duration_excludes_pauses(self):
        start = datetime(2025, 3, 10, 9, tzinfo=UTC)
        session = TimerSession(task_id="t", start_time=start, end_time=start + timedelta(minutes=50), paused_seconds=600)
        assert session.duration_minutes() == 40.0

    def test_open_session_runs_to_now(self):
        start = datetime(2025, 3, 10, 9, tzinfo=UTC)
        session = TimerSession(task_id="t", start_time=start)
        assert session.duration_minutes(start + timedelta(minutes=15)) == 15.0

    def test_filter_matches(self):
        task = Task(title="Write Report", description="Q3 numbers", tags=["work"])
        assert TaskFilter(search="q3").matches(task)
        assert TaskFilter(status=[TaskStatus.PENDING], tags=["work", "home"]).matches(task)
        assert not TaskFilter(status=[TaskStatus.COMPLETED]).matches(task)
        assert not TaskFilter(due_before=datetime(2025, 1, 1, tzinfo=UTC)).matches(task)


class TestContextModels:
    def test_working_hours(self):
        hours = WorkingHours(start="08:30", end="18:00")
        assert (hours.start_hour, hours.end_hour) == (8, 18)

    def test_enhanced_context_requires_environment(self):
        with pytest.raises(ValidationError):
            EnhancedContext()

    def test_enhanced_context_is_frozen(self):
        context = EnhancedContext(
            environmental_factors=EnvironmentalFactors(
                time_of_day=TimeOfDay.MORNING, day_of_week=1, is_working_hours=True
            )
        )
        with pytest.raises(ValidationError):
            context.focus_mode = True


class TestTurnResult:
    def test_data_modified(self):
        assert TurnResult(message="m", status=TurnStatus.DONE).data_modified is False
        turn = TurnResult(message="m", status=TurnStatus.DONE, tool_results=[_result(False), _result(True)])
        assert turn.data_modified is True
