# taskpilot_agent/tools/task_tools.py
"""
Built-in task and timer tools.

Each tool is a ToolDefinition plus an async handler that calls into the
injected TaskStore. Mutating tools also carry a plan builder that describes
their change-set before they run, which is what the confirmation gate shows.

Tasks can be addressed by ``task_id`` or by ``task_reference``, a
case-insensitive fragment of the title.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

from taskpilot_agent.confirmation.impact import TaskChanges
from taskpilot_agent.exceptions import TaskNotFoundError, ToolValidationError
from taskpilot_agent.models.actions import ActionChange
from taskpilot_agent.models.enums import (
    OPEN_TASK_STATUSES,
    ActionChangeType,
    ParameterType,
    PermissionLevel,
    Priority,
    TaskStatus,
)
from taskpilot_agent.models.tasks import Task, TaskFilter
from taskpilot_agent.models.tools import AlternativeToolCall, ToolActionPlan, ToolDefinition
from taskpilot_agent.store import TaskStore
from taskpilot_agent.tools.registry import ToolRegistry, parameter

logger = logging.getLogger(__name__)

PRIORITY_VALUES = [p.value for p in Priority]
STATUS_VALUES = [s.value for s in TaskStatus]
DEFAULT_TASK_LIMIT = 20
TIMEFRAME_DAYS = {"day": 1, "week": 7, "month": 30}

_TASK_SELECTOR = {
    "task_id": parameter(ParameterType.STRING, "Exact task id"),
    "task_reference": parameter(ParameterType.STRING, "Part of the task title, used when the id is unknown"),
}


def priority_name(priority: int | Priority) -> str:
    return Priority(priority).name.lower()


def parse_datetime(tool_name: str, field: str, value: str) -> datetime:
    """Parse an ISO date or datetime; naive values are taken as UTC."""
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError as e:
        raise ToolValidationError(tool_name, field, "must be an ISO 8601 date") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


# =============================================================================
# Definitions
# =============================================================================

CREATE_TASK = ToolDefinition(
    name="create_task",
    description="Create a new task with a title and optional description, priority, estimate, due date and tags",
    parameters={
        "title": parameter(ParameterType.STRING, "Task title", required=True),
        "description": parameter(ParameterType.STRING, "Detailed task description"),
        "priority": parameter(ParameterType.INTEGER, "0=Low, 1=Medium, 2=High, 3=Urgent", enum=PRIORITY_VALUES),
        "time_estimate": parameter(ParameterType.INTEGER, "Estimated minutes to complete"),
        "due_date": parameter(ParameterType.STRING, "Due date in ISO format (YYYY-MM-DD)"),
        "tags": parameter(ParameterType.ARRAY, "Tags for categorization"),
    },
    required_permission=PermissionLevel.MODIFY_TASKS,
    mutating=True,
)

UPDATE_TASK = ToolDefinition(
    name="update_task",
    description="Change the title, description, priority, status, estimate, due date or tags of an existing task",
    parameters={
        **_TASK_SELECTOR,
        "title": parameter(ParameterType.STRING, "New title"),
        "description": parameter(ParameterType.STRING, "New description"),
        "priority": parameter(ParameterType.INTEGER, "0=Low, 1=Medium, 2=High, 3=Urgent", enum=PRIORITY_VALUES),
        "status": parameter(ParameterType.STRING, "New status", enum=STATUS_VALUES),
        "time_estimate": parameter(ParameterType.INTEGER, "New estimate in minutes"),
        "due_date": parameter(ParameterType.STRING, "New due date in ISO format"),
        "tags": parameter(ParameterType.ARRAY, "Replacement tag list"),
    },
    required_permission=PermissionLevel.MODIFY_TASKS,
    mutating=True,
)

COMPLETE_TASK = ToolDefinition(
    name="complete_task",
    description="Mark a task as completed",
    parameters=dict(_TASK_SELECTOR),
    required_permission=PermissionLevel.MODIFY_TASKS,
    mutating=True,
)

ARCHIVE_TASK = ToolDefinition(
    name="archive_task",
    description="Archive a task so it no longer shows up; it can be restored later",
    parameters=dict(_TASK_SELECTOR),
    required_permission=PermissionLevel.MODIFY_TASKS,
    mutating=True,
)

DELETE_TASK = ToolDefinition(
    name="delete_task",
    description="Permanently delete a task",
    parameters=dict(_TASK_SELECTOR),
    required_permission=PermissionLevel.MODIFY_TASKS,
    mutating=True,
)

GET_TASKS = ToolDefinition(
    name="get_tasks",
    description="Search tasks by text, status, priority or tags",
    parameters={
        "query": parameter(ParameterType.STRING, "Text to find in titles and descriptions"),
        "status": parameter(ParameterType.ARRAY, f"Statuses to include: {', '.join(STATUS_VALUES)}"),
        "priority": parameter(ParameterType.ARRAY, "Priorities to include (0-3)"),
        "tags": parameter(ParameterType.ARRAY, "Tags to match"),
        "limit": parameter(ParameterType.INTEGER, f"Maximum results (default {DEFAULT_TASK_LIMIT})"),
    },
)

GET_TASK_DETAILS = ToolDefinition(
    name="get_task_details",
    description="Get full details of one task, including tracked time",
    parameters=dict(_TASK_SELECTOR),
)

START_TIMER = ToolDefinition(
    name="start_timer",
    description="Start tracking time on a task",
    parameters={**_TASK_SELECTOR, "notes": parameter(ParameterType.STRING, "Session notes")},
    required_permission=PermissionLevel.TIMER_CONTROL,
    mutating=True,
)

STOP_TIMER = ToolDefinition(
    name="stop_timer",
    description="Stop the running timer session",
    parameters={
        "session_id": parameter(ParameterType.STRING, "Session to stop (defaults to the active one)"),
        "notes": parameter(ParameterType.STRING, "Session notes"),
    },
    required_permission=PermissionLevel.TIMER_CONTROL,
    mutating=True,
)

GET_TIME_DATA = ToolDefinition(
    name="get_time_data",
    description="Time tracking totals for a date range (defaults to the last 7 days)",
    parameters={
        "start_date": parameter(ParameterType.STRING, "Range start in ISO format"),
        "end_date": parameter(ParameterType.STRING, "Range end in ISO format"),
    },
)

ANALYZE_PRODUCTIVITY = ToolDefinition(
    name="analyze_productivity",
    description="Analyze completion and time tracking data and suggest improvements",
    parameters={
        "timeframe": parameter(ParameterType.STRING, "Period to analyze", enum=list(TIMEFRAME_DAYS)),
        "focus_area": parameter(
            ParameterType.STRING,
            "Area to focus on",
            enum=["time_management", "task_completion", "general"],
        ),
    },
)


# =============================================================================
# Handlers
# =============================================================================


class TaskTools:
    """Handlers and plan builders bound to one store."""

    def __init__(self, store: TaskStore, now: Callable[[], datetime] | None = None):
        self.store = store
        self._now = now or (lambda: datetime.now(UTC))

    # --- Lookup ---

    async def resolve_task(self, tool_name: str, args: dict[str, Any]) -> Task:
        task_id = args.get("task_id")
        reference = args.get("task_reference")

        if task_id:
            task = await self.store.get_task(task_id)
            if task is None:
                raise TaskNotFoundError(task_id)
            return task

        if not reference:
            raise ToolValidationError(tool_name, "task_id", "task_id or task_reference is required")

        matches = await self.store.find_tasks(TaskFilter(search=reference))
        if not matches:
            raise TaskNotFoundError(reference)
        # Prefer open tasks and exact title matches
        matches.sort(key=lambda t: (not t.is_open, t.title.lower() != reference.lower()))
        return matches[0]

    # --- Tasks ---

    def _task_fields(self, tool_name: str, args: dict[str, Any]) -> dict[str, Any]:
        fields: dict[str, Any] = {}
        for key in ("title", "description", "priority", "status", "time_estimate", "tags"):
            if args.get(key) is not None:
                fields[key] = args[key]
        if args.get("due_date") is not None:
            fields["due_date"] = parse_datetime(tool_name, "due_date", args["due_date"])
        if "title" in fields and not fields["title"].strip():
            raise ToolValidationError(tool_name, "title", "must not be empty")
        return fields

    async def create_task(self, args: dict[str, Any]) -> dict[str, Any]:
        fields = self._task_fields("create_task", args)
        task = await self.store.create_task(Task(**fields))
        logger.info(f"Created task {task.id}: {task.title}")
        return {"task": task}

    async def update_task(self, args: dict[str, Any]) -> dict[str, Any]:
        task = await self.resolve_task("update_task", args)
        fields = self._task_fields("update_task", args)
        if not fields:
            raise ToolValidationError("update_task", "updates", "at least one field to change is required")
        updated = await self.store.update_task(task.id, fields)
        return {"task": updated, "updated_fields": sorted(fields)}

    async def complete_task(self, args: dict[str, Any]) -> dict[str, Any]:
        task = await self.resolve_task("complete_task", args)
        updated = await self.store.update_task(task.id, {"status": TaskStatus.COMPLETED})
        return {"task": updated}

    async def archive_task(self, args: dict[str, Any]) -> dict[str, Any]:
        task = await self.resolve_task("archive_task", args)
        updated = await self.store.update_task(task.id, {"status": TaskStatus.ARCHIVED})
        return {"task": updated}

    async def delete_task(self, args: dict[str, Any]) -> dict[str, Any]:
        task = await self.resolve_task("delete_task", args)
        if not await self.store.delete_task(task.id):
            raise TaskNotFoundError(task.id)
        return {"task": task, "deleted": True}

    async def get_tasks(self, args: dict[str, Any]) -> dict[str, Any]:
        try:
            task_filter = TaskFilter(
                search=args.get("query"),
                status=args.get("status"),
                priority=args.get("priority"),
                tags=args.get("tags"),
                limit=args.get("limit") or DEFAULT_TASK_LIMIT,
            )
        except ValueError as e:
            raise ToolValidationError("get_tasks", "filters", "invalid status or priority value") from e

        tasks = await self.store.find_tasks(task_filter)
        return {"tasks": tasks, "count": len(tasks)}

    async def get_task_details(self, args: dict[str, Any]) -> dict[str, Any]:
        task = await self.resolve_task("get_task_details", args)
        now = self._now()
        sessions = [s for s in await self.store.find_sessions() if s.task_id == task.id]
        return {
            "task": task,
            "sessions": len(sessions),
            "minutes_tracked": round(sum(s.duration_minutes(now) for s in sessions), 1),
        }

    # --- Timer ---

    async def start_timer(self, args: dict[str, Any]) -> dict[str, Any]:
        task = await self.resolve_task("start_timer", args)
        session = await self.store.start_session(task.id, notes=args.get("notes") or "")
        if task.status == TaskStatus.PENDING:
            task = await self.store.update_task(task.id, {"status": TaskStatus.IN_PROGRESS})
        return {"task": task, "session": session}

    async def _session_to_stop(self, args: dict[str, Any]) -> str:
        session_id = args.get("session_id")
        if session_id:
            return session_id
        active = await self.store.get_active_session()
        if active is None:
            raise ToolValidationError("stop_timer", "session_id", "no timer is running")
        return active.id

    async def stop_timer(self, args: dict[str, Any]) -> dict[str, Any]:
        session_id = await self._session_to_stop(args)
        session = await self.store.stop_session(session_id, notes=args.get("notes"))
        task = await self.store.get_task(session.task_id)
        return {
            "task": task,
            "session": session,
            "duration_minutes": round(session.duration_minutes(), 1),
        }

    async def get_time_data(self, args: dict[str, Any]) -> dict[str, Any]:
        now = self._now()
        end = parse_datetime("get_time_data", "end_date", args["end_date"]) if args.get("end_date") else now
        start = (
            parse_datetime("get_time_data", "start_date", args["start_date"])
            if args.get("start_date")
            else end - timedelta(days=7)
        )
        if start > end:
            raise ToolValidationError("get_time_data", "start_date", "must not be after end_date")

        sessions = await self.store.find_sessions(start=start, end=end)
        per_task: Counter[str] = Counter()
        for session in sessions:
            per_task[session.task_id] += session.duration_minutes(now)

        total = sum(per_task.values())
        return {
            "start_date": start,
            "end_date": end,
            "total_sessions": len(sessions),
            "total_minutes": round(total, 1),
            "average_session_minutes": round(total / len(sessions), 1) if sessions else 0.0,
            "minutes_by_task": {task_id: round(m, 1) for task_id, m in per_task.most_common()},
        }

    async def analyze_productivity(self, args: dict[str, Any]) -> dict[str, Any]:
        timeframe = args.get("timeframe") or "week"
        focus_area = args.get("focus_area") or "general"
        now = self._now()
        since = now - timedelta(days=TIMEFRAME_DAYS[timeframe])

        tasks = await self.store.find_tasks()
        sessions = await self.store.find_sessions(start=since)

        created = [t for t in tasks if t.created_at >= since]
        completed = [t for t in tasks if t.completed_at is not None and t.completed_at >= since]
        open_tasks = [t for t in tasks if t.status in OPEN_TASK_STATUSES]
        overdue = [t for t in open_tasks if t.due_date is not None and t.due_date < now]
        tracked = sum(s.duration_minutes(now) for s in sessions)
        completion_rate = len([t for t in created if t.status == TaskStatus.COMPLETED]) / len(created) if created else 0.0

        recommendations: list[str] = []
        if overdue:
            recommendations.append(f"Reschedule or finish {len(overdue)} overdue task(s)")
        if focus_area in ("task_completion", "general") and created and completion_rate < 0.5:
            recommendations.append("Fewer new tasks and more completions would improve your completion rate")
        if focus_area in ("time_management", "general") and sessions and tracked / len(sessions) < 25:
            recommendations.append("Try longer focus sessions of at least 25 minutes")
        if focus_area in ("time_management", "general") and not sessions:
            recommendations.append("Track time on your tasks to get time management insights")

        return {
            "timeframe": timeframe,
            "focus_area": focus_area,
            "tasks_created": len(created),
            "tasks_completed": len(completed),
            "completion_rate": round(completion_rate, 2),
            "open_tasks": len(open_tasks),
            "overdue_tasks": len(overdue),
            "minutes_tracked": round(tracked, 1),
            "sessions": len(sessions),
            "recommendations": recommendations,
        }

    # =========================================================================
    # Plan builders
    # =========================================================================

    async def plan_create_task(self, args: dict[str, Any]) -> ToolActionPlan:
        title = args.get("title", "")
        priority = args.get("priority")
        return ToolActionPlan(
            title="Create task",
            description=f'Create "{title}"',
            changes=[TaskChanges.create(title, priority_name(priority) if priority is not None else None)],
        )

    async def plan_update_task(self, args: dict[str, Any]) -> ToolActionPlan:
        task = await self.resolve_task("update_task", args)
        changes: list[ActionChange] = []
        for field in ("title", "description", "priority", "status", "time_estimate", "due_date", "tags"):
            if args.get(field) is None:
                continue
            new = args[field]
            if field == "title":
                changes.append(TaskChanges.rename(task.title, new))
            elif field == "priority":
                changes.append(TaskChanges.update_priority(task.title, priority_name(task.priority), priority_name(new)))
            elif field == "status" and new == TaskStatus.COMPLETED.value:
                changes.append(TaskChanges.complete(task.title, task.status.value))
            else:
                old = getattr(task, field)
                changes.append(TaskChanges.update_field(task.title, field, _plain(old), new))
        return ToolActionPlan(
            title="Update task",
            description=f'Update "{task.title}"',
            changes=changes,
        )

    async def plan_complete_task(self, args: dict[str, Any]) -> ToolActionPlan:
        task = await self.resolve_task("complete_task", args)
        return ToolActionPlan(
            title="Complete task",
            description=f'Mark "{task.title}" as completed',
            changes=[TaskChanges.complete(task.title, task.status.value)],
        )

    async def plan_archive_task(self, args: dict[str, Any]) -> ToolActionPlan:
        task = await self.resolve_task("archive_task", args)
        return ToolActionPlan(
            title="Archive task",
            description=f'Archive "{task.title}"',
            changes=[TaskChanges.archive(task.title)],
        )

    async def plan_delete_task(self, args: dict[str, Any]) -> ToolActionPlan:
        task = await self.resolve_task("delete_task", args)
        return ToolActionPlan(
            title="Delete task",
            description=f'Permanently delete "{task.title}"',
            changes=[TaskChanges.delete(task.title)],
            reversible=False,
            alternatives=[
                AlternativeToolCall(
                    id="archive",
                    label="Archive instead",
                    description="Hide the task but keep it restorable",
                    tool_name="archive_task",
                    args={"task_id": task.id},
                ),
                AlternativeToolCall(
                    id="complete",
                    label="Mark complete instead",
                    description="Keep the task as completed",
                    tool_name="complete_task",
                    args={"task_id": task.id},
                ),
            ],
        )

    async def plan_start_timer(self, args: dict[str, Any]) -> ToolActionPlan:
        task = await self.resolve_task("start_timer", args)
        return ToolActionPlan(
            title="Start timer",
            description=f'Start tracking time on "{task.title}"',
            changes=[
                ActionChange(
                    type=ActionChangeType.CREATE,
                    target=f"Timer: {task.title}",
                    description=f'Start a timer session for "{task.title}"',
                )
            ],
        )

    async def plan_stop_timer(self, args: dict[str, Any]) -> ToolActionPlan:
        return ToolActionPlan(
            title="Stop timer",
            description="Stop the running timer session",
            changes=[
                ActionChange(
                    type=ActionChangeType.UPDATE,
                    target=f"Timer session: {args.get('session_id') or 'active'}",
                    field="end_time",
                    description="Stop the timer session",
                )
            ],
        )


def _plain(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Priority):
        return priority_name(value)
    if hasattr(value, "value"):
        return value.value
    return value


def register_task_tools(
    registry: ToolRegistry,
    store: TaskStore,
    now: Callable[[], datetime] | None = None,
) -> TaskTools:
    """Register every built-in tool on ``registry``."""
    tools = TaskTools(store, now=now)

    registry.register(CREATE_TASK, tools.create_task, plan=tools.plan_create_task)
    registry.register(UPDATE_TASK, tools.update_task, plan=tools.plan_update_task)
    registry.register(COMPLETE_TASK, tools.complete_task, plan=tools.plan_complete_task)
    registry.register(ARCHIVE_TASK, tools.archive_task, plan=tools.plan_archive_task)
    registry.register(DELETE_TASK, tools.delete_task, plan=tools.plan_delete_task)
    registry.register(GET_TASKS, tools.get_tasks)
    registry.register(GET_TASK_DETAILS, tools.get_task_details)
    registry.register(START_TIMER, tools.start_timer, plan=tools.plan_start_timer)
    registry.register(STOP_TIMER, tools.stop_timer, plan=tools.plan_stop_timer)
    registry.register(GET_TIME_DATA, tools.get_time_data)
    registry.register(ANALYZE_PRODUCTIVITY, tools.analyze_productivity)

    return tools
