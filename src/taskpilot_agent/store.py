# taskpilot_agent/store.py
"""
Task/session store interface consumed by the tool handlers and the context
aggregator, plus an in-memory implementation for tests and development.

The agent core defines no persistence of its own; hosts inject a store that
talks to their database.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any, Protocol, runtime_checkable

from taskpilot_agent.exceptions import StoreError, TaskNotFoundError
from taskpilot_agent.models.enums import TaskStatus
from taskpilot_agent.models.tasks import Task, TaskFilter, TimerSession

logger = logging.getLogger(__name__)

# Fields a caller may change through update_task
UPDATABLE_TASK_FIELDS = frozenset(
    {"title", "description", "priority", "status", "due_date", "time_estimate", "tags"}
)


@runtime_checkable
class TaskStore(Protocol):
    """Protocol for task and timer-session storage."""

    async def create_task(self, task: Task) -> Task:
        """Persist a new task and return the stored copy."""
        ...

    async def get_task(self, task_id: str) -> Task | None: ...

    async def update_task(self, task_id: str, updates: dict[str, Any]) -> Task:
        """Apply field updates. Raises TaskNotFoundError for unknown ids."""
        ...

    async def delete_task(self, task_id: str) -> bool: ...

    async def find_tasks(self, task_filter: TaskFilter | None = None) -> list[Task]: ...

    async def start_session(self, task_id: str, notes: str = "") -> TimerSession:
        """Start timing a task. Raises StoreError if a session is already running."""
        ...

    async def stop_session(self, session_id: str, notes: str | None = None) -> TimerSession: ...

    async def get_active_session(self) -> TimerSession | None: ...

    async def find_sessions(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[TimerSession]: ...


class InMemoryTaskStore:
    """
    Simple in-memory store for testing/development.

    Not persistent - data is lost when the process exits. Returned records are
    copies, so callers cannot mutate stored state behind the store's back.
    """

    def __init__(self, now: Callable[[], datetime] | None = None):
        self._now = now or (lambda: datetime.now(UTC))
        self._tasks: dict[str, Task] = {}
        self._sessions: dict[str, TimerSession] = {}
        self._lock = asyncio.Lock()

    # --- Tasks ---

    async def create_task(self, task: Task) -> Task:
        async with self._lock:
            if task.id in self._tasks:
                raise StoreError(f"task already exists: {task.id}")
            now = self._now()
            stored = task.model_copy(update={"created_at": now, "updated_at": now}, deep=True)
            self._tasks[stored.id] = stored
        logger.debug(f"Created task {stored.id}: {stored.title}")
        return stored.model_copy(deep=True)

    async def get_task(self, task_id: str) -> Task | None:
        task = self._tasks.get(task_id)
        return task.model_copy(deep=True) if task else None

    async def update_task(self, task_id: str, updates: dict[str, Any]) -> Task:
        unknown = set(updates) - UPDATABLE_TASK_FIELDS
        if unknown:
            raise StoreError(f"cannot update fields: {', '.join(sorted(unknown))}")

        async with self._lock:
            current = self._tasks.get(task_id)
            if current is None:
                raise TaskNotFoundError(task_id)

            now = self._now()
            changes = dict(updates)
            changes["updated_at"] = now
            status = changes.get("status")
            if status is not None:
                status = TaskStatus(status)
                changes["status"] = status
                if status == TaskStatus.COMPLETED and current.status != TaskStatus.COMPLETED:
                    changes["completed_at"] = now
                elif status != TaskStatus.COMPLETED:
                    changes["completed_at"] = None

            # Re-validate so enum/int/date coercion applies to updates too
            updated = Task.model_validate({**current.model_dump(), **changes})
            self._tasks[task_id] = updated
        return updated.model_copy(deep=True)

    async def delete_task(self, task_id: str) -> bool:
        async with self._lock:
            return self._tasks.pop(task_id, None) is not None

    async def find_tasks(self, task_filter: TaskFilter | None = None) -> list[Task]:
        task_filter = task_filter or TaskFilter()
        tasks = [t for t in self._tasks.values() if task_filter.matches(t)]
        tasks.sort(key=lambda t: (-int(t.priority), t.created_at))
        if task_filter.limit is not None:
            tasks = tasks[: task_filter.limit]
        return [t.model_copy(deep=True) for t in tasks]

    # --- Timer sessions ---

    async def start_session(self, task_id: str, notes: str = "") -> TimerSession:
        async with self._lock:
            if task_id not in self._tasks:
                raise TaskNotFoundError(task_id)
            if any(s.is_active for s in self._sessions.values()):
                raise StoreError("a timer session is already running")
            session = TimerSession(task_id=task_id, start_time=self._now(), notes=notes)
            self._sessions[session.id] = session
        return session.model_copy(deep=True)

    async def stop_session(self, session_id: str, notes: str | None = None) -> TimerSession:
        async with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise TaskNotFoundError(session_id, kind="session")
            if not session.is_active:
                raise StoreError(f"session is not running: {session_id}")
            update: dict[str, Any] = {"end_time": self._now(), "is_active": False}
            if notes is not None:
                update["notes"] = notes
            stopped = session.model_copy(update=update)
            self._sessions[session_id] = stopped
        return stopped.model_copy(deep=True)

    async def get_active_session(self) -> TimerSession | None:
        for session in self._sessions.values():
            if session.is_active:
                return session.model_copy(deep=True)
        return None

    async def find_sessions(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[TimerSession]:
        sessions = [
            s
            for s in self._sessions.values()
            if (start is None or s.start_time >= start) and (end is None or s.start_time < end)
        ]
        sessions.sort(key=lambda s: s.start_time)
        return [s.model_copy(deep=True) for s in sessions]

    def clear(self) -> None:
        """Drop all tasks and sessions."""
        self._tasks.clear()
        self._sessions.clear()
