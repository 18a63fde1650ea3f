# taskpilot_agent/models/tasks.py
"""Task and timer-session records exchanged with the task/session store."""

from __future__ import annotations

from datetime import UTC, datetime
from uuid import uuid4

from pydantic import BaseModel, Field

from taskpilot_agent.models.enums import OPEN_TASK_STATUSES, Priority, TaskStatus


def _now() -> datetime:
    return datetime.now(UTC)


class Task(BaseModel):
    """A unit of work the user tracks."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    title: str
    description: str = Field(default="")
    priority: Priority = Field(default=Priority.MEDIUM)
    status: TaskStatus = Field(default=TaskStatus.PENDING)
    due_date: datetime | None = Field(default=None)
    time_estimate: int = Field(default=0, description="Estimated minutes")
    tags: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)
    completed_at: datetime | None = Field(default=None)

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_TASK_STATUSES


class TimerSession(BaseModel):
    """A stretch of tracked time against a task."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    task_id: str
    start_time: datetime = Field(default_factory=_now)
    end_time: datetime | None = Field(default=None)
    paused_seconds: float = Field(default=0.0)
    is_active: bool = Field(default=True)
    notes: str = Field(default="")

    def duration_minutes(self, now: datetime | None = None) -> float:
        """Tracked minutes, excluding pauses; open sessions run up to ``now``."""
        end = self.end_time or now or _now()
        seconds = (end - self.start_time).total_seconds() - self.paused_seconds
        return max(0.0, seconds / 60)


class TaskFilter(BaseModel):
    """Query parameters for TaskStore.find_tasks."""

    status: list[TaskStatus] | None = Field(default=None)
    priority: list[Priority] | None = Field(default=None)
    search: str | None = Field(default=None, description="Case-insensitive title/description match")
    tags: list[str] | None = Field(default=None)
    due_before: datetime | None = Field(default=None)
    limit: int | None = Field(default=None)

    def matches(self, task: Task) -> bool:
        if self.status is not None and task.status not in self.status:
            return False
        if self.priority is not None and task.priority not in self.priority:
            return False
        if self.search:
            needle = self.search.lower()
            if needle not in task.title.lower() and needle not in task.description.lower():
                return False
        if self.tags and not set(self.tags) & set(task.tags):
            return False
        if self.due_before is not None and (task.due_date is None or task.due_date > self.due_before):
            return False
        return True
