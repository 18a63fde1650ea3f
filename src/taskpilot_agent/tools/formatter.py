# taskpilot_agent/tools/formatter.py
"""
Human-readable messages for tool results.

Two uses:
- the per-call ``user_message`` the registry puts on every successful result
- a deterministic turn summary when the model ends a turn with no text
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any

from taskpilot_agent.models.tools import ToolExecutionResult

EMPTY_TURN_MESSAGE = "I've processed your request."

Template = Callable[[Any], str]


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


def _task_title(data: Any, default: str = "Task") -> str:
    if isinstance(data, dict):
        task = data.get("task")
        if isinstance(task, dict) and task.get("title"):
            return str(task["title"])
    return default


def _task_template(verb: str) -> Template:
    return lambda data: f'{verb} task: "{_task_title(data)}"'


def _get_tasks(data: Any) -> str:
    tasks = data.get("tasks", []) if isinstance(data, dict) else []
    count = data.get("count", len(tasks)) if isinstance(data, dict) else 0
    if count == 0:
        return "No tasks found matching your criteria."
    return f"Found {_plural(count, 'task')}"


def _start_timer(data: Any) -> str:
    return f'Timer started for "{_task_title(data, "this task")}"'


def _stop_timer(data: Any) -> str:
    minutes = data.get("duration_minutes") if isinstance(data, dict) else None
    if minutes is None:
        return "Timer stopped"
    return f"Timer stopped ({_plural(round(minutes), 'minute')})"


def _time_data(data: Any) -> str:
    sessions = data.get("total_sessions", 0) if isinstance(data, dict) else 0
    return f"Retrieved time data ({_plural(sessions, 'session')})"


DEFAULT_TEMPLATES: dict[str, Template] = {
    "create_task": _task_template("Created"),
    "update_task": _task_template("Updated"),
    "complete_task": _task_template("Completed"),
    "archive_task": _task_template("Archived"),
    "delete_task": _task_template("Deleted"),
    "get_task_details": lambda data: f'Task details: "{_task_title(data)}"',
    "get_tasks": _get_tasks,
    "start_timer": _start_timer,
    "stop_timer": _stop_timer,
    "get_time_data": _time_data,
    "analyze_productivity": lambda data: "Productivity analysis completed",
}


def display_name(tool_name: str) -> str:
    """create_task -> Create task"""
    return tool_name.replace("_", " ").capitalize()


class ResultFormatter:
    """Maps tool names to success-message templates."""

    def __init__(self, templates: dict[str, Template] | None = None):
        self._templates = dict(DEFAULT_TEMPLATES if templates is None else templates)

    def register_template(self, tool_name: str, template: Template) -> None:
        self._templates[tool_name] = template

    def format_success(self, tool_name: str, data: Any) -> str:
        template = self._templates.get(tool_name)
        if template is None:
            return f"{display_name(tool_name)} completed successfully"
        return template(data)

    def summarize_results(self, results: Iterable[ToolExecutionResult]) -> str:
        """
        Deterministic fallback answer built from the turn's tool results.

        One line per result, in execution order.
        """
        lines = [r.user_message for r in results if r.user_message]
        if not lines:
            return EMPTY_TURN_MESSAGE
        return "\n".join(lines)


_default_formatter = ResultFormatter()


def summarize_results(results: Iterable[ToolExecutionResult]) -> str:
    return _default_formatter.summarize_results(results)
