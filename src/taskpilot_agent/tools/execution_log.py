# taskpilot_agent/tools/execution_log.py
"""
Tool Execution Log - an audit trail of every call that reached the registry.

Handles:
- Recording each invocation with its arguments, outcome and timing
- Per-tool call/success/failure statistics
- Retrieval of recent calls for diagnostics
"""

from __future__ import annotations

import hashlib
import json
import logging
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field

from taskpilot_agent.models.enums import ToolOutcome
from taskpilot_agent.models.tools import ToolExecutionResult

log = logging.getLogger(__name__)


class ToolLogEntry(BaseModel):
    """Single tool invocation record."""

    id: str  # call-0001, call-0002, ...
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    tool_name: str
    arguments: dict[str, Any] = Field(default_factory=dict)
    arguments_hash: str = ""

    outcome: ToolOutcome
    error_type: str | None = None
    execution_time_ms: float = 0.0
    data_modified: bool = False

    def is_success(self) -> bool:
        return self.outcome == ToolOutcome.SUCCESS

    def format_compact(self) -> str:
        """Format as compact string for logging."""
        status = "ok" if self.is_success() else self.outcome.value
        suffix = f" ({self.error_type})" if self.error_type else ""
        return f"[{status}] {self.tool_name}{suffix} {self.execution_time_ms:.1f}ms"


class ToolCallStats(BaseModel):
    tool_name: str
    total_calls: int = 0
    success_count: int = 0
    failure_count: int = 0
    cancelled_count: int = 0
    avg_execution_ms: float = 0.0

    @property
    def success_rate(self) -> float:
        if self.total_calls == 0:
            return 0.0
        return self.success_count / self.total_calls


class ToolExecutionLog:
    """
    Bounded, in-process log of tool executions.

    The registry records every call here; hosts can persist ``to_dict()``
    wherever they keep audit data.
    """

    def __init__(self, max_entries: int = 1000):
        self.max_entries = max_entries
        self._entries: list[ToolLogEntry] = []
        self._stats: dict[str, ToolCallStats] = {}
        self._next_id = 1

    def record(
        self,
        tool_name: str,
        arguments: dict[str, Any],
        result: ToolExecutionResult,
        outcome: ToolOutcome | None = None,
    ) -> ToolLogEntry:
        if outcome is None:
            outcome = ToolOutcome.SUCCESS if result.success else ToolOutcome.FAILURE
        if result.error_type == "cancelled":
            outcome = ToolOutcome.CANCELLED

        entry = ToolLogEntry(
            id=f"call-{self._next_id:04d}",
            tool_name=tool_name,
            arguments=dict(arguments),
            arguments_hash=self._hash_arguments(arguments),
            outcome=outcome,
            error_type=result.error_type,
            execution_time_ms=result.metadata.execution_time_ms,
            data_modified=result.metadata.data_modified,
        )
        self._next_id += 1

        self._entries.append(entry)
        if len(self._entries) > self.max_entries:
            self._entries.pop(0)

        self._update_stats(entry)
        log.debug(f"Recorded tool call: {entry.format_compact()}")
        return entry

    def _update_stats(self, entry: ToolLogEntry) -> None:
        stats = self._stats.setdefault(entry.tool_name, ToolCallStats(tool_name=entry.tool_name))
        stats.total_calls += 1
        if entry.outcome == ToolOutcome.SUCCESS:
            stats.success_count += 1
        elif entry.outcome == ToolOutcome.CANCELLED:
            stats.cancelled_count += 1
        else:
            stats.failure_count += 1

        # Running average
        stats.avg_execution_ms += (entry.execution_time_ms - stats.avg_execution_ms) / stats.total_calls

    @staticmethod
    def _hash_arguments(arguments: dict[str, Any]) -> str:
        try:
            args_str = json.dumps(arguments, sort_keys=True, default=str)
        except (TypeError, ValueError):
            return ""
        return hashlib.sha256(args_str.encode()).hexdigest()[:12]

    # --- Retrieval ---

    def get_recent_calls(
        self,
        tool_name: str | None = None,
        limit: int = 5,
        outcome: ToolOutcome | None = None,
    ) -> list[ToolLogEntry]:
        """Most recent entries first, optionally filtered."""
        entries = self._entries
        if tool_name:
            entries = [e for e in entries if e.tool_name == tool_name]
        if outcome:
            entries = [e for e in entries if e.outcome == outcome]
        return list(reversed(entries[-limit:]))

    def stats(self) -> dict[str, ToolCallStats]:
        return dict(self._stats)

    def __len__(self) -> int:
        return len(self._entries)

    def to_dict(self) -> dict[str, Any]:
        return {
            "entries": [e.model_dump(mode="json") for e in self._entries],
            "stats": {name: s.model_dump() for name, s in self._stats.items()},
        }

    def reset(self) -> None:
        self._entries.clear()
        self._stats.clear()
        self._next_id = 1
