# tests/conftest.py
"""
Shared pytest fixtures for taskpilot_agent tests.

Everything time-dependent runs against a frozen clock so aggregation, cache
buckets and deadlines are deterministic.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

import pytest

from taskpilot_agent.confirmation.gate import ConfirmationGate
from taskpilot_agent.context.aggregator import ContextAggregator
from taskpilot_agent.context.cache import ContextCache
from taskpilot_agent.models.enums import PermissionLevel
from taskpilot_agent.models.messages import Message, ToolCallRequest
from taskpilot_agent.store import InMemoryTaskStore
from taskpilot_agent.tools.execution_log import ToolExecutionLog
from taskpilot_agent.tools.registry import ToolRegistry
from taskpilot_agent.tools.task_tools import register_task_tools

# Configure logging for tests
logging.basicConfig(level=logging.WARNING)
logging.getLogger("taskpilot_agent").setLevel(logging.DEBUG)

# Monday 10:00 UTC
FIXED_NOW = datetime(2025, 3, 10, 10, 0, tzinfo=UTC)


class FrozenClock:
    """Settable wall clock; callable for datetimes, ``.time`` for epoch seconds."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now
        self.offset = 0.0

    def __call__(self) -> datetime:
        return self.now

    def time(self) -> float:
        return self.now.timestamp() + self.offset

    def advance(self, seconds: float) -> None:
        self.offset += seconds


class ScriptedModel:
    """
    Fake ModelClient that replays a list of replies.

    Each reply is a Message or an exception instance to raise. Every call's
    messages and tool definitions are kept for assertions.
    """

    def __init__(self, replies: list | None = None, repeat_last: bool = False):
        self.replies = list(replies or [])
        self.repeat_last = repeat_last
        self.calls: list[tuple[list[Message], list]] = []

    async def invoke(self, messages, tools):
        self.calls.append((list(messages), list(tools)))
        if not self.replies:
            raise AssertionError("model invoked more times than scripted")
        reply = self.replies[0] if self.repeat_last and len(self.replies) == 1 else self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return reply

    @property
    def call_count(self) -> int:
        return len(self.calls)


def tool_reply(name: str, call_id: str = "call_1", content: str = "", **args) -> Message:
    """Assistant message requesting a single tool call."""
    return Message.assistant(content, tool_calls=[ToolCallRequest(id=call_id, name=name, args=args)])


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def store(clock):
    return InMemoryTaskStore(now=clock)


@pytest.fixture
def execution_log():
    return ToolExecutionLog()


@pytest.fixture
def registry(store, clock, execution_log):
    """Registry with every built-in tool and full permissions."""
    registry = ToolRegistry(permissions=[PermissionLevel.FULL_ACCESS], execution_log=execution_log)
    register_task_tools(registry, store, now=clock)
    return registry


@pytest.fixture
def aggregator(store, clock):
    return ContextAggregator(store, cache=ContextCache(clock=clock.time), now=clock)


@pytest.fixture
def gate():
    return ConfirmationGate()
