# taskpilot_agent/models/enums.py
"""Enums and constants for the agent core."""

from __future__ import annotations

from enum import Enum, IntEnum

# =============================================================================
# Conversation
# =============================================================================


class MessageRole(str, Enum):
    """Message roles in the conversation."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class TurnStatus(str, Enum):
    """Terminal outcome of one user turn."""

    DONE = "done"
    CAP_EXCEEDED = "cap_exceeded"
    MODEL_ERROR = "model_error"
    CANCELLED = "cancelled"


class ReActStepType(str, Enum):
    """Kinds of step recorded in a turn trace."""

    THOUGHT = "thought"
    ACTION = "action"
    OBSERVATION = "observation"
    FINAL_ANSWER = "final_answer"
    ERROR = "error"


# =============================================================================
# Tools
# =============================================================================


class PermissionLevel(str, Enum):
    """Permission levels a caller can be granted and a tool can require."""

    READ_ONLY = "read_only"
    MODIFY_TASKS = "modify_tasks"
    TIMER_CONTROL = "timer_control"
    FULL_ACCESS = "full_access"


class ParameterType(str, Enum):
    """JSON types accepted in a tool parameter schema."""

    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    OBJECT = "object"
    ARRAY = "array"


class ToolOutcome(str, Enum):
    """Outcome of a tool invocation, as recorded in the execution log."""

    SUCCESS = "success"
    FAILURE = "failure"
    CANCELLED = "cancelled"


# =============================================================================
# Confirmation
# =============================================================================


class ActionChangeType(str, Enum):
    """What a proposed change does to its target."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    ARCHIVE = "archive"


_IMPACT_RANK = {"low": 1, "medium": 2, "high": 3, "critical": 4}


class ActionImpact(str, Enum):
    """
    Coarse risk classification of a change-set.

    Ordered low < medium < high < critical. Comparison operators use that
    order rather than string order.
    """

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _IMPACT_RANK[self.value]

    def escalate(self) -> ActionImpact:
        """Return the next level up; critical stays critical."""
        order = list(ActionImpact)
        return order[min(order.index(self) + 1, len(order) - 1)]

    def __lt__(self, other: object) -> bool:
        if isinstance(other, ActionImpact):
            return self.rank < other.rank
        return NotImplemented

    def __le__(self, other: object) -> bool:
        if isinstance(other, ActionImpact):
            return self.rank <= other.rank
        return NotImplemented

    def __gt__(self, other: object) -> bool:
        if isinstance(other, ActionImpact):
            return self.rank > other.rank
        return NotImplemented

    def __ge__(self, other: object) -> bool:
        if isinstance(other, ActionImpact):
            return self.rank >= other.rank
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.value)


class ConfirmationOutcome(str, Enum):
    """The three ways a human can resolve a confirmation request."""

    CONFIRM = "confirm"
    CANCEL = "cancel"
    ALTERNATIVE = "alternative"


# =============================================================================
# Tasks and timer sessions
# =============================================================================


class Priority(IntEnum):
    """Task priority (0 = low ... 3 = urgent)."""

    LOW = 0
    MEDIUM = 1
    HIGH = 2
    URGENT = 3


class TaskStatus(str, Enum):
    """Lifecycle status of a task."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    ARCHIVED = "archived"


OPEN_TASK_STATUSES = (TaskStatus.PENDING, TaskStatus.IN_PROGRESS)


# =============================================================================
# Enhanced context
# =============================================================================


class WorkflowPhase(str, Enum):
    PLANNING = "planning"
    EXECUTING = "executing"
    REVIEWING = "reviewing"
    BREAK = "break"


class WorkloadIntensity(str, Enum):
    LIGHT = "light"
    MODERATE = "moderate"
    HEAVY = "heavy"
    OVERWHELMING = "overwhelming"


class Trend(str, Enum):
    INCREASING = "increasing"
    STABLE = "stable"
    DECREASING = "decreasing"


class DeadlineRisk(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class TimeOfDay(str, Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    NIGHT = "night"


class PatternType(str, Enum):
    PRODUCTIVITY = "productivity"
    BREAK = "break"
    TASK_SWITCHING = "task_switching"
    FOCUS = "focus"
    ENERGY = "energy"
    SCHEDULING = "scheduling"


class InsightType(str, Enum):
    OPTIMIZATION = "optimization"
    WARNING = "warning"
    OPPORTUNITY = "opportunity"
    CELEBRATION = "celebration"
    SUGGESTION = "suggestion"


class InsightCategory(str, Enum):
    PRODUCTIVITY = "productivity"
    WELLBEING = "wellbeing"
    EFFICIENCY = "efficiency"
    PLANNING = "planning"


# =============================================================================
# Intent
# =============================================================================


class IntentCategory(str, Enum):
    TASK_MANAGEMENT = "task_management"
    TIME_TRACKING = "time_tracking"
    PLANNING = "planning"
    ANALYSIS = "analysis"
    GENERAL = "general"


class Urgency(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Complexity(str, Enum):
    SIMPLE = "simple"
    MODERATE = "moderate"
    COMPLEX = "complex"
