# taskpilot_agent/models/__init__.py
"""
Data model for the agent core.

Submodules:
- enums: roles, permissions, impact levels, task and context enums
- messages: Message, ToolCallRequest
- tools: ToolDefinition, ParameterSchema, ToolExecutionResult, ToolActionPlan
- actions: ActionChange, ConfirmationLevel, AIActionPreview, confirmation I/O
- tasks: Task, TimerSession, TaskFilter
- context: AppContext, EnhancedContext and facets, Intent, RelevanceScore
- turn: ReActStep, TurnResult
"""

from taskpilot_agent.models.actions import (
    ActionChange,
    AIActionPreview,
    AlternativeAction,
    ConfirmationDecision,
    ConfirmationLevel,
    ConfirmationOptions,
    ConfirmationRequest,
)
from taskpilot_agent.models.context import (
    AppContext,
    CacheEntry,
    ContextAggregationConfig,
    ContextAggregationResult,
    ContextCacheStats,
    ContextualInsight,
    EnhancedContext,
    EnvironmentalFactors,
    Intent,
    ProductivityMetrics,
    RelevanceBreakdown,
    RelevanceScore,
    TaskDeadline,
    UserPattern,
    UserPreferences,
    WorkflowState,
    WorkflowStreak,
    WorkingHours,
)
from taskpilot_agent.models.enums import (
    ActionChangeType,
    ActionImpact,
    Complexity,
    ConfirmationOutcome,
    DeadlineRisk,
    InsightCategory,
    InsightType,
    IntentCategory,
    MessageRole,
    ParameterType,
    PatternType,
    PermissionLevel,
    Priority,
    ReActStepType,
    TaskStatus,
    TimeOfDay,
    ToolOutcome,
    Trend,
    TurnStatus,
    Urgency,
    WorkflowPhase,
    WorkloadIntensity,
)
from taskpilot_agent.models.messages import Message, ToolCallRequest
from taskpilot_agent.models.tasks import Task, TaskFilter, TimerSession
from taskpilot_agent.models.tools import (
    AlternativeToolCall,
    ParameterSchema,
    ToolActionPlan,
    ToolDefinition,
    ToolExecutionMetadata,
    ToolExecutionResult,
)
from taskpilot_agent.models.turn import ReActStep, TurnResult

__all__ = [
    # Enums
    "ActionChangeType",
    "ActionImpact",
    "Complexity",
    "ConfirmationOutcome",
    "DeadlineRisk",
    "InsightCategory",
    "InsightType",
    "IntentCategory",
    "MessageRole",
    "ParameterType",
    "PatternType",
    "PermissionLevel",
    "Priority",
    "ReActStepType",
    "TaskStatus",
    "TimeOfDay",
    "ToolOutcome",
    "Trend",
    "TurnStatus",
    "Urgency",
    "WorkflowPhase",
    "WorkloadIntensity",
    # Conversation
    "Message",
    "ToolCallRequest",
    # Tools
    "AlternativeToolCall",
    "ParameterSchema",
    "ToolActionPlan",
    "ToolDefinition",
    "ToolExecutionMetadata",
    "ToolExecutionResult",
    # Confirmation
    "ActionChange",
    "AIActionPreview",
    "AlternativeAction",
    "ConfirmationDecision",
    "ConfirmationLevel",
    "ConfirmationOptions",
    "ConfirmationRequest",
    # Tasks
    "Task",
    "TaskFilter",
    "TimerSession",
    # Context
    "AppContext",
    "CacheEntry",
    "ContextAggregationConfig",
    "ContextAggregationResult",
    "ContextCacheStats",
    "ContextualInsight",
    "EnhancedContext",
    "EnvironmentalFactors",
    "Intent",
    "ProductivityMetrics",
    "RelevanceBreakdown",
    "RelevanceScore",
    "TaskDeadline",
    "UserPattern",
    "UserPreferences",
    "WorkflowState",
    "WorkflowStreak",
    "WorkingHours",
    # Turn
    "ReActStep",
    "TurnResult",
]
