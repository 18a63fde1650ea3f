# taskpilot_agent/__init__.py
"""
Agent orchestration core for a task and time-tracking assistant.

Turns a free-text request into safe, auditable changes to the user's tasks:

    store = InMemoryTaskStore()
    registry = ToolRegistry(permissions=[PermissionLevel.FULL_ACCESS])
    register_task_tools(registry, store)

    loop = ReActLoop(
        model=OpenAIChatModel(),
        registry=registry,
        gate=ConfirmationGate(handler=ask_user),
        aggregator=ContextAggregator(store),
    )
    result = await loop.run("delete my onboarding task", AppContext())
"""

from taskpilot_agent.agent import ModelClient, OpenAIChatModel, ReActLoop
from taskpilot_agent.confirmation import ConfirmationGate, ImpactAnalyzer, TaskChanges
from taskpilot_agent.context import ContextAggregator, ContextCache, IntentClassifier, RelevanceScorer
from taskpilot_agent.exceptions import (
    ConfirmationCancelled,
    ContextAggregationError,
    ModelInvocationError,
    PermissionDeniedError,
    StoreError,
    TaskNotFoundError,
    TaskPilotError,
    ToolError,
    ToolExecutionError,
    ToolNotFoundError,
    ToolRegistrationError,
    ToolValidationError,
)
from taskpilot_agent.models import (
    ActionChange,
    ActionImpact,
    AppContext,
    ConfirmationDecision,
    ConfirmationOptions,
    EnhancedContext,
    Message,
    PermissionLevel,
    ToolCallRequest,
    ToolDefinition,
    ToolExecutionResult,
    TurnResult,
    TurnStatus,
)
from taskpilot_agent.store import InMemoryTaskStore, TaskStore
from taskpilot_agent.tools import ToolExecutionLog, ToolRegistry, register_task_tools

__version__ = "0.1.0"

__all__ = [
    # Loop
    "ReActLoop",
    "ModelClient",
    "OpenAIChatModel",
    # Tools
    "ToolRegistry",
    "ToolExecutionLog",
    "register_task_tools",
    # Confirmation
    "ConfirmationGate",
    "ImpactAnalyzer",
    "TaskChanges",
    # Context
    "ContextAggregator",
    "ContextCache",
    "IntentClassifier",
    "RelevanceScorer",
    # Store
    "TaskStore",
    "InMemoryTaskStore",
    # Models
    "ActionChange",
    "ActionImpact",
    "AppContext",
    "ConfirmationDecision",
    "ConfirmationOptions",
    "EnhancedContext",
    "Message",
    "PermissionLevel",
    "ToolCallRequest",
    "ToolDefinition",
    "ToolExecutionResult",
    "TurnResult",
    "TurnStatus",
    # Errors
    "TaskPilotError",
    "ToolError",
    "ToolNotFoundError",
    "ToolValidationError",
    "PermissionDeniedError",
    "ToolExecutionError",
    "ToolRegistrationError",
    "ModelInvocationError",
    "ContextAggregationError",
    "ConfirmationCancelled",
    "StoreError",
    "TaskNotFoundError",
]
