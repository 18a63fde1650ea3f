# taskpilot_agent/tools/__init__.py
"""
Tool layer: registry/execution bridge, result formatting, execution log and
the built-in task and timer tools.

Usage:
    from taskpilot_agent.tools import ToolRegistry, register_task_tools

    registry = ToolRegistry(permissions=[PermissionLevel.FULL_ACCESS])
    register_task_tools(registry, store)
    result = await registry.execute("create_task", {"title": "Write report"})
"""

from taskpilot_agent.tools.execution_log import ToolCallStats, ToolExecutionLog, ToolLogEntry
from taskpilot_agent.tools.formatter import ResultFormatter, summarize_results
from taskpilot_agent.tools.registry import ToolRegistry, parameter, permission_satisfied
from taskpilot_agent.tools.task_tools import TaskTools, register_task_tools

__all__ = [
    # Registry
    "ToolRegistry",
    "parameter",
    "permission_satisfied",
    # Formatting
    "ResultFormatter",
    "summarize_results",
    # Execution log
    "ToolExecutionLog",
    "ToolLogEntry",
    "ToolCallStats",
    # Built-in tools
    "TaskTools",
    "register_task_tools",
]
