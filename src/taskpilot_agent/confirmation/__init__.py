# taskpilot_agent/confirmation/__init__.py
"""
Impact analysis and human confirmation of mutating actions.

Only low-impact change-sets are auto-approved; everything else blocks on the
host UI handler registered with the ConfirmationGate.
"""

from taskpilot_agent.confirmation.gate import ConfirmationGate, ConfirmationHandler
from taskpilot_agent.confirmation.impact import ImpactAnalyzer, TaskChanges

__all__ = [
    "ConfirmationGate",
    "ConfirmationHandler",
    "ImpactAnalyzer",
    "TaskChanges",
]
