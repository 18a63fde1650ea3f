# taskpilot_agent/confirmation/impact.py
"""
Impact analysis for proposed data changes.

Every change gets a base impact (create: low, archive: medium, update: medium
for status/priority fields and low otherwise, delete: high). The change-set's
impact is the maximum, escalated by one level when the set is larger than the
escalation threshold. Only ``low`` is auto-approved.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from taskpilot_agent.config import IMPACT_ESCALATION_THRESHOLD
from taskpilot_agent.models.actions import ActionChange, AIActionPreview, ConfirmationLevel
from taskpilot_agent.models.enums import ActionChangeType, ActionImpact

# Update fields whose change is visible enough to need confirmation
SENSITIVE_UPDATE_FIELDS = frozenset({"status", "priority"})

_AUTO_APPROVE = ConfirmationLevel(
    impact=ActionImpact.LOW,
    requires_explicit_confirmation=False,
    show_preview=False,
    allow_alternatives=False,
)


class ImpactAnalyzer:
    """Classifies change-sets and maps impact to a confirmation level."""

    def __init__(self, escalation_threshold: int = IMPACT_ESCALATION_THRESHOLD):
        self.escalation_threshold = escalation_threshold

    @staticmethod
    def change_impact(change: ActionChange) -> ActionImpact:
        """Base impact of a single change."""
        if change.type == ActionChangeType.DELETE:
            return ActionImpact.HIGH
        if change.type == ActionChangeType.ARCHIVE:
            return ActionImpact.MEDIUM
        if change.type == ActionChangeType.UPDATE and change.field in SENSITIVE_UPDATE_FIELDS:
            return ActionImpact.MEDIUM
        return ActionImpact.LOW

    def analyze_impact(self, changes: Iterable[ActionChange]) -> ActionImpact:
        changes = list(changes)
        impact = max((self.change_impact(c) for c in changes), default=ActionImpact.LOW)

        if len(changes) > self.escalation_threshold:
            impact = impact.escalate()

        return impact

    @staticmethod
    def get_confirmation_level(impact: ActionImpact) -> ConfirmationLevel:
        if impact == ActionImpact.LOW:
            return _AUTO_APPROVE
        return ConfirmationLevel(
            impact=impact,
            requires_explicit_confirmation=True,
            show_preview=True,
            allow_alternatives=True,
        )

    def create_action_preview(
        self,
        title: str,
        description: str,
        changes: list[ActionChange],
        reversible: bool = True,
        impact: ActionImpact | None = None,
    ) -> AIActionPreview:
        return AIActionPreview(
            title=title,
            description=description,
            changes=list(changes),
            impact=impact or self.analyze_impact(changes),
            reversible=reversible,
        )


class TaskChanges:
    """Builders for the change records task tools describe themselves with."""

    @staticmethod
    def target(title: str) -> str:
        return f"Task: {title}"

    @classmethod
    def create(cls, title: str, priority: str | None = None) -> ActionChange:
        suffix = f" with {priority} priority" if priority else ""
        return ActionChange(
            type=ActionChangeType.CREATE,
            target=cls.target(title),
            field="priority" if priority else None,
            new_value=priority,
            description=f'Create new task "{title}"{suffix}',
        )

    @classmethod
    def complete(cls, title: str, old_status: str = "pending") -> ActionChange:
        return ActionChange(
            type=ActionChangeType.UPDATE,
            target=cls.target(title),
            field="status",
            old_value=old_status,
            new_value="completed",
            description=f'Mark task "{title}" as completed',
        )

    @classmethod
    def delete(cls, title: str) -> ActionChange:
        return ActionChange(
            type=ActionChangeType.DELETE,
            target=cls.target(title),
            description=f'Permanently delete task "{title}"',
        )

    @classmethod
    def archive(cls, title: str) -> ActionChange:
        return ActionChange(
            type=ActionChangeType.ARCHIVE,
            target=cls.target(title),
            description=f'Archive task "{title}" (can be restored later)',
        )

    @classmethod
    def update_priority(cls, title: str, old_priority: str, new_priority: str) -> ActionChange:
        return ActionChange(
            type=ActionChangeType.UPDATE,
            target=cls.target(title),
            field="priority",
            old_value=old_priority,
            new_value=new_priority,
            description=f'Change priority of "{title}" from {old_priority} to {new_priority}',
        )

    @classmethod
    def rename(cls, old_title: str, new_title: str) -> ActionChange:
        return ActionChange(
            type=ActionChangeType.UPDATE,
            target=cls.target(old_title),
            field="title",
            old_value=old_title,
            new_value=new_title,
            description=f'Rename task from "{old_title}" to "{new_title}"',
        )

    @classmethod
    def update_field(cls, title: str, field: str, old_value: Any, new_value: Any) -> ActionChange:
        return ActionChange(
            type=ActionChangeType.UPDATE,
            target=cls.target(title),
            field=field,
            old_value=old_value,
            new_value=new_value,
            description=f'Change {field} of "{title}"',
        )
