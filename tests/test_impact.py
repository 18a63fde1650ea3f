# tests/test_impact.py
"""
Tests for impact analysis and confirmation levels.

Covers:
  - confirmation/impact.py (ImpactAnalyzer, TaskChanges)
  - ActionImpact ordering and escalation
"""

from __future__ import annotations

import pytest

from taskpilot_agent.confirmation.impact import ImpactAnalyzer, TaskChanges
from taskpilot_agent.models.actions import ActionChange
from taskpilot_agent.models.enums import ActionChangeType, ActionImpact


def _change(change_type: ActionChangeType, field: str | None = None, target: str = "Task: x") -> ActionChange:
    return ActionChange(type=change_type, target=target, field=field)


@pytest.fixture
def analyzer():
    return ImpactAnalyzer()


# ===========================================================================
# ActionImpact
# ===========================================================================


class TestActionImpact:
    def test_ordering_follows_severity(self):
        assert ActionImpact.LOW < ActionImpact.MEDIUM < ActionImpact.HIGH < ActionImpact.CRITICAL

    def test_max_uses_severity_not_string_order(self):
        # "medium" > "low" alphabetically but "high" < "low"
        assert max([ActionImpact.LOW, ActionImpact.HIGH]) == ActionImpact.HIGH

    def test_escalate(self):
        assert ActionImpact.LOW.escalate() == ActionImpact.MEDIUM
        assert ActionImpact.HIGH.escalate() == ActionImpact.CRITICAL

    def test_escalate_saturates(self):
        assert ActionImpact.CRITICAL.escalate() == ActionImpact.CRITICAL


# ===========================================================================
# analyze_impact
# ===========================================================================


class TestAnalyzeImpact:
    def test_empty_change_set_is_low(self, analyzer):
        assert analyzer.analyze_impact([]) == ActionImpact.LOW

    def test_create_is_low(self, analyzer):
        assert analyzer.analyze_impact([_change(ActionChangeType.CREATE)]) == ActionImpact.LOW

    def test_plain_update_is_low(self, analyzer):
        assert analyzer.analyze_impact([_change(ActionChangeType.UPDATE, field="title")]) == ActionImpact.LOW

    @pytest.mark.parametrize("field", ["status", "priority"])
    def test_sensitive_update_is_medium(self, analyzer, field):
        assert analyzer.analyze_impact([_change(ActionChangeType.UPDATE, field=field)]) == ActionImpact.MEDIUM

    def test_archive_is_medium(self, analyzer):
        assert analyzer.analyze_impact([_change(ActionChangeType.ARCHIVE)]) == ActionImpact.MEDIUM

    def test_delete_is_high(self, analyzer):
        assert analyzer.analyze_impact([_change(ActionChangeType.DELETE)]) == ActionImpact.HIGH

    def test_maximum_wins(self, analyzer):
        changes = [
            _change(ActionChangeType.CREATE),
            _change(ActionChangeType.ARCHIVE),
            _change(ActionChangeType.DELETE),
        ]
        assert analyzer.analyze_impact(changes) == ActionImpact.HIGH

    @pytest.mark.parametrize("extra", [0, 1, 2, 3, 6])
    def test_any_delete_is_at_least_high(self, analyzer, extra):
        changes = [_change(ActionChangeType.DELETE)] + [_change(ActionChangeType.CREATE)] * extra
        assert analyzer.analyze_impact(changes) >= ActionImpact.HIGH

    def test_three_changes_do_not_escalate(self, analyzer):
        changes = [_change(ActionChangeType.CREATE)] * 3
        assert analyzer.analyze_impact(changes) == ActionImpact.LOW

    @pytest.mark.parametrize(
        "change_type,field",
        [
            (ActionChangeType.CREATE, None),
            (ActionChangeType.UPDATE, "status"),
            (ActionChangeType.DELETE, None),
        ],
    )
    def test_more_than_three_escalates_one_level(self, analyzer, change_type, field):
        changes = [_change(change_type, field=field)] * 4
        capped = analyzer.analyze_impact(changes[:3])
        assert analyzer.analyze_impact(changes) == capped.escalate()
        assert analyzer.analyze_impact(changes) > capped

    def test_critical_stays_critical(self, analyzer):
        changes = [_change(ActionChangeType.DELETE)] * 10
        assert analyzer.analyze_impact(changes) == ActionImpact.CRITICAL

    def test_custom_threshold(self):
        analyzer = ImpactAnalyzer(escalation_threshold=1)
        changes = [_change(ActionChangeType.CREATE)] * 2
        assert analyzer.analyze_impact(changes) == ActionImpact.MEDIUM


# ===========================================================================
# Confirmation levels and previews
# ===========================================================================


class TestConfirmationLevel:
    def test_low_is_auto_approved(self, analyzer):
        level = analyzer.get_confirmation_level(ActionImpact.LOW)
        assert level.requires_explicit_confirmation is False
        assert level.show_preview is False
        assert level.allow_alternatives is False

    @pytest.mark.parametrize("impact", [ActionImpact.MEDIUM, ActionImpact.HIGH, ActionImpact.CRITICAL])
    def test_others_require_confirmation(self, analyzer, impact):
        level = analyzer.get_confirmation_level(impact)
        assert level.requires_explicit_confirmation is True
        assert level.show_preview is True
        assert level.allow_alternatives is True
        assert level.impact == impact


class TestActionPreview:
    def test_preview_uses_analyzed_impact(self, analyzer):
        preview = analyzer.create_action_preview(
            "Delete task", "Delete it", [TaskChanges.delete("Onboarding")], reversible=False
        )
        assert preview.impact == ActionImpact.HIGH
        assert preview.reversible is False
        assert preview.changes[0].target == "Task: Onboarding"

    def test_preview_impact_override(self, analyzer):
        preview = analyzer.create_action_preview("Run", "", [], impact=ActionImpact.MEDIUM)
        assert preview.impact == ActionImpact.MEDIUM


# ===========================================================================
# TaskChanges
# ===========================================================================


class TestTaskChanges:
    def test_create(self):
        change = TaskChanges.create("review quarterly report")
        assert change.type == ActionChangeType.CREATE
        assert change.target == "Task: review quarterly report"
        assert change.field is None

    def test_create_with_priority(self):
        change = TaskChanges.create("Report", "high")
        assert change.field == "priority"
        assert change.new_value == "high"
        assert "with high priority" in change.description

    def test_complete_is_status_update(self):
        change = TaskChanges.complete("Report", "in_progress")
        assert change.type == ActionChangeType.UPDATE
        assert change.field == "status"
        assert change.old_value == "in_progress"
        assert change.new_value == "completed"

    def test_update_priority(self):
        change = TaskChanges.update_priority("Report", "low", "urgent")
        assert (change.old_value, change.new_value) == ("low", "urgent")

    def test_rename_targets_old_title(self):
        change = TaskChanges.rename("Old", "New")
        assert change.target == "Task: Old"
        assert change.field == "title"

    def test_archive(self):
        assert TaskChanges.archive("Report").type == ActionChangeType.ARCHIVE
