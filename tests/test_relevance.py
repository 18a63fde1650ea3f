# tests/test_relevance.py
"""
Tests for context/relevance.py (RelevanceScorer).
"""

from __future__ import annotations

import itertools
import math

import pytest

from taskpilot_agent.context.relevance import RELEVANCE_WEIGHTS, RelevanceScorer
from taskpilot_agent.models.context import (
    ContextualInsight,
    EnhancedContext,
    EnvironmentalFactors,
    Intent,
    ProductivityMetrics,
    UserPattern,
    WorkflowState,
)
from taskpilot_agent.models.enums import (
    Complexity,
    InsightCategory,
    InsightType,
    IntentCategory,
    PatternType,
    Priority,
    TimeOfDay,
    Urgency,
    WorkflowPhase,
)


def _context(**overrides) -> EnhancedContext:
    fields = {
        "environmental_factors": EnvironmentalFactors(
            time_of_day=TimeOfDay.AFTERNOON,
            day_of_week=2,
            is_working_hours=True,
        ),
    }
    fields.update(overrides)
    return EnhancedContext(**fields)


def _insight(category=InsightCategory.PLANNING, priority=Priority.MEDIUM, actionable=True) -> ContextualInsight:
    return ContextualInsight(
        type=InsightType.WARNING,
        message="m",
        category=category,
        priority=priority,
        actionable=actionable,
    )


@pytest.fixture
def scorer():
    return RelevanceScorer()


class TestWeights:
    def test_weights_sum_to_one(self):
        assert math.isclose(sum(RELEVANCE_WEIGHTS.values()), 1.0)

    def test_default_context_scores(self, scorer):
        score = scorer.score(_context(), Intent())
        # 0.5*0.25 + 0.3*0.20 + 0.1*0.20 + 0.2*0.15 + 0.1*0.20
        assert math.isclose(score.overall, 0.255)
        assert score.critical_factors == []
        assert score.reasoning == []

    def test_custom_weights(self):
        weights = dict.fromkeys(RELEVANCE_WEIGHTS, 0.2)
        score = RelevanceScorer(weights=weights).score(_context(), Intent())
        assert math.isclose(score.overall, (0.5 + 0.3 + 0.1 + 0.2 + 0.1) * 0.2)

    @pytest.mark.parametrize(
        "weights",
        [
            {**RELEVANCE_WEIGHTS, "mood": 0.0},
            {k: v for k, v in RELEVANCE_WEIGHTS.items() if k != "recent_patterns"},
            {**RELEVANCE_WEIGHTS, "workflow_state": 0.5},
            {**RELEVANCE_WEIGHTS, "workflow_state": -0.05, "recent_patterns": 0.5},
        ],
        ids=["unknown_key", "missing_key", "sum_above_one", "negative"],
    )
    def test_invalid_weights_rejected(self, weights):
        with pytest.raises(ValueError):
            RelevanceScorer(weights=weights)


class TestFacets:
    def test_workflow_executing_task_management(self):
        state = WorkflowState(current_phase=WorkflowPhase.EXECUTING, focus_level=9)
        intent = Intent(category=IntentCategory.TASK_MANAGEMENT, urgency=Urgency.LOW)
        # 0.5 + 0.3 + 0.2
        assert math.isclose(RelevanceScorer.score_workflow(state, intent), 1.0)

    def test_workflow_planning_in_planning_phase(self):
        state = WorkflowState(current_phase=WorkflowPhase.PLANNING)
        assert math.isclose(RelevanceScorer.score_workflow(state, Intent(category=IntentCategory.PLANNING)), 0.8)

    def test_productivity_analysis(self):
        assert math.isclose(
            RelevanceScorer.score_productivity(ProductivityMetrics(), Intent(category=IntentCategory.ANALYSIS)), 0.7
        )

    def test_productivity_low_completion_task_management(self):
        metrics = ProductivityMetrics(today_completion_rate=0.1)
        intent = Intent(category=IntentCategory.TASK_MANAGEMENT)
        assert math.isclose(RelevanceScorer.score_productivity(metrics, intent), 0.6)

    def test_patterns_empty(self):
        assert RelevanceScorer.score_patterns([], Intent()) == 0.1

    def test_patterns_relevant_and_confident(self):
        patterns = [
            UserPattern(type=PatternType.FOCUS, description="d", confidence=0.9),
            UserPattern(type=PatternType.PRODUCTIVITY, description="d", confidence=0.5),
        ]
        intent = Intent(category=IntentCategory.TIME_TRACKING)
        # 0.2 + one relevant (0.2) + one confident (0.1)
        assert math.isclose(RelevanceScorer.score_patterns(patterns, intent), 0.5)

    def test_environment_urgent_outside_hours(self):
        factors = EnvironmentalFactors(time_of_day=TimeOfDay.NIGHT, day_of_week=0, is_working_hours=False)
        assert math.isclose(RelevanceScorer.score_environment(factors, Intent(urgency=Urgency.HIGH)), 0.5)

    def test_environment_morning_planning(self):
        factors = EnvironmentalFactors(time_of_day=TimeOfDay.MORNING, day_of_week=1, is_working_hours=True)
        intent = Intent(category=IntentCategory.PLANNING)
        assert math.isclose(RelevanceScorer.score_environment(factors, intent), 0.4)

    def test_insights_empty(self):
        assert RelevanceScorer.score_insights([], Intent()) == 0.1

    def test_insights_high_priority_planning(self):
        insights = [_insight(InsightCategory.PLANNING, Priority.HIGH)]
        intent = Intent(category=IntentCategory.PLANNING)
        # 0.2 + 0.2 + 0.15
        assert math.isclose(RelevanceScorer.score_insights(insights, intent), 0.55)

    def test_facet_scores_are_clamped(self):
        insights = [_insight(InsightCategory.PLANNING, Priority.HIGH)] * 10
        intent = Intent(category=IntentCategory.PLANNING, urgency=Urgency.HIGH)
        assert RelevanceScorer.score_insights(insights, intent) == 1.0


class TestCriticalFactors:
    def test_critical_factors_in_facet_order(self, scorer):
        context = _context(
            workflow_state=WorkflowState(current_phase=WorkflowPhase.PLANNING, focus_level=9),
            contextual_insights=[_insight(InsightCategory.PLANNING, Priority.HIGH)] * 3,
        )
        intent = Intent(category=IntentCategory.PLANNING, urgency=Urgency.LOW)
        score = scorer.score(context, intent)

        assert score.critical_factors == ["workflow_state", "contextual_insights"]
        assert len(score.reasoning) == 2
        assert score.reasoning[0] == "Current workflow state is highly relevant to user intent"


class TestBounds:
    @pytest.mark.parametrize(
        "category,urgency",
        list(itertools.product(list(IntentCategory), list(Urgency))),
    )
    def test_overall_within_unit_interval(self, scorer, category, urgency):
        contexts = [
            _context(),
            _context(
                workflow_state=WorkflowState(current_phase=WorkflowPhase.EXECUTING, focus_level=10),
                productivity_metrics=ProductivityMetrics(today_completion_rate=0.0),
                recent_patterns=[
                    UserPattern(type=t, description="d", confidence=1.0) for t in PatternType
                ]
                * 3,
                contextual_insights=[_insight(c, Priority.HIGH) for c in InsightCategory] * 3,
                environmental_factors=EnvironmentalFactors(
                    time_of_day=TimeOfDay.MORNING, day_of_week=0, is_working_hours=False
                ),
            ),
        ]
        intent = Intent(category=category, urgency=urgency, complexity=Complexity.COMPLEX)
        for context in contexts:
            score = scorer.score(context, intent)
            assert 0.0 <= score.overall <= 1.0
            for value in score.breakdown.model_dump().values():
                assert 0.0 <= value <= 1.0
