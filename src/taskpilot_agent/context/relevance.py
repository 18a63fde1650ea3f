# taskpilot_agent/context/relevance.py
"""
Relevance Scorer - explains which context facets matter for the current intent.

Each facet starts from a base score and gains fixed deltas when the intent
matches the facet's state. Facet scores are clamped to [0, 1]; the overall
score is the weighted sum using RELEVANCE_WEIGHTS. Relevance is always
computed fresh, never cached, because intent changes with every message.
"""

from __future__ import annotations

import math

from taskpilot_agent.models.context import (
    ContextualInsight,
    EnhancedContext,
    EnvironmentalFactors,
    Intent,
    ProductivityMetrics,
    RelevanceBreakdown,
    RelevanceScore,
    UserPattern,
    WorkflowState,
)
from taskpilot_agent.models.enums import (
    InsightCategory,
    IntentCategory,
    PatternType,
    Priority,
    TimeOfDay,
    Urgency,
    WorkflowPhase,
)

# Weights must sum to 1.0
RELEVANCE_WEIGHTS: dict[str, float] = {
    "workflow_state": 0.25,
    "productivity_metrics": 0.20,
    "recent_patterns": 0.20,
    "environmental_factors": 0.15,
    "contextual_insights": 0.20,
}

CRITICAL_THRESHOLD = 0.7
WEIGHT_SUM_TOLERANCE = 1e-6

# Reasoning line per facet, in the order facets are checked
_REASONING = {
    "workflow_state": "Current workflow state is highly relevant to user intent",
    "productivity_metrics": "Productivity metrics provide important context",
    "recent_patterns": "Recent patterns strongly inform the response",
    "environmental_factors": "Time and working-hours context affects the response",
    "contextual_insights": "Contextual insights apply directly to this request",
}

# Intent category -> pattern type that informs it
_PATTERN_MATCHES = {
    IntentCategory.ANALYSIS: PatternType.PRODUCTIVITY,
    IntentCategory.TIME_TRACKING: PatternType.FOCUS,
    IntentCategory.PLANNING: PatternType.SCHEDULING,
}

# Intent category -> insight category that informs it
_INSIGHT_MATCHES = {
    IntentCategory.ANALYSIS: InsightCategory.PRODUCTIVITY,
    IntentCategory.PLANNING: InsightCategory.PLANNING,
}


def _clamp(score: float) -> float:
    return max(0.0, min(score, 1.0))


class RelevanceScorer:
    """Scores the five enhanced-context facets against an Intent."""

    def __init__(self, weights: dict[str, float] | None = None):
        weights = dict(weights or RELEVANCE_WEIGHTS)
        if set(weights) != set(RELEVANCE_WEIGHTS):
            raise ValueError(f"weights must cover exactly {sorted(RELEVANCE_WEIGHTS)}, got {sorted(weights)}")
        if any(w < 0 for w in weights.values()):
            raise ValueError("weights must not be negative")
        if not math.isclose(sum(weights.values()), 1.0, abs_tol=WEIGHT_SUM_TOLERANCE):
            raise ValueError(f"weights must sum to 1.0, got {sum(weights.values()):.4f}")
        self.weights = weights

    def score(self, context: EnhancedContext, intent: Intent) -> RelevanceScore:
        breakdown = RelevanceBreakdown(
            workflow_state=self.score_workflow(context.workflow_state, intent),
            productivity_metrics=self.score_productivity(context.productivity_metrics, intent),
            recent_patterns=self.score_patterns(context.recent_patterns, intent),
            environmental_factors=self.score_environment(context.environmental_factors, intent),
            contextual_insights=self.score_insights(context.contextual_insights, intent),
        )

        scores = breakdown.model_dump()
        overall = sum(scores[facet] * weight for facet, weight in self.weights.items())

        reasoning: list[str] = []
        critical_factors: list[str] = []
        for facet in RELEVANCE_WEIGHTS:
            if scores[facet] > CRITICAL_THRESHOLD:
                reasoning.append(_REASONING[facet])
                critical_factors.append(facet)

        return RelevanceScore(
            overall=_clamp(overall),
            breakdown=breakdown,
            reasoning=reasoning,
            critical_factors=critical_factors,
        )

    # --- Facets ---

    @staticmethod
    def score_workflow(state: WorkflowState, intent: Intent) -> float:
        score = 0.5

        if intent.category == IntentCategory.TASK_MANAGEMENT and state.current_phase == WorkflowPhase.EXECUTING:
            score += 0.3
        if intent.category == IntentCategory.PLANNING and state.current_phase == WorkflowPhase.PLANNING:
            score += 0.3
        # High focus, low urgency
        if state.focus_level > 7 and intent.urgency == Urgency.LOW:
            score += 0.2

        return _clamp(score)

    @staticmethod
    def score_productivity(metrics: ProductivityMetrics, intent: Intent) -> float:
        score = 0.3

        if intent.category == IntentCategory.ANALYSIS:
            score += 0.4
        if metrics.today_completion_rate < 0.3 and intent.category == IntentCategory.TASK_MANAGEMENT:
            score += 0.3

        return _clamp(score)

    @staticmethod
    def score_patterns(patterns: list[UserPattern], intent: Intent) -> float:
        if not patterns:
            return 0.1

        wanted = _PATTERN_MATCHES.get(intent.category)
        relevant = sum(1 for p in patterns if p.type == wanted)
        confident = sum(1 for p in patterns if p.confidence > 0.8)

        return _clamp(0.2 + relevant * 0.2 + confident * 0.1)

    @staticmethod
    def score_environment(factors: EnvironmentalFactors, intent: Intent) -> float:
        score = 0.2

        # Urgent request outside working hours
        if intent.urgency == Urgency.HIGH and not factors.is_working_hours:
            score += 0.3
        if intent.category == IntentCategory.PLANNING and factors.time_of_day == TimeOfDay.MORNING:
            score += 0.2

        return _clamp(score)

    @staticmethod
    def score_insights(insights: list[ContextualInsight], intent: Intent) -> float:
        if not insights:
            return 0.1

        wanted = _INSIGHT_MATCHES.get(intent.category)
        relevant = sum(
            1
            for i in insights
            if i.category == wanted or (i.actionable and intent.urgency == Urgency.HIGH)
        )
        high_priority = sum(1 for i in insights if i.priority == Priority.HIGH)

        return _clamp(0.2 + relevant * 0.2 + high_priority * 0.15)
