# taskpilot_agent/context/__init__.py
"""
Context layer: enhanced context aggregation, caching, intent and relevance.

Usage:
    from taskpilot_agent.context import ContextAggregator

    aggregator = ContextAggregator(store)
    result = await aggregator.build_enhanced_context(base_context, "plan my day")
    result.enhanced_context.workflow_state.current_phase
    result.relevance_score.critical_factors
"""

from taskpilot_agent.context.aggregator import ContextAggregator
from taskpilot_agent.context.cache import ContextCache
from taskpilot_agent.context.intent import IntentClassifier, extract_intent
from taskpilot_agent.context.relevance import RELEVANCE_WEIGHTS, RelevanceScorer

__all__ = [
    "ContextAggregator",
    "ContextCache",
    "IntentClassifier",
    "extract_intent",
    "RelevanceScorer",
    "RELEVANCE_WEIGHTS",
]
