# taskpilot_agent/context/intent.py
"""
Keyword heuristics that turn a raw user message into an Intent.

The classifier is deterministic: the same message always yields the same
Intent. It only informs relevance scoring; tool selection is the model's job.
"""

from __future__ import annotations

from taskpilot_agent.models.context import Intent
from taskpilot_agent.models.enums import Complexity, IntentCategory, Urgency

# Checked in order; the first match wins
CATEGORY_KEYWORDS: tuple[tuple[IntentCategory, tuple[str, ...]], ...] = (
    (IntentCategory.TASK_MANAGEMENT, ("task", "todo")),
    (IntentCategory.TIME_TRACKING, ("timer", "time")),
    (IntentCategory.PLANNING, ("plan", "schedule")),
    (IntentCategory.ANALYSIS, ("productivity", "analyze")),
)

HIGH_URGENCY_KEYWORDS = ("urgent", "asap", "immediately")
LOW_URGENCY_KEYWORDS = ("later", "eventually")
COMPLEX_KEYWORDS = ("complex", "detailed")

COMPLEX_WORD_COUNT = 20
MODERATE_WORD_COUNT = 10

DEFAULT_CONFIDENCE = 0.7


class IntentClassifier:
    """Substring/length based intent extraction."""

    def __init__(self, confidence: float = DEFAULT_CONFIDENCE):
        self.confidence = confidence

    def extract_intent(self, message: str) -> Intent:
        text = message.lower()
        category = self._category(text)

        return Intent(
            category=category,
            urgency=self._urgency(text),
            complexity=self._complexity(text),
            requires_context=category != IntentCategory.GENERAL,
            confidence=self.confidence,
        )

    @staticmethod
    def _category(text: str) -> IntentCategory:
        for category, keywords in CATEGORY_KEYWORDS:
            if any(k in text for k in keywords):
                return category
        return IntentCategory.GENERAL

    @staticmethod
    def _urgency(text: str) -> Urgency:
        if any(k in text for k in HIGH_URGENCY_KEYWORDS):
            return Urgency.HIGH
        if any(k in text for k in LOW_URGENCY_KEYWORDS):
            return Urgency.LOW
        return Urgency.MEDIUM

    @staticmethod
    def _complexity(text: str) -> Complexity:
        words = len(text.split())
        if any(k in text for k in COMPLEX_KEYWORDS) or words > COMPLEX_WORD_COUNT:
            return Complexity.COMPLEX
        if words > MODERATE_WORD_COUNT:
            return Complexity.MODERATE
        return Complexity.SIMPLE


_default_classifier = IntentClassifier()


def extract_intent(message: str) -> Intent:
    """Classify a message with the default classifier."""
    return _default_classifier.extract_intent(message)
