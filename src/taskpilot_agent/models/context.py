# taskpilot_agent/models/context.py
"""
Context models: the base application context, the five enhanced facets,
intent descriptors and relevance scores.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from taskpilot_agent.config import DEFAULT_CONTEXT_CACHE_SIZE, DEFAULT_CONTEXT_CACHE_TTL
from taskpilot_agent.models.enums import (
    Complexity,
    DeadlineRisk,
    InsightCategory,
    InsightType,
    IntentCategory,
    PatternType,
    Priority,
    TimeOfDay,
    Trend,
    Urgency,
    WorkflowPhase,
    WorkloadIntensity,
)
from taskpilot_agent.models.tasks import Task, TimerSession

# =============================================================================
# Base application context
# =============================================================================


HH_MM_PATTERN = r"^([01]?\d|2[0-3]):[0-5]\d$"


class WorkingHours(BaseModel):
    start: str = Field(default="09:00", pattern=HH_MM_PATTERN, description="HH:MM, 24-hour")
    end: str = Field(default="17:00", pattern=HH_MM_PATTERN, description="HH:MM, 24-hour")

    @property
    def start_hour(self) -> int:
        return int(self.start.split(":")[0])

    @property
    def end_hour(self) -> int:
        return int(self.end.split(":")[0])


class UserPreferences(BaseModel):
    working_hours: WorkingHours = Field(default_factory=WorkingHours)
    language: str = Field(default="en")


class AppContext(BaseModel):
    """The situational state the host application hands to the agent."""

    current_task: Task | None = Field(default=None)
    active_session: TimerSession | None = Field(default=None)
    focus_mode: bool = Field(default=False)
    preferences: UserPreferences = Field(default_factory=UserPreferences)
    time_of_day: str | None = Field(default=None, description="HH:MM at the host")
    day_of_week: int | None = Field(default=None, description="0 = Sunday")


# =============================================================================
# Enhanced facets
# =============================================================================


class TaskDeadline(BaseModel):
    task_id: str
    task_title: str
    due_date: datetime
    priority: Priority
    hours_remaining: int
    estimated_minutes: int = Field(default=0)
    risk_level: DeadlineRisk


class WorkflowStreak(BaseModel):
    type: str = Field(default="focus")
    count: int = Field(default=0)
    best_streak: int = Field(default=0)


class WorkflowState(BaseModel):
    current_phase: WorkflowPhase = Field(default=WorkflowPhase.PLANNING)
    focus_level: int = Field(default=5, ge=1, le=10)
    workload_intensity: WorkloadIntensity = Field(default=WorkloadIntensity.MODERATE)
    minutes_in_phase: int = Field(default=0)
    upcoming_deadlines: list[TaskDeadline] = Field(default_factory=list)
    current_streak: WorkflowStreak = Field(default_factory=WorkflowStreak)

    @classmethod
    def default(cls) -> WorkflowState:
        return cls()


class ProductivityMetrics(BaseModel):
    today_completion_rate: float = Field(default=0.0, ge=0.0, le=1.0)
    average_task_duration: float = Field(default=45.0, description="Minutes")
    focus_efficiency: float = Field(default=0.7, ge=0.0, le=1.0)
    energy_level: int = Field(default=5, ge=1, le=10)
    tasks_completed_today: int = Field(default=0)
    minutes_tracked_today: float = Field(default=0.0)
    productivity_trend: Trend = Field(default=Trend.STABLE)

    @classmethod
    def default(cls) -> ProductivityMetrics:
        return cls()


class UserPattern(BaseModel):
    type: PatternType
    description: str
    confidence: float = Field(ge=0.0, le=1.0)
    frequency: int = Field(default=0)


class ContextualInsight(BaseModel):
    type: InsightType
    message: str
    category: InsightCategory
    priority: Priority = Field(default=Priority.MEDIUM)
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    actionable: bool = Field(default=True)
    related_data: dict[str, Any] = Field(default_factory=dict)


class EnvironmentalFactors(BaseModel):
    time_of_day: TimeOfDay
    day_of_week: int = Field(ge=0, le=6, description="0 = Sunday")
    is_working_hours: bool


class EnhancedContext(AppContext):
    """Base context plus the five derived facets. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    workflow_state: WorkflowState = Field(default_factory=WorkflowState)
    productivity_metrics: ProductivityMetrics = Field(default_factory=ProductivityMetrics)
    recent_patterns: list[UserPattern] = Field(default_factory=list)
    contextual_insights: list[ContextualInsight] = Field(default_factory=list)
    environmental_factors: EnvironmentalFactors


# =============================================================================
# Intent and relevance
# =============================================================================


class Intent(BaseModel):
    """Lightweight descriptor of what the user is asking for."""

    model_config = ConfigDict(frozen=True)

    category: IntentCategory = Field(default=IntentCategory.GENERAL)
    urgency: Urgency = Field(default=Urgency.MEDIUM)
    complexity: Complexity = Field(default=Complexity.SIMPLE)
    requires_context: bool = Field(default=False)
    confidence: float = Field(default=0.7)


class RelevanceBreakdown(BaseModel):
    workflow_state: float = Field(ge=0.0, le=1.0)
    productivity_metrics: float = Field(ge=0.0, le=1.0)
    recent_patterns: float = Field(ge=0.0, le=1.0)
    environmental_factors: float = Field(ge=0.0, le=1.0)
    contextual_insights: float = Field(ge=0.0, le=1.0)


class RelevanceScore(BaseModel):
    overall: float = Field(ge=0.0, le=1.0)
    breakdown: RelevanceBreakdown
    reasoning: list[str] = Field(default_factory=list)
    critical_factors: list[str] = Field(default_factory=list)


# =============================================================================
# Aggregation
# =============================================================================


class ContextAggregationConfig(BaseModel):
    cache_enabled: bool = Field(default=True)
    cache_ttl_seconds: float = Field(default=DEFAULT_CONTEXT_CACHE_TTL)
    cache_max_entries: int = Field(default=DEFAULT_CONTEXT_CACHE_SIZE)
    historical_data_days: int = Field(default=7)
    deadline_horizon_days: int = Field(default=7)
    max_deadlines: int = Field(default=5)
    max_patterns: int = Field(default=10)
    max_insights: int = Field(default=5)
    long_session_minutes: int = Field(default=90)


class ContextAggregationResult(BaseModel):
    enhanced_context: EnhancedContext
    relevance_score: RelevanceScore
    processing_time_ms: float
    data_sources_used: list[str] = Field(default_factory=list)
    cache_hit: bool = Field(default=False)
    warnings: list[str] = Field(default_factory=list)


class CacheEntry(BaseModel):
    """Cached context; entries are replaced, never edited."""

    model_config = ConfigDict(frozen=True)

    context: EnhancedContext
    stored_at: float
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class ContextCacheStats(BaseModel):
    hits: int = Field(default=0)
    misses: int = Field(default=0)
    evictions: int = Field(default=0)
    expirations: int = Field(default=0)
    size: int = Field(default=0)
    max_size: int = Field(default=DEFAULT_CONTEXT_CACHE_SIZE)
