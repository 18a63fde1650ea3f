# taskpilot_agent/context/aggregator.py
"""
Context Aggregator - builds the enhanced situational snapshot fed to the model.

Flow for build_enhanced_context(base_context, user_message, history):
1. Cache lookup keyed on (task, session, 15-minute bucket, message prefix).
   A hit skips every builder; relevance is still scored fresh.
2. On a miss, load one task snapshot from the store. If that fails the whole
   result is built from defaults (data_sources_used == ["fallback"]).
3. Build the five facets concurrently. Each facet is isolated: a failure is
   logged, recorded as a warning and replaced by the facet's default.
4. Cache the new context only if every facet was built, then score its
   relevance. Contexts holding defaulted facets are never cached.

The method never raises; the reasoning loop always receives some context.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import Counter
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta
from typing import Any, TypeVar

from taskpilot_agent.context.cache import ContextCache
from taskpilot_agent.context.intent import IntentClassifier
from taskpilot_agent.context.relevance import RelevanceScorer
from taskpilot_agent.exceptions import ContextAggregationError
from taskpilot_agent.models.context import (
    AppContext,
    ContextAggregationConfig,
    ContextAggregationResult,
    ContextualInsight,
    EnhancedContext,
    EnvironmentalFactors,
    Intent,
    ProductivityMetrics,
    TaskDeadline,
    UserPattern,
    WorkflowState,
    WorkflowStreak,
)
from taskpilot_agent.models.enums import (
    DeadlineRisk,
    InsightCategory,
    InsightType,
    PatternType,
    Priority,
    TaskStatus,
    TimeOfDay,
    Trend,
    WorkflowPhase,
    WorkloadIntensity,
)
from taskpilot_agent.models.messages import Message
from taskpilot_agent.models.tasks import Task, TimerSession
from taskpilot_agent.store import TaskStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

FACET_SOURCES = ("workflow", "productivity", "patterns", "insights", "environment")

# Minimum samples before a pattern is reported
MIN_PATTERN_SAMPLES = 3
FOCUS_SESSION_MINUTES = 25

# Used when the working-hours preference cannot be parsed
FALLBACK_WORKING_HOURS = (9, 17)


def _local_now() -> datetime:
    return datetime.now().astimezone()


def time_of_day_bucket(hour: int) -> TimeOfDay:
    if 6 <= hour < 12:
        return TimeOfDay.MORNING
    if 12 <= hour < 17:
        return TimeOfDay.AFTERNOON
    if 17 <= hour < 22:
        return TimeOfDay.EVENING
    return TimeOfDay.NIGHT


def assess_deadline_risk(hours_remaining: float, estimated_minutes: int) -> DeadlineRisk:
    estimated_hours = estimated_minutes / 60
    if hours_remaining < estimated_hours:
        return DeadlineRisk.CRITICAL
    if hours_remaining < estimated_hours * 1.5:
        return DeadlineRisk.HIGH
    if hours_remaining < estimated_hours * 3:
        return DeadlineRisk.MEDIUM
    return DeadlineRisk.LOW


def working_hours_range(base_context: AppContext) -> tuple[int, int]:
    """(start_hour, end_hour) from preferences; 9-17 if they cannot be read."""
    hours = base_context.preferences.working_hours
    try:
        return hours.start_hour, hours.end_hour
    except (AttributeError, IndexError, ValueError) as e:
        logger.warning(f"Unreadable working hours {hours!r}, using {FALLBACK_WORKING_HOURS}: {e}")
        return FALLBACK_WORKING_HOURS


def _base_fields(base_context: AppContext) -> dict[str, Any]:
    # Instances pass through without re-validation
    copied = base_context.model_copy(deep=True)
    return {name: getattr(copied, name) for name in AppContext.model_fields}


def default_environment(now: datetime, base_context: AppContext) -> EnvironmentalFactors:
    start_hour, end_hour = working_hours_range(base_context)
    return EnvironmentalFactors(
        time_of_day=time_of_day_bucket(now.hour),
        day_of_week=(now.weekday() + 1) % 7,
        is_working_hours=start_hour <= now.hour < end_hour,
    )


class ContextAggregator:
    """
    Assembles, scores and caches EnhancedContext snapshots.

    Constructed once per application and shared by every conversation; the
    store, cache, classifier, scorer and clock are all injected.
    """

    def __init__(
        self,
        store: TaskStore,
        config: ContextAggregationConfig | None = None,
        cache: ContextCache | None = None,
        classifier: IntentClassifier | None = None,
        scorer: RelevanceScorer | None = None,
        now: Callable[[], datetime] | None = None,
    ):
        self.store = store
        self.config = config or ContextAggregationConfig()
        self.cache = cache or ContextCache(
            ttl_seconds=self.config.cache_ttl_seconds,
            max_entries=self.config.cache_max_entries,
        )
        self.classifier = classifier or IntentClassifier()
        self.scorer = scorer or RelevanceScorer()
        self._now = now or _local_now

    async def build_enhanced_context(
        self,
        base_context: AppContext,
        user_message: str,
        history: list[Message] | None = None,
        intent: Intent | None = None,
    ) -> ContextAggregationResult:
        started = time.perf_counter()
        intent = intent or self.classifier.extract_intent(user_message)

        cache_key: str | None = None
        if self.config.cache_enabled:
            cache_key = self.cache.make_key(base_context, user_message)
            cached = self.cache.get(cache_key)
            if cached is not None:
                logger.debug(f"Context cache hit for {cache_key}")
                return ContextAggregationResult(
                    enhanced_context=cached,
                    relevance_score=self.scorer.score(cached, intent),
                    processing_time_ms=self._elapsed_ms(started),
                    data_sources_used=["cache"],
                    cache_hit=True,
                )

        warnings: list[str] = []
        now = self._now()
        try:
            context, sources, complete = await self._build(base_context, now, warnings)
        except Exception as e:
            logger.warning(f"Context aggregation failed, using defaults: {e}")
            warnings.append(f"Context aggregation error: {e}")
            context = self._fallback_context(base_context, now)
            return ContextAggregationResult(
                enhanced_context=context,
                relevance_score=self.scorer.score(context, intent),
                processing_time_ms=self._elapsed_ms(started),
                data_sources_used=["fallback"],
                warnings=warnings,
            )

        if cache_key is not None and complete:
            self.cache.put(cache_key, context)

        return ContextAggregationResult(
            enhanced_context=context,
            relevance_score=self.scorer.score(context, intent),
            processing_time_ms=self._elapsed_ms(started),
            data_sources_used=sources,
            warnings=warnings,
        )

    # =========================================================================
    # Build
    # =========================================================================

    async def _build(
        self,
        base_context: AppContext,
        now: datetime,
        warnings: list[str],
    ) -> tuple[EnhancedContext, list[str], bool]:
        """Returns the context, the sources used, and whether every facet succeeded."""
        try:
            tasks = await self.store.find_tasks()
        except Exception as e:
            raise ContextAggregationError(f"task store unavailable: {e}") from e

        facets = await asyncio.gather(
            self._facet("workflow", self.build_workflow_state(base_context, tasks, now), WorkflowState.default, warnings),
            self._facet(
                "productivity",
                self.build_productivity_metrics(base_context, tasks, now),
                ProductivityMetrics.default,
                warnings,
            ),
            self._facet("patterns", self.analyze_patterns(tasks, now), list, warnings),
            self._facet("insights", self.generate_insights(base_context, tasks, now), list, warnings),
            self._facet(
                "environment",
                self.gather_environment(base_context, now),
                lambda: default_environment(now, base_context),
                warnings,
            ),
        )
        (workflow, productivity, patterns, insights, environment), succeeded = zip(*facets)

        context = EnhancedContext(
            **_base_fields(base_context),
            workflow_state=workflow,
            productivity_metrics=productivity,
            recent_patterns=patterns,
            contextual_insights=insights,
            environmental_factors=environment,
        )
        sources = ["base_context"] + [name for name, ok in zip(FACET_SOURCES, succeeded) if ok]
        return context, sources, all(succeeded)

    async def _facet(
        self,
        name: str,
        builder: Awaitable[T],
        default: Callable[[], T],
        warnings: list[str],
    ) -> tuple[T, bool]:
        try:
            return await builder, True
        except Exception as e:
            logger.warning(f"Context facet '{name}' failed, using default: {e}")
            warnings.append(f"{name} facet unavailable: {e}")
            return default(), False

    def _fallback_context(self, base_context: AppContext, now: datetime) -> EnhancedContext:
        return EnhancedContext(
            **_base_fields(base_context),
            workflow_state=WorkflowState.default(),
            productivity_metrics=ProductivityMetrics.default(),
            recent_patterns=[],
            contextual_insights=[],
            environmental_factors=default_environment(now, base_context),
        )

    @staticmethod
    def _elapsed_ms(started: float) -> float:
        return (time.perf_counter() - started) * 1000

    # =========================================================================
    # Facet: workflow state
    # =========================================================================

    async def build_workflow_state(self, base_context: AppContext, tasks: list[Task], now: datetime) -> WorkflowState:
        session = base_context.active_session
        return WorkflowState(
            current_phase=self._workflow_phase(base_context, now),
            focus_level=self._focus_level(base_context),
            workload_intensity=self._workload_intensity(tasks),
            minutes_in_phase=int(session.duration_minutes(now)) if session else 0,
            upcoming_deadlines=self.upcoming_deadlines(tasks, now),
            current_streak=self._completion_streak(tasks, now),
        )

    @staticmethod
    def _workflow_phase(base_context: AppContext, now: datetime) -> WorkflowPhase:
        if base_context.active_session is not None:
            return WorkflowPhase.EXECUTING
        if 9 <= now.hour <= 11:
            return WorkflowPhase.PLANNING
        if 17 <= now.hour <= 18:
            return WorkflowPhase.REVIEWING
        return WorkflowPhase.PLANNING

    @staticmethod
    def _focus_level(base_context: AppContext) -> int:
        level = 5
        if base_context.active_session is not None:
            level += 3
        if base_context.focus_mode:
            level += 2
        return min(level, 10)

    @staticmethod
    def _workload_intensity(tasks: list[Task]) -> WorkloadIntensity:
        open_tasks = [t for t in tasks if t.is_open]
        urgent = sum(1 for t in open_tasks if t.priority == Priority.URGENT)

        if urgent > 5 or len(open_tasks) > 20:
            return WorkloadIntensity.OVERWHELMING
        if urgent > 2 or len(open_tasks) > 15:
            return WorkloadIntensity.HEAVY
        if len(open_tasks) > 8:
            return WorkloadIntensity.MODERATE
        return WorkloadIntensity.LIGHT

    def upcoming_deadlines(self, tasks: list[Task], now: datetime) -> list[TaskDeadline]:
        horizon = now + timedelta(days=self.config.deadline_horizon_days)
        deadlines = []
        for task in tasks:
            if not task.is_open or task.due_date is None or task.due_date > horizon:
                continue
            hours = (task.due_date - now).total_seconds() / 3600
            deadlines.append(
                TaskDeadline(
                    task_id=task.id,
                    task_title=task.title,
                    due_date=task.due_date,
                    priority=task.priority,
                    hours_remaining=max(0, int(hours)),
                    estimated_minutes=task.time_estimate,
                    risk_level=assess_deadline_risk(hours, task.time_estimate),
                )
            )
        deadlines.sort(key=lambda d: d.due_date)
        return deadlines[: self.config.max_deadlines]

    def _completion_streak(self, tasks: list[Task], now: datetime) -> WorkflowStreak:
        """Consecutive days, ending today, with at least one completed task."""
        days = {t.completed_at.astimezone(now.tzinfo).date() for t in tasks if t.completed_at is not None}
        if not days:
            return WorkflowStreak(type="completion")

        count = 0
        day = now.date()
        while day in days:
            count += 1
            day -= timedelta(days=1)

        best = run = 0
        previous = None
        for day in sorted(days):
            run = run + 1 if previous is not None and day - previous == timedelta(days=1) else 1
            best = max(best, run)
            previous = day

        return WorkflowStreak(type="completion", count=count, best_streak=best)

    # =========================================================================
    # Facet: productivity metrics
    # =========================================================================

    async def build_productivity_metrics(
        self,
        base_context: AppContext,
        tasks: list[Task],
        now: datetime,
    ) -> ProductivityMetrics:
        today = now.replace(hour=0, minute=0, second=0, microsecond=0)
        sessions = await self.store.find_sessions(start=today - timedelta(days=self.config.historical_data_days))

        created_today = [t for t in tasks if t.created_at >= today]
        completion_rate = (
            sum(1 for t in created_today if t.status == TaskStatus.COMPLETED) / len(created_today)
            if created_today
            else 0.0
        )
        completed_today = sum(1 for t in tasks if t.completed_at is not None and t.completed_at >= today)
        minutes_today = sum(s.duration_minutes(now) for s in sessions if s.start_time >= today)

        finished = [s.duration_minutes(now) for s in sessions if not s.is_active]
        defaults = ProductivityMetrics.default()
        average_duration = sum(finished) / len(finished) if finished else defaults.average_task_duration
        focus_efficiency = (
            sum(1 for d in finished if d >= FOCUS_SESSION_MINUTES) / len(finished)
            if finished
            else defaults.focus_efficiency
        )

        return ProductivityMetrics(
            today_completion_rate=completion_rate,
            average_task_duration=round(average_duration, 1),
            focus_efficiency=round(focus_efficiency, 2),
            energy_level=self.estimate_energy(base_context, now),
            tasks_completed_today=completed_today,
            minutes_tracked_today=round(minutes_today, 1),
            productivity_trend=self._trend(tasks, today),
        )

    @staticmethod
    def estimate_energy(base_context: AppContext, now: datetime) -> int:
        energy = 5
        if 9 <= now.hour <= 11:
            energy += 2
        if 14 <= now.hour <= 16:
            energy += 1
        if now.hour >= 22 or now.hour <= 6:
            energy -= 3
        if base_context.active_session is not None:
            energy += 1
        if base_context.focus_mode:
            energy += 1
        return max(1, min(10, energy))

    @staticmethod
    def _trend(tasks: list[Task], today: datetime) -> Trend:
        """Completions in the last three days against the three before."""
        recent_start = today - timedelta(days=2)
        previous_start = recent_start - timedelta(days=3)
        completed = [t.completed_at for t in tasks if t.completed_at is not None]

        recent = sum(1 for c in completed if c >= recent_start)
        previous = sum(1 for c in completed if previous_start <= c < recent_start)

        if recent > previous * 1.2 and recent > 0:
            return Trend.INCREASING
        if recent < previous * 0.8:
            return Trend.DECREASING
        return Trend.STABLE

    # =========================================================================
    # Facet: recent patterns
    # =========================================================================

    async def analyze_patterns(self, tasks: list[Task], now: datetime) -> list[UserPattern]:
        since = now - timedelta(days=self.config.historical_data_days)
        sessions = await self.store.find_sessions(start=since)
        completed = [t for t in tasks if t.completed_at is not None and t.completed_at >= since]

        patterns: list[UserPattern] = []

        if len(completed) >= MIN_PATTERN_SAMPLES:
            hours = Counter(t.completed_at.astimezone(now.tzinfo).hour for t in completed)
            hour, count = hours.most_common(1)[0]
            patterns.append(
                UserPattern(
                    type=PatternType.PRODUCTIVITY,
                    description=f"Most tasks are completed around {hour:02d}:00",
                    confidence=round(count / len(completed), 2),
                    frequency=count,
                )
            )

        finished = [s for s in sessions if not s.is_active]
        if len(finished) >= MIN_PATTERN_SAMPLES:
            average = sum(s.duration_minutes(now) for s in finished) / len(finished)
            patterns.append(
                UserPattern(
                    type=PatternType.FOCUS,
                    description=f"Focus sessions average {average:.0f} minutes",
                    confidence=round(min(1.0, len(finished) / 10), 2),
                    frequency=len(finished),
                )
            )

        with_due = [t for t in completed if t.due_date is not None]
        if len(with_due) >= MIN_PATTERN_SAMPLES:
            on_time = sum(1 for t in with_due if t.completed_at <= t.due_date)
            ratio = on_time / len(with_due)
            patterns.append(
                UserPattern(
                    type=PatternType.SCHEDULING,
                    description=f"{ratio:.0%} of tasks with a due date finish on time",
                    confidence=round(ratio, 2),
                    frequency=len(with_due),
                )
            )

        patterns.sort(key=lambda p: p.confidence, reverse=True)
        return patterns[: self.config.max_patterns]

    # =========================================================================
    # Facet: contextual insights
    # =========================================================================

    async def generate_insights(
        self,
        base_context: AppContext,
        tasks: list[Task],
        now: datetime,
    ) -> list[ContextualInsight]:
        insights: list[ContextualInsight] = []

        session = base_context.active_session
        if session is not None and self._is_long_session(session, now):
            insights.append(
                ContextualInsight(
                    type=InsightType.SUGGESTION,
                    message="Consider taking a break - you've been focused for a while",
                    category=InsightCategory.WELLBEING,
                    priority=Priority.MEDIUM,
                    confidence=0.8,
                    related_data={"session_minutes": int(session.duration_minutes(now))},
                )
            )

        # Post-lunch dip
        if 13 <= now.hour <= 15:
            insights.append(
                ContextualInsight(
                    type=InsightType.WARNING,
                    message="This is typically a low-productivity time for you",
                    category=InsightCategory.PRODUCTIVITY,
                    priority=Priority.LOW,
                    confidence=0.7,
                    related_data={"hour": now.hour},
                )
            )

        urgent = [
            d
            for d in self.upcoming_deadlines(tasks, now)
            if d.risk_level in (DeadlineRisk.HIGH, DeadlineRisk.CRITICAL)
        ]
        if urgent:
            insights.append(
                ContextualInsight(
                    type=InsightType.WARNING,
                    message=f"You have {len(urgent)} urgent deadline(s) approaching",
                    category=InsightCategory.PLANNING,
                    priority=Priority.HIGH,
                    confidence=1.0,
                    related_data={"task_ids": [d.task_id for d in urgent]},
                )
            )

        return insights[: self.config.max_insights]

    def _is_long_session(self, session: TimerSession, now: datetime) -> bool:
        return session.duration_minutes(now) > self.config.long_session_minutes

    # =========================================================================
    # Facet: environment
    # =========================================================================

    async def gather_environment(self, base_context: AppContext, now: datetime) -> EnvironmentalFactors:
        return default_environment(now, base_context)

    def get_cache_stats(self) -> dict[str, Any]:
        return self.cache.get_stats().model_dump()
