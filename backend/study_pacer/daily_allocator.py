"""Spread the outstanding round work across the remaining study days."""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from .clock import Clock, default_clock, iso_weekday
from .config import get_settings
from .quota_calculator import QuotaCalculator, QuotaResult
from .round_planner import RoundPlanner
from .study_plan import DailyTask, RoundTask, StudyPlan, StudySession
from .telemetry import emit_event

logger = logging.getLogger(__name__)

DEFAULT_FALLBACK_WINDOW_DAYS = 30
DEFAULT_MAX_STUDY_DATES = 365
DAILY_ADVICE = "Keep going!"
OVERFLOW_ADVICE = "Push to finish before the deadline."


class CompletionAttribution(str, Enum):
    """Which recorded sessions count against the round-task sequence."""

    TOTAL = "total"
    ROUND_SCOPED = "round_scoped"


@dataclass
class _RemainingRange:
    round: int
    start: int
    units: int

    @property
    def end(self) -> int:
        return self.start + self.units - 1

    def take(self, count: int) -> int:
        first = self.start
        self.start += count
        self.units -= count
        return first


@dataclass
class _Segment:
    round: int
    start: int
    units: int = 0

    @property
    def end(self) -> int:
        return self.start + self.units - 1


class DailyAllocator:
    """Turns round tasks into dated, contiguous daily tasks.

    Each call is a pure function of its inputs and the injected clock; callers
    regenerate from scratch after new sessions are recorded.
    """

    def __init__(
        self,
        *,
        clock: Optional[Clock] = None,
        attribution: CompletionAttribution = CompletionAttribution.TOTAL,
        fallback_window_days: int = DEFAULT_FALLBACK_WINDOW_DAYS,
        max_study_dates: int = DEFAULT_MAX_STUDY_DATES,
    ) -> None:
        self._clock = clock or default_clock()
        self._attribution = CompletionAttribution(attribution)
        self._fallback_window_days = max(1, fallback_window_days)
        self._max_study_dates = max(1, max_study_dates)

    @property
    def attribution(self) -> CompletionAttribution:
        return self._attribution

    def allocate(
        self,
        plan: StudyPlan,
        sessions: Sequence[StudySession],
        round_tasks: Sequence[RoundTask],
        adjusted_time_per_unit_ms: int,
        chosen_daily_quota: float,
    ) -> List[DailyTask]:
        completed = self.completed_units(sessions, round_tasks)
        remaining = self._remaining_ranges(round_tasks, completed)
        if not remaining:
            logger.debug("Plan %s has no outstanding units; nothing to allocate.", plan.id)
            return []

        study_dates = self.study_dates(plan)
        total_remaining = sum(entry.units for entry in remaining)
        per_day_target = self.per_day_target(chosen_daily_quota, total_remaining, len(study_dates))
        logger.debug(
            "Allocating plan=%s completed=%s remaining=%s study_dates=%s per_day=%s",
            plan.id,
            completed,
            total_remaining,
            len(study_dates),
            per_day_target,
        )

        tasks: List[DailyTask] = []
        cursor = 0
        for day in study_dates:
            if cursor >= len(remaining):
                break
            segments: List[_Segment] = []
            budget = per_day_target
            while budget > 0 and cursor < len(remaining):
                current = remaining[cursor]
                count = min(budget, current.units)
                first = current.take(count)
                last_segment = segments[-1] if segments else None
                if (
                    last_segment is not None
                    and last_segment.round == current.round
                    and last_segment.end + 1 == first
                ):
                    last_segment.units += count
                else:
                    segments.append(_Segment(round=current.round, start=first, units=count))
                budget -= count
                if current.units == 0:
                    cursor += 1
            for index, segment in enumerate(segments, start=1):
                suffix = f"-s{index}" if index > 1 else ""
                tasks.append(
                    self._task(plan, day, segment, adjusted_time_per_unit_ms, DAILY_ADVICE, suffix)
                )

        # Only reachable when per_day_target undershoots remaining_units / date_count.
        leftovers = [entry for entry in remaining[cursor:] if entry.units > 0]
        if leftovers:
            last_day = study_dates[-1]
            logger.info(
                "Plan %s still has %s units after %s study dates; appending overflow tasks on %s.",
                plan.id,
                sum(entry.units for entry in leftovers),
                len(study_dates),
                last_day.isoformat(),
            )
            emit_event(
                "planning_fallback",
                plan_id=plan.id,
                component="allocator",
                reason="overflow",
                leftover_units=sum(entry.units for entry in leftovers),
            )
            for index, entry in enumerate(leftovers, start=1):
                segment = _Segment(round=entry.round, start=entry.start, units=entry.units)
                tasks.append(
                    self._task(
                        plan,
                        last_day,
                        segment,
                        adjusted_time_per_unit_ms,
                        OVERFLOW_ADVICE,
                        f"-t{index}",
                    )
                )

        emit_event(
            "daily_tasks_allocated",
            plan_id=plan.id,
            task_count=len(tasks),
            total_units=sum(task.units for task in tasks),
            per_day_target=per_day_target,
            study_date_count=len(study_dates),
        )
        return tasks

    def per_day_target(self, chosen_daily_quota: float, remaining_units: int, date_count: int) -> int:
        """Units per study date: the quota, raised so the dates cover the remaining units."""
        return max(math.ceil(chosen_daily_quota), math.ceil(remaining_units / date_count), 1)

    def completed_units(
        self,
        sessions: Sequence[StudySession],
        round_tasks: Sequence[RoundTask],
    ) -> int:
        if self._attribution is CompletionAttribution.TOTAL:
            return sum(session.units_completed for session in sessions)
        return sum(
            session.units_completed
            for session in sessions
            if self._attributable(session, round_tasks)
        )

    @staticmethod
    def _attributable(session: StudySession, round_tasks: Sequence[RoundTask]) -> bool:
        for task in round_tasks:
            if task.round != session.round:
                continue
            if not session.has_unit_range:
                return True
            if task.start_unit <= session.start_unit and session.end_unit <= task.end_unit:
                return True
        return False

    @staticmethod
    def _remaining_ranges(round_tasks: Sequence[RoundTask], completed: int) -> List[_RemainingRange]:
        remaining: List[_RemainingRange] = []
        left = completed
        for task in round_tasks:
            if left >= task.units:
                left -= task.units
                continue
            remaining.append(
                _RemainingRange(round=task.round, start=task.start_unit + left, units=task.units - left)
            )
            left = 0
        return remaining

    def study_dates(self, plan: StudyPlan) -> List[date]:
        """Study weekdays from today through the effective deadline, or a raw fallback window."""
        today = self._clock.today()
        deadline = plan.effective_deadline
        dates: List[date] = []
        cursor = today
        while cursor <= deadline and len(dates) < self._max_study_dates:
            if plan.is_study_day(iso_weekday(cursor)):
                dates.append(cursor)
            cursor += timedelta(days=1)
        if dates:
            return dates

        window = min(self._fallback_window_days, self._max_study_dates)
        logger.info(
            "No study dates for plan %s between %s and %s; using the next %s calendar days.",
            plan.id,
            today.isoformat(),
            deadline.isoformat(),
            window,
        )
        emit_event(
            "planning_fallback",
            plan_id=plan.id,
            component="allocator",
            reason="no_study_dates",
            window_days=window,
        )
        return [today + timedelta(days=offset) for offset in range(window)]

    @staticmethod
    def _task(
        plan: StudyPlan,
        day: date,
        segment: _Segment,
        adjusted_time_per_unit_ms: int,
        advice: str,
        suffix: str,
    ) -> DailyTask:
        return DailyTask(
            id=f"{plan.id}-{day.isoformat()}-r{segment.round}{suffix}",
            plan_id=plan.id,
            scheduled_for=day,
            start_unit=segment.start,
            end_unit=segment.end,
            units=segment.units,
            estimated_duration_ms=adjusted_time_per_unit_ms * segment.units,
            round=segment.round,
            advice=advice,
        )


class PlanningResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    plan_id: str
    daily_tasks: List[DailyTask] = Field(default_factory=list)
    round_tasks: List[RoundTask] = Field(default_factory=list)
    daily_quota: float
    quota: QuotaResult

    @property
    def total_units(self) -> int:
        return sum(task.units for task in self.daily_tasks)


class PlanningOrchestrator:
    """Runs quota, round planning, and allocation for one plan snapshot."""

    def __init__(
        self,
        *,
        clock: Optional[Clock] = None,
        quota_calculator: Optional[QuotaCalculator] = None,
        round_planner: Optional[RoundPlanner] = None,
        allocator: Optional[DailyAllocator] = None,
    ) -> None:
        settings = get_settings()
        self._clock = clock or default_clock()
        self._quota_calculator = quota_calculator or QuotaCalculator(clock=self._clock)
        self._round_planner = round_planner or RoundPlanner(
            chunk_size=settings.chunk_size,
            hard_threshold=settings.hard_threshold,
        )
        self._allocator = allocator or DailyAllocator(
            clock=self._clock,
            attribution=CompletionAttribution(settings.completion_attribution),
            fallback_window_days=settings.fallback_window_days,
            max_study_dates=settings.max_study_dates,
        )

    def generate_plan(
        self,
        plan: StudyPlan,
        sessions: Sequence[StudySession],
        *,
        daily_quota_override: Optional[float] = None,
    ) -> PlanningResult:
        start = time.perf_counter()
        try:
            quota = self._quota_calculator.calculate(plan, sessions)
            round_tasks = self._round_planner.plan(plan, sessions)
            daily_quota = daily_quota_override or plan.daily_quota or quota.recommended_daily_quota
            daily_tasks = self._allocator.allocate(
                plan,
                sessions,
                round_tasks,
                quota.adjusted_time_per_unit_ms,
                daily_quota,
            )
        except Exception as exc:  # noqa: BLE001
            duration_ms = (time.perf_counter() - start) * 1000.0
            emit_event(
                "plan_generated",
                plan_id=plan.id,
                status="error",
                duration_ms=round(duration_ms, 2),
                task_count=0,
                error=str(exc),
                exception_type=exc.__class__.__name__,
            )
            logger.exception("Failed to generate daily tasks for plan %s", plan.id)
            raise
        duration_ms = (time.perf_counter() - start) * 1000.0
        emit_event(
            "plan_generated",
            plan_id=plan.id,
            status="success",
            duration_ms=round(duration_ms, 2),
            task_count=len(daily_tasks),
        )
        return PlanningResult(
            plan_id=plan.id,
            daily_tasks=daily_tasks,
            round_tasks=round_tasks,
            daily_quota=daily_quota,
            quota=quota,
        )


def allocate_daily_tasks(
    plan: StudyPlan,
    sessions: Sequence[StudySession],
    round_tasks: Sequence[RoundTask],
    adjusted_time_per_unit_ms: int,
    chosen_daily_quota: float,
    *,
    clock: Optional[Clock] = None,
    attribution: Optional[CompletionAttribution] = None,
) -> List[DailyTask]:
    settings = get_settings()
    allocator = DailyAllocator(
        clock=clock,
        attribution=attribution or CompletionAttribution(settings.completion_attribution),
        fallback_window_days=settings.fallback_window_days,
        max_study_dates=settings.max_study_dates,
    )
    return allocator.allocate(
        plan,
        sessions,
        round_tasks,
        adjusted_time_per_unit_ms,
        chosen_daily_quota,
    )


__all__ = [
    "CompletionAttribution",
    "DAILY_ADVICE",
    "DailyAllocator",
    "OVERFLOW_ADVICE",
    "PlanningOrchestrator",
    "PlanningResult",
    "allocate_daily_tasks",
]
