"""Dynamic daily quota derived from session history and the plan deadline."""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from .clock import Clock, default_clock, days_between, iso_weekday
from .metrics import legacy_performance_factor, round_half_up
from .study_plan import StudyPlan, StudySession
from .telemetry import emit_event

logger = logging.getLogger(__name__)

# Legacy factor for a difficulty-3 session at the old 0-3 concentration scale.
NEUTRAL_PERFORMANCE_FACTOR = 9.0
MIN_TIME_PER_UNIT_MS = 1000
MIN_DAILY_QUOTA = 1.0


class QuotaResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    adjusted_time_per_unit_ms: int = Field(ge=MIN_TIME_PER_UNIT_MS)
    provisional_deadline: date
    recommended_daily_quota: float = Field(ge=MIN_DAILY_QUOTA)
    remaining_units: int = Field(default=0, ge=0)
    study_days_count: int = Field(default=1, ge=1)


class QuotaCalculator:
    """Turns historical performance into a paced per-day workload."""

    def __init__(self, *, clock: Optional[Clock] = None) -> None:
        self._clock = clock or default_clock()

    def calculate(self, plan: StudyPlan, sessions: Sequence[StudySession]) -> QuotaResult:
        completed = sum(session.units_completed for session in sessions)
        remaining_units = max(0, plan.target_units - completed)

        adjustment_rate = self.average_performance_factor(sessions) / NEUTRAL_PERFORMANCE_FACTOR
        if not adjustment_rate:
            adjustment_rate = 1.0
        adjusted_time_per_unit_ms = max(
            MIN_TIME_PER_UNIT_MS,
            round_half_up(plan.estimated_time_per_unit_ms / adjustment_rate),
        )

        today = self._clock.today()
        deadline = plan.effective_deadline
        study_days_count = self.count_study_days(plan, today, deadline)
        if study_days_count <= 0:
            study_days_count = max(1, days_between(today, deadline))
            logger.info(
                "No study days left for plan %s before %s; pacing over %s calendar days.",
                plan.id,
                deadline.isoformat(),
                study_days_count,
            )
            emit_event(
                "planning_fallback",
                plan_id=plan.id,
                component="quota",
                reason="no_study_days_before_deadline",
                calendar_days=study_days_count,
            )

        recommended_daily_quota = max(MIN_DAILY_QUOTA, remaining_units / study_days_count)

        logger.debug(
            "Quota for plan=%s remaining=%s study_days=%s quota=%.2f time_per_unit_ms=%s",
            plan.id,
            remaining_units,
            study_days_count,
            recommended_daily_quota,
            adjusted_time_per_unit_ms,
        )
        emit_event(
            "quota_calculated",
            plan_id=plan.id,
            remaining_units=remaining_units,
            study_days_count=study_days_count,
            recommended_daily_quota=round(recommended_daily_quota, 4),
            adjusted_time_per_unit_ms=adjusted_time_per_unit_ms,
        )
        return QuotaResult(
            adjusted_time_per_unit_ms=adjusted_time_per_unit_ms,
            provisional_deadline=deadline,
            recommended_daily_quota=recommended_daily_quota,
            remaining_units=remaining_units,
            study_days_count=study_days_count,
        )

    @staticmethod
    def average_performance_factor(sessions: Sequence[StudySession]) -> float:
        if not sessions:
            return NEUTRAL_PERFORMANCE_FACTOR
        factors = [
            legacy_performance_factor(session.difficulty, session.concentration)
            for session in sessions
        ]
        return sum(factors) / len(factors)

    @staticmethod
    def count_study_days(plan: StudyPlan, start: date, end: date) -> int:
        if end < start:
            return 0
        count = 0
        cursor = start
        while cursor <= end:
            if plan.is_study_day(iso_weekday(cursor)):
                count += 1
            cursor += timedelta(days=1)
        return count


def compute_quota(
    plan: StudyPlan,
    sessions: Sequence[StudySession],
    *,
    clock: Optional[Clock] = None,
) -> QuotaResult:
    """Adjusted per-unit duration, provisional deadline, and recommended daily quota."""
    return QuotaCalculator(clock=clock).calculate(plan, sessions)


__all__ = [
    "MIN_TIME_PER_UNIT_MS",
    "NEUTRAL_PERFORMANCE_FACTOR",
    "QuotaCalculator",
    "QuotaResult",
    "compute_quota",
]
