"""Progress and achievability analysis over a plan's session history."""

from __future__ import annotations

import logging
from datetime import timedelta
from enum import Enum
from typing import Optional, Sequence

from .clock import Clock, default_clock
from .metrics import PerformanceMetrics, Progress, round_half_up
from .study_plan import StudyPlan, StudySession

logger = logging.getLogger(__name__)

TREND_THRESHOLD = 0.1
MIN_TREND_SESSIONS = 3
COMFORTABLE_LEAD = 0.2
ON_TRACK_LAG = -0.1
STUDY_HOURS_PER_DAY = 8
CHALLENGING_RATIO = 1.2
AT_RISK_RATIO = 1.5
MS_PER_MINUTE = 60_000
MS_PER_HOUR = 60 * MS_PER_MINUTE


class PerformanceTrend(str, Enum):
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


class AchievabilityStatus(str, Enum):
    ACHIEVED = "achieved"
    OVERDUE = "overdue"
    COMFORTABLE = "comfortable"
    ON_TRACK = "on_track"
    CHALLENGING = "challenging"
    AT_RISK = "at_risk"
    IMPOSSIBLE = "impossible"


NEUTRAL_PERFORMANCE = PerformanceMetrics(
    concentration=0.7,
    difficulty=3,
    duration_minutes=0,
    units_completed=0,
)


class ProgressAnalysisService:
    """Read-only analysis helpers; nothing here mutates a plan."""

    def __init__(self, *, clock: Optional[Clock] = None) -> None:
        self._clock = clock or default_clock()

    def calculate_progress(self, plan: StudyPlan, sessions: Sequence[StudySession]) -> Progress:
        target = plan.target_units
        completed = sum(session.units_completed for session in sessions)
        return Progress(completed=min(completed, target), total=target)

    def calculate_round_progress(
        self,
        plan: StudyPlan,
        sessions: Sequence[StudySession],
        round_number: int,
    ) -> Progress:
        completed = sum(
            session.units_completed for session in sessions if session.round == round_number
        )
        return Progress(completed=min(completed, plan.range_total), total=plan.range_total)

    def calculate_average_performance(self, sessions: Sequence[StudySession]) -> PerformanceMetrics:
        if not sessions:
            return NEUTRAL_PERFORMANCE
        count = len(sessions)
        return PerformanceMetrics(
            concentration=sum(session.concentration for session in sessions) / count,
            difficulty=round_half_up(sum(session.difficulty for session in sessions) / count),
            duration_minutes=sum(session.duration_minutes for session in sessions),
            units_completed=sum(session.units_completed for session in sessions),
        )

    def analyze_recent_trend(
        self,
        sessions: Sequence[StudySession],
        *,
        recent_days: int = 7,
    ) -> PerformanceTrend:
        """Compare efficiency between the earlier and later half of recent sessions."""
        cutoff = self._clock.now() - timedelta(days=recent_days)
        recent = sorted(
            (session for session in sessions if session.studied_at > cutoff),
            key=lambda session: session.studied_at,
        )
        if len(recent) < MIN_TREND_SESSIONS:
            return PerformanceTrend.STABLE

        midpoint = len(recent) // 2
        earlier = self.calculate_average_performance(recent[:midpoint])
        later = self.calculate_average_performance(recent[midpoint:])
        difference = later.efficiency_score - earlier.efficiency_score
        if difference > TREND_THRESHOLD:
            return PerformanceTrend.IMPROVING
        if difference < -TREND_THRESHOLD:
            return PerformanceTrend.DECLINING
        return PerformanceTrend.STABLE

    def estimate_remaining_time_ms(self, plan: StudyPlan, sessions: Sequence[StudySession]) -> int:
        progress = self.calculate_progress(plan, sessions)
        if progress.is_complete:
            return 0
        if not sessions:
            return progress.remaining * plan.estimated_time_per_unit_ms
        average = self.calculate_average_performance(sessions)
        return round_half_up(progress.remaining * average.average_time_per_unit * MS_PER_MINUTE)

    def evaluate_achievability(
        self,
        plan: StudyPlan,
        sessions: Sequence[StudySession],
    ) -> AchievabilityStatus:
        progress = self.calculate_progress(plan, sessions)
        if progress.is_complete:
            return AchievabilityStatus.ACHIEVED
        if plan.is_overdue(self._clock):
            return AchievabilityStatus.OVERDUE

        gap = progress.percentage - plan.time_progress_ratio(self._clock)
        if gap >= COMFORTABLE_LEAD:
            return AchievabilityStatus.COMFORTABLE
        if gap >= ON_TRACK_LAG:
            return AchievabilityStatus.ON_TRACK

        estimated = self.estimate_remaining_time_ms(plan, sessions)
        available = max(1, plan.remaining_days(self._clock)) * STUDY_HOURS_PER_DAY * MS_PER_HOUR
        ratio = estimated / available
        logger.debug(
            "Achievability for plan=%s gap=%.2f estimated_ms=%s available_ms=%s ratio=%.2f",
            plan.id,
            gap,
            estimated,
            available,
            ratio,
        )
        if ratio <= CHALLENGING_RATIO:
            return AchievabilityStatus.CHALLENGING
        if ratio <= AT_RISK_RATIO:
            return AchievabilityStatus.AT_RISK
        return AchievabilityStatus.IMPOSSIBLE


__all__ = [
    "AchievabilityStatus",
    "NEUTRAL_PERFORMANCE",
    "PerformanceTrend",
    "ProgressAnalysisService",
]
