"""Tests for progress and achievability analysis."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from study_pacer.clock import FixedClock
from study_pacer.progress_analysis import (
    NEUTRAL_PERFORMANCE,
    AchievabilityStatus,
    PerformanceTrend,
    ProgressAnalysisService,
)
from study_pacer.study_plan import StudyPlan, StudySession, UnitRange

TODAY = datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)


def _plan(**overrides) -> StudyPlan:
    data = {
        "id": "plan-p",
        "total_units": 100,
        "created_at": TODAY - timedelta(days=5),
        "deadline": TODAY + timedelta(days=5),
        "estimated_time_per_unit_ms": 60_000,
    }
    data.update(overrides)
    return StudyPlan(**data)


def _session(
    index: int,
    units: int = 10,
    *,
    duration: float = 30,
    concentration: float = 0.8,
    difficulty: int = 3,
    round_number: int = 1,
    days_ago: float = 1,
) -> StudySession:
    return StudySession(
        id=f"s-{index}",
        plan_id="plan-p",
        studied_at=TODAY - timedelta(days=days_ago),
        round=round_number,
        duration_minutes=duration,
        concentration=concentration,
        difficulty=difficulty,
        units_completed=units,
    )


def _service(clock: FixedClock | None = None) -> ProgressAnalysisService:
    return ProgressAnalysisService(clock=clock or FixedClock(TODAY))


def test_progress_is_range_and_round_aware() -> None:
    plan = _plan(total_units=200, unit_range=UnitRange(start=51, end=100), target_rounds=2)
    progress = _service().calculate_progress(plan, [_session(1, 30), _session(2, 20)])
    assert (progress.completed, progress.total) == (50, 100)
    assert progress.percentage == pytest.approx(0.5)


def test_progress_clamps_over_achieving_history() -> None:
    progress = _service().calculate_progress(_plan(), [_session(1, 80), _session(2, 80)])
    assert progress.is_complete
    assert progress.completed == 100


def test_round_progress_counts_only_that_round() -> None:
    sessions = [_session(1, 100), _session(2, 15, round_number=2)]
    progress = _service().calculate_round_progress(_plan(target_rounds=2), sessions, 2)
    assert (progress.completed, progress.total) == (15, 100)


def test_average_performance() -> None:
    service = _service()
    assert service.calculate_average_performance([]) == NEUTRAL_PERFORMANCE
    average = service.calculate_average_performance(
        [
            _session(1, 4, duration=20, concentration=0.6, difficulty=2),
            _session(2, 6, duration=40, concentration=1.0, difficulty=3),
        ]
    )
    assert average.concentration == pytest.approx(0.8)
    assert average.difficulty == 3
    assert average.duration_minutes == 60
    assert average.units_completed == 10


def _trend_sessions(improving: bool) -> list[StudySession]:
    weak = {"units": 5, "duration": 60, "concentration": 0.5, "difficulty": 3}
    strong = {"units": 10, "duration": 30, "concentration": 1.0, "difficulty": 5}
    earlier, later = (weak, strong) if improving else (strong, weak)
    return [
        _session(1, days_ago=4, **earlier),
        _session(2, days_ago=3, **earlier),
        _session(3, days_ago=2, **later),
        _session(4, days_ago=1, **later),
    ]


def test_recent_trend_compares_halves() -> None:
    service = _service()
    assert service.analyze_recent_trend(_trend_sessions(True)) is PerformanceTrend.IMPROVING
    assert service.analyze_recent_trend(_trend_sessions(False)) is PerformanceTrend.DECLINING


def test_recent_trend_needs_three_recent_sessions() -> None:
    service = _service()
    sessions = _trend_sessions(True)
    stale = [session.model_copy(update={"studied_at": TODAY - timedelta(days=20)}) for session in sessions[:2]]
    assert service.analyze_recent_trend(stale + sessions[2:]) is PerformanceTrend.STABLE
    assert service.analyze_recent_trend([]) is PerformanceTrend.STABLE


def test_remaining_time_estimate() -> None:
    service = _service()
    plan = _plan()
    assert service.estimate_remaining_time_ms(plan, []) == 100 * 60_000
    sessions = [_session(index, 10, duration=30) for index in range(3)]
    assert service.estimate_remaining_time_ms(plan, sessions) == 70 * 3 * 60_000
    assert service.estimate_remaining_time_ms(plan, [_session(1, 100)]) == 0


@pytest.mark.parametrize(
    ("completed", "minutes_per_session", "expected"),
    [
        (100, 30, AchievabilityStatus.ACHIEVED),
        (80, 30, AchievabilityStatus.COMFORTABLE),
        (50, 30, AchievabilityStatus.ON_TRACK),
        (30, 90, AchievabilityStatus.CHALLENGING),
        (30, 600, AchievabilityStatus.AT_RISK),
        (30, 900, AchievabilityStatus.IMPOSSIBLE),
    ],
)
def test_achievability_levels(completed: int, minutes_per_session: float, expected: AchievabilityStatus) -> None:
    sessions = [
        _session(index, 10, duration=minutes_per_session) for index in range(completed // 10)
    ]
    assert _service().evaluate_achievability(_plan(), sessions) is expected


def test_overdue_plans_are_flagged() -> None:
    clock = FixedClock(TODAY + timedelta(days=6))
    sessions = [_session(1, 30)]
    assert _service(clock).evaluate_achievability(_plan(), sessions) is AchievabilityStatus.OVERDUE


def test_recent_trend_accepts_naive_timestamps() -> None:
    sessions = [
        StudySession.model_validate(
            {**session.model_dump(), "studied_at": session.studied_at.replace(tzinfo=None)}
        )
        for session in _trend_sessions(True)
    ]
    assert all(session.studied_at.tzinfo is not None for session in sessions)
    assert _service().analyze_recent_trend(sessions) is PerformanceTrend.IMPROVING
