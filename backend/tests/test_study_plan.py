"""Tests for the study plan, session, review item, and task entities."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from study_pacer.clock import FixedClock
from study_pacer.metrics import QualityLevel
from study_pacer.study_plan import (
    DailyTask,
    PlanStatus,
    ReviewItem,
    RoundTask,
    StudyPlan,
    StudySession,
    UnitRange,
)

NOW = datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)


def _plan(**overrides) -> StudyPlan:
    data = {
        "id": "plan-1",
        "user_id": "learner",
        "title": "Calculus drills",
        "total_units": 100,
        "created_at": NOW,
        "deadline": NOW + timedelta(days=10),
        "estimated_time_per_unit_ms": 60_000,
    }
    data.update(overrides)
    return StudyPlan(**data)


def _session(**overrides) -> StudySession:
    data = {
        "id": "session-1",
        "plan_id": "plan-1",
        "studied_at": NOW,
        "duration_minutes": 30,
        "concentration": 0.8,
        "difficulty": 4,
        "units_completed": 5,
    }
    data.update(overrides)
    return StudySession(**data)


def test_plan_defaults_cover_the_whole_curriculum() -> None:
    plan = _plan()
    assert plan.range_start == 1
    assert plan.range_end == 100
    assert plan.range_total == 100
    assert plan.effective_rounds == 1
    assert plan.study_days == frozenset({1, 2, 3, 4, 5})
    assert plan.effective_deadline == date(2026, 10, 29)
    assert plan.is_active


def test_plan_unit_range_and_rounds_drive_target_units() -> None:
    plan = _plan(unit_range=UnitRange(start=11, end=40), rounds=2, target_rounds=3)
    assert plan.range_total == 30
    assert plan.effective_rounds == 3
    assert plan.target_units == 90


@pytest.mark.parametrize(
    "overrides",
    [
        {"total_units": 0},
        {"deadline": NOW - timedelta(days=1)},
        {"study_days": frozenset()},
        {"study_days": frozenset({0, 3})},
        {"unit_range": {"start": 5, "end": 120}},
        {"estimated_time_per_unit_ms": -1},
    ],
)
def test_plan_rejects_invalid_construction(overrides) -> None:
    with pytest.raises(ValidationError):
        _plan(**overrides)


def test_plan_allows_deadline_on_the_creation_day() -> None:
    plan = _plan(deadline=NOW - timedelta(hours=2))
    assert plan.effective_deadline == NOW.date()


def test_plan_status_transitions_return_new_values() -> None:
    plan = _plan()
    paused = plan.pause()
    assert paused.status is PlanStatus.PAUSED
    assert plan.status is PlanStatus.ACTIVE
    assert paused.resume().is_active
    assert plan.complete().is_completed
    done_today = plan.complete_today()
    assert done_today.is_completed_today
    assert done_today.reset_today_completion().is_active
    assert paused.reset_today_completion() is paused


def test_plan_copy_operations_revalidate() -> None:
    plan = _plan()
    moved = plan.update_dynamic_deadline(NOW + timedelta(days=3))
    assert moved.effective_deadline == date(2026, 10, 22)
    assert plan.increment_rounds().target_rounds == 2
    assert plan.update_daily_quota(12.5).daily_quota == 12.5
    with pytest.raises(ValidationError):
        plan.update_daily_quota(0)


def test_plan_calendar_helpers_use_the_injected_clock() -> None:
    plan = _plan()
    clock = FixedClock(NOW)
    assert plan.is_today_study_day(clock)
    assert plan.remaining_days(clock) == 11
    assert plan.elapsed_days(clock) == 1
    assert not plan.is_overdue(clock)

    clock.advance(days=5)
    assert not plan.is_today_study_day(clock)
    clock.advance(days=6)
    assert plan.is_overdue(clock)
    assert plan.time_progress_ratio(clock) == 1.0


def test_session_range_is_authoritative() -> None:
    session = _session(start_unit=11, end_unit=20, units_completed=3)
    assert session.units_completed == 10
    assert session.has_unit_range


@pytest.mark.parametrize(
    "overrides",
    [
        {"start_unit": 5},
        {"start_unit": 0, "end_unit": 3},
        {"start_unit": 8, "end_unit": 3},
        {"units_completed": 0},
        {"concentration": 1.5},
        {"difficulty": 6},
        {"round": 0},
    ],
)
def test_session_rejects_invalid_construction(overrides) -> None:
    with pytest.raises(ValidationError):
        _session(**overrides)


def test_session_quality_helpers() -> None:
    strong = _session(concentration=0.9, difficulty=5)
    assert strong.quality_level is QualityLevel.EXCELLENT
    assert strong.is_high_quality
    weak = _session(concentration=0.2, difficulty=2)
    assert weak.needs_improvement
    assert _session(duration_minutes=30, units_completed=6).average_time_per_unit == 5.0


def test_review_item_due_checks_are_day_truncated() -> None:
    clock = FixedClock(NOW)
    item = ReviewItem(
        id="review-1",
        unit_number=3,
        last_review_date=NOW - timedelta(days=1),
        next_review_date=NOW.replace(hour=23),
    )
    assert item.is_due_today(clock)
    assert not item.is_overdue(clock)
    assert item.days_until_next_review(clock) == 0

    clock.advance(days=2)
    assert item.is_overdue(clock)
    assert item.days_until_next_review(clock) == -2


def test_review_item_reset_restores_defaults() -> None:
    clock = FixedClock(NOW)
    item = ReviewItem(
        id="review-1",
        unit_number=3,
        last_review_date=NOW,
        next_review_date=NOW + timedelta(days=15),
        ease_factor=1.9,
        repetitions=4,
        interval_days=15,
    )
    reset = item.reset(clock)
    assert reset.ease_factor == 2.5
    assert reset.repetitions == 0
    assert reset.interval_days == 1
    assert reset.next_review_date == NOW + timedelta(days=1)


def test_review_item_rejects_ease_below_floor() -> None:
    with pytest.raises(ValidationError):
        ReviewItem(
            id="review-1",
            unit_number=1,
            last_review_date=NOW,
            next_review_date=NOW,
            ease_factor=1.2,
        )


def test_round_task_shift_keeps_length() -> None:
    task = RoundTask(round=2, start_unit=11, end_unit=20, units=10)
    shifted = task.shifted(10)
    assert (shifted.start_unit, shifted.end_unit, shifted.units) == (21, 30, 10)
    assert task.shifted(0) is task
    with pytest.raises(ValidationError):
        RoundTask(round=2, start_unit=11, end_unit=20, units=9)


def test_daily_task_helpers() -> None:
    clock = FixedClock(NOW)
    task = DailyTask(
        id="plan-1-2026-10-19-r2",
        plan_id="plan-1",
        scheduled_for=date(2026, 10, 19),
        start_unit=11,
        end_unit=22,
        units=12,
        estimated_duration_ms=12 * 60_000 + 59_999,
        round=2,
    )
    assert task.estimated_minutes == 12
    assert task.estimated_hours == pytest.approx(0.2)
    assert task.generate_title("Calculus") == "Calculus (R2) U11-22"
    assert task.model_copy(update={"round": 1}).generate_title("Calculus") == "Calculus U11-22"
    assert task.is_today(clock)
    clock.advance(days=1)
    assert task.is_past(clock)
    assert not task.is_future(clock)


def test_daily_task_rejects_mismatched_span() -> None:
    with pytest.raises(ValidationError):
        DailyTask(
            id="t",
            plan_id="plan-1",
            scheduled_for=date(2026, 10, 19),
            start_unit=5,
            end_unit=4,
            units=0,
            estimated_duration_ms=0,
        )
