"""Tests for the performance, progress, and date range value objects."""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest
from pydantic import ValidationError

from study_pacer.metrics import (
    DateRange,
    PerformanceMetrics,
    Progress,
    QualityLevel,
    legacy_performance_factor,
    round_half_up,
)


def test_performance_factor_grows_with_concentration_and_difficulty() -> None:
    metrics = PerformanceMetrics(concentration=0.9, difficulty=5, duration_minutes=60, units_completed=6)
    assert metrics.performance_factor == pytest.approx(0.9)
    assert metrics.quality_level is QualityLevel.EXCELLENT

    easier = PerformanceMetrics(concentration=0.9, difficulty=2, duration_minutes=60, units_completed=6)
    assert easier.performance_factor < metrics.performance_factor
    assert easier.quality_level is QualityLevel.POOR


def test_quality_thresholds() -> None:
    def level(concentration: float, difficulty: int) -> QualityLevel:
        return PerformanceMetrics(
            concentration=concentration,
            difficulty=difficulty,
            duration_minutes=30,
            units_completed=3,
        ).quality_level

    assert level(0.85, 5) is QualityLevel.EXCELLENT
    assert level(0.65, 5) is QualityLevel.GOOD
    assert level(0.5, 4) is QualityLevel.FAIR
    assert level(0.3, 1) is QualityLevel.POOR


def test_average_time_and_efficiency_guard_against_zero() -> None:
    idle = PerformanceMetrics(concentration=0.5, difficulty=3, duration_minutes=0, units_completed=0)
    assert idle.average_time_per_unit == 0.0
    assert idle.efficiency_score == 0.0

    busy = PerformanceMetrics(concentration=1.0, difficulty=5, duration_minutes=30, units_completed=10)
    assert busy.average_time_per_unit == pytest.approx(3.0)
    assert busy.efficiency_score == pytest.approx(20.0)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"concentration": 1.2, "difficulty": 3},
        {"concentration": -0.1, "difficulty": 3},
        {"concentration": 0.5, "difficulty": 0},
        {"concentration": 0.5, "difficulty": 6},
    ],
)
def test_performance_metrics_rejects_out_of_range_inputs(kwargs) -> None:
    with pytest.raises(ValidationError):
        PerformanceMetrics(duration_minutes=10, units_completed=1, **kwargs)


def test_legacy_factor_rewards_easier_material() -> None:
    assert legacy_performance_factor(1, 1.0) == 5.0
    assert legacy_performance_factor(5, 1.0) == 1.0
    assert legacy_performance_factor(3, 0.5) == 1.5


def test_round_half_up_differs_from_bankers_rounding() -> None:
    assert round_half_up(2.5) == 3
    assert round_half_up(15.18) == 15
    assert round_half_up(0.49) == 0


def test_progress_clamps_and_reports_state() -> None:
    progress = Progress(completed=0, total=40)
    assert progress.is_not_started
    advanced = progress.advance(25)
    assert advanced.is_in_progress
    assert advanced.remaining == 15
    assert advanced.percentage == pytest.approx(0.625)
    assert advanced.advance(100).is_complete
    assert advanced.advance(-100).completed == 0
    assert advanced.with_total(20).completed == 20
    assert advanced.reset().completed == 0
    assert str(advanced) == "Progress(25/40 = 62.5%)"


def test_progress_rejects_overflow() -> None:
    with pytest.raises(ValidationError):
        Progress(completed=5, total=4)
    with pytest.raises(ValidationError):
        Progress(completed=0, total=0)


def test_date_range_is_day_truncated_and_inclusive() -> None:
    period = DateRange(
        start=datetime(2026, 10, 19, 22, 30, tzinfo=timezone.utc),
        end=datetime(2026, 10, 28, 1, 0, tzinfo=timezone.utc),
    )
    assert period.start == date(2026, 10, 19)
    assert period.days_count == 10
    assert period.contains(date(2026, 10, 28))
    assert not period.contains(date(2026, 10, 29))
    assert period.remaining_days(date(2026, 10, 19)) == 10
    assert period.remaining_days(date(2026, 10, 30)) == 0
    assert period.elapsed_days(date(2026, 10, 18)) == 0
    assert period.elapsed_days(date(2026, 10, 23)) == 5
    assert period.progress_ratio(date(2026, 11, 5)) == 1.0


def test_date_range_rejects_reversed_bounds() -> None:
    with pytest.raises(ValidationError):
        DateRange(start=date(2026, 10, 20), end=date(2026, 10, 19))
