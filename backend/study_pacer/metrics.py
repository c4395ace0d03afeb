"""Performance, progress, and period value objects derived from study data."""

from __future__ import annotations

import math
from datetime import date
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .clock import DateLike, start_of_day

MAX_DIFFICULTY = 5
EXCELLENT_THRESHOLD = 0.85
GOOD_THRESHOLD = 0.65
FAIR_THRESHOLD = 0.40


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (builtin round is banker's)."""
    return int(math.floor(value + 0.5))


class QualityLevel(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


def legacy_performance_factor(difficulty: float, concentration: float) -> float:
    """Pacing factor carried over from the first scheduler generation.

    Rewards *easier* sessions studied with higher concentration. It feeds the
    quota calculator only and must not be confused with
    :attr:`PerformanceMetrics.performance_factor`, which grows with difficulty.
    """
    return (6 - difficulty) * concentration


class PerformanceMetrics(BaseModel):
    """Quality signal derived from a single session (or an aggregate of sessions)."""

    model_config = ConfigDict(frozen=True)

    concentration: float = Field(ge=0.0, le=1.0)
    difficulty: int = Field(ge=1, le=MAX_DIFFICULTY)
    duration_minutes: float = Field(ge=0.0)
    units_completed: int = Field(ge=0)

    @property
    def performance_factor(self) -> float:
        raw = self.concentration * self.difficulty / MAX_DIFFICULTY
        return max(0.0, min(1.0, raw))

    @property
    def average_time_per_unit(self) -> float:
        """Minutes spent per completed unit."""
        if self.units_completed <= 0:
            return 0.0
        return self.duration_minutes / self.units_completed

    @property
    def efficiency_score(self) -> float:
        if self.duration_minutes == 0:
            return 0.0
        units_per_hour = self.units_completed / self.duration_minutes * 60
        return self.performance_factor * units_per_hour

    @property
    def quality_level(self) -> QualityLevel:
        factor = self.performance_factor
        if factor >= EXCELLENT_THRESHOLD:
            return QualityLevel.EXCELLENT
        if factor >= GOOD_THRESHOLD:
            return QualityLevel.GOOD
        if factor >= FAIR_THRESHOLD:
            return QualityLevel.FAIR
        return QualityLevel.POOR


class Progress(BaseModel):
    model_config = ConfigDict(frozen=True)

    completed: int = Field(ge=0)
    total: int = Field(gt=0)

    @model_validator(mode="after")
    def _check_bounds(self) -> "Progress":
        if self.completed > self.total:
            raise ValueError("completed cannot exceed total")
        return self

    @property
    def percentage(self) -> float:
        return self.completed / self.total

    @property
    def remaining(self) -> int:
        return self.total - self.completed

    @property
    def is_complete(self) -> bool:
        return self.completed >= self.total

    @property
    def is_not_started(self) -> bool:
        return self.completed == 0

    @property
    def is_in_progress(self) -> bool:
        return 0 < self.completed < self.total

    def advance(self, amount: int) -> "Progress":
        completed = max(0, min(self.total, self.completed + amount))
        return Progress(completed=completed, total=self.total)

    def reset(self) -> "Progress":
        return Progress(completed=0, total=self.total)

    def with_total(self, total: int) -> "Progress":
        return Progress(completed=max(0, min(total, self.completed)), total=total)

    def __str__(self) -> str:
        return f"Progress({self.completed}/{self.total} = {self.percentage * 100:.1f}%)"


class DateRange(BaseModel):
    """Inclusive, day-truncated calendar period."""

    model_config = ConfigDict(frozen=True)

    start: date
    end: date

    @model_validator(mode="before")
    @classmethod
    def _truncate(cls, data):
        if isinstance(data, dict):
            data = dict(data)
            for key in ("start", "end"):
                if key in data and data[key] is not None:
                    data[key] = start_of_day(data[key])
        return data

    @model_validator(mode="after")
    def _check_order(self) -> "DateRange":
        if self.start > self.end:
            raise ValueError("start must be on or before end")
        return self

    @property
    def days_count(self) -> int:
        return (self.end - self.start).days + 1

    def contains(self, day: DateLike) -> bool:
        return self.start <= start_of_day(day) <= self.end

    def remaining_days(self, today: DateLike) -> int:
        current = start_of_day(today)
        if current > self.end:
            return 0
        return (self.end - current).days + 1

    def elapsed_days(self, today: DateLike) -> int:
        current = start_of_day(today)
        if current < self.start:
            return 0
        if current > self.end:
            return self.days_count
        return (current - self.start).days + 1

    def progress_ratio(self, today: DateLike) -> float:
        return self.elapsed_days(today) / self.days_count


__all__ = [
    "DateRange",
    "EXCELLENT_THRESHOLD",
    "FAIR_THRESHOLD",
    "GOOD_THRESHOLD",
    "MAX_DIFFICULTY",
    "PerformanceMetrics",
    "Progress",
    "QualityLevel",
    "legacy_performance_factor",
    "round_half_up",
]
