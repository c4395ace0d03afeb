"""Study plan, session, review, and task models."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from enum import Enum
from typing import TYPE_CHECKING, Any, FrozenSet, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .clock import Clock, default_clock, ensure_aware, iso_weekday, start_of_day
from .metrics import DateRange, PerformanceMetrics, QualityLevel

if TYPE_CHECKING:
    from .review_scheduler import ReviewScheduler

DEFAULT_STUDY_DAYS: FrozenSet[int] = frozenset({1, 2, 3, 4, 5})
DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3


class PlanStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    COMPLETED_TODAY = "completed_today"


class PlanDifficulty(str, Enum):
    EASY = "easy"
    NORMAL = "normal"
    HARD = "hard"


class _FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True)

    def _replace(self, **changes: Any):
        """Return a re-validated copy; ``model_copy`` would skip validation."""
        data = self.model_dump()
        data.update(changes)
        return type(self).model_validate(data)


class UnitRange(_FrozenModel):
    """Inclusive, 1-based span of unit numbers."""

    start: int = Field(ge=1)
    end: int = Field(ge=1)

    @model_validator(mode="after")
    def _check_order(self) -> "UnitRange":
        if self.end < self.start:
            raise ValueError("unit range end must not precede its start")
        return self

    @property
    def units(self) -> int:
        return self.end - self.start + 1


class StudyPlan(_FrozenModel):
    """Curriculum contract: which units, by when, and on which weekdays."""

    id: str
    user_id: str = ""
    title: str = ""
    total_units: int = Field(gt=0)
    unit_label: str = "unit"
    unit_range: Optional[UnitRange] = None
    created_at: datetime
    deadline: datetime
    dynamic_deadline: Optional[datetime] = None
    rounds: int = Field(default=1, ge=1)
    target_rounds: int = Field(default=1, ge=1)
    estimated_time_per_unit_ms: int = Field(ge=0)
    difficulty: PlanDifficulty = PlanDifficulty.NORMAL
    study_days: FrozenSet[int] = Field(default=DEFAULT_STUDY_DAYS, min_length=1)
    status: PlanStatus = PlanStatus.ACTIVE
    daily_quota: Optional[float] = Field(default=None, gt=0)

    @field_validator("created_at", "deadline", "dynamic_deadline")
    @classmethod
    def _attach_timezone(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_aware(value) if value is not None else None

    @field_validator("study_days")
    @classmethod
    def _check_weekdays(cls, value: FrozenSet[int]) -> FrozenSet[int]:
        invalid = sorted(day for day in value if day < 1 or day > 7)
        if invalid:
            raise ValueError(f"study days must be weekday codes 1..7, got {invalid}")
        return value

    @model_validator(mode="after")
    def _check_plan(self) -> "StudyPlan":
        if start_of_day(self.created_at) > start_of_day(self.deadline):
            raise ValueError("deadline must not precede the plan creation date")
        if self.unit_range is not None and self.unit_range.end > self.total_units:
            raise ValueError("unit range must lie within the curriculum")
        return self

    @property
    def effective_rounds(self) -> int:
        return max(self.rounds, self.target_rounds)

    @property
    def range_start(self) -> int:
        return self.unit_range.start if self.unit_range else 1

    @property
    def range_end(self) -> int:
        return self.unit_range.end if self.unit_range else self.total_units

    @property
    def range_total(self) -> int:
        return self.range_end - self.range_start + 1

    @property
    def target_units(self) -> int:
        return self.range_total * self.effective_rounds

    @property
    def effective_deadline(self) -> date:
        return start_of_day(self.dynamic_deadline or self.deadline)

    @property
    def period(self) -> DateRange:
        return DateRange(start=self.created_at, end=self.deadline)

    @property
    def is_active(self) -> bool:
        return self.status == PlanStatus.ACTIVE

    @property
    def is_paused(self) -> bool:
        return self.status == PlanStatus.PAUSED

    @property
    def is_completed(self) -> bool:
        return self.status == PlanStatus.COMPLETED

    @property
    def is_completed_today(self) -> bool:
        return self.status == PlanStatus.COMPLETED_TODAY

    def is_study_day(self, weekday: int) -> bool:
        return weekday in self.study_days

    def is_today_study_day(self, clock: Optional[Clock] = None) -> bool:
        return self.is_study_day(iso_weekday((clock or default_clock()).today()))

    def is_overdue(self, clock: Optional[Clock] = None) -> bool:
        return (clock or default_clock()).today() > start_of_day(self.deadline)

    def remaining_days(self, clock: Optional[Clock] = None) -> int:
        return self.period.remaining_days((clock or default_clock()).today())

    def elapsed_days(self, clock: Optional[Clock] = None) -> int:
        return self.period.elapsed_days((clock or default_clock()).today())

    def time_progress_ratio(self, clock: Optional[Clock] = None) -> float:
        return self.period.progress_ratio((clock or default_clock()).today())

    def pause(self) -> "StudyPlan":
        return self._replace(status=PlanStatus.PAUSED)

    def resume(self) -> "StudyPlan":
        return self._replace(status=PlanStatus.ACTIVE)

    def complete(self) -> "StudyPlan":
        return self._replace(status=PlanStatus.COMPLETED)

    def complete_today(self) -> "StudyPlan":
        return self._replace(status=PlanStatus.COMPLETED_TODAY)

    def reset_today_completion(self) -> "StudyPlan":
        if self.status != PlanStatus.COMPLETED_TODAY:
            return self
        return self._replace(status=PlanStatus.ACTIVE)

    def update_dynamic_deadline(self, deadline: datetime) -> "StudyPlan":
        return self._replace(dynamic_deadline=deadline)

    def update_daily_quota(self, quota: float) -> "StudyPlan":
        return self._replace(daily_quota=quota)

    def increment_rounds(self) -> "StudyPlan":
        return self._replace(target_rounds=self.target_rounds + 1)


class StudySession(_FrozenModel):
    """One completed interval of work against a plan.

    When ``start_unit``/``end_unit`` are supplied the range is authoritative and
    ``units_completed`` is recomputed from it.
    """

    id: str
    user_id: str = ""
    plan_id: str
    studied_at: datetime
    round: int = Field(default=1, ge=1)
    duration_minutes: float = Field(ge=0.0)
    concentration: float = Field(ge=0.0, le=1.0)
    difficulty: int = Field(ge=1, le=5)
    units_completed: int = 0
    start_unit: Optional[int] = None
    end_unit: Optional[int] = None

    @field_validator("studied_at")
    @classmethod
    def _attach_timezone(cls, value: datetime) -> datetime:
        return ensure_aware(value)

    @model_validator(mode="before")
    @classmethod
    def _normalize_range(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        start, end = data.get("start_unit"), data.get("end_unit")
        if (start is None) != (end is None):
            raise ValueError("start_unit and end_unit must be supplied together")
        if start is not None and end is not None:
            data = dict(data)
            data["units_completed"] = max(0, int(end) - int(start) + 1)
        return data

    @model_validator(mode="after")
    def _check_session(self) -> "StudySession":
        if self.units_completed <= 0:
            raise ValueError("a session must complete at least one unit")
        if self.start_unit is not None and self.end_unit is not None:
            if self.start_unit < 1:
                raise ValueError("start_unit must be 1 or greater")
            if self.end_unit - self.start_unit + 1 != self.units_completed:
                raise ValueError("units_completed must match the unit range length")
        return self

    @property
    def has_unit_range(self) -> bool:
        return self.start_unit is not None and self.end_unit is not None

    @property
    def performance_metrics(self) -> PerformanceMetrics:
        return PerformanceMetrics(
            concentration=self.concentration,
            difficulty=self.difficulty,
            duration_minutes=self.duration_minutes,
            units_completed=self.units_completed,
        )

    @property
    def average_time_per_unit(self) -> float:
        return self.performance_metrics.average_time_per_unit

    @property
    def performance_factor(self) -> float:
        return self.performance_metrics.performance_factor

    @property
    def efficiency_score(self) -> float:
        return self.performance_metrics.efficiency_score

    @property
    def quality_level(self) -> QualityLevel:
        return self.performance_metrics.quality_level

    @property
    def is_high_quality(self) -> bool:
        return self.quality_level in (QualityLevel.EXCELLENT, QualityLevel.GOOD)

    @property
    def needs_improvement(self) -> bool:
        return self.quality_level == QualityLevel.POOR


class ReviewItem(_FrozenModel):
    """Spaced-repetition state for one unit."""

    id: str
    user_id: str = ""
    plan_id: str = ""
    unit_number: int = Field(ge=1)
    last_review_date: datetime
    next_review_date: datetime
    ease_factor: float = Field(default=DEFAULT_EASE_FACTOR, ge=MIN_EASE_FACTOR)
    repetitions: int = Field(default=0, ge=0)
    interval_days: int = Field(default=1, ge=0)

    @field_validator("last_review_date", "next_review_date")
    @classmethod
    def _attach_timezone(cls, value: datetime) -> datetime:
        return ensure_aware(value)

    def days_until_next_review(self, clock: Optional[Clock] = None) -> int:
        today = (clock or default_clock()).today()
        return (start_of_day(self.next_review_date) - today).days

    def is_overdue(self, clock: Optional[Clock] = None) -> bool:
        return (clock or default_clock()).today() > start_of_day(self.next_review_date)

    def is_due_today(self, clock: Optional[Clock] = None) -> bool:
        return start_of_day(self.next_review_date) <= (clock or default_clock()).today()

    def record_review(self, quality: int, clock: Optional[Clock] = None) -> "ReviewItem":
        return _scheduler(clock).record_review(self, quality)

    def reset(self, clock: Optional[Clock] = None) -> "ReviewItem":
        now = (clock or default_clock()).now()
        return self._replace(
            last_review_date=now,
            next_review_date=now + timedelta(days=1),
            ease_factor=DEFAULT_EASE_FACTOR,
            repetitions=0,
            interval_days=1,
        )


def _scheduler(clock: Optional[Clock]) -> "ReviewScheduler":
    from .review_scheduler import ReviewScheduler

    return ReviewScheduler(clock=clock)


class RoundTask(_FrozenModel):
    """A span of units to work through during one round."""

    round: int = Field(ge=1)
    start_unit: int = Field(ge=1)
    end_unit: int = Field(ge=1)
    units: int = Field(gt=0)
    advice: Optional[str] = None

    @model_validator(mode="after")
    def _check_span(self) -> "RoundTask":
        if self.end_unit - self.start_unit + 1 != self.units:
            raise ValueError("units must equal the length of the round task span")
        return self

    def shifted(self, offset: int) -> "RoundTask":
        if offset == 0:
            return self
        return self._replace(start_unit=self.start_unit + offset, end_unit=self.end_unit + offset)


class DailyTask(_FrozenModel):
    """Engine output: the contiguous units scheduled for one study day."""

    id: str
    plan_id: str
    scheduled_for: date
    start_unit: int = Field(ge=1)
    end_unit: int = Field(ge=1)
    units: int = Field(gt=0)
    estimated_duration_ms: int = Field(ge=0)
    round: int = Field(default=1, ge=1)
    advice: Optional[str] = None

    @model_validator(mode="after")
    def _check_span(self) -> "DailyTask":
        if self.end_unit - self.start_unit + 1 != self.units:
            raise ValueError("units must equal the length of the task span")
        return self

    @property
    def estimated_minutes(self) -> int:
        return self.estimated_duration_ms // 60_000

    @property
    def estimated_hours(self) -> float:
        return self.estimated_minutes / 60.0

    def generate_title(self, plan_title: str) -> str:
        if self.round > 1:
            return f"{plan_title} (R{self.round}) U{self.start_unit}-{self.end_unit}"
        return f"{plan_title} U{self.start_unit}-{self.end_unit}"

    def is_today(self, clock: Optional[Clock] = None) -> bool:
        return self.scheduled_for == (clock or default_clock()).today()

    def is_past(self, clock: Optional[Clock] = None) -> bool:
        return self.scheduled_for < (clock or default_clock()).today()

    def is_future(self, clock: Optional[Clock] = None) -> bool:
        return self.scheduled_for > (clock or default_clock()).today()


__all__ = [
    "DEFAULT_EASE_FACTOR",
    "DEFAULT_STUDY_DAYS",
    "DailyTask",
    "MIN_EASE_FACTOR",
    "PlanDifficulty",
    "PlanStatus",
    "ReviewItem",
    "RoundTask",
    "StudyPlan",
    "StudySession",
    "UnitRange",
]
