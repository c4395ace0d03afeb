"""Adaptive study scheduling: quotas, review rounds, daily tasks, and SM-2 reviews."""

from pydantic import ValidationError

from .clock import Clock, FixedClock, SystemClock
from .daily_allocator import (
    CompletionAttribution,
    DailyAllocator,
    PlanningOrchestrator,
    PlanningResult,
    allocate_daily_tasks,
)
from .metrics import DateRange, PerformanceMetrics, Progress, QualityLevel
from .quota_calculator import QuotaCalculator, QuotaResult, compute_quota
from .review_scheduler import ReviewScheduler, record_review
from .round_planner import DifficultyChunk, RoundPlanner, plan_rounds
from .study_plan import (
    DailyTask,
    PlanDifficulty,
    PlanStatus,
    ReviewItem,
    RoundTask,
    StudyPlan,
    StudySession,
    UnitRange,
)

__all__ = [
    "Clock",
    "CompletionAttribution",
    "DailyAllocator",
    "DailyTask",
    "DateRange",
    "DifficultyChunk",
    "FixedClock",
    "PerformanceMetrics",
    "PlanDifficulty",
    "PlanStatus",
    "PlanningOrchestrator",
    "PlanningResult",
    "Progress",
    "QualityLevel",
    "QuotaCalculator",
    "QuotaResult",
    "ReviewItem",
    "ReviewScheduler",
    "RoundPlanner",
    "RoundTask",
    "StudyPlan",
    "StudySession",
    "SystemClock",
    "UnitRange",
    "ValidationError",
    "allocate_daily_tasks",
    "compute_quota",
    "plan_rounds",
    "record_review",
]
