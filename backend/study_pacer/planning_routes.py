"""Stateless JSON endpoints over the planning engine contracts."""

from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from .clock import Clock, default_clock
from .config import get_settings
from .daily_allocator import CompletionAttribution, DailyAllocator, PlanningOrchestrator
from .quota_calculator import QuotaCalculator, QuotaResult
from .review_scheduler import ReviewScheduler
from .round_planner import RoundPlanner
from .study_plan import DailyTask, ReviewItem, RoundTask, StudyPlan, StudySession

router = APIRouter(tags=["planning"])
logger = logging.getLogger(__name__)


def get_clock() -> Clock:
    return default_clock()


class PlanSnapshotRequest(BaseModel):
    plan: StudyPlan
    sessions: List[StudySession] = Field(default_factory=list)


class DailyTasksRequest(PlanSnapshotRequest):
    round_tasks: Optional[List[RoundTask]] = None
    adjusted_time_per_unit_ms: Optional[int] = Field(default=None, ge=0)
    daily_quota: Optional[float] = Field(default=None, gt=0)
    attribution: Optional[CompletionAttribution] = None


class GeneratePlanRequest(PlanSnapshotRequest):
    daily_quota: Optional[float] = Field(default=None, gt=0)


class RecordReviewRequest(BaseModel):
    item: ReviewItem
    quality: int = Field(..., ge=0, le=5)


class QuotaPayload(BaseModel):
    adjusted_time_per_unit_ms: int
    provisional_deadline: date
    recommended_daily_quota: float
    remaining_units: int
    study_days_count: int


class DailyTasksPayload(BaseModel):
    plan_id: str
    daily_quota: float
    tasks: List[DailyTask]
    round_tasks: List[RoundTask] = Field(default_factory=list)


def _quota_payload(result: QuotaResult) -> QuotaPayload:
    return QuotaPayload.model_validate(result.model_dump())


def _round_planner() -> RoundPlanner:
    settings = get_settings()
    return RoundPlanner(chunk_size=settings.chunk_size, hard_threshold=settings.hard_threshold)


@router.post("/quota", response_model=QuotaPayload)
def quota(request: PlanSnapshotRequest, clock: Clock = Depends(get_clock)) -> QuotaPayload:
    result = QuotaCalculator(clock=clock).calculate(request.plan, request.sessions)
    return _quota_payload(result)


@router.post("/rounds", response_model=List[RoundTask])
def rounds(request: PlanSnapshotRequest) -> List[RoundTask]:
    return _round_planner().plan(request.plan, request.sessions)


@router.post("/daily-tasks", response_model=DailyTasksPayload)
def daily_tasks(request: DailyTasksRequest, clock: Clock = Depends(get_clock)) -> DailyTasksPayload:
    settings = get_settings()
    plan, sessions = request.plan, request.sessions
    round_tasks = request.round_tasks
    if round_tasks is None:
        round_tasks = _round_planner().plan(plan, sessions)
    adjusted = request.adjusted_time_per_unit_ms
    chosen_quota = request.daily_quota or plan.daily_quota
    if adjusted is None or chosen_quota is None:
        computed = QuotaCalculator(clock=clock).calculate(plan, sessions)
        logger.debug("Derived missing allocation inputs for plan %s from the quota calculator", plan.id)
        adjusted = computed.adjusted_time_per_unit_ms if adjusted is None else adjusted
        chosen_quota = chosen_quota or computed.recommended_daily_quota
    allocator = DailyAllocator(
        clock=clock,
        attribution=request.attribution or CompletionAttribution(settings.completion_attribution),
        fallback_window_days=settings.fallback_window_days,
        max_study_dates=settings.max_study_dates,
    )
    tasks = allocator.allocate(plan, sessions, round_tasks, adjusted, chosen_quota)
    return DailyTasksPayload(plan_id=plan.id, daily_quota=chosen_quota, tasks=tasks, round_tasks=round_tasks)


@router.post("/plans/generate", response_model=DailyTasksPayload)
def generate_plan(request: GeneratePlanRequest, clock: Clock = Depends(get_clock)) -> DailyTasksPayload:
    result = PlanningOrchestrator(clock=clock).generate_plan(
        request.plan,
        request.sessions,
        daily_quota_override=request.daily_quota,
    )
    return DailyTasksPayload(
        plan_id=result.plan_id,
        daily_quota=result.daily_quota,
        tasks=result.daily_tasks,
        round_tasks=result.round_tasks,
    )


@router.post("/reviews/record", response_model=ReviewItem)
def record_review(request: RecordReviewRequest, clock: Clock = Depends(get_clock)) -> ReviewItem:
    return ReviewScheduler(clock=clock).record_review(request.item, request.quality)


__all__ = ["get_clock", "router"]
