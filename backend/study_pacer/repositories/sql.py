"""SQLAlchemy-backed repositories over the study pacer ORM models."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import List, Optional, Tuple

from sqlalchemy import delete, select

from ..clock import Clock, DateLike, default_clock, ensure_aware, start_of_day
from ..db.models import ReviewItemModel, StudyPlanModel, StudySessionModel
from ..db.session import session_scope
from ..study_plan import PlanStatus, ReviewItem, StudyPlan, StudySession, UnitRange


def _to_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    return ensure_aware(value).astimezone(timezone.utc)


def _day_bounds(start: DateLike, end: DateLike) -> Tuple[datetime, datetime]:
    """Half-open UTC interval covering every instant of the inclusive day range."""
    first: date = start_of_day(start)
    last: date = start_of_day(end)
    lower = datetime.combine(first, time.min, tzinfo=timezone.utc)
    upper = datetime.combine(last + timedelta(days=1), time.min, tzinfo=timezone.utc)
    return lower, upper


class SqlStudyPlanRepository:
    def create(self, plan: StudyPlan) -> StudyPlan:
        with session_scope() as session:
            model = StudyPlanModel(id=plan.id)
            self._apply(model, plan)
            session.add(model)
            session.flush()
            return self._to_domain(model)

    def update(self, plan: StudyPlan) -> StudyPlan:
        with session_scope() as session:
            model = session.get(StudyPlanModel, plan.id)
            if model is None:
                raise LookupError(f"Study plan '{plan.id}' was not found.")
            self._apply(model, plan)
            session.flush()
            return self._to_domain(model)

    def find_by_id(self, plan_id: str) -> Optional[StudyPlan]:
        with session_scope(commit=False) as session:
            model = session.get(StudyPlanModel, plan_id)
            return self._to_domain(model) if model else None

    def find_by_user_id(self, user_id: str) -> List[StudyPlan]:
        stmt = (
            select(StudyPlanModel)
            .where(StudyPlanModel.user_id == user_id)
            .order_by(StudyPlanModel.created_at.desc())
        )
        return self._query(stmt)

    def find_active_by_user_id(self, user_id: str) -> List[StudyPlan]:
        stmt = (
            select(StudyPlanModel)
            .where(
                StudyPlanModel.user_id == user_id,
                StudyPlanModel.status == PlanStatus.ACTIVE.value,
            )
            .order_by(StudyPlanModel.created_at.desc())
        )
        return self._query(stmt)

    def delete(self, plan_id: str) -> None:
        with session_scope() as session:
            session.execute(delete(StudyPlanModel).where(StudyPlanModel.id == plan_id))

    def _query(self, stmt) -> List[StudyPlan]:
        with session_scope(commit=False) as session:
            return [self._to_domain(model) for model in session.execute(stmt).scalars().all()]

    @staticmethod
    def _apply(model: StudyPlanModel, plan: StudyPlan) -> None:
        model.user_id = plan.user_id
        model.title = plan.title
        model.total_units = plan.total_units
        model.unit_label = plan.unit_label
        model.range_start = plan.unit_range.start if plan.unit_range else None
        model.range_end = plan.unit_range.end if plan.unit_range else None
        model.created_at = _to_utc(plan.created_at)
        model.deadline = _to_utc(plan.deadline)
        model.dynamic_deadline = _to_utc(plan.dynamic_deadline)
        model.rounds = plan.rounds
        model.target_rounds = plan.target_rounds
        model.estimated_time_per_unit_ms = plan.estimated_time_per_unit_ms
        model.difficulty = plan.difficulty.value
        model.study_days = sorted(plan.study_days)
        model.status = plan.status.value
        model.daily_quota = plan.daily_quota

    @staticmethod
    def _to_domain(model: StudyPlanModel) -> StudyPlan:
        unit_range = None
        if model.range_start is not None and model.range_end is not None:
            unit_range = UnitRange(start=model.range_start, end=model.range_end)
        return StudyPlan(
            id=model.id,
            user_id=model.user_id,
            title=model.title,
            total_units=model.total_units,
            unit_label=model.unit_label,
            unit_range=unit_range,
            created_at=_to_utc(model.created_at),
            deadline=_to_utc(model.deadline),
            dynamic_deadline=_to_utc(model.dynamic_deadline),
            rounds=model.rounds,
            target_rounds=model.target_rounds,
            estimated_time_per_unit_ms=model.estimated_time_per_unit_ms,
            difficulty=model.difficulty,
            study_days=frozenset(model.study_days or []),
            status=model.status,
            daily_quota=model.daily_quota,
        )


class SqlStudySessionRepository:
    def create(self, study_session: StudySession) -> StudySession:
        with session_scope() as session:
            model = StudySessionModel(id=study_session.id)
            self._apply(model, study_session)
            session.add(model)
            session.flush()
            return self._to_domain(model)

    def update(self, study_session: StudySession) -> StudySession:
        with session_scope() as session:
            model = session.get(StudySessionModel, study_session.id)
            if model is None:
                raise LookupError(f"Study session '{study_session.id}' was not found.")
            self._apply(model, study_session)
            session.flush()
            return self._to_domain(model)

    def find_by_id(self, session_id: str) -> Optional[StudySession]:
        with session_scope(commit=False) as session:
            model = session.get(StudySessionModel, session_id)
            return self._to_domain(model) if model else None

    def find_by_plan_id(self, plan_id: str) -> List[StudySession]:
        stmt = (
            select(StudySessionModel)
            .where(StudySessionModel.plan_id == plan_id)
            .order_by(StudySessionModel.studied_at.desc())
        )
        return self._query(stmt)

    def find_by_plan_id_until_yesterday(
        self,
        plan_id: str,
        clock: Optional[Clock] = None,
    ) -> List[StudySession]:
        today = (clock or default_clock()).today()
        midnight = datetime.combine(today, time.min, tzinfo=timezone.utc)
        stmt = (
            select(StudySessionModel)
            .where(
                StudySessionModel.plan_id == plan_id,
                StudySessionModel.studied_at < midnight,
            )
            .order_by(StudySessionModel.studied_at.desc())
        )
        return self._query(stmt)

    def find_by_user_id_and_date_range(
        self,
        user_id: str,
        start: DateLike,
        end: DateLike,
    ) -> List[StudySession]:
        lower, upper = _day_bounds(start, end)
        stmt = (
            select(StudySessionModel)
            .where(
                StudySessionModel.user_id == user_id,
                StudySessionModel.studied_at >= lower,
                StudySessionModel.studied_at < upper,
            )
            .order_by(StudySessionModel.studied_at.desc())
        )
        return self._query(stmt)

    def delete(self, session_id: str) -> None:
        with session_scope() as session:
            session.execute(delete(StudySessionModel).where(StudySessionModel.id == session_id))

    def _query(self, stmt) -> List[StudySession]:
        with session_scope(commit=False) as session:
            return [self._to_domain(model) for model in session.execute(stmt).scalars().all()]

    @staticmethod
    def _apply(model: StudySessionModel, study_session: StudySession) -> None:
        model.user_id = study_session.user_id
        model.plan_id = study_session.plan_id
        model.studied_at = _to_utc(study_session.studied_at)
        model.round = study_session.round
        model.duration_minutes = study_session.duration_minutes
        model.concentration = study_session.concentration
        model.difficulty = study_session.difficulty
        model.units_completed = study_session.units_completed
        model.start_unit = study_session.start_unit
        model.end_unit = study_session.end_unit

    @staticmethod
    def _to_domain(model: StudySessionModel) -> StudySession:
        return StudySession(
            id=model.id,
            user_id=model.user_id,
            plan_id=model.plan_id,
            studied_at=_to_utc(model.studied_at),
            round=model.round,
            duration_minutes=model.duration_minutes,
            concentration=model.concentration,
            difficulty=model.difficulty,
            units_completed=model.units_completed,
            start_unit=model.start_unit,
            end_unit=model.end_unit,
        )


class SqlReviewItemRepository:
    def create(self, item: ReviewItem) -> ReviewItem:
        with session_scope() as session:
            model = ReviewItemModel(id=item.id)
            self._apply(model, item)
            session.add(model)
            session.flush()
            return self._to_domain(model)

    def update(self, item: ReviewItem) -> ReviewItem:
        with session_scope() as session:
            model = session.get(ReviewItemModel, item.id)
            if model is None:
                raise LookupError(f"Review item '{item.id}' was not found.")
            self._apply(model, item)
            session.flush()
            return self._to_domain(model)

    def find_by_id(self, item_id: str) -> Optional[ReviewItem]:
        with session_scope(commit=False) as session:
            model = session.get(ReviewItemModel, item_id)
            return self._to_domain(model) if model else None

    def find_by_plan_id(self, plan_id: str) -> List[ReviewItem]:
        stmt = (
            select(ReviewItemModel)
            .where(ReviewItemModel.plan_id == plan_id)
            .order_by(ReviewItemModel.next_review_date.asc())
        )
        return self._query(stmt)

    def find_due_today(self, user_id: str, clock: Optional[Clock] = None) -> List[ReviewItem]:
        today = (clock or default_clock()).today()
        _, upper = _day_bounds(today, today)
        stmt = (
            select(ReviewItemModel)
            .where(
                ReviewItemModel.user_id == user_id,
                ReviewItemModel.next_review_date < upper,
            )
            .order_by(ReviewItemModel.next_review_date.asc())
        )
        return self._query(stmt)

    def find_by_user_id_and_date_range(
        self,
        user_id: str,
        start: DateLike,
        end: DateLike,
    ) -> List[ReviewItem]:
        lower, upper = _day_bounds(start, end)
        stmt = (
            select(ReviewItemModel)
            .where(
                ReviewItemModel.user_id == user_id,
                ReviewItemModel.next_review_date >= lower,
                ReviewItemModel.next_review_date < upper,
            )
            .order_by(ReviewItemModel.next_review_date.asc())
        )
        return self._query(stmt)

    def delete(self, item_id: str) -> None:
        with session_scope() as session:
            session.execute(delete(ReviewItemModel).where(ReviewItemModel.id == item_id))

    def delete_by_plan_id(self, plan_id: str) -> None:
        with session_scope() as session:
            session.execute(delete(ReviewItemModel).where(ReviewItemModel.plan_id == plan_id))

    def _query(self, stmt) -> List[ReviewItem]:
        with session_scope(commit=False) as session:
            return [self._to_domain(model) for model in session.execute(stmt).scalars().all()]

    @staticmethod
    def _apply(model: ReviewItemModel, item: ReviewItem) -> None:
        model.user_id = item.user_id
        model.plan_id = item.plan_id
        model.unit_number = item.unit_number
        model.last_review_date = _to_utc(item.last_review_date)
        model.next_review_date = _to_utc(item.next_review_date)
        model.ease_factor = item.ease_factor
        model.repetitions = item.repetitions
        model.interval_days = item.interval_days

    @staticmethod
    def _to_domain(model: ReviewItemModel) -> ReviewItem:
        return ReviewItem(
            id=model.id,
            user_id=model.user_id,
            plan_id=model.plan_id,
            unit_number=model.unit_number,
            last_review_date=_to_utc(model.last_review_date),
            next_review_date=_to_utc(model.next_review_date),
            ease_factor=model.ease_factor,
            repetitions=model.repetitions,
            interval_days=model.interval_days,
        )


__all__ = [
    "SqlReviewItemRepository",
    "SqlStudyPlanRepository",
    "SqlStudySessionRepository",
]
