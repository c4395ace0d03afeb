"""Process-local repositories for tests, demos, and single-process hosts."""

from __future__ import annotations

from threading import RLock
from typing import Dict, List, Optional

from ..clock import Clock, DateLike, default_clock, start_of_day
from ..study_plan import PlanStatus, ReviewItem, StudyPlan, StudySession


class _InMemoryStore:
    _kind = "record"

    def __init__(self) -> None:
        self._lock = RLock()
        self._records: Dict[str, object] = {}

    def _put(self, record_id: str, record):
        with self._lock:
            self._records[record_id] = record
        return record

    def _replace(self, record_id: str, record) -> None:
        with self._lock:
            if record_id not in self._records:
                raise LookupError(f"{self._kind} '{record_id}' was not found.")
            self._records[record_id] = record

    def _values(self) -> List:
        with self._lock:
            return list(self._records.values())

    def find_by_id(self, record_id: str):
        with self._lock:
            return self._records.get(record_id)

    def delete(self, record_id: str) -> None:
        with self._lock:
            self._records.pop(record_id, None)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()


class InMemoryStudyPlanRepository(_InMemoryStore):
    _kind = "Study plan"

    def create(self, plan: StudyPlan) -> StudyPlan:
        return self._put(plan.id, plan)

    def update(self, plan: StudyPlan) -> StudyPlan:
        self._replace(plan.id, plan)
        return plan

    def find_by_user_id(self, user_id: str) -> List[StudyPlan]:
        plans = [plan for plan in self._values() if plan.user_id == user_id]
        return sorted(plans, key=lambda plan: plan.created_at, reverse=True)

    def find_active_by_user_id(self, user_id: str) -> List[StudyPlan]:
        return [plan for plan in self.find_by_user_id(user_id) if plan.status == PlanStatus.ACTIVE]


class InMemoryStudySessionRepository(_InMemoryStore):
    _kind = "Study session"

    def create(self, session: StudySession) -> StudySession:
        return self._put(session.id, session)

    def update(self, session: StudySession) -> StudySession:
        self._replace(session.id, session)
        return session

    def find_by_plan_id(self, plan_id: str) -> List[StudySession]:
        sessions = [session for session in self._values() if session.plan_id == plan_id]
        return sorted(sessions, key=lambda session: session.studied_at, reverse=True)

    def find_by_plan_id_until_yesterday(
        self,
        plan_id: str,
        clock: Optional[Clock] = None,
    ) -> List[StudySession]:
        today = (clock or default_clock()).today()
        return [
            session
            for session in self.find_by_plan_id(plan_id)
            if start_of_day(session.studied_at) < today
        ]

    def find_by_user_id_and_date_range(
        self,
        user_id: str,
        start: DateLike,
        end: DateLike,
    ) -> List[StudySession]:
        first, last = start_of_day(start), start_of_day(end)
        sessions = [
            session
            for session in self._values()
            if session.user_id == user_id and first <= start_of_day(session.studied_at) <= last
        ]
        return sorted(sessions, key=lambda session: session.studied_at, reverse=True)


class InMemoryReviewItemRepository(_InMemoryStore):
    _kind = "Review item"

    def create(self, item: ReviewItem) -> ReviewItem:
        return self._put(item.id, item)

    def update(self, item: ReviewItem) -> ReviewItem:
        self._replace(item.id, item)
        return item

    def find_by_plan_id(self, plan_id: str) -> List[ReviewItem]:
        items = [item for item in self._values() if item.plan_id == plan_id]
        return sorted(items, key=lambda item: item.next_review_date)

    def find_due_today(self, user_id: str, clock: Optional[Clock] = None) -> List[ReviewItem]:
        clock = clock or default_clock()
        items = [
            item for item in self._values() if item.user_id == user_id and item.is_due_today(clock)
        ]
        return sorted(items, key=lambda item: item.next_review_date)

    def find_by_user_id_and_date_range(
        self,
        user_id: str,
        start: DateLike,
        end: DateLike,
    ) -> List[ReviewItem]:
        first, last = start_of_day(start), start_of_day(end)
        items = [
            item
            for item in self._values()
            if item.user_id == user_id and first <= start_of_day(item.next_review_date) <= last
        ]
        return sorted(items, key=lambda item: item.next_review_date)

    def delete_by_plan_id(self, plan_id: str) -> None:
        with self._lock:
            for item_id in [key for key, item in self._records.items() if item.plan_id == plan_id]:
                del self._records[item_id]


__all__ = [
    "InMemoryReviewItemRepository",
    "InMemoryStudyPlanRepository",
    "InMemoryStudySessionRepository",
]
