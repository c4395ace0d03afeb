"""Automatic plan status transitions driven by today's tasks and sessions."""

from __future__ import annotations

from typing import Optional, Sequence

from .clock import Clock, default_clock
from .study_plan import DailyTask, StudyPlan, StudySession


class StatusManagementService:
    def __init__(self, *, clock: Optional[Clock] = None) -> None:
        self._clock = clock or default_clock()

    def update_status(
        self,
        plan: StudyPlan,
        todays_tasks: Sequence[DailyTask],
        todays_sessions: Sequence[StudySession],
        all_rounds_complete: bool,
    ) -> StudyPlan:
        """Return the plan with its next status.

        Completed plans never change. Finishing every round completes the plan,
        a plan completed for today becomes active again once a future task is
        known, and an active plan is completed for today when today's sessions
        cover the units of today's tasks.
        """
        if plan.is_completed:
            return plan
        if all_rounds_complete:
            return plan.complete()

        if plan.is_completed_today:
            if any(task.is_future(self._clock) for task in todays_tasks):
                return plan.reset_today_completion()
            return plan

        due_today = [task for task in todays_tasks if task.is_today(self._clock)]
        if due_today:
            required = sum(task.units for task in due_today)
            done = sum(session.units_completed for session in todays_sessions)
            if done >= required:
                return plan.complete_today()
        return plan

    def can_study(self, plan: StudyPlan) -> bool:
        return not (plan.is_paused or plan.is_completed or plan.is_overdue(self._clock))

    def status_message(self, plan: StudyPlan) -> str:
        if plan.is_completed:
            return "Plan completed"
        if plan.is_completed_today:
            return "Today's tasks completed"
        if plan.is_paused:
            return "Paused"
        if plan.is_overdue(self._clock):
            return "Overdue"
        if plan.is_active:
            return "Studying"
        return "Unknown"


__all__ = ["StatusManagementService"]
