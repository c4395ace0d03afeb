"""ORM models backing the reference SQL repositories."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Float, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import JSON

from .base import Base, TimestampMixin

JSONType = JSON


class StudyPlanModel(TimestampMixin, Base):
    __tablename__ = "study_plans"
    __table_args__ = (Index("ix_study_plans_user_created", "user_id", "created_at"),)

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), default="", nullable=False)
    title: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    total_units: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_label: Mapped[str] = mapped_column(String(32), default="unit", nullable=False)
    range_start: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    range_end: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    deadline: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    dynamic_deadline: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    rounds: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    target_rounds: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    estimated_time_per_unit_ms: Mapped[int] = mapped_column(Integer, nullable=False)
    difficulty: Mapped[str] = mapped_column(String(16), default="normal", nullable=False)
    study_days: Mapped[list[int]] = mapped_column(JSONType, default=list, nullable=False)
    status: Mapped[str] = mapped_column(String(32), default="active", nullable=False)
    daily_quota: Mapped[Optional[float]] = mapped_column(Float, nullable=True)


class StudySessionModel(TimestampMixin, Base):
    __tablename__ = "study_sessions"
    __table_args__ = (
        Index("ix_study_sessions_plan_studied", "plan_id", "studied_at"),
        Index("ix_study_sessions_user_studied", "user_id", "studied_at"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), default="", nullable=False)
    plan_id: Mapped[str] = mapped_column(String(64), nullable=False)
    studied_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    round: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    duration_minutes: Mapped[float] = mapped_column(Float, nullable=False)
    concentration: Mapped[float] = mapped_column(Float, nullable=False)
    difficulty: Mapped[int] = mapped_column(Integer, nullable=False)
    units_completed: Mapped[int] = mapped_column(Integer, nullable=False)
    start_unit: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    end_unit: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)


class ReviewItemModel(TimestampMixin, Base):
    __tablename__ = "review_items"
    __table_args__ = (
        Index("ix_review_items_user_next", "user_id", "next_review_date"),
        Index("ix_review_items_plan", "plan_id"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), default="", nullable=False)
    plan_id: Mapped[str] = mapped_column(String(64), default="", nullable=False)
    unit_number: Mapped[int] = mapped_column(Integer, nullable=False)
    last_review_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    next_review_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    ease_factor: Mapped[float] = mapped_column(Float, nullable=False)
    repetitions: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    interval_days: Mapped[int] = mapped_column(Integer, default=1, nullable=False)


__all__ = [
    "ReviewItemModel",
    "StudyPlanModel",
    "StudySessionModel",
]
