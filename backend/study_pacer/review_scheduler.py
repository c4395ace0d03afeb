"""SM-2 review scheduling for individual units."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Annotated, Iterable, List, Optional

from pydantic import Field, TypeAdapter

from .clock import Clock, default_clock
from .metrics import round_half_up
from .study_plan import MIN_EASE_FACTOR, ReviewItem
from .telemetry import emit_event

logger = logging.getLogger(__name__)

PASSING_QUALITY = 3
LEGACY_REVIEW_GAP_DAYS = 7
FIRST_INTERVAL_DAYS = 1
SECOND_INTERVAL_DAYS = 6
HIGH_QUALITY_EASE_NUDGE = 0.01

_QUALITY = TypeAdapter(Annotated[int, Field(ge=0, le=5)])


def ease_delta(quality: int) -> float:
    """SM-2 ease factor adjustment for a passing answer."""
    delta = 0.1 - (5 - quality) * (0.08 + (5 - quality) * 0.02)
    # quality 4 lands exactly on zero; good answers should still grow the ease.
    if delta == 0 and quality >= 4:
        return HIGH_QUALITY_EASE_NUDGE
    return delta


def next_interval(repetitions: int, previous_interval: int, ease_factor: float) -> int:
    if repetitions == 1:
        return FIRST_INTERVAL_DAYS
    if repetitions == 2:
        return SECOND_INTERVAL_DAYS
    return round_half_up(previous_interval * ease_factor)


class ReviewScheduler:
    """Applies SM-2 recurrences to review items."""

    def __init__(self, *, clock: Optional[Clock] = None) -> None:
        self._clock = clock or default_clock()

    def record_review(self, item: ReviewItem, quality: int) -> ReviewItem:
        quality = _QUALITY.validate_python(quality)
        now = self._clock.now()

        if quality < PASSING_QUALITY:
            updated = item._replace(
                last_review_date=now,
                next_review_date=now + timedelta(days=1),
                repetitions=0,
                interval_days=1,
            )
            outcome = "lapse"
        else:
            ease_factor = max(MIN_EASE_FACTOR, item.ease_factor + ease_delta(quality))
            repetitions = item.repetitions + 1
            interval = next_interval(repetitions, item.interval_days, ease_factor)
            updated = item._replace(
                last_review_date=now,
                next_review_date=now + timedelta(days=interval),
                ease_factor=ease_factor,
                repetitions=repetitions,
                interval_days=interval,
            )
            outcome = "success"

        logger.debug(
            "Review recorded for item=%s quality=%s interval=%s ease=%.2f",
            item.id,
            quality,
            updated.interval_days,
            updated.ease_factor,
        )
        emit_event(
            "review_recorded",
            item_id=item.id,
            unit_number=item.unit_number,
            quality=quality,
            outcome=outcome,
            interval_days=updated.interval_days,
            ease_factor=round(updated.ease_factor, 4),
        )
        return updated

    def schedule_by_sm2(self, item: ReviewItem, quality: int) -> ReviewItem:
        return self.record_review(item, quality)

    def schedule_legacy(self, session_date: datetime) -> datetime:
        """Fixed one-week follow-up used by review items created before SM-2."""
        return session_date + timedelta(days=LEGACY_REVIEW_GAP_DAYS)

    def due_items(self, items: Iterable[ReviewItem]) -> List[ReviewItem]:
        return [item for item in items if item.is_due_today(self._clock)]


def record_review(item: ReviewItem, quality: int, *, clock: Optional[Clock] = None) -> ReviewItem:
    """Update a review item after the learner rates their recall (0-5)."""
    return ReviewScheduler(clock=clock).record_review(item, quality)


__all__ = [
    "PASSING_QUALITY",
    "ReviewScheduler",
    "ease_delta",
    "next_interval",
    "record_review",
]
