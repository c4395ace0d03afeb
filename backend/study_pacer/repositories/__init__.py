"""Reference repositories for plans, sessions, and review items."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from ..config import Settings, get_settings
from .memory import (
    InMemoryReviewItemRepository,
    InMemoryStudyPlanRepository,
    InMemoryStudySessionRepository,
)
from .sql import SqlReviewItemRepository, SqlStudyPlanRepository, SqlStudySessionRepository


@dataclass(frozen=True)
class Repositories:
    plans: Any
    sessions: Any
    review_items: Any


def get_repositories(settings: Optional[Settings] = None) -> Repositories:
    """Build the repository set selected by ``persistence_mode``."""
    settings = settings or get_settings()
    if settings.persistence_mode == "database":
        return Repositories(
            plans=SqlStudyPlanRepository(),
            sessions=SqlStudySessionRepository(),
            review_items=SqlReviewItemRepository(),
        )
    return Repositories(
        plans=InMemoryStudyPlanRepository(),
        sessions=InMemoryStudySessionRepository(),
        review_items=InMemoryReviewItemRepository(),
    )


__all__ = [
    "InMemoryReviewItemRepository",
    "InMemoryStudyPlanRepository",
    "InMemoryStudySessionRepository",
    "Repositories",
    "SqlReviewItemRepository",
    "SqlStudyPlanRepository",
    "SqlStudySessionRepository",
    "get_repositories",
]
