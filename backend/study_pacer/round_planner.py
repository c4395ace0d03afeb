"""Multi-round planning: revisit the segments that were hardest on the first pass."""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from .config import get_settings
from .study_plan import RoundTask, StudyPlan, StudySession
from .telemetry import emit_event

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 10
DEFAULT_HARD_THRESHOLD = 3.5
NEUTRAL_DIFFICULTY = 3.0


def _focus_advice(round_number: int, start_unit: int, end_unit: int) -> str:
    return f"Round {round_number}: focus on weak units {start_unit}-{end_unit}"


class DifficultyChunk(BaseModel):
    """Fixed-size block of units with its averaged first-pass difficulty."""

    model_config = ConfigDict(frozen=True)

    chunk_index: int = Field(ge=0)
    start_unit: int = Field(ge=1)
    end_unit: int = Field(ge=1)
    average_difficulty: float
    is_hard: bool

    @property
    def units(self) -> int:
        return self.end_unit - self.start_unit + 1


class RoundPlanner:
    """Builds round tasks for the passes that follow the first one.

    Unit coordinates produced here are relative to the plan's unit range
    (1 = first unit of the range); :func:`plan_rounds` shifts them to absolute
    unit numbers.
    """

    def __init__(
        self,
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        hard_threshold: float = DEFAULT_HARD_THRESHOLD,
    ) -> None:
        if chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")
        self._chunk_size = chunk_size
        self._threshold = hard_threshold

    def extract_difficulties_from_sessions(
        self,
        total_units: int,
        sessions: Sequence[StudySession],
        *,
        range_start: int = 1,
    ) -> List[float]:
        """Per-unit difficulty (index 0 = first unit) from round-1 sessions."""
        sums = [0.0] * total_units
        counts = [0] * total_units
        first_round = sorted(
            (session for session in sessions if session.round == 1),
            key=lambda session: session.studied_at,
        )

        cursor = 0
        for session in first_round:
            if session.start_unit is not None and session.end_unit is not None:
                first = session.start_unit - range_start
                last = session.end_unit - range_start + 1
            else:
                first = cursor
                last = cursor + session.units_completed
            for index in range(max(first, 0), min(last, total_units)):
                sums[index] += session.difficulty
                counts[index] += 1
            cursor = max(cursor, last)

        return [
            sums[index] / counts[index] if counts[index] else NEUTRAL_DIFFICULTY
            for index in range(total_units)
        ]

    def build_difficulty_map(
        self,
        total_units: int,
        difficulties: Sequence[float],
        *,
        chunk_size: Optional[int] = None,
        threshold: Optional[float] = None,
    ) -> List[DifficultyChunk]:
        size = chunk_size or self._chunk_size
        limit = self._threshold if threshold is None else threshold
        chunks: List[DifficultyChunk] = []
        for index in range(math.ceil(total_units / size)):
            start = index * size
            end = min(total_units, start + size)
            window = list(difficulties[start:end])
            average = sum(window) / len(window) if window else 0.0
            chunks.append(
                DifficultyChunk(
                    chunk_index=index,
                    start_unit=start + 1,
                    end_unit=end,
                    average_difficulty=average,
                    is_hard=average >= limit,
                )
            )
        return chunks

    def find_hard_chunks(self, chunks: Sequence[DifficultyChunk]) -> List[DifficultyChunk]:
        return [chunk for chunk in chunks if chunk.is_hard]

    def generate_round_tasks(
        self,
        total_units: int,
        target_rounds: int,
        difficulties: Optional[Sequence[float]] = None,
    ) -> List[RoundTask]:
        """Round tasks for rounds 2..target_rounds; round 1 is the implicit full pass."""
        if target_rounds <= 1 or total_units <= 0:
            return []

        if difficulties is None:
            difficulties = [NEUTRAL_DIFFICULTY] * total_units
        hard_chunks = self.find_hard_chunks(self.build_difficulty_map(total_units, difficulties))
        if not hard_chunks:
            logger.info("No hard chunks across %s units; later rounds review the full range.", total_units)
            emit_event(
                "planning_fallback",
                component="round_planner",
                reason="no_hard_chunks",
                total_units=total_units,
                target_rounds=target_rounds,
            )

        tasks: List[RoundTask] = []
        for round_number in range(2, target_rounds + 1):
            if not hard_chunks:
                tasks.append(
                    RoundTask(
                        round=round_number,
                        start_unit=1,
                        end_unit=total_units,
                        units=total_units,
                        advice=f"Round {round_number}: full review",
                    )
                )
                continue
            for chunk in hard_chunks:
                tasks.append(
                    RoundTask(
                        round=round_number,
                        start_unit=chunk.start_unit,
                        end_unit=chunk.end_unit,
                        units=chunk.units,
                        advice=_focus_advice(round_number, chunk.start_unit, chunk.end_unit),
                    )
                )

        logger.debug(
            "Generated %s round tasks for %s units over %s rounds (hard chunks=%s)",
            len(tasks),
            total_units,
            target_rounds,
            len(hard_chunks),
        )
        return tasks

    def plan(self, plan: StudyPlan, sessions: Sequence[StudySession]) -> List[RoundTask]:
        """Ordered round tasks in absolute unit numbers, starting with the first pass."""
        range_start, range_end, range_total = plan.range_start, plan.range_end, plan.range_total
        tasks = [RoundTask(round=1, start_unit=range_start, end_unit=range_end, units=range_total)]

        first_round_completed = sum(
            session.units_completed for session in sessions if session.round == 1
        )
        if first_round_completed < range_total or plan.effective_rounds <= 1:
            return tasks

        difficulties = self.extract_difficulties_from_sessions(
            range_total,
            sessions,
            range_start=range_start,
        )
        offset = range_start - 1
        for task in self.generate_round_tasks(range_total, plan.effective_rounds, difficulties):
            shifted = task.shifted(offset)
            if offset and task.advice == _focus_advice(task.round, task.start_unit, task.end_unit):
                shifted = shifted._replace(
                    advice=_focus_advice(shifted.round, shifted.start_unit, shifted.end_unit)
                )
            tasks.append(shifted)
        return tasks


def plan_rounds(
    plan: StudyPlan,
    sessions: Sequence[StudySession],
    *,
    chunk_size: Optional[int] = None,
    hard_threshold: Optional[float] = None,
) -> List[RoundTask]:
    settings = get_settings()
    planner = RoundPlanner(
        chunk_size=chunk_size or settings.chunk_size,
        hard_threshold=settings.hard_threshold if hard_threshold is None else hard_threshold,
    )
    return planner.plan(plan, sessions)


__all__ = [
    "DEFAULT_CHUNK_SIZE",
    "DEFAULT_HARD_THRESHOLD",
    "DifficultyChunk",
    "NEUTRAL_DIFFICULTY",
    "RoundPlanner",
    "plan_rounds",
]
