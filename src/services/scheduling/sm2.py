"""SM-2 spaced-repetition scheduling.

Pure value transformation: no I/O, no clock access. Callers pass ``now``.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta

MIN_EASE_FACTOR = 1.3
MIN_QUALITY = 0
MAX_QUALITY = 5
PASSING_QUALITY = 3

FIRST_INTERVAL_DAYS = 1
SECOND_INTERVAL_DAYS = 6


@dataclass(frozen=True)
class SchedulingState:
    ease_factor: float
    interval_days: int
    repetitions: int


@dataclass(frozen=True)
class ReviewOutcome:
    ease_factor: float
    interval_days: int
    repetitions: int
    next_review_date: datetime
    last_reviewed_at: datetime

    @property
    def state(self) -> SchedulingState:
        return SchedulingState(
            ease_factor=self.ease_factor,
            interval_days=self.interval_days,
            repetitions=self.repetitions,
        )


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def next_ease_factor(ease_factor: float, quality: int) -> float:
    """Apply the SM-2 ease update, rounded to 2 decimals and floored at 1.3."""
    penalty = MAX_QUALITY - quality
    updated = ease_factor + (0.1 - penalty * (0.08 + penalty * 0.02))
    return max(MIN_EASE_FACTOR, round(updated, 2))


def schedule_review(state: SchedulingState, quality: int, now: datetime) -> ReviewOutcome:
    """Compute the scheduling state that follows a review of ``quality``.

    Args:
        state: Current (ease_factor, interval_days, repetitions)
        quality: Recall rating, integer 0-5
        now: Review time

    Returns:
        ReviewOutcome with the next state and review timestamps
    """
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise ValueError(f"Quality must be an integer, got {quality!r}")
    if not MIN_QUALITY <= quality <= MAX_QUALITY:
        raise ValueError(f"Quality must be between {MIN_QUALITY} and {MAX_QUALITY}, got {quality}")

    if quality < PASSING_QUALITY:
        # Failed recall: restart the ladder, keep ease as-is
        repetitions = 0
        interval = FIRST_INTERVAL_DAYS
        ease_factor = max(MIN_EASE_FACTOR, state.ease_factor)
    else:
        repetitions = state.repetitions + 1
        if repetitions == 1:
            interval = FIRST_INTERVAL_DAYS
        elif repetitions == 2:
            interval = SECOND_INTERVAL_DAYS
        else:
            interval = max(FIRST_INTERVAL_DAYS, _round_half_up(state.interval_days * state.ease_factor))
        ease_factor = next_ease_factor(state.ease_factor, quality)

    return ReviewOutcome(
        ease_factor=ease_factor,
        interval_days=interval,
        repetitions=repetitions,
        next_review_date=now + timedelta(days=interval),
        last_reviewed_at=now,
    )
