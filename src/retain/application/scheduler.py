"""
SM-2 review scheduler.

This is a pure computation module with no I/O. The only impurity is the
wall-clock read when no explicit ``now`` is passed.

Quality scale:
    0 - Complete blackout
    1 - Incorrect, but the answer was recognised
    2 - Incorrect, but the answer seemed easy once seen
    3 - Correct with serious difficulty
    4 - Correct after hesitation
    5 - Perfect recall
"""

import math
from datetime import datetime, timedelta, timezone

from retain.domain.constants import (
    INITIAL_EASE_FACTOR,
    INITIAL_INTERVAL,
    MIN_EASE_FACTOR,
    PASSING_QUALITY,
    SECOND_INTERVAL,
)
from retain.domain.progress.models import CardScheduleState


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positive values."""
    return math.floor(value + 0.5)


def next_ease_factor(ease_factor: float, quality: int) -> float:
    """
    EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02)), floored at 1.3.
    """
    miss = 5 - quality
    return max(MIN_EASE_FACTOR, ease_factor + (0.1 - miss * (0.08 + miss * 0.02)))


def compute_next_schedule(
    quality: int,
    prior: CardScheduleState | None = None,
    now: datetime | None = None,
) -> CardScheduleState:
    """
    Compute the next scheduling state for a card after one review.

    Args:
        quality: Recall rating in [0, 5]. Callers validate the range.
        prior: The card's current state, or None for a first review.
        now: Review time; defaults to the current UTC time.

    Returns:
        A new CardScheduleState with next_review_at = now + interval days.
    """
    now = now or utcnow()

    if prior is None:
        ease, interval, repetitions = INITIAL_EASE_FACTOR, INITIAL_INTERVAL, 0
    else:
        ease, interval, repetitions = prior.ease_factor, prior.interval, prior.repetitions

    new_ease = next_ease_factor(ease, quality)

    if quality < PASSING_QUALITY:
        new_interval = INITIAL_INTERVAL
        new_repetitions = 0
    else:
        if repetitions == 0:
            new_interval = INITIAL_INTERVAL
        elif repetitions == 1:
            new_interval = SECOND_INTERVAL
        else:
            new_interval = round_half_up(interval * new_ease)
        new_repetitions = repetitions + 1

    return CardScheduleState(
        ease_factor=new_ease,
        interval=new_interval,
        repetitions=new_repetitions,
        last_reviewed_at=now,
        next_review_at=now + timedelta(days=new_interval),
    )


def is_due(target: CardScheduleState | datetime, now: datetime | None = None) -> bool:
    """True once the scheduled review time has arrived or passed."""
    next_review = target.next_review_at if isinstance(target, CardScheduleState) else target
    return next_review <= (now or utcnow())


def days_until_review(next_review_at: datetime, now: datetime | None = None) -> int:
    """
    Whole days until the next review, rounded up. Negative if overdue.
    """
    remaining = (next_review_at - (now or utcnow())).total_seconds() / 86400.0
    return math.ceil(remaining)
