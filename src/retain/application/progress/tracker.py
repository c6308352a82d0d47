"""
Progress aggregate mutations.

Each function takes a ProgressAggregate snapshot and returns a new one;
inputs are never modified. Input is assumed to be validated by the caller
(see ProgressService).
"""

import logging
import math
from dataclasses import replace
from datetime import date, datetime, timedelta

from retain.application.scheduler import compute_next_schedule, utcnow
from retain.domain.constants import MASTERY_MIN_INTERVAL
from retain.domain.errors import InvalidInputError
from retain.domain.progress.models import (
    ProgressAggregate,
    QuestionOutcomeState,
    ReviewOutcome,
    UserStats,
)

logger = logging.getLogger(__name__)


def create_default_progress(user_id: str) -> ProgressAggregate:
    """A fresh record: empty maps, zeroed stats."""
    return ProgressAggregate(user_id=user_id)


def review_card(
    progress: ProgressAggregate,
    card_id: str,
    quality: int,
    now: datetime | None = None,
) -> tuple[ProgressAggregate, ReviewOutcome]:
    """
    Schedule one flashcard review and report the prior/new state pair.

    cards_mastered is incremented only when the new state is mastered and
    the prior interval was still below the mastery interval, so re-reviewing
    an already-mastered card never counts twice.
    """
    previous = progress.flashcards.get(card_id)
    current = compute_next_schedule(quality, previous, now)

    newly_mastered = current.is_mastered and (
        previous is None or previous.interval < MASTERY_MIN_INTERVAL
    )

    stats = progress.stats
    if newly_mastered:
        stats = replace(stats, cards_mastered=stats.cards_mastered + 1)
        logger.debug(f"Card {card_id} mastered (interval={current.interval})")

    updated = replace(
        progress,
        flashcards={**progress.flashcards, card_id: current},
        stats=stats,
    )
    return updated, ReviewOutcome(card_id, previous, current, newly_mastered)


def apply_flashcard_review(
    progress: ProgressAggregate,
    card_id: str,
    quality: int,
    now: datetime | None = None,
) -> ProgressAggregate:
    """Apply a review to one card. Does not touch the streak."""
    updated, _ = review_card(progress, card_id, quality, now)
    return updated


def apply_question_attempt(
    progress: ProgressAggregate,
    question_id: str,
    is_correct: bool,
    now: datetime | None = None,
) -> ProgressAggregate:
    """Count one attempt at a question, creating its record on first attempt."""
    now = now or utcnow()
    current = progress.questions.get(question_id) or QuestionOutcomeState(
        attempts=0, correct=0, last_attempt_at=now
    )
    outcome = QuestionOutcomeState(
        attempts=current.attempts + 1,
        correct=current.correct + (1 if is_correct else 0),
        last_attempt_at=now,
    )
    return replace(progress, questions={**progress.questions, question_id: outcome})


def mark_unanswered(
    progress: ProgressAggregate,
    question_id: str,
    now: datetime | None = None,
) -> ProgressAggregate:
    """
    Reset a question to zero attempts and zero correct.

    A question with no record is already unanswered; the snapshot is
    returned unchanged.
    """
    if question_id not in progress.questions:
        return progress

    reset = QuestionOutcomeState(attempts=0, correct=0, last_attempt_at=now or utcnow())
    return replace(progress, questions={**progress.questions, question_id: reset})


def advance_streak(stats: UserStats, today: date) -> UserStats:
    """
    Count today toward the study streak. Idempotent per calendar day.

    - already studied today: unchanged
    - studied yesterday: streak + 1
    - otherwise: streak restarts at 1
    """
    last = stats.last_study_date
    if last == today:
        return stats

    if last is not None and last == today - timedelta(days=1):
        current = stats.current_streak + 1
    else:
        current = 1

    return replace(
        stats,
        current_streak=current,
        longest_streak=max(stats.longest_streak, current),
        last_study_date=today,
    )


def touch_streak(progress: ProgressAggregate, today: date | None = None) -> ProgressAggregate:
    """Apply advance_streak to the aggregate's stats block."""
    today = today or utcnow().date()
    stats = advance_streak(progress.stats, today)
    if stats is progress.stats:
        return progress
    return replace(progress, stats=stats)


def add_study_time(progress: ProgressAggregate, minutes: float) -> ProgressAggregate:
    """Add minutes to the total study time accumulator."""
    if not math.isfinite(minutes) or minutes < 0:
        raise InvalidInputError(f"Study time must be finite and non-negative, got {minutes}")
    stats = replace(progress.stats, total_study_time=progress.stats.total_study_time + minutes)
    return replace(progress, stats=stats)
