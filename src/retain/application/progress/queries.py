"""
Read-only queries over a ProgressAggregate.

Stateless and side-effect free.
"""

from collections.abc import Iterable, Mapping
from datetime import datetime

from retain.application.scheduler import is_due, utcnow
from retain.domain.constants import WEAK_AREA_THRESHOLD
from retain.domain.progress.models import ProgressAggregate, ProgressSummary, WeakArea


def get_due_cards(
    progress: ProgressAggregate,
    all_card_ids: Iterable[str],
    now: datetime | None = None,
) -> list[str]:
    """
    Card ids that are due for review.

    A card is due if it was never reviewed or its next review time has
    arrived. Input order is kept and duplicates are dropped.
    """
    now = now or utcnow()
    due: list[str] = []
    seen: set[str] = set()

    for card_id in all_card_ids:
        if card_id in seen:
            continue
        seen.add(card_id)

        state = progress.flashcards.get(card_id)
        if state is None or is_due(state, now):
            due.append(card_id)

    return due


def _sum_outcomes(progress: ProgressAggregate, question_ids: Iterable[str]) -> tuple[int, int]:
    attempts = 0
    correct = 0
    for question_id in question_ids:
        outcome = progress.questions.get(question_id)
        if outcome is not None and outcome.attempts > 0:
            attempts += outcome.attempts
            correct += outcome.correct
    return attempts, correct


def _accuracy(attempts: int, correct: int) -> float:
    if attempts == 0:
        return 0
    return 100 * correct / attempts


def get_topic_accuracy(progress: ProgressAggregate, question_ids: Iterable[str]) -> float:
    """
    Percentage of correct attempts across the given questions.

    Questions without a record are excluded; 0 when nothing was attempted.
    """
    attempts, correct = _sum_outcomes(progress, question_ids)
    return _accuracy(attempts, correct)


def get_weak_areas(
    progress: ProgressAggregate,
    question_ids_by_topic: Mapping[str, Iterable[str]],
    threshold: float = WEAK_AREA_THRESHOLD,
) -> list[WeakArea]:
    """
    Topics whose accuracy is below threshold, weakest first.

    Topics with no attempts are unmeasured, not weak, and are left out.
    """
    weak: list[WeakArea] = []

    for topic_id, question_ids in question_ids_by_topic.items():
        attempts, correct = _sum_outcomes(progress, question_ids)
        if attempts == 0:
            continue

        accuracy = _accuracy(attempts, correct)
        if accuracy < threshold:
            weak.append(WeakArea(topic_id=topic_id, accuracy=accuracy, total_attempts=attempts))

    return sorted(weak, key=lambda area: area.accuracy)


def summarize_progress(
    progress: ProgressAggregate,
    all_card_ids: Iterable[str],
    now: datetime | None = None,
) -> ProgressSummary:
    """Dashboard counts for one user."""
    card_ids = list(dict.fromkeys(all_card_ids))
    reviewed = [cid for cid in card_ids if cid in progress.flashcards]
    mastered = [cid for cid in reviewed if progress.flashcards[cid].is_mastered]
    attempts, correct = _sum_outcomes(progress, progress.questions.keys())

    return ProgressSummary(
        total_cards=len(card_ids),
        reviewed_cards=len(reviewed),
        due_cards=len(get_due_cards(progress, card_ids, now)),
        mastered_cards=len(mastered),
        answered_questions=sum(1 for q in progress.questions.values() if q.is_answered),
        total_attempts=attempts,
        overall_accuracy=_accuracy(attempts, correct),
        stats=progress.stats,
    )
