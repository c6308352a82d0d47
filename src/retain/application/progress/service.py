"""
Progress Service: Application layer orchestrator.

Coordinates loading a user's progress record, validating input, applying the
pure mutations from tracker, and saving the result back through the
repository port.
"""

import logging
import math
from collections.abc import Callable
from datetime import datetime

from ulid import ULID

from retain.application.scheduler import round_half_up, utcnow
from retain.domain.constants import MAX_QUALITY, MIN_QUALITY, WEAK_AREA_THRESHOLD
from retain.domain.errors import CatalogUnavailableError, InvalidInputError
from retain.domain.progress.models import ProgressAggregate, ProgressSummary, WeakArea
from retain.domain.progress.ports import ContentCatalog, ProgressRepository

from . import queries, tracker

logger = logging.getLogger(__name__)


def validate_quality(quality: object) -> int:
    """Reject anything that is not an integer rating in [0, 5]."""
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise InvalidInputError(f"quality must be an integer, got {quality!r}")
    if not MIN_QUALITY <= quality <= MAX_QUALITY:
        raise InvalidInputError(
            f"quality must be between {MIN_QUALITY} and {MAX_QUALITY}, got {quality}"
        )
    return quality


def _require_id(value: str | None, name: str) -> str:
    if not value:
        raise InvalidInputError(f"{name} is required")
    return value


class ProgressService:
    """
    Application service for recording study activity.

    Follows Dependency Inversion: depends on the ProgressRepository and
    ContentCatalog abstractions, not concrete adapters.
    """

    def __init__(
        self,
        repository: ProgressRepository,
        catalog: ContentCatalog | None = None,
        clock: Callable[[], datetime] | None = None,
        weak_area_threshold: float = WEAK_AREA_THRESHOLD,
    ):
        """
        Args:
            repository: Port used to load and save progress records.
            catalog: Optional content catalog; required by the read queries.
            clock: Returns the current time; defaults to UTC wall clock.
            weak_area_threshold: Accuracy percentage below which a topic is weak.
        """
        self._repo = repository
        self._catalog = catalog
        self._clock = clock or utcnow
        self._threshold = weak_area_threshold

    @property
    def catalog(self) -> ContentCatalog:
        if self._catalog is None:
            raise CatalogUnavailableError("No content catalog is configured")
        return self._catalog

    async def get_progress(self, user_id: str) -> ProgressAggregate:
        """Load a user's record, creating and saving the default one on first access."""
        _require_id(user_id, "userId")
        existing = await self._repo.load(user_id)
        if existing is not None:
            return existing

        logger.info(f"Creating progress record for user={user_id}")
        progress = tracker.create_default_progress(user_id)
        await self._repo.save(progress)
        return progress

    # --- mutations ---

    async def record_flashcard_review(
        self, user_id: str, card_id: str, quality: int
    ) -> ProgressAggregate:
        """Schedule a flashcard review, then count today toward the streak."""
        _require_id(card_id, "cardId")
        quality = validate_quality(quality)
        progress = await self.get_progress(user_id)
        now = self._clock()

        updated, outcome = tracker.review_card(progress, card_id, quality, now)
        updated = tracker.touch_streak(updated, now.date())

        logger.info(
            f"Reviewed card={card_id} user={user_id} quality={quality} "
            f"interval={outcome.current.interval} reps={outcome.current.repetitions}"
        )
        if outcome.newly_mastered:
            logger.info(f"Card {card_id} mastered by user={user_id}")

        await self._repo.save(updated)
        return updated

    async def record_question_attempt(
        self, user_id: str, question_id: str, is_correct: bool
    ) -> ProgressAggregate:
        """Count a question attempt, then count today toward the streak."""
        _require_id(question_id, "questionId")
        if not isinstance(is_correct, bool):
            raise InvalidInputError(f"isCorrect must be a boolean, got {is_correct!r}")
        progress = await self.get_progress(user_id)
        now = self._clock()

        updated = tracker.apply_question_attempt(progress, question_id, is_correct, now)
        updated = tracker.touch_streak(updated, now.date())

        logger.info(f"Attempted question={question_id} user={user_id} correct={is_correct}")
        await self._repo.save(updated)
        return updated

    async def mark_unanswered(self, user_id: str, question_id: str) -> ProgressAggregate:
        """Reset a question to unanswered. Unknown questions are left as they are."""
        _require_id(question_id, "questionId")
        progress = await self.get_progress(user_id)

        updated = tracker.mark_unanswered(progress, question_id, self._clock())
        if updated is progress:
            logger.debug(f"Question {question_id} already unanswered for user={user_id}")
            return progress

        logger.info(f"Marked question={question_id} unanswered for user={user_id}")
        await self._repo.save(updated)
        return updated

    async def record_study_time(self, user_id: str, minutes: float) -> ProgressAggregate:
        """Add study minutes. Does not affect the streak."""
        if (
            isinstance(minutes, bool)
            or not isinstance(minutes, int | float)
            or not math.isfinite(minutes)
            or minutes <= 0
        ):
            raise InvalidInputError("valid minutes is required")
        progress = await self.get_progress(user_id)

        updated = tracker.add_study_time(progress, minutes)
        logger.info(f"Added {minutes} study minutes for user={user_id}")
        await self._repo.save(updated)
        return updated

    def start_study_session(self, start: datetime | None = None) -> tuple[str, datetime]:
        """Issue a session id and start time. Nothing is persisted until the session ends."""
        return f"session_{ULID()}", start or self._clock()

    async def end_study_session(
        self, user_id: str, start: datetime, end: datetime
    ) -> tuple[int, ProgressAggregate]:
        """
        Close a study session: add its duration and count today toward the streak.

        Returns:
            (duration in whole minutes, updated progress)
        """
        if end < start:
            raise InvalidInputError("endTime must be after startTime")
        minutes = round_half_up((end - start).total_seconds() / 60)
        progress = await self.get_progress(user_id)

        updated = tracker.add_study_time(progress, minutes)
        updated = tracker.touch_streak(updated, self._clock().date())

        logger.info(f"Study session of {minutes} minutes ended for user={user_id}")
        await self._repo.save(updated)
        return minutes, updated

    # --- queries ---

    async def due_cards(self, user_id: str) -> list[str]:
        progress = await self.get_progress(user_id)
        return queries.get_due_cards(progress, self.catalog.all_flashcard_ids(), self._clock())

    async def topic_accuracy(self, user_id: str, topic_id: str) -> float:
        progress = await self.get_progress(user_id)
        return queries.get_topic_accuracy(progress, self.catalog.question_ids_for_topic(topic_id))

    async def weak_areas(self, user_id: str) -> list[WeakArea]:
        progress = await self.get_progress(user_id)
        return queries.get_weak_areas(
            progress, self.catalog.question_ids_by_topic(), self._threshold
        )

    async def summary(self, user_id: str) -> ProgressSummary:
        progress = await self.get_progress(user_id)
        return queries.summarize_progress(
            progress, self.catalog.all_flashcard_ids(), self._clock()
        )
