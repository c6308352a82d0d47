"""
Domain models for study progress.

These are pure data structures with no I/O or external dependencies.
Every model is frozen; mutations elsewhere return new instances.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from types import MappingProxyType
from typing import Any

from retain.domain.constants import (
    INITIAL_EASE_FACTOR,
    INITIAL_INTERVAL,
    MASTERY_MIN_INTERVAL,
    MASTERY_MIN_REPETITIONS,
)


def parse_timestamp(value: str | datetime) -> datetime:
    """Parse an ISO-8601 timestamp, assuming UTC when no offset is given."""
    ts = value if isinstance(value, datetime) else datetime.fromisoformat(value)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def parse_study_date(value: str | date | None) -> date | None:
    """Parse a calendar date, accepting a full ISO timestamp (date part is used)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value[:10])


def _isoformat(ts: datetime) -> str:
    return ts.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class CardScheduleState:
    """
    SM-2 scheduling state for one flashcard.

    Attributes:
        ease_factor: Interval growth multiplier, never below 1.3.
        interval: Days until the next review.
        repetitions: Consecutive successful recalls since the last failure.
        last_reviewed_at: When the card was last reviewed.
        next_review_at: last_reviewed_at + interval days.
    """

    ease_factor: float
    interval: int
    repetitions: int
    last_reviewed_at: datetime
    next_review_at: datetime

    @property
    def is_mastered(self) -> bool:
        return (
            self.repetitions >= MASTERY_MIN_REPETITIONS
            and self.interval >= MASTERY_MIN_INTERVAL
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "easeFactor": self.ease_factor,
            "interval": self.interval,
            "repetitions": self.repetitions,
            "lastReview": _isoformat(self.last_reviewed_at),
            "nextReview": _isoformat(self.next_review_at),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CardScheduleState":
        return cls(
            ease_factor=float(data.get("easeFactor", INITIAL_EASE_FACTOR)),
            interval=int(data.get("interval", INITIAL_INTERVAL)),
            repetitions=int(data.get("repetitions", 0)),
            last_reviewed_at=parse_timestamp(data["lastReview"]),
            next_review_at=parse_timestamp(data["nextReview"]),
        )


@dataclass(frozen=True)
class QuestionOutcomeState:
    """Attempt counters for one practice question."""

    attempts: int
    correct: int
    last_attempt_at: datetime

    @property
    def is_answered(self) -> bool:
        return self.attempts > 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "attempts": self.attempts,
            "correct": self.correct,
            "lastAttempt": _isoformat(self.last_attempt_at),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "QuestionOutcomeState":
        return cls(
            attempts=int(data.get("attempts", 0)),
            correct=int(data.get("correct", 0)),
            last_attempt_at=parse_timestamp(data["lastAttempt"]),
        )


@dataclass(frozen=True)
class UserStats:
    """
    Aggregate study statistics.

    Attributes:
        total_study_time: Accumulated minutes, monotonically increasing.
        current_streak: Consecutive study days ending at last_study_date.
        longest_streak: Best streak ever, always >= current_streak.
        cards_mastered: One-way count of mastery crossings.
        last_study_date: Calendar day of the last streak-counting activity.
    """

    total_study_time: float = 0
    current_streak: int = 0
    longest_streak: int = 0
    cards_mastered: int = 0
    last_study_date: date | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "totalStudyTime": self.total_study_time,
            "currentStreak": self.current_streak,
            "longestStreak": self.longest_streak,
            "cardsMastered": self.cards_mastered,
        }
        if self.last_study_date is not None:
            data["lastStudyDate"] = self.last_study_date.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "UserStats":
        return cls(
            total_study_time=data.get("totalStudyTime", 0),
            current_streak=int(data.get("currentStreak", 0)),
            longest_streak=int(data.get("longestStreak", 0)),
            cards_mastered=int(data.get("cardsMastered", 0)),
            last_study_date=parse_study_date(data.get("lastStudyDate")),
        )


@dataclass(frozen=True)
class ProgressAggregate:
    """
    The per-user progress record.

    Owns the flashcard schedule map, the question outcome map and the stats
    block. The maps are exposed as read-only views; use the functions in
    retain.application.progress.tracker to derive updated snapshots.
    """

    user_id: str
    flashcards: Mapping[str, CardScheduleState] = field(default_factory=dict)
    questions: Mapping[str, QuestionOutcomeState] = field(default_factory=dict)
    stats: UserStats = field(default_factory=UserStats)

    def __post_init__(self) -> None:
        object.__setattr__(self, "flashcards", MappingProxyType(dict(self.flashcards)))
        object.__setattr__(self, "questions", MappingProxyType(dict(self.questions)))

    def to_dict(self) -> dict[str, Any]:
        return {
            "userId": self.user_id,
            "flashcards": {cid: s.to_dict() for cid, s in self.flashcards.items()},
            "questions": {qid: s.to_dict() for qid, s in self.questions.items()},
            "stats": self.stats.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ProgressAggregate":
        return cls(
            user_id=data["userId"],
            flashcards={
                cid: CardScheduleState.from_dict(s)
                for cid, s in (data.get("flashcards") or {}).items()
            },
            questions={
                qid: QuestionOutcomeState.from_dict(s)
                for qid, s in (data.get("questions") or {}).items()
            },
            stats=UserStats.from_dict(data.get("stats") or {}),
        )


@dataclass(frozen=True)
class ReviewOutcome:
    """
    The result of one flashcard review, carrying the prior state alongside
    the new one so the mastery crossing can be decided without recomputation.
    """

    card_id: str
    previous: CardScheduleState | None
    current: CardScheduleState
    newly_mastered: bool


@dataclass(frozen=True)
class WeakArea:
    """A topic whose answer accuracy is below the weak-area threshold."""

    topic_id: str
    accuracy: float
    total_attempts: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "topicId": self.topic_id,
            "accuracy": self.accuracy,
            "totalAttempts": self.total_attempts,
        }


@dataclass(frozen=True)
class ProgressSummary:
    """Dashboard counts derived from an aggregate and the catalog."""

    total_cards: int
    reviewed_cards: int
    due_cards: int
    mastered_cards: int
    answered_questions: int
    total_attempts: int
    overall_accuracy: float
    stats: UserStats

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalCards": self.total_cards,
            "reviewedCards": self.reviewed_cards,
            "dueCards": self.due_cards,
            "masteredCards": self.mastered_cards,
            "answeredQuestions": self.answered_questions,
            "totalAttempts": self.total_attempts,
            "overallAccuracy": self.overall_accuracy,
            "stats": self.stats.to_dict(),
        }


@dataclass(frozen=True)
class Flashcard:
    """A catalog flashcard."""

    id: str
    front: str
    back: str
    topic_id: str
    subtopic_id: str
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class Question:
    """A catalog multiple-choice practice question."""

    id: str
    text: str
    options: tuple[str, ...]
    correct_answer: int  # Index into options
    explanation: str
    topic_id: str
    subtopic_id: str
    difficulty: str = "medium"
