# Domain Progress Package
from .models import (
    CardScheduleState,
    Flashcard,
    ProgressAggregate,
    ProgressSummary,
    Question,
    QuestionOutcomeState,
    ReviewOutcome,
    UserStats,
    WeakArea,
)
from .ports import ContentCatalog, ProgressRepository

__all__ = [
    "CardScheduleState",
    "QuestionOutcomeState",
    "UserStats",
    "ProgressAggregate",
    "ReviewOutcome",
    "WeakArea",
    "ProgressSummary",
    "Flashcard",
    "Question",
    "ProgressRepository",
    "ContentCatalog",
]
