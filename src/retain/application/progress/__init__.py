# Application Progress Package
from .queries import get_due_cards, get_topic_accuracy, get_weak_areas, summarize_progress
from .service import ProgressService, validate_quality
from .tracker import (
    add_study_time,
    advance_streak,
    apply_flashcard_review,
    apply_question_attempt,
    create_default_progress,
    mark_unanswered,
    review_card,
    touch_streak,
)

__all__ = [
    "ProgressService",
    "validate_quality",
    "create_default_progress",
    "review_card",
    "apply_flashcard_review",
    "apply_question_attempt",
    "mark_unanswered",
    "advance_streak",
    "touch_streak",
    "add_study_time",
    "get_due_cards",
    "get_topic_accuracy",
    "get_weak_areas",
    "summarize_progress",
]
