"""
YAML Content Catalog: read-only flashcards and questions from a YAML file.

Expected layout:

    flashcards:
      - id: ethics-001
        front: ...
        back: ...
        topicId: ethics
        subtopicId: ethics-code
    questions:
      - id: q-ethics-001
        text: ...
        options: [...]
        correctAnswer: 1
        explanation: ...
        topicId: ethics
        subtopicId: ethics-code
        difficulty: easy
"""

import logging
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import yaml  # type: ignore
import yaml.constructor

from retain.domain.errors import CatalogError, UnknownItemError
from retain.domain.progress.models import Flashcard, Question
from retain.domain.progress.ports import ContentCatalog

logger = logging.getLogger(__name__)


class UniqueKeyLoader(yaml.SafeLoader):
    """Custom YAML loader that forbids duplicate keys."""

    def construct_mapping(self, node, deep=False):
        keys = set()
        for key_node, _ in node.value:
            key = self.construct_object(key_node, deep=deep)
            if key in keys:
                raise yaml.constructor.ConstructorError(
                    None, None, f"found duplicate key '{key}'", key_node.start_mark
                )
            keys.add(key)
        return super().construct_mapping(node, deep)


def _flashcard(raw: dict[str, Any]) -> Flashcard:
    return Flashcard(
        id=str(raw["id"]),
        front=raw.get("front", ""),
        back=raw.get("back", ""),
        topic_id=raw["topicId"],
        subtopic_id=raw.get("subtopicId", ""),
        tags=tuple(raw.get("tags") or ()),
    )


def _question(raw: dict[str, Any]) -> Question:
    return Question(
        id=str(raw["id"]),
        text=raw.get("text", ""),
        options=tuple(raw.get("options") or ()),
        correct_answer=int(raw.get("correctAnswer", 0)),
        explanation=raw.get("explanation", ""),
        topic_id=raw["topicId"],
        subtopic_id=raw.get("subtopicId", ""),
        difficulty=raw.get("difficulty", "medium"),
    )


class YamlContentCatalog(ContentCatalog):
    """Loads the whole catalog eagerly; lookups are in-memory afterwards."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self.flashcards: dict[str, Flashcard] = {}
        self.questions: dict[str, Question] = {}
        self._load()

    def _load(self) -> None:
        try:
            raw = yaml.load(self.path.read_text(encoding="utf-8"), Loader=UniqueKeyLoader) or {}
        except (OSError, yaml.YAMLError) as e:
            raise CatalogError(f"Could not load catalog {self.path}: {e}") from e

        if not isinstance(raw, dict):
            raise CatalogError(f"Catalog {self.path} must be a mapping")

        try:
            for item in raw.get("flashcards") or []:
                card = _flashcard(item)
                self._check_unique(card.id)
                self.flashcards[card.id] = card

            for item in raw.get("questions") or []:
                question = _question(item)
                self._check_unique(question.id)
                self.questions[question.id] = question
        except (KeyError, TypeError, ValueError) as e:
            raise CatalogError(f"Malformed catalog entry in {self.path}: {e}") from e

        logger.debug(
            f"Loaded catalog {self.path.name}: "
            f"{len(self.flashcards)} flashcards, {len(self.questions)} questions"
        )

    def _check_unique(self, item_id: str) -> None:
        if item_id in self.flashcards or item_id in self.questions:
            raise CatalogError(f"Duplicate catalog id '{item_id}' in {self.path}")

    def all_flashcard_ids(self) -> Sequence[str]:
        return list(self.flashcards)

    def topic_of(self, item_id: str) -> str:
        item = self.flashcards.get(item_id) or self.questions.get(item_id)
        if item is None:
            raise UnknownItemError(f"Unknown flashcard or question id '{item_id}'")
        return item.topic_id

    def question_ids_by_topic(self) -> Mapping[str, Sequence[str]]:
        grouped: dict[str, list[str]] = {}
        for question in self.questions.values():
            grouped.setdefault(question.topic_id, []).append(question.id)
        return grouped
