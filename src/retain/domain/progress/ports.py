"""
Ports (interfaces) for progress persistence and content lookup.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence

from .models import ProgressAggregate


class ProgressRepository(ABC):
    """
    Port for loading and saving per-user progress records.

    Implementations:
        - JsonProgressRepository: One JSON document on disk.
        - InMemoryProgressRepository: Process-local dict (tests, ephemeral servers).
    """

    @abstractmethod
    async def load(self, user_id: str) -> ProgressAggregate | None:
        """
        Fetch the stored record for a user.

        Args:
            user_id: Opaque user identifier.

        Returns:
            The stored ProgressAggregate, or None if the user has no record yet.
        """
        pass

    @abstractmethod
    async def save(self, progress: ProgressAggregate) -> None:
        """
        Replace the stored record for progress.user_id (last writer wins).
        """
        pass


class ContentCatalog(ABC):
    """
    Read-only port over flashcards and questions tagged by topic.

    Implementations:
        - YamlContentCatalog: Loads content from a YAML file.
    """

    @abstractmethod
    def all_flashcard_ids(self) -> Sequence[str]:
        """Every flashcard id in catalog order."""
        pass

    @abstractmethod
    def topic_of(self, item_id: str) -> str:
        """
        Map a flashcard or question id to its topic id.

        Raises:
            UnknownItemError: If the id is not in the catalog.
        """
        pass

    @abstractmethod
    def question_ids_by_topic(self) -> Mapping[str, Sequence[str]]:
        """Question ids grouped by topic id."""
        pass

    def question_ids_for_topic(self, topic_id: str) -> Sequence[str]:
        """Question ids for a single topic (empty if the topic has none)."""
        return self.question_ids_by_topic().get(topic_id, [])
