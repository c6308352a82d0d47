# Infrastructure Progress Adapters Package
from .json_store import JsonProgressRepository
from .memory_store import InMemoryProgressRepository

__all__ = ["JsonProgressRepository", "InMemoryProgressRepository"]
