"""Storage backends behind a single repository interface."""

from yunshui.repositories.base import MaterialsRepository
from yunshui.repositories.memory_repository import MemoryRepository

__all__ = ["MaterialsRepository", "MemoryRepository"]
