from __future__ import annotations

import time
from abc import ABC, abstractmethod
from threading import RLock
from typing import List

from .models import TaskEntity
from .settings import Settings


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


# PUBLIC_INTERFACE
class Repository(ABC):
    """
    Abstract repository contract for task storage backends.

    Every read and write is scoped to an owner: a task is only visible to,
    and only mutable by, the ``user_id`` that created it. Backends raise
    ``StorageError`` when the underlying store fails.
    """

    def initialize(self) -> None:
        """Prepare the store (schema, connectivity check). Raises StorageError on failure."""

    def close(self) -> None:
        """Release any resources held by the backend."""

    @abstractmethod
    def list(self, user_id: str) -> List[TaskEntity]:
        """Return all tasks owned by user_id, oldest first (ties by id)."""

    @abstractmethod
    def create(self, text: str, user_id: str) -> TaskEntity:
        """Create an incomplete task stamped with the current time and return it."""

    @abstractmethod
    def set_completed(self, task_id: int, user_id: str, completed: bool) -> bool:
        """Set the completion flag of an owned task. Return False if no owned row matched."""

    @abstractmethod
    def delete(self, task_id: int, user_id: str) -> bool:
        """Delete an owned task. Return False if no owned row matched."""


class InMemoryRepository(Repository):
    """
    Thread-safe in-memory repository suitable for testing and local demos.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: dict[int, TaskEntity] = {}
        self._next_id = 1

    def _allocate_id(self) -> int:
        with self._lock:
            i = self._next_id
            self._next_id += 1
            return i

    def create(self, text: str, user_id: str) -> TaskEntity:
        entity: TaskEntity = {
            "id": self._allocate_id(),
            "text": text,
            "completed": False,
            "user_id": user_id,
            "created_at": now_ms(),
        }
        with self._lock:
            self._items[entity["id"]] = entity
        return entity.copy()

    def _owned(self, task_id: int, user_id: str) -> bool:
        item = self._items.get(task_id)
        return item is not None and item["user_id"] == user_id

    def set_completed(self, task_id: int, user_id: str, completed: bool) -> bool:
        with self._lock:
            if not self._owned(task_id, user_id):
                return False
            updated = self._items[task_id].copy()
            updated["completed"] = completed
            self._items[task_id] = updated
            return True

    def delete(self, task_id: int, user_id: str) -> bool:
        with self._lock:
            if not self._owned(task_id, user_id):
                return False
            del self._items[task_id]
            return True

    def list(self, user_id: str) -> List[TaskEntity]:
        with self._lock:
            owned = [t for t in self._items.values() if t["user_id"] == user_id]
            items_sorted = sorted(owned, key=lambda t: (t["created_at"], t["id"]))
            # Return copies to avoid external mutation
            return [t.copy() for t in items_sorted]


# PUBLIC_INTERFACE
def get_repository(settings: Settings) -> Repository:
    """
    Factory to return the configured repository based on settings.
    - sql: SQLRepository over settings.database_url
    - memory: InMemoryRepository
    """
    if settings.persistence_backend == "memory":
        return InMemoryRepository()

    from .db import SQLRepository

    return SQLRepository(settings.database_url, pool_size=settings.db_pool_size)
