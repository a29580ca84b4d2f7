from __future__ import annotations

from typing import TypedDict


# PUBLIC_INTERFACE
class TaskEntity(TypedDict):
    """
    A lightweight domain model representing a Task as returned by the
    storage backends.

    Fields:
    - id: Unique integer identifier, assigned by the store
    - text: Task text (trimmed and non-empty, validated via schemas)
    - completed: Boolean completion flag
    - user_id: Opaque owner identifier partitioning tasks by session
    - created_at: Creation time in epoch milliseconds; the list sort key
    """

    id: int
    text: str
    completed: bool
    user_id: str
    created_at: int
