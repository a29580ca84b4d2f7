from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, TypeVar

import httpx

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:5000/api"

T = TypeVar("T")


@dataclass(frozen=True)
class Task:
    """A task as seen by the client."""

    id: int
    text: str
    completed: bool
    user_id: str
    created_at: int

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Task":
        return cls(
            id=int(data["id"]),
            text=str(data["text"]),
            completed=bool(data["completed"]),
            user_id=str(data["userId"]),
            created_at=int(data["createdAt"]),
        )


class TaskApiError(Exception):
    """
    A failed API call. ``message`` is the server's message when the
    response carried one, otherwise a generic description.
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


# PUBLIC_INTERFACE
class TaskApiClient:
    """
    Thin synchronous client for the task REST API.

    ``http`` may be any ``httpx.Client``; tests pass FastAPI's TestClient
    with a relative ``base_url`` such as ``"/api"``.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        *,
        http: Optional[httpx.Client] = None,
        timeout: float = 10.0,
    ) -> None:
        self._base = base_url.rstrip("/")
        self._owns_http = http is None
        self._http = http or httpx.Client(timeout=timeout)

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> "TaskApiClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def _request(self, method: str, path: str, fallback: str, **kwargs: Any) -> Any:
        url = f"{self._base}{path}"
        try:
            response = self._http.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error("%s %s failed: %s", method, url, e)
            raise TaskApiError(f"{fallback}: {e}") from e

        if response.is_success:
            try:
                return response.json()
            except ValueError as e:
                logger.error("%s %s -> %d with a non-JSON body", method, url, response.status_code)
                raise TaskApiError(f"{fallback}: unexpected response from server", response.status_code) from e

        message = fallback
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("message"):
            message = str(body["message"])
        logger.warning("%s %s -> %d: %s", method, url, response.status_code, message)
        raise TaskApiError(message, status_code=response.status_code)

    def _decode(self, build: Callable[[], T], fallback: str) -> T:
        """Map a decoded body to client types; a body of the wrong shape is a failed call."""
        try:
            return build()
        except (KeyError, TypeError, ValueError) as e:
            logger.error("Malformed task payload: %r", e)
            raise TaskApiError(f"{fallback}: unexpected response from server") from e

    def list_tasks(self, user_id: str) -> List[Task]:
        data = self._request("GET", "/tasks", "Failed to fetch tasks", params={"userId": user_id})
        return self._decode(lambda: [Task.from_json(item) for item in data], "Failed to fetch tasks")

    def create_task(self, text: str, user_id: str) -> Task:
        data = self._request("POST", "/tasks", "Failed to add task", json={"text": text, "userId": user_id})
        return self._decode(lambda: Task.from_json(data), "Failed to add task")

    def set_completed(self, task_id: int, completed: bool, user_id: str) -> None:
        self._request(
            "PUT",
            f"/tasks/{task_id}",
            "Failed to update task",
            json={"completed": completed, "userId": user_id},
        )

    def delete_task(self, task_id: int, user_id: str) -> None:
        self._request("DELETE", f"/tasks/{task_id}", "Failed to delete task", json={"userId": user_id})
