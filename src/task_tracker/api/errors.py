from __future__ import annotations

from typing import Any, Dict, Optional


class StorageError(Exception):
    """Raised by repositories when the underlying store fails."""


class ApiError(Exception):
    """
    Base class for errors rendered as ``{"message": ...}`` JSON responses.
    """

    status_code: int = 500

    def __init__(self, message: str, error: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.error = error

    def to_content(self) -> Dict[str, Any]:
        content: Dict[str, Any] = {"message": self.message}
        if self.error is not None:
            content["error"] = self.error
        return content


class BadRequestError(ApiError):
    status_code = 400


class TaskNotFoundError(ApiError):
    """
    The task does not exist, or exists under another owner. The two cases
    are reported identically.
    """

    status_code = 404

    def __init__(self, message: str = "Task not found or does not belong to this user.") -> None:
        super().__init__(message)


class StorageFailureError(ApiError):
    status_code = 500
