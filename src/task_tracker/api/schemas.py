from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, field_validator


# PUBLIC_INTERFACE
class TaskCreate(BaseModel):
    """
    Schema for creating a new Task.

    ``userId`` is optional here because the identity resolver can supply
    it from the request header instead.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "text": "Buy milk",
                "userId": "3f2b8c1e-5d0a-4c7e-9a61-2f0e6d9b7c11",
            }
        },
    )

    text: str = Field(..., description="Task text; must not be empty after trimming")
    user_id: Optional[str] = Field(default=None, alias="userId", description="Owner identifier")

    @field_validator("text")
    @classmethod
    def validate_text(cls, v: str) -> str:
        """
        Strip whitespace and reject empty text.
        """
        s = v.strip()
        if not s:
            raise ValueError("Task text cannot be empty.")
        return s


# PUBLIC_INTERFACE
class TaskCompletionUpdate(BaseModel):
    """
    Schema for toggling completion. ``completed`` must be a real JSON
    boolean; strings and numbers are rejected.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={"example": {"completed": True, "userId": "3f2b8c1e-5d0a-4c7e-9a61-2f0e6d9b7c11"}},
    )

    completed: StrictBool = Field(..., description="New completion status")
    user_id: Optional[str] = Field(default=None, alias="userId", description="Owner identifier")


# PUBLIC_INTERFACE
class TaskDelete(BaseModel):
    """Schema for the body of a delete request."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: Optional[str] = Field(default=None, alias="userId", description="Owner identifier")


# PUBLIC_INTERFACE
class TaskOut(BaseModel):
    """
    Schema returned by the API for a Task.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": 42,
                "text": "Buy milk",
                "completed": False,
                "userId": "3f2b8c1e-5d0a-4c7e-9a61-2f0e6d9b7c11",
                "createdAt": 1767225600000,
            }
        },
    )

    id: int = Field(..., description="Unique identifier of the task")
    text: str = Field(..., description="Task text")
    completed: bool = Field(..., description="Completion status flag")
    user_id: str = Field(..., alias="userId", description="Owner identifier")
    created_at: int = Field(..., alias="createdAt", description="Creation time in epoch milliseconds")


# PUBLIC_INTERFACE
class TaskCompletionOut(BaseModel):
    """Acknowledgement of a completion update."""

    message: str = Field(default="Task updated successfully")
    id: int
    completed: bool


# PUBLIC_INTERFACE
class TaskDeletedOut(BaseModel):
    """Acknowledgement of a deletion."""

    message: str = Field(default="Task deleted successfully")
    id: int


class ErrorOut(BaseModel):
    """Error body shared by all failing responses."""

    message: str
    error: Optional[str] = None
