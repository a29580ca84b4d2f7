from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status

from ..errors import BadRequestError, StorageError, StorageFailureError, TaskNotFoundError
from ..identity import MAX_USER_ID_LENGTH, body_user_id, header_user_id, resolve_user_id
from ..repositories import Repository
from ..schemas import (
    ErrorOut,
    TaskCompletionOut,
    TaskCompletionUpdate,
    TaskCreate,
    TaskDelete,
    TaskDeletedOut,
    TaskOut,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/tasks",
    tags=["tasks"],
)

_NOT_FOUND = {"model": ErrorOut, "description": "Task not found or does not belong to this user"}
_BAD_REQUEST = {"model": ErrorOut, "description": "Validation error"}
_STORAGE = {"model": ErrorOut, "description": "Storage error"}

# Ids the relational backends can bind; anything else cannot match a row
MAX_TASK_ID = 2**63 - 1


def _get_repo(request: Request) -> Repository:
    """
    Dependency returning the repository bound to the running application.
    """
    return request.app.state.repository


def _require_user_id(user_id: Optional[str], missing_message: str) -> str:
    if not user_id:
        raise BadRequestError(missing_message)
    if len(user_id) > MAX_USER_ID_LENGTH:
        raise BadRequestError(f"User ID must be at most {MAX_USER_ID_LENGTH} characters.")
    return user_id


def _addressable(task_id: int) -> bool:
    return 1 <= task_id <= MAX_TASK_ID


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=List[TaskOut],
    summary="List Tasks",
    description="List every task owned by the user, oldest first.",
    responses={200: {"description": "Tasks retrieved"}, 400: _BAD_REQUEST, 500: _STORAGE},
)
def list_tasks(
    user_id_query: Optional[str] = Query(None, alias="userId", description="Owner identifier"),
    header_id: Optional[str] = Depends(header_user_id),
    repo: Repository = Depends(_get_repo),
) -> List[TaskOut]:
    """
    List the tasks of one user.
    """
    user_id = _require_user_id(
        resolve_user_id(header_id, user_id_query), "User ID is required to fetch tasks."
    )

    logger.info("[GET /api/tasks] Fetching tasks for userId=%s", user_id)
    try:
        items = repo.list(user_id)
    except StorageError as e:
        logger.error("[GET /api/tasks] Failed to fetch tasks for userId=%s: %s", user_id, e, exc_info=True)
        raise StorageFailureError("Failed to fetch tasks", error=str(e)) from e
    logger.info("[GET /api/tasks] Fetched %d tasks for userId=%s", len(items), user_id)
    return [TaskOut(**it) for it in items]  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=TaskOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Task",
    description="Create a new task for the user and return the created resource.",
    responses={201: {"description": "Task created"}, 400: _BAD_REQUEST, 500: _STORAGE},
)
def create_task(
    payload: TaskCreate,
    header_id: Optional[str] = Depends(header_user_id),
    repo: Repository = Depends(_get_repo),
) -> TaskOut:
    """
    Create a new Task. The text has already been trimmed and checked by the schema.
    """
    user_id = _require_user_id(resolve_user_id(header_id, payload.user_id), "User ID is required to add tasks.")

    logger.info("[POST /api/tasks] Adding task text=%r for userId=%s", payload.text, user_id)
    try:
        created = repo.create(payload.text, user_id)
    except StorageError as e:
        logger.error(
            "[POST /api/tasks] Failed to add task text=%r for userId=%s: %s",
            payload.text, user_id, e, exc_info=True,
        )
        raise StorageFailureError("Failed to add task", error=str(e)) from e
    logger.info("[POST /api/tasks] Task added with id=%s", created["id"])
    return TaskOut(**created)  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.put(
    "/{task_id}",
    response_model=TaskCompletionOut,
    summary="Update Task Completion",
    description=(
        "Set the completion flag of a task. The task must belong to the userId in the body; "
        "a task owned by someone else is reported exactly like a missing one."
    ),
    responses={200: {"description": "Task updated"}, 400: _BAD_REQUEST, 404: _NOT_FOUND, 500: _STORAGE},
)
def update_task_completion(
    task_id: int,
    payload: TaskCompletionUpdate,
    repo: Repository = Depends(_get_repo),
) -> TaskCompletionOut:
    """
    Toggle completion of an owned task.
    """
    user_id = _require_user_id(body_user_id(payload.user_id), "User ID is required for updating tasks.")

    logger.info(
        "[PUT /api/tasks/%s] Updating task for userId=%s, completed=%s", task_id, user_id, payload.completed
    )
    try:
        ok = _addressable(task_id) and repo.set_completed(task_id, user_id, payload.completed)
    except StorageError as e:
        logger.error(
            "[PUT /api/tasks/%s] Failed to update task for userId=%s, completed=%s: %s",
            task_id, user_id, payload.completed, e, exc_info=True,
        )
        raise StorageFailureError("Failed to update task", error=str(e)) from e
    if not ok:
        logger.warning("[PUT /api/tasks/%s] Task not found or does not belong to userId=%s", task_id, user_id)
        raise TaskNotFoundError()
    logger.info("[PUT /api/tasks/%s] Task updated", task_id)
    return TaskCompletionOut(id=task_id, completed=payload.completed)


# PUBLIC_INTERFACE
@router.delete(
    "/{task_id}",
    response_model=TaskDeletedOut,
    summary="Delete Task",
    description="Delete an owned task. The userId travels in the JSON body.",
    responses={200: {"description": "Task deleted"}, 400: _BAD_REQUEST, 404: _NOT_FOUND, 500: _STORAGE},
)
def delete_task(
    task_id: int,
    payload: Optional[TaskDelete] = None,
    repo: Repository = Depends(_get_repo),
) -> TaskDeletedOut:
    """
    Delete a Task. Repeating the call on the same id returns 404.
    """
    user_id = _require_user_id(
        body_user_id(payload.user_id if payload else None), "User ID is required for deleting tasks."
    )

    logger.info("[DELETE /api/tasks/%s] Deleting task for userId=%s", task_id, user_id)
    try:
        ok = _addressable(task_id) and repo.delete(task_id, user_id)
    except StorageError as e:
        logger.error(
            "[DELETE /api/tasks/%s] Failed to delete task for userId=%s: %s",
            task_id, user_id, e, exc_info=True,
        )
        raise StorageFailureError("Failed to delete task", error=str(e)) from e
    if not ok:
        logger.warning("[DELETE /api/tasks/%s] Task not found or does not belong to userId=%s", task_id, user_id)
        raise TaskNotFoundError()
    logger.info("[DELETE /api/tasks/%s] Task deleted", task_id)
    return TaskDeletedOut(id=task_id)
