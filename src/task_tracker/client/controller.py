from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import List

from .api import Task, TaskApiClient, TaskApiError
from .view import (
    CONFIRM_DELETE_TITLE,
    ERROR_TITLE,
    INPUT_REQUIRED_TEXT,
    INPUT_REQUIRED_TITLE,
    TaskView,
    confirm_delete_text,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClientSession:
    """
    Identity of one client session. A new session gets a new random id,
    so tasks created under an earlier session are no longer listed.
    """

    user_id: str = field(default_factory=lambda: str(uuid.uuid4()))


# PUBLIC_INTERFACE
class TaskController:
    """
    Owns the client-side lifecycle and is the only thing that
    synchronizes with the server.

    Every mutation is followed by a full re-fetch of the list, whether it
    succeeded or not, so the view always ends up showing server state.
    """

    def __init__(self, api: TaskApiClient, view: TaskView, session: ClientSession) -> None:
        self.api = api
        self.view = view
        self.session = session
        self.tasks: List[Task] = []

    @property
    def user_id(self) -> str:
        return self.session.user_id

    def start(self) -> None:
        self.view.show_user_id(self.user_id)
        self.refresh()

    def _report(self, action: str, error: TaskApiError) -> None:
        logger.warning("%s failed: %s", action, error.message)
        self.view.notify(ERROR_TITLE, f"{action} failed: {error.message}")

    def refresh(self) -> None:
        """Fetch and render the whole list; the loading flag is always cleared."""
        self.view.set_loading(True)
        try:
            self.tasks = self.api.list_tasks(self.user_id)
            self.view.render_tasks(self.tasks)
        except TaskApiError as e:
            self._report("Loading tasks", e)
        finally:
            self.view.set_loading(False)

    def add_task(self, text: str) -> bool:
        """
        Create a task. Blank text is rejected locally without a request.
        Returns True when the server accepted the task.
        """
        text = text.strip()
        if not text:
            self.view.notify(INPUT_REQUIRED_TITLE, INPUT_REQUIRED_TEXT)
            return False

        created = False
        try:
            self.api.create_task(text, self.user_id)
            created = True
            self.view.clear_input()
        except TaskApiError as e:
            self._report("Adding task", e)
        finally:
            self.refresh()
        return created

    def toggle_task(self, task_id: int, completed: bool) -> bool:
        ok = False
        try:
            self.api.set_completed(task_id, completed, self.user_id)
            ok = True
        except TaskApiError as e:
            self._report("Updating task", e)
        finally:
            self.refresh()
        return ok

    def delete_task(self, task: Task) -> bool:
        """
        Delete after an affirmative confirmation. A declined confirmation
        sends nothing and leaves the list untouched.
        """
        if not self.view.confirm(CONFIRM_DELETE_TITLE, confirm_delete_text(task)):
            return False

        ok = False
        try:
            self.api.delete_task(task.id, self.user_id)
            ok = True
        except TaskApiError as e:
            self._report("Deleting task", e)
        finally:
            self.refresh()
        return ok
