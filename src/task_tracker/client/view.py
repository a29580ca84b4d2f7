from __future__ import annotations

import sys
from abc import ABC, abstractmethod
from typing import Callable, List, Sequence, TextIO

from .api import Task

# User-facing strings, one per state the interface can be in.
LOADING_TEXT = "Loading tasks..."
EMPTY_TEXT = "No tasks yet. Add one above!"
INPUT_REQUIRED_TITLE = "Input required"
INPUT_REQUIRED_TEXT = "Please enter a task before adding."
ERROR_TITLE = "Error"
CONFIRM_DELETE_TITLE = "Confirm deletion"


def confirm_delete_text(task: Task) -> str:
    return f'Are you sure you want to delete "{task.text}"?'


# PUBLIC_INTERFACE
class TaskView(ABC):
    """
    Presentation port driven by the TaskController.

    ``set_loading`` and ``render_tasks`` are purely presentational; the
    view decides for itself how "empty" looks when given no tasks.
    """

    @abstractmethod
    def show_user_id(self, user_id: str) -> None:
        """Display the session identifier."""

    @abstractmethod
    def set_loading(self, loading: bool) -> None:
        """Show or hide the loading indicator."""

    @abstractmethod
    def render_tasks(self, tasks: Sequence[Task]) -> None:
        """Replace the whole displayed list; an empty sequence shows the empty state."""

    @abstractmethod
    def clear_input(self) -> None:
        """Clear the new-task input after a successful add."""

    @abstractmethod
    def notify(self, title: str, message: str) -> None:
        """Show an informational or error message."""

    @abstractmethod
    def confirm(self, title: str, message: str) -> bool:
        """Ask a yes/no question; return True only on an affirmative answer."""


class ConsoleView(TaskView):
    """Plain terminal rendering of the task list."""

    def __init__(
        self,
        out: TextIO = sys.stdout,
        ask: Callable[[str], str] = input,
    ) -> None:
        self._out = out
        self._ask = ask
        self.visible: List[Task] = []

    def _print(self, line: str = "") -> None:
        print(line, file=self._out, flush=True)

    def show_user_id(self, user_id: str) -> None:
        self._print(f"Your session id: {user_id}")

    def set_loading(self, loading: bool) -> None:
        if loading:
            self._print(LOADING_TEXT)

    def render_tasks(self, tasks: Sequence[Task]) -> None:
        self.visible = list(tasks)
        if not self.visible:
            self._print(EMPTY_TEXT)
            return
        for n, task in enumerate(self.visible, start=1):
            mark = "x" if task.completed else " "
            self._print(f"{n:>3}. [{mark}] {task.text}")

    def clear_input(self) -> None:
        # The console prompt is cleared by the next read.
        pass

    def notify(self, title: str, message: str) -> None:
        self._print(f"{title}: {message}")

    def confirm(self, title: str, message: str) -> bool:
        try:
            answer = self._ask(f"{title}: {message} [y/N] ")
        except EOFError:
            return False
        return answer.strip().lower() in {"y", "yes"}
