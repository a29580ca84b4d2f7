"""
Interactive terminal client for the task API.

Each run is a fresh session with its own random user id; tasks from
earlier runs stay on the server but are not listed again.

Commands:
    ls              re-fetch and show the list
    add <text>      add a task
    done <n>        mark task n complete
    undo <n>        mark task n incomplete
    rm <n>          delete task n (asks for confirmation)
    id              show the session id
    help            show this help
    quit            leave
"""
from __future__ import annotations

import logging
import os
from typing import Callable, Dict, Optional

from dotenv import load_dotenv

from ..logging_setup import setup_logging
from .api import DEFAULT_API_URL, Task, TaskApiClient
from .controller import ClientSession, TaskController
from .view import ConsoleView

logger = logging.getLogger(__name__)

HELP_TEXT = (
    "Commands: ls | add <text> | done <n> | undo <n> | rm <n> | id | help | quit"
)


class CLI:
    def __init__(self, controller: TaskController, view: ConsoleView, ask: Callable[[str], str] = input) -> None:
        self.controller = controller
        self.view = view
        self._ask = ask
        self._commands: Dict[str, Callable[[str], None]] = {
            "ls": lambda arg: self.controller.refresh(),
            "add": self.controller.add_task,
            "done": lambda arg: self._toggle(arg, True),
            "undo": lambda arg: self._toggle(arg, False),
            "rm": self._delete,
            "id": lambda arg: self.controller.view.show_user_id(self.controller.user_id),
            "help": lambda arg: self.view.notify("Help", HELP_TEXT),
        }

    def _pick(self, arg: str) -> Optional[Task]:
        """Resolve a 1-based list position as shown by the last render."""
        try:
            n = int(arg.strip())
        except ValueError:
            self.view.notify("Error", f"Not a task number: {arg!r}")
            return None
        if not 1 <= n <= len(self.controller.tasks):
            self.view.notify("Error", f"No task number {n}")
            return None
        return self.controller.tasks[n - 1]

    def _toggle(self, arg: str, completed: bool) -> None:
        task = self._pick(arg)
        if task is not None:
            self.controller.toggle_task(task.id, completed)

    def _delete(self, arg: str) -> None:
        task = self._pick(arg)
        if task is not None:
            self.controller.delete_task(task)

    def handle(self, line: str) -> bool:
        """Run one command line. Returns False when the session should end."""
        name, _, arg = line.strip().partition(" ")
        name = name.lower()
        if not name:
            return True
        if name in {"quit", "exit", "q"}:
            return False
        command = self._commands.get(name)
        if command is None:
            self.view.notify("Unknown command", HELP_TEXT)
            return True
        command(arg)
        return True

    def run(self) -> None:
        """Main REPL loop."""
        self.controller.start()
        self.view.notify("Help", HELP_TEXT)
        while True:
            try:
                line = self._ask("> ")
            except (EOFError, KeyboardInterrupt):
                break
            if not self.handle(line):
                break


# PUBLIC_INTERFACE
def main() -> None:
    """Entry point of the ``task-tracker`` console client."""
    load_dotenv(override=False)
    setup_logging(console_level=os.getenv("LOG_LEVEL", "WARNING").upper())
    api_url = os.getenv("TASK_API_URL", DEFAULT_API_URL)
    logger.info("Using task API at %s", api_url)

    view = ConsoleView()
    with TaskApiClient(api_url) as api:
        controller = TaskController(api, view, ClientSession())
        CLI(controller, view).run()


if __name__ == "__main__":
    main()
