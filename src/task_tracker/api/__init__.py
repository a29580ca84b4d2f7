"""
Task Tracker API package.

Exposes the FastAPI application factory for convenience imports
(``from task_tracker.api import create_app``).
"""

from .main import create_app  # noqa: F401
