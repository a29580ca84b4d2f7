"""
Run the task API server.

Usage:
    python -m task_tracker.api
    task-tracker-server
"""
from __future__ import annotations

import logging

import uvicorn

from ..logging_setup import setup_logging
from .main import create_app
from .settings import get_settings

logger = logging.getLogger("task_tracker.api")


# PUBLIC_INTERFACE
def main() -> None:
    """Configure logging, build the app and serve it on HOST:PORT."""
    settings = get_settings()
    setup_logging(console_level=settings.log_level, log_file=settings.log_file)
    app = create_app(settings)
    logger.info("Backend server starting on http://%s:%d", settings.host, settings.port)
    # log_config=None keeps uvicorn on the handlers configured above
    uvicorn.run(app, host=settings.host, port=settings.port, lifespan="on", log_config=None)


if __name__ == "__main__":
    main()
