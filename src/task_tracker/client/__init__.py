"""
Client side of the task tracker: REST client, controller and views.
"""

from .api import Task, TaskApiClient, TaskApiError  # noqa: F401
from .controller import ClientSession, TaskController  # noqa: F401
