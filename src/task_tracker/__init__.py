"""
Task Tracker: a per-session task list served over a JSON REST API.
"""

__version__ = "0.1.0"
