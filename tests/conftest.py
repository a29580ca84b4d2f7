from __future__ import annotations

from pathlib import Path
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from task_tracker.api.db import SQLRepository
from task_tracker.api.main import create_app
from task_tracker.api.repositories import InMemoryRepository, Repository
from task_tracker.api.settings import Settings


def make_settings(backend: str, database_url: str = "sqlite://") -> Settings:
    """
    Settings built directly rather than from the environment, to keep
    tests isolated from whatever the developer has in .env.
    """
    return Settings(
        persistence_backend=backend,
        database_url=database_url,
        db_pool_size=5,
        host="127.0.0.1",
        port=5000,
        cors_allow_origins=["*"],
        log_level="INFO",
        log_file=None,
    )


@pytest.fixture(params=["memory", "sql"])
def backend(request) -> str:
    return request.param


@pytest.fixture()
def repository(backend: str, tmp_path: Path) -> Iterator[Repository]:
    """Fresh repository per test: in-memory, or sqlite in a temp file."""
    if backend == "memory":
        repo: Repository = InMemoryRepository()
    else:
        repo = SQLRepository(f"sqlite:///{tmp_path / 'tasks.db'}", pool_size=5)
    repo.initialize()
    yield repo
    repo.close()


@pytest.fixture()
def client(backend: str, repository: Repository) -> Iterator[TestClient]:
    app = create_app(make_settings(backend), repository=repository)
    with TestClient(app) as c:
        yield c
