from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import Any, Dict, Generator, List

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    and_,
    create_engine,
    delete,
    insert,
    select,
    text as sql_text,
    update,
)
from sqlalchemy.engine import Connection, Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from .errors import StorageError
from .models import TaskEntity
from .repositories import Repository, now_ms

logger = logging.getLogger(__name__)

metadata = MetaData()

tasks_table = Table(
    "tasks",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("text", Text, nullable=False),
    Column("completed", Boolean, nullable=False, default=False),
    Column("user_id", String(255), nullable=False),
    Column("created_at", BigInteger, nullable=False),
    Index("idx_tasks_user_id_created_at", "user_id", "created_at"),
)


def _make_engine(database_url: str, pool_size: int) -> Engine:
    """
    Build an engine with a bounded connection pool (no overflow connections).
    In-memory sqlite shares one connection so every request sees the same data.
    """
    url = make_url(database_url)
    kwargs: Dict[str, Any] = {"pool_pre_ping": True}

    if url.get_backend_name() == "sqlite":
        kwargs["connect_args"] = {"check_same_thread": False}
        if url.database in (None, "", ":memory:"):
            kwargs["poolclass"] = StaticPool
        else:
            os.makedirs(os.path.dirname(url.database) or ".", exist_ok=True)
            kwargs.update(pool_size=pool_size, max_overflow=0)
    else:
        kwargs.update(pool_size=pool_size, max_overflow=0, pool_recycle=3600)

    return create_engine(url, **kwargs)


def _describe(exc: SQLAlchemyError) -> str:
    """Underlying driver message when there is one, else the SQLAlchemy message."""
    orig = getattr(exc, "orig", None)
    return str(orig) if orig is not None else str(exc)


class SQLRepository(Repository):
    """
    Relational repository implementing the Repository interface with
    SQLAlchemy Core. All values travel as bound parameters.
    """

    def __init__(self, database_url: str, pool_size: int = 10) -> None:
        self._engine = _make_engine(database_url, pool_size)

    @property
    def engine(self) -> Engine:
        return self._engine

    @contextmanager
    def _conn(self, write: bool = False) -> Generator[Connection, None, None]:
        # write=True runs inside a transaction committed on exit
        try:
            with (self._engine.begin() if write else self._engine.connect()) as conn:
                yield conn
        except SQLAlchemyError as e:
            raise StorageError(_describe(e)) from e

    def initialize(self) -> None:
        with self._conn(write=True) as conn:
            metadata.create_all(conn)
            conn.execute(sql_text("SELECT 1"))
        logger.info("Database ready at %s", self._engine.url.render_as_string(hide_password=True))

    def close(self) -> None:
        self._engine.dispose()

    def _row_to_entity(self, row: Any) -> TaskEntity:
        return {
            "id": int(row.id),
            "text": str(row.text),
            "completed": bool(row.completed),
            "user_id": str(row.user_id),
            "created_at": int(row.created_at),
        }

    def list(self, user_id: str) -> List[TaskEntity]:
        stmt = (
            select(tasks_table)
            .where(tasks_table.c.user_id == user_id)
            .order_by(tasks_table.c.created_at.asc(), tasks_table.c.id.asc())
        )
        with self._conn() as conn:
            rows = conn.execute(stmt).fetchall()
            return [self._row_to_entity(r) for r in rows]

    def create(self, text: str, user_id: str) -> TaskEntity:
        created_at = now_ms()
        stmt = insert(tasks_table).values(
            text=text, completed=False, user_id=user_id, created_at=created_at
        )
        with self._conn(write=True) as conn:
            result = conn.execute(stmt)
            new_id = result.inserted_primary_key[0]
        return {
            "id": int(new_id),
            "text": text,
            "completed": False,
            "user_id": user_id,
            "created_at": created_at,
        }

    def _owned(self, task_id: int, user_id: str):
        return and_(tasks_table.c.id == task_id, tasks_table.c.user_id == user_id)

    def set_completed(self, task_id: int, user_id: str, completed: bool) -> bool:
        stmt = update(tasks_table).where(self._owned(task_id, user_id)).values(completed=completed)
        with self._conn(write=True) as conn:
            return conn.execute(stmt).rowcount > 0

    def delete(self, task_id: int, user_id: str) -> bool:
        stmt = delete(tasks_table).where(self._owned(task_id, user_id))
        with self._conn(write=True) as conn:
            return conn.execute(stmt).rowcount > 0
