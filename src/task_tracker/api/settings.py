from __future__ import annotations

import os
import urllib.parse
from dataclasses import dataclass
from typing import List, Optional

from dotenv import load_dotenv

# Local .env values never override variables already set in the environment
load_dotenv(override=False)


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - PERSISTENCE_BACKEND: 'sql' (default) or 'memory'
    - DATABASE_URL: SQLAlchemy database URL; takes precedence over everything below
    - DB_HOST, DB_PORT, DB_USER, DB_PASSWORD, DB_NAME: MySQL connection parts,
      used to build a mysql+pymysql URL when DB_HOST is set
    - SQLITE_DB_PATH: sqlite file used when no other database is configured.
      Default './data/tasks.db'
    - DB_POOL_SIZE: maximum number of pooled database connections (default 10)
    - HOST, PORT: listening address of the API server (default 0.0.0.0:5000)
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - LOG_LEVEL: console log level (default INFO)
    - LOG_FILE: optional path of a log file receiving DEBUG and above
    """

    persistence_backend: str
    database_url: str
    db_pool_size: int
    host: str
    port: int
    cors_allow_origins: List[str]
    log_level: str
    log_file: Optional[str]


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_int(value: str, default: int) -> int:
    try:
        return int(value.strip())
    except ValueError:
        return default


_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


def _parse_log_level(value: str, default: str = "INFO") -> str:
    level = value.strip().upper()
    if level == "WARN":
        return "WARNING"
    return level if level in _LOG_LEVELS else default


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


def _build_database_url() -> str:
    """
    Resolve the SQLAlchemy URL.

    DATABASE_URL wins. Otherwise DB_HOST selects a MySQL server, with the
    password URL-encoded so special characters survive. Otherwise a local
    sqlite file is used.
    """
    explicit = os.getenv("DATABASE_URL")
    if explicit and explicit.strip():
        return explicit.strip()

    host = os.getenv("DB_HOST")
    if host and host.strip():
        user = _get_env("DB_USER", "root")
        password = urllib.parse.quote_plus(os.getenv("DB_PASSWORD", ""))
        port = _parse_int(_get_env("DB_PORT", "3306"), 3306)
        name = _get_env("DB_NAME", "tasks")
        return f"mysql+pymysql://{user}:{password}@{host.strip()}:{port}/{name}"

    sqlite_path = _get_env("SQLITE_DB_PATH", "./data/tasks.db").strip()
    return f"sqlite:///{sqlite_path}"


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    backend = _get_env("PERSISTENCE_BACKEND", "sql").strip().lower()
    if backend not in {"sql", "memory"}:
        # Fallback to the relational store if unsupported
        backend = "sql"

    pool_size = _parse_int(_get_env("DB_POOL_SIZE", "10"), 10)
    if pool_size < 1:
        pool_size = 10

    log_file = os.getenv("LOG_FILE")

    return Settings(
        persistence_backend=backend,
        database_url=_build_database_url(),
        db_pool_size=pool_size,
        host=_get_env("HOST", "0.0.0.0").strip(),
        port=_parse_int(_get_env("PORT", "5000"), 5000),
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
        log_level=_parse_log_level(_get_env("LOG_LEVEL", "INFO")),
        log_file=log_file.strip() if log_file and log_file.strip() else None,
    )
