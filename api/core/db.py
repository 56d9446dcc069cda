"""
Async database wiring (raw SQL) using asyncpg.

This module only creates and closes the connection pool. It keeps no
module-level handle: FastAPI creates the pool on startup, parks it on
`app.state` and hands it to repositories explicitly (see `api/main.py`).

SQL parameter style:
- asyncpg uses positional placeholders: $1, $2, $3, ...
"""

from __future__ import annotations

import logging
import os
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import asyncpg

logger = logging.getLogger(__name__)


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _sanitize_database_url(url: str) -> str:
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = [(k, v) for (k, v) in parse_qsl(parts.query, keep_blank_values=True) if k != "sslmode"]
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def database_url() -> str:
    url = os.environ.get("DATABASE_URL", "").strip()
    if not url:
        raise RuntimeError("DATABASE_URL is not set.")
    return _sanitize_database_url(url)


async def create_pool(dsn: str | None = None) -> asyncpg.Pool:
    """
    Open a pool. Pool size and command timeout come from
    DB_POOL_MIN_SIZE / DB_POOL_MAX_SIZE / DB_COMMAND_TIMEOUT_S.
    """
    min_size = max(_env_int("DB_POOL_MIN_SIZE", 1), 1)
    max_size = max(_env_int("DB_POOL_MAX_SIZE", 5), min_size)
    pool = await asyncpg.create_pool(
        dsn=dsn or database_url(),
        min_size=min_size,
        max_size=max_size,
        command_timeout=_env_int("DB_COMMAND_TIMEOUT_S", 30),
    )
    logger.info("db_pool_open min_size=%s max_size=%s", min_size, max_size)
    return pool


async def close_pool(pool: asyncpg.Pool | None) -> None:
    if pool is None:
        return None
    await pool.close()
    logger.info("db_pool_closed")
