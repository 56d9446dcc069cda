"""
Environment-backed settings.

Empty or unparsable values fall back to the defaults below so a typo in a
compose file degrades to defaults instead of crashing the process.
DATABASE_URL is the exception: see `core/db.py`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_SOURCE_BASE_URL = "https://api.jikan.moe/v4"
DEFAULT_SOURCE_RESOURCE = "anime"
DEFAULT_SOURCE_TIMEOUT_S = 10.0

DEFAULT_INGEST_MIN_DELAY_MS = 350
DEFAULT_INGEST_DEADLINE_S = 30.0

DEFAULT_CORS_ORIGINS = ("http://localhost:5173", "http://127.0.0.1:5173")


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_str(name: str, default: str) -> str:
    return os.environ.get(name, default).strip() or default


def _env_csv(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    values = tuple(part.strip() for part in raw.split(",") if part.strip())
    return values or default


@dataclass(frozen=True)
class Settings:
    source_base_url: str = DEFAULT_SOURCE_BASE_URL
    source_resource: str = DEFAULT_SOURCE_RESOURCE
    source_timeout_s: float = DEFAULT_SOURCE_TIMEOUT_S
    ingest_min_delay_s: float = DEFAULT_INGEST_MIN_DELAY_MS / 1000.0
    ingest_deadline_s: float = DEFAULT_INGEST_DEADLINE_S
    cors_allow_origins: tuple[str, ...] = DEFAULT_CORS_ORIGINS


def load_settings() -> Settings:
    """
    Build `Settings` from the current environment.

    - CATALOG_SOURCE_BASE_URL: remote catalog API root
    - CATALOG_SOURCE_RESOURCE: path segment before the id (`/anime/{id}`)
    - CATALOG_SOURCE_TIMEOUT_S: per-call timeout for the remote source
    - INGEST_MIN_DELAY_MS: pause enforced between successive remote calls
    - INGEST_DEADLINE_S: wall-clock budget for one ingestion run
    - CORS_ALLOW_ORIGINS: comma-separated list of browser origins
    """
    timeout_s = _env_float("CATALOG_SOURCE_TIMEOUT_S", DEFAULT_SOURCE_TIMEOUT_S)
    if timeout_s <= 0:
        timeout_s = DEFAULT_SOURCE_TIMEOUT_S

    delay_ms = _env_int("INGEST_MIN_DELAY_MS", DEFAULT_INGEST_MIN_DELAY_MS)
    if delay_ms < 0:
        delay_ms = DEFAULT_INGEST_MIN_DELAY_MS

    deadline_s = _env_float("INGEST_DEADLINE_S", DEFAULT_INGEST_DEADLINE_S)
    if deadline_s <= 0:
        deadline_s = DEFAULT_INGEST_DEADLINE_S

    return Settings(
        source_base_url=_env_str("CATALOG_SOURCE_BASE_URL", DEFAULT_SOURCE_BASE_URL),
        source_resource=_env_str("CATALOG_SOURCE_RESOURCE", DEFAULT_SOURCE_RESOURCE).strip("/"),
        source_timeout_s=timeout_s,
        ingest_min_delay_s=delay_ms / 1000.0,
        ingest_deadline_s=deadline_s,
        cors_allow_origins=_env_csv("CORS_ALLOW_ORIGINS", DEFAULT_CORS_ORIGINS),
    )
