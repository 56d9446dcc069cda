"""
Anime catalog persistence (raw SQL).

Schema comes from the dbmate migration in `db/migrations/`:
- anime(id, url, title, image, episodes, aired jsonb, synopsis, updated)

Rows are decoded straight into `AnimeRecord`; nothing dict-shaped leaves
this module.
"""

from __future__ import annotations

import json
from typing import Any

import asyncpg

from core.errors import ConstraintViolation, NotFound

from .schemas import AiredInterval, AnimeRecord

COLUMNS = "id, url, title, image, episodes, aired, synopsis, updated"

# `anime.id` is a Postgres integer (int4).
MAX_ANIME_ID = 2**31 - 1


def _json_arg(aired: AiredInterval) -> str:
    """
    asyncpg does not automatically encode Python dicts for json/jsonb parameters.
    We pass JSON as a string and cast to jsonb in SQL.
    """
    return json.dumps(aired.model_dump(mode="json", by_alias=True), ensure_ascii=True)


def _decode_aired(raw: Any) -> AiredInterval:
    if raw is None:
        return AiredInterval()
    if isinstance(raw, str):
        raw = json.loads(raw)
    return AiredInterval.model_validate(raw)


def _row_to_record(row: asyncpg.Record) -> AnimeRecord:
    return AnimeRecord(
        id=int(row["id"]),
        url=row["url"],
        title=str(row["title"]),
        image=row["image"],
        episodes=row["episodes"],
        aired=_decode_aired(row["aired"]),
        synopsis=row["synopsis"],
        updated_at=row["updated"],
    )


class AnimeRepository:
    def __init__(self, pool: asyncpg.Pool) -> None:
        self._pool = pool

    async def upsert(self, record: AnimeRecord) -> AnimeRecord:
        """
        Insert the record, or overwrite every mutable column if the id exists.

        `updated` never moves backwards for an id, even if the DB clock does.
        Concurrent writers to the same id: last write wins.
        """
        if not (record.title or "").strip():
            raise ConstraintViolation(f"Record {record.id} has an empty title.")

        try:
            row = await self._pool.fetchrow(
                f"""
                INSERT INTO anime (id, url, title, image, episodes, aired, synopsis, updated)
                VALUES ($1, $2, $3, $4, $5, $6::jsonb, $7, now())
                ON CONFLICT (id) DO UPDATE
                SET url = EXCLUDED.url,
                    title = EXCLUDED.title,
                    image = EXCLUDED.image,
                    episodes = EXCLUDED.episodes,
                    aired = EXCLUDED.aired,
                    synopsis = EXCLUDED.synopsis,
                    updated = GREATEST(EXCLUDED.updated, anime.updated)
                RETURNING {COLUMNS}
                """,
                record.id,
                record.url,
                record.title,
                record.image,
                record.episodes,
                _json_arg(record.aired),
                record.synopsis,
            )
        except asyncpg.IntegrityConstraintViolationError as e:
            raise ConstraintViolation(f"Record {record.id} rejected by the store ({type(e).__name__}).") from e

        if row is None:
            raise RuntimeError(f"Failed to upsert anime {record.id}.")
        return _row_to_record(row)

    async def fetch_by_id(self, anime_id: int) -> AnimeRecord:
        if not 1 <= anime_id <= MAX_ANIME_ID:
            raise NotFound(f"Anime with id {anime_id} not found.")
        row = await self._pool.fetchrow(
            f"""
            SELECT {COLUMNS}
            FROM anime
            WHERE id = $1
            """,
            anime_id,
        )
        if row is None:
            raise NotFound(f"Anime with id {anime_id} not found.")
        return _row_to_record(row)

    async def count(self) -> int:
        total = await self._pool.fetchval("SELECT count(*) FROM anime")
        return int(total or 0)

    async def fetch_page(self, *, offset: int, limit: int) -> tuple[list[AnimeRecord], int]:
        """
        One page ordered by ascending id, plus the total row count.

        Both statements run on one connection but not in one snapshot; a
        concurrent write may shift the page boundary.
        """
        async with self._pool.acquire() as conn:  # type: asyncpg.Connection
            rows = await conn.fetch(
                f"""
                SELECT {COLUMNS}
                FROM anime
                ORDER BY id
                LIMIT $1
                OFFSET $2
                """,
                limit,
                offset,
            )
            total = await conn.fetchval("SELECT count(*) FROM anime")
        return [_row_to_record(r) for r in rows], int(total or 0)

    async def search_by_title(self, substring: str) -> list[AnimeRecord]:
        """
        Case-insensitive title containment. `strpos` keeps `%` and `_`
        literal, unlike LIKE.
        """
        rows = await self._pool.fetch(
            f"""
            SELECT {COLUMNS}
            FROM anime
            WHERE strpos(lower(title), lower($1)) > 0
            ORDER BY id
            """,
            substring,
        )
        return [_row_to_record(r) for r in rows]
