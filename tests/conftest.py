"""Shared fixtures and in-memory fakes for the catalog tests."""

import asyncio
from datetime import datetime, timezone
from typing import Any

import pytest

from anime.schemas import AnimeRecord
from core.errors import CatalogError, ConstraintViolation, NotFound


class FakeAnimeStore:
    """In-memory stand-in for AnimeRepository with the same contract."""

    def __init__(self) -> None:
        self.rows: dict[int, AnimeRecord] = {}
        self.upsert_calls = 0

    async def upsert(self, record: AnimeRecord) -> AnimeRecord:
        self.upsert_calls += 1
        if not record.title.strip():
            raise ConstraintViolation(f"Record {record.id} has an empty title.")
        now = datetime.now(timezone.utc)
        previous = self.rows.get(record.id)
        if previous is not None and previous.updated_at is not None and previous.updated_at > now:
            now = previous.updated_at
        stored = record.model_copy(update={"updated_at": now})
        self.rows[record.id] = stored
        return stored

    async def fetch_by_id(self, anime_id: int) -> AnimeRecord:
        if anime_id not in self.rows:
            raise NotFound(f"Anime with id {anime_id} not found.")
        return self.rows[anime_id]

    async def fetch_page(self, *, offset: int, limit: int) -> tuple[list[AnimeRecord], int]:
        ordered = [self.rows[k] for k in sorted(self.rows)]
        return ordered[offset : offset + limit], len(ordered)

    async def search_by_title(self, substring: str) -> list[AnimeRecord]:
        needle = substring.lower()
        return [r for _, r in sorted(self.rows.items()) if needle in r.title.lower()]


class FakeSource:
    """Remote source fake: scripted errors per id, optional hang."""

    def __init__(
        self,
        errors: dict[int, Exception] | None = None,
        hang_on: set[int] | None = None,
    ) -> None:
        self.errors = errors or {}
        self.hang_on = hang_on or set()
        self.calls: list[int] = []

    async def fetch_by_id(self, anime_id: int) -> AnimeRecord:
        self.calls.append(anime_id)
        if anime_id in self.hang_on:
            await asyncio.sleep(3600)
        if anime_id in self.errors:
            raise self.errors[anime_id]
        return AnimeRecord(id=anime_id, title=f"Anime {anime_id}", episodes=12)


def jikan_payload(anime_id: int = 1, **overrides: Any) -> dict[str, Any]:
    """A full-shape remote payload (the `data` object)."""
    payload: dict[str, Any] = {
        "mal_id": anime_id,
        "url": f"https://myanimelist.net/anime/{anime_id}/Cowboy_Bebop",
        "images": {
            "jpg": {
                "image_url": "https://cdn.example/images/1.jpg",
                "small_image_url": "https://cdn.example/images/1t.jpg",
                "large_image_url": "https://cdn.example/images/1l.jpg",
            },
            "webp": {
                "image_url": "https://cdn.example/images/1.webp",
                "small_image_url": "https://cdn.example/images/1t.webp",
                "large_image_url": "https://cdn.example/images/1l.webp",
            },
        },
        "title": "Cowboy Bebop",
        "episodes": 26,
        "aired": {
            "from": "1998-04-03T00:00:00+00:00",
            "to": "1999-04-24T00:00:00+00:00",
            "string": "Apr 3, 1998 to Apr 24, 1999",
        },
        "synopsis": "Crime is timeless.",
        "score": 8.75,
        "genres": [{"mal_id": 1, "name": "Action"}],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def store() -> FakeAnimeStore:
    return FakeAnimeStore()


@pytest.fixture
def fake_source_factory():
    def _make(
        errors: dict[int, CatalogError | Exception] | None = None,
        hang_on: set[int] | None = None,
    ) -> FakeSource:
        return FakeSource(errors=errors, hang_on=hang_on)

    return _make


@pytest.fixture
def payload_factory():
    return jikan_payload
