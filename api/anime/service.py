"""
Anime query service.

Validates read requests and serves them from the repository:
- pagination bounds (bad values fall back to defaults, never an error)
- search term validation
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Protocol

from core.errors import BadRequest

from .schemas import AnimeRecord

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20
MAX_LIMIT = 100
# OFFSET is a bigint in Postgres.
MAX_OFFSET = 2**63 - 1


class AnimeStore(Protocol):
    async def fetch_by_id(self, anime_id: int) -> AnimeRecord: ...

    async def fetch_page(self, *, offset: int, limit: int) -> tuple[list[AnimeRecord], int]: ...

    async def search_by_title(self, substring: str) -> list[AnimeRecord]: ...


@dataclass(frozen=True)
class PageResult:
    items: list[AnimeRecord]
    page: int
    limit: int
    total: int
    total_pages: int

    def to_json(self) -> dict[str, Any]:
        return {
            "data": [item.to_json() for item in self.items],
            "meta": {
                "page": self.page,
                "limit": self.limit,
                "total": self.total,
                "totalPages": self.total_pages,
            },
        }


def resolve_page(page: int | None, limit: int = DEFAULT_LIMIT) -> int:
    if page is None or page < 1 or (page - 1) * limit > MAX_OFFSET:
        return DEFAULT_PAGE
    return page


def resolve_limit(limit: int | None) -> int:
    if limit is None or limit < 1 or limit > MAX_LIMIT:
        return DEFAULT_LIMIT
    return limit


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit)


class AnimeQueryService:
    def __init__(self, repository: AnimeStore) -> None:
        self._repository = repository

    async def list_page(self, page: int | None = DEFAULT_PAGE, limit: int | None = DEFAULT_LIMIT) -> PageResult:
        limit = resolve_limit(limit)
        page = resolve_page(page, limit)
        items, total = await self._repository.fetch_page(offset=(page - 1) * limit, limit=limit)
        return PageResult(
            items=items,
            page=page,
            limit=limit,
            total=total,
            total_pages=total_pages(total, limit),
        )

    async def get(self, anime_id: int) -> AnimeRecord:
        return await self._repository.fetch_by_id(anime_id)

    async def search(self, title: str | None) -> list[AnimeRecord]:
        term = (title or "").strip()
        if not term:
            raise BadRequest("Title query parameter is required.")
        if "\x00" in term:
            raise BadRequest("Title must not contain NUL characters.")
        return await self._repository.search_by_title(term)
