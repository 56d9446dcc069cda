"""
Read API endpoints for the anime catalog.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from core.errors import CatalogError

from . import service
from .dependencies import get_query_service, to_http_error

router = APIRouter()


def _parse_int(raw: str | None) -> int | None:
    # Garbage in the query string means "use the default", not 422.
    if raw is None:
        return None
    try:
        return int(raw.strip())
    except ValueError:
        return None


@router.get("/anime")
async def list_anime(
    page: str | None = Query(default=None),
    limit: str | None = Query(default=None),
    query_service: service.AnimeQueryService = Depends(get_query_service),
) -> dict:
    result = await query_service.list_page(_parse_int(page), _parse_int(limit))
    return result.to_json()


@router.get("/anime/search")
async def search_anime(
    title: str | None = Query(default=None, max_length=500),
    query_service: service.AnimeQueryService = Depends(get_query_service),
) -> list[dict]:
    try:
        results = await query_service.search(title)
    except CatalogError as e:
        raise to_http_error(e) from e
    return [record.to_json() for record in results]


@router.get("/anime/{anime_id}")
async def get_anime(
    anime_id: int,
    query_service: service.AnimeQueryService = Depends(get_query_service),
) -> dict:
    try:
        record = await query_service.get(anime_id)
    except CatalogError as e:
        raise to_http_error(e) from e
    return record.to_json()
