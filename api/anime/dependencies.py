"""
FastAPI dependencies for the catalog routes, plus error -> HTTP mapping.

The DB pool lives on `app.state.db_pool` (set in the lifespan hook); every
request builds its repository from that explicit handle.
"""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request

from core.errors import BadRequest, CatalogError, ConstraintViolation, Malformed, NotFound, Transient

from .repository import AnimeRepository
from .service import AnimeQueryService

ERROR_STATUS_MAP: dict[type[CatalogError], int] = {
    NotFound: 404,
    BadRequest: 400,
    Malformed: 422,
    ConstraintViolation: 422,
    Transient: 503,
}


def to_http_error(error: CatalogError) -> HTTPException:
    return HTTPException(
        status_code=ERROR_STATUS_MAP.get(type(error), 500),
        detail={"code": error.kind, "message": error.message},
    )


def get_repository(request: Request) -> AnimeRepository:
    pool = getattr(request.app.state, "db_pool", None)
    if pool is None:
        raise RuntimeError("DB pool is not initialized. Create it in the app lifespan.")
    return AnimeRepository(pool)


def get_query_service(repository: AnimeRepository = Depends(get_repository)) -> AnimeQueryService:
    return AnimeQueryService(repository)
