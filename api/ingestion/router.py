"""
FastAPI router for ingestion endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, Request

from anime.dependencies import get_repository, to_http_error
from anime.repository import AnimeRepository
from core.errors import CatalogError
from core.settings import Settings, load_settings

from . import schemas, service

router = APIRouter()


def get_settings(request: Request) -> Settings:
    settings = getattr(request.app.state, "settings", None)
    return settings if settings is not None else load_settings()


@router.post("/ingest/runs")
async def run_ingestion(
    payload: schemas.IngestRunRequest,
    background_tasks: BackgroundTasks,
    settings: Settings = Depends(get_settings),
    repository: AnimeRepository = Depends(get_repository),
) -> dict:
    """
    Sweep `start_id..end_id` against the remote catalog and upsert results.

    By default the run happens inside the request (bounded by the ingestion
    deadline) and the summary is returned. With `background=true` the run
    starts after the response and its summary goes to the logs.
    """
    if payload.background:
        background_tasks.add_task(
            service.ingest_range_background,
            settings,
            repository,
            payload.start_id,
            payload.end_id,
        )
        return {"started": True, "start_id": payload.start_id, "end_id": payload.end_id}

    try:
        summary = await service.ingest_range(settings, repository, payload.start_id, payload.end_id)
    except CatalogError as e:
        raise to_http_error(e) from e
    return summary.to_json()
