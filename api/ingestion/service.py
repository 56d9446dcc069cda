"""
Ingestion "service layer".

One ingestion run sweeps an identifier range against the remote catalog:

1) wait the minimum inter-request delay (skipped before the first call)
2) fetch the record from the remote source (normalized on the way in)
3) upsert it into the store

A failing identifier is logged and tallied, and the sweep moves on. The whole
run is bounded by a wall-clock deadline; on expiry the in-flight attempt is
cancelled and dropped from the counts, and the summary so far is returned.
Re-running a range is safe because upserts are idempotent.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx

from anime.schemas import AnimeRecord
from core.errors import BadRequest, CatalogError
from core.settings import DEFAULT_INGEST_DEADLINE_S, DEFAULT_INGEST_MIN_DELAY_MS, Settings

from .jikan import JikanClient

logger = logging.getLogger(__name__)


class CatalogSource(Protocol):
    async def fetch_by_id(self, anime_id: int) -> AnimeRecord: ...


class AnimeWriter(Protocol):
    async def upsert(self, record: AnimeRecord) -> AnimeRecord: ...


@dataclass(frozen=True)
class IngestFailure:
    anime_id: int
    kind: str
    detail: str


@dataclass
class IngestSummary:
    start_id: int
    end_id: int
    succeeded: int = 0
    failed: int = 0
    attempted: int = 0
    errors: list[IngestFailure] = field(default_factory=list)
    deadline_exceeded: bool = False

    def record_success(self) -> None:
        self.attempted += 1
        self.succeeded += 1

    def record_failure(self, anime_id: int, error: CatalogError) -> None:
        self.attempted += 1
        self.failed += 1
        self.errors.append(IngestFailure(anime_id=anime_id, kind=error.kind, detail=error.message))

    def to_json(self) -> dict[str, Any]:
        return {
            "start_id": self.start_id,
            "end_id": self.end_id,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "attempted": self.attempted,
            "errors": [
                {"id": e.anime_id, "kind": e.kind, "detail": e.detail}
                for e in self.errors
            ],
            "deadline_exceeded": self.deadline_exceeded,
        }


class IngestionOrchestrator:
    def __init__(
        self,
        source: CatalogSource,
        store: AnimeWriter,
        *,
        min_delay_s: float = DEFAULT_INGEST_MIN_DELAY_MS / 1000.0,
        deadline_s: float = DEFAULT_INGEST_DEADLINE_S,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._source = source
        self._store = store
        self.min_delay_s = max(min_delay_s, 0.0)
        self.deadline_s = deadline_s
        self._sleep = sleep

    async def run_range(self, start_id: int, end_id: int) -> IngestSummary:
        """
        Ingest `start_id..end_id` (inclusive), sequentially.

        Returns when the range is exhausted or the deadline expires, whichever
        comes first. Non-catalog exceptions (e.g. the database is down) abort
        the run and propagate.
        """
        if start_id < 1:
            raise BadRequest(f"start_id must be >= 1 (got {start_id}).")
        if end_id < start_id:
            raise BadRequest(f"end_id ({end_id}) must be >= start_id ({start_id}).")

        summary = IngestSummary(start_id=start_id, end_id=end_id)
        loop = asyncio.get_running_loop()
        deadline = asyncio.timeout_at(loop.time() + self.deadline_s)

        try:
            async with deadline:
                for anime_id in range(start_id, end_id + 1):
                    if anime_id > start_id and self.min_delay_s > 0:
                        await self._sleep(self.min_delay_s)
                    await self._ingest_one(anime_id, summary)
        except TimeoutError:
            # A TimeoutError from inside an attempt (e.g. a DB command timeout)
            # is not ours to swallow.
            if not deadline.expired():
                raise
            summary.deadline_exceeded = True
            logger.warning(
                "ingest_deadline_exceeded start_id=%s end_id=%s deadline_s=%s attempted=%s",
                start_id,
                end_id,
                self.deadline_s,
                summary.attempted,
            )

        logger.info(
            "ingest_run_complete start_id=%s end_id=%s attempted=%s succeeded=%s failed=%s",
            start_id,
            end_id,
            summary.attempted,
            summary.succeeded,
            summary.failed,
        )
        return summary

    async def _ingest_one(self, anime_id: int, summary: IngestSummary) -> None:
        try:
            record = await self._source.fetch_by_id(anime_id)
            await self._store.upsert(record)
        except CatalogError as e:
            summary.record_failure(anime_id, e)
            logger.warning("ingest_failed anime_id=%s kind=%s error=%s", anime_id, e.kind, e.message)
            return

        summary.record_success()
        logger.info("ingest_ok anime_id=%s title=%r", anime_id, record.title)


async def ingest_range(
    settings: Settings,
    store: AnimeWriter,
    start_id: int,
    end_id: int,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> IngestSummary:
    """
    Run one ingestion with a connection pool to the remote source shared by
    every call in the run. `transport` overrides the HTTP transport (tests).
    """
    async with httpx.AsyncClient(transport=transport) as http_client:
        source = JikanClient(
            settings.source_base_url,
            resource=settings.source_resource,
            timeout_s=settings.source_timeout_s,
            http_client=http_client,
        )
        orchestrator = IngestionOrchestrator(
            source,
            store,
            min_delay_s=settings.ingest_min_delay_s,
            deadline_s=settings.ingest_deadline_s,
        )
        return await orchestrator.run_range(start_id, end_id)


async def ingest_range_background(settings: Settings, store: AnimeWriter, start_id: int, end_id: int) -> None:
    """
    BackgroundTasks entrypoint.

    This should never raise to the request path; we just log failures.
    """
    try:
        await ingest_range(settings, store, start_id, end_id)
    except Exception:
        logger.exception("ingest_run_failed start_id=%s end_id=%s", start_id, end_id)
