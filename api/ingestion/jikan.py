"""
Remote catalog (Jikan) HTTP client.

Used endpoint:
- GET /anime/{id}  -> {"data": {...}}

One record per call, no retries: retry policy belongs to the caller (the
next ingestion run). Failures are classified into the catalog taxonomy:
- 404                                   -> NotFound
- 429, 5xx, other non-200, network, timeout -> Transient
- non-JSON body, missing `data`, bad shape  -> Malformed
"""

from __future__ import annotations

from typing import Any

import httpx

from anime.normalizer import normalize
from anime.schemas import AnimeRecord
from core.errors import Malformed, NotFound, Transient
from core.settings import DEFAULT_SOURCE_RESOURCE, DEFAULT_SOURCE_TIMEOUT_S


def _normalize_base_url(base_url: str) -> str:
    base_url = (base_url or "").strip()
    if not base_url:
        raise ValueError("CATALOG_SOURCE_BASE_URL is empty.")
    return base_url.rstrip("/")


class JikanClient:
    """
    Stateless fetcher for single catalog records.

    Pass `http_client` to reuse one connection pool across an ingestion run
    (or to plug in `httpx.MockTransport`); the caller then owns its lifetime.
    Without it, each call opens and closes its own short-lived client.
    """

    def __init__(
        self,
        base_url: str,
        *,
        resource: str = DEFAULT_SOURCE_RESOURCE,
        timeout_s: float = DEFAULT_SOURCE_TIMEOUT_S,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = _normalize_base_url(base_url)
        self.resource = resource.strip("/")
        self.timeout_s = timeout_s
        self._http_client = http_client

    def _path(self, anime_id: int) -> str:
        return f"/{self.resource}/{anime_id}"

    async def _get(self, anime_id: int) -> httpx.Response:
        url = self.base_url + self._path(anime_id)
        try:
            if self._http_client is not None:
                return await self._http_client.get(url, timeout=self.timeout_s)
            async with httpx.AsyncClient(timeout=self.timeout_s) as client:
                return await client.get(url)
        except httpx.TimeoutException as e:
            raise Transient(f"Timed out after {self.timeout_s}s fetching id {anime_id}.") from e
        except httpx.HTTPError as e:
            raise Transient(f"Request for id {anime_id} failed: {e}") from e

    async def fetch_payload(self, anime_id: int) -> dict[str, Any]:
        """
        Fetch the raw `data` object for one identifier.
        """
        resp = await self._get(anime_id)

        if resp.status_code == 404:
            raise NotFound(f"Remote source has no record with id {anime_id}.")
        if resp.status_code != 200:
            # Avoid dumping huge bodies; include a small snippet.
            snippet = resp.text[:300]
            raise Transient(f"Remote source returned {resp.status_code} for id {anime_id}: {snippet}")

        try:
            body: Any = resp.json()
        except ValueError as e:
            raise Malformed(f"Response for id {anime_id} is not valid JSON.") from e

        data = body.get("data") if isinstance(body, dict) else None
        if not isinstance(data, dict):
            raise Malformed(f"Response for id {anime_id} has no 'data' object.")
        return data

    async def fetch_by_id(self, anime_id: int) -> AnimeRecord:
        """
        Fetch one identifier and map it onto the canonical record.
        """
        payload = await self.fetch_payload(anime_id)
        record = normalize(payload)
        if record.id != anime_id:
            raise Malformed(f"Requested id {anime_id} but payload describes id {record.id}.")
        return record
