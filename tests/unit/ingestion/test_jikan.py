"""Unit tests for JikanClient using httpx.MockTransport."""

from collections.abc import AsyncGenerator, Callable

import httpx
import pytest

from core.errors import Malformed, NotFound, Transient
from ingestion.jikan import JikanClient

BASE_URL = "https://api.example.test/v4"

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture
async def make_client() -> AsyncGenerator[Callable[[Handler], JikanClient], None]:
    opened: list[httpx.AsyncClient] = []

    def _make(handler: Handler) -> JikanClient:
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        opened.append(http_client)
        return JikanClient(BASE_URL, http_client=http_client, timeout_s=2.0)

    yield _make
    for http_client in opened:
        await http_client.aclose()


class TestFetchById:
    async def test_success_returns_normalized_record(self, make_client, payload_factory):
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.path)
            return httpx.Response(200, json={"data": payload_factory(1)})

        record = await make_client(handler).fetch_by_id(1)

        assert seen == ["/v4/anime/1"]
        assert record.id == 1
        assert record.title == "Cowboy Bebop"
        assert record.image == "https://cdn.example/images/1l.jpg"

    async def test_resource_path_is_configurable(self, payload_factory):
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.path)
            return httpx.Response(200, json={"data": payload_factory(2)})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
            client = JikanClient(BASE_URL + "/", resource="/catalog/", http_client=http_client)
            await client.fetch_by_id(2)

        assert seen == ["/v4/catalog/2"]

    async def test_404_is_not_found(self, make_client):
        client = make_client(lambda request: httpx.Response(404, json={"status": 404}))
        with pytest.raises(NotFound):
            await client.fetch_by_id(3)

    @pytest.mark.parametrize("status_code", [500, 502, 503, 429])
    async def test_server_errors_and_throttling_are_transient(self, make_client, status_code):
        client = make_client(lambda request: httpx.Response(status_code, text="busy"))
        with pytest.raises(Transient):
            await client.fetch_by_id(3)

    async def test_connection_failure_is_transient(self, make_client):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(Transient):
            await make_client(handler).fetch_by_id(3)

    async def test_timeout_is_transient(self, make_client):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(Transient):
            await make_client(handler).fetch_by_id(3)

    async def test_non_json_body_is_malformed(self, make_client):
        client = make_client(lambda request: httpx.Response(200, text="<html>oops</html>"))
        with pytest.raises(Malformed):
            await client.fetch_by_id(3)

    @pytest.mark.parametrize("body", [{}, {"data": None}, {"data": []}, ["data"]])
    async def test_missing_data_object_is_malformed(self, make_client, body):
        client = make_client(lambda request: httpx.Response(200, json=body))
        with pytest.raises(Malformed):
            await client.fetch_by_id(3)

    async def test_payload_without_title_is_malformed(self, make_client):
        client = make_client(lambda request: httpx.Response(200, json={"data": {"mal_id": 3}}))
        with pytest.raises(Malformed):
            await client.fetch_by_id(3)

    async def test_payload_for_another_id_is_malformed(self, make_client, payload_factory):
        client = make_client(lambda request: httpx.Response(200, json={"data": payload_factory(4)}))
        with pytest.raises(Malformed):
            await client.fetch_by_id(3)


class TestFetchPayload:
    async def test_returns_raw_data_object(self, make_client, payload_factory):
        client = make_client(lambda request: httpx.Response(200, json={"data": payload_factory(1)}))

        payload = await client.fetch_payload(1)

        assert payload["score"] == 8.75
        assert payload["mal_id"] == 1


class TestConstruction:
    def test_empty_base_url_is_rejected(self):
        with pytest.raises(ValueError):
            JikanClient("   ")
