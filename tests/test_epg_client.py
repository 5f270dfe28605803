"""
Tests for the EPG provider client: request shape, parsing and error
classification.
"""
import json
from datetime import date

import httpx
import pytest

from app.services.epg_client import EPGClient, convert_item
from app.services.errors import (
    NotFoundError,
    UpstreamProtocolError,
    UpstreamUnavailableError,
)


DAY = date(2024, 10, 15)

ITEM = {
    "id": "1",
    "season": {"number": 1},
    "episode": {"number": 1},
    "tvShow": {"id": "1", "title": "Title", "description": "Description"},
    "startTime": "2024-10-15T10:00:00Z",
    "endTime": "2024-10-15T11:00:00Z",
}


def make_client(handler) -> EPGClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return EPGClient(
        "https://epg.test/api/epg",
        "mock-domain",
        "mock-type",
        http_client=http_client,
    )


async def collect(client: EPGClient, day: date = DAY) -> list:
    return [record async for record in client.fetch(day)]


@pytest.mark.unit
class TestFetch:

    @pytest.mark.asyncio
    async def test_successful_fetch(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"data": {"items": [ITEM]}})

        client = make_client(handler)
        records = await collect(client)
        await client.aclose()

        assert len(records) == 1
        record = records[0]
        assert (record.id, record.season, record.episode) == ("1", 1, 1)
        assert (record.show_id, record.show_title, record.show_description) == ("1", "Title", "Description")
        assert record.start_time == "2024-10-15T10:00:00Z"
        assert record.end_time == "2024-10-15T11:00:00Z"

        assert len(requests) == 1
        assert requests[0].url.path == "/api/epg"
        assert json.loads(requests[0].url.params["variables"]) == {
            "date": "2024-10-15T00:00:00.000Z",
            "domain": "mock-domain",
            "type": "mock-type",
        }

    @pytest.mark.asyncio
    async def test_missing_items_is_an_empty_stream(self):
        client = make_client(lambda request: httpx.Response(200, json={"data": {}}))

        assert await collect(client) == []

    @pytest.mark.asyncio
    async def test_records_keep_response_order(self):
        second = dict(ITEM, id="2", startTime="2024-10-15T12:00:00Z")
        client = make_client(lambda request: httpx.Response(200, json={"data": {"items": [ITEM, second]}}))

        assert [record.id for record in await collect(client)] == ["1", "2"]

    @pytest.mark.asyncio
    async def test_404_is_not_found(self):
        client = make_client(lambda request: httpx.Response(404, text="nothing here"))

        with pytest.raises(NotFoundError, match="2024-10-15"):
            await collect(client)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [500, 502, 503])
    async def test_5xx_is_unavailable(self, status):
        client = make_client(lambda request: httpx.Response(status))

        with pytest.raises(UpstreamUnavailableError, match="Provider service unavailable"):
            await collect(client)

    @pytest.mark.asyncio
    async def test_other_4xx_is_protocol_error(self):
        client = make_client(lambda request: httpx.Response(400, text="bad variables"))

        with pytest.raises(UpstreamProtocolError, match="400"):
            await collect(client)

    @pytest.mark.asyncio
    async def test_connect_error_is_unavailable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(handler)

        with pytest.raises(UpstreamUnavailableError) as exc_info:
            await collect(client)
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_timeout_is_unavailable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("too slow", request=request)

        client = make_client(handler)

        with pytest.raises(UpstreamUnavailableError, match="timed out"):
            await collect(client)

    @pytest.mark.asyncio
    async def test_invalid_json_is_protocol_error(self):
        client = make_client(lambda request: httpx.Response(200, text="<html>oops</html>"))

        with pytest.raises(UpstreamProtocolError, match="Error processing response"):
            await collect(client)

    @pytest.mark.asyncio
    async def test_items_not_a_list_is_protocol_error(self):
        client = make_client(lambda request: httpx.Response(200, json={"data": {"items": {"id": "1"}}}))

        with pytest.raises(UpstreamProtocolError):
            await collect(client)

    @pytest.mark.asyncio
    async def test_bad_item_fails_after_good_ones(self):
        client = make_client(lambda request: httpx.Response(200, json={"data": {"items": [ITEM, {"id": "2"}]}}))
        received = []

        with pytest.raises(UpstreamProtocolError, match="tvShow"):
            async for record in client.fetch(DAY):
                received.append(record)

        assert [record.id for record in received] == ["1"]


@pytest.mark.unit
class TestConvertItem:

    def test_null_episode(self):
        record = convert_item(dict(ITEM, episode={"number": None}))
        assert record.episode is None

    def test_missing_season_defaults_to_zero(self):
        item = {key: value for key, value in ITEM.items() if key != "season"}
        assert convert_item(item).season == 0

    def test_missing_description_is_empty(self):
        record = convert_item(dict(ITEM, tvShow={"id": "1", "title": "Title"}))
        assert record.show_description == ""

    @pytest.mark.parametrize("missing", ["id", "startTime", "endTime"])
    def test_required_fields(self, missing):
        item = {key: value for key, value in ITEM.items() if key != missing}
        with pytest.raises(UpstreamProtocolError, match=missing):
            convert_item(item)

    def test_non_numeric_season(self):
        with pytest.raises(UpstreamProtocolError):
            convert_item(dict(ITEM, season={"number": "first"}))

    def test_to_airing(self):
        airing = convert_item(ITEM).to_airing()
        assert (airing.id, airing.season, airing.episode) == ("1", 1, 1)
