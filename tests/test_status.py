"""Tests for the Adafruit IO REST adapter and status parsing."""

import logging

import aiohttp
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from aio_proxy.adapters import FeedsClient
from aio_proxy.errors import MalformedDataError, RemoteAPIError
from aio_proxy.status import feed_key_from_topic, fetch_status


def build_feed_app(requests: list, *, status: int = 200, body=None, text=None):
    async def handler(request: web.Request) -> web.StreamResponse:
        requests.append(
            (
                request.match_info["username"],
                request.match_info["feed"],
                request.headers.get("X-AIO-Key"),
            )
        )
        if text is not None:
            return web.Response(status=status, text=text)
        if body is None:
            return web.Response(status=status)
        return web.json_response(body, status=status)

    app = web.Application()
    app.router.add_get("/api/v2/{username}/feeds/{feed}/data/last", handler)
    return app


def test_feed_key_from_topic():
    assert feed_key_from_topic("maker/feeds/esp32_status") == "esp32_status"
    assert feed_key_from_topic("maker/feeds/esp32_status/") == "esp32_status"
    assert feed_key_from_topic("esp32_status") == "esp32_status"


@pytest.mark.asyncio
async def test_fetch_status_merges_created_at(config_factory):
    requests: list = []
    app = build_feed_app(
        requests,
        body={"value": '{"temp":21}', "created_at": "2024-01-01T00:00:00Z"},
    )

    async with TestServer(app) as server:
        config = config_factory(api_base_url=str(server.make_url("/api/v2")))
        record = await fetch_status(config.adafruit, config.adafruit.status_topic)

    assert record == {"temp": 21, "created_at": "2024-01-01T00:00:00Z"}
    assert requests == [("maker", "esp32_status", "aio_secret")]


@pytest.mark.asyncio
async def test_fetch_status_without_created_at(config_factory):
    app = build_feed_app([], body={"value": '{"motor": "on", "rpm": 1200}'})

    async with TestServer(app) as server:
        config = config_factory(api_base_url=str(server.make_url("/api/v2")))
        record = await fetch_status(config.adafruit, config.adafruit.status_topic)

    assert record == {"motor": "on", "rpm": 1200}


@pytest.mark.asyncio
async def test_fetch_status_wraps_scalar_values(config_factory):
    app = build_feed_app(
        [], body={"value": "42", "created_at": "2024-01-01T00:00:00Z"}
    )

    async with TestServer(app) as server:
        config = config_factory(api_base_url=str(server.make_url("/api/v2")))
        record = await fetch_status(config.adafruit, config.adafruit.status_topic)

    assert record == {"value": 42, "created_at": "2024-01-01T00:00:00Z"}


@pytest.mark.asyncio
async def test_fetch_status_returns_none_on_404(config_factory):
    app = build_feed_app([], status=404)

    async with TestServer(app) as server:
        config = config_factory(api_base_url=str(server.make_url("/api/v2")))
        record = await fetch_status(config.adafruit, config.adafruit.status_topic)

    assert record is None


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [{}, {"value": ""}, {"value": None}, []])
async def test_fetch_status_returns_none_without_value(config_factory, body):
    app = build_feed_app([], body=body)

    async with TestServer(app) as server:
        config = config_factory(api_base_url=str(server.make_url("/api/v2")))
        record = await fetch_status(config.adafruit, config.adafruit.status_topic)

    assert record is None


@pytest.mark.asyncio
async def test_fetch_status_raises_remote_error(config_factory):
    app = build_feed_app([], status=401, body={"error": "bad key"})

    async with TestServer(app) as server:
        config = config_factory(api_base_url=str(server.make_url("/api/v2")))
        with pytest.raises(RemoteAPIError) as excinfo:
            await fetch_status(config.adafruit, config.adafruit.status_topic)

    assert excinfo.value.status == 401
    assert "status 401" in str(excinfo.value)


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [300, 304])
async def test_fetch_status_rejects_redirect_statuses(config_factory, status):
    body = None if status == 304 else {"value": "{\"temp\": 1}"}
    app = build_feed_app([], status=status, body=body)

    async with TestServer(app) as server:
        config = config_factory(api_base_url=str(server.make_url("/api/v2")))
        with pytest.raises(RemoteAPIError) as excinfo:
            await fetch_status(config.adafruit, config.adafruit.status_topic)

    assert excinfo.value.status == status


@pytest.mark.asyncio
async def test_fetch_status_accepts_any_2xx(config_factory):
    app = build_feed_app([], status=203, body={"value": "{\"temp\": 1}"})

    async with TestServer(app) as server:
        config = config_factory(api_base_url=str(server.make_url("/api/v2")))
        record = await fetch_status(config.adafruit, config.adafruit.status_topic)

    assert record == {"temp": 1}


@pytest.mark.asyncio
async def test_fetch_status_rejects_malformed_value(config_factory, caplog):
    app = build_feed_app([], body={"value": "{not json", "created_at": "x"})

    async with TestServer(app) as server:
        config = config_factory(api_base_url=str(server.make_url("/api/v2")))
        with caplog.at_level(logging.ERROR, logger="aio_proxy.status"):
            with pytest.raises(MalformedDataError) as excinfo:
                await fetch_status(config.adafruit, config.adafruit.status_topic)

    assert "malformed status data" in str(excinfo.value)
    assert excinfo.value.raw_value == "{not json"
    assert "{not json" in caplog.text


@pytest.mark.asyncio
async def test_feeds_client_rejects_non_json_body(config_factory):
    app = build_feed_app([], text="<html>maintenance</html>")

    async with TestServer(app) as server:
        config = config_factory(api_base_url=str(server.make_url("/api/v2")))
        client = FeedsClient(config.adafruit)
        with pytest.raises(RemoteAPIError, match="invalid JSON"):
            await client.last_datum("esp32_status")


@pytest.mark.asyncio
async def test_feeds_client_uses_injected_session(config_factory):
    requests: list = []
    app = build_feed_app(requests, body={"value": '{"ok": true}'})

    async with TestServer(app) as server:
        config = config_factory(api_base_url=str(server.make_url("/api/v2")))
        async with aiohttp.ClientSession() as session:
            datum = await FeedsClient(config.adafruit, session=session).last_datum(
                "esp32_status"
            )
            assert not session.closed

    assert datum == {"value": '{"ok": true}'}
    assert len(requests) == 1


def test_last_datum_url(config_factory):
    config = config_factory()
    client = FeedsClient(config.adafruit)

    assert (
        client.last_datum_url("esp32_status")
        == "https://io.adafruit.com/api/v2/maker/feeds/esp32_status/data/last"
    )
