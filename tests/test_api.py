"""API tests through the ASGI app."""

from datetime import datetime

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from shortlink.core.exceptions import InternalError
from shortlink.core.rate_limit import limiter
from shortlink.main import create_app
from shortlink.telemetry import Level


def parse_ts(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


@pytest.mark.asyncio
async def test_create_redirect_and_stats_flow(client):
    response = await client.post("/shorturls", json={"url": "https://example.com", "shortcode": "abcd"})

    assert response.status_code == 201
    body = response.json()
    assert body["shortLink"] == "http://short.test/abcd"
    assert parse_ts(body["expiry"]) == datetime.fromisoformat("2026-01-01T12:30:00+00:00")

    response = await client.get("/abcd")
    assert response.status_code == 302
    assert response.headers["location"] == "https://example.com"

    response = await client.get("/shorturls/abcd")
    assert response.status_code == 200
    stats = response.json()
    assert stats["clicks"] == 1
    assert stats["originalURL"] == "https://example.com"
    assert parse_ts(stats["creationDate"]) == datetime.fromisoformat("2026-01-01T12:00:00+00:00")
    assert parse_ts(stats["expiry"]) == datetime.fromisoformat("2026-01-01T12:30:00+00:00")
    assert len(stats["clicksDetail"]) == 1
    detail = stats["clicksDetail"][0]
    assert detail["referrer"] == "direct"
    assert detail["geoLocation"] == {"country": "Unknown", "city": "Unknown", "region": "Unknown"}


@pytest.mark.asyncio
async def test_create_with_generated_shortcode(client):
    response = await client.post("/shorturls", json={"url": "https://example.com/a", "validity": 5})

    assert response.status_code == 201
    body = response.json()
    shortcode = body["shortLink"].rsplit("/", 1)[1]
    assert len(shortcode) == 7
    assert parse_ts(body["expiry"]) == datetime.fromisoformat("2026-01-01T12:05:00+00:00")

    response = await client.get(f"/{shortcode}")
    assert response.status_code == 302


@pytest.mark.asyncio
async def test_duplicate_shortcode_is_409(client):
    first = await client.post("/shorturls", json={"url": "https://example.com", "shortcode": "abcd"})
    second = await client.post("/shorturls", json={"url": "https://example.org", "shortcode": "abcd"})

    assert first.status_code == 201
    assert second.status_code == 409
    assert "abcd" in second.json()["detail"]


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [
    {"url": "not a url"},
    {"url": "ftp://example.com"},
    {"url": "https://example.com", "shortcode": "ab"},
    {"url": "https://example.com", "shortcode": "bad-code"},
    {"url": "https://example.com", "shortcode": "abcd\n"},
    {"url": "https://example.com", "validity": 0},
    {"url": "https://example.com", "validity": 525601},
    {"url": "https://example.com", "validity": "soon"},
    {"shortcode": "abcd"},
])
async def test_invalid_create_requests_are_400(client, payload):
    response = await client.post("/shorturls", json=payload)

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_unknown_shortcode_is_404(client):
    assert (await client.get("/nope1")).status_code == 404
    assert (await client.get("/shorturls/nope1")).status_code == 404


@pytest.mark.asyncio
async def test_malformed_path_shortcode_is_400(client):
    assert (await client.get("/ab")).status_code == 400
    assert (await client.get("/shorturls/" + "x" * 21)).status_code == 400
    assert (await client.get("/abcd%0A")).status_code == 400


@pytest.mark.asyncio
async def test_expired_link_is_404_before_sweep(client, clock, gateway):
    await client.post("/shorturls", json={"url": "https://example.com", "shortcode": "abcd", "validity": 1})

    clock.advance(minutes=1, seconds=1)

    assert (await client.get("/abcd")).status_code == 404
    assert (await client.get("/shorturls/abcd")).status_code == 404
    # row still present until swept
    assert not await gateway.is_shortcode_available("abcd")


@pytest.mark.asyncio
async def test_stats_history_is_newest_first(client, clock):
    await client.post("/shorturls", json={"url": "https://example.com", "shortcode": "abcd"})
    for _ in range(3):
        clock.advance(seconds=10)
        await client.get("/abcd")

    stats = (await client.get("/shorturls/abcd")).json()

    assert stats["clicks"] == 3
    timestamps = [parse_ts(c["timestamp"]) for c in stats["clicksDetail"]]
    assert timestamps == sorted(timestamps, reverse=True)
    assert len(set(timestamps)) == 3


@pytest.mark.asyncio
async def test_internal_failure_is_generic_500(client, gateway, monkeypatch):
    async def broken(*args, **kwargs):
        raise InternalError("disk I/O error at /var/lib/secret.db")

    monkeypatch.setattr(gateway, "create_short_url", broken)

    response = await client.post("/shorturls", json={"url": "https://example.com"})

    assert response.status_code == 500
    assert "secret" not in response.text
    assert response.json()["detail"] == "Internal server error while creating short URL"


@pytest.mark.asyncio
async def test_redirect_store_failure_is_500(client, gateway, monkeypatch):
    async def broken(*args, **kwargs):
        raise InternalError("database is locked")

    monkeypatch.setattr(gateway, "get_short_url", broken)

    response = await client.get("/abcd")

    assert response.status_code == 500
    assert "locked" not in response.text


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["uptime"] >= 0
    assert parse_ts(body["timestamp"])


@pytest.mark.asyncio
async def test_health_reports_store_failure(client, gateway, monkeypatch):
    async def broken():
        raise InternalError("no connection")

    monkeypatch.setattr(gateway, "ping", broken)

    assert (await client.get("/health")).status_code == 500


@pytest.mark.asyncio
async def test_requests_are_forwarded_to_telemetry(client, log_sink):
    await client.get("/health")

    assert any(
        message.startswith("Incoming request: GET /health")
        for message in log_sink.messages(level=Level.info, package="middleware")
    )


@pytest.mark.asyncio
async def test_process_time_header(client):
    response = await client.get("/health")

    assert "x-process-time" in response.headers


@pytest_asyncio.fixture
async def limited_client(test_settings, gateway, telemetry):
    config = test_settings.model_copy(update={"RATE_LIMIT_ENABLED": True})
    app = create_app(config, gateway=gateway, telemetry=telemetry, run_cleanup=False)
    limiter.reset()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac
    limiter.reset()


@pytest.mark.asyncio
async def test_create_is_rate_limited(limited_client):
    statuses = [
        (await limited_client.post("/shorturls", json={"url": f"https://example.com/{i}"})).status_code
        for i in range(11)
    ]

    assert statuses[:10] == [201] * 10
    assert statuses[10] == 429


@pytest.mark.asyncio
async def test_rate_limits_follow_app_settings(client, test_settings):
    assert test_settings.RATE_LIMIT_ENABLED is False
    limiter.reset()

    statuses = [
        (await client.post("/shorturls", json={"url": f"https://example.com/{i}"})).status_code
        for i in range(11)
    ]

    assert statuses == [201] * 11


def test_importing_main_builds_no_application():
    import shortlink.main

    assert not hasattr(shortlink.main, "app")
