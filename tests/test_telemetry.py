"""Tests for the telemetry logger and sinks."""

import asyncio
import json
import logging

import httpx
import pytest

from shortlink.core.setting import Settings
from shortlink.telemetry import (
    Level,
    LocalLogSink,
    MemoryLogSink,
    RemoteLogSink,
    Stack,
    TelemetryLogger,
    build_sink,
)
from shortlink.telemetry.events import build_event

LOG_URL = "http://logs.test/evaluation-service/logs"


def remote_sink(handler, timeout: float = 5.0) -> RemoteLogSink:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return RemoteLogSink(LOG_URL, token="secret-token", timeout=timeout, client=client)


class TestBuildEvent:

    def test_normalizes_case(self):
        event = build_event("Backend", "INFO", "Service", "hello")
        assert event.stack == Stack.backend
        assert event.level == Level.info
        assert event.package == "service"

    def test_accepts_enum_members(self):
        event = build_event(Stack.frontend, Level.fatal, "api", "boom")
        assert event.as_payload() == {
            "stack": "frontend", "level": "fatal", "package": "api", "message": "boom"
        }

    @pytest.mark.parametrize("stack,level,package", [
        ("mobile", "info", "service"),
        ("backend", "trace", "service"),
        ("backend", "info", "api"),  # api is frontend only
        ("frontend", "info", "db"),
    ])
    def test_rejects_unknown_values(self, stack, level, package):
        with pytest.raises(ValueError):
            build_event(stack, level, package, "message")

    def test_common_packages_allowed_for_both_stacks(self):
        for stack in ("backend", "frontend"):
            build_event(stack, "debug", "utils", "x")
            build_event(stack, "debug", "config", "x")


@pytest.mark.asyncio
async def test_invalid_call_is_dropped_silently(caplog):
    sink = MemoryLogSink()
    telemetry = TelemetryLogger(sink)

    with caplog.at_level(logging.WARNING, logger="shortlink.telemetry"):
        result = await telemetry.log("backend", "verbose", "service", "hi")

    assert result is None
    assert sink.events == []
    assert "Dropped log event" in caplog.text


@pytest.mark.asyncio
async def test_level_helpers_use_backend_stack():
    sink = MemoryLogSink()
    telemetry = TelemetryLogger(sink)

    await telemetry.debug("db", "d")
    await telemetry.info("service", "i")
    await telemetry.warn("handler", "w")
    await telemetry.error("middleware", "e")
    await telemetry.fatal("config", "f")

    assert [e.level for e in sink.events] == [Level.debug, Level.info, Level.warn, Level.error, Level.fatal]
    assert all(e.stack == Stack.backend for e in sink.events)


@pytest.mark.asyncio
async def test_failing_sink_never_raises():
    class ExplodingSink:
        async def emit(self, event):
            raise RuntimeError("boom")

        async def close(self):
            pass

    result = await TelemetryLogger(ExplodingSink()).info("service", "hi")

    assert result.delivered is False
    assert result.message == "boom"


@pytest.mark.asyncio
async def test_remote_sink_posts_payload_with_bearer_token():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("Authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"logID": "abc-123", "message": "log created successfully"})

    sink = remote_sink(handler)
    result = await TelemetryLogger(sink).info("service", "created")

    assert result.delivered is True
    assert result.log_id == "abc-123"
    assert seen["auth"] == "Bearer secret-token"
    assert seen["body"] == {"stack": "backend", "level": "info", "package": "service", "message": "created"}
    await sink.close()


@pytest.mark.asyncio
async def test_remote_sink_falls_back_on_error_status(caplog):
    sink = remote_sink(lambda request: httpx.Response(500, json={"error": "down"}))

    with caplog.at_level(logging.DEBUG, logger="shortlink.telemetry"):
        result = await TelemetryLogger(sink).error("db", "disk full")

    assert result.delivered is False
    assert "HTTP 500" in result.message
    assert "[BACKEND] [ERROR] [DB] disk full" in caplog.text


@pytest.mark.asyncio
async def test_remote_sink_falls_back_on_network_error(caplog):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    sink = remote_sink(handler)

    with caplog.at_level(logging.DEBUG, logger="shortlink.telemetry"):
        result = await sink.emit(build_event("backend", "warn", "route", "slow"))

    assert result.delivered is False
    assert "connection refused" in result.message
    assert "[BACKEND] [WARN] [ROUTE] slow" in caplog.text


@pytest.mark.asyncio
async def test_remote_sink_is_bounded_by_timeout():
    class SlowTransport(httpx.AsyncBaseTransport):
        async def handle_async_request(self, request):
            await asyncio.sleep(5)
            return httpx.Response(200, json={"logID": "late"})

    client = httpx.AsyncClient(transport=SlowTransport())
    sink = RemoteLogSink(LOG_URL, token="t", timeout=0.05, client=client)

    result = await sink.emit(build_event("backend", "info", "service", "x"))

    assert result.delivered is False
    assert "timed out" in result.message
    await client.aclose()


@pytest.mark.asyncio
async def test_local_sink_writes_to_logger(caplog):
    with caplog.at_level(logging.DEBUG, logger="shortlink.telemetry"):
        result = await LocalLogSink().emit(build_event("backend", "fatal", "config", "no db"))

    assert result.delivered is True
    record = caplog.records[-1]
    assert record.levelno == logging.CRITICAL
    assert record.getMessage() == "[BACKEND] [FATAL] [CONFIG] no db"


def test_build_sink_picks_remote_only_when_configured():
    assert isinstance(build_sink(Settings(_env_file=None, LOG_API_URL=None)), LocalLogSink)

    sink = build_sink(Settings(_env_file=None, LOG_API_URL=LOG_URL, LOG_API_TOKEN="tok", LOG_API_TIMEOUT=2.5))
    assert isinstance(sink, RemoteLogSink)
    assert sink.url == LOG_URL
    assert sink.token == "tok"
    assert sink.timeout == 2.5
