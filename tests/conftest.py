"""Pytest configuration and fixtures."""

from datetime import datetime, timedelta

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from shortlink.core.setting import Settings
from shortlink.db.gateway import StorageGateway
from shortlink.main import create_app
from shortlink.services.url_service import URLShorteningService
from shortlink.telemetry import MemoryLogSink, TelemetryLogger


class FrozenClock:
    """Controllable replacement for utcnow()."""

    def __init__(self, start: datetime = datetime(2026, 1, 1, 12, 0, 0)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def log_sink():
    return MemoryLogSink()


@pytest.fixture
def telemetry(log_sink):
    return TelemetryLogger(log_sink)


@pytest.fixture
def test_settings(tmp_path):
    return Settings(
        _env_file=None,
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        BASE_URL="http://short.test",
        LOG_API_URL=None,
        RATE_LIMIT_ENABLED=False,
    )


@pytest_asyncio.fixture
async def gateway(test_settings, telemetry, clock):
    """Gateway on a fresh SQLite file with tables created."""
    gw = StorageGateway.from_url(test_settings.DATABASE_URL, telemetry=telemetry, clock=clock)
    await gw.init_models()
    yield gw
    await gw.close()


@pytest.fixture
def url_service(test_settings, gateway, telemetry, clock):
    return URLShorteningService.from_settings(test_settings, gateway, telemetry, clock=clock)


@pytest.fixture
def app(test_settings, gateway, telemetry):
    return create_app(test_settings, gateway=gateway, telemetry=telemetry, run_cleanup=False)


@pytest_asyncio.fixture
async def client(app):
    """HTTP client talking to the app in-process."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac
