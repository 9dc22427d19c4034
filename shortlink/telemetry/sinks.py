"""
Telemetry Sinks

A sink is anything with an async emit(event) -> LogResult method. Three
implementations are provided:

- RemoteLogSink: POSTs the event to the logging API with a bearer token and
  a bounded timeout; on any failure the event is written to the local logger
- LocalLogSink: writes the event to the local logger only (no endpoint configured)
- MemoryLogSink: keeps events in a list, for tests
"""

import asyncio
import logging
from typing import List, Optional, Protocol, runtime_checkable

import httpx

from shortlink.telemetry.events import STDLIB_LEVELS, Level, LogEvent, LogResult

logger = logging.getLogger("shortlink.telemetry")


@runtime_checkable
class LogSink(Protocol):
    """Capability interface for shipping one log event."""

    async def emit(self, event: LogEvent) -> LogResult:
        ...

    async def close(self) -> None:
        ...


def write_locally(event: LogEvent) -> None:
    """Write an event to the local logger at the matching stdlib level."""
    logger.log(STDLIB_LEVELS[event.level], event.as_text())


class RemoteLogSink:
    """
    Ships events to the remote logging API.

    Wire contract: POST JSON {stack, level, package, message} with an
    Authorization: Bearer header; a 200 response carries {logID, message}.
    """

    def __init__(
        self,
        url: str,
        token: Optional[str] = None,
        timeout: float = 5.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.url = url
        self.token = token
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))
        return self._client

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _fallback(self, event: LogEvent, reason: str) -> LogResult:
        logger.warning(f"Failed to send log: {reason}")
        write_locally(event)
        return LogResult(delivered=False, message=reason)

    async def emit(self, event: LogEvent) -> LogResult:
        """
        Post one event; never raises.

        The whole exchange is bounded by self.timeout seconds, after which the
        event is treated as undelivered and logged locally.
        """
        try:
            response = await asyncio.wait_for(
                self._get_client().post(
                    self.url,
                    json=event.as_payload(),
                    headers=self._headers(),
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            return self._fallback(event, f"timed out after {self.timeout}s")
        except httpx.HTTPError as e:
            return self._fallback(event, str(e) or e.__class__.__name__)

        if not response.is_success:
            return self._fallback(event, f"log endpoint returned HTTP {response.status_code}")

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        log_id = body.get("logID")
        logger.debug(f"Log sent successfully: {log_id}")
        return LogResult(delivered=True, log_id=log_id, message=body.get("message"))

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None


class LocalLogSink:
    """Writes events to the local logger only."""

    async def emit(self, event: LogEvent) -> LogResult:
        write_locally(event)
        return LogResult(delivered=True)

    async def close(self) -> None:
        return None


class MemoryLogSink:
    """Records emitted events in memory."""

    def __init__(self):
        self.events: List[LogEvent] = []

    async def emit(self, event: LogEvent) -> LogResult:
        self.events.append(event)
        return LogResult(delivered=True, log_id=str(len(self.events)))

    async def close(self) -> None:
        return None

    def messages(self, level: Optional[Level] = None, package: Optional[str] = None) -> List[str]:
        return [
            event.message
            for event in self.events
            if (level is None or event.level == level)
            and (package is None or event.package == package)
        ]
