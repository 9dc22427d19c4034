"""
Telemetry Logger

Front door for structured log events. Every layer of the service holds a
TelemetryLogger and calls it as a side channel: calls are validated, handed
to the configured sink and never raise.
"""

import logging
from typing import Optional

from shortlink.core.setting import Settings
from shortlink.telemetry.events import Level, LogResult, Stack, build_event
from shortlink.telemetry.sinks import LocalLogSink, LogSink, RemoteLogSink, write_locally

logger = logging.getLogger("shortlink.telemetry")


class TelemetryLogger:
    """Validates log calls and forwards them to a LogSink."""

    def __init__(self, sink: LogSink, stack: Stack = Stack.backend):
        self.sink = sink
        self.stack = stack

    async def log(self, stack: str, level: str, package: str, message: str) -> Optional[LogResult]:
        """
        Validate and emit one event.

        Invalid (stack, level, package) combinations are dropped with a local
        diagnostic and None is returned. Sink failures are logged locally.
        """
        try:
            event = build_event(stack, level, package, message)
        except ValueError as e:
            logger.warning(f"Dropped log event: {e}")
            return None

        try:
            return await self.sink.emit(event)
        except Exception as e:
            logger.error(f"Telemetry sink {type(self.sink).__name__} failed: {e}")
            write_locally(event)
            return LogResult(delivered=False, message=str(e))

    async def debug(self, package: str, message: str) -> Optional[LogResult]:
        return await self.log(self.stack, Level.debug, package, message)

    async def info(self, package: str, message: str) -> Optional[LogResult]:
        return await self.log(self.stack, Level.info, package, message)

    async def warn(self, package: str, message: str) -> Optional[LogResult]:
        return await self.log(self.stack, Level.warn, package, message)

    async def error(self, package: str, message: str) -> Optional[LogResult]:
        return await self.log(self.stack, Level.error, package, message)

    async def fatal(self, package: str, message: str) -> Optional[LogResult]:
        return await self.log(self.stack, Level.fatal, package, message)

    async def close(self) -> None:
        await self.sink.close()


def build_sink(config: Settings) -> LogSink:
    """Pick the remote sink when an endpoint is configured, the local one otherwise."""
    if config.LOG_API_URL:
        return RemoteLogSink(
            url=config.LOG_API_URL,
            token=config.LOG_API_TOKEN,
            timeout=config.LOG_API_TIMEOUT,
        )
    return LocalLogSink()
