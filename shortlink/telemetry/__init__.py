"""
Telemetry module: best-effort structured logging to a remote endpoint.

- TelemetryLogger: validated log(stack, level, package, message) front door
- LogSink implementations: RemoteLogSink, LocalLogSink, MemoryLogSink
"""

from shortlink.telemetry.events import Level, LogEvent, LogResult, Stack
from shortlink.telemetry.logger import TelemetryLogger, build_sink
from shortlink.telemetry.sinks import LocalLogSink, LogSink, MemoryLogSink, RemoteLogSink

__all__ = [
    "Level",
    "LocalLogSink",
    "LogEvent",
    "LogResult",
    "LogSink",
    "MemoryLogSink",
    "RemoteLogSink",
    "Stack",
    "TelemetryLogger",
    "build_sink",
]
