"""
Telemetry Event Types

Defines the structured log event shipped to the remote logging API and the
rules deciding which (stack, level, package) combinations are accepted.
"""

import logging
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class Stack(str, Enum):
    backend = "backend"
    frontend = "frontend"


class Level(str, Enum):
    debug = "debug"
    info = "info"
    warn = "warn"
    error = "error"
    fatal = "fatal"


COMMON_PACKAGES = frozenset({"utils", "config"})

ALLOWED_PACKAGES = {
    Stack.backend: frozenset({
        "handler",
        "db",
        "service",
        "repository",
        "controller",
        "middleware",
        "route",
    }) | COMMON_PACKAGES,
    Stack.frontend: frozenset({"api"}) | COMMON_PACKAGES,
}

# Mapping onto stdlib levels for the local fallback
STDLIB_LEVELS = {
    Level.debug: logging.DEBUG,
    Level.info: logging.INFO,
    Level.warn: logging.WARNING,
    Level.error: logging.ERROR,
    Level.fatal: logging.CRITICAL,
}


class LogEvent(BaseModel):
    """Wire payload accepted by the remote logging API."""
    stack: Stack
    level: Level
    package: str
    message: str

    def as_payload(self) -> dict:
        return self.model_dump(mode="json")

    def as_text(self) -> str:
        return (
            f"[{self.stack.value.upper()}] [{self.level.value.upper()}] "
            f"[{self.package.upper()}] {self.message}"
        )


class LogResult(BaseModel):
    """Outcome of emitting one event."""
    delivered: bool = Field(..., description="True when the remote sink acknowledged the event")
    log_id: Optional[str] = Field(default=None, description="Identifier assigned by the sink")
    message: Optional[str] = None


def _text(value) -> str:
    if isinstance(value, Enum):
        value = value.value
    return str(value).lower()


def build_event(stack: str, level: str, package: str, message: str) -> LogEvent:
    """
    Validate and normalize a log call into a LogEvent.

    Values are matched case-insensitively, as the remote API expects lower
    case.

    Raises:
        ValueError: If stack, level or package is not accepted
    """
    try:
        stack_value = Stack(_text(stack))
    except ValueError:
        raise ValueError(f"Invalid stack: {stack}")

    try:
        level_value = Level(_text(level))
    except ValueError:
        raise ValueError(f"Invalid level: {level}")

    package_value = _text(package)
    if package_value not in ALLOWED_PACKAGES[stack_value]:
        raise ValueError(f"Invalid package: {package} for stack: {stack_value.value}")

    return LogEvent(
        stack=stack_value,
        level=level_value,
        package=package_value,
        message=message,
    )
