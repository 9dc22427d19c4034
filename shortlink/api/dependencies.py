"""
FastAPI dependencies.

Components are built once by create_app() and stored on app.state; these
functions hand them to endpoints so tests can swap in fakes.
"""

from fastapi import Request

from shortlink.services.url_service import URLShorteningService
from shortlink.telemetry import TelemetryLogger


def get_url_service(request: Request) -> URLShorteningService:
    return request.app.state.url_service


def get_telemetry(request: Request) -> TelemetryLogger:
    return request.app.state.telemetry
