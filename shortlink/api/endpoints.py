"""
FastAPI Endpoints for the Shortening Service

This module defines the REST API endpoints with minimal logic.
Endpoints only handle:
- Request validation (Pydantic models, shortcode format)
- Rate limiting
- Mapping domain errors to HTTP status codes
- Delegating to the service layer

Status mapping:
- InvalidRequestError -> 400
- ConflictError -> 409
- unknown or expired shortcode -> 404
- anything else -> 500 with a generic message
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import RedirectResponse

from shortlink.api.dependencies import get_telemetry, get_url_service
from shortlink.api.schemas import (
    ClickDetailResponse,
    ShortenRequest,
    ShortenResponse,
    StatsResponse,
)
from shortlink.core.clock import as_utc
from shortlink.core.exceptions import ConflictError, InvalidRequestError
from shortlink.core.rate_limit import RATE_LIMITS, limiter, rate_limits_disabled
from shortlink.core.validators import is_valid_shortcode
from shortlink.services.url_service import URLShorteningService
from shortlink.telemetry import TelemetryLogger

logger = logging.getLogger(__name__)

router = APIRouter()


async def require_valid_shortcode(shortcode: str, telemetry: TelemetryLogger) -> str:
    """Reject path shortcodes that could never have been created."""
    if not is_valid_shortcode(shortcode):
        await telemetry.warn("handler", f"Invalid shortcode format: {shortcode}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid shortcode format. Must be 4-20 alphanumeric characters"
        )
    return shortcode


@router.post(
    "/shorturls",
    response_model=ShortenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a short URL",
    description="Takes a long URL and returns a short link that expires after the validity window"
)
@limiter.limit(RATE_LIMITS["shorten"], exempt_when=rate_limits_disabled)
async def create_short_url(
    request: Request,  # Required for rate limiting (slowapi expects parameter named 'request')
    body: ShortenRequest,
    url_service: URLShorteningService = Depends(get_url_service),
    telemetry: TelemetryLogger = Depends(get_telemetry),
) -> ShortenResponse:
    """
    Create a new short URL.

    Returns:
        ShortenResponse with shortLink and expiry
    """
    await telemetry.info("handler", f"Creating short URL for: {body.url}")

    try:
        result = await url_service.create_short_url(
            body.url,
            validity=body.validity,
            shortcode=body.shortcode,
        )
    except InvalidRequestError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except ConflictError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e)
        )
    except Exception as e:
        logger.error(f"Failed to create short URL: {str(e)}", exc_info=True)
        await telemetry.error("handler", f"Error creating short URL: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error while creating short URL"
        )

    await telemetry.info("handler", f"Short URL created successfully: {result.short_link}")
    return ShortenResponse(short_link=result.short_link, expiry=as_utc(result.expiry))


@router.get(
    "/shorturls/{shortcode}",
    response_model=StatsResponse,
    summary="Get URL statistics",
    description="Returns click count, target, dates and the full click history of a short URL"
)
@limiter.limit(RATE_LIMITS["stats"], exempt_when=rate_limits_disabled)
async def get_url_stats(
    shortcode: str,
    request: Request,  # Required for rate limiting
    url_service: URLShorteningService = Depends(get_url_service),
    telemetry: TelemetryLogger = Depends(get_telemetry),
) -> StatsResponse:
    """
    Get statistics for a short URL.

    Raises:
        HTTPException 400: If shortcode format is invalid
        HTTPException 404: If shortcode not found or expired
        HTTPException 429: If rate limit exceeded
    """
    shortcode = await require_valid_shortcode(shortcode, telemetry)

    try:
        stats = await url_service.get_statistics(shortcode)
    except Exception as e:
        logger.error(f"Failed to get statistics for {shortcode}: {str(e)}", exc_info=True)
        await telemetry.error("handler", f"Error getting statistics: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error while retrieving statistics"
        )

    if not stats:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Short URL not found or has expired"
        )

    return StatsResponse(
        clicks=stats.clicks,
        original_url=stats.original_url,
        creation_date=as_utc(stats.creation_date),
        expiry=as_utc(stats.expiry),
        clicks_detail=[
            ClickDetailResponse(
                timestamp=as_utc(click.timestamp),
                referrer=click.referrer,
                geo_location=click.geo_location,
            )
            for click in stats.clicks_detail
        ],
    )


@router.get(
    "/{shortcode}",
    status_code=status.HTTP_302_FOUND,
    summary="Redirect to original URL",
    description="Takes a shortcode and redirects to the original long URL"
)
@limiter.limit(RATE_LIMITS["redirect"], exempt_when=rate_limits_disabled)
async def redirect_to_url(
    shortcode: str,
    request: Request,
    url_service: URLShorteningService = Depends(get_url_service),
    telemetry: TelemetryLogger = Depends(get_telemetry),
) -> RedirectResponse:
    """
    Redirect to the original URL for a given shortcode.

    Every successful redirect is recorded as a click.

    Raises:
        HTTPException 400: If shortcode format is invalid
        HTTPException 404: If shortcode not found or expired
        HTTPException 429: If rate limit exceeded
    """
    shortcode = await require_valid_shortcode(shortcode, telemetry)

    try:
        original_url = await url_service.get_original_url(shortcode)
    except Exception as e:
        logger.error(f"Failed to resolve {shortcode}: {str(e)}", exc_info=True)
        await telemetry.error("handler", f"Error redirecting: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error while redirecting"
        )

    if not original_url:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Short URL not found or has expired"
        )

    return RedirectResponse(
        url=original_url,
        status_code=status.HTTP_302_FOUND
    )
