"""
URL Shortening Service

This service handles the core business rules of the shortcode lifecycle:
- Validating target URLs, client-supplied shortcodes and validity windows
- Generating unique random shortcodes
- Computing expiry (created_at + validity minutes)
- Recording a click on every successful resolution
- Assembling statistics with the full click history

Design Decisions:
- Base62 alphabet [0-9a-zA-Z] for generated codes (URL-safe, compact)
- Random codes with a bounded number of availability checks; the store's
  unique constraint is the final arbiter under concurrent creation
- Expiry is never stored as a status; the gateway derives it at read time
"""

import json
import logging
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from shortlink.core.clock import Clock, utcnow
from shortlink.core.exceptions import (
    ConflictError,
    GenerationExhaustedError,
    InternalError,
    InvalidShortcodeFormatError,
    InvalidUrlError,
    InvalidValidityError,
)
from shortlink.core.setting import Settings
from shortlink.core.validators import is_valid_shortcode, is_valid_url, validate_validity
from shortlink.db.gateway import StorageGateway
from shortlink.db.models import DEFAULT_REFERRER, UNKNOWN_GEO_LOCATION
from shortlink.telemetry import TelemetryLogger

logger = logging.getLogger(__name__)

BASE62_CHARS = "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"


def generate_shortcode(length: int = 7) -> str:
    """Return a random base62 string of the given length."""
    return ''.join(secrets.choice(BASE62_CHARS) for _ in range(length))


@dataclass
class ShortenResult:
    shortcode: str
    short_link: str
    expiry: datetime


@dataclass
class ClickDetail:
    timestamp: datetime
    referrer: str
    geo_location: dict


@dataclass
class UrlStatistics:
    clicks: int
    original_url: str
    creation_date: datetime
    expiry: datetime
    clicks_detail: List[ClickDetail] = field(default_factory=list)


class URLShorteningService:
    """
    Core business logic for URL shortening.

    Separated from the API layer for testability: it only needs a
    StorageGateway and a TelemetryLogger, both passed in.
    """

    def __init__(
        self,
        gateway: StorageGateway,
        telemetry: TelemetryLogger,
        base_url: str,
        default_validity: int = 30,
        max_validity: int = 525600,
        shortcode_length: int = 7,
        max_attempts: int = 10,
        clock: Clock = utcnow,
        code_generator: Callable[[int], str] = generate_shortcode,
    ):
        self.gateway = gateway
        self.telemetry = telemetry
        self.base_url = base_url.rstrip("/")
        self.default_validity = default_validity
        self.max_validity = max_validity
        self.shortcode_length = shortcode_length
        self.max_attempts = max_attempts
        self.clock = clock
        self.code_generator = code_generator

    @classmethod
    def from_settings(
        cls,
        config: Settings,
        gateway: StorageGateway,
        telemetry: TelemetryLogger,
        clock: Clock = utcnow,
    ) -> "URLShorteningService":
        return cls(
            gateway=gateway,
            telemetry=telemetry,
            base_url=config.BASE_URL,
            default_validity=config.DEFAULT_VALIDITY_MINUTES,
            max_validity=config.MAX_VALIDITY_MINUTES,
            shortcode_length=config.SHORTCODE_LENGTH,
            max_attempts=config.SHORTCODE_MAX_ATTEMPTS,
            clock=clock,
        )

    async def create_short_url(
        self,
        url: str,
        validity: Optional[int] = None,
        shortcode: Optional[str] = None,
    ) -> ShortenResult:
        """
        Create a new short URL.

        Args:
            url: The http(s) URL to shorten
            validity: Minutes the link stays valid (default 30)
            shortcode: Optional caller-chosen code, 4-20 alphanumerics

        Returns:
            ShortenResult with the full short link and expiry

        Raises:
            InvalidUrlError: If url is not a valid http/https URL
            InvalidValidityError: If validity is outside 1..max_validity
            InvalidShortcodeFormatError: If shortcode fails the format check
            ConflictError: If shortcode is already taken
            GenerationExhaustedError: If no free random code was found
            InternalError: If the store fails
        """
        await self.telemetry.info("service", f"Creating short URL for: {url}")

        if not is_valid_url(url):
            await self.telemetry.error("service", f"Invalid URL provided: {url}")
            raise InvalidUrlError(
                url,
                reason="Invalid URL format. Please provide a valid HTTP or HTTPS URL"
            )

        if validity is None:
            validity = self.default_validity
        elif not validate_validity(validity, self.max_validity):
            await self.telemetry.error("service", f"Invalid validity provided: {validity}")
            raise InvalidValidityError(validity, self.max_validity)

        if shortcode is not None:
            if not is_valid_shortcode(shortcode):
                await self.telemetry.error("service", f"Invalid shortcode format: {shortcode}")
                raise InvalidShortcodeFormatError(shortcode)
            if not await self.gateway.is_shortcode_available(shortcode):
                await self.telemetry.error("service", f"Shortcode already exists: {shortcode}")
                raise ConflictError(shortcode)
        else:
            shortcode = await self._generate_unique_shortcode()
            await self.telemetry.info("service", f"Generated shortcode: {shortcode}")

        now = self.clock()
        expiry = now + timedelta(minutes=validity)
        short_url = await self.gateway.create_short_url(shortcode, url, expiry, created_at=now)

        short_link = f"{self.base_url}/{short_url.shortcode}"
        await self.telemetry.info("service", f"Short URL created successfully: {short_link}")

        return ShortenResult(
            shortcode=short_url.shortcode,
            short_link=short_link,
            expiry=short_url.expiry,
        )

    async def _generate_unique_shortcode(self) -> str:
        for attempt in range(1, self.max_attempts + 1):
            candidate = self.code_generator(self.shortcode_length)
            if await self.gateway.is_shortcode_available(candidate):
                return candidate
            logger.debug(f"Shortcode collision on attempt {attempt}: {candidate}")

        await self.telemetry.error(
            "service",
            f"Failed to generate unique shortcode after {self.max_attempts} attempts"
        )
        raise GenerationExhaustedError(self.max_attempts)

    async def get_original_url(self, shortcode: str) -> Optional[str]:
        """
        Resolve shortcode and record the click.

        Every successful resolution is counted; there is no dedup window.
        A failure while recording the click is logged and does not prevent
        the caller from being redirected.

        Returns:
            The original URL, or None if shortcode is unknown or expired
        """
        await self.telemetry.info("service", f"Retrieving original URL for shortcode: {shortcode}")

        short_url = await self.gateway.get_short_url(shortcode)
        if not short_url:
            await self.telemetry.warn("service", f"Shortcode not found or expired: {shortcode}")
            return None

        try:
            await self.gateway.add_click(
                shortcode,
                referrer=DEFAULT_REFERRER,
                geo_location=json.dumps(UNKNOWN_GEO_LOCATION),
            )
        except InternalError as e:
            logger.error(f"Failed to record click for {shortcode}: {e}")
            await self.telemetry.error("service", f"Failed to record click for {shortcode}: {e}")

        await self.telemetry.info("service", f"Redirecting to original URL: {short_url.original_url}")
        return short_url.original_url

    async def get_statistics(self, shortcode: str) -> Optional[UrlStatistics]:
        """
        Statistics for a live shortcode.

        Returns:
            UrlStatistics with the click history newest first, or None if
            the shortcode is unknown or expired
        """
        await self.telemetry.info("service", f"Retrieving statistics for shortcode: {shortcode}")

        short_url = await self.gateway.get_short_url(shortcode)
        if not short_url:
            await self.telemetry.warn("service", f"Shortcode not found for statistics: {shortcode}")
            return None

        clicks = await self.gateway.get_click_details(shortcode)
        statistics = UrlStatistics(
            clicks=short_url.clicks,
            original_url=short_url.original_url,
            creation_date=short_url.created_at,
            expiry=short_url.expiry,
            clicks_detail=[
                ClickDetail(
                    timestamp=click.timestamp,
                    referrer=click.referrer,
                    geo_location=click.geo_location_dict(),
                )
                for click in clicks
            ],
        )

        await self.telemetry.info(
            "service",
            f"Statistics retrieved for shortcode: {shortcode}, total clicks: {statistics.clicks}"
        )
        return statistics

    async def cleanup_expired_urls(self) -> int:
        """
        Sweep expired mappings.

        Best effort: store failures are logged and reported as 0 removed.
        """
        try:
            return await self.gateway.cleanup_expired_urls()
        except InternalError as e:
            logger.error(f"Cleanup job failed: {e}")
            await self.telemetry.error("service", f"Cleanup job failed: {e}")
            return 0
