"""
Storage Gateway

Owns the short_urls and clicks tables. Each public method runs as one
transaction on its own session, so callers never hold a session across
requests and the background sweep never holds a lock beyond one statement
batch.

Design Decisions:
- A failed insert whose shortcode is held by a row surfaces as
  ConflictError, so a racing creator can tell "taken" apart from a
  generic failure
- Every other SQLAlchemyError, including other constraint failures, is
  wrapped in InternalError
- Click insert and counter increment share one transaction
- The sweep deletes the clicks of the rows it removes, so a reused
  shortcode starts with an empty history
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, List, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession
from sqlmodel import SQLModel

from shortlink.core.clock import Clock, utcnow
from shortlink.core.exceptions import ConflictError, InternalError
from shortlink.db.models import (
    DEFAULT_REFERRER,
    ClickEvent,
    ShortUrl,
    is_active_clause,
    is_expired_clause,
)
from shortlink.db.session import build_engine, build_session_maker
from shortlink.telemetry import TelemetryLogger

logger = logging.getLogger(__name__)


class StorageGateway:
    """Atomic single-row operations over the shortening tables."""

    def __init__(
        self,
        engine: AsyncEngine,
        telemetry: Optional[TelemetryLogger] = None,
        clock: Clock = utcnow,
    ):
        """
        Args:
            engine: Async engine the gateway owns and disposes on close()
            telemetry: Side-channel logger for db events
            clock: Source of "now" for timestamps and expiry comparisons
        """
        self.engine = engine
        self.session_maker = build_session_maker(engine)
        self.telemetry = telemetry
        self.clock = clock
        self._closed = False

    @classmethod
    def from_url(cls, database_url: str, **kwargs) -> "StorageGateway":
        return cls(build_engine(database_url), **kwargs)

    async def _emit(self, level: str, message: str) -> None:
        if self.telemetry is not None:
            await self.telemetry.log("backend", level, "db", message)

    async def _internal_error(self, action: str, error: Exception) -> InternalError:
        logger.error(f"Database error while {action}: {error}", exc_info=True)
        await self._emit("error", f"Error {action}: {error}")
        return InternalError(f"failed {action}", original_error=error)

    @asynccontextmanager
    async def _transaction(
        self, action: str, passthrough_integrity: bool = False
    ) -> AsyncIterator[AsyncSession]:
        """
        Run the body in one committed transaction; wrap store failures.

        With passthrough_integrity the caller receives IntegrityError as is
        and decides whether it was a unique violation.
        """
        try:
            async with self.session_maker() as session:
                async with session.begin():
                    yield session
        except SQLAlchemyError as e:
            if passthrough_integrity and isinstance(e, IntegrityError):
                raise
            raise await self._internal_error(action, e) from e

    async def init_models(self) -> None:
        """Create the tables if they do not exist (dev/test; production uses Alembic)."""
        async with self.engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)
        await self._emit("info", "Database tables initialized successfully")

    async def create_short_url(
        self,
        shortcode: str,
        original_url: str,
        expiry: datetime,
        created_at: Optional[datetime] = None,
    ) -> ShortUrl:
        """
        Insert a new mapping.

        created_at defaults to the gateway clock.

        Returns:
            The stored row with id, created_at and clicks == 0 populated

        Raises:
            ConflictError: If the shortcode is already held by any row
            InternalError: If the insert fails for another reason
        """
        short_url = ShortUrl(
            shortcode=shortcode,
            original_url=original_url,
            created_at=created_at or self.clock(),
            expiry=expiry,
            clicks=0,
        )
        try:
            async with self._transaction("creating short URL", passthrough_integrity=True) as session:
                session.add(short_url)
        except IntegrityError as e:
            # NOT NULL and other constraint failures leave the shortcode free
            if await self.is_shortcode_available(shortcode):
                raise await self._internal_error("creating short URL", e) from e
            await self._emit("warn", f"Shortcode already exists: {shortcode}")
            raise ConflictError(shortcode) from e

        await self._emit("info", f"Short URL created: {shortcode} -> {original_url}")
        return short_url

    async def get_short_url(self, shortcode: str) -> Optional[ShortUrl]:
        """Return the row for shortcode if it exists and has not expired."""
        now = self.clock()
        statement = select(ShortUrl).where(
            ShortUrl.shortcode == shortcode,
            is_active_clause(now),
        )
        async with self._transaction("getting short URL") as session:
            result = await session.execute(statement)
            return result.scalar_one_or_none()

    async def is_shortcode_available(self, shortcode: str) -> bool:
        """
        True iff no row holds shortcode.

        Expired rows that have not been swept yet still hold their shortcode,
        matching the unique constraint the insert is checked against.
        """
        statement = select(func.count(ShortUrl.id)).where(ShortUrl.shortcode == shortcode)
        async with self._transaction("checking shortcode availability") as session:
            result = await session.execute(statement)
            return (result.scalar() or 0) == 0

    async def add_click(
        self,
        shortcode: str,
        referrer: str = DEFAULT_REFERRER,
        geo_location: str = "{}",
    ) -> ClickEvent:
        """Record one click and bump the parent's counter in a single transaction."""
        click = ClickEvent(
            shortcode=shortcode,
            timestamp=self.clock(),
            referrer=referrer,
            geo_location=geo_location,
        )
        increment = (
            update(ShortUrl)
            .where(ShortUrl.shortcode == shortcode)
            .values(clicks=ShortUrl.clicks + 1)
            .execution_options(synchronize_session=False)
        )
        async with self._transaction("recording click") as session:
            session.add(click)
            await session.execute(increment)

        await self._emit("info", f"Click recorded for shortcode: {shortcode}")
        return click

    async def get_click_details(self, shortcode: str) -> List[ClickEvent]:
        """Click history for shortcode, newest first."""
        statement = (
            select(ClickEvent)
            .where(ClickEvent.shortcode == shortcode)
            .order_by(ClickEvent.timestamp.desc(), ClickEvent.id.desc())
        )
        async with self._transaction("getting click details") as session:
            result = await session.execute(statement)
            return list(result.scalars().all())

    async def cleanup_expired_urls(self) -> int:
        """
        Delete every row whose expiry <= now, together with its clicks.

        Returns:
            Number of short_urls rows removed
        """
        now = self.clock()
        expired_codes = select(ShortUrl.shortcode).where(is_expired_clause(now))
        delete_clicks = (
            delete(ClickEvent)
            .where(ClickEvent.shortcode.in_(expired_codes))
            .execution_options(synchronize_session=False)
        )
        delete_urls = (
            delete(ShortUrl)
            .where(is_expired_clause(now))
            .execution_options(synchronize_session=False)
        )
        async with self._transaction("cleaning up expired URLs") as session:
            await session.execute(delete_clicks)
            result = await session.execute(delete_urls)
            deleted_count = result.rowcount or 0

        if deleted_count > 0:
            await self._emit("info", f"Cleaned up {deleted_count} expired URLs")
        return deleted_count

    async def ping(self) -> bool:
        """Cheap connectivity check used by the health endpoint."""
        async with self._transaction("checking connectivity") as session:
            await session.execute(select(1))
        return True

    async def close(self) -> None:
        """Release the engine; safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        await self.engine.dispose()
