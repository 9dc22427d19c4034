"""
Database Models for the Shortening Service

This module defines the SQLModel database schemas for:
- ShortUrl: Stores the mapping between shortcodes and original URLs
- ClickEvent: Stores individual resolutions for analytics and statistics

It also holds the lifecycle status derivation. A row has no status column:
it is ACTIVE while expiry > now and EXPIRED afterwards until the sweep
removes it. Both the Python check and the SQL predicates come from this
module so the resolution path and the sweep agree on the boundary.

Design Decisions:
- Separate clicks table, referencing short_urls by shortcode value
- Unique index on shortcode for fast lookups (most common operation)
- Index on expiry for the sweep
- clicks denormalized in ShortUrl for quick stats without joins
"""

import enum
import json
from datetime import datetime
from typing import Optional

from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.sql.elements import ColumnElement
from sqlmodel import Field, SQLModel

from shortlink.core.clock import utcnow

DEFAULT_REFERRER = "direct"
UNKNOWN_GEO_LOCATION = {"country": "Unknown", "city": "Unknown", "region": "Unknown"}


class ShortUrl(SQLModel, table=True):
    """
    Main table storing URL shortening mappings.

    Fields:
    - id: Auto-incrementing primary key
    - shortcode: Unique 4-20 character alphanumeric code
    - original_url: The long URL that was shortened
    - created_at: Timestamp when the mapping was created
    - expiry: Timestamp after which the mapping no longer resolves
    - clicks: Denormalized resolution count
    """
    __tablename__ = "short_urls"

    id: Optional[int] = Field(default=None, primary_key=True)
    shortcode: str = Field(
        sa_column=Column(String(20), nullable=False, unique=True, index=True),
        max_length=20
    )
    original_url: str = Field(sa_column=Column(Text, nullable=False))
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime, nullable=False)
    )
    expiry: datetime = Field(sa_column=Column(DateTime, nullable=False, index=True))
    clicks: int = Field(default=0, sa_column=Column(Integer, nullable=False, default=0))


class ClickEvent(SQLModel, table=True):
    """
    Click table for detailed analytics.

    One row per successful resolution. geo_location holds a JSON document
    with country, city and region.
    """
    __tablename__ = "clicks"

    id: Optional[int] = Field(default=None, primary_key=True)
    shortcode: str = Field(sa_column=Column(String(20), nullable=False, index=True))
    timestamp: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime, nullable=False)
    )
    referrer: str = Field(
        default=DEFAULT_REFERRER,
        sa_column=Column(String(500), nullable=False, default=DEFAULT_REFERRER)
    )
    geo_location: str = Field(
        default="{}",
        sa_column=Column(Text, nullable=False, default="{}")
    )

    def geo_location_dict(self) -> dict:
        """Deserialize the stored geolocation payload."""
        try:
            value = json.loads(self.geo_location or "{}")
        except ValueError:
            return {}
        return value if isinstance(value, dict) else {}


class UrlStatus(str, enum.Enum):
    """Lifecycle state of a stored ShortUrl row."""
    ACTIVE = "active"
    EXPIRED = "expired"


def url_status(row: ShortUrl, now: datetime) -> UrlStatus:
    """Derive the lifecycle state of a row at the instant now."""
    if row.expiry > now:
        return UrlStatus.ACTIVE
    return UrlStatus.EXPIRED


def is_active_clause(now: datetime) -> ColumnElement[bool]:
    """SQL predicate matching rows url_status() reports as ACTIVE."""
    return ShortUrl.expiry > now


def is_expired_clause(now: datetime) -> ColumnElement[bool]:
    """SQL predicate matching rows url_status() reports as EXPIRED."""
    return ShortUrl.expiry <= now
