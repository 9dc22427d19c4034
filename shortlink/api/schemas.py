"""
API Request and Response Schemas

This module defines all Pydantic models for API requests and responses.
Attribute names are snake_case; the JSON field names (camelCase) are set
through aliases and used when FastAPI serializes a response_model.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ShortenRequest(BaseModel):
    """Request model for URL shortening endpoint."""
    url: str = Field(..., description="The long URL to shorten (http or https)")
    validity: Optional[int] = Field(
        default=None,
        description="Minutes the short link stays valid (default 30)"
    )
    shortcode: Optional[str] = Field(
        default=None,
        description="Preferred shortcode, 4-20 alphanumeric characters"
    )


class ShortenResponse(BaseModel):
    """Response model for URL shortening endpoint."""
    model_config = ConfigDict(populate_by_name=True)

    short_link: str = Field(..., alias="shortLink", description="The complete short URL")
    expiry: datetime = Field(..., description="When the short link stops resolving (UTC)")


class GeoLocation(BaseModel):
    country: str = "Unknown"
    city: str = "Unknown"
    region: str = "Unknown"


class ClickDetailResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    timestamp: datetime
    referrer: str
    geo_location: GeoLocation = Field(default_factory=GeoLocation, alias="geoLocation")


class StatsResponse(BaseModel):
    """Response model for statistics endpoint."""
    model_config = ConfigDict(populate_by_name=True)

    clicks: int
    original_url: str = Field(..., alias="originalURL")
    creation_date: datetime = Field(..., alias="creationDate")
    expiry: datetime
    clicks_detail: List[ClickDetailResponse] = Field(default_factory=list, alias="clicksDetail")


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    uptime: float = Field(..., description="Seconds since the application started")
