"""
API Request and Response Schemas

This module defines all Pydantic models for API responses.
Separated from endpoints to keep concerns separated and enable reuse.

Design Principles:
- JSON keys are camelCase (urlId, totalVisits, ...), Python attributes snake_case
- The track-visit body is read as a plain JSON object and validated by
  the ingestion service, so a missing field is reported by name
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serializing field names as camelCase."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ShortUrlOut(CamelModel):
    """A short URL as returned to its owner."""
    id: str
    alias: str
    target: str
    owner_id: str
    created_at: datetime


class DailyCount(CamelModel):
    date: str = Field(..., description="UTC calendar day, YYYY-MM-DD")
    count: int


class AnalyticsSummary(CamelModel):
    """Dashboard aggregates for one user."""
    total_visits: int = 0
    devices: dict[str, int] = Field(default_factory=dict)
    locations: dict[str, int] = Field(default_factory=dict)
    browsers: dict[str, int] = Field(default_factory=dict)
    os: dict[str, int] = Field(default_factory=dict)
    visits_over_time: list[DailyCount] = Field(default_factory=list)
    urls: list[ShortUrlOut] = Field(default_factory=list)


class TrackVisitResponse(CamelModel):
    """Response model for the visit ingestion endpoint."""
    success: bool
    error: Optional[str] = None


class UserUrlsResponse(CamelModel):
    """Response model for the user URL listing."""
    success: bool
    message: Optional[str] = None
    urls: list[ShortUrlOut] = Field(default_factory=list)


class AnalyticsResponse(CamelModel):
    """Response model for the analytics endpoint."""
    success: bool
    message: Optional[str] = None
    data: Optional[AnalyticsSummary] = None


class DashboardAnalytics(CamelModel):
    """Chart-ready aggregates, keyed the way the dashboard UI reads them."""
    total_visits: int = 0
    device_stats: dict[str, int] = Field(default_factory=dict)
    location_stats: dict[str, int] = Field(default_factory=dict)
    browser_stats: dict[str, int] = Field(default_factory=dict)
    os_stats: dict[str, int] = Field(default_factory=dict)
    visits_over_time: list[DailyCount] = Field(default_factory=list)


class DashboardResponse(CamelModel):
    """Response model for the dashboard data endpoint."""
    success: bool
    message: Optional[str] = None
    urls: list[ShortUrlOut] = Field(default_factory=list)
    analytics: Optional[DashboardAnalytics] = None
