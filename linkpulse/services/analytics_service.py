"""
Analytics Service

This service turns the raw visit log of one user into dashboard summaries.

Summary contents:
- total_visits: number of visits across all of the user's short URLs
- devices / locations / browsers / os: value -> count
- visits_over_time: one entry per calendar day for the trailing 7 days
- urls: the user's short URLs, newest first

Design Decisions:
- Days are UTC calendar days (the date part of the ISO-8601 timestamp),
  not the visitor's local day
- Timestamps read back without tzinfo (SQLite) are taken as UTC
- No visit query is issued for a user without short URLs
- Output only depends on the store and `now`
"""

from collections import Counter
from datetime import date, datetime, timedelta, timezone
from typing import Any, Iterable, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from linkpulse.core.exceptions import DatabaseError
from linkpulse.db.models import Visit
from linkpulse.services.url_service import ShortUrlService
from linkpulse.services.visitor_classifier import UNKNOWN

TIME_SERIES_DAYS = 7


def to_utc_date(timestamp: datetime) -> date:
    """Calendar day of a timestamp in UTC."""
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return timestamp.astimezone(timezone.utc).date()


def trailing_days(now: datetime, days: int = TIME_SERIES_DAYS) -> list[date]:
    """The last `days` UTC dates, oldest first, ending with today."""
    today = to_utc_date(now)
    return [today - timedelta(days=offset) for offset in range(days - 1, -1, -1)]


def count_by(visits: Iterable[Visit], attribute: str) -> dict[str, int]:
    """Occurrences of each value of a visit attribute; blanks count as Unknown."""
    counts: Counter = Counter()
    for visit in visits:
        value = getattr(visit, attribute)
        key = value.strip() if isinstance(value, str) else value
        counts[key or UNKNOWN] += 1
    return dict(counts)


def visits_over_time(visits: Iterable[Visit], now: datetime) -> list[dict[str, Any]]:
    """
    Daily visit counts for the trailing window.

    Always TIME_SERIES_DAYS entries, ascending, zero-filled.
    """
    per_day = Counter(to_utc_date(visit.created_at) for visit in visits)
    return [
        {"date": day.isoformat(), "count": per_day.get(day, 0)}
        for day in trailing_days(now)
    ]


class AnalyticsService:
    """
    Service for the per-user analytics dashboard.

    Reads the store fresh on every call; nothing is cached.
    """

    def __init__(self, session: AsyncSession):
        """
        Args:
            session: Async database session for database operations
        """
        self.session = session
        self.url_service = ShortUrlService(session)

    async def get_summary(self, owner_id: str, now: Optional[datetime] = None) -> dict[str, Any]:
        """
        Aggregate all visits to the short URLs owned by a user.

        Args:
            owner_id: Identifier of the dashboard user
            now: Reference time for the 7-day window (defaults to current UTC time)

        Returns:
            Dictionary with total_visits, devices, locations, browsers, os,
            visits_over_time and urls

        Raises:
            DatabaseError: If the store could not be queried
        """
        now = now or datetime.now(timezone.utc)

        try:
            urls = await self.url_service.list_for_owner(owner_id)
            if not urls:
                return self._summary([], [], now)

            statement = select(Visit).where(Visit.url_id.in_([url.id for url in urls]))
            result = await self.session.execute(statement)
            visits = list(result.scalars().all())
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to load analytics for {owner_id}: {e}", original_error=e)

        return self._summary(urls, visits, now)

    @staticmethod
    def _summary(urls: list, visits: list[Visit], now: datetime) -> dict[str, Any]:
        return {
            "total_visits": len(visits),
            "devices": count_by(visits, "device"),
            "locations": count_by(visits, "location"),
            "browsers": count_by(visits, "browser"),
            "os": count_by(visits, "os"),
            "visits_over_time": visits_over_time(visits, now),
            "urls": urls,
        }
