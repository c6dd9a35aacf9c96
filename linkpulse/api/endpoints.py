"""
FastAPI Endpoints for the Link Service

This module defines all HTTP endpoints with minimal logic.
Endpoints only handle:
- Request parsing
- Rate limiting
- Mapping service errors to HTTP responses
- Delegating to service layer

All business logic is in services.

Routes:
- POST /api/track-visit   store one visit
- GET  /api/user-urls     short URLs of the signed-in user
- GET  /api/analytics     analytics summary of the signed-in user
- GET  /api/dashboard-data  URLs plus chart-ready aggregates
- GET  /{alias}           redirect (catch-all, registered last)
"""

import logging
from html import escape
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from linkpulse.api.dependencies import get_current_user_id, get_redirect_service
from linkpulse.api.schemas import (
    AnalyticsResponse,
    AnalyticsSummary,
    DashboardAnalytics,
    DashboardResponse,
    ShortUrlOut,
    TrackVisitResponse,
    UserUrlsResponse,
)
from linkpulse.core.exceptions import DatabaseError, VisitValidationError
from linkpulse.core.rate_limit import limiter, RATE_LIMITS
from linkpulse.db.session import get_session
from linkpulse.services.analytics_service import AnalyticsService
from linkpulse.services.redirect_service import RedirectOutcome, RedirectService
from linkpulse.services.url_service import ShortUrlService
from linkpulse.services.visit_logger import VisitIngestionService

logger = logging.getLogger(__name__)

router = APIRouter()

NOT_SIGNED_IN = "User not signed in"
INTERNAL_ERROR = "Internal Server Error"

NOT_FOUND_PAGE = """<!DOCTYPE html>
<html>
  <head><title>404 - Short URL Not Found</title></head>
  <body style="text-align: center; margin-top: 50px">
    <h1>404 - Short URL Not Found</h1>
    <p>The short URL <strong>{alias}</strong> does not exist.</p>
    <a href="{home}">Go Home</a>
  </body>
</html>
"""


def _error(status_code: int, **content) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, **content})


def render_not_found(alias: str, home: str) -> HTMLResponse:
    """Not-found view naming the requested alias, with a link home."""
    body = NOT_FOUND_PAGE.format(alias=escape(alias), home=escape(home or "/", quote=True))
    return HTMLResponse(content=body, status_code=status.HTTP_404_NOT_FOUND)


@router.post(
    "/api/track-visit",
    response_model=TrackVisitResponse,
    response_model_exclude_none=True,
    summary="Record a visit",
    description="Stores one attributed visit for an existing short URL"
)
async def track_visit(
    request: Request,
    session: AsyncSession = Depends(get_session)
):
    """
    Store a visit sent by the redirect flow.

    Returns:
        {"success": true} once stored

    Error responses:
        400: body is not a JSON object or a required field is missing
        500: the store rejected the visit (including unknown urlId)
    """
    try:
        payload = await request.json()
    except ValueError:
        payload = None

    if not isinstance(payload, dict):
        return _error(status.HTTP_400_BAD_REQUEST, error="Request body must be a JSON object")

    logger.info(f"Visit received: {payload}")

    try:
        await VisitIngestionService(session).ingest(payload)
    except VisitValidationError as e:
        return _error(status.HTTP_400_BAD_REQUEST, error=str(e))
    except DatabaseError as e:
        logger.error(f"Tracking API error: {e}", exc_info=True)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, error=str(e))

    return TrackVisitResponse(success=True)


@router.get(
    "/api/user-urls",
    response_model=UserUrlsResponse,
    summary="List the caller's short URLs",
    description="Returns every short URL owned by the signed-in user, newest first"
)
@limiter.limit(RATE_LIMITS["dashboard"])
async def list_user_urls(
    request: Request,  # Required for rate limiting
    user_id: Optional[str] = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session)
):
    if not user_id:
        return _error(status.HTTP_401_UNAUTHORIZED, message=NOT_SIGNED_IN, urls=[])

    try:
        urls = await ShortUrlService(session).list_for_owner(user_id)
    except SQLAlchemyError as e:
        logger.error(f"User URLs API error: {e}", exc_info=True)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, message=INTERNAL_ERROR, urls=[])

    return UserUrlsResponse(
        success=True,
        urls=[ShortUrlOut.model_validate(url) for url in urls]
    )


async def _load_summary(session: AsyncSession, user_id: str) -> AnalyticsSummary:
    summary = await AnalyticsService(session).get_summary(user_id)
    summary["urls"] = [ShortUrlOut.model_validate(url) for url in summary["urls"]]
    return AnalyticsSummary.model_validate(summary)


@router.get(
    "/api/analytics",
    response_model=AnalyticsResponse,
    summary="Analytics summary",
    description="Visit totals, groupings and the trailing 7-day series for the signed-in user"
)
@limiter.limit(RATE_LIMITS["dashboard"])
async def get_analytics(
    request: Request,  # Required for rate limiting
    user_id: Optional[str] = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session)
):
    if not user_id:
        return _error(status.HTTP_401_UNAUTHORIZED, message=NOT_SIGNED_IN)

    try:
        summary = await _load_summary(session, user_id)
    except DatabaseError as e:
        logger.error(f"Analytics API error: {e}", exc_info=True)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, message=INTERNAL_ERROR)

    return AnalyticsResponse(success=True, data=summary)


@router.get(
    "/api/dashboard-data",
    response_model=DashboardResponse,
    summary="Dashboard data",
    description="Short URLs and chart-ready analytics for the signed-in user"
)
@limiter.limit(RATE_LIMITS["dashboard"])
async def get_dashboard_data(
    request: Request,  # Required for rate limiting
    user_id: Optional[str] = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session)
):
    if not user_id:
        return _error(status.HTTP_401_UNAUTHORIZED, message=NOT_SIGNED_IN, urls=[])

    try:
        summary = await _load_summary(session, user_id)
    except DatabaseError as e:
        logger.error(f"Dashboard API error: {e}", exc_info=True)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, message=INTERNAL_ERROR, urls=[])

    return DashboardResponse(
        success=True,
        urls=summary.urls,
        analytics=DashboardAnalytics(
            total_visits=summary.total_visits,
            device_stats=summary.devices,
            location_stats=summary.locations,
            browser_stats=summary.browsers,
            os_stats=summary.os,
            visits_over_time=summary.visits_over_time,
        ),
    )


@router.get(
    "/{alias:path}",
    summary="Redirect to target URL",
    description="Resolves an alias, records the visit in the background and redirects",
    response_class=RedirectResponse,
    status_code=status.HTTP_302_FOUND,
)
async def redirect_alias(
    alias: str,
    request: Request,
    redirect_service: RedirectService = Depends(get_redirect_service)
):
    """
    Redirect to the target of an alias.

    Returns:
        302 to the target, 404 not-found page for an unknown alias, or
        302 to / when the alias is empty or the store is unavailable

    The visit is recorded by a background dispatch; the response does not
    wait for it.
    """
    result = await redirect_service.handle_redirect(alias, request.headers)

    if result.outcome is RedirectOutcome.not_found:
        return render_not_found(result.alias, result.location)

    return RedirectResponse(url=result.location, status_code=status.HTTP_302_FOUND)
