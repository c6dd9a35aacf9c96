"""
Process Resource Manager

This module creates and tears down the resources shared by all requests
of one application instance:
- app.state.http_client: httpx.AsyncClient for outbound calls
- app.state.geolocator: IP geolocation provider built on that client
- app.state.visit_dispatcher: background runner for visit submissions

Design:
- Initialized on application startup, released on shutdown
- Each instance owns its own client and dispatcher (enables horizontal scaling)
- Visits still in flight at shutdown get VISIT_DRAIN_TIMEOUT seconds to land
"""

import logging

import httpx
from fastapi import FastAPI

from linkpulse.core.setting import Settings, VisitTransport
from linkpulse.db.session import async_session_maker, create_tables, db_adapter
from linkpulse.services.background_tasks import (
    DirectVisitSubmitter,
    HttpVisitSubmitter,
    VisitDispatcher,
    VisitSubmitter,
    build_track_visit_url,
)
from linkpulse.services.geolocation import IpApiGeolocationProvider

logger = logging.getLogger(__name__)


def build_visit_submitter(settings: Settings, client: httpx.AsyncClient) -> VisitSubmitter:
    """
    Pick the transport for visit payloads.

    'http' posts to {BASE_URL}/api/track-visit; 'direct' writes with a
    fresh session in this process.
    """
    if settings.VISIT_TRANSPORT == VisitTransport.direct:
        return DirectVisitSubmitter(async_session_maker)
    return HttpVisitSubmitter(client, build_track_visit_url(settings.BASE_URL))


async def initialize_resources(app: FastAPI, settings: Settings) -> None:
    """
    Create the shared client, geolocator and dispatcher.

    Also creates missing tables when CREATE_TABLES_ON_STARTUP is set.
    """
    if settings.CREATE_TABLES_ON_STARTUP:
        await create_tables()
        logger.info("Database tables ready")

    logger.info(
        f"Starting in {settings.ENV_SETTING.value} environment "
        f"on {db_adapter.get_dialect_name()} database"
    )

    client = httpx.AsyncClient(timeout=settings.OUTBOUND_HTTP_TIMEOUT)
    app.state.http_client = client
    app.state.geolocator = IpApiGeolocationProvider(
        client, settings.GEOLOCATION_URL, timeout=settings.GEOLOCATION_TIMEOUT
    )
    app.state.visit_dispatcher = VisitDispatcher(build_visit_submitter(settings, client))

    logger.info(
        f"Visit attribution ready: "
        f"transport={settings.VISIT_TRANSPORT.value}, "
        f"base_url={settings.BASE_URL}"
    )


async def shutdown_resources(app: FastAPI, settings: Settings) -> None:
    """Drain pending visit dispatches and close the HTTP client."""
    dispatcher = getattr(app.state, "visit_dispatcher", None)
    if dispatcher is not None:
        await dispatcher.drain(timeout=settings.VISIT_DRAIN_TIMEOUT)

    client = getattr(app.state, "http_client", None)
    if client is not None:
        await client.aclose()
        logger.info("HTTP client closed")
