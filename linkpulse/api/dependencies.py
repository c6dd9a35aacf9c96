"""
FastAPI Dependencies

Wires per-request services from the process-wide resources created on
startup (see linkpulse.main):
- app.state.geolocator: GeolocationProvider
- app.state.visit_dispatcher: VisitDispatcher

Tests override these functions through app.dependency_overrides.
"""

from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from linkpulse.core.setting import settings
from linkpulse.db.session import get_session
from linkpulse.services.background_tasks import VisitDispatcher
from linkpulse.services.geolocation import GeolocationProvider
from linkpulse.services.redirect_service import RedirectService
from linkpulse.services.visitor_classifier import VisitorClassifier


def get_current_user_id(request: Request) -> Optional[str]:
    """
    Identifier of the signed-in user, or None.

    Authentication happens upstream; the identity provider forwards the
    stable user id in settings.USER_ID_HEADER.
    """
    user_id = request.headers.get(settings.USER_ID_HEADER)
    if user_id and user_id.strip():
        return user_id.strip()
    return None


def get_geolocator(request: Request) -> Optional[GeolocationProvider]:
    return getattr(request.app.state, "geolocator", None)


def get_visit_dispatcher(request: Request) -> VisitDispatcher:
    return request.app.state.visit_dispatcher


def get_redirect_service(
    session: AsyncSession = Depends(get_session),
    geolocator: Optional[GeolocationProvider] = Depends(get_geolocator),
    dispatcher: VisitDispatcher = Depends(get_visit_dispatcher),
) -> RedirectService:
    return RedirectService(
        session,
        classifier=VisitorClassifier(geolocator),
        dispatcher=dispatcher,
        base_url=settings.BASE_URL,
    )
