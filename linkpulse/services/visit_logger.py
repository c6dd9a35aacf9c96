"""
Visit Ingestion Service

This service validates and stores one attributed visit.

Design Decisions:
- Payloads use the wire field names (urlId, device, os, browser,
  location, referrer), so the HTTP endpoint and the in-process
  submitter share one format
- urlId, device, os, browser and location are required; referrer
  defaults to "Direct"
- The foreign key on visits.url_id is the referential check; a visit for
  an unknown URL fails in the store and is reported, never retried
"""

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from linkpulse.core.exceptions import DatabaseError, VisitValidationError
from linkpulse.db.models import Visit
from linkpulse.services.visitor_classifier import DIRECT

logger = logging.getLogger(__name__)

REQUIRED_VISIT_FIELDS = ("urlId", "device", "os", "browser", "location")


def _is_blank(value: Any) -> bool:
    return not value or not str(value).strip()


def validate_visit_payload(payload: Mapping[str, Any]) -> None:
    """
    Check that every required field is present and non-blank.

    Raises:
        VisitValidationError: Naming the first missing field
    """
    for field in REQUIRED_VISIT_FIELDS:
        if _is_blank(payload.get(field)):
            logger.warning(f"Missing field \"{field}\" in visit data")
            raise VisitValidationError(field)


class VisitIngestionService:
    """
    Service for storing visits.

    Called once per redirect, either by the track-visit endpoint or by a
    background dispatch, never inside the redirect request itself.
    """

    def __init__(self, session: AsyncSession):
        """
        Args:
            session: Async database session for database operations
        """
        self.session = session

    async def ingest(self, payload: Mapping[str, Any]) -> Visit:
        """
        Validate and persist a visit.

        Args:
            payload: Visit fields keyed by wire name

        Returns:
            The stored Visit

        Raises:
            VisitValidationError: If a required field is missing
            DatabaseError: If the visit could not be stored, including
                when urlId does not reference an existing short URL
        """
        validate_visit_payload(payload)

        referrer = payload.get("referrer")
        visit = Visit(
            url_id=str(payload["urlId"]),
            device=str(payload["device"]),
            os=str(payload["os"]),
            browser=str(payload["browser"]),
            location=str(payload["location"]),
            referrer=DIRECT if _is_blank(referrer) else str(referrer),
        )

        self.session.add(visit)
        try:
            await self.session.flush()
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise DatabaseError(
                f"Cannot store visit for unknown urlId '{visit.url_id}'",
                original_error=e
            )
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DatabaseError(f"Failed to store visit: {e}", original_error=e)

        logger.info(f"Visit saved for url {visit.url_id}")
        return visit
