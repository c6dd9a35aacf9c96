"""
Redirect Service

This service handles the GET /{alias} flow:
1. Normalize the alias (empty -> back to the application root)
2. Resolve it (missing -> not-found page, store failure -> root)
3. Classify the visitor
4. Dispatch the visit in the background
5. Redirect to the normalized target

Steps 3 and 4 are attribution. They are best-effort: whatever happens
there, a resolved alias always ends in a redirect to its target.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from linkpulse.core.exceptions import DatabaseError, ShortUrlNotFoundError
from linkpulse.core.validators import normalize_alias, normalize_target
from linkpulse.db.models import ShortUrl
from linkpulse.services.alias_resolver import AliasResolver
from linkpulse.services.background_tasks import VisitDispatcher
from linkpulse.services.visitor_classifier import VisitorClassifier

logger = logging.getLogger(__name__)


class RedirectOutcome(str, Enum):
    redirect = "redirect"
    not_found = "not_found"
    root = "root"


@dataclass(frozen=True)
class RedirectResult:
    """What the alias endpoint should answer with."""
    outcome: RedirectOutcome
    location: Optional[str] = None
    alias: Optional[str] = None


class RedirectService:
    """
    Orchestrates resolution, attribution and the redirect target.
    """

    def __init__(
        self,
        session: AsyncSession,
        classifier: VisitorClassifier,
        dispatcher: VisitDispatcher,
        base_url: str,
    ):
        """
        Args:
            session: Async database session used for the alias lookup only
            classifier: Visitor classifier (with its geolocation provider)
            dispatcher: Background runner for visit submissions
            base_url: Public host of this service, used for the home link
        """
        self.resolver = AliasResolver(session)
        self.classifier = classifier
        self.dispatcher = dispatcher
        self.base_url = base_url

    async def handle_redirect(self, alias: Optional[str], headers: Mapping) -> RedirectResult:
        """
        Work out the response for a visit to /{alias}.

        Args:
            alias: Raw path segment
            headers: Request headers (case-insensitive)

        Returns:
            RedirectResult; only a resolved alias yields RedirectOutcome.redirect.
            For not_found, location is the home link shown on the page.
        """
        clean_alias = normalize_alias(alias)
        if not clean_alias:
            return RedirectResult(RedirectOutcome.root, location="/")

        try:
            short_url = await self.resolver.resolve(clean_alias)
        except ShortUrlNotFoundError:
            logger.warning(f"No URL found for {clean_alias}")
            return RedirectResult(RedirectOutcome.not_found, location=self.base_url, alias=clean_alias)
        except DatabaseError as e:
            logger.error(f"DB error resolving {clean_alias}: {e}", exc_info=True)
            return RedirectResult(RedirectOutcome.root, location="/")

        await self._attribute_visit(short_url, headers)

        return RedirectResult(
            RedirectOutcome.redirect,
            location=normalize_target(short_url.target),
            alias=clean_alias,
        )

    async def _attribute_visit(self, short_url: ShortUrl, headers: Mapping) -> None:
        try:
            visitor = await self.classifier.classify(headers)
            self.dispatcher.dispatch({
                "urlId": short_url.id,
                "device": visitor.device,
                "os": visitor.os,
                "browser": visitor.browser,
                "location": visitor.location,
                "referrer": visitor.referrer,
            })
        except Exception as e:
            logger.error(f"Visit attribution failed for {short_url.alias}: {e!r}", exc_info=True)
