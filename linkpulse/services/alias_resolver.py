"""
Alias Resolver

Maps a normalized alias to its ShortUrl row.

A missing alias and a failing store are reported as different errors,
even though the redirect flow shows the visitor a fallback in both cases:
- ShortUrlNotFoundError: no row with that alias
- DatabaseError: the lookup itself failed
"""

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from linkpulse.core.exceptions import DatabaseError, ShortUrlNotFoundError
from linkpulse.db.models import ShortUrl
from linkpulse.services.url_service import ShortUrlService


class AliasResolver:
    """Single-row lookup on the unique alias index."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.url_service = ShortUrlService(session)

    async def resolve(self, alias: str) -> ShortUrl:
        """
        Resolve an alias.

        Args:
            alias: Normalized alias (see core.validators.normalize_alias)

        Returns:
            The matching ShortUrl

        Raises:
            ShortUrlNotFoundError: If no short URL has this alias
            DatabaseError: If the store could not be queried
        """
        try:
            short_url = await self.url_service.get_by_alias(alias)
        except (SQLAlchemyError, OSError) as e:
            raise DatabaseError(f"Failed to resolve alias '{alias}': {e}", original_error=e)

        if short_url is None:
            raise ShortUrlNotFoundError(alias)
        return short_url
