"""
Short URL Query Service

This service handles read access to short URLs:
- Looking up a single short URL by its alias (the redirect path)
- Listing the short URLs owned by a user (dashboard)

Creation and deletion happen in the management flows; nothing here
mutates a short URL.
"""

from typing import Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from linkpulse.db.models import ShortUrl


class ShortUrlService:
    """
    Read-only access to the short_urls table.

    Separated from the redirect and analytics services for testability.
    Store errors are left to propagate; callers decide how to degrade.
    """

    def __init__(self, session: AsyncSession):
        """
        Args:
            session: Async database session for database operations
        """
        self.session = session

    async def get_by_alias(self, alias: str) -> Optional[ShortUrl]:
        """
        Retrieve the short URL for a given alias.

        Args:
            alias: The normalized alias to look up

        Returns:
            ShortUrl object if found, None otherwise
        """
        statement = select(ShortUrl).where(ShortUrl.alias == alias)
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def list_for_owner(self, owner_id: str) -> list[ShortUrl]:
        """
        All short URLs created by a user, newest first.
        """
        statement = (
            select(ShortUrl)
            .where(ShortUrl.owner_id == owner_id)
            .order_by(ShortUrl.created_at.desc())
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())
