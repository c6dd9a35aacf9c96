"""
Database Models for the Link Service

This module defines the SQLModel database schemas for:
- ShortUrl: Stores the mapping between aliases and target URLs
- Visit: Stores one attributed visit per successful redirect

Design Decisions:
- Separate Visit table for better scalability (can be partitioned/sharded independently)
- Unique index on alias for fast lookups (the redirect path)
- Index on owner_id for the per-user dashboard
- Index on visits.created_at for time-based queries
- Visits reference short_urls.id with a real foreign key; a visit for an
  unknown URL is rejected by the store
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlmodel import SQLModel, Field, Column


def generate_id() -> str:
    """Opaque identifier for new rows."""
    return uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ShortUrl(SQLModel, table=True):
    """
    Main table storing alias to target mappings.

    Fields:
    - id: Opaque identifier, generated at creation
    - alias: Unique short path segment
    - target: Destination URL, stored as submitted (scheme may be missing)
    - owner_id: Identifier of the user who created it (external identity)
    - created_at: Timestamp when the alias was created

    Rows are created and deleted by the management flows; the redirect
    pipeline only reads them.
    """
    __tablename__ = "short_urls"

    id: str = Field(
        default_factory=generate_id,
        sa_column=Column(String(32), primary_key=True)
    )
    alias: str = Field(
        sa_column=Column(String(64), nullable=False, unique=True, index=True)
    )
    target: str = Field(sa_column=Column(Text, nullable=False))
    owner_id: str = Field(
        sa_column=Column(String(255), nullable=False, index=True)
    )
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True)
    )


class Visit(SQLModel, table=True):
    """
    Visit table for dashboard analytics.

    One row per redirect whose attribution was delivered. Rows are never
    updated; delivery is best-effort, so a redirect may leave no row.

    Note: device, os and browser hold a fixed set of labels (see
    services.visitor_classifier) or "Unknown".
    """
    __tablename__ = "visits"

    id: str = Field(
        default_factory=generate_id,
        sa_column=Column(String(32), primary_key=True)
    )
    url_id: str = Field(
        sa_column=Column(
            String(32),
            ForeignKey("short_urls.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
    )
    device: str = Field(sa_column=Column(String(32), nullable=False))
    os: str = Field(sa_column=Column(String(32), nullable=False))
    browser: str = Field(sa_column=Column(String(32), nullable=False))
    location: str = Field(sa_column=Column(String(255), nullable=False))
    referrer: str = Field(
        default="Direct",
        sa_column=Column(Text, nullable=False)
    )
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True)
    )
