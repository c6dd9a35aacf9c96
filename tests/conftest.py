"""
Test configuration and fixtures.

Each test gets its own SQLite file under tmp_path. Async tests use an
async engine from the project's SQLiteAdapter; API tests seed data with
a sync engine on the same file and hand the app an async session factory
through dependency overrides.
"""

import os

# Must be set before linkpulse.core.setting is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_linkpulse.db")
os.environ.setdefault("CREATE_TABLES_ON_STARTUP", "false")
os.environ.setdefault("BASE_URL", "http://testserver")

from datetime import datetime, timezone
from typing import Optional

import pytest
from sqlalchemy import create_engine
from sqlmodel import Session, SQLModel

from linkpulse.db.models import ShortUrl, Visit
from linkpulse.db.session import build_session_maker, create_tables
from linkpulse.db.sqlite_adapter import SQLiteAdapter
from linkpulse.services.geolocation import GeoLocation, GeolocationProvider


class FakeGeolocator(GeolocationProvider):
    """Geolocation provider answering from a dict, recording every lookup."""

    def __init__(self, locations: Optional[dict] = None, error: Optional[Exception] = None):
        self.locations = locations or {}
        self.error = error
        self.calls = []

    async def lookup(self, ip: str) -> GeoLocation:
        self.calls.append(ip)
        if self.error is not None:
            raise self.error
        return self.locations.get(ip, GeoLocation())


class RecordingDispatcher:
    """Stands in for VisitDispatcher; keeps payloads instead of sending them."""

    def __init__(self):
        self.payloads = []

    @property
    def pending(self) -> int:
        return 0

    def dispatch(self, payload):
        self.payloads.append(dict(payload))

    async def drain(self, timeout=None):
        return None


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "linkpulse_test.db"


@pytest.fixture
async def engine(db_path):
    engine = SQLiteAdapter().create_engine(f"sqlite+aiosqlite:///{db_path}")
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return build_session_maker(engine)


@pytest.fixture
async def session(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def make_short_url(session):
    """Factory inserting a ShortUrl through the async session."""

    async def _make(alias: str, target: str = "example.com", owner_id: str = "user_1",
                    created_at: Optional[datetime] = None) -> ShortUrl:
        short_url = ShortUrl(alias=alias, target=target, owner_id=owner_id)
        if created_at is not None:
            short_url.created_at = created_at
        session.add(short_url)
        await session.commit()
        return short_url

    return _make


@pytest.fixture
def make_visit(session):
    """Factory inserting a Visit through the async session."""

    async def _make(url_id: str, device: str = "Desktop", os: str = "Windows",
                    browser: str = "Chrome", location: str = "Berlin, Germany",
                    referrer: str = "Direct", created_at: Optional[datetime] = None) -> Visit:
        visit = Visit(
            url_id=url_id, device=device, os=os, browser=browser,
            location=location, referrer=referrer,
            created_at=created_at or datetime.now(timezone.utc),
        )
        session.add(visit)
        await session.commit()
        return visit

    return _make


@pytest.fixture
def sync_session(db_path):
    """Sync session on the test database, for seeding API tests."""
    sync_engine = create_engine(f"sqlite:///{db_path}")
    SQLModel.metadata.create_all(sync_engine)
    with Session(sync_engine) as session:
        yield session
    sync_engine.dispose()


@pytest.fixture
def geolocator():
    return FakeGeolocator()


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def client(db_path, sync_session, geolocator, dispatcher):
    """
    TestClient wired to the test database, a fake geolocator and a
    recording dispatcher.
    """
    from fastapi.testclient import TestClient

    from linkpulse.api.dependencies import get_geolocator, get_visit_dispatcher
    from linkpulse.core.rate_limit import limiter
    from linkpulse.db.session import get_session
    from linkpulse.main import app

    api_session_maker = build_session_maker(
        SQLiteAdapter().create_engine(f"sqlite+aiosqlite:///{db_path}")
    )

    async def override_get_session():
        async with api_session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_geolocator] = lambda: geolocator
    app.dependency_overrides[get_visit_dispatcher] = lambda: dispatcher
    limiter.reset()

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
