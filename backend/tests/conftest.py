"""Shared fixtures: an in-memory database, a fixed word list and a fake geo service."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from shortlinks.api.deps import (
    get_allocator,
    get_session_factory,
    get_visit_recorder,
)
from shortlinks.core.profanity import ProfanityFilter
from shortlinks.core.shortener import LinkAllocator
from shortlinks.database import Base, get_db, make_engine
from shortlinks.exceptions import GeoLookupFailed
from shortlinks.main import app
from shortlinks.models import Link, OriginalURL
from shortlinks.services.visits import VisitRecorder


class StubResolver:
    """Answers from a fixed ip -> country table; unknown addresses fail"""

    def __init__(self, countries=None):
        self.countries = countries or {}
        self.calls = []

    def resolve_country(self, ip):
        self.calls.append(ip)
        if ip not in self.countries:
            raise GeoLookupFailed(f"no country for {ip}")
        return self.countries[ip]


@pytest.fixture
def engine():
    engine = make_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def profanity():
    return ProfanityFilter({"admin", "fuck"})


@pytest.fixture
def allocator(profanity):
    return LinkAllocator(profanity, max_attempts=5)


@pytest.fixture
def resolver():
    return StubResolver({"1.2.3.4": "US", "5.6.7.8": "FR"})


@pytest.fixture
def recorder(resolver):
    return VisitRecorder(resolver)


@pytest.fixture
def make_link(db):
    """Insert a link directly, bypassing the allocator"""

    def _make_link(identifier="abc", original="http://example.com/page"):
        link = Link(identifier=identifier, url=OriginalURL(original=original))
        db.add(link)
        db.commit()
        return link

    return _make_link


@pytest.fixture
def client(session_factory, allocator, recorder):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_allocator] = lambda: allocator
    app.dependency_overrides[get_visit_recorder] = lambda: recorder
    app.dependency_overrides[get_session_factory] = lambda: session_factory

    # No context manager: the lifespan would create tables in the configured database
    yield TestClient(app, raise_server_exceptions=False)

    app.dependency_overrides.clear()
