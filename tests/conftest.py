"""
Pytest configuration and fixtures for the mentorship API.

Every test gets its own file-backed SQLite database so the store's
transactional behaviour (partial unique index, conditional updates,
writer locking) is exercised for real.
"""
import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

# Keep the app off PostgreSQL; must be set before the app is imported
os.environ["DATABASE_URL"] = "sqlite:///./mentorlink-test.db"
os.environ["AUTH_REQUIRED"] = "false"

from mentorlink.config import get_settings  # noqa: E402
from mentorlink.database import get_engine, create_db_and_tables, get_db  # noqa: E402
from mentorlink.graph_store import SqlAlchemyGraphStore  # noqa: E402
from mentorlink.main import app  # noqa: E402
from mentorlink.models import UserType  # noqa: E402
from mentorlink.schemas import UserCreate  # noqa: E402
from mentorlink.services import MatchingService, MentorshipService, ProfileService  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_settings():
    """Settings are cached; drop the cache around each test so env changes apply."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def engine(tmp_path):
    engine = get_engine(f"sqlite:///{tmp_path / 'mentorlink.db'}")
    create_db_and_tables(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store(db):
    return SqlAlchemyGraphStore(db)


@pytest.fixture
def profile_service(store):
    return ProfileService(store)


@pytest.fixture
def mentorship_service(store):
    return MentorshipService(store)


@pytest.fixture
def matching_service(store):
    return MatchingService(store)


@pytest.fixture
def make_student(profile_service):
    def _make(uid, **fields):
        fields.setdefault("name", uid.title())
        return profile_service.create_user(UserCreate(uid=uid, type=UserType.STUDENT, **fields))
    return _make


@pytest.fixture
def make_mentor(profile_service):
    def _make(uid, **fields):
        fields.setdefault("name", uid.title())
        fields.setdefault("max_mentees", 3)
        fields.setdefault("rating", 4.0)
        return profile_service.create_user(UserCreate(uid=uid, type=UserType.MENTOR, **fields))
    return _make


@pytest.fixture
def client(session_factory):
    """
    TestClient bound to the per-test database.

    raise_server_exceptions=False so errors go through the app's exception
    handlers, matching production behaviour.
    """
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()
