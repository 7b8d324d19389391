"""
Pytest configuration and shared fixtures.

The test environment is set here, before any demo import, because
demo.config builds its settings and demo.storage its engine at import time.
"""

import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Fixtures drop tables, so never reuse a DATABASE_URL exported in the shell
os.environ["DATABASE_URL"] = "sqlite:///./test_messages.db"
os.environ.setdefault("LOG_LEVEL", "DEBUG")

# Clear settings cache so the test env vars above are used
from demo.config import get_settings  # noqa: E402
get_settings.cache_clear()

from demo.main import app  # noqa: E402
from demo.models import MessageRow  # noqa: E402,F401
from demo.service import MessageService  # noqa: E402
from demo.storage import Base, MessageStore, engine  # noqa: E402


@pytest.fixture(scope="function")
def client():
    """Create test client with fresh database for each test."""
    Base.metadata.create_all(bind=engine)

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    # Cleanup - drop all tables after test
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session_factory():
    """Session factory bound to a private in-memory SQLite database."""
    memory_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=memory_engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=memory_engine)
    memory_engine.dispose()


@pytest.fixture
def unreachable_session_factory():
    """Session factory whose database file can never be opened."""
    broken_engine = create_engine("sqlite:////nonexistent-dir/messages.db")
    yield sessionmaker(autocommit=False, autoflush=False, bind=broken_engine)
    broken_engine.dispose()


@pytest.fixture
def store(session_factory) -> MessageStore:
    return MessageStore(session_factory)


@pytest.fixture
def service(store) -> MessageService:
    return MessageService(store)
