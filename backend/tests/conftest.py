import os

# Settings require a database url; tests always inject their own engine
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from personal_ledger.core.config import Settings
from personal_ledger.core.db import Base, build_session_factory
from personal_ledger.main import create_app
from personal_ledger.models import company, thing  # noqa: F401


@pytest.fixture
def settings():
    return Settings(DATABASE_URL="sqlite://", ENV="test")


@pytest.fixture
def engine():
    """In-memory SQLite shared by every connection of one test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = build_session_factory(engine)()
    yield session
    session.close()


@pytest.fixture
def client(settings, engine):
    app = create_app(settings, engine)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def broken_engine(tmp_path):
    """An engine whose every connection attempt fails."""
    engine = create_engine(f"sqlite:///{tmp_path / 'missing' / 'ledger.db'}")
    yield engine
    engine.dispose()


@pytest.fixture
def broken_client(settings, broken_engine):
    app = create_app(settings, broken_engine)
    with TestClient(app) as test_client:
        yield test_client
