import os

# Settings are read at import time; keep tests offline and off the default DB file
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("CHAT_TEST_MODE", "true")
os.environ.setdefault("AUTO_CREATE_TABLES", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.agent.completion import CompletionOrchestrator, get_orchestrator
from app.db.session import get_db, init_db
from app.main import app


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    TestingSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def test_orchestrator():
    return CompletionOrchestrator(api_key=None, test_mode=True)


@pytest.fixture
def orchestrator_override():
    """Swap the orchestrator used by the HTTP layer; returns a setter."""
    def _set(orchestrator):
        app.dependency_overrides[get_orchestrator] = lambda: orchestrator
        return orchestrator

    return _set


@pytest.fixture
def client(db, test_orchestrator):
    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_orchestrator] = lambda: test_orchestrator
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
