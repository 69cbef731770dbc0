"""
Test configuration and fixtures for the LinkSprint API.
This centralizes all test setup, making individual tests clean.
"""

import os

# Must be set before linksprint.config builds its settings
os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ["CACHE_BACKEND"] = "memory"
os.environ["QUEUE_BACKEND"] = "memory"
os.environ["CLICK_WORKER_EMBEDDED"] = "false"
os.environ["BASE_URL"] = "http://sho.rt"

import pytest
from fastapi.testclient import TestClient

from main import app
from linksprint.cache.strategies import InMemoryCache
from linksprint.database.connection import Base, SessionLocal, engine, get_db
from linksprint.dependencies import get_cache, get_click_recorder, get_queue
from linksprint.queue.strategies import InMemoryQueue
from linksprint.services.analytics_service import AnalyticsService
from linksprint.services.click_recorder import ClickRecorder
from linksprint.services.url_service import URLService
from linksprint.storage.strategies import SQLAlchemyStore


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    This ensures tests are isolated and don't affect each other.
    """
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()

    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def cache():
    return InMemoryCache()


@pytest.fixture
def queue():
    return InMemoryQueue()


@pytest.fixture
def recorder(cache, queue):
    return ClickRecorder(cache=cache, queue=queue, queue_name="click_events")


@pytest.fixture
def store(db_session):
    return SQLAlchemyStore(db_session)


@pytest.fixture
def url_service(store, cache, recorder):
    return URLService(store=store, cache=cache, clicks=recorder)


@pytest.fixture
def analytics_service(store, cache):
    return AnalyticsService(store=store, cache=cache)


@pytest.fixture(scope="function")
def client(db_session, cache, queue, recorder):
    """
    Create a test client with database, cache and queue dependencies overridden.
    This is the main fixture that tests will use.
    """
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cache] = lambda: cache
    app.dependency_overrides[get_queue] = lambda: queue
    app.dependency_overrides[get_click_recorder] = lambda: recorder

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
