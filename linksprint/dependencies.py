"""
FastAPI dependencies for dependency injection.

Cache, queue and click recorder are per-process singletons built from
settings; the store and the services are built per request around the
request's database session. Tests swap any of them via
`app.dependency_overrides`.
"""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from linksprint.cache.factory import CacheFactory, CacheBackend
from linksprint.cache.strategies import CacheStrategy
from linksprint.config import settings
from linksprint.database.connection import get_db
from linksprint.queue.factory import QueueFactory, QueueBackend
from linksprint.queue.strategies import QueueStrategy
from linksprint.services.analytics_service import AnalyticsService
from linksprint.services.click_recorder import ClickRecorder
from linksprint.services.url_service import URLService
from linksprint.storage.strategies import SQLAlchemyStore, StoreStrategy


@lru_cache()
def get_cache() -> CacheStrategy:
    """Cache instance selected by settings.cache_backend (singleton)."""
    return CacheFactory.create(CacheBackend(settings.cache_backend))


@lru_cache()
def get_queue() -> QueueStrategy:
    """Queue instance selected by settings.queue_backend (singleton)."""
    return QueueFactory.create(QueueBackend(settings.queue_backend))


@lru_cache()
def get_click_recorder() -> ClickRecorder:
    return ClickRecorder(cache=get_cache(), queue=get_queue(), queue_name=settings.queue_name)


def get_store(db: Session = Depends(get_db)) -> StoreStrategy:
    return SQLAlchemyStore(db)


def get_url_service(
    store: StoreStrategy = Depends(get_store),
    cache: CacheStrategy = Depends(get_cache),
    clicks: ClickRecorder = Depends(get_click_recorder),
) -> URLService:
    """
    Controller depends on service, service depends on infrastructure
    (store, cache, click recorder).
    """
    return URLService(store=store, cache=cache, clicks=clicks)


def get_analytics_service(
    store: StoreStrategy = Depends(get_store),
    cache: CacheStrategy = Depends(get_cache),
) -> AnalyticsService:
    return AnalyticsService(store=store, cache=cache)
