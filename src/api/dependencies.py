"""Dependency providers for the API routes.

Stores and the resolver are built once per process from :class:`Settings`.
Tests replace them through ``app.dependency_overrides``.
"""

import logging
from functools import lru_cache
from pathlib import Path

from fastapi import Depends

from src.catalog.cache import CacheStoreAdapter
from src.catalog.primary import PrimaryStoreAdapter
from src.catalog.repository import CoffeeRepository
from src.config import Settings
from src.recommender.resolver import SimilarityResolver

# Configure module logger
logger = logging.getLogger(__name__)


@lru_cache()
def get_settings() -> Settings:
    return Settings.from_env()


@lru_cache()
def get_primary_store() -> CoffeeRepository:
    """Return the process-wide primary store, creating its schema on first use."""
    settings = get_settings()
    store = PrimaryStoreAdapter.from_url(
        settings.database_url, timeout_seconds=settings.store_timeout_seconds
    )
    store.init_schema()
    return store


@lru_cache()
def get_cache_store() -> CoffeeRepository:
    """Return the process-wide cache store, warmed from a snapshot if configured."""
    settings = get_settings()
    store = CacheStoreAdapter()
    snapshot = settings.cache_snapshot_path
    if snapshot:
        if Path(snapshot).exists():
            store.load_snapshot(snapshot)
        else:
            logger.warning(
                "Cache snapshot not found, starting with an empty cache",
                extra={"path": snapshot},
            )
    return store


def get_resolver(
    primary: CoffeeRepository = Depends(get_primary_store),
    cache: CoffeeRepository = Depends(get_cache_store),
    settings: Settings = Depends(get_settings),
) -> SimilarityResolver:
    return SimilarityResolver(
        primary=primary,
        secondary=cache,
        default_limit=settings.recommendation_limit,
    )
