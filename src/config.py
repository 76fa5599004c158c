"""Runtime configuration for the coffee marketplace service.

Settings are read from environment variables prefixed with ``COFFEE_`` and
fall back to the module-level defaults below.
"""

import os
from dataclasses import dataclass
from typing import Optional

# Single result budget shared by top-rated, similarity and recommendation calls
DEFAULT_RECOMMENDATION_LIMIT = 5

DEFAULT_DATABASE_URL = "sqlite:///./coffee_marketplace.db"
DEFAULT_STORE_TIMEOUT_SECONDS = 5.0
DEFAULT_LOG_LEVEL = "INFO"


@dataclass
class Settings:
    """Service configuration.

    Attributes:
        database_url: SQLAlchemy URL of the primary relational store.
        cache_snapshot_path: Optional joblib snapshot used to warm the cache
            store on startup.
        recommendation_limit: Default number of coffees returned by the
            recommendation endpoints.
        store_timeout_seconds: Per-call timeout applied by the store adapters.
        log_level: Root logging level.
    """

    database_url: str = DEFAULT_DATABASE_URL
    cache_snapshot_path: Optional[str] = None
    recommendation_limit: int = DEFAULT_RECOMMENDATION_LIMIT
    store_timeout_seconds: float = DEFAULT_STORE_TIMEOUT_SECONDS
    log_level: str = DEFAULT_LOG_LEVEL

    def __post_init__(self) -> None:
        if self.recommendation_limit < 1:
            raise ValueError(
                f"recommendation_limit must be positive, got {self.recommendation_limit}"
            )
        if self.store_timeout_seconds <= 0:
            raise ValueError(
                f"store_timeout_seconds must be positive, got {self.store_timeout_seconds}"
            )

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from ``COFFEE_*`` environment variables."""
        return cls(
            database_url=os.environ.get("COFFEE_DATABASE_URL", DEFAULT_DATABASE_URL),
            cache_snapshot_path=os.environ.get("COFFEE_CACHE_SNAPSHOT") or None,
            recommendation_limit=int(
                os.environ.get(
                    "COFFEE_RECOMMENDATION_LIMIT", DEFAULT_RECOMMENDATION_LIMIT
                )
            ),
            store_timeout_seconds=float(
                os.environ.get("COFFEE_STORE_TIMEOUT", DEFAULT_STORE_TIMEOUT_SECONDS)
            ),
            log_level=os.environ.get("COFFEE_LOG_LEVEL", DEFAULT_LOG_LEVEL),
        )
