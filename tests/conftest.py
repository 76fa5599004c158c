"""Shared fixtures for the coffee marketplace tests."""

import sys
from pathlib import Path
from typing import Callable

import pytest

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.catalog.cache import CacheStoreAdapter
from src.catalog.coffee import Coffee
from src.catalog.primary import PrimaryStoreAdapter

DEFAULT_ATTRIBUTES = {"acidity": 3, "body": 3, "sweetness": 3, "bitterness": 3, "aroma": 3}


def build_coffee(**overrides) -> Coffee:
    """Create a valid coffee, overriding any of its fields."""
    fields = {
        "name": "Huila Supremo",
        "description": "Bright and sweet",
        "price": 18.5,
        "stock": 10,
        "origin": "Colombia",
        "altitude": 1700,
        "roast_level": "MEDIUM",
        "bean_type": "ARABICA",
        "processing_method": "WASHED",
        "attributes": dict(DEFAULT_ATTRIBUTES),
        "seller_id": "seller-1",
    }
    fields.update(overrides)
    return Coffee.create(**fields)


@pytest.fixture
def make_coffee() -> Callable[..., Coffee]:
    return build_coffee


@pytest.fixture
def primary_store() -> PrimaryStoreAdapter:
    """Primary store on a private in-memory SQLite database."""
    store = PrimaryStoreAdapter.from_url("sqlite://")
    store.init_schema()
    yield store
    store.engine.dispose()


@pytest.fixture
def cache_store() -> CacheStoreAdapter:
    return CacheStoreAdapter()
