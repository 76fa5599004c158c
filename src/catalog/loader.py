"""Catalog import from CSV files.

Reads a coffee catalog exported as CSV (one coffee per row) and loads it
into any coffee repository. Used to seed the primary store and to warm the
cache store.
"""

import logging
from pathlib import Path
from typing import Any, List, Optional, Union

import pandas as pd

from src.catalog.coffee import SENSORY_FIELDS, Coffee
from src.catalog.repository import CoffeeRepository

# Configure module logger
logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = {
    "name",
    "price",
    "stock",
    "origin",
    "roast_level",
    "bean_type",
    "processing_method",
    "seller_id",
    *SENSORY_FIELDS,
}
OPTIONAL_COLUMNS = ("description", "altitude", "harvest_date", "roast_date", "images")

# Separator for multiple image URLs in one CSV cell
IMAGE_SEPARATOR = "|"


def _optional(value: Any) -> Optional[Any]:
    return None if pd.isna(value) else value


def _row_to_coffee(row: pd.Series) -> Coffee:
    altitude = _optional(row.get("altitude"))
    images = _optional(row.get("images"))
    return Coffee.create(
        name=str(row["name"]),
        description=str(_optional(row.get("description")) or ""),
        price=float(row["price"]),
        stock=int(row["stock"]),
        origin=str(row["origin"]),
        altitude=float(altitude) if altitude is not None else None,
        roast_level=str(row["roast_level"]),
        bean_type=str(row["bean_type"]),
        processing_method=str(row["processing_method"]),
        attributes={field: int(row[field]) for field in SENSORY_FIELDS},
        seller_id=str(row["seller_id"]),
        harvest_date=_optional(row.get("harvest_date")),
        roast_date=_optional(row.get("roast_date")),
        images=[url for url in str(images).split(IMAGE_SEPARATOR) if url] if images else [],
    )


def load_catalog_csv(csv_path: Union[str, Path]) -> List[Coffee]:
    """Read a coffee catalog CSV into new coffee records.

    Every row becomes a freshly created coffee (new id, no reviews).

    Args:
        csv_path: Path to a CSV file with at least the columns in
            ``REQUIRED_COLUMNS``. ``description``, ``altitude``,
            ``harvest_date``, ``roast_date`` and ``images`` are optional.

    Returns:
        List of coffees in file order.

    Raises:
        FileNotFoundError: If the CSV file does not exist.
        ValueError: If the CSV is empty or misses required columns.
        ValidationError: If a row violates a coffee invariant.

    Example:
        >>> coffees = load_catalog_csv("data/fake_catalog.csv")
        >>> print(f"Loaded {len(coffees)} coffees")
    """
    csv_file = Path(csv_path)
    if not csv_file.exists():
        raise FileNotFoundError(f"CSV file not found: {csv_path}")

    logger.info(f"Loading catalog from {csv_path}")
    df = pd.read_csv(csv_file, dtype={"seller_id": str})

    if not REQUIRED_COLUMNS.issubset(df.columns):
        missing = REQUIRED_COLUMNS - set(df.columns)
        raise ValueError(f"CSV missing required columns: {sorted(missing)}")

    if df.empty:
        raise ValueError("Cannot load catalog from empty CSV")

    coffees = [_row_to_coffee(row) for _, row in df.iterrows()]
    logger.info(f"Loaded {len(coffees)} coffees from {csv_path}")
    return coffees


def import_catalog(repository: CoffeeRepository, coffees: List[Coffee]) -> int:
    """Upsert coffees into a repository.

    Returns:
        Number of coffees written.
    """
    for coffee in coffees:
        repository.upsert(coffee)
    logger.info(
        "Imported catalog",
        extra={"store": repository.store_name, "num_coffees": len(coffees)},
    )
    return len(coffees)
