"""Generate a fake coffee catalog for testing and development.

Creates a CSV file with synthetic coffees (origins, roast levels, sensory
scores, prices and stock) in the format read by
``src.catalog.loader.load_catalog_csv``.

Example:
    Run the script directly to generate default data:
        $ python scripts/generate_fake_catalog.py

    Or import and use programmatically:
        from scripts.generate_fake_catalog import generate_fake_catalog
        df = generate_fake_catalog(num_coffees=200, num_sellers=20)
"""

import random
from datetime import date, timedelta
from pathlib import Path
from typing import Optional

import pandas as pd

# Default configuration constants
DEFAULT_NUM_COFFEES = 100
DEFAULT_NUM_SELLERS = 10
DEFAULT_HARVEST_DAYS_BACK = 365

ORIGINS = ["Colombia", "Ethiopia", "Kenya", "Brazil", "Guatemala", "Peru", "Indonesia"]
ROAST_LEVELS = ["LIGHT", "MEDIUM", "MEDIUM_DARK", "DARK"]
BEAN_TYPES = ["ARABICA", "ROBUSTA", "BLEND"]
PROCESSING_METHODS = ["WASHED", "NATURAL", "HONEY", "ANAEROBIC"]
SENSORY_FIELDS = ["acidity", "body", "sweetness", "bitterness", "aroma"]


def generate_fake_catalog(
    num_coffees: int = DEFAULT_NUM_COFFEES,
    num_sellers: int = DEFAULT_NUM_SELLERS,
    seed: Optional[int] = None,
) -> pd.DataFrame:
    """Generate a synthetic coffee catalog.

    Args:
        num_coffees: Number of coffees to generate. Must be positive.
        num_sellers: Number of distinct sellers. Must be positive.
        seed: Optional random seed for reproducible catalogs.

    Returns:
        A pandas DataFrame with one coffee per row and the columns name,
        description, price, stock, origin, altitude, roast_level, bean_type,
        processing_method, the five sensory scores, seller_id, harvest_date
        and roast_date.

    Raises:
        ValueError: If num_coffees or num_sellers is not positive.
    """
    if num_coffees <= 0 or num_sellers <= 0:
        raise ValueError("num_coffees and num_sellers must be positive")

    rng = random.Random(seed)
    today = date.today()

    coffees = []
    for idx in range(1, num_coffees + 1):
        origin = rng.choice(ORIGINS)
        roast_level = rng.choice(ROAST_LEVELS)
        harvest_date = today - timedelta(days=rng.randrange(30, DEFAULT_HARVEST_DAYS_BACK))
        roast_date = harvest_date + timedelta(days=rng.randrange(7, 30))

        coffee = {
            "name": f"{origin} {roast_level.replace('_', ' ').title()} #{idx}",
            "description": f"Single lot from {origin}",
            "price": round(rng.uniform(8.0, 40.0), 2),
            # Some coffees are sold out
            "stock": rng.choice([0, rng.randint(1, 200)]),
            "origin": origin,
            "altitude": rng.randrange(800, 2400, 50),
            "roast_level": roast_level,
            "bean_type": rng.choice(BEAN_TYPES),
            "processing_method": rng.choice(PROCESSING_METHODS),
            "seller_id": f"seller-{rng.randint(1, num_sellers)}",
            "harvest_date": harvest_date.isoformat(),
            "roast_date": roast_date.isoformat(),
        }
        for field in SENSORY_FIELDS:
            coffee[field] = rng.randint(1, 5)
        coffees.append(coffee)

    return pd.DataFrame(coffees)


def main() -> None:
    """Generate a default catalog and save it to data/fake_catalog.csv."""
    num_coffees = DEFAULT_NUM_COFFEES
    num_sellers = DEFAULT_NUM_SELLERS

    print(f"Generating {num_coffees} fake coffees from {num_sellers} sellers...")

    try:
        df = generate_fake_catalog(num_coffees=num_coffees, num_sellers=num_sellers)
    except ValueError as e:
        print(f"Error generating data: {e}")
        return

    data_dir = Path(__file__).parent.parent / "data"
    data_dir.mkdir(exist_ok=True)

    output_path = data_dir / "fake_catalog.csv"
    df.to_csv(output_path, index=False)

    print(f"\nCatalog generated successfully!")
    print(f"Saved to: {output_path}")
    print(f"\nData preview:")
    print(df[["name", "roast_level", "bean_type", "price", "stock"]].head(10))
    print(f"\nData summary:")
    print(f"  Total coffees: {len(df)}")
    print(f"  Sellers: {df['seller_id'].nunique()}")
    print(f"  Sold out: {(df['stock'] == 0).sum()}")
    print(f"  Price range: {df['price'].min()} to {df['price'].max()}")


if __name__ == "__main__":
    main()
