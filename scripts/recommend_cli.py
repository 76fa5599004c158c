"""CLI script for getting coffee recommendations.

Useful for testing and evaluation. Seeds the stores from catalog CSVs (or
uses the configured database and cache snapshot) and prints
recommendations to the console.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.catalog.cache import CacheStoreAdapter
from src.catalog.coffee import Coffee
from src.catalog.loader import import_catalog, load_catalog_csv
from src.catalog.primary import PrimaryStoreAdapter
from src.config import Settings
from src.exceptions import MarketplaceError
from src.recommender.resolver import SimilarityResolver

# Setup logging
logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s: %(message)s"
)
logger = logging.getLogger(__name__)


def build_resolver(
    settings: Settings,
    primary_csv: Optional[str] = None,
    cache_csv: Optional[str] = None,
) -> SimilarityResolver:
    """Build a resolver over the configured stores.

    Args:
        settings: Service settings (database URL, cache snapshot, limit)
        primary_csv: Optional catalog CSV to upsert into the primary store
        cache_csv: Optional catalog CSV to load into the cache store

    Returns:
        Resolver over the primary and cache stores
    """
    primary = PrimaryStoreAdapter.from_url(
        settings.database_url, timeout_seconds=settings.store_timeout_seconds
    )
    primary.init_schema()
    if primary_csv:
        import_catalog(primary, load_catalog_csv(primary_csv))

    cache = CacheStoreAdapter()
    if settings.cache_snapshot_path and Path(settings.cache_snapshot_path).exists():
        cache.load_snapshot(settings.cache_snapshot_path)
    if cache_csv:
        import_catalog(cache, load_catalog_csv(cache_csv))

    return SimilarityResolver(primary, cache, default_limit=settings.recommendation_limit)


def print_coffees(title: str, coffees: List[Coffee]) -> None:
    print(f"\n{title}")
    if not coffees:
        print("  (none)")
    for coffee in coffees:
        print(
            f"  {coffee.id}  {coffee.name:<35} {coffee.roast_level.value:<12} "
            f"{coffee.bean_type.value:<8} rating={coffee.rating:.1f}"
        )


def main() -> None:
    """Main CLI function."""
    parser = argparse.ArgumentParser(
        description="Get coffee recommendations",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/recommend_cli.py user seller-3
  python scripts/recommend_cli.py similar 3f2a... --limit 3
  python scripts/recommend_cli.py similar 3f2a... --primary-csv data/fake_catalog.csv
        """
    )

    parser.add_argument(
        "mode",
        choices=["user", "similar"],
        help="'user' for user recommendations, 'similar' for similar coffees"
    )

    parser.add_argument(
        "target_id",
        help="User id (mode 'user') or reference coffee id (mode 'similar')"
    )

    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Maximum number of similar coffees (default: configured limit)"
    )

    parser.add_argument(
        "--primary-csv",
        type=str,
        default=None,
        help="Catalog CSV to load into the primary store first"
    )

    parser.add_argument(
        "--cache-csv",
        type=str,
        default=None,
        help="Catalog CSV to load into the cache store first"
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging"
    )

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.INFO)

    try:
        resolver = build_resolver(Settings.from_env(), args.primary_csv, args.cache_csv)
        if args.mode == "user":
            coffees = resolver.recommend_for_user(args.target_id)
            title = f"Recommendations for user {args.target_id}:"
        else:
            coffees = resolver.find_similar_coffees(args.target_id, args.limit)
            title = f"Coffees similar to {args.target_id}:"
    except (MarketplaceError, FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print_coffees(title, coffees)
    print()


if __name__ == "__main__":
    main()
