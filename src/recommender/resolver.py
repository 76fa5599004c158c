"""Dual-store similarity resolver.

Answers recommendation queries by querying the primary store first and
supplementing or substituting its results with the cache store.

Two kinds of fallback must not be confused:
    - *No results*: when the primary store has too few matches the cache
      store fills the remaining budget. This is intended.
    - *Errors*: when either store fails, the failure surfaces as a
      :class:`RecommendationError`. The resolver never retries and never
      answers from the cache because the primary store failed.
"""

import logging
import time
from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, List, Optional, TypeVar

from src.catalog.coffee import Coffee
from src.catalog.repository import CoffeeRepository
from src.config import DEFAULT_RECOMMENDATION_LIMIT
from src.exceptions import RecommendationError, ValidationError

# Configure module logger
logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RecommendationFilters:
    """Taste preferences sent with a user recommendation request.

    Accepted and logged, but not applied to the query: how they should
    narrow recommendations is not decided yet.
    """

    flavor_profile: Optional[str] = None
    acidity: Optional[int] = None
    body: Optional[int] = None

    def active(self) -> Dict[str, Any]:
        return {key: value for key, value in asdict(self).items() if value is not None}


class SimilarityResolver:
    """Composes a primary and a secondary (cache) coffee repository.

    The resolver holds no mutable state, so one instance can serve
    concurrent requests.
    """

    def __init__(
        self,
        primary: CoffeeRepository,
        secondary: CoffeeRepository,
        default_limit: int = DEFAULT_RECOMMENDATION_LIMIT,
    ):
        """Initialize the resolver.

        Args:
            primary: Authoritative store, always queried first.
            secondary: Cache store used to fill or substitute results.
            default_limit: Result budget when a call does not give one.
        """
        if default_limit < 1:
            raise ValueError(f"default_limit must be positive, got {default_limit}")
        self.primary = primary
        self.secondary = secondary
        self.default_limit = default_limit

    def _call(
        self,
        operation: str,
        subject_id: str,
        fn: Callable[..., T],
        *args: Any,
    ) -> T:
        try:
            return fn(*args)
        except Exception as e:
            logger.error(
                "Store call failed during recommendation",
                extra={
                    "operation": operation,
                    "subject_id": subject_id,
                    "store_call": getattr(fn, "__qualname__", repr(fn)),
                    "error": str(e),
                    "error_type": type(e).__name__,
                },
            )
            raise RecommendationError(operation, subject_id, e) from e

    def recommend_for_user(
        self,
        user_id: str,
        filters: Optional[RecommendationFilters] = None,
    ) -> List[Coffee]:
        """Recommend coffees for a user.

        The user's coffees in the primary store (looked up by seller id)
        serve as the preference anchor. With an anchor, coffees similar to
        the first one are returned; without, the cache store's top-rated
        coffees are returned as they are.

        Args:
            user_id: User to recommend for.
            filters: Optional taste preferences. Currently not applied.

        Returns:
            Recommended coffees.

        Raises:
            RecommendationError: If a store call fails.
        """
        start_time = time.time()
        operation = "get recommendations"

        if filters is not None and filters.active():
            logger.info(
                "Recommendation filters received but not applied",
                extra={"user_id": user_id, "filters": str(filters.active())},
            )

        anchors = self._call(operation, user_id, self.primary.find_by_seller_id, user_id)

        if anchors:
            anchor = anchors[0]
            results = self._call(
                operation, user_id, self.primary.find_similar, anchor.id, self.default_limit
            )
            strategy = "anchor_similarity"
        else:
            results = self._call(
                operation, user_id, self.secondary.find_top_rated, self.default_limit
            )
            strategy = "cache_top_rated"

        logger.info(
            "Recommendations resolved",
            extra={
                "user_id": user_id,
                "strategy": strategy,
                "num_anchors": len(anchors),
                "num_results": len(results),
                "duration_ms": round((time.time() - start_time) * 1000, 2),
            },
        )
        return results

    def find_similar_coffees(
        self,
        coffee_id: str,
        limit: Optional[int] = None,
    ) -> List[Coffee]:
        """Find coffees similar to a reference coffee.

        Primary-store matches come first. If they fall short of ``limit``,
        cache-store matches fill the remaining slots. The two result sets are
        concatenated as they are; a coffee held by both stores can appear
        twice.

        Args:
            coffee_id: Reference coffee id.
            limit: Maximum number of results. Defaults to the resolver's
                default limit.

        Returns:
            Up to ``limit`` similar coffees.

        Raises:
            ValidationError: If ``limit`` is smaller than 1.
            RecommendationError: If a store call fails.
        """
        if limit is None:
            limit = self.default_limit
        if limit < 1:
            raise ValidationError(f"limit must be at least 1, got {limit}", field="limit")

        start_time = time.time()
        operation = "get similar coffees"

        results = list(
            self._call(operation, coffee_id, self.primary.find_similar, coffee_id, limit)
        )
        num_primary = len(results)

        if num_primary < limit:
            results.extend(
                self._call(
                    operation,
                    coffee_id,
                    self.secondary.find_similar,
                    coffee_id,
                    limit - num_primary,
                )
            )

        logger.info(
            "Similar coffees resolved",
            extra={
                "coffee_id": coffee_id,
                "limit": limit,
                "num_primary": num_primary,
                "num_secondary": len(results) - num_primary,
                "duration_ms": round((time.time() - start_time) * 1000, 2),
            },
        )
        return results
