"""Recommendation endpoints for the coffee marketplace API.

Thin wrappers around :class:`SimilarityResolver`: parse the request, call the
resolver, serialize the coffees. Failures are rendered by the exception
handlers registered in ``src.api.exceptions``.
"""

import logging
import time
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import get_resolver
from src.api.metrics import metrics_service
from src.api.schemas import CoffeeResponse, ErrorResponse
from src.recommender.resolver import RecommendationFilters, SimilarityResolver

# Configure module logger
logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/recommendations",
    tags=["recommendations"],
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)


@router.get("/similar/{coffee_id}", response_model=List[CoffeeResponse])
def get_similar_coffees(
    coffee_id: str,
    limit: Optional[int] = Query(None, description="Maximum number of coffees"),
    resolver: SimilarityResolver = Depends(get_resolver),
) -> List[CoffeeResponse]:
    """Get coffees similar to a reference coffee.

    Primary-store matches come first; cache-store matches fill the rest of
    the budget.

    Example:
        GET /recommendations/similar/3f2a...?limit=3
    """
    start_time = time.time()
    success = False
    try:
        coffees = resolver.find_similar_coffees(coffee_id, limit)
        success = True
        return [CoffeeResponse.from_entity(coffee) for coffee in coffees]
    finally:
        metrics_service.record_call(
            "similar_coffees", (time.time() - start_time) * 1000, success
        )


@router.get("/{user_id}", response_model=List[CoffeeResponse])
def get_recommendations(
    user_id: str,
    flavor_profile: Optional[str] = Query(
        None, alias="flavorProfile", description="Preferred flavor profile"
    ),
    acidity: Optional[int] = Query(None, description="Preferred acidity (1-5)"),
    body: Optional[int] = Query(None, description="Preferred body (1-5)"),
    resolver: SimilarityResolver = Depends(get_resolver),
) -> List[CoffeeResponse]:
    """Get personalized coffee recommendations for a user.

    The taste filters are accepted but do not change the result yet.

    Example:
        GET /recommendations/user-42?flavorProfile=fruity&acidity=4
    """
    start_time = time.time()
    success = False
    filters = RecommendationFilters(
        flavor_profile=flavor_profile, acidity=acidity, body=body
    )
    try:
        coffees = resolver.recommend_for_user(user_id, filters)
        success = True
        return [CoffeeResponse.from_entity(coffee) for coffee in coffees]
    finally:
        metrics_service.record_call(
            "recommendations", (time.time() - start_time) * 1000, success
        )
