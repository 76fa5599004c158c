"""Coffee product endpoints.

CRUD over the primary store, which is the source of truth for coffees.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from src.api.dependencies import get_primary_store
from src.api.schemas import (
    CoffeeCreate,
    CoffeeResponse,
    CoffeeUpdate,
    ErrorResponse,
    ReviewCreate,
    StockAdjustment,
)
from src.catalog.coffee import BeanType, Coffee, RoastLevel
from src.catalog.repository import CoffeeRepository, CoffeeSearchFilters
from src.config import DEFAULT_RECOMMENDATION_LIMIT
from src.exceptions import NotFoundError, ValidationError

# Configure module logger
logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/products",
    tags=["products"],
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)


def _get_or_404(store: CoffeeRepository, coffee_id: str) -> Coffee:
    coffee = store.get_by_id(coffee_id)
    if coffee is None:
        raise NotFoundError(coffee_id, store=store.store_name)
    return coffee


@router.get("", response_model=List[CoffeeResponse])
def list_products(
    roast_level: Optional[RoastLevel] = None,
    bean_type: Optional[BeanType] = None,
    origin: Optional[str] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    min_rating: Optional[float] = None,
    seller_id: Optional[str] = None,
    is_available: Optional[bool] = None,
    store: CoffeeRepository = Depends(get_primary_store),
) -> List[CoffeeResponse]:
    """List coffees, narrowed by any of the given filters."""
    filters = CoffeeSearchFilters(
        roast_level=roast_level,
        bean_type=bean_type,
        origin=origin,
        min_price=min_price,
        max_price=max_price,
        min_rating=min_rating,
        seller_id=seller_id,
        is_available=is_available,
    )
    return [CoffeeResponse.from_entity(coffee) for coffee in store.search(filters)]


@router.get("/top-rated", response_model=List[CoffeeResponse])
def list_top_rated(
    limit: int = Query(DEFAULT_RECOMMENDATION_LIMIT, ge=1),
    store: CoffeeRepository = Depends(get_primary_store),
) -> List[CoffeeResponse]:
    return [CoffeeResponse.from_entity(coffee) for coffee in store.find_top_rated(limit)]


@router.get("/by-name/{name}", response_model=CoffeeResponse)
def get_product_by_name(
    name: str,
    store: CoffeeRepository = Depends(get_primary_store),
) -> CoffeeResponse:
    if not name.strip():
        raise ValidationError("name must not be blank", field="name")
    coffee = store.find_by_name(name)
    if coffee is None:
        raise NotFoundError(name, store=store.store_name)
    return CoffeeResponse.from_entity(coffee)


@router.get("/seller/{seller_id}", response_model=List[CoffeeResponse])
def list_seller_products(
    seller_id: str,
    store: CoffeeRepository = Depends(get_primary_store),
) -> List[CoffeeResponse]:
    return [
        CoffeeResponse.from_entity(coffee) for coffee in store.find_by_seller_id(seller_id)
    ]


@router.get("/{coffee_id}", response_model=CoffeeResponse)
def get_product(
    coffee_id: str,
    store: CoffeeRepository = Depends(get_primary_store),
) -> CoffeeResponse:
    return CoffeeResponse.from_entity(_get_or_404(store, coffee_id))


@router.post("", response_model=CoffeeResponse, status_code=status.HTTP_201_CREATED)
def create_product(
    payload: CoffeeCreate,
    store: CoffeeRepository = Depends(get_primary_store),
) -> CoffeeResponse:
    """Create a coffee. The id and timestamps are assigned by the server."""
    coffee = Coffee.create(**payload.model_dump())
    created = store.create(coffee)
    logger.info(
        "Product created",
        extra={"coffee_id": created.id, "seller_id": created.seller_id},
    )
    return CoffeeResponse.from_entity(created)


@router.patch("/{coffee_id}", response_model=CoffeeResponse)
def update_product(
    coffee_id: str,
    payload: CoffeeUpdate,
    store: CoffeeRepository = Depends(get_primary_store),
) -> CoffeeResponse:
    """Apply a partial update. ``id`` and ``seller_id`` cannot be changed."""
    return CoffeeResponse.from_entity(store.update(coffee_id, payload.to_fields()))


@router.delete("/{coffee_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
    coffee_id: str,
    store: CoffeeRepository = Depends(get_primary_store),
) -> Response:
    store.delete(coffee_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{coffee_id}/stock", response_model=CoffeeResponse)
def adjust_product_stock(
    coffee_id: str,
    payload: StockAdjustment,
    store: CoffeeRepository = Depends(get_primary_store),
) -> CoffeeResponse:
    return CoffeeResponse.from_entity(store.adjust_stock(coffee_id, payload.delta))


@router.post("/{coffee_id}/reviews", response_model=CoffeeResponse)
def add_product_review(
    coffee_id: str,
    payload: ReviewCreate,
    store: CoffeeRepository = Depends(get_primary_store),
) -> CoffeeResponse:
    """Fold a review rating into the coffee's running average."""
    return CoffeeResponse.from_entity(store.add_review(coffee_id, payload.rating))
