"""Tests for the coffee record entity."""

import uuid
from datetime import date, datetime, timezone

import pytest

from src.catalog.coffee import (
    SENSORY_FIELDS,
    BeanType,
    Coffee,
    RoastLevel,
    SensoryProfile,
)
from src.exceptions import InsufficientStockError, ValidationError

from conftest import DEFAULT_ATTRIBUTES, build_coffee


def test_create_assigns_identity_and_zero_reviews():
    """Test that create mints an id and timestamps and starts without reviews."""
    coffee = build_coffee()

    assert uuid.UUID(coffee.id)
    assert coffee.created_at == coffee.updated_at
    assert coffee.created_at.tzinfo is not None
    assert coffee.rating == 0.0
    assert coffee.review_count == 0
    assert coffee.is_available is True


def test_create_mints_distinct_ids():
    assert build_coffee().id != build_coffee().id


@pytest.mark.parametrize("field", SENSORY_FIELDS)
@pytest.mark.parametrize("value", [0, 6, -1])
def test_create_rejects_sensory_score_out_of_range(field, value):
    """Test that any sensory score outside [1, 5] fails construction."""
    attributes = dict(DEFAULT_ATTRIBUTES, **{field: value})

    with pytest.raises(ValidationError):
        build_coffee(attributes=attributes)


def test_create_accepts_sensory_bounds():
    coffee = build_coffee(
        attributes={"acidity": 1, "body": 5, "sweetness": 1, "bitterness": 5, "aroma": 3}
    )

    assert all(1 <= score <= 5 for score in coffee.attributes.as_vector())


def test_create_rejects_missing_sensory_score():
    attributes = dict(DEFAULT_ATTRIBUTES)
    del attributes["aroma"]

    with pytest.raises(ValidationError):
        build_coffee(attributes=attributes)


@pytest.mark.parametrize(
    "price", [0, -1, -0.01, float("nan"), float("inf"), float("-inf")]
)
def test_create_rejects_non_positive_price(price):
    with pytest.raises(ValidationError):
        build_coffee(price=price)


@pytest.mark.parametrize("altitude", [-1, float("nan"), float("inf")])
def test_create_rejects_invalid_altitude(altitude):
    with pytest.raises(ValidationError):
        build_coffee(altitude=altitude)


def test_create_rejects_negative_stock():
    with pytest.raises(ValidationError):
        build_coffee(stock=-1)


def test_create_rejects_unknown_roast_level():
    with pytest.raises(ValidationError):
        build_coffee(roast_level="BURNT")


def test_create_coerces_enum_strings():
    coffee = build_coffee(roast_level="medium_dark", bean_type="blend")

    assert coffee.roast_level is RoastLevel.MEDIUM_DARK
    assert coffee.bean_type is BeanType.BLEND


def test_zero_stock_is_not_available():
    assert build_coffee(stock=0).is_available is False


def test_adjust_stock_updates_stock_and_availability():
    coffee = build_coffee(stock=2)

    coffee.adjust_stock(-2)
    assert coffee.stock == 0
    assert coffee.is_available is False

    coffee.adjust_stock(5)
    assert coffee.stock == 5
    assert coffee.is_available is True


@pytest.mark.parametrize("stock", [0, 1, 10])
def test_adjust_stock_never_goes_negative(stock):
    """Test that removing one more unit than in stock always fails."""
    coffee = build_coffee(stock=stock)
    updated_at = coffee.updated_at

    with pytest.raises(InsufficientStockError):
        coffee.adjust_stock(-stock - 1)

    assert coffee.stock == stock
    assert coffee.updated_at == updated_at


@pytest.mark.parametrize("new_price", [0, float("nan"), float("inf")])
def test_set_price_rejects_non_positive_price(new_price):
    coffee = build_coffee(price=12.0)

    with pytest.raises(ValidationError):
        coffee.set_price(new_price)

    assert coffee.price == 12.0


def test_set_price_advances_updated_at():
    coffee = build_coffee()
    before = coffee.updated_at

    coffee.set_price(20)

    assert coffee.price == 20.0
    assert coffee.updated_at > before
    assert coffee.created_at == before


def test_add_review_keeps_running_average():
    """Test that the average after [5, 3] is 4.0 and stays 4.0 after a 4."""
    coffee = build_coffee()

    coffee.add_review(5)
    coffee.add_review(3)
    assert coffee.rating == 4.0
    assert coffee.review_count == 2

    coffee.add_review(4)
    assert coffee.rating == 4.0
    assert coffee.review_count == 3


def test_add_review_rounds_to_one_decimal():
    coffee = build_coffee()

    for rating in (5, 4, 4):
        coffee.add_review(rating)

    # (4.5 * 2 + 4) / 3 = 4.333...
    assert coffee.rating == 4.3


@pytest.mark.parametrize("rating", [0, 6, 5.5, True])
def test_add_review_rejects_rating_out_of_range(rating):
    coffee = build_coffee()

    with pytest.raises(ValidationError):
        coffee.add_review(rating)

    assert coffee.rating == 0.0
    assert coffee.review_count == 0


@pytest.mark.parametrize("field", ["id", "seller_id"])
def test_partial_update_rejects_immutable_fields(field):
    """Test that id and seller_id cannot be changed by a partial update."""
    coffee = build_coffee()
    original_id, original_seller = coffee.id, coffee.seller_id

    with pytest.raises(ValidationError):
        coffee.apply_partial_update({field: "x", "name": "Renamed"})

    assert coffee.id == original_id
    assert coffee.seller_id == original_seller
    assert coffee.name == "Huila Supremo"


@pytest.mark.parametrize("field", ["rating", "review_count", "created_at", "is_available"])
def test_partial_update_rejects_read_only_fields(field):
    coffee = build_coffee()

    with pytest.raises(ValidationError):
        coffee.apply_partial_update({field: 1})


def test_partial_update_rejects_unknown_fields():
    coffee = build_coffee()

    with pytest.raises(ValidationError):
        coffee.apply_partial_update({"flavour": "berry"})


def test_partial_update_applies_only_given_fields():
    coffee = build_coffee()
    before = coffee.to_dict()

    coffee.apply_partial_update({"name": "Huila Reserve", "origin": "Huila"})

    after = coffee.to_dict()
    assert after["name"] == "Huila Reserve"
    assert after["origin"] == "Huila"
    for key in ("price", "stock", "attributes", "roast_level", "seller_id", "created_at"):
        assert after[key] == before[key]
    assert after["updated_at"] > before["updated_at"]


def test_partial_update_is_all_or_nothing():
    """Test that one invalid field leaves every other field unchanged."""
    coffee = build_coffee(price=15.0)

    with pytest.raises(ValidationError):
        coffee.apply_partial_update({"name": "Changed", "price": 0})

    assert coffee.name == "Huila Supremo"
    assert coffee.price == 15.0


def test_partial_update_routes_stock_through_adjustment():
    coffee = build_coffee(stock=10)

    coffee.apply_partial_update({"stock": 3})
    assert coffee.stock == 3

    coffee.apply_partial_update({"stock": 0})
    assert coffee.is_available is False

    with pytest.raises(InsufficientStockError):
        coffee.apply_partial_update({"stock": -1})
    assert coffee.stock == 0


def test_partial_update_replaces_whole_sensory_profile():
    coffee = build_coffee()
    new_attributes = {"acidity": 5, "body": 1, "sweetness": 2, "bitterness": 4, "aroma": 5}

    coffee.apply_partial_update({"attributes": new_attributes})
    assert coffee.attributes == SensoryProfile(**new_attributes)

    with pytest.raises(ValidationError):
        coffee.apply_partial_update({"attributes": {"acidity": 2}})
    assert coffee.attributes.to_dict() == new_attributes


def test_partial_update_rejects_invalid_sensory_profile():
    coffee = build_coffee()

    with pytest.raises(ValidationError):
        coffee.apply_partial_update({"attributes": dict(DEFAULT_ATTRIBUTES, body=9)})

    assert coffee.attributes.body == 3


def test_reconstruct_preserves_identity_and_reviews():
    """Test that rehydration keeps id, timestamps and review aggregate."""
    created_at = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    updated_at = datetime(2024, 2, 1, tzinfo=timezone.utc)

    coffee = Coffee.reconstruct(
        **dict(
            build_coffee().to_dict(),
            id="stored-id",
            rating=4.2,
            review_count=7,
            created_at=created_at,
            updated_at=updated_at,
        )
    )

    assert coffee.id == "stored-id"
    assert coffee.created_at == created_at
    assert coffee.updated_at == updated_at
    assert coffee.rating == 4.2
    assert coffee.review_count == 7


def test_reconstruct_still_validates():
    with pytest.raises(ValidationError):
        Coffee.reconstruct(**dict(build_coffee().to_dict(), price=-3))


def test_reconstruct_treats_naive_timestamps_as_utc():
    naive = datetime(2024, 5, 1, 12, 0)
    coffee = Coffee.reconstruct(
        **dict(build_coffee().to_dict(), created_at=naive, updated_at=naive)
    )

    assert coffee.created_at == naive.replace(tzinfo=timezone.utc)


def test_to_dict_snapshot():
    coffee = build_coffee(harvest_date=date(2024, 3, 1), images=["https://img/1.png"])

    data = coffee.to_dict()

    assert data["id"] == coffee.id
    assert data["roast_level"] == "MEDIUM"
    assert data["attributes"] == DEFAULT_ATTRIBUTES
    assert data["is_available"] is True
    assert data["harvest_date"] == date(2024, 3, 1)
    assert data["images"] == ["https://img/1.png"]

    # The snapshot is detached from the entity
    data["images"].append("https://img/2.png")
    assert coffee.images == ["https://img/1.png"]


def test_from_dict_rebuilds_the_same_record():
    coffee = build_coffee()
    coffee.add_review(5)

    rebuilt = Coffee.from_dict(coffee.to_dict())

    assert rebuilt == coffee
    assert rebuilt.to_dict() == coffee.to_dict()
