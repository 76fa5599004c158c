"""Tests for the primary and cache coffee stores.

Read operations must behave the same in both stores, so most tests run
against each of them.
"""

from concurrent.futures import ThreadPoolExecutor

import pytest

from src.catalog.cache import CacheStoreAdapter
from src.catalog.repository import CoffeeSearchFilters
from src.exceptions import (
    InsufficientStockError,
    NotFoundError,
    UnsupportedOperationError,
    ValidationError,
)

from conftest import build_coffee


@pytest.fixture(params=["primary", "cache"])
def store(request):
    """Each coffee store in turn."""
    return request.getfixturevalue(f"{request.param}_store")


def profile(acidity, body=3, sweetness=3, bitterness=3, aroma=3):
    return {
        "acidity": acidity,
        "body": body,
        "sweetness": sweetness,
        "bitterness": bitterness,
        "aroma": aroma,
    }


def test_create_and_get_by_id(store):
    coffee = build_coffee(images=["https://img/1.png"])

    created = store.create(coffee)
    fetched = store.get_by_id(coffee.id)

    assert created.id == coffee.id
    assert fetched is not None
    assert fetched.id == coffee.id
    assert fetched.name == coffee.name
    assert fetched.attributes == coffee.attributes
    assert fetched.images == ["https://img/1.png"]
    assert fetched.created_at == coffee.created_at


def test_get_by_id_missing_returns_none(store):
    assert store.get_by_id("missing") is None


def test_create_duplicate_id_fails(store):
    coffee = build_coffee()
    store.create(coffee)

    with pytest.raises(ValidationError):
        store.create(coffee)


def test_list_all(store):
    coffees = [build_coffee(name=f"Coffee {idx}") for idx in range(3)]
    for coffee in coffees:
        store.create(coffee)

    assert {coffee.id for coffee in store.list_all()} == {coffee.id for coffee in coffees}


def test_update_applies_partial_fields(store):
    coffee = store.create(build_coffee(price=10.0))

    updated = store.update(coffee.id, {"price": 12.5, "name": "Renamed"})

    assert updated.price == 12.5
    assert updated.name == "Renamed"
    stored = store.get_by_id(coffee.id)
    assert stored.price == 12.5
    assert stored.updated_at > coffee.updated_at
    assert stored.created_at == coffee.created_at


def test_update_missing_raises_not_found(store):
    with pytest.raises(NotFoundError):
        store.update("missing", {"price": 12.0})


def test_update_cannot_change_id(store):
    coffee = store.create(build_coffee())

    with pytest.raises(ValidationError):
        store.update(coffee.id, {"id": "x"})

    assert store.get_by_id(coffee.id) is not None
    assert store.get_by_id("x") is None


def test_update_invalid_value_leaves_stored_copy(store):
    coffee = store.create(build_coffee(price=10.0))

    with pytest.raises(ValidationError):
        store.update(coffee.id, {"price": -1, "name": "Renamed"})

    stored = store.get_by_id(coffee.id)
    assert stored.price == 10.0
    assert stored.name == coffee.name


def test_delete_is_idempotent(store):
    coffee = store.create(build_coffee())

    store.delete(coffee.id)
    store.delete(coffee.id)
    store.delete("never-existed")

    assert store.get_by_id(coffee.id) is None


def test_upsert_inserts_then_replaces(store):
    coffee = build_coffee()
    store.upsert(coffee)

    coffee.apply_partial_update({"name": "Second Name"})
    coffee.add_review(5)
    store.upsert(coffee)

    stored = store.get_by_id(coffee.id)
    assert stored.name == "Second Name"
    assert stored.rating == 5.0
    assert len(store.list_all()) == 1


def test_find_by_name_is_exact(store):
    coffee = store.create(build_coffee(name="Yirgacheffe"))

    assert store.find_by_name("Yirgacheffe").id == coffee.id
    assert store.find_by_name("Yirga") is None
    assert store.find_by_name("yirgacheffe") is None


def test_search_without_filters_returns_everything(store):
    for idx in range(3):
        store.create(build_coffee(name=f"Coffee {idx}"))

    assert len(store.search(CoffeeSearchFilters())) == 3


def test_search_applies_conjunction_of_filters(store):
    match = store.create(
        build_coffee(name="Match", origin="Kenya", roast_level="LIGHT", price=20.0)
    )
    store.create(
        build_coffee(name="Wrong origin", origin="Brazil", roast_level="LIGHT", price=20.0)
    )
    store.create(build_coffee(name="Wrong roast", origin="Kenya", roast_level="DARK", price=20.0))
    store.create(build_coffee(name="Too cheap", origin="Kenya", roast_level="LIGHT", price=5.0))

    results = store.search(
        CoffeeSearchFilters(origin="Kenya", roast_level="LIGHT", min_price=10.0)
    )

    assert [coffee.id for coffee in results] == [match.id]


def test_search_by_price_range_and_availability(store):
    in_stock = store.create(build_coffee(name="In stock", price=15.0, stock=3))
    store.create(build_coffee(name="Sold out", price=15.0, stock=0))
    store.create(build_coffee(name="Expensive", price=50.0, stock=3))

    results = store.search(
        CoffeeSearchFilters(min_price=10.0, max_price=20.0, is_available=True)
    )

    assert [coffee.id for coffee in results] == [in_stock.id]


def test_search_by_rating_and_seller(store):
    rated = build_coffee(name="Rated", seller_id="seller-9")
    rated.add_review(5)
    store.create(rated)
    store.create(build_coffee(name="Unrated", seller_id="seller-9"))
    other = build_coffee(name="Other seller", seller_id="seller-2")
    other.add_review(5)
    store.create(other)

    results = store.search(CoffeeSearchFilters(min_rating=4.5, seller_id="seller-9"))

    assert [coffee.id for coffee in results] == [rated.id]


def test_find_by_seller_id(store):
    mine = [
        store.create(build_coffee(name=f"Mine {idx}", seller_id="seller-7")) for idx in range(2)
    ]
    store.create(build_coffee(name="Theirs", seller_id="seller-8"))

    results = store.find_by_seller_id("seller-7")

    assert {coffee.id for coffee in results} == {coffee.id for coffee in mine}
    assert store.find_by_seller_id("nobody") == []


def test_find_top_rated_orders_by_rating(store):
    ratings = {"Three": 3, "Five": 5, "One": 1, "Four": 4}
    for name, rating in ratings.items():
        coffee = build_coffee(name=name)
        coffee.add_review(rating)
        store.create(coffee)

    results = store.find_top_rated(3)

    assert [coffee.name for coffee in results] == ["Five", "Four", "Three"]


def test_find_top_rated_default_limit(store):
    for idx in range(7):
        store.create(build_coffee(name=f"Coffee {idx}"))

    assert len(store.find_top_rated()) == 5


def test_find_similar_matches_roast_and_bean(store):
    reference = store.create(
        build_coffee(name="Reference", roast_level="MEDIUM", bean_type="ARABICA")
    )
    same = store.create(build_coffee(name="Same", roast_level="MEDIUM", bean_type="ARABICA"))
    store.create(build_coffee(name="Other roast", roast_level="DARK", bean_type="ARABICA"))
    store.create(build_coffee(name="Other bean", roast_level="MEDIUM", bean_type="ROBUSTA"))

    results = store.find_similar(reference.id)

    assert [coffee.id for coffee in results] == [same.id]


def test_find_similar_ranks_by_sensory_closeness(store):
    reference = store.create(build_coffee(name="Reference", attributes=profile(3)))
    far = store.create(build_coffee(name="Far", attributes=profile(1, 1, 1, 1, 1)))
    near = store.create(build_coffee(name="Near", attributes=profile(4)))
    middle = store.create(build_coffee(name="Middle", attributes=profile(5, 5)))

    results = store.find_similar(reference.id, 3)

    assert [coffee.id for coffee in results] == [near.id, middle.id, far.id]


def test_find_similar_respects_limit(store):
    reference = store.create(build_coffee(name="Reference"))
    for idx in range(6):
        store.create(build_coffee(name=f"Match {idx}"))

    assert len(store.find_similar(reference.id, 2)) == 2
    assert len(store.find_similar(reference.id)) == 5
    assert store.find_similar(reference.id, 0) == []


def test_find_similar_absent_reference_returns_empty(store):
    store.create(build_coffee())

    assert store.find_similar("missing", 5) == []


def test_add_review_updates_stored_average(store):
    coffee = store.create(build_coffee())

    store.add_review(coffee.id, 5)
    updated = store.add_review(coffee.id, 3)

    assert updated.rating == 4.0
    assert updated.review_count == 2
    stored = store.get_by_id(coffee.id)
    assert (stored.rating, stored.review_count) == (4.0, 2)


def test_add_review_counts_reviews_behind_a_stale_copy(store):
    """Test that a copy read before other reviews cannot drop them."""
    coffee = store.create(build_coffee())
    stale = store.get_by_id(coffee.id)

    store.add_review(coffee.id, 5)
    store.add_review(coffee.id, 1)

    stored = store.get_by_id(coffee.id)
    assert stored.review_count == 2
    assert stored.rating == 3.0
    assert stale.review_count == 0


def test_concurrent_reviews_are_all_counted(store):
    coffee = store.create(build_coffee())

    with ThreadPoolExecutor(max_workers=8) as executor:
        list(executor.map(lambda _: store.add_review(coffee.id, 4), range(20)))

    stored = store.get_by_id(coffee.id)
    assert stored.review_count == 20
    assert stored.rating == 4.0


def test_add_review_missing_raises_not_found(store):
    with pytest.raises(NotFoundError):
        store.add_review("missing", 4)


def test_add_review_out_of_range_keeps_stored_copy(store):
    coffee = store.create(build_coffee())

    with pytest.raises(ValidationError):
        store.add_review(coffee.id, 6)

    assert store.get_by_id(coffee.id).review_count == 0


def test_primary_adjust_stock(primary_store):
    coffee = primary_store.create(build_coffee(stock=5))

    updated = primary_store.adjust_stock(coffee.id, -5)

    assert updated.stock == 0
    assert updated.is_available is False
    stored = primary_store.get_by_id(coffee.id)
    assert stored.stock == 0
    assert primary_store.search(CoffeeSearchFilters(is_available=False))[0].id == coffee.id


def test_primary_adjust_stock_missing_raises_not_found(primary_store):
    with pytest.raises(NotFoundError):
        primary_store.adjust_stock("missing", 1)


def test_primary_adjust_stock_insufficient_keeps_stored_stock(primary_store):
    coffee = primary_store.create(build_coffee(stock=2))

    with pytest.raises(InsufficientStockError):
        primary_store.adjust_stock(coffee.id, -3)

    assert primary_store.get_by_id(coffee.id).stock == 2


def test_cache_always_rejects_stock_mutation(cache_store):
    coffee = cache_store.create(build_coffee(stock=5))

    with pytest.raises(UnsupportedOperationError):
        cache_store.adjust_stock(coffee.id, 1)
    with pytest.raises(UnsupportedOperationError):
        cache_store.adjust_stock("missing", 1)

    assert cache_store.get_by_id(coffee.id).stock == 5


def test_cache_reconciles_document_and_domain_ids(cache_store):
    """Test that a coffee is reachable through both ids and keeps its domain id."""
    coffee = cache_store.create(build_coffee())
    document_id = cache_store.document_id_for(coffee.id)

    assert document_id is not None
    assert document_id != coffee.id
    assert cache_store.get_by_id(document_id).id == coffee.id

    cache_store.delete(document_id)
    assert cache_store.get_by_id(coffee.id) is None


def test_cache_upsert_keeps_document_id(cache_store):
    coffee = build_coffee()
    cache_store.upsert(coffee)
    document_id = cache_store.document_id_for(coffee.id)

    coffee.set_price(30)
    cache_store.upsert(coffee)

    assert cache_store.document_id_for(coffee.id) == document_id
    assert cache_store.get_by_id(coffee.id).price == 30.0


def test_cache_snapshot_restores_documents(cache_store, tmp_path):
    coffee = build_coffee()
    coffee.add_review(4)
    cache_store.create(coffee)
    document_id = cache_store.document_id_for(coffee.id)
    snapshot = tmp_path / "snapshots" / "cache.joblib"

    assert cache_store.save_snapshot(snapshot) == 1

    restored = CacheStoreAdapter()
    assert restored.load_snapshot(snapshot) == 1
    assert restored.document_id_for(coffee.id) == document_id
    assert restored.get_by_id(coffee.id).to_dict() == coffee.to_dict()


def test_cache_load_missing_snapshot_raises(cache_store, tmp_path):
    with pytest.raises(FileNotFoundError):
        cache_store.load_snapshot(tmp_path / "missing.joblib")
