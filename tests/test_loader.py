"""Tests for the CSV catalog loader."""

import pandas as pd
import pytest

from src.catalog.loader import import_catalog, load_catalog_csv
from src.exceptions import ValidationError


def catalog_frame(**overrides) -> pd.DataFrame:
    row = {
        "name": "Santos",
        "description": "Nutty",
        "price": 14.0,
        "stock": 20,
        "origin": "Brazil",
        "altitude": 1100,
        "roast_level": "MEDIUM_DARK",
        "bean_type": "ARABICA",
        "processing_method": "NATURAL",
        "acidity": 2,
        "body": 4,
        "sweetness": 3,
        "bitterness": 3,
        "aroma": 4,
        "seller_id": "007",
        "harvest_date": "2024-06-01",
        "images": "https://img.example/a.jpg|https://img.example/b.jpg",
    }
    row.update(overrides)
    return pd.DataFrame([row, dict(row, name="Cerrado", images=None, altitude=None)])


@pytest.fixture
def catalog_csv(tmp_path):
    path = tmp_path / "catalog.csv"
    catalog_frame().to_csv(path, index=False)
    return path


def test_load_catalog_csv(catalog_csv):
    coffees = load_catalog_csv(catalog_csv)

    assert [coffee.name for coffee in coffees] == ["Santos", "Cerrado"]
    santos = coffees[0]
    assert santos.seller_id == "007"
    assert santos.roast_level.value == "MEDIUM_DARK"
    assert santos.attributes.to_dict() == {
        "acidity": 2,
        "body": 4,
        "sweetness": 3,
        "bitterness": 3,
        "aroma": 4,
    }
    assert santos.images == ["https://img.example/a.jpg", "https://img.example/b.jpg"]
    assert santos.harvest_date.isoformat() == "2024-06-01"
    assert santos.review_count == 0


def test_optional_columns_may_be_blank(catalog_csv):
    cerrado = load_catalog_csv(catalog_csv)[1]

    assert cerrado.images == []
    assert cerrado.altitude is None


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_catalog_csv(tmp_path / "missing.csv")


def test_missing_required_column_raises(tmp_path):
    path = tmp_path / "catalog.csv"
    catalog_frame().drop(columns=["aroma"]).to_csv(path, index=False)

    with pytest.raises(ValueError, match="aroma"):
        load_catalog_csv(path)


def test_empty_csv_raises(tmp_path):
    path = tmp_path / "catalog.csv"
    catalog_frame().iloc[0:0].to_csv(path, index=False)

    with pytest.raises(ValueError, match="empty"):
        load_catalog_csv(path)


def test_invalid_row_raises(tmp_path):
    path = tmp_path / "catalog.csv"
    catalog_frame(price=-1).to_csv(path, index=False)

    with pytest.raises(ValidationError):
        load_catalog_csv(path)


def test_import_catalog_into_both_stores(catalog_csv, primary_store, cache_store):
    coffees = load_catalog_csv(catalog_csv)

    assert import_catalog(primary_store, coffees) == 2
    assert import_catalog(cache_store, coffees) == 2

    assert {coffee.id for coffee in primary_store.list_all()} == {c.id for c in coffees}
    assert {coffee.id for coffee in cache_store.list_all()} == {c.id for c in coffees}


def test_import_catalog_twice_does_not_duplicate(catalog_csv, primary_store):
    coffees = load_catalog_csv(catalog_csv)

    import_catalog(primary_store, coffees)
    import_catalog(primary_store, coffees)

    assert len(primary_store.list_all()) == 2


def test_generated_catalog_loads(tmp_path):
    from scripts.generate_fake_catalog import generate_fake_catalog

    path = tmp_path / "fake_catalog.csv"
    generate_fake_catalog(num_coffees=20, num_sellers=3, seed=7).to_csv(path, index=False)

    coffees = load_catalog_csv(path)

    assert len(coffees) == 20
    assert {coffee.seller_id for coffee in coffees} <= {"seller-1", "seller-2", "seller-3"}


def test_generator_rejects_non_positive_sizes():
    from scripts.generate_fake_catalog import generate_fake_catalog

    with pytest.raises(ValueError):
        generate_fake_catalog(num_coffees=0)
