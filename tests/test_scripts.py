"""Tests for the reconcile CLI and the catalog seeder."""

import json
import logging
import os
from contextlib import contextmanager

import pytest

from catalog_admin import reconcile
from catalog_admin.models import Product
from scripts.seed_catalog import SAMPLE_PRODUCTS, load_json, map_category, seed_products


@pytest.fixture()
def reconcile_env(monkeypatch, session_factory, image_provider):
    @contextmanager
    def _session_scope():
        session = session_factory()
        try:
            yield session
            session.commit()
        finally:
            session.close()

    monkeypatch.setattr(reconcile, "session_scope", _session_scope)
    monkeypatch.setattr(reconcile, "get_image_provider", lambda: image_provider)


@pytest.mark.unit
def test_reconcile_cli_dry_run_deletes_nothing(reconcile_env, make_product, make_stored_file, upload_dir):
    make_stored_file("a.jpg")
    make_stored_file("b.jpg")
    make_product(image_url="/uploads/b.jpg")

    assert reconcile.main(["--dry-run"]) == 0
    assert sorted(os.listdir(upload_dir)) == ["a.jpg", "b.jpg"]


@pytest.mark.unit
def test_reconcile_cli_respects_min_age(reconcile_env, make_stored_file, upload_dir):
    make_stored_file("old.jpg", age_seconds=600)
    make_stored_file("fresh.jpg", age_seconds=10)

    assert reconcile.main(["--min-age-seconds", "300"]) == 0
    assert os.listdir(upload_dir) == ["fresh.jpg"]


@pytest.mark.unit
def test_reconcile_cli_dry_run_lists_recent_orphans_too(reconcile_env, make_product, make_stored_file, upload_dir,
                                                       caplog):
    make_stored_file("recent.jpg", age_seconds=1)
    make_stored_file("kept.jpg")
    make_product(image_url="/uploads/kept.jpg")

    with caplog.at_level(logging.INFO, logger="catalog_admin.reconcile"):
        assert reconcile.main(["--dry-run"]) == 0

    assert "orphan: recent.jpg" in caplog.text
    assert "orphan: kept.jpg" not in caplog.text
    assert sorted(os.listdir(upload_dir)) == ["kept.jpg", "recent.jpg"]


@pytest.mark.unit
def test_map_category_handles_legacy_names():
    assert map_category("wisuda") == "bucket"
    assert map_category("Dekorasi Pernikahan") == "pernikahan"
    assert map_category("BALON") == "balon"
    assert map_category("unknown") == "unknown"


@pytest.mark.unit
def test_seed_sample_catalog(db):
    counts = seed_products(db, SAMPLE_PRODUCTS)

    assert counts == {"created": 6, "skipped": 0, "failed": 0}
    categories = {category for (category,) in db.query(Product.category)}
    assert categories == {"bucket", "balon", "pernikahan"}
    featured = db.query(Product).filter(Product.is_featured.is_(True)).count()
    assert featured == 3

    again = seed_products(db, SAMPLE_PRODUCTS, skip_existing=True)
    assert again == {"created": 0, "skipped": 6, "failed": 0}


@pytest.mark.unit
def test_seed_continues_past_invalid_products(db, tmp_path):
    path = tmp_path / "products.json"
    path.write_text(json.dumps({"products": [
        {"name": "Valid", "price": 1000, "category": "balon"},
        {"name": "No price", "category": "balon"},
    ]}))

    counts = seed_products(db, load_json(str(path)))

    assert counts == {"created": 1, "skipped": 0, "failed": 1}


@pytest.mark.unit
def test_seed_uploads_images_instead_of_storing_local_paths(db, tmp_path, image_provider, upload_dir):
    images_dir = tmp_path / "seed-images"
    images_dir.mkdir()
    (images_dir / "bucket-premium.jpg").write_bytes(b"\xff\xd8\xff\xe0" + b"0" * 32)
    products = [
        {"name": "Bucket Wisuda Premium", "price": 150000, "category": "wisuda",
         "image_file": "bucket-premium.jpg"},
        {"name": "Legacy Export", "price": 99000, "category": "bucket",
         "image_url": "/uploads/not-shipped.jpg"},
        {"name": "External", "price": 85000, "category": "bucket",
         "image_url": "https://cdn.example.com/classic.jpg"},
    ]

    counts = seed_products(db, products, images_dir=str(images_dir), image_provider=image_provider)

    assert counts == {"created": 3, "skipped": 0, "failed": 0}
    images = dict(db.query(Product.name, Product.image_url))
    stored = os.listdir(upload_dir)
    assert len(stored) == 1
    assert images["Bucket Wisuda Premium"] == f"/uploads/{stored[0]}"
    assert images["Legacy Export"] is None
    assert images["External"] == "https://cdn.example.com/classic.jpg"
