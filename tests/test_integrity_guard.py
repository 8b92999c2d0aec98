"""Tests for guarded product deletes."""

import os

import pytest

from catalog_admin.errors import ConflictError, NotFoundError
from catalog_admin.models import Order, Product
from catalog_admin.services.integrity_guard import ReferentialIntegrityGuard
from catalog_admin.services.product_service import ProductService


@pytest.mark.unit
def test_delete_refused_while_orders_reference_product(db, make_product, make_order):
    product = make_product()
    make_order(product.id)
    make_order(product.id, status="completed")

    with pytest.raises(ConflictError) as exc_info:
        ReferentialIntegrityGuard(db).delete(product.id)

    error = exc_info.value
    assert error.status_code == 409
    assert error.details == {"product_id": product.id, "order_count": 2}
    assert "2 order(s)" in error.message
    assert db.get(Product, product.id) is not None


@pytest.mark.unit
def test_delete_unreferenced_product(db, make_product, make_order):
    product_id = make_product(name="Paket Dekorasi Balon", category="balon").id
    make_order()  # custom order, no product

    deleted = ReferentialIntegrityGuard(db).delete(product_id)

    assert deleted == {"id": product_id, "name": "Paket Dekorasi Balon", "image_url": None}
    assert db.query(Product).count() == 0
    assert db.query(Order).count() == 1


@pytest.mark.unit
def test_delete_missing_product(db):
    with pytest.raises(NotFoundError):
        ReferentialIntegrityGuard(db).delete(404)


@pytest.mark.unit
def test_foreign_key_catches_orders_the_pre_check_missed(db, make_product, make_order, monkeypatch):
    product = make_product()
    make_order(product.id)
    guard = ReferentialIntegrityGuard(db)

    # Simulate an order committed between the count and the delete
    counts = iter([0, 1])
    monkeypatch.setattr(guard, "count_references", lambda product_id: next(counts))

    with pytest.raises(ConflictError) as exc_info:
        guard.delete(product.id)

    assert exc_info.value.details["order_count"] == 1
    assert db.query(Product).count() == 1


@pytest.mark.unit
def test_service_delete_removes_owned_image(db, image_provider, make_product, make_stored_file, upload_dir):
    make_stored_file("bucket.jpg")
    product_id = make_product(image_url="/uploads/bucket.jpg").id

    result = ProductService(db, image_provider).delete_product(product_id)

    assert result == {"id": product_id, "deleted_image": "/uploads/bucket.jpg"}
    assert os.listdir(upload_dir) == []


@pytest.mark.unit
def test_service_delete_leaves_external_image(db, image_provider, make_product, monkeypatch):
    product_id = make_product(image_url="https://cdn.example.com/bucket.jpg").id
    calls = []
    monkeypatch.setattr(image_provider, "delete_image", lambda name: calls.append(name) or True)

    result = ProductService(db, image_provider).delete_product(product_id)

    assert result["deleted_image"] is None
    assert calls == []


@pytest.mark.unit
def test_service_delete_conflict_keeps_image(db, image_provider, make_product, make_order,
                                             make_stored_file, upload_dir):
    make_stored_file("keep.jpg")
    product = make_product(image_url="/uploads/keep.jpg")
    make_order(product.id)

    with pytest.raises(ConflictError):
        ProductService(db, image_provider).delete_product(product.id)

    assert os.listdir(upload_dir) == ["keep.jpg"]
