"""Tests for image storage, replacement and orphan reconciliation."""

import os

import pytest

from catalog_admin.errors import AssetIOError, ValidationError
from catalog_admin.services.asset_lifecycle import AssetLifecycleManager, UploadedImage
from catalog_admin.services.image_providers.local_provider import LocalImageProvider, is_external_url


@pytest.fixture()
def assets(image_provider):
    return AssetLifecycleManager(image_provider, max_upload_bytes=1024, orphan_min_age_seconds=3600)


def jpeg(name="photo.JPG", size=16):
    return UploadedImage(data=b"\xff\xd8" + b"0" * (size - 2), filename=name, content_type="image/jpeg")


@pytest.mark.unit
def test_generated_names_keep_field_and_extension():
    name = LocalImageProvider.generate_name("Bucket Photo.JPG", "image")
    prefix, millis, rand = name[:-len(".jpg")].split("-")
    assert name.endswith(".jpg")
    assert prefix == "image"
    assert millis.isdigit() and rand.isdigit()
    assert LocalImageProvider.generate_name("no-extension", "image").count(".") == 0


@pytest.mark.unit
def test_store_upload_writes_file_and_returns_reference(assets, upload_dir):
    image_url = assets.store_upload(jpeg())

    assert image_url.startswith("/uploads/image-")
    stored_name = image_url.rsplit("/", 1)[1]
    assert os.path.isfile(os.path.join(upload_dir, stored_name))


@pytest.mark.unit
def test_store_upload_rejects_non_images_and_oversized_files(assets, upload_dir):
    with pytest.raises(ValidationError):
        assets.store_upload(UploadedImage(b"%PDF", "doc.pdf", "application/pdf"))
    with pytest.raises(ValidationError) as exc_info:
        assets.store_upload(jpeg(size=2048))

    assert exc_info.value.details[0]["field"] == "image"
    assert os.listdir(upload_dir) == []


@pytest.mark.unit
def test_store_upload_wraps_write_failures(image_provider, monkeypatch):
    def _fail(*args, **kwargs):
        raise OSError("disk full")

    monkeypatch.setattr(image_provider, "upload_image", _fail)
    assets = AssetLifecycleManager(image_provider)

    with pytest.raises(AssetIOError):
        assets.store_upload(jpeg())


@pytest.mark.unit
def test_replace_removes_only_the_old_owned_file(assets, make_stored_file, upload_dir):
    make_stored_file("old.jpg")
    make_stored_file("new.jpg")

    released = assets.replace("/uploads/old.jpg", "/uploads/new.jpg")

    assert released == "/uploads/old.jpg"
    assert sorted(os.listdir(upload_dir)) == ["new.jpg"]


@pytest.mark.unit
def test_replace_with_same_reference_keeps_file(assets, make_stored_file, upload_dir):
    make_stored_file("same.jpg")
    assert assets.replace("/uploads/same.jpg", "/uploads/same.jpg") is None
    assert os.listdir(upload_dir) == ["same.jpg"]


@pytest.mark.unit
def test_release_never_touches_external_urls(assets, image_provider, monkeypatch):
    calls = []
    monkeypatch.setattr(image_provider, "delete_image", lambda name: calls.append(name) or True)

    assert is_external_url("https://cdn.example.com/a.jpg")
    assert assets.release("https://cdn.example.com/a.jpg") is None
    assert assets.release("//cdn.example.com/a.jpg") is None
    assert calls == []


@pytest.mark.unit
def test_release_tolerates_missing_files_and_foreign_paths(assets):
    assert assets.release("/uploads/gone.jpg") is None
    assert assets.release("/uploads/../etc/passwd") is None
    assert assets.release(None) is None


@pytest.mark.unit
def test_release_logs_delete_failures_instead_of_raising(assets, image_provider, make_stored_file, monkeypatch):
    make_stored_file("locked.jpg")

    def _fail(name):
        raise OSError("permission denied")

    monkeypatch.setattr(image_provider, "delete_image", _fail)

    assert assets.release("/uploads/locked.jpg") is None


@pytest.mark.unit
def test_reconcile_deletes_unreferenced_files(db, assets, make_product, make_stored_file, upload_dir):
    for name in ("a.jpg", "b.jpg", "c.jpg"):
        make_stored_file(name)
    make_product(image_url="/uploads/b.jpg")
    make_product(name="External", image_url="https://cdn.example.com/x.jpg")

    report = assets.reconcile_orphans(db, min_age_seconds=0)

    assert (report.scanned, report.orphaned, report.deleted) == (3, 2, 2)
    assert report.orphans == ["a.jpg", "c.jpg"]
    assert report.failed == []
    assert os.listdir(upload_dir) == ["b.jpg"]


@pytest.mark.unit
def test_reconcile_skips_recent_uploads(db, assets, make_stored_file, upload_dir):
    make_stored_file("old-orphan.jpg", age_seconds=7200)
    make_stored_file("in-flight.jpg", age_seconds=5)

    report = assets.reconcile_orphans(db)

    assert report.deleted == 1
    assert report.skipped_recent == 1
    assert os.listdir(upload_dir) == ["in-flight.jpg"]


@pytest.mark.unit
def test_reconcile_is_idempotent(db, assets, make_stored_file):
    make_stored_file("a.jpg")
    first = assets.reconcile_orphans(db, min_age_seconds=0)
    second = assets.reconcile_orphans(db, min_age_seconds=0)

    assert first.deleted == 1
    assert second.to_dict() == {
        "scanned": 0,
        "orphaned": 0,
        "deleted": 0,
        "skipped_recent": 0,
        "orphans": [],
        "failed": [],
    }


@pytest.mark.unit
def test_reconcile_does_not_count_orphans_that_vanished(db, assets, image_provider, make_stored_file, upload_dir,
                                                       monkeypatch):
    make_stored_file("a.jpg")
    make_stored_file("b.jpg")
    delete_image = image_provider.delete_image

    def _concurrent_sweep(name):
        # Another sweep removes a.jpg between the listing and our delete
        if name == "a.jpg":
            os.remove(os.path.join(upload_dir, name))
        return delete_image(name)

    monkeypatch.setattr(image_provider, "delete_image", _concurrent_sweep)

    report = assets.reconcile_orphans(db, min_age_seconds=0)

    assert report.orphaned == 2
    assert report.deleted == 1
    assert report.failed == []
    assert os.listdir(upload_dir) == []


@pytest.mark.unit
def test_referenced_names_and_find_orphans_share_one_view(db, assets, make_product, make_stored_file):
    make_stored_file("recent.jpg", age_seconds=1)
    make_stored_file("kept.jpg")
    make_product(image_url="/uploads/kept.jpg")
    make_product(name="External", image_url="https://cdn.example.com/x.jpg")

    assert assets.referenced_names(db) == {"kept.jpg"}
    assert assets.find_orphans(db) == ["recent.jpg"]
