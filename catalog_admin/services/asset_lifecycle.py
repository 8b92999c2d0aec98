"""
Lifecycle of the image file owned by a product.

A product's ``image_url`` points at exactly one live file in the asset store,
or at nothing (or at an external URL, which this service never touches).
Files are written before the row that references them and removed only after
the row stopped referencing them, so a crash in between can leave an orphaned
file but never a reference to a missing one. Orphans are collected by
``reconcile_orphans``.
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Set
import logging

from sqlalchemy.orm import Session

from catalog_admin.config import settings
from catalog_admin.errors import AssetIOError, ValidationError
from catalog_admin.models.product import Product
from catalog_admin.services.image_providers.base import ImageProvider
from catalog_admin.services.image_providers.local_provider import is_external_url

logger = logging.getLogger(__name__)


@dataclass
class UploadedImage:
    """An image file received with a mutation request"""
    data: bytes
    filename: str
    content_type: Optional[str] = None
    field_name: str = "image"


@dataclass
class ReconcileReport:
    scanned: int = 0
    orphaned: int = 0
    deleted: int = 0
    skipped_recent: int = 0
    orphans: List[str] = field(default_factory=list)
    failed: List[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "scanned": self.scanned,
            "orphaned": self.orphaned,
            "deleted": self.deleted,
            "skipped_recent": self.skipped_recent,
            "orphans": self.orphans,
            "failed": self.failed,
        }


class AssetLifecycleManager:
    """Keeps product image references and stored files consistent"""

    def __init__(
        self,
        image_provider: ImageProvider,
        max_upload_bytes: Optional[int] = None,
        orphan_min_age_seconds: Optional[int] = None,
    ):
        self.image_provider = image_provider
        self.max_upload_bytes = max_upload_bytes or settings.max_upload_bytes
        if orphan_min_age_seconds is None:
            orphan_min_age_seconds = settings.orphan_min_age_seconds
        self.orphan_min_age_seconds = orphan_min_age_seconds

    def validate_upload(self, upload: UploadedImage) -> None:
        if not upload.content_type or not upload.content_type.startswith("image/"):
            raise ValidationError.for_field(
                upload.field_name, upload.filename, "image file",
                "Only image files are allowed"
            )
        if len(upload.data) > self.max_upload_bytes:
            limit_mb = self.max_upload_bytes / (1024 * 1024)
            raise ValidationError.for_field(
                upload.field_name, upload.filename, f"image file up to {limit_mb:g} MB",
                f"File is too large (maximum {limit_mb:g} MB)"
            )

    def store_upload(self, upload: UploadedImage) -> str:
        """Validate and write an upload. Returns the reference to put on the record.

        Raises:
            ValidationError: not an image, or too large
            AssetIOError: the file could not be written
        """
        self.validate_upload(upload)
        try:
            image_name = self.image_provider.upload_image(upload.data, upload.filename, upload.field_name)
        except OSError as e:
            logger.error(f"Failed to store uploaded image {upload.filename!r}: {e}", exc_info=True)
            raise AssetIOError("Failed to store uploaded image")
        return self.image_provider.get_image_url(image_name)

    def abandon_upload(self, image_url: Optional[str]) -> None:
        """A stored upload whose record write failed stays behind as an orphan"""
        if image_url:
            logger.warning(f"Upload {image_url} is not referenced by any product, left for orphan reconciliation")

    def release(self, image_url: Optional[str]) -> Optional[str]:
        """Delete the stored file behind ``image_url``.

        External URLs and empty references are ignored. Failures are logged,
        never raised: the record change that made the file obsolete stands.

        Returns:
            ``image_url`` if a file was removed, otherwise None
        """
        if not image_url:
            return None
        if is_external_url(image_url):
            logger.info(f"Image {image_url} is external, not deleting")
            return None

        image_name = self.image_provider.image_name_from_url(image_url)
        if image_name is None:
            logger.warning(f"Image reference {image_url!r} is not owned by the asset store, not deleting")
            return None

        try:
            removed = self.image_provider.delete_image(image_name)
        except (OSError, ValueError) as e:
            error = AssetIOError(f"Failed to delete image {image_name}: {e}")
            logger.error(error.message, exc_info=True)
            return None

        if not removed:
            logger.warning(f"Image {image_name} was already missing from the asset store")
            return None
        return image_url

    def replace(self, old_image_url: Optional[str], new_image_url: Optional[str]) -> Optional[str]:
        """Release the previous image once a record points at a different one"""
        if not old_image_url or old_image_url == new_image_url:
            return None
        return self.release(old_image_url)

    def referenced_names(self, db: Session) -> Set[str]:
        """Names of stored files that some product points at"""
        referenced = set()
        for (image_url,) in db.query(Product.image_url).filter(Product.image_url.isnot(None)):
            image_name = self.image_provider.image_name_from_url(image_url)
            if image_name:
                referenced.add(image_name)
        return referenced

    def find_orphans(self, db: Session) -> List[str]:
        """Names of stored files that no product points at, regardless of age"""
        referenced = self.referenced_names(db)
        return [image.name for image in self.image_provider.list_images() if image.name not in referenced]

    def reconcile_orphans(self, db: Session, min_age_seconds: Optional[int] = None,
                          now: Optional[datetime] = None) -> ReconcileReport:
        """Delete stored files that no product references

        Files newer than ``min_age_seconds`` are skipped: they may belong to an
        upload whose record write has not committed yet. Safe to run repeatedly.
        """
        if min_age_seconds is None:
            min_age_seconds = self.orphan_min_age_seconds
        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(seconds=min_age_seconds)

        stored = self.image_provider.list_images()
        referenced = self.referenced_names(db)

        report = ReconcileReport(scanned=len(stored))
        for image in stored:
            if image.name in referenced:
                continue
            if image.modified_at > cutoff:
                report.skipped_recent += 1
                continue
            report.orphaned += 1
            report.orphans.append(image.name)
            try:
                removed = self.image_provider.delete_image(image.name)
            except (OSError, ValueError) as e:
                logger.error(f"Failed to delete orphaned image {image.name}: {e}", exc_info=True)
                report.failed.append({"name": image.name, "error": str(e)})
                continue
            if removed:
                report.deleted += 1
            else:
                # A concurrent sweep got there first
                logger.info(f"Orphaned image {image.name} was already gone")

        logger.info(
            f"Orphan reconciliation: scanned={report.scanned} orphaned={report.orphaned} "
            f"deleted={report.deleted} skipped_recent={report.skipped_recent} failed={len(report.failed)}"
        )
        return report
