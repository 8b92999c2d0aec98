from sqlalchemy.orm import Session
from typing import List, Literal, Optional
import logging

from catalog_admin.errors import NotFoundError
from catalog_admin.models.product import Product
from catalog_admin.schemas.forms import deserialize_string_array, serialize_string_array
from catalog_admin.schemas.product import ProductCreate, ProductUpdate
from catalog_admin.services import get_image_provider
from catalog_admin.services.asset_lifecycle import AssetLifecycleManager, UploadedImage
from catalog_admin.services.image_providers.base import ImageProvider
from catalog_admin.services.integrity_guard import ReferentialIntegrityGuard
from catalog_admin.services.partial_update import compile_update, execute_update

logger = logging.getLogger(__name__)


PRODUCT_UPDATE_COLUMNS = tuple(ProductUpdate.model_fields)
PRODUCT_SERIALIZERS = {"features": serialize_string_array}

FEATURED_LIST_LIMIT = 6


class ProductService:
    """Service layer for product operations"""

    def __init__(self, db: Session, image_provider: Optional[ImageProvider] = None):
        self.db = db
        self.assets = AssetLifecycleManager(image_provider or get_image_provider())
        self.guard = ReferentialIntegrityGuard(db)

    def product_to_dict(self, product: Product) -> dict:
        """Convert Product model to a response dict with features decoded"""
        return {
            "id": product.id,
            "name": product.name,
            "description": product.description,
            "price": product.price,
            "original_price": product.original_price,
            "category": product.category,
            "image_url": product.image_url,
            "features": deserialize_string_array(product.features),
            "rating": product.rating,
            "reviews_count": product.reviews_count,
            "is_featured": product.is_featured,
            "is_active": product.is_active,
            "created_at": product.created_at,
            "updated_at": product.updated_at,
        }

    def _get_or_404(self, product_id: int) -> Product:
        product = self.db.query(Product).filter(Product.id == product_id).first()
        if not product:
            raise NotFoundError("Product not found")
        return product

    def create_product(self, product_data: ProductCreate, image: Optional[UploadedImage] = None) -> Product:
        """Create a product, storing its uploaded image first

        An image that fails to store aborts the create. If the insert fails
        after the image was stored, the file is left for orphan reconciliation.
        """
        values = {name: value for name, value in product_data.supplied().items() if value != ""}

        image_url = None
        if image is not None:
            image_url = self.assets.store_upload(image)
            values["image_url"] = image_url

        values["features"] = serialize_string_array(values.get("features", []))
        product = Product(**values)

        try:
            self.db.add(product)
            self.db.commit()
            self.db.refresh(product)
        except Exception:
            self.db.rollback()
            self.assets.abandon_upload(image_url)
            raise

        logger.info(f"Created product {product.id} ({product.name}), image={product.image_url}")
        return product

    def update_product(self, product_id: int, product_data: ProductUpdate,
                       image: Optional[UploadedImage] = None) -> dict:
        """Apply a partial update, swapping the image file if a new one came along

        Returns:
            dict with the updated field names, the current image_url and the
            image reference that was released (if any)
        """
        patch = product_data.supplied()
        current = self._get_or_404(product_id)
        old_image_url = current.image_url

        new_image_url = None
        if image is not None:
            new_image_url = self.assets.store_upload(image)
            patch["image_url"] = new_image_url

        try:
            compiled = compile_update(current, patch, PRODUCT_UPDATE_COLUMNS, PRODUCT_SERIALIZERS)
            affected = execute_update(self.db, Product, product_id, compiled)
            if affected == 0:
                # Deleted between the read and the write
                raise NotFoundError("Product not found")
            self.db.commit()
        except Exception:
            self.db.rollback()
            self.assets.abandon_upload(new_image_url)
            raise

        image_url = compiled.assignments.get("image_url", old_image_url)
        released = None
        if "image_url" in compiled.assignments:
            released = self.assets.replace(old_image_url, image_url)

        logger.info(f"Updated product {product_id}: {compiled.applied_fields}")
        return {
            "id": product_id,
            "updated_fields": compiled.applied_fields,
            "image_url": image_url,
            "replaced_image": released,
        }

    def delete_product(self, product_id: int) -> dict:
        """Permanently delete a product that no order references

        The owned local image is deleted after the row is gone.
        """
        deleted = self.guard.delete(product_id)
        deleted_image = self.assets.release(deleted["image_url"])
        logger.info(f"Deleted product {product_id} ({deleted['name']}), image={deleted_image}")
        return {"id": product_id, "deleted_image": deleted_image}

    def toggle_flag(self, product_id: int, flag: Literal["is_featured", "is_active"]) -> bool:
        """Flip ``is_featured`` or ``is_active``. Returns the new value."""
        current = self._get_or_404(product_id)
        new_value = not getattr(current, flag)
        compiled = compile_update(current, {flag: new_value}, (flag,))
        try:
            if execute_update(self.db, Product, product_id, compiled) == 0:
                raise NotFoundError("Product not found")
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"Product {product_id} {flag} -> {new_value}")
        return new_value

    def get_product(self, product_id: int, include_inactive: bool = False) -> Product:
        query = self.db.query(Product).filter(Product.id == product_id)
        if not include_inactive:
            query = query.filter(Product.is_active.is_(True))
        product = query.first()
        if not product:
            raise NotFoundError("Product not found or inactive")
        return product

    def list_products(
        self,
        category: Optional[str] = None,
        featured: Optional[bool] = None,
        status: Optional[str] = "active",
        limit: int = 50,
        offset: int = 0
    ) -> List[Product]:
        """List products, newest first

        ``status`` is "active", "inactive" or None for both.
        """
        query = self.db.query(Product)
        if status == "active":
            query = query.filter(Product.is_active.is_(True))
        elif status == "inactive":
            query = query.filter(Product.is_active.is_(False))
        if category:
            query = query.filter(Product.category == category)
        if featured:
            query = query.filter(Product.is_featured.is_(True))
        return query.order_by(Product.created_at.desc(), Product.id.desc()).offset(offset).limit(limit).all()

    def list_featured(self) -> List[Product]:
        return self.list_products(featured=True, limit=FEATURED_LIST_LIMIT)

    def reconcile_assets(self, min_age_seconds: Optional[int] = None) -> dict:
        return self.assets.reconcile_orphans(self.db, min_age_seconds=min_age_seconds).to_dict()
