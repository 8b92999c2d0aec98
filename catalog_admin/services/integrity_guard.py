from typing import Optional
import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from catalog_admin.errors import ConflictError, NotFoundError
from catalog_admin.models.order import Order
from catalog_admin.models.product import Product

logger = logging.getLogger(__name__)


class ReferentialIntegrityGuard:
    """Refuses to delete products that orders still reference

    The count query is a pre-check for a clear error message. The product row
    is locked for the rest of the transaction and the ``ON DELETE RESTRICT``
    foreign key on ``orders.product_id`` is what actually stops a delete that
    races a new order.
    """

    def __init__(self, db: Session):
        self.db = db

    def count_references(self, product_id: int) -> int:
        return self.db.query(func.count(Order.id)).filter(Order.product_id == product_id).scalar() or 0

    def lock_product(self, product_id: int) -> Product:
        """Load and lock the product row for the current transaction"""
        product = self.db.query(Product).filter(Product.id == product_id).with_for_update().first()
        if not product:
            raise NotFoundError("Product not found")
        return product

    def ensure_deletable(self, product_id: int) -> Product:
        """Raise ConflictError if any order references the product"""
        product = self.lock_product(product_id)
        order_count = self.count_references(product_id)
        if order_count:
            raise self.conflict(product_id, order_count)
        return product

    def conflict(self, product_id: int, order_count: Optional[int] = None) -> ConflictError:
        if order_count is None:
            order_count = self.count_references(product_id)
        logger.info(f"Refusing to delete product {product_id}: referenced by {order_count} order(s)")
        return ConflictError(
            f"Product is referenced by {order_count} order(s). "
            "Delete those orders or point them at another product first.",
            {"product_id": product_id, "order_count": order_count},
        )

    def delete(self, product_id: int) -> dict:
        """Check references and delete the product in the current transaction

        Commits on success, rolls back on any failure.

        Returns:
            id, name and image_url of the deleted product
        """
        try:
            product = self.ensure_deletable(product_id)
            deleted = {"id": product.id, "name": product.name, "image_url": product.image_url}
            self.db.query(Product).filter(Product.id == product_id).delete(synchronize_session=False)
            self.db.commit()
        except IntegrityError:
            # An order was created after the pre-check; the foreign key caught it
            self.db.rollback()
            raise self.conflict(product_id)
        except Exception:
            self.db.rollback()
            raise
        return deleted
