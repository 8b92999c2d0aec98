from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from catalog_admin.config import settings
from catalog_admin.errors import ConflictError, InvalidTransitionError, NotFoundError, ValidationError
from catalog_admin.models.order import Order
from catalog_admin.models.product import Product
from catalog_admin.schemas.order import OrderCreate, OrderQuote, OrderStatusUpdate, OrderUpdate
from catalog_admin.services.partial_update import compile_update, execute_update

logger = logging.getLogger(__name__)

ORDER_UPDATE_COLUMNS = tuple(OrderUpdate.model_fields)
ORDER_STATUS_COLUMNS = tuple(OrderStatusUpdate.model_fields)

# Allowed next states; completed and cancelled are terminal
STATUS_TRANSITIONS = {
    "pending": {"confirmed", "cancelled"},
    "confirmed": {"processing", "cancelled"},
    "processing": {"completed", "cancelled"},
    "completed": set(),
    "cancelled": set(),
}


class OrderService:
    """Service layer for order operations"""

    def __init__(self, db: Session):
        self.db = db

    def order_to_dict(self, order: Order, product_name: Optional[str] = None,
                      product_price: Optional[int] = None, product_image: Optional[str] = None) -> dict:
        return {
            "id": order.id,
            "order_number": order.order_number,
            "customer_name": order.customer_name,
            "customer_phone": order.customer_phone,
            "customer_email": order.customer_email,
            "customer_address": order.customer_address,
            "order_type": order.order_type,
            "product_id": order.product_id,
            "custom_description": order.custom_description,
            "quantity": order.quantity,
            "total_price": order.total_price,
            "status": order.status,
            "notes": order.notes,
            "product_name": product_name,
            "product_price": product_price,
            "product_image": product_image,
            "created_at": order.created_at,
            "updated_at": order.updated_at,
        }

    def _active_product(self, product_id: int) -> Product:
        product = self.db.query(Product).filter(
            Product.id == product_id,
            Product.is_active.is_(True)
        ).first()
        if not product:
            raise NotFoundError("Product not found or inactive")
        return product

    def _get_or_404(self, order_id: int) -> Order:
        order = self.db.query(Order).filter(Order.id == order_id).first()
        if not order:
            raise NotFoundError("Order not found")
        return order

    def create_order(self, order_data: OrderCreate) -> Order:
        """Create an order; standard orders are priced from the active product"""
        values = {name: value for name, value in order_data.supplied().items() if value != ""}
        values.setdefault("quantity", 1)

        if values["order_type"] == "standard":
            if "product_id" not in values:
                raise ValidationError.for_field(
                    "product_id", None, "integer >= 1", "product_id is required for standard orders"
                )
            product = self._active_product(values["product_id"])
            values["total_price"] = product.price * values["quantity"]
        else:
            if not values.get("custom_description", "").strip():
                raise ValidationError.for_field(
                    "custom_description", values.get("custom_description"), "string",
                    "custom_description is required for custom orders"
                )
            # Custom orders are priced after a design consultation
            values.pop("product_id", None)
            values["total_price"] = 0

        order = Order(**values)
        try:
            self.db.add(order)
            self.db.commit()
        except IntegrityError:
            # The product disappeared after the price lookup
            self.db.rollback()
            raise NotFoundError("Product not found or inactive")
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(order)

        logger.info(f"Created {order.order_type} order {order.order_number} total={order.total_price}")
        return order

    def quote(self, quote_data: OrderQuote) -> dict:
        """Price an order without creating it"""
        values = {name: value for name, value in quote_data.supplied().items() if value != ""}
        quantity = values.get("quantity", 1)

        if values["order_type"] == "standard" and "product_id" in values:
            product = self._active_product(values["product_id"])
            savings = 0
            if product.original_price:
                savings = max(product.original_price - product.price, 0) * quantity
            return {
                "product_name": product.name,
                "unit_price": product.price,
                "quantity": quantity,
                "total_price": product.price * quantity,
                "savings": savings,
                "currency": settings.currency,
            }

        if values["order_type"] == "custom":
            return {
                "order_type": "custom",
                "description": values.get("custom_description"),
                "quantity": quantity,
                "estimated_price": settings.custom_order_base_price * quantity,
                "note": "Final price is confirmed after the design consultation",
                "currency": settings.currency,
            }

        raise ValidationError.for_field(
            "product_id", None, "integer >= 1", "product_id is required to quote a standard order"
        )

    def update_status(self, order_id: int, status_data: OrderStatusUpdate) -> Order:
        """Move an order to a new status along the transition table"""
        values = status_data.supplied()
        order = self._get_or_404(order_id)
        current_status = order.status
        requested = values["status"]

        allowed = STATUS_TRANSITIONS[current_status]
        if requested not in allowed:
            raise InvalidTransitionError(current_status, requested, allowed)

        compiled = compile_update(order, values, ORDER_STATUS_COLUMNS)
        try:
            # Only apply if nobody moved the order since it was read
            affected = execute_update(self.db, Order, order_id, compiled, Order.status == current_status)
            if affected == 0:
                raise ConflictError(
                    "Order status changed concurrently, reload and retry",
                    {"expected_status": current_status},
                )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(order)
        logger.info(f"Order {order.order_number} status {current_status} -> {order.status}")
        return order

    def update_order(self, order_id: int, order_data: OrderUpdate) -> List[str]:
        """Partial update of customer details, quantity, total or notes"""
        patch = order_data.supplied()
        order = self._get_or_404(order_id)

        compiled = compile_update(order, patch, ORDER_UPDATE_COLUMNS)
        try:
            if execute_update(self.db, Order, order_id, compiled) == 0:
                raise NotFoundError("Order not found")
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Updated order {order_id}: {compiled.applied_fields}")
        return compiled.applied_fields

    def delete_order(self, order_id: int) -> None:
        try:
            deleted = self.db.query(Order).filter(Order.id == order_id).delete(synchronize_session=False)
            if deleted == 0:
                raise NotFoundError("Order not found")
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"Deleted order {order_id}")

    def _with_product(self):
        return self.db.query(Order, Product.name, Product.price, Product.image_url).outerjoin(
            Product, Order.product_id == Product.id
        )

    def get_order(self, order_id: int) -> dict:
        row = self._with_product().filter(Order.id == order_id).first()
        if not row:
            raise NotFoundError("Order not found")
        order, name, price, image_url = row
        return self.order_to_dict(order, name, price, image_url)

    def list_orders(
        self,
        status: Optional[str] = None,
        order_type: Optional[str] = None,
        limit: int = 50,
        offset: int = 0
    ) -> List[dict]:
        query = self._with_product()
        if status:
            query = query.filter(Order.status == status)
        if order_type:
            query = query.filter(Order.order_type == order_type)
        rows = query.order_by(Order.created_at.desc(), Order.id.desc()).offset(offset).limit(limit).all()
        return [self.order_to_dict(order, name, price, image_url) for order, name, price, image_url in rows]
