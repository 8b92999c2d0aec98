from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, CheckConstraint, Index
from sqlalchemy.sql import func
from catalog_admin.db.database import Base

ORDER_TYPES = ("standard", "custom")
ORDER_STATUSES = ("pending", "confirmed", "processing", "completed", "cancelled")


class Order(Base):
    """Customer order, optionally pointing at a catalog product

    The product foreign key restricts deletes: the database refuses to remove a
    product that still has orders, whatever the application checked before.
    """
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    customer_name = Column(String(100), nullable=False)
    customer_phone = Column(String(20), nullable=False)
    customer_email = Column(String(100))
    customer_address = Column(Text)
    order_type = Column(String(10), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="RESTRICT"))
    custom_description = Column(Text)
    quantity = Column(Integer, nullable=False, default=1, server_default="1")
    total_price = Column(Integer, nullable=False, default=0, server_default="0")
    status = Column(String(20), nullable=False, default="pending", server_default="pending")
    notes = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="positive_quantity"),
        CheckConstraint("order_type IN ('standard', 'custom')", name="order_type_valid"),
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'processing', 'completed', 'cancelled')",
            name="order_status_valid"
        ),
        Index("idx_orders_product", "product_id"),
        Index("idx_orders_status", "status"),
    )

    @property
    def order_number(self) -> str:
        return f"BW{self.id:06d}"
