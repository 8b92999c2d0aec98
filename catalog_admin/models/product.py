from sqlalchemy import Column, Integer, String, Text, Numeric, Boolean, DateTime, CheckConstraint, Index
from sqlalchemy.sql import func, expression
from catalog_admin.db.database import Base

PRODUCT_CATEGORIES = ("bucket", "balon", "pernikahan")


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    description = Column(Text)
    price = Column(Integer, nullable=False)  # minor currency units
    original_price = Column(Integer)  # display-only discount reference
    category = Column(String(20), nullable=False)
    image_url = Column(String(255))  # "/uploads/<file>" or an external absolute URL
    features = Column(Text)  # JSON array of strings
    rating = Column(Numeric(3, 2, asdecimal=False), nullable=False, default=5.0, server_default="5.00")
    reviews_count = Column(Integer, nullable=False, default=0, server_default="0")
    is_featured = Column(Boolean, nullable=False, default=False, server_default=expression.false())
    is_active = Column(Boolean, nullable=False, default=True, server_default=expression.true())
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint("price > 0", name="positive_price"),
        CheckConstraint("original_price IS NULL OR original_price >= 0", name="non_negative_original_price"),
        CheckConstraint("rating >= 0 AND rating <= 5", name="rating_range"),
        CheckConstraint("reviews_count >= 0", name="non_negative_reviews_count"),
        CheckConstraint(
            "category IN ('bucket', 'balon', 'pernikahan')",
            name="category_valid"
        ),
        Index("idx_products_category_active", "category", "is_active"),
    )
