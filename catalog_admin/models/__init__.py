# Package exports - these allow cleaner imports like:
# from catalog_admin.models import Product, Order
# Used by alembic/env.py for migration autogenerate
from catalog_admin.models.product import Product, PRODUCT_CATEGORIES
from catalog_admin.models.order import Order, ORDER_TYPES, ORDER_STATUSES
