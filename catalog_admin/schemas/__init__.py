# Package exports - these allow cleaner imports like:
# from catalog_admin.schemas import ProductResponse, OrderResponse
from catalog_admin.schemas.common import ApiResponse, ErrorResponse, Pagination, ValidationErrorResponse
from catalog_admin.schemas.product import (
    ProductCreate,
    ProductEnvelope,
    ProductListEnvelope,
    ProductResponse,
    ProductUpdate,
)
from catalog_admin.schemas.order import (
    OrderCreate,
    OrderEnvelope,
    OrderListEnvelope,
    OrderQuote,
    OrderResponse,
    OrderStatusUpdate,
    OrderUpdate,
    QuoteEnvelope,
)
