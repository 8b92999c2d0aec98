from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session
from typing import Optional
from catalog_admin.db.database import get_db
from catalog_admin.api.payload import read_payload
from catalog_admin.auth.dependencies import require_admin
from catalog_admin.schemas.common import ApiResponse, ErrorResponse, ValidationErrorResponse
from catalog_admin.schemas.order import (
    OrderEnvelope,
    OrderListEnvelope,
    OrderStatusEnvelope,
    OrderUpdatedEnvelope,
    QuoteEnvelope,
    OrderCreate,
    OrderQuote,
    OrderStatusUpdate,
    OrderUpdate,
)
from catalog_admin.services.order_service import OrderService

router = APIRouter(
    prefix="/orders",
    tags=["Orders"]
)

STATUS_PATTERN = "^(pending|confirmed|processing|completed|cancelled)$"


def get_order_service(db: Session = Depends(get_db)) -> OrderService:
    """Dependency to get order service"""
    return OrderService(db)


@router.post(
    "",
    response_model=OrderEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Place an order",
    description="""
    Public order form.

    - `standard` orders need the `product_id` of an active product; the total
      is the product price times `quantity`.
    - `custom` orders need a `custom_description`; they start with a total of
      0 until the design is priced.
    """,
    responses={400: {"model": ValidationErrorResponse}, 404: {"model": ErrorResponse}}
)
async def create_order(
    request: Request,
    order_service: OrderService = Depends(get_order_service)
):
    raw, _ = await read_payload(request)
    order = order_service.create_order(OrderCreate.from_payload(raw))
    return {
        "success": True,
        "message": "Order placed",
        "data": order_service.order_to_dict(order),
    }


@router.post(
    "/quote",
    response_model=QuoteEnvelope,
    response_model_exclude_none=True,
    summary="Price an order without placing it",
    responses={400: {"model": ValidationErrorResponse}, 404: {"model": ErrorResponse}}
)
async def quote_order(
    request: Request,
    order_service: OrderService = Depends(get_order_service)
):
    raw, _ = await read_payload(request)
    return {"success": True, "data": order_service.quote(OrderQuote.from_payload(raw))}


@router.get(
    "/admin/all",
    response_model=OrderListEnvelope,
    summary="List orders (admin)",
    description="""
    Newest first, with the ordered product's name, price and image.

    **Filtering:**
    - `status`: pending, confirmed, processing, completed or cancelled
    - `order_type`: standard or custom
    """,
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}}
)
async def list_orders(
    status_filter: Optional[str] = Query(None, alias="status", pattern=STATUS_PATTERN),
    order_type: Optional[str] = Query(None, pattern="^(standard|custom)$"),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: dict = Depends(require_admin),
    order_service: OrderService = Depends(get_order_service)
):
    orders = order_service.list_orders(status=status_filter, order_type=order_type, limit=limit, offset=offset)
    return {
        "success": True,
        "data": orders,
        "pagination": {"limit": limit, "offset": offset, "total": len(orders)},
    }


@router.get(
    "/admin/{order_id}",
    response_model=OrderEnvelope,
    summary="Get order by ID (admin)",
    responses={404: {"model": ErrorResponse}}
)
async def get_order(
    order_id: int,
    current_user: dict = Depends(require_admin),
    order_service: OrderService = Depends(get_order_service)
):
    return {"success": True, "data": order_service.get_order(order_id)}


@router.put(
    "/{order_id}/status",
    response_model=OrderStatusEnvelope,
    summary="Change order status (admin)",
    description="""
    Allowed moves: pending → confirmed → processing → completed, and any
    non-final status → cancelled. Anything else is refused with 409.
    """,
    responses={
        400: {"model": ValidationErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse}
    }
)
async def update_order_status(
    order_id: int,
    request: Request,
    current_user: dict = Depends(require_admin),
    order_service: OrderService = Depends(get_order_service)
):
    raw, _ = await read_payload(request)
    order = order_service.update_status(order_id, OrderStatusUpdate.from_payload(raw))
    return {
        "success": True,
        "message": "Order status updated",
        "data": {"status": order.status, "notes": order.notes},
    }


@router.put(
    "/{order_id}",
    response_model=OrderUpdatedEnvelope,
    summary="Update order details (admin)",
    description="Partial update of customer details, quantity, total or notes.",
    responses={400: {"model": ValidationErrorResponse}, 404: {"model": ErrorResponse}}
)
async def update_order(
    order_id: int,
    request: Request,
    current_user: dict = Depends(require_admin),
    order_service: OrderService = Depends(get_order_service)
):
    raw, _ = await read_payload(request)
    updated_fields = order_service.update_order(order_id, OrderUpdate.from_payload(raw))
    return {
        "success": True,
        "message": "Order updated",
        "data": {"id": order_id, "updated_fields": updated_fields},
    }


@router.delete(
    "/{order_id}",
    response_model=ApiResponse,
    summary="Delete an order (admin)",
    responses={404: {"model": ErrorResponse}}
)
async def delete_order(
    order_id: int,
    current_user: dict = Depends(require_admin),
    order_service: OrderService = Depends(get_order_service)
):
    order_service.delete_order(order_id)
    return {"success": True, "message": "Order deleted", "data": {"id": order_id}}
