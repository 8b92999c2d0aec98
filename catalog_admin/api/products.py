from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session
from typing import Optional
from catalog_admin.db.database import get_db
from catalog_admin.api.payload import read_payload
from catalog_admin.auth.dependencies import require_admin
from catalog_admin.schemas.common import ApiResponse, ErrorResponse, ValidationErrorResponse
from catalog_admin.schemas.product import (
    ProductCreatedEnvelope,
    ProductDeletedEnvelope,
    ProductEnvelope,
    ProductListEnvelope,
    ProductUpdatedEnvelope,
    ProductCreate,
    ProductUpdate,
)
from catalog_admin.services import get_image_provider
from catalog_admin.services.image_providers.base import ImageProvider
from catalog_admin.services.product_service import ProductService

router = APIRouter(
    prefix="/products",
    tags=["Products"]
)

CATEGORY_PATTERN = "^(bucket|balon|pernikahan)$"


def get_product_service(
    db: Session = Depends(get_db),
    image_provider: ImageProvider = Depends(get_image_provider)
) -> ProductService:
    """Dependency to get product service"""
    return ProductService(db, image_provider)


@router.get(
    "",
    response_model=ProductListEnvelope,
    summary="List active products",
    description="""
    Public list of active products, newest first.

    **Filtering:**
    - `category`: bucket, balon or pernikahan
    - `featured=true`: only featured products
    """
)
async def list_products(
    category: Optional[str] = Query(None, pattern=CATEGORY_PATTERN, description="Filter by category"),
    featured: Optional[bool] = Query(None, description="Only featured products"),
    limit: int = Query(50, ge=1, le=100, description="Page size"),
    offset: int = Query(0, ge=0, description="Items to skip"),
    product_service: ProductService = Depends(get_product_service)
):
    products = product_service.list_products(category=category, featured=featured, limit=limit, offset=offset)
    return {
        "success": True,
        "data": [product_service.product_to_dict(p) for p in products],
        "pagination": {"limit": limit, "offset": offset, "total": len(products)},
    }


@router.get(
    "/featured/list",
    response_model=ProductListEnvelope,
    summary="Featured products for the homepage"
)
async def list_featured_products(
    product_service: ProductService = Depends(get_product_service)
):
    products = product_service.list_featured()
    return {"success": True, "data": [product_service.product_to_dict(p) for p in products]}


@router.get(
    "/admin/all",
    response_model=ProductListEnvelope,
    summary="List all products (admin)",
    description="""
    Admin listing including inactive products.

    **Filtering:**
    - `status`: active or inactive (both when omitted)
    - `category`: bucket, balon or pernikahan
    """,
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}}
)
async def list_all_products(
    category: Optional[str] = Query(None, pattern=CATEGORY_PATTERN),
    status_filter: Optional[str] = Query(None, alias="status", pattern="^(active|inactive)$"),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: dict = Depends(require_admin),
    product_service: ProductService = Depends(get_product_service)
):
    products = product_service.list_products(
        category=category, status=status_filter, limit=limit, offset=offset
    )
    return {
        "success": True,
        "data": [product_service.product_to_dict(p) for p in products],
        "pagination": {"limit": limit, "offset": offset, "total": len(products)},
    }


@router.get(
    "/{product_id}",
    response_model=ProductEnvelope,
    summary="Get product by ID",
    responses={404: {"model": ErrorResponse}}
)
async def get_product(
    product_id: int,
    product_service: ProductService = Depends(get_product_service)
):
    product = product_service.get_product(product_id)
    return {"success": True, "data": product_service.product_to_dict(product)}


@router.post(
    "",
    response_model=ProductCreatedEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Create a product (admin)",
    description="""
    Create a product from a JSON object or a multipart form.

    **Multipart:**
    Every value arrives as a string ("true"/"false" for flags, digits for
    prices). An optional `image` file is stored in the asset store and linked
    to the new product. `features` may be repeated or sent as a JSON array.

    `image_url` accepts external http(s) links only; local images are set
    by uploading a file.
    """,
    responses={
        400: {"model": ValidationErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse}
    }
)
async def create_product(
    request: Request,
    current_user: dict = Depends(require_admin),
    product_service: ProductService = Depends(get_product_service)
):
    raw, image = await read_payload(request, array_fields=("features",))
    product = product_service.create_product(ProductCreate.from_payload(raw), image)
    return {
        "success": True,
        "message": "Product created",
        "data": {"id": product.id, "image_url": product.image_url},
    }


@router.put(
    "/{product_id}",
    response_model=ProductUpdatedEnvelope,
    summary="Update a product (admin)",
    description="""
    Partial update. Only supplied, non-empty fields are written; everything
    else keeps its stored value. A new `image` file replaces the previous
    local image, which is then deleted from the asset store.
    """,
    responses={
        400: {"model": ValidationErrorResponse},
        404: {"model": ErrorResponse}
    }
)
async def update_product(
    product_id: int,
    request: Request,
    current_user: dict = Depends(require_admin),
    product_service: ProductService = Depends(get_product_service)
):
    raw, image = await read_payload(request, array_fields=("features",))
    result = product_service.update_product(product_id, ProductUpdate.from_payload(raw), image)
    return {"success": True, "message": "Product updated", "data": result}


@router.delete(
    "/{product_id}",
    response_model=ProductDeletedEnvelope,
    summary="Delete a product (admin)",
    description="""
    Permanent delete. Refused with 409 while any order references the
    product. The product's local image is removed from the asset store.
    """,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}}
)
async def delete_product(
    product_id: int,
    current_user: dict = Depends(require_admin),
    product_service: ProductService = Depends(get_product_service)
):
    result = product_service.delete_product(product_id)
    return {"success": True, "message": "Product deleted", "data": result}


@router.put(
    "/{product_id}/toggle-featured",
    response_model=ApiResponse,
    summary="Toggle featured flag (admin)"
)
async def toggle_featured(
    product_id: int,
    current_user: dict = Depends(require_admin),
    product_service: ProductService = Depends(get_product_service)
):
    is_featured = product_service.toggle_flag(product_id, "is_featured")
    message = "Product added to featured" if is_featured else "Product removed from featured"
    return {"success": True, "message": message, "data": {"is_featured": is_featured}}


@router.put(
    "/{product_id}/toggle-active",
    response_model=ApiResponse,
    summary="Toggle active flag (admin)",
    description="Hides or shows a product without deleting it."
)
async def toggle_active(
    product_id: int,
    current_user: dict = Depends(require_admin),
    product_service: ProductService = Depends(get_product_service)
):
    is_active = product_service.toggle_flag(product_id, "is_active")
    message = "Product activated" if is_active else "Product deactivated"
    return {"success": True, "message": message, "data": {"is_active": is_active}}
