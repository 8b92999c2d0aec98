from fastapi import APIRouter, Depends, Query
from typing import Optional
from catalog_admin.api.products import get_product_service
from catalog_admin.auth.dependencies import require_admin
from catalog_admin.schemas.common import ApiResponse, ErrorResponse
from catalog_admin.services.product_service import ProductService

router = APIRouter(
    prefix="/admin",
    tags=["Admin"]
)


@router.post(
    "/assets/reconcile",
    response_model=ApiResponse,
    summary="Delete orphaned uploads (admin)",
    description="""
    Removes files in the asset store that no product references.

    Files modified less than `min_age_seconds` ago are skipped, so uploads
    belonging to a request that is still in flight are never collected.
    Defaults to the `ORPHAN_MIN_AGE_SECONDS` setting.
    """,
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}}
)
async def reconcile_assets(
    min_age_seconds: Optional[int] = Query(None, ge=0, description="Skip files younger than this"),
    current_user: dict = Depends(require_admin),
    product_service: ProductService = Depends(get_product_service)
):
    report = product_service.reconcile_assets(min_age_seconds)
    return {
        "success": True,
        "message": f"Deleted {report['deleted']} orphaned file(s)",
        "data": report,
    }
