from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from catalog_admin.config import settings
from catalog_admin.db.database import check_connection

router = APIRouter(tags=["Health"])

VERSION = "1.0.0"


class HealthResponse(BaseModel):
    status: str = Field(..., description="Service health status", examples=["healthy"])
    service: str = Field(..., description="Service name", examples=["catalog-admin"])
    version: str = Field(..., description="Service version", examples=[VERSION])
    database: str = Field(..., description="Database connectivity", examples=["connected"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="""
    Health check endpoint for monitoring and load balancer health checks.

    Returns 503 when the database cannot be reached.
    """,
    responses={503: {"model": HealthResponse, "description": "Database unreachable"}}
)
async def health():
    """Health check endpoint"""
    if check_connection():
        return HealthResponse(status="healthy", service=settings.app_name, version=VERSION, database="connected")
    body = HealthResponse(status="unhealthy", service=settings.app_name, version=VERSION, database="disconnected")
    return JSONResponse(status_code=503, content=body.model_dump())
