from pydantic import BaseModel, Field, field_validator
from typing import List, Literal, Optional
from datetime import datetime

from catalog_admin.schemas.common import ApiResponse, Pagination
from catalog_admin.schemas.forms import FormModel, blank_to_none, form_bool, form_int, form_number

ProductCategory = Literal["bucket", "balon", "pernikahan"]

_EXTERNAL_URL_PREFIXES = ("http://", "https://")


def external_image_url(value: Optional[str]) -> Optional[str]:
    """Only external links can be set directly; local images come from uploads"""
    if value is None or value == "":
        return value
    if not value.lower().startswith(_EXTERNAL_URL_PREFIXES):
        raise ValueError("must be an http(s) URL, upload a file to use a local image")
    return value


class ProductCreate(FormModel):
    name: str = Field(..., max_length=100, description="Product name", examples=["Bucket Wisuda Premium"])
    description: Optional[str] = Field(None, description="Product description")
    price: int = Field(..., ge=1, description="Price in minor currency units", examples=[150000])
    original_price: Optional[int] = Field(None, ge=0, description="Price before discount")
    category: ProductCategory = Field(..., description="Product category")
    features: Optional[List[str]] = Field(None, description="Ordered feature list")
    is_featured: Optional[bool] = Field(None, description="Show on the homepage")
    image_url: Optional[str] = Field(None, max_length=255, description="External image URL")
    rating: Optional[float] = Field(None, ge=0, le=5, allow_inf_nan=False, description="Rating between 0 and 5")
    reviews_count: Optional[int] = Field(None, ge=0, description="Number of reviews")

    @field_validator("description", "category", "features", mode="before")
    @classmethod
    def _blank(cls, value):
        return blank_to_none(value)

    @field_validator("price", "original_price", "reviews_count", mode="before")
    @classmethod
    def _integer(cls, value):
        return form_int(value)

    @field_validator("rating", mode="before")
    @classmethod
    def _number(cls, value):
        return form_number(value)

    @field_validator("is_featured", mode="before")
    @classmethod
    def _flag(cls, value):
        return form_bool(value)

    @field_validator("name")
    @classmethod
    def _name_required(cls, value):
        if not value.strip():
            raise ValueError("is required")
        return value

    @field_validator("image_url")
    @classmethod
    def _external_only(cls, value):
        return external_image_url(value)


class ProductUpdate(FormModel):
    """Partial update; omitted and empty fields keep their stored value"""
    name: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    price: Optional[int] = Field(None, ge=1)
    original_price: Optional[int] = Field(None, ge=0)
    category: Optional[ProductCategory] = None
    features: Optional[List[str]] = None
    is_featured: Optional[bool] = None
    is_active: Optional[bool] = None
    image_url: Optional[str] = Field(None, max_length=255, description="External image URL")
    rating: Optional[float] = Field(None, ge=0, le=5, allow_inf_nan=False)
    reviews_count: Optional[int] = Field(None, ge=0)

    @field_validator("category", "features", mode="before")
    @classmethod
    def _blank(cls, value):
        return blank_to_none(value)

    @field_validator("price", "original_price", "reviews_count", mode="before")
    @classmethod
    def _integer(cls, value):
        return form_int(value)

    @field_validator("rating", mode="before")
    @classmethod
    def _number(cls, value):
        return form_number(value)

    @field_validator("is_featured", "is_active", mode="before")
    @classmethod
    def _flag(cls, value):
        return form_bool(value)

    @field_validator("image_url")
    @classmethod
    def _external_only(cls, value):
        return external_image_url(value)


class ProductResponse(BaseModel):
    id: int = Field(..., description="Product ID")
    name: str = Field(..., description="Product name")
    description: Optional[str] = Field(None, description="Product description")
    price: int = Field(..., description="Price in minor currency units")
    original_price: Optional[int] = Field(None, description="Price before discount, for display")
    category: str = Field(..., description="Product category")
    image_url: Optional[str] = Field(None, description="Image reference: /uploads/<file> or an external URL")
    features: List[str] = Field(default_factory=list, description="Ordered feature list")
    rating: float = Field(..., description="Rating between 0 and 5")
    reviews_count: int = Field(..., description="Number of reviews")
    is_featured: bool
    is_active: bool
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")

    class Config:
        from_attributes = True
        json_schema_extra = {
            "example": {
                "id": 1,
                "name": "Bucket Wisuda Premium",
                "description": "Graduation bouquet with fresh flowers",
                "price": 150000,
                "original_price": 200000,
                "category": "bucket",
                "image_url": "/uploads/image-1717171717171-123456789.jpg",
                "features": ["Fresh flowers", "Greeting card"],
                "rating": 4.9,
                "reviews_count": 12,
                "is_featured": True,
                "is_active": True,
                "created_at": "2024-01-15T10:30:00Z",
                "updated_at": "2024-01-15T10:30:00Z"
            }
        }


class ProductEnvelope(ApiResponse):
    data: ProductResponse


class ProductListEnvelope(ApiResponse):
    data: List[ProductResponse]
    pagination: Optional[Pagination] = None


class ProductCreated(BaseModel):
    id: int
    image_url: Optional[str] = None


class ProductCreatedEnvelope(ApiResponse):
    data: ProductCreated


class ProductUpdated(BaseModel):
    id: int
    updated_fields: List[str] = Field(..., description="Fields written by this update")
    image_url: Optional[str] = Field(None, description="Image reference after the update")
    replaced_image: Optional[str] = Field(None, description="Previous image removed from the asset store")


class ProductUpdatedEnvelope(ApiResponse):
    data: ProductUpdated


class ProductDeleted(BaseModel):
    id: int
    deleted_image: Optional[str] = Field(None, description="Image removed from the asset store")


class ProductDeletedEnvelope(ApiResponse):
    data: ProductDeleted
