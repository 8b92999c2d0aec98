from pydantic import BaseModel, Field, field_validator
from typing import List, Literal, Optional
from datetime import datetime
import re

from catalog_admin.schemas.common import ApiResponse, Pagination
from catalog_admin.schemas.forms import FormModel, blank_to_none, form_int

OrderType = Literal["standard", "custom"]
OrderStatus = Literal["pending", "confirmed", "processing", "completed", "cancelled"]

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _check_email(value: Optional[str]) -> Optional[str]:
    if value and not _EMAIL_RE.match(value):
        raise ValueError("is not a valid email address")
    return value


class OrderCreate(FormModel):
    customer_name: str = Field(..., max_length=100, examples=["Siti Rahma"])
    customer_phone: str = Field(..., max_length=20, examples=["081234567890"])
    customer_email: Optional[str] = Field(None, max_length=100, json_schema_extra={"format": "email"})
    customer_address: Optional[str] = None
    order_type: OrderType = Field(..., description="standard or custom")
    product_id: Optional[int] = Field(None, ge=1, description="Required for standard orders")
    custom_description: Optional[str] = Field(None, description="Required for custom orders")
    quantity: Optional[int] = Field(None, ge=1)
    notes: Optional[str] = None

    @field_validator("order_type", mode="before")
    @classmethod
    def _blank(cls, value):
        return blank_to_none(value)

    @field_validator("product_id", "quantity", mode="before")
    @classmethod
    def _integer(cls, value):
        return form_int(value)

    @field_validator("customer_name", "customer_phone")
    @classmethod
    def _required_text(cls, value):
        if not value.strip():
            raise ValueError("is required")
        return value

    @field_validator("customer_email")
    @classmethod
    def _email(cls, value):
        return _check_email(value)


class OrderQuote(FormModel):
    order_type: OrderType
    product_id: Optional[int] = Field(None, ge=1)
    custom_description: Optional[str] = None
    quantity: Optional[int] = Field(None, ge=1)

    @field_validator("order_type", mode="before")
    @classmethod
    def _blank(cls, value):
        return blank_to_none(value)

    @field_validator("product_id", "quantity", mode="before")
    @classmethod
    def _integer(cls, value):
        return form_int(value)


class OrderUpdate(FormModel):
    """Partial update; omitted and empty fields keep their stored value"""
    customer_name: Optional[str] = Field(None, max_length=100)
    customer_phone: Optional[str] = Field(None, max_length=20)
    customer_email: Optional[str] = Field(None, max_length=100, json_schema_extra={"format": "email"})
    customer_address: Optional[str] = None
    quantity: Optional[int] = Field(None, ge=1)
    total_price: Optional[int] = Field(None, ge=0, description="Total in minor currency units")
    notes: Optional[str] = None

    @field_validator("quantity", "total_price", mode="before")
    @classmethod
    def _integer(cls, value):
        return form_int(value)

    @field_validator("customer_email")
    @classmethod
    def _email(cls, value):
        return _check_email(value)


class OrderStatusUpdate(FormModel):
    status: OrderStatus
    notes: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def _blank(cls, value):
        return blank_to_none(value)


class OrderResponse(BaseModel):
    id: int
    order_number: str = Field(..., description="Display number, e.g. BW000042")
    customer_name: str
    customer_phone: str
    customer_email: Optional[str] = None
    customer_address: Optional[str] = None
    order_type: str = Field(..., description="standard or custom")
    product_id: Optional[int] = None
    custom_description: Optional[str] = None
    quantity: int
    total_price: int = Field(..., description="Total in minor currency units")
    status: str
    notes: Optional[str] = None
    product_name: Optional[str] = None
    product_price: Optional[int] = None
    product_image: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class OrderEnvelope(ApiResponse):
    data: OrderResponse


class OrderListEnvelope(ApiResponse):
    data: List[OrderResponse]
    pagination: Optional[Pagination] = None


class QuoteResponse(BaseModel):
    quantity: int
    currency: str
    # standard orders
    product_name: Optional[str] = None
    unit_price: Optional[int] = None
    total_price: Optional[int] = None
    savings: Optional[int] = None
    # custom orders
    order_type: Optional[str] = None
    description: Optional[str] = None
    estimated_price: Optional[int] = None
    note: Optional[str] = None


class QuoteEnvelope(ApiResponse):
    data: QuoteResponse


class OrderStatusChanged(BaseModel):
    status: str
    notes: Optional[str] = None


class OrderStatusEnvelope(ApiResponse):
    data: OrderStatusChanged


class OrderUpdated(BaseModel):
    id: int
    updated_fields: List[str]


class OrderUpdatedEnvelope(ApiResponse):
    data: OrderUpdated
