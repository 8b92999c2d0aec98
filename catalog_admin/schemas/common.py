from pydantic import BaseModel, Field
from typing import Any, List, Optional


class ApiResponse(BaseModel):
    success: bool = Field(True, description="Always true for successful calls")
    message: Optional[str] = Field(None, description="Human readable outcome")
    data: Optional[Any] = Field(None, description="Operation result")


class ErrorResponse(BaseModel):
    error: str = Field(..., description="Short error title")
    message: str = Field(..., description="What went wrong")
    details: Optional[Any] = Field(None, description="Per-field problems or conflict details")


class Pagination(BaseModel):
    limit: int
    offset: int
    total: int = Field(..., description="Number of items in this page")


class FieldProblem(BaseModel):
    field: str
    value: Optional[Any] = None
    expected: str
    message: str


class ValidationErrorResponse(ErrorResponse):
    details: List[FieldProblem] = Field(default_factory=list)
