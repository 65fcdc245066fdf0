"""Product request and response schemas."""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from warranty_api.models.product import ProductCategory
from warranty_api.utils.responses import UTCDateTime


class ProductCreate(BaseModel):
    """Request schema for creating a catalog product."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    category: ProductCategory
    manufacturer: str = Field(..., min_length=1, max_length=255)
    model: Optional[str] = Field(default=None, max_length=255)

    model_config = {"json_schema_extra": {"example": {
        "name": "ThinkPad X1 Carbon",
        "description": "14 inch business laptop",
        "category": "Electronics",
        "manufacturer": "Lenovo",
        "model": "Gen 11"
    }}}


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, min_length=1)
    category: Optional[ProductCategory] = None
    manufacturer: Optional[str] = Field(default=None, min_length=1, max_length=255)
    model: Optional[str] = Field(default=None, max_length=255)


class ProductResponse(BaseModel):
    id: UUID
    name: str
    description: str
    category: str
    manufacturer: str
    model: Optional[str] = None
    image: Optional[str] = None
    created_at: UTCDateTime
    updated_at: UTCDateTime

    model_config = {"from_attributes": True}


class ProductSummary(BaseModel):
    """Product fields embedded in warranty responses."""

    id: UUID
    name: str
    category: str
    manufacturer: str
    model: Optional[str] = None
    image: Optional[str] = None

    model_config = {"from_attributes": True}
