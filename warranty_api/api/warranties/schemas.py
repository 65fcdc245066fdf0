"""Warranty request and response schemas."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from warranty_api.api.products.schemas import ProductSummary
from warranty_api.api.users.schemas import UserSummary
from warranty_api.services.warranty_service import WarrantyDetails, WarrantyStats
from warranty_api.utils.clock import ensure_utc
from warranty_api.utils.responses import UTCDateTime


class WarrantyCreate(BaseModel):
    """Request schema for creating a warranty.

    There is no ``status`` field: status is always derived from the
    expiration date, and unknown keys in the body are ignored.
    """

    product_id: UUID
    purchase_date: datetime
    expiration_date: datetime
    warranty_provider: str = Field(..., min_length=1, max_length=255)
    warranty_number: str = Field(..., min_length=1, max_length=255)
    coverage_details: str = Field(..., min_length=1)
    notes: str = Field(default="")

    model_config = {"json_schema_extra": {"example": {
        "product_id": "3f1c9f0e-8f0a-4b43-9a57-0f5a2d7f6c11",
        "purchase_date": "2025-01-15T00:00:00Z",
        "expiration_date": "2027-01-15T00:00:00Z",
        "warranty_provider": "Lenovo",
        "warranty_number": "LNV-2025-0001",
        "coverage_details": "Parts and labour, on-site",
        "notes": ""
    }}}

    @model_validator(mode="after")
    def check_dates(self) -> "WarrantyCreate":
        if ensure_utc(self.expiration_date) < ensure_utc(self.purchase_date):
            raise ValueError("Expiration date must be on or after the purchase date")
        return self


class WarrantyUpdate(BaseModel):
    product_id: Optional[UUID] = None
    purchase_date: Optional[datetime] = None
    expiration_date: Optional[datetime] = None
    warranty_provider: Optional[str] = Field(default=None, min_length=1, max_length=255)
    warranty_number: Optional[str] = Field(default=None, min_length=1, max_length=255)
    coverage_details: Optional[str] = Field(default=None, min_length=1)
    notes: Optional[str] = None


class DocumentResponse(BaseModel):
    id: UUID
    filename: str
    original_name: str
    path: str
    mimetype: str
    size: int
    uploaded_at: UTCDateTime

    model_config = {"from_attributes": True}


class WarrantyResponse(BaseModel):
    id: UUID
    user_id: UUID
    product_id: UUID
    product: Optional[ProductSummary] = None
    owner: Optional[UserSummary] = None
    purchase_date: UTCDateTime
    expiration_date: UTCDateTime
    warranty_provider: str
    warranty_number: str
    coverage_details: str
    notes: str = ""
    status: str
    documents: List[DocumentResponse] = Field(default_factory=list)
    created_at: UTCDateTime
    updated_at: UTCDateTime

    @classmethod
    def from_details(cls, details: WarrantyDetails) -> "WarrantyResponse":
        warranty = details.warranty
        return cls(
            id=warranty.id,
            user_id=warranty.user_id,
            product_id=warranty.product_id,
            product=ProductSummary.model_validate(details.product) if details.product else None,
            owner=UserSummary.model_validate(details.owner) if details.owner else None,
            purchase_date=warranty.purchase_date,
            expiration_date=warranty.expiration_date,
            warranty_provider=warranty.warranty_provider,
            warranty_number=warranty.warranty_number,
            coverage_details=warranty.coverage_details,
            notes=warranty.notes or "",
            status=warranty.status,
            documents=[DocumentResponse.model_validate(doc) for doc in details.documents],
            created_at=warranty.created_at,
            updated_at=warranty.updated_at,
        )


class WarrantyStatsResponse(BaseModel):
    total: int
    active: int
    expiring: int
    expired: int

    @classmethod
    def from_stats(cls, stats: WarrantyStats) -> "WarrantyStatsResponse":
        return cls(total=stats.total, active=stats.active, expiring=stats.expiring, expired=stats.expired)


class WarrantyDeleteResponse(BaseModel):
    id: UUID
    unremoved_files: List[str] = Field(
        default_factory=list,
        description="Document files that could not be removed from storage"
    )


class DocumentDeleteResponse(BaseModel):
    id: UUID
    file_removed: bool
