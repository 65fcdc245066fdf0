"""Warranty and warranty document models."""

from datetime import datetime, timezone
from enum import Enum
from uuid import UUID, uuid4

from sqlalchemy import Column, DateTime, Text
from sqlmodel import Field, SQLModel


class WarrantyStatus(str, Enum):
    ACTIVE = "active"
    EXPIRING = "expiring"
    EXPIRED = "expired"


class Warranty(SQLModel, table=True):
    """Warranty record owned by a user for a product.

    ``status`` is stored for querying but always derived from
    ``expiration_date`` at write time (see ``services.warranty_lifecycle``).
    """

    __tablename__ = "warranties"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: UUID = Field(foreign_key="users.id", index=True)
    product_id: UUID = Field(foreign_key="products.id", index=True)
    purchase_date: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    expiration_date: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False, index=True))
    warranty_provider: str = Field(max_length=255)
    warranty_number: str = Field(max_length=255)
    coverage_details: str = Field(sa_column=Column(Text, nullable=False))
    notes: str = Field(default="", sa_column=Column(Text, nullable=False, default=""))
    status: str = Field(default=WarrantyStatus.ACTIVE.value, max_length=20, index=True)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), index=True)
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True))
    )


class WarrantyDocument(SQLModel, table=True):
    """Metadata for an uploaded file attached to a warranty."""

    __tablename__ = "warranty_documents"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    warranty_id: UUID = Field(foreign_key="warranties.id", index=True)
    filename: str = Field(max_length=255)
    original_name: str = Field(max_length=255)
    path: str = Field(max_length=1024)
    mimetype: str = Field(max_length=255)
    size: int = Field(default=0, ge=0)
    uploaded_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True))
    )
