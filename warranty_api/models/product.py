"""Product model."""

from datetime import datetime, timezone
from enum import Enum
from uuid import UUID, uuid4

from sqlalchemy import Column, DateTime, Text
from sqlmodel import Field, SQLModel


class ProductCategory(str, Enum):
    ELECTRONICS = "Electronics"
    APPLIANCES = "Appliances"
    FURNITURE = "Furniture"
    AUTOMOTIVE = "Automotive"
    CLOTHING = "Clothing"
    OTHER = "Other"


class Product(SQLModel, table=True):
    """Catalog product that warranties are attached to.

    A product cannot be deleted while any warranty references it; the guard
    lives in ``services.product_service``.
    """

    __tablename__ = "products"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = Field(max_length=255, index=True)
    description: str = Field(sa_column=Column(Text, nullable=False))
    category: str = Field(max_length=50, index=True)
    manufacturer: str = Field(max_length=255)
    model: str | None = Field(default=None, max_length=255)
    image: str | None = Field(default=None, max_length=512)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), index=True)
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True))
    )
