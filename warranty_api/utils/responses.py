"""Generic response models for consistent API responses."""

import math
from datetime import datetime, timezone
from typing import Annotated, Any, Generic, List, TypeVar

from pydantic import AfterValidator, BaseModel, Field

from warranty_api.config.settings import settings
from warranty_api.utils.clock import ensure_utc

T = TypeVar("T")

# Datetimes read back from SQLite are naive; responses always carry UTC offsets
UTCDateTime = Annotated[datetime, AfterValidator(ensure_utc)]


class ResponseMetadata(BaseModel):
    """Metadata included in all API responses."""

    app_name: str = Field(default=settings.APP_NAME)
    app_version: str = Field(default=settings.APP_VERSION)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class SuccessResponse(BaseModel, Generic[T]):
    """Generic success response with data and metadata."""

    success: bool = Field(default=True)
    message: str = Field(default="Operation completed successfully")
    data: T
    metadata: ResponseMetadata = Field(default_factory=ResponseMetadata)


class PaginationMeta(BaseModel):
    """Pagination metadata."""

    page: int = Field(ge=1, description="Current page number (1-indexed)")
    limit: int = Field(ge=1, description="Items per page")
    total: int = Field(ge=0, description="Total number of matching items")
    total_pages: int = Field(ge=0, description="ceil(total / limit)")
    has_next: bool = Field(description="Whether there is a next page")
    has_prev: bool = Field(description="Whether there is a previous page")

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "PaginationMeta":
        total_pages = math.ceil(total / limit) if total > 0 else 0
        return cls(
            page=page,
            limit=limit,
            total=total,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_prev=page > 1,
        )


class PaginatedResponse(BaseModel, Generic[T]):
    """Paginated response with data and pagination metadata."""

    success: bool = Field(default=True)
    message: str = Field(default="Items retrieved successfully")
    data: List[T]
    pagination: PaginationMeta
    metadata: ResponseMetadata = Field(default_factory=ResponseMetadata)

    model_config = {
        "json_schema_extra": {
            "example": {
                "success": True,
                "message": "Items retrieved successfully",
                "data": [],
                "pagination": {
                    "page": 1,
                    "limit": 10,
                    "total": 25,
                    "total_pages": 3,
                    "has_next": True,
                    "has_prev": False,
                },
                "metadata": {
                    "app_name": "Warranty Manager API",
                    "app_version": "1.0.0",
                    "timestamp": "2025-11-03T15:58:36Z",
                },
            }
        }
    }


# Helper functions to create responses
def success_response(
    data: T,
    message: str = "Operation completed successfully",
    **kwargs: Any
) -> SuccessResponse[T]:
    """Create a success response."""
    return SuccessResponse(
        success=True,
        message=message,
        data=data,
        metadata=ResponseMetadata(**kwargs) if kwargs else ResponseMetadata()
    )


def paginated_response(
    data: List[T],
    pagination: PaginationMeta,
    message: str = "Items retrieved successfully",
    **kwargs: Any
) -> PaginatedResponse[T]:
    """Create a paginated response."""
    return PaginatedResponse(
        success=True,
        message=message,
        data=data,
        pagination=pagination,
        metadata=ResponseMetadata(**kwargs) if kwargs else ResponseMetadata()
    )
