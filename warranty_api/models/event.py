"""Calendar event model."""

from datetime import datetime, timezone
from enum import Enum
from uuid import UUID, uuid4

from sqlalchemy import Column, DateTime, Text
from sqlmodel import Field, SQLModel


class EventType(str, Enum):
    WARRANTY = "warranty"
    MAINTENANCE = "maintenance"
    REMINDER = "reminder"
    OTHER = "other"


DEFAULT_EVENT_COLOR = "#3498db"
DEFAULT_REMINDER_HOURS = 24


class Event(SQLModel, table=True):
    """Calendar reminder owned by a user."""

    __tablename__ = "events"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: UUID = Field(foreign_key="users.id", index=True)
    title: str = Field(max_length=255)
    description: str = Field(default="", sa_column=Column(Text, nullable=False, default=""))
    event_type: str = Field(default=EventType.WARRANTY.value, max_length=20, index=True)
    start_date: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False, index=True))
    end_date: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    all_day: bool = Field(default=False)
    location: str = Field(default="", max_length=255)
    color: str = Field(default=DEFAULT_EVENT_COLOR, max_length=20)
    related_product_id: UUID | None = Field(default=None, foreign_key="products.id")
    related_warranty_id: UUID | None = Field(default=None, foreign_key="warranties.id")

    # Notification settings
    notifications_enabled: bool = Field(default=True)
    reminder_time: int = Field(default=DEFAULT_REMINDER_HOURS, description="Hours before the event")

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), index=True)
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True))
    )
