"""Calendar event request and response schemas."""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from warranty_api.models.event import DEFAULT_EVENT_COLOR, DEFAULT_REMINDER_HOURS, Event, EventType
from warranty_api.utils.responses import UTCDateTime


class NotificationSettings(BaseModel):
    enabled: bool = True
    reminder_time: int = Field(default=DEFAULT_REMINDER_HOURS, ge=0, description="Hours before the event")


class EventCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    event_type: EventType = EventType.WARRANTY
    start_date: datetime
    end_date: Optional[datetime] = None
    all_day: bool = False
    location: str = Field(default="", max_length=255)
    color: str = Field(default=DEFAULT_EVENT_COLOR, max_length=20)
    related_product_id: Optional[UUID] = None
    related_warranty_id: Optional[UUID] = None
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)

    model_config = {"json_schema_extra": {"example": {
        "title": "Laptop warranty ends",
        "event_type": "warranty",
        "start_date": "2027-01-15T09:00:00Z",
        "all_day": True,
        "notifications": {"enabled": True, "reminder_time": 48}
    }}}

    def to_service_data(self) -> dict[str, Any]:
        data = self.model_dump(exclude={"notifications"})
        data["notifications_enabled"] = self.notifications.enabled
        data["reminder_time"] = self.notifications.reminder_time
        return data


class EventUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    event_type: Optional[EventType] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    all_day: Optional[bool] = None
    location: Optional[str] = Field(default=None, max_length=255)
    color: Optional[str] = Field(default=None, max_length=20)
    related_product_id: Optional[UUID] = None
    related_warranty_id: Optional[UUID] = None
    notifications: Optional[NotificationSettings] = None

    def to_service_data(self) -> dict[str, Any]:
        """Only the fields the client actually sent."""
        data = self.model_dump(exclude_unset=True, exclude={"notifications"})
        if self.notifications is not None:
            data["notifications_enabled"] = self.notifications.enabled
            data["reminder_time"] = self.notifications.reminder_time
        return data


class EventResponse(BaseModel):
    id: UUID
    user_id: UUID
    title: str
    description: str
    event_type: str
    start_date: UTCDateTime
    end_date: UTCDateTime
    all_day: bool
    location: str
    color: str
    related_product_id: Optional[UUID] = None
    related_warranty_id: Optional[UUID] = None
    notifications: NotificationSettings
    created_at: UTCDateTime
    updated_at: UTCDateTime

    @classmethod
    def from_event(cls, event: Event) -> "EventResponse":
        return cls(
            id=event.id,
            user_id=event.user_id,
            title=event.title,
            description=event.description or "",
            event_type=event.event_type,
            start_date=event.start_date,
            end_date=event.end_date,
            all_day=event.all_day,
            location=event.location or "",
            color=event.color,
            related_product_id=event.related_product_id,
            related_warranty_id=event.related_warranty_id,
            notifications=NotificationSettings(
                enabled=event.notifications_enabled,
                reminder_time=event.reminder_time,
            ),
            created_at=event.created_at,
            updated_at=event.updated_at,
        )
