"""Calendar events (warranty reminders, maintenance, ...)."""

from datetime import datetime, timezone
from typing import Any, List, Optional
from uuid import UUID

from sqlalchemy import and_, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, select

from warranty_api.config.logger import app_logger
from warranty_api.models.event import DEFAULT_EVENT_COLOR, DEFAULT_REMINDER_HOURS, Event, EventType
from warranty_api.models.user import User
from warranty_api.utils.clock import ensure_utc, month_bounds
from warranty_api.utils.errors import NotFoundError, PermissionDeniedError, ValidationError

EVENT_FIELDS = (
    "title",
    "description",
    "event_type",
    "start_date",
    "end_date",
    "all_day",
    "location",
    "color",
    "related_product_id",
    "related_warranty_id",
    "notifications_enabled",
    "reminder_time",
)


async def _get_accessible_event(session: AsyncSession, caller: User, event_id: UUID, verb: str) -> Event:
    event = await session.get(Event, event_id)
    if event is None:
        raise NotFoundError("Event not found")
    if event.user_id != caller.id and not caller.is_admin:
        raise PermissionDeniedError(f"Not authorized to {verb} this event")
    return event


def _validate_range(event: Event) -> None:
    if ensure_utc(event.end_date) < ensure_utc(event.start_date):
        raise ValidationError("End date must be on or after the start date")


async def list_events(
    session: AsyncSession,
    caller: User,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    event_type: Optional[str] = None,
) -> List[Event]:
    """Caller's events ordered by start date.

    The date range applies only when both bounds are given; an unknown
    ``event_type`` is ignored rather than rejected.
    """
    statement = select(Event).where(col(Event.user_id) == caller.id)
    if start_date and end_date:
        statement = statement.where(
            col(Event.start_date) >= ensure_utc(start_date),
            col(Event.end_date) <= ensure_utc(end_date),
        )
    if event_type in {t.value for t in EventType}:
        statement = statement.where(col(Event.event_type) == event_type)

    result = await session.execute(statement.order_by(col(Event.start_date)))
    return list(result.scalars().all())


async def get_event(session: AsyncSession, caller: User, event_id: UUID) -> Event:
    return await _get_accessible_event(session, caller, event_id, "access")


async def create_event(session: AsyncSession, caller: User, data: dict[str, Any]) -> Event:
    start = ensure_utc(data["start_date"])
    event = Event(
        user_id=caller.id,
        title=data["title"].strip(),
        description=data.get("description") or "",
        event_type=EventType(data.get("event_type") or EventType.WARRANTY).value,
        start_date=start,
        end_date=ensure_utc(data["end_date"]) if data.get("end_date") else start,
        all_day=bool(data.get("all_day", False)),
        location=data.get("location") or "",
        color=data.get("color") or DEFAULT_EVENT_COLOR,
        related_product_id=data.get("related_product_id"),
        related_warranty_id=data.get("related_warranty_id"),
        notifications_enabled=data.get("notifications_enabled", True),
        reminder_time=data.get("reminder_time") or DEFAULT_REMINDER_HOURS,
    )
    _validate_range(event)
    session.add(event)
    await session.commit()

    app_logger.info(f"Event created: {event.id} for user {caller.id}")
    return event


async def update_event(session: AsyncSession, caller: User, event_id: UUID, data: dict[str, Any]) -> Event:
    event = await _get_accessible_event(session, caller, event_id, "update")
    for key in EVENT_FIELDS:
        if key not in data:
            continue
        value = data[key]
        # Related references may be cleared explicitly; everything else ignores None
        if value is None and key not in ("related_product_id", "related_warranty_id"):
            continue
        if key in ("start_date", "end_date"):
            value = ensure_utc(value)
        if key == "event_type":
            value = EventType(value).value
        setattr(event, key, value)

    _validate_range(event)
    event.updated_at = datetime.now(timezone.utc)
    session.add(event)
    await session.commit()
    return event


async def delete_event(session: AsyncSession, caller: User, event_id: UUID) -> None:
    event = await _get_accessible_event(session, caller, event_id, "delete")
    await session.delete(event)
    await session.commit()
    app_logger.info(f"Event deleted: {event_id} by user {caller.id}")


async def events_by_month(session: AsyncSession, caller: User, year: int, month: int) -> List[Event]:
    """Events that start in, end in, or span the given month."""
    try:
        start, end = month_bounds(year, month)
    except ValueError:
        raise ValidationError("Invalid year or month")
    starts = col(Event.start_date)
    ends = col(Event.end_date)
    statement = (
        select(Event)
        .where(
            col(Event.user_id) == caller.id,
            or_(
                and_(starts >= start, starts <= end),
                and_(ends >= start, ends <= end),
                and_(starts <= start, ends >= end),
            ),
        )
        .order_by(starts)
    )
    result = await session.execute(statement)
    return list(result.scalars().all())
