"""Calendar event API routes."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from warranty_api.config.logger import app_logger
from warranty_api.db.db import get_session
from warranty_api.models.user import User
from warranty_api.services import event_service
from warranty_api.utils.auth import get_current_user
from warranty_api.utils.errors import ServiceError, to_http_exception
from warranty_api.utils.responses import SuccessResponse, success_response
from warranty_api.api.events.schemas import EventCreate, EventResponse, EventUpdate

router = APIRouter(prefix="/v1/events", tags=["events"])


@router.get("", response_model=SuccessResponse[List[EventResponse]])
async def list_events(
    start_date: Optional[datetime] = Query(default=None, alias="startDate"),
    end_date: Optional[datetime] = Query(default=None, alias="endDate"),
    event_type: Optional[str] = Query(default=None, alias="eventType"),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """List the caller's events.

    The date range applies only when both ``startDate`` and ``endDate`` are given.
    """
    try:
        events = await event_service.list_events(
            session, user, start_date=start_date, end_date=end_date, event_type=event_type
        )
        return success_response(
            data=[EventResponse.from_event(e) for e in events],
            message=f"Retrieved {len(events)} events"
        )

    except Exception as e:
        app_logger.error(f"Failed to list events for user {user.id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to list events: {str(e)}"
        )


@router.get("/month/{year}/{month}", response_model=SuccessResponse[List[EventResponse]])
async def events_by_month(
    year: int,
    month: int,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    try:
        events = await event_service.events_by_month(session, user, year, month)
        return success_response(
            data=[EventResponse.from_event(e) for e in events],
            message=f"Retrieved {len(events)} events"
        )

    except ServiceError as e:
        raise to_http_exception(e)


@router.get("/{event_id}", response_model=SuccessResponse[EventResponse])
async def get_event(
    event_id: UUID,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    try:
        event = await event_service.get_event(session, user, event_id)
        return success_response(data=EventResponse.from_event(event), message="Event retrieved successfully")

    except ServiceError as e:
        raise to_http_exception(e)


@router.post("", response_model=SuccessResponse[EventResponse], status_code=status.HTTP_201_CREATED)
async def create_event(
    request: EventCreate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    try:
        event = await event_service.create_event(session, user, request.to_service_data())
        return success_response(data=EventResponse.from_event(event), message="Event created successfully")

    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        app_logger.error(f"Failed to create event for user {user.id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create event: {str(e)}"
        )


@router.put("/{event_id}", response_model=SuccessResponse[EventResponse])
async def update_event(
    event_id: UUID,
    request: EventUpdate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    try:
        event = await event_service.update_event(session, user, event_id, request.to_service_data())
        return success_response(data=EventResponse.from_event(event), message="Event updated successfully")

    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        app_logger.error(f"Failed to update event {event_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update event: {str(e)}"
        )


@router.delete("/{event_id}", response_model=SuccessResponse[dict])
async def delete_event(
    event_id: UUID,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    try:
        await event_service.delete_event(session, user, event_id)
        return success_response(data={"id": str(event_id)}, message="Event deleted successfully")

    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        app_logger.error(f"Failed to delete event {event_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to delete event: {str(e)}"
        )
