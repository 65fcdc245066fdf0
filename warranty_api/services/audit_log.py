"""Audit trail for privileged (administrator) mutations.

Writes are best-effort: ``record_action`` never raises, and the entry is
persisted in its own session so a failed insert can neither roll back nor
expire the caller's already-committed unit of work. Reads propagate errors.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, List, Optional
from uuid import UUID

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, select

from warranty_api.config.logger import app_logger
from warranty_api.config.settings import settings
from warranty_api.models.audit_log import AuditAction, AuditLog, AuditResourceType
from warranty_api.models.user import User
from warranty_api.utils.clock import ensure_utc
from warranty_api.utils.errors import ValidationError
from warranty_api.utils.responses import PaginationMeta


@dataclass(frozen=True)
class RequestContext:
    """Who is acting, and from where."""

    actor_id: UUID
    actor_role: str
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

    @classmethod
    def from_request(cls, request: Request, user: User) -> "RequestContext":
        return cls(
            actor_id=user.id,
            actor_role=user.role,
            ip_address=request.client.host if request.client else None,
            user_agent=request.headers.get("user-agent"),
        )


@dataclass
class AuditLogFilter:
    """Optional, conjunctive filters for ``query_logs``."""

    admin_id: Optional[UUID] = None
    resource_type: Optional[AuditResourceType] = None
    action: Optional[AuditAction] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


@dataclass
class AuditLogRecord:
    entry: AuditLog
    admin_name: Optional[str] = None
    admin_email: Optional[str] = None


@dataclass
class AuditLogPage:
    entries: List[AuditLogRecord] = field(default_factory=list)
    pagination: Optional[PaginationMeta] = None


async def _persist_entry(session: AsyncSession, entry: AuditLog) -> None:
    async with AsyncSession(session.bind, expire_on_commit=False) as audit_session:
        audit_session.add(entry)
        await audit_session.commit()


async def record_action(
    session: AsyncSession,
    context: RequestContext,
    action: AuditAction | str,
    resource_type: AuditResourceType | str,
    resource_id: Optional[UUID | str] = None,
    details: Optional[dict[str, Any]] = None,
) -> Optional[AuditLog]:
    """Append one audit entry for a completed administrator mutation.

    Args:
        session: Session of the triggering operation; only its bind is reused
        context: Acting administrator and request origin
        action: One of ``AuditAction``
        resource_type: One of ``AuditResourceType``
        resource_id: Id of the affected resource, if any
        details: Structured description of the change (old/new values, ...)

    Returns:
        The stored entry, or None when recording failed. Callers may ignore
        the result; failures are logged here.
    """
    try:
        action = AuditAction(action)
        resource_type = AuditResourceType(resource_type)
        entry = AuditLog(
            admin_id=context.actor_id,
            action=action.value,
            resource_type=resource_type.value,
            resource_id=str(resource_id) if resource_id is not None else None,
            details=jsonable_encoder(details or {}),
            ip_address=context.ip_address,
            user_agent=context.user_agent,
            timestamp=datetime.now(timezone.utc),
        )
        await _persist_entry(session, entry)
    except Exception as e:
        app_logger.error(
            f"Failed to record admin action {action!s} on {resource_type!s}:{resource_id} "
            f"by {context.actor_id}: {type(e).__name__}: {e}"
        )
        return None

    app_logger.info(
        f"Audit: {entry.action} {entry.resource_type}:{entry.resource_id} by admin {entry.admin_id}"
    )
    return entry


def _filter_conditions(filters: AuditLogFilter) -> list:
    conditions = []
    if filters.admin_id is not None:
        conditions.append(col(AuditLog.admin_id) == filters.admin_id)
    if filters.resource_type is not None:
        conditions.append(col(AuditLog.resource_type) == AuditResourceType(filters.resource_type).value)
    if filters.action is not None:
        conditions.append(col(AuditLog.action) == AuditAction(filters.action).value)
    if filters.start_date is not None:
        conditions.append(col(AuditLog.timestamp) >= ensure_utc(filters.start_date))
    if filters.end_date is not None:
        conditions.append(col(AuditLog.timestamp) <= ensure_utc(filters.end_date))
    return conditions


async def query_logs(
    session: AsyncSession,
    filters: Optional[AuditLogFilter] = None,
    page: int = 1,
    limit: Optional[int] = None,
) -> AuditLogPage:
    """Filtered, paginated audit history, most recent first."""
    filters = filters or AuditLogFilter()
    limit = limit or settings.AUDIT_LOG_PAGE_SIZE
    page = max(page, 1)
    conditions = _filter_conditions(filters)

    total = (
        await session.execute(select(func.count()).select_from(AuditLog).where(*conditions))
    ).scalar_one()

    statement = (
        select(AuditLog, User.name, User.email)
        .outerjoin(User, col(User.id) == col(AuditLog.admin_id))
        .where(*conditions)
        .order_by(col(AuditLog.timestamp).desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    rows = (await session.execute(statement)).all()

    return AuditLogPage(
        entries=[AuditLogRecord(entry=row[0], admin_name=row[1], admin_email=row[2]) for row in rows],
        pagination=PaginationMeta.build(page=page, limit=limit, total=total),
    )


# Resource types whose ids are UUIDs; matched in canonical form
UUID_RESOURCE_TYPES = (AuditResourceType.USER, AuditResourceType.WARRANTY, AuditResourceType.PRODUCT)


def normalize_resource_id(resource_type: AuditResourceType, resource_id: UUID | str) -> str:
    if resource_type not in UUID_RESOURCE_TYPES:
        return str(resource_id)
    try:
        return str(UUID(str(resource_id)))
    except ValueError:
        raise ValidationError(f"Invalid {resource_type.value} id: {resource_id}")


async def resource_history(
    session: AsyncSession,
    resource_type: AuditResourceType | str,
    resource_id: UUID | str,
) -> List[AuditLogRecord]:
    """Every entry recorded against one resource, most recent first."""
    resource_type = AuditResourceType(resource_type)
    statement = (
        select(AuditLog, User.name, User.email)
        .outerjoin(User, col(User.id) == col(AuditLog.admin_id))
        .where(
            col(AuditLog.resource_type) == resource_type.value,
            col(AuditLog.resource_id) == normalize_resource_id(resource_type, resource_id),
        )
        .order_by(col(AuditLog.timestamp).desc())
    )
    rows = (await session.execute(statement)).all()
    return [AuditLogRecord(entry=row[0], admin_name=row[1], admin_email=row[2]) for row in rows]
