"""Audit log model (WORM - Write Once Read Many)."""

from datetime import datetime, timezone
from enum import Enum
from uuid import UUID, uuid4

from sqlalchemy import JSON, Column, DateTime, Index
from sqlmodel import Field, SQLModel


class AuditAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    STATUS_CHANGE = "status_change"
    ROLE_CHANGE = "role_change"
    SETTINGS_UPDATE = "settings_update"
    SYSTEM_CONFIG = "system_config"


class AuditResourceType(str, Enum):
    USER = "user"
    WARRANTY = "warranty"
    PRODUCT = "product"
    SETTINGS = "settings"
    SYSTEM = "system"


class AuditLog(SQLModel, table=True):
    """Immutable trail of administrator actions.

    Append-only: the application never updates or deletes rows. ``admin_id``
    is deliberately not a foreign key so that history survives deletion of
    the administrator account. ``resource_id`` is polymorphic; its meaning
    depends on ``resource_type``.
    """

    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("ix_audit_logs_admin_id_timestamp", "admin_id", "timestamp"),
        Index("ix_audit_logs_resource", "resource_type", "resource_id"),
        Index("ix_audit_logs_action_timestamp", "action", "timestamp"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    admin_id: UUID
    action: str = Field(max_length=50)
    resource_type: str = Field(max_length=50)
    resource_id: str | None = Field(default=None, max_length=64)
    # Generic JSON so this model works on both Postgres and SQLite
    details: dict = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    ip_address: str | None = Field(default=None, max_length=64)
    user_agent: str | None = Field(default=None, max_length=512)
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
