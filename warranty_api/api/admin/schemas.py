"""Administrator request and response schemas."""

from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from warranty_api.api.events.schemas import EventResponse
from warranty_api.api.warranties.schemas import WarrantyResponse
from warranty_api.models.user import UserRole
from warranty_api.services.audit_log import AuditLogRecord
from warranty_api.utils.responses import UTCDateTime


class RoleUpdateRequest(BaseModel):
    role: UserRole = Field(..., description="New role for the account")


class SettingsUpdateRequest(BaseModel):
    """Partial settings update. Only the supplied sections (and keys) change."""

    notificationSettings: Optional[Dict[str, Any]] = None
    emailSettings: Optional[Dict[str, Any]] = None
    systemSettings: Optional[Dict[str, Any]] = None

    model_config = {"json_schema_extra": {"example": {
        "systemSettings": {"allowRegistration": False}
    }}}

    def sections(self) -> Dict[str, Dict[str, Any]]:
        return {k: v for k, v in self.model_dump().items() if v is not None}


class AuditAdmin(BaseModel):
    id: UUID
    name: Optional[str] = None
    email: Optional[str] = None


class AuditLogResponse(BaseModel):
    id: UUID
    admin: AuditAdmin
    action: str
    resource_type: str
    resource_id: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    timestamp: UTCDateTime

    @classmethod
    def from_record(cls, record: AuditLogRecord) -> "AuditLogResponse":
        entry = record.entry
        return cls(
            id=entry.id,
            admin=AuditAdmin(id=entry.admin_id, name=record.admin_name, email=record.admin_email),
            action=entry.action,
            resource_type=entry.resource_type,
            resource_id=entry.resource_id,
            details=entry.details or {},
            ip_address=entry.ip_address,
            user_agent=entry.user_agent,
            timestamp=entry.timestamp,
        )


class UserActivityResponse(BaseModel):
    recentWarranties: List[WarrantyResponse]
    recentEvents: List[EventResponse]


class DeletedResponse(BaseModel):
    id: UUID
    unremoved_files: List[str] = Field(default_factory=list)
