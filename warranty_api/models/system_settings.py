"""Administrator-editable system settings (single row)."""

from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import JSON, Column, DateTime
from sqlmodel import Field, SQLModel

SETTINGS_ROW_ID = 1

DEFAULT_SYSTEM_SETTINGS: dict = {
    "notificationSettings": {
        "emailNotifications": True,
        "pushNotifications": True,
        "warrantyExpiryAlerts": True,
        "systemAlerts": True,
    },
    "emailSettings": {
        "smtpHost": "",
        "smtpPort": "",
        "smtpUser": "",
        "fromEmail": "",
        "fromName": "",
    },
    "systemSettings": {
        "maintenanceMode": False,
        "allowRegistration": True,
        "maxLoginAttempts": 5,
        "sessionTimeout": 30,
    },
}


class SystemSettings(SQLModel, table=True):
    __tablename__ = "system_settings"

    id: int = Field(default=SETTINGS_ROW_ID, primary_key=True)
    data: dict = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    updated_by: UUID | None = None
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True))
    )
