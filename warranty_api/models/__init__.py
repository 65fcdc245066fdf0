"""Models module - imports all models for SQLModel registration."""

# Import all models so SQLModel can register them
from warranty_api.models.user import User, UserRole
from warranty_api.models.product import Product, ProductCategory
from warranty_api.models.warranty import Warranty, WarrantyDocument, WarrantyStatus
from warranty_api.models.event import Event, EventType
from warranty_api.models.audit_log import AuditAction, AuditLog, AuditResourceType
from warranty_api.models.system_settings import SystemSettings

__all__ = [
    "User",
    "UserRole",
    "Product",
    "ProductCategory",
    "Warranty",
    "WarrantyDocument",
    "WarrantyStatus",
    "Event",
    "EventType",
    "AuditAction",
    "AuditLog",
    "AuditResourceType",
    "SystemSettings",
]
