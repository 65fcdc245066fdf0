"""
Tests for administrator operations.

Covers:
- one audit entry per mutation, with the expected details
- mutations still succeed when the audit write fails
- user deletion cascade and self-deletion guard
- dashboard statistics and persisted settings
"""

from datetime import datetime, timedelta, timezone
from pathlib import Path
from uuid import uuid4

import pytest

from conftest import NOW, stored_file, warranty_data
from warranty_api.models.user import User, UserRole
from warranty_api.models.warranty import Warranty
from warranty_api.services import admin_service, audit_log, event_service, file_storage, user_service, warranty_service
from warranty_api.services.audit_log import AuditLogFilter, query_logs, resource_history
from warranty_api.utils.errors import ConflictError, NotFoundError, ValidationError


async def _entries(session):
    return (await query_logs(session, AuditLogFilter(), limit=100)).entries


class TestUserAdministration:

    async def test_role_change_is_audited(self, session, admin_ctx, user):
        updated = await admin_service.update_user_role(session, admin_ctx, user.id, UserRole.ADMIN)

        assert updated.role == "admin"
        history = await resource_history(session, "user", user.id)
        assert len(history) == 1
        assert history[0].entry.action == "role_change"
        assert history[0].entry.details == {"oldRole": "user", "newRole": "admin"}
        assert history[0].entry.admin_id == admin_ctx.actor_id

    async def test_role_change_survives_audit_failure(self, session, admin_ctx, user, monkeypatch):
        async def broken(*args, **kwargs):
            raise RuntimeError("audit store unavailable")

        monkeypatch.setattr(audit_log, "_persist_entry", broken)

        updated = await admin_service.update_user_role(session, admin_ctx, user.id, UserRole.ADMIN)

        assert updated.role == "admin"
        assert (await session.get(User, user.id)).role == "admin"
        assert await _entries(session) == []

    async def test_cannot_delete_self(self, session, admin_ctx, admin):
        with pytest.raises(ValidationError):
            await admin_service.delete_user(session, admin_ctx, admin.id)

    async def test_delete_user_cascades(self, session, admin_ctx, user, product, test_settings):
        details = await warranty_service.create_warranty(
            session, user, warranty_data(product.id, NOW + timedelta(days=400)), NOW
        )
        document = stored_file(Path(test_settings.UPLOAD_DIR) / file_storage.DOCUMENTS_SUBDIR)
        await warranty_service.add_documents(session, user, details.warranty.id, [document], NOW)
        await event_service.create_event(session, user, {"title": "Reminder", "start_date": NOW})

        await admin_service.delete_user(session, admin_ctx, user.id)

        assert await session.get(User, user.id) is None
        assert await session.get(Warranty, details.warranty.id) is None
        assert not Path(document.path).exists()
        history = await resource_history(session, "user", user.id)
        assert history[0].entry.action == "delete"
        assert history[0].entry.details["email"] == "owner@example.com"
        assert history[0].entry.details["role"] == "user"

    async def test_delete_user_keeps_everything_when_commit_fails(
        self, session, admin_ctx, user, product, test_settings, monkeypatch
    ):
        details = await warranty_service.create_warranty(
            session, user, warranty_data(product.id, NOW + timedelta(days=400)), NOW
        )
        second = await warranty_service.create_warranty(
            session, user, warranty_data(product.id, NOW + timedelta(days=200)), NOW
        )
        document = stored_file(Path(test_settings.UPLOAD_DIR) / file_storage.DOCUMENTS_SUBDIR)
        await warranty_service.add_documents(session, user, details.warranty.id, [document], NOW)

        async def failing_commit():
            raise RuntimeError("database unavailable")

        monkeypatch.setattr(session, "commit", failing_commit)

        with pytest.raises(RuntimeError):
            await admin_service.delete_user(session, admin_ctx, user.id)

        assert await session.get(User, user.id) is not None
        assert await session.get(Warranty, details.warranty.id) is not None
        assert await session.get(Warranty, second.warranty.id) is not None
        assert Path(document.path).exists()
        assert await resource_history(session, "user", user.id) == []

    async def test_missing_user(self, session, admin_ctx):
        with pytest.raises(NotFoundError):
            await admin_service.update_user_role(session, admin_ctx, uuid4(), UserRole.ADMIN)
        assert await _entries(session) == []


class TestResourceAdministration:

    async def test_warranty_update_records_status_change(self, session, admin_ctx, user, product):
        details = await warranty_service.create_warranty(
            session, user, warranty_data(product.id, NOW + timedelta(days=400)), NOW
        )

        updated = await admin_service.update_warranty(
            session, admin_ctx, details.warranty.id,
            {"expiration_date": datetime(2023, 6, 1, tzinfo=timezone.utc), "status": "active"},
            NOW,
        )

        assert updated.warranty.status == "expired"
        assert updated.owner.email == "owner@example.com"
        entry = (await resource_history(session, "warranty", details.warranty.id))[0].entry
        assert entry.details == {"oldStatus": "active", "newStatus": "expired", "updatedFields": ["expiration_date"]}

    async def test_warranty_delete_is_audited(self, session, admin_ctx, user, product):
        details = await warranty_service.create_warranty(
            session, user, warranty_data(product.id, NOW + timedelta(days=400)), NOW
        )

        failed = await admin_service.delete_warranty(session, admin_ctx, details.warranty.id)

        assert failed == []
        entry = (await resource_history(session, "warranty", details.warranty.id))[0].entry
        assert entry.action == "delete"
        assert entry.details["product"] == str(product.id)
        assert entry.details["status"] == "active"

    async def test_product_update_and_guarded_delete(self, session, admin_ctx, user, product):
        await admin_service.update_product(session, admin_ctx, product.id, {"name": "Dishwasher Pro", "model": None})
        await warranty_service.create_warranty(
            session, user, warranty_data(product.id, NOW + timedelta(days=400)), NOW
        )

        with pytest.raises(ConflictError):
            await admin_service.delete_product(session, admin_ctx, product.id)

        history = await resource_history(session, "product", product.id)
        assert [r.entry.action for r in history] == ["update"]
        assert history[0].entry.details == {"updatedFields": ["name"]}

    async def test_product_delete_is_audited(self, session, admin_ctx, product):
        await admin_service.delete_product(session, admin_ctx, product.id)

        entry = (await resource_history(session, "product", product.id))[0].entry
        assert entry.details == {"name": "Dishwasher", "category": "Appliances"}


class TestListings:

    async def test_users_are_paginated_with_default_size(self, session, admin):
        for i in range(12):
            await user_service.register_user(session, f"User {i}", f"u{i}@example.com", "password123")

        users, pagination = await admin_service.list_users(session)

        assert len(users) == 10
        assert pagination.total == 13
        assert pagination.total_pages == 2

    async def test_warranties_include_owner(self, session, user, product):
        await warranty_service.create_warranty(
            session, user, warranty_data(product.id, NOW + timedelta(days=400)), NOW
        )

        warranties, pagination = await admin_service.list_warranties(session, limit=5)

        assert pagination.limit == 5
        assert warranties[0].owner.id == user.id


class TestDashboardAndSettings:

    async def test_dashboard_stats(self, session, admin, user, product):
        for expiration in (datetime(2023, 6, 1, tzinfo=timezone.utc), datetime(2024, 1, 20, tzinfo=timezone.utc)):
            await warranty_service.create_warranty(session, user, warranty_data(product.id, expiration), NOW)

        stats = await admin_service.dashboard_stats(session, NOW)

        assert stats["userStats"] == {"total": 2, "admin": 1, "regular": 1}
        assert stats["warrantyStats"] == {"total": 2, "active": 0, "expiring": 1, "expired": 1}
        assert stats["productStats"]["total"] == 1
        assert stats["productStats"]["categories"] == [{"name": "Appliances", "count": 1}]
        assert len(stats["monthlyData"]) == 12
        assert stats["monthlyData"][0] == {"month": "January", "count": 2}

    async def test_product_analytics_top_products(self, session, user, product):
        await warranty_service.create_warranty(
            session, user, warranty_data(product.id, NOW + timedelta(days=400)), NOW
        )

        analytics = await admin_service.product_analytics(session)

        assert analytics["totalProducts"] == 1
        assert analytics["topProducts"] == [{"id": str(product.id), "name": "Dishwasher", "warrantyCount": 1}]

    async def test_settings_defaults_and_partial_update(self, session, admin_ctx):
        defaults = await admin_service.get_settings(session)
        assert defaults["systemSettings"]["allowRegistration"] is True

        await admin_service.update_settings(session, admin_ctx, {"systemSettings": {"allowRegistration": False}})

        stored = await admin_service.get_settings(session)
        assert stored["systemSettings"]["allowRegistration"] is False
        assert stored["systemSettings"]["maxLoginAttempts"] == 5
        assert stored["notificationSettings"]["emailNotifications"] is True
        entries = await _entries(session)
        assert entries[0].entry.action == "settings_update"
        assert entries[0].entry.details == {"updatedSections": ["systemSettings"]}
