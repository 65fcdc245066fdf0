"""
Tests for the administrator audit trail.

Covers:
- best-effort writes (a failing insert never raises)
- conjunctive filters, descending order and pagination
- per-resource history
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from warranty_api.config.settings import settings
from warranty_api.models.audit_log import AuditAction, AuditLog, AuditResourceType
from warranty_api.services import audit_log
from warranty_api.services.audit_log import AuditLogFilter, RequestContext, query_logs, record_action, resource_history
from warranty_api.utils.clock import ensure_utc

BASE = datetime(2024, 2, 1, tzinfo=timezone.utc)


def _entry(admin_id, action, resource_type, timestamp, resource_id=None):
    return AuditLog(
        admin_id=admin_id,
        action=action.value,
        resource_type=resource_type.value,
        resource_id=resource_id or str(uuid4()),
        details={},
        timestamp=timestamp,
    )


class TestRecordAction:

    async def test_records_entry(self, session, admin_ctx, admin):
        target = uuid4()
        entry = await record_action(
            session, admin_ctx, AuditAction.ROLE_CHANGE, AuditResourceType.USER, target,
            {"oldRole": "user", "newRole": "admin"},
        )

        assert entry is not None
        page = await query_logs(session)
        assert page.pagination.total == 1
        record = page.entries[0]
        assert record.entry.resource_id == str(target)
        assert record.entry.details == {"oldRole": "user", "newRole": "admin"}
        assert record.entry.ip_address == "127.0.0.1"
        assert record.admin_email == admin.email

    async def test_details_are_json_encoded(self, session, admin_ctx):
        product_id = uuid4()
        entry = await record_action(
            session, admin_ctx, AuditAction.DELETE, AuditResourceType.WARRANTY, uuid4(),
            {"product": product_id, "when": BASE},
        )
        assert entry.details["product"] == str(product_id)
        assert isinstance(entry.details["when"], str)

    async def test_persistence_failure_does_not_raise(self, session, admin_ctx, monkeypatch):
        async def broken(*args, **kwargs):
            raise RuntimeError("database is down")

        monkeypatch.setattr(audit_log, "_persist_entry", broken)

        result = await record_action(session, admin_ctx, AuditAction.DELETE, AuditResourceType.PRODUCT, uuid4())

        assert result is None

    async def test_invalid_action_does_not_raise(self, session, admin_ctx):
        result = await record_action(session, admin_ctx, "explode", AuditResourceType.PRODUCT, uuid4())
        assert result is None
        assert (await query_logs(session)).pagination.total == 0


class TestQueryLogs:

    @pytest.fixture
    async def populated(self, session, admin):
        other_admin = uuid4()
        for i in range(25):
            session.add(_entry(admin.id, AuditAction.DELETE, AuditResourceType.WARRANTY, BASE + timedelta(hours=i)))
        # Noise: wrong action, wrong resource type, outside the date range
        session.add(_entry(admin.id, AuditAction.UPDATE, AuditResourceType.WARRANTY, BASE + timedelta(hours=1)))
        session.add(_entry(other_admin, AuditAction.DELETE, AuditResourceType.PRODUCT, BASE + timedelta(hours=2)))
        session.add(_entry(admin.id, AuditAction.DELETE, AuditResourceType.WARRANTY, BASE - timedelta(days=3)))
        session.add(_entry(admin.id, AuditAction.DELETE, AuditResourceType.WARRANTY, BASE + timedelta(days=30)))
        await session.commit()
        return admin

    def _filters(self):
        return AuditLogFilter(
            resource_type=AuditResourceType.WARRANTY,
            action=AuditAction.DELETE,
            start_date=BASE,
            end_date=BASE + timedelta(days=2),
        )

    async def test_filters_and_paginates(self, session, populated):
        page = await query_logs(session, self._filters(), page=1, limit=10)

        assert len(page.entries) == 10
        assert page.pagination.total == 25
        assert page.pagination.total_pages == 3
        assert page.pagination.has_next is True
        assert page.pagination.has_prev is False
        for record in page.entries:
            assert record.entry.action == "delete"
            assert record.entry.resource_type == "warranty"

    async def test_last_page(self, session, populated):
        page = await query_logs(session, self._filters(), page=3, limit=10)

        assert len(page.entries) == 5
        assert page.pagination.has_next is False
        assert page.pagination.has_prev is True

    async def test_descending_timestamps(self, session, populated):
        page = await query_logs(session, self._filters(), page=1, limit=10)
        timestamps = [ensure_utc(r.entry.timestamp) for r in page.entries]

        assert timestamps == sorted(timestamps, reverse=True)
        assert timestamps[0] == BASE + timedelta(hours=24)

    async def test_inclusive_date_bounds(self, session, populated):
        filters = AuditLogFilter(start_date=BASE, end_date=BASE)
        page = await query_logs(session, filters)
        assert page.pagination.total == 1

    async def test_admin_filter(self, session, populated):
        page = await query_logs(session, AuditLogFilter(admin_id=populated.id), limit=100)
        assert page.pagination.total == 28
        assert all(r.admin_name == populated.name for r in page.entries)

    async def test_default_page_size(self, session, populated):
        page = await query_logs(session)
        assert page.pagination.limit == settings.AUDIT_LOG_PAGE_SIZE
        assert len(page.entries) == settings.AUDIT_LOG_PAGE_SIZE


class TestResourceHistory:

    async def test_history_is_most_recent_first(self, session, admin):
        resource_id = str(uuid4())
        for hours, action in [(0, AuditAction.CREATE), (2, AuditAction.DELETE), (1, AuditAction.UPDATE)]:
            session.add(_entry(admin.id, action, AuditResourceType.PRODUCT, BASE + timedelta(hours=hours), resource_id))
        session.add(_entry(admin.id, AuditAction.UPDATE, AuditResourceType.PRODUCT, BASE))
        await session.commit()

        history = await resource_history(session, AuditResourceType.PRODUCT, resource_id)

        assert [r.entry.action for r in history] == ["delete", "update", "create"]

    async def test_history_survives_admin_deletion(self, session):
        ghost = uuid4()
        resource_id = str(uuid4())
        session.add(_entry(ghost, AuditAction.DELETE, AuditResourceType.USER, BASE, resource_id))
        await session.commit()

        history = await resource_history(session, "user", resource_id)

        assert len(history) == 1
        assert history[0].admin_name is None
        assert history[0].entry.admin_id == ghost
