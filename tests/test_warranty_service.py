"""
Tests for owner-facing warranty operations.

Covers:
- status derived on create/update regardless of input
- ownership (foreign warranties look missing, admins see everything)
- deletion cascades to documents and their files
- expiring list and statistics relative to ``now``
- audit entries for administrator writes to other users' warranties
"""

from datetime import datetime, timedelta, timezone
from pathlib import Path
from uuid import uuid4

import pytest
from sqlmodel import col, select

from conftest import NOW, stored_file, warranty_data
from warranty_api.models.warranty import Warranty, WarrantyDocument, WarrantyStatus
from warranty_api.services import event_service, file_storage, warranty_service
from warranty_api.services.audit_log import AuditLogFilter, RequestContext, query_logs, resource_history
from warranty_api.utils.errors import NotFoundError, ValidationError

ONE_YEAR_OUT = NOW + timedelta(days=365)


@pytest.fixture
def documents_dir(test_settings):
    return Path(test_settings.UPLOAD_DIR) / file_storage.DOCUMENTS_SUBDIR


class TestCreateWarranty:

    async def test_supplied_status_is_ignored(self, session, user, product):
        data = warranty_data(product.id, ONE_YEAR_OUT, status="expired")

        details = await warranty_service.create_warranty(session, user, data, NOW)

        assert details.warranty.status == WarrantyStatus.ACTIVE.value
        stored = await session.get(Warranty, details.warranty.id)
        assert stored.status == "active"

    @pytest.mark.parametrize(
        "expiration_date, expected",
        [
            (datetime(2024, 1, 31, tzinfo=timezone.utc), "expiring"),
            (datetime(2024, 3, 1, tzinfo=timezone.utc), "active"),
            (datetime(2023, 12, 1, tzinfo=timezone.utc), "expired"),
        ],
    )
    async def test_status_from_expiration(self, session, user, product, expiration_date, expected):
        details = await warranty_service.create_warranty(
            session, user, warranty_data(product.id, expiration_date), NOW
        )
        assert details.warranty.status == expected

    async def test_expiration_before_purchase_rejected(self, session, user, product):
        data = warranty_data(product.id, datetime(2022, 1, 1, tzinfo=timezone.utc))

        with pytest.raises(ValidationError):
            await warranty_service.create_warranty(session, user, data, NOW)

    async def test_unknown_product_rejected(self, session, user):
        with pytest.raises(NotFoundError):
            await warranty_service.create_warranty(session, user, warranty_data(uuid4(), ONE_YEAR_OUT), NOW)

    async def test_details_include_product(self, session, user, product):
        details = await warranty_service.create_warranty(
            session, user, warranty_data(product.id, ONE_YEAR_OUT), NOW
        )
        assert details.product.name == "Dishwasher"
        assert details.documents == []


class TestUpdateWarranty:

    async def test_status_recomputed_on_update(self, session, user, product):
        details = await warranty_service.create_warranty(
            session, user, warranty_data(product.id, ONE_YEAR_OUT), NOW
        )

        updated = await warranty_service.update_warranty(
            session, user, details.warranty.id,
            {"expiration_date": datetime(2024, 1, 10, tzinfo=timezone.utc), "status": "active"},
            NOW,
        )

        assert updated.warranty.status == WarrantyStatus.EXPIRING.value

    async def test_later_write_refreshes_stale_status(self, session, user, product):
        details = await warranty_service.create_warranty(
            session, user, warranty_data(product.id, datetime(2024, 1, 10, tzinfo=timezone.utc)), NOW
        )
        assert details.warranty.status == "expiring"

        later = NOW + timedelta(days=20)
        updated = await warranty_service.update_warranty(
            session, user, details.warranty.id, {"notes": "checked"}, later
        )

        assert updated.warranty.status == "expired"
        assert updated.warranty.notes == "checked"

    async def test_other_users_warranty_is_not_found(self, session, user, other_user, product):
        details = await warranty_service.create_warranty(
            session, user, warranty_data(product.id, ONE_YEAR_OUT), NOW
        )

        with pytest.raises(NotFoundError):
            await warranty_service.update_warranty(session, other_user, details.warranty.id, {"notes": "x"}, NOW)
        with pytest.raises(NotFoundError):
            await warranty_service.get_warranty(session, other_user, details.warranty.id)

    async def test_admin_can_access_any_warranty(self, session, user, admin, product):
        details = await warranty_service.create_warranty(
            session, user, warranty_data(product.id, ONE_YEAR_OUT), NOW
        )

        fetched = await warranty_service.get_warranty(session, admin, details.warranty.id)

        assert fetched.warranty.user_id == user.id


class TestDeleteWarranty:

    async def test_removes_documents_and_files(self, session, user, product, documents_dir):
        details = await warranty_service.create_warranty(
            session, user, warranty_data(product.id, ONE_YEAR_OUT), NOW
        )
        files = [stored_file(documents_dir, "a.pdf"), stored_file(documents_dir, "b.pdf")]
        await warranty_service.add_documents(session, user, details.warranty.id, files, NOW)

        failed = await warranty_service.delete_warranty(session, user, details.warranty.id)

        assert failed == []
        assert not any(Path(f.path).exists() for f in files)
        with pytest.raises(NotFoundError):
            await warranty_service.get_warranty(session, user, details.warranty.id)
        remaining = (await session.execute(
            select(WarrantyDocument).where(col(WarrantyDocument.warranty_id) == details.warranty.id)
        )).scalars().all()
        assert remaining == []

    async def test_reports_files_that_could_not_be_removed(self, session, user, product, documents_dir):
        details = await warranty_service.create_warranty(
            session, user, warranty_data(product.id, ONE_YEAR_OUT), NOW
        )
        present = stored_file(documents_dir, "present.pdf")
        missing = stored_file(documents_dir, "missing.pdf", write=False)
        await warranty_service.add_documents(session, user, details.warranty.id, [present, missing], NOW)

        failed = await warranty_service.delete_warranty(session, user, details.warranty.id)

        assert failed == [missing.path]
        assert not Path(present.path).exists()
        with pytest.raises(NotFoundError):
            await warranty_service.get_warranty(session, user, details.warranty.id)

    async def test_clears_event_references(self, session, user, product):
        details = await warranty_service.create_warranty(
            session, user, warranty_data(product.id, ONE_YEAR_OUT), NOW
        )
        event = await event_service.create_event(session, user, {
            "title": "Warranty ends",
            "start_date": ONE_YEAR_OUT,
            "related_warranty_id": details.warranty.id,
        })

        await warranty_service.delete_warranty(session, user, details.warranty.id)

        await session.refresh(event)
        assert event.related_warranty_id is None


class TestDocuments:

    async def test_add_to_missing_warranty_removes_files(self, session, user, documents_dir):
        stored = stored_file(documents_dir, "orphan.pdf")

        with pytest.raises(NotFoundError):
            await warranty_service.add_documents(session, user, uuid4(), [stored], NOW)

        assert not Path(stored.path).exists()

    async def test_delete_single_document(self, session, user, product, documents_dir):
        details = await warranty_service.create_warranty(
            session, user, warranty_data(product.id, ONE_YEAR_OUT), NOW
        )
        stored = stored_file(documents_dir, "receipt.pdf")
        with_docs = await warranty_service.add_documents(session, user, details.warranty.id, [stored], NOW)
        document = with_docs.documents[0]

        removed = await warranty_service.delete_document(session, user, details.warranty.id, document.id, NOW)

        assert removed is True
        assert not Path(stored.path).exists()
        refreshed = await warranty_service.get_warranty(session, user, details.warranty.id)
        assert refreshed.documents == []

    async def test_document_of_another_warranty_is_not_found(self, session, user, product, documents_dir):
        first = await warranty_service.create_warranty(session, user, warranty_data(product.id, ONE_YEAR_OUT), NOW)
        second = await warranty_service.create_warranty(session, user, warranty_data(product.id, ONE_YEAR_OUT), NOW)
        with_docs = await warranty_service.add_documents(
            session, user, first.warranty.id, [stored_file(documents_dir)], NOW
        )

        with pytest.raises(NotFoundError):
            await warranty_service.delete_document(
                session, user, second.warranty.id, with_docs.documents[0].id, NOW
            )


class TestAdminActingOnWarranties:

    @pytest.fixture
    async def owned(self, session, user, product):
        return await warranty_service.create_warranty(
            session, user, warranty_data(product.id, ONE_YEAR_OUT), NOW
        )

    async def test_update_of_foreign_warranty_is_audited(self, session, admin, admin_ctx, owned):
        expired = datetime(2023, 6, 1, tzinfo=timezone.utc)

        await warranty_service.update_warranty(
            session, admin, owned.warranty.id, {"expiration_date": expired}, NOW, admin_ctx
        )

        history = await resource_history(session, "warranty", owned.warranty.id)
        assert len(history) == 1
        assert history[0].entry.action == "update"
        assert history[0].entry.admin_id == admin.id
        assert history[0].entry.details == {
            "oldStatus": "active", "newStatus": "expired", "updatedFields": ["expiration_date"],
        }

    async def test_document_changes_and_delete_are_audited(self, session, admin, admin_ctx, owned, documents_dir):
        with_docs = await warranty_service.add_documents(
            session, admin, owned.warranty.id, [stored_file(documents_dir)], NOW, admin_ctx
        )
        await warranty_service.delete_document(
            session, admin, owned.warranty.id, with_docs.documents[0].id, NOW, admin_ctx
        )
        await warranty_service.delete_warranty(session, admin, owned.warranty.id, admin_ctx)

        history = await resource_history(session, "warranty", owned.warranty.id)
        details = sorted((r.entry.action, sorted(r.entry.details)) for r in history)
        assert details == [
            ("delete", ["product", "status", "unremovedFiles"]),
            ("update", ["documentRemoved", "fileRemoved"]),
            ("update", ["documentsAdded"]),
        ]

    async def test_owner_and_own_admin_writes_are_not_audited(self, session, user, admin, admin_ctx, owned, product):
        owner_ctx = RequestContext(actor_id=user.id, actor_role=user.role)
        await warranty_service.update_warranty(session, user, owned.warranty.id, {"notes": "x"}, NOW, owner_ctx)

        own = await warranty_service.create_warranty(session, admin, warranty_data(product.id, ONE_YEAR_OUT), NOW)
        await warranty_service.delete_warranty(session, admin, own.warranty.id, admin_ctx)

        assert (await query_logs(session, AuditLogFilter(resource_type="warranty"))).entries == []


class TestExpiringAndStats:

    @pytest.fixture
    async def spread(self, session, user, other_user, product):
        for expiration in (
            datetime(2023, 6, 1, tzinfo=timezone.utc),
            datetime(2024, 1, 5, tzinfo=timezone.utc),
            datetime(2024, 1, 25, tzinfo=timezone.utc),
            datetime(2025, 1, 1, tzinfo=timezone.utc),
        ):
            await warranty_service.create_warranty(session, user, warranty_data(product.id, expiration), NOW)
        await warranty_service.create_warranty(
            session, other_user, warranty_data(product.id, datetime(2024, 1, 6, tzinfo=timezone.utc)), NOW
        )

    async def test_expiring_is_owner_scoped_and_sorted(self, session, user, spread):
        expiring = await warranty_service.list_expiring(session, user, NOW)

        dates = [d.warranty.expiration_date.replace(tzinfo=None) for d in expiring]
        assert dates == [datetime(2024, 1, 5), datetime(2024, 1, 25)]

    async def test_stats_use_now_not_stored_status(self, session, user, spread):
        stats = await warranty_service.warranty_stats(session, user, NOW)
        assert (stats.total, stats.active, stats.expiring, stats.expired) == (4, 1, 2, 1)

        later = await warranty_service.warranty_stats(session, user, datetime(2024, 1, 10, tzinfo=timezone.utc))
        assert (later.active, later.expiring, later.expired) == (1, 1, 2)
