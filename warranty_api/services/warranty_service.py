"""Warranty operations for owners (and administrators acting as owners).

Every path that commits a warranty ends with ``apply_lifecycle`` so the
stored status always matches the expiration date at write time. Writes an
administrator makes to another user's warranty are recorded in the audit
log when the route passes its ``RequestContext``.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import delete, func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, select

from warranty_api.config.logger import app_logger
from warranty_api.models.audit_log import AuditAction, AuditResourceType
from warranty_api.models.event import Event
from warranty_api.models.product import Product
from warranty_api.models.user import User, UserRole
from warranty_api.models.warranty import Warranty, WarrantyDocument
from warranty_api.services import file_storage
from warranty_api.services.audit_log import RequestContext, record_action
from warranty_api.services.file_storage import StoredFile
from warranty_api.services.warranty_lifecycle import apply_lifecycle, expiring_window
from warranty_api.utils.clock import ensure_utc
from warranty_api.utils.errors import NotFoundError, ValidationError

# Caller-editable fields. ``status`` is intentionally absent.
WARRANTY_FIELDS = (
    "product_id",
    "purchase_date",
    "expiration_date",
    "warranty_provider",
    "warranty_number",
    "coverage_details",
    "notes",
)


@dataclass
class WarrantyDetails:
    warranty: Warranty
    product: Optional[Product] = None
    owner: Optional[User] = None
    documents: List[WarrantyDocument] = field(default_factory=list)


@dataclass
class WarrantyStats:
    total: int = 0
    active: int = 0
    expiring: int = 0
    expired: int = 0


def can_access(warranty: Warranty, caller: User) -> bool:
    return warranty.user_id == caller.id or caller.is_admin


async def load_details(
    session: AsyncSession,
    warranties: Sequence[Warranty],
    include_owner: bool = False,
) -> List[WarrantyDetails]:
    """Attach product, documents (and optionally owner) to each warranty."""
    if not warranties:
        return []

    product_ids = {w.product_id for w in warranties}
    products = {
        p.id: p
        for p in (
            await session.execute(select(Product).where(col(Product.id).in_(product_ids)))
        ).scalars()
    }

    documents: Dict[UUID, List[WarrantyDocument]] = {}
    doc_rows = (
        await session.execute(
            select(WarrantyDocument)
            .where(col(WarrantyDocument.warranty_id).in_([w.id for w in warranties]))
            .order_by(col(WarrantyDocument.uploaded_at))
        )
    ).scalars()
    for doc in doc_rows:
        documents.setdefault(doc.warranty_id, []).append(doc)

    owners: Dict[UUID, User] = {}
    if include_owner:
        owner_ids = {w.user_id for w in warranties}
        owners = {
            u.id: u
            for u in (await session.execute(select(User).where(col(User.id).in_(owner_ids)))).scalars()
        }

    return [
        WarrantyDetails(
            warranty=w,
            product=products.get(w.product_id),
            owner=owners.get(w.user_id),
            documents=documents.get(w.id, []),
        )
        for w in warranties
    ]


async def get_owned_warranty(session: AsyncSession, caller: User, warranty_id: UUID) -> Warranty:
    """Fetch a warranty the caller may act on.

    Foreign warranties are reported as not found rather than forbidden.
    """
    warranty = await session.get(Warranty, warranty_id)
    if warranty is None or not can_access(warranty, caller):
        raise NotFoundError("Warranty not found")
    return warranty


def _validate_dates(warranty: Warranty) -> None:
    if ensure_utc(warranty.expiration_date) < ensure_utc(warranty.purchase_date):
        raise ValidationError("Expiration date must be on or after the purchase date")


async def _ensure_product_exists(session: AsyncSession, product_id: UUID) -> None:
    if await session.get(Product, product_id) is None:
        raise NotFoundError("Product not found")


async def apply_updates(
    session: AsyncSession,
    warranty: Warranty,
    data: dict[str, Any],
    now: datetime,
) -> List[str]:
    """Apply caller updates, then recompute status. Does not commit.

    Returns the names of the fields that were supplied.
    """
    updated_fields = []
    for key in WARRANTY_FIELDS:
        if key not in data or data[key] is None:
            continue
        value = data[key]
        if key == "product_id" and value != warranty.product_id:
            await _ensure_product_exists(session, value)
        if key in ("purchase_date", "expiration_date"):
            value = ensure_utc(value)
        setattr(warranty, key, value)
        updated_fields.append(key)

    _validate_dates(warranty)
    apply_lifecycle(warranty, now)
    return updated_fields


async def list_warranties(session: AsyncSession, caller: User) -> List[WarrantyDetails]:
    result = await session.execute(
        select(Warranty)
        .where(col(Warranty.user_id) == caller.id)
        .order_by(col(Warranty.created_at).desc())
    )
    return await load_details(session, list(result.scalars().all()))


async def list_expiring(session: AsyncSession, caller: User, now: datetime) -> List[WarrantyDetails]:
    """Owner's warranties expiring within the next 30 days (inclusive)."""
    start, end = expiring_window(now)
    result = await session.execute(
        select(Warranty)
        .where(
            col(Warranty.user_id) == caller.id,
            col(Warranty.expiration_date) >= start,
            col(Warranty.expiration_date) <= end,
        )
        .order_by(col(Warranty.expiration_date))
    )
    return await load_details(session, list(result.scalars().all()))


async def warranty_stats(session: AsyncSession, caller: User, now: datetime) -> WarrantyStats:
    """Counts derived from expiration dates relative to ``now``, not stored status."""
    start, end = expiring_window(now)
    owned = col(Warranty.user_id) == caller.id
    expiration = col(Warranty.expiration_date)

    async def count(*conditions) -> int:
        result = await session.execute(
            select(func.count()).select_from(Warranty).where(owned, *conditions)
        )
        return result.scalar_one()

    return WarrantyStats(
        total=await count(),
        active=await count(expiration > end),
        expiring=await count(expiration >= start, expiration <= end),
        expired=await count(expiration < start),
    )


async def get_warranty(session: AsyncSession, caller: User, warranty_id: UUID) -> WarrantyDetails:
    warranty = await get_owned_warranty(session, caller, warranty_id)
    return (await load_details(session, [warranty]))[0]


async def create_warranty(
    session: AsyncSession,
    caller: User,
    data: dict[str, Any],
    now: datetime,
) -> WarrantyDetails:
    """Create a warranty owned by ``caller``. Any supplied ``status`` is ignored."""
    await _ensure_product_exists(session, data["product_id"])

    warranty = Warranty(
        user_id=caller.id,
        product_id=data["product_id"],
        purchase_date=ensure_utc(data["purchase_date"]),
        expiration_date=ensure_utc(data["expiration_date"]),
        warranty_provider=data["warranty_provider"],
        warranty_number=data["warranty_number"],
        coverage_details=data["coverage_details"],
        notes=data.get("notes") or "",
        created_at=ensure_utc(now),
    )
    _validate_dates(warranty)
    apply_lifecycle(warranty, now)

    session.add(warranty)
    await session.commit()

    app_logger.info(f"Warranty created: {warranty.id} for user {caller.id} (status={warranty.status})")
    return (await load_details(session, [warranty]))[0]


async def _audit_foreign_write(
    session: AsyncSession,
    ctx: Optional[RequestContext],
    owner_id: UUID,
    action: AuditAction,
    warranty_id: UUID,
    details: dict[str, Any],
) -> None:
    """Record an administrator's write to another user's warranty."""
    if ctx is None or ctx.actor_role != UserRole.ADMIN.value or owner_id == ctx.actor_id:
        return
    await record_action(session, ctx, action, AuditResourceType.WARRANTY, warranty_id, details)


async def update_warranty(
    session: AsyncSession,
    caller: User,
    warranty_id: UUID,
    data: dict[str, Any],
    now: datetime,
    ctx: Optional[RequestContext] = None,
) -> WarrantyDetails:
    warranty = await get_owned_warranty(session, caller, warranty_id)
    old_status = warranty.status
    updated_fields = await apply_updates(session, warranty, data, now)
    session.add(warranty)
    await session.commit()

    app_logger.info(f"Warranty updated: {warranty.id} (status={warranty.status})")
    await _audit_foreign_write(
        session, ctx, warranty.user_id, AuditAction.UPDATE, warranty.id,
        {"oldStatus": old_status, "newStatus": warranty.status, "updatedFields": updated_fields},
    )
    return (await load_details(session, [warranty]))[0]


async def stage_delete(session: AsyncSession, warranty: Warranty) -> List[str]:
    """Stage deletion of a warranty and its document metadata. Does not commit.

    Returns the paths of the document files to remove once the caller commits.
    """
    documents = (
        await session.execute(
            select(WarrantyDocument).where(col(WarrantyDocument.warranty_id) == warranty.id)
        )
    ).scalars().all()
    paths = [doc.path for doc in documents]

    await session.execute(
        delete(WarrantyDocument).where(col(WarrantyDocument.warranty_id) == warranty.id)
    )
    await session.execute(
        update(Event)
        .where(col(Event.related_warranty_id) == warranty.id)
        .values(related_warranty_id=None)
    )
    await session.delete(warranty)
    await session.flush()
    return paths


def remove_document_files(paths: Sequence[str]) -> List[str]:
    """Remove committed-away document files. Returns the paths that remain."""
    return [path for path in paths if not file_storage.remove_file(path)]


async def delete_with_documents(session: AsyncSession, warranty: Warranty) -> List[str]:
    """Delete a warranty, its document metadata and backing files.

    Files are removed only after the commit succeeds. Returns the paths that
    could not be removed.
    """
    paths = await stage_delete(session, warranty)
    await session.commit()

    failed = remove_document_files(paths)
    if failed:
        app_logger.warning(f"Warranty {warranty.id} deleted; {len(failed)} document file(s) not removed")
    return failed


async def delete_warranty(
    session: AsyncSession,
    caller: User,
    warranty_id: UUID,
    ctx: Optional[RequestContext] = None,
) -> List[str]:
    warranty = await get_owned_warranty(session, caller, warranty_id)
    owner_id, product_id, status = warranty.user_id, warranty.product_id, warranty.status
    failed = await delete_with_documents(session, warranty)
    app_logger.info(f"Warranty deleted: {warranty_id} by user {caller.id}")

    await _audit_foreign_write(
        session, ctx, owner_id, AuditAction.DELETE, warranty_id,
        {"product": product_id, "status": status, "unremovedFiles": failed},
    )
    return failed


async def add_documents(
    session: AsyncSession,
    caller: User,
    warranty_id: UUID,
    stored_files: Sequence[StoredFile],
    now: datetime,
    ctx: Optional[RequestContext] = None,
) -> WarrantyDetails:
    """Attach already-stored files. The files are removed if the warranty is missing."""
    try:
        warranty = await get_owned_warranty(session, caller, warranty_id)
    except NotFoundError:
        for stored in stored_files:
            file_storage.remove_file(stored.path)
        raise

    for stored in stored_files:
        session.add(
            WarrantyDocument(
                warranty_id=warranty.id,
                filename=stored.filename,
                original_name=stored.original_name,
                path=stored.path,
                mimetype=stored.mimetype,
                size=stored.size,
                uploaded_at=ensure_utc(now),
            )
        )
    apply_lifecycle(warranty, now)
    session.add(warranty)
    await session.commit()

    app_logger.info(f"{len(stored_files)} document(s) added to warranty {warranty.id}")
    await _audit_foreign_write(
        session, ctx, warranty.user_id, AuditAction.UPDATE, warranty.id,
        {"documentsAdded": [stored.original_name for stored in stored_files]},
    )
    return (await load_details(session, [warranty]))[0]


async def delete_document(
    session: AsyncSession,
    caller: User,
    warranty_id: UUID,
    document_id: UUID,
    now: datetime,
    ctx: Optional[RequestContext] = None,
) -> bool:
    """Remove one document. Returns False when the backing file could not be deleted."""
    warranty = await get_owned_warranty(session, caller, warranty_id)
    document = await session.get(WarrantyDocument, document_id)
    if document is None or document.warranty_id != warranty.id:
        raise NotFoundError("Document not found")

    path, original_name = document.path, document.original_name
    await session.delete(document)
    apply_lifecycle(warranty, now)
    session.add(warranty)
    await session.commit()

    removed = file_storage.remove_file(path)
    await _audit_foreign_write(
        session, ctx, warranty.user_id, AuditAction.UPDATE, warranty.id,
        {"documentRemoved": original_name, "fileRemoved": removed},
    )
    return removed
