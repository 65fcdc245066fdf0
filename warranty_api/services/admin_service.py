"""Administrator operations: listings, privileged mutations, analytics.

Each mutation commits first and then writes exactly one audit entry through
``audit_log.record_action``. The audit write is best-effort and never
changes the outcome of the mutation.
"""

import calendar
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, select

from warranty_api.config.logger import app_logger, log_performance
from warranty_api.config.settings import settings
from warranty_api.models.audit_log import AuditAction, AuditResourceType
from warranty_api.models.event import Event
from warranty_api.models.product import Product
from warranty_api.models.system_settings import DEFAULT_SYSTEM_SETTINGS, SETTINGS_ROW_ID, SystemSettings
from warranty_api.models.user import User, UserRole
from warranty_api.models.warranty import Warranty, WarrantyStatus
from warranty_api.services import file_storage, product_service, user_service, warranty_service
from warranty_api.services.audit_log import RequestContext, record_action
from warranty_api.services.warranty_service import WarrantyDetails
from warranty_api.utils.clock import ensure_utc, month_bounds
from warranty_api.utils.errors import NotFoundError, ValidationError
from warranty_api.utils.responses import PaginationMeta


@dataclass
class MonthlyCount:
    month: str
    count: int


def _page_params(page: int, limit: Optional[int]) -> Tuple[int, int]:
    page = max(page, 1)
    limit = min(max(limit or settings.DEFAULT_PAGE_SIZE, 1), settings.MAX_PAGE_SIZE)
    return page, limit


async def _count(session: AsyncSession, model, *conditions) -> int:
    result = await session.execute(select(func.count()).select_from(model).where(*conditions))
    return result.scalar_one()


async def _paginate(session: AsyncSession, model, order_by, page: int, limit: Optional[int]):
    page, limit = _page_params(page, limit)
    total = await _count(session, model)
    result = await session.execute(
        select(model).order_by(order_by).offset((page - 1) * limit).limit(limit)
    )
    return list(result.scalars().all()), PaginationMeta.build(page=page, limit=limit, total=total)


# ============================================
# Listings
# ============================================

async def list_users(session: AsyncSession, page: int = 1, limit: Optional[int] = None) -> Tuple[List[User], PaginationMeta]:
    return await _paginate(session, User, col(User.created_at).desc(), page, limit)


async def list_products(session: AsyncSession, page: int = 1, limit: Optional[int] = None) -> Tuple[List[Product], PaginationMeta]:
    return await _paginate(session, Product, col(Product.created_at).desc(), page, limit)


async def list_warranties(
    session: AsyncSession, page: int = 1, limit: Optional[int] = None
) -> Tuple[List[WarrantyDetails], PaginationMeta]:
    warranties, pagination = await _paginate(session, Warranty, col(Warranty.created_at).desc(), page, limit)
    return await warranty_service.load_details(session, warranties, include_owner=True), pagination


# ============================================
# Users
# ============================================

async def update_user_role(session: AsyncSession, ctx: RequestContext, user_id: UUID, role: UserRole) -> User:
    user = await user_service.get_user(session, user_id)
    old_role = user.role
    user.role = UserRole(role).value
    user.updated_at = datetime.now(timezone.utc)
    session.add(user)
    await session.commit()

    app_logger.info(f"User {user.id} role changed {old_role} -> {user.role} by {ctx.actor_id}")
    await record_action(
        session, ctx, AuditAction.ROLE_CHANGE, AuditResourceType.USER, user.id,
        {"oldRole": old_role, "newRole": user.role},
    )
    return user


async def delete_user(session: AsyncSession, ctx: RequestContext, user_id: UUID) -> User:
    """Delete an account together with its warranties, documents and events.

    Everything is removed in one transaction; stored files are deleted only
    after it commits.
    """
    if user_id == ctx.actor_id:
        raise ValidationError("Administrators cannot delete their own account")
    user = await user_service.get_user(session, user_id)

    warranties = (
        await session.execute(select(Warranty).where(col(Warranty.user_id) == user.id))
    ).scalars().all()
    try:
        paths: List[str] = []
        for warranty in warranties:
            paths.extend(await warranty_service.stage_delete(session, warranty))

        await session.execute(delete(Event).where(col(Event.user_id) == user.id))
        picture = user.profile_picture
        await session.delete(user)
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    failed = warranty_service.remove_document_files(paths)
    if failed:
        app_logger.warning(f"User {user_id} deleted; {len(failed)} document file(s) not removed")
    if picture:
        file_storage.remove_file(file_storage.resolve_public_url(picture))

    app_logger.info(f"User {user_id} ({user.email}) deleted by {ctx.actor_id}")
    await record_action(
        session, ctx, AuditAction.DELETE, AuditResourceType.USER, user_id,
        {"email": user.email, "role": user.role, "warrantiesRemoved": len(warranties)},
    )
    return user


# ============================================
# Products
# ============================================

async def update_product(session: AsyncSession, ctx: RequestContext, product_id: UUID, data: dict[str, Any]) -> Product:
    product = await product_service.update_product(session, product_id, data)
    await record_action(
        session, ctx, AuditAction.UPDATE, AuditResourceType.PRODUCT, product.id,
        {"updatedFields": [k for k in product_service.PRODUCT_FIELDS if data.get(k) is not None]},
    )
    return product


async def delete_product(session: AsyncSession, ctx: RequestContext, product_id: UUID) -> Product:
    product = await product_service.delete_product(session, product_id)
    await record_action(
        session, ctx, AuditAction.DELETE, AuditResourceType.PRODUCT, product_id,
        {"name": product.name, "category": product.category},
    )
    return product


# ============================================
# Warranties
# ============================================

async def update_warranty(
    session: AsyncSession,
    ctx: RequestContext,
    warranty_id: UUID,
    data: dict[str, Any],
    now: datetime,
) -> WarrantyDetails:
    warranty = await session.get(Warranty, warranty_id)
    if warranty is None:
        raise NotFoundError("Warranty not found")

    old_status = warranty.status
    updated_fields = await warranty_service.apply_updates(session, warranty, data, now)
    session.add(warranty)
    await session.commit()

    await record_action(
        session, ctx, AuditAction.UPDATE, AuditResourceType.WARRANTY, warranty.id,
        {"oldStatus": old_status, "newStatus": warranty.status, "updatedFields": updated_fields},
    )
    return (await warranty_service.load_details(session, [warranty], include_owner=True))[0]


async def delete_warranty(session: AsyncSession, ctx: RequestContext, warranty_id: UUID) -> List[str]:
    """Returns the document paths that could not be removed from storage."""
    warranty = await session.get(Warranty, warranty_id)
    if warranty is None:
        raise NotFoundError("Warranty not found")

    product_id, status = warranty.product_id, warranty.status
    failed = await warranty_service.delete_with_documents(session, warranty)

    await record_action(
        session, ctx, AuditAction.DELETE, AuditResourceType.WARRANTY, warranty_id,
        {"product": product_id, "status": status, "unremovedFiles": failed},
    )
    return failed


# ============================================
# Dashboard / analytics
# ============================================

async def _status_counts(session: AsyncSession) -> dict[str, int]:
    rows = (
        await session.execute(select(Warranty.status, func.count()).group_by(Warranty.status))
    ).all()
    counts = {status.value: 0 for status in WarrantyStatus}
    counts.update({status: count for status, count in rows})
    return counts


async def _monthly_creations(session: AsyncSession, now: datetime) -> List[MonthlyCount]:
    """Warranties created in each month of ``now``'s year."""
    year = ensure_utc(now).year
    monthly = []
    for month in range(1, 13):
        start, end = month_bounds(year, month)
        count = await _count(
            session, Warranty, col(Warranty.created_at) >= start, col(Warranty.created_at) <= end
        )
        monthly.append(MonthlyCount(month=calendar.month_name[month], count=count))
    return monthly


async def _category_counts(session: AsyncSession) -> List[dict]:
    rows = (
        await session.execute(
            select(Product.category, func.count()).group_by(Product.category).order_by(col(Product.category))
        )
    ).all()
    return [{"category": category, "count": count} for category, count in rows]


async def dashboard_stats(session: AsyncSession, now: datetime) -> dict:
    started = time.perf_counter()

    total_users = await _count(session, User)
    admin_users = await _count(session, User, col(User.role) == UserRole.ADMIN.value)
    status_counts = await _status_counts(session)

    stats = {
        "userStats": {
            "total": total_users,
            "admin": admin_users,
            "regular": total_users - admin_users,
        },
        "warrantyStats": {
            "total": sum(status_counts.values()),
            **status_counts,
        },
        "productStats": {
            "total": await _count(session, Product),
            "categories": [
                {"name": row["category"], "count": row["count"]} for row in await _category_counts(session)
            ],
        },
        "monthlyData": [m.__dict__ for m in await _monthly_creations(session, now)],
    }

    log_performance("admin.dashboard_stats", time.perf_counter() - started)
    return stats


async def user_activity(session: AsyncSession, limit: int = 10) -> dict:
    """Most recent warranties and events across all users."""
    warranties = (
        await session.execute(select(Warranty).order_by(col(Warranty.created_at).desc()).limit(limit))
    ).scalars().all()
    events = (
        await session.execute(select(Event).order_by(col(Event.created_at).desc()).limit(limit))
    ).scalars().all()
    return {
        "recentWarranties": await warranty_service.load_details(session, warranties, include_owner=True),
        "recentEvents": list(events),
    }


async def warranty_analytics(session: AsyncSession, now: datetime) -> dict:
    status_counts = await _status_counts(session)
    return {
        "totalWarranties": sum(status_counts.values()),
        "activeWarranties": status_counts[WarrantyStatus.ACTIVE.value],
        "expiringWarranties": status_counts[WarrantyStatus.EXPIRING.value],
        "expiredWarranties": status_counts[WarrantyStatus.EXPIRED.value],
        "warrantyByStatus": [{"status": s, "count": c} for s, c in status_counts.items()],
        "warrantyByMonth": [m.__dict__ for m in await _monthly_creations(session, now)],
    }


async def product_analytics(session: AsyncSession, top: int = 10) -> dict:
    warranty_count = func.count(col(Warranty.id)).label("warranty_count")
    top_rows = (
        await session.execute(
            select(Product.id, Product.name, warranty_count)
            .join(Warranty, col(Warranty.product_id) == col(Product.id))
            .group_by(col(Product.id), col(Product.name))
            .order_by(warranty_count.desc())
            .limit(top)
        )
    ).all()
    return {
        "totalProducts": await _count(session, Product),
        "productsByCategory": await _category_counts(session),
        "topProducts": [
            {"id": str(product_id), "name": name, "warrantyCount": count}
            for product_id, name, count in top_rows
        ],
    }


# ============================================
# Settings
# ============================================

def _merge_settings(stored: dict) -> dict:
    merged = {section: dict(values) for section, values in DEFAULT_SYSTEM_SETTINGS.items()}
    for section, values in (stored or {}).items():
        if isinstance(values, dict):
            merged.setdefault(section, {}).update(values)
    return merged


async def get_settings(session: AsyncSession) -> dict:
    row = await session.get(SystemSettings, SETTINGS_ROW_ID)
    return _merge_settings(row.data if row else {})


async def update_settings(session: AsyncSession, ctx: RequestContext, payload: dict[str, dict]) -> dict:
    row = await session.get(SystemSettings, SETTINGS_ROW_ID)
    if row is None:
        row = SystemSettings(id=SETTINGS_ROW_ID, data={})

    merged = _merge_settings(row.data)
    for section, values in payload.items():
        merged.setdefault(section, {}).update(values)

    # Reassign so the JSON column is flagged dirty
    row.data = merged
    row.updated_by = ctx.actor_id
    row.updated_at = datetime.now(timezone.utc)
    session.add(row)
    await session.commit()

    await record_action(
        session, ctx, AuditAction.SETTINGS_UPDATE, AuditResourceType.SETTINGS, None,
        {"updatedSections": sorted(payload.keys())},
    )
    return merged
