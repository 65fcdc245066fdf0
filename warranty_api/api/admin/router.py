"""Administrator API routes.

Every route requires an administrator account. Mutations are recorded in
the audit log by ``services.admin_service``.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from warranty_api.config.logger import app_logger
from warranty_api.config.settings import settings
from warranty_api.db.db import get_session
from warranty_api.models.audit_log import AuditAction, AuditResourceType
from warranty_api.models.user import User
from warranty_api.services import admin_service, audit_log
from warranty_api.services.audit_log import AuditLogFilter, RequestContext
from warranty_api.utils.auth import require_admin
from warranty_api.utils.clock import utcnow
from warranty_api.utils.errors import ServiceError, to_http_exception
from warranty_api.utils.responses import (
    PaginatedResponse,
    SuccessResponse,
    paginated_response,
    success_response,
)
from warranty_api.api.admin.schemas import (
    AuditLogResponse,
    DeletedResponse,
    RoleUpdateRequest,
    SettingsUpdateRequest,
    UserActivityResponse,
)
from warranty_api.api.events.schemas import EventResponse
from warranty_api.api.products.schemas import ProductResponse, ProductUpdate
from warranty_api.api.users.schemas import UserResponse
from warranty_api.api.warranties.schemas import WarrantyResponse, WarrantyUpdate

router = APIRouter(prefix="/v1/admin", tags=["admin"], dependencies=[Depends(require_admin)])


def _server_error(operation: str, e: Exception) -> HTTPException:
    app_logger.error(f"{operation} failed: {e}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"{operation} failed: {str(e)}"
    )


# ============================================
# Users
# ============================================

@router.get("/users", response_model=PaginatedResponse[UserResponse])
async def list_users(
    page: int = Query(default=1, ge=1),
    limit: Optional[int] = Query(default=None, ge=1, le=settings.MAX_PAGE_SIZE),
    session: AsyncSession = Depends(get_session),
):
    users, pagination = await admin_service.list_users(session, page=page, limit=limit)
    return paginated_response(
        data=[UserResponse.from_user(u) for u in users],
        pagination=pagination,
        message=f"Retrieved {len(users)} users"
    )


@router.put("/users/{user_id}/role", response_model=SuccessResponse[UserResponse])
async def update_user_role(
    user_id: UUID,
    request: RoleUpdateRequest,
    http_request: Request,
    admin: User = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    try:
        user = await admin_service.update_user_role(
            session, RequestContext.from_request(http_request, admin), user_id, request.role
        )
        return success_response(data=UserResponse.from_user(user), message="User role updated successfully")

    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise _server_error("Role update", e)


@router.delete("/users/{user_id}", response_model=SuccessResponse[UserResponse])
async def delete_user(
    user_id: UUID,
    http_request: Request,
    admin: User = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    try:
        user = await admin_service.delete_user(
            session, RequestContext.from_request(http_request, admin), user_id
        )
        return success_response(data=UserResponse.from_user(user), message="User deleted successfully")

    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise _server_error("User deletion", e)


# ============================================
# Warranties
# ============================================

@router.get("/warranties", response_model=PaginatedResponse[WarrantyResponse])
async def list_warranties(
    page: int = Query(default=1, ge=1),
    limit: Optional[int] = Query(default=None, ge=1, le=settings.MAX_PAGE_SIZE),
    session: AsyncSession = Depends(get_session),
):
    warranties, pagination = await admin_service.list_warranties(session, page=page, limit=limit)
    return paginated_response(
        data=[WarrantyResponse.from_details(w) for w in warranties],
        pagination=pagination,
        message=f"Retrieved {len(warranties)} warranties"
    )


@router.put("/warranties/{warranty_id}", response_model=SuccessResponse[WarrantyResponse])
async def update_warranty(
    warranty_id: UUID,
    request: WarrantyUpdate,
    http_request: Request,
    admin: User = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    try:
        details = await admin_service.update_warranty(
            session,
            RequestContext.from_request(http_request, admin),
            warranty_id,
            request.model_dump(exclude_unset=True),
            utcnow(),
        )
        return success_response(data=WarrantyResponse.from_details(details), message="Warranty updated successfully")

    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise _server_error("Warranty update", e)


@router.delete("/warranties/{warranty_id}", response_model=SuccessResponse[DeletedResponse])
async def delete_warranty(
    warranty_id: UUID,
    http_request: Request,
    admin: User = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    try:
        failed = await admin_service.delete_warranty(
            session, RequestContext.from_request(http_request, admin), warranty_id
        )
        return success_response(
            data=DeletedResponse(id=warranty_id, unremoved_files=failed),
            message="Warranty deleted successfully"
        )

    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise _server_error("Warranty deletion", e)


# ============================================
# Products
# ============================================

@router.get("/products", response_model=PaginatedResponse[ProductResponse])
async def list_products(
    page: int = Query(default=1, ge=1),
    limit: Optional[int] = Query(default=None, ge=1, le=settings.MAX_PAGE_SIZE),
    session: AsyncSession = Depends(get_session),
):
    products, pagination = await admin_service.list_products(session, page=page, limit=limit)
    return paginated_response(
        data=[ProductResponse.model_validate(p) for p in products],
        pagination=pagination,
        message=f"Retrieved {len(products)} products"
    )


@router.put("/products/{product_id}", response_model=SuccessResponse[ProductResponse])
async def update_product(
    product_id: UUID,
    request: ProductUpdate,
    http_request: Request,
    admin: User = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    try:
        product = await admin_service.update_product(
            session,
            RequestContext.from_request(http_request, admin),
            product_id,
            request.model_dump(exclude_unset=True),
        )
        return success_response(data=ProductResponse.model_validate(product), message="Product updated successfully")

    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise _server_error("Product update", e)


@router.delete("/products/{product_id}", response_model=SuccessResponse[ProductResponse])
async def delete_product(
    product_id: UUID,
    http_request: Request,
    admin: User = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    try:
        product = await admin_service.delete_product(
            session, RequestContext.from_request(http_request, admin), product_id
        )
        return success_response(data=ProductResponse.model_validate(product), message="Product deleted successfully")

    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise _server_error("Product deletion", e)


# ============================================
# Dashboard / analytics
# ============================================

@router.get("/dashboard/stats", response_model=SuccessResponse[dict])
async def dashboard_stats(session: AsyncSession = Depends(get_session)):
    try:
        stats = await admin_service.dashboard_stats(session, utcnow())
        return success_response(data=stats, message="Dashboard statistics retrieved")
    except Exception as e:
        raise _server_error("Dashboard statistics", e)


@router.get("/activity", response_model=SuccessResponse[UserActivityResponse])
async def user_activity(session: AsyncSession = Depends(get_session)):
    activity = await admin_service.user_activity(session)
    return success_response(
        data=UserActivityResponse(
            recentWarranties=[WarrantyResponse.from_details(w) for w in activity["recentWarranties"]],
            recentEvents=[EventResponse.from_event(e) for e in activity["recentEvents"]],
        ),
        message="Recent activity retrieved"
    )


@router.get("/analytics/warranties", response_model=SuccessResponse[dict])
async def warranty_analytics(session: AsyncSession = Depends(get_session)):
    analytics = await admin_service.warranty_analytics(session, utcnow())
    return success_response(data=analytics, message="Warranty analytics retrieved")


@router.get("/analytics/products", response_model=SuccessResponse[dict])
async def product_analytics(session: AsyncSession = Depends(get_session)):
    analytics = await admin_service.product_analytics(session)
    return success_response(data=analytics, message="Product analytics retrieved")


# ============================================
# Settings
# ============================================

@router.get("/settings", response_model=SuccessResponse[dict])
async def get_settings(session: AsyncSession = Depends(get_session)):
    return success_response(data=await admin_service.get_settings(session), message="Settings retrieved")


@router.put("/settings", response_model=SuccessResponse[dict])
async def update_settings(
    request: SettingsUpdateRequest,
    http_request: Request,
    admin: User = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    try:
        updated = await admin_service.update_settings(
            session, RequestContext.from_request(http_request, admin), request.sections()
        )
        return success_response(data=updated, message="Settings updated successfully")
    except Exception as e:
        raise _server_error("Settings update", e)


# ============================================
# Audit log
# ============================================

@router.get("/logs", response_model=PaginatedResponse[AuditLogResponse])
async def list_audit_logs(
    admin_id: Optional[UUID] = Query(default=None, alias="adminId"),
    resource_type: Optional[AuditResourceType] = Query(default=None, alias="resourceType"),
    action: Optional[AuditAction] = Query(default=None),
    start_date: Optional[datetime] = Query(default=None, alias="startDate"),
    end_date: Optional[datetime] = Query(default=None, alias="endDate"),
    page: int = Query(default=1, ge=1),
    limit: Optional[int] = Query(default=None, ge=1, le=settings.MAX_PAGE_SIZE),
    session: AsyncSession = Depends(get_session),
):
    """Audit entries, most recent first. Filters combine with AND."""
    try:
        result = await audit_log.query_logs(
            session,
            AuditLogFilter(
                admin_id=admin_id,
                resource_type=resource_type,
                action=action,
                start_date=start_date,
                end_date=end_date,
            ),
            page=page,
            limit=limit,
        )
        return paginated_response(
            data=[AuditLogResponse.from_record(r) for r in result.entries],
            pagination=result.pagination,
            message=f"Retrieved {len(result.entries)} audit log entries"
        )
    except Exception as e:
        raise _server_error("Audit log query", e)


@router.get("/logs/{resource_type}/{resource_id}", response_model=SuccessResponse[List[AuditLogResponse]])
async def resource_history(
    resource_type: AuditResourceType,
    resource_id: str,
    session: AsyncSession = Depends(get_session),
):
    try:
        records = await audit_log.resource_history(session, resource_type, resource_id)
        return success_response(
            data=[AuditLogResponse.from_record(r) for r in records],
            message=f"Retrieved {len(records)} audit log entries"
        )
    except ServiceError as e:
        raise to_http_exception(e)
