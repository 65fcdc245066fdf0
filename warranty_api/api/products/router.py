"""Product catalog API routes.

Reads are public; writes require an administrator and each one is recorded
in the audit log.
"""

from typing import List, Literal, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, HTTPException, Query, Request, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from warranty_api.config.logger import app_logger
from warranty_api.db.db import get_session
from warranty_api.models.audit_log import AuditAction, AuditResourceType
from warranty_api.models.product import ProductCategory
from warranty_api.models.user import User
from warranty_api.services import admin_service, file_storage, product_service
from warranty_api.services.audit_log import RequestContext, record_action
from warranty_api.utils.auth import require_admin
from warranty_api.utils.errors import ServiceError, to_http_exception
from warranty_api.utils.responses import SuccessResponse, success_response
from warranty_api.api.products.schemas import ProductCreate, ProductResponse, ProductUpdate

router = APIRouter(prefix="/v1/products", tags=["products"])


@router.get("", response_model=SuccessResponse[List[ProductResponse]])
async def list_products(
    category: Optional[ProductCategory] = Query(default=None),
    sort: Literal["nameAsc", "nameDesc", "newest"] = Query(default="nameAsc"),
    session: AsyncSession = Depends(get_session),
):
    try:
        products = await product_service.list_products(session, category=category, sort=sort)
        return success_response(
            data=[ProductResponse.model_validate(p) for p in products],
            message=f"Retrieved {len(products)} products"
        )

    except Exception as e:
        app_logger.error(f"Failed to list products: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to list products: {str(e)}"
        )


@router.get("/categories/list", response_model=SuccessResponse[List[str]])
async def list_categories(session: AsyncSession = Depends(get_session)):
    """Categories currently used by at least one product."""
    categories = await product_service.list_categories(session)
    return success_response(data=categories, message="Categories retrieved successfully")


@router.get("/{product_id}", response_model=SuccessResponse[ProductResponse])
async def get_product(product_id: UUID, session: AsyncSession = Depends(get_session)):
    try:
        product = await product_service.get_product(session, product_id)
        return success_response(data=ProductResponse.model_validate(product), message="Product retrieved successfully")

    except ServiceError as e:
        raise to_http_exception(e)


@router.post("", response_model=SuccessResponse[ProductResponse], status_code=status.HTTP_201_CREATED)
async def create_product(
    request: ProductCreate,
    http_request: Request,
    admin: User = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    try:
        product = await product_service.create_product(session, request.model_dump())
        await record_action(
            session, RequestContext.from_request(http_request, admin),
            AuditAction.CREATE, AuditResourceType.PRODUCT, product.id,
            {"name": product.name, "category": product.category},
        )
        return success_response(data=ProductResponse.model_validate(product), message="Product created successfully")

    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        app_logger.error(f"Failed to create product: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create product: {str(e)}"
        )


@router.put("/{product_id}", response_model=SuccessResponse[ProductResponse])
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
        app_logger.error(f"Failed to update product {product_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update product: {str(e)}"
        )


@router.delete("/{product_id}", response_model=SuccessResponse[ProductResponse])
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
        app_logger.error(f"Failed to delete product {product_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to delete product: {str(e)}"
        )


@router.post("/{product_id}/image", response_model=SuccessResponse[ProductResponse])
async def upload_product_image(
    product_id: UUID,
    http_request: Request,
    file: UploadFile = File(...),
    admin: User = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    stored = None
    try:
        stored = await file_storage.save_upload(file, file_storage.PRODUCT_IMAGES_SUBDIR)
        product = await product_service.set_product_image(session, product_id, stored)
        await record_action(
            session, RequestContext.from_request(http_request, admin),
            AuditAction.UPDATE, AuditResourceType.PRODUCT, product.id,
            {"updatedFields": ["image"]},
        )
        return success_response(data=ProductResponse.model_validate(product), message="Product image uploaded successfully")

    except ServiceError as e:
        if stored:
            file_storage.remove_file(stored.path)
        raise to_http_exception(e)
    except Exception as e:
        if stored:
            file_storage.remove_file(stored.path)
        app_logger.error(f"Failed to upload image for product {product_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to upload product image: {str(e)}"
        )
