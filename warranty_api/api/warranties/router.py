"""Warranty API routes for owners.

Status is never accepted from clients; each write derives it from the
expiration date at request time. Administrators may act on any warranty
here; those writes are audited like the ``/v1/admin`` ones.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from warranty_api.config.logger import app_logger
from warranty_api.config.settings import settings
from warranty_api.db.db import get_session
from warranty_api.models.user import User
from warranty_api.services import file_storage, warranty_service
from warranty_api.services.audit_log import RequestContext
from warranty_api.utils.auth import get_current_user
from warranty_api.utils.clock import utcnow
from warranty_api.utils.errors import ServiceError, ValidationError, to_http_exception
from warranty_api.utils.responses import SuccessResponse, success_response
from warranty_api.api.warranties.schemas import (
    DocumentDeleteResponse,
    WarrantyCreate,
    WarrantyDeleteResponse,
    WarrantyResponse,
    WarrantyStatsResponse,
    WarrantyUpdate,
)

router = APIRouter(prefix="/v1/warranties", tags=["warranties"])


@router.get("", response_model=SuccessResponse[List[WarrantyResponse]])
async def list_warranties(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    try:
        warranties = await warranty_service.list_warranties(session, user)
        return success_response(
            data=[WarrantyResponse.from_details(w) for w in warranties],
            message=f"Retrieved {len(warranties)} warranties"
        )

    except Exception as e:
        app_logger.error(f"Failed to list warranties for user {user.id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to list warranties: {str(e)}"
        )


@router.get("/expiring", response_model=SuccessResponse[List[WarrantyResponse]])
async def list_expiring(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Warranties expiring within the next 30 days."""
    warranties = await warranty_service.list_expiring(session, user, utcnow())
    return success_response(
        data=[WarrantyResponse.from_details(w) for w in warranties],
        message=f"Retrieved {len(warranties)} expiring warranties"
    )


@router.get("/stats/overview", response_model=SuccessResponse[WarrantyStatsResponse])
async def warranty_stats(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    stats = await warranty_service.warranty_stats(session, user, utcnow())
    return success_response(data=WarrantyStatsResponse.from_stats(stats), message="Warranty statistics retrieved")


@router.get("/{warranty_id}", response_model=SuccessResponse[WarrantyResponse])
async def get_warranty(
    warranty_id: UUID,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    try:
        details = await warranty_service.get_warranty(session, user, warranty_id)
        return success_response(data=WarrantyResponse.from_details(details), message="Warranty retrieved successfully")

    except ServiceError as e:
        raise to_http_exception(e)


@router.post("", response_model=SuccessResponse[WarrantyResponse], status_code=status.HTTP_201_CREATED)
async def create_warranty(
    request: WarrantyCreate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    try:
        details = await warranty_service.create_warranty(session, user, request.model_dump(), utcnow())
        return success_response(data=WarrantyResponse.from_details(details), message="Warranty created successfully")

    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        app_logger.error(f"Failed to create warranty for user {user.id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create warranty: {str(e)}"
        )


@router.put("/{warranty_id}", response_model=SuccessResponse[WarrantyResponse])
async def update_warranty(
    warranty_id: UUID,
    request: WarrantyUpdate,
    http_request: Request,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    try:
        details = await warranty_service.update_warranty(
            session, user, warranty_id, request.model_dump(exclude_unset=True), utcnow(),
            RequestContext.from_request(http_request, user),
        )
        return success_response(data=WarrantyResponse.from_details(details), message="Warranty updated successfully")

    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        app_logger.error(f"Failed to update warranty {warranty_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update warranty: {str(e)}"
        )


@router.delete("/{warranty_id}", response_model=SuccessResponse[WarrantyDeleteResponse])
async def delete_warranty(
    warranty_id: UUID,
    http_request: Request,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    try:
        failed = await warranty_service.delete_warranty(
            session, user, warranty_id, RequestContext.from_request(http_request, user)
        )
        return success_response(
            data=WarrantyDeleteResponse(id=warranty_id, unremoved_files=failed),
            message="Warranty deleted successfully"
        )

    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        app_logger.error(f"Failed to delete warranty {warranty_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to delete warranty: {str(e)}"
        )


@router.post("/{warranty_id}/documents", response_model=SuccessResponse[WarrantyResponse])
async def upload_documents(
    warranty_id: UUID,
    http_request: Request,
    files: List[UploadFile] = File(...),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Attach up to ``MAX_DOCUMENTS_PER_UPLOAD`` files to a warranty."""
    stored_files = []
    try:
        if len(files) > settings.MAX_DOCUMENTS_PER_UPLOAD:
            raise ValidationError(f"At most {settings.MAX_DOCUMENTS_PER_UPLOAD} files can be uploaded at once")

        for upload in files:
            stored_files.append(await file_storage.save_upload(upload, file_storage.DOCUMENTS_SUBDIR))
    except ServiceError as e:
        for stored in stored_files:
            file_storage.remove_file(stored.path)
        raise to_http_exception(e)

    try:
        # add_documents removes the stored files itself when the warranty is missing
        details = await warranty_service.add_documents(
            session, user, warranty_id, stored_files, utcnow(), RequestContext.from_request(http_request, user)
        )
        return success_response(data=WarrantyResponse.from_details(details), message="Documents uploaded successfully")

    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        for stored in stored_files:
            file_storage.remove_file(stored.path)
        app_logger.error(f"Failed to upload documents for warranty {warranty_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to upload documents: {str(e)}"
        )


@router.delete("/{warranty_id}/documents/{document_id}", response_model=SuccessResponse[DocumentDeleteResponse])
async def delete_document(
    warranty_id: UUID,
    document_id: UUID,
    http_request: Request,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    try:
        removed = await warranty_service.delete_document(
            session, user, warranty_id, document_id, utcnow(), RequestContext.from_request(http_request, user)
        )
        return success_response(
            data=DocumentDeleteResponse(id=document_id, file_removed=removed),
            message="Document deleted successfully"
        )

    except ServiceError as e:
        raise to_http_exception(e)
