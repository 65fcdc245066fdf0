"""Domain errors raised by the service layer.

Routers translate these into HTTP responses through ``to_http_exception``.
"""

from fastapi import HTTPException, status


class ServiceError(Exception):
    """Base class for expected, caller-facing failures."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(ServiceError):
    """Request conflicts with existing state (duplicate email, referenced product)."""

    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED


class PermissionDeniedError(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND


def to_http_exception(error: ServiceError) -> HTTPException:
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(error, AuthenticationError) else None
    return HTTPException(status_code=error.status_code, detail=error.message, headers=headers)
