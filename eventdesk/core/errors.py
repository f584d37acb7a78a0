"""
Domain error taxonomy.

Every error is an ``HTTPException`` so services and repositories can raise
them directly and FastAPI turns them into a status code plus ``detail``.
"""
from typing import Any, Dict, Optional
from fastapi import HTTPException, status


class ServiceError(HTTPException):
    """Base class for errors surfaced to API callers."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail: str = "Internal server error"

    def __init__(self, detail: Any = None, headers: Optional[Dict[str, str]] = None):
        super().__init__(
            status_code=self.status_code,
            detail=detail if detail is not None else self.default_detail,
            headers=headers,
        )


class BadRequest(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Bad request"


class ValidationFailed(BadRequest):
    """Required custom fields were left empty."""

    def __init__(self, errors: Dict[str, str]):
        self.errors = errors
        super().__init__(
            detail={
                "message": "Missing required custom fields",
                "fields": errors,
            }
        )


class Unauthorized(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Could not validate credentials"

    def __init__(self, detail: Any = None):
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"})


class Forbidden(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Forbidden"


class NotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class Conflict(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflict"


class AlreadyRegistered(Conflict):
    default_detail = "Already registered for this event"


class EventFull(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Event is full"


class EventInactive(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Event is not active"


class EventPast(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Event has already ended"
