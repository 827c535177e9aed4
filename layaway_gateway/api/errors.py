"""Translate domain exceptions into HTTP errors"""

import logging
from fastapi import HTTPException

from layaway_gateway.domain.exceptions import (
    AuthenticationError,
    ConflictError,
    DomainException,
    IdentityServiceError,
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
    StoreError,
    ValidationError,
)

STATUS_CODES = {
    ValidationError: 422,
    NotFoundError: 404,
    InvalidStateError: 409,
    ConflictError: 409,
    PermissionDeniedError: 403,
    AuthenticationError: 401,
    StoreError: 503,
    IdentityServiceError: 503,
}


def to_http_exception(exc: DomainException, request_id: str = "unknown") -> HTTPException:
    """
    Build the HTTPException for a domain error.

    Caller mistakes are logged as warnings, infrastructure failures as errors.
    """
    status_code = STATUS_CODES.get(type(exc), 500)
    if status_code >= 500:
        logging.error(f"{exc.kind}: {exc.message}", extra={"request_id": request_id})
    else:
        logging.warning(f"{exc.kind}: {exc.message}", extra={"request_id": request_id, "field": exc.field})
    return HTTPException(status_code=status_code, detail=exc.to_dict())
