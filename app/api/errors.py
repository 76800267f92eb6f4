from __future__ import annotations

from fastapi import HTTPException

from app.domain.exceptions import (
    AccessDeniedError,
    AdapterError,
    CardEncryptionError,
    CheckoutNotAllowedError,
    CheckoutValidationError,
    DomainError,
    InvalidCycleError,
    InvalidTokenError,
    PlanNotAvailableError,
    PlanNotFoundError,
)


_STATUS_CODES: tuple[tuple[type[DomainError], int], ...] = (
    (CheckoutValidationError, 422),
    (InvalidCycleError, 400),
    (PlanNotAvailableError, 400),
    (PlanNotFoundError, 404),
    (CheckoutNotAllowedError, 409),
    (AccessDeniedError, 403),
    (InvalidTokenError, 401),
    (AdapterError, 502),
    (CardEncryptionError, 500),
)


def to_http_exception(exc: DomainError) -> HTTPException:
    status_code = 400
    for error_type, code in _STATUS_CODES:
        if isinstance(exc, error_type):
            status_code = code
            break
    if isinstance(exc, CheckoutValidationError):
        return HTTPException(status_code=status_code, detail={"message": str(exc), "errors": exc.errors})
    return HTTPException(status_code=status_code, detail=str(exc))
