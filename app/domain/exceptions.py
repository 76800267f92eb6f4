from __future__ import annotations


class DomainError(Exception):
    """Base class for checkout domain errors."""


class CheckoutValidationError(DomainError):
    """Form input is malformed or incomplete; raised before any network call."""

    def __init__(self, message: str, errors: dict[str, str] | None = None):
        super().__init__(message)
        self.errors = dict(errors or {})


class AdapterError(DomainError):
    """A collaborator answered with a non-2xx or malformed response."""

    def __init__(self, message: str, *, service: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.service = service
        self.status_code = status_code


class InvalidCycleError(DomainError):
    """Requested billing cycle is not offered by the plan."""


class PlanNotAvailableError(DomainError):
    """Plan has no usable pricing for the requested country."""


class PlanNotFoundError(DomainError):
    """Plan id is unknown to the catalog."""


class CheckoutNotAllowedError(DomainError):
    """Submission would not change anything on the current subscription."""


class AccessDeniedError(DomainError):
    """User has no access to the store."""


class InvalidTokenError(DomainError):
    """Bearer token was rejected."""


class CardEncryptionError(DomainError):
    """Card payload could not be encrypted for the vault."""
