"""Domain-specific exceptions"""

from typing import Optional


class DomainException(Exception):
    """Base exception for domain layer"""

    kind = "domain_error"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message, "field": self.field}


class ValidationError(DomainException):
    """Malformed input; the caller must correct it"""

    kind = "validation_error"


class NotFoundError(DomainException):
    """Referenced plan, customer or product does not exist"""

    kind = "not_found"


class InvalidStateError(DomainException):
    """Operation not allowed in the plan's current status"""

    kind = "invalid_state"


class ConflictError(DomainException):
    """Plan was modified concurrently (version mismatch)"""

    kind = "conflict"


class StoreError(DomainException):
    """Persistence layer failed"""

    kind = "store_error"


class PermissionDeniedError(DomainException):
    """Actor's role lacks the required capability"""

    kind = "permission_denied"


class AuthenticationError(DomainException):
    """Access token missing, expired or rejected"""

    kind = "authentication_error"


class IdentityServiceError(DomainException):
    """Identity API returned an error or is unavailable"""

    kind = "identity_unavailable"
