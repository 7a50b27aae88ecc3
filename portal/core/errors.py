"""Error taxonomy shared by services, repositories and the HTTP layer.

Services raise these; ``portal.main`` installs one exception handler that
renders any ``PortalError`` as ``{"detail": ..., "code": ...}`` with the
class's status code.  Nothing here retries.
"""

from __future__ import annotations


class PortalError(Exception):
    """Base class for every error the portal surfaces to a caller."""

    code = "portal_error"
    status_code = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(PortalError):
    """Malformed input: bad id, missing field, out-of-range number."""

    code = "validation_error"
    status_code = 422


class NotAuthenticated(PortalError):
    code = "not_authenticated"
    status_code = 401

    def __init__(self, message: str = "authentication required") -> None:
        super().__init__(message)


class PermissionDenied(PortalError):
    code = "permission_denied"
    status_code = 403

    def __init__(self, message: str = "Insufficient permissions") -> None:
        super().__init__(message)


class NotFoundError(PortalError):
    code = "not_found"
    status_code = 404


class ConflictError(PortalError):
    code = "conflict"
    status_code = 409


class IdentifierTaken(ConflictError):
    """A freshly generated certificate id or registry number is already stored."""

    code = "identifier_taken"


class ReferentialIntegrityError(PortalError):
    """A referenced user or course no longer exists."""

    code = "referential_integrity"
    status_code = 409


class PersistenceError(PortalError):
    """The store rejected or failed a read/write."""

    code = "persistence_error"
    status_code = 503
