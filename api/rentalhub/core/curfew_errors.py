"""Errors raised by the curfew workflow engine.

Every error names the tenant and, where known, the status it found and the
status the operation needed, so the UI can say "this request was already
decided" instead of showing a generic failure.
"""
from typing import Optional


class CurfewError(Exception):
    """Base class for curfew workflow failures."""
    code = "CURFEW_ERROR"
    http_status = 400

    def __init__(
        self,
        message: str,
        tenant_id: Optional[int] = None,
        current_status: Optional[str] = None,
        expected_status: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.tenant_id = tenant_id
        self.current_status = current_status
        self.expected_status = expected_status

    def to_dict(self) -> dict:
        return {
            "detail": self.message,
            "code": self.code,
            "tenant_id": self.tenant_id,
            "current_status": self.current_status,
            "expected_status": self.expected_status,
        }


class InvalidTransition(CurfewError):
    """The tenant's current status does not allow the requested operation."""
    code = "INVALID_TRANSITION"
    http_status = 400


class ConflictOnWrite(CurfewError):
    """The tenant's status changed between the read and the guarded write."""
    code = "CONFLICT_ON_WRITE"
    http_status = 409


class TenantNotFound(CurfewError):
    code = "NOT_FOUND"
    http_status = 404


class ActorNotPermitted(CurfewError):
    """The actor's role may not perform the operation."""
    code = "NOT_PERMITTED"
    http_status = 403
