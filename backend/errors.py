# errors.py — Typed business-rule failures
# Each error is an HTTPException so routers and services can raise it at the
# point of detection; FastAPI turns it into {"detail": ...} with the right status.
from typing import Optional

from fastapi import HTTPException


class PlatformError(HTTPException):
    status_code = 500
    default_detail = "Internal server error"

    def __init__(self, detail: Optional[str] = None, headers: Optional[dict] = None):
        super().__init__(status_code=self.status_code, detail=detail or self.default_detail, headers=headers)


class ValidationError(PlatformError):
    """Missing or malformed input."""
    status_code = 400
    default_detail = "Invalid request"


class AuthError(PlatformError):
    """Bad credentials, or a missing/invalid/expired session token."""
    status_code = 401
    default_detail = "Authentication required"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"})


class Forbidden(PlatformError):
    status_code = 403
    default_detail = "Access denied"


class NotFound(PlatformError):
    status_code = 404
    default_detail = "Not found"


class Conflict(PlatformError):
    """Duplicate resource, or a workflow step that was already taken."""
    status_code = 409
    default_detail = "Conflict"


class ResourceExhausted(PlatformError):
    # Capacity caps are reported as a bad request, not 429
    status_code = 400
    default_detail = "Capacity reached"


class ServiceUnavailable(PlatformError):
    status_code = 503
    default_detail = "Service unavailable"
