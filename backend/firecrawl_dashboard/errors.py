"""Error taxonomy shared by services and routes."""
from enum import Enum
from typing import Optional


class DashboardError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthReason(str, Enum):
    """Why a credential or token check failed."""

    INVALID_CREDENTIALS = "invalid_credentials"
    EXPIRED = "expired"
    MALFORMED = "malformed"


class AuthError(DashboardError):
    """Authentication failed. The public message never carries the reason."""

    status_code = 401

    def __init__(self, reason: AuthReason):
        super().__init__("Unauthorized")
        self.reason = reason


class ForbiddenError(DashboardError):
    """Authenticated, but not allowed to use this endpoint."""

    status_code = 403


class ValidationKind(str, Enum):
    """Kind of request validation failure."""

    MISSING_FIELD = "missing_field"
    TOO_SHORT = "too_short"
    INVALID = "invalid"


class ValidationError(DashboardError):
    """Request body failed validation."""

    status_code = 400

    def __init__(
        self,
        message: str,
        kind: ValidationKind = ValidationKind.INVALID,
        field: Optional[str] = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.field = field


class ConflictError(DashboardError):
    """Duplicate user, or an operation on the protected admin principal."""

    status_code = 409


class NotFoundError(DashboardError):
    """Unknown user."""

    status_code = 404


class UpstreamError(DashboardError):
    """The Firecrawl API call failed."""

    status_code = 500


class UpstreamTimeoutError(DashboardError):
    """A Firecrawl job did not finish within its deadline."""

    status_code = 500

    def __init__(self, message: str, elapsed: float):
        super().__init__(message)
        self.elapsed = elapsed
