"""Session-gated dashboard proxying Firecrawl tools."""
from .config import Settings, settings
from .errors import (
    AuthError,
    ConflictError,
    DashboardError,
    ForbiddenError,
    NotFoundError,
    UpstreamError,
    UpstreamTimeoutError,
    ValidationError,
)

__all__ = [
    "Settings",
    "settings",
    "AuthError",
    "ConflictError",
    "DashboardError",
    "ForbiddenError",
    "NotFoundError",
    "UpstreamError",
    "UpstreamTimeoutError",
    "ValidationError",
]
