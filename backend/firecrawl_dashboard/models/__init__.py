"""Data models for the application."""
from .tools import (
    AgentRequest,
    CrawlRequest,
    ExtractRequest,
    MapRequest,
    ScrapeFormat,
    ScrapeRequest,
    ToolName,
    ToolResult,
)
from .users import (
    LoginRequest,
    LoginResponse,
    MeResponse,
    UserCreateRequest,
    UserInfo,
    UserListResponse,
    UserRecord,
    UserSession,
)

__all__ = [
    "AgentRequest",
    "CrawlRequest",
    "ExtractRequest",
    "MapRequest",
    "ScrapeFormat",
    "ScrapeRequest",
    "ToolName",
    "ToolResult",
    "LoginRequest",
    "LoginResponse",
    "MeResponse",
    "UserCreateRequest",
    "UserInfo",
    "UserListResponse",
    "UserRecord",
    "UserSession",
]
