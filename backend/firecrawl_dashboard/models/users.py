"""User, session and login models."""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class UserRecord(BaseModel):
    """A credential entry held by the in-memory store."""

    username: str
    password: str
    created_at: datetime


class UserInfo(BaseModel):
    """Public view of a credential entry."""

    username: str
    created_at: datetime


class UserSession(BaseModel):
    """An authenticated session decoded from a signed token."""

    subject: str
    issued_at: datetime
    expires_at: datetime


class LoginRequest(BaseModel):
    """Request model for the login endpoint."""

    username: Optional[str] = None
    password: Optional[str] = None


class LoginResponse(BaseModel):
    """Response model for a successful login."""

    token: str
    username: str
    expires_at: datetime


class MeResponse(BaseModel):
    """Response model describing the current session."""

    username: str
    is_admin: bool
    expires_at: datetime


class UserCreateRequest(BaseModel):
    """Request model for adding a user."""

    username: Optional[str] = None
    password: Optional[str] = None


class UserListResponse(BaseModel):
    """Response model for listing users."""

    users: List[UserInfo]
    total: int = Field(..., description="Total number of users")
    persistent: bool = Field(
        False, description="Runtime changes are kept in memory and lost on restart"
    )
    message: Optional[str] = None
