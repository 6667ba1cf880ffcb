"""Admin-only user management endpoints."""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..dependencies import get_store, require_admin
from ..models import UserCreateRequest, UserListResponse, UserSession
from ..services import CredentialStore
from ..utils.logger import logger

router = APIRouter(prefix="/api/users", tags=["users"])

IN_MEMORY_NOTICE = "User changes are kept in memory only and are lost when the server restarts."


def _user_list(store: CredentialStore, message: Optional[str] = None) -> UserListResponse:
    users = store.list_users()
    return UserListResponse(
        users=users,
        total=len(users),
        persistent=False,
        message=message or IN_MEMORY_NOTICE,
    )


@router.get("", response_model=UserListResponse)
async def list_users(
    admin: UserSession = Depends(require_admin),
    store: CredentialStore = Depends(get_store),
) -> UserListResponse:
    """List users in a stable order."""
    return _user_list(store)


@router.post("", response_model=UserListResponse, status_code=201)
async def add_user(
    body: UserCreateRequest,
    admin: UserSession = Depends(require_admin),
    store: CredentialStore = Depends(get_store),
) -> UserListResponse:
    """Add a user until the next restart."""
    user = store.add(body.username, body.password)
    logger.info(f"Admin '{admin.subject}' added user '{user.username}'")
    return _user_list(store, f"User '{user.username}' created. {IN_MEMORY_NOTICE}")


@router.delete("", response_model=UserListResponse)
async def delete_user(
    username: str = Query(..., description="User to delete"),
    admin: UserSession = Depends(require_admin),
    store: CredentialStore = Depends(get_store),
) -> UserListResponse:
    """Delete a user. The admin principal cannot be deleted."""
    store.remove(username)
    logger.info(f"Admin '{admin.subject}' deleted user '{username}'")
    return _user_list(store, f"User '{username}' deleted. {IN_MEMORY_NOTICE}")
