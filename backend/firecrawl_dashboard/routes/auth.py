"""Login, logout and session introspection endpoints."""
from fastapi import APIRouter, Depends, Request, Response

from ..dependencies import get_authenticator, require_session
from ..models import LoginRequest, LoginResponse, MeResponse, UserSession
from ..services import SessionAuthenticator

router = APIRouter(tags=["auth"])


@router.post("/login", response_model=LoginResponse)
async def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    authenticator: SessionAuthenticator = Depends(get_authenticator),
) -> LoginResponse:
    """Exchange a username and password for a session token.

    The token is returned in the body and set as an HttpOnly cookie. Any
    mismatch yields a bare 401.
    """
    session, token = authenticator.login(body.username, body.password)

    config = request.app.state.settings
    response.set_cookie(
        key=config.session_cookie_name,
        value=token,
        max_age=config.session_ttl_seconds,
        httponly=True,
        samesite="lax",
    )
    return LoginResponse(token=token, username=session.subject, expires_at=session.expires_at)


@router.post("/logout")
async def logout(request: Request, response: Response) -> dict:
    """Clear the session cookie. Bearer tokens are simply discarded by the client."""
    response.delete_cookie(request.app.state.settings.session_cookie_name)
    return {"success": True}


@router.get("/api/me", response_model=MeResponse)
async def me(
    session: UserSession = Depends(require_session),
    authenticator: SessionAuthenticator = Depends(get_authenticator),
) -> MeResponse:
    """Describe the current session."""
    return MeResponse(
        username=session.subject,
        is_admin=authenticator.is_admin(session),
        expires_at=session.expires_at,
    )
