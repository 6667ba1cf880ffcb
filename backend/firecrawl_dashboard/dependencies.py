"""FastAPI dependencies: injected services and the session gates."""
from typing import AsyncIterator, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from fastapi.security.utils import get_authorization_scheme_param

from .errors import AuthError, AuthReason, ForbiddenError
from .models import UserSession
from .services import CredentialStore, FirecrawlClient, SessionAuthenticator
from .utils.logger import logger

bearer_scheme = HTTPBearer(auto_error=False)


def get_store(request: Request) -> CredentialStore:
    return request.app.state.store


def get_authenticator(request: Request) -> SessionAuthenticator:
    return request.app.state.authenticator


async def get_upstream(request: Request) -> AsyncIterator[FirecrawlClient]:
    """Open a Firecrawl client for the duration of one request."""
    async with FirecrawlClient.from_settings(request.app.state.settings) as client:
        yield client


def _validate_token(request: Request, token: Optional[str], authenticator: SessionAuthenticator) -> UserSession:
    if not token:
        token = request.cookies.get(request.app.state.settings.session_cookie_name)
    if not token:
        raise AuthError(AuthReason.MALFORMED)

    try:
        return authenticator.validate(token)
    except AuthError as e:
        logger.info(f"Rejected session token ({e.reason.value}) for {request.url.path}")
        raise


def require_session(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    authenticator: SessionAuthenticator = Depends(get_authenticator),
) -> UserSession:
    """Resolve the caller's session from the bearer header or session cookie.

    Raises:
        AuthError: When no valid token is presented
    """
    token = credentials.credentials if credentials else None
    return _validate_token(request, token, authenticator)


def session_from_request(request: Request) -> UserSession:
    """Resolve the session straight from a request's headers and cookies.

    For code that runs before dependencies are solved, such as the handler
    for request bodies FastAPI could not parse.

    Raises:
        AuthError: When no valid token is presented
    """
    scheme, token = get_authorization_scheme_param(request.headers.get("Authorization"))
    if scheme.lower() != "bearer":
        token = None
    return _validate_token(request, token or None, get_authenticator(request))


def require_admin(
    session: UserSession = Depends(require_session),
    authenticator: SessionAuthenticator = Depends(get_authenticator),
) -> UserSession:
    """Only the admin principal may manage users."""
    if not authenticator.is_admin(session):
        raise ForbiddenError("Only administrators can manage users")
    return session
