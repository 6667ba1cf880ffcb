"""Credential checks and stateless signed session tokens."""
import hmac
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from ..errors import AuthError, AuthReason
from ..models import UserSession
from ..utils.logger import get_logger
from .credential_store import CredentialStore

logger = get_logger("auth")


class SessionAuthenticator:
    """Issue and verify HS256 session tokens for users of a CredentialStore.

    Passwords are compared as plaintext, matching how DEMO_USERS is
    configured. There is no server-side session table: the token is the
    session.
    """

    algorithm = "HS256"

    def __init__(
        self,
        store: CredentialStore,
        secret: Optional[str] = None,
        ttl_seconds: int = 8 * 60 * 60,
    ):
        """Initialize the authenticator.

        Args:
            store: Credential store to check against
            secret: Signing secret. A random one is generated when empty,
                which invalidates all tokens on restart
            ttl_seconds: Session lifetime
        """
        if not secret:
            logger.warning("SESSION_SECRET is not set; using a random per-process secret")
            secret = secrets.token_urlsafe(32)
        self.store = store
        self._secret = secret
        self.ttl = timedelta(seconds=ttl_seconds)

    def authenticate(self, username: Optional[str], password: Optional[str]) -> UserSession:
        """Check a username/password pair.

        Raises:
            AuthError: INVALID_CREDENTIALS on any mismatch
        """
        if not username or not password:
            raise AuthError(AuthReason.INVALID_CREDENTIALS)

        stored = self.store.get_password(username)
        if stored is None or not hmac.compare_digest(
            stored.encode("utf-8"), password.encode("utf-8")
        ):
            logger.warning(f"Failed login attempt for '{username}'")
            raise AuthError(AuthReason.INVALID_CREDENTIALS)

        issued_at = datetime.now(timezone.utc).replace(microsecond=0)
        return UserSession(subject=username, issued_at=issued_at, expires_at=issued_at + self.ttl)

    def issue_token(self, session: UserSession) -> str:
        """Sign a session into a JWT."""
        claims = {
            "sub": session.subject,
            "iat": int(session.issued_at.timestamp()),
            "exp": int(session.expires_at.timestamp()),
        }
        return jwt.encode(claims, self._secret, algorithm=self.algorithm)

    def login(self, username: Optional[str], password: Optional[str]) -> tuple[UserSession, str]:
        """Authenticate and return the session with its signed token."""
        session = self.authenticate(username, password)
        logger.info(f"User '{session.subject}' signed in")
        return session, self.issue_token(session)

    def validate(self, token: Optional[str]) -> UserSession:
        """Verify a token's signature and expiry.

        Raises:
            AuthError: EXPIRED or MALFORMED
        """
        if not token:
            raise AuthError(AuthReason.MALFORMED)

        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={"require": ["sub", "iat", "exp"]},
            )
        except jwt.ExpiredSignatureError:
            raise AuthError(AuthReason.EXPIRED)
        except jwt.InvalidTokenError:
            raise AuthError(AuthReason.MALFORMED)

        subject = claims["sub"]
        if not isinstance(subject, str) or subject not in self.store:
            raise AuthError(AuthReason.MALFORMED)

        return UserSession(
            subject=subject,
            issued_at=datetime.fromtimestamp(claims["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
        )

    def is_admin(self, session: UserSession) -> bool:
        return session.subject == self.store.admin_username
