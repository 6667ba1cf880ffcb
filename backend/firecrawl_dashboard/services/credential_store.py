"""In-memory credential store seeded from the DEMO_USERS setting."""
import threading
from datetime import datetime
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional

from ..errors import ConflictError, NotFoundError, ValidationError, ValidationKind
from ..models import UserInfo, UserRecord
from ..utils.logger import get_logger

logger = get_logger("users")

DEFAULT_DEMO_USERS = "admin:admin123"


def parse_credentials(raw: Optional[str]) -> Dict[str, str]:
    """Parse a "user:pass,user:pass" string into a username -> password map.

    Falls back to the built-in admin pair when the value is unset or blank.
    Pairs without a ":" or with an empty side are skipped. Only the first ":"
    separates username from password.

    Args:
        raw: Delimited credential string

    Returns:
        Mapping in declaration order; later duplicates win
    """
    if not raw or not raw.strip():
        raw = DEFAULT_DEMO_USERS

    users: Dict[str, str] = {}
    for pair in raw.split(","):
        if ":" not in pair:
            continue
        username, password = pair.split(":", 1)
        username, password = username.strip(), password.strip()
        if username and password:
            users[username] = password
    return users


class CredentialStore:
    """Username/password store held in process memory.

    Runtime additions and removals are NOT persisted and vanish when the
    process restarts. Writes are serialized; reads return snapshots.
    """

    def __init__(self, users: Mapping[str, str], admin_username: str = "admin"):
        """Initialize the store.

        Args:
            users: Initial username -> password mapping
            admin_username: Principal that may manage users and cannot be removed
        """
        self.admin_username = admin_username
        self._lock = threading.Lock()
        now = datetime.now()
        self._users: Dict[str, UserRecord] = {
            name: UserRecord(username=name, password=password, created_at=now)
            for name, password in users.items()
        }

    @classmethod
    def from_config(cls, raw: Optional[str], admin_username: str = "admin") -> "CredentialStore":
        """Build a store from the DEMO_USERS configuration string."""
        store = cls(parse_credentials(raw), admin_username=admin_username)
        logger.info(
            f"Loaded {len(store)} demo user(s); user changes made at runtime "
            "are kept in memory only and are lost on restart"
        )
        return store

    def __len__(self) -> int:
        return len(self._users)

    def __contains__(self, username: object) -> bool:
        return username in self._users

    def resolve(self) -> Mapping[str, str]:
        """Return a read-only snapshot of username -> password."""
        users = self._users
        return MappingProxyType({name: record.password for name, record in users.items()})

    def get_password(self, username: str) -> Optional[str]:
        record = self._users.get(username)
        return record.password if record else None

    def list_users(self) -> List[UserInfo]:
        """List users in insertion order, without passwords."""
        return [
            UserInfo(username=record.username, created_at=record.created_at)
            for record in list(self._users.values())
        ]

    def add(self, username: Optional[str], password: Optional[str]) -> UserInfo:
        """Add a user.

        Raises:
            ValidationError: If username or password is blank
            ConflictError: If the username already exists
        """
        username = (username or "").strip()
        password = (password or "").strip()
        if not username or not password:
            raise ValidationError(
                "Username and password are required",
                kind=ValidationKind.MISSING_FIELD,
            )
        if ":" in username or "," in username:
            raise ValidationError(
                "Username must not contain ':' or ','", kind=ValidationKind.INVALID, field="username"
            )

        with self._lock:
            if username in self._users:
                raise ConflictError(f"User '{username}' already exists")
            record = UserRecord(username=username, password=password, created_at=datetime.now())
            users = dict(self._users)
            users[username] = record
            self._users = users

        logger.info(f"Added user '{username}' (in-memory only)")
        return UserInfo(username=record.username, created_at=record.created_at)

    def remove(self, username: Optional[str]) -> None:
        """Remove a user.

        Raises:
            ConflictError: If the username is the protected admin principal
            NotFoundError: If the username does not exist
        """
        username = (username or "").strip()
        if username == self.admin_username:
            raise ConflictError(f"The '{self.admin_username}' user cannot be deleted")

        with self._lock:
            if username not in self._users:
                raise NotFoundError(f"User '{username}' not found")
            users = dict(self._users)
            del users[username]
            self._users = users

        logger.info(f"Removed user '{username}' (in-memory only)")
