"""Session / identity provider for the reporting routes.

Credentials are compared by equality only; the users list comes from the
agents sheet fetched at sync time.
"""
import hmac
import logging
import uuid
from datetime import datetime, timedelta
from typing import Callable, Dict, Iterable, Optional, Tuple

from distribution_server.models import User

logger = logging.getLogger(__name__)


def authenticate(users: Iterable[User], login: str, password: str) -> Optional[User]:
    """Return the user whose login and password match, else None.

    The agents sheet may hold several rows for one login (a re-added agent
    with a new password); any of them can open a session.
    """
    wanted = (login or "").strip().lower()
    given = (password or "").encode("utf-8")
    for user in users:
        if user.login.lower() != wanted:
            continue
        if hmac.compare_digest(user.password_secret.encode("utf-8"), given):
            return user
    return None


class SessionManager:
    """In-memory session table: token -> User.

    A session unused for ``idle_timeout`` is dropped; expired entries are
    purged whenever a session is opened.
    """

    def __init__(self, idle_timeout: timedelta = timedelta(hours=12),
                 clock: Callable[[], datetime] = datetime.utcnow):
        self.idle_timeout = idle_timeout
        self._clock = clock
        self._sessions: Dict[str, Tuple[User, datetime]] = {}

    def _expired(self, last_seen: datetime) -> bool:
        return self._clock() - last_seen >= self.idle_timeout

    def purge_expired(self) -> int:
        stale = [token for token, (_, last_seen) in self._sessions.items() if self._expired(last_seen)]
        for token in stale:
            del self._sessions[token]
        if stale:
            logger.info(f"Dropped {len(stale)} expired sessions")
        return len(stale)

    def open(self, user: User) -> str:
        self.purge_expired()
        token = uuid.uuid4().hex
        self._sessions[token] = (user, self._clock())
        logger.info(f"Session opened for {user.login}")
        return token

    def get(self, token: Optional[str]) -> Optional[User]:
        if not token or token not in self._sessions:
            return None
        user, last_seen = self._sessions[token]
        if self._expired(last_seen):
            del self._sessions[token]
            logger.info(f"Session expired for {user.login}")
            return None
        self._sessions[token] = (user, self._clock())
        return user

    def close(self, token: Optional[str]) -> bool:
        if not token:
            return False
        entry = self._sessions.pop(token, None)
        if entry is not None:
            logger.info(f"Session closed for {entry[0].login}")
        return entry is not None

    def __len__(self) -> int:
        return len(self._sessions)
