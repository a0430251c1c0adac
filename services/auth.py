"""Admin authentication: one configured login/password pair and in-memory sessions."""
import hmac
import logging
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional

from core.exceptions import ConfigurationError, InvalidCredentialsError

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class AdminSession:
    """An authenticated operator session."""
    token: str
    login: str
    created_at: datetime = field(default_factory=_utcnow)
    expires_at: Optional[datetime] = None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        return (now or _utcnow()) >= self.expires_at

    def to_dict(self) -> dict:
        return {
            "token": self.token,
            "login": self.login,
            "created_at": self.created_at.isoformat(),
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
        }


class SessionStore:
    """Process-local session storage keyed by token."""

    def __init__(self, ttl_hours: float = 12):
        self.ttl = timedelta(hours=ttl_hours) if ttl_hours else None
        self._sessions: dict[str, AdminSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self, login: str) -> AdminSession:
        """Open a session; expired ones are purged first so the store stays bounded."""
        self.purge_expired()
        now = _utcnow()
        session = AdminSession(
            token=secrets.token_urlsafe(32),
            login=login,
            created_at=now,
            expires_at=now + self.ttl if self.ttl else None,
        )
        self._sessions[session.token] = session
        logger.info(f"Admin session opened for {login}", extra={"admin_login": login})
        return session

    def get(self, token: Optional[str]) -> Optional[AdminSession]:
        """Live session for ``token``; expired sessions are dropped."""
        if not token:
            return None
        session = self._sessions.get(token)
        if session is None:
            return None
        if session.is_expired():
            del self._sessions[token]
            return None
        return session

    def revoke(self, token: Optional[str]) -> bool:
        if not token:
            return False
        session = self._sessions.pop(token, None)
        if session is not None:
            logger.info(f"Admin session closed for {session.login}", extra={"admin_login": session.login})
        return session is not None

    def purge_expired(self) -> int:
        now = _utcnow()
        expired = [t for t, s in self._sessions.items() if s.is_expired(now)]
        for token in expired:
            del self._sessions[token]
        return len(expired)


def validate_admin_credentials(admin_login: str, admin_password: str) -> None:
    """
    Refuse to start without configured credentials.

    Raises:
        ConfigurationError: login or password is empty
    """
    if not (admin_login or "").strip() or not admin_password:
        raise ConfigurationError(
            "ADMIN_LOGIN и ADMIN_PASSWORD должны быть заданы в окружении"
        )


def check_credentials(
    login: str,
    password: str,
    admin_login: str,
    admin_password: str,
) -> bool:
    """Constant-time comparison of the stripped login and the password."""
    login_ok = hmac.compare_digest(
        (login or "").strip().encode(), (admin_login or "").strip().encode()
    )
    password_ok = hmac.compare_digest((password or "").encode(), (admin_password or "").encode())
    return login_ok and password_ok


def authenticate(
    store: SessionStore,
    login: str,
    password: str,
    admin_login: str,
    admin_password: str,
) -> AdminSession:
    """
    Open a session for matching credentials.

    Raises:
        InvalidCredentialsError: login or password mismatch
    """
    if not check_credentials(login, password, admin_login, admin_password):
        logger.warning(f"Failed admin login attempt for '{(login or '').strip()}'")
        raise InvalidCredentialsError()
    return store.create(login.strip())
