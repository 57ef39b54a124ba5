"""Server-side login sessions.

A session binds an opaque, unguessable token (kept only in the client's
cookie) to a user id for a fixed window. Only the sha256 of the token is
stored.

Resolution is done on every request against the store; nothing is cached
in-process, so logout and expiry take effect immediately. Expired rows are
removed when they are looked up, and ``purge_expired`` can be run as an
optional reaper.
"""

import hashlib
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clubhouse.config import get_settings
from clubhouse.database import utcnow
from clubhouse.models.session import UserSession
from clubhouse.models.user import User

logger = logging.getLogger("clubhouse.sessions")


class IdentityKind(str, Enum):
    ANONYMOUS = "anonymous"
    VALID = "valid"
    EXPIRED = "expired"


@dataclass(frozen=True)
class CurrentUser:
    """Snapshot of the user bound to the current request."""

    user_id: int
    first_name: str
    last_name: str
    email: str
    is_member: bool
    is_admin: bool
    joined_at: datetime

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @classmethod
    def from_model(cls, user: User) -> "CurrentUser":
        return cls(
            user_id=user.id,
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
            is_member=bool(user.is_member),
            is_admin=bool(user.is_admin),
            joined_at=user.joined_at,
        )


@dataclass(frozen=True)
class ResolvedIdentity:
    """Who is making the request. ``user`` is set only when ``kind`` is VALID."""

    kind: IdentityKind
    user: CurrentUser | None = None

    @classmethod
    def anonymous(cls) -> "ResolvedIdentity":
        return cls(kind=IdentityKind.ANONYMOUS)

    @classmethod
    def valid(cls, user: CurrentUser) -> "ResolvedIdentity":
        return cls(kind=IdentityKind.VALID, user=user)

    @property
    def is_authenticated(self) -> bool:
        return self.kind == IdentityKind.VALID and self.user is not None


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class SessionService:
    """Creates, resolves and invalidates login sessions."""

    def __init__(self) -> None:
        settings = get_settings()
        self.expire_days = settings.SESSION_EXPIRE_DAYS

    def create_session(self, db: Session, user_id: int) -> str:
        """Create a session for ``user_id`` and return the raw token for the cookie."""
        token = secrets.token_urlsafe(32)
        now = utcnow()
        record = UserSession(
            token_hash=hash_token(token),
            user_id=user_id,
            created_at=now,
            expires_at=now + timedelta(days=self.expire_days),
        )
        db.add(record)
        db.commit()
        return token

    def inspect(self, db: Session, token: str | None) -> ResolvedIdentity:
        """Resolve a token, keeping the EXPIRED state visible.

        Expired records are deleted on the way out.
        """
        if not token:
            return ResolvedIdentity.anonymous()

        record = db.query(UserSession).filter(UserSession.token_hash == hash_token(token)).first()
        if not record:
            return ResolvedIdentity.anonymous()

        if record.expires_at <= utcnow():
            logger.info("Session for user %s expired at %s", record.user_id, record.expires_at)
            db.delete(record)
            db.commit()
            return ResolvedIdentity(kind=IdentityKind.EXPIRED)

        user = db.get(User, record.user_id)
        if not user:
            logger.warning("Session references missing user %s", record.user_id)
            return ResolvedIdentity.anonymous()

        return ResolvedIdentity.valid(CurrentUser.from_model(user))

    def resolve(self, db: Session, token: str | None) -> ResolvedIdentity:
        """Resolve a token for request handling. Expired sessions look exactly like missing ones."""
        identity = self.inspect(db, token)
        if identity.kind == IdentityKind.EXPIRED:
            return ResolvedIdentity.anonymous()
        return identity

    def invalidate(self, db: Session, token: str | None) -> None:
        """Delete the session behind ``token``. Best-effort: storage errors are logged, not raised."""
        if not token:
            return
        try:
            db.query(UserSession).filter(UserSession.token_hash == hash_token(token)).delete(
                synchronize_session=False
            )
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.warning("Failed to remove session on logout", exc_info=True)

    def purge_expired(self, db: Session) -> int:
        """Delete every expired session. Returns the number removed."""
        removed = (
            db.query(UserSession).filter(UserSession.expires_at <= utcnow()).delete(synchronize_session=False)
        )
        db.commit()
        if removed:
            logger.info("Purged %d expired sessions", removed)
        return removed


_session_service: SessionService | None = None


def get_session_service() -> SessionService:
    """Get singleton session service instance."""
    global _session_service
    if _session_service is None:
        _session_service = SessionService()
    return _session_service
