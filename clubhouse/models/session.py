"""Login session model."""

from sqlalchemy import Column, DateTime, Integer, String

from clubhouse.database import Base, utcnow


class UserSession(Base):
    """Server-side session backing the login cookie.

    Only the sha256 of the token is stored. ``user_id`` is not a
    foreign key: a session whose user is gone resolves to anonymous.
    """

    __tablename__ = "user_session"

    id = Column(Integer, primary_key=True, autoincrement=True)
    token_hash = Column(String(64), unique=True, nullable=False, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    expires_at = Column(DateTime, nullable=False, index=True)
