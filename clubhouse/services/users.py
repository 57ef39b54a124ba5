"""User service: credential store reads and writes."""

import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from clubhouse.errors import EmailTakenError
from clubhouse.models.message import Message
from clubhouse.models.user import User

logger = logging.getLogger("clubhouse.users")


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserService:
    """Handles user lookup, creation and membership changes."""

    def find_user_by_email(self, db: Session, email: str) -> User | None:
        """Find a user by email, compared after normalization."""
        return db.query(User).filter(User.email == normalize_email(email)).first()

    def find_user_by_id(self, db: Session, user_id: int) -> User | None:
        return db.get(User, user_id)

    def email_exists(self, db: Session, email: str) -> bool:
        return db.query(User.id).filter(User.email == normalize_email(email)).first() is not None

    def create_user(
        self,
        db: Session,
        first_name: str,
        last_name: str,
        email: str,
        password_hash: str,
        is_admin: bool = False,
    ) -> User:
        """Insert a new user. Raises EmailTakenError if the email is already registered."""
        user = User(
            first_name=first_name,
            last_name=last_name,
            email=normalize_email(email),
            password_hash=password_hash,
            is_member=False,
            is_admin=is_admin,
        )
        db.add(user)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.info("Signup lost unique-email race for %s", user.email)
            raise EmailTakenError() from None
        db.refresh(user)
        return user

    def update_membership_status(self, db: Session, user_id: int, is_member: bool = True) -> User | None:
        """Set the member flag. Returns the updated user, or None if it no longer exists."""
        user = db.get(User, user_id)
        if not user:
            return None
        user.is_member = is_member
        db.commit()
        db.refresh(user)
        return user

    def list_users(self, db: Session) -> list[User]:
        """All users, most recently joined first."""
        return db.query(User).order_by(User.joined_at.desc(), User.id.desc()).all()

    def get_stats(self, db: Session) -> dict:
        """Headline counts for the home page and admin dashboard."""
        return {
            "total_users": db.query(func.count(User.id)).scalar() or 0,
            "total_members": db.query(func.count(User.id)).filter(User.is_member.is_(True)).scalar() or 0,
            "total_messages": db.query(func.count(Message.id)).scalar() or 0,
        }


_user_service: UserService | None = None


def get_user_service() -> UserService:
    """Get singleton user service instance."""
    global _user_service
    if _user_service is None:
        _user_service = UserService()
    return _user_service
