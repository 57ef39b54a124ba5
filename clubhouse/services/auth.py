"""Authentication service: signup, login and passcode membership."""

import logging
from dataclasses import dataclass

import bcrypt
from pydantic import ValidationError
from sqlalchemy.orm import Session

from clubhouse.config import get_settings
from clubhouse.errors import EmailTakenError
from clubhouse.policy import DenyReason, passcode_matches
from clubhouse.schemas.forms import SignupForm, first_error
from clubhouse.services.sessions import CurrentUser, get_session_service
from clubhouse.services.users import get_user_service

logger = logging.getLogger("clubhouse.auth")

GENERIC_LOGIN_ERROR = "Invalid email or password"
UNKNOWN_CREDENTIAL = "unknown-credential"


def hash_password(password: str) -> str:
    """Hash a password with bcrypt using the configured cost factor."""
    rounds = get_settings().BCRYPT_ROUNDS
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Constant-time check of ``password`` against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


@dataclass
class AuthResult:
    """Result of a login attempt: Authenticated (with a new session token) or Rejected."""

    success: bool
    error: str | None = None
    reason: str | None = None
    user: CurrentUser | None = None
    token: str | None = None

    @property
    def status(self) -> str:
        return "authenticated" if self.success else "rejected"


@dataclass
class SignupResult:
    """Result of a signup attempt."""

    success: bool
    error: str | None = None
    reason: str | None = None
    user_id: int | None = None
    email: str | None = None


class AuthService:
    """Handles user registration, authentication and joining the club."""

    def signup(
        self,
        db: Session,
        first_name: str,
        last_name: str,
        email: str,
        password: str,
        confirm_password: str,
        is_admin: bool = False,
    ) -> SignupResult:
        """Register a new user. The first failing rule is reported, nothing else."""
        try:
            form = SignupForm(
                first_name=first_name,
                last_name=last_name,
                email=email,
                password=password,
                confirm_password=confirm_password,
            )
        except ValidationError as e:
            return SignupResult(success=False, error=first_error(e), reason="validation")

        users = get_user_service()
        if users.email_exists(db, form.email):
            return SignupResult(success=False, error="Email already registered", reason=DenyReason.EMAIL_TAKEN.value)

        if is_admin and not get_settings().ALLOW_ADMIN_SIGNUP:
            logger.warning("Ignoring admin flag on signup for %s (ALLOW_ADMIN_SIGNUP is off)", form.email)
            is_admin = False

        try:
            user = users.create_user(
                db,
                first_name=form.first_name,
                last_name=form.last_name,
                email=form.email,
                password_hash=hash_password(form.password),
                is_admin=is_admin,
            )
        except EmailTakenError as e:
            return SignupResult(success=False, error=e.detail, reason=DenyReason.EMAIL_TAKEN.value)

        logger.info("New user %s signed up (admin=%s)", user.id, user.is_admin)
        return SignupResult(success=True, user_id=user.id, email=user.email)

    def authenticate(self, db: Session, email: str, password: str) -> AuthResult:
        """Authenticate a user by email and password and open a session on success."""
        user = get_user_service().find_user_by_email(db, email)
        if not user:
            logger.info("Login rejected: unknown email")
            return AuthResult(success=False, error=GENERIC_LOGIN_ERROR, reason=UNKNOWN_CREDENTIAL)

        if not verify_password(password, user.password_hash):
            logger.info("Login rejected: bad password for user %s", user.id)
            return AuthResult(success=False, error=GENERIC_LOGIN_ERROR, reason=UNKNOWN_CREDENTIAL)

        token = get_session_service().create_session(db, user.id)
        logger.info("User %s logged in", user.id)
        return AuthResult(success=True, user=CurrentUser.from_model(user), token=token)

    def join_club(self, db: Session, user_id: int, passcode: str) -> bool:
        """Grant membership if ``passcode`` is correct. Returns whether it was."""
        if not passcode_matches(passcode, get_settings().MEMBERSHIP_PASSCODE):
            logger.info("Wrong passcode from user %s", user_id)
            return False
        get_user_service().update_membership_status(db, user_id, True)
        logger.info("User %s joined the club", user_id)
        return True


_auth_service: AuthService | None = None


def get_auth_service() -> AuthService:
    """Get singleton auth service instance."""
    global _auth_service
    if _auth_service is None:
        _auth_service = AuthService()
    return _auth_service
