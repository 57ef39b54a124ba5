"""Authorization policy.

Pure functions of the resolved identity: no database access, no request.

Membership, not admin-ness, decides whether message authors are visible.
Admins may delete any message but still see redacted authors unless they
have also joined the club.
"""

import secrets
from dataclasses import dataclass
from enum import Enum

from clubhouse.services.sessions import ResolvedIdentity

AUTHOR_FIELDS = ("author_id", "author_first_name", "author_last_name", "author_email")


class Action(str, Enum):
    VIEW_MESSAGES = "view-messages"
    CREATE_MESSAGE = "create-message"
    DELETE_MESSAGE = "delete-message"
    JOIN_CLUB = "join-club"
    VIEW_PROFILE = "view-profile"
    VIEW_ADMIN = "view-admin"


class DenyReason(str, Enum):
    REQUIRES_LOGIN = "requires-login"
    REQUIRES_ADMIN = "requires-admin"
    ALREADY_MEMBER = "already-member"
    EMAIL_TAKEN = "email-taken"


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: DenyReason | None = None

    def __bool__(self) -> bool:
        return self.allowed


PERMIT = Decision(allowed=True)


def deny(reason: DenyReason) -> Decision:
    return Decision(allowed=False, reason=reason)


def authorize(identity: ResolvedIdentity, action: Action) -> Decision:
    """Decide whether ``identity`` may perform ``action``."""
    if action == Action.VIEW_MESSAGES:
        return PERMIT

    if not identity.is_authenticated:
        if action in (Action.DELETE_MESSAGE, Action.VIEW_ADMIN):
            return deny(DenyReason.REQUIRES_ADMIN)
        return deny(DenyReason.REQUIRES_LOGIN)

    user = identity.user
    if action in (Action.CREATE_MESSAGE, Action.VIEW_PROFILE):
        return PERMIT
    if action in (Action.DELETE_MESSAGE, Action.VIEW_ADMIN):
        return PERMIT if user.is_admin else deny(DenyReason.REQUIRES_ADMIN)
    if action == Action.JOIN_CLUB:
        return deny(DenyReason.ALREADY_MEMBER) if user.is_member else PERMIT

    raise ValueError(f"Unknown action: {action}")


def can_see_authors(identity: ResolvedIdentity) -> bool:
    return identity.is_authenticated and identity.user.is_member


def project_message(message: dict, identity: ResolvedIdentity) -> dict:
    """Return the view of ``message`` that ``identity`` is allowed to see."""
    if can_see_authors(identity):
        return dict(message)
    return {key: value for key, value in message.items() if key not in AUTHOR_FIELDS}


def project_messages(messages: list[dict], identity: ResolvedIdentity) -> list[dict]:
    return [project_message(message, identity) for message in messages]


def passcode_matches(supplied: str, secret: str) -> bool:
    """Constant-time passcode comparison."""
    return secrets.compare_digest(supplied.encode("utf-8"), secret.encode("utf-8"))
