"""Session dependencies for FastAPI routes."""

from fastapi import Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from clubhouse.config import get_settings
from clubhouse.database import get_db
from clubhouse.errors import PermissionDeniedError
from clubhouse.policy import Action, DenyReason, authorize
from clubhouse.services.sessions import ResolvedIdentity, get_session_service

COOKIE_MAX_AGE = get_settings().SESSION_EXPIRE_DAYS * 24 * 60 * 60

DENIED_DETAIL = {
    Action.DELETE_MESSAGE: "You don't have permission to delete messages",
    Action.VIEW_ADMIN: "You don't have admin privileges",
}


def get_session_token(request: Request) -> str | None:
    """Extract the session token from a Bearer header or the session cookie."""
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header[7:]
    return request.cookies.get(get_settings().SESSION_COOKIE_NAME)


def get_identity(
    request: Request,
    db: Session = Depends(get_db),
) -> ResolvedIdentity:
    """Resolve who is making the request. Never raises for missing or stale sessions."""
    identity = get_session_service().resolve(db, get_session_token(request))
    # Error pages read this to render the nav
    request.state.identity = identity
    return identity


def set_session_cookie(response: Response, token: str) -> None:
    """Set the session cookie."""
    settings = get_settings()
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        httponly=True,
        samesite="lax",
        secure=settings.COOKIE_SECURE,
        max_age=COOKIE_MAX_AGE,
    )


def clear_session_cookie(response: Response) -> None:
    """Clear the session cookie."""
    response.delete_cookie(key=get_settings().SESSION_COOKIE_NAME)


def enforce(identity: ResolvedIdentity, action: Action) -> None:
    """Apply the authorization policy at a route boundary.

    Anonymous visitors who need to log in get the 401 login redirect;
    everything else denied is a 403.
    """
    decision = authorize(identity, action)
    if decision:
        return
    if decision.reason == DenyReason.REQUIRES_LOGIN:
        raise HTTPException(status_code=401, detail="Not authenticated")
    raise PermissionDeniedError(DENIED_DETAIL.get(action))
