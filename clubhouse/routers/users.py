"""Profile and admin dashboard pages."""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from clubhouse.database import get_db
from clubhouse.dependencies import enforce, get_identity
from clubhouse.policy import Action, can_see_authors, project_messages
from clubhouse.services.messages import get_message_service
from clubhouse.services.sessions import ResolvedIdentity
from clubhouse.services.users import get_user_service
from clubhouse.templating import templates

router = APIRouter(tags=["Users"])

ADMIN_RECENT_MESSAGES = 10


@router.get("/profile", response_class=HTMLResponse)
def profile_page(
    request: Request,
    identity: ResolvedIdentity = Depends(get_identity),
    db: Session = Depends(get_db),
) -> HTMLResponse:
    """Render the current user's profile with their own messages."""
    enforce(identity, Action.VIEW_PROFILE)
    message_service = get_message_service()
    user_id = identity.user.user_id
    return templates.TemplateResponse(
        request,
        "users/profile.html",
        {
            "current_user": identity.user,
            "messages": message_service.list_user_messages(db, user_id),
            "message_count": message_service.count_user_messages(db, user_id),
        },
    )


@router.get("/admin", response_class=HTMLResponse)
def admin_dashboard(
    request: Request,
    identity: ResolvedIdentity = Depends(get_identity),
    db: Session = Depends(get_db),
) -> HTMLResponse:
    """Render the admin dashboard: stats, users and the latest messages."""
    enforce(identity, Action.VIEW_ADMIN)
    user_service = get_user_service()
    messages = get_message_service().list_messages(db, limit=ADMIN_RECENT_MESSAGES)
    return templates.TemplateResponse(
        request,
        "admin/dashboard.html",
        {
            "current_user": identity.user,
            "stats": user_service.get_stats(db),
            "users": user_service.list_users(db),
            "messages": project_messages(messages, identity),
            "show_authors": can_see_authors(identity),
            "can_delete": True,
        },
    )
