"""Join-the-club pages."""

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session

from clubhouse.config import get_settings
from clubhouse.database import get_db
from clubhouse.dependencies import enforce, get_identity
from clubhouse.policy import Action, DenyReason, authorize
from clubhouse.rate_limit import limiter
from clubhouse.schemas.forms import JoinClubForm, first_error
from clubhouse.services.auth import get_auth_service
from clubhouse.services.sessions import ResolvedIdentity
from clubhouse.templating import templates

router = APIRouter(tags=["Membership"])


def _already_member(identity: ResolvedIdentity) -> bool:
    return authorize(identity, Action.JOIN_CLUB).reason == DenyReason.ALREADY_MEMBER


@router.get("/join-club", response_class=HTMLResponse)
def join_club_page(request: Request, identity: ResolvedIdentity = Depends(get_identity)) -> HTMLResponse:
    """Render the passcode form. Members are sent home."""
    if _already_member(identity):
        return RedirectResponse(url="/", status_code=302)  # type: ignore[return-value]
    enforce(identity, Action.JOIN_CLUB)
    return templates.TemplateResponse(request, "membership/join.html", {"current_user": identity.user})


@router.post("/join-club", response_class=HTMLResponse)
@limiter.limit(get_settings().PASSCODE_RATE_LIMIT)
def join_club_submit(
    request: Request,
    passcode: str = Form(""),
    identity: ResolvedIdentity = Depends(get_identity),
    db: Session = Depends(get_db),
) -> HTMLResponse:
    """Check the passcode and grant membership. Repeat joins are a no-op redirect."""
    if _already_member(identity):
        return RedirectResponse(url="/", status_code=302)  # type: ignore[return-value]
    enforce(identity, Action.JOIN_CLUB)

    try:
        form = JoinClubForm(passcode=passcode)
    except ValidationError as e:
        return templates.TemplateResponse(
            request, "membership/join.html", {"current_user": identity.user, "error": first_error(e)}
        )

    if not get_auth_service().join_club(db, identity.user.user_id, form.passcode):
        return templates.TemplateResponse(
            request, "membership/join.html", {"current_user": identity.user, "error": "Incorrect passcode"}
        )

    return RedirectResponse(url="/", status_code=302)  # type: ignore[return-value]
