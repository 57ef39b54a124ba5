"""Message board pages."""

import logging

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session

from clubhouse.database import get_db
from clubhouse.dependencies import enforce, get_identity
from clubhouse.errors import NotFoundError
from clubhouse.policy import Action, authorize, can_see_authors, project_message, project_messages
from clubhouse.schemas.forms import MessageForm, first_error
from clubhouse.services.messages import get_message_service
from clubhouse.services.sessions import ResolvedIdentity
from clubhouse.templating import templates

logger = logging.getLogger("clubhouse.messages")

router = APIRouter(prefix="/messages", tags=["Messages"])


def _board_context(identity: ResolvedIdentity) -> dict:
    return {
        "current_user": identity.user,
        "show_authors": can_see_authors(identity),
        "can_delete": bool(authorize(identity, Action.DELETE_MESSAGE)),
    }


@router.get("", response_class=HTMLResponse)
def list_messages(
    request: Request,
    identity: ResolvedIdentity = Depends(get_identity),
    db: Session = Depends(get_db),
) -> HTMLResponse:
    """Render all messages, author details redacted for non-members."""
    enforce(identity, Action.VIEW_MESSAGES)
    messages = project_messages(get_message_service().list_messages(db), identity)
    return templates.TemplateResponse(
        request, "messages/list.html", {**_board_context(identity), "messages": messages}
    )


@router.get("/new", response_class=HTMLResponse)
def new_message_page(request: Request, identity: ResolvedIdentity = Depends(get_identity)) -> HTMLResponse:
    """Render the new message form."""
    enforce(identity, Action.CREATE_MESSAGE)
    return templates.TemplateResponse(
        request, "messages/create.html", {"current_user": identity.user, "form_data": {}}
    )


@router.post("/new", response_class=HTMLResponse)
def create_message(
    request: Request,
    title: str = Form(""),
    text: str = Form(""),
    identity: ResolvedIdentity = Depends(get_identity),
    db: Session = Depends(get_db),
) -> HTMLResponse:
    """Validate and store a new message."""
    enforce(identity, Action.CREATE_MESSAGE)
    try:
        form = MessageForm(title=title, text=text)
    except ValidationError as e:
        return templates.TemplateResponse(
            request,
            "messages/create.html",
            {"current_user": identity.user, "error": first_error(e), "form_data": {"title": title, "text": text}},
        )

    message = get_message_service().create_message(db, form.title, form.text, identity.user.user_id)
    logger.info("User %s posted message %s", identity.user.user_id, message.id)
    return RedirectResponse(url="/messages", status_code=302)  # type: ignore[return-value]


@router.get("/{message_id}", response_class=HTMLResponse)
def message_detail(
    request: Request,
    message_id: int,
    identity: ResolvedIdentity = Depends(get_identity),
    db: Session = Depends(get_db),
) -> HTMLResponse:
    """Render a single message."""
    enforce(identity, Action.VIEW_MESSAGES)
    message = get_message_service().get_message_by_id(db, message_id)
    if not message:
        raise NotFoundError("Message not found")
    return templates.TemplateResponse(
        request,
        "messages/detail.html",
        {**_board_context(identity), "message": project_message(message, identity)},
    )


@router.post("/{message_id}/delete")
def delete_message(
    message_id: int,
    identity: ResolvedIdentity = Depends(get_identity),
    db: Session = Depends(get_db),
) -> RedirectResponse:
    """Delete a message (admins only)."""
    enforce(identity, Action.DELETE_MESSAGE)
    if not get_message_service().delete_message(db, message_id):
        raise NotFoundError("Message not found")
    logger.info("Admin %s deleted message %s", identity.user.user_id, message_id)
    return RedirectResponse(url="/messages", status_code=302)
