"""Read-only JSON endpoints for the message board."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from clubhouse.database import get_db
from clubhouse.dependencies import get_identity
from clubhouse.policy import project_message, project_messages
from clubhouse.schemas.message import MessageListResponse, MessageResponse
from clubhouse.services.messages import get_message_service
from clubhouse.services.sessions import ResolvedIdentity

router = APIRouter(prefix="/api/v1/messages", tags=["Messages API"])


@router.get("/", response_model=MessageListResponse, response_model_exclude_none=True)
def list_messages(
    limit: int | None = Query(None, ge=1),
    identity: ResolvedIdentity = Depends(get_identity),
    db: Session = Depends(get_db),
) -> MessageListResponse:
    """List messages; author fields are only present for members."""
    messages = project_messages(get_message_service().list_messages(db, limit=limit), identity)
    return MessageListResponse(
        items=[MessageResponse(**message) for message in messages],
        total=len(messages),
    )


@router.get("/{message_id}", response_model=MessageResponse, response_model_exclude_none=True)
def get_message(
    message_id: int,
    identity: ResolvedIdentity = Depends(get_identity),
    db: Session = Depends(get_db),
) -> MessageResponse:
    """Get a single message."""
    message = get_message_service().get_message_by_id(db, message_id)
    if not message:
        raise HTTPException(status_code=404, detail="Message not found")
    return MessageResponse(**project_message(message, identity))
