"""Message service for posting, listing and deleting board messages."""

from sqlalchemy import func
from sqlalchemy.orm import Session

from clubhouse.models.message import Message
from clubhouse.models.user import User

# Largest value a 32-bit SQL INTEGER primary key can hold
MAX_MESSAGE_ID = 2**31 - 1


def _valid_id(message_id: int) -> bool:
    return 1 <= message_id <= MAX_MESSAGE_ID


def _message_row(message: Message, author: User) -> dict:
    return {
        "id": message.id,
        "title": message.title,
        "text": message.text,
        "created_at": message.created_at,
        "author_id": author.id,
        "author_first_name": author.first_name,
        "author_last_name": author.last_name,
        "author_email": author.email,
    }


class MessageService:
    """Handles message persistence.

    Listing methods return plain dicts with the author columns joined in;
    callers run them through the visibility policy before rendering.
    """

    def create_message(self, db: Session, title: str, text: str, user_id: int) -> Message:
        """Create a message authored by ``user_id``."""
        message = Message(title=title, text=text, user_id=user_id)
        db.add(message)
        db.commit()
        db.refresh(message)
        return message

    def get_message_by_id(self, db: Session, message_id: int) -> dict | None:
        """Get a single message joined with its author."""
        if not _valid_id(message_id):
            return None
        result = (
            db.query(Message, User)
            .join(User, Message.user_id == User.id)
            .filter(Message.id == message_id)
            .first()
        )
        if not result:
            return None
        message, author = result
        return _message_row(message, author)

    def list_messages(self, db: Session, limit: int | None = None) -> list[dict]:
        """All messages joined with their authors, newest first."""
        query = (
            db.query(Message, User)
            .join(User, Message.user_id == User.id)
            .order_by(Message.created_at.desc(), Message.id.desc())
        )
        if limit is not None:
            query = query.limit(limit)
        return [_message_row(message, author) for message, author in query.all()]

    def list_user_messages(self, db: Session, user_id: int) -> list[Message]:
        """Messages posted by one user, newest first."""
        return (
            db.query(Message)
            .filter(Message.user_id == user_id)
            .order_by(Message.created_at.desc(), Message.id.desc())
            .all()
        )

    def count_user_messages(self, db: Session, user_id: int) -> int:
        return db.query(func.count(Message.id)).filter(Message.user_id == user_id).scalar() or 0

    def delete_message(self, db: Session, message_id: int) -> bool:
        """Delete a message. Returns False if there was nothing to delete."""
        if not _valid_id(message_id):
            return False
        deleted = db.query(Message).filter(Message.id == message_id).delete(synchronize_session=False)
        db.commit()
        return deleted > 0


_message_service: MessageService | None = None


def get_message_service() -> MessageService:
    """Get singleton message service instance."""
    global _message_service
    if _message_service is None:
        _message_service = MessageService()
    return _message_service
