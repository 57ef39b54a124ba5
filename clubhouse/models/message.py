"""Message model."""

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from clubhouse.database import Base, utcnow

TITLE_MIN_LENGTH = 3
TITLE_MAX_LENGTH = 255
TEXT_MIN_LENGTH = 10
TEXT_MAX_LENGTH = 5000


class Message(Base):
    """Board message. Immutable once posted."""

    __tablename__ = "message"
    __table_args__ = (
        CheckConstraint(f"length(title) >= {TITLE_MIN_LENGTH}", name="ck_message_title_length"),
        CheckConstraint(f"length(text) >= {TEXT_MIN_LENGTH}", name="ck_message_text_length"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(TITLE_MAX_LENGTH), nullable=False)
    text = Column(Text, nullable=False)
    user_id = Column(Integer, ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)

    author = relationship("User", back_populates="messages")
