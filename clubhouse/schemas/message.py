"""Pydantic schemas for message endpoints."""

from datetime import datetime

from pydantic import BaseModel


class MessageResponse(BaseModel):
    id: int
    title: str
    text: str
    created_at: datetime
    author_id: int | None = None
    author_first_name: str | None = None
    author_last_name: str | None = None
    author_email: str | None = None


class MessageListResponse(BaseModel):
    items: list[MessageResponse]
    total: int
