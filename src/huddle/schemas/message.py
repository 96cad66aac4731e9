# src/huddle/schemas/message.py
"""Message-related Pydantic schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class SendMessageRequest(BaseModel):
    """Schema for sending a message to a conversation or channel."""

    content: str | None = Field(None, description="Message text, up to 4000 characters")
    file_id: str | None = Field(None, description="Reference to an uploaded file")
    reply_to_message_id: uuid.UUID | None = Field(None, description="Message being replied to")
    is_forwarded: bool = Field(False, description="Whether the message was forwarded")


class BatchMessageItem(BaseModel):
    """One message of a batch send."""

    content: str | None = Field(None, description="Message text, up to 4000 characters")
    file_id: str | None = Field(None, description="Reference to an uploaded file")


class BatchSendRequest(BaseModel):
    """Schema for sending several direct messages in one request.

    The reply target, if any, applies to the first message only.
    """

    messages: list[BatchMessageItem] = Field(..., min_length=1)
    reply_to_message_id: uuid.UUID | None = None
    is_forwarded: bool = False


class EditMessageRequest(BaseModel):
    """Schema for editing the text of a message."""

    content: str = Field(..., description="Replacement message text")


class BatchDeleteRequest(BaseModel):
    """Schema for deleting several of the caller's messages at once."""

    message_ids: list[uuid.UUID] = Field(..., min_length=1, max_length=100)


class MarkMessagesReadRequest(BaseModel):
    """Schema for marking specific messages as read."""

    message_ids: list[uuid.UUID] = Field(..., min_length=1, max_length=100)


class ReactionRequest(BaseModel):
    """Schema for adding, removing or toggling an emoji reaction."""

    emoji: str = Field(..., description="A single emoji")


class ReactionOut(BaseModel):
    """Reactions on a message grouped by emoji."""

    emoji: str
    count: int
    user_ids: list[uuid.UUID]


class ReactionToggleOut(BaseModel):
    """Outcome of a reaction toggle; exactly one flag is true."""

    added: bool
    removed: bool
    replaced: bool
    emoji: str
    previous_emoji: str | None = None
    reactions: list[ReactionOut]


class FavoriteToggleOut(BaseModel):
    added: bool
    removed: bool


class MessageOut(BaseModel):
    """Fields shared by direct and channel messages.

    Content and file reference are withheld once a message is deleted.
    """

    id: uuid.UUID
    sender_id: uuid.UUID
    content: str | None
    file_id: str | None
    reply_to_message_id: uuid.UUID | None
    is_forwarded: bool
    is_edited: bool
    edited_at: datetime | None
    is_deleted: bool
    deleted_at: datetime | None
    is_pinned: bool
    pinned_at: datetime | None
    pinned_by: uuid.UUID | None
    created_at: datetime
    reactions: list[ReactionOut] = Field(default_factory=list)
    is_favorite: bool = False
    is_marked_later: bool = False


class DirectMessageOut(MessageOut):
    """Direct message as returned by the API."""

    conversation_id: uuid.UUID
    receiver_id: uuid.UUID
    is_read: bool


class ChannelMessageOut(MessageOut):
    """Channel message as returned by the API."""

    channel_id: uuid.UUID
    read_by_count: int = 0
