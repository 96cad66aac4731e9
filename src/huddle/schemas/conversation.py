# src/huddle/schemas/conversation.py
"""Direct conversation Pydantic schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class StartConversationRequest(BaseModel):
    """Schema for opening a conversation with another user."""

    other_user_id: uuid.UUID = Field(..., description="Counterpart; pass your own id for notes")


class PreferencesOut(BaseModel):
    """Per-user preferences attached to a conversation or channel membership."""

    is_pinned: bool
    is_muted: bool
    is_hidden: bool
    is_marked_read_later: bool
    last_read_later_message_id: uuid.UUID | None


class ConversationOut(BaseModel):
    """Conversation as seen by one participant."""

    id: uuid.UUID
    other_user_id: uuid.UUID
    initiated_by_user_id: uuid.UUID
    is_notes: bool
    has_messages: bool
    last_message_at: datetime
    unread_count: int = 0
    preferences: PreferencesOut
