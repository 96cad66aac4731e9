# src/huddle/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .channel import (
    AddMemberRequest,
    ChannelCreate,
    ChannelMemberOut,
    ChannelOut,
    ChannelUpdate,
    TransferOwnershipRequest,
    UpdateRoleRequest,
    UserChannelOut,
)
from .conversation import ConversationOut, PreferencesOut, StartConversationRequest
from .message import (
    BatchDeleteRequest,
    BatchMessageItem,
    BatchSendRequest,
    ChannelMessageOut,
    DirectMessageOut,
    EditMessageRequest,
    FavoriteToggleOut,
    MarkMessagesReadRequest,
    MessageOut,
    ReactionOut,
    ReactionRequest,
    ReactionToggleOut,
    SendMessageRequest,
)

__all__ = [
    "AddMemberRequest", "ChannelCreate", "ChannelMemberOut", "ChannelOut", "ChannelUpdate",
    "TransferOwnershipRequest", "UpdateRoleRequest", "UserChannelOut",
    "ConversationOut", "PreferencesOut", "StartConversationRequest",
    "BatchDeleteRequest", "BatchMessageItem", "BatchSendRequest", "ChannelMessageOut",
    "DirectMessageOut", "EditMessageRequest", "FavoriteToggleOut", "MarkMessagesReadRequest",
    "MessageOut", "ReactionOut", "ReactionRequest", "ReactionToggleOut", "SendMessageRequest",
]
