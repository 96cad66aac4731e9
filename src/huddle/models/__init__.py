# src/huddle/models/__init__.py
"""SQLAlchemy models for the Huddle messaging core."""

from .channel import Channel, ChannelMember, ChannelType, MemberRole
from .conversation import DirectConversation, DirectConversationMember, canonical_pair
from .interaction import (
    ChannelMessageRead,
    ChannelMessageReaction,
    DirectMessageReaction,
    FavoriteChannelMessage,
    FavoriteDirectMessage,
)
from .message import ChannelMessage, DirectMessage

__all__ = [
    "Channel", "ChannelMember", "ChannelType", "MemberRole",
    "DirectConversation", "DirectConversationMember", "canonical_pair",
    "DirectMessage", "ChannelMessage",
    "DirectMessageReaction", "ChannelMessageReaction",
    "FavoriteDirectMessage", "FavoriteChannelMessage",
    "ChannelMessageRead",
]
