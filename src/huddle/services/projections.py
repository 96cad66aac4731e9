"""Read-side projections from ORM rows to API schemas.

Deleted messages are projected without content or file reference.
"""
from __future__ import annotations

import uuid
from collections import defaultdict

from huddle.models import Channel, ChannelMessage, DirectConversation, DirectMessage
from huddle.models.mixins import MemberPreferencesMixin
from huddle.schemas import (
    ChannelMessageOut,
    ChannelOut,
    ConversationOut,
    DirectMessageOut,
    PreferencesOut,
    ReactionOut,
)
from huddle.services.results import ReactionSummary, summarize_reactions


def to_reaction_out(summary: ReactionSummary) -> ReactionOut:
    return ReactionOut(emoji=summary.emoji, count=summary.count, user_ids=list(summary.user_ids))


def group_reactions(reactions) -> dict[uuid.UUID, list[ReactionOut]]:
    """Map message id to its grouped reactions."""
    per_message = defaultdict(list)
    for reaction in reactions:
        per_message[reaction.message_id].append(reaction)
    return {
        message_id: [to_reaction_out(s) for s in summarize_reactions(rows)]
        for message_id, rows in per_message.items()
    }


def _message_fields(message: DirectMessage | ChannelMessage) -> dict:
    return {
        "id": message.id,
        "sender_id": message.sender_id,
        "content": message.visible_content,
        "file_id": message.visible_file_id,
        "reply_to_message_id": message.reply_to_message_id,
        "is_forwarded": message.is_forwarded,
        "is_edited": message.is_edited,
        "edited_at": message.edited_at,
        "is_deleted": message.is_deleted,
        "deleted_at": message.deleted_at,
        "is_pinned": message.is_pinned,
        "pinned_at": message.pinned_at,
        "pinned_by": message.pinned_by,
        "created_at": message.created_at,
    }


def to_direct_message_out(
    message: DirectMessage,
    *,
    reactions: list[ReactionOut] | None = None,
    is_favorite: bool = False,
    is_marked_later: bool = False,
) -> DirectMessageOut:
    """Convert a DirectMessage ORM instance to an API schema."""
    return DirectMessageOut(
        **_message_fields(message),
        conversation_id=message.conversation_id,
        receiver_id=message.receiver_id,
        is_read=message.is_read,
        reactions=[] if message.is_deleted else (reactions or []),
        is_favorite=is_favorite,
        is_marked_later=is_marked_later,
    )


def to_channel_message_out(
    message: ChannelMessage,
    *,
    reactions: list[ReactionOut] | None = None,
    is_favorite: bool = False,
    is_marked_later: bool = False,
    read_by_count: int = 0,
) -> ChannelMessageOut:
    """Convert a ChannelMessage ORM instance to an API schema."""
    return ChannelMessageOut(
        **_message_fields(message),
        channel_id=message.channel_id,
        reactions=[] if message.is_deleted else (reactions or []),
        is_favorite=is_favorite,
        is_marked_later=is_marked_later,
        read_by_count=read_by_count,
    )


def to_preferences_out(member: MemberPreferencesMixin) -> PreferencesOut:
    return PreferencesOut(
        is_pinned=member.is_pinned,
        is_muted=member.is_muted,
        is_hidden=member.is_hidden,
        is_marked_read_later=member.is_marked_read_later,
        last_read_later_message_id=member.last_read_later_message_id,
    )


def to_conversation_out(
    conversation: DirectConversation,
    user_id: uuid.UUID,
    member: MemberPreferencesMixin,
    unread_count: int = 0,
) -> ConversationOut:
    return ConversationOut(
        id=conversation.id,
        other_user_id=conversation.get_other_user_id(user_id),
        initiated_by_user_id=conversation.initiated_by_user_id,
        is_notes=conversation.is_notes,
        has_messages=conversation.has_messages,
        last_message_at=conversation.last_message_at,
        unread_count=unread_count,
        preferences=to_preferences_out(member),
    )


def channel_fields(channel: Channel) -> dict:
    return {
        "id": channel.id,
        "name": channel.name,
        "description": channel.description,
        "type": channel.type,
        "created_by": channel.created_by,
        "is_archived": channel.is_archived,
        "archived_at": channel.archived_at,
        "created_at": channel.created_at,
        "member_count": len(channel.active_member_ids),
    }


def to_channel_out(channel: Channel) -> ChannelOut:
    return ChannelOut(**channel_fields(channel))
