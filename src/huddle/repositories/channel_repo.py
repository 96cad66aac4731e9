"""Data access helpers for channels and channel memberships."""
from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.orm import Session

from huddle.models import Channel, ChannelMember, ChannelMessage, ChannelType

__all__ = ["ChannelRepository"]


class ChannelRepository:
    """Loads and stores the channel aggregate (channel plus members)."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_by_id(self, channel_id: uuid.UUID) -> Channel | None:
        """Return a channel with its members eagerly loaded."""
        return self.session.get(Channel, channel_id)

    def add(self, channel: Channel) -> Channel:
        self.session.add(channel)
        self.session.flush()
        return channel

    def list_for_user(self, user_id: uuid.UUID, include_archived: bool = False) -> list[Channel]:
        """Return channels where ``user_id`` holds an active membership."""
        stmt = (
            select(Channel)
            .join(ChannelMember, ChannelMember.channel_id == Channel.id)
            .where(ChannelMember.user_id == user_id, ChannelMember.is_active.is_(True))
        )
        if not include_archived:
            stmt = stmt.where(Channel.is_archived.is_(False))
        result = self.session.execute(stmt.order_by(Channel.name))
        return list(result.scalars().unique())

    def list_public(self, search: str | None = None, limit: int = 50) -> list[Channel]:
        """Return non-archived public channels, optionally filtered by name."""
        stmt = select(Channel).where(
            Channel.type == ChannelType.PUBLIC,
            Channel.is_archived.is_(False),
        )
        if search:
            stmt = stmt.where(Channel.name.ilike(f"%{search}%"))
        result = self.session.execute(stmt.order_by(Channel.name).limit(limit))
        return list(result.scalars())

    def has_messages(self, channel_id: uuid.UUID) -> bool:
        """Whether any non-deleted message exists in the channel."""
        result = self.session.execute(
            select(ChannelMessage.id)
            .where(
                ChannelMessage.channel_id == channel_id,
                ChannelMessage.is_deleted.is_(False),
            )
            .limit(1)
        )
        return result.first() is not None
