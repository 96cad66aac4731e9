"""Per-user rows attached to a message: reactions, favorites and receipts.

Each row lives and dies with its parent message through ``ON DELETE CASCADE``;
none of them has a lifecycle beyond insert and delete.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from huddle.db.session import Base
from huddle.db.time import utcnow


class DirectMessageReaction(Base):
    """Emoji reaction on a direct message. One per user and message."""

    __tablename__ = "direct_message_reaction"
    __table_args__ = (
        UniqueConstraint("message_id", "user_id", name="uq_direct_message_reaction"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    message_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("direct_message.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    emoji: Mapped[str] = mapped_column(String(32), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)


class ChannelMessageReaction(Base):
    """Emoji reaction on a channel message. One per user and message."""

    __tablename__ = "channel_message_reaction"
    __table_args__ = (
        UniqueConstraint("message_id", "user_id", name="uq_channel_message_reaction"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    message_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("channel_message.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    emoji: Mapped[str] = mapped_column(String(32), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)


class FavoriteDirectMessage(Base):
    """A user's bookmark on a direct message. Presence implies favorited."""

    __tablename__ = "favorite_direct_message"

    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)
    message_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("direct_message.id", ondelete="CASCADE"),
        primary_key=True,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)


class FavoriteChannelMessage(Base):
    """A user's bookmark on a channel message. Presence implies favorited."""

    __tablename__ = "favorite_channel_message"

    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)
    message_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("channel_message.id", ondelete="CASCADE"),
        primary_key=True,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)


class ChannelMessageRead(Base):
    """Read receipt for a channel message. Presence implies read."""

    __tablename__ = "channel_message_read"

    # Composite primary key keeps receipts unique per user.
    message_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("channel_message.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)
    read_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
