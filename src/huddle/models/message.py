"""Models describing direct and channel messages."""

from __future__ import annotations

import uuid

from sqlalchemy import Boolean, ForeignKey, Index, Integer, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from huddle.db.session import Base
from huddle.db.time import utcnow
from huddle.models.mixins import MessageMixin, validate_message_body


class DirectMessage(MessageMixin, Base):
    """Message inside a direct conversation.

    A direct message has exactly one recipient, so read state is a single flag.
    """

    __tablename__ = "direct_message"
    __table_args__ = (
        Index("ix_direct_message_conversation_created", "conversation_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    conversation_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("direct_conversation.id", ondelete="CASCADE"),
        nullable=False,
    )
    sender_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    receiver_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    version: Mapped[int] = mapped_column(Integer, nullable=False)
    __mapper_args__ = {"version_id_col": version}

    @classmethod
    def compose(
        cls,
        *,
        conversation_id: uuid.UUID,
        sender_id: uuid.UUID,
        receiver_id: uuid.UUID,
        content: str | None,
        file_id: str | None = None,
        reply_to_message_id: uuid.UUID | None = None,
        is_forwarded: bool = False,
    ) -> DirectMessage:
        return cls(
            id=uuid.uuid4(),
            conversation_id=conversation_id,
            sender_id=sender_id,
            receiver_id=receiver_id,
            content=validate_message_body(content, file_id),
            file_id=file_id,
            reply_to_message_id=reply_to_message_id,
            is_forwarded=is_forwarded,
            is_read=False,
            is_edited=False,
            is_deleted=False,
            is_pinned=False,
            created_at=utcnow(),
        )

    @property
    def container_id(self) -> uuid.UUID:
        return self.conversation_id

    def mark_as_read(self) -> bool:
        """Set the read flag. Returns False when it was already set."""
        if self.is_read:
            return False
        self.is_read = True
        self.updated_at = utcnow()
        return True


class ChannelMessage(MessageMixin, Base):
    """Message posted to a channel; read state lives in receipts."""

    __tablename__ = "channel_message"
    __table_args__ = (
        Index("ix_channel_message_channel_created", "channel_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    channel_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("channel.id", ondelete="CASCADE"),
        nullable=False,
    )
    sender_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False)
    __mapper_args__ = {"version_id_col": version}

    @classmethod
    def compose(
        cls,
        *,
        channel_id: uuid.UUID,
        sender_id: uuid.UUID,
        content: str | None,
        file_id: str | None = None,
        reply_to_message_id: uuid.UUID | None = None,
        is_forwarded: bool = False,
    ) -> ChannelMessage:
        return cls(
            id=uuid.uuid4(),
            channel_id=channel_id,
            sender_id=sender_id,
            content=validate_message_body(content, file_id),
            file_id=file_id,
            reply_to_message_id=reply_to_message_id,
            is_forwarded=is_forwarded,
            is_edited=False,
            is_deleted=False,
            is_pinned=False,
            created_at=utcnow(),
        )

    @property
    def container_id(self) -> uuid.UUID:
        return self.channel_id
