"""Data access helpers for direct and channel messages."""
from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Generic, TypeVar

from sqlalchemy import and_, func, select
from sqlalchemy.orm import Session

from huddle.models import (
    ChannelMessage,
    ChannelMessageRead,
    DirectMessage,
    FavoriteChannelMessage,
    FavoriteDirectMessage,
)

__all__ = ["ChannelMessageRepository", "DirectMessageRepository"]

MessageT = TypeVar("MessageT", DirectMessage, ChannelMessage)


class _MessageRepository(ABC, Generic[MessageT]):
    """Queries shared by both message kinds."""

    model: type[MessageT]
    favorite_model: type[FavoriteDirectMessage] | type[FavoriteChannelMessage]

    def __init__(self, session: Session) -> None:
        self.session = session

    @abstractmethod
    def _container_column(self):
        """Column holding the id of the conversation or channel."""

    def get_by_id(self, message_id: uuid.UUID) -> MessageT | None:
        return self.session.get(self.model, message_id)

    def get_many(self, message_ids: list[uuid.UUID]) -> list[MessageT]:
        if not message_ids:
            return []
        result = self.session.execute(select(self.model).where(self.model.id.in_(message_ids)))
        return list(result.scalars())

    def add(self, message: MessageT) -> MessageT:
        self.session.add(message)
        self.session.flush()
        return message

    def list_page(
        self,
        container_id: uuid.UUID,
        *,
        page_size: int,
        before: datetime | None = None,
        after: datetime | None = None,
    ) -> list[MessageT]:
        """Return one page of messages in chronological order.

        ``before`` pages backwards from a timestamp, ``after`` pages forwards.
        Without a cursor the most recent page is returned.
        """
        stmt = select(self.model).where(self._container_column() == container_id)
        if after is not None:
            stmt = stmt.where(self.model.created_at > after)
            if before is not None:
                stmt = stmt.where(self.model.created_at < before)
            result = self.session.execute(
                stmt.order_by(self.model.created_at.asc()).limit(page_size)
            )
            return list(result.scalars())

        if before is not None:
            stmt = stmt.where(self.model.created_at < before)
        result = self.session.execute(stmt.order_by(self.model.created_at.desc()).limit(page_size))
        return list(reversed(list(result.scalars())))

    def list_around(self, pivot: MessageT, count: int) -> list[MessageT]:
        """Return up to ``count`` messages centred on ``pivot``, in chronological order.

        Half of the window precedes the pivot; the rest, minus the pivot itself,
        follows it. A short side does not borrow from the other.
        """
        container = self._container_column() == pivot.container_id
        before_size = count // 2
        after_size = max(count - before_size - 1, 0)
        before = self.session.execute(
            select(self.model)
            .where(container, self.model.created_at < pivot.created_at)
            .order_by(self.model.created_at.desc())
            .limit(before_size)
        )
        after = self.session.execute(
            select(self.model)
            .where(container, self.model.created_at > pivot.created_at)
            .order_by(self.model.created_at.asc())
            .limit(after_size)
        )
        return [*reversed(list(before.scalars())), pivot, *after.scalars()]

    def list_pinned(self, container_id: uuid.UUID) -> list[MessageT]:
        result = self.session.execute(
            select(self.model)
            .where(
                self._container_column() == container_id,
                self.model.is_pinned.is_(True),
                self.model.is_deleted.is_(False),
            )
            .order_by(self.model.pinned_at.desc())
        )
        return list(result.scalars())

    def list_favorites(
        self, user_id: uuid.UUID, container_id: uuid.UUID | None = None
    ) -> list[MessageT]:
        """Return non-deleted messages favorited by ``user_id``, newest favorite first."""
        fav = self.favorite_model
        stmt = (
            select(self.model)
            .join(fav, and_(fav.message_id == self.model.id, fav.user_id == user_id))
            .where(self.model.is_deleted.is_(False))
        )
        if container_id is not None:
            stmt = stmt.where(self._container_column() == container_id)
        result = self.session.execute(stmt.order_by(fav.created_at.desc()))
        return list(result.scalars())

    def list_by_sender(self, sender_id: uuid.UUID, message_ids: list[uuid.UUID]) -> list[MessageT]:
        if not message_ids:
            return []
        result = self.session.execute(
            select(self.model).where(
                self.model.id.in_(message_ids),
                self.model.sender_id == sender_id,
            )
        )
        return list(result.scalars())


class DirectMessageRepository(_MessageRepository[DirectMessage]):
    """Message queries scoped to direct conversations."""

    model = DirectMessage
    favorite_model = FavoriteDirectMessage

    def _container_column(self):
        return DirectMessage.conversation_id

    def list_unread_for_receiver(
        self, conversation_id: uuid.UUID, user_id: uuid.UUID
    ) -> list[DirectMessage]:
        result = self.session.execute(
            select(DirectMessage).where(
                DirectMessage.conversation_id == conversation_id,
                DirectMessage.receiver_id == user_id,
                DirectMessage.is_read.is_(False),
                DirectMessage.is_deleted.is_(False),
            )
        )
        return list(result.scalars())

    def count_unread(self, conversation_id: uuid.UUID, user_id: uuid.UUID) -> int:
        """Count unread, non-deleted messages addressed to ``user_id``."""
        result = self.session.execute(
            select(func.count(DirectMessage.id)).where(
                DirectMessage.conversation_id == conversation_id,
                DirectMessage.receiver_id == user_id,
                DirectMessage.is_read.is_(False),
                DirectMessage.is_deleted.is_(False),
            )
        )
        return int(result.scalar_one())


class ChannelMessageRepository(_MessageRepository[ChannelMessage]):
    """Message queries scoped to channels."""

    model = ChannelMessage
    favorite_model = FavoriteChannelMessage

    def _container_column(self):
        return ChannelMessage.channel_id

    def _unread_filter(self, channel_id: uuid.UUID, user_id: uuid.UUID, joined_at: datetime):
        receipt_exists = (
            select(ChannelMessageRead.message_id)
            .where(
                ChannelMessageRead.message_id == ChannelMessage.id,
                ChannelMessageRead.user_id == user_id,
            )
            .exists()
        )
        return and_(
            ChannelMessage.channel_id == channel_id,
            ChannelMessage.is_deleted.is_(False),
            ChannelMessage.sender_id != user_id,
            ChannelMessage.created_at > joined_at,
            ~receipt_exists,
        )

    def list_unread_for_user(
        self, channel_id: uuid.UUID, user_id: uuid.UUID, joined_at: datetime
    ) -> list[ChannelMessage]:
        result = self.session.execute(
            select(ChannelMessage)
            .where(self._unread_filter(channel_id, user_id, joined_at))
            .order_by(ChannelMessage.created_at.asc())
        )
        return list(result.scalars())

    def count_unread(self, channel_id: uuid.UUID, user_id: uuid.UUID, joined_at: datetime) -> int:
        """Count messages after ``joined_at`` that ``user_id`` neither wrote nor read."""
        result = self.session.execute(
            select(func.count(ChannelMessage.id)).where(
                self._unread_filter(channel_id, user_id, joined_at)
            )
        )
        return int(result.scalar_one())
