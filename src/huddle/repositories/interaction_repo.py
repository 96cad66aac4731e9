"""Data access helpers for reactions, favorites and read receipts."""
from __future__ import annotations

import uuid
from collections import Counter
from typing import Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy import insert as sa_insert
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from huddle.db.time import utcnow
from huddle.models import (
    ChannelMessageRead,
    ChannelMessageReaction,
    DirectMessageReaction,
    FavoriteChannelMessage,
    FavoriteDirectMessage,
)

__all__ = ["FavoriteRepository", "ReactionRepository", "ReadReceiptRepository"]

ReactionT = TypeVar("ReactionT", DirectMessageReaction, ChannelMessageReaction)
FavoriteT = TypeVar("FavoriteT", FavoriteDirectMessage, FavoriteChannelMessage)

# Dialects that can skip duplicate rows inside a single INSERT.
_CONFLICT_SKIPPING_INSERTS = {"postgresql": postgresql.insert, "sqlite": sqlite.insert}


class ReactionRepository(Generic[ReactionT]):
    """Reaction rows for one message kind."""

    def __init__(self, session: Session, model: type[ReactionT]) -> None:
        self.session = session
        self.model = model

    def list_for_user(self, message_id: uuid.UUID, user_id: uuid.UUID) -> list[ReactionT]:
        """Return the reaction ``user_id`` holds on a message as a list of at most one."""
        result = self.session.execute(
            select(self.model).where(
                self.model.message_id == message_id,
                self.model.user_id == user_id,
            )
        )
        return list(result.scalars())

    def get(self, message_id: uuid.UUID, user_id: uuid.UUID, emoji: str) -> ReactionT | None:
        result = self.session.execute(
            select(self.model).where(
                self.model.message_id == message_id,
                self.model.user_id == user_id,
                self.model.emoji == emoji,
            )
        )
        return result.scalars().first()

    def add(self, message_id: uuid.UUID, user_id: uuid.UUID, emoji: str) -> ReactionT:
        reaction = self.model(id=uuid.uuid4(), message_id=message_id, user_id=user_id, emoji=emoji)
        self.session.add(reaction)
        return reaction

    def remove(self, reaction: ReactionT) -> None:
        self.session.delete(reaction)

    def list_for_message(self, message_id: uuid.UUID) -> list[ReactionT]:
        result = self.session.execute(
            select(self.model)
            .where(self.model.message_id == message_id)
            .order_by(self.model.created_at)
        )
        return list(result.scalars())

    def list_for_messages(self, message_ids: list[uuid.UUID]) -> list[ReactionT]:
        if not message_ids:
            return []
        result = self.session.execute(
            select(self.model)
            .where(self.model.message_id.in_(message_ids))
            .order_by(self.model.created_at)
        )
        return list(result.scalars())


class FavoriteRepository(Generic[FavoriteT]):
    """Favorite rows for one message kind."""

    def __init__(self, session: Session, model: type[FavoriteT]) -> None:
        self.session = session
        self.model = model

    def get(self, user_id: uuid.UUID, message_id: uuid.UUID) -> FavoriteT | None:
        return self.session.get(self.model, (user_id, message_id))

    def add(self, user_id: uuid.UUID, message_id: uuid.UUID) -> FavoriteT:
        favorite = self.model(user_id=user_id, message_id=message_id)
        self.session.add(favorite)
        return favorite

    def remove(self, favorite: FavoriteT) -> None:
        self.session.delete(favorite)

    def favorited_ids(self, user_id: uuid.UUID, message_ids: list[uuid.UUID]) -> set[uuid.UUID]:
        if not message_ids:
            return set()
        result = self.session.execute(
            select(self.model.message_id).where(
                self.model.user_id == user_id,
                self.model.message_id.in_(message_ids),
            )
        )
        return set(result.scalars())


class ReadReceiptRepository:
    """Read receipts for channel messages.

    Inserts skip receipts that already exist, so two readers racing on the
    same message both succeed.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, message_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        """Insert one receipt. Returns False when it was already there."""
        return self.add_many([message_id], user_id) == 1

    def add_many(self, message_ids: list[uuid.UUID], user_id: uuid.UUID) -> int:
        """Insert receipts for every id not already read. Returns the number inserted."""
        fresh = list(dict.fromkeys(message_ids))
        if not fresh:
            return 0
        read_at = utcnow()
        rows = [{"message_id": message_id, "user_id": user_id, "read_at": read_at} for message_id in fresh]
        dialect = self.session.get_bind().dialect.name
        dialect_insert = _CONFLICT_SKIPPING_INSERTS.get(dialect)
        if dialect_insert is not None:
            stmt = dialect_insert(ChannelMessageRead).values(rows).on_conflict_do_nothing()
            return self.session.execute(stmt).rowcount
        return self._add_each_in_savepoint(rows)

    def _add_each_in_savepoint(self, rows: list[dict]) -> int:
        inserted = 0
        for row in rows:
            try:
                with self.session.begin_nested():
                    self.session.execute(sa_insert(ChannelMessageRead).values(**row))
            except IntegrityError:
                continue
            inserted += 1
        return inserted

    def read_counts(self, message_ids: list[uuid.UUID]) -> dict[uuid.UUID, int]:
        """Map each message id to the number of users who have read it."""
        if not message_ids:
            return {}
        result = self.session.execute(
            select(ChannelMessageRead.message_id, func.count())
            .where(ChannelMessageRead.message_id.in_(message_ids))
            .group_by(ChannelMessageRead.message_id)
        )
        counts = Counter({message_id: 0 for message_id in message_ids})
        counts.update({message_id: count for message_id, count in result.all()})
        return dict(counts)
