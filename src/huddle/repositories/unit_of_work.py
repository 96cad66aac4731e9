"""Unit of work bundling the repositories of one command."""
from __future__ import annotations

from types import TracebackType

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from huddle.core.errors import ConcurrencyConflictError
from huddle.models import (
    ChannelMessageReaction,
    DirectMessageReaction,
    FavoriteChannelMessage,
    FavoriteDirectMessage,
)

from .channel_repo import ChannelRepository
from .conversation_repo import ConversationRepository
from .interaction_repo import FavoriteRepository, ReactionRepository, ReadReceiptRepository
from .message_repo import ChannelMessageRepository, DirectMessageRepository

__all__ = ["UnitOfWork"]


class UnitOfWork:
    """One transactional session shared by every repository of a command.

    ``commit`` translates optimistic-lock and unique-index violations raised by
    concurrent writers into :class:`ConcurrencyConflictError`.
    """

    def __init__(self, session: Session) -> None:
        self.session = session
        self.conversations = ConversationRepository(session)
        self.channels = ChannelRepository(session)
        self.direct_messages = DirectMessageRepository(session)
        self.channel_messages = ChannelMessageRepository(session)
        self.direct_reactions = ReactionRepository(session, DirectMessageReaction)
        self.channel_reactions = ReactionRepository(session, ChannelMessageReaction)
        self.direct_favorites = FavoriteRepository(session, FavoriteDirectMessage)
        self.channel_favorites = FavoriteRepository(session, FavoriteChannelMessage)
        self.read_receipts = ReadReceiptRepository(session)

    def __enter__(self) -> UnitOfWork:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc_type is not None:
            self.rollback()

    def flush(self) -> None:
        try:
            self.session.flush()
        except (StaleDataError, IntegrityError) as err:
            self.session.rollback()
            raise ConcurrencyConflictError(
                "The data was modified by another request. Please retry."
            ) from err

    def commit(self) -> None:
        """Commit the transaction, surfacing lost races as conflicts."""
        try:
            self.session.commit()
        except (StaleDataError, IntegrityError) as err:
            self.session.rollback()
            raise ConcurrencyConflictError(
                "The data was modified by another request. Please retry."
            ) from err

    def rollback(self) -> None:
        self.session.rollback()
