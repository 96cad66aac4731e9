"""Reaction toggle engine shared by direct and channel messages."""
from __future__ import annotations

import logging
import uuid

from huddle.core.errors import ConflictError, NotFoundError, ValidationError
from huddle.core.settings import settings
from huddle.services.base import BaseService, command
from huddle.services.results import (
    ReactionSummary,
    ReactionToggleResult,
    Result,
    summarize_reactions,
)
from huddle.services.scopes import ConversationKind, load_message_in_container, scope_for
from huddle.services.single_flight import toggle_flight

logger = logging.getLogger(__name__)


def normalize_emoji(emoji: str | None) -> str:
    """Strip whitespace and enforce the 1..MAX_REACTION_LENGTH bound."""
    value = (emoji or "").strip()
    if not value:
        raise ValidationError("Emoji cannot be empty")
    if len(value) > settings.max_reaction_length:
        raise ValidationError(
            f"Emoji cannot exceed {settings.max_reaction_length} characters"
        )
    return value


class ReactionService(BaseService):
    """Keeps at most one reaction per user and message."""

    def toggle_reaction(
        self,
        kind: ConversationKind | str,
        message_id: uuid.UUID,
        user_id: uuid.UUID,
        emoji: str,
    ) -> Result[ReactionToggleResult]:
        """Add, remove or replace the caller's reaction.

        The same emoji removes the reaction, a different one replaces it, and
        no reaction adds one. Repeated calls for the same key that overlap an
        in-flight call share its result. Overlapping toggles with different
        emoji meet the one-reaction-per-user unique key, and the later writer
        fails with a concurrency conflict.
        """
        key = ("reaction", ConversationKind(kind), message_id, user_id, emoji)
        return toggle_flight.do(
            key, lambda: self._toggle_reaction(kind, message_id, user_id, emoji)
        )

    @command("toggling reaction")
    def _toggle_reaction(
        self,
        kind: ConversationKind | str,
        message_id: uuid.UUID,
        user_id: uuid.UUID,
        emoji: str,
    ) -> Result[ReactionToggleResult]:
        emoji = normalize_emoji(emoji)
        scope = scope_for(kind)
        message, container = load_message_in_container(scope, self.uow, message_id, user_id)
        message.ensure_not_deleted("react to")

        repo = scope.reactions(self.uow)
        existing = repo.list_for_user(message_id, user_id)
        previous = existing[0].emoji if existing else None
        for reaction in existing:
            repo.remove(reaction)

        added = replaced = removed = False
        if previous == emoji:
            removed = True
        else:
            self.uow.flush()
            repo.add(message_id, user_id, emoji)
            replaced = previous is not None
            added = not replaced

        self.uow.flush()
        summaries = summarize_reactions(repo.list_for_message(message_id))
        self.uow.commit()

        outcome = ReactionToggleResult(
            added=added,
            removed=removed,
            replaced=replaced,
            emoji=emoji,
            previous_emoji=previous if replaced else None,
            reactions=summaries,
        )
        logger.info(
            "Reaction %s on %s by %s: %s",
            emoji,
            message_id,
            user_id,
            "removed" if removed else "replaced" if replaced else "added",
        )
        scope.notify(
            self.dispatcher,
            container,
            user_id,
            "reaction_toggled",
            {
                "message_id": str(message_id),
                "user_id": str(user_id),
                "emoji": emoji,
                "added": added,
                "removed": removed,
                "replaced": replaced,
                "previous_emoji": outcome.previous_emoji,
            },
        )
        return Result.success(outcome)

    @command("adding reaction")
    def add_reaction(
        self,
        kind: ConversationKind | str,
        message_id: uuid.UUID,
        user_id: uuid.UUID,
        emoji: str,
    ) -> Result[list[ReactionSummary]]:
        """Add a reaction. Any existing reaction of the user is a conflict."""
        emoji = normalize_emoji(emoji)
        scope = scope_for(kind)
        message, container = load_message_in_container(scope, self.uow, message_id, user_id)
        message.ensure_not_deleted("react to")

        repo = scope.reactions(self.uow)
        existing = repo.list_for_user(message_id, user_id)
        if existing:
            if existing[0].emoji == emoji:
                raise ConflictError("User has already reacted with this emoji")
            raise ConflictError(
                "User has already reacted to this message. Remove it or toggle instead."
            )
        repo.add(message_id, user_id, emoji)
        self.uow.flush()
        summaries = summarize_reactions(repo.list_for_message(message_id))
        self.uow.commit()

        logger.info("Reaction %s added to %s by %s", emoji, message_id, user_id)
        scope.notify(
            self.dispatcher,
            container,
            user_id,
            "reaction_added",
            {"message_id": str(message_id), "user_id": str(user_id), "emoji": emoji},
        )
        return Result.success(summaries)

    @command("removing reaction")
    def remove_reaction(
        self,
        kind: ConversationKind | str,
        message_id: uuid.UUID,
        user_id: uuid.UUID,
        emoji: str,
    ) -> Result[list[ReactionSummary]]:
        emoji = normalize_emoji(emoji)
        scope = scope_for(kind)
        message, container = load_message_in_container(scope, self.uow, message_id, user_id)
        message.ensure_not_deleted("react to")

        repo = scope.reactions(self.uow)
        reaction = repo.get(message_id, user_id, emoji)
        if reaction is None:
            raise NotFoundError("Reaction not found")
        repo.remove(reaction)
        self.uow.flush()
        summaries = summarize_reactions(repo.list_for_message(message_id))
        self.uow.commit()

        logger.info("Reaction %s removed from %s by %s", emoji, message_id, user_id)
        scope.notify(
            self.dispatcher,
            container,
            user_id,
            "reaction_removed",
            {"message_id": str(message_id), "user_id": str(user_id), "emoji": emoji},
        )
        return Result.success(summaries)

    @command("listing reactions")
    def list_reactions(
        self, kind: ConversationKind | str, message_id: uuid.UUID, user_id: uuid.UUID
    ) -> Result[list[ReactionSummary]]:
        scope = scope_for(kind)
        message, _ = load_message_in_container(scope, self.uow, message_id, user_id)
        if message.is_deleted:
            return Result.success([])
        return Result.success(summarize_reactions(scope.reactions(self.uow).list_for_message(message_id)))
