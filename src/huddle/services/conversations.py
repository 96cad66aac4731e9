"""Resolving and listing direct conversations."""
from __future__ import annotations

import logging
import uuid

from sqlalchemy.exc import IntegrityError

from huddle.core.errors import ConcurrencyConflictError
from huddle.models import DirectConversation
from huddle.schemas import ConversationOut
from huddle.services.base import BaseService, command
from huddle.services.projections import to_conversation_out
from huddle.services.results import Result
from huddle.services.scopes import DirectScope

logger = logging.getLogger(__name__)


class ConversationService(BaseService):
    """Conversation identity resolution and the conversation list."""

    scope = DirectScope()

    @command("resolving conversation")
    def get_or_create_conversation(
        self, user_a: uuid.UUID, user_b: uuid.UUID
    ) -> Result[DirectConversation]:
        """Return the conversation of a user pair, creating it on first use.

        The pair is looked up in canonical order, so both participants resolve
        the same row. A new conversation records ``user_a`` as initiator and
        stays invisible to ``user_b`` until the first message. Passing the same
        id twice resolves the caller's notes conversation.
        """
        existing = self.uow.conversations.get_by_participants(user_a, user_b)
        if existing is not None:
            return Result.success(existing)

        conversation = DirectConversation.start(user_a, user_b)
        try:
            self.uow.conversations.add(conversation, conversation.build_members())
            self.uow.commit()
        except (IntegrityError, ConcurrencyConflictError):
            # Another request created the pair first.
            self.uow.rollback()
            existing = self.uow.conversations.get_by_participants(user_a, user_b)
            if existing is None:
                raise
            return Result.success(existing)

        logger.info(
            "Created %s conversation %s for %s",
            "notes" if conversation.is_notes else "direct",
            conversation.id,
            user_a,
        )
        return Result.success(conversation)

    def get_or_create_notes(self, owner_id: uuid.UUID) -> Result[DirectConversation]:
        return self.get_or_create_conversation(owner_id, owner_id)

    @command("loading conversation")
    def get_conversation(
        self, conversation_id: uuid.UUID, user_id: uuid.UUID
    ) -> Result[ConversationOut]:
        container = self.scope.load_container(self.uow, conversation_id, user_id)
        unread = self.uow.direct_messages.count_unread(conversation_id, user_id)
        return Result.success(
            to_conversation_out(container.conversation, user_id, container.member, unread)
        )

    @command("listing conversations")
    def list_conversations(
        self, user_id: uuid.UUID, include_hidden: bool = False
    ) -> Result[list[ConversationOut]]:
        """List the conversations visible to ``user_id``.

        Pinned conversations come first, then the rest by latest activity.
        """
        conversations = [
            conversation
            for conversation in self.uow.conversations.list_for_user(user_id)
            if conversation.is_visible_to(user_id)
        ]
        members = self.uow.conversations.members_for_user(
            user_id, [conversation.id for conversation in conversations]
        )

        items: list[ConversationOut] = []
        for conversation in conversations:
            member = members.get(conversation.id)
            if member is None:
                logger.warning("Conversation %s has no member row for %s", conversation.id, user_id)
                continue
            if member.is_hidden and not include_hidden:
                continue
            unread = self.uow.direct_messages.count_unread(conversation.id, user_id)
            items.append(to_conversation_out(conversation, user_id, member, unread))

        # Stable sort keeps the newest-activity order inside each group.
        items.sort(key=lambda item: not item.preferences.is_pinned)
        return Result.success(items)
