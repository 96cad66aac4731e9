"""Data access helpers for direct conversations and their members."""
from __future__ import annotations

import uuid

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from huddle.models import DirectConversation, DirectConversationMember, canonical_pair

__all__ = ["ConversationRepository"]


class ConversationRepository:
    """Thin wrapper around database access for direct conversations."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def get_by_id(self, conversation_id: uuid.UUID) -> DirectConversation | None:
        """Return a conversation by identifier."""
        return self.session.get(DirectConversation, conversation_id)

    def get_by_participants(
        self, user_a: uuid.UUID, user_b: uuid.UUID
    ) -> DirectConversation | None:
        """Return the conversation for a participant pair in either order."""
        user1_id, user2_id = canonical_pair(user_a, user_b)
        result = self.session.execute(
            select(DirectConversation).where(
                DirectConversation.user1_id == user1_id,
                DirectConversation.user2_id == user2_id,
            )
        )
        return result.scalars().first()

    def add(
        self,
        conversation: DirectConversation,
        members: list[DirectConversationMember],
    ) -> DirectConversation:
        """Stage a new conversation together with its member rows."""
        self.session.add(conversation)
        self.session.add_all(members)
        self.session.flush()
        return conversation

    def list_for_user(self, user_id: uuid.UUID) -> list[DirectConversation]:
        """Return every conversation ``user_id`` takes part in, newest activity first."""
        result = self.session.execute(
            select(DirectConversation)
            .where(
                or_(
                    DirectConversation.user1_id == user_id,
                    DirectConversation.user2_id == user_id,
                )
            )
            .order_by(DirectConversation.last_message_at.desc())
        )
        return list(result.scalars())

    def get_by_conversation_and_user(
        self, conversation_id: uuid.UUID, user_id: uuid.UUID
    ) -> DirectConversationMember | None:
        """Return the preference row of ``user_id`` in a conversation."""
        result = self.session.execute(
            select(DirectConversationMember).where(
                DirectConversationMember.conversation_id == conversation_id,
                DirectConversationMember.user_id == user_id,
            )
        )
        return result.scalars().first()

    def members_for_user(
        self, user_id: uuid.UUID, conversation_ids: list[uuid.UUID]
    ) -> dict[uuid.UUID, DirectConversationMember]:
        """Map conversation id to the preference row of ``user_id``."""
        if not conversation_ids:
            return {}
        result = self.session.execute(
            select(DirectConversationMember).where(
                DirectConversationMember.user_id == user_id,
                DirectConversationMember.conversation_id.in_(conversation_ids),
            )
        )
        return {member.conversation_id: member for member in result.scalars()}
