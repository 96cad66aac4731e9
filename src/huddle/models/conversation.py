"""Models describing one-to-one and notes conversations."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from huddle.core.errors import NotParticipantError
from huddle.db.session import Base
from huddle.db.time import utcnow
from huddle.models.mixins import MemberPreferencesMixin


def canonical_pair(user_a: uuid.UUID, user_b: uuid.UUID) -> tuple[uuid.UUID, uuid.UUID]:
    """Return the participant pair with the smaller id first."""
    return (user_a, user_b) if user_a <= user_b else (user_b, user_a)


class DirectConversation(Base):
    """Two-participant conversation, or a self conversation used for notes.

    Participants are stored in canonical order so a pair always maps to the
    same row. The ordering is fixed at creation.
    """

    __tablename__ = "direct_conversation"
    __table_args__ = (
        UniqueConstraint("user1_id", "user2_id", name="uq_direct_conversation_pair"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user1_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    user2_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    initiated_by_user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)

    # Until the first message the conversation is only listed for its initiator.
    has_messages: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_notes: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    last_message_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False)
    __mapper_args__ = {"version_id_col": version}

    @classmethod
    def start(cls, initiator_id: uuid.UUID, other_id: uuid.UUID) -> DirectConversation:
        """Build a new conversation initiated by ``initiator_id``."""
        if initiator_id == other_id:
            return cls.start_notes(initiator_id)
        user1_id, user2_id = canonical_pair(initiator_id, other_id)
        now = utcnow()
        return cls(
            id=uuid.uuid4(),
            user1_id=user1_id,
            user2_id=user2_id,
            initiated_by_user_id=initiator_id,
            has_messages=False,
            is_notes=False,
            last_message_at=now,
            created_at=now,
        )

    @classmethod
    def start_notes(cls, owner_id: uuid.UUID) -> DirectConversation:
        """Build the owner's self conversation, visible from creation."""
        now = utcnow()
        return cls(
            id=uuid.uuid4(),
            user1_id=owner_id,
            user2_id=owner_id,
            initiated_by_user_id=owner_id,
            has_messages=True,
            is_notes=True,
            last_message_at=now,
            created_at=now,
        )

    @property
    def participant_ids(self) -> list[uuid.UUID]:
        if self.user1_id == self.user2_id:
            return [self.user1_id]
        return [self.user1_id, self.user2_id]

    def build_members(self) -> list[DirectConversationMember]:
        """Create one preference row per distinct participant."""
        return [
            DirectConversationMember(
                id=uuid.uuid4(),
                conversation_id=self.id,
                user_id=user_id,
                is_active=True,
                is_pinned=False,
                is_muted=False,
                is_hidden=False,
                is_marked_read_later=False,
            )
            for user_id in self.participant_ids
        ]

    def is_participant(self, user_id: uuid.UUID) -> bool:
        return user_id in (self.user1_id, self.user2_id)

    def get_other_user_id(self, user_id: uuid.UUID) -> uuid.UUID:
        """Return the counterpart of ``user_id``; notes return the same id."""
        if not self.is_participant(user_id):
            raise NotParticipantError("User is not a participant in this conversation")
        if self.is_notes:
            return user_id
        return self.user2_id if user_id == self.user1_id else self.user1_id

    def is_visible_to(self, user_id: uuid.UUID) -> bool:
        """Whether the conversation should be listed for ``user_id``."""
        if not self.is_participant(user_id):
            return False
        return self.has_messages or self.is_notes or self.initiated_by_user_id == user_id

    def record_message(self) -> bool:
        """Note that a message was sent. Returns True on the first message."""
        now = utcnow()
        first = not self.has_messages
        self.has_messages = True
        self.last_message_at = now
        self.updated_at = now
        return first


class DirectConversationMember(MemberPreferencesMixin, Base):
    """Per-participant preference row for a direct conversation."""

    __tablename__ = "direct_conversation_member"
    __table_args__ = (
        UniqueConstraint("conversation_id", "user_id", name="uq_direct_conversation_member"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    conversation_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("direct_conversation.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False)
    __mapper_args__ = {"version_id_col": version}
