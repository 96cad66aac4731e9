"""Models for multi-member channels and their memberships."""

from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from huddle.core.errors import ConflictError, InvalidStateError, NotParticipantError, ValidationError
from huddle.core.settings import settings
from huddle.db.session import Base
from huddle.db.time import utcnow
from huddle.models.mixins import MemberPreferencesMixin


class ChannelType(str, enum.Enum):
    PUBLIC = "public"
    PRIVATE = "private"


class MemberRole(str, enum.Enum):
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"

    @property
    def rank(self) -> int:
        """Sort key placing owners first."""
        return {MemberRole.OWNER: 0, MemberRole.ADMIN: 1, MemberRole.MEMBER: 2}[self]


def _validate_name(name: str | None) -> str:
    if name is None or not name.strip():
        raise ValidationError("Channel name cannot be empty")
    if len(name) > settings.max_channel_name_length:
        raise ValidationError(
            f"Channel name cannot exceed {settings.max_channel_name_length} characters"
        )
    return name


def _validate_description(description: str | None) -> str | None:
    if description is not None and len(description) > settings.max_channel_description_length:
        raise ValidationError(
            f"Description cannot exceed {settings.max_channel_description_length} characters"
        )
    return description


class Channel(Base):
    """Channel aggregate root.

    Members are loaded eagerly with the channel and mutated only through the
    methods below, which keep exactly one owner at all times.
    """

    __tablename__ = "channel"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    type: Mapped[ChannelType] = mapped_column(
        Enum(ChannelType, native_enum=False, length=16),
        nullable=False,
        default=ChannelType.PUBLIC,
    )
    created_by: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    is_archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    archived_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    members: Mapped[list[ChannelMember]] = relationship(
        "ChannelMember",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="ChannelMember.joined_at",
    )

    version: Mapped[int] = mapped_column(Integer, nullable=False)
    __mapper_args__ = {"version_id_col": version}

    @classmethod
    def create(
        cls,
        *,
        name: str,
        description: str | None,
        channel_type: ChannelType,
        created_by: uuid.UUID,
    ) -> Channel:
        """Build a channel whose creator is its owner."""
        now = utcnow()
        channel = cls(
            id=uuid.uuid4(),
            name=_validate_name(name),
            description=_validate_description(description),
            type=channel_type,
            created_by=created_by,
            is_archived=False,
            created_at=now,
        )
        channel.members.append(ChannelMember.join(channel.id, created_by, MemberRole.OWNER))
        return channel

    def _touch(self) -> None:
        self.updated_at = utcnow()

    # Queries -----------------------------------------------------------------

    def find_member(self, user_id: uuid.UUID) -> ChannelMember | None:
        return next((m for m in self.members if m.user_id == user_id), None)

    def get_member(self, user_id: uuid.UUID) -> ChannelMember:
        member = self.find_member(user_id)
        if member is None:
            raise NotParticipantError("User is not a member of this channel")
        return member

    def get_active_member(self, user_id: uuid.UUID) -> ChannelMember:
        member = self.get_member(user_id)
        if not member.is_active:
            raise NotParticipantError("User is not an active member of this channel")
        return member

    def is_active_member(self, user_id: uuid.UUID) -> bool:
        member = self.find_member(user_id)
        return member is not None and member.is_active

    @property
    def owner(self) -> ChannelMember:
        return next(m for m in self.members if m.role is MemberRole.OWNER)

    @property
    def active_member_ids(self) -> list[uuid.UUID]:
        return [m.user_id for m in self.members if m.is_active]

    def ensure_not_archived(self) -> None:
        if self.is_archived:
            raise InvalidStateError("Channel is archived")

    def ensure_can_manage(self, user_id: uuid.UUID) -> None:
        """Require an active owner or admin."""
        member = self.get_active_member(user_id)
        if member.role not in (MemberRole.OWNER, MemberRole.ADMIN):
            raise InvalidStateError("Only the owner or an admin can manage this channel")

    # Channel details -----------------------------------------------------------

    def update_name(self, new_name: str) -> None:
        self.name = _validate_name(new_name)
        self._touch()

    def update_description(self, new_description: str | None) -> None:
        self.description = _validate_description(new_description)
        self._touch()

    def change_type(self, new_type: ChannelType) -> None:
        self.type = new_type
        self._touch()

    def archive(self) -> None:
        now = utcnow()
        self.is_archived = True
        self.archived_at = now
        self.updated_at = now

    # Membership --------------------------------------------------------------

    def add_member(self, user_id: uuid.UUID, role: MemberRole = MemberRole.MEMBER) -> ChannelMember:
        """Add a user with ``role``.

        Private channels only accept admins or owners through this path. The
        rule is kept as observed even though it blocks plain members. A user
        who left earlier is reactivated with the new role.
        """
        if self.type is ChannelType.PRIVATE and role not in (MemberRole.ADMIN, MemberRole.OWNER):
            raise InvalidStateError(
                "Cannot add member with role other than Admin or Owner to a private channel"
            )
        existing = self.find_member(user_id)
        if existing is not None and existing.is_active:
            raise ConflictError("User is already a member of this channel")
        if role is MemberRole.OWNER:
            raise ConflictError("Channel already has an owner. Transfer ownership instead.")

        if existing is not None:
            existing.rejoin()
            existing.update_role(role)
            self._touch()
            return existing

        member = ChannelMember.join(self.id, user_id, role)
        self.members.append(member)
        self._touch()
        return member

    def join(self, user_id: uuid.UUID) -> ChannelMember:
        """Self-service join for public channels; reactivates former members."""
        self.ensure_not_archived()
        if self.type is ChannelType.PRIVATE:
            raise InvalidStateError("Cannot join a private channel")
        member = self.find_member(user_id)
        if member is None:
            return self.add_member(user_id, MemberRole.MEMBER)
        if member.is_active:
            raise ConflictError("User is already a member of this channel")
        member.rejoin()
        self._touch()
        return member

    def leave(self, user_id: uuid.UUID) -> None:
        member = self.get_active_member(user_id)
        if member.role is MemberRole.OWNER:
            raise ConflictError("Channel owner cannot leave. Transfer ownership first.")
        member.leave()
        self._touch()

    def remove_member(self, user_id: uuid.UUID) -> ChannelMember:
        member = self.get_member(user_id)
        if member.role is MemberRole.OWNER:
            raise ConflictError("Cannot remove channel owner")
        self.members.remove(member)
        self._touch()
        return member

    def update_member_role(self, user_id: uuid.UUID, new_role: MemberRole) -> ChannelMember:
        """Change a non-owner's role between admin and member."""
        member = self.get_active_member(user_id)
        if member.role is MemberRole.OWNER and new_role is not MemberRole.OWNER:
            raise ConflictError("Cannot change owner role. Transfer ownership first.")
        if new_role is MemberRole.OWNER and member.role is not MemberRole.OWNER:
            raise ConflictError("Cannot promote to owner. Transfer ownership instead.")
        member.update_role(new_role)
        self._touch()
        return member

    def transfer_ownership(self, current_owner_id: uuid.UUID, new_owner_id: uuid.UUID) -> None:
        """Demote the current owner to admin and promote ``new_owner_id``.

        Both sides must be active members.
        """
        current = self.find_member(current_owner_id)
        if current is None or not current.is_active or current.role is not MemberRole.OWNER:
            raise InvalidStateError("Current owner not found")
        new_owner = self.find_member(new_owner_id)
        if new_owner is None or not new_owner.is_active:
            raise NotParticipantError("New owner must be an active member of the channel")
        if new_owner is current:
            raise ConflictError("User already owns this channel")

        current.update_role(MemberRole.ADMIN)
        new_owner.update_role(MemberRole.OWNER)
        self._touch()


class ChannelMember(MemberPreferencesMixin, Base):
    """Membership row with a role and per-user channel preferences."""

    __tablename__ = "channel_member"
    __table_args__ = (
        UniqueConstraint("channel_id", "user_id", name="uq_channel_member"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    channel_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("channel.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    role: Mapped[MemberRole] = mapped_column(
        Enum(MemberRole, native_enum=False, length=16),
        nullable=False,
        default=MemberRole.MEMBER,
    )
    joined_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    left_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False)
    __mapper_args__ = {"version_id_col": version}

    @classmethod
    def join(cls, channel_id: uuid.UUID, user_id: uuid.UUID, role: MemberRole) -> ChannelMember:
        return cls(
            id=uuid.uuid4(),
            channel_id=channel_id,
            user_id=user_id,
            role=role,
            joined_at=utcnow(),
            is_active=True,
            is_pinned=False,
            is_muted=False,
            is_hidden=False,
            is_marked_read_later=False,
        )

    def update_role(self, new_role: MemberRole) -> None:
        self.role = new_role
        self._touch()

    def leave(self) -> None:
        now = utcnow()
        self.is_active = False
        self.left_at = now
        self.updated_at = now

    def rejoin(self) -> None:
        now = utcnow()
        self.is_active = True
        self.left_at = None
        self.joined_at = now
        self.updated_at = now
