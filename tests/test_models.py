# tests/test_models.py
"""Unit tests for entity rules that need no database."""

import uuid

import pytest

from huddle.core.errors import (
    ConflictError,
    InvalidStateError,
    NotParticipantError,
    ValidationError,
)
from huddle.models import (
    Channel,
    ChannelType,
    DirectConversation,
    DirectMessage,
    MemberRole,
    canonical_pair,
)


def _message(content: str = "hello") -> DirectMessage:
    return DirectMessage.compose(
        conversation_id=uuid.uuid4(),
        sender_id=uuid.uuid4(),
        receiver_id=uuid.uuid4(),
        content=content,
    )


def _channel(owner: uuid.UUID, channel_type: ChannelType = ChannelType.PUBLIC) -> Channel:
    return Channel.create(name="eng", description=None, channel_type=channel_type, created_by=owner)


class TestDirectConversation:
    def test_participants_are_stored_in_canonical_order(self) -> None:
        low, high = sorted([uuid.uuid4(), uuid.uuid4()])
        conversation = DirectConversation.start(high, low)

        assert (conversation.user1_id, conversation.user2_id) == (low, high)
        assert conversation.initiated_by_user_id == high
        assert canonical_pair(high, low) == canonical_pair(low, high) == (low, high)

    def test_new_conversation_is_visible_only_to_initiator(self) -> None:
        alice, bob = uuid.uuid4(), uuid.uuid4()
        conversation = DirectConversation.start(alice, bob)

        assert conversation.is_visible_to(alice)
        assert not conversation.is_visible_to(bob)

        assert conversation.record_message() is True
        assert conversation.is_visible_to(bob)
        assert conversation.record_message() is False

    def test_notes_conversation(self) -> None:
        owner = uuid.uuid4()
        notes = DirectConversation.start(owner, owner)

        assert notes.is_notes
        assert notes.has_messages
        assert notes.get_other_user_id(owner) == owner
        assert len(notes.build_members()) == 1

    def test_get_other_user_id_rejects_stranger(self) -> None:
        alice, bob = uuid.uuid4(), uuid.uuid4()
        conversation = DirectConversation.start(alice, bob)

        assert conversation.get_other_user_id(alice) == bob
        assert conversation.get_other_user_id(bob) == alice
        with pytest.raises(NotParticipantError):
            conversation.get_other_user_id(uuid.uuid4())
        assert not conversation.is_visible_to(uuid.uuid4())


class TestMessageLifecycle:
    def test_compose_requires_content_or_file(self) -> None:
        with pytest.raises(ValidationError):
            _message("")
        message = DirectMessage.compose(
            conversation_id=uuid.uuid4(),
            sender_id=uuid.uuid4(),
            receiver_id=uuid.uuid4(),
            content=None,
            file_id="file-123",
        )
        assert message.content == ""
        assert message.file_id == "file-123"

    def test_content_length_limit(self) -> None:
        assert _message("x" * 4000).content == "x" * 4000
        with pytest.raises(ValidationError):
            _message("x" * 4001)

    def test_edit_with_same_content_is_a_noop(self) -> None:
        message = _message("same")

        assert message.edit("same") is False
        assert message.is_edited is False
        assert message.edited_at is None

        assert message.edit("changed") is True
        assert message.is_edited is True
        assert message.edited_at is not None

    def test_edit_rejects_empty_content(self) -> None:
        message = _message()
        with pytest.raises(ValidationError):
            message.edit("   ")

    def test_deleted_message_rejects_mutation_and_hides_content(self) -> None:
        message = _message("secret")

        assert message.delete() is True
        assert message.delete() is False
        assert message.visible_content is None
        assert message.content == "secret"
        with pytest.raises(InvalidStateError):
            message.edit("new")
        with pytest.raises(InvalidStateError):
            message.pin(uuid.uuid4())

    def test_pin_and_unpin_conflicts(self) -> None:
        message = _message()
        pinner = uuid.uuid4()

        message.pin(pinner)
        assert message.pinned_by == pinner
        with pytest.raises(ConflictError):
            message.pin(pinner)

        message.unpin()
        assert message.pinned_at is None
        with pytest.raises(ConflictError):
            message.unpin()


class TestChannelMembership:
    def test_creator_is_the_only_owner(self) -> None:
        owner = uuid.uuid4()
        channel = _channel(owner)

        assert channel.owner.user_id == owner
        assert [m.role for m in channel.members] == [MemberRole.OWNER]

    def test_channel_name_validation(self) -> None:
        with pytest.raises(ValidationError):
            Channel.create(name=" ", description=None, channel_type=ChannelType.PUBLIC, created_by=uuid.uuid4())
        with pytest.raises(ValidationError):
            Channel.create(
                name="x" * 101, description=None, channel_type=ChannelType.PUBLIC, created_by=uuid.uuid4()
            )

    def test_private_channel_only_accepts_admins_through_add_member(self) -> None:
        channel = _channel(uuid.uuid4(), ChannelType.PRIVATE)

        with pytest.raises(InvalidStateError):
            channel.add_member(uuid.uuid4(), MemberRole.MEMBER)
        admin = channel.add_member(uuid.uuid4(), MemberRole.ADMIN)
        assert admin.role is MemberRole.ADMIN

    def test_duplicate_member_is_a_conflict(self) -> None:
        channel = _channel(uuid.uuid4())
        user = uuid.uuid4()
        channel.add_member(user)

        with pytest.raises(ConflictError):
            channel.add_member(user)

    def test_owner_cannot_be_removed_or_demoted(self) -> None:
        owner = uuid.uuid4()
        channel = _channel(owner)

        with pytest.raises(ConflictError):
            channel.remove_member(owner)
        with pytest.raises(ConflictError):
            channel.update_member_role(owner, MemberRole.ADMIN)
        with pytest.raises(ConflictError):
            channel.leave(owner)

    def test_promotion_to_owner_requires_transfer(self) -> None:
        channel = _channel(uuid.uuid4())
        member = uuid.uuid4()
        channel.add_member(member)

        with pytest.raises(ConflictError):
            channel.update_member_role(member, MemberRole.OWNER)

    def test_transfer_ownership(self) -> None:
        owner, member = uuid.uuid4(), uuid.uuid4()
        channel = _channel(owner)
        channel.add_member(member)

        channel.transfer_ownership(owner, member)

        assert channel.owner.user_id == member
        assert channel.get_member(owner).role is MemberRole.ADMIN
        assert sum(1 for m in channel.members if m.role is MemberRole.OWNER) == 1

    def test_transfer_requires_membership(self) -> None:
        owner = uuid.uuid4()
        channel = _channel(owner)

        with pytest.raises(NotParticipantError):
            channel.transfer_ownership(owner, uuid.uuid4())
        with pytest.raises(InvalidStateError):
            channel.transfer_ownership(uuid.uuid4(), owner)

    def test_transfer_to_former_member_is_refused(self) -> None:
        owner, member = uuid.uuid4(), uuid.uuid4()
        channel = _channel(owner)
        channel.add_member(member)
        channel.leave(member)

        with pytest.raises(NotParticipantError):
            channel.transfer_ownership(owner, member)
        with pytest.raises(NotParticipantError):
            channel.update_member_role(member, MemberRole.ADMIN)
        assert channel.owner.user_id == owner

    def test_join_and_rejoin_public_channel(self) -> None:
        channel = _channel(uuid.uuid4())
        user = uuid.uuid4()

        channel.join(user)
        with pytest.raises(ConflictError):
            channel.join(user)
        channel.leave(user)
        assert not channel.is_active_member(user)

        channel.join(user)
        assert channel.is_active_member(user)

    def test_private_channel_cannot_be_joined(self) -> None:
        channel = _channel(uuid.uuid4(), ChannelType.PRIVATE)
        with pytest.raises(InvalidStateError):
            channel.join(uuid.uuid4())


class TestMemberPreferences:
    def test_read_later_marks_are_independent(self) -> None:
        conversation = DirectConversation.start(uuid.uuid4(), uuid.uuid4())
        member = conversation.build_members()[0]
        first, second = uuid.uuid4(), uuid.uuid4()

        member.mark_conversation_as_read_later()
        assert member.toggle_message_as_later(first) is True
        assert member.toggle_message_as_later(second) is True
        assert member.last_read_later_message_id == second
        assert member.is_marked_read_later

        assert member.toggle_message_as_later(second) is False
        assert member.last_read_later_message_id is None
        assert member.is_marked_read_later

        member.toggle_message_as_later(first)
        member.unmark_conversation_as_read_later()
        assert member.last_read_later_message_id == first

        member.mark_conversation_as_read_later()
        member.clear_read_later()
        assert not member.is_marked_read_later
        assert member.last_read_later_message_id is None
