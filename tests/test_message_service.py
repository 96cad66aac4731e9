# tests/test_message_service.py
"""Message lifecycle for direct conversations and channels."""

import uuid
from datetime import timedelta

import pytest

from huddle.core.errors import NotFoundError
from huddle.schemas import BatchMessageItem
from huddle.services import (
    ChannelMessageService,
    ChannelService,
    ConversationService,
    DirectMessageService,
)
from huddle.services.messages import _MessageService


def test_send_direct_message(make_service, gateway, conversation, alice, bob) -> None:
    result = make_service(DirectMessageService).send_message(conversation.id, alice, content="hello")

    assert result.ok
    message = result.value
    assert message.sender_id == alice
    assert message.receiver_id == bob
    assert message.is_read is False
    assert conversation.has_messages
    assert "direct_conversation_started" in gateway.names()
    sent = [e for e in gateway.events if e.event_name == "direct_message_sent"]
    assert [e.user_id for e in sent] == [bob]


def test_send_requires_content_or_file(make_service, conversation, alice) -> None:
    service = make_service(DirectMessageService)

    empty = service.send_message(conversation.id, alice)
    too_long = service.send_message(conversation.id, alice, content="x" * 4001)
    file_only = service.send_message(conversation.id, alice, file_id="upload-1")

    assert empty.code == "validation_error"
    assert too_long.code == "validation_error"
    assert file_only.ok
    assert conversation.has_messages


def test_stranger_cannot_send(make_service, conversation, carol) -> None:
    result = make_service(DirectMessageService).send_message(conversation.id, carol, content="hi")

    assert not result.ok
    assert result.code == "not_participant"


def test_notes_messages_are_created_read(make_service, alice) -> None:
    notes = make_service(ConversationService).get_or_create_notes(alice).value

    result = make_service(DirectMessageService).send_message(notes.id, alice, content="todo")

    assert result.ok
    assert result.value.is_read
    assert result.value.receiver_id == alice


def test_reply_must_target_same_conversation(make_service, conversation, alice, bob, carol) -> None:
    service = make_service(DirectMessageService)
    other = make_service(ConversationService).get_or_create_conversation(alice, carol).value
    elsewhere = service.send_message(other.id, alice, content="elsewhere").value
    original = service.send_message(conversation.id, alice, content="question").value

    reply = service.send_message(conversation.id, bob, content="answer", reply_to_message_id=original.id)
    stray = service.send_message(conversation.id, bob, content="?", reply_to_message_id=elsewhere.id)

    assert reply.ok and reply.value.reply_to_message_id == original.id
    assert stray.code == "validation_error"


def test_only_sender_can_edit_and_delete(make_service, conversation, alice, bob) -> None:
    service = make_service(DirectMessageService)
    message = service.send_message(conversation.id, alice, content="draft").value

    assert service.edit_message(message.id, bob, "hijack").code == "forbidden"
    assert service.delete_message(message.id, bob).code == "forbidden"

    edited = service.edit_message(message.id, alice, "final")
    assert edited.ok and edited.value.is_edited and edited.value.content == "final"


def test_edit_with_unchanged_content_emits_nothing(make_service, gateway, conversation, alice) -> None:
    service = make_service(DirectMessageService)
    message = service.send_message(conversation.id, alice, content="same").value
    gateway.clear()

    result = service.edit_message(message.id, alice, "same")

    assert result.ok
    assert result.value.is_edited is False
    assert result.value.edited_at is None
    assert gateway.events == []


def test_delete_is_idempotent_and_hides_content(make_service, gateway, conversation, alice) -> None:
    service = make_service(DirectMessageService)
    message = service.send_message(conversation.id, alice, content="oops").value
    gateway.clear()

    assert service.delete_message(message.id, alice).value is True
    assert service.delete_message(message.id, alice).value is False
    assert gateway.names().count("direct_message_deleted") == 1

    listed = service.list_messages(conversation.id, alice).value
    assert listed[0].is_deleted
    assert listed[0].content is None

    assert service.edit_message(message.id, alice, "fixed").code == "invalid_state"
    assert service.pin_message(message.id, alice).code == "invalid_state"


def test_batch_delete_skips_foreign_messages(make_service, conversation, alice, bob) -> None:
    service = make_service(DirectMessageService)
    mine = [service.send_message(conversation.id, alice, content=f"m{i}").value for i in range(3)]
    theirs = service.send_message(conversation.id, bob, content="keep").value

    result = service.batch_delete_messages([m.id for m in mine] + [theirs.id, uuid.uuid4()], alice)

    assert result.ok
    assert set(result.value) == {m.id for m in mine}
    listed = {m.id: m for m in service.list_messages(conversation.id, bob).value}
    assert not listed[theirs.id].is_deleted


def test_pin_and_unpin(make_service, conversation, alice, bob) -> None:
    service = make_service(DirectMessageService)
    message = service.send_message(conversation.id, alice, content="remember").value

    pinned = service.pin_message(message.id, bob)
    assert pinned.ok and pinned.value.pinned_by == bob
    assert service.pin_message(message.id, alice).code == "conflict"
    assert [m.id for m in service.list_pinned_messages(conversation.id, alice).value] == [message.id]

    assert service.unpin_message(message.id, bob).ok
    assert service.unpin_message(message.id, bob).code == "conflict"
    assert service.list_pinned_messages(conversation.id, alice).value == []


def test_list_messages_pages_chronologically(make_service, conversation, alice) -> None:
    service = make_service(DirectMessageService)
    sent = [service.send_message(conversation.id, alice, content=f"#{i}").value for i in range(5)]

    latest = service.list_messages(conversation.id, alice, page_size=2).value
    assert [m.content for m in latest] == ["#3", "#4"]

    older = service.list_messages(conversation.id, alice, before=latest[0].created_at, page_size=2).value
    assert [m.content for m in older] == ["#1", "#2"]

    newer = service.list_messages(
        conversation.id, alice, after=sent[0].created_at - timedelta(microseconds=1), page_size=2
    ).value
    assert [m.content for m in newer] == ["#0", "#1"]


def test_channel_send_requires_active_member_and_live_channel(
    make_service, channel, alice, bob, carol
) -> None:
    messages = make_service(ChannelMessageService)

    assert messages.send_message(channel.id, carol, content="hi").code == "not_participant"
    assert messages.send_message(channel.id, bob, content="hi").ok

    make_service(ChannelService).archive_channel(channel.id, alice)
    assert messages.send_message(channel.id, bob, content="late").code == "invalid_state"


def test_channel_send_notifies_active_members(make_service, gateway, channel, alice, bob) -> None:
    result = make_service(ChannelMessageService).send_message(channel.id, alice, content="standup")

    assert result.ok
    event = next(e for e in gateway.events if e.event_name == "channel_message_sent")
    assert event.channel_id == channel.id
    assert set(event.member_ids) == {alice, bob}


class TestMessagesAround:
    def test_window_is_centred_on_target(self, make_service, conversation, alice) -> None:
        service = make_service(DirectMessageService)
        sent = [service.send_message(conversation.id, alice, content=f"#{i}").value for i in range(9)]

        window = service.list_messages_around(conversation.id, sent[4].id, alice, count=5).value

        assert [m.content for m in window] == ["#2", "#3", "#4", "#5", "#6"]

    def test_window_near_the_edge_is_short(self, make_service, channel, alice, bob) -> None:
        service = make_service(ChannelMessageService)
        sent = [service.send_message(channel.id, alice, content=f"#{i}").value for i in range(4)]

        window = service.list_messages_around(channel.id, sent[0].id, bob, count=4).value

        assert [m.content for m in window] == ["#0", "#1", "#2"]

    def test_message_from_another_container_is_not_found(
        self, make_service, conversation, alice, bob, carol
    ) -> None:
        other = make_service(ConversationService).get_or_create_conversation(alice, carol).value
        foreign = make_service(DirectMessageService).send_message(other.id, alice, content="x").value

        with pytest.raises(NotFoundError):
            make_service(DirectMessageService).list_messages_around(conversation.id, foreign.id, bob)

    def test_stranger_cannot_look_around(self, make_service, channel, alice, carol) -> None:
        sent = make_service(ChannelMessageService).send_message(channel.id, alice, content="x").value

        result = make_service(ChannelMessageService).list_messages_around(channel.id, sent.id, carol)

        assert result.code == "not_participant"


class TestBatchSend:
    def test_sends_in_order_with_reply_on_first_only(
        self, make_service, gateway, conversation, alice, bob
    ) -> None:
        service = make_service(DirectMessageService)
        original = service.send_message(conversation.id, bob, content="question").value
        gateway.clear()

        sent = service.send_batch_messages(
            conversation.id,
            alice,
            [BatchMessageItem(content="one"), BatchMessageItem(content="two"), BatchMessageItem(file_id="f-3")],
            reply_to_message_id=original.id,
        ).value

        assert [m.content for m in sent] == ["one", "two", None]
        assert [m.reply_to_message_id for m in sent] == [original.id, None, None]
        assert all(m.receiver_id == bob and not m.is_read for m in sent)
        assert sent[0].created_at < sent[1].created_at < sent[2].created_at
        assert gateway.names() == ["direct_message_sent"] * 3

        listed = service.list_messages(conversation.id, bob).value
        assert [m.id for m in listed[-3:]] == [m.id for m in sent]

    def test_first_batch_starts_the_conversation(
        self, make_service, gateway, conversation, alice, bob
    ) -> None:
        make_service(DirectMessageService).send_batch_messages(
            conversation.id, alice, [BatchMessageItem(content="hi"), BatchMessageItem(content="there")]
        )

        assert conversation.has_messages
        started = [e for e in gateway.events if e.event_name == "direct_conversation_started"]
        assert [e.user_id for e in started] == [bob]

    def test_limits_and_invalid_items_reject_the_whole_batch(
        self, make_service, uow, conversation, alice
    ) -> None:
        service = make_service(DirectMessageService)
        too_many = [BatchMessageItem(content=f"#{i}") for i in range(21)]

        assert service.send_batch_messages(conversation.id, alice, []).code == "validation_error"
        assert service.send_batch_messages(conversation.id, alice, too_many).code == "validation_error"
        mixed = [BatchMessageItem(content="fine"), BatchMessageItem(content="")]
        assert service.send_batch_messages(conversation.id, alice, mixed).code == "validation_error"
        assert uow.direct_messages.list_page(conversation.id, page_size=50) == []

    def test_notes_batch_is_read(self, make_service, alice) -> None:
        notes = make_service(ConversationService).get_or_create_notes(alice).value

        sent = make_service(DirectMessageService).send_batch_messages(
            notes.id, alice, [BatchMessageItem(content="todo"), BatchMessageItem(content="later")]
        ).value

        assert all(m.is_read for m in sent)


def test_shared_message_service_is_abstract(uow, gateway) -> None:
    with pytest.raises(TypeError):
        _MessageService(uow, gateway)
