# tests/test_conversation_service.py
"""Conversation identity resolution, visibility and the conversation list."""

import uuid

import pytest

from huddle.core.errors import NotFoundError
from huddle.services import (
    ConversationKind,
    ConversationService,
    DirectMessageService,
    PreferenceService,
)


def test_get_or_create_is_idempotent_on_the_pair(make_service, alice, bob) -> None:
    service = make_service(ConversationService)

    first = service.get_or_create_conversation(alice, bob)
    second = service.get_or_create_conversation(bob, alice)

    assert first.ok and second.ok
    assert first.value.id == second.value.id
    assert first.value.initiated_by_user_id == alice
    assert first.value.has_messages is False


def test_same_user_twice_resolves_notes(make_service, alice) -> None:
    service = make_service(ConversationService)

    result = service.get_or_create_conversation(alice, alice)

    assert result.ok
    assert result.value.is_notes
    assert result.value.has_messages
    assert service.get_or_create_notes(alice).value.id == result.value.id


def test_visibility_flips_on_first_message(make_service, conversation, alice, bob) -> None:
    conversations = make_service(ConversationService)

    assert [c.id for c in conversations.list_conversations(alice).value] == [conversation.id]
    assert conversations.list_conversations(bob).value == []

    sent = make_service(DirectMessageService).send_message(conversation.id, alice, content="hi")
    assert sent.ok

    listed = conversations.list_conversations(bob).value
    assert [c.id for c in listed] == [conversation.id]
    assert listed[0].other_user_id == alice
    assert listed[0].unread_count == 1


def test_hidden_conversations_are_excluded_until_next_message(
    make_service, conversation, alice, bob
) -> None:
    messages = make_service(DirectMessageService)
    messages.send_message(conversation.id, alice, content="first")

    hidden = make_service(PreferenceService).hide(ConversationKind.DIRECT, conversation.id, bob)
    assert hidden.ok and hidden.value.is_hidden

    conversations = make_service(ConversationService)
    assert conversations.list_conversations(bob).value == []
    assert len(conversations.list_conversations(bob, include_hidden=True).value) == 1

    messages.send_message(conversation.id, alice, content="second")
    assert len(conversations.list_conversations(bob).value) == 1


def test_pinned_conversations_come_first(make_service, alice, bob, carol) -> None:
    conversations = make_service(ConversationService)
    with_bob = conversations.get_or_create_conversation(alice, bob).value
    with_carol = conversations.get_or_create_conversation(alice, carol).value
    make_service(DirectMessageService).send_message(with_carol.id, alice, content="latest")

    make_service(PreferenceService).toggle_pin(ConversationKind.DIRECT, with_bob.id, alice)

    ids = [c.id for c in conversations.list_conversations(alice).value]
    assert ids == [with_bob.id, with_carol.id]


def test_stranger_cannot_load_conversation(make_service, conversation, carol) -> None:
    result = make_service(ConversationService).get_conversation(conversation.id, carol)

    assert not result.ok
    assert result.code == "not_participant"


def test_missing_conversation_raises_not_found(make_service, alice) -> None:
    with pytest.raises(NotFoundError):
        make_service(ConversationService).get_conversation(uuid.uuid4(), alice)
