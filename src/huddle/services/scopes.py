"""Uniform access to direct conversations and channels.

Reactions, favorites, read-later marks and preferences follow the same rules
for both conversation kinds. A scope hides how each kind loads its messages,
checks participation and fans out events.
"""

from __future__ import annotations

import enum
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from huddle.core.errors import InvalidStateError, NotFoundError, NotParticipantError
from huddle.models import (
    Channel,
    ChannelMember,
    ChannelMessage,
    DirectConversation,
    DirectConversationMember,
    DirectMessage,
)
from huddle.repositories import UnitOfWork
from huddle.services.notifications import Dispatcher


class ConversationKind(str, enum.Enum):
    DIRECT = "direct"
    CHANNEL = "channel"


@dataclass
class Container:
    """A loaded conversation or channel plus the caller's membership row."""

    id: uuid.UUID
    kind: ConversationKind
    member: DirectConversationMember | ChannelMember
    conversation: DirectConversation | None = None
    channel: Channel | None = None

    @property
    def participant_ids(self) -> list[uuid.UUID]:
        if self.conversation is not None:
            return self.conversation.participant_ids
        return self.channel.active_member_ids


class DirectScope:
    kind = ConversationKind.DIRECT

    def messages(self, uow: UnitOfWork):
        return uow.direct_messages

    def reactions(self, uow: UnitOfWork):
        return uow.direct_reactions

    def favorites(self, uow: UnitOfWork):
        return uow.direct_favorites

    def load_message(self, uow: UnitOfWork, message_id: uuid.UUID) -> DirectMessage:
        message = uow.direct_messages.get_by_id(message_id)
        if message is None:
            raise NotFoundError(f"Message with ID {message_id} not found")
        return message

    def load_container(
        self, uow: UnitOfWork, container_id: uuid.UUID, user_id: uuid.UUID
    ) -> Container:
        conversation = uow.conversations.get_by_id(container_id)
        if conversation is None:
            raise NotFoundError(f"Conversation with ID {container_id} not found")
        if not conversation.is_participant(user_id):
            raise NotParticipantError("User is not a participant in this conversation")
        member = uow.conversations.get_by_conversation_and_user(container_id, user_id)
        if member is None:
            raise NotFoundError("Conversation member not found")
        return Container(id=container_id, kind=self.kind, member=member, conversation=conversation)

    def notify(
        self,
        dispatcher: Dispatcher,
        container: Container,
        actor_id: uuid.UUID,
        event_name: str,
        payload: Mapping[str, Any],
    ) -> None:
        recipients = [uid for uid in container.participant_ids if uid != actor_id]
        dispatcher.to_users(recipients, f"direct_{event_name}", payload)


class ChannelScope:
    kind = ConversationKind.CHANNEL

    def messages(self, uow: UnitOfWork):
        return uow.channel_messages

    def reactions(self, uow: UnitOfWork):
        return uow.channel_reactions

    def favorites(self, uow: UnitOfWork):
        return uow.channel_favorites

    def load_message(self, uow: UnitOfWork, message_id: uuid.UUID) -> ChannelMessage:
        message = uow.channel_messages.get_by_id(message_id)
        if message is None:
            raise NotFoundError(f"Message with ID {message_id} not found")
        return message

    def load_container(
        self, uow: UnitOfWork, container_id: uuid.UUID, user_id: uuid.UUID
    ) -> Container:
        channel = uow.channels.get_by_id(container_id)
        if channel is None:
            raise NotFoundError(f"Channel with ID {container_id} not found")
        member = channel.get_active_member(user_id)
        return Container(id=container_id, kind=self.kind, member=member, channel=channel)

    def notify(
        self,
        dispatcher: Dispatcher,
        container: Container,
        actor_id: uuid.UUID,
        event_name: str,
        payload: Mapping[str, Any],
    ) -> None:
        dispatcher.to_channel(
            container.id, container.participant_ids, f"channel_{event_name}", payload
        )


_SCOPES = {
    ConversationKind.DIRECT: DirectScope(),
    ConversationKind.CHANNEL: ChannelScope(),
}


def scope_for(kind: ConversationKind | str) -> DirectScope | ChannelScope:
    return _SCOPES[ConversationKind(kind)]


def load_message_in_container(
    scope: DirectScope | ChannelScope,
    uow: UnitOfWork,
    message_id: uuid.UUID,
    user_id: uuid.UUID,
    container_id: uuid.UUID | None = None,
) -> tuple[DirectMessage | ChannelMessage, Container]:
    """Load a message and the caller's membership in the message's container.

    When ``container_id`` is given the message must belong to it.
    """
    message = scope.load_message(uow, message_id)
    if container_id is not None and message.container_id != container_id:
        raise InvalidStateError("Message does not belong to the specified conversation")
    container = scope.load_container(uow, message.container_id, user_id)
    return message, container
