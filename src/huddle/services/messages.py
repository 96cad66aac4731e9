"""Message lifecycle for direct conversations and channels.

Both services share one contract: send, edit, delete, batch delete, pin,
unpin and the paged read queries. Only the sender may edit or delete a
message; every participant may pin.
"""
from __future__ import annotations

import abc
import logging
import uuid
from datetime import datetime, timedelta
from typing import Any

from huddle.core.errors import NotFoundError, PermissionDeniedError, ValidationError
from huddle.core.settings import settings
from huddle.models import ChannelMessage, DirectMessage
from huddle.schemas import BatchMessageItem, ChannelMessageOut, DirectMessageOut
from huddle.services.base import BaseService, command
from huddle.services.projections import (
    group_reactions,
    to_channel_message_out,
    to_direct_message_out,
)
from huddle.services.results import Result
from huddle.services.scopes import (
    ChannelScope,
    Container,
    DirectScope,
    load_message_in_container,
)

logger = logging.getLogger(__name__)


def _event_payload(message: DirectMessage | ChannelMessage, **extra: Any) -> dict[str, Any]:
    payload = {
        "message_id": str(message.id),
        "container_id": str(message.container_id),
        "sender_id": str(message.sender_id),
    }
    payload.update(extra)
    return payload


class _MessageService(BaseService, abc.ABC):
    """Operations that behave the same for both conversation kinds."""

    scope: DirectScope | ChannelScope

    @abc.abstractmethod
    def project_messages(self, messages, user_id: uuid.UUID, member=None) -> list:
        """Turn message rows into response schemas for ``user_id``."""

    def _ensure_writable(self, container: Container) -> None:
        """Hook for containers that can refuse writes, such as archived channels."""

    def _load_own_message(self, message_id: uuid.UUID, user_id: uuid.UUID, action: str):
        message, container = load_message_in_container(self.scope, self.uow, message_id, user_id)
        if message.sender_id != user_id:
            raise PermissionDeniedError(f"Only the sender can {action} this message")
        return message, container

    def _check_reply_target(self, container_id: uuid.UUID, reply_to: uuid.UUID | None) -> None:
        if reply_to is None:
            return
        target = self.scope.messages(self.uow).get_by_id(reply_to)
        if target is None or target.container_id != container_id:
            raise ValidationError("Replied-to message does not belong to this conversation")

    @command("editing message")
    def edit_message(self, message_id: uuid.UUID, user_id: uuid.UUID, new_content: str) -> Result:
        """Replace the text of a message.

        Unchanged content succeeds without touching the edit markers or
        emitting an event.
        """
        message, container = self._load_own_message(message_id, user_id, "edit")
        self._ensure_writable(container)
        if not message.edit(new_content):
            return Result.success(self.project_messages([message], user_id, container.member)[0])

        self.uow.commit()
        logger.info("Message %s edited by %s", message.id, user_id)
        self.scope.notify(
            self.dispatcher,
            container,
            user_id,
            "message_edited",
            _event_payload(message, content=message.content),
        )
        return Result.success(self.project_messages([message], user_id, container.member)[0])

    @command("deleting message")
    def delete_message(self, message_id: uuid.UUID, user_id: uuid.UUID) -> Result[bool]:
        """Soft delete a message. Deleting twice succeeds without a second event."""
        message, container = self._load_own_message(message_id, user_id, "delete")
        if not message.delete():
            return Result.success(False)

        self.uow.commit()
        logger.info("Message %s deleted by %s", message.id, user_id)
        self.scope.notify(
            self.dispatcher, container, user_id, "message_deleted", _event_payload(message)
        )
        return Result.success(True)

    @command("deleting messages")
    def batch_delete_messages(
        self, message_ids: list[uuid.UUID], user_id: uuid.UUID
    ) -> Result[list[uuid.UUID]]:
        """Delete every listed message sent by ``user_id``.

        Messages of other senders and unknown ids are skipped. Returns the ids
        that were actually deleted.
        """
        messages = self.scope.messages(self.uow).list_by_sender(user_id, list(message_ids))
        deleted = [message for message in messages if message.delete()]
        if not deleted:
            return Result.success([])

        containers: dict[uuid.UUID, Container] = {}
        for message in deleted:
            if message.container_id not in containers:
                containers[message.container_id] = self.scope.load_container(
                    self.uow, message.container_id, user_id
                )
        self.uow.commit()
        logger.info("Batch deleted %d messages for %s", len(deleted), user_id)

        for container_id, container in containers.items():
            ids = [str(m.id) for m in deleted if m.container_id == container_id]
            self.scope.notify(
                self.dispatcher,
                container,
                user_id,
                "messages_deleted",
                {"container_id": str(container_id), "message_ids": ids},
            )
        return Result.success([message.id for message in deleted])

    @command("pinning message")
    def pin_message(self, message_id: uuid.UUID, user_id: uuid.UUID) -> Result:
        message, container = load_message_in_container(self.scope, self.uow, message_id, user_id)
        self._ensure_writable(container)
        message.pin(user_id)
        self.uow.commit()
        logger.info("Message %s pinned by %s", message.id, user_id)
        self.scope.notify(
            self.dispatcher,
            container,
            user_id,
            "message_pinned",
            _event_payload(message, pinned_by=str(user_id)),
        )
        return Result.success(self.project_messages([message], user_id, container.member)[0])

    @command("unpinning message")
    def unpin_message(self, message_id: uuid.UUID, user_id: uuid.UUID) -> Result:
        message, container = load_message_in_container(self.scope, self.uow, message_id, user_id)
        self._ensure_writable(container)
        message.unpin()
        self.uow.commit()
        logger.info("Message %s unpinned by %s", message.id, user_id)
        self.scope.notify(
            self.dispatcher,
            container,
            user_id,
            "message_unpinned",
            _event_payload(message, unpinned_by=str(user_id)),
        )
        return Result.success(self.project_messages([message], user_id, container.member)[0])

    @command("listing messages")
    def list_messages(
        self,
        container_id: uuid.UUID,
        user_id: uuid.UUID,
        *,
        before: datetime | None = None,
        after: datetime | None = None,
        page_size: int | None = None,
    ) -> Result[list]:
        """Return one chronological page of messages.

        ``page_size`` defaults to ``DEFAULT_PAGE_SIZE`` and is capped at
        ``MAX_PAGE_SIZE``.
        """
        container = self.scope.load_container(self.uow, container_id, user_id)
        messages = self.scope.messages(self.uow).list_page(
            container_id,
            page_size=settings.clamp_page_size(page_size),
            before=before,
            after=after,
        )
        return Result.success(self.project_messages(messages, user_id, container.member))

    @command("listing messages around")
    def list_messages_around(
        self,
        container_id: uuid.UUID,
        message_id: uuid.UUID,
        user_id: uuid.UUID,
        count: int | None = None,
    ) -> Result[list]:
        """Return a chronological window of ``count`` messages centred on ``message_id``.

        Used to jump to a message, for example from search or a reply. A
        message outside the container is reported as missing.
        """
        container = self.scope.load_container(self.uow, container_id, user_id)
        repo = self.scope.messages(self.uow)
        pivot = repo.get_by_id(message_id)
        if pivot is None or pivot.container_id != container_id:
            raise NotFoundError(f"Message with ID {message_id} not found")
        messages = repo.list_around(pivot, settings.clamp_page_size(count))
        return Result.success(self.project_messages(messages, user_id, container.member))

    @command("listing pinned messages")
    def list_pinned_messages(self, container_id: uuid.UUID, user_id: uuid.UUID) -> Result[list]:
        container = self.scope.load_container(self.uow, container_id, user_id)
        messages = self.scope.messages(self.uow).list_pinned(container_id)
        return Result.success(self.project_messages(messages, user_id, container.member))

    def _decorations(self, messages, user_id: uuid.UUID):
        ids = [message.id for message in messages]
        reactions = group_reactions(self.scope.reactions(self.uow).list_for_messages(ids))
        favorites = self.scope.favorites(self.uow).favorited_ids(user_id, ids)
        return reactions, favorites


class DirectMessageService(_MessageService):
    """Messages inside one-to-one and notes conversations."""

    scope = DirectScope()

    def project_messages(
        self, messages, user_id: uuid.UUID, member=None
    ) -> list[DirectMessageOut]:
        reactions, favorites = self._decorations(messages, user_id)
        marked = member.last_read_later_message_id if member is not None else None
        return [
            to_direct_message_out(
                message,
                reactions=reactions.get(message.id),
                is_favorite=message.id in favorites,
                is_marked_later=message.id == marked,
            )
            for message in messages
        ]

    @command("sending direct message")
    def send_message(
        self,
        conversation_id: uuid.UUID,
        sender_id: uuid.UUID,
        content: str | None = None,
        file_id: str | None = None,
        reply_to_message_id: uuid.UUID | None = None,
        is_forwarded: bool = False,
    ) -> Result[DirectMessageOut]:
        """Send a message into a direct conversation.

        The first message makes the conversation visible to the receiver, and
        every message unhides it for them. Notes messages start out read.
        """
        container = self.scope.load_container(self.uow, conversation_id, sender_id)
        conversation = container.conversation
        receiver_id = conversation.get_other_user_id(sender_id)
        self._check_reply_target(conversation_id, reply_to_message_id)

        message = DirectMessage.compose(
            conversation_id=conversation_id,
            sender_id=sender_id,
            receiver_id=receiver_id,
            content=content,
            file_id=file_id,
            reply_to_message_id=reply_to_message_id,
            is_forwarded=is_forwarded,
        )
        if conversation.is_notes:
            message.mark_as_read()
        self.uow.direct_messages.add(message)
        first = conversation.record_message()

        receiver = self.uow.conversations.get_by_conversation_and_user(conversation_id, receiver_id)
        if receiver is not None and receiver.is_hidden:
            receiver.unhide()

        self.uow.commit()
        logger.info("Direct message %s sent in %s by %s", message.id, conversation_id, sender_id)

        if first and not conversation.is_notes:
            self.dispatcher.to_user(
                receiver_id,
                "direct_conversation_started",
                {
                    "conversation_id": str(conversation_id),
                    "initiated_by_user_id": str(conversation.initiated_by_user_id),
                },
            )
        self.scope.notify(
            self.dispatcher,
            container,
            sender_id,
            "message_sent",
            _event_payload(message, receiver_id=str(receiver_id), content=message.content),
        )
        return Result.success(self.project_messages([message], sender_id, container.member)[0])

    @command("sending direct messages")
    def send_batch_messages(
        self,
        conversation_id: uuid.UUID,
        sender_id: uuid.UUID,
        items: list[BatchMessageItem],
        reply_to_message_id: uuid.UUID | None = None,
        is_forwarded: bool = False,
    ) -> Result[list[DirectMessageOut]]:
        """Send up to ``MAX_BATCH_MESSAGES`` messages in one commit.

        Every item is validated before anything is stored, so a bad item
        rejects the whole batch. The reply target applies to the first
        message only. Creation times are strictly increasing in list order.
        """
        if not items:
            raise ValidationError("Batch must contain at least one message")
        if len(items) > settings.max_batch_messages:
            raise ValidationError(
                f"Batch cannot contain more than {settings.max_batch_messages} messages"
            )
        container = self.scope.load_container(self.uow, conversation_id, sender_id)
        conversation = container.conversation
        receiver_id = conversation.get_other_user_id(sender_id)
        self._check_reply_target(conversation_id, reply_to_message_id)

        messages = []
        for index, item in enumerate(items):
            message = DirectMessage.compose(
                conversation_id=conversation_id,
                sender_id=sender_id,
                receiver_id=receiver_id,
                content=item.content,
                file_id=item.file_id,
                reply_to_message_id=reply_to_message_id if index == 0 else None,
                is_forwarded=is_forwarded,
            )
            if messages and message.created_at <= messages[-1].created_at:
                message.created_at = messages[-1].created_at + timedelta(microseconds=1)
            if conversation.is_notes:
                message.mark_as_read()
            messages.append(message)

        for message in messages:
            self.uow.direct_messages.add(message)
        first = conversation.record_message()

        receiver = self.uow.conversations.get_by_conversation_and_user(conversation_id, receiver_id)
        if receiver is not None and receiver.is_hidden:
            receiver.unhide()

        self.uow.commit()
        logger.info(
            "Batch of %d direct messages sent in %s by %s", len(messages), conversation_id, sender_id
        )

        if first and not conversation.is_notes:
            self.dispatcher.to_user(
                receiver_id,
                "direct_conversation_started",
                {
                    "conversation_id": str(conversation_id),
                    "initiated_by_user_id": str(conversation.initiated_by_user_id),
                },
            )
        for message in messages:
            self.scope.notify(
                self.dispatcher,
                container,
                sender_id,
                "message_sent",
                _event_payload(message, receiver_id=str(receiver_id), content=message.content),
            )
        return Result.success(self.project_messages(messages, sender_id, container.member))


class ChannelMessageService(_MessageService):
    """Messages posted to channels."""

    scope = ChannelScope()

    def _ensure_writable(self, container: Container) -> None:
        container.channel.ensure_not_archived()

    def project_messages(
        self, messages, user_id: uuid.UUID, member=None
    ) -> list[ChannelMessageOut]:
        reactions, favorites = self._decorations(messages, user_id)
        read_counts = self.uow.read_receipts.read_counts([message.id for message in messages])
        marked = member.last_read_later_message_id if member is not None else None
        return [
            to_channel_message_out(
                message,
                reactions=reactions.get(message.id),
                is_favorite=message.id in favorites,
                is_marked_later=message.id == marked,
                read_by_count=read_counts.get(message.id, 0),
            )
            for message in messages
        ]

    @command("sending channel message")
    def send_message(
        self,
        channel_id: uuid.UUID,
        sender_id: uuid.UUID,
        content: str | None = None,
        file_id: str | None = None,
        reply_to_message_id: uuid.UUID | None = None,
        is_forwarded: bool = False,
    ) -> Result[ChannelMessageOut]:
        """Post a message. The sender must be an active member of a live channel."""
        container = self.scope.load_container(self.uow, channel_id, sender_id)
        container.channel.ensure_not_archived()
        self._check_reply_target(channel_id, reply_to_message_id)

        message = ChannelMessage.compose(
            channel_id=channel_id,
            sender_id=sender_id,
            content=content,
            file_id=file_id,
            reply_to_message_id=reply_to_message_id,
            is_forwarded=is_forwarded,
        )
        self.uow.channel_messages.add(message)
        self.uow.commit()
        logger.info("Channel message %s sent in %s by %s", message.id, channel_id, sender_id)

        self.scope.notify(
            self.dispatcher,
            container,
            sender_id,
            "message_sent",
            _event_payload(message, content=message.content),
        )
        return Result.success(self.project_messages([message], sender_id, container.member)[0])
