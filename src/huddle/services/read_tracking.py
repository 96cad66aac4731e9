"""Read and unread state.

Direct messages have a single recipient and carry an ``is_read`` flag.
Channel messages are read per user through receipt rows; a channel message is
unread for a member when it was posted after they joined, by someone else,
and has no receipt of theirs.
"""
from __future__ import annotations

import logging
import uuid

from huddle.core.errors import PermissionDeniedError
from huddle.services.base import BaseService, command
from huddle.services.results import Result
from huddle.services.scopes import ChannelScope, Container, DirectScope, load_message_in_container

logger = logging.getLogger(__name__)


class ReadTrackingService(BaseService):
    direct = DirectScope()
    channel = ChannelScope()

    # Direct conversations ------------------------------------------------------

    @command("marking direct message as read")
    def mark_direct_message_as_read(
        self, message_id: uuid.UUID, user_id: uuid.UUID
    ) -> Result[bool]:
        """Mark a message read. Only its receiver may do so.

        Returns False when the message was already read.
        """
        message, container = load_message_in_container(self.direct, self.uow, message_id, user_id)
        if message.receiver_id != user_id:
            raise PermissionDeniedError("Only the receiver can mark a message as read")
        if not message.mark_as_read():
            return Result.success(False)

        self.uow.commit()
        logger.debug("Direct message %s read by %s", message_id, user_id)
        if message.sender_id != user_id:
            self.dispatcher.to_user(
                message.sender_id,
                "direct_message_read",
                {
                    "conversation_id": str(container.id),
                    "message_id": str(message_id),
                    "read_by": str(user_id),
                },
            )
        return Result.success(True)

    @command("marking all direct messages as read")
    def mark_all_direct_messages_as_read(
        self, conversation_id: uuid.UUID, user_id: uuid.UUID
    ) -> Result[int]:
        """Read every unread message addressed to the caller and clear read-later marks.

        Returns the number of messages that changed.
        """
        container = self.direct.load_container(self.uow, conversation_id, user_id)
        unread = self.uow.direct_messages.list_unread_for_receiver(conversation_id, user_id)
        for message in unread:
            message.mark_as_read()
        container.member.clear_read_later()
        self.uow.commit()

        logger.debug("Marked %d direct messages read in %s for %s", len(unread), conversation_id, user_id)
        if unread:
            self.direct.notify(
                self.dispatcher,
                container,
                user_id,
                "messages_read",
                {
                    "conversation_id": str(conversation_id),
                    "read_by": str(user_id),
                    "message_ids": [str(message.id) for message in unread],
                },
            )
        return Result.success(len(unread))

    @command("marking direct messages as read")
    def mark_direct_messages_as_read(
        self, conversation_id: uuid.UUID, message_ids: list[uuid.UUID], user_id: uuid.UUID
    ) -> Result[int]:
        """Read the listed messages addressed to the caller.

        Ids from other conversations, the caller's own messages, deleted and
        already read messages are skipped. Read-later marks are left alone.
        Returns the number of messages that changed.
        """
        container = self.direct.load_container(self.uow, conversation_id, user_id)
        candidates = self.uow.direct_messages.get_many(list(message_ids))
        changed = [
            message
            for message in candidates
            if message.conversation_id == conversation_id
            and message.receiver_id == user_id
            and not message.is_deleted
            and message.mark_as_read()
        ]
        if not changed:
            return Result.success(0)

        self.uow.commit()
        logger.debug("Marked %d direct messages read in %s for %s", len(changed), conversation_id, user_id)
        self.direct.notify(
            self.dispatcher,
            container,
            user_id,
            "messages_read",
            {
                "conversation_id": str(conversation_id),
                "read_by": str(user_id),
                "message_ids": [str(message.id) for message in changed],
            },
        )
        return Result.success(len(changed))

    @command("counting unread direct messages")
    def get_direct_unread_count(self, conversation_id: uuid.UUID, user_id: uuid.UUID) -> Result[int]:
        self.direct.load_container(self.uow, conversation_id, user_id)
        return Result.success(self.uow.direct_messages.count_unread(conversation_id, user_id))

    # Channels ------------------------------------------------------------------

    def _broadcast_read_counts(
        self, container: Container, user_id: uuid.UUID, message_ids: list[uuid.UUID]
    ) -> None:
        """Tell every active member how many users have now read each message."""
        counts = self.uow.read_receipts.read_counts(message_ids)
        self.channel.notify(
            self.dispatcher,
            container,
            user_id,
            "messages_read",
            {
                "channel_id": str(container.id),
                "read_by": str(user_id),
                "read_counts": {str(message_id): count for message_id, count in counts.items()},
            },
        )

    @command("marking channel message as read")
    def mark_channel_message_as_read(
        self, message_id: uuid.UUID, user_id: uuid.UUID
    ) -> Result[bool]:
        """Record a receipt. Own messages and repeated reads succeed without one.

        Returns True when a receipt was created.
        """
        message, container = load_message_in_container(self.channel, self.uow, message_id, user_id)
        if message.sender_id == user_id:
            return Result.success(False)
        if not self.uow.read_receipts.add(message_id, user_id):
            return Result.success(False)

        self.uow.commit()
        logger.debug("Channel message %s read by %s", message_id, user_id)
        self.dispatcher.to_user(
            message.sender_id,
            "channel_message_read",
            {
                "channel_id": str(container.id),
                "message_id": str(message_id),
                "read_by": str(user_id),
            },
        )
        return Result.success(True)

    @command("marking channel messages as read")
    def mark_channel_messages_as_read(
        self, channel_id: uuid.UUID, message_ids: list[uuid.UUID], user_id: uuid.UUID
    ) -> Result[int]:
        """Write receipts for the listed messages of this channel.

        Own, deleted and foreign-channel messages are skipped, as are messages
        the caller has already read. Returns the number of receipts written.
        """
        container = self.channel.load_container(self.uow, channel_id, user_id)
        candidates = self.uow.channel_messages.get_many(list(message_ids))
        readable = [
            message.id
            for message in candidates
            if message.channel_id == channel_id
            and message.sender_id != user_id
            and not message.is_deleted
        ]
        count = self.uow.read_receipts.add_many(readable, user_id)
        if not count:
            return Result.success(0)

        self.uow.commit()
        logger.debug("Marked %d channel messages read in %s for %s", count, channel_id, user_id)
        self._broadcast_read_counts(container, user_id, readable)
        return Result.success(count)

    @command("marking all channel messages as read")
    def mark_all_channel_messages_as_read(
        self, channel_id: uuid.UUID, user_id: uuid.UUID
    ) -> Result[int]:
        """Write receipts for every unread message and clear both read-later marks.

        Returns the number of receipts written.
        """
        container = self.channel.load_container(self.uow, channel_id, user_id)
        member = container.member
        unread_ids = [
            message.id
            for message in self.uow.channel_messages.list_unread_for_user(
                channel_id, user_id, member.joined_at
            )
        ]
        count = self.uow.read_receipts.add_many(unread_ids, user_id)
        member.clear_read_later()
        self.uow.commit()
        logger.debug("Marked %d channel messages read in %s for %s", count, channel_id, user_id)
        if count:
            self._broadcast_read_counts(container, user_id, unread_ids)
        return Result.success(count)

    @command("counting unread channel messages")
    def get_channel_unread_count(self, channel_id: uuid.UUID, user_id: uuid.UUID) -> Result[int]:
        container = self.channel.load_container(self.uow, channel_id, user_id)
        return Result.success(
            self.uow.channel_messages.count_unread(channel_id, user_id, container.member.joined_at)
        )
