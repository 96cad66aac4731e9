"""Read-later marks on conversations, channels and single messages.

Each membership carries two independent marks: a conversation-level flag and
a bookmark on one message. Only "unmark on open" and mark-all-read clear both.
"""
from __future__ import annotations

import logging
import uuid

from huddle.schemas import PreferencesOut
from huddle.services.base import BaseService, command
from huddle.services.projections import to_preferences_out
from huddle.services.results import Result
from huddle.services.scopes import (
    Container,
    ConversationKind,
    load_message_in_container,
    scope_for,
)
from huddle.services.single_flight import toggle_flight

logger = logging.getLogger(__name__)


class ReadLaterService(BaseService):
    def _publish(self, container: Container, user_id: uuid.UUID) -> PreferencesOut:
        preferences = to_preferences_out(container.member)
        self.dispatcher.to_user(
            user_id,
            "read_later_updated",
            {
                "kind": container.kind.value,
                "container_id": str(container.id),
                "is_marked_read_later": preferences.is_marked_read_later,
                "last_read_later_message_id": (
                    str(preferences.last_read_later_message_id)
                    if preferences.last_read_later_message_id
                    else None
                ),
            },
        )
        return preferences

    def toggle_message_as_later(
        self,
        kind: ConversationKind | str,
        container_id: uuid.UUID,
        message_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> Result[bool]:
        """Bookmark a message for later, or clear the bookmark.

        Returns whether the message is now marked. Marking another message
        moves the bookmark.
        """
        key = ("read_later", ConversationKind(kind), container_id, message_id, user_id)
        return toggle_flight.do(
            key, lambda: self._toggle_message_as_later(kind, container_id, message_id, user_id)
        )

    @command("toggling message read-later mark")
    def _toggle_message_as_later(
        self,
        kind: ConversationKind | str,
        container_id: uuid.UUID,
        message_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> Result[bool]:
        scope = scope_for(kind)
        message, container = load_message_in_container(
            scope, self.uow, message_id, user_id, container_id
        )
        message.ensure_not_deleted("mark")
        marked = container.member.toggle_message_as_later(message_id)
        self.uow.commit()
        logger.info(
            "Message %s %s read-later for %s", message_id, "marked" if marked else "unmarked", user_id
        )
        self._publish(container, user_id)
        return Result.success(marked)

    @command("marking read later")
    def mark_as_read_later(
        self, kind: ConversationKind | str, container_id: uuid.UUID, user_id: uuid.UUID
    ) -> Result[PreferencesOut]:
        container = scope_for(kind).load_container(self.uow, container_id, user_id)
        container.member.mark_conversation_as_read_later()
        self.uow.commit()
        return Result.success(self._publish(container, user_id))

    @command("unmarking read later")
    def unmark_as_read_later(
        self, kind: ConversationKind | str, container_id: uuid.UUID, user_id: uuid.UUID
    ) -> Result[PreferencesOut]:
        container = scope_for(kind).load_container(self.uow, container_id, user_id)
        container.member.unmark_conversation_as_read_later()
        self.uow.commit()
        return Result.success(self._publish(container, user_id))

    def toggle_read_later(
        self, kind: ConversationKind | str, container_id: uuid.UUID, user_id: uuid.UUID
    ) -> Result[PreferencesOut]:
        key = ("read_later_flag", ConversationKind(kind), container_id, user_id)
        return toggle_flight.do(key, lambda: self._toggle_read_later(kind, container_id, user_id))

    @command("toggling read later")
    def _toggle_read_later(
        self, kind: ConversationKind | str, container_id: uuid.UUID, user_id: uuid.UUID
    ) -> Result[PreferencesOut]:
        container = scope_for(kind).load_container(self.uow, container_id, user_id)
        if container.member.is_marked_read_later:
            container.member.unmark_conversation_as_read_later()
        else:
            container.member.mark_conversation_as_read_later()
        self.uow.commit()
        return Result.success(self._publish(container, user_id))

    @command("clearing read-later marks")
    def unmark_on_open(
        self, kind: ConversationKind | str, container_id: uuid.UUID, user_id: uuid.UUID
    ) -> Result[PreferencesOut]:
        """Clear both marks when the user opens the conversation.

        Nothing is marked as read. Without marks this is a silent no-op.
        """
        container = scope_for(kind).load_container(self.uow, container_id, user_id)
        member = container.member
        if not member.is_marked_read_later and member.last_read_later_message_id is None:
            return Result.success(to_preferences_out(member))
        member.clear_read_later()
        self.uow.commit()
        logger.debug("Cleared read-later marks of %s in %s", user_id, container_id)
        return Result.success(self._publish(container, user_id))
