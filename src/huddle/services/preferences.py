"""Per-member conversation preferences: pin, mute and hide."""
from __future__ import annotations

import logging
import uuid

from huddle.core.errors import InvalidStateError
from huddle.schemas import PreferencesOut
from huddle.services.base import BaseService, command
from huddle.services.projections import to_preferences_out
from huddle.services.results import Result
from huddle.services.scopes import Container, ConversationKind, scope_for
from huddle.services.single_flight import toggle_flight

logger = logging.getLogger(__name__)


class PreferenceService(BaseService):
    def _publish(self, container: Container, user_id: uuid.UUID) -> PreferencesOut:
        preferences = to_preferences_out(container.member)
        self.dispatcher.to_user(
            user_id,
            "preferences_updated",
            {
                "kind": container.kind.value,
                "container_id": str(container.id),
                **preferences.model_dump(mode="json"),
            },
        )
        return preferences

    def toggle_pin(
        self, kind: ConversationKind | str, container_id: uuid.UUID, user_id: uuid.UUID
    ) -> Result[PreferencesOut]:
        key = ("pin", ConversationKind(kind), container_id, user_id)
        return toggle_flight.do(key, lambda: self._toggle(kind, container_id, user_id, "pin"))

    def toggle_mute(
        self, kind: ConversationKind | str, container_id: uuid.UUID, user_id: uuid.UUID
    ) -> Result[PreferencesOut]:
        key = ("mute", ConversationKind(kind), container_id, user_id)
        return toggle_flight.do(key, lambda: self._toggle(kind, container_id, user_id, "mute"))

    @command("toggling preference")
    def _toggle(
        self,
        kind: ConversationKind | str,
        container_id: uuid.UUID,
        user_id: uuid.UUID,
        preference: str,
    ) -> Result[PreferencesOut]:
        container = scope_for(kind).load_container(self.uow, container_id, user_id)
        member = container.member
        value = member.toggle_pin() if preference == "pin" else member.toggle_mute()
        self.uow.commit()
        logger.info("%s %s set to %s for %s", container_id, preference, value, user_id)
        return Result.success(self._publish(container, user_id))

    @command("hiding conversation")
    def hide(
        self, kind: ConversationKind | str, container_id: uuid.UUID, user_id: uuid.UUID
    ) -> Result[PreferencesOut]:
        """Hide a conversation from the caller's list.

        A direct conversation reappears with the next incoming message. A
        channel can only be hidden once it has messages.
        """
        scope = scope_for(kind)
        container = scope.load_container(self.uow, container_id, user_id)
        if scope.kind is ConversationKind.CHANNEL and not self.uow.channels.has_messages(container_id):
            raise InvalidStateError("Cannot hide a channel without messages")
        container.member.hide()
        self.uow.commit()
        logger.info("%s hidden for %s", container_id, user_id)
        return Result.success(self._publish(container, user_id))

    @command("unhiding conversation")
    def unhide(
        self, kind: ConversationKind | str, container_id: uuid.UUID, user_id: uuid.UUID
    ) -> Result[PreferencesOut]:
        container = scope_for(kind).load_container(self.uow, container_id, user_id)
        container.member.unhide()
        self.uow.commit()
        return Result.success(self._publish(container, user_id))
