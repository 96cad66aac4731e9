"""Per-user message favorites."""
from __future__ import annotations

import logging
import uuid

from huddle.services.base import BaseService, command
from huddle.services.messages import ChannelMessageService, DirectMessageService
from huddle.services.results import FavoriteToggleResult, Result
from huddle.services.scopes import ConversationKind, load_message_in_container, scope_for
from huddle.services.single_flight import toggle_flight

logger = logging.getLogger(__name__)


class FavoriteService(BaseService):
    def toggle_favorite(
        self, kind: ConversationKind | str, message_id: uuid.UUID, user_id: uuid.UUID
    ) -> Result[FavoriteToggleResult]:
        """Favorite the message, or drop the favorite if it already exists."""
        key = ("favorite", ConversationKind(kind), message_id, user_id)
        return toggle_flight.do(key, lambda: self._toggle_favorite(kind, message_id, user_id))

    @command("toggling favorite")
    def _toggle_favorite(
        self, kind: ConversationKind | str, message_id: uuid.UUID, user_id: uuid.UUID
    ) -> Result[FavoriteToggleResult]:
        scope = scope_for(kind)
        message, _ = load_message_in_container(scope, self.uow, message_id, user_id)
        message.ensure_not_deleted("favorite")

        repo = scope.favorites(self.uow)
        favorite = repo.get(user_id, message_id)
        if favorite is None:
            repo.add(user_id, message_id)
            outcome = FavoriteToggleResult(added=True, removed=False)
        else:
            repo.remove(favorite)
            outcome = FavoriteToggleResult(added=False, removed=True)
        self.uow.commit()

        logger.info(
            "Message %s %s favorites of %s",
            message_id,
            "added to" if outcome.added else "removed from",
            user_id,
        )
        # Favorites are private; only the user's other sessions hear about it.
        self.dispatcher.to_user(
            user_id,
            "favorite_toggled",
            {"kind": scope.kind.value, "message_id": str(message_id), "added": outcome.added},
        )
        return Result.success(outcome)

    @command("listing favorites")
    def list_favorites(
        self,
        kind: ConversationKind | str,
        user_id: uuid.UUID,
        container_id: uuid.UUID | None = None,
    ) -> Result[list]:
        """Return the caller's favorited messages, newest favorite first.

        With ``container_id`` the list is limited to one conversation or
        channel the caller belongs to.
        """
        scope = scope_for(kind)
        member = None
        if container_id is not None:
            member = scope.load_container(self.uow, container_id, user_id).member
        messages = scope.messages(self.uow).list_favorites(user_id, container_id)

        projector = (
            DirectMessageService if scope.kind is ConversationKind.DIRECT else ChannelMessageService
        )(self.uow, self.dispatcher.gateway)
        return Result.success(projector.project_messages(messages, user_id, member))
