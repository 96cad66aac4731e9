# src/huddle/api/v1/endpoints/channel_messages.py
"""Endpoints acting on individual channel messages."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, status

from huddle.api.v1.dependencies import (
    ChannelMessageServiceDep,
    CurrentUserDep,
    FavoriteServiceDep,
    ReactionServiceDep,
    ReadTrackingServiceDep,
    unwrap,
)
from huddle.schemas import (
    BatchDeleteRequest,
    ChannelMessageOut,
    EditMessageRequest,
    FavoriteToggleOut,
    ReactionOut,
    ReactionRequest,
    ReactionToggleOut,
)
from huddle.services import ConversationKind
from huddle.services.projections import to_reaction_out

router = APIRouter(prefix="/channel-messages", tags=["channel-messages"])

KIND = ConversationKind.CHANNEL


@router.get("/favorites", response_model=list[ChannelMessageOut])
def list_favorites(current_user: CurrentUserDep, service: FavoriteServiceDep) -> list[ChannelMessageOut]:
    """All channel messages the caller has favorited."""
    return unwrap(service.list_favorites(KIND, current_user))


@router.post("/batch-delete")
def batch_delete(
    body: BatchDeleteRequest,
    current_user: CurrentUserDep,
    service: ChannelMessageServiceDep,
) -> dict[str, list[uuid.UUID]]:
    return {"deleted": unwrap(service.batch_delete_messages(body.message_ids, current_user))}


@router.patch("/{message_id}", response_model=ChannelMessageOut)
def edit_message(
    message_id: uuid.UUID,
    body: EditMessageRequest,
    current_user: CurrentUserDep,
    service: ChannelMessageServiceDep,
) -> ChannelMessageOut:
    return unwrap(service.edit_message(message_id, current_user, body.content))


@router.delete("/{message_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_message(
    message_id: uuid.UUID,
    current_user: CurrentUserDep,
    service: ChannelMessageServiceDep,
) -> None:
    unwrap(service.delete_message(message_id, current_user))


@router.post("/{message_id}/pin", response_model=ChannelMessageOut)
def pin_message(
    message_id: uuid.UUID,
    current_user: CurrentUserDep,
    service: ChannelMessageServiceDep,
) -> ChannelMessageOut:
    return unwrap(service.pin_message(message_id, current_user))


@router.delete("/{message_id}/pin", response_model=ChannelMessageOut)
def unpin_message(
    message_id: uuid.UUID,
    current_user: CurrentUserDep,
    service: ChannelMessageServiceDep,
) -> ChannelMessageOut:
    return unwrap(service.unpin_message(message_id, current_user))


@router.post("/{message_id}/read")
def mark_as_read(
    message_id: uuid.UUID,
    current_user: CurrentUserDep,
    service: ReadTrackingServiceDep,
) -> dict[str, bool]:
    return {"receipt_created": unwrap(service.mark_channel_message_as_read(message_id, current_user))}


@router.post("/{message_id}/favorite", response_model=FavoriteToggleOut)
def toggle_favorite(
    message_id: uuid.UUID,
    current_user: CurrentUserDep,
    service: FavoriteServiceDep,
) -> FavoriteToggleOut:
    outcome = unwrap(service.toggle_favorite(KIND, message_id, current_user))
    return FavoriteToggleOut(added=outcome.added, removed=outcome.removed)


@router.get("/{message_id}/reactions", response_model=list[ReactionOut])
def list_reactions(
    message_id: uuid.UUID,
    current_user: CurrentUserDep,
    service: ReactionServiceDep,
) -> list[ReactionOut]:
    return [to_reaction_out(s) for s in unwrap(service.list_reactions(KIND, message_id, current_user))]


@router.post("/{message_id}/reactions/toggle", response_model=ReactionToggleOut)
def toggle_reaction(
    message_id: uuid.UUID,
    body: ReactionRequest,
    current_user: CurrentUserDep,
    service: ReactionServiceDep,
) -> ReactionToggleOut:
    outcome = unwrap(service.toggle_reaction(KIND, message_id, current_user, body.emoji))
    return ReactionToggleOut(
        added=outcome.added,
        removed=outcome.removed,
        replaced=outcome.replaced,
        emoji=outcome.emoji,
        previous_emoji=outcome.previous_emoji,
        reactions=[to_reaction_out(s) for s in outcome.reactions],
    )


@router.post(
    "/{message_id}/reactions",
    response_model=list[ReactionOut],
    status_code=status.HTTP_201_CREATED,
)
def add_reaction(
    message_id: uuid.UUID,
    body: ReactionRequest,
    current_user: CurrentUserDep,
    service: ReactionServiceDep,
) -> list[ReactionOut]:
    summaries = unwrap(service.add_reaction(KIND, message_id, current_user, body.emoji))
    return [to_reaction_out(s) for s in summaries]


@router.delete("/{message_id}/reactions/{emoji}", response_model=list[ReactionOut])
def remove_reaction(
    message_id: uuid.UUID,
    emoji: str,
    current_user: CurrentUserDep,
    service: ReactionServiceDep,
) -> list[ReactionOut]:
    summaries = unwrap(service.remove_reaction(KIND, message_id, current_user, emoji))
    return [to_reaction_out(s) for s in summaries]
