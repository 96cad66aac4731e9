# src/huddle/api/v1/endpoints/channels.py
"""Channel endpoints for the Huddle API."""

from __future__ import annotations

import uuid
from datetime import datetime

from fastapi import APIRouter, Query, status

from huddle.api.v1.dependencies import (
    ChannelMessageServiceDep,
    ChannelServiceDep,
    CurrentUserDep,
    FavoriteServiceDep,
    PreferenceServiceDep,
    ReadLaterServiceDep,
    ReadTrackingServiceDep,
    unwrap,
)
from huddle.schemas import (
    AddMemberRequest,
    ChannelCreate,
    ChannelMemberOut,
    ChannelMessageOut,
    ChannelOut,
    ChannelUpdate,
    MarkMessagesReadRequest,
    PreferencesOut,
    SendMessageRequest,
    TransferOwnershipRequest,
    UpdateRoleRequest,
    UserChannelOut,
)
from huddle.services import ConversationKind

router = APIRouter(prefix="/channels", tags=["channels"])

KIND = ConversationKind.CHANNEL


@router.post("/", response_model=ChannelOut, status_code=status.HTTP_201_CREATED)
def create_channel(
    body: ChannelCreate,
    current_user: CurrentUserDep,
    service: ChannelServiceDep,
) -> ChannelOut:
    """Create a channel owned by the caller."""
    return unwrap(
        service.create_channel(
            current_user, body.name, description=body.description, channel_type=body.type
        )
    )


@router.get("/", response_model=list[UserChannelOut])
def list_my_channels(
    current_user: CurrentUserDep,
    service: ChannelServiceDep,
    include_archived: bool = Query(False),
) -> list[UserChannelOut]:
    return unwrap(service.list_user_channels(current_user, include_archived=include_archived))


@router.get("/public", response_model=list[ChannelOut])
def list_public_channels(
    current_user: CurrentUserDep,
    service: ChannelServiceDep,
    search: str | None = Query(None, max_length=100),
    limit: int | None = Query(None, ge=1),
) -> list[ChannelOut]:
    return unwrap(service.list_public_channels(search, limit))


@router.get("/{channel_id}", response_model=ChannelOut)
def get_channel(
    channel_id: uuid.UUID,
    current_user: CurrentUserDep,
    service: ChannelServiceDep,
) -> ChannelOut:
    return unwrap(service.get_channel(channel_id, current_user))


@router.patch("/{channel_id}", response_model=ChannelOut)
def update_channel(
    channel_id: uuid.UUID,
    body: ChannelUpdate,
    current_user: CurrentUserDep,
    service: ChannelServiceDep,
) -> ChannelOut:
    return unwrap(
        service.update_channel(
            channel_id,
            current_user,
            name=body.name,
            description=body.description,
            channel_type=body.type,
        )
    )


@router.delete("/{channel_id}", response_model=ChannelOut)
def archive_channel(
    channel_id: uuid.UUID,
    current_user: CurrentUserDep,
    service: ChannelServiceDep,
) -> ChannelOut:
    """Archive the channel. Channels are never hard deleted."""
    return unwrap(service.archive_channel(channel_id, current_user))


# Membership -----------------------------------------------------------------


@router.get("/{channel_id}/members", response_model=list[ChannelMemberOut])
def list_members(
    channel_id: uuid.UUID,
    current_user: CurrentUserDep,
    service: ChannelServiceDep,
) -> list[ChannelMemberOut]:
    return unwrap(service.list_members(channel_id, current_user))


@router.post(
    "/{channel_id}/members",
    response_model=ChannelMemberOut,
    status_code=status.HTTP_201_CREATED,
)
def add_member(
    channel_id: uuid.UUID,
    body: AddMemberRequest,
    current_user: CurrentUserDep,
    service: ChannelServiceDep,
) -> ChannelMemberOut:
    return unwrap(service.add_member(channel_id, current_user, body.user_id, body.role))


@router.delete("/{channel_id}/members/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_member(
    channel_id: uuid.UUID,
    user_id: uuid.UUID,
    current_user: CurrentUserDep,
    service: ChannelServiceDep,
) -> None:
    unwrap(service.remove_member(channel_id, current_user, user_id))


@router.patch("/{channel_id}/members/{user_id}", response_model=ChannelMemberOut)
def update_member_role(
    channel_id: uuid.UUID,
    user_id: uuid.UUID,
    body: UpdateRoleRequest,
    current_user: CurrentUserDep,
    service: ChannelServiceDep,
) -> ChannelMemberOut:
    return unwrap(service.update_member_role(channel_id, current_user, user_id, body.role))


@router.post("/{channel_id}/transfer-ownership", response_model=ChannelOut)
def transfer_ownership(
    channel_id: uuid.UUID,
    body: TransferOwnershipRequest,
    current_user: CurrentUserDep,
    service: ChannelServiceDep,
) -> ChannelOut:
    return unwrap(service.transfer_ownership(channel_id, current_user, body.new_owner_id))


@router.post("/{channel_id}/join", response_model=ChannelMemberOut)
def join_channel(
    channel_id: uuid.UUID,
    current_user: CurrentUserDep,
    service: ChannelServiceDep,
) -> ChannelMemberOut:
    return unwrap(service.join_channel(channel_id, current_user))


@router.post("/{channel_id}/leave", status_code=status.HTTP_204_NO_CONTENT)
def leave_channel(
    channel_id: uuid.UUID,
    current_user: CurrentUserDep,
    service: ChannelServiceDep,
) -> None:
    unwrap(service.leave_channel(channel_id, current_user))


# Messages and read state ----------------------------------------------------


@router.get("/{channel_id}/messages", response_model=list[ChannelMessageOut])
def list_messages(
    channel_id: uuid.UUID,
    current_user: CurrentUserDep,
    service: ChannelMessageServiceDep,
    before: datetime | None = Query(None),
    after: datetime | None = Query(None),
    page_size: int | None = Query(None, ge=1),
) -> list[ChannelMessageOut]:
    return unwrap(
        service.list_messages(channel_id, current_user, before=before, after=after, page_size=page_size)
    )


@router.post(
    "/{channel_id}/messages",
    response_model=ChannelMessageOut,
    status_code=status.HTTP_201_CREATED,
)
def send_message(
    channel_id: uuid.UUID,
    body: SendMessageRequest,
    current_user: CurrentUserDep,
    service: ChannelMessageServiceDep,
) -> ChannelMessageOut:
    return unwrap(
        service.send_message(
            channel_id,
            current_user,
            content=body.content,
            file_id=body.file_id,
            reply_to_message_id=body.reply_to_message_id,
            is_forwarded=body.is_forwarded,
        )
    )


@router.get("/{channel_id}/messages/around/{message_id}", response_model=list[ChannelMessageOut])
def list_messages_around(
    channel_id: uuid.UUID,
    message_id: uuid.UUID,
    current_user: CurrentUserDep,
    service: ChannelMessageServiceDep,
    count: int | None = Query(None, ge=1),
) -> list[ChannelMessageOut]:
    return unwrap(service.list_messages_around(channel_id, message_id, current_user, count))


@router.get("/{channel_id}/messages/pinned", response_model=list[ChannelMessageOut])
def list_pinned_messages(
    channel_id: uuid.UUID,
    current_user: CurrentUserDep,
    service: ChannelMessageServiceDep,
) -> list[ChannelMessageOut]:
    return unwrap(service.list_pinned_messages(channel_id, current_user))


@router.get("/{channel_id}/favorites", response_model=list[ChannelMessageOut])
def list_favorite_messages(
    channel_id: uuid.UUID,
    current_user: CurrentUserDep,
    service: FavoriteServiceDep,
) -> list[ChannelMessageOut]:
    return unwrap(service.list_favorites(KIND, current_user, channel_id))


@router.post("/{channel_id}/messages/{message_id}/read-later")
def toggle_message_read_later(
    channel_id: uuid.UUID,
    message_id: uuid.UUID,
    current_user: CurrentUserDep,
    service: ReadLaterServiceDep,
) -> dict[str, bool]:
    marked = unwrap(service.toggle_message_as_later(KIND, channel_id, message_id, current_user))
    return {"marked": marked}


@router.get("/{channel_id}/unread-count")
def get_unread_count(
    channel_id: uuid.UUID,
    current_user: CurrentUserDep,
    service: ReadTrackingServiceDep,
) -> dict[str, int]:
    return {"unread_count": unwrap(service.get_channel_unread_count(channel_id, current_user))}


@router.post("/{channel_id}/read")
def mark_all_as_read(
    channel_id: uuid.UUID,
    current_user: CurrentUserDep,
    service: ReadTrackingServiceDep,
) -> dict[str, int]:
    return {"marked": unwrap(service.mark_all_channel_messages_as_read(channel_id, current_user))}


@router.post("/{channel_id}/read/messages")
def mark_messages_as_read(
    channel_id: uuid.UUID,
    body: MarkMessagesReadRequest,
    current_user: CurrentUserDep,
    service: ReadTrackingServiceDep,
) -> dict[str, int]:
    """Record read receipts for the listed messages."""
    marked = unwrap(service.mark_channel_messages_as_read(channel_id, body.message_ids, current_user))
    return {"marked": marked}


# Preferences ----------------------------------------------------------------


@router.post("/{channel_id}/pin", response_model=PreferencesOut)
def toggle_pin(
    channel_id: uuid.UUID,
    current_user: CurrentUserDep,
    service: PreferenceServiceDep,
) -> PreferencesOut:
    return unwrap(service.toggle_pin(KIND, channel_id, current_user))


@router.post("/{channel_id}/mute", response_model=PreferencesOut)
def toggle_mute(
    channel_id: uuid.UUID,
    current_user: CurrentUserDep,
    service: PreferenceServiceDep,
) -> PreferencesOut:
    return unwrap(service.toggle_mute(KIND, channel_id, current_user))


@router.post("/{channel_id}/hide", response_model=PreferencesOut)
def hide_channel(
    channel_id: uuid.UUID,
    current_user: CurrentUserDep,
    service: PreferenceServiceDep,
) -> PreferencesOut:
    return unwrap(service.hide(KIND, channel_id, current_user))


@router.post("/{channel_id}/unhide", response_model=PreferencesOut)
def unhide_channel(
    channel_id: uuid.UUID,
    current_user: CurrentUserDep,
    service: PreferenceServiceDep,
) -> PreferencesOut:
    return unwrap(service.unhide(KIND, channel_id, current_user))


@router.post("/{channel_id}/read-later", response_model=PreferencesOut)
def toggle_read_later(
    channel_id: uuid.UUID,
    current_user: CurrentUserDep,
    service: ReadLaterServiceDep,
) -> PreferencesOut:
    return unwrap(service.toggle_read_later(KIND, channel_id, current_user))


@router.put("/{channel_id}/read-later", response_model=PreferencesOut)
def mark_read_later(
    channel_id: uuid.UUID,
    current_user: CurrentUserDep,
    service: ReadLaterServiceDep,
) -> PreferencesOut:
    return unwrap(service.mark_as_read_later(KIND, channel_id, current_user))


@router.delete("/{channel_id}/read-later", response_model=PreferencesOut)
def unmark_read_later(
    channel_id: uuid.UUID,
    current_user: CurrentUserDep,
    service: ReadLaterServiceDep,
) -> PreferencesOut:
    return unwrap(service.unmark_as_read_later(KIND, channel_id, current_user))


@router.post("/{channel_id}/open", response_model=PreferencesOut)
def open_channel(
    channel_id: uuid.UUID,
    current_user: CurrentUserDep,
    service: ReadLaterServiceDep,
) -> PreferencesOut:
    return unwrap(service.unmark_on_open(KIND, channel_id, current_user))
