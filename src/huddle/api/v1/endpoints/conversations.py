# src/huddle/api/v1/endpoints/conversations.py
"""Direct conversation endpoints for the Huddle API."""

from __future__ import annotations

import uuid
from datetime import datetime

from fastapi import APIRouter, Query, status

from huddle.api.v1.dependencies import (
    ConversationServiceDep,
    CurrentUserDep,
    DirectMessageServiceDep,
    FavoriteServiceDep,
    PreferenceServiceDep,
    ReadLaterServiceDep,
    ReadTrackingServiceDep,
    unwrap,
)
from huddle.schemas import (
    BatchSendRequest,
    ConversationOut,
    DirectMessageOut,
    MarkMessagesReadRequest,
    PreferencesOut,
    SendMessageRequest,
    StartConversationRequest,
)
from huddle.services import ConversationKind

router = APIRouter(prefix="/conversations", tags=["conversations"])

KIND = ConversationKind.DIRECT


@router.post("/", response_model=ConversationOut)
def start_conversation(
    body: StartConversationRequest,
    current_user: CurrentUserDep,
    service: ConversationServiceDep,
) -> ConversationOut:
    """Open (or resolve) the conversation with another user."""
    conversation = unwrap(service.get_or_create_conversation(current_user, body.other_user_id))
    return unwrap(service.get_conversation(conversation.id, current_user))


@router.post("/notes", response_model=ConversationOut)
def open_notes(current_user: CurrentUserDep, service: ConversationServiceDep) -> ConversationOut:
    """Resolve the caller's private notes conversation."""
    conversation = unwrap(service.get_or_create_notes(current_user))
    return unwrap(service.get_conversation(conversation.id, current_user))


@router.get("/", response_model=list[ConversationOut])
def list_conversations(
    current_user: CurrentUserDep,
    service: ConversationServiceDep,
    include_hidden: bool = Query(False),
) -> list[ConversationOut]:
    return unwrap(service.list_conversations(current_user, include_hidden=include_hidden))


@router.get("/{conversation_id}", response_model=ConversationOut)
def get_conversation(
    conversation_id: uuid.UUID,
    current_user: CurrentUserDep,
    service: ConversationServiceDep,
) -> ConversationOut:
    return unwrap(service.get_conversation(conversation_id, current_user))


@router.get("/{conversation_id}/unread-count")
def get_unread_count(
    conversation_id: uuid.UUID,
    current_user: CurrentUserDep,
    service: ReadTrackingServiceDep,
) -> dict[str, int]:
    return {"unread_count": unwrap(service.get_direct_unread_count(conversation_id, current_user))}


@router.post("/{conversation_id}/read")
def mark_all_as_read(
    conversation_id: uuid.UUID,
    current_user: CurrentUserDep,
    service: ReadTrackingServiceDep,
) -> dict[str, int]:
    """Mark every message addressed to the caller as read."""
    return {"marked": unwrap(service.mark_all_direct_messages_as_read(conversation_id, current_user))}


@router.post("/{conversation_id}/read/messages")
def mark_messages_as_read(
    conversation_id: uuid.UUID,
    body: MarkMessagesReadRequest,
    current_user: CurrentUserDep,
    service: ReadTrackingServiceDep,
) -> dict[str, int]:
    """Mark the listed messages addressed to the caller as read."""
    marked = unwrap(
        service.mark_direct_messages_as_read(conversation_id, body.message_ids, current_user)
    )
    return {"marked": marked}


# Messages -------------------------------------------------------------------


@router.get("/{conversation_id}/messages", response_model=list[DirectMessageOut])
def list_messages(
    conversation_id: uuid.UUID,
    current_user: CurrentUserDep,
    service: DirectMessageServiceDep,
    before: datetime | None = Query(None),
    after: datetime | None = Query(None),
    page_size: int | None = Query(None, ge=1),
) -> list[DirectMessageOut]:
    return unwrap(
        service.list_messages(
            conversation_id, current_user, before=before, after=after, page_size=page_size
        )
    )


@router.post(
    "/{conversation_id}/messages",
    response_model=DirectMessageOut,
    status_code=status.HTTP_201_CREATED,
)
def send_message(
    conversation_id: uuid.UUID,
    body: SendMessageRequest,
    current_user: CurrentUserDep,
    service: DirectMessageServiceDep,
) -> DirectMessageOut:
    return unwrap(
        service.send_message(
            conversation_id,
            current_user,
            content=body.content,
            file_id=body.file_id,
            reply_to_message_id=body.reply_to_message_id,
            is_forwarded=body.is_forwarded,
        )
    )


@router.post(
    "/{conversation_id}/messages/batch",
    response_model=list[DirectMessageOut],
    status_code=status.HTTP_201_CREATED,
)
def send_batch_messages(
    conversation_id: uuid.UUID,
    body: BatchSendRequest,
    current_user: CurrentUserDep,
    service: DirectMessageServiceDep,
) -> list[DirectMessageOut]:
    return unwrap(
        service.send_batch_messages(
            conversation_id,
            current_user,
            body.messages,
            reply_to_message_id=body.reply_to_message_id,
            is_forwarded=body.is_forwarded,
        )
    )


@router.get(
    "/{conversation_id}/messages/around/{message_id}",
    response_model=list[DirectMessageOut],
)
def list_messages_around(
    conversation_id: uuid.UUID,
    message_id: uuid.UUID,
    current_user: CurrentUserDep,
    service: DirectMessageServiceDep,
    count: int | None = Query(None, ge=1),
) -> list[DirectMessageOut]:
    """Return the messages surrounding ``message_id``, oldest first."""
    return unwrap(service.list_messages_around(conversation_id, message_id, current_user, count))


@router.get("/{conversation_id}/messages/pinned", response_model=list[DirectMessageOut])
def list_pinned_messages(
    conversation_id: uuid.UUID,
    current_user: CurrentUserDep,
    service: DirectMessageServiceDep,
) -> list[DirectMessageOut]:
    return unwrap(service.list_pinned_messages(conversation_id, current_user))


@router.get("/{conversation_id}/favorites", response_model=list[DirectMessageOut])
def list_favorite_messages(
    conversation_id: uuid.UUID,
    current_user: CurrentUserDep,
    service: FavoriteServiceDep,
) -> list[DirectMessageOut]:
    return unwrap(service.list_favorites(KIND, current_user, conversation_id))


@router.post("/{conversation_id}/messages/{message_id}/read-later")
def toggle_message_read_later(
    conversation_id: uuid.UUID,
    message_id: uuid.UUID,
    current_user: CurrentUserDep,
    service: ReadLaterServiceDep,
) -> dict[str, bool]:
    """Bookmark a message for later, or clear the bookmark."""
    marked = unwrap(
        service.toggle_message_as_later(KIND, conversation_id, message_id, current_user)
    )
    return {"marked": marked}


# Preferences ----------------------------------------------------------------


@router.post("/{conversation_id}/pin", response_model=PreferencesOut)
def toggle_pin(
    conversation_id: uuid.UUID,
    current_user: CurrentUserDep,
    service: PreferenceServiceDep,
) -> PreferencesOut:
    return unwrap(service.toggle_pin(KIND, conversation_id, current_user))


@router.post("/{conversation_id}/mute", response_model=PreferencesOut)
def toggle_mute(
    conversation_id: uuid.UUID,
    current_user: CurrentUserDep,
    service: PreferenceServiceDep,
) -> PreferencesOut:
    return unwrap(service.toggle_mute(KIND, conversation_id, current_user))


@router.post("/{conversation_id}/hide", response_model=PreferencesOut)
def hide_conversation(
    conversation_id: uuid.UUID,
    current_user: CurrentUserDep,
    service: PreferenceServiceDep,
) -> PreferencesOut:
    return unwrap(service.hide(KIND, conversation_id, current_user))


@router.post("/{conversation_id}/unhide", response_model=PreferencesOut)
def unhide_conversation(
    conversation_id: uuid.UUID,
    current_user: CurrentUserDep,
    service: PreferenceServiceDep,
) -> PreferencesOut:
    return unwrap(service.unhide(KIND, conversation_id, current_user))


@router.post("/{conversation_id}/read-later", response_model=PreferencesOut)
def toggle_read_later(
    conversation_id: uuid.UUID,
    current_user: CurrentUserDep,
    service: ReadLaterServiceDep,
) -> PreferencesOut:
    return unwrap(service.toggle_read_later(KIND, conversation_id, current_user))


@router.put("/{conversation_id}/read-later", response_model=PreferencesOut)
def mark_read_later(
    conversation_id: uuid.UUID,
    current_user: CurrentUserDep,
    service: ReadLaterServiceDep,
) -> PreferencesOut:
    return unwrap(service.mark_as_read_later(KIND, conversation_id, current_user))


@router.delete("/{conversation_id}/read-later", response_model=PreferencesOut)
def unmark_read_later(
    conversation_id: uuid.UUID,
    current_user: CurrentUserDep,
    service: ReadLaterServiceDep,
) -> PreferencesOut:
    return unwrap(service.unmark_as_read_later(KIND, conversation_id, current_user))


@router.post("/{conversation_id}/open", response_model=PreferencesOut)
def open_conversation(
    conversation_id: uuid.UUID,
    current_user: CurrentUserDep,
    service: ReadLaterServiceDep,
) -> PreferencesOut:
    """Clear read-later marks when the caller opens the conversation."""
    return unwrap(service.unmark_on_open(KIND, conversation_id, current_user))
