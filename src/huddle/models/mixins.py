"""Column and behaviour mixins shared by direct and channel entities."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from huddle.core.errors import ConflictError, InvalidStateError, ValidationError
from huddle.core.settings import settings
from huddle.db.time import utcnow


def validate_message_body(content: str | None, file_id: str | None) -> str:
    """Return normalised content or raise ``ValidationError``.

    A message needs text, a file reference, or both. Text is capped at
    ``settings.max_message_length`` characters.
    """
    has_text = bool(content and content.strip())
    has_file = bool(file_id and file_id.strip())
    if not has_text and not has_file:
        raise ValidationError("Message must have content or file attachment")
    if content is not None and len(content) > settings.max_message_length:
        raise ValidationError(
            f"Message content cannot exceed {settings.max_message_length} characters"
        )
    return content or ""


class MessageMixin:
    """Lifecycle shared by direct and channel messages.

    Soft-deleted messages keep their content but refuse any further mutation.
    """

    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    file_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    reply_to_message_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    is_forwarded: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    is_edited: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    edited_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    is_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    is_pinned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    pinned_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    pinned_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, index=True
    )
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def ensure_not_deleted(self, action: str) -> None:
        """Raise ``InvalidStateError`` if the message has been deleted."""
        if self.is_deleted:
            raise InvalidStateError(f"Cannot {action} deleted message")

    def edit(self, new_content: str) -> bool:
        """Replace the content and return whether anything changed.

        Unchanged content is a successful no-op: ``is_edited`` and
        ``edited_at`` stay as they were.
        """
        self.ensure_not_deleted("edit")
        if new_content is None or not new_content.strip():
            raise ValidationError("Message content cannot be empty")
        if len(new_content) > settings.max_message_length:
            raise ValidationError(
                f"Message content cannot exceed {settings.max_message_length} characters"
            )
        if self.content == new_content:
            return False

        now = utcnow()
        self.content = new_content
        self.is_edited = True
        self.edited_at = now
        self.updated_at = now
        return True

    def delete(self) -> bool:
        """Soft delete the message. Returns False when it was already deleted."""
        if self.is_deleted:
            return False
        now = utcnow()
        self.is_deleted = True
        self.deleted_at = now
        self.updated_at = now
        return True

    def pin(self, pinned_by: uuid.UUID) -> None:
        self.ensure_not_deleted("pin")
        if self.is_pinned:
            raise ConflictError("Message is already pinned")
        now = utcnow()
        self.is_pinned = True
        self.pinned_at = now
        self.pinned_by = pinned_by
        self.updated_at = now

    def unpin(self) -> None:
        if not self.is_pinned:
            raise ConflictError("Message is not pinned")
        self.is_pinned = False
        self.pinned_at = None
        self.pinned_by = None
        self.updated_at = utcnow()

    @property
    def visible_content(self) -> str | None:
        """Content as exposed to clients; ``None`` once deleted."""
        return None if self.is_deleted else self.content

    @property
    def visible_file_id(self) -> str | None:
        return None if self.is_deleted else self.file_id


class MemberPreferencesMixin:
    """Per-user preferences for one conversation or channel membership."""

    is_pinned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_muted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_hidden: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Read-later: a conversation-level flag and an independent message bookmark.
    is_marked_read_later: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    last_read_later_message_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)

    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def _touch(self) -> None:
        self.updated_at = utcnow()

    def toggle_pin(self) -> bool:
        self.is_pinned = not self.is_pinned
        self._touch()
        return self.is_pinned

    def toggle_mute(self) -> bool:
        self.is_muted = not self.is_muted
        self._touch()
        return self.is_muted

    def hide(self) -> None:
        self.is_hidden = True
        self._touch()

    def unhide(self) -> None:
        self.is_hidden = False
        self._touch()

    def mark_message_as_later(self, message_id: uuid.UUID) -> None:
        self.last_read_later_message_id = message_id
        self._touch()

    def unmark_message_as_later(self) -> None:
        self.last_read_later_message_id = None
        self._touch()

    def toggle_message_as_later(self, message_id: uuid.UUID) -> bool:
        """Toggle the read-later bookmark and return whether it is now set.

        Marking a different message silently replaces the previous mark.
        """
        if self.last_read_later_message_id == message_id:
            self.unmark_message_as_later()
            return False
        self.mark_message_as_later(message_id)
        return True

    def mark_conversation_as_read_later(self) -> None:
        self.is_marked_read_later = True
        self._touch()

    def unmark_conversation_as_read_later(self) -> None:
        self.is_marked_read_later = False
        self._touch()

    def clear_read_later(self) -> None:
        """Clear the conversation-level flag and the message bookmark together."""
        self.is_marked_read_later = False
        self.last_read_later_message_id = None
        self._touch()
