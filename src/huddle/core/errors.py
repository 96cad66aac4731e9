"""Domain error taxonomy for the messaging core.

Entity methods raise these exceptions for business-rule violations. Service
functions convert every category except :class:`NotFoundError` into a failed
:class:`~huddle.services.results.Result`; ``NotFoundError`` propagates so the
API layer can answer with a distinct "not found" response.
"""

from __future__ import annotations


class HuddleError(Exception):
    """Base exception for all domain failures."""

    code = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(HuddleError):
    """Raised for malformed input such as empty or over-length content."""

    code = "validation_error"


class NotFoundError(HuddleError):
    """Raised when a referenced entity does not exist."""

    code = "not_found"


class ConflictError(HuddleError):
    """Raised when a request conflicts with current state.

    Examples are pinning an already pinned message or adding a duplicate
    reaction.
    """

    code = "conflict"


class InvalidStateError(HuddleError):
    """Raised when an entity is in a state that forbids the operation."""

    code = "invalid_state"


class NotParticipantError(InvalidStateError):
    """Raised when a user is not a participant of a conversation or channel."""

    code = "not_participant"


class ConcurrencyConflictError(ConflictError):
    """Raised when a concurrent command changed the row being written."""

    code = "concurrency_conflict"


class PermissionDeniedError(InvalidStateError):
    """Raised when the caller may see an entity but not change it.

    Only the sender may edit or delete a message, for instance.
    """

    code = "forbidden"
