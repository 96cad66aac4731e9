"""Typed command results returned by the service layer."""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from huddle.core.errors import HuddleError

T = TypeVar("T")

GENERIC_FAILURE = "An unexpected error occurred. Please try again."


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of a command: a value on success, an error message and code otherwise."""

    ok: bool
    value: T | None = None
    error: str | None = None
    code: str | None = None

    @classmethod
    def success(cls, value: T | None = None) -> Result[T]:
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: HuddleError | str, code: str = "error") -> Result[T]:
        if isinstance(error, HuddleError):
            return cls(ok=False, error=error.message, code=error.code)
        return cls(ok=False, error=error, code=code)


@dataclass(frozen=True)
class ReactionSummary:
    """Reactions on a message grouped by emoji."""

    emoji: str
    count: int
    user_ids: list[uuid.UUID] = field(default_factory=list)


@dataclass(frozen=True)
class ReactionToggleResult:
    """Exactly one of ``added``, ``removed`` and ``replaced`` is true."""

    added: bool
    removed: bool
    replaced: bool
    emoji: str
    previous_emoji: str | None = None
    reactions: list[ReactionSummary] = field(default_factory=list)


@dataclass(frozen=True)
class FavoriteToggleResult:
    added: bool
    removed: bool


def summarize_reactions(reactions) -> list[ReactionSummary]:
    """Group reaction rows by emoji, keeping first-seen order."""
    grouped: dict[str, list[uuid.UUID]] = {}
    for reaction in reactions:
        grouped.setdefault(reaction.emoji, []).append(reaction.user_id)
    return [
        ReactionSummary(emoji=emoji, count=len(user_ids), user_ids=user_ids)
        for emoji, user_ids in grouped.items()
    ]
