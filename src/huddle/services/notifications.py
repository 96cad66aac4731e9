"""Notification dispatch gateway.

Command handlers emit events here only after their transaction committed.
Dispatch is fire-and-forget: a failing gateway is logged and never rolls back
or retries the command.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

# Configure logger for this module
logger = logging.getLogger(__name__)


class NotificationGateway(Protocol):
    """Real-time delivery boundary consumed by the core."""

    def notify_user(self, user_id: uuid.UUID, event_name: str, payload: Mapping[str, Any]) -> None:
        ...

    def notify_channel_members(
        self,
        channel_id: uuid.UUID,
        member_ids: Iterable[uuid.UUID],
        event_name: str,
        payload: Mapping[str, Any],
    ) -> None:
        ...


class LoggingNotificationGateway:
    """Default gateway that only records events in the log."""

    def notify_user(self, user_id: uuid.UUID, event_name: str, payload: Mapping[str, Any]) -> None:
        logger.info("event %s -> user %s: %s", event_name, user_id, dict(payload))

    def notify_channel_members(
        self,
        channel_id: uuid.UUID,
        member_ids: Iterable[uuid.UUID],
        event_name: str,
        payload: Mapping[str, Any],
    ) -> None:
        members = list(member_ids)
        logger.info(
            "event %s -> channel %s (%d members): %s",
            event_name,
            channel_id,
            len(members),
            dict(payload),
        )


@dataclass
class SentEvent:
    """One event captured by :class:`RecordingNotificationGateway`."""

    event_name: str
    payload: dict[str, Any]
    user_id: uuid.UUID | None = None
    channel_id: uuid.UUID | None = None
    member_ids: list[uuid.UUID] = field(default_factory=list)


class RecordingNotificationGateway:
    """Gateway that keeps events in memory, for embedding and tests."""

    def __init__(self) -> None:
        self.events: list[SentEvent] = []

    def notify_user(self, user_id: uuid.UUID, event_name: str, payload: Mapping[str, Any]) -> None:
        self.events.append(SentEvent(event_name=event_name, payload=dict(payload), user_id=user_id))

    def notify_channel_members(
        self,
        channel_id: uuid.UUID,
        member_ids: Iterable[uuid.UUID],
        event_name: str,
        payload: Mapping[str, Any],
    ) -> None:
        self.events.append(
            SentEvent(
                event_name=event_name,
                payload=dict(payload),
                channel_id=channel_id,
                member_ids=list(member_ids),
            )
        )

    def names(self) -> list[str]:
        return [event.event_name for event in self.events]

    def clear(self) -> None:
        self.events.clear()


class Dispatcher:
    """Wraps a gateway so that delivery failures never reach the caller."""

    def __init__(self, gateway: NotificationGateway) -> None:
        self.gateway = gateway

    def to_user(self, user_id: uuid.UUID, event_name: str, payload: Mapping[str, Any]) -> None:
        try:
            self.gateway.notify_user(user_id, event_name, payload)
        except Exception:
            logger.warning("Failed to deliver %s to user %s", event_name, user_id, exc_info=True)

    def to_users(
        self, user_ids: Iterable[uuid.UUID], event_name: str, payload: Mapping[str, Any]
    ) -> None:
        for user_id in dict.fromkeys(user_ids):
            self.to_user(user_id, event_name, payload)

    def to_channel(
        self,
        channel_id: uuid.UUID,
        member_ids: Iterable[uuid.UUID],
        event_name: str,
        payload: Mapping[str, Any],
    ) -> None:
        try:
            self.gateway.notify_channel_members(channel_id, list(member_ids), event_name, payload)
        except Exception:
            logger.warning(
                "Failed to deliver %s to channel %s", event_name, channel_id, exc_info=True
            )


class _GatewaySingleton:
    """Singleton holder for the process-wide notification gateway."""

    _instance: NotificationGateway | None = None

    @classmethod
    def get_instance(cls) -> NotificationGateway:
        """Get or create the singleton gateway, defaulting to the logging one."""
        if cls._instance is None:
            cls._instance = LoggingNotificationGateway()
        return cls._instance

    @classmethod
    def set_instance(cls, gateway: NotificationGateway | None) -> None:
        cls._instance = gateway


def get_notification_gateway() -> NotificationGateway:
    """Return the singleton notification gateway."""
    return _GatewaySingleton.get_instance()


def set_notification_gateway(gateway: NotificationGateway | None) -> None:
    """Install the gateway returned by :func:`get_notification_gateway`."""
    _GatewaySingleton.set_instance(gateway)
