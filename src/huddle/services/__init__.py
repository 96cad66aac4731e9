# src/huddle/services/__init__.py
"""Command handlers for the Huddle messaging core."""

from .channels import ChannelService
from .conversations import ConversationService
from .favorites import FavoriteService
from .messages import ChannelMessageService, DirectMessageService
from .notifications import (
    LoggingNotificationGateway,
    NotificationGateway,
    RecordingNotificationGateway,
    get_notification_gateway,
    set_notification_gateway,
)
from .preferences import PreferenceService
from .reactions import ReactionService
from .read_later import ReadLaterService
from .read_tracking import ReadTrackingService
from .results import FavoriteToggleResult, ReactionSummary, ReactionToggleResult, Result
from .scopes import ConversationKind

__all__ = [
    "ChannelService",
    "ConversationService",
    "DirectMessageService",
    "ChannelMessageService",
    "ReactionService",
    "FavoriteService",
    "ReadLaterService",
    "ReadTrackingService",
    "PreferenceService",
    "ConversationKind",
    "Result",
    "ReactionSummary",
    "ReactionToggleResult",
    "FavoriteToggleResult",
    "NotificationGateway",
    "LoggingNotificationGateway",
    "RecordingNotificationGateway",
    "get_notification_gateway",
    "set_notification_gateway",
]
