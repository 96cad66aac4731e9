# src/huddle/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    channel_messages_router,
    channels_router,
    conversations_router,
    direct_messages_router,
    system_router,
)

__all__ = [
    "conversations_router",
    "direct_messages_router",
    "channels_router",
    "channel_messages_router",
    "system_router",
]
