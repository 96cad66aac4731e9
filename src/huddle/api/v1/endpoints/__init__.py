# src/huddle/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .channel_messages import router as channel_messages_router
from .channels import router as channels_router
from .conversations import router as conversations_router
from .direct_messages import router as direct_messages_router
from .system import router as system_router

__all__ = [
    "conversations_router",
    "direct_messages_router",
    "channels_router",
    "channel_messages_router",
    "system_router",
]
