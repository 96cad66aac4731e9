"""Versioned API router wiring for v1.

This module composes the version 1 API surface by including the sub-routers
that define their own endpoints. It contains no business logic and no
endpoint definitions. Downstream code should import and mount `api_v1` only.
"""
from __future__ import annotations

from typing import Final

from fastapi import APIRouter

from .endpoints import (
    channel_messages_router,
    channels_router,
    conversations_router,
    direct_messages_router,
    system_router,
)

# Single router for v1; sub-routers declare their own prefixes and tags
api_v1: Final[APIRouter] = APIRouter()
api_v1.include_router(conversations_router)
api_v1.include_router(direct_messages_router)
api_v1.include_router(channels_router)
api_v1.include_router(channel_messages_router)
api_v1.include_router(system_router)

__all__ = ["api_v1"]
