"""System endpoints for the Huddle API."""

from __future__ import annotations

import time

from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from huddle.api.v1.dependencies import SessionDep
from huddle.core.settings import settings

router = APIRouter(prefix="/system", tags=["system"])


@router.get("/config")
def get_public_config() -> dict[str, object]:
    """Return a sanitized snapshot of public runtime configuration.

    Excludes secrets and connection strings; clients use the limits to
    validate input before sending it.
    """
    return {
        "app": {
            "name": settings.app_name,
            "version": settings.app_version,
            "jwt_algorithm": settings.jwt_algorithm,
            "debug": settings.debug,
        },
        "limits": {
            "max_message_length": settings.max_message_length,
            "max_channel_name_length": settings.max_channel_name_length,
            "max_channel_description_length": settings.max_channel_description_length,
            "max_reaction_length": settings.max_reaction_length,
            "max_batch_messages": settings.max_batch_messages,
            "default_page_size": settings.default_page_size,
            "max_page_size": settings.max_page_size,
        },
    }


@router.get("/health")
def get_system_health(db: SessionDep) -> dict[str, object]:
    """Health check including database connectivity.

    Args:
        db: Database session

    Returns:
        Dictionary with overall status, component health and version info
    """
    try:
        db.execute(text("SELECT 1"))
        db_status = "healthy"
    except SQLAlchemyError as e:
        db_status = f"unhealthy: {e}"

    return {
        "status": "healthy" if db_status == "healthy" else "unhealthy",
        "timestamp": int(time.time()),
        "components": {"database": db_status},
        "version": settings.app_version,
    }
