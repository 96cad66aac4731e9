"""Shared API dependencies for authentication and service wiring."""

import uuid
from typing import Annotated, Any

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from huddle.core.settings import settings
from huddle.db.session import get_db
from huddle.repositories import UnitOfWork
from huddle.services import (
    ChannelMessageService,
    ChannelService,
    ConversationService,
    DirectMessageService,
    FavoriteService,
    NotificationGateway,
    PreferenceService,
    ReactionService,
    ReadLaterService,
    ReadTrackingService,
    Result,
    get_notification_gateway,
)

# HTTP Bearer scheme for JWT authentication
bearer_scheme = HTTPBearer()

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]

_STATUS_BY_CODE = {
    "validation_error": status.HTTP_400_BAD_REQUEST,
    "forbidden": status.HTTP_403_FORBIDDEN,
    "not_participant": status.HTTP_403_FORBIDDEN,
    "not_found": status.HTTP_404_NOT_FOUND,
    "conflict": status.HTTP_409_CONFLICT,
    "concurrency_conflict": status.HTTP_409_CONFLICT,
    "invalid_state": status.HTTP_409_CONFLICT,
}


def get_current_user_id(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
) -> uuid.UUID:
    """Return the authenticated user id from the bearer token.

    The token's ``sub`` claim must hold the user's UUID. Token issuance lives
    outside this service.

    Raises:
        HTTPException: If the token is invalid or the subject is not a UUID.
    """
    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as err:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        ) from err

    subject = payload.get("sub")
    if subject is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        )
    try:
        return uuid.UUID(str(subject))
    except ValueError as err:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        ) from err


# Type alias for current user dependency
CurrentUserDep = Annotated[uuid.UUID, Depends(get_current_user_id)]


def get_gateway() -> NotificationGateway:
    """Return the process-wide notification gateway."""
    return get_notification_gateway()


GatewayDep = Annotated[NotificationGateway, Depends(get_gateway)]


def get_uow(db: SessionDep) -> UnitOfWork:
    return UnitOfWork(db)


UowDep = Annotated[UnitOfWork, Depends(get_uow)]


def get_conversation_service(uow: UowDep, gateway: GatewayDep) -> ConversationService:
    return ConversationService(uow, gateway)


def get_direct_message_service(uow: UowDep, gateway: GatewayDep) -> DirectMessageService:
    return DirectMessageService(uow, gateway)


def get_channel_message_service(uow: UowDep, gateway: GatewayDep) -> ChannelMessageService:
    return ChannelMessageService(uow, gateway)


def get_channel_service(uow: UowDep, gateway: GatewayDep) -> ChannelService:
    return ChannelService(uow, gateway)


def get_reaction_service(uow: UowDep, gateway: GatewayDep) -> ReactionService:
    return ReactionService(uow, gateway)


def get_favorite_service(uow: UowDep, gateway: GatewayDep) -> FavoriteService:
    return FavoriteService(uow, gateway)


def get_read_later_service(uow: UowDep, gateway: GatewayDep) -> ReadLaterService:
    return ReadLaterService(uow, gateway)


def get_read_tracking_service(uow: UowDep, gateway: GatewayDep) -> ReadTrackingService:
    return ReadTrackingService(uow, gateway)


def get_preference_service(uow: UowDep, gateway: GatewayDep) -> PreferenceService:
    return PreferenceService(uow, gateway)


ConversationServiceDep = Annotated[ConversationService, Depends(get_conversation_service)]
DirectMessageServiceDep = Annotated[DirectMessageService, Depends(get_direct_message_service)]
ChannelMessageServiceDep = Annotated[ChannelMessageService, Depends(get_channel_message_service)]
ChannelServiceDep = Annotated[ChannelService, Depends(get_channel_service)]
ReactionServiceDep = Annotated[ReactionService, Depends(get_reaction_service)]
FavoriteServiceDep = Annotated[FavoriteService, Depends(get_favorite_service)]
ReadLaterServiceDep = Annotated[ReadLaterService, Depends(get_read_later_service)]
ReadTrackingServiceDep = Annotated[ReadTrackingService, Depends(get_read_tracking_service)]
PreferenceServiceDep = Annotated[PreferenceService, Depends(get_preference_service)]


def unwrap(result: Result[Any]) -> Any:
    """Return the value of a successful result or raise the matching HTTP error."""
    if result.ok:
        return result.value
    raise HTTPException(
        status_code=_STATUS_BY_CODE.get(result.code or "", status.HTTP_500_INTERNAL_SERVER_ERROR),
        detail=result.error,
    )
