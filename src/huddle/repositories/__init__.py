"""Repositories and the unit of work used by command handlers."""

from .channel_repo import ChannelRepository
from .conversation_repo import ConversationRepository
from .interaction_repo import FavoriteRepository, ReactionRepository, ReadReceiptRepository
from .message_repo import ChannelMessageRepository, DirectMessageRepository
from .unit_of_work import UnitOfWork

__all__ = [
    "ChannelRepository",
    "ConversationRepository",
    "DirectMessageRepository",
    "ChannelMessageRepository",
    "ReactionRepository",
    "FavoriteRepository",
    "ReadReceiptRepository",
    "UnitOfWork",
]
