"""Command handler plumbing shared by every service."""
from __future__ import annotations

import functools
import logging
from collections.abc import Callable
from typing import Any, TypeVar

from sqlalchemy.orm import Session

from huddle.core.errors import HuddleError, NotFoundError
from huddle.repositories import UnitOfWork
from huddle.services.notifications import Dispatcher, NotificationGateway, get_notification_gateway
from huddle.services.results import GENERIC_FAILURE, Result

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Result[Any]])


def command(action: str) -> Callable[[F], F]:
    """Turn domain exceptions raised by a service method into a ``Result``.

    ``NotFoundError`` propagates to the caller. Other domain errors become a
    failed result; anything else is logged and reported as a generic failure.
    The transaction is rolled back in every failure case.

    Args:
        action: Short description used in log lines, e.g. ``"toggling reaction"``.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(self: BaseService, *args: Any, **kwargs: Any) -> Result[Any]:
            try:
                return func(self, *args, **kwargs)
            except NotFoundError:
                self.uow.rollback()
                raise
            except HuddleError as exc:
                self.uow.rollback()
                logger.info("Rejected %s: %s", action, exc.message)
                return Result.failure(exc)
            except Exception:
                self.uow.rollback()
                logger.exception("Error %s", action)
                return Result.failure(GENERIC_FAILURE)

        return wrapper  # type: ignore[return-value]

    return decorator


class BaseService:
    """Holds the unit of work and event dispatcher of one request."""

    def __init__(
        self,
        uow: UnitOfWork | Session,
        gateway: NotificationGateway | None = None,
    ) -> None:
        self.uow = uow if isinstance(uow, UnitOfWork) else UnitOfWork(uow)
        self.dispatcher = Dispatcher(gateway or get_notification_gateway())
