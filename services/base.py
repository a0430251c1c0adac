"""
Base service class with common functionality.
"""
import functools
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import QueryError
from services.invalidation import InvalidationRegistry

logger = logging.getLogger(__name__)

ResultType = TypeVar("ResultType")


def translate_query_errors(
    func: Callable[..., Awaitable[ResultType]],
) -> Callable[..., Awaitable[ResultType]]:
    """Turn store/driver failures raised inside a service method into ``QueryError``.

    The session is rolled back so the request leaves nothing half-written.
    Nothing is retried.
    """

    @functools.wraps(func)
    async def wrapper(self: "BaseService", *args: Any, **kwargs: Any) -> ResultType:
        try:
            return await func(self, *args, **kwargs)
        except SQLAlchemyError as e:
            logger.error(
                f"Query failed in {type(self).__name__}.{func.__name__}: {e}",
                exc_info=True,
            )
            await self.session.rollback()
            raise QueryError(str(getattr(e, "orig", None) or e)) from e

    return wrapper


class BaseService:
    """
    Base class for services.

    A service encapsulates one area of operations (reports, bookings,
    coupons) and orchestrates repositories over a single request-scoped
    session.
    """

    def __init__(
        self,
        session: AsyncSession,
        registry: Optional[InvalidationRegistry] = None,
    ):
        """
        Initialize service with database session.

        Args:
            session: Async SQLAlchemy session for database operations
            registry: Invalidation registry notified after successful writes
        """
        self.session = session
        self.registry = registry

    async def notify(self, collection: str, scope: Any = None) -> None:
        """Invalidate ``collection`` after a committed write."""
        if self.registry is not None:
            await self.registry.invalidate(collection, scope)
