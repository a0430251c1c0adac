"""
Change propagation.

Mutations call ``InvalidationRegistry.invalidate`` after a successful
commit; ``ChangeWatcher`` does the same for writes it detects in the
shared store. Subscribers re-query what they show; nothing here holds
report data.
"""
import inspect
import logging
from collections import defaultdict
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from database.repositories import (
    BookingRepository,
    CouponRepository,
    NotificationRepository,
    UserRepository,
)
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)

InvalidationCallback = Callable[[str, Any], Optional[Awaitable[None]]]


class Collection(str, Enum):
    """Tables whose changes are propagated."""
    BOOKINGS = "bookings"
    USERS = "users"
    COUPONS = "cupons"
    NOTIFICATIONS = "notifications"


def _name(collection: "Collection | str") -> str:
    return collection.value if isinstance(collection, Collection) else str(collection)


class InvalidationRegistry:
    """Per-collection callbacks and monotonically increasing versions."""

    def __init__(self):
        self._callbacks: dict[str, list[InvalidationCallback]] = defaultdict(list)
        self._versions: dict[str, int] = defaultdict(int)

    def subscribe(
        self,
        collection: "Collection | str",
        callback: InvalidationCallback,
    ) -> Callable[[], None]:
        """Register ``callback(collection, scope)``; returns an unsubscribe function."""
        name = _name(collection)
        self._callbacks[name].append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks[name]:
                self._callbacks[name].remove(callback)

        return unsubscribe

    def version(self, collection: "Collection | str") -> int:
        return self._versions[_name(collection)]

    def versions(self) -> dict[str, int]:
        """Current version of every known collection."""
        return {c.value: self._versions[c.value] for c in Collection}

    async def invalidate(self, collection: "Collection | str", scope: Any = None) -> None:
        """
        Bump the collection version and run its callbacks.

        Args:
            collection: Changed table
            scope: Booking date touched by the change, or None for everything
        """
        name = _name(collection)
        self._versions[name] += 1
        logger.debug(
            f"Collection {name} invalidated (scope={scope}, version={self._versions[name]})",
            extra={"collection": name},
        )
        for callback in list(self._callbacks[name]):
            try:
                result = callback(name, scope)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                # The write is already committed; one failing subscriber must not mask it.
                logger.error(f"Invalidation callback failed for {name}: {e}", exc_info=True)


class ChangeWatcher:
    """Detects writes made outside this process.

    The store is shared with the public booking site, so in-process
    invalidation alone misses new bookings. Each poll reads one aggregate
    row per tracked table and invalidates every collection whose
    fingerprint moved since the previous poll. The first poll only records
    the baseline.
    """

    def __init__(
        self,
        registry: InvalidationRegistry,
        repositories: Optional[dict[Collection, type[BaseRepository]]] = None,
    ):
        self.registry = registry
        self.repositories = repositories or {
            Collection.BOOKINGS: BookingRepository,
            Collection.USERS: UserRepository,
            Collection.COUPONS: CouponRepository,
            Collection.NOTIFICATIONS: NotificationRepository,
        }
        self._fingerprints: dict[str, tuple[Any, ...]] = {}

    async def poll(self, session: AsyncSession) -> list[str]:
        """Compare fingerprints with the previous poll; returns the changed collections."""
        changed = []
        for collection, repository_class in self.repositories.items():
            current = await repository_class(session).fingerprint()
            previous = self._fingerprints.get(collection.value)
            self._fingerprints[collection.value] = current
            if previous is not None and previous != current:
                changed.append(collection.value)

        for name in changed:
            logger.info(f"Change detected in {name}", extra={"collection": name})
            await self.registry.invalidate(name)
        return changed
