"""
Active set - the bounded collection of notifications currently on screen.
"""

import logging
from collections import OrderedDict
from typing import Callable, Dict, Iterator, List, Optional

from toastline.notifications.models import Notification

logger = logging.getLogger(__name__)


class ActiveSetManager:
    """
    Insertion-ordered set of active notifications with a capacity bound.

    When an insertion pushes the set over capacity, the oldest notification
    (by ``created_at``, ties broken by insertion order) is evicted, one at a
    time, until the bound holds again. Eviction goes through ``on_evict`` so
    the owner can run its full dismiss teardown; the callback is expected to
    call ``remove``.
    """

    def __init__(
        self,
        capacity: Callable[[], int],
        on_evict: Optional[Callable[[Notification], None]] = None,
    ):
        """
        Initialize active set.

        Args:
            capacity: Returns the current maximum size (read on every check)
            on_evict: Teardown callback for evicted notifications
        """
        self._capacity = capacity
        self._on_evict = on_evict
        self._items: "OrderedDict[str, Notification]" = OrderedDict()
        self._sequence: Dict[str, int] = {}
        self._counter = 0

    def insert(self, notification: Notification) -> List[Notification]:
        """
        Add a notification, evicting the oldest ones if over capacity.

        Args:
            notification: Notification to add (its id must not be active)

        Returns:
            Notifications evicted to make room, oldest first
        """
        if notification.id in self._items:
            raise KeyError(f"Notification {notification.id} is already active")

        self._counter += 1
        self._items[notification.id] = notification
        self._sequence[notification.id] = self._counter
        return self.enforce_capacity()

    def enforce_capacity(self) -> List[Notification]:
        """
        Evict oldest notifications until the capacity bound holds.

        Returns:
            Evicted notifications, oldest first
        """
        evicted: List[Notification] = []
        while len(self._items) > max(self._capacity(), 0):
            oldest = self.oldest()
            logger.debug(f"Evicting notification {oldest.id} (capacity {self._capacity()})")
            if self._on_evict is not None:
                try:
                    self._on_evict(oldest)
                except Exception as e:
                    logger.error(
                        f"Eviction teardown failed for {oldest.id}: {e}", exc_info=True
                    )
            # Teardown is responsible for removal; make sure the loop advances
            self.remove(oldest.id)
            evicted.append(oldest)
        return evicted

    def oldest(self) -> Notification:
        """Return the oldest active notification."""
        return min(
            self._items.values(),
            key=lambda n: (n.created_at, self._sequence[n.id]),
        )

    def remove(self, notification_id: str) -> Optional[Notification]:
        """
        Remove a notification. Unknown ids are ignored.

        Returns:
            The removed notification, or None
        """
        self._sequence.pop(notification_id, None)
        return self._items.pop(notification_id, None)

    def get(self, notification_id: str) -> Optional[Notification]:
        """Get an active notification by id."""
        return self._items.get(notification_id)

    def all(self) -> List[Notification]:
        """All active notifications in insertion order."""
        return list(self._items.values())

    def ids(self) -> List[str]:
        """Active ids in insertion order."""
        return list(self._items.keys())

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, notification_id: object) -> bool:
        return notification_id in self._items

    def __iter__(self) -> Iterator[Notification]:
        return iter(self.all())
