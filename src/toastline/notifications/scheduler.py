"""
Timer scheduler - auto-close deadlines and progress tickers.

Each armed notification owns at most one deadline handle and one ticker
handle, both created with the event loop's ``call_later``. Any object with
``call_later(delay, callback, *args)`` and ``time()`` works as the loop, so
tests can drive time manually.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from toastline.core.config import NotificationConfig
from toastline.notifications.models import Notification

logger = logging.getLogger(__name__)


@dataclass
class _TimerEntry:
    """Timer state for one armed notification."""
    notification: Notification
    loop: Any = None
    deadline_handle: Any = None
    ticker_handle: Any = None
    deadline_at: Optional[float] = None
    remaining: Optional[float] = None  # seconds left while the deadline is suspended
    step: float = 0.0


class TimerScheduler:
    """
    Arms, pauses, resumes and cancels per-notification timers.

    Pause policy (``NotificationConfig.pause_extends_deadline``):

    - True: pausing suspends the deadline and resuming re-arms it with the
      time that was left, so paused time does not count towards auto-close.
    - False: pausing only freezes the progress indicator; the deadline keeps
      running and may dismiss a paused notification.
    """

    def __init__(
        self,
        on_expire: Callable[[str], None],
        settings: Callable[[], NotificationConfig],
        on_progress: Optional[Callable[[str, float], None]] = None,
        loop: Optional[Any] = None,
    ):
        """
        Initialize scheduler.

        Args:
            on_expire: Called with the notification id when its deadline fires
            settings: Returns the current engine configuration
            on_progress: Called with (id, percent) after each progress tick
            loop: Event loop (default: whichever asyncio loop is running at
                arm time; each armed entry keeps the loop it was armed on)
        """
        self._on_expire = on_expire
        self._settings = settings
        self._on_progress = on_progress
        self._loop = loop
        self._entries: Dict[str, _TimerEntry] = {}

    def _get_loop(self) -> Any:
        if self._loop is not None:
            return self._loop
        return asyncio.get_running_loop()

    @property
    def pause_extends_deadline(self) -> bool:
        return self._settings().pause_extends_deadline

    def arm(self, notification: Notification, auto_close: bool, progress: bool) -> bool:
        """
        Arm the deadline and/or progress ticker for a notification.

        Any timers already armed for the same id are cancelled first.

        Args:
            notification: Notification to arm
            auto_close: Effective auto-close flag
            progress: Effective progress flag

        Returns:
            True if at least one timer was armed
        """
        self.cancel(notification.id)

        if notification.duration <= 0 or not (auto_close or progress):
            return False

        try:
            loop = self._get_loop()
        except RuntimeError:
            logger.warning(
                f"No running event loop; timers for {notification.id} not armed"
            )
            return False

        duration = notification.duration / 1000.0
        entry = _TimerEntry(notification=notification, loop=loop)
        self._entries[notification.id] = entry

        try:
            if auto_close:
                entry.deadline_at = loop.time() + duration
                entry.deadline_handle = loop.call_later(
                    duration, self._fire, notification.id, entry
                )

            if progress:
                interval_ms = self._settings().progress_interval_ms
                entry.step = (interval_ms / notification.duration) * 100
                notification.progress = 100.0
                entry.ticker_handle = loop.call_later(
                    interval_ms / 1000.0, self._tick, notification.id, entry
                )
        except RuntimeError as e:
            # e.g. the loop was closed
            self.cancel(notification.id)
            logger.warning(f"Timers for {notification.id} not armed: {e}")
            return False

        if notification.is_paused:
            self._suspend(entry)

        logger.debug(
            f"Armed {notification.id}: duration={notification.duration}ms "
            f"auto_close={auto_close} progress={progress}"
        )
        return True

    def cancel(self, notification_id: str) -> None:
        """Cancel both timers of a notification. Safe if never armed."""
        entry = self._entries.pop(notification_id, None)
        if entry is None:
            return
        if entry.deadline_handle is not None:
            entry.deadline_handle.cancel()
            entry.deadline_handle = None
        if entry.ticker_handle is not None:
            entry.ticker_handle.cancel()
            entry.ticker_handle = None

    def cancel_all(self) -> None:
        """Cancel every armed timer."""
        for notification_id in list(self._entries):
            self.cancel(notification_id)

    def pause(self, notification_id: str) -> None:
        """
        Pause a notification's countdown.

        Progress ticks become no-ops; the deadline is suspended only when the
        pause policy extends deadlines.
        """
        entry = self._entries.get(notification_id)
        if entry is None:
            return
        entry.notification.is_paused = True
        self._suspend(entry)

    def resume(self, notification_id: str) -> None:
        """Resume a paused countdown, re-arming a suspended deadline."""
        entry = self._entries.get(notification_id)
        if entry is None:
            return
        entry.notification.is_paused = False
        if entry.remaining is None or entry.deadline_handle is not None:
            return

        loop = entry.loop
        try:
            entry.deadline_handle = loop.call_later(
                entry.remaining, self._fire, notification_id, entry
            )
        except RuntimeError as e:
            logger.warning(f"Could not resume {notification_id}: {e}")
            return
        entry.deadline_at = loop.time() + entry.remaining
        logger.debug(f"Resumed {notification_id} with {entry.remaining:.3f}s left")
        entry.remaining = None

    def pause_all(self) -> None:
        for notification_id in list(self._entries):
            self.pause(notification_id)

    def resume_all(self) -> None:
        for notification_id in list(self._entries):
            self.resume(notification_id)

    def remaining(self, notification_id: str) -> Optional[float]:
        """Seconds until auto-close, or None if no deadline is armed."""
        entry = self._entries.get(notification_id)
        if entry is None:
            return None
        if entry.remaining is not None:
            return entry.remaining
        if entry.deadline_at is None:
            return None
        return max(entry.deadline_at - entry.loop.time(), 0.0)

    def has_deadline(self, notification_id: str) -> bool:
        entry = self._entries.get(notification_id)
        return entry is not None and (
            entry.deadline_handle is not None or entry.remaining is not None
        )

    def has_ticker(self, notification_id: str) -> bool:
        entry = self._entries.get(notification_id)
        return entry is not None and entry.ticker_handle is not None

    def __len__(self) -> int:
        return len(self._entries)

    def _suspend(self, entry: _TimerEntry) -> None:
        if not self.pause_extends_deadline or entry.deadline_handle is None:
            return
        entry.remaining = max(entry.deadline_at - entry.loop.time(), 0.0)
        entry.deadline_handle.cancel()
        entry.deadline_handle = None

    def _fire(self, notification_id: str, entry: _TimerEntry) -> None:
        # A cancelled or re-armed entry must not act on the id any more
        if self._entries.get(notification_id) is not entry:
            return
        entry.deadline_handle = None
        self.cancel(notification_id)
        logger.debug(f"Deadline reached for {notification_id}")
        self._on_expire(notification_id)

    def _tick(self, notification_id: str, entry: _TimerEntry) -> None:
        if self._entries.get(notification_id) is not entry:
            return
        entry.ticker_handle = None
        notification = entry.notification

        if not notification.is_paused:
            notification.progress = max(notification.progress - entry.step, 0.0)
            if self._on_progress is not None:
                try:
                    self._on_progress(notification_id, notification.progress)
                except Exception as e:
                    logger.debug(f"Progress callback failed for {notification_id}: {e}")

        # Reaching zero stops the ticker; dismissal belongs to the deadline
        if notification.progress > 0:
            interval = self._settings().progress_interval_ms / 1000.0
            entry.ticker_handle = entry.loop.call_later(
                interval, self._tick, notification_id, entry
            )
