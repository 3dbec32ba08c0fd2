"""
Accessibility announcer - screen reader announcements through one live region.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional, Tuple

from toastline.core.config import NotificationConfig
from toastline.notifications.formatters import announcement_text
from toastline.notifications.models import Notification, NotificationKind

logger = logging.getLogger(__name__)


class AnnouncementChannel(ABC):
    """The single channel assistive technology listens on."""

    @abstractmethod
    def write(self, text: str, politeness: str) -> None:
        """
        Replace the channel content.

        Args:
            text: Text to announce ("" clears the channel)
            politeness: "polite" or "assertive"
        """
        pass


class LiveRegion(AnnouncementChannel):
    """In-process live region; keeps its current text and a write log."""

    def __init__(self):
        self.text = ""
        self.politeness = "polite"
        self.history: List[Tuple[str, str]] = []

    def write(self, text: str, politeness: str) -> None:
        self.text = text
        self.politeness = politeness
        self.history.append((text, politeness))


class AccessibilityAnnouncer:
    """
    Announces notifications through a single channel.

    The channel is cleared shortly after each announcement so an identical
    follow-up announcement is seen as a change by assistive technology. Only
    one announcement is outstanding at a time: a new one replaces the current
    text and restarts the clear delay, so in a rapid burst only the latest
    may be perceived.
    """

    def __init__(
        self,
        channel: AnnouncementChannel,
        settings: Callable[[], NotificationConfig],
        loop: Optional[Any] = None,
    ):
        """
        Initialize announcer.

        Args:
            channel: Announcement channel
            settings: Returns the current engine configuration
            loop: Event loop used for the clear delay (default: running loop)
        """
        self.channel = channel
        self._settings = settings
        self._loop = loop
        self._clear_handle: Any = None

    def announce(self, notification: Notification) -> bool:
        """
        Announce "title: message" for a notification.

        Returns:
            True if the channel accepted the text
        """
        politeness = "assertive" if notification.kind == NotificationKind.ERROR else "polite"
        text = announcement_text(notification)
        self._cancel_clear()

        try:
            self.channel.write(text, politeness)
        except Exception as e:
            logger.warning(f"Announcement failed for {notification.id}: {e}")
            return False

        self._schedule_clear()
        return True

    def clear(self) -> None:
        """Clear the channel now and drop any pending clear."""
        self._cancel_clear()
        try:
            self.channel.write("", "polite")
        except Exception as e:
            logger.warning(f"Failed to clear announcement channel: {e}")

    def _schedule_clear(self) -> None:
        delay = self._settings().announcement_clear_ms / 1000.0
        try:
            loop = self._loop or asyncio.get_running_loop()
            self._clear_handle = loop.call_later(delay, self._on_clear)
        except RuntimeError as e:
            # Without a usable loop the text stays until the next announcement
            logger.debug(f"Announcement will not be cleared: {e}")

    def _cancel_clear(self) -> None:
        if self._clear_handle is not None:
            self._clear_handle.cancel()
            self._clear_handle = None

    def _on_clear(self) -> None:
        self._clear_handle = None
        self.clear()
