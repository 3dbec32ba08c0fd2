"""
Presentation adapters - the boundary between the engine and a visual surface.

The engine never touches rendering primitives. An adapter renders a
notification (close affordance, action buttons, progress bar) and reports
user interaction back through the engine's ``handle_*``, ``trigger_action``,
``pause`` and ``resume`` methods.
"""

import logging
import sys
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, TextIO

from toastline.core.config import NotificationConfig
from toastline.notifications.formatters import format_notification
from toastline.notifications.models import Notification, NotificationKind

logger = logging.getLogger(__name__)


class PresentationAdapter(ABC):
    """Renders notifications to a target surface."""

    @abstractmethod
    def render(self, notification: Notification) -> None:
        """
        Render a notification, replacing any existing rendering of its id.

        Args:
            notification: Notification to render
        """
        pass

    @abstractmethod
    def remove(self, notification_id: str) -> None:
        """
        Remove a notification from the surface.

        Args:
            notification_id: Id of the notification to remove
        """
        pass

    def progress(self, notification_id: str, value: float) -> None:
        """Update the progress indicator (0-100). Optional."""
        pass


class MemoryPresentationAdapter(PresentationAdapter):
    """
    Keeps the rendered surface in memory.

    Used by the HTTP API (clients poll the surface) and by tests.
    """

    def __init__(self, settings: Optional[Callable[[], NotificationConfig]] = None):
        """
        Initialize adapter.

        Args:
            settings: Returns the engine configuration, used to resolve flags
                and position in rendered snapshots
        """
        self._settings = settings
        self.surface: Dict[str, Dict[str, Any]] = {}
        self.render_count: Dict[str, int] = {}
        self.removed: List[str] = []
        self.progress_values: Dict[str, float] = {}

    def render(self, notification: Notification) -> None:
        config = self._settings() if self._settings else None
        self.surface[notification.id] = notification.to_dict(config)
        self.render_count[notification.id] = self.render_count.get(notification.id, 0) + 1

    def remove(self, notification_id: str) -> None:
        self.surface.pop(notification_id, None)
        self.progress_values.pop(notification_id, None)
        self.removed.append(notification_id)

    def progress(self, notification_id: str, value: float) -> None:
        self.progress_values[notification_id] = value
        if notification_id in self.surface:
            self.surface[notification_id]["progress"] = round(value, 2)

    def visible_ids(self) -> List[str]:
        return list(self.surface.keys())


class Colors:
    """ANSI color codes for terminal output."""

    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    RED = "\033[91m"
    BLUE = "\033[94m"
    DIM = "\033[2m"
    RESET = "\033[0m"


KIND_COLORS = {
    NotificationKind.SUCCESS: Colors.GREEN,
    NotificationKind.INFO: Colors.BLUE,
    NotificationKind.WARNING: Colors.YELLOW,
    NotificationKind.ERROR: Colors.RED,
    NotificationKind.DEFAULT: "",
}


class ConsolePresentationAdapter(PresentationAdapter):
    """Prints notifications to a terminal stream."""

    def __init__(self, stream: Optional[TextIO] = None, show_progress: bool = False):
        """
        Initialize adapter.

        Args:
            stream: Output stream (default: stdout)
            show_progress: Print progress updates at 25% steps
        """
        self.stream = stream or sys.stdout
        self.show_progress = show_progress
        self._last_quarter: Dict[str, int] = {}

    def _colorize(self, text: str, color: str) -> str:
        if color and hasattr(self.stream, "isatty") and self.stream.isatty():
            return f"{color}{text}{Colors.RESET}"
        return text

    def render(self, notification: Notification) -> None:
        line = format_notification(notification)
        self.stream.write(
            self._colorize(f"+ {line}", KIND_COLORS[notification.kind]) + "\n"
        )
        self.stream.flush()

    def remove(self, notification_id: str) -> None:
        self._last_quarter.pop(notification_id, None)
        self.stream.write(self._colorize(f"- {notification_id} closed", Colors.DIM) + "\n")
        self.stream.flush()

    def progress(self, notification_id: str, value: float) -> None:
        if not self.show_progress:
            return
        quarter = int(value // 25)
        if self._last_quarter.get(notification_id) == quarter:
            return
        self._last_quarter[notification_id] = quarter
        self.stream.write(
            self._colorize(f"  {notification_id} {value:5.1f}% left", Colors.DIM) + "\n"
        )
        self.stream.flush()
