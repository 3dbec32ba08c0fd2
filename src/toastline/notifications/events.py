"""
Engine events - observer notifications and analytics tracking.

Observers are plain callables invoked synchronously on the engine's loop.
A failing observer is logged and skipped; it never affects the engine or
the other observers.
"""

import logging
from collections import deque
from datetime import datetime, timezone
from typing import Any, Callable, Deque, Dict, List, Optional

from toastline.notifications.models import Notification

logger = logging.getLogger(__name__)

Observer = Callable[[str, Dict[str, Any]], None]

WILDCARD = "*"

# Event names
SHOW = "notification:show"
HIDE = "notification:hide"
HIDE_ALL = "notification:hideAll"
CLEAR = "notification:clear"
UPDATE = "notification:update"
EVICT = "notification:evict"
ANALYTICS = "notification:analytics"
CONFIG_CHANGE = "config:change"

# Config field -> specific change event
CONFIG_EVENTS: Dict[str, str] = {
    "position": "notification:position:change",
    "duration": "notification:duration:change",
    "max_notifications": "notification:max:change",
    "enable_sound": "notification:sound:change",
    "enable_vibration": "notification:vibration:change",
    "enable_auto_close": "notification:autoClose:change",
    "enable_click_to_close": "notification:clickToClose:change",
    "enable_swipe_to_close": "notification:swipeToClose:change",
    "enable_keyboard_navigation": "notification:keyboard:change",
    "enable_accessibility": "notification:accessibility:change",
    "enable_analytics": "notification:analytics:change",
    "enable_persistence": "notification:persistence:change",
    "enable_progress": "notification:progress:change",
}


class EventBus:
    """Synchronous publish/subscribe with a short event history."""

    def __init__(self, history_size: int = 200):
        self._subscribers: Dict[str, List[Observer]] = {}
        self._history: Deque[Dict[str, Any]] = deque(maxlen=history_size)

    def subscribe(self, event_name: str, callback: Observer) -> None:
        """
        Register an observer.

        Args:
            event_name: Event name, or "*" for every event
            callback: Called with (event_name, detail)
        """
        self._subscribers.setdefault(event_name, []).append(callback)

    def unsubscribe(self, event_name: str, callback: Observer) -> None:
        callbacks = self._subscribers.get(event_name, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def emit(self, event_name: str, detail: Optional[Dict[str, Any]] = None) -> None:
        detail = detail or {}
        self._history.append({
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "type": event_name,
            "detail": detail,
        })
        callbacks = list(self._subscribers.get(event_name, []))
        callbacks += self._subscribers.get(WILDCARD, [])
        for callback in callbacks:
            try:
                callback(event_name, detail)
            except Exception as e:
                logger.warning(f"Observer for {event_name} failed: {e}")

    def history(self) -> List[Dict[str, Any]]:
        return list(self._history)


class AnalyticsTracker:
    """
    Emits tracking events for created and dismissed notifications.

    Each tracked event is published as ``notification:analytics`` and, when
    configured, forwarded to an external sink (e.g. a product analytics
    client) with the same payload.
    """

    def __init__(self, bus: EventBus, sink: Optional[Callable[[str, Dict[str, Any]], None]] = None):
        self.bus = bus
        self.sink = sink

    def track(self, event: str, notification: Notification) -> None:
        payload = {
            "notification_type": notification.kind.value,
            "notification_title": notification.title,
            "notification_id": notification.id,
        }
        if self.sink is not None:
            try:
                self.sink(event, payload)
            except Exception as e:
                logger.debug(f"Analytics sink failed for {event}: {e}")
        self.bus.emit(ANALYTICS, {"event": event, **payload})
