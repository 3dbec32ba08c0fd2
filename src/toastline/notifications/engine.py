"""
Notification engine - the public API callers use to show notifications.

The engine is an ordinary object: create one at startup and pass it to the
code that needs it. All work happens on the event loop thread; the engine
never blocks and never raises across its public methods.

Usage:
    engine = NotificationEngine(presentation=MyAdapter())
    engine.start()

    engine.success("Factory record saved")
    note = engine.show({"title": "Export", "message": "Building PDF", "duration": 0})
    engine.update(note.id, {"message": "PDF ready", "kind": "success"})
    engine.hide(note.id)
"""

import functools
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from pydantic import ValidationError

from toastline.core.config import NotificationConfig
from toastline.notifications import events
from toastline.notifications.active_set import ActiveSetManager
from toastline.notifications.announcer import (
    AccessibilityAnnouncer,
    AnnouncementChannel,
    LiveRegion,
)
from toastline.notifications.events import AnalyticsTracker, EventBus, Observer
from toastline.notifications.factory import (
    FLAG_OPTION_KEYS,
    NotificationFactory,
    is_valid_duration,
)
from toastline.notifications.feedback import FeedbackController
from toastline.notifications.models import (
    DismissReason,
    Notification,
    NotificationKind,
    NotificationSummary,
)
from toastline.notifications.persistence import (
    KeyValueStore,
    MemoryKeyValueStore,
    PersistenceStore,
)
from toastline.notifications.presentation import (
    MemoryPresentationAdapter,
    PresentationAdapter,
)
from toastline.notifications.scheduler import TimerScheduler

logger = logging.getLogger(__name__)

# kind -> (default title, icon) for the convenience wrappers
KIND_DEFAULTS = {
    NotificationKind.SUCCESS: ("Success", "✓"),
    NotificationKind.INFO: ("Information", "ℹ"),
    NotificationKind.WARNING: ("Warning", "⚠"),
    NotificationKind.ERROR: ("Error", "✕"),
}

CLOSE_KEYS = ("Enter", " ", "Escape")

_TEXT_FIELDS = ("title", "message", "icon", "variant", "size", "position")


def _guarded(default: Any = None) -> Callable:
    """Log and absorb any exception raised by a public engine method."""
    def decorator(method: Callable) -> Callable:
        @functools.wraps(method)
        def wrapper(self, *args, **kwargs):
            try:
                return method(self, *args, **kwargs)
            except Exception as e:
                logger.error(f"Notification engine {method.__name__} failed: {e}", exc_info=True)
                return default() if callable(default) else default
        return wrapper
    return decorator


class NotificationEngine:
    """
    Notification lifecycle and eviction engine.

    Wires the factory, active set, timer scheduler, announcer, persistence
    store, presentation adapter, feedback devices and event bus together:

        show -> create -> insert (may evict) -> arm -> render -> announce
        hide/timeout/evict -> cancel timers -> remove -> archive -> unrender
    """

    def __init__(
        self,
        config: Optional[NotificationConfig] = None,
        presentation: Optional[PresentationAdapter] = None,
        store: Optional[KeyValueStore] = None,
        channel: Optional[AnnouncementChannel] = None,
        feedback: Optional[FeedbackController] = None,
        analytics_sink: Optional[Callable[[str, Dict[str, Any]], None]] = None,
        loop: Optional[Any] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        """
        Initialize notification engine.

        Args:
            config: Initial configuration (default: NotificationConfig())
            presentation: Rendering adapter (default: in-memory surface)
            store: Key-value backend for the history (default: in-memory)
            channel: Screen reader channel (default: in-process live region)
            feedback: Sound/vibration devices (default: none)
            analytics_sink: Receives (event, payload) for tracked events
            loop: Event loop for timers (default: running asyncio loop)
            clock: Wall clock in seconds for timestamps (default: time.time)
        """
        self._config = config or NotificationConfig()
        self.events = EventBus()
        self.factory = NotificationFactory(clock=clock)
        self.presentation = presentation or MemoryPresentationAdapter(self.get_config)
        self.active = ActiveSetManager(
            capacity=lambda: self._config.max_notifications,
            on_evict=self._evict,
        )
        self.scheduler = TimerScheduler(
            on_expire=self._expire,
            settings=self.get_config,
            on_progress=self._on_progress,
            loop=loop,
        )
        self.announcer = AccessibilityAnnouncer(channel or LiveRegion(), self.get_config, loop=loop)
        self.persistence = PersistenceStore(store or MemoryKeyValueStore(), self.get_config)
        self.feedback = feedback or FeedbackController()
        self.analytics = AnalyticsTracker(self.events, analytics_sink)

        logger.info(
            f"NotificationEngine initialized (position={self._config.position}, "
            f"max={self._config.max_notifications}, duration={self._config.duration}ms)"
        )

    # ---- Lifecycle ---------------------------------------------------------

    @_guarded(default=list)
    def start(self) -> List[Notification]:
        """
        Start the engine, restoring stored notifications if enabled.

        Returns:
            Notifications restored into the active set
        """
        if self._config.enable_persistence and self._config.restore_on_startup:
            return self.restore()
        return []

    @_guarded(default=list)
    def restore(self) -> List[Notification]:
        """
        Re-show the most recent stored notifications without auto-close.

        Only as many entries as fit in the active set are restored.
        """
        stored = self.persistence.load_all()
        recent = stored[-self._config.max_notifications:]
        restored = []
        for summary in recent:
            if summary.id in self.active:
                continue
            notification = self.show({
                "id": summary.id,
                "kind": summary.kind,
                "title": summary.title,
                "message": summary.message,
                "data": summary.data,
                "duration": 0,
            })
            if notification is not None:
                restored.append(notification)

        if restored:
            logger.info(f"Restored {len(restored)} stored notifications")
        return restored

    @_guarded()
    def shutdown(self) -> None:
        """
        Stop all timers; archive still-active notifications if persistence is on.
        """
        if self._config.enable_persistence:
            summaries = [
                n.summary() for n in self.active.all()
                if n.config.enabled("persistence", self._config)
            ]
            if summaries:
                self.persistence.extend(summaries)
        self.scheduler.cancel_all()
        logger.info(f"NotificationEngine stopped with {len(self.active)} active notifications")

    # ---- Showing -----------------------------------------------------------

    @_guarded()
    def show(self, options: Optional[Mapping[str, Any]] = None, **kwargs) -> Optional[Notification]:
        """
        Show a notification.

        Args:
            options: Notification options (id, kind, title, message, icon,
                duration, actions, data, position, variant, size and
                per-record flags such as auto_close / enableAutoClose)
            **kwargs: Options given as keywords; they override ``options``

        Returns:
            The notification, or None if it could not be shown
        """
        merged = {**(options or {}), **kwargs}
        config = self._config
        notification = self.factory.create(merged, config)

        existing = self.active.get(notification.id)
        if existing is not None:
            logger.info(f"Replacing active notification {notification.id}")
            self._dismiss(existing, DismissReason.REPLACED, archive=False)

        self.active.insert(notification)
        if notification.id not in self.active:
            # Older than everything on screen and the set is full
            return notification

        flags = notification.config
        try:
            self.scheduler.arm(
                notification,
                auto_close=flags.enabled("auto_close", config),
                progress=flags.enabled("progress", config),
            )
            notification.is_visible = True
            self._render(notification)
        except Exception:
            # Never leave an unrendered, untimed record holding a slot
            self.scheduler.cancel(notification.id)
            self.active.remove(notification.id)
            notification.is_visible = False
            raise

        if flags.enabled("accessibility", config):
            self.announcer.announce(notification)
        if flags.enabled("sound", config):
            self.feedback.play_sound(config.sound_file)
        if flags.enabled("vibration", config):
            self.feedback.vibrate(config.vibration_pattern)
        if flags.enabled("analytics", config):
            self.analytics.track("notification_created", notification)

        self.events.emit(events.SHOW, {"notification": notification})
        return notification

    def _show_kind(
        self,
        kind: NotificationKind,
        message: str,
        options: Optional[Mapping[str, Any]],
        kwargs: Dict[str, Any],
    ) -> Optional[Notification]:
        title, icon = KIND_DEFAULTS[kind]
        merged = {"title": title, "icon": icon, **(options or {}), **kwargs}
        merged["kind"] = kind
        merged["message"] = message
        return self.show(merged)

    def success(self, message: str, options: Optional[Mapping[str, Any]] = None, **kwargs) -> Optional[Notification]:
        return self._show_kind(NotificationKind.SUCCESS, message, options, kwargs)

    def info(self, message: str, options: Optional[Mapping[str, Any]] = None, **kwargs) -> Optional[Notification]:
        return self._show_kind(NotificationKind.INFO, message, options, kwargs)

    def warning(self, message: str, options: Optional[Mapping[str, Any]] = None, **kwargs) -> Optional[Notification]:
        return self._show_kind(NotificationKind.WARNING, message, options, kwargs)

    def error(self, message: str, options: Optional[Mapping[str, Any]] = None, **kwargs) -> Optional[Notification]:
        return self._show_kind(NotificationKind.ERROR, message, options, kwargs)

    # ---- Dismissal ---------------------------------------------------------

    @_guarded()
    def hide(self, notification_id: str) -> None:
        """Dismiss a notification. Unknown ids are logged and ignored."""
        notification = self.active.get(notification_id)
        if notification is None:
            logger.warning(f'Notification with id "{notification_id}" not found')
            return
        self._dismiss(notification, DismissReason.USER)

    @_guarded()
    def hide_all(self) -> None:
        """Dismiss every active notification, oldest first."""
        for notification in self.active.all():
            self._dismiss(notification, DismissReason.HIDE_ALL)
        self.events.emit(events.HIDE_ALL, {})

    @_guarded()
    def clear(self) -> None:
        """Dismiss everything and clear the announcement channel."""
        self.hide_all()
        self.announcer.clear()
        self.events.emit(events.CLEAR, {})

    def _dismiss(self, notification: Notification, reason: DismissReason, archive: bool = True) -> None:
        if notification.is_dismissed:
            return
        config = self._config

        # Timers go first so no stale callback can fire for this id
        self.scheduler.cancel(notification.id)
        self.active.remove(notification.id)
        notification.is_dismissed = True
        notification.is_visible = False

        if archive and notification.config.enabled("persistence", config):
            self.persistence.append(notification.summary())

        try:
            self.presentation.remove(notification.id)
        except Exception as e:
            logger.warning(f"Presentation failed to remove {notification.id}: {e}")

        if notification.config.enabled("analytics", config):
            self.analytics.track("notification_dismissed", notification)

        logger.debug(f"Dismissed {notification.id} ({reason.value})")
        self.events.emit(events.HIDE, {"notification": notification, "reason": reason.value})

    def _expire(self, notification_id: str) -> None:
        try:
            notification = self.active.get(notification_id)
            if notification is not None:
                self._dismiss(notification, DismissReason.TIMEOUT)
        except Exception as e:
            logger.error(f"Auto-close failed for {notification_id}: {e}", exc_info=True)

    def _evict(self, notification: Notification) -> None:
        self._dismiss(notification, DismissReason.EVICTED)
        self.events.emit(events.EVICT, {"notification": notification})

    # ---- Updating ----------------------------------------------------------

    @_guarded()
    def update(self, notification_id: str, updates: Mapping[str, Any]) -> None:
        """
        Change an active notification in place and re-render it.

        Changing ``duration`` or the auto-close/progress flags restarts the
        countdown. Unknown ids are logged and ignored; unknown or invalid
        fields are logged and skipped.
        """
        notification = self.active.get(notification_id)
        if notification is None:
            logger.warning(f'Notification with id "{notification_id}" not found')
            return

        errors: List[str] = []
        staged: Dict[str, Any] = {}
        flag_options = {}

        # Validate everything first so a bad field never leaves the record half-changed
        for key, value in updates.items():
            if key == "position":
                if value is None:
                    staged["position"] = None
                else:
                    position = self.factory.resolve_position(value, errors)
                    if position is not None:
                        staged["position"] = position
            elif key in _TEXT_FIELDS:
                if value is None:
                    errors.append(f"{key} cannot be empty")
                else:
                    staged[key] = str(value)
            elif key in ("kind", "type"):
                try:
                    staged["kind"] = NotificationKind(value)
                except ValueError:
                    errors.append(f"unknown kind {value!r}")
            elif key == "data":
                if value is not None and not isinstance(value, Mapping):
                    errors.append("data must be a mapping")
                else:
                    staged["data"] = dict(value or {})
            elif key == "actions":
                if value is not None and not isinstance(value, (list, tuple)):
                    errors.append("actions must be a list")
                else:
                    staged["actions"] = self.factory.build_actions(value or [], errors)
            elif key == "duration":
                if is_valid_duration(value):
                    staged["duration"] = int(value)
                else:
                    errors.append(f"invalid duration {value!r}")
            elif key in FLAG_OPTION_KEYS:
                flag_options[key] = value
            elif key == "id":
                errors.append("id cannot be changed")
            else:
                errors.append(f"unknown field {key!r}")

        overrides = self.factory.build_flags(flag_options).overrides() if flag_options else {}

        if errors:
            logger.warning(f"Update of {notification_id} skipped: {', '.join(errors)}")

        for name, value in staged.items():
            setattr(notification, name, value)
        for name, value in overrides.items():
            setattr(notification.config, name, value)
        rearm = "duration" in staged or bool({"auto_close", "progress"} & set(overrides))

        notification.updated_at = self.factory.now_ms()
        if rearm:
            self.scheduler.arm(
                notification,
                auto_close=notification.config.enabled("auto_close", self._config),
                progress=notification.config.enabled("progress", self._config),
            )
        self._render(notification)
        self.events.emit(events.UPDATE, {"notification": notification, "updates": dict(updates)})

    # ---- Pause / resume ----------------------------------------------------

    @_guarded()
    def pause(self, notification_id: str) -> None:
        """Pause one notification (hover)."""
        notification = self.active.get(notification_id)
        if notification is None:
            logger.warning(f'Notification with id "{notification_id}" not found')
            return
        notification.is_paused = True
        self.scheduler.pause(notification_id)

    @_guarded()
    def resume(self, notification_id: str) -> None:
        """Resume one notification (hover ended)."""
        notification = self.active.get(notification_id)
        if notification is None:
            logger.warning(f'Notification with id "{notification_id}" not found')
            return
        notification.is_paused = False
        self.scheduler.resume(notification_id)

    @_guarded()
    def pause_all(self) -> None:
        for notification in self.active.all():
            notification.is_paused = True
        self.scheduler.pause_all()

    @_guarded()
    def resume_all(self) -> None:
        for notification in self.active.all():
            notification.is_paused = False
        self.scheduler.resume_all()

    def set_visibility(self, hidden: bool) -> None:
        """Host surface hidden/shown: pause or resume everything."""
        if hidden:
            self.pause_all()
        else:
            self.resume_all()

    # ---- Interaction -------------------------------------------------------

    @_guarded(default=False)
    def handle_click(self, notification_id: str) -> bool:
        """
        Click on a notification or its close button.

        Returns:
            True if the notification was dismissed
        """
        notification = self.active.get(notification_id)
        if notification is None or not notification.config.enabled("click_to_close", self._config):
            return False
        self.hide(notification_id)
        return True

    @_guarded(default=False)
    def handle_swipe(self, notification_id: str, delta_x: float, delta_y: float = 0.0) -> bool:
        """
        Completed swipe gesture. Horizontal swipes past the threshold dismiss.

        Returns:
            True if the notification was dismissed
        """
        notification = self.active.get(notification_id)
        if notification is None or not notification.config.enabled("swipe_to_close", self._config):
            return False
        if abs(delta_x) <= abs(delta_y) or abs(delta_x) <= self._config.swipe_threshold:
            return False
        self.hide(notification_id)
        return True

    @_guarded(default=False)
    def handle_key(self, key: str, notification_id: Optional[str] = None) -> bool:
        """
        Key press, either on a focused notification or globally.

        Enter, Space and Escape dismiss a focused notification; a global
        Escape dismisses everything.

        Returns:
            True if anything was dismissed
        """
        if notification_id is None:
            if key == "Escape" and self._config.enable_keyboard_navigation and len(self.active):
                self.hide_all()
                return True
            return False

        notification = self.active.get(notification_id)
        if notification is None or not notification.config.enabled("keyboard_navigation", self._config):
            return False
        if key not in CLOSE_KEYS:
            return False
        self.hide(notification_id)
        return True

    @_guarded(default=False)
    def trigger_action(self, notification_id: str, action_id: str) -> bool:
        """
        Run an action button's handler.

        Handler failures are logged and absorbed.

        Returns:
            True if a handler ran without raising
        """
        notification = self.active.get(notification_id)
        if notification is None:
            logger.warning(f'Notification with id "{notification_id}" not found')
            return False
        action = notification.find_action(action_id)
        if action is None:
            logger.warning(f"Notification {notification_id} has no action {action_id!r}")
            return False
        if action.handler is None:
            return False
        try:
            action.handler(notification, action)
        except Exception as e:
            logger.error(f"Action {action_id} of {notification_id} failed: {e}", exc_info=True)
            return False
        return True

    # ---- Queries -----------------------------------------------------------

    def get(self, notification_id: str) -> Optional[Notification]:
        return self.active.get(notification_id)

    def all(self) -> List[Notification]:
        return self.active.all()

    def __len__(self) -> int:
        return len(self.active)

    @_guarded(default=list)
    def history(self) -> List[NotificationSummary]:
        """Archived notifications, oldest first."""
        return self.persistence.load_all()

    # ---- Observers ---------------------------------------------------------

    def subscribe(self, event_name: str, callback: Observer) -> None:
        self.events.subscribe(event_name, callback)

    def unsubscribe(self, event_name: str, callback: Observer) -> None:
        self.events.unsubscribe(event_name, callback)

    # ---- Configuration -----------------------------------------------------

    def get_config(self) -> NotificationConfig:
        return self._config

    @property
    def config(self) -> NotificationConfig:
        return self._config

    @_guarded(default=dict)
    def update_config(self, **partial: Any) -> Dict[str, Any]:
        """
        Change configuration values.

        Emits one specific event per changed field (e.g.
        ``notification:position:change``) and a ``config:change`` event with
        every change. Invalid updates are logged and leave the config as is.

        Returns:
            Mapping of changed field -> new value
        """
        try:
            new_config, changes = self._config.merged(**partial)
        except (KeyError, ValidationError) as e:
            logger.warning(f"Rejected configuration update {partial}: {e}")
            return {}

        self._config = new_config
        if not changes:
            return {}

        if "max_notifications" in changes:
            self.active.enforce_capacity()
        if "position" in changes:
            for notification in self.active.all():
                self._render(notification)

        for name, value in changes.items():
            event_name = events.CONFIG_EVENTS.get(name)
            if event_name is None:
                continue
            if name == "max_notifications":
                detail = {"max": value}
            elif name.startswith("enable_"):
                detail = {"enabled": value}
            else:
                detail = {name: value}
            self.events.emit(event_name, detail)

        self.events.emit(events.CONFIG_CHANGE, {"changes": changes})
        logger.info(f"Configuration updated: {changes}")
        return changes

    def set_position(self, position: str) -> None:
        self.update_config(position=position)

    def set_duration(self, duration: int) -> None:
        self.update_config(duration=duration)

    def set_max_notifications(self, max_notifications: int) -> None:
        self.update_config(max_notifications=max_notifications)

    def enable_sound(self, enabled: bool = True) -> None:
        self.update_config(enable_sound=enabled)

    def enable_vibration(self, enabled: bool = True) -> None:
        self.update_config(enable_vibration=enabled)

    def enable_auto_close(self, enabled: bool = True) -> None:
        self.update_config(enable_auto_close=enabled)

    def enable_click_to_close(self, enabled: bool = True) -> None:
        self.update_config(enable_click_to_close=enabled)

    def enable_swipe_to_close(self, enabled: bool = True) -> None:
        self.update_config(enable_swipe_to_close=enabled)

    def enable_keyboard_navigation(self, enabled: bool = True) -> None:
        self.update_config(enable_keyboard_navigation=enabled)

    def enable_accessibility(self, enabled: bool = True) -> None:
        self.update_config(enable_accessibility=enabled)

    def enable_analytics(self, enabled: bool = True) -> None:
        self.update_config(enable_analytics=enabled)

    def enable_persistence(self, enabled: bool = True) -> None:
        self.update_config(enable_persistence=enabled)

    def enable_progress(self, enabled: bool = True) -> None:
        self.update_config(enable_progress=enabled)

    # ---- Presentation helpers ----------------------------------------------

    def _render(self, notification: Notification) -> None:
        try:
            self.presentation.render(notification)
        except Exception as e:
            logger.warning(f"Presentation failed to render {notification.id}: {e}")

    def _on_progress(self, notification_id: str, value: float) -> None:
        try:
            self.presentation.progress(notification_id, value)
        except Exception as e:
            logger.debug(f"Presentation failed to update progress of {notification_id}: {e}")
