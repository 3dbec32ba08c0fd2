"""
Notification factory - turns loosely specified options into records.
"""

import logging
import math
import secrets
import string
import time
from typing import Any, Callable, Dict, List, Mapping, Optional

from toastline.core.config import POSITIONS, NotificationConfig
from toastline.notifications.models import (
    Notification,
    NotificationAction,
    NotificationFlags,
    NotificationKind,
)

logger = logging.getLogger(__name__)

ID_ALPHABET = string.ascii_lowercase + string.digits
ID_SUFFIX_LENGTH = 9

DEFAULT_TITLE = "Notification"
DEFAULT_ICONS: Dict[NotificationKind, str] = {
    NotificationKind.SUCCESS: "✓",
    NotificationKind.INFO: "ℹ",
    NotificationKind.WARNING: "⚠",
    NotificationKind.ERROR: "✕",
    NotificationKind.DEFAULT: "ℹ",
}

# Option keys accepted for each flag, besides the flag name itself
_FLAG_ALIASES: Dict[str, tuple] = {
    "auto_close": ("enable_auto_close", "autoClose", "enableAutoClose"),
    "click_to_close": ("enable_click_to_close", "clickToClose", "enableClickToClose"),
    "swipe_to_close": ("enable_swipe_to_close", "swipeToClose", "enableSwipeToClose"),
    "keyboard_navigation": (
        "enable_keyboard_navigation", "keyboardNavigation", "enableKeyboardNavigation"
    ),
    "progress": ("enable_progress", "enableProgress"),
    "accessibility": ("enable_accessibility", "enableAccessibility"),
    "analytics": ("enable_analytics", "enableAnalytics"),
    "persistence": ("enable_persistence", "enablePersistence"),
    "sound": ("enable_sound", "enableSound"),
    "vibration": ("enable_vibration", "enableVibration"),
}

# Every option key that carries a flag override
FLAG_OPTION_KEYS = frozenset(
    ["config", *_FLAG_ALIASES.keys(), *(a for aliases in _FLAG_ALIASES.values() for a in aliases)]
)


def generate_id(now_ms: int) -> str:
    """Build a notification id from a timestamp and a random suffix."""
    suffix = "".join(secrets.choice(ID_ALPHABET) for _ in range(ID_SUFFIX_LENGTH))
    return f"notification-{now_ms}-{suffix}"


def is_valid_duration(value: Any) -> bool:
    """True for a finite, non-negative number of milliseconds."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    if isinstance(value, int):
        return value >= 0
    return math.isfinite(value) and value >= 0


def _pick(options: Mapping[str, Any], *keys: str) -> Any:
    """Return the first non-None option among ``keys``."""
    for key in keys:
        value = options.get(key)
        if value is not None:
            return value
    return None


class NotificationFactory:
    """
    Builds Notification records with every optional field resolved.

    The factory never raises for bad options: a safe value is substituted and
    the problem is recorded in ``Notification.validation_errors``. It has no
    side effects beyond building the object.
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        """
        Initialize factory.

        Args:
            clock: Wall clock in seconds (default: time.time)
        """
        self._clock = clock or time.time
        self._last_ms = 0

    def now_ms(self) -> int:
        """Current time in epoch milliseconds, never going backwards."""
        now = int(self._clock() * 1000)
        self._last_ms = max(now, self._last_ms)
        return self._last_ms

    def create(
        self,
        options: Optional[Mapping[str, Any]],
        config: NotificationConfig,
    ) -> Notification:
        """
        Create a notification from caller options.

        Args:
            options: Caller options (snake_case or camelCase keys)
            config: Engine configuration supplying defaults

        Returns:
            Notification (check ``is_valid`` for substituted options)
        """
        options = dict(options or {})
        errors: List[str] = []
        now = self.now_ms()

        kind = self._resolve_kind(_pick(options, "kind", "type"), errors)

        message = options.get("message")
        if message is None or message == "":
            errors.append("missing message")
            message = ""

        duration = self._resolve_duration(options.get("duration"), config, errors)

        notification = Notification(
            id=str(options.get("id") or generate_id(now)),
            kind=kind,
            title=str(options.get("title") or DEFAULT_TITLE),
            message=str(message),
            icon=str(options.get("icon") or DEFAULT_ICONS[kind]),
            duration=duration,
            created_at=now,
            updated_at=now,
            actions=self.build_actions(options.get("actions") or [], errors),
            data=self._resolve_data(options.get("data"), errors),
            config=self.build_flags(options),
            position=self.resolve_position(options.get("position"), errors),
            variant=str(options.get("variant") or "default"),
            size=str(options.get("size") or "md"),
            validation_errors=errors,
        )

        if errors:
            logger.warning(
                f"Notification {notification.id} created with substituted options: "
                f"{', '.join(errors)}"
            )
        return notification

    def build_flags(self, options: Mapping[str, Any]) -> NotificationFlags:
        """Collect per-record flag overrides from options."""
        flags = NotificationFlags()
        nested = options.get("config") or {}
        if isinstance(nested, NotificationFlags):
            nested = nested.overrides()
        elif not isinstance(nested, Mapping):
            nested = {}
        for name, aliases in _FLAG_ALIASES.items():
            value = _pick(nested, name, *aliases)
            if value is None:
                value = _pick(options, name, *aliases)
            if value is not None:
                setattr(flags, name, bool(value))
        return flags

    def build_actions(self, raw_actions: Any, errors: List[str]) -> List[NotificationAction]:
        """Normalize action descriptors (dicts or NotificationAction)."""
        actions: List[NotificationAction] = []
        if not isinstance(raw_actions, (list, tuple)):
            errors.append("actions must be a list")
            return actions
        for index, raw in enumerate(raw_actions):
            if isinstance(raw, NotificationAction):
                actions.append(raw)
            elif isinstance(raw, Mapping):
                actions.append(
                    NotificationAction(
                        id=str(raw.get("id") or f"action-{index}"),
                        label=str(raw.get("label") or raw.get("id") or f"Action {index + 1}"),
                        is_primary=bool(_pick(raw, "is_primary", "isPrimary", "primary") or False),
                        handler=raw.get("handler"),
                        icon=raw.get("icon"),
                    )
                )
            else:
                errors.append(f"ignored action #{index}")
        return actions

    def _resolve_kind(self, raw: Any, errors: List[str]) -> NotificationKind:
        if raw is None:
            return NotificationKind.DEFAULT
        try:
            return NotificationKind(raw)
        except ValueError:
            errors.append(f"unknown kind {raw!r}")
            return NotificationKind.DEFAULT

    def _resolve_duration(
        self, raw: Any, config: NotificationConfig, errors: List[str]
    ) -> int:
        # An explicit 0 is meaningful ("never auto-close"), only None defaults
        if raw is None:
            return config.duration
        if is_valid_duration(raw):
            return int(raw)
        if isinstance(raw, (int, float)) and not isinstance(raw, bool) and raw < 0:
            errors.append(f"negative duration {raw}")
        else:
            errors.append(f"invalid duration {raw!r}")
        return config.duration

    def _resolve_data(self, raw: Any, errors: List[str]) -> Dict[str, Any]:
        if raw is None:
            return {}
        if not isinstance(raw, Mapping):
            errors.append("data must be a mapping")
            return {}
        return dict(raw)

    def resolve_position(self, raw: Any, errors: List[str]) -> Optional[str]:
        if raw is None:
            return None
        if raw not in POSITIONS:
            errors.append(f"unknown position {raw!r}")
            return None
        return raw
