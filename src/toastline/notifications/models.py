"""
Notification data models.
"""

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from toastline.core.config import NotificationConfig


class NotificationKind(str, Enum):
    """Kinds of notifications."""
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    DEFAULT = "default"


class DismissReason(str, Enum):
    """Why a notification left the active set."""
    USER = "user"
    TIMEOUT = "timeout"
    EVICTED = "evicted"
    HIDE_ALL = "hide_all"
    REPLACED = "replaced"


@dataclass
class NotificationAction:
    """
    A button rendered on a notification.

    Attributes:
        id: Action identifier, unique within the notification
        label: Button text
        is_primary: Render as the primary action
        handler: Called with (notification, action) when activated
        icon: Optional glyph shown before the label
    """
    id: str
    label: str
    is_primary: bool = False
    handler: Optional[Callable[["Notification", "NotificationAction"], Any]] = None
    icon: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (handler omitted)."""
        return {
            "id": self.id,
            "label": self.label,
            "is_primary": self.is_primary,
            "icon": self.icon,
        }


# flag name -> NotificationConfig field it defaults from
FLAG_DEFAULTS: Dict[str, str] = {
    "auto_close": "enable_auto_close",
    "click_to_close": "enable_click_to_close",
    "swipe_to_close": "enable_swipe_to_close",
    "keyboard_navigation": "enable_keyboard_navigation",
    "progress": "enable_progress",
    "accessibility": "enable_accessibility",
    "analytics": "enable_analytics",
    "persistence": "enable_persistence",
    "sound": "enable_sound",
    "vibration": "enable_vibration",
}


@dataclass
class NotificationFlags:
    """
    Per-notification feature flags.

    ``None`` means "follow the engine configuration"; the value is looked up
    each time it is needed so configuration changes reach notifications that
    are already on screen. An explicit bool pins the flag for this record.
    """
    auto_close: Optional[bool] = None
    click_to_close: Optional[bool] = None
    swipe_to_close: Optional[bool] = None
    keyboard_navigation: Optional[bool] = None
    progress: Optional[bool] = None
    accessibility: Optional[bool] = None
    analytics: Optional[bool] = None
    persistence: Optional[bool] = None
    sound: Optional[bool] = None
    vibration: Optional[bool] = None

    def enabled(self, name: str, config: NotificationConfig) -> bool:
        """Return the effective value of flag ``name`` under ``config``."""
        value = getattr(self, name)
        if value is None:
            return bool(getattr(config, FLAG_DEFAULTS[name]))
        return value

    def resolve(self, config: NotificationConfig) -> Dict[str, bool]:
        """Return every flag's effective value under ``config``."""
        return {f.name: self.enabled(f.name, config) for f in fields(self)}

    def overrides(self) -> Dict[str, bool]:
        """Return only the flags pinned on this record."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }


@dataclass
class Notification:
    """
    A notification record.

    Attributes:
        id: Unique identifier among active and archived notifications
        kind: Notification kind
        title: Title text
        message: Body text
        icon: Icon glyph
        duration: Auto-close delay in milliseconds (0 = never auto-closes)
        created_at: Creation time (epoch milliseconds)
        updated_at: Last change time (epoch milliseconds)
        actions: Action buttons, in display order
        data: Caller-supplied payload, archived with the summary
        config: Per-record flag overrides
        position: Stacking corner override (None = engine position)
        variant: Presentation variant hint
        size: Presentation size hint
        validation_errors: Problems found in the caller's options
    """
    id: str
    kind: NotificationKind = NotificationKind.DEFAULT
    title: str = "Notification"
    message: str = ""
    icon: str = "ℹ"
    duration: int = 5000
    created_at: int = 0
    updated_at: int = 0
    actions: List[NotificationAction] = field(default_factory=list)
    data: Dict[str, Any] = field(default_factory=dict)
    config: NotificationFlags = field(default_factory=NotificationFlags)
    position: Optional[str] = None
    variant: str = "default"
    size: str = "md"
    validation_errors: List[str] = field(default_factory=list)

    # Transient state
    is_visible: bool = False
    is_paused: bool = False
    is_dismissed: bool = False
    progress: float = 100.0

    @property
    def is_valid(self) -> bool:
        """True if the caller's options were accepted without substitution."""
        return not self.validation_errors

    def find_action(self, action_id: str) -> Optional[NotificationAction]:
        """Return the action with ``action_id``, if any."""
        for action in self.actions:
            if action.id == action_id:
                return action
        return None

    def summary(self) -> "NotificationSummary":
        """Reduced projection stored in the history."""
        return NotificationSummary(
            id=self.id,
            kind=self.kind,
            title=self.title,
            message=self.message,
            created_at=self.created_at,
            data=self.data,
        )

    def to_dict(self, config: Optional[NotificationConfig] = None) -> Dict[str, Any]:
        """
        Convert to dictionary.

        Args:
            config: When given, flags and position are resolved against it

        Returns:
            JSON-compatible dictionary
        """
        result = {
            "id": self.id,
            "kind": self.kind.value,
            "title": self.title,
            "message": self.message,
            "icon": self.icon,
            "duration": self.duration,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "actions": [a.to_dict() for a in self.actions],
            "data": self.data,
            "position": self.position,
            "variant": self.variant,
            "size": self.size,
            "is_visible": self.is_visible,
            "is_paused": self.is_paused,
            "is_dismissed": self.is_dismissed,
            "progress": round(self.progress, 2),
            "validation_errors": list(self.validation_errors),
        }
        if config is not None:
            result["config"] = self.config.resolve(config)
            result["position"] = self.position or config.position
        else:
            result["config"] = self.config.overrides()
        return result


class NotificationSummary(BaseModel):
    """Archived notification as stored in the history."""

    model_config = ConfigDict(populate_by_name=True, use_enum_values=False)

    id: str
    kind: NotificationKind = NotificationKind.DEFAULT
    title: str = ""
    message: str = ""
    created_at: int = Field(default=0, alias="createdAt")
    data: Dict[str, Any] = Field(default_factory=dict)

    def to_json_dict(self) -> Dict[str, Any]:
        """Dictionary in the stored (camelCase) layout."""
        return self.model_dump(mode="json", by_alias=True)
