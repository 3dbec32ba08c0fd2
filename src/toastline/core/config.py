"""
Configuration management for the toastline notification engine.

Two layers:
- NotificationConfig: the engine's runtime configuration value object. One
  instance is created when an engine starts and is only changed through
  ``NotificationConfig.merged`` (used by the engine's ``update_config``).
- AppConfig: process settings loaded from environment variables / ``.env``
  (and optionally a YAML file) with Pydantic Settings. Used to build the
  initial NotificationConfig and to configure storage and the HTTP API.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

POSITIONS = (
    "top-right",
    "top-left",
    "top-center",
    "bottom-right",
    "bottom-left",
    "bottom-center",
)


class NotificationConfig(BaseModel):
    """
    Engine-wide notification defaults.

    Every active notification that does not override a flag reads the
    current value from here at use time; ``duration`` is the only value
    copied into a notification when it is created.
    """

    model_config = ConfigDict(frozen=True)

    position: str = Field(default="top-right", description="Stacking corner")
    duration: int = Field(default=5000, ge=0, description="Default auto-close delay (ms)")
    max_notifications: int = Field(default=5, ge=1, description="Active set capacity")
    enable_progress: bool = True
    enable_sound: bool = False
    enable_vibration: bool = False
    enable_auto_close: bool = True
    enable_click_to_close: bool = True
    enable_swipe_to_close: bool = True
    enable_keyboard_navigation: bool = True
    enable_accessibility: bool = True
    enable_analytics: bool = True
    enable_persistence: bool = False
    animation_duration: int = Field(default=300, ge=0, description="Presentation only (ms)")
    animation_easing: str = "cubic-bezier(0.4, 0, 0.2, 1)"
    sound_file: str = "notification.mp3"
    vibration_pattern: List[int] = Field(default_factory=lambda: [200, 100, 200])
    storage_key: str = Field(default="notifications", min_length=1)
    max_stored_notifications: int = Field(default=100, ge=1)

    # Engine behaviour knobs
    pause_extends_deadline: bool = Field(
        default=True,
        description="Suspend the auto-close deadline while a notification is paused",
    )
    restore_on_startup: bool = Field(
        default=True,
        description="Replay stored history into the active set when persistence is enabled",
    )
    progress_interval_ms: int = Field(default=50, ge=1)
    announcement_clear_ms: int = Field(default=1000, ge=0)
    swipe_threshold: int = Field(default=100, ge=1, description="Horizontal swipe distance (px)")

    @field_validator("position")
    @classmethod
    def validate_position(cls, v: str) -> str:
        """Validate stacking corner."""
        if v not in POSITIONS:
            raise ValueError(f"Position must be one of: {list(POSITIONS)}")
        return v

    def merged(self, **partial: Any) -> Tuple["NotificationConfig", Dict[str, Any]]:
        """
        Validate a partial update and return the new config plus what changed.

        Args:
            **partial: Field values to change

        Returns:
            (new_config, changes) where changes maps field -> new value

        Raises:
            KeyError: If a field name is unknown
            pydantic.ValidationError: If a value is invalid
        """
        unknown = set(partial) - set(type(self).model_fields)
        if unknown:
            raise KeyError(f"Unknown configuration fields: {sorted(unknown)}")

        data = self.model_dump()
        data.update(partial)
        new_config = type(self).model_validate(data)

        changes = {
            name: getattr(new_config, name)
            for name in partial
            if getattr(new_config, name) != getattr(self, name)
        }
        return new_config, changes


class NotificationSettings(BaseSettings):
    """Notification defaults from the environment (TOASTLINE_*)."""

    position: str = "top-right"
    duration: int = 5000
    max_notifications: int = 5
    enable_progress: bool = True
    enable_sound: bool = False
    enable_vibration: bool = False
    enable_auto_close: bool = True
    enable_click_to_close: bool = True
    enable_swipe_to_close: bool = True
    enable_keyboard_navigation: bool = True
    enable_accessibility: bool = True
    enable_analytics: bool = True
    enable_persistence: bool = False
    animation_duration: int = 300
    animation_easing: str = "cubic-bezier(0.4, 0, 0.2, 1)"
    sound_file: str = "notification.mp3"
    vibration_pattern: List[int] = Field(default_factory=lambda: [200, 100, 200])
    storage_key: str = "notifications"
    max_stored_notifications: int = 100
    pause_extends_deadline: bool = True
    restore_on_startup: bool = True
    progress_interval_ms: int = 50
    announcement_clear_ms: int = 1000
    swipe_threshold: int = 100

    class Config:
        env_prefix = "TOASTLINE_"


class StorageConfig(BaseSettings):
    """Durable history storage configuration."""

    backend: str = Field(
        default="memory",
        description="Key-value backend: memory or sqlite"
    )
    path: str = Field(
        default="data/toastline.db",
        description="SQLite database path (sqlite backend)"
    )
    max_bytes: int = Field(
        default=5 * 1024 * 1024,
        ge=1,
        description="Size ceiling for a single stored value"
    )

    @field_validator("backend")
    @classmethod
    def validate_backend(cls, v: str) -> str:
        """Validate storage backend name."""
        v = v.lower()
        if v not in ("memory", "sqlite"):
            raise ValueError("Storage backend must be 'memory' or 'sqlite'")
        return v

    class Config:
        env_prefix = "TOASTLINE_STORAGE_"


class ApiConfig(BaseSettings):
    """HTTP API server configuration."""

    host: str = "0.0.0.0"
    port: int = Field(default=8080, ge=1, le=65535)

    class Config:
        env_prefix = "TOASTLINE_API_"


class AppConfig(BaseSettings):
    """Main application configuration."""

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )

    # Nested configurations
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v = v.upper()
        if v not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v

    def notification_config(self) -> NotificationConfig:
        """Build the engine's initial NotificationConfig from these settings."""
        return NotificationConfig(**self.notifications.model_dump())

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


def load_config(path: Optional[Path] = None) -> AppConfig:
    """
    Load configuration from the environment, then apply a YAML overrides file.

    The YAML file mirrors AppConfig's structure, e.g.::

        log_level: DEBUG
        notifications:
          max_notifications: 3
        storage:
          backend: sqlite

    Args:
        path: Optional YAML file; missing files are ignored with a warning

    Returns:
        AppConfig instance
    """
    config = AppConfig(
        notifications=NotificationSettings(),
        storage=StorageConfig(),
        api=ApiConfig(),
    )
    if path is None:
        return config

    path = Path(path)
    if not path.exists():
        logger.warning(f"Config file not found: {path}")
        return config

    with open(path, "r") as f:
        overrides = yaml.safe_load(f) or {}

    if not isinstance(overrides, dict):
        raise ValueError(f"Config file {path} must contain a mapping")

    data = config.model_dump()
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(data.get(key), dict):
            data[key].update(value)
        else:
            data[key] = value

    logger.info(f"Loaded configuration overrides from {path}")
    return AppConfig(
        log_level=data["log_level"],
        notifications=NotificationSettings(**data["notifications"]),
        storage=StorageConfig(**data["storage"]),
        api=ApiConfig(**data["api"]),
    )


# Global config instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """
    Get the process configuration.

    Lazily loads configuration on first access.

    Returns:
        AppConfig: The cached configuration instance
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config(path: Optional[Path] = None) -> AppConfig:
    """
    Reload configuration from the environment (and optional YAML file).

    Returns:
        AppConfig: Fresh configuration instance
    """
    global _config
    _config = load_config(path)
    return _config
