"""
Core configuration for toastline.
"""

from toastline.core.config import (
    POSITIONS,
    AppConfig,
    NotificationConfig,
    StorageConfig,
    get_config,
    load_config,
    reload_config,
)

__all__ = [
    "POSITIONS",
    "AppConfig",
    "NotificationConfig",
    "StorageConfig",
    "get_config",
    "load_config",
    "reload_config",
]
