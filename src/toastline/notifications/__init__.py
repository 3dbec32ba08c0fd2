"""
Notifications module.

Notification lifecycle: factory, bounded active set, timers, accessibility
announcements, bounded history and the engine that ties them together.
"""

from toastline.notifications.models import (
    DismissReason,
    Notification,
    NotificationAction,
    NotificationFlags,
    NotificationKind,
    NotificationSummary,
)
from toastline.notifications.factory import NotificationFactory
from toastline.notifications.active_set import ActiveSetManager
from toastline.notifications.scheduler import TimerScheduler
from toastline.notifications.announcer import (
    AccessibilityAnnouncer,
    AnnouncementChannel,
    LiveRegion,
)
from toastline.notifications.persistence import (
    KeyValueStore,
    MemoryKeyValueStore,
    NotificationStoreError,
    PersistenceStore,
    SQLiteKeyValueStore,
    StorageQuotaExceeded,
    create_backend,
)
from toastline.notifications.presentation import (
    ConsolePresentationAdapter,
    MemoryPresentationAdapter,
    PresentationAdapter,
)
from toastline.notifications.feedback import FeedbackController, SoundPlayer, Vibrator
from toastline.notifications.events import AnalyticsTracker, EventBus
from toastline.notifications.engine import NotificationEngine

__all__ = [
    "DismissReason",
    "Notification",
    "NotificationAction",
    "NotificationFlags",
    "NotificationKind",
    "NotificationSummary",
    "NotificationFactory",
    "ActiveSetManager",
    "TimerScheduler",
    "AccessibilityAnnouncer",
    "AnnouncementChannel",
    "LiveRegion",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "NotificationStoreError",
    "PersistenceStore",
    "SQLiteKeyValueStore",
    "StorageQuotaExceeded",
    "create_backend",
    "ConsolePresentationAdapter",
    "MemoryPresentationAdapter",
    "PresentationAdapter",
    "FeedbackController",
    "SoundPlayer",
    "Vibrator",
    "AnalyticsTracker",
    "EventBus",
    "NotificationEngine",
]
