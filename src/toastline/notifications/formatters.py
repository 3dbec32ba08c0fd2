"""
Notification formatters - human-readable text for notifications.
"""

import time
from datetime import datetime
from typing import Optional

from toastline.notifications.models import Notification, NotificationKind, NotificationSummary

MINUTE_MS = 60_000
HOUR_MS = 3_600_000
DAY_MS = 86_400_000


def announcement_text(notification: Notification) -> str:
    """Text written to the screen reader channel."""
    return f"{notification.title}: {notification.message}"


def format_timestamp(timestamp_ms: int, now_ms: Optional[int] = None) -> str:
    """
    Format a notification time relative to now.

    Args:
        timestamp_ms: Epoch milliseconds
        now_ms: Reference time (default: current time)

    Returns:
        "Just now", "N minute(s) ago", "N hour(s) ago" or a date
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    diff = now_ms - timestamp_ms

    if diff < MINUTE_MS:
        return "Just now"
    if diff < HOUR_MS:
        minutes = diff // MINUTE_MS
        return f"{minutes} minute{'s' if minutes > 1 else ''} ago"
    if diff < DAY_MS:
        hours = diff // HOUR_MS
        return f"{hours} hour{'s' if hours > 1 else ''} ago"
    return datetime.fromtimestamp(timestamp_ms / 1000).strftime("%Y-%m-%d")


def format_notification(notification: Notification, now_ms: Optional[int] = None) -> str:
    """
    One-line rendering used by the console adapter.

    Example:
        ✓ [SUCCESS] Saved: Factory record updated (Just now) [Undo*] [View]
    """
    line = (
        f"{notification.icon} [{notification.kind.value.upper()}] "
        f"{notification.title}: {notification.message} "
        f"({format_timestamp(notification.created_at, now_ms)})"
    )
    for action in notification.actions:
        marker = "*" if action.is_primary else ""
        line += f" [{action.label}{marker}]"
    return line


def format_summary(summary: NotificationSummary, now_ms: Optional[int] = None) -> str:
    """One-line rendering of an archived notification."""
    kind = summary.kind.value if isinstance(summary.kind, NotificationKind) else str(summary.kind)
    return (
        f"{summary.id}  {kind:<8} {summary.title}: {summary.message} "
        f"({format_timestamp(summary.created_at, now_ms)})"
    )
