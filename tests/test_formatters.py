"""
Tests for human-readable notification formatting.
"""

from datetime import datetime

from toastline.notifications.formatters import (
    format_notification,
    format_summary,
    format_timestamp,
)
from toastline.notifications.models import (
    Notification,
    NotificationAction,
    NotificationKind,
    NotificationSummary,
)

NOW = 1_700_000_000_000


class TestFormatTimestamp:
    """Test relative time formatting."""

    def test_relative_times(self):
        assert format_timestamp(NOW - 30_000, NOW) == "Just now"
        assert format_timestamp(NOW - 60_000, NOW) == "1 minute ago"
        assert format_timestamp(NOW - 5 * 60_000, NOW) == "5 minutes ago"
        assert format_timestamp(NOW - 3_600_000, NOW) == "1 hour ago"
        assert format_timestamp(NOW - 3 * 3_600_000, NOW) == "3 hours ago"

    def test_older_than_a_day(self):
        timestamp = NOW - 3 * 86_400_000
        expected = datetime.fromtimestamp(timestamp / 1000).strftime("%Y-%m-%d")
        assert format_timestamp(timestamp, NOW) == expected


class TestFormatNotification:
    """Test one-line renderings."""

    def test_notification_line(self):
        notification = Notification(
            id="n1",
            kind=NotificationKind.SUCCESS,
            title="Saved",
            message="Factory record updated",
            icon="✓",
            created_at=NOW,
            actions=[NotificationAction(id="undo", label="Undo", is_primary=True),
                     NotificationAction(id="view", label="View")],
        )

        assert format_notification(notification, NOW) == (
            "✓ [SUCCESS] Saved: Factory record updated (Just now) [Undo*] [View]"
        )

    def test_summary_line(self):
        summary = NotificationSummary(id="n1", kind="error", title="Error",
                                      message="boom", created_at=NOW)
        line = format_summary(summary, NOW)

        assert line.startswith("n1  error")
        assert line.endswith("Error: boom (Just now)")
