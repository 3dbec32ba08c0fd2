"""
Tests for the event bus.
"""

from datetime import datetime, timezone

from toastline.notifications.events import WILDCARD, EventBus


class TestEventBus:
    """Test subscription, fan-out and the event history."""

    def test_history_timestamps_are_utc(self):
        bus = EventBus()
        bus.emit("notification:show", {"id": "a"})

        entry = bus.history()[0]
        stamp = datetime.fromisoformat(entry["timestamp"])

        assert entry["type"] == "notification:show"
        assert stamp.tzinfo is not None
        assert stamp.utcoffset() == timezone.utc.utcoffset(None)

    def test_failing_observer_does_not_block_others(self):
        bus = EventBus()
        seen = []

        def broken(name, detail):
            raise RuntimeError("observer broke")

        bus.subscribe("notification:hide", broken)
        bus.subscribe(WILDCARD, lambda name, detail: seen.append(name))
        bus.emit("notification:hide")

        assert seen == ["notification:hide"]
