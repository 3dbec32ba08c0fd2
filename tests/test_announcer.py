"""
Tests for accessibility announcements and feedback devices.
"""

from toastline.core.config import NotificationConfig
from toastline.notifications.announcer import (
    AccessibilityAnnouncer,
    AnnouncementChannel,
    LiveRegion,
)
from toastline.notifications.feedback import FeedbackController, SoundPlayer
from toastline.notifications.models import Notification, NotificationKind


class TestAccessibilityAnnouncer:
    """Test the single-slot announcement channel."""

    def setup_method(self):
        self.config = NotificationConfig(announcement_clear_ms=1000)

    def test_announce_and_clear(self, loop):
        region = LiveRegion()
        announcer = AccessibilityAnnouncer(region, lambda: self.config, loop=loop)

        assert announcer.announce(Notification(id="a", title="Saved", message="Record saved")) is True
        assert region.text == "Saved: Record saved"
        assert region.politeness == "polite"

        loop.advance(1.0)
        assert region.text == ""

    def test_latest_announcement_wins(self, loop):
        region = LiveRegion()
        announcer = AccessibilityAnnouncer(region, lambda: self.config, loop=loop)

        announcer.announce(Notification(id="a", title="One", message="1"))
        loop.advance(0.8)
        announcer.announce(Notification(id="b", title="Two", message="2", kind=NotificationKind.ERROR))
        loop.advance(0.8)

        assert region.text == "Two: 2"
        assert region.politeness == "assertive"

        loop.advance(0.2)
        assert region.text == ""

    def test_failing_channel(self, loop):
        class BrokenChannel(AnnouncementChannel):
            def write(self, text, politeness):
                raise OSError("screen reader gone")

        announcer = AccessibilityAnnouncer(BrokenChannel(), lambda: self.config, loop=loop)

        assert announcer.announce(Notification(id="a", message="x")) is False
        announcer.clear()

    def test_without_loop_text_stays(self):
        region = LiveRegion()
        announcer = AccessibilityAnnouncer(region, lambda: self.config)

        announcer.announce(Notification(id="a", title="T", message="m"))
        assert region.text == "T: m"


class TestFeedbackController:
    """Test best-effort sound and vibration."""

    def test_missing_devices(self):
        feedback = FeedbackController()
        assert feedback.play_sound("notification.mp3") is False
        assert feedback.vibrate([200]) is False

    def test_failing_player(self):
        class BrokenPlayer(SoundPlayer):
            def play(self, sound_file):
                raise RuntimeError("no audio device")

        assert FeedbackController(sound_player=BrokenPlayer()).play_sound("x.mp3") is False


class TestAnnouncerLoops:
    """Test the clear delay across event loops."""

    def test_closed_loop_keeps_text(self, loop):
        def closed(*args, **kwargs):
            raise RuntimeError("Event loop is closed")

        loop.call_later = closed
        region = LiveRegion()
        announcer = AccessibilityAnnouncer(region, lambda: NotificationConfig(), loop=loop)

        assert announcer.announce(Notification(id="a", title="T", message="m")) is True
        assert region.text == "T: m"

    def test_clear_scheduled_on_current_loop(self):
        import asyncio

        region = LiveRegion()
        announcer = AccessibilityAnnouncer(
            region, lambda: NotificationConfig(announcement_clear_ms=50)
        )

        async def announce_and_wait(name):
            announcer.announce(Notification(id=name, title=name, message="m"))
            await asyncio.sleep(0.1)

        asyncio.run(announce_and_wait("one"))
        asyncio.run(announce_and_wait("two"))

        assert region.history[-2] == ("two: m", "polite")
        assert region.text == ""
