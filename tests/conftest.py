"""
Shared fixtures for toastline tests.

Run with: pytest tests/
"""

import heapq
import itertools
from typing import Any, Callable, List

import pytest

from toastline.core.config import NotificationConfig
from toastline.notifications.announcer import LiveRegion
from toastline.notifications.engine import NotificationEngine
from toastline.notifications.feedback import FeedbackController, SoundPlayer, Vibrator
from toastline.notifications.persistence import MemoryKeyValueStore

EPOCH = 1_700_000_000.0


class FakeHandle:
    def __init__(self):
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeLoop:
    """Event loop stand-in whose clock only moves on ``advance``."""

    def __init__(self):
        self.now = 0.0
        self._timers: List[Any] = []
        self._seq = itertools.count()

    def time(self) -> float:
        return self.now

    def call_later(self, delay: float, callback: Callable, *args) -> FakeHandle:
        handle = FakeHandle()
        heapq.heappush(self._timers, (self.now + delay, next(self._seq), handle, callback, args))
        return handle

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while self._timers and self._timers[0][0] <= target + 1e-9:
            when, _, handle, callback, args = heapq.heappop(self._timers)
            self.now = max(self.now, when)
            if not handle.cancelled:
                callback(*args)
        self.now = target

    def pending(self) -> int:
        return sum(1 for t in self._timers if not t[2].cancelled)


class RecordingSoundPlayer(SoundPlayer):
    def __init__(self):
        self.played: List[str] = []

    def play(self, sound_file: str) -> None:
        self.played.append(sound_file)


class RecordingVibrator(Vibrator):
    def __init__(self):
        self.patterns: List[List[int]] = []

    def vibrate(self, pattern: List[int]) -> None:
        self.patterns.append(pattern)


@pytest.fixture
def loop():
    return FakeLoop()


@pytest.fixture
def clock(loop):
    return lambda: EPOCH + loop.now


@pytest.fixture
def store():
    return MemoryKeyValueStore()


@pytest.fixture
def region():
    return LiveRegion()


@pytest.fixture
def make_engine(loop, clock, store, region):
    """Build an engine on the fake loop; keyword args become config fields."""
    def factory(**config) -> NotificationEngine:
        engine = NotificationEngine(
            config=NotificationConfig(**config),
            store=store,
            channel=region,
            feedback=FeedbackController(RecordingSoundPlayer(), RecordingVibrator()),
            loop=loop,
            clock=clock,
        )
        return engine
    return factory


@pytest.fixture
def engine(make_engine):
    return make_engine()


@pytest.fixture
def recorder(engine):
    """Collects every (event, detail) the engine emits."""
    events = []
    engine.subscribe("*", lambda name, detail: events.append((name, detail)))
    return events
