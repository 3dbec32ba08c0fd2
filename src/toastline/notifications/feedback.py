"""
Best-effort sound and vibration feedback.

Devices may be missing or fail at any time; failures are logged at debug
level and never reach the caller.
"""

import logging
import sys
from abc import ABC, abstractmethod
from typing import List, Optional, TextIO

logger = logging.getLogger(__name__)


class SoundPlayer(ABC):
    """Plays a notification sound."""

    @abstractmethod
    def play(self, sound_file: str) -> None:
        pass


class Vibrator(ABC):
    """Triggers a vibration pattern (milliseconds on/off)."""

    @abstractmethod
    def vibrate(self, pattern: List[int]) -> None:
        pass


class TerminalBell(SoundPlayer):
    """Rings the terminal bell instead of playing the sound file."""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream or sys.stdout

    def play(self, sound_file: str) -> None:
        self.stream.write("\a")
        self.stream.flush()


class FeedbackController:
    """Dispatches sound/vibration to optional devices, swallowing failures."""

    def __init__(
        self,
        sound_player: Optional[SoundPlayer] = None,
        vibrator: Optional[Vibrator] = None,
    ):
        self.sound_player = sound_player
        self.vibrator = vibrator

    def play_sound(self, sound_file: str) -> bool:
        """Play a sound. Returns False if unsupported or failed."""
        if self.sound_player is None:
            return False
        try:
            self.sound_player.play(sound_file)
            return True
        except Exception as e:
            logger.debug(f"Could not play notification sound {sound_file!r}: {e}")
            return False

    def vibrate(self, pattern: List[int]) -> bool:
        """Vibrate. Returns False if unsupported or failed."""
        if self.vibrator is None:
            return False
        try:
            self.vibrator.vibrate(list(pattern))
            return True
        except Exception as e:
            logger.debug(f"Could not vibrate for notification: {e}")
            return False
