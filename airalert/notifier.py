from __future__ import annotations

import logging
from typing import Optional, Protocol

from .config import AudioConfig
from .models import ALERT_ON_EMPTY_KEY, REPEAT_AUDIO_KEY, NotificationEvent

log = logging.getLogger("airalert.notifier")


class Player(Protocol):
    def play(self, path: str) -> None: ...


class Notifier:
    """Maps logical sound keys to configured files and plays them."""

    def __init__(self, audio: AudioConfig, player: Player) -> None:
        self.audio = audio
        self.player = player

    def resolve(self, sound_key: str) -> Optional[str]:
        if not sound_key:
            return None
        if sound_key == ALERT_ON_EMPTY_KEY:
            path = self.audio.alert_on_empty
        elif sound_key == REPEAT_AUDIO_KEY:
            path = self.audio.repeat_audio_file
        else:
            path = self.audio.audio_files.get(sound_key, "")
        return path or None

    def play(self, sound_key: str) -> bool:
        """
        Play the sound for `sound_key`. Unmapped keys are a silent no-op.

        Returns True if something was played.
        """
        path = self.resolve(sound_key)
        if path is None:
            log.debug("No sound configured for %r", sound_key)
            return False
        try:
            self.player.play(path)
        except Exception:
            log.exception("Playback failed for %r (%s)", sound_key, path)
            return False
        return True

    def notify(self, event: NotificationEvent) -> bool:
        return self.play(event.sound_key)

    def close(self) -> None:
        close = getattr(self.player, "close", None)
        if close is not None:
            close()
