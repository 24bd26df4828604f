from __future__ import annotations

import logging
import os
import threading
import time
from pathlib import Path

os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

import pygame

log = logging.getLogger("airalert.audio")


class AudioError(RuntimeError):
    pass


class PygamePlayer:
    """
    Blocking sound file player on top of pygame.mixer.music (mp3/ogg/wav).

    play() returns once playback has finished.
    """

    def __init__(self, poll_seconds: float = 0.05) -> None:
        self.poll_seconds = poll_seconds
        self._lock = threading.Lock()
        self._ready = False

    def _ensure_mixer(self) -> None:
        if self._ready:
            return
        try:
            pygame.mixer.init()
        except pygame.error as e:
            raise AudioError(f"audio output unavailable: {e}") from e
        self._ready = True

    def play(self, path: str) -> None:
        p = Path(path)
        if not p.is_file():
            raise AudioError(f"audio file not found: {path}")

        with self._lock:
            self._ensure_mixer()
            try:
                pygame.mixer.music.load(str(p))
                pygame.mixer.music.play()
            except pygame.error as e:
                raise AudioError(f"cannot play {path}: {e}") from e
            while pygame.mixer.music.get_busy():
                time.sleep(self.poll_seconds)

    def close(self) -> None:
        with self._lock:
            if self._ready:
                pygame.mixer.quit()
                self._ready = False
