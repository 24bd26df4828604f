"""
Tests for sound key resolution and playback dispatch.
"""

from airalert.config import AudioConfig
from airalert.models import NotificationEvent, NotificationKind
from airalert.notifier import Notifier


class RecordingPlayer:
    def __init__(self, fail: bool = False):
        self.played = []
        self.fail = fail

    def play(self, path: str) -> None:
        if self.fail:
            raise RuntimeError("speaker unplugged")
        self.played.append(path)


AUDIO = AudioConfig(
    audio_files={"AIR": "sounds/air.mp3", "CHEMICAL": ""},
    alert_on_empty="sounds/clear.mp3",
    repeat_audio_file="sounds/repeat.mp3",
    enable_repeat_audio=True,
    repeat_interval_min=15,
)


class TestResolve:
    def test_fixed_keys(self):
        n = Notifier(AUDIO, RecordingPlayer())
        assert n.resolve("alertOnEmpty") == "sounds/clear.mp3"
        assert n.resolve("repeatAudio") == "sounds/repeat.mp3"

    def test_event_type_lookup(self):
        assert Notifier(AUDIO, RecordingPlayer()).resolve("AIR") == "sounds/air.mp3"

    def test_unmapped_or_empty(self):
        n = Notifier(AUDIO, RecordingPlayer())
        assert n.resolve("NUCLEAR") is None
        assert n.resolve("CHEMICAL") is None
        assert n.resolve("") is None


class TestPlay:
    def test_notify_plays_event_sound(self):
        player = RecordingPlayer()
        n = Notifier(AUDIO, player)
        assert n.notify(NotificationEvent(NotificationKind.ALERT_START, "31", "AIR")) is True
        assert n.notify(NotificationEvent(NotificationKind.ALERT_END, "31")) is True
        assert n.notify(NotificationEvent(NotificationKind.REPEAT, "31", "AIR", "2024-01-01T10:15")) is True
        assert player.played == ["sounds/air.mp3", "sounds/clear.mp3", "sounds/repeat.mp3"]

    def test_unmapped_key_is_silent_noop(self):
        player = RecordingPlayer()
        assert Notifier(AUDIO, player).play("NUCLEAR") is False
        assert player.played == []

    def test_player_failure_is_logged_not_raised(self, caplog):
        n = Notifier(AUDIO, RecordingPlayer(fail=True))
        assert n.play("AIR") is False
        assert "Playback failed" in caplog.text
