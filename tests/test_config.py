"""
Tests for config loading and validation.
"""

import json
import logging

import pytest

from airalert.config import ConfigError, config_from_dict, load_config, parse_log_level


BASE = {
    "api_url": "https://example.test/api/v3/alerts/31",
    "auth_header": "secret",
    "audio_files": {"AIR": "air.mp3"},
    "alert_on_empty": "clear.mp3",
    "repeat_audio_file": "repeat.mp3",
    "enable_repeat_audio": True,
    "repeat_interval_min": 15,
    "request_interval_sec": 5,
    "time_zone": "Europe/Kyiv",
    "log_level": 2,
}


def _cfg(**overrides):
    raw = dict(BASE)
    raw.update(overrides)
    return config_from_dict(raw)


class TestLoad:
    def test_json_file(self, tmp_path):
        p = tmp_path / "config.json"
        p.write_text(json.dumps(BASE), encoding="utf-8")
        cfg = load_config(str(p))
        assert cfg.api_url == BASE["api_url"]
        assert cfg.audio.audio_files == {"AIR": "air.mp3"}
        assert cfg.repeat_enabled is True
        assert cfg.logging.level == logging.DEBUG

    def test_yaml_file(self, tmp_path):
        p = tmp_path / "config.yaml"
        p.write_text("api_url: https://example.test/a\nrequest_interval_sec: 3\n", encoding="utf-8")
        cfg = load_config(str(p))
        assert cfg.request_interval_sec == 3
        assert cfg.repeat_enabled is False
        assert cfg.state_path == "state.json"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            load_config(str(tmp_path / "missing.json"))

    def test_broken_json(self, tmp_path):
        p = tmp_path / "config.json"
        p.write_text("{", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_config(str(p))


class TestValidation:
    def test_api_url_required(self):
        with pytest.raises(ConfigError):
            _cfg(api_url="")

    @pytest.mark.parametrize("interval", [0, -1])
    def test_repeat_interval_rejected_when_enabled(self, interval):
        with pytest.raises(ConfigError):
            _cfg(repeat_interval_min=interval)

    def test_repeat_interval_ignored_when_disabled(self):
        cfg = _cfg(enable_repeat_audio=False, repeat_interval_min=0)
        assert cfg.repeat_enabled is False

    def test_poll_interval_must_be_positive(self):
        with pytest.raises(ConfigError):
            _cfg(request_interval_sec=0)

    def test_unknown_time_zone(self):
        with pytest.raises(ConfigError):
            _cfg(time_zone="Mars/Olympus_Mons")

    @pytest.mark.parametrize("key", ["enable_repeat_audio", "log_to_file", "log_to_console"])
    def test_string_booleans_rejected(self, key):
        with pytest.raises(ConfigError):
            _cfg(**{key: "false"})

    def test_null_boolean_uses_default(self):
        cfg = _cfg(log_to_console=None, enable_repeat_audio=None)
        assert cfg.logging.to_console is True
        assert cfg.repeat_enabled is False

    def test_non_integer_interval(self):
        with pytest.raises(ConfigError):
            _cfg(repeat_interval_min="soon")

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("AIRALERT_AUTH_HEADER", "from-env")
        monkeypatch.setenv("AIRALERT_STATE_PATH", "/tmp/airalert-state.json")
        cfg = _cfg()
        assert cfg.auth_header == "from-env"
        assert cfg.state_path == "/tmp/airalert-state.json"


class TestLogLevel:
    def test_legacy_integers(self):
        assert parse_log_level(1) == logging.INFO
        assert parse_log_level(2) == logging.DEBUG
        assert parse_log_level(0) > logging.CRITICAL

    def test_names(self):
        assert parse_log_level("warning") == logging.WARNING
        assert parse_log_level("2") == logging.DEBUG
        assert parse_log_level(None) == logging.INFO

    def test_invalid(self):
        with pytest.raises(ConfigError):
            parse_log_level("loud")
        with pytest.raises(ConfigError):
            parse_log_level(9)
