from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml


class ConfigError(RuntimeError):
    pass


# legacy numeric levels: 0 silent, 1 notifications, 2+ verbose
_LEGACY_LEVELS = {
    0: logging.CRITICAL + 10,
    1: logging.INFO,
    2: logging.DEBUG,
    3: logging.DEBUG,
}


@dataclass(frozen=True)
class AudioConfig:
    audio_files: Dict[str, str] = field(default_factory=dict)
    alert_on_empty: str = ""
    repeat_audio_file: str = ""
    enable_repeat_audio: bool = False
    repeat_interval_min: int = 0


@dataclass(frozen=True)
class LoggingConfig:
    level: int = logging.INFO
    to_file: bool = False
    file_path: str = "alert.log"
    to_console: bool = True
    time_zone: str = ""


@dataclass(frozen=True)
class AppConfig:
    api_url: str
    auth_header: str
    request_interval_sec: int
    request_timeout_sec: float
    state_path: str
    audio: AudioConfig
    logging: LoggingConfig

    @property
    def repeat_enabled(self) -> bool:
        return self.audio.enable_repeat_audio and self.audio.repeat_interval_min > 0


def _env(key: str, default: str | None = None) -> str | None:
    v = os.environ.get(key)
    return v if v not in (None, "") else default


def parse_log_level(v: Any) -> int:
    if v is None or v == "":
        return logging.INFO
    if isinstance(v, bool):
        raise ConfigError(f"invalid log_level: {v!r}")
    if isinstance(v, int):
        if v in _LEGACY_LEVELS:
            return _LEGACY_LEVELS[v]
        raise ConfigError(f"invalid log_level: {v!r} (expected 0..3 or a level name)")
    s = str(v).strip()
    if s.isdigit():
        return parse_log_level(int(s))
    lvl = logging.getLevelName(s.upper())
    if not isinstance(lvl, int):
        raise ConfigError(f"invalid log_level: {v!r}")
    return lvl


def _int(raw: Dict[str, Any], key: str, default: int) -> int:
    v = raw.get(key, default)
    if v is None or v == "":
        return default
    try:
        return int(v)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{key} must be an integer, got {v!r}") from e


def _bool(raw: Dict[str, Any], key: str, default: bool) -> bool:
    v = raw.get(key, default)
    if v is None:
        return default
    if not isinstance(v, bool):
        raise ConfigError(f"{key} must be true or false, got {v!r}")
    return v


def _float(raw: Dict[str, Any], key: str, default: float) -> float:
    v = raw.get(key, default)
    if v is None or v == "":
        return default
    try:
        return float(v)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{key} must be a number, got {v!r}") from e


def validate_config(cfg: AppConfig) -> AppConfig:
    if not cfg.api_url:
        raise ConfigError("api_url is required")
    if cfg.request_interval_sec <= 0:
        raise ConfigError(f"request_interval_sec must be positive, got {cfg.request_interval_sec}")
    if cfg.request_timeout_sec <= 0:
        raise ConfigError(f"request_timeout_sec must be positive, got {cfg.request_timeout_sec}")
    if cfg.audio.enable_repeat_audio and cfg.audio.repeat_interval_min <= 0:
        raise ConfigError(
            f"repeat_interval_min must be positive when enable_repeat_audio is set, got {cfg.audio.repeat_interval_min}"
        )
    if cfg.logging.time_zone:
        try:
            ZoneInfo(cfg.logging.time_zone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ConfigError(f"unknown time_zone: {cfg.logging.time_zone!r}") from e
    return cfg


def config_from_dict(raw: Dict[str, Any]) -> AppConfig:
    if not isinstance(raw, dict):
        raise ConfigError("config root must be a mapping")

    audio_files = raw.get("audio_files") or {}
    if not isinstance(audio_files, dict):
        raise ConfigError("audio_files must be a mapping of event type to file path")

    audio = AudioConfig(
        audio_files={str(k): str(v or "") for k, v in audio_files.items()},
        alert_on_empty=str(raw.get("alert_on_empty") or ""),
        repeat_audio_file=str(raw.get("repeat_audio_file") or ""),
        enable_repeat_audio=_bool(raw, "enable_repeat_audio", False),
        repeat_interval_min=_int(raw, "repeat_interval_min", 0),
    )
    log_cfg = LoggingConfig(
        level=parse_log_level(raw.get("log_level")),
        to_file=_bool(raw, "log_to_file", False),
        file_path=str(raw.get("log_file_path") or "alert.log"),
        to_console=_bool(raw, "log_to_console", True),
        time_zone=str(raw.get("time_zone") or ""),
    )
    cfg = AppConfig(
        api_url=str(raw.get("api_url") or "").strip(),
        auth_header=str(_env("AIRALERT_AUTH_HEADER", raw.get("auth_header") or "") or ""),
        request_interval_sec=_int(raw, "request_interval_sec", 10),
        request_timeout_sec=_float(raw, "request_timeout_sec", 10.0),
        state_path=str(_env("AIRALERT_STATE_PATH", raw.get("state_path") or "state.json")),
        audio=audio,
        logging=log_cfg,
    )
    return validate_config(cfg)


def load_config(path: str) -> AppConfig:
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"cannot read config file {path}: {e}") from e
    try:
        if p.suffix.lower() == ".json":
            raw = json.loads(text)
        else:
            raw = yaml.safe_load(text)
    except (ValueError, yaml.YAMLError) as e:
        raise ConfigError(f"cannot parse config file {path}: {e}") from e
    return config_from_dict(raw or {})
