from __future__ import annotations

import datetime as dt
import enum
from dataclasses import dataclass
from typing import Any, Dict, Optional


ALERT_ON_EMPTY_KEY = "alertOnEmpty"
REPEAT_AUDIO_KEY = "repeatAudio"


def parse_rfc3339(s: str | None) -> Optional[dt.datetime]:
    """
    Parse an RFC3339 timestamp. Returns None on anything unparseable.

    Naive values are taken as UTC.
    """
    if not s:
        return None
    try:
        s2 = str(s).strip()
        if s2.endswith("Z") or s2.endswith("z"):
            s2 = s2[:-1] + "+00:00"
        t = dt.datetime.fromisoformat(s2)
    except (TypeError, ValueError):
        return None
    if t.tzinfo is None:
        t = t.replace(tzinfo=dt.timezone.utc)
    return t


def is_before(a: str | None, b: str | None) -> bool:
    """
    Strict "a happened before b" on raw timestamp strings.

    An unparseable `a` is never before anything; a parseable `a` is before an
    unparseable `b`.
    """
    ta = parse_rfc3339(a)
    if ta is None:
        return False
    tb = parse_rfc3339(b)
    if tb is None:
        return True
    return ta < tb


@dataclass(frozen=True)
class ActiveAlert:
    region_id: str
    region_type: str
    type: str
    last_update: str

    @staticmethod
    def from_json(obj: Dict[str, Any]) -> "ActiveAlert":
        return ActiveAlert(
            region_id=str(obj.get("regionId") or ""),
            region_type=str(obj.get("regionType") or ""),
            type=str(obj.get("type") or ""),
            last_update=str(obj.get("lastUpdate") or ""),
        )


@dataclass(frozen=True)
class RegionRecord:
    """One top-level entry of the alerts API response."""
    region_id: str
    region_type: str
    region_name: str
    region_eng_name: str
    last_update: str
    active_alerts: tuple[ActiveAlert, ...]

    @staticmethod
    def from_json(obj: Dict[str, Any]) -> "RegionRecord":
        raw_alerts = obj.get("activeAlerts")
        alerts: list[ActiveAlert] = []
        if isinstance(raw_alerts, list):
            for a in raw_alerts:
                if isinstance(a, dict):
                    alerts.append(ActiveAlert.from_json(a))
        return RegionRecord(
            region_id=str(obj.get("regionId") or ""),
            region_type=str(obj.get("regionType") or ""),
            region_name=str(obj.get("regionName") or ""),
            region_eng_name=str(obj.get("regionEngName") or ""),
            last_update=str(obj.get("lastUpdate") or ""),
            active_alerts=tuple(alerts),
        )


@dataclass(frozen=True)
class Observation:
    is_active: bool
    event_timestamp: str
    region_id: str
    region_name: str = ""
    region_english_name: str = ""
    event_type: str = ""
    event_region_id: str = ""

    @property
    def display_region(self) -> str:
        return self.region_name or self.region_english_name or self.region_id


def earliest_alert(alerts: tuple[ActiveAlert, ...] | list[ActiveAlert]) -> Optional[ActiveAlert]:
    if not alerts:
        return None
    earliest = alerts[0]
    for a in alerts:
        if is_before(a.last_update, earliest.last_update):
            earliest = a
    return earliest


def observation_from_record(record: RegionRecord) -> Observation:
    ea = earliest_alert(record.active_alerts)
    if ea is None:
        return Observation(
            is_active=False,
            event_timestamp=record.last_update,
            region_id=record.region_id,
            region_name=record.region_name,
            region_english_name=record.region_eng_name,
            event_type="",
            event_region_id=record.region_id,
        )
    return Observation(
        is_active=True,
        event_timestamp=ea.last_update,
        region_id=record.region_id,
        region_name=record.region_name,
        region_english_name=record.region_eng_name,
        event_type=ea.type,
        event_region_id=ea.region_id or record.region_id,
    )


@dataclass
class RegionAlertState:
    region_id: str
    is_active: bool
    event_last_update: str = ""
    active_event_type: str = ""
    alarmed: bool = False

    def to_json(self) -> Dict[str, Any]:
        return {
            "isActive": self.is_active,
            "eventLastUpdate": self.event_last_update,
            "eventRegion": self.region_id,
            "activeEventType": self.active_event_type,
            "alarmed": self.alarmed,
        }

    @staticmethod
    def from_json(obj: Dict[str, Any]) -> "RegionAlertState":
        return RegionAlertState(
            region_id=str(obj.get("eventRegion") or ""),
            is_active=bool(obj.get("isActive", False)),
            event_last_update=str(obj.get("eventLastUpdate") or ""),
            active_event_type=str(obj.get("activeEventType") or ""),
            alarmed=bool(obj.get("alarmed", False)),
        )


class NotificationKind(str, enum.Enum):
    ALERT_START = "alert_start"
    ALERT_END = "alert_end"
    REPEAT = "repeat"


@dataclass(frozen=True)
class NotificationEvent:
    kind: NotificationKind
    region_id: str
    event_type: str = ""
    minute_key: str = ""

    @property
    def sound_key(self) -> str:
        if self.kind is NotificationKind.ALERT_END:
            return ALERT_ON_EMPTY_KEY
        if self.kind is NotificationKind.REPEAT:
            return REPEAT_AUDIO_KEY
        return self.event_type
