from __future__ import annotations

import datetime as dt
import logging
from typing import Dict, Optional, Set

from .models import NotificationEvent, NotificationKind, RegionAlertState, parse_rfc3339

log = logging.getLogger("airalert.repeat")


def _utcnow() -> dt.datetime:
    return dt.datetime.now(tz=dt.timezone.utc)


def _truncate_minute(t: dt.datetime) -> dt.datetime:
    if t.tzinfo is None:
        t = t.replace(tzinfo=dt.timezone.utc)
    return t.astimezone(dt.timezone.utc).replace(second=0, microsecond=0)


def minute_key(t: dt.datetime) -> str:
    return _truncate_minute(t).strftime("%Y-%m-%dT%H:%M")


class RepeatScheduler:
    """
    "Alert still active" reminders at fixed minute slots after the alert start.

    Slots are anchor + k * interval (k >= 1), anchor being the alert's
    timestamp truncated to the UTC minute. A slot fires only during its own
    minute; missed slots are not backfilled. The ledger remembers fired
    minute-keys per region so two polls inside one minute fire once.
    """

    def __init__(self, interval_minutes: int) -> None:
        if int(interval_minutes) <= 0:
            raise ValueError(f"repeat interval must be positive, got {interval_minutes!r}")
        self.interval = dt.timedelta(minutes=int(interval_minutes))
        self._ledger: Dict[str, Set[str]] = {}

    def fired(self, region_id: str) -> Set[str]:
        return set(self._ledger.get(region_id, ()))

    def forget(self, region_id: str) -> None:
        self._ledger.pop(region_id, None)

    def maybe_repeat(self, state: RegionAlertState, now: Optional[dt.datetime] = None) -> Optional[NotificationEvent]:
        start = parse_rfc3339(state.event_last_update)
        if start is None:
            log.debug("Repeat skipped for region %s: bad anchor %r", state.region_id, state.event_last_update)
            return None

        now_m = _truncate_minute(now or _utcnow())
        anchor = _truncate_minute(start)
        # first slot at or after now, k >= 1
        k = max(1, -(-(now_m - anchor) // self.interval))
        nxt = anchor + k * self.interval

        if nxt != now_m:
            return None

        key = minute_key(nxt)
        seen = self._ledger.setdefault(state.region_id, set())
        if key in seen:
            return None
        seen.add(key)
        return NotificationEvent(
            kind=NotificationKind.REPEAT,
            region_id=state.region_id,
            event_type=state.active_event_type,
            minute_key=key,
        )
