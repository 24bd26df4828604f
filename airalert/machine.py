from __future__ import annotations

import datetime as dt
import logging
from dataclasses import replace
from typing import List, Optional, Sequence, Tuple

from .models import NotificationEvent, NotificationKind, Observation, RegionAlertState
from .repeat import RepeatScheduler

log = logging.getLogger("airalert.machine")


def find_state(states: Sequence[RegionAlertState], region_id: str) -> Optional[RegionAlertState]:
    for st in states:
        if st.region_id == region_id:
            return st
    return None


class AlertStateMachine:
    """
    Turns one observation plus the known region states into at most one
    notification and the updated state list.

    No I/O here: the caller plays the notification and persists the states.
    """

    def __init__(self, repeat: Optional[RepeatScheduler] = None) -> None:
        self.repeat = repeat

    def _status_event(self, obs: Observation) -> NotificationEvent:
        if obs.is_active:
            return NotificationEvent(
                kind=NotificationKind.ALERT_START,
                region_id=obs.region_id,
                event_type=obs.event_type,
            )
        return NotificationEvent(kind=NotificationKind.ALERT_END, region_id=obs.region_id)

    def apply(
        self,
        obs: Observation,
        states: Sequence[RegionAlertState],
        now: Optional[dt.datetime] = None,
    ) -> Tuple[Optional[NotificationEvent], List[RegionAlertState]]:
        out = [replace(st) for st in states]
        current = find_state(out, obs.region_id)

        if current is None:
            out.append(
                RegionAlertState(
                    region_id=obs.region_id,
                    is_active=obs.is_active,
                    event_last_update=obs.event_timestamp,
                    active_event_type=obs.event_type,
                    alarmed=True,
                )
            )
            if obs.is_active:
                log.debug("First sight of region %s: alert active", obs.region_id)
                return self._status_event(obs), out
            # first sight while quiet: nothing ended, stay silent
            log.debug("First sight of region %s: no alert", obs.region_id)
            return None, out

        current.event_last_update = obs.event_timestamp
        current.active_event_type = obs.event_type

        if current.is_active != obs.is_active:
            current.is_active = obs.is_active
            current.alarmed = True
            if not obs.is_active and self.repeat is not None:
                self.repeat.forget(obs.region_id)
            return self._status_event(obs), out

        if not current.alarmed:
            current.alarmed = True
            return self._status_event(obs), out

        if obs.is_active and self.repeat is not None:
            return self.repeat.maybe_repeat(current, now), out

        return None, out
