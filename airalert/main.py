from __future__ import annotations

import argparse
import asyncio
import datetime as dt
import logging
import os
import sys
import time
from pathlib import Path
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from .alerts_api import AlertsApi, EmptySource, SourceUnavailable
from .config import AppConfig, ConfigError, LoggingConfig, load_config
from .machine import AlertStateMachine
from .models import NotificationEvent, NotificationKind, Observation, parse_rfc3339
from .notifier import Notifier
from .repeat import RepeatScheduler
from .state_store import PersistenceError, StateStore

log = logging.getLogger("airalert")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DEFAULT_CONFIG = "config.json"


class ZoneFormatter(logging.Formatter):
    """Renders asctime in a fixed display time zone."""

    def __init__(self, fmt: str, tz: Optional[dt.tzinfo] = None) -> None:
        super().__init__(fmt)
        self.tz = tz

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        t = dt.datetime.fromtimestamp(record.created, tz=self.tz or dt.timezone.utc)
        if self.tz is None:
            t = t.astimezone()
        return t.strftime(datefmt or "%Y-%m-%d %H:%M:%S")


def _display_tz(name: str) -> Optional[dt.tzinfo]:
    return ZoneInfo(name) if name else None


def _setup_logging(cfg: Optional[LoggingConfig] = None) -> None:
    if cfg is None:
        logging.basicConfig(level=logging.INFO, format=LOG_FORMAT, stream=sys.stdout)
        return

    formatter = ZoneFormatter(LOG_FORMAT, _display_tz(cfg.time_zone))
    handlers: list[logging.Handler] = []
    if cfg.to_file:
        handlers.append(logging.FileHandler(cfg.file_path, encoding="utf-8"))
    if cfg.to_console or not handlers:
        handlers.append(logging.StreamHandler(sys.stdout))
    for h in handlers:
        h.setFormatter(formatter)

    logging.basicConfig(level=cfg.level, handlers=handlers, force=True)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING if cfg.level > logging.DEBUG else logging.NOTSET)


def describe_observation(obs: Observation, tz_name: str = "") -> str:
    when = obs.event_timestamp
    t = parse_rfc3339(when)
    if t is not None and tz_name:
        when += f" ({t.astimezone(ZoneInfo(tz_name)).strftime('%Y-%m-%d %H:%M:%S')})"
    region = obs.event_region_id or obs.region_id
    if obs.region_english_name:
        region += f" ({obs.region_english_name})"
    return (
        f"isActive={'true' if obs.is_active else 'false'}, eventLastUpdate={when}, "
        f"eventRegion={region}, activeEventType={obs.event_type}"
    )


def describe_event(event: NotificationEvent, obs: Observation, *, first_notice: bool) -> str:
    region = obs.display_region
    if event.kind is NotificationKind.ALERT_END:
        return f"Air raid alert ended in region: {region}"
    if event.kind is NotificationKind.REPEAT:
        return f"Air raid alert still active in region: {region} (reminder {event.minute_key})"
    if not first_notice:
        return f"Air raid alert continues ({event.event_type}) in region: {region}"
    return f"Air raid alert started ({event.event_type}) in region: {region}"


class Monitor:
    """
    Poll, decide, notify, persist. One cycle at a time.
    """

    def __init__(
        self,
        cfg: AppConfig,
        *,
        source: Optional[AlertsApi] = None,
        notifier: Optional[Notifier] = None,
        store: Optional[StateStore] = None,
        machine: Optional[AlertStateMachine] = None,
        clock: Callable[[], dt.datetime] = lambda: dt.datetime.now(dt.timezone.utc),
    ) -> None:
        self.cfg = cfg
        self.source = source or AlertsApi(
            cfg.api_url,
            cfg.auth_header,
            timeout=cfg.request_timeout_sec,
        )
        if notifier is None:
            from .audio import PygamePlayer

            notifier = Notifier(cfg.audio, PygamePlayer())
        self.notifier = notifier
        self.store = store or StateStore(path=Path(cfg.state_path))
        if machine is None:
            repeat = RepeatScheduler(cfg.audio.repeat_interval_min) if cfg.repeat_enabled else None
            machine = AlertStateMachine(repeat=repeat)
        self.machine = machine
        self.clock = clock
        self._announced = False

    async def aclose(self) -> None:
        try:
            await self.source.aclose()
        finally:
            self.notifier.close()

    async def _dispatch(self, event: NotificationEvent, obs: Observation, *, first_notice: bool) -> None:
        log.info("%s", describe_event(event, obs, first_notice=first_notice))
        await asyncio.to_thread(self.notifier.notify, event)

    async def run_cycle(self) -> Optional[Observation]:
        try:
            obs = await self.source.fetch_observation()
        except SourceUnavailable as e:
            log.warning("Alerts source unavailable: %s", e)
            return None
        except EmptySource:
            log.info("Empty alerts API response")
            return None

        log.debug("%s", describe_observation(obs, self.cfg.logging.time_zone))

        try:
            states = self.store.load()
        except PersistenceError as e:
            log.error("State load failed, skipping this cycle: %s", e)
            return obs

        prev = next((s for s in states if s.region_id == obs.region_id), None)
        event, new_states = self.machine.apply(obs, states, now=self.clock())

        if event is not None:
            first_notice = prev is None or prev.is_active != obs.is_active
            await self._dispatch(event, obs, first_notice=first_notice)

        try:
            self.store.save(new_states)
        except PersistenceError as e:
            log.error("State save failed (kept in memory, retrying next cycle): %s", e)

        return obs

    def _announce(self, obs: Observation) -> None:
        if self._announced:
            return
        self._announced = True
        state = "active" if obs.is_active else "inactive"
        log.info("Monitoring alerts for region %s. Current state: %s", obs.display_region, state)

    async def run_forever(self) -> None:
        log.info(
            "Alert monitor starting (poll=%ss url=%s repeat=%s)",
            self.cfg.request_interval_sec,
            self.cfg.api_url,
            f"{self.cfg.audio.repeat_interval_min}m" if self.cfg.repeat_enabled else "off",
        )
        try:
            while True:
                t0 = time.monotonic()
                try:
                    obs = await self.run_cycle()
                    if obs is not None:
                        self._announce(obs)
                except asyncio.CancelledError:
                    raise
                except Exception:
                    log.exception("Poll cycle error")

                elapsed = time.monotonic() - t0
                await asyncio.sleep(max(0.5, float(self.cfg.request_interval_sec) - elapsed))
        finally:
            await self.aclose()


def main(argv: list[str] | None = None) -> int:
    _setup_logging()
    ap = argparse.ArgumentParser(description="Air raid alert monitor with audio notifications")
    ap.add_argument("--config", default=os.environ.get("AIRALERT_CONFIG") or DEFAULT_CONFIG)
    args = ap.parse_args(argv)

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        log.error("Config error: %s", e)
        return 2

    try:
        _setup_logging(cfg.logging)
    except OSError as e:
        log.error("Cannot open log file %s: %s", cfg.logging.file_path, e)
        return 2

    monitor = Monitor(cfg)
    try:
        asyncio.run(monitor.run_forever())
    except KeyboardInterrupt:
        log.info("Stopped")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
