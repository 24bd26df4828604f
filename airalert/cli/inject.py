"""
Debug tool for airalert.

- `python -m airalert.cli.inject play alertOnEmpty` plays a configured sound key
- `python -m airalert.cli.inject observe --active --type air_raid --region 31`
  pushes a synthetic observation through the state machine against the
  configured state file and plays whatever it decides
"""
from __future__ import annotations

import argparse
import datetime as dt
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from airalert.config import ConfigError, load_config
from airalert.machine import AlertStateMachine
from airalert.models import Observation
from airalert.notifier import Notifier
from airalert.repeat import RepeatScheduler
from airalert.state_store import PersistenceError, StateStore

log = logging.getLogger("airalert.inject")

DEFAULT_CONFIG = "config.json"


class _DryRunPlayer:
    def play(self, path: str) -> None:
        print(f"[dry-run] would play {path}")


def _notifier(cfg, dry_run: bool) -> Notifier:
    if dry_run:
        return Notifier(cfg.audio, _DryRunPlayer())
    from airalert.audio import PygamePlayer

    return Notifier(cfg.audio, PygamePlayer())


def cmd_play(args: argparse.Namespace) -> int:
    cfg = load_config(args.config)
    notifier = _notifier(cfg, args.dry_run)
    path = notifier.resolve(args.sound_key)
    if path is None:
        print(f"no sound configured for {args.sound_key!r}", file=sys.stderr)
        return 1
    print(f"playing {args.sound_key} -> {path}")
    try:
        return 0 if notifier.play(args.sound_key) else 1
    finally:
        notifier.close()


def cmd_observe(args: argparse.Namespace) -> int:
    cfg = load_config(args.config)
    ts = args.timestamp or dt.datetime.now(dt.timezone.utc).replace(microsecond=0).isoformat()
    obs = Observation(
        is_active=bool(args.active),
        event_timestamp=ts,
        region_id=args.region,
        region_name=args.region,
        event_type=args.type if args.active else "",
    )

    store = StateStore(path=Path(args.state or cfg.state_path))
    repeat = RepeatScheduler(cfg.audio.repeat_interval_min) if cfg.repeat_enabled else None
    machine = AlertStateMachine(repeat=repeat)

    states = store.load()
    event, new_states = machine.apply(obs, states)
    if event is None:
        print("no notification")
    else:
        print(f"notification: {event.kind.value} sound={event.sound_key!r}")
        notifier = _notifier(cfg, args.dry_run)
        try:
            notifier.notify(event)
        finally:
            notifier.close()

    if not args.no_save:
        store.save(new_states)
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    ap = argparse.ArgumentParser(prog="airalert-inject")
    ap.add_argument("--config", default=os.environ.get("AIRALERT_CONFIG") or DEFAULT_CONFIG)
    ap.add_argument("--dry-run", action="store_true", help="Print the file instead of playing it")
    sub = ap.add_subparsers(dest="cmd", required=True)

    ap_play = sub.add_parser("play", help="Play the sound configured for a key")
    ap_play.add_argument("sound_key", help="Event type, alertOnEmpty or repeatAudio")
    ap_play.set_defaults(func=cmd_play)

    ap_obs = sub.add_parser("observe", help="Feed one synthetic observation to the state machine")
    state = ap_obs.add_mutually_exclusive_group(required=True)
    state.add_argument("--active", action="store_true")
    state.add_argument("--inactive", action="store_true")
    ap_obs.add_argument("--type", default="", help="Event type for --active")
    ap_obs.add_argument("--region", required=True)
    ap_obs.add_argument("--timestamp", help="RFC3339 event time (default: now)")
    ap_obs.add_argument("--state", help="State file (default: state_path from config)")
    ap_obs.add_argument("--no-save", action="store_true", help="Do not write the updated state")
    ap_obs.set_defaults(func=cmd_observe)

    args = ap.parse_args(argv)
    try:
        return int(args.func(args))
    except (ConfigError, PersistenceError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
