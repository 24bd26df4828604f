from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import List, Optional

from .models import RegionAlertState

log = logging.getLogger("airalert.state")


class PersistenceError(RuntimeError):
    pass


@dataclass
class StateStore:
    """
    Per-region alert state persisted as a JSON list.

    A missing file is an empty store. If a save fails the states are kept
    as pending and handed back by the next load() until a save succeeds.
    """
    path: Path

    _pending: Optional[List[RegionAlertState]] = None

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    def load(self) -> List[RegionAlertState]:
        if self._pending is not None:
            return [replace(st) for st in self._pending]

        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except OSError as e:
            raise PersistenceError(f"cannot read state file {self.path}: {e}") from e

        if not raw.strip():
            return []

        try:
            data = json.loads(raw)
        except ValueError as e:
            raise PersistenceError(f"corrupt state file {self.path}: {e}") from e

        if data is None:
            return []
        if not isinstance(data, list):
            raise PersistenceError(f"state file {self.path} is not a JSON list")

        return [RegionAlertState.from_json(obj) for obj in data if isinstance(obj, dict)]

    def save(self, states: List[RegionAlertState]) -> None:
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps([st.to_json() for st in states], indent=2), encoding="utf-8")
            os.replace(str(tmp), str(self.path))
        except OSError as e:
            self._pending = [replace(st) for st in states]
            raise PersistenceError(f"cannot write state file {self.path}: {e}") from e

        if self._pending is not None:
            log.info("State file %s writable again; pending state flushed", self.path)
        self._pending = None
