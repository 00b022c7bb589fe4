"""JSON file persistence for ledger snapshots.

The whole snapshot is one JSON document with one key per part of the state
(accounts, pockets, debts, pocket_percentages, fixed_charges). Reads never
fail: a missing file, a corrupt document or a malformed key falls back to the
seed. Writes are best effort.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Optional

import structlog

from ledger.domain import LedgerState
from ledger.transforms import default_state, load_seed, state_from_data, state_to_data

log = structlog.get_logger(__name__)


class JsonStateStore:

    def __init__(self, path: Path, seed_path: Optional[Path] = None):
        self.path = Path(path)
        self.seed_path = Path(seed_path) if seed_path else None

    def seed(self) -> LedgerState:
        if self.seed_path is not None:
            try:
                return load_seed(str(self.seed_path))
            except (OSError, ValueError) as e:
                log.warning("seed_unreadable", path=str(self.seed_path), error=str(e))
        return default_state()

    def load(self) -> LedgerState:
        fallback = self.seed()
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            log.info("state_missing", path=str(self.path))
            return fallback
        except (OSError, ValueError) as e:
            log.warning("state_unreadable", path=str(self.path), error=str(e))
            return fallback

        if not isinstance(data, dict):
            log.warning("state_malformed", path=str(self.path), type=type(data).__name__)
            return fallback

        state, fell_back = state_from_data(data, fallback)
        if fell_back:
            log.warning("state_keys_defaulted", path=str(self.path), keys=list(fell_back))
        return state

    def save(self, state: LedgerState) -> bool:
        """Write the snapshot atomically; failures are logged, never raised."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=self.path.name, suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(state_to_data(state), f, indent=2, ensure_ascii=False)
                os.replace(tmp, self.path)
            except BaseException:
                if os.path.exists(tmp):
                    os.unlink(tmp)
                raise
        except (OSError, TypeError, ValueError) as e:
            log.error("state_save_failed", path=str(self.path), error=str(e))
            return False
        return True


class MemoryStateStore:
    """Keeps the last saved snapshot in memory; used when no file is wanted."""

    def __init__(self, initial: Optional[LedgerState] = None):
        self._state = initial

    def load(self) -> LedgerState:
        return self._state if self._state is not None else default_state()

    def save(self, state: LedgerState) -> bool:
        self._state = state
        return True
