import json
import logging
import time
from pathlib import Path
from typing import Callable, Optional

from bullseye.config import SNAPSHOT_PATH, STALE_AFTER_MS
from bullseye.exceptions import PersistenceCorrupt
from bullseye.models import PersistedSnapshot, SessionState

logger = logging.getLogger(__name__)


def epoch_millis() -> int:
    return int(time.time() * 1000)


class SnapshotStore:
    """
    Holds at most one in-progress session snapshot.

    Responsibilities:
    - Overwrite the stored snapshot on save
    - Drop corrupt or stale snapshots on load
    - Delete the snapshot on finalize/abandon

    Subclasses provide the raw slot (_read_raw / _write_raw / _delete_raw).
    """

    def __init__(
        self,
        now_ms: Callable[[], int] = epoch_millis,
        stale_after_ms: int = STALE_AFTER_MS,
    ):
        self._now_ms = now_ms
        self._stale_after_ms = stale_after_ms

    # ---------------------------------------------------------
    # Core API
    # ---------------------------------------------------------

    def save(self, state: SessionState) -> PersistedSnapshot:
        snapshot = PersistedSnapshot(state=state, saved_at_ms=self._now_ms())
        self._write_raw(json.dumps(snapshot.to_dict()))
        logger.debug(
            "Saved snapshot: end=%d shots=%d",
            state.current_end_index + 1,
            len(state.all_shots()),
        )
        return snapshot

    def load(self) -> Optional[PersistedSnapshot]:
        """
        Return the stored snapshot, or None if missing, corrupt or stale.
        Corrupt and stale snapshots are deleted as a side effect.
        """
        raw = self._read_raw()
        if raw is None:
            return None

        try:
            snapshot = self.decode(raw)
        except PersistenceCorrupt as e:
            logger.warning("Discarding corrupt scoring snapshot: %s", e)
            self.clear()
            return None

        age_ms = self._now_ms() - snapshot.saved_at_ms
        if age_ms > self._stale_after_ms:
            logger.info("Discarding stale scoring snapshot (age %d ms)", age_ms)
            self.clear()
            return None

        return snapshot

    def clear(self) -> None:
        self._delete_raw()

    @staticmethod
    def decode(raw: str) -> PersistedSnapshot:
        try:
            return PersistedSnapshot.from_dict(json.loads(raw))
        except (KeyError, TypeError, ValueError, OverflowError) as e:
            # json.JSONDecodeError is a ValueError; Infinity/NaN ints overflow
            raise PersistenceCorrupt(f"{type(e).__name__}: {e}") from e

    # ---------------------------------------------------------
    # Raw slot
    # ---------------------------------------------------------

    def _read_raw(self) -> Optional[str]:
        raise NotImplementedError

    def _write_raw(self, raw: str) -> None:
        raise NotImplementedError

    def _delete_raw(self) -> None:
        raise NotImplementedError


class InMemorySnapshotStore(SnapshotStore):
    """Single string slot, like a browser local-storage key."""

    def __init__(self, raw: Optional[str] = None, **kwargs):
        super().__init__(**kwargs)
        self.raw = raw

    def _read_raw(self) -> Optional[str]:
        return self.raw

    def _write_raw(self, raw: str) -> None:
        self.raw = raw

    def _delete_raw(self) -> None:
        self.raw = None


class JsonFileSnapshotStore(SnapshotStore):

    def __init__(self, path: Path = SNAPSHOT_PATH, **kwargs):
        super().__init__(**kwargs)
        self.path = Path(path)

    def _read_raw(self) -> Optional[str]:
        if not self.path.exists():
            return None

        with open(self.path, "r", encoding="utf-8", errors="replace") as f:
            return f.read()

    def _write_raw(self, raw: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # A crash mid-write must leave the previous snapshot intact.
        tmp_path = self.path.with_suffix(f"{self.path.suffix}.tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            f.write(raw)
        tmp_path.replace(self.path)

    def _delete_raw(self) -> None:
        self.path.unlink(missing_ok=True)
