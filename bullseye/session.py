from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Optional

from bullseye import ends
from bullseye.exceptions import CapacityExceeded, EndNotComplete, IndexOutOfRange
from bullseye.models import FinalizedSession, SessionState, Shot
from bullseye.resolver import resolve
from bullseye.storage import SnapshotStore, epoch_millis

logger = logging.getLogger(__name__)


# =========================================================
# PURE TRANSITIONS
# =========================================================

def start(
    distance_meters: int, arrows_per_end: int, now_ms: Optional[int] = None
) -> SessionState:
    return SessionState(
        distance_meters=distance_meters,
        arrows_per_end=arrows_per_end,
        ends=(ends.new_end(arrows_per_end),),
        current_end_index=0,
        created_at_ms=epoch_millis() if now_ms is None else now_ms,
    )


def _with_current_end(state: SessionState, end) -> SessionState:
    new_ends = list(state.ends)
    new_ends[state.current_end_index] = end
    return replace(state, ends=tuple(new_ends))


def record_shot(state: SessionState, shot: Shot) -> SessionState:
    """Append shot to the end under the cursor. Raises CapacityExceeded if full."""
    return _with_current_end(state, ends.append(state.current_end, shot))


def undo_last_shot(state: SessionState) -> SessionState:
    end = state.current_end
    trimmed = ends.remove_last(end)
    if trimmed is end:
        return state
    return _with_current_end(state, trimmed)


def advance_end(state: SessionState) -> SessionState:
    """
    Move the cursor forward one end, opening a new end past the last one.

    Forward advancement requires the current end to be complete; use
    next_end()/seek_end() to browse history.
    """
    if not ends.is_complete(state.current_end):
        raise EndNotComplete(
            f"End {state.current_end_index + 1} has "
            f"{len(state.current_end)}/{state.arrows_per_end} shots"
        )

    new_ends = state.ends
    if state.is_on_last_end:
        new_ends = new_ends + (ends.new_end(state.arrows_per_end),)

    return replace(state, ends=new_ends, current_end_index=state.current_end_index + 1)


def seek_end(state: SessionState, index: int) -> SessionState:
    if not 0 <= index < len(state.ends):
        raise IndexOutOfRange(f"End index {index} outside 0..{len(state.ends) - 1}")

    if index == state.current_end_index:
        return state
    return replace(state, current_end_index=index)


def previous_end(state: SessionState) -> SessionState:
    if state.current_end_index == 0:
        return state
    return seek_end(state, state.current_end_index - 1)


def next_end(state: SessionState) -> SessionState:
    if state.is_on_last_end:
        return state
    return seek_end(state, state.current_end_index + 1)


def running_total(state: SessionState) -> int:
    return sum(ends.end_total(e) for e in state.ends)


def max_possible(state: SessionState) -> int:
    return 10 * len(state.all_shots())


def x_total(state: SessionState) -> int:
    return sum(ends.x_count(e) for e in state.ends)


def finalize(state: SessionState) -> FinalizedSession:
    """
    Project the session into the record handed to session storage.
    Incomplete ends still count; empty ends are left out of the snapshot.
    """
    return FinalizedSession(
        distance_meters=state.distance_meters,
        arrows_per_end=state.arrows_per_end,
        total_score=running_total(state),
        total_arrows=len(state.all_shots()),
        ends_snapshot=tuple(e for e in state.ends if len(e) > 0),
    )


# =========================================================
# SESSION WITH AUTOSAVE
# =========================================================

class ScoringSession:
    """
    One in-progress scoring session.

    Responsibilities:
    - Own the current SessionState
    - Apply UI actions through the pure transitions above
    - Snapshot to the store after every mutation
    - Clear the snapshot on finish or abandon
    """

    def __init__(self, state: SessionState, store: Optional[SnapshotStore] = None):
        self._state = state
        self._store = store
        self._closed = False

    @classmethod
    def begin(
        cls,
        distance_meters: int,
        arrows_per_end: int,
        store: Optional[SnapshotStore] = None,
    ) -> "ScoringSession":
        session = cls(start(distance_meters, arrows_per_end), store)
        logger.info(
            "Started session: distance=%dm arrows_per_end=%d",
            distance_meters,
            arrows_per_end,
        )
        session._save()
        return session

    @classmethod
    def restore(cls, store: SnapshotStore) -> Optional["ScoringSession"]:
        snapshot = store.load()
        if snapshot is None:
            return None

        logger.info(
            "Resumed session: end %d, %d shots",
            snapshot.state.current_end_index + 1,
            len(snapshot.state.all_shots()),
        )
        return cls(snapshot.state, store)

    # ---------------------------------------------------------
    # Read API
    # ---------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._closed

    def running_total(self) -> int:
        return running_total(self._state)

    def max_possible(self) -> int:
        return max_possible(self._state)

    def current_end_total(self) -> int:
        return ends.end_total(self._state.current_end)

    # ---------------------------------------------------------
    # Actions
    # ---------------------------------------------------------

    def record_shot(self, shot: Shot) -> bool:
        """Returns False (input ignored) when the current end is full."""
        self._ensure_open()
        try:
            new_state = record_shot(self._state, shot)
        except CapacityExceeded:
            logger.debug("Ignoring shot on full end %d", self._state.current_end_index + 1)
            return False

        logger.debug(
            "Recorded %s on end %d", shot.label, self._state.current_end_index + 1
        )
        self._commit(new_state)
        return True

    def score_point(
        self, x: float, y: float, arrow_index: Optional[int] = None
    ) -> Optional[Shot]:
        """Resolve a target-face point and record it. None if the end is full."""
        shot = Shot.from_result(x, y, resolve(x, y), arrow_index=arrow_index)
        if not self.record_shot(shot):
            return None
        return shot

    def undo_last_shot(self) -> None:
        self._ensure_open()
        self._commit(undo_last_shot(self._state))

    def submit_end(self) -> bool:
        """Advance to the next end. False if the current end is not complete."""
        self._ensure_open()
        try:
            new_state = advance_end(self._state)
        except EndNotComplete as e:
            logger.debug("Advance blocked: %s", e)
            return False

        self._commit(new_state)
        return True

    def previous_end(self) -> None:
        self._ensure_open()
        self._commit(previous_end(self._state))

    def next_end(self) -> None:
        self._ensure_open()
        self._commit(next_end(self._state))

    def seek_end(self, index: int) -> None:
        self._ensure_open()
        self._commit(seek_end(self._state, index))

    def finish(
        self, submit: Optional[Callable[[FinalizedSession], None]] = None
    ) -> FinalizedSession:
        """
        Finalize and hand the record to submit.
        The snapshot is cleared only once submit returns without raising.
        """
        self._ensure_open()
        record = finalize(self._state)

        if submit is not None:
            submit(record)

        self._close()
        logger.info(
            "Finished session: %d/%d over %d arrows",
            record.total_score,
            10 * record.total_arrows,
            record.total_arrows,
        )
        return record

    def abandon(self) -> None:
        if self._closed:
            return
        self._close()
        logger.info("Abandoned session")

    # ---------------------------------------------------------
    # Internals
    # ---------------------------------------------------------

    def _ensure_open(self):
        if self._closed:
            raise RuntimeError("Session is closed")

    def _commit(self, new_state: SessionState):
        if new_state is self._state:
            return
        self._state = new_state
        self._save()

    def _save(self):
        if self._store is None:
            return
        try:
            self._store.save(self._state)
        except OSError as e:
            # Durability is best effort; the in-memory session stays valid.
            logger.warning("Could not save scoring snapshot: %s", e)

    def _close(self):
        self._closed = True
        if self._store is not None:
            self._store.clear()
