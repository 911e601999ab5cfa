from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, Tuple

from bullseye.config import (
    PREPARATION_SECONDS,
    PULSE_LENGTH_SEC,
    PULSE_SPACING_SEC,
    SHORT_MATCH_CATEGORIES,
    SHORT_MATCH_SECONDS,
    STANDARD_MATCH_SECONDS,
    TICK_INTERVAL_SEC,
    WARNING_SECONDS,
)
from bullseye.models import CueEvent, CueKind, TimerPhase

logger = logging.getLogger(__name__)

CUE_PULSES = {
    CueKind.PREPARATION: 1,
    CueKind.START: 2,
    CueKind.WARNING: 1,
    CueKind.EXPIRY: 3,
}

PHASE_CAPTIONS = {
    TimerPhase.IDLE: "READY?",
    TimerPhase.PREPARATION: "STEP TO THE LINE",
    TimerPhase.ACTIVE: "SHOOT",
    TimerPhase.EXPIRED: "ARROWS DOWN",
}


def match_duration_for(bow_category: Optional[str]) -> int:
    """Shooting window for a bow category: short for indian bows, standard otherwise."""
    category = (bow_category or "").lower()
    if any(c in category for c in SHORT_MATCH_CATEGORIES):
        return SHORT_MATCH_SECONDS
    return STANDARD_MATCH_SECONDS


def format_clock(seconds: int) -> str:
    seconds = max(0, int(seconds))
    return f"{seconds // 60}:{seconds % 60:02d}"


def phase_caption(phase: TimerPhase) -> str:
    return PHASE_CAPTIONS[phase]


def pulse_offsets(
    pulse_count: int,
    spacing: float = PULSE_SPACING_SEC,
    length: float = PULSE_LENGTH_SEC,
) -> List[Tuple[float, float]]:
    """
    (start, stop) offsets in seconds for each whistle pulse of a cue.
    Pulses are evenly spaced; the whole cue fits in (n - 1) * spacing + length.
    """
    if pulse_count < 1:
        raise ValueError("pulse_count must be >= 1")
    if length > spacing:
        raise ValueError("pulse length must not exceed spacing")
    return [(i * spacing, i * spacing + length) for i in range(pulse_count)]


class MatchTimer:
    """
    Countdown for one competition end.

    IDLE -> PREPARATION -> ACTIVE -> EXPIRED

    - start(): 1 pulse, PREPARATION for preparation_seconds
    - PREPARATION hits 0: 2 pulses, ACTIVE for match_seconds
    - ACTIVE hits warning_seconds: 1 pulse, once per countdown
    - ACTIVE hits 0 or force_expire(): 3 pulses, EXPIRED
    - stop(): back to IDLE, silent

    Ticks come from tick() or, when a scheduler is given, from a one-shot
    scheduler.call_later(tick_interval, callback) re-armed after every tick.
    An asyncio event loop works as a scheduler.
    """

    def __init__(
        self,
        match_seconds: int = STANDARD_MATCH_SECONDS,
        on_cue: Optional[Callable[[CueEvent], Any]] = None,
        on_expire: Optional[Callable[[], Any]] = None,
        scheduler: Any = None,
        tick_interval: float = TICK_INTERVAL_SEC,
        preparation_seconds: int = PREPARATION_SECONDS,
        warning_seconds: int = WARNING_SECONDS,
    ):
        if match_seconds <= 0:
            raise ValueError("match_seconds must be positive")
        if preparation_seconds <= 0:
            raise ValueError("preparation_seconds must be positive")
        if tick_interval <= 0:
            raise ValueError("tick_interval must be positive")

        self.match_seconds = int(match_seconds)
        self.preparation_seconds = int(preparation_seconds)
        self.warning_seconds = int(warning_seconds)
        self.tick_interval = tick_interval

        self._on_cue = on_cue
        self._on_expire = on_expire
        self._scheduler = scheduler

        self._phase = TimerPhase.IDLE
        self._remaining = self.match_seconds
        self._warned = False
        self._handle = None
        self._generation = 0

    # ---------------------------------------------------------
    # State
    # ---------------------------------------------------------

    @property
    def phase(self) -> TimerPhase:
        return self._phase

    @property
    def remaining(self) -> int:
        return self._remaining

    @property
    def is_counting(self) -> bool:
        return self._phase in (TimerPhase.PREPARATION, TimerPhase.ACTIVE)

    @property
    def is_warning(self) -> bool:
        return self._phase == TimerPhase.ACTIVE and self._remaining <= self.warning_seconds

    # ---------------------------------------------------------
    # Controls
    # ---------------------------------------------------------

    def start(self) -> bool:
        """Begin a countdown. Ignored (False) while one is already running."""
        if self.is_counting:
            logger.debug("start() ignored in %s", self._phase.value)
            return False

        self._cancel_tick()
        self._warned = False
        self._set_phase(TimerPhase.PREPARATION, self.preparation_seconds)
        self._emit(CueKind.PREPARATION)

        if self._phase == TimerPhase.PREPARATION:
            self._arm_tick()
        return True

    def stop(self) -> None:
        """Abandon the countdown. No cue; no tick fires after this returns."""
        if self._phase == TimerPhase.IDLE:
            return

        self._cancel_tick()
        self._set_phase(TimerPhase.IDLE, self.match_seconds)

    def force_expire(self) -> bool:
        """Finish the end early. Only valid while ACTIVE."""
        if self._phase != TimerPhase.ACTIVE:
            logger.debug("force_expire() ignored in %s", self._phase.value)
            return False

        self._expire()
        return True

    def close(self) -> None:
        """Release the tick source on teardown."""
        self.stop()

    def tick(self) -> None:
        """Advance the countdown by one time unit."""
        if not self.is_counting:
            return

        self._remaining -= 1

        if self._phase == TimerPhase.PREPARATION:
            if self._remaining <= 0:
                self._set_phase(TimerPhase.ACTIVE, self.match_seconds)
                self._emit(CueKind.START)
                self._check_warning()
            return

        self._check_warning()
        if self._phase == TimerPhase.ACTIVE and self._remaining <= 0:
            self._expire()

    # ---------------------------------------------------------
    # Transitions
    # ---------------------------------------------------------

    def _check_warning(self):
        if (
            self._phase == TimerPhase.ACTIVE
            and not self._warned
            and self._remaining == self.warning_seconds
        ):
            self._warned = True
            self._emit(CueKind.WARNING)

    def _expire(self):
        self._cancel_tick()
        self._set_phase(TimerPhase.EXPIRED, 0)
        self._emit(CueKind.EXPIRY)
        if self._on_expire is not None and self._phase == TimerPhase.EXPIRED:
            self._on_expire()

    def _set_phase(self, phase: TimerPhase, remaining: int):
        if phase != self._phase:
            logger.info("Timer %s -> %s (%ss)", self._phase.value, phase.value, remaining)
        self._phase = phase
        self._remaining = remaining

    def _emit(self, kind: CueKind):
        event = CueEvent(kind=kind, pulse_count=CUE_PULSES[kind])
        logger.debug("Cue %s x%d", kind.value, event.pulse_count)
        if self._on_cue is not None:
            self._on_cue(event)

    # ---------------------------------------------------------
    # Tick source
    # ---------------------------------------------------------

    def _arm_tick(self):
        if self._scheduler is None:
            return

        generation = self._generation
        self._handle = self._scheduler.call_later(
            self.tick_interval, self._scheduled_tick, generation
        )

    def _scheduled_tick(self, generation: int):
        if generation != self._generation:
            # cancelled after the callback was already queued
            return

        self._handle = None
        self.tick()
        if self.is_counting and generation == self._generation and self._handle is None:
            self._arm_tick()

    def _cancel_tick(self):
        self._generation += 1
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
