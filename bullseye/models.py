from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from bullseye.config import (
    ARROWS_PER_END_CHOICES,
    DISTANCES_METERS,
    MAX_ARROW_NUMBER,
    SCHEMA_VERSION,
)

RingLabel = Union[int, str]

INNER_TEN_LABEL = "X"
MISS_LABEL = "M"


def score_label(ring: int, inner_ten: bool = False) -> RingLabel:
    """Wire/display label for a ring value: "X", "M" or the ring number."""
    if ring <= 0:
        return MISS_LABEL
    if inner_ten and ring == 10:
        return INNER_TEN_LABEL
    return int(ring)


def parse_label(value: Any) -> Tuple[int, bool]:
    """Inverse of score_label. Returns (ring, inner_ten)."""
    if value == INNER_TEN_LABEL:
        return 10, True
    if value == MISS_LABEL:
        return 0, False
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"Invalid ring value: {value!r}")
    ring = int(value)
    if ring != value or not 0 <= ring <= 10:
        raise ValueError(f"Invalid ring value: {value!r}")
    return ring, False


def _is_finite_number(x: Any) -> bool:
    return (
        isinstance(x, (int, float))
        and not isinstance(x, bool)
        and x == x
        and x not in (float("inf"), float("-inf"))
    )


# =========================================================
# SCORING
# =========================================================

@dataclass(frozen=True)
class ScoreResult:
    ring: int
    inner_ten: bool = False

    @property
    def is_miss(self) -> bool:
        return self.ring == 0

    @property
    def label(self) -> RingLabel:
        return score_label(self.ring, self.inner_ten)


@dataclass(frozen=True)
class Shot:
    """
    One arrow on the target face.

    - x, y are in the normalized 0-100 square, center at (50, 50).
    - ring is 0 for a miss; inner_ten marks an "X" (counts as 10).
    - arrow_index is the 1-based number of the physical arrow, if known.
    """
    x: float
    y: float
    ring: int
    inner_ten: bool = False
    arrow_index: Optional[int] = None

    def __post_init__(self):
        for name in ("x", "y"):
            value = getattr(self, name)
            if not _is_finite_number(value) or not 0 <= value <= 100:
                raise ValueError(f"{name} must be within [0, 100], got {value!r}")

        if not 0 <= self.ring <= 10:
            raise ValueError(f"ring must be within [0, 10], got {self.ring}")

        if self.inner_ten and self.ring != 10:
            raise ValueError("inner_ten requires ring 10")

        if self.arrow_index is not None and not 1 <= self.arrow_index <= MAX_ARROW_NUMBER:
            raise ValueError(
                f"arrow_index must be within [1, {MAX_ARROW_NUMBER}], got {self.arrow_index}"
            )

    @property
    def is_miss(self) -> bool:
        return self.ring == 0

    @property
    def label(self) -> RingLabel:
        return score_label(self.ring, self.inner_ten)

    @staticmethod
    def from_result(
        x: float, y: float, result: ScoreResult, arrow_index: Optional[int] = None
    ) -> "Shot":
        return Shot(
            x=x,
            y=y,
            ring=result.ring,
            inner_ten=result.inner_ten,
            arrow_index=arrow_index,
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"x": self.x, "y": self.y, "ringValue": self.label}
        if self.arrow_index is not None:
            d["arrowIndex"] = self.arrow_index
        return d

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "Shot":
        ring, inner_ten = parse_label(d["ringValue"])
        arrow_index = d.get("arrowIndex")
        return Shot(
            x=float(d["x"]),
            y=float(d["y"]),
            ring=ring,
            inner_ten=inner_ten,
            arrow_index=int(arrow_index) if arrow_index is not None else None,
        )


@dataclass(frozen=True)
class End:
    """Ordered, fixed-capacity group of shots."""
    capacity: int
    shots: Tuple[Shot, ...] = ()

    def __post_init__(self):
        if self.capacity not in ARROWS_PER_END_CHOICES:
            raise ValueError(f"capacity must be one of {ARROWS_PER_END_CHOICES}")
        if len(self.shots) > self.capacity:
            raise ValueError(
                f"end holds {len(self.shots)} shots, capacity is {self.capacity}"
            )

    def __len__(self) -> int:
        return len(self.shots)

    def __iter__(self) -> Iterator[Shot]:
        return iter(self.shots)

    def to_list(self) -> List[Dict[str, Any]]:
        return [s.to_dict() for s in self.shots]

    @staticmethod
    def from_list(capacity: int, items: List[Dict[str, Any]]) -> "End":
        if not isinstance(items, list):
            raise ValueError("end must be a list of shots")
        return End(capacity=capacity, shots=tuple(Shot.from_dict(s) for s in items))


# =========================================================
# SESSION
# =========================================================

@dataclass(frozen=True)
class SessionState:
    distance_meters: int
    arrows_per_end: int
    ends: Tuple[End, ...]
    current_end_index: int = 0
    created_at_ms: int = 0

    def __post_init__(self):
        if self.distance_meters not in DISTANCES_METERS:
            raise ValueError(f"distance must be one of {DISTANCES_METERS}")

        if self.arrows_per_end not in ARROWS_PER_END_CHOICES:
            raise ValueError(f"arrows_per_end must be one of {ARROWS_PER_END_CHOICES}")

        if not self.ends:
            raise ValueError("session must hold at least one end")

        if any(e.capacity != self.arrows_per_end for e in self.ends):
            raise ValueError("every end must have capacity == arrows_per_end")

        if not 0 <= self.current_end_index < len(self.ends):
            raise ValueError(
                f"current_end_index {self.current_end_index} outside 0..{len(self.ends) - 1}"
            )

    @property
    def current_end(self) -> End:
        return self.ends[self.current_end_index]

    @property
    def is_on_last_end(self) -> bool:
        return self.current_end_index == len(self.ends) - 1

    def all_shots(self) -> List[Shot]:
        return [shot for end in self.ends for shot in end]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "distanceMeters": self.distance_meters,
            "arrowsPerEnd": self.arrows_per_end,
            "ends": [e.to_list() for e in self.ends],
            "currentEndIndex": self.current_end_index,
            "createdAtEpochMillis": self.created_at_ms,
        }

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "SessionState":
        arrows_per_end = int(d["arrowsPerEnd"])
        ends_raw = d["ends"]
        if not isinstance(ends_raw, list):
            raise ValueError("ends must be a list")

        return SessionState(
            distance_meters=int(d["distanceMeters"]),
            arrows_per_end=arrows_per_end,
            ends=tuple(End.from_list(arrows_per_end, e) for e in ends_raw),
            current_end_index=int(d["currentEndIndex"]),
            created_at_ms=int(d.get("createdAtEpochMillis", 0) or 0),
        )


@dataclass(frozen=True)
class PersistedSnapshot:
    state: SessionState
    saved_at_ms: int

    def to_dict(self) -> Dict[str, Any]:
        d = self.state.to_dict()
        d["savedAtEpochMillis"] = self.saved_at_ms
        d["schemaVersion"] = SCHEMA_VERSION
        return d

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "PersistedSnapshot":
        if not isinstance(d, dict):
            raise ValueError("snapshot must be an object")

        version = d.get("schemaVersion", SCHEMA_VERSION)
        if version != SCHEMA_VERSION:
            raise ValueError(f"Unsupported schemaVersion: {version}")

        return PersistedSnapshot(
            state=SessionState.from_dict(d),
            saved_at_ms=int(d["savedAtEpochMillis"]),
        )


@dataclass(frozen=True)
class FinalizedSession:
    """Record handed to the session storage collaborator."""
    distance_meters: int
    arrows_per_end: int
    total_score: int
    total_arrows: int
    ends_snapshot: Tuple[End, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "distanceMeters": self.distance_meters,
            "arrowsPerEnd": self.arrows_per_end,
            "totalScore": self.total_score,
            "totalArrows": self.total_arrows,
            "endsSnapshot": [e.to_list() for e in self.ends_snapshot],
        }


# =========================================================
# TIMER
# =========================================================

class TimerPhase(str, Enum):
    IDLE = "idle"
    PREPARATION = "preparation"
    ACTIVE = "active"
    EXPIRED = "expired"


class CueKind(str, Enum):
    PREPARATION = "preparation"
    START = "start"
    WARNING = "warning"
    EXPIRY = "expiry"


@dataclass(frozen=True)
class CueEvent:
    kind: CueKind
    pulse_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {"pulseCount": self.pulse_count, "kind": self.kind.value}
