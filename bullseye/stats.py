from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np

from bullseye.config import TARGET_CENTER
from bullseye.models import End, MISS_LABEL, INNER_TEN_LABEL, Shot


@dataclass(frozen=True)
class ArrowStats:
    arrow_index: int
    count: int
    total: int

    @property
    def average(self) -> float:
        return round(self.total / self.count, 2) if self.count else 0.0


@dataclass(frozen=True)
class GroupSummary:
    """Where a set of shots landed, in target-face units."""
    center_x: float
    center_y: float
    offset: float  # centroid distance from the target center
    spread: float  # mean distance of shots from the centroid


def _flatten(ends: Iterable[End]) -> List[Shot]:
    return [shot for end in ends for shot in end]


def arrow_stats(ends: Iterable[End]) -> List[ArrowStats]:
    """
    Per physical arrow: how many times it was shot and what it scored.
    Shots without an arrow number are skipped.
    """
    totals: Dict[int, List[int]] = {}
    for shot in _flatten(ends):
        if shot.arrow_index is None:
            continue
        totals.setdefault(shot.arrow_index, []).append(shot.ring)

    return [
        ArrowStats(arrow_index=i, count=len(rings), total=sum(rings))
        for i, rings in sorted(totals.items())
    ]


def group_summary(shots: Sequence[Shot]) -> Optional[GroupSummary]:
    if not shots:
        return None

    points = np.array([[s.x, s.y] for s in shots], dtype=np.float64)
    centroid = points.mean(axis=0)
    spread = np.linalg.norm(points - centroid, axis=1).mean()
    offset = np.hypot(centroid[0] - TARGET_CENTER[0], centroid[1] - TARGET_CENTER[1])

    return GroupSummary(
        center_x=float(centroid[0]),
        center_y=float(centroid[1]),
        offset=float(offset),
        spread=float(spread),
    )


def score_distribution(ends: Iterable[End]) -> Dict[object, int]:
    """Count of shots per label: "X", 10 .. 1, "M"."""
    counts: Dict[object, int] = {INNER_TEN_LABEL: 0}
    for ring in range(10, 0, -1):
        counts[ring] = 0
    counts[MISS_LABEL] = 0

    for shot in _flatten(ends):
        counts[shot.label] += 1
    return counts
