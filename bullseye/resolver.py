from __future__ import annotations

import math
from typing import Sequence, Tuple

import numpy as np

from bullseye.config import (
    ARROW_RADIUS,
    INNER_TEN_RADIUS,
    RING_WIDTH,
    TARGET_CENTER,
)
from bullseye.models import ScoreResult

# Normalized coordinates carry no meaning below this many decimals.
_DISTANCE_DECIMALS = 9


def effective_distance(x: float, y: float) -> float:
    """
    Distance from the target center minus the arrow shaft radius, floored at 0.

    The arrow scores the best ring its shaft touches, so the shaft radius is
    taken off before ring lookup.
    """
    cx, cy = TARGET_CENTER
    d = math.hypot(x - cx, y - cy)
    if not math.isfinite(d):
        return math.inf
    return round(max(0.0, d - ARROW_RADIUS), _DISTANCE_DECIMALS)


def ring_for_distance(effective: float) -> int:
    """
    Ring value for an effective distance.

    A shot exactly on a line between two rings scores the lower ring:
    ring 10 covers [0, 5), ring 9 covers [5, 10), ... ring 1 covers [45, 50).
    Anything at or beyond 50 is a miss, as is a non-finite distance.
    """
    if not math.isfinite(effective):
        return 0
    ring = 10 - math.floor(effective / RING_WIDTH)
    return max(0, min(10, ring))


def resolve(x: float, y: float) -> ScoreResult:
    """
    Score a point on the target face.

    Pure and rotationally symmetric: only the distance from center matters.
    A non-finite coordinate is a miss.
    """
    effective = effective_distance(x, y)
    ring = ring_for_distance(effective)

    if ring == 0:
        return ScoreResult(ring=0, inner_ten=False)

    return ScoreResult(ring=ring, inner_ten=ring == 10 and effective < INNER_TEN_RADIUS)


def resolve_many(
    xs: Sequence[float], ys: Sequence[float]
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Vectorised resolve().

    Returns (rings, inner_tens) as int and bool arrays with the same
    boundary semantics as the scalar version.
    """
    x = np.asarray(xs, dtype=np.float64)
    y = np.asarray(ys, dtype=np.float64)
    if x.shape != y.shape:
        raise ValueError("xs and ys must have the same shape")

    cx, cy = TARGET_CENTER
    d = np.hypot(x - cx, y - cy)
    effective = np.round(np.maximum(0.0, d - ARROW_RADIUS), _DISTANCE_DECIMALS)

    rings = np.clip(10 - np.floor(effective / RING_WIDTH), 0, 10)
    rings = np.where(np.isfinite(effective), rings, 0).astype(np.int64)
    inner_tens = (rings == 10) & (effective < INNER_TEN_RADIUS)
    return rings, inner_tens
