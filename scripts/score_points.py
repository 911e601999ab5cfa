# scripts/score_points.py
from __future__ import annotations

import argparse
import json
from pathlib import Path

from bullseye.config import DEFAULT_ARROWS_PER_END, DEFAULT_DISTANCE
from bullseye.models import Shot
from bullseye.resolver import resolve_many
from bullseye.session import ScoringSession


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--points", type=str, required=True, help="JSON list of [x, y] or [x, y, arrow]")
    ap.add_argument("--distance", type=int, default=DEFAULT_DISTANCE)
    ap.add_argument("--arrows", type=int, default=DEFAULT_ARROWS_PER_END, help="Arrows per end (3 or 6)")
    ap.add_argument("--out", type=str, default="sessions/finalized.json")
    args = ap.parse_args()

    with open(args.points, "r", encoding="utf-8") as f:
        points = json.load(f)
    if not isinstance(points, list) or not points:
        raise SystemExit("ERROR: --points must be a non-empty JSON list")

    xs = [float(p[0]) for p in points]
    ys = [float(p[1]) for p in points]
    rings, inner_tens = resolve_many(xs, ys)

    session = ScoringSession.begin(args.distance, args.arrows)
    for p, x, y, ring, inner in zip(points, xs, ys, rings, inner_tens):
        arrow = int(p[2]) if len(p) > 2 else None
        if len(session.state.current_end) == args.arrows:
            session.submit_end()
        session.record_shot(Shot(x=x, y=y, ring=int(ring), inner_ten=bool(inner), arrow_index=arrow))

    record = session.finish()

    out_path = Path(args.out)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with open(out_path, "w", encoding="utf-8") as f:
        json.dump(record.to_dict(), f, ensure_ascii=False, indent=2)

    print(f"Saved: {out_path}")
    print(f"Score: {record.total_score} / {10 * record.total_arrows}")


if __name__ == "__main__":
    main()
