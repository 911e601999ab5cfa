from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path
from typing import List, Tuple

from bullseye import ends as end_ops
from bullseye.config import TICK_INTERVAL_SEC
from bullseye.models import CueEvent, End, SessionState
from bullseye.resolver import resolve
from bullseye.stats import arrow_stats, group_summary, score_distribution
from bullseye.timer import MatchTimer, format_clock, match_duration_for, phase_caption


def load_ends(path: Path) -> Tuple[int, List[End]]:
    """
    Read ends from a saved snapshot or a finalized session record.
    Returns (distance_meters, ends).
    """
    if not path.exists():
        raise FileNotFoundError(f"Session file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if "endsSnapshot" in data:
        arrows_per_end = int(data["arrowsPerEnd"])
        ends = [End.from_list(arrows_per_end, e) for e in data["endsSnapshot"]]
        return int(data["distanceMeters"]), ends

    state = SessionState.from_dict(data)
    return state.distance_meters, list(state.ends)


# =========================================================
# COMMANDS
# =========================================================

def cmd_resolve(args) -> int:
    result = resolve(args.x, args.y)
    print(f"({args.x}, {args.y}) -> {result.label} (ring {result.ring})")
    return 0


def cmd_summary(args) -> int:
    distance, ends = load_ends(Path(args.path))

    shots = [s for e in ends for s in e]
    total = sum(end_ops.end_total(e) for e in ends)

    print(f"Distance: {distance}m")
    print(f"Total: {total} / {10 * len(shots)} over {len(shots)} arrows")

    running = 0
    for i, end in enumerate(ends, 1):
        running += end_ops.end_total(end)
        labels = " ".join(str(s.label) for s in end)
        print(f"End {i}: {labels:<20} {end_ops.end_total(end):>3} {running:>5}")

    dist = score_distribution(ends)
    print("Distribution:", ", ".join(f"{k}={v}" for k, v in dist.items() if v))

    for stat in arrow_stats(ends):
        print(f"Arrow #{stat.arrow_index}: avg {stat.average:.2f} over {stat.count}")

    group = group_summary(shots)
    if group is not None:
        print(
            f"Group center ({group.center_x:.1f}, {group.center_y:.1f}) "
            f"offset {group.offset:.1f} spread {group.spread:.1f}"
        )
    return 0


async def run_timer(match_seconds: int, tick_interval: float) -> None:
    loop = asyncio.get_running_loop()
    done = asyncio.Event()

    def on_cue(event: CueEvent):
        print(f"[{phase_caption(timer.phase)}] {format_clock(timer.remaining)} "
              f"{'*' * event.pulse_count} ({event.kind.value})")

    timer = MatchTimer(
        match_seconds=match_seconds,
        on_cue=on_cue,
        on_expire=done.set,
        scheduler=loop,
        tick_interval=tick_interval,
    )
    timer.start()
    try:
        await done.wait()
    finally:
        timer.close()


def cmd_timer(args) -> int:
    seconds = args.seconds or match_duration_for(args.bow)
    print(f"Shooting window: {format_clock(seconds)}")
    try:
        asyncio.run(run_timer(seconds, args.tick))
    except KeyboardInterrupt:
        print("Stopped")
        return 130
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="bullseye")
    ap.add_argument("--verbose", "-v", action="store_true")
    sub = ap.add_subparsers(dest="command", required=True)

    p = sub.add_parser("resolve", help="Score a point on the 0-100 target face")
    p.add_argument("x", type=float)
    p.add_argument("y", type=float)
    p.set_defaults(func=cmd_resolve)

    p = sub.add_parser("summary", help="Print totals for a saved session JSON")
    p.add_argument("path", type=str)
    p.set_defaults(func=cmd_summary)

    p = sub.add_parser("timer", help="Run a competition end countdown")
    p.add_argument("--bow", type=str, default="", help="Bow category (indian = short window)")
    p.add_argument("--seconds", type=int, default=0, help="Override the shooting window")
    p.add_argument("--tick", type=float, default=TICK_INTERVAL_SEC, help="Seconds per time unit")
    p.set_defaults(func=cmd_timer)

    return ap


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    try:
        return args.func(args)
    except FileNotFoundError as e:
        print("ERROR:", e)
    except (KeyError, TypeError, ValueError, OverflowError) as e:
        print("INVALID SESSION FILE:", e)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
