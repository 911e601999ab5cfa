from bullseye.session import ScoringSession
from bullseye.storage import InMemorySnapshotStore
from bullseye.timer import MatchTimer, match_duration_for

store = InMemorySnapshotStore()

# One end on the clock, driven by hand instead of a real tick source
timer = MatchTimer(
    match_seconds=match_duration_for("Recurve"),
    on_cue=lambda cue: print("Whistle x", cue.pulse_count),
)
timer.start()
for _ in range(10 + 60):
    timer.tick()
timer.force_expire()

session = ScoringSession.begin(distance_meters=18, arrows_per_end=3, store=store)

session.score_point(50.0, 50.0, arrow_index=1)
session.score_point(53.1, 48.7, arrow_index=2)
session.score_point(61.0, 57.5, arrow_index=3)
print("End total:", session.current_end_total())

print("\nTrying a fourth arrow on a full end...")
print("Accepted:", session.score_point(50.0, 50.0) is not None)

session.submit_end()

print("\nInterrupted, resuming from snapshot...")
session = ScoringSession.restore(store)

session.score_point(50.0, 95.0, arrow_index=1)
print("Running:", session.running_total(), "/", session.max_possible())

record = session.finish()
print(record.to_dict())
