from bullseye.exceptions import CapacityExceeded
from bullseye.models import End, Shot


def new_end(arrows_per_end: int) -> End:
    return End(capacity=arrows_per_end)


def append(end: End, shot: Shot) -> End:
    """
    Return a new End with shot appended.
    Raises CapacityExceeded when the end is already full.
    """
    if is_complete(end):
        raise CapacityExceeded(f"End already holds {end.capacity} shots")

    return End(capacity=end.capacity, shots=end.shots + (shot,))


def remove_last(end: End) -> End:
    """Drop the most recent shot. An empty end is returned unchanged."""
    if not end.shots:
        return end

    return End(capacity=end.capacity, shots=end.shots[:-1])


def end_total(end: End) -> int:
    # X counts as 10 (ring is already 10), miss counts as 0
    return sum(shot.ring for shot in end)


def x_count(end: End) -> int:
    return sum(1 for shot in end if shot.inner_ten)


def is_complete(end: End) -> bool:
    return len(end) == end.capacity
