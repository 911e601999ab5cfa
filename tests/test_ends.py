import random

import pytest

from bullseye import ends
from bullseye.exceptions import CapacityExceeded
from bullseye.models import End, Shot


# ---------------------------------------------------------
# Helpers
# ---------------------------------------------------------

def shot(ring=9, inner_ten=False, arrow_index=None):
    return Shot(x=50.0, y=50.0, ring=ring, inner_ten=inner_ten, arrow_index=arrow_index)


def end_of(*rings, capacity=3):
    end = ends.new_end(capacity)
    for r in rings:
        end = ends.append(end, shot(r))
    return end


# ---------------------------------------------------------
# append
# ---------------------------------------------------------

def test_append_returns_new_end():
    empty = ends.new_end(3)

    one = ends.append(empty, shot(8))

    assert len(empty) == 0
    assert len(one) == 1
    assert one.shots[0].ring == 8


def test_append_keeps_order():
    end = end_of(7, 9, 10)

    assert [s.ring for s in end] == [7, 9, 10]


def test_append_to_full_end_raises():
    end = end_of(9, 9, 9)

    with pytest.raises(CapacityExceeded):
        ends.append(end, shot(9))


def test_end_constructor_rejects_overfill():
    with pytest.raises(ValueError):
        End(capacity=3, shots=(shot(), shot(), shot(), shot()))


def test_end_capacity_must_be_3_or_6():
    with pytest.raises(ValueError):
        End(capacity=4)


# ---------------------------------------------------------
# remove_last
# ---------------------------------------------------------

def test_remove_last_drops_latest():
    end = ends.remove_last(end_of(7, 9, 10))

    assert [s.ring for s in end] == [7, 9]


def test_remove_last_on_empty_is_noop():
    empty = ends.new_end(6)

    assert ends.remove_last(empty) is empty
    assert len(ends.remove_last(ends.remove_last(empty))) == 0


def test_capacity_invariant_under_random_ops():
    rng = random.Random(7)
    end = ends.new_end(6)

    for _ in range(500):
        if rng.random() < 0.6:
            try:
                end = ends.append(end, shot(rng.randint(0, 10)))
            except CapacityExceeded:
                assert ends.is_complete(end)
        else:
            end = ends.remove_last(end)

        assert 0 <= len(end) <= end.capacity


# ---------------------------------------------------------
# Totals
# ---------------------------------------------------------

def test_end_total_counts_x_as_ten_and_miss_as_zero():
    end = ends.new_end(3)
    end = ends.append(end, shot(10, inner_ten=True))
    end = ends.append(end, shot(0))
    end = ends.append(end, shot(7))

    assert ends.end_total(end) == 17
    assert ends.x_count(end) == 1


def test_empty_end_total_is_zero():
    assert ends.end_total(ends.new_end(3)) == 0


def test_is_complete():
    assert not ends.is_complete(end_of(9, 9))
    assert ends.is_complete(end_of(9, 9, 9))
    assert not ends.is_complete(end_of(9, 9, 9, capacity=6))
