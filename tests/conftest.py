import pytest

from bullseye.storage import InMemorySnapshotStore


class FakeHandle:
    def __init__(self, scheduler, callback, args):
        self._scheduler = scheduler
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self):
        self.cancelled = True
        if self in self._scheduler.pending:
            self._scheduler.pending.remove(self)


class FakeScheduler:
    """call_later() stand-in: callbacks run only when advance() is called."""

    def __init__(self):
        self.pending = []
        self.delays = []

    def call_later(self, delay, callback, *args):
        handle = FakeHandle(self, callback, args)
        self.pending.append(handle)
        self.delays.append(delay)
        return handle

    def advance(self, ticks=1):
        for _ in range(ticks):
            if not self.pending:
                return
            handle = self.pending.pop(0)
            handle.callback(*handle.args)


class FakeClock:
    def __init__(self, now_ms=1_700_000_000_000):
        self.now_ms = now_ms

    def __call__(self):
        return self.now_ms

    def advance_minutes(self, minutes):
        self.now_ms += int(minutes * 60 * 1000)


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return InMemorySnapshotStore(now_ms=clock)
