import pytest

from simulai.services.session_timer import SessionTimer, TimerExpired


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


def test_elapsed_accumulates_across_segments(clock):
    timer = SessionTimer(600, clock=clock)
    timer.start()
    clock.advance(30)
    assert timer.running
    assert timer.elapsed == 30
    assert timer.stop() == 30
    assert not timer.running

    clock.advance(100)  # paused time does not count
    timer.start()
    clock.advance(15)
    assert timer.elapsed == 45
    assert timer.remaining == 555


def test_start_is_idempotent(clock):
    timer = SessionTimer(60, clock=clock)
    timer.start()
    clock.advance(10)
    timer.start()
    clock.advance(10)
    assert timer.elapsed == 20


def test_reconcile_subtracts_partial_elapsed(clock):
    timer = SessionTimer(1800, clock=clock)
    assert timer.reconcile(600, partial_elapsed=200) == 1000
    assert timer.remaining == 1000


def test_reconcile_is_clamped(clock):
    timer = SessionTimer(600, clock=clock)
    assert timer.reconcile(-300) == 600
    assert timer.reconcile(100, partial_elapsed=500) == 0
    with pytest.raises(TimerExpired):
        timer.start()


def test_tick_fires_expiry_once(clock):
    expired = []
    timer = SessionTimer(60, clock=clock, on_expire=lambda: expired.append(True))
    timer.start()
    clock.advance(30)
    assert timer.tick() is False

    clock.advance(45)
    assert timer.tick() is True
    assert not timer.running
    assert timer.remaining == 0
    assert timer.elapsed == 60
    assert timer.tick() is True
    assert expired == [True]


def test_snapshot_and_restore(clock):
    timer = SessionTimer(300, clock=clock)
    timer.reconcile(50)
    timer.start()
    clock.advance(40)
    snapshot = timer.snapshot()
    assert snapshot == {"budget": 300.0, "base_remaining": 250.0, "elapsed": 40.0}

    restored = SessionTimer.restore(snapshot, clock=clock)
    assert not restored.running
    assert restored.elapsed == 40
    restored.start()
    clock.advance(10)
    assert restored.remaining == 200


def test_negative_budget_is_treated_as_empty(clock):
    timer = SessionTimer(-5, clock=clock)
    assert timer.remaining == 0
    with pytest.raises(TimerExpired):
        timer.start()
