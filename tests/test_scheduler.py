from buyback_bot.core.scheduler import CycleScheduler


class FakeTime:
    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list = []

    def clock(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def test_trigger_refuses_while_cycle_in_flight() -> None:
    scheduler = CycleScheduler(60)
    nested: list = []

    def cycle() -> None:
        assert scheduler.is_running
        nested.append(scheduler.trigger(lambda: None))

    assert scheduler.trigger(cycle) is True
    assert nested == [False]
    assert scheduler.fired == 1
    assert scheduler.refused == 1
    assert not scheduler.is_running


def test_trigger_contains_cycle_errors() -> None:
    scheduler = CycleScheduler(60)

    def boom() -> None:
        raise RuntimeError("cycle failed")

    assert scheduler.trigger(boom) is True

    assert not scheduler.is_running
    assert scheduler.trigger(lambda: None) is True


def test_run_is_fixed_rate() -> None:
    t = FakeTime()
    scheduler = CycleScheduler(60, sleep=t.sleep, clock=t.clock)
    starts: list = []

    def cycle() -> None:
        starts.append(t.now)
        t.now += 10

    scheduler.run(cycle, keep_running=lambda: len(starts) < 3)

    assert starts == [0.0, 60.0, 120.0]
    assert t.sleeps == [50.0, 50.0]


def test_overrunning_cycle_starts_next_immediately() -> None:
    t = FakeTime()
    scheduler = CycleScheduler(60, sleep=t.sleep, clock=t.clock)
    starts: list = []

    def cycle() -> None:
        starts.append(t.now)
        t.now += 90

    scheduler.run(cycle, keep_running=lambda: len(starts) < 3)

    assert starts == [0.0, 90.0, 180.0]
    assert t.sleeps == [0.0, 0.0]
    assert scheduler.refused == 0


def test_run_can_wait_one_interval_first() -> None:
    t = FakeTime()
    scheduler = CycleScheduler(60, sleep=t.sleep, clock=t.clock)
    starts: list = []

    scheduler.run(lambda: starts.append(t.now), keep_running=lambda: not starts, run_immediately=False)

    assert starts == [60.0]
    assert t.sleeps == [60]


def test_run_keeps_firing_after_a_cycle_raises() -> None:
    t = FakeTime()
    scheduler = CycleScheduler(60, sleep=t.sleep, clock=t.clock)
    starts: list = []

    def cycle() -> None:
        starts.append(t.now)
        if len(starts) == 1:
            raise RuntimeError("database is locked")

    scheduler.run(cycle, keep_running=lambda: len(starts) < 2)

    assert starts == [0.0, 60.0]
