"""Tests for the time-budgeted rebuild scheduler."""

from shapely.errors import GEOSException

import app.engine.level as level_module
from app.engine.config import SchedulerConfig
from app.engine.scheduler import RebuildScheduler
from app.engine.topology import TopologyEngine
from tests.conftest import room


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _engine_with_levels(n: int) -> TopologyEngine:
    engine = TopologyEngine()
    for i in range(n):
        engine.add_feature(room(f"r{i}", i * 20, 0, i * 20 + 4, 4))
    assert engine.get_level_count(0) == n
    return engine


def _slow_rebuilds(engine, clock, monkeypatch, seconds: float = 0.2) -> None:
    original = engine.rebuild_wall

    def slow(level, force=False):
        clock.now += seconds
        return original(level, force)

    monkeypatch.setattr(engine, "rebuild_wall", slow)


def test_one_level_per_pass_when_each_exceeds_budget(monkeypatch):
    engine = _engine_with_levels(3)
    clock = FakeClock()
    _slow_rebuilds(engine, clock, monkeypatch)
    scheduler = RebuildScheduler(engine, SchedulerConfig(budget_ms=100), clock=clock)

    passes = []
    while engine.dirty_levels():
        passes.append(scheduler.run_pass(0))
        assert len(passes) <= 3

    assert [p.rebuilt for p in passes] == [[0], [1], [2]]
    assert [p.remaining for p in passes] == [2, 1, 0]
    assert [p.deferred for p in passes] == [True, True, False]


def test_fast_rebuilds_finish_in_one_pass():
    engine = _engine_with_levels(4)
    scheduler = RebuildScheduler(engine, clock=FakeClock())
    result = scheduler.run_pass()
    assert len(result.rebuilt) == 4
    assert not result.deferred
    assert engine.dirty_levels() == []


def test_clean_levels_are_not_revisited():
    engine = _engine_with_levels(2)
    scheduler = RebuildScheduler(engine, clock=FakeClock())
    scheduler.run_pass()
    assert scheduler.run_pass().rebuilt == []


def test_pass_limited_to_level_and_extent():
    engine = _engine_with_levels(2)
    engine.add_feature(room("up", 0, 0, 4, 4, level="1"))
    scheduler = RebuildScheduler(engine, clock=FakeClock())

    result = scheduler.run_pass(0, (-1, -1, 5, 5))
    assert result.rebuilt == [0]
    assert len(engine.dirty_levels()) == 2


def test_defer_hook_schedules_one_follow_up(monkeypatch):
    engine = _engine_with_levels(3)
    clock = FakeClock()
    _slow_rebuilds(engine, clock, monkeypatch)
    deferred = []
    scheduler = RebuildScheduler(
        engine,
        SchedulerConfig(budget_ms=100, retry_delay_ms=500),
        clock=clock,
        defer=lambda delay, callback: deferred.append((delay, callback)),
    )

    scheduler.run_pass(0)
    assert len(deferred) == 1
    assert deferred[0][0] == 0.5
    assert scheduler.pending

    # A manual over-budget pass while one is pending does not stack callbacks.
    manual = scheduler.run_pass(0)
    assert manual.rebuilt == [1]
    assert manual.deferred
    assert len(deferred) == 1
    assert scheduler.pending

    _, callback = deferred.pop()
    result = callback()
    assert result.rebuilt == [2]
    assert not result.deferred
    assert deferred == []
    assert engine.dirty_levels() == []
    assert not scheduler.pending


def test_follow_up_pass_can_schedule_the_next(monkeypatch):
    engine = _engine_with_levels(3)
    clock = FakeClock()
    _slow_rebuilds(engine, clock, monkeypatch)
    deferred = []
    scheduler = RebuildScheduler(
        engine,
        SchedulerConfig(budget_ms=100),
        clock=clock,
        defer=lambda delay, callback: deferred.append(callback),
    )

    scheduler.run_pass(0)
    assert deferred.pop()().rebuilt == [1]
    assert len(deferred) == 1
    assert deferred.pop()().rebuilt == [2]
    assert deferred == []
    assert engine.dirty_levels() == []


def test_failed_level_does_not_block_later_levels(monkeypatch):
    engine = _engine_with_levels(3)
    original = level_module.synthesize_walls

    def fragile(sources, config):
        if any(f.id == "r0" for f in sources.walled_rooms):
            raise GEOSException("TopologyException: side location conflict at 2 2")
        return original(sources, config)

    monkeypatch.setattr(level_module, "synthesize_walls", fragile)
    scheduler = RebuildScheduler(engine, clock=FakeClock())

    result = scheduler.run_pass()
    assert result.failed == [0]
    assert result.rebuilt == [1, 2]
    assert engine.dirty_levels() == []
    assert engine.levels()[0].rebuild_error is not None

    again = scheduler.run_pass()
    assert again.failed == []
    assert again.rebuilt == []
