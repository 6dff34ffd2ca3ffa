import logging

from time_tracker import CycleOutcome, TrackingLoop


def test_query_window_matches_period(loop, source, clock):
    loop.run_cycle(clock.now)
    assert source.queries == [(clock.now - 5.0, clock.now)]


def test_resumed_and_paused_events(loop, source, ledger, sink, clock):
    t0 = clock.now
    source.resumed("app.a", t0 - 4)
    source.paused("app.a", t0 - 1)
    source.resumed("app.b", t0 - 1)

    assert loop.run_cycle(t0) is CycleOutcome.RECONCILED
    assert sink.subjects == ["app.a"]
    assert sink.records[0].duration_seconds == 3
    assert ledger.open_app_ids == {"app.b"}


def test_reconcile_closes_apps_that_left_silently(loop, source, ledger, sink, clock):
    t0 = clock.now
    ledger.open("app.a", t0 - 20)
    source.resumed("app.b", t0 - 2)

    loop.run_cycle(t0)

    assert sink.subjects == ["app.a"]
    assert sink.records[0].end_time == t0
    assert ledger.open_app_ids == {"app.b"}


def test_system_packages_are_ignored(loop, source, ledger, sink, clock):
    t0 = clock.now
    ledger.open("app.a", t0 - 20)
    source.resumed("com.android.systemui", t0 - 3)
    source.paused("com.android.systemui", t0 - 1)

    # only system events: counts as a quiet cycle, nothing closes
    assert loop.run_cycle(t0) is not CycleOutcome.RECONCILED
    assert ledger.open_app_ids == {"app.a"}
    assert sink.records == []

    clock.advance(60)
    source.resumed("com.android.launcher", clock.now - 3)
    source.resumed("app.c", clock.now - 2)
    loop.run_cycle(clock.now)
    ledger.close_all(clock.now + 10)
    assert "com.android.systemui" not in sink.subjects
    assert "com.android.launcher" not in sink.subjects


def test_quiet_cycle_with_unknown_fallback_keeps_sessions(loop, source, ledger, sink, clock):
    t0 = clock.now
    ledger.open("app.a", t0)

    clock.advance(5)
    assert loop.run_cycle(clock.now) is CycleOutcome.NO_ACTION
    assert ledger.is_open("app.a")
    assert sink.records == []

    ledger.close("app.a", t0 + 10)
    assert sink.records[0].duration_seconds == 10


def test_quiet_cycle_self_foreground_skips(loop, source, ledger, flag, clock):
    ledger.restore({"app.a": clock.now - 30}, open_ids=[])
    source.fallback = "app.a"
    flag.set()

    assert loop.run_cycle(clock.now) is CycleOutcome.SELF_FOREGROUND
    assert ledger.is_orphaned("app.a")


def test_quiet_cycle_fallback_with_open_sessions_is_inconclusive(loop, source, ledger, sink, clock):
    ledger.open("app.a", clock.now - 30)
    source.fallback = "app.b"

    assert loop.run_cycle(clock.now) is CycleOutcome.INCONCLUSIVE
    assert ledger.is_open("app.a")
    assert sink.records == []


def test_quiet_cycle_closes_orphan_of_fallback_app(loop, source, ledger, sink, clock):
    ledger.restore({"app.a": clock.now - 30}, open_ids=[])
    source.fallback = "app.a"

    assert loop.run_cycle(clock.now) is CycleOutcome.ORPHAN_CLOSED
    assert sink.subjects == ["app.a"]
    assert sink.records[0].duration_seconds == 30


def test_system_fallback_is_not_used(loop, source, ledger, sink, clock):
    ledger.open("app.a", clock.now - 30)
    source.fallback = "com.android.systemui"

    assert loop.run_cycle(clock.now) is CycleOutcome.NO_ACTION
    assert ledger.is_open("app.a")


def test_idle_close_disabled_by_default(loop, ledger, clock):
    ledger.open("app.a", clock.now)
    loop.start()
    for _ in range(10):
        clock.advance(5)
        loop.run_cycle(clock.now)
    assert ledger.is_open("app.a")


def test_idle_close_when_enabled(ledger, source, worker, sink, clock):
    loop = TrackingLoop(ledger, source, worker, period=5.0, idle_close_after=15.0, clock=clock)
    loop.start()
    ledger.open("app.a", clock.now)

    clock.advance(10)
    assert loop.run_cycle(clock.now) is CycleOutcome.NO_ACTION
    clock.advance(5)
    assert loop.run_cycle(clock.now) is CycleOutcome.IDLE_CLOSED
    assert sink.subjects == ["app.a"]


def test_source_failure_skips_cycle(loop, source, ledger, clock, caplog):
    ledger.open("app.a", clock.now - 30)
    source.fail_next = True
    with caplog.at_level(logging.ERROR):
        assert loop.run_cycle(clock.now) is CycleOutcome.SOURCE_FAILED
    assert ledger.is_open("app.a")
    assert any("Event query failed" in r.message for r in caplog.records)


def test_tick_reschedules_only_while_running(loop, worker, source, clock):
    loop.start()
    assert worker.run_pending() == 1
    assert len(source.queries) == 1
    assert worker.next_due() == clock.now + 5.0

    clock.advance(5)
    worker.run_pending()
    assert len(source.queries) == 2

    loop.stop()
    assert worker.pending() == 0
    clock.advance(5)
    assert worker.run_pending() == 0
    assert len(source.queries) == 2


def test_start_twice_posts_one_tick(loop, worker):
    loop.start()
    loop.start()
    assert worker.pending() == 1


class SlowSource:
    """Event source whose every query takes `cost` seconds of clock time."""

    def __init__(self, inner, clock, cost):
        self.inner = inner
        self.clock = clock
        self.cost = cost

    def query_events(self, start, end):
        events = list(self.inner.query_events(start, end))
        self.clock.advance(self.cost)
        return events

    def most_recent_foreground_app(self):
        return self.inner.most_recent_foreground_app()


def test_slow_cycles_leave_no_gap_between_windows(ledger, source, worker, clock):
    t0 = clock.now
    loop = TrackingLoop(ledger, SlowSource(source, clock, 0.5), worker, period=5.0, clock=clock)
    source.resumed("app.b", t0 + 0.2)

    loop.start()
    for _ in range(3):
        worker.run_pending()
        clock.now = worker.next_due()

    windows = [(round(s - t0, 3), round(e - t0, 3)) for s, e in source.queries]
    assert windows == [(-5.0, 0.0), (0.0, 5.0), (5.0, 10.0)]
    assert ledger.is_open("app.b")


def test_late_tick_widens_window_instead_of_skipping(loop, worker, source, clock):
    t0 = clock.now
    loop.start()
    worker.run_pending()

    source.resumed("app.a", t0 + 6)
    clock.advance(12)  # worker ran late
    worker.run_pending()

    assert source.queries[-1] == (t0, t0 + 12)
    assert loop.ledger.is_open("app.a")
