"""Tests for EventScheduler and TraceSource."""

import pytest

from simstats.collectors.base import TraceSource
from simstats.scheduler import EventScheduler

from conftest import Recorder


class TestEventScheduler:
    """Tests for event ordering and clock handling."""

    def test_time_order(self, scheduler):
        fired = []
        scheduler.schedule(2.0, fired.append, 'b')
        scheduler.schedule(1.0, fired.append, 'a')
        scheduler.run()
        assert fired == ['a', 'b']
        assert scheduler.now() == 2.0

    def test_same_time_is_fifo(self, scheduler):
        fired = []
        for label in 'xyz':
            scheduler.schedule(1.0, fired.append, label)
        scheduler.run()
        assert fired == ['x', 'y', 'z']

    def test_run_until_stops_and_advances_clock(self, scheduler):
        fired = []
        scheduler.schedule(1.0, fired.append, 1)
        scheduler.schedule(5.0, fired.append, 5)
        scheduler.run(until=3.0)
        assert fired == [1]
        assert scheduler.now() == 3.0
        assert scheduler.pending == 1

    def test_cancelled_event_skipped(self, scheduler):
        fired = []
        event = scheduler.schedule(1.0, fired.append, 1)
        event.cancel()
        scheduler.run()
        assert fired == []
        assert scheduler.pending == 0

    def test_events_scheduled_while_running(self, scheduler):
        fired = []

        def tick():
            fired.append(scheduler.now())
            if len(fired) < 3:
                scheduler.schedule(1.0, tick)

        scheduler.schedule(1.0, tick)
        scheduler.run()
        assert fired == [1.0, 2.0, 3.0]

    def test_negative_delay_rejected(self, scheduler):
        with pytest.raises(ValueError):
            scheduler.schedule(-0.1, lambda: None)

    def test_schedule_now(self):
        scheduler = EventScheduler(start_time=4.0)
        fired = []
        scheduler.schedule_now(lambda: fired.append(scheduler.now()))
        scheduler.run()
        assert fired == [4.0]


class TestTraceSource:
    """Tests for callback fan-out."""

    def test_fan_out(self):
        source = TraceSource('Output')
        first, second = Recorder(), Recorder()
        source.connect(first)
        source.connect(second)
        source(1.0, 2.0)
        assert first.calls == [(1.0, 2.0)]
        assert second.calls == [(1.0, 2.0)]

    def test_disconnect(self):
        source = TraceSource('Output')
        recorder = Recorder()
        source.connect(recorder)
        source.disconnect(recorder)
        assert not source.is_connected
        source(1.0)
        assert len(recorder) == 0
        with pytest.raises(ValueError):
            source.disconnect(recorder)
