"""Interval-windowed sum collector (rate / throughput).

Samples are summed per interval. Every ``interval_length`` seconds the
interval sum is emitted via ``output_with_time`` as (window end, sum) and
via ``output_without_time`` as (sum), then reset to zero. The overall sum is
never reset and is emitted once on finalize, after the tail interval has
been flushed.

The timestamp of a window is always computed as interval start plus
interval length instead of being read from the clock, so the tail window
flushed at teardown carries the same kind of timestamp as every other one.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from simstats.collectors.base import Collector, SumLanes, TraceSource
from simstats.config import IntervalRateConfig
from simstats.scheduler import ScheduledEvent, Scheduler

logger = logging.getLogger(__name__)


@dataclass
class IntervalRateResult:
    """Everything an interval rate collector emitted.

    Attributes:
        intervals: (window end in the configured time unit, sum) per window
        overall_sum: Whole-run sum, None when the collector is disabled
    """

    intervals: List[Tuple[float, float]] = field(default_factory=list)
    overall_sum: Optional[float] = None


class IntervalRateCollector(Collector):
    """Sums samples per fixed time window.

    Exactly one input lane is active, selected by ``input_data_type``:
    DOUBLE sums floats, UINTEGER sums exact integers.

    Usage:
        collector = IntervalRateCollector(IntervalRateConfig(interval_length=1.0), scheduler)
        collector.output_with_time.connect(aggregator.sink("throughput"))
        collector.activate()
        scheduler.run(until=10.0)
        collector.finalize()
    """

    def __init__(
        self,
        config: IntervalRateConfig,
        scheduler: Scheduler,
        name: Optional[str] = None,
    ) -> None:
        super().__init__(name=name, enabled=config.enabled)
        self.config = config
        self._scheduler = scheduler
        self._lanes = SumLanes(config.input_data_type)
        self._interval_start = scheduler.now()
        self._next_reset: Optional[ScheduledEvent] = None
        self._emitted: List[Tuple[float, float]] = []

        self.output_overall = TraceSource('OutputOverall')
        self.output_with_time = TraceSource('OutputWithTime')
        self.output_without_time = TraceSource('OutputWithoutTime')

    @property
    def interval_start(self) -> float:
        """Start of the current window in seconds."""
        return self._interval_start

    @property
    def interval_sum(self) -> float:
        return float(self._lanes.interval_sum)

    @property
    def overall_sum(self) -> float:
        return float(self._lanes.overall_sum)

    @property
    def has_pending_reset(self) -> bool:
        return self._next_reset is not None and not self._next_reset.cancelled

    def _on_activate(self) -> None:
        self._interval_start = self._scheduler.now()
        self._arm()

    def _on_sample(self, old_value, new_value) -> None:
        self._lanes.add(new_value)

    def _arm(self) -> None:
        """Schedule the next window end, superseding any pending one."""
        if self._next_reset is not None:
            self._next_reset.cancel()
            self._next_reset = None
        if self.config.interval_length > 0:
            self._next_reset = self._scheduler.schedule(self.config.interval_length, self._new_interval)

    def _new_interval(self) -> None:
        self._next_reset = None
        self._flush()
        self._interval_start = self._scheduler.now()
        self._arm()

    def _flush(self) -> None:
        """Emit the current window and zero its sum."""
        if self.enabled:
            window_end = self._interval_start + self.config.interval_length
            time = self.config.time_unit.from_seconds(window_end)
            value = float(self._lanes.interval_sum)
            self._emitted.append((time, value))
            logger.debug(f"{self.name}: interval ending at {time} summed to {value}")
            self.output_with_time(time, value)
            self.output_without_time(value)
        self._lanes.reset_interval()

    def _on_finalize(self) -> IntervalRateResult:
        if self._next_reset is not None:
            self._next_reset.cancel()
            self._next_reset = None

        # Flush the partial tail window unless nothing happened in it
        if self.config.interval_length > 0 and (
            self._lanes.interval_samples > 0 or self._scheduler.now() > self._interval_start
        ):
            self._flush()

        result = IntervalRateResult(intervals=list(self._emitted))
        if self.enabled:
            result.overall_sum = float(self._lanes.overall_sum)
            self.output_overall(result.overall_sum)
        return result
