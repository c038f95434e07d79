"""Host scheduler boundary used by time-aware collectors.

Collectors only need two primitives from the simulation engine: the current
time and "call this back after a delay". Any engine providing them satisfies
the Scheduler protocol. EventScheduler is a minimal next-event-driven engine
for tests and offline replays.
"""

import heapq
import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Protocol, Tuple

logger = logging.getLogger(__name__)


@dataclass
class ScheduledEvent:
    """Handle of a pending callback.

    Attributes:
        time: Absolute firing time in seconds
        callback: Callable invoked when the event fires
        args: Positional arguments passed to the callback
        cancelled: Set by cancel(); cancelled events are skipped
    """

    time: float
    callback: Callable[..., Any]
    args: Tuple[Any, ...] = field(default_factory=tuple)
    cancelled: bool = False

    def cancel(self) -> None:
        """Prevent the event from firing."""
        self.cancelled = True


class Scheduler(Protocol):
    """The two scheduling primitives collectors rely on."""

    def now(self) -> float:
        ...

    def schedule(self, delay: float, callback: Callable[..., Any], *args: Any) -> ScheduledEvent:
        ...


class EventScheduler:
    """Single-threaded discrete-event scheduler.

    Events fire in time order; events scheduled for the same time fire in
    the order they were scheduled.

    Usage:
        scheduler = EventScheduler()
        scheduler.schedule(0.5, collector.trace_sink, 0.0, 3.0)
        scheduler.run(until=2.0)
    """

    def __init__(self, start_time: float = 0.0) -> None:
        self._now = float(start_time)
        self._queue: List[Tuple[float, int, ScheduledEvent]] = []
        self._sequence = itertools.count()

    def now(self) -> float:
        """Return the current simulation time in seconds."""
        return self._now

    def schedule(self, delay: float, callback: Callable[..., Any], *args: Any) -> ScheduledEvent:
        """Schedule callback(*args) to fire delay seconds from now.

        Raises:
            ValueError: If delay is negative
        """
        if delay < 0:
            raise ValueError(f"Cannot schedule an event in the past (delay={delay})")
        event = ScheduledEvent(time=self._now + delay, callback=callback, args=args)
        heapq.heappush(self._queue, (event.time, next(self._sequence), event))
        return event

    def schedule_now(self, callback: Callable[..., Any], *args: Any) -> ScheduledEvent:
        """Schedule callback(*args) at the current time, after pending same-time events."""
        return self.schedule(0.0, callback, *args)

    @property
    def pending(self) -> int:
        """Number of events still queued and not cancelled."""
        return sum(1 for _, _, event in self._queue if not event.cancelled)

    def run(self, until: Optional[float] = None) -> None:
        """Process events in order.

        Args:
            until: Stop before the first event later than this time and
                advance the clock to it. None runs until the queue is empty.
        """
        while self._queue:
            event_time, _, event = self._queue[0]
            if until is not None and event_time > until:
                break
            heapq.heappop(self._queue)
            if event.cancelled:
                continue
            self._now = event_time
            event.callback(*event.args)

        if until is not None and until > self._now:
            self._now = until
        logger.debug(f"Scheduler stopped at t={self._now}")
