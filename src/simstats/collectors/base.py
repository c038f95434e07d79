"""Collector lifecycle, trace sources and typed trace sinks.

A collector is configured at construction, activated once the run starts,
fed samples through ``trace_sink`` (or one of the typed sinks), and
finalized exactly once at the end of the run. Finalization fires the
collector's trace sources and returns its results synchronously.
"""

import logging
import math
import numbers
from enum import Enum
from typing import Any, Callable, List, Optional

from simstats.constants import InputDataType, NumericKind
from simstats.errors import CollectorStateError, InvalidSampleError, NotInitializedError

logger = logging.getLogger(__name__)


class TraceSource:
    """Fan-out of emitted values to connected callbacks.

    Usage:
        collector.output.connect(aggregator.sink("delay"))
        collector.output(1.5, 3.0)  # calls every connected callback
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._callbacks: List[Callable[..., Any]] = []

    def connect(self, callback: Callable[..., Any]) -> None:
        self._callbacks.append(callback)

    def disconnect(self, callback: Callable[..., Any]) -> None:
        """Remove one connection of callback.

        Raises:
            ValueError: If callback is not connected
        """
        self._callbacks.remove(callback)

    @property
    def is_connected(self) -> bool:
        return bool(self._callbacks)

    def __call__(self, *args: Any) -> None:
        for callback in list(self._callbacks):
            callback(*args)

    def __repr__(self) -> str:
        return f"TraceSource({self.name!r}, callbacks={len(self._callbacks)})"


class CollectorState(Enum):
    """Lifecycle stage of a collector."""
    CONFIGURED = "configured"
    ACTIVE = "active"
    FINALIZED = "finalized"


def check_numeric_kind(kind: NumericKind, value: Any) -> None:
    """Verify that value is representable as the given numeric kind.

    Raises:
        InvalidSampleError: If value is not a real number, or an integer
            kind receives a non-integral or out-of-range value
    """
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise InvalidSampleError(f"Expected a {kind.value} sample, got {value!r}")
    if not kind.is_integer:
        return
    if isinstance(value, numbers.Integral):
        integral = int(value)
    elif math.isfinite(value) and float(value).is_integer():
        integral = int(value)
    else:
        raise InvalidSampleError(f"Expected an integral {kind.value} sample, got {value!r}")
    low, high = kind.value_range
    if not low <= integral <= high:
        raise InvalidSampleError(
            f"Sample {integral} out of range for {kind.value} [{low}, {high}]"
        )


class Collector:
    """Base class of every collector.

    Subclasses implement ``_on_activate``, ``_on_sample`` and
    ``_on_finalize``. The base class enforces the lifecycle: samples before
    ``activate()`` raise NotInitializedError, anything after ``finalize()``
    raises CollectorStateError, and a disabled collector ignores samples and
    emits nothing.
    """

    def __init__(self, name: Optional[str] = None, enabled: bool = True) -> None:
        self.name = name or type(self).__name__
        self.enabled = bool(enabled)
        self._state = CollectorState.CONFIGURED
        self._result: Any = None

    @property
    def state(self) -> CollectorState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is CollectorState.ACTIVE

    @property
    def is_finalized(self) -> bool:
        return self._state is CollectorState.FINALIZED

    def activate(self) -> None:
        """Start accepting samples.

        Raises:
            CollectorStateError: If already activated or finalized
        """
        if self._state is not CollectorState.CONFIGURED:
            raise CollectorStateError(f"{self.name} cannot be activated while {self._state.value}")
        self._on_activate()
        self._state = CollectorState.ACTIVE
        logger.debug(f"{self.name} activated")

    def trace_sink(self, old_value: Any, new_value: Any) -> None:
        """Canonical input: the traced value changed from old_value to new_value.

        old_value is informational only; collectors reduce new_value.
        """
        if self._state is CollectorState.CONFIGURED:
            raise NotInitializedError(f"{self.name} has not been activated yet.")
        if self._state is CollectorState.FINALIZED:
            raise CollectorStateError(f"{self.name} received a sample after finalization.")
        if self.enabled:
            self._on_sample(old_value, new_value)

    def trace_sink_typed(self, kind: NumericKind, old_value: Any, new_value: Any) -> None:
        """Range-check new_value against its source kind, then forward it."""
        check_numeric_kind(kind, new_value)
        if kind.is_integer:
            new_value = int(new_value)
        self.trace_sink(old_value, new_value)

    def trace_sink_double(self, old_value: float, new_value: float) -> None:
        self.trace_sink_typed(NumericKind.DOUBLE, old_value, new_value)

    def trace_sink_int8(self, old_value: int, new_value: int) -> None:
        self.trace_sink_typed(NumericKind.INT8, old_value, new_value)

    def trace_sink_int16(self, old_value: int, new_value: int) -> None:
        self.trace_sink_typed(NumericKind.INT16, old_value, new_value)

    def trace_sink_int32(self, old_value: int, new_value: int) -> None:
        self.trace_sink_typed(NumericKind.INT32, old_value, new_value)

    def trace_sink_int64(self, old_value: int, new_value: int) -> None:
        self.trace_sink_typed(NumericKind.INT64, old_value, new_value)

    def trace_sink_uint8(self, old_value: int, new_value: int) -> None:
        self.trace_sink_typed(NumericKind.UINT8, old_value, new_value)

    def trace_sink_uint16(self, old_value: int, new_value: int) -> None:
        self.trace_sink_typed(NumericKind.UINT16, old_value, new_value)

    def trace_sink_uint32(self, old_value: int, new_value: int) -> None:
        self.trace_sink_typed(NumericKind.UINT32, old_value, new_value)

    def trace_sink_uint64(self, old_value: int, new_value: int) -> None:
        self.trace_sink_typed(NumericKind.UINT64, old_value, new_value)

    def finalize(self) -> Any:
        """Emit the final results and release internal state.

        Returns:
            The collector-specific result object

        Raises:
            NotInitializedError: If the collector was never activated
            CollectorStateError: If called a second time
        """
        if self._state is CollectorState.CONFIGURED:
            raise NotInitializedError(f"{self.name} cannot be finalized before activation.")
        if self._state is CollectorState.FINALIZED:
            raise CollectorStateError(f"{self.name} has already been finalized.")
        self._result = self._on_finalize()
        self._state = CollectorState.FINALIZED
        logger.debug(f"{self.name} finalized")
        return self._result

    @property
    def result(self) -> Any:
        """Result returned by finalize(), or None before finalization."""
        return self._result

    def _on_activate(self) -> None:
        pass

    def _on_sample(self, old_value: Any, new_value: Any) -> None:
        raise NotImplementedError

    def _on_finalize(self) -> Any:
        raise NotImplementedError


class SumLanes:
    """Interval and overall sums for one selected input lane.

    The DOUBLE lane accumulates floats. The UINTEGER lane accumulates exact
    Python integers so large byte counts never lose precision; it rejects
    negative and non-integral samples.
    """

    def __init__(self, input_data_type: InputDataType) -> None:
        self.input_data_type = input_data_type
        zero = 0.0 if input_data_type is InputDataType.DOUBLE else 0
        self.interval_sum = zero
        self.overall_sum = zero
        self.interval_samples = 0
        self.overall_samples = 0

    def add(self, value: Any) -> None:
        if self.input_data_type is InputDataType.UINTEGER:
            check_numeric_kind(NumericKind.UINT64, value)
            value = int(value)
        else:
            value = float(value)
        self.interval_sum += value
        self.overall_sum += value
        self.interval_samples += 1
        self.overall_samples += 1

    def reset_interval(self) -> None:
        self.interval_sum = 0.0 if self.input_data_type is InputDataType.DOUBLE else 0
        self.interval_samples = 0
