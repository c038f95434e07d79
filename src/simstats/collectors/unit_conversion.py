"""Unit conversion collector: transforms every sample and re-emits it."""

import logging
from typing import Callable, Dict, Optional

import numpy as np

from simstats.collectors.base import Collector, TraceSource
from simstats.config import UnitConversionConfig
from simstats.constants import ConversionType
from simstats.scheduler import Scheduler

logger = logging.getLogger(__name__)


def _to_decibel(value: float) -> float:
    # 0 maps to -inf and negative input to nan, like the C math library
    with np.errstate(divide='ignore', invalid='ignore'):
        return float(10.0 * np.log10(value))


CONVERSIONS: Dict[ConversionType, Callable[[float], float]] = {
    ConversionType.TRANSPARENT: lambda x: x,
    ConversionType.BYTES_TO_BIT: lambda x: x * 8.0,
    ConversionType.BYTES_TO_KBIT: lambda x: x * 8.0 / 1000.0,
    ConversionType.BYTES_TO_MBIT: lambda x: x * 8.0 / 1e6,
    ConversionType.SECONDS_TO_MS: lambda x: x * 1000.0,
    ConversionType.LINEAR_TO_DB: _to_decibel,
    ConversionType.LINEAR_TO_DBM: lambda x: _to_decibel(x * 1000.0),
}


def convert(conversion_type: ConversionType, value: float) -> float:
    """Apply one of the conversions to a single value."""
    return CONVERSIONS[conversion_type](float(value))


class UnitConversionCollector(Collector):
    """Converts each sample and forwards it through three trace sources.

    - ``output``: (converted old value, converted new value)
    - ``output_value``: (converted new value)
    - ``output_time_value``: (now in the configured time unit, converted new value)

    The old value of the very first sample comes from an uninitialized
    source, so it is reported as 0.0 instead of being converted.
    """

    def __init__(
        self,
        config: UnitConversionConfig,
        scheduler: Scheduler,
        name: Optional[str] = None,
    ) -> None:
        super().__init__(name=name, enabled=config.enabled)
        self.config = config
        self._scheduler = scheduler
        self._convert = CONVERSIONS[config.conversion_type]
        self._is_first_sample = True
        self._sample_count = 0

        self.output = TraceSource('Output')
        self.output_value = TraceSource('OutputValue')
        self.output_time_value = TraceSource('OutputTimeValue')

    @property
    def sample_count(self) -> int:
        return self._sample_count

    def _on_sample(self, old_value, new_value) -> None:
        if self._is_first_sample:
            old_converted = 0.0
            self._is_first_sample = False
        else:
            old_converted = self._convert(float(old_value))
        new_converted = self._convert(float(new_value))
        self._sample_count += 1

        self.output(old_converted, new_converted)
        self.output_value(new_converted)
        time = self.config.time_unit.from_seconds(self._scheduler.now())
        self.output_time_value(time, new_converted)

    def _on_finalize(self) -> int:
        logger.debug(f"{self.name}: converted {self._sample_count} samples")
        return self._sample_count
