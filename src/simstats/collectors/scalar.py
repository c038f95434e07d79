"""Scalar collector: reduces a whole run to a single number."""

import logging
from typing import Optional

from simstats.collectors.base import Collector, SumLanes, TraceSource
from simstats.config import ScalarConfig
from simstats.constants import ScalarOutputType
from simstats.scheduler import Scheduler

logger = logging.getLogger(__name__)


class ScalarCollector(Collector):
    """Emits the sum, per-sample average or per-second average on finalize.

    AVERAGE_PER_SECOND divides the sum by the time between the first and
    the last sample. Averages are skipped (and None is returned) when there
    is nothing to average over.
    """

    def __init__(
        self,
        config: ScalarConfig,
        scheduler: Scheduler,
        name: Optional[str] = None,
    ) -> None:
        super().__init__(name=name, enabled=config.enabled)
        self.config = config
        self._scheduler = scheduler
        self._lanes = SumLanes(config.input_data_type)
        self._first_sample_time: Optional[float] = None
        self._last_sample_time: Optional[float] = None

        self.output = TraceSource('Output')

    @property
    def sample_count(self) -> int:
        return self._lanes.overall_samples

    def _on_sample(self, old_value, new_value) -> None:
        self._lanes.add(new_value)
        now = self._scheduler.now()
        if self._first_sample_time is None:
            self._first_sample_time = now
        self._last_sample_time = now

    def _on_finalize(self) -> Optional[float]:
        if not self.enabled:
            return None

        total = float(self._lanes.overall_sum)
        output_type = self.config.output_type

        if output_type is ScalarOutputType.SUM:
            value = total
        elif self.sample_count == 0:
            logger.warning(f"{self.name}: no samples received, skipping {output_type.name} output")
            return None
        elif output_type is ScalarOutputType.AVERAGE_PER_SAMPLE:
            value = total / self.sample_count
        else:
            duration = self._last_sample_time - self._first_sample_time
            if duration <= 0:
                logger.warning(
                    f"{self.name}: all samples arrived at t={self._first_sample_time}, "
                    f"skipping {output_type.name} output"
                )
                return None
            value = total / duration

        self.output(value)
        return value
