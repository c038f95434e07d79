"""Histogram, probability and cumulative distribution collector.

Samples are filed into fixed-width bins while an online accumulator keeps
count/sum/min/max/mean/variance. Everything is emitted once, on finalize:

- HISTOGRAM:   (bin center, count) for every bin
- PROBABILITY: (bin center, count / N) for every bin
- CUMULATIVE:  (bin center, running fraction) for every bin, interleaved
               with the 5th/25th/50th/75th/95th percentiles estimated by
               linear interpolation between consecutive cumulative points

PROBABILITY and CUMULATIVE skip the bin output when no sample was received;
HISTOGRAM always reports every bin, even if all counts are zero.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from simstats.collectors.base import Collector, TraceSource
from simstats.config import DistributionConfig
from simstats.constants import PERCENTILE_THRESHOLDS, OutputType
from simstats.core.bins import BinSet
from simstats.core.online_stats import OnlineStatsAccumulator
from simstats.serialization import config_items

logger = logging.getLogger(__name__)


def interpolate_percentile(
    x0: float,
    y0: float,
    x2: float,
    y2: float,
    target: float,
    bin_length: float,
) -> float:
    """Estimate where a cumulative curve crosses target between two points.

    Args:
        x0: Bin center of the point before the crossing
        y0: Cumulative fraction at x0 (strictly below target)
        x2: Bin center of the point at or after the crossing
        y2: Cumulative fraction at x2 (at least target)
        target: Fraction being located, e.g. 0.25
        bin_length: Distance between x0 and x2

    Returns:
        x1 = x0 + bin_length * (target - y0) / (y2 - y0)
    """
    return x0 + bin_length * (target - y0) / (y2 - y0)


@dataclass
class DistributionResult:
    """Everything a distribution collector reports on finalize.

    Attributes:
        output_type: Reduction that produced ``points``
        points: (bin center, value) pairs in ascending bin order; empty when
            PROBABILITY/CUMULATIVE output was skipped for lack of samples
        percentiles: Threshold -> interpolated value (CUMULATIVE only)
        count: Number of samples received
        sum: Sum of the samples
        sqr_sum: Sum of the squared samples
        min: Smallest sample, None without samples
        max: Largest sample, None without samples
        mean: Sample mean, None without samples
        stddev: Population standard deviation, None without samples
        variance: Population variance, None without samples
        min_value: Lower edge of the first bin
        max_value: Upper edge of the last bin (after extension)
        bin_length: Bin width
        num_bins: Number of bins
        information: Text summary, None when disabled in the config
    """

    output_type: OutputType
    points: List[Tuple[float, float]] = field(default_factory=list)
    percentiles: Dict[float, float] = field(default_factory=dict)
    count: int = 0
    sum: float = 0.0
    sqr_sum: float = 0.0
    min: Optional[float] = None
    max: Optional[float] = None
    mean: Optional[float] = None
    stddev: Optional[float] = None
    variance: Optional[float] = None
    min_value: float = 0.0
    max_value: float = 0.0
    bin_length: float = 0.0
    num_bins: int = 0
    information: Optional[str] = None


class DistributionCollector(Collector):
    """Bins samples and reports a histogram, PDF or CDF when finalized.

    Usage:
        collector = DistributionCollector(DistributionConfig(0.0, 100.0, 10.0))
        collector.output.connect(aggregator.sink("delay"))
        collector.activate()
        collector.trace_sink(0.0, 42.0)
        result = collector.finalize()
    """

    def __init__(self, config: DistributionConfig, name: Optional[str] = None) -> None:
        super().__init__(name=name, enabled=config.enabled)
        self.config = config
        self._bins: Optional[BinSet] = None
        self._calculator = OnlineStatsAccumulator()

        self.output = TraceSource('Output')
        self.output_count = TraceSource('OutputCount')
        self.output_sum = TraceSource('OutputSum')
        self.output_min = TraceSource('OutputMin')
        self.output_max = TraceSource('OutputMax')
        self.output_mean = TraceSource('OutputMean')
        self.output_stddev = TraceSource('OutputStddev')
        self.output_variance = TraceSource('OutputVariance')
        self.output_sqr_sum = TraceSource('OutputSqrSum')
        self.output_5th_percentile = TraceSource('Output5thPercentile')
        self.output_25th_percentile = TraceSource('Output25thPercentile')
        self.output_50th_percentile = TraceSource('Output50thPercentile')
        self.output_75th_percentile = TraceSource('Output75thPercentile')
        self.output_95th_percentile = TraceSource('Output95thPercentile')
        self.output_information = TraceSource('OutputInformation')

        self._percentile_sources: Dict[float, TraceSource] = dict(zip(
            PERCENTILE_THRESHOLDS,
            (
                self.output_5th_percentile,
                self.output_25th_percentile,
                self.output_50th_percentile,
                self.output_75th_percentile,
                self.output_95th_percentile,
            ),
        ))

    @property
    def bins(self) -> Optional[BinSet]:
        """The bins, available between activation and finalization."""
        return self._bins

    @property
    def statistics(self) -> OnlineStatsAccumulator:
        return self._calculator

    def _on_activate(self) -> None:
        config = self.config
        if config.max_value - config.min_value < config.bin_length:
            logger.warning(f"{self.name}: only one bin is created; this distribution would look funny.")
        self._bins = BinSet(config.min_value, config.max_value, config.bin_length)

    def _on_sample(self, old_value, new_value) -> None:
        sample = float(new_value)
        self._bins.new_sample(sample)
        self._calculator.update(sample)

    def _on_finalize(self) -> DistributionResult:
        bins = self._bins
        result = DistributionResult(
            output_type=self.config.output_type,
            min_value=bins.min_value,
            max_value=bins.max_value,
            bin_length=bins.bin_length,
            num_bins=bins.num_bins,
        )

        if self.enabled:
            self._emit_points(result)
            self._emit_statistics(result)
            if self.config.emit_information:
                result.information = self._format_information(result)
                self.output_information(result.information)

        self._bins = None
        return result

    # -------------------------------------------------------------------------
    # Bin output
    # -------------------------------------------------------------------------

    def _emit_points(self, result: DistributionResult) -> None:
        output_type = self.config.output_type
        n = self._calculator.count

        if output_type is OutputType.HISTOGRAM:
            for center, count in self._bins:
                self._emit_point(result, center, float(count))
            return

        if n == 0:
            logger.warning(
                f"{self.name}: no samples received, skipping {output_type.name} output"
            )
            return

        if output_type is OutputType.PROBABILITY:
            for center, count in self._bins:
                self._emit_point(result, center, count / n)

        elif output_type is OutputType.CUMULATIVE:
            bin_length = self._bins.bin_length
            pending = list(PERCENTILE_THRESHOLDS)
            # Virtual point one bin before the first, where nothing has accumulated
            x0 = self._bins.center_of_bin(0) - bin_length
            y0 = 0.0
            cumulative = 0.0
            for center, count in self._bins:
                cumulative += count / n
                self._emit_point(result, center, cumulative)
                while pending and y0 < pending[0] <= cumulative:
                    target = pending.pop(0)
                    value = interpolate_percentile(x0, y0, center, cumulative, target, bin_length)
                    result.percentiles[target] = value
                    self._percentile_sources[target](value)
                x0, y0 = center, cumulative

    def _emit_point(self, result: DistributionResult, center: float, value: float) -> None:
        result.points.append((center, value))
        self.output(center, value)

    # -------------------------------------------------------------------------
    # Scalar statistics
    # -------------------------------------------------------------------------

    def _emit_statistics(self, result: DistributionResult) -> None:
        calc = self._calculator
        result.count = calc.count
        result.sum = calc.sum
        result.sqr_sum = calc.sqr_sum

        self.output_count(float(calc.count))
        self.output_sum(calc.sum)

        if calc.count > 0:
            result.min = calc.min
            result.max = calc.max
            result.mean = calc.mean
            result.stddev = calc.stddev
            result.variance = calc.variance
            self.output_min(result.min)
            self.output_max(result.max)
            self.output_mean(result.mean)
            self.output_stddev(result.stddev)
            self.output_variance(result.variance)
        else:
            logger.warning(f"{self.name}: no samples received, min/max/mean/stddev/variance are undefined")

        self.output_sqr_sum(calc.sqr_sum)

    def _format_information(self, result: DistributionResult) -> str:
        """Build the '#'-prefixed text summary of setup and statistics."""
        lines = [f"# {self.name}"]
        for key, value in config_items(self.config):
            lines.append(f"# {key}: {value}")
        lines.append(f"# extended max_value: {result.max_value}")
        lines.append(f"# num_bins: {result.num_bins}")
        lines.append(f"# count: {result.count}")
        lines.append(f"# sum: {result.sum}")
        for label in ('min', 'max', 'mean', 'stddev', 'variance'):
            value = getattr(result, label)
            lines.append(f"# {label}: {'n/a' if value is None else value}")
        lines.append(f"# sqr_sum: {result.sqr_sum}")

        if self.config.output_type is OutputType.CUMULATIVE:
            for threshold in PERCENTILE_THRESHOLDS:
                value = result.percentiles.get(threshold)
                label = f"{round(threshold * 100)}th percentile"
                lines.append(f"# {label}: {'n/a' if value is None else value}")

        return "\n".join(lines)
