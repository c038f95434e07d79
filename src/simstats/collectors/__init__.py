"""Collectors reducing traced samples into final results."""

from simstats.collectors.base import Collector, CollectorState, TraceSource
from simstats.collectors.distribution import (
    DistributionCollector,
    DistributionResult,
    interpolate_percentile,
)
from simstats.collectors.interval_rate import IntervalRateCollector, IntervalRateResult
from simstats.collectors.unit_conversion import UnitConversionCollector, convert
from simstats.collectors.scalar import ScalarCollector

__all__ = [
    'Collector',
    'CollectorState',
    'TraceSource',
    'DistributionCollector',
    'DistributionResult',
    'interpolate_percentile',
    'IntervalRateCollector',
    'IntervalRateResult',
    'UnitConversionCollector',
    'convert',
    'ScalarCollector',
]
