"""Statistics collection and aggregation for network simulations.

This package provides:
- Collectors reducing traced samples (distribution, interval rate,
  unit conversion, scalar)
- Aggregators persisting collector output as plot-ready text files
- Leaf structures (bins, online statistics) and the scheduler boundary
"""

from simstats.aggregators import MultiFileAggregator, PlotDataAggregator
from simstats.collectors import (
    DistributionCollector,
    IntervalRateCollector,
    ScalarCollector,
    TraceSource,
    UnitConversionCollector,
)
from simstats.config import (
    DatasetDefaults,
    DistributionConfig,
    IntervalRateConfig,
    MultiFileAggregatorConfig,
    PlotAggregatorConfig,
    ScalarConfig,
    UnitConversionConfig,
)
from simstats.core import BinSet, OnlineStatsAccumulator
from simstats.scheduler import EventScheduler, Scheduler

__version__ = "0.1.0"

__all__ = [
    # Collectors
    "DistributionCollector",
    "IntervalRateCollector",
    "ScalarCollector",
    "TraceSource",
    "UnitConversionCollector",
    # Aggregators
    "MultiFileAggregator",
    "PlotDataAggregator",
    # Config
    "DatasetDefaults",
    "DistributionConfig",
    "IntervalRateConfig",
    "MultiFileAggregatorConfig",
    "PlotAggregatorConfig",
    "ScalarConfig",
    "UnitConversionConfig",
    # Core
    "BinSet",
    "OnlineStatsAccumulator",
    # Scheduling
    "EventScheduler",
    "Scheduler",
]
