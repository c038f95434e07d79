"""Aggregators persisting collector output as plot-ready text files."""

from simstats.aggregators.multi_file import MultiFileAggregator, format_value, sanitize_context
from simstats.aggregators.plot_data import PlotDataAggregator, PlotDataset

__all__ = [
    'MultiFileAggregator',
    'format_value',
    'sanitize_context',
    'PlotDataAggregator',
    'PlotDataset',
]
