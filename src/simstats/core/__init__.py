"""Leaf data structures shared by the collectors."""

from simstats.core.bins import BinSet
from simstats.core.online_stats import OnlineStatsAccumulator

__all__ = [
    'BinSet',
    'OnlineStatsAccumulator',
]
