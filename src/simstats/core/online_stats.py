"""Streaming count/sum/min/max/mean/variance without storing samples."""

import math

from simstats.errors import EmptyAccumulatorError


class OnlineStatsAccumulator:
    """Running statistics updated in O(1) per sample.

    Variance is the population variance sum_sq/count - mean^2. Min, max,
    mean, variance and stddev are undefined until the first sample and raise
    EmptyAccumulatorError when read earlier; check ``count`` first.
    """

    def __init__(self) -> None:
        self._count: int = 0
        self._sum: float = 0.0
        self._sqr_sum: float = 0.0
        self._min: float = float('inf')
        self._max: float = float('-inf')

    def update(self, value: float) -> None:
        """Fold one sample into the running statistics."""
        value = float(value)
        self._count += 1
        self._sum += value
        self._sqr_sum += value * value
        self._min = min(self._min, value)
        self._max = max(self._max, value)

    def reset(self) -> None:
        """Discard every sample seen so far."""
        self._count = 0
        self._sum = 0.0
        self._sqr_sum = 0.0
        self._min = float('inf')
        self._max = float('-inf')

    @property
    def count(self) -> int:
        return self._count

    @property
    def sum(self) -> float:
        return self._sum

    @property
    def sqr_sum(self) -> float:
        """Sum of squared samples."""
        return self._sqr_sum

    @property
    def min(self) -> float:
        self._require_samples('min')
        return self._min

    @property
    def max(self) -> float:
        self._require_samples('max')
        return self._max

    @property
    def mean(self) -> float:
        self._require_samples('mean')
        return self._sum / self._count

    @property
    def variance(self) -> float:
        self._require_samples('variance')
        mean = self._sum / self._count
        # Cancellation can leave a tiny negative residue for constant input
        return max(self._sqr_sum / self._count - mean * mean, 0.0)

    @property
    def stddev(self) -> float:
        return math.sqrt(self.variance)

    def _require_samples(self, name: str) -> None:
        if self._count == 0:
            raise EmptyAccumulatorError(f"{name} is undefined before the first sample")
