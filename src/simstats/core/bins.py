"""Fixed-width bin geometry with per-bin sample counters."""

import logging
import math
from typing import Iterator, Tuple

import numpy as np

from simstats.errors import ConfigurationError

logger = logging.getLogger(__name__)


class BinSet:
    """Equal-length bins covering [min_value, max_value).

    If the configured range is not an exact multiple of bin_length, the
    maximum value is extended so that the last bin is full length. Samples
    outside the range are clamped to the first or last bin, so no sample is
    ever dropped; a value on a bin boundary belongs to the bin it starts.

    Usage:
        bins = BinSet(0.0, 9.0, 2.0)   # max_value becomes 10.0, 5 bins
        bins.new_sample(3.0)
        bins.count_of_bin(1)           # 1
    """

    def __init__(self, min_value: float, max_value: float, bin_length: float) -> None:
        """Create the bins.

        Args:
            min_value: Lower edge of the first bin
            max_value: Requested upper edge of the last bin (may be extended)
            bin_length: Width of every bin

        Raises:
            ConfigurationError: If min_value >= max_value or bin_length <= 0
        """
        if not min_value < max_value:
            raise ConfigurationError(
                f"min_value ({min_value}) must be less than max_value ({max_value})."
            )
        if not bin_length > 0:
            raise ConfigurationError(f"bin_length ({bin_length}) must be greater than zero.")

        initial_range = max_value - min_value
        num_bins = int(math.floor(initial_range / bin_length))
        new_range = num_bins * bin_length
        if new_range < initial_range:
            # Extend by one more bin so the last one is full length
            num_bins += 1
            new_range += bin_length

        self._min_value = float(min_value)
        self._max_value = float(min_value + new_range)
        self._bin_length = float(bin_length)
        self._counts = np.zeros(num_bins, dtype=np.uint64)

        if self._max_value != max_value:
            logger.debug(f"max_value extended from {max_value} to {self._max_value}")
        logger.debug(f"Created {num_bins} bins of length {bin_length} from {min_value}")

    @property
    def min_value(self) -> float:
        return self._min_value

    @property
    def max_value(self) -> float:
        """Upper edge of the last bin, after extension."""
        return self._max_value

    @property
    def bin_length(self) -> float:
        return self._bin_length

    @property
    def num_bins(self) -> int:
        return len(self._counts)

    @property
    def total_count(self) -> int:
        """Number of samples filed across all bins."""
        return int(self._counts.sum())

    @property
    def counts(self) -> np.ndarray:
        """Copy of the per-bin counters."""
        return self._counts.copy()

    def determine_bin(self, sample: float) -> int:
        """Return the index of the bin a sample is filed in."""
        if sample < self._min_value:
            return 0
        elif sample < self._max_value:
            index = int(math.floor((sample - self._min_value) / self._bin_length))
            # Rounding can push a value just below max_value past the last bin
            return min(index, self.num_bins - 1)
        else:
            return self.num_bins - 1

    def new_sample(self, sample: float) -> None:
        """Increment the counter of the bin the sample falls in."""
        self._counts[self.determine_bin(sample)] += 1

    def count_of_bin(self, index: int) -> int:
        self._check_index(index)
        return int(self._counts[index])

    def center_of_bin(self, index: int) -> float:
        self._check_index(index)
        return self._min_value + index * self._bin_length + self._bin_length / 2.0

    def __iter__(self) -> Iterator[Tuple[float, int]]:
        """Yield (center, count) for every bin in ascending order."""
        for i in range(self.num_bins):
            yield self.center_of_bin(i), int(self._counts[i])

    def __len__(self) -> int:
        return self.num_bins

    def _check_index(self, index: int) -> None:
        if not 0 <= index < self.num_bins:
            raise IndexError(f"Bin index {index} out of range [0, {self.num_bins})")
