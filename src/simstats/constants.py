"""Shared constants for the statistics pipeline.

This module consolidates the option enums recognized by collectors and
aggregators, plus the numeric constants used across collectors/ and
aggregators/.
"""

from enum import Enum
from typing import Dict, Optional, Tuple

# =============================================================================
# Distribution Collector
# =============================================================================


class OutputType(Enum):
    """How a distribution collector reduces its bins on finalize."""
    HISTOGRAM = "histogram"        # Raw count per bin
    PROBABILITY = "probability"    # Count per bin divided by total samples
    CUMULATIVE = "cumulative"      # Running sum of the probabilities


# Thresholds reported as interpolated percentiles under CUMULATIVE output.
PERCENTILE_THRESHOLDS: Tuple[float, ...] = (0.05, 0.25, 0.50, 0.75, 0.95)

# =============================================================================
# Interval Rate / Scalar Collectors
# =============================================================================


class InputDataType(Enum):
    """Which accumulation lane is active for a summing collector."""
    DOUBLE = "double"
    UINTEGER = "uinteger"


class ScalarOutputType(Enum):
    """Reduction applied by the scalar collector."""
    SUM = "sum"
    AVERAGE_PER_SAMPLE = "average_per_sample"
    AVERAGE_PER_SECOND = "average_per_second"


class TimeUnit(Enum):
    """Unit used when a collector reports a timestamp.

    Values are the length of one unit in seconds.
    """
    Y = 365 * 24 * 3600.0
    D = 24 * 3600.0
    H = 3600.0
    MIN = 60.0
    S = 1.0
    MS = 1e-3
    US = 1e-6
    NS = 1e-9
    PS = 1e-12
    FS = 1e-15

    def from_seconds(self, seconds: float) -> float:
        """Express a duration given in seconds in this unit."""
        return seconds / self.value


# =============================================================================
# Unit Conversion Collector
# =============================================================================


class ConversionType(Enum):
    """Transformation applied to every sample by the unit conversion collector."""
    TRANSPARENT = "transparent"
    BYTES_TO_BIT = "bytes_to_bit"
    BYTES_TO_KBIT = "bytes_to_kbit"
    BYTES_TO_MBIT = "bytes_to_mbit"
    SECONDS_TO_MS = "seconds_to_ms"
    LINEAR_TO_DB = "linear_to_db"
    LINEAR_TO_DBM = "linear_to_dbm"


# =============================================================================
# Numeric Kinds (typed trace sinks)
# =============================================================================


class NumericKind(Enum):
    """Numeric type of a traced source value."""
    DOUBLE = "double"
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    UINT8 = "uint8"
    UINT16 = "uint16"
    UINT32 = "uint32"
    UINT64 = "uint64"

    @property
    def is_integer(self) -> bool:
        return self is not NumericKind.DOUBLE

    @property
    def value_range(self) -> Optional[Tuple[int, int]]:
        """Inclusive (low, high) bounds, or None for DOUBLE."""
        return NUMERIC_KIND_RANGES.get(self)


NUMERIC_KIND_RANGES: Dict[NumericKind, Tuple[int, int]] = {
    NumericKind.INT8: (-(1 << 7), (1 << 7) - 1),
    NumericKind.INT16: (-(1 << 15), (1 << 15) - 1),
    NumericKind.INT32: (-(1 << 31), (1 << 31) - 1),
    NumericKind.INT64: (-(1 << 63), (1 << 63) - 1),
    NumericKind.UINT8: (0, (1 << 8) - 1),
    NumericKind.UINT16: (0, (1 << 16) - 1),
    NumericKind.UINT32: (0, (1 << 32) - 1),
    NumericKind.UINT64: (0, (1 << 64) - 1),
}

# =============================================================================
# Aggregators
# =============================================================================


class FileType(Enum):
    """Line layout written by the multi-file aggregator."""
    FORMATTED = "formatted"            # printf-style format per dimensionality
    SPACE_SEPARATED = "space"
    COMMA_SEPARATED = "comma"
    TAB_SEPARATED = "tab"


FILE_TYPE_SEPARATORS: Dict[FileType, str] = {
    FileType.FORMATTED: " ",
    FileType.SPACE_SEPARATED: " ",
    FileType.COMMA_SEPARATED: ",",
    FileType.TAB_SEPARATED: "\t",
}

MAX_DIMENSIONS = 10

# Default FORMATTED layout for 1..10 values: "%e", "%e %e", ...
DEFAULT_FORMATS: Dict[int, str] = {
    n: " ".join(["%e"] * n) for n in range(1, MAX_DIMENSIONS + 1)
}

# Appended to the file name of contexts that may legitimately stay empty.
CONTEXT_WARNING_SUFFIX = "-ATTN"

TEMP_SUFFIX = ".temp"


class DatasetStyle(Enum):
    """Rendering style recorded for a plot dataset."""
    LINES = "lines"
    POINTS = "points"
    LINES_POINTS = "linespoints"
    DOTS = "dots"
    IMPULSES = "impulses"
    STEPS = "steps"
    FSTEPS = "fsteps"
    HISTEPS = "histeps"


class ErrorBars(Enum):
    """Which error columns a plot dataset carries."""
    NONE = "none"
    X = "x"
    Y = "y"
    XY = "xy"


class KeyLocation(Enum):
    """Placement of the plot key (legend)."""
    NO_KEY = "off"
    KEY_INSIDE = "inside"
    KEY_ABOVE = "outside center above"
    KEY_BELOW = "outside center below"
