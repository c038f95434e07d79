"""Configuration dataclasses for collectors and aggregators."""

import math
from dataclasses import dataclass, field

from simstats.constants import (
    ConversionType,
    DatasetStyle,
    ErrorBars,
    FileType,
    InputDataType,
    KeyLocation,
    OutputType,
    ScalarOutputType,
    TimeUnit,
)
from simstats.errors import ConfigurationError


def _require_enum(name: str, value, enum_type) -> None:
    if not isinstance(value, enum_type):
        raise ConfigurationError(
            f"Invalid {name}: {value!r}. Use one of {[m.name for m in enum_type]}"
        )


@dataclass(frozen=True)
class DistributionConfig:
    """Bin geometry and output mode of a distribution collector.

    Samples below min_value are filed in the first bin, samples at or above
    max_value in the last one. max_value may be extended so that every bin
    has exactly bin_length width.
    """

    min_value: float
    max_value: float
    bin_length: float
    output_type: OutputType = OutputType.HISTOGRAM
    enabled: bool = True
    emit_information: bool = True  # Fire the text summary on finalize

    def __post_init__(self) -> None:
        for name in ('min_value', 'max_value', 'bin_length'):
            if not math.isfinite(getattr(self, name)):
                raise ConfigurationError(f"{name} must be finite, got {getattr(self, name)}")
        if self.min_value >= self.max_value:
            raise ConfigurationError(
                f"min_value ({self.min_value}) must be less than max_value ({self.max_value})."
            )
        if self.bin_length <= 0:
            raise ConfigurationError(f"bin_length ({self.bin_length}) must be greater than zero.")
        _require_enum('output_type', self.output_type, OutputType)


@dataclass(frozen=True)
class IntervalRateConfig:
    """Windowing of an interval rate collector.

    An interval_length of zero disables periodic output; only the overall
    sum is reported on finalize.
    """

    interval_length: float = 1.0  # seconds
    input_data_type: InputDataType = InputDataType.DOUBLE
    time_unit: TimeUnit = TimeUnit.S
    enabled: bool = True

    def __post_init__(self) -> None:
        if not math.isfinite(self.interval_length) or self.interval_length < 0:
            raise ConfigurationError(
                f"interval_length ({self.interval_length}) must be a non-negative number of seconds."
            )
        _require_enum('input_data_type', self.input_data_type, InputDataType)
        _require_enum('time_unit', self.time_unit, TimeUnit)


@dataclass(frozen=True)
class UnitConversionConfig:
    """Conversion applied by a unit conversion collector."""

    conversion_type: ConversionType = ConversionType.TRANSPARENT
    time_unit: TimeUnit = TimeUnit.S
    enabled: bool = True

    def __post_init__(self) -> None:
        _require_enum('conversion_type', self.conversion_type, ConversionType)
        _require_enum('time_unit', self.time_unit, TimeUnit)


@dataclass(frozen=True)
class ScalarConfig:
    """Reduction performed by a scalar collector."""

    input_data_type: InputDataType = InputDataType.DOUBLE
    output_type: ScalarOutputType = ScalarOutputType.SUM
    enabled: bool = True

    def __post_init__(self) -> None:
        _require_enum('input_data_type', self.input_data_type, InputDataType)
        _require_enum('output_type', self.output_type, ScalarOutputType)


@dataclass(frozen=True)
class MultiFileAggregatorConfig:
    """Output naming and line layout of a multi-file aggregator."""

    output_file_name: str = "untitled"
    output_path: str = "."
    file_type: FileType = FileType.SPACE_SEPARATED

    # True writes each context to its own file, False writes every context
    # to one shared file.
    multi_file_mode: bool = True

    # Prefix each line with the context string (useful in single-file mode).
    context_printing: bool = False

    general_heading: str = ""
    enabled: bool = True

    def __post_init__(self) -> None:
        if not self.output_file_name.strip():
            raise ConfigurationError("output_file_name cannot be empty or whitespace")
        _require_enum('file_type', self.file_type, FileType)


@dataclass(frozen=True)
class DatasetDefaults:
    """Presentation inherited by every dataset when it is added."""

    style: DatasetStyle = DatasetStyle.LINES
    error_bars: ErrorBars = ErrorBars.NONE
    extra: str = ""

    def __post_init__(self) -> None:
        _require_enum('style', self.style, DatasetStyle)
        _require_enum('error_bars', self.error_bars, ErrorBars)


@dataclass(frozen=True)
class PlotAggregatorConfig:
    """Output naming and plot description of a plot-data aggregator."""

    output_file_name: str = "untitled"
    output_path: str = "."
    title: str = ""
    x_legend: str = ""
    y_legend: str = ""
    key_location: KeyLocation = KeyLocation.KEY_INSIDE
    dataset_defaults: DatasetDefaults = field(default_factory=DatasetDefaults)
    enabled: bool = True

    def __post_init__(self) -> None:
        if not self.output_file_name.strip():
            raise ConfigurationError("output_file_name cannot be empty or whitespace")
        _require_enum('key_location', self.key_location, KeyLocation)
