"""Multi-dataset plot data aggregator.

Every dataset is written to its own partial file while the run progresses
(<name>.dat.<dataset>). finalize() merges the partial files into a single
<name>.dat in registration order, each section followed by two blank lines
so that section i is addressable as block index i by plotting tools. A
dataset that never received data still yields an (empty) section, which
keeps the section indices of the following datasets aligned.

A JSON manifest <name>.json describes the plot and every dataset's section.
"""

import functools
import json
import logging
import shutil
from dataclasses import dataclass, replace
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from simstats.aggregators.multi_file import format_value, sanitize_context
from simstats.config import PlotAggregatorConfig
from simstats.constants import DatasetStyle, ErrorBars, KeyLocation
from simstats.errors import (
    AggregatorIOError,
    AggregatorStateError,
    DuplicateContextError,
    UnknownContextError,
)
from simstats.serialization import serialize_config

logger = logging.getLogger(__name__)

MANIFEST_SCHEMA_VERSION = "1.0.0"

# Two blank lines end a data block
SECTION_SEPARATOR = "\n\n"


@dataclass(frozen=True)
class PlotDataset:
    """Presentation of one dataset.

    Attributes:
        name: Context key used when writing
        title: Legend entry
        style: Rendering style
        error_bars: Error columns carried by the data lines
        extra: Free-form rendering options
    """

    name: str
    title: str
    style: DatasetStyle
    error_bars: ErrorBars
    extra: str


class PlotDataAggregator:
    """Collects 2D points for several datasets into one plot data file.

    Usage:
        aggregator = PlotDataAggregator(PlotAggregatorConfig(output_file_name="cdf"))
        aggregator.add_dataset("ut-1", "UT 1")
        collector.output.connect(aggregator.sink("ut-1"))
        ...
        aggregator.finalize()
    """

    def __init__(self, config: PlotAggregatorConfig) -> None:
        self.config = config
        self.enabled = config.enabled
        self.title = config.title
        self.x_legend = config.x_legend
        self.y_legend = config.y_legend
        self.key_location = config.key_location
        self._defaults = config.dataset_defaults
        self._datasets: Dict[str, PlotDataset] = {}  # Insertion ordered
        self._lines_written: Dict[str, int] = {}
        self._manifest: Optional[Dict[str, Any]] = None

    @property
    def output_path(self) -> Path:
        return Path(self.config.output_path)

    @property
    def data_file(self) -> Path:
        return self.output_path / f"{self.config.output_file_name}.dat"

    @property
    def manifest_file(self) -> Path:
        return self.output_path / f"{self.config.output_file_name}.json"

    @property
    def datasets(self) -> List[PlotDataset]:
        return list(self._datasets.values())

    @property
    def is_finalized(self) -> bool:
        return self._manifest is not None

    def dataset_file(self, dataset: str) -> Path:
        """Partial file holding one dataset's lines until finalize()."""
        return self.output_path / f"{self.config.output_file_name}.dat.{sanitize_context(dataset)}"

    # -------------------------------------------------------------------------
    # Plot and dataset setup
    # -------------------------------------------------------------------------

    def set_title(self, title: str) -> None:
        self.title = title

    def set_legend(self, x_legend: str, y_legend: str) -> None:
        self.x_legend = x_legend
        self.y_legend = y_legend

    def set_key_location(self, key_location: KeyLocation) -> None:
        self.key_location = key_location

    def add_dataset(
        self,
        dataset: str,
        title: Optional[str] = None,
        style: Optional[DatasetStyle] = None,
        error_bars: Optional[ErrorBars] = None,
        extra: Optional[str] = None,
    ) -> PlotDataset:
        """Register a dataset, inheriting unspecified presentation from the defaults.

        Raises:
            DuplicateContextError: If the dataset was already added
            AggregatorStateError: If another dataset already writes to the same file
        """
        if dataset in self._datasets:
            raise DuplicateContextError(f"Dataset {dataset!r} has already been added")

        path = self.dataset_file(dataset)
        for other in self._datasets:
            if self.dataset_file(other) == path:
                raise AggregatorStateError(
                    f"Datasets {other!r} and {dataset!r} both map to {path}; rename one of them."
                )

        entry = PlotDataset(
            name=dataset,
            title=dataset if title is None else title,
            style=self._defaults.style if style is None else style,
            error_bars=self._defaults.error_bars if error_bars is None else error_bars,
            extra=self._defaults.extra if extra is None else extra,
        )
        self._datasets[dataset] = entry
        self._lines_written[dataset] = 0

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            if path.exists():
                path.unlink()
                logger.debug(f"Removed stale dataset file {path}")
        except OSError as e:
            raise AggregatorIOError(f"Cannot prepare {path} for output: {e}") from e
        return entry

    def set_dataset_style(self, dataset: str, style: DatasetStyle) -> None:
        self._update_dataset(dataset, style=style)

    def set_dataset_error_bars(self, dataset: str, error_bars: ErrorBars) -> None:
        self._update_dataset(dataset, error_bars=error_bars)

    def set_dataset_extra(self, dataset: str, extra: str) -> None:
        self._update_dataset(dataset, extra=extra)

    def _update_dataset(self, dataset: str, **changes: Any) -> None:
        self._require_dataset(dataset)
        self._datasets[dataset] = replace(self._datasets[dataset], **changes)

    # -------------------------------------------------------------------------
    # Writing
    # -------------------------------------------------------------------------

    def write_2d(self, dataset: str, x: float, y: float) -> None:
        self._write(dataset, x, y)

    def write_2d_with_x_error_delta(self, dataset: str, x: float, y: float, error_delta: float) -> None:
        self._write(dataset, x, y, error_delta)

    def write_2d_with_y_error_delta(self, dataset: str, x: float, y: float, error_delta: float) -> None:
        self._write(dataset, x, y, error_delta)

    def write_2d_with_xy_error_delta(
        self,
        dataset: str,
        x: float,
        y: float,
        x_error_delta: float,
        y_error_delta: float,
    ) -> None:
        self._write(dataset, x, y, x_error_delta, y_error_delta)

    def write_empty_line(self, dataset: str) -> None:
        """Break the dataset's line into separate segments."""
        self._require_dataset(dataset)
        self._check_writable()
        if self.enabled:
            self._append(dataset, "")

    def sink(self, dataset: str) -> Callable[[float, float], None]:
        """Return a callable writing (x, y) to a dataset, for TraceSource.connect()."""
        self._require_dataset(dataset)
        return functools.partial(self.write_2d, dataset)

    def _write(self, dataset: str, *values: float) -> None:
        self._require_dataset(dataset)
        self._check_writable()
        if self.enabled:
            self._append(dataset, " ".join(format_value(v) for v in values))

    def _append(self, dataset: str, line: str) -> None:
        path = self.dataset_file(dataset)
        try:
            with open(path, "a", encoding="utf-8", newline="") as f:
                f.write(line + "\n")
        except OSError as e:
            raise AggregatorIOError(f"Error creating file {path} for output: {e}") from e
        self._lines_written[dataset] += 1

    # -------------------------------------------------------------------------
    # Teardown
    # -------------------------------------------------------------------------

    def finalize(self) -> Dict[str, Any]:
        """Merge the dataset files and write the manifest.

        Calling finalize() again returns the first manifest without touching
        the files.

        Returns:
            The manifest dictionary written to <name>.json
        """
        if self._manifest is not None:
            logger.debug(f"Plot aggregator {self.config.output_file_name} already finalized")
            return self._manifest

        if not self.title:
            logger.warning(f"The plot title was not set for {self.config.output_file_name}")
        if not (self.x_legend and self.y_legend):
            logger.warning(f"The axis legends were not set for {self.config.output_file_name}")
        if not self._datasets:
            logger.warning(f"No dataset was added to {self.config.output_file_name}")

        self._merge()
        manifest = self._build_manifest()
        try:
            with open(self.manifest_file, "w", encoding="utf-8") as f:
                json.dump(manifest, f, indent=2, ensure_ascii=False)
        except OSError as e:
            raise AggregatorIOError(f"Cannot write manifest {self.manifest_file}: {e}") from e

        self._manifest = manifest
        logger.info(f"Plot data written to {self.data_file}")
        return manifest

    def _merge(self) -> None:
        logger.info(f"Creating a new file {self.data_file}")
        try:
            self.output_path.mkdir(parents=True, exist_ok=True)
            with open(self.data_file, "w", encoding="utf-8", newline="") as out:
                for dataset in self._datasets:
                    partial = self.dataset_file(dataset)
                    if partial.exists():
                        with open(partial, "r", encoding="utf-8", newline="") as data:
                            shutil.copyfileobj(data, out)
                        partial.unlink()
                    else:
                        logger.debug(f"Dataset {dataset!r} received no data")
                    out.write(SECTION_SEPARATOR)
        except OSError as e:
            raise AggregatorIOError(f"Cannot merge datasets into {self.data_file}: {e}") from e

    def _build_manifest(self) -> Dict[str, Any]:
        return {
            "_metadata": {
                "schema_version": MANIFEST_SCHEMA_VERSION,
                "created_at": datetime.now().isoformat(),
            },
            "plot": {
                "data_file": self.data_file.name,
                "title": self.title,
                "x_legend": self.x_legend,
                "y_legend": self.y_legend,
                "key_location": self.key_location.name,
            },
            "datasets": [
                dict(index=index, lines=self._lines_written[entry.name], **serialize_config(entry))
                for index, entry in enumerate(self._datasets.values())
            ],
        }

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _require_dataset(self, dataset: str) -> None:
        if dataset not in self._datasets:
            raise UnknownContextError(f"Dataset {dataset!r} has not been added")

    def _check_writable(self) -> None:
        if self._manifest is not None:
            raise AggregatorStateError(
                f"Plot aggregator {self.config.output_file_name} has already been finalized"
            )
