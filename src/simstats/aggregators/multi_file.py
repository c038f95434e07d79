"""Per-context text file aggregator.

Each write appends one line to the file of its context and closes the file
again, so data is on disk as soon as it is written. Headings may be
registered at any time; finalize() puts them in front of the data:

    1. rename <file> to <file>.temp
    2. write the general heading and the context heading into a fresh <file>
    3. copy the temp file's contents after them, then a blank separator line
    4. delete the temp file

File names are <output_file_name>[-<context>][-ATTN].txt inside output_path.
"""

import functools
import logging
import os
import shutil
from pathlib import Path
from typing import Any, Callable, Dict, List, Set

from simstats.config import MultiFileAggregatorConfig
from simstats.constants import (
    CONTEXT_WARNING_SUFFIX,
    DEFAULT_FORMATS,
    FILE_TYPE_SEPARATORS,
    MAX_DIMENSIONS,
    TEMP_SUFFIX,
    FileType,
)
from simstats.errors import AggregatorIOError, AggregatorStateError, ConfigurationError

logger = logging.getLogger(__name__)

# Every context shares this key when multi-file mode is disabled
SINGLE_FILE_CONTEXT = "0"


def sanitize_context(context: str) -> str:
    """Make a context string usable as part of a file name.

    Each " /" sequence becomes a single underscore; any remaining path
    separator is replaced too.
    """
    return context.replace(" /", "_").replace("/", "_").replace(os.sep, "_")


def format_value(value: Any) -> str:
    """Render a number the way a default C++ output stream does (%g)."""
    return f"{value:g}"


class MultiFileAggregator:
    """Writes N-dimensional tuples to one text file per context.

    Usage:
        aggregator = MultiFileAggregator(MultiFileAggregatorConfig(output_file_name="delay"))
        aggregator.add_context_heading("ut-1", "% time delay")
        collector.output.connect(aggregator.sink("ut-1"))
        ...
        aggregator.finalize()
    """

    def __init__(self, config: MultiFileAggregatorConfig) -> None:
        self.config = config
        self.enabled = config.enabled
        self._separator = FILE_TYPE_SEPARATORS[config.file_type]
        self._formats: Dict[int, str] = dict(DEFAULT_FORMATS)
        self._general_heading = config.general_heading
        self._contexts: Dict[str, Path] = {}  # Insertion ordered
        self._context_headings: Dict[str, str] = {}
        self._warned_contexts: Set[str] = set()
        self._finalized = False

    @property
    def output_path(self) -> Path:
        return Path(self.config.output_path)

    @property
    def contexts(self) -> List[str]:
        """Registered contexts in registration order."""
        return list(self._contexts)

    @property
    def is_finalized(self) -> bool:
        return self._finalized

    # -------------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------------

    def set_format(self, dimension: int, fmt: str) -> None:
        """Set the printf-style format used by FORMATTED files for one dimensionality.

        Raises:
            ConfigurationError: If dimension is outside 1..10 or fmt does not
                accept exactly that many numbers
        """
        self._check_dimension(dimension)
        try:
            fmt % ((0.0,) * dimension)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid {dimension}d format {fmt!r}: {e}") from e
        self._formats[dimension] = fmt

    def get_format(self, dimension: int) -> str:
        self._check_dimension(dimension)
        return self._formats[dimension]

    def add_general_heading(self, heading: str) -> None:
        """Append text to the heading printed at the top of every file."""
        self._general_heading += heading

    def add_context_heading(self, context: str, heading: str) -> None:
        """Append text to the heading printed at the top of one context's file."""
        key = self._key(context)
        self._context_headings[key] = self._context_headings.get(key, "") + heading

    def enable_context_warning(self, context: str) -> None:
        """Flag a context that may legitimately receive no data.

        The context's file gets the -ATTN suffix and is created right away,
        so the context still produces a file if nothing is ever written.

        Raises:
            AggregatorStateError: If the context already has a file, or its
                -ATTN file is taken by another context
        """
        key = self._key(context)
        if key in self._contexts:
            raise AggregatorStateError(
                f"Context {context!r} already writes to {self._contexts[key]}; "
                "enable the warning before the first write."
            )
        self._warned_contexts.add(key)
        try:
            path = self._register(key)
        except AggregatorStateError:
            self._warned_contexts.discard(key)
            raise
        self._open_for_append(path).close()

    def file_name(self, context: str, suffix: str = "") -> Path:
        """Return the file a context is written to."""
        key = self._key(context)
        name = self.config.output_file_name
        if self.config.multi_file_mode:
            name += "-" + sanitize_context(key)
        if key in self._warned_contexts:
            name += CONTEXT_WARNING_SUFFIX
        return self.output_path / f"{name}.txt{suffix}"

    # -------------------------------------------------------------------------
    # Writing
    # -------------------------------------------------------------------------

    def write(self, context: str, *values: float) -> None:
        """Write one line of 1 to 10 numeric values to a context's file.

        Raises:
            ConfigurationError: If the number of values is outside 1..10
            AggregatorStateError: If called after finalize(), or another context
                already writes to the same file
            AggregatorIOError: If the file cannot be opened
        """
        self._check_writable()
        self._check_dimension(len(values))
        if not self.enabled:
            return

        if self.config.file_type is FileType.FORMATTED:
            try:
                body = self._formats[len(values)] % tuple(values)
            except (TypeError, ValueError) as e:
                raise ConfigurationError(
                    f"Cannot format {values} with {self._formats[len(values)]!r}: {e}"
                ) from e
        else:
            body = self._separator.join(format_value(v) for v in values)

        self._write_line(context, body)

    def write_string(self, context: str, text: str) -> None:
        """Write one line of raw text to a context's file."""
        self._check_writable()
        if self.enabled:
            self._write_line(context, text)

    def sink(self, context: str) -> Callable[..., None]:
        """Return a callable writing its arguments to a context, for TraceSource.connect()."""
        return functools.partial(self.write, context)

    def _write_line(self, context: str, body: str) -> None:
        if self.config.context_printing:
            body = f"{context}{self._separator}{body}"
        path = self._register(self._key(context))
        with self._open_for_append(path) as f:
            f.write(body + "\n")

    # -------------------------------------------------------------------------
    # Teardown
    # -------------------------------------------------------------------------

    def finalize(self) -> List[Path]:
        """Prepend headings to every context file.

        Calling finalize() again does nothing, so headings are never
        duplicated.

        Returns:
            Finalized file paths in registration order

        Raises:
            AggregatorIOError: If a context file is missing or cannot be rewritten
        """
        paths = list(self._contexts.values())
        if self._finalized:
            logger.debug(f"Aggregator {self.config.output_file_name} already finalized")
            return paths

        for key, path in self._contexts.items():
            temp_path = Path(f"{path}{TEMP_SUFFIX}")
            try:
                os.replace(path, temp_path)
            except OSError as e:
                raise AggregatorIOError(f"Cannot rename {path} to {temp_path}: {e}") from e

            logger.info(f"Creating a new file {path}")
            try:
                with open(path, "w", encoding="utf-8", newline="") as out:
                    if self._general_heading:
                        out.write(self._general_heading + "\n")
                    heading = self._context_headings.get(key, "")
                    if heading:
                        out.write(heading + "\n")
                    with open(temp_path, "r", encoding="utf-8", newline="") as data:
                        shutil.copyfileobj(data, out)
                    out.write("\n")
            except OSError as e:
                raise AggregatorIOError(f"Cannot rewrite {path}: {e}") from e
            temp_path.unlink()

        self._finalized = True
        return paths

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _key(self, context: str) -> str:
        return context if self.config.multi_file_mode else SINGLE_FILE_CONTEXT

    def _register(self, key: str) -> Path:
        """Map a new context to its file, removing what a previous run left there.

        Raises:
            AggregatorStateError: If another context already writes to the same file
        """
        path = self._contexts.get(key)
        if path is not None:
            return path

        path = self.file_name(key)
        for other, other_path in self._contexts.items():
            if other_path == path:
                raise AggregatorStateError(
                    f"Contexts {other!r} and {key!r} both map to {path}; rename one of them."
                )
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            if path.exists():
                path.unlink()
                logger.debug(f"Removed stale output file {path}")
        except OSError as e:
            raise AggregatorIOError(f"Cannot prepare {path} for output: {e}") from e

        self._contexts[key] = path
        logger.debug(f"Registered context {key!r} -> {path}")
        return path

    def _open_for_append(self, path: Path):
        try:
            return open(path, "a", encoding="utf-8", newline="")
        except OSError as e:
            raise AggregatorIOError(f"Error creating file {path} for output: {e}") from e

    def _check_writable(self) -> None:
        if self._finalized:
            raise AggregatorStateError(
                f"Aggregator {self.config.output_file_name} has already been finalized"
            )

    @staticmethod
    def _check_dimension(dimension: int) -> None:
        if not 1 <= dimension <= MAX_DIMENSIONS:
            raise ConfigurationError(
                f"Between 1 and {MAX_DIMENSIONS} values per line are supported, got {dimension}"
            )
