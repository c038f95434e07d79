#!/usr/bin/env python3
"""Bin a file of samples into a histogram, PDF or CDF text file.

Usage:
    python scripts/collect_distribution.py delays.txt --min 0 --max 0.1 --bin-length 0.005
    python scripts/collect_distribution.py delays.txt --min 0 --max 0.1 --bin-length 0.005 \\
        --output-type cumulative --output-name delay-cdf --context ut-1

The input holds one number per line; blank lines and lines starting with
'#' are skipped. The output is written to
<output-path>/<output-name>-<context>.txt, headed by the collector's
'#'-prefixed summary of its setup and statistics.
"""

import argparse
import logging
import sys
from pathlib import Path

# Add src to path for imports
SCRIPT_DIR = Path(__file__).parent
PROJECT_ROOT = SCRIPT_DIR.parent
SRC_DIR = PROJECT_ROOT / "src"
sys.path.insert(0, str(SRC_DIR))

from simstats.aggregators import MultiFileAggregator
from simstats.collectors import DistributionCollector
from simstats.config import DistributionConfig, MultiFileAggregatorConfig
from simstats.constants import OutputType
from simstats.errors import StatsError
from simstats.log_config import configure_logging

logger = logging.getLogger(__name__)


def read_samples(path: Path) -> list[float]:
    """Read one sample per line, skipping blank and '#' comment lines.

    Raises:
        ValueError: If a line is not a number
    """
    samples = []
    with open(path, "r", encoding="utf-8") as f:
        for line_number, line in enumerate(f, start=1):
            text = line.strip()
            if not text or text.startswith("#"):
                continue
            try:
                samples.append(float(text))
            except ValueError as e:
                raise ValueError(f"{path}:{line_number}: not a number: {text!r}") from e
    return samples


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Bin samples into a histogram, PDF or CDF file"
    )
    parser.add_argument(
        "samples",
        help="Text file with one sample per line",
    )
    parser.add_argument("--min", type=float, required=True, help="Lower edge of the first bin")
    parser.add_argument("--max", type=float, required=True, help="Upper edge of the last bin")
    parser.add_argument("--bin-length", type=float, required=True, help="Width of every bin")
    parser.add_argument(
        "--output-type",
        choices=[t.value for t in OutputType],
        default=OutputType.HISTOGRAM.value,
        help="Reduction applied to the bins (default: histogram)",
    )
    parser.add_argument(
        "--output-name",
        default="distribution",
        help="Base name of the output file",
    )
    parser.add_argument(
        "--output-path",
        default=".",
        help="Directory the output file is written to",
    )
    parser.add_argument(
        "--context",
        default="0",
        help="Context appended to the output file name",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log per-file and per-bin details",
    )

    args = parser.parse_args(argv)
    configure_logging(logging.DEBUG if args.verbose else logging.INFO)

    try:
        samples = read_samples(Path(args.samples))
        config = DistributionConfig(
            args.min,
            args.max,
            args.bin_length,
            output_type=OutputType(args.output_type),
        )
        aggregator = MultiFileAggregator(MultiFileAggregatorConfig(
            output_file_name=args.output_name,
            output_path=args.output_path,
        ))
    except (OSError, ValueError) as e:
        logger.error(str(e))
        return 1

    collector = DistributionCollector(config, name=args.output_name)
    collector.output.connect(aggregator.sink(args.context))
    collector.output_information.connect(
        lambda text: aggregator.add_context_heading(args.context, text)
    )

    try:
        collector.activate()
        for sample in samples:
            collector.trace_sink_double(0.0, sample)
        result = collector.finalize()
        paths = aggregator.finalize()
    except StatsError as e:
        logger.error(str(e))
        return 1

    logger.info(f"Binned {result.count} samples into {result.num_bins} bins")
    for path in paths:
        logger.info(f"Written to {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
