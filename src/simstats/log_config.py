"""Process-wide logging setup for scripts driving the pipeline."""

import logging

LOG_FORMAT = '%(asctime)s | %(levelname)s | %(message)s'
LOG_DATE_FORMAT = '%H:%M:%S'


def configure_logging(level: int = logging.INFO, force: bool = False) -> None:
    """Configure root logging the same way for every entry point.

    Args:
        level: Root logger level
        force: Replace handlers installed by an earlier configuration
    """
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        force=force,
    )
