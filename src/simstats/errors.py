"""Exceptions raised by collectors and aggregators.

Every error here reflects a configuration or programming mistake; none of
them is retried.
"""


class StatsError(Exception):
    """Base exception for statistics pipeline errors."""

    pass


class ConfigurationError(StatsError, ValueError):
    """Raised when a component is configured with invalid values."""

    pass


class CollectorStateError(StatsError):
    """Raised when a collector is used outside its lifecycle."""

    pass


class NotInitializedError(CollectorStateError):
    """Raised when samples arrive before the collector has been activated."""

    pass


class InvalidSampleError(StatsError, ValueError):
    """Raised when a sample does not fit the numeric kind it was traced as."""

    pass


class EmptyAccumulatorError(StatsError):
    """Raised when reading a statistic that is undefined without samples."""

    pass


class AggregatorError(StatsError):
    """Base exception for aggregator errors."""

    pass


class UnknownContextError(AggregatorError):
    """Raised when a context or dataset is used without being registered."""

    pass


class AggregatorStateError(AggregatorError):
    """Raised when an aggregator is written to after finalization."""

    pass


class AggregatorIOError(AggregatorError):
    """Raised when an output file cannot be opened, renamed or read."""

    pass


class DuplicateContextError(AggregatorError):
    """Raised when a dataset is added twice."""

    pass
