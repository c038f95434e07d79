"""Pytest fixtures for simstats tests."""

import shutil
import sys
import tempfile
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from simstats.scheduler import EventScheduler


class Recorder:
    """Callable that remembers the arguments of every call."""

    def __init__(self):
        self.calls = []

    def __call__(self, *args):
        self.calls.append(args)

    @property
    def values(self):
        """Single-argument calls flattened to a list of values."""
        return [args[0] for args in self.calls]

    def __len__(self):
        return len(self.calls)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp = tempfile.mkdtemp()
    yield temp
    shutil.rmtree(temp, ignore_errors=True)


@pytest.fixture
def scheduler():
    """Create a scheduler starting at t=0."""
    return EventScheduler()


@pytest.fixture
def recorder():
    """Create a fresh call recorder."""
    return Recorder()


@pytest.fixture
def make_recorder():
    """Factory for additional recorders within one test."""
    return Recorder


def feed(collector, values):
    """Push values through the collector's canonical sink."""
    for value in values:
        collector.trace_sink(0.0, value)
