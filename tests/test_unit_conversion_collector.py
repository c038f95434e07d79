"""Tests for UnitConversionCollector and ScalarCollector."""

import math

import pytest

from simstats.collectors.scalar import ScalarCollector
from simstats.collectors.unit_conversion import UnitConversionCollector, convert
from simstats.config import ScalarConfig, UnitConversionConfig
from simstats.constants import ConversionType, InputDataType, ScalarOutputType, TimeUnit
from simstats.errors import NotInitializedError

from conftest import Recorder


class TestConvert:
    """Tests for the individual conversions."""

    @pytest.mark.parametrize("conversion_type,value,expected", [
        (ConversionType.TRANSPARENT, 3.5, 3.5),
        (ConversionType.BYTES_TO_BIT, 100.0, 800.0),
        (ConversionType.BYTES_TO_KBIT, 1000.0, 8.0),
        (ConversionType.BYTES_TO_MBIT, 1e6, 8.0),
        (ConversionType.SECONDS_TO_MS, 0.25, 250.0),
        (ConversionType.LINEAR_TO_DB, 100.0, 20.0),
        (ConversionType.LINEAR_TO_DBM, 1.0, 30.0),
    ])
    def test_conversion(self, conversion_type, value, expected):
        assert convert(conversion_type, value) == pytest.approx(expected)

    def test_decibel_of_zero(self):
        """Zero power is minus infinity decibels."""
        assert convert(ConversionType.LINEAR_TO_DB, 0.0) == -math.inf

    def test_decibel_of_negative(self):
        assert math.isnan(convert(ConversionType.LINEAR_TO_DB, -1.0))


class TestUnitConversionCollector:
    """Tests for the three output sources."""

    def make(self, scheduler, **kwargs):
        collector = UnitConversionCollector(UnitConversionConfig(**kwargs), scheduler, name="rx")
        collector.activate()
        return collector

    def test_outputs(self, scheduler):
        collector = self.make(scheduler, conversion_type=ConversionType.BYTES_TO_BIT)
        pairs = Recorder()
        values = Recorder()
        timed = Recorder()
        collector.output.connect(pairs)
        collector.output_value.connect(values)
        collector.output_time_value.connect(timed)

        scheduler.schedule(1.0, collector.trace_sink, 7.0, 10.0)
        scheduler.schedule(2.0, collector.trace_sink, 10.0, 20.0)
        scheduler.run()

        assert pairs.calls == [(0.0, 80.0), (80.0, 160.0)]
        assert values.values == [80.0, 160.0]
        assert timed.calls == [(1.0, 80.0), (2.0, 160.0)]
        assert collector.finalize() == 2

    def test_first_old_value_is_zero_even_for_decibel(self, scheduler):
        """The first old value is never converted."""
        collector = self.make(scheduler, conversion_type=ConversionType.LINEAR_TO_DB)
        pairs = Recorder()
        collector.output.connect(pairs)
        collector.trace_sink(0.0, 10.0)
        assert pairs.calls == [(0.0, pytest.approx(10.0))]

    def test_time_unit(self, scheduler):
        collector = self.make(scheduler, time_unit=TimeUnit.MS)
        timed = Recorder()
        collector.output_time_value.connect(timed)
        scheduler.schedule(1.5, collector.trace_sink, 0.0, 4.0)
        scheduler.run()
        assert timed.calls == [(pytest.approx(1500.0), 4.0)]

    def test_disabled(self, scheduler):
        collector = self.make(scheduler, enabled=False)
        values = Recorder()
        collector.output_value.connect(values)
        collector.trace_sink(0.0, 4.0)
        assert len(values) == 0
        assert collector.finalize() == 0


class TestScalarCollector:
    """Tests for ScalarCollector reductions."""

    def make(self, scheduler, **kwargs):
        collector = ScalarCollector(ScalarConfig(**kwargs), scheduler, name="bytes")
        collector.activate()
        return collector

    def test_sum(self, scheduler):
        collector = self.make(scheduler)
        output = Recorder()
        collector.output.connect(output)
        for value in (1.0, 2.0, 3.5):
            collector.trace_sink(0.0, value)
        assert collector.finalize() == 6.5
        assert output.values == [6.5]

    def test_sum_without_samples(self, scheduler):
        assert self.make(scheduler).finalize() == 0.0

    def test_average_per_sample(self, scheduler):
        collector = self.make(scheduler, output_type=ScalarOutputType.AVERAGE_PER_SAMPLE)
        for value in (1.0, 2.0, 6.0):
            collector.trace_sink(0.0, value)
        assert collector.finalize() == pytest.approx(3.0)

    def test_average_per_second(self, scheduler):
        collector = self.make(
            scheduler,
            input_data_type=InputDataType.UINTEGER,
            output_type=ScalarOutputType.AVERAGE_PER_SECOND,
        )
        scheduler.schedule(1.0, collector.trace_sink, 0, 100)
        scheduler.schedule(3.0, collector.trace_sink, 0, 300)
        scheduler.run()
        assert collector.finalize() == pytest.approx(200.0)

    def test_average_skipped_without_duration(self, scheduler, caplog):
        collector = self.make(scheduler, output_type=ScalarOutputType.AVERAGE_PER_SECOND)
        output = Recorder()
        collector.output.connect(output)
        collector.trace_sink(0.0, 5.0)
        with caplog.at_level('WARNING'):
            assert collector.finalize() is None
        assert len(output) == 0
        assert "skipping" in caplog.text

    def test_average_skipped_without_samples(self, scheduler):
        collector = self.make(scheduler, output_type=ScalarOutputType.AVERAGE_PER_SAMPLE)
        assert collector.finalize() is None

    def test_not_activated(self, scheduler):
        collector = ScalarCollector(ScalarConfig(), scheduler)
        with pytest.raises(NotInitializedError):
            collector.trace_sink(0.0, 1.0)
