"""Tests for MultiFileAggregator."""

import os
from pathlib import Path

import pytest

from simstats.aggregators.multi_file import MultiFileAggregator, format_value, sanitize_context
from simstats.collectors.distribution import DistributionCollector
from simstats.config import DistributionConfig, MultiFileAggregatorConfig
from simstats.constants import FileType, OutputType
from simstats.errors import AggregatorIOError, AggregatorStateError, ConfigurationError


def make_aggregator(temp_dir, **kwargs):
    kwargs.setdefault("output_file_name", "delay")
    return MultiFileAggregator(MultiFileAggregatorConfig(output_path=temp_dir, **kwargs))


def read(path):
    return Path(path).read_text(encoding="utf-8")


class TestHelpers:
    """Tests for module-level helpers."""

    @pytest.mark.parametrize("context,expected", [
        ("ut-1", "ut-1"),
        ("a /b", "a_b"),
        ("node/0/dev", "node_0_dev"),
        ("x /y/z", "x_y_z"),
    ])
    def test_sanitize_context(self, context, expected):
        assert sanitize_context(context) == expected

    @pytest.mark.parametrize("value,expected", [
        (5.0, "5"),
        (0.2, "0.2"),
        (1234567.0, "1.23457e+06"),
        (3, "3"),
    ])
    def test_format_value(self, value, expected):
        assert format_value(value) == expected


class TestFileNaming:
    """Tests for context file naming."""

    def test_multi_file_names(self, temp_dir):
        aggregator = make_aggregator(temp_dir)
        assert aggregator.file_name("ut-1") == Path(temp_dir) / "delay-ut-1.txt"
        assert aggregator.file_name("a /b") == Path(temp_dir) / "delay-a_b.txt"

    def test_single_file_name(self, temp_dir):
        aggregator = make_aggregator(temp_dir, multi_file_mode=False)
        assert aggregator.file_name("ut-1") == Path(temp_dir) / "delay.txt"

    def test_output_directory_created(self, temp_dir):
        nested = os.path.join(temp_dir, "runs", "1")
        aggregator = MultiFileAggregator(MultiFileAggregatorConfig(output_file_name="d", output_path=nested))
        aggregator.write("c", 1.0)
        assert os.path.exists(os.path.join(nested, "d-c.txt"))

    def test_contexts_sharing_a_file_rejected(self, temp_dir):
        """A second context that sanitizes to a taken file name is refused."""
        aggregator = make_aggregator(temp_dir, output_file_name="d")
        aggregator.add_context_heading("a/b", "% head-a/b")
        aggregator.add_context_heading("a_b", "% head-a_b")
        aggregator.write("a/b", 1.0, 2.0)
        with pytest.raises(AggregatorStateError):
            aggregator.write("a_b", 3.0, 4.0)

        paths = aggregator.finalize()
        assert paths == [Path(temp_dir) / "d-a_b.txt"]
        assert read(paths[0]) == "% head-a/b\n1 2\n\n"

    def test_context_sharing_a_warning_file_rejected(self, temp_dir):
        aggregator = make_aggregator(temp_dir, output_file_name="d")
        aggregator.enable_context_warning("x")
        with pytest.raises(AggregatorStateError):
            aggregator.write("x-ATTN", 1.0)
        assert aggregator.contexts == ["x"]

    def test_refused_warning_leaves_context_unflagged(self, temp_dir):
        aggregator = make_aggregator(temp_dir, output_file_name="d")
        aggregator.write("q-ATTN", 1.0)
        with pytest.raises(AggregatorStateError):
            aggregator.enable_context_warning("q")
        assert aggregator.file_name("q") == Path(temp_dir) / "d-q.txt"


class TestWriting:
    """Tests for line layout."""

    def test_space_separated(self, temp_dir):
        aggregator = make_aggregator(temp_dir)
        aggregator.write("ut-1", 1.0, 0.5)
        aggregator.write("ut-1", 2.0, 0.25, 7.0)
        aggregator.finalize()
        assert read(aggregator.file_name("ut-1")) == "1 0.5\n2 0.25 7\n\n"

    @pytest.mark.parametrize("file_type,separator", [
        (FileType.COMMA_SEPARATED, ","),
        (FileType.TAB_SEPARATED, "\t"),
    ])
    def test_separators(self, temp_dir, file_type, separator):
        aggregator = make_aggregator(temp_dir, file_type=file_type)
        aggregator.write("c", 1.0, 2.0)
        aggregator.finalize()
        assert read(aggregator.file_name("c")) == f"1{separator}2\n\n"

    def test_formatted(self, temp_dir):
        aggregator = make_aggregator(temp_dir, file_type=FileType.FORMATTED)
        aggregator.set_format(2, "%.1f;%.3f")
        aggregator.write("c", 1.0, 2.0)
        aggregator.write("c", 3.0)
        aggregator.finalize()
        assert read(aggregator.file_name("c")) == "1.0;2.000\n3.000000e+00\n\n"

    def test_invalid_format_rejected(self, temp_dir):
        aggregator = make_aggregator(temp_dir, file_type=FileType.FORMATTED)
        with pytest.raises(ConfigurationError):
            aggregator.set_format(2, "%f")
        with pytest.raises(ConfigurationError):
            aggregator.set_format(11, " ".join(["%f"] * 11))
        assert aggregator.get_format(2) == "%e %e"

    @pytest.mark.parametrize("count", [0, 11])
    def test_dimension_limits(self, temp_dir, count):
        aggregator = make_aggregator(temp_dir)
        with pytest.raises(ConfigurationError):
            aggregator.write("c", *([1.0] * count))

    def test_ten_values(self, temp_dir):
        aggregator = make_aggregator(temp_dir)
        aggregator.write("c", *range(10))
        aggregator.finalize()
        assert read(aggregator.file_name("c")) == "0 1 2 3 4 5 6 7 8 9\n\n"

    def test_write_string(self, temp_dir):
        aggregator = make_aggregator(temp_dir)
        aggregator.write_string("c", "# comment")
        aggregator.finalize()
        assert read(aggregator.file_name("c")) == "# comment\n\n"

    def test_single_file_context_printing(self, temp_dir):
        """All contexts share one file, each line tagged with its context."""
        aggregator = make_aggregator(temp_dir, multi_file_mode=False, context_printing=True)
        aggregator.write("ut-1", 1.0)
        aggregator.write("ut-2", 2.0)
        paths = aggregator.finalize()
        assert paths == [Path(temp_dir) / "delay.txt"]
        assert read(paths[0]) == "ut-1 1\nut-2 2\n\n"

    def test_disabled_writes_nothing(self, temp_dir):
        aggregator = make_aggregator(temp_dir, enabled=False)
        aggregator.write("c", 1.0)
        assert aggregator.finalize() == []
        assert os.listdir(temp_dir) == []


class TestHeadings:
    """Tests for heading prepending at teardown."""

    def test_headings_prepended(self, temp_dir):
        aggregator = make_aggregator(temp_dir, general_heading="% general")
        aggregator.write("ut-1", 1.0, 2.0)
        aggregator.add_context_heading("ut-1", "% ut-1 heading")
        aggregator.write("ut-2", 3.0, 4.0)
        aggregator.finalize()

        assert read(aggregator.file_name("ut-1")) == "% general\n% ut-1 heading\n1 2\n\n"
        assert read(aggregator.file_name("ut-2")) == "% general\n3 4\n\n"

    def test_headings_accumulate(self, temp_dir):
        aggregator = make_aggregator(temp_dir)
        aggregator.add_general_heading("% a")
        aggregator.add_general_heading(" b")
        aggregator.add_context_heading("c", "% x")
        aggregator.add_context_heading("c", "\n% y")
        aggregator.write("c", 1.0)
        aggregator.finalize()
        assert read(aggregator.file_name("c")) == "% a b\n% x\n% y\n1\n\n"

    def test_finalize_twice_keeps_one_heading(self, temp_dir):
        aggregator = make_aggregator(temp_dir, general_heading="% general")
        aggregator.write("c", 1.0)
        first = aggregator.finalize()
        second = aggregator.finalize()
        assert first == second
        assert read(aggregator.file_name("c")).count("% general") == 1
        assert not os.path.exists(f"{aggregator.file_name('c')}.temp")

    def test_write_after_finalize(self, temp_dir):
        aggregator = make_aggregator(temp_dir)
        aggregator.finalize()
        with pytest.raises(AggregatorStateError):
            aggregator.write("c", 1.0)
        with pytest.raises(AggregatorStateError):
            aggregator.write_string("c", "x")

    def test_missing_file_raises(self, temp_dir):
        aggregator = make_aggregator(temp_dir)
        aggregator.write("c", 1.0)
        os.remove(aggregator.file_name("c"))
        with pytest.raises(AggregatorIOError):
            aggregator.finalize()


class TestContextWarning:
    """Tests for contexts flagged as possibly empty."""

    def test_attn_file_created_even_if_empty(self, temp_dir):
        aggregator = make_aggregator(temp_dir, general_heading="% g")
        aggregator.enable_context_warning("drops")
        path = aggregator.file_name("drops")
        assert path == Path(temp_dir) / "delay-drops-ATTN.txt"
        assert path.exists()
        aggregator.finalize()
        assert read(path) == "% g\n\n"

    def test_attn_file_receives_data(self, temp_dir):
        aggregator = make_aggregator(temp_dir)
        aggregator.enable_context_warning("drops")
        aggregator.write("drops", 1.0)
        aggregator.finalize()
        assert read(Path(temp_dir) / "delay-drops-ATTN.txt") == "1\n\n"
        assert not (Path(temp_dir) / "delay-drops.txt").exists()

    def test_warning_after_first_write(self, temp_dir):
        aggregator = make_aggregator(temp_dir)
        aggregator.write("drops", 1.0)
        with pytest.raises(AggregatorStateError):
            aggregator.enable_context_warning("drops")


class TestStaleFiles:
    """Tests for files left behind by an earlier run."""

    def test_stale_file_replaced(self, temp_dir):
        stale = Path(temp_dir) / "delay-c.txt"
        stale.write_text("old data\n", encoding="utf-8")
        aggregator = make_aggregator(temp_dir)
        aggregator.write("c", 1.0)
        aggregator.finalize()
        assert read(stale) == "1\n\n"


class TestCollectorIntegration:
    """Tests wiring a collector to the aggregator."""

    def test_distribution_into_file(self, temp_dir):
        aggregator = make_aggregator(temp_dir, output_file_name="pdf")
        collector = DistributionCollector(
            DistributionConfig(0.0, 9.0, 2.0, output_type=OutputType.PROBABILITY,
                               emit_information=False),
            name="pdf",
        )
        collector.output.connect(aggregator.sink("ut-1"))
        collector.activate()
        for value in (10, 9, 8, 6, 5, 4, 3, 2, 1, 0):
            collector.trace_sink(0.0, value)
        collector.finalize()
        aggregator.finalize()

        assert read(aggregator.file_name("ut-1")) == "1 0.2\n3 0.2\n5 0.2\n7 0.1\n9 0.3\n\n"
