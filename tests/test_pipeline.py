"""Tests for running several processors over one pass of the input."""

import io
import logging

from logan.config import build_event_rule, build_state_rule, config_from_data
from logan.paint import Painter
from logan.pipeline import SEPARATOR, Pipeline
from logan.processors import Colorizer, EventSpanExtractor, PatternColorRule, PatternColorSet, StateExtractor
from logan.types import compile_pattern

PLAIN = Painter(enabled=False)


class Summary:
    """Processor that only reports a result once input is exhausted."""
    def __init__(self):
        self.count = 0

    def process_line(self, line):
        self.count += 1
        return None

    def requires_separator(self):
        return False

    def result(self):
        return f"{self.count} lines"


def run(processors, lines):
    dst = io.StringIO()
    stats = Pipeline(processors).process_stream(io.StringIO("".join(f"{line}\n" for line in lines)), dst)
    return dst.getvalue(), stats


def colorizer():
    rules = PatternColorSet((PatternColorRule(compile_pattern(None, "INFO"), 28),))
    return Colorizer(rules, painter=PLAIN)


def events():
    return EventSpanExtractor(build_event_rule(None, "BEGIN", "END"), painter=PLAIN)


class TestPipeline:
    def test_dense_output_has_no_separators(self):
        output, stats = run([colorizer()], ["a", "INFO b", "c"])
        assert output == "a\nINFO b\nc\n\n"
        assert stats.lines == 3
        assert stats.outputs == 3

    def test_separator_around_events(self):
        output, _ = run([colorizer(), events()], ["a", "BEGIN a", "END b", "c"])
        assert output == (
            "a\n"
            "BEGIN a\n"
            "END b\n"
            f"{SEPARATOR}\n"
            "Event:\nBEGIN a\nEND b\n\n"
            f"{SEPARATOR}\n"
            "c\n"
            "\n"
        )

    def test_first_output_has_no_leading_separator(self):
        output, _ = run([events()], ["BEGIN", "END"])
        assert output == "Event:\nBEGIN\nEND\n\n\n"

    def test_consecutive_events_are_separated(self):
        output, _ = run([events()], ["BEGIN 1", "END 1", "BEGIN 2", "END 2"])
        assert output == (
            "Event:\nBEGIN 1\nEND 1\n\n"
            f"{SEPARATOR}\n"
            "Event:\nBEGIN 2\nEND 2\n\n"
            "\n"
        )

    def test_processor_order_within_line(self):
        state = StateExtractor(build_state_rule(None, r"state (\w+)", group=1), painter=PLAIN)
        output, _ = run([state, colorizer()], ["INFO state idle"])
        assert output == "State: idle\n\nINFO state idle\n\n"

    def test_unterminated_event_is_not_printed(self):
        output, stats = run([events()], ["BEGIN a", "mid"])
        assert output == "\n"
        assert stats.outputs == 0

    def test_open_span_logged_at_end_of_input(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="logan.processors"):
            run([events()], ["BEGIN a", "mid"])
        assert "Dropping event span of 2 lines" in caplog.text

    def test_each_run_starts_fresh(self):
        pipeline = Pipeline([events()])
        first = io.StringIO()
        pipeline.process_stream(["BEGIN 1\n", "END 1\n"], first)
        second = io.StringIO()
        stats = pipeline.process_stream(["BEGIN 2\n", "END 2\n"], second)
        assert second.getvalue() == "Event:\nBEGIN 2\nEND 2\n\n\n"
        assert stats.lines == 2
        assert stats.outputs == 1

    def test_results_printed_after_input(self):
        output, _ = run([colorizer(), Summary()], ["a", "b"])
        assert output == "a\nb\n\n2 lines\n"

    def test_strips_line_endings(self):
        dst = io.StringIO()
        Pipeline([colorizer()]).process_stream(["a\r\n", "b"], dst)
        assert dst.getvalue() == "a\nb\n\n"

    def test_empty_pipeline(self):
        processors = config_from_data({}).build().processors()
        output, stats = run(processors, ["a", "b"])
        assert output == "\n"
        assert stats.lines == 2

    def test_log_file(self, log_path):
        config = config_from_data({
            "prefix": r"[\d]{4}-[\d]{2}-[\d]{2} [\d]{2}:[\d]{2}:[\d]{2} ",
            "event_patterns": [{"start_pattern": "INFO Mouse left down", "end_pattern": "INFO Mouse left up"}],
            "state_patterns": [{"pattern": r"INFO Set state to (\w+)", "group": 1}],
        })
        dst = io.StringIO()
        with open(log_path, encoding="utf-8") as src:
            Pipeline(config.build().processors(PLAIN)).process_stream(src, dst)
        assert dst.getvalue() == (
            "Event:\n"
            "2020-01-01 10:00:01 INFO Mouse left down at 0, 0\n"
            "2020-01-01 10:00:02 INFO Mouse moved to 10, 0\n"
            "2020-01-01 10:00:03 INFO Mouse left up at 10, 0\n\n"
            f"{SEPARATOR}\n"
            "State: options\n\n"
            f"{SEPARATOR}\n"
            "Event:\n"
            "2020-01-01 10:00:04 INFO Mouse left down at 10, 0\n"
            "2020-01-01 10:00:04 INFO Mouse moved to 10, 10\n"
            "2020-01-01 10:00:05 INFO Mouse left up at 10, 10\n\n"
            f"{SEPARATOR}\n"
            "State: main_menu\n\n"
            "\n"
        )
