from __future__ import annotations

import argparse
import logging
import sys

from .config import ConfigError, Rules, build_event_rule, build_state_rule, compile_field, load_config, parse_color
from .paint import Painter
from .pipeline import Pipeline
from .processors import PatternColorRule, PatternColorSet

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _add_io_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("input", type=str, help="Input log file path or '-' for stdin")
    parser.add_argument("-o", "--output", type=str, default="-", help="Output file path or '-' for stdout")
    parser.add_argument("--no-color", action="store_true", help="Do not emit ANSI color codes (also NO_COLOR)")
    parser.add_argument("--log-level", type=str.upper, default="WARNING", choices=LOG_LEVELS)


def _add_prefix_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-P", "--prefix", type=str, default=None, help="Regex prepended to every pattern")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="logan", description="Colorize and annotate log files using regex rules.")
    sub = parser.add_subparsers(dest="command", required=True)

    use_config = sub.add_parser("use-config", help="Build all processors from a JSON/YAML config file")
    use_config.add_argument("config_path", type=str, help="Path to the configuration file")
    _add_io_arguments(use_config)

    colorize = sub.add_parser("colorize", help="Color lines by the last matched pattern")
    _add_prefix_argument(colorize)
    colorize.add_argument(
        "-p", "--pattern", dest="patterns", nargs=2, action="append", required=True,
        metavar=("PATTERN", "COLOR"), help="Pattern and palette color (0-255); repeatable, first match wins",
    )
    _add_io_arguments(colorize)

    events = sub.add_parser("events", help="Extract spans between a start and an end pattern")
    _add_prefix_argument(events)
    events.add_argument("-c", "--color", type=str, default=None, help="Palette color (0-255) for events")
    events.add_argument("-t", "--template", type=str, default=None, help="Jinja2 template for each event")
    events.add_argument("start", type=str, help="Pattern opening an event")
    events.add_argument("end", type=str, help="Pattern closing an event")
    _add_io_arguments(events)

    states = sub.add_parser("states", help="Report state changes matching a pattern")
    _add_prefix_argument(states)
    states.add_argument("-c", "--color", type=str, default=None, help="Palette color (0-255) for states")
    states.add_argument("-g", "--group", type=int, default=0, help="Capture group to report (0 = whole match)")
    states.add_argument("-t", "--template", type=str, default=None, help="Jinja2 template for each state")
    states.add_argument("regex", type=str, help="Pattern marking a state change")
    _add_io_arguments(states)
    return parser


def build_rules(args: argparse.Namespace) -> Rules:
    """Turn the selected subcommand's arguments into rules."""
    if args.command == "use-config":
        return load_config(args.config_path).build()

    if args.command == "colorize":
        pattern_colors = PatternColorSet(tuple(
            PatternColorRule(
                pattern=compile_field(args.prefix, pattern, f"--pattern[{i}]"),
                color=parse_color(color, f"--pattern[{i}]"),
            )
            for i, (pattern, color) in enumerate(args.patterns)
        ))
        return Rules(pattern_colors=pattern_colors, events=[], states=[])

    if args.command == "events":
        event = build_event_rule(args.prefix, args.start, args.end, color=args.color, template=args.template)
        return Rules(pattern_colors=PatternColorSet(), events=[event], states=[])

    state = build_state_rule(args.prefix, args.regex, group=args.group, color=args.color, template=args.template)
    return Rules(pattern_colors=PatternColorSet(), events=[], states=[state])


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=args.log_level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )
    try:
        rules = build_rules(args)
    except ConfigError as e:
        logger.error("%s", e)
        return 1
    except OSError as e:
        logger.error("Failed to open config file: %s", e)
        return 2

    pipeline = Pipeline(rules.processors(Painter.from_env(no_color=args.no_color)))

    try:
        src = sys.stdin if args.input == "-" else open(args.input, "r", encoding="utf-8")
    except OSError as e:
        logger.error("Failed to open input file: %s", e)
        return 2

    try:
        dst = sys.stdout if args.output == "-" else open(args.output, "w", encoding="utf-8")
    except OSError as e:
        logger.error("Failed to open output file: %s", e)
        if src is not sys.stdin:
            src.close()
        return 2

    try:
        pipeline.process_stream(src, dst)
        return 0
    finally:
        if src is not sys.stdin:
            src.close()
        if dst is not sys.stdout:
            dst.close()


if __name__ == "__main__":
    raise SystemExit(main())
