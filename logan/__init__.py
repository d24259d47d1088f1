"""Stream a log file through regex rules: colorize levels, extract events, report states."""

__version__ = "0.1.0"
