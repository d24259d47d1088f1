from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol

from jinja2 import Template

from .jinja import DEFAULT_EVENT_TEMPLATE, DEFAULT_STATE_TEMPLATE, compile_template
from .paint import Painter
from .types import ColorCode, CompiledPattern

logger = logging.getLogger(__name__)


class LineProcessor(Protocol):
    """Anything the pipeline can feed lines to.

    process_line returns the annotated output for a line, or None when the
    line produces nothing. result is called once after the last line.
    """
    def process_line(self, line: str) -> Optional[str]:
        ...

    def requires_separator(self) -> bool:
        ...

    def result(self) -> Optional[str]:
        ...


@dataclass(frozen=True)
class PatternColorRule:
    pattern: CompiledPattern
    color: ColorCode


@dataclass(frozen=True)
class PatternColorSet:
    """Ordered color rules; the first rule whose pattern matches wins."""
    rules: tuple[PatternColorRule, ...] = ()

    def __len__(self) -> int:
        return len(self.rules)

    def find_color(self, line: str) -> Optional[ColorCode]:
        for rule in self.rules:
            if rule.pattern.search(line):
                return rule.color
        return None


@dataclass(frozen=True)
class EventRule:
    start_pattern: CompiledPattern
    end_pattern: CompiledPattern
    color: ColorCode | None = None
    template: str = DEFAULT_EVENT_TEMPLATE


@dataclass(frozen=True)
class StateRule:
    pattern: CompiledPattern
    group: int = 0
    color: ColorCode | None = None
    template: str = DEFAULT_STATE_TEMPLATE


@dataclass
class Colorizer:
    """Paint every line with the color of the last level pattern seen.

    Lines without a match of their own (continuations, stack traces) keep
    the previous color; before the first match the neutral color is used.
    """
    pattern_colors: PatternColorSet
    painter: Painter = field(default_factory=Painter)
    current_color: ColorCode | None = field(default=None, init=False)

    def process_line(self, line: str) -> Optional[str]:
        color = self.pattern_colors.find_color(line)
        if color is not None:
            self.current_color = color
        if self.current_color is None:
            return self.painter.paint_default(line)
        return self.painter.paint(line, self.current_color)

    def requires_separator(self) -> bool:
        return False

    def result(self) -> Optional[str]:
        return None


@dataclass
class EventSpanExtractor:
    """Collect the lines from a start match through the next end match.

    Nothing is emitted until the end pattern matches; the whole span is then
    rendered as one block. A start match inside an open span is ordinary
    content. A span still open when input ends is never emitted.
    """
    rule: EventRule
    painter: Painter = field(default_factory=Painter)
    _pending: list[str] | None = field(default=None, init=False, repr=False)
    _compiled_template: Template = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._compiled_template = compile_template(self.rule.template)

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def process_line(self, line: str) -> Optional[str]:
        if self._pending is None:
            if self.rule.start_pattern.search(line):
                self._pending = [line]
            return None

        self._pending.append(line)
        if not self.rule.end_pattern.search(line):
            return None

        lines, self._pending = self._pending, None
        text = "".join(f"{item}\n" for item in lines)
        event = self._compiled_template.render(text=text, lines=lines)
        return self.painter.paint(event, self.rule.color)

    def requires_separator(self) -> bool:
        return True

    def result(self) -> Optional[str]:
        if self._pending is not None:
            logger.debug("Dropping event span of %d lines still open at end of input", len(self._pending))
        return None


@dataclass
class StateExtractor:
    """Emit a state marker for every line matching the pattern.

    With group 0 the marker carries the whole match, otherwise the text of
    that capture group. A group that did not take part in the match yields
    nothing for the line.
    """
    rule: StateRule
    painter: Painter = field(default_factory=Painter)
    _compiled_template: Template = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._compiled_template = compile_template(self.rule.template)

    def process_line(self, line: str) -> Optional[str]:
        match = self.rule.pattern.search(line)
        if match is None:
            return None
        state = match.group(self.rule.group)
        if state is None:
            return None
        values: dict[str, str] = {k: (v or "") for k, v in match.groupdict().items()}
        values.update(state=state, line=line)
        marker = self._compiled_template.render(**values)
        return self.painter.paint(marker, self.rule.color)

    def requires_separator(self) -> bool:
        return False

    def result(self) -> Optional[str]:
        return None
