from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

import jinja2
import yaml
from jinja2 import meta
from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, ValidationError

from .errors import (
    CaptureGroupError,
    ColorError,
    ConfigError,
    ConfigParseError,
    ConfigShapeError,
    PatternError,
    TemplateError,
)
from .jinja import DEFAULT_EVENT_TEMPLATE, DEFAULT_STATE_TEMPLATE, JINJA_ENV, compile_template
from .paint import Painter
from .processors import (
    Colorizer,
    EventRule,
    EventSpanExtractor,
    LineProcessor,
    PatternColorRule,
    PatternColorSet,
    StateExtractor,
    StateRule,
)
from .types import ColorCode, CompiledPattern, compile_pattern

logger = logging.getLogger(__name__)

# pydantic error types mapped to the JSON type the field expects
_EXPECTED_TYPES = {
    "string_type": "String",
    "list_type": "Array",
    "model_type": "Object",
    "model_attributes_type": "Object",
    "dict_type": "Object",
    "int_type": "Number",
    "greater_than_equal": "Non-negative number",
    "missing": "String",
}


class PatternColorConfig(BaseModel):
    """Paint lines matching 'pattern' (and the lines after them) with 'color'."""
    pattern: StrictStr
    color: StrictStr


class EventPatternConfig(BaseModel):
    """Collect lines from a 'start_pattern' match to the next 'end_pattern' match."""
    start_pattern: StrictStr
    end_pattern: StrictStr
    color: StrictStr | None = None
    template: StrictStr | None = Field(default=None, description="Jinja2 template for the event block")


class StatePatternConfig(BaseModel):
    """Report a state marker whenever 'pattern' matches."""
    pattern: StrictStr
    group: StrictInt = Field(default=0, ge=0, description="Capture group to report, 0 for the whole match")
    color: StrictStr | None = None
    template: StrictStr | None = Field(default=None, description="Jinja2 template for the state marker")


class Config(BaseModel):
    """Top-level configuration loaded from JSON or YAML.

    Absent or null lists mean no rules of that kind. 'prefix' is prepended
    to every pattern before compiling it.
    """
    model_config = ConfigDict(extra="ignore")

    prefix: StrictStr | None = None
    pattern_colors: list[PatternColorConfig] | None = None
    event_patterns: list[EventPatternConfig] | None = None
    state_patterns: list[StatePatternConfig] | None = None

    def build(self) -> "Rules":
        """Compile patterns, colors and templates into rules."""
        pattern_colors = PatternColorSet(tuple(
            PatternColorRule(
                pattern=compile_field(self.prefix, pc.pattern, f"pattern_colors[{i}].pattern"),
                color=parse_color(pc.color, f"pattern_colors[{i}].color"),
            )
            for i, pc in enumerate(self.pattern_colors or [])
        ))
        events = [
            build_event_rule(
                self.prefix,
                ev.start_pattern,
                ev.end_pattern,
                color=ev.color,
                template=ev.template,
                field=f"event_patterns[{i}]",
            )
            for i, ev in enumerate(self.event_patterns or [])
        ]
        states = [
            build_state_rule(
                self.prefix,
                st.pattern,
                group=st.group,
                color=st.color,
                template=st.template,
                field=f"state_patterns[{i}]",
            )
            for i, st in enumerate(self.state_patterns or [])
        ]
        logger.debug(
            "Compiled %d color rules, %d event rules, %d state rules",
            len(pattern_colors), len(events), len(states),
        )
        return Rules(pattern_colors=pattern_colors, events=events, states=states)


@dataclass(frozen=True)
class Rules:
    pattern_colors: PatternColorSet
    events: list[EventRule]
    states: list[StateRule]

    def processors(self, painter: Painter | None = None) -> list[LineProcessor]:
        """Create fresh processors: colorizer first, then events, then states."""
        painter = painter or Painter()
        processors: list[LineProcessor] = []
        if len(self.pattern_colors):
            processors.append(Colorizer(self.pattern_colors, painter=painter))
        processors.extend(EventSpanExtractor(rule, painter=painter) for rule in self.events)
        processors.extend(StateExtractor(rule, painter=painter) for rule in self.states)
        return processors


def compile_field(prefix: str | None, pattern: str, field: str) -> CompiledPattern:
    """Compile prefix + pattern, reporting syntax errors against field."""
    try:
        return compile_pattern(prefix, pattern)
    except re.error as e:
        raise PatternError(field, e) from e


EVENT_TEMPLATE_VARIABLES = frozenset({"text", "lines"})
STATE_TEMPLATE_VARIABLES = frozenset({"state", "line"})


def _check_template(source: str | None, default: str, field: str, variables: Iterable[str]) -> str:
    """Reject templates that do not parse or use variables never rendered."""
    if source is None:
        return default
    try:
        compile_template(source)
        names = meta.find_undeclared_variables(JINJA_ENV.parse(source))
    except jinja2.TemplateSyntaxError as e:
        raise TemplateError(field, e) from e
    unknown = sorted(names - set(variables) - set(JINJA_ENV.globals))
    if unknown:
        raise TemplateError(field, f"undefined variables: {', '.join(unknown)}")
    return source


def parse_color(value: str, field: str) -> ColorCode:
    """Parse a decimal palette index in 0..255."""
    if not value:
        raise ColorError(field, value, "cannot parse integer from empty string")
    if not (value.isascii() and value.isdigit()):
        raise ColorError(field, value, "invalid digit found in string")
    color = int(value)
    if not 0 <= color <= 255:
        raise ColorError(field, value, "number too large to fit in target type")
    return color


def build_event_rule(
    prefix: str | None,
    start_pattern: str,
    end_pattern: str,
    *,
    color: str | None = None,
    template: str | None = None,
    field: str = "events",
) -> EventRule:
    return EventRule(
        start_pattern=compile_field(prefix, start_pattern, f"{field}.start_pattern"),
        end_pattern=compile_field(prefix, end_pattern, f"{field}.end_pattern"),
        color=None if color is None else parse_color(color, f"{field}.color"),
        template=_check_template(template, DEFAULT_EVENT_TEMPLATE, f"{field}.template", EVENT_TEMPLATE_VARIABLES),
    )


def build_state_rule(
    prefix: str | None,
    pattern: str,
    *,
    group: int = 0,
    color: str | None = None,
    template: str | None = None,
    field: str = "states",
) -> StateRule:
    """Build a state rule, rejecting a capture group the pattern does not have."""
    compiled = compile_field(prefix, pattern, f"{field}.pattern")
    if group < 0 or group > compiled.groups:
        raise CaptureGroupError(f"{field}.group", group, compiled.groups)
    return StateRule(
        pattern=compiled,
        group=group,
        color=None if color is None else parse_color(color, f"{field}.color"),
        template=_check_template(
            template,
            DEFAULT_STATE_TEMPLATE,
            f"{field}.template",
            STATE_TEMPLATE_VARIABLES | set(compiled.regex.groupindex),
        ),
    )


def _format_loc(loc: tuple) -> str:
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        elif path:
            path += f".{part}"
        else:
            path = str(part)
    return path


def config_from_data(data: object) -> Config:
    """Validate an already-parsed JSON/YAML document into a Config."""
    if data is None:
        data = {}
    try:
        return Config.model_validate(data)
    except ValidationError as e:
        # Report the first problem only, with its path and the expected type
        first = e.errors()[0]
        field = _format_loc(first["loc"]) or "<root>"
        expected = _EXPECTED_TYPES.get(first["type"], first["msg"])
        raise ConfigShapeError(field, expected) from e


def load_config(path: str | Path) -> Config:
    """Load JSON (or YAML for any other suffix) from 'path' into a Config."""
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        try:
            if path.suffix.lower() == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
        except (json.JSONDecodeError, yaml.YAMLError, UnicodeDecodeError) as e:
            raise ConfigParseError(str(path), e) from e
    return config_from_data(data)


__all__ = [
    "Config",
    "ConfigError",
    "Rules",
    "build_event_rule",
    "compile_field",
    "build_state_rule",
    "config_from_data",
    "load_config",
    "parse_color",
]
