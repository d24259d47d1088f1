from __future__ import annotations

from jinja2 import Environment, StrictUndefined, Template

"""Jinja2 environment and the default output labels.

The environment is created once at import time and reused to avoid per-line
construction overhead when rendering events and states.
"""

# Labels end with a newline, so keep it
JINJA_ENV: Environment = Environment(undefined=StrictUndefined, autoescape=False, keep_trailing_newline=True)

DEFAULT_EVENT_TEMPLATE = "Event:\n{{ text }}"
DEFAULT_STATE_TEMPLATE = "State: {{ state }}\n"


def compile_template(source: str) -> Template:
    """Compile a Jinja2 template from a string.
    """
    return JINJA_ENV.from_string(source)
