"""Setup-time failures raised while turning configuration into rules.

Every error names the field it came from using a dotted path such as
``event_patterns[0].start_pattern`` (or the CLI flag for flag-built rules).
"""

from __future__ import annotations


class ConfigError(ValueError):
    def __init__(self, field: str, detail: str) -> None:
        self.field = field
        self.detail = detail
        super().__init__(f"Invalid configuration file: {detail}")


class ConfigParseError(ConfigError):
    """The configuration document is not valid JSON/YAML."""
    def __init__(self, path: str, error: Exception) -> None:
        self.error = error
        super().__init__(path, f"{path}: {error}")


class ConfigShapeError(ConfigError):
    """A configuration value has the wrong JSON type."""
    def __init__(self, field: str, expected: str) -> None:
        self.expected = expected
        super().__init__(field, f'Invalid Json value type for "{field}" (Expected: {expected})')


class PatternError(ConfigError):
    def __init__(self, field: str, error: Exception) -> None:
        self.error = error
        super().__init__(field, f'Invalid regex for "{field}". ({error})')


class ColorError(ConfigError):
    def __init__(self, field: str, value: str, error: str) -> None:
        self.value = value
        self.error = error
        super().__init__(field, f'Failed to parse "{field}". (Invalid color value: {value} ({error}))')


class CaptureGroupError(ConfigError):
    def __init__(self, field: str, group: int, available: int) -> None:
        self.group = group
        self.available = available
        super().__init__(
            field,
            f'Invalid capture group for "{field}". (group {group} requested, pattern has {available})',
        )


class TemplateError(ConfigError):
    def __init__(self, field: str, error: Exception | str) -> None:
        self.error = error
        super().__init__(field, f'Invalid template for "{field}". ({error})')
