from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Pattern

# Index into the 256-entry terminal palette
ColorCode = int


@dataclass(frozen=True)
class CompiledPattern:
    """A compiled regex together with the text it was built from.

    - raw: the pattern as configured
    - prefix: the shared prefix prepended to it, if any
    """
    regex: Pattern[str]
    raw: str
    prefix: str | None = None

    @property
    def source(self) -> str:
        return self.regex.pattern

    @property
    def groups(self) -> int:
        return self.regex.groups

    def search(self, line: str) -> Optional[re.Match]:
        return self.regex.search(line)


def compile_pattern(prefix: str | None, raw: str) -> CompiledPattern:
    """Compile 'prefix + raw' as one regex. Raises re.error on bad syntax."""
    return CompiledPattern(regex=re.compile(f"{prefix or ''}{raw}"), raw=raw, prefix=prefix)
