from __future__ import annotations

import os
from dataclasses import dataclass

from .types import ColorCode

"""ANSI rendering of already-resolved palette colors."""

RESET = "\033[0m"
# Neutral color used for lines seen before any color rule matched
DEFAULT = "\033[37m"


def paint(text: str, color: ColorCode) -> str:
    return f"\033[38;5;{color}m{text}{RESET}"


def paint_default(text: str) -> str:
    return f"{DEFAULT}{text}{RESET}"


@dataclass(frozen=True)
class Painter:
    """Applies colors to text, or passes it through when disabled."""
    enabled: bool = True

    @classmethod
    def from_env(cls, no_color: bool = False) -> "Painter":
        # https://no-color.org: any non-empty value disables color
        return cls(enabled=not (no_color or os.environ.get("NO_COLOR")))

    def paint(self, text: str, color: ColorCode | None) -> str:
        if not self.enabled or color is None:
            return text
        return paint(text, color)

    def paint_default(self, text: str) -> str:
        if not self.enabled:
            return text
        return paint_default(text)
