from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, TextIO

from .processors import LineProcessor

logger = logging.getLogger(__name__)

SEPARATOR = "-" * 50


@dataclass
class PipelineStats:
    lines: int = 0
    outputs: int = 0


@dataclass
class Pipeline:
    """Run processors over one ordered pass of the input.

    Outputs are written as soon as a processor produces them, in line order
    and then processor order. A separator line goes in front of an output
    when it, or the output before it, asks for visual separation.
    """
    processors: list[LineProcessor]
    stats: PipelineStats = field(default_factory=PipelineStats, init=False)
    _last_required_separator: bool = field(default=False, init=False, repr=False)

    def process_stream(self, src: Iterable[str], dst: TextIO) -> PipelineStats:
        self.stats = PipelineStats()
        self._last_required_separator = False
        for raw_line in src:
            self.stats.lines += 1
            line = raw_line.rstrip("\r\n")
            for processor in self.processors:
                output = processor.process_line(line)
                if output is not None:
                    self._emit(output, processor.requires_separator(), dst)

        dst.write("\n")
        for processor in self.processors:
            result = processor.result()
            if result is not None:
                dst.write(result + "\n")

        logger.debug("Processed %d lines, wrote %d outputs", self.stats.lines, self.stats.outputs)
        return self.stats

    def _emit(self, output: str, requires_separator: bool, dst: TextIO) -> None:
        if self.stats.outputs and (self._last_required_separator or requires_separator):
            dst.write(SEPARATOR + "\n")
        dst.write(output + "\n")
        self.stats.outputs += 1
        self._last_required_separator = requires_separator
