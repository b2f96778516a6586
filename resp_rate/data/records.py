"""
Sample and Diagnostic Record Types

Small value types that travel between the acquisition side, the engine
and the session logs:

- Sample: one (tick, value) pair from the sensor or a replayed file
- AverageRecord: one point of the windowed-mean ("average filter") series
- RateRecord: one completed breathing cycle (instantaneous + published rate)
"""

from dataclasses import dataclass
from typing import List


MARKER = '*'


@dataclass(frozen=True)
class Sample:
    """
    One raw sensor reading.

    Attributes:
        tick: Monotonic sample counter (one tick per sampling interval)
        value: Raw sensor value
    """
    tick: int
    value: float


@dataclass(frozen=True)
class AverageRecord:
    """Windowed mean of the smoothing window at a given tick."""
    tick: int
    mean: float
    precision: int = 2

    def fields(self) -> List[str]:
        return [str(self.tick), f"{self.mean:.{self.precision}f}"]

    def to_line(self, marker: bool = False) -> str:
        return format_line(self.fields(), marker)


@dataclass(frozen=True)
class RateRecord:
    """
    Diagnostic record emitted once per completed cycle.

    Attributes:
        tick: Tick of the detected extremum (one tick before detection)
        instantaneous_rate: Clamped rate of this cycle (BPM)
        published_rate: Smoothed rate after this cycle (BPM)
        precision: Decimal places used when rendering
    """
    tick: int
    instantaneous_rate: float
    published_rate: float
    precision: int = 1

    def fields(self) -> List[str]:
        return [
            str(self.tick),
            f"{self.instantaneous_rate:.{self.precision}f}",
            f"{self.published_rate:.{self.precision}f}",
        ]

    def to_line(self, marker: bool = False) -> str:
        return format_line(self.fields(), marker)


def format_line(fields: List[str], marker: bool = False) -> str:
    """Join fields into one comma separated line, optionally flagged with the event marker."""
    if marker:
        fields = list(fields) + [MARKER]
    return ",".join(fields)
