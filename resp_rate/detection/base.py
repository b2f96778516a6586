"""
Base Extrema Detector

Abstract base class for the breathing-cycle detectors, plus the small
state types they share. A detector looks at the smoothing window once per
tick and reports at most one event (peak, valley or crossing).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..preprocessing.windowing import SmoothingWindow


# The mean series must exceed this before detection starts; it skips the
# near-zero values the series holds right after warm-up.
MEAN_WARMUP_FLOOR = 1.0


class Direction(Enum):
    RISING = 'rising'
    FALLING = 'falling'


class EventKind(Enum):
    PEAK = 'peak'
    VALLEY = 'valley'
    CROSSING = 'crossing'


@dataclass(frozen=True)
class DetectionEvent:
    """A detected extremum or crossing and the tick it is attributed to."""
    kind: EventKind
    tick: int


class TickPair:
    """
    Two-slot ring of event ticks: the previous and the current one.

    A slot holding 0 has not been recorded yet.
    """

    def __init__(self):
        self.previous = 0
        self.current = 0

    def push(self, tick: int) -> None:
        self.previous = self.current
        self.current = tick

    @property
    def is_complete(self) -> bool:
        """True once two events have been recorded."""
        return self.previous != 0

    @property
    def span(self) -> int:
        """Distance in ticks between the two recorded events."""
        return self.current - self.previous

    def reset(self) -> None:
        self.previous = 0
        self.current = 0

    def as_tuple(self):
        return (self.previous, self.current)

    def __repr__(self) -> str:
        return f"TickPair({self.previous}, {self.current})"


class ExtremaDetector(ABC):
    """
    Abstract base class for cycle detection.

    All detectors must implement:
    - detect(): inspect the window after a tick and report an event
    - reset(): return to the initial state

    Attributes:
        name (str): Name of this detector
    """

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    def detect(
        self,
        tick: int,
        raw_value: float,
        window: SmoothingWindow
    ) -> Optional[DetectionEvent]:
        """
        Run the detector for one post-warm-up tick.

        Args:
            tick: Tick of the sample just added to the window
            raw_value: The unblended sample value
            window: Smoothing window, already updated for this tick

        Returns:
            The event detected at this tick, or None
        """
        pass

    @abstractmethod
    def reset(self) -> None:
        """Forget all detection state."""
        pass

    @staticmethod
    def is_primed(window: SmoothingWindow) -> bool:
        """True once the mean series holds two meaningful values."""
        return window.previous_mean > MEAN_WARMUP_FLOOR

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}')"
