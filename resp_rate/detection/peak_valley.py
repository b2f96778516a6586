"""
Peak / valley detection on the windowed mean series.

Tracks whether the mean is rising or falling and reports a reversal as
an extremum. A reversal is only visible once the next mean has been
computed, so the extremum is attributed to the previous tick (tick - 1).
The very first reversal after warm-up is an artefact of the window
filling up and is skipped.
"""

from dataclasses import dataclass, field
from typing import Optional

from .base import (
    ExtremaDetector,
    DetectionEvent,
    Direction,
    EventKind,
    TickPair,
)
from ..preprocessing.windowing import SmoothingWindow


@dataclass
class ExtremaRecord:
    """Ticks of the last two peaks and the last two valleys."""
    peaks: TickPair = field(default_factory=TickPair)
    valleys: TickPair = field(default_factory=TickPair)

    def reset(self) -> None:
        self.peaks.reset()
        self.valleys.reset()


class PeakValleyDetector(ExtremaDetector):
    """
    Detect peaks and valleys as direction reversals of the mean series.

    Comparing mean[-1] with mean[-2]:
    - rising while FALLING: valley at tick - 1, switch to RISING
    - not rising (falling or flat) while RISING: peak at tick - 1, switch to FALLING

    The first reversal only switches direction and records nothing.

    Usage:
        detector = PeakValleyDetector()
        event = detector.detect(tick, value, window)
        if event is not None:
            rates = calculator.compute(detector.extrema)
    """

    def __init__(self):
        super().__init__(name='peak_valley')
        self.extrema = ExtremaRecord()
        self.direction = Direction.FALLING
        self.skip_first = True

    def detect(
        self,
        tick: int,
        raw_value: float,
        window: SmoothingWindow
    ) -> Optional[DetectionEvent]:
        if not self.is_primed(window):
            return None

        if window.latest_mean > window.previous_mean:
            if self.direction is Direction.FALLING:
                self.direction = Direction.RISING
                if self.skip_first:
                    self.skip_first = False
                    return None
                self.extrema.valleys.push(tick - 1)
                return DetectionEvent(EventKind.VALLEY, tick - 1)
        else:
            if self.direction is Direction.RISING:
                self.direction = Direction.FALLING
                if self.skip_first:
                    self.skip_first = False
                    return None
                self.extrema.peaks.push(tick - 1)
                return DetectionEvent(EventKind.PEAK, tick - 1)

        return None

    def reset(self) -> None:
        self.extrema.reset()
        self.direction = Direction.FALLING
        self.skip_first = True
