"""
Zero-crossing (z-score) detection.

Flags a crossing whenever the raw sample deviates from the previous
windowed mean by more than `z_threshold` previous windowed standard
deviations. A crossing stays pending until the deviation drops back under
the threshold, so a sustained excursion counts once. Two consecutive
crossings span half a breath.
"""

from typing import Optional

from .base import ExtremaDetector, DetectionEvent, EventKind, TickPair
from ..preprocessing.windowing import SmoothingWindow


class ZeroCrossingDetector(ExtremaDetector):
    """
    Detect half-cycle crossings from large deviations against the mean.

    Requires a SmoothingWindow created with track_std=True.

    Attributes:
        z_threshold (float): Deviation threshold in standard deviations
        crossings (TickPair): Ticks of the last two crossings
        detected (bool): A crossing is pending (deviation still above threshold)
    """

    def __init__(self, z_threshold: float = 6.0):
        super().__init__(name='zero_crossing')
        self.z_threshold = z_threshold
        self.crossings = TickPair()
        self.detected = False

    def detect(
        self,
        tick: int,
        raw_value: float,
        window: SmoothingWindow
    ) -> Optional[DetectionEvent]:
        if not self.is_primed(window):
            return None

        deviation = abs(raw_value - window.previous_mean)
        if deviation > self.z_threshold * window.previous_std:
            if not self.detected:
                self.crossings.push(tick)
                self.detected = True
                return DetectionEvent(EventKind.CROSSING, tick)
        else:
            self.detected = False

        return None

    def reset(self) -> None:
        self.crossings.reset()
        self.detected = False
