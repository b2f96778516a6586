"""
Detection Layer

Breathing-cycle detectors over the smoothing window.
"""

from .base import (
    ExtremaDetector,
    DetectionEvent,
    Direction,
    EventKind,
    TickPair,
    MEAN_WARMUP_FLOOR
)
from .peak_valley import PeakValleyDetector, ExtremaRecord
from .zero_crossing import ZeroCrossingDetector

__all__ = [
    'ExtremaDetector',
    'DetectionEvent',
    'Direction',
    'EventKind',
    'TickPair',
    'MEAN_WARMUP_FLOOR',
    'PeakValleyDetector',
    'ExtremaRecord',
    'ZeroCrossingDetector',
]
