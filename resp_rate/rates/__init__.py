"""
Rates Layer

Cycle-rate computation, clamping and published-rate smoothing.
"""

from .calculator import (
    RateLimits,
    RateEstimate,
    RateTracker,
    PeakValleyRateCalculator,
    CrossingRateCalculator,
    cycle_rate,
    clamp_delta,
    clamp_bounds
)
from .smoother import RateSmoother

__all__ = [
    'RateLimits',
    'RateEstimate',
    'RateTracker',
    'PeakValleyRateCalculator',
    'CrossingRateCalculator',
    'cycle_rate',
    'clamp_delta',
    'clamp_bounds',
    'RateSmoother',
]
