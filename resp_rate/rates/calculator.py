"""
Rate Calculation

Turns detected cycle boundaries into breaths-per-minute values.

Full cycle (peak-to-peak or valley-to-valley):

    rate = 60 / ((1 / fs) * (t1 - t0))

Half cycle (crossing-to-crossing):

    rate = 60 / (2 * (1 / fs) * (s1 - s0))

Every new rate goes through two clamps against the previous rate of the
same kind:
1. Delta clamp (optional): a jump larger than max_delta_per_step is cut to
   previous +/- max_delta_per_step.
2. Bounds clamp (always): a rate outside [absolute_min, absolute_max] is
   replaced by the previous rate.
"""

from dataclasses import dataclass
from typing import Optional

from ..detection.base import TickPair
from ..detection.peak_valley import ExtremaRecord


@dataclass(frozen=True)
class RateLimits:
    """
    Clamping parameters shared by all rate trackers.

    Attributes:
        baseline_rate: Starting "previous" rate (BPM)
        max_delta_per_step: Largest allowed change between two rates of one kind
        absolute_min: Lowest plausible rate
        absolute_max: Highest plausible rate
        clamp_enabled: Apply the delta clamp
    """
    baseline_rate: float = 14.0
    max_delta_per_step: float = 1.5
    absolute_min: float = 1.0
    absolute_max: float = 30.0
    clamp_enabled: bool = True


@dataclass(frozen=True)
class RateEstimate:
    """
    Rates produced by one detected cycle.

    The tick is the one before the sample that completed the cycle,
    matching the extremum lag. In zero-crossing mode peak_rate and
    valley_rate are None.
    """
    tick: int
    average_rate: float
    peak_rate: Optional[float] = None
    valley_rate: Optional[float] = None


def cycle_rate(span_ticks: int, sampling_rate_hz: float, half_cycle: bool = False) -> float:
    """
    Breaths per minute for a cycle spanning `span_ticks` samples.

    Args:
        span_ticks: Tick distance between the two cycle boundaries
        sampling_rate_hz: Sampling rate in Hz
        half_cycle: The span covers half a breath (crossing pairs)
    """
    period = (1.0 / sampling_rate_hz) * span_ticks
    if half_cycle:
        period *= 2
    return 60.0 / period


def clamp_delta(rate: float, previous: float, max_delta: float) -> float:
    """Limit the change from `previous` to `max_delta`, keeping its direction."""
    if abs(rate - previous) > max_delta:
        if rate > previous:
            return previous + max_delta
        return previous - max_delta
    return rate


def clamp_bounds(rate: float, fallback: float, absolute_min: float, absolute_max: float) -> float:
    """Return `fallback` when `rate` lies outside [absolute_min, absolute_max]."""
    if rate < absolute_min or rate > absolute_max:
        return fallback
    return rate


class RateTracker:
    """
    Clamps successive rates of one kind (peak, valley or crossing).

    Attributes:
        limits (RateLimits): Clamping parameters
        previous (float): Last accepted rate, starts at the baseline
    """

    def __init__(self, limits: RateLimits):
        self.limits = limits
        self.previous = limits.baseline_rate

    def accept(self, rate: float) -> float:
        """Clamp a new rate, remember it and return it."""
        if self.limits.clamp_enabled:
            rate = clamp_delta(rate, self.previous, self.limits.max_delta_per_step)
        rate = clamp_bounds(rate, self.previous, self.limits.absolute_min, self.limits.absolute_max)
        self.previous = rate
        return rate

    def reset(self) -> None:
        self.previous = self.limits.baseline_rate


class PeakValleyRateCalculator:
    """
    Full-cycle rates from peak and valley ticks.

    Both the peak-to-peak and the valley-to-valley rate are recomputed on
    every extremum. Nothing is produced until two peaks and two valleys
    have been recorded; from then on the clamped peak and valley rates are
    averaged into one instantaneous rate.
    """

    def __init__(self, sampling_rate_hz: float, limits: RateLimits):
        self.sampling_rate_hz = sampling_rate_hz
        self.peak = RateTracker(limits)
        self.valley = RateTracker(limits)

    def compute(self, tick: int, extrema: ExtremaRecord) -> Optional[RateEstimate]:
        """
        Args:
            tick: Tick of the extremum that triggered the computation
            extrema: Current peak and valley ticks

        Returns:
            RateEstimate, or None while either kind has fewer than two ticks
        """
        if not (extrema.peaks.is_complete and extrema.valleys.is_complete):
            return None
        if extrema.peaks.span <= 0 or extrema.valleys.span <= 0:
            return None

        peak_rate = self.peak.accept(cycle_rate(extrema.peaks.span, self.sampling_rate_hz))
        valley_rate = self.valley.accept(cycle_rate(extrema.valleys.span, self.sampling_rate_hz))

        return RateEstimate(
            tick=tick,
            average_rate=(peak_rate + valley_rate) / 2.0,
            peak_rate=peak_rate,
            valley_rate=valley_rate
        )

    def reset(self) -> None:
        self.peak.reset()
        self.valley.reset()


class CrossingRateCalculator:
    """Half-cycle rates from the last two crossing ticks."""

    def __init__(self, sampling_rate_hz: float, limits: RateLimits):
        self.sampling_rate_hz = sampling_rate_hz
        self.crossing = RateTracker(limits)

    def compute(self, tick: int, crossings: TickPair) -> Optional[RateEstimate]:
        if not crossings.is_complete or crossings.span <= 0:
            return None

        rate = self.crossing.accept(
            cycle_rate(crossings.span, self.sampling_rate_hz, half_cycle=True)
        )
        return RateEstimate(tick=tick, average_rate=rate)

    def reset(self) -> None:
        self.crossing.reset()
