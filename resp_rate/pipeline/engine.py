"""
Respiration-rate engine.

Per tick, in order:
1. Warm-up: the first `window_size` samples only fill the raw window
2. Smoothing window: blend the sample in, append the windowed mean (and std)
3. Detector: look for a peak/valley (or crossing)
4. Rate calculator: on an event, turn the recorded ticks into a clamped rate
5. Rate smoother: fold the rate into the published rate

The detection strategy is fixed at construction by
EngineConfig.detection_mode. The engine does no I/O; diagnostics leave
through the optional sinks.
"""

from dataclasses import dataclass
from typing import Callable, Optional

from .config import EngineConfig, DetectionMode
from ..data.records import AverageRecord, RateRecord
from ..detection.base import DetectionEvent
from ..detection.peak_valley import PeakValleyDetector
from ..detection.zero_crossing import ZeroCrossingDetector
from ..preprocessing.windowing import SmoothingWindow
from ..rates.calculator import (
    RateEstimate,
    PeakValleyRateCalculator,
    CrossingRateCalculator
)
from ..rates.smoother import RateSmoother


AverageSink = Callable[[AverageRecord], None]
RateSink = Callable[[RateRecord], None]


@dataclass(frozen=True)
class ProcessedTick:
    """
    Result of one post-warm-up tick.

    Attributes:
        tick: Tick of the sample
        mean: New windowed mean
        std: New windowed std (zero-crossing mode only)
        event: Extremum or crossing detected at this tick
        estimate: Rates of a completed cycle, if any
        published_rate: Published rate after this tick
    """
    tick: int
    mean: float
    std: Optional[float]
    event: Optional[DetectionEvent]
    estimate: Optional[RateEstimate]
    published_rate: float

    @property
    def cycle_completed(self) -> bool:
        return self.estimate is not None


class PeakValleyStrategy:
    """Peak/valley detector paired with the full-cycle rate calculator."""

    mode = DetectionMode.PEAK_VALLEY
    tracks_std = False

    def __init__(self, config: EngineConfig):
        self.detector = PeakValleyDetector()
        self.calculator = PeakValleyRateCalculator(config.sampling_rate_hz, config.rate_limits)

    def step(self, tick: int, raw_value: float, window: SmoothingWindow):
        event = self.detector.detect(tick, raw_value, window)
        if event is None:
            return None, None
        return event, self.calculator.compute(tick - 1, self.detector.extrema)


class ZeroCrossingStrategy:
    """Z-score crossing detector paired with the half-cycle rate calculator."""

    mode = DetectionMode.ZERO_CROSSING
    tracks_std = True

    def __init__(self, config: EngineConfig):
        self.detector = ZeroCrossingDetector(config.z_threshold)
        self.calculator = CrossingRateCalculator(config.sampling_rate_hz, config.rate_limits)

    def step(self, tick: int, raw_value: float, window: SmoothingWindow):
        event = self.detector.detect(tick, raw_value, window)
        if event is None:
            return None, None
        return event, self.calculator.compute(tick - 1, self.detector.crossings)


STRATEGIES = {
    DetectionMode.PEAK_VALLEY: PeakValleyStrategy,
    DetectionMode.ZERO_CROSSING: ZeroCrossingStrategy,
}


class RespirationEngine:
    """
    Streaming breaths-per-minute estimator.

    Feed one sample per tick, in tick order, and read `published_rate`.

    Usage:
        engine = RespirationEngine(EngineConfig())
        for sample in recording.samples():
            result = engine.submit(sample.tick, sample.value)
            if result is not None and result.cycle_completed:
                print(result.published_rate)

    Attributes:
        config (EngineConfig): Immutable engine configuration
        average_sink: Called with an AverageRecord on every post-warm-up tick
        rate_sink: Called with a RateRecord on every completed cycle
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        average_sink: Optional[AverageSink] = None,
        rate_sink: Optional[RateSink] = None
    ):
        self.config = config or EngineConfig()
        self.average_sink = average_sink
        self.rate_sink = rate_sink
        self.reset()

    def reset(self) -> None:
        """Return every window, detector, tracker and history to its initial state."""
        strategy_cls = STRATEGIES[self.config.detection_mode]
        self.strategy = strategy_cls(self.config)
        self.window = SmoothingWindow(
            window_size=self.config.window_size,
            influence=self.config.influence,
            track_std=strategy_cls.tracks_std
        )
        self.smoother = RateSmoother(self.config.smoothing_size, self.config.baseline_rate)
        self.last_estimate: Optional[RateEstimate] = None
        self.n_submitted = 0
        self.n_cycles = 0

    @property
    def published_rate(self) -> float:
        """Current breaths-per-minute estimate."""
        return self.smoother.published_rate

    @property
    def is_warm(self) -> bool:
        return self.window.is_full

    @property
    def detector(self):
        return self.strategy.detector

    def submit(self, tick: int, value: float) -> Optional[ProcessedTick]:
        """
        Process one sample.

        Args:
            tick: Sample tick (non-decreasing)
            value: Raw sample value (finite)

        Returns:
            None during warm-up, otherwise the ProcessedTick for this sample
        """
        self.n_submitted += 1

        if not self.window.is_full:
            self.window.fill(value)
            return None

        mean = self.window.update(value)
        if self.average_sink is not None:
            self.average_sink(AverageRecord(tick, mean))

        event, estimate = self.strategy.step(tick, value, self.window)
        if estimate is not None:
            self.smoother.push(estimate.average_rate)
            self.last_estimate = estimate
            self.n_cycles += 1
            if self.rate_sink is not None:
                self.rate_sink(self.rate_record(estimate))

        return ProcessedTick(
            tick=tick,
            mean=mean,
            std=self.window.std_series[-1] if self.window.std_series is not None else None,
            event=event,
            estimate=estimate,
            published_rate=self.published_rate
        )

    def rate_record(self, estimate: RateEstimate) -> RateRecord:
        """Diagnostic record for a cycle, rendered with the mode's precision."""
        return RateRecord(
            tick=estimate.tick,
            instantaneous_rate=estimate.average_rate,
            published_rate=self.published_rate,
            precision=self.config.rate_precision
        )

    def __repr__(self) -> str:
        return (
            f"RespirationEngine(mode={self.config.detection_mode.value}, "
            f"submitted={self.n_submitted}, cycles={self.n_cycles}, "
            f"published_rate={self.published_rate:.2f})"
        )
