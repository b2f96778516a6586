"""
Smoothing Window

Fixed-length windows over the incoming raw stream:

- raw window: the last `window_size` blended samples
- mean series ("average filter"): the mean of the raw window at each tick
- std series (zero-crossing mode only): population std of the raw window

Blending rule for a new sample x:

    new_last = influence * x + (1 - influence) * previous_last

where previous_last is the value that held the last slot before the window
shifted. With influence=0.1 and 20 samples at 10 Hz the window spans 2 s.
"""

from collections import deque
from typing import Deque, Optional
import numpy as np


class SmoothingWindow:
    """
    Exponentially blended raw window plus its windowed mean (and std) series.

    The raw window first has to be filled with `window_size` unblended
    samples (warm-up, see fill()). After that every update() shifts all
    three series by one slot. The mean and std series start as zeros.

    Usage:
        window = SmoothingWindow(window_size=20, influence=0.1)
        for sample in stream:
            if not window.is_full:
                window.fill(sample.value)
            else:
                mean = window.update(sample.value)

    Attributes:
        window_size (int): Number of slots in every series
        influence (float): Weight of the newest sample in the blend
        track_std (bool): Whether the std series is maintained
    """

    def __init__(self, window_size: int = 20, influence: float = 0.1, track_std: bool = False):
        if window_size < 2:
            raise ValueError(f"window_size must be at least 2, got {window_size}")
        if not 0.0 < influence <= 1.0:
            raise ValueError(f"influence must be in (0, 1], got {influence}")

        self.window_size = window_size
        self.influence = influence
        self.track_std = track_std

        self.raw: Deque[float] = deque(maxlen=window_size)
        self.mean_series: Deque[float] = deque([0.0] * window_size, maxlen=window_size)
        self.std_series: Optional[Deque[float]] = (
            deque([0.0] * window_size, maxlen=window_size) if track_std else None
        )

    @property
    def is_full(self) -> bool:
        """True once warm-up is over."""
        return len(self.raw) == self.window_size

    @property
    def latest_mean(self) -> float:
        return self.mean_series[-1]

    @property
    def previous_mean(self) -> float:
        return self.mean_series[-2]

    @property
    def previous_std(self) -> float:
        if self.std_series is None:
            raise ValueError("std series is not tracked by this window")
        return self.std_series[-2]

    def fill(self, value: float) -> None:
        """
        Append an unblended warm-up sample.

        Raises:
            ValueError: If the window is already full
        """
        if self.is_full:
            raise ValueError("Window is already full; use update()")
        self.raw.append(float(value))

    def update(self, value: float) -> float:
        """
        Shift the window by one tick and blend in a new sample.

        Args:
            value: Raw sample value

        Returns:
            The new windowed mean
        """
        if not self.is_full:
            raise ValueError(
                f"Window still warming up ({len(self.raw)}/{self.window_size} samples)"
            )

        previous_last = self.raw[-1]
        self.raw.append(self.influence * value + (1.0 - self.influence) * previous_last)

        mean = float(np.mean(self.raw))
        self.mean_series.append(mean)
        if self.std_series is not None:
            self.std_series.append(float(np.std(self.raw)))

        return mean

    def __repr__(self) -> str:
        return (
            f"SmoothingWindow(window_size={self.window_size}, "
            f"influence={self.influence}, "
            f"filled={len(self.raw)}/{self.window_size})"
        )
