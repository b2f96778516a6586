"""
Published-rate smoothing: a short moving average over the clamped
instantaneous rates.
"""

from collections import deque
from typing import List


class RateSmoother:
    """
    Fixed-size moving average of instantaneous rates.

    The history starts filled with the baseline rate, so the published rate
    is defined before the first cycle completes.

    Attributes:
        smoothing_size (int): Number of rates averaged
        baseline_rate (float): Initial content of the history
    """

    def __init__(self, smoothing_size: int = 3, baseline_rate: float = 14.0):
        if smoothing_size < 1:
            raise ValueError(f"smoothing_size must be at least 1, got {smoothing_size}")
        self.smoothing_size = smoothing_size
        self.baseline_rate = baseline_rate
        self.reset()

    def push(self, rate: float) -> float:
        """Add a new instantaneous rate and return the new published rate."""
        self._history.append(rate)
        self._published = sum(self._history) / len(self._history)
        return self._published

    @property
    def published_rate(self) -> float:
        return self._published

    @property
    def history(self) -> List[float]:
        """Current history, oldest first."""
        return list(self._history)

    def reset(self) -> None:
        self._history = deque([self.baseline_rate] * self.smoothing_size, maxlen=self.smoothing_size)
        self._published = self.baseline_rate

    def __len__(self) -> int:
        return len(self._history)
