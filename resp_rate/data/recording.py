"""
Raw Recording Data Structure

This module defines the data structure for a recorded (or generated)
raw respiration stream: the sequence of (tick, value) pairs that a
session replays through the engine.
"""

from typing import Optional, Dict, Any, Iterator, List
import numpy as np
import copy

from .records import Sample


class RawRecording:
    """
    Represents a raw respiration stream with its metadata.

    This is the core data structure that holds:
    - Tick counter of every sample
    - Raw sensor values
    - Sampling rate
    - Session identification and free-form metadata (markers, source file)

    Attributes:
        ticks (np.ndarray): Tick counter, shape (n_samples,)
        values (np.ndarray): Raw sensor values, shape (n_samples,)
        sampling_rate (float): Sampling rate in Hz
        session_id (str): Session / participant identifier
        metadata (dict): Additional metadata
    """

    def __init__(
        self,
        ticks: np.ndarray,
        values: np.ndarray,
        sampling_rate: float,
        session_id: str,
        metadata: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize a raw recording.

        Args:
            ticks: Tick counter array
            values: Raw value array (same length as ticks)
            sampling_rate: Sampling rate in Hz
            session_id: Session identifier
            metadata: Optional additional metadata
        """
        self.ticks = np.asarray(ticks, dtype=np.int64).flatten()
        self.values = np.asarray(values, dtype=float).flatten()
        self.sampling_rate = float(sampling_rate)
        self.session_id = str(session_id)
        self.metadata = metadata if metadata is not None else {}

        # Validation
        if self.sampling_rate <= 0:
            raise ValueError(f"Sampling rate must be positive, got {sampling_rate}")
        if len(self.values) == 0:
            raise ValueError("Recording cannot be empty")
        if len(self.ticks) != len(self.values):
            raise ValueError(
                f"ticks ({len(self.ticks)}) and values ({len(self.values)}) must have the same length"
            )
        if np.any(np.diff(self.ticks) < 0):
            raise ValueError("Ticks must be non-decreasing")

    @property
    def duration(self) -> float:
        """Recording duration in seconds."""
        return len(self.values) / self.sampling_rate

    @property
    def n_samples(self) -> int:
        """Number of samples in recording."""
        return len(self.values)

    @property
    def time_axis(self) -> np.ndarray:
        """Time of each sample in seconds, derived from the tick counter."""
        return (self.ticks - self.ticks[0]) / self.sampling_rate

    @property
    def marker_ticks(self) -> List[int]:
        """Ticks flagged with an external event marker."""
        return list(self.metadata.get('marker_ticks', []))

    def samples(self) -> Iterator[Sample]:
        """Iterate the recording as engine input, in tick order."""
        for tick, value in zip(self.ticks, self.values):
            yield Sample(tick=int(tick), value=float(value))

    def copy(self) -> 'RawRecording':
        """Create a deep copy of the recording."""
        return RawRecording(
            ticks=self.ticks.copy(),
            values=self.values.copy(),
            sampling_rate=self.sampling_rate,
            session_id=self.session_id,
            metadata=copy.deepcopy(self.metadata)
        )

    def __repr__(self) -> str:
        return (
            f"RawRecording(session_id='{self.session_id}', "
            f"duration={self.duration:.2f}s, "
            f"fs={self.sampling_rate}Hz, "
            f"n_samples={self.n_samples})"
        )

    def __len__(self) -> int:
        return len(self.values)
