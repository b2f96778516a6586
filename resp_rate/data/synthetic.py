"""
Synthetic breathing signal.

Generates a sinusoidal respiration trace with optional Gaussian noise,
shaped like the output of an 8-bit piezo strap (positive, centred on the
middle of the range). Useful for demos and for end-to-end checks where the
true rate is known.
"""

from typing import Optional
import numpy as np

from .recording import RawRecording


def generate_breathing_signal(
    rate_bpm: float,
    duration_s: float,
    sampling_rate: float = 10.0,
    amplitude: float = 40.0,
    offset: float = 128.0,
    noise_std: float = 0.0,
    phase: float = 0.3,
    seed: Optional[int] = None,
    first_tick: int = 1,
    session_id: str = 'synthetic'
) -> RawRecording:
    """
    Generate a synthetic breathing recording.

    Args:
        rate_bpm: True breathing rate in breaths per minute
        duration_s: Length of the recording in seconds
        sampling_rate: Sampling rate in Hz
        amplitude: Peak amplitude of the breathing oscillation
        offset: Baseline sensor value
        noise_std: Standard deviation of additive Gaussian noise
        phase: Initial phase in radians
        seed: Random seed for the noise
        first_tick: Tick counter of the first sample
        session_id: Session identifier of the returned recording

    Returns:
        RawRecording with ticks first_tick .. first_tick + n - 1
    """
    if rate_bpm <= 0:
        raise ValueError(f"rate_bpm must be positive, got {rate_bpm}")
    if duration_s <= 0:
        raise ValueError(f"duration_s must be positive, got {duration_s}")

    n_samples = int(round(duration_s * sampling_rate))
    t = np.arange(n_samples) / sampling_rate
    freq = rate_bpm / 60.0

    values = offset + amplitude * np.sin(2 * np.pi * freq * t + phase)
    if noise_std > 0:
        rng = np.random.default_rng(seed)
        values = values + rng.normal(0.0, noise_std, n_samples)

    return RawRecording(
        ticks=np.arange(first_tick, first_tick + n_samples),
        values=values,
        sampling_rate=sampling_rate,
        session_id=session_id,
        metadata={'true_rate_bpm': rate_bpm, 'noise_std': noise_std}
    )
