"""
Engine configuration.

One immutable EngineConfig is built before streaming starts and passed to
the engine; nothing reads configuration from global state. It can be
loaded from the YAML config file or from the legacy line-based
settings.txt written for the sensor station.
"""

from dataclasses import dataclass, asdict, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Tuple
import yaml

from ..rates.calculator import RateLimits


class DetectionMode(Enum):
    PEAK_VALLEY = 'peak_valley'
    ZERO_CROSSING = 'zero_crossing'


@dataclass(frozen=True)
class EngineConfig:
    """
    Configuration of the respiration-rate engine.

    Attributes:
        influence: Weight of a new sample in the window blend
        window_size: Samples in the smoothing window (20 at 10 Hz = 2 s)
        smoothing_size: Instantaneous rates averaged into the published rate
        max_delta_per_step: Largest allowed change between two rates of one kind
        absolute_min: Lowest plausible rate (BPM)
        absolute_max: Highest plausible rate (BPM)
        clamp_enabled: Apply the per-step delta clamp
        sampling_rate_hz: Sampling rate of the sensor
        z_threshold: Deviation threshold (zero-crossing mode)
        baseline_rate: Rate the history and clamps start from (BPM)
        detection_mode: Cycle detection strategy
    """
    influence: float = 0.1
    window_size: int = 20
    smoothing_size: int = 3
    max_delta_per_step: float = 1.5
    absolute_min: float = 1.0
    absolute_max: float = 30.0
    clamp_enabled: bool = True
    sampling_rate_hz: float = 10.0
    z_threshold: float = 6.0
    baseline_rate: float = 14.0
    detection_mode: DetectionMode = DetectionMode.PEAK_VALLEY

    def __post_init__(self):
        """Validate configuration."""
        if isinstance(self.detection_mode, str):
            try:
                object.__setattr__(self, 'detection_mode', DetectionMode(self.detection_mode))
            except ValueError:
                valid = [m.value for m in DetectionMode]
                raise ValueError(f"detection_mode must be one of {valid}, got '{self.detection_mode}'")

        if isinstance(self.clamp_enabled, str):
            object.__setattr__(self, 'clamp_enabled', _parse_bool(self.clamp_enabled))
        elif not isinstance(self.clamp_enabled, bool):
            raise ValueError(f"clamp_enabled must be a boolean, got {self.clamp_enabled!r}")

        if self.window_size < 2:
            raise ValueError(f"window_size must be at least 2, got {self.window_size}")
        if not 0.0 < self.influence <= 1.0:
            raise ValueError(f"influence must be in (0, 1], got {self.influence}")
        if self.smoothing_size < 1:
            raise ValueError(f"smoothing_size must be at least 1, got {self.smoothing_size}")
        if self.sampling_rate_hz <= 0:
            raise ValueError(f"sampling_rate_hz must be positive, got {self.sampling_rate_hz}")
        if self.max_delta_per_step < 0:
            raise ValueError(f"max_delta_per_step must be non-negative, got {self.max_delta_per_step}")
        if self.absolute_min >= self.absolute_max:
            raise ValueError(
                f"absolute_min ({self.absolute_min}) must be < absolute_max ({self.absolute_max})"
            )
        if self.z_threshold <= 0:
            raise ValueError(f"z_threshold must be positive, got {self.z_threshold}")

    @property
    def rate_limits(self) -> RateLimits:
        return RateLimits(
            baseline_rate=self.baseline_rate,
            max_delta_per_step=self.max_delta_per_step,
            absolute_min=self.absolute_min,
            absolute_max=self.absolute_max,
            clamp_enabled=self.clamp_enabled
        )

    @property
    def rate_precision(self) -> int:
        """Decimal places used for rate diagnostics."""
        return 2 if self.detection_mode is DetectionMode.ZERO_CROSSING else 1

    def with_overrides(self, **overrides) -> 'EngineConfig':
        """Copy of this configuration with some fields replaced (None values are ignored)."""
        overrides = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **overrides)

    @classmethod
    def from_dict(cls, values: Optional[Dict[str, Any]]) -> 'EngineConfig':
        """Build from a mapping, rejecting unknown keys."""
        values = dict(values or {})
        known = set(cls.__dataclass_fields__)
        unknown = sorted(set(values) - known)
        if unknown:
            raise ValueError(f"Unknown engine setting(s): {unknown}")
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        values = asdict(self)
        values['detection_mode'] = self.detection_mode.value
        return values

    @classmethod
    def from_yaml(cls, filepath: str) -> 'EngineConfig':
        """Load the 'engine' section of a YAML config file."""
        config = load_config(filepath)
        return cls.from_dict(config.get('engine', {}))

    def to_yaml(self, filepath: str) -> None:
        """Save as the 'engine' section of a YAML file."""
        with open(filepath, 'w') as f:
            yaml.safe_dump({'engine': self.to_dict()}, f, sort_keys=False)


@dataclass(frozen=True)
class AcquisitionSettings:
    """Settings meant for the acquisition side (sensor address, live or replay)."""
    sensor_address: str = ''
    use_live_sensor: bool = True


def load_config(config_name: str = "config.yaml") -> Dict[str, Any]:
    """
    Read a YAML config file.

    Looks for the name as given first, then next to the project root.

    Raises:
        FileNotFoundError: If no config file is found
    """
    paths = [Path(config_name), Path(__file__).resolve().parent.parent.parent / config_name]
    for p in paths:
        if p.exists():
            with open(p, 'r') as f:
                return yaml.safe_load(f) or {}
    raise FileNotFoundError(f"Config not found: {config_name}")


def _parse_bool(text: str) -> bool:
    value = text.strip().lower()
    if value in ('true', '1', 'yes'):
        return True
    if value in ('false', '0', 'no'):
        return False
    raise ValueError(f"Not a boolean: '{text}'")


def load_settings_file(
    filepath: str,
    base: Optional[EngineConfig] = None
) -> Tuple[EngineConfig, AcquisitionSettings]:
    """
    Read the legacy settings.txt.

    One 'name:value' pair per line, identified by position:
        0: sensor address (dash separated)
        1: use the live sensor (true/false)
        2: lowest valid rate
        3: highest valid rate
        4: clamp per-step rate changes (true/false)

    Args:
        filepath: Path to settings.txt
        base: Configuration the rate settings are applied to

    Returns:
        (engine config, acquisition settings)
    """
    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"Settings file not found: {filepath}")

    base = base or EngineConfig()
    overrides: Dict[str, Any] = {}
    address, use_live = '', True

    with filepath.open('r', encoding='utf-8') as f:
        lines = [line.rstrip('\n') for line in f if line.strip()]

    for position, line in enumerate(lines):
        if ':' not in line:
            raise ValueError(f"Malformed settings line {position + 1}: '{line}'")
        value = line.split(':', 1)[1].strip()
        try:
            if position == 0:
                address = value.replace('-', ':')
            elif position == 1:
                use_live = _parse_bool(value)
            elif position == 2:
                overrides['absolute_min'] = float(value)
            elif position == 3:
                overrides['absolute_max'] = float(value)
            elif position == 4:
                overrides['clamp_enabled'] = _parse_bool(value)
        except ValueError as e:
            raise ValueError(f"Invalid value on settings line {position + 1}: {e}")

    return base.with_overrides(**overrides), AcquisitionSettings(address, use_live)
