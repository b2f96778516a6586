"""Pipeline Package - Configuration, engine and session orchestration"""

from .config import (
    EngineConfig,
    DetectionMode,
    AcquisitionSettings,
    load_config,
    load_settings_file
)
from .engine import RespirationEngine, ProcessedTick
from .session import (
    RespirationSession,
    SessionSummary,
    SampleSource,
    ReplaySource,
    StreamSource
)

__all__ = [
    # Configuration
    'EngineConfig',
    'DetectionMode',
    'AcquisitionSettings',
    'load_config',
    'load_settings_file',

    # Engine
    'RespirationEngine',
    'ProcessedTick',

    # Sessions
    'RespirationSession',
    'SessionSummary',
    'SampleSource',
    'ReplaySource',
    'StreamSource',
]
