"""
Respiration Rate Toolkit

Streaming estimation of the breathing rate (breaths per minute) from a
low-frequency piezo-respiration sensor.

Main Components:
    - Data: samples, recordings, raw-log loaders, session log writers
    - Preprocessing: exponentially blended smoothing window
    - Detection: peak/valley and zero-crossing cycle detectors
    - Rates: cycle-rate computation, clamping and smoothing
    - Pipeline: configuration, engine and session orchestration
    - Visualization: interactive session plots
"""

__version__ = '0.1.0'

# Core classes for easy import
from .data.recording import RawRecording
from .data.loaders import RawLogLoader, CSVDataLoader
from .pipeline.config import EngineConfig, DetectionMode
from .pipeline.engine import RespirationEngine
from .pipeline.session import RespirationSession, ReplaySource, StreamSource

__all__ = [
    'RawRecording',
    'RawLogLoader',
    'CSVDataLoader',
    'EngineConfig',
    'DetectionMode',
    'RespirationEngine',
    'RespirationSession',
    'ReplaySource',
    'StreamSource',
]
