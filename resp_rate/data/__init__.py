"""
Data Layer

Sample/record types, raw recordings, loaders for replayed sessions and
writers for session logs.
"""

from .records import Sample, AverageRecord, RateRecord, MARKER
from .recording import RawRecording
from .loaders import (
    DataLoader,
    RawLogLoader,
    CSVDataLoader
)
from .exporters import (
    LineLogWriter,
    CSVExporter,
    format_timestamp
)
from .synthetic import generate_breathing_signal

__all__ = [
    # Core data structures
    'Sample',
    'AverageRecord',
    'RateRecord',
    'MARKER',
    'RawRecording',

    # Loaders
    'DataLoader',
    'RawLogLoader',
    'CSVDataLoader',

    # Exporters
    'LineLogWriter',
    'CSVExporter',
    'format_timestamp',

    # Synthetic data
    'generate_breathing_signal',
]
