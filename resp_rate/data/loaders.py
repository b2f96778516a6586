"""
Data Loaders

This module provides loaders for previously recorded respiration streams.
All loaders implement the DataLoader interface and return RawRecording
objects that a session can replay tick by tick.
"""

from abc import ABC, abstractmethod
from typing import Optional, List
from pathlib import Path
import numpy as np
import pandas as pd
import warnings
import re

from .recording import RawRecording
from .records import MARKER


class DataLoader(ABC):
    """
    Abstract base class for data loaders.

    All data loaders must implement the load() method to read
    a file and return a RawRecording object.
    """

    default_pattern = "*.txt"

    @abstractmethod
    def load(self, filepath: str) -> RawRecording:
        """
        Load a raw recording from file.

        Args:
            filepath: Path to the file

        Returns:
            RawRecording object

        Raises:
            FileNotFoundError: If file doesn't exist
            ValueError: If file contains no usable samples
        """
        pass

    def load_batch(self, directory: str, pattern: Optional[str] = None) -> List[RawRecording]:
        """
        Load multiple recordings from a directory.

        Args:
            directory: Directory containing recordings
            pattern: Glob pattern for file matching (defaults to the loader's pattern)

        Returns:
            List of RawRecording objects
        """
        directory = Path(directory)
        if not directory.exists():
            raise FileNotFoundError(f"Directory not found: {directory}")

        files = sorted(directory.glob(pattern or self.default_pattern))
        recordings = []
        failed_files = []

        print(f"Loading {len(files)} files from {directory}...")

        for filepath in files:
            try:
                recordings.append(self.load(filepath))
            except Exception as e:
                failed_files.append((filepath.name, str(e)))
                warnings.warn(f"Failed to load {filepath.name}: {e}")

        print(f"\nBatch loading summary:")
        print(f"  Successfully loaded: {len(recordings)} files")
        print(f"  Failed: {len(failed_files)} files")

        if failed_files:
            print(f"\nFailed files:")
            for filename, error in failed_files:
                print(f"  - {filename}: {error}")

        return recordings

    def _extract_session_id(self, filename: str) -> str:
        """
        Extract the session (participant) number from a filename.

        Session logs are named after the zero-padded participant number,
        so the last group of digits in the stem is used. Falls back to
        the whole stem when the name has no digits.

        Examples:
            "RRraw_007.txt" -> "007"
            "RRraw_12.txt"  -> "012"
            "night.csv"     -> "night"
        """
        base_name = Path(filename).stem
        numbers = re.findall(r'\d+', base_name)

        if numbers:
            return numbers[-1].zfill(3)

        warnings.warn(f"No session number in filename '{filename}', using the file stem")
        return base_name

    def _build_recording(
        self,
        filepath: Path,
        ticks: pd.Series,
        values: pd.Series,
        sampling_rate: float,
        markers: Optional[pd.Series] = None
    ) -> RawRecording:
        """Drop malformed rows and wrap the remaining samples in a RawRecording."""
        ticks = pd.to_numeric(ticks, errors='coerce')
        values = pd.to_numeric(values, errors='coerce')
        valid = ticks.notna() & values.notna() & np.isfinite(values)

        n_dropped = int((~valid).sum())
        if n_dropped:
            warnings.warn(f"Dropped {n_dropped} malformed line(s) from {filepath.name}")

        if not valid.any():
            raise ValueError(f"No valid samples in {filepath.name}")

        metadata = {'source_file': filepath.name}
        if markers is not None:
            flagged = valid & (markers.astype(str).str.strip() == MARKER)
            metadata['marker_ticks'] = ticks[flagged].astype(int).tolist()

        return RawRecording(
            ticks=ticks[valid].astype(np.int64).values,
            values=values[valid].astype(float).values,
            sampling_rate=sampling_rate,
            session_id=self._extract_session_id(filepath.name),
            metadata=metadata
        )


class RawLogLoader(DataLoader):
    """
    Loader for raw session logs written during live acquisition.

    Line format (no header):
        dd-mm-YYYY,HH:MM:SS:fff,tick,value[,*]

    The timestamp takes the first two fields, the tick and the raw value
    are the third and fourth, and an optional fifth field '*' flags an
    externally triggered event.
    Lines with more fields than that are malformed and dropped.

    Attributes:
        sampling_rate (float): Sampling rate of the acquisition in Hz
    """

    columns = ['date', 'time', 'tick', 'value', 'marker']

    def __init__(self, sampling_rate: float = 10.0):
        """
        Initialize raw log loader.

        Args:
            sampling_rate: Sampling rate in Hz (raw logs do not store it)
        """
        self.sampling_rate = sampling_rate

    def load(self, filepath: str) -> RawRecording:
        """Load recording from a raw session log."""
        filepath = Path(filepath)

        if not filepath.exists():
            raise FileNotFoundError(f"File not found: {filepath}")

        with filepath.open('r', encoding='utf-8') as f:
            lines = pd.Series([line.rstrip('\r\n') for line in f if line.strip()], dtype=object)

        if lines.empty:
            raise ValueError(f"Raw log is empty: {filepath.name}")

        # Split by hand so an over-long line cannot shift the columns
        n_columns = len(self.columns)
        fields = lines.str.split(',', expand=True)
        fields = fields.reindex(columns=range(max(fields.shape[1], n_columns)))
        df = fields.iloc[:, :n_columns].copy()
        df.columns = self.columns

        # Too many fields: malformed, dropped and counted with the other bad lines
        too_long = (lines.str.count(',') + 1) > n_columns
        df.loc[too_long, 'tick'] = None

        return self._build_recording(
            filepath, df['tick'], df['value'], self.sampling_rate, markers=df['marker']
        )


class CSVDataLoader(DataLoader):
    """
    Loader for headered CSV files with one sample per row.

    CSV format expected:
    - A tick column (or sample index)
    - A raw value column
    - Header row with 'tick' and 'value' (or configurable)

    Attributes:
        tick_column (str): Name of tick column
        value_column (str): Name of value column
        sampling_rate (float): Sampling rate in Hz
    """

    default_pattern = "*.csv"

    def __init__(
        self,
        tick_column: str = 'tick',
        value_column: str = 'value',
        sampling_rate: float = 10.0
    ):
        self.tick_column = tick_column
        self.value_column = value_column
        self.sampling_rate = sampling_rate

    def load(self, filepath: str) -> RawRecording:
        """Load recording from CSV file."""
        filepath = Path(filepath)

        if not filepath.exists():
            raise FileNotFoundError(f"File not found: {filepath}")

        df = pd.read_csv(filepath)

        value_col = None
        if self.value_column in df.columns:
            value_col = self.value_column
        else:
            # Try common alternatives
            for col in ['value', 'signal', 'raw', 'data', 'resp']:
                if col in df.columns:
                    value_col = col
                    warnings.warn(f"Using column '{col}' as raw value in {filepath.name}")
                    break

        if value_col is None:
            raise ValueError(f"Could not find value column in {filepath.name}")

        if self.tick_column in df.columns:
            ticks = df[self.tick_column]
        else:
            warnings.warn(f"No '{self.tick_column}' column in {filepath.name}, numbering rows from 1")
            ticks = pd.Series(np.arange(1, len(df) + 1), index=df.index)

        markers = df['marker'] if 'marker' in df.columns else None
        return self._build_recording(filepath, ticks, df[value_col], self.sampling_rate, markers=markers)
