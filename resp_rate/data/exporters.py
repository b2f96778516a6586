"""
Data Exporters

Write session diagnostics to disk:

- LineLogWriter: line-oriented, timestamped session logs (raw, average,
  processed), written as the stream runs
- CSVExporter: tabular exports of a finished session (pandas DataFrames)
"""

from typing import Dict, List, Optional, Any
import pandas as pd
from pathlib import Path
from datetime import datetime

from .records import format_line


def format_timestamp(moment: Optional[datetime] = None) -> str:
    """
    Render a wall-clock timestamp as two log fields: date and time with milliseconds.

    Example: "19-10-2026,14:03:27:512"
    """
    moment = moment or datetime.now()
    return moment.strftime("%d-%m-%Y,%H:%M:%S:") + f"{moment.microsecond // 1000:03d}"


class LineLogWriter:
    """
    Append-only writer for one session log file.

    Every line is "<timestamp>,<fields...>[,*]". The file is truncated when
    the writer opens it, so a new session never appends to an old one.

    Usage:
        with LineLogWriter("RRavg_007.txt") as log:
            log.write(record.fields())

    Attributes:
        filepath (Path): Output file path
        timestamped (bool): Prefix each line with the wall-clock timestamp
        n_lines (int): Number of lines written so far
    """

    def __init__(self, filepath: str, timestamped: bool = True, clock=datetime.now):
        self.filepath = Path(filepath)
        self.filepath.parent.mkdir(parents=True, exist_ok=True)
        self.timestamped = timestamped
        self.clock = clock
        self.n_lines = 0
        self._handle = self.filepath.open('w', encoding='utf-8')

    def write(self, fields: List[str], marker: bool = False) -> None:
        """Write one record line."""
        if self._handle is None:
            raise ValueError(f"Log already closed: {self.filepath}")
        if self.timestamped:
            fields = [format_timestamp(self.clock())] + list(fields)
        self._handle.write(format_line(fields, marker) + "\n")
        self.n_lines += 1

    def flush(self) -> None:
        if self._handle is not None:
            self._handle.flush()

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None

    @property
    def closed(self) -> bool:
        return self._handle is None

    def __enter__(self) -> 'LineLogWriter':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"LineLogWriter(filepath='{self.filepath}', n_lines={self.n_lines})"


class CSVExporter:
    """
    Export finished session results to CSV files.

    One file per table: the average series, the per-cycle rates and a
    one-row summary per session.
    """

    def __init__(self, output_directory: str):
        """
        Initialize CSV exporter.

        Args:
            output_directory: Directory for output CSV files
        """
        self.output_directory = Path(output_directory)
        self.output_directory.mkdir(parents=True, exist_ok=True)

    def export_average_series(
        self,
        average_df: pd.DataFrame,
        filename: str = 'average_series.csv'
    ) -> Path:
        """
        Export the windowed-mean series to CSV.

        Args:
            average_df: DataFrame with 'tick' and 'mean' columns
            filename: Output filename

        Returns:
            Path of the written file
        """
        return self._export(average_df, filename, "Average series")

    def export_rates(
        self,
        rates_df: pd.DataFrame,
        filename: str = 'rates.csv'
    ) -> Path:
        """
        Export the per-cycle rate records to CSV.

        Args:
            rates_df: DataFrame with 'tick', 'instantaneous_rate' and 'published_rate' columns
            filename: Output filename

        Returns:
            Path of the written file
        """
        return self._export(rates_df, filename, "Rates")

    def export_summary(
        self,
        summaries: List[Dict[str, Any]],
        filename: str = 'summary.csv'
    ) -> Path:
        """Export one summary row per session."""
        return self._export(pd.DataFrame(summaries), filename, "Summary")

    def _export(self, df: pd.DataFrame, filename: str, label: str) -> Path:
        filepath = self.output_directory / filename

        try:
            df.to_csv(filepath, index=False)
            print(f"{label} exported to: {filepath}")
        except Exception as e:
            raise ValueError(f"Failed to export {label.lower()}: {e}")

        return filepath
