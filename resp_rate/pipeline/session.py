"""
Session orchestration.

A session owns one engine and at most one active sample source: a live
stream handed over by the acquisition side, or the replay of a recorded
file. Attaching a source always resets the engine, so a replay never
inherits state from a live run (or vice versa).

The session also writes the line logs (raw, average, processed) and
handles externally triggered event markers.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, asdict
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union
import numpy as np
import pandas as pd
from tqdm import tqdm

from .config import EngineConfig
from .engine import RespirationEngine, ProcessedTick
from ..data.exporters import LineLogWriter
from ..data.records import AverageRecord, RateRecord, Sample
from ..data.recording import RawRecording


class SampleSource(ABC):
    """
    Abstract source of (tick, value) samples.

    Attributes:
        session_id (str): Identifier used for logs and summaries
        is_live (bool): Samples come from the sensor (raw log is written)
    """

    is_live = False

    def __init__(self, session_id: str):
        self.session_id = session_id

    @abstractmethod
    def samples(self) -> Iterator[Sample]:
        """Yield samples in tick order."""
        pass

    def expected_samples(self) -> Optional[int]:
        """Number of samples if known in advance (used for progress bars)."""
        return None

    def is_marked(self, sample: Sample) -> bool:
        """True if an event marker is attached to this sample."""
        return False

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(session_id='{self.session_id}')"


class ReplaySource(SampleSource):
    """Replays a recorded (or generated) RawRecording."""

    def __init__(self, recording: RawRecording):
        super().__init__(recording.session_id)
        self.recording = recording
        self._marker_ticks = set(recording.marker_ticks)

    def samples(self) -> Iterator[Sample]:
        return self.recording.samples()

    def expected_samples(self) -> Optional[int]:
        return self.recording.n_samples

    def is_marked(self, sample: Sample) -> bool:
        return sample.tick in self._marker_ticks


class StreamSource(SampleSource):
    """
    Live samples delivered by the acquisition side.

    Wraps any iterable of Sample objects or (tick, value) pairs, e.g. a
    generator fed by the sensor driver callback.
    """

    is_live = True

    def __init__(self, stream: Iterable[Union[Sample, Tuple[int, float]]], session_id: str = 'live'):
        super().__init__(session_id)
        self.stream = stream

    def samples(self) -> Iterator[Sample]:
        for item in self.stream:
            if isinstance(item, Sample):
                yield item
            else:
                tick, value = item
                yield Sample(tick=int(tick), value=float(value))


@dataclass
class SessionSummary:
    """Outcome of one session run."""
    session_id: str
    detection_mode: str
    n_samples: int
    n_cycles: int
    final_rate: float
    mean_published_rate: float
    stopped_early: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _format_raw_value(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else repr(float(value))


class RespirationSession:
    """
    Runs one source through the engine and logs its diagnostics.

    Usage:
        session = RespirationSession(config, average_log=avg_writer, rate_log=prc_writer)
        session.attach(ReplaySource(recording))
        summary = session.run(progress=True)

    Attributes:
        engine (RespirationEngine): The engine, reset on every attach()
        source (SampleSource): Active source, or None
        average_log / rate_log / raw_log (LineLogWriter): Optional line logs
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        average_log: Optional[LineLogWriter] = None,
        rate_log: Optional[LineLogWriter] = None,
        raw_log: Optional[LineLogWriter] = None
    ):
        self.engine = RespirationEngine(
            config,
            average_sink=self._on_average,
            rate_sink=self._on_rate
        )
        self.average_log = average_log
        self.rate_log = rate_log
        self.raw_log = raw_log
        self.source: Optional[SampleSource] = None
        self._clear()

    @property
    def config(self) -> EngineConfig:
        return self.engine.config

    @property
    def published_rate(self) -> float:
        return self.engine.published_rate

    def _clear(self) -> None:
        self._average_rows: List[Dict[str, Any]] = []
        self._rate_rows: List[Dict[str, Any]] = []
        self._mark_raw = False
        self._mark_average = False
        self._stopped = False
        self._n_samples = 0

    def attach(self, source: SampleSource) -> None:
        """Make `source` the only active source and reset all engine state."""
        self.engine.reset()
        self._clear()
        self.source = source

    def detach(self) -> None:
        self.source = None

    def mark_event(self) -> None:
        """Flag the next raw and average log lines with the event marker."""
        self._mark_raw = True
        self._mark_average = True

    def stop(self) -> None:
        """Ask run() to return after the current tick."""
        self._stopped = True

    def process(self, sample: Sample) -> Optional[ProcessedTick]:
        """Log and submit one sample from the active source."""
        if self.source is None:
            raise ValueError("No source attached to the session")

        if self.source.is_marked(sample):
            self.mark_event()

        if self.source.is_live and self.raw_log is not None:
            marker = self._mark_raw
            self._mark_raw = False
            self.raw_log.write([str(sample.tick), _format_raw_value(sample.value)], marker)

        self._n_samples += 1
        return self.engine.submit(sample.tick, sample.value)

    def run(self, progress: bool = False) -> SessionSummary:
        """
        Process the active source until it is exhausted or stop() is called.

        Args:
            progress: Show a tqdm progress bar

        Returns:
            SessionSummary of the run
        """
        if self.source is None:
            raise ValueError("No source attached to the session")

        samples = self.source.samples()
        if progress:
            samples = tqdm(
                samples,
                total=self.source.expected_samples(),
                desc=f"Session {self.source.session_id}",
                unit="tick"
            )

        for sample in samples:
            self.process(sample)
            if self._stopped:
                break

        for log in (self.raw_log, self.average_log, self.rate_log):
            if log is not None:
                log.flush()

        return self.summary()

    def _on_average(self, record: AverageRecord) -> None:
        marker = self._mark_average
        self._mark_average = False

        if marker and self.rate_log is not None:
            # Rate lines are only written per cycle; repeat the last one so the marker shows up
            last = self.engine.last_estimate
            repeated = RateRecord(
                tick=record.tick - 1,
                instantaneous_rate=last.average_rate if last is not None else self.engine.published_rate,
                published_rate=self.engine.published_rate,
                precision=self.config.rate_precision
            )
            self.rate_log.write(repeated.fields(), marker=True)

        if self.average_log is not None:
            self.average_log.write(record.fields(), marker)

        self._average_rows.append({'tick': record.tick, 'mean': record.mean, 'marker': marker})

    def _on_rate(self, record: RateRecord) -> None:
        if self.rate_log is not None:
            self.rate_log.write(record.fields())

        estimate = self.engine.last_estimate
        self._rate_rows.append({
            'tick': record.tick,
            'instantaneous_rate': record.instantaneous_rate,
            'published_rate': record.published_rate,
            'peak_rate': estimate.peak_rate if estimate is not None else None,
            'valley_rate': estimate.valley_rate if estimate is not None else None,
        })

    def average_frame(self) -> pd.DataFrame:
        """Windowed-mean series of the current run."""
        return pd.DataFrame(self._average_rows, columns=['tick', 'mean', 'marker'])

    def rate_frame(self) -> pd.DataFrame:
        """Per-cycle rates of the current run."""
        return pd.DataFrame(
            self._rate_rows,
            columns=['tick', 'instantaneous_rate', 'published_rate', 'peak_rate', 'valley_rate']
        )

    def summary(self) -> SessionSummary:
        published = [row['published_rate'] for row in self._rate_rows]
        return SessionSummary(
            session_id=self.source.session_id if self.source is not None else '',
            detection_mode=self.config.detection_mode.value,
            n_samples=self._n_samples,
            n_cycles=self.engine.n_cycles,
            final_rate=self.engine.published_rate,
            mean_published_rate=float(np.mean(published)) if published else float('nan'),
            stopped_early=self._stopped
        )

    def __repr__(self) -> str:
        return f"RespirationSession(source={self.source!r}, engine={self.engine!r})"
