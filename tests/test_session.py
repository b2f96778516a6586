import unittest
import tempfile
import math
from pathlib import Path

from resp_rate.data import RawRecording, RawLogLoader, LineLogWriter, generate_breathing_signal
from resp_rate.pipeline import (
    EngineConfig,
    RespirationSession,
    ReplaySource,
    StreamSource,
)
from resp_rate.pipeline.main import main


STEPS = [1] * 4 + ([5] * 4 + [1] * 4) * 3
CONFIG = EngineConfig(window_size=4, influence=1.0, sampling_rate_hz=1.0)


def step_recording(marker_ticks=None):
    metadata = {'marker_ticks': marker_ticks} if marker_ticks else None
    return RawRecording(range(1, len(STEPS) + 1), STEPS, 1.0, '001', metadata=metadata)


class SessionTestCase(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self.tmp.name)

    def tearDown(self):
        self.tmp.cleanup()

    def _logs(self, timestamped=False):
        return {
            'average_log': LineLogWriter(self.dir / "RRavg.txt", timestamped=timestamped),
            'rate_log': LineLogWriter(self.dir / "RRprc.txt", timestamped=timestamped),
            'raw_log': LineLogWriter(self.dir / "RRraw.txt", timestamped=timestamped),
        }

    def _lines(self, name):
        return (self.dir / name).read_text().splitlines()


class TestReplaySession(SessionTestCase):

    def test_replay_writes_average_and_rate_logs(self):
        logs = self._logs()
        session = RespirationSession(CONFIG, **logs)
        session.attach(ReplaySource(step_recording()))
        summary = session.run()

        self.assertEqual(len(self._lines("RRavg.txt")), len(STEPS) - 4)
        self.assertEqual(self._lines("RRavg.txt")[0], "5,2.00")
        self.assertEqual(self._lines("RRprc.txt"), ["21,12.5,13.5", "24,11.0,12.5"])
        # Replayed samples are already on disk, no raw log is written
        self.assertEqual(logs['raw_log'].n_lines, 0)

        self.assertEqual(summary.session_id, '001')
        self.assertEqual(summary.detection_mode, 'peak_valley')
        self.assertEqual(summary.n_samples, len(STEPS))
        self.assertEqual(summary.n_cycles, 2)
        self.assertAlmostEqual(summary.final_rate, 12.5)
        self.assertAlmostEqual(summary.mean_published_rate, 13.0)
        self.assertFalse(summary.stopped_early)

    def test_recorded_markers_flag_average_and_rate_logs(self):
        session = RespirationSession(CONFIG, **self._logs())
        session.attach(ReplaySource(step_recording(marker_ticks=[10])))
        session.run()

        self.assertIn("10,3.00,*", self._lines("RRavg.txt"))
        self.assertEqual(self._lines("RRprc.txt"), ["9,14.0,14.0,*", "21,12.5,13.5", "24,11.0,12.5"])

        averages = session.average_frame()
        self.assertEqual(averages.loc[averages['marker'], 'tick'].tolist(), [10])
        self.assertEqual(len(session.rate_frame()), 2)

    def test_frames(self):
        session = RespirationSession(CONFIG)
        session.attach(ReplaySource(step_recording()))
        session.run()

        rates = session.rate_frame()
        self.assertEqual(rates['tick'].tolist(), [21, 24])
        self.assertEqual(rates['peak_rate'].tolist(), [12.5, 11.0])
        self.assertEqual(rates['valley_rate'].tolist(), [12.5, 11.0])
        self.assertEqual(list(session.average_frame().columns), ['tick', 'mean', 'marker'])

    def test_summary_without_cycles(self):
        session = RespirationSession(CONFIG)
        session.attach(ReplaySource(RawRecording([1, 2, 3], [1.0, 1.0, 1.0], 1.0, 'short')))
        summary = session.run()

        self.assertEqual(summary.n_cycles, 0)
        self.assertEqual(summary.final_rate, 14.0)
        self.assertTrue(math.isnan(summary.mean_published_rate))

    def test_requires_source(self):
        session = RespirationSession(CONFIG)
        with self.assertRaises(ValueError):
            session.run()
        session.attach(ReplaySource(step_recording()))
        session.detach()
        with self.assertRaises(ValueError):
            session.run()


class TestLiveSession(SessionTestCase):

    def test_live_stream_writes_raw_log(self):
        session = RespirationSession(CONFIG, **self._logs())
        session.attach(StreamSource([(1, 120), (2, 120.4), (3, 121), (4, 122), (5, 123)]))
        session.mark_event()
        session.run()

        self.assertEqual(self._lines("RRraw.txt"), ["1,120,*", "2,120.4", "3,121", "4,122", "5,123"])
        # The pending average marker lands on the first post-warm-up tick
        self.assertEqual(self._lines("RRavg.txt"), ["5,121.60,*"])

    def test_raw_log_replays_identically(self):
        recording = generate_breathing_signal(15.0, 60.0, noise_std=0.5, seed=3)
        samples = [(s.tick, round(s.value, 3)) for s in recording.samples()]

        with LineLogWriter(self.dir / "RRraw_003.txt") as raw_log:
            live = RespirationSession(EngineConfig(), raw_log=raw_log)
            live.attach(StreamSource(samples, session_id='003'))
            live_summary = live.run()

        replayed = RawLogLoader().load(self.dir / "RRraw_003.txt")
        self.assertEqual(replayed.session_id, '003')
        self.assertEqual(replayed.n_samples, len(samples))

        replay = RespirationSession(EngineConfig())
        replay.attach(ReplaySource(replayed))
        replay_summary = replay.run()

        self.assertEqual(replay_summary.n_cycles, live_summary.n_cycles)
        self.assertAlmostEqual(replay_summary.final_rate, live_summary.final_rate)

    def test_stop_ends_run_after_current_tick(self):
        session = RespirationSession(CONFIG)

        def stream():
            for tick in range(1, 101):
                if tick == 30:
                    session.stop()
                yield (tick, 100.0)

        session.attach(StreamSource(stream()))
        summary = session.run()

        self.assertTrue(summary.stopped_early)
        self.assertEqual(summary.n_samples, 30)


class TestSourceSwitching(SessionTestCase):

    def test_attach_resets_engine_state(self):
        session = RespirationSession(CONFIG)
        session.attach(StreamSource(list(enumerate(STEPS[:20], start=1))))
        session.run()
        self.assertGreater(session.engine.n_submitted, 0)
        self.assertFalse(session.engine.detector.skip_first)

        session.attach(ReplaySource(step_recording()))
        self.assertEqual(session.engine.n_submitted, 0)
        self.assertEqual(len(session.engine.window.raw), 0)
        self.assertEqual(session.published_rate, 14.0)
        self.assertTrue(session.engine.detector.skip_first)
        self.assertTrue(session.average_frame().empty)

        switched = session.run()

        fresh = RespirationSession(CONFIG)
        fresh.attach(ReplaySource(step_recording()))
        expected = fresh.run()

        self.assertEqual(switched, expected)
        self.assertEqual(session.rate_frame().to_dict('records'), fresh.rate_frame().to_dict('records'))


class TestCommandLine(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self.tmp.name)

    def tearDown(self):
        self.tmp.cleanup()

    def test_simulate(self):
        code = main(["--output-dir", str(self.dir), "--quiet", "--csv", "--plot",
                     "simulate", "--rate", "12", "--duration", "90"])

        self.assertEqual(code, 0)
        self.assertTrue((self.dir / "logs" / "RRavg_synthetic.txt").exists())
        self.assertTrue((self.dir / "logs" / "RRprc_synthetic.txt").exists())
        self.assertTrue((self.dir / "csv" / "summary.csv").exists())
        self.assertTrue((self.dir / "csv" / "rates_synthetic.csv").exists())
        self.assertTrue((self.dir / "plots" / "synthetic.html").exists())

    def test_replay_raw_log(self):
        recording = generate_breathing_signal(15.0, 60.0)
        raw_path = self.dir / "RRraw_004.txt"
        with LineLogWriter(raw_path) as log:
            for sample in recording.samples():
                log.write([str(sample.tick), f"{sample.value:.3f}"])

        code = main(["--output-dir", str(self.dir / "out"), "--quiet", "--mode", "zero_crossing",
                     "replay", str(raw_path)])

        self.assertEqual(code, 0)
        self.assertTrue((self.dir / "out" / "logs" / "RRavg_004.txt").exists())

    def test_missing_input(self):
        code = main(["--output-dir", str(self.dir), "--quiet", "replay", str(self.dir / "missing.txt")])
        self.assertEqual(code, 1)

    def test_bad_config(self):
        code = main(["--config", str(self.dir / "missing.yaml"), "simulate"])
        self.assertEqual(code, 1)


if __name__ == '__main__':
    unittest.main()
