import unittest
import numpy as np

from resp_rate.data import generate_breathing_signal
from resp_rate.detection import EventKind
from resp_rate.pipeline import RespirationEngine, EngineConfig, DetectionMode


STEPS = [1] * 4 + ([5] * 4 + [1] * 4) * 3
CROSSINGS = [10, 10, 10, 10, 10, 10, 20, 20, 10, 10, 10, 30]


def submit_all(engine, values, first_tick=1):
    return [engine.submit(tick, value) for tick, value in enumerate(values, start=first_tick)]


class TestWarmUp(unittest.TestCase):

    def test_no_output_during_warm_up(self):
        averages, rates = [], []
        engine = RespirationEngine(
            EngineConfig(window_size=4, influence=1.0, sampling_rate_hz=1.0),
            average_sink=averages.append,
            rate_sink=rates.append
        )
        results = submit_all(engine, [3, 3, 3])

        self.assertEqual(results, [None, None, None])
        self.assertFalse(engine.is_warm)
        self.assertEqual(averages, [])
        self.assertEqual(rates, [])
        self.assertEqual(engine.published_rate, 14.0)

        self.assertIsNone(engine.submit(4, 3))
        self.assertTrue(engine.is_warm)
        self.assertIsNotNone(engine.submit(5, 3))
        self.assertEqual(len(averages), 1)

    def test_default_published_rate_is_baseline(self):
        engine = RespirationEngine()
        self.assertEqual(engine.published_rate, 14.0)
        self.assertEqual(engine.smoother.history, [14.0, 14.0, 14.0])


class TestPeakValleyEngine(unittest.TestCase):

    def _engine(self, **overrides):
        config = EngineConfig(window_size=4, influence=1.0, sampling_rate_hz=1.0, **overrides)
        self.averages, self.rates = [], []
        return RespirationEngine(config, average_sink=self.averages.append, rate_sink=self.rates.append)

    def test_step_signal_without_delta_clamp(self):
        engine = self._engine(clamp_enabled=False)
        results = submit_all(engine, STEPS)

        completed = [r for r in results if r is not None and r.cycle_completed]
        self.assertEqual([r.tick for r in completed], [22, 25])
        self.assertEqual([r.estimate.tick for r in completed], [21, 24])
        self.assertAlmostEqual(completed[0].estimate.average_rate, 7.5)
        self.assertAlmostEqual(completed[0].published_rate, 35.5 / 3)
        self.assertAlmostEqual(completed[1].published_rate, 29.0 / 3)
        self.assertEqual(engine.n_cycles, 2)

        self.assertEqual(len(self.averages), len(STEPS) - 4)
        self.assertEqual([r.fields() for r in self.rates], [
            ['21', '7.5', '11.8'],
            ['24', '7.5', '9.7'],
        ])

    def test_step_signal_with_delta_clamp(self):
        engine = self._engine()
        submit_all(engine, STEPS)

        self.assertAlmostEqual(self.rates[0].instantaneous_rate, 12.5)
        self.assertAlmostEqual(self.rates[0].published_rate, 13.5)
        self.assertAlmostEqual(self.rates[1].instantaneous_rate, 11.0)
        self.assertAlmostEqual(engine.published_rate, 12.5)
        self.assertAlmostEqual(engine.last_estimate.peak_rate, 11.0)
        self.assertAlmostEqual(engine.last_estimate.valley_rate, 11.0)

    def test_out_of_range_rates_keep_previous(self):
        engine = self._engine(clamp_enabled=False, absolute_min=8.0)
        submit_all(engine, STEPS)

        self.assertEqual(engine.last_estimate.peak_rate, 14.0)
        self.assertEqual(engine.last_estimate.valley_rate, 14.0)
        self.assertEqual(engine.published_rate, 14.0)

    def test_events_lag_one_tick(self):
        engine = self._engine()
        results = submit_all(engine, STEPS[:9])
        self.assertEqual(results[-1].event.kind, EventKind.PEAK)
        self.assertEqual(results[-1].event.tick, 8)
        self.assertIsNone(results[-1].estimate)

    def test_window_lengths_stay_fixed(self):
        engine = self._engine()
        results = submit_all(engine, STEPS)
        means = [r.mean for r in results if r is not None]

        self.assertEqual(len(engine.window.raw), 4)
        self.assertEqual(len(engine.window.mean_series), 4)
        self.assertEqual(list(engine.window.mean_series), means[-4:])
        self.assertEqual(len(engine.smoother), 3)

    def test_reset_restores_initial_state(self):
        engine = self._engine()
        submit_all(engine, STEPS)
        engine.reset()

        self.assertEqual(len(engine.window.raw), 0)
        self.assertEqual(list(engine.window.mean_series), [0.0] * 4)
        self.assertEqual(engine.published_rate, 14.0)
        self.assertTrue(engine.detector.skip_first)
        self.assertEqual(engine.detector.extrema.peaks.as_tuple(), (0, 0))
        self.assertIsNone(engine.last_estimate)

        # Same input after a reset gives the same output
        self.rates.clear()
        submit_all(engine, STEPS)
        self.assertEqual([r.fields() for r in self.rates], [['21', '12.5', '13.5'], ['24', '11.0', '12.5']])

    def test_converges_on_sinusoid(self):
        recording = generate_breathing_signal(rate_bpm=15.0, duration_s=180.0, sampling_rate=10.0)
        engine = RespirationEngine(EngineConfig())
        for sample in recording.samples():
            engine.submit(sample.tick, sample.value)

        self.assertGreater(engine.n_cycles, 50)
        self.assertAlmostEqual(engine.published_rate, 15.0, delta=0.5)

    def test_converges_on_noisy_sinusoid(self):
        recording = generate_breathing_signal(
            rate_bpm=12.0, duration_s=240.0, noise_std=1.0, seed=42
        )
        engine = RespirationEngine(EngineConfig())
        published = []
        for sample in recording.samples():
            result = engine.submit(sample.tick, sample.value)
            if result is not None and result.cycle_completed:
                published.append(result.published_rate)

        self.assertGreater(len(published), 10)
        self.assertAlmostEqual(np.median(published[-10:]), 12.0, delta=1.0)


class TestZeroCrossingEngine(unittest.TestCase):

    def _engine(self, **overrides):
        config = EngineConfig(
            window_size=4, influence=1.0, sampling_rate_hz=1.0, z_threshold=1.0,
            detection_mode=DetectionMode.ZERO_CROSSING, **overrides
        )
        self.rates = []
        return RespirationEngine(config, rate_sink=self.rates.append)

    def test_half_cycle_rate_without_delta_clamp(self):
        engine = self._engine(clamp_enabled=False)
        results = submit_all(engine, CROSSINGS)

        self.assertEqual(results[6].event.kind, EventKind.CROSSING)
        self.assertIsNone(results[6].estimate)
        self.assertEqual(results[-1].estimate.tick, 11)
        self.assertAlmostEqual(results[-1].estimate.average_rate, 6.0)
        self.assertAlmostEqual(results[-1].std, np.sqrt(75.0))
        self.assertEqual([r.fields() for r in self.rates], [['11', '6.00', '11.33']])

    def test_half_cycle_rate_with_delta_clamp(self):
        engine = self._engine()
        submit_all(engine, CROSSINGS)

        self.assertEqual([r.fields() for r in self.rates], [['11', '12.50', '13.50']])
        self.assertAlmostEqual(engine.published_rate, 13.5)

    def test_std_reported_only_in_crossing_mode(self):
        engine = RespirationEngine(EngineConfig(window_size=4, influence=1.0))
        result = submit_all(engine, [10, 10, 10, 10, 20])[-1]
        self.assertIsNone(result.std)

    def test_mode_accepts_string(self):
        engine = RespirationEngine(EngineConfig(detection_mode='zero_crossing'))
        self.assertEqual(engine.config.detection_mode, DetectionMode.ZERO_CROSSING)
        self.assertEqual(engine.config.rate_precision, 2)


if __name__ == '__main__':
    unittest.main()
