import argparse
import traceback
from pathlib import Path

import pandas as pd

from resp_rate.data.exporters import LineLogWriter, CSVExporter
from resp_rate.data.loaders import RawLogLoader, CSVDataLoader
from resp_rate.data.synthetic import generate_breathing_signal
from resp_rate.pipeline.config import EngineConfig, load_config, load_settings_file
from resp_rate.pipeline.session import RespirationSession, ReplaySource
from resp_rate.visualization.interactive import SessionPlotter


def build_parser():
    parser = argparse.ArgumentParser(prog="resp-rate", description="Streaming breathing-rate estimation")
    parser.add_argument("--config", default=None, help="YAML config file (default: config.yaml if present)")
    parser.add_argument("--settings", default=None, help="Legacy settings.txt with rate bounds and clamp flag")
    parser.add_argument("--mode", choices=["peak_valley", "zero_crossing"], default=None)
    parser.add_argument("--output-dir", default=None)
    parser.add_argument("--csv", action="store_true", help="Also export CSV tables")
    parser.add_argument("--plot", action="store_true", help="Write interactive HTML plots")
    parser.add_argument("--quiet", action="store_true", help="No progress bars")

    sub = parser.add_subparsers(dest="command", required=True)

    replay = sub.add_parser("replay", help="Replay recorded raw logs through the engine")
    replay.add_argument("path", help="Raw log file or directory of raw logs")
    replay.add_argument("--format", choices=["raw", "csv"], default="raw")
    replay.add_argument("--pattern", default=None, help="Glob pattern when PATH is a directory")

    simulate = sub.add_parser("simulate", help="Run the engine on a synthetic breathing signal")
    simulate.add_argument("--rate", type=float, default=15.0, help="True rate in breaths per minute")
    simulate.add_argument("--duration", type=float, default=120.0, help="Seconds of signal")
    simulate.add_argument("--noise", type=float, default=0.0, help="Noise standard deviation")
    simulate.add_argument("--seed", type=int, default=None)

    return parser


def resolve_config(args):
    """Engine config and output options from config.yaml, settings.txt and the command line."""
    file_cfg = {}
    if args.config is not None:
        file_cfg = load_config(args.config)
    else:
        try:
            file_cfg = load_config()
            print("    Found config.yaml")
        except FileNotFoundError:
            pass

    config = EngineConfig.from_dict(file_cfg.get("engine", {}))
    if args.settings:
        config, acquisition = load_settings_file(args.settings, base=config)
        if acquisition.use_live_sensor:
            print("    ℹ️ Settings request the live sensor; replaying files instead")

    config = config.with_overrides(detection_mode=args.mode)

    output_cfg = file_cfg.get("output", {})
    output_dir = Path(args.output_dir or output_cfg.get("output_dir", "results"))
    write_csv = args.csv or output_cfg.get("write_csv", False)
    create_plots = args.plot or output_cfg.get("create_plots", False)
    return config, output_dir, write_csv, create_plots


def load_recordings(args, config):
    path = Path(args.path)
    if args.format == "csv":
        loader = CSVDataLoader(sampling_rate=config.sampling_rate_hz)
    else:
        loader = RawLogLoader(sampling_rate=config.sampling_rate_hz)
    if path.is_dir():
        return loader.load_batch(str(path), args.pattern)
    return [loader.load(str(path))]


def run_recording(recording, config, output_dir, progress=True):
    """Replay one recording, writing RRavg_<id>.txt and RRprc_<id>.txt."""
    log_dir = output_dir / "logs"
    with LineLogWriter(log_dir / f"RRavg_{recording.session_id}.txt") as avg_log, \
            LineLogWriter(log_dir / f"RRprc_{recording.session_id}.txt") as prc_log:
        session = RespirationSession(config, average_log=avg_log, rate_log=prc_log)
        session.attach(ReplaySource(recording))
        summary = session.run(progress=progress)
    return session, summary


def main(argv=None):
    args = build_parser().parse_args(argv)
    print(f"🚀 Starting respiration-rate engine...")

    try:
        config, output_dir, write_csv, create_plots = resolve_config(args)
    except (FileNotFoundError, ValueError) as e:
        print(f"❌ CONFIG ERROR: {e}")
        return 1

    output_dir.mkdir(parents=True, exist_ok=True)
    print(f"    Mode: {config.detection_mode.value}, window: {config.window_size}, "
          f"fs: {config.sampling_rate_hz} Hz, bounds: {config.absolute_min}-{config.absolute_max} BPM")

    if args.command == "simulate":
        recordings = [generate_breathing_signal(args.rate, args.duration, sampling_rate=config.sampling_rate_hz,
                                                noise_std=args.noise, seed=args.seed)]
    else:
        try:
            recordings = load_recordings(args, config)
        except (FileNotFoundError, ValueError) as e:
            print(f"❌ LOAD ERROR: {e}")
            return 1
    if not recordings:
        print("❌ No recordings found.")
        return 1

    exporter = CSVExporter(output_dir / "csv") if write_csv else None
    plotter = SessionPlotter(output_dir / "plots") if create_plots else None
    summaries = []

    for recording in recordings:
        try:
            session, summary = run_recording(recording, config, output_dir, progress=not args.quiet)
            summaries.append(summary.to_dict())
            print(f"    ✅ {recording.session_id}: {summary.n_cycles} cycles, "
                  f"final rate {summary.final_rate:.2f} BPM")

            if exporter is not None:
                exporter.export_average_series(session.average_frame(), f"average_{recording.session_id}.csv")
                exporter.export_rates(session.rate_frame(), f"rates_{recording.session_id}.csv")
            if plotter is not None:
                plotter.plot_session(recording, session.average_frame(), session.rate_frame())
        except Exception as e:
            print(f"    ❌ FAILED {recording.session_id}: {e}")
            traceback.print_exc()

    if not summaries:
        return 1

    if exporter is not None:
        exporter.export_summary(summaries)
    if plotter is not None and len(summaries) > 1:
        plotter.plot_rate_overview(pd.DataFrame(summaries))

    print("\n✅ Finished.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
