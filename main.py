#!/usr/bin/env python3
"""
EEG Spectrogram Service - Main Entry Point

Usage:
    python main.py serve [--host 0.0.0.0] [--port 8080]
    python main.py compute path/to/recording.edf --duration 1 [--group LL] [--out out/]
    python main.py params path/to/recording.edf --duration 1
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

# Load .env file (for local development)
from dotenv import load_dotenv
load_dotenv(Path(__file__).parent / ".env")

from eegspec.common.logging import setup_logging, get_logger
from eegspec.core.cache import HandleCache
from eegspec.core.config import LogLevel, get_settings
from eegspec.core.connectors import EdfRecording
from eegspec.modules.spectrogram import MONTAGE_GROUPS, get_montage_group, get_spectrogram_params
from eegspec.modules.spectrogram.pipelines import FileSpectrogramPipeline

logger = get_logger(__name__)


def cmd_serve(args: argparse.Namespace) -> int:
    from eegspec.main import run_server

    run_server(host=args.host, port=args.port)
    return 0


def cmd_compute(args: argparse.Namespace) -> int:
    """Compute spectrograms locally and write <stem>_<group>.f32 payloads."""
    settings = get_settings()
    filename = settings.resolve_recording_path(args.file, confine=False)
    groups = [get_montage_group(args.group)] if args.group else list(MONTAGE_GROUPS)

    pipeline = FileSpectrogramPipeline(cache=HandleCache(capacity=settings.max_open_files))
    result = pipeline.run(filename, args.duration, groups=groups)

    if not result.params.is_valid:
        print(f"Error: cannot read {filename}: {result.params.error.value}", file=sys.stderr)
        return 1

    out_dir = Path(args.out)
    out_dir.mkdir(parents=True, exist_ok=True)
    for computed in result.groups:
        stem = f"{result.file_stem}_{computed.group.name}"
        (out_dir / f"{stem}.f32").write_bytes(computed.payload)
        (out_dir / f"{stem}_change_points.f32").write_bytes(computed.change_points_payload)
        (out_dir / f"{stem}_summed_signal.f32").write_bytes(computed.summed_signal_payload)

    summary_path = out_dir / f"{result.file_stem}_summary.json"
    summary_path.write_text(json.dumps(result.to_summary(), indent=2), encoding="utf-8")
    logger.info("Spectrograms written", data={"out_dir": str(out_dir), "groups": [g.group.name for g in result.groups]})
    print(f"Wrote {len(result.groups)} spectrogram(s) to {out_dir}")
    return 0


def cmd_params(args: argparse.Namespace) -> int:
    """Print derived spectrogram parameters."""
    settings = get_settings()
    filename = settings.resolve_recording_path(args.file, confine=False)
    cache = HandleCache(capacity=1)
    try:
        params = get_spectrogram_params(cache, EdfRecording.open, filename, args.duration)
    finally:
        cache.close_all()

    print(json.dumps(params.to_dict(), indent=2))
    return 0 if params.is_valid else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="eeg-spectrogram",
        description="Montage-group spectrograms of EEG recordings",
    )
    parser.add_argument("--log-level", choices=[level.value for level in LogLevel], default=None)
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the WebSocket service")
    serve.add_argument("--host", default=None, help="Bind address (default: HOST)")
    serve.add_argument("--port", type=int, default=None, help="Port (default: PORT)")
    serve.set_defaults(func=cmd_serve, component="server")

    compute = subparsers.add_parser("compute", help="Compute spectrograms of a recording")
    compute.add_argument("file", help="Path to EDF/BDF recording")
    compute.add_argument("--duration", type=float, required=True, help="Hours of signal to use")
    compute.add_argument("--group", choices=[g.name for g in MONTAGE_GROUPS], help="Single montage group")
    compute.add_argument("--out", default=".", help="Output directory")
    compute.set_defaults(func=cmd_compute, component="cli")

    params = subparsers.add_parser("params", help="Print derived spectrogram parameters")
    params.add_argument("file", help="Path to EDF/BDF recording")
    params.add_argument("--duration", type=float, required=True, help="Hours of signal to use")
    params.set_defaults(func=cmd_params, component="cli")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    settings = get_settings()
    setup_logging(
        level=args.log_level,
        log_file=settings.log_file,
        component=args.component,
    )
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
