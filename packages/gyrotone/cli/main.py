"""Command-line interface for Gyrotone.

Commands:
    geometry  Build every configured layer and print its buffer metadata.
    simulate  Rotate the configured layers for a while and print the triggers.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from gyrotone.core.config.loader import apply_logging_config, load_app_config
from gyrotone.core.config.models import AppConfig, LayerConfig
from gyrotone.core.session import RotationSession
from gyrotone.core.timing.clock import ManualClock
from gyrotone.core.triggers.models import TriggerEvent

console = Console()
logger = logging.getLogger(__name__)


def _load(path: str | None) -> AppConfig | None:
    """Load config for a command, printing the error and returning None on failure."""
    try:
        config = load_app_config(Path(path).resolve() if path else None)
    except (FileNotFoundError, ValueError, ValidationError) as e:
        console.print(f"[red]ERROR: Could not load config: {e}[/red]")
        return None
    if not config.layers:
        config = config.model_copy(update={"layers": [LayerConfig(layer_id="default")]})
    return config


def show_geometry(args: argparse.Namespace) -> int:
    """Build each layer once and print a metadata table."""
    config = _load(args.config)
    if config is None:
        return 1
    apply_logging_config(config)

    session = RotationSession.from_config(config)
    table = Table(title="Layer geometry")
    for column in ("Layer", "Family", "Base", "Intersections", "Segments", "Paths", "Copies"):
        table.add_column(column)

    exit_code = 0
    for layer in session.layers:
        result = layer.rebuild_if_dirty()
        if not result.success:
            console.print(f"[red]{result.error}[/red]")
            exit_code = 1
            continue
        meta = result.buffer.metadata
        table.add_row(
            layer.layer_id,
            meta.shape_family.value,
            str(meta.base_vertex_count),
            str(meta.intersection_vertex_count),
            str(len(result.buffer.segments)),
            str(meta.path_count),
            str(len(layer.transforms)),
        )

    console.print(table)
    return exit_code


def _event_row(event: TriggerEvent) -> tuple[str, ...]:
    note = event.note
    copy = "-" if event.key.copy_index is None else str(event.key.copy_index)
    return (
        str(event.sequential_index),
        f"{event.time_seconds:.3f}",
        event.layer_id,
        f"{event.key.kind.value}:{event.key.index}",
        copy,
        f"{note.frequency:.2f}",
        note.note_name or "",
        f"{note.duration:.2f}",
        f"{note.velocity:.2f}",
        "yes" if event.quantized else "no",
    )


def simulate(args: argparse.Namespace) -> int:
    """Drive a session with a manual clock and print fired triggers."""
    if args.fps <= 0 or args.seconds < 0:
        console.print("[red]ERROR: --fps must be positive and --seconds non-negative[/red]")
        return 1

    config = _load(args.config)
    if config is None:
        return 1
    if args.quantize is not None:
        triggers = config.triggers.model_copy(update={"quantize": True, "grid": args.quantize})
        config = config.model_copy(update={"triggers": triggers})
    apply_logging_config(config)

    session = RotationSession.from_config(config)
    clock = ManualClock()
    dt = 1.0 / args.fps
    frames = int(round(args.seconds * args.fps))

    events: list[TriggerEvent] = []
    failures = 0
    for _ in range(frames):
        now = clock.advance(dt)
        report = session.tick(dt, now)
        events.extend(report.events)
        failures += len(report.rebuild_failures)

    table = Table(title=f"Triggers ({len(events)} in {args.seconds:g}s at {config.bpm:g} BPM)")
    for column in ("#", "Time", "Layer", "Key", "Copy", "Freq", "Note", "Dur", "Vel", "Quantized"):
        table.add_column(column)
    for event in events[: args.limit]:
        table.add_row(*_event_row(event))

    console.print(table)
    if len(events) > args.limit:
        console.print(f"[dim]... {len(events) - args.limit} more[/dim]")
    if failures:
        console.print(f"[yellow]{failures} rebuild failure(s), see log[/yellow]")
    pending = session.engine.pending
    if pending:
        console.print(
            f"[yellow]{len(pending)} quantized trigger(s) still pending, "
            f"next at {pending[0].execute_time:.3f}s[/yellow]"
        )
    return 0


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for CLI."""
    p = argparse.ArgumentParser(
        prog="gyrotone",
        description="Gyrotone - rotating polygon sequencer",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    geometry = sub.add_parser("geometry", help="Print geometry metadata for each layer")
    geometry.add_argument("--config", help="Path to config (.json, .yaml, .yml)")

    sim = sub.add_parser("simulate", help="Simulate rotation and print triggers")
    sim.add_argument("--config", help="Path to config (.json, .yaml, .yml)")
    sim.add_argument("--seconds", type=float, default=2.0, help="Simulated duration (default: 2)")
    sim.add_argument("--fps", type=float, default=60.0, help="Frames per second (default: 60)")
    sim.add_argument("--limit", type=int, default=50, help="Maximum rows to print (default: 50)")
    sim.add_argument(
        "--quantize",
        metavar="GRID",
        help='Enable quantization with this grid, e.g. "1/8" or "1/8T"',
    )

    return p


def run(argv: list[str] | None = None) -> int:
    """Parse ``argv`` and run the selected command."""
    args = build_arg_parser().parse_args(argv)
    if args.cmd == "geometry":
        return show_geometry(args)
    return simulate(args)


def main() -> None:
    """Main entry point for CLI."""
    sys.exit(run())


if __name__ == "__main__":
    main()
