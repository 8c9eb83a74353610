"""
lu_replay — Capture Replay Entry Point

Replays one capture (or a directory tree of captures) against a cdclient
component catalog and reports how many packets decoded exactly.

Usage:
    python -m lu_replay.main captures/ cdclient.sqlite
    python -m lu_replay.main session.zip cdclient.sqlite --print-packets
    python -m lu_replay.main captures/ cdclient.sqlite -v
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import timedelta
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.pretty import Pretty

from lu_replay.capture.capture import CaptureEntry, is_capture_unit
from lu_replay.capture.replay import CaptureReplayer, ReplayConfig
from lu_replay.data.catalog import ComponentCatalog
from lu_replay.errors import ReplayError

log = logging.getLogger("lu_replay")

console = Console()


def _print_progress(path: Path, packet_count: int, level: int) -> None:
    """Running packet count, indented by directory depth."""
    console.print(f"packet count = {str(packet_count).rjust(level * 6)}", highlight=False)


def _print_packet(capture: str, entry: CaptureEntry, decoded: dict) -> None:
    console.print(f"[bold cyan]{escape(entry.tag)}[/] [bright_black]({entry.size}b)[/]")
    console.print(Pretty(decoded, expand_all=True))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lu-replay",
        description="Replay packet captures and verify every payload decodes exactly",
    )
    parser.add_argument("capture_path", type=Path,
                        help="Capture file (.zip/.json) or directory of captures")
    parser.add_argument("cdclient_path", type=Path,
                        help="SQLite cdclient database with the ComponentsRegistry table")
    parser.add_argument("--print-packets", action="store_true",
                        help="Print every decoded packet")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Enable debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    # Logging
    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    capture = args.capture_path.resolve()
    if not capture.is_dir() and not is_capture_unit(capture):
        log.error("Not a capture file or directory: %s", capture)
        return 1

    config = ReplayConfig(print_packets=args.print_packets)
    try:
        with ComponentCatalog.open(args.cdclient_path) as catalog:
            replayer = CaptureReplayer(catalog, config)
            replayer.on_progress(_print_progress)
            replayer.on_packet(_print_packet)
            stats = replayer.replay(capture)
    except ReplayError as e:
        log.error("Replay aborted: %s", e)
        return 1

    console.print()
    console.print(f"Number of parsed packets: {stats.packet_count}")
    console.print(f"Time taken: {timedelta(seconds=stats.elapsed)}")
    if stats.unknown_handle_updates:
        console.print(
            f"[yellow]{stats.unknown_handle_updates} updates for objects "
            f"constructed outside the capture were not checked[/]"
        )
    return 0


if __name__ == "__main__":
    sys.exit(main())
