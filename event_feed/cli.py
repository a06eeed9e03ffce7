#!/usr/bin/env python3
"""
CLI for the event feed job.

Usage:
    # Scheduled run: harvest, extract, write the feed
    event-feed run

    # Keep the harvested cards for later replay
    event-feed run --save-fragments fragments.json

    # Re-run extraction over saved cards without opening a browser
    event-feed replay fragments.json
"""

import argparse
import asyncio
import sys
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from .config import Config
from .errors import EventFeedError
from .logger import get_logger, set_level
from .models import RunReport
from .pipeline import EventPipeline
from .storage import load_fragments, save_fragments

log = get_logger('cli')


def print_summary(report: RunReport):
    """Print per-batch results and the run outcome."""
    console = Console()
    table = Table(title="Event Feed Run")

    table.add_column("Batch", justify="right", style="cyan")
    table.add_column("Cards", justify="center")
    table.add_column("Events", justify="center")
    table.add_column("Stage")
    table.add_column("Status", justify="center")

    for result in report.batch_results:
        status = "✅" if result.success else "❌"
        table.add_row(
            str(result.batch_index + 1),
            str(result.fragment_count),
            str(len(result.records)),
            result.stage.value if result.stage else (result.error or "➖"),
            status,
        )

    console.print(table)

    written = len(report.artifact.records) if report.artifact else 0
    console.print(f"State: {report.state.value} | cards: {report.fragment_count} | "
                  f"LLM events: {report.llm_record_count} | fallback: {report.used_fallback} | "
                  f"written: {written}")
    if report.artifact:
        console.print(f"Feed: {report.artifact.path}")


async def cmd_run(args, config: Config) -> RunReport:
    """Harvest the live listing and write the feed."""
    pipeline = EventPipeline.from_config(config)
    url, fragments = await pipeline.harvest(url=args.url)
    if args.save_fragments:
        save_fragments(fragments, args.save_fragments)
    return await pipeline.process(fragments, url=url)


async def cmd_replay(args, config: Config) -> RunReport:
    """Run extraction over fragments saved by a previous run."""
    fragments = load_fragments(args.fragments)
    log.info(f"Replaying {len(fragments)} fragments from {args.fragments}")
    pipeline = EventPipeline.from_config(config)
    return await pipeline.process(fragments, url=f"replay:{args.fragments}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="event-feed", description="Build the events JSON feed")
    parser.add_argument("--output", help="Artifact path (default: OUTPUT_PATH)")
    parser.add_argument("--provider", choices=["claude", "gemini"], help="Completion provider")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING ...")
    parser.add_argument("--quiet", action="store_true", help="Skip the summary table")

    sub = parser.add_subparsers(dest="command")

    run = sub.add_parser("run", help="Harvest the listing page and write the feed")
    run.add_argument("--url", help="Override the listing URL")
    run.add_argument("--save-fragments", metavar="PATH", help="Also write harvested card markup to PATH")
    run.add_argument("--headful", action="store_true", help="Show the browser window")

    replay = sub.add_parser("replay", help="Re-run extraction over saved fragments")
    replay.add_argument("fragments", help="JSON file written by --save-fragments")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        # Scheduler invocation with no subcommand
        args.command = "run"
        args.url = None
        args.save_fragments = None
        args.headful = False

    if args.log_level:
        set_level(args.log_level)

    overrides = {}
    if args.output:
        overrides['OUTPUT_PATH'] = args.output
    if args.provider:
        overrides['LLM_PROVIDER'] = args.provider
    if args.command == "run" and args.headful:
        overrides['HEADLESS'] = False

    try:
        config = Config.from_env(**overrides)
        log.debug(f"Config: {config.to_dict()}")
        if args.command == "replay":
            report = asyncio.run(cmd_replay(args, config))
        else:
            report = asyncio.run(cmd_run(args, config))
    except (EventFeedError, OSError, ValueError) as e:
        log.error(f"Run failed: {e}")
        return 1

    if not args.quiet:
        print_summary(report)
    log.info("Process completed successfully")
    return 0


if __name__ == "__main__":
    sys.exit(main())
