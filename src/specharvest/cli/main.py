#!/usr/bin/env python3
"""
SPECHARVEST CLI
---------------
Command line front end:

  specharvest extract [UPSTREAM] [OUTPUT]   hspec files -> JSON specs
  specharvest replay SPECS --target URL     JSON specs -> live checks

Author: SpecHarvest Team
Date: 2026-10-19
"""

import argparse
import logging
import sys
from typing import Any, Dict, List

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn, TimeElapsedColumn

from specharvest.cli.formatter import HarvestFormatter
from specharvest.core.engine import ExtractionEngine
from specharvest.core.errors import ConfigError, SpecLoadError
from specharvest.core.settings import Settings, apply_overrides
from specharvest.replay.loader import load_specs
from specharvest.replay.runner import ReplayRunner

# Global console for consistent styling across the application
console = Console()

VERSION = "specharvest v0.1.0"


class SpecHarvestCLI:
    """
    Translates user commands into engine and replay actions.
    """

    def __init__(self):
        self.parser = argparse.ArgumentParser(
            prog="specharvest",
            description="SpecHarvest - hspec-wai spec extractor & HTTP conformance replayer",
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )
        self.formatter = HarvestFormatter()
        self._setup_args()

    def _setup_args(self):
        """Configures the command-line flags and subcommands."""
        self.parser.add_argument("-V", "--version", action="version", version=VERSION)
        self.parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
        self.parser.add_argument("-c", "--config", help="Settings file (default: ./specharvest.yaml)")
        subparsers = self.parser.add_subparsers(dest="command", metavar="Command")

        # 'extract' subcommand
        extract_parser = subparsers.add_parser("extract", help="Extract JSON specs from hspec files")
        extract_parser.add_argument("upstream", nargs="?", help="Directory holding *Spec.hs files")
        extract_parser.add_argument("output", nargs="?", help="Directory for JSON specs")
        extract_parser.add_argument("--mapping", help="Config mapping file, relative to upstream")
        extract_parser.add_argument("-j", "--jobs", type=int, help="Parallel worker processes")
        extract_parser.add_argument("--strict-match-headers", action="store_true", default=None,
                                    help="Flag tests whose matchHeaders cannot be resolved")

        # 'replay' subcommand
        replay_parser = subparsers.add_parser("replay", help="Replay JSON specs against a server")
        replay_parser.add_argument("specs", nargs="?", help="Directory holding JSON specs")
        replay_parser.add_argument("-t", "--target", help="Base URL of the server under test")
        replay_parser.add_argument("--only", action="append", help="Only specs whose file contains this")
        replay_parser.add_argument("--skip", action="append", help="Skip specs whose file contains this")
        replay_parser.add_argument("--skip-test", action="append", dest="skip_tests",
                                   help="Skip tests whose description contains this")
        replay_parser.add_argument("--skip-config", action="append", dest="skip_configs",
                                   help="Skip specs extracted for this config")
        replay_parser.add_argument("--timeout", type=float, help="Per-request timeout in seconds")

    def _settings(self, args: argparse.Namespace) -> Settings:
        """File settings first, then any flag the user actually passed."""
        settings = Settings.load(args.config)

        if args.command == "extract":
            overrides = {
                "upstream_dir": args.upstream,
                "output_dir": args.output,
                "mapping_file": args.mapping,
                "jobs": args.jobs,
                "strict_match_headers": args.strict_match_headers,
            }
            target = settings
        else:
            overrides = {
                "target": args.target,
                "only": args.only,
                "skip": args.skip,
                "skip_tests": args.skip_tests,
                "skip_configs": args.skip_configs,
                "timeout": args.timeout,
            }
            apply_overrides(settings, {"output_dir": args.specs})
            target = settings.replay

        apply_overrides(target, overrides)
        return settings

    def print_header(self, subtitle: str):
        console.print(Panel.fit(
            f"[bold cyan]{VERSION}[/bold cyan]",
            title=f"[bold white]{subtitle}[/bold white]",
            border_style="cyan"
        ))

    def _run_extract(self, settings: Settings) -> int:
        engine = ExtractionEngine(settings)
        try:
            total = len(engine.discover())
        except FileNotFoundError as e:
            console.print(f"[bold red]Error:[/bold red] {e}")
            return 2

        if total == 0:
            console.print(f"\n[bold yellow]⚠️  No *{settings.file_suffix} files found.[/bold yellow]")
            return 0

        reports: List[Dict[str, Any]] = []
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(bar_width=40),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            console=console
        ) as progress:
            task_id = progress.add_task("Extracting specs...", total=total)

            def on_file(report: Dict[str, Any]):
                reports.append(report)
                progress.update(task_id, advance=1, description=f"Extracted: {report['file_path']}")

            stats = engine.run(on_file=on_file)

        self.formatter.print_extraction_table(reports)
        self.formatter.print_extraction_summary(stats, str(engine.output))
        return 0

    def _run_replay(self, settings: Settings) -> int:
        replay = settings.replay
        if not replay.target:
            console.print("[bold red]Error:[/bold red] a replay target is required (--target or settings file).")
            return 2

        specs = load_specs(settings.output_dir, only=replay.only, skip=replay.skip)
        if not specs:
            console.print(f"\n[bold yellow]⚠️  No specs found in {settings.output_dir}.[/bold yellow]")
            return 0

        runner = ReplayRunner(replay.target, replay)
        with console.status(f"Replaying {len(specs)} spec files against {replay.target}..."):
            outcomes = runner.run(specs)

        summary = runner.summarize(outcomes)
        self.formatter.print_replay_failures(outcomes)
        self.formatter.print_replay_summary(summary)
        return 0 if summary["failed"] == 0 else 1

    def run(self, argv=None) -> int:
        """Primary routing entry point."""
        args = self.parser.parse_args(argv)

        logging.basicConfig(
            level=logging.DEBUG if args.verbose else logging.WARNING,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )

        if args.command is None:
            self.print_header("Spec Extraction & Replay")
            self.parser.print_help()
            return 0

        try:
            settings = self._settings(args)
            if args.command == "extract":
                self.print_header("Spec Extraction")
                return self._run_extract(settings)
            self.print_header("Conformance Replay")
            return self._run_replay(settings)
        except (ConfigError, SpecLoadError) as e:
            console.print(f"[bold red]Error:[/bold red] {e}")
            return 2


def main():
    """Application entry point with interrupt handling."""
    try:
        sys.exit(SpecHarvestCLI().run())
    except KeyboardInterrupt:
        console.print("\n[bold red]Terminated by user.[/bold red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
