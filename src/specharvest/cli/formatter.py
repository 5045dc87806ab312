# src/specharvest/cli/formatter.py
from typing import Any, Dict, List

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

# Initialize the Rich console for high-quality terminal output
console = Console()


class HarvestFormatter:
    """
    Renders extraction and replay reports for the CLI.
    """

    def print_extraction_table(self, reports: List[Dict[str, Any]]):
        table = Table(title="SpecHarvest Extraction Report", show_header=True, header_style="bold magenta")
        table.add_column("Spec File", style="cyan")
        table.add_column("Config")
        table.add_column("Tests", justify="right")
        table.add_column("Flagged", justify="right")
        table.add_column("Result", justify="center")

        for r in reports:
            if not r.get("success"):
                console.print(f"[bold red]Error in {r.get('file_path')}:[/bold red] {r.get('error')}")
            flagged = r.get("flagged", 0)
            icon = "❌" if not r.get("success") else "⚠️" if flagged else "✅"
            table.add_row(
                str(r.get("file_path")),
                str(r.get("config", "-")),
                str(r.get("tests", 0)),
                f"[yellow]{flagged}[/yellow]" if flagged else "0",
                icon,
            )

        console.print(table)

    def print_extraction_summary(self, stats: Dict[str, Any], output_dir: str):
        console.print(Panel(
            f"[bold white]Summary Report[/bold white]\n"
            f"════════════════════════════════════════\n"
            f"Spec Files:   {stats['totalFiles']}\n"
            f"Tests:        [green]{stats['totalTests']}[/green]\n"
            f"Flagged:      [yellow]{stats['totalFlagged']}[/yellow]\n"
            f"Read Errors:  [red]{len(stats.get('errors', []))}[/red]\n"
            f"Output:       {output_dir}",
            border_style="dim"
        ))

    def print_replay_failures(self, outcomes: List[Dict[str, Any]]):
        for o in outcomes:
            if not o["passed"]:
                console.print(f"[bold red]FAIL[/bold red] [cyan]{o['file']}[/cyan] {o['description']}")
                console.print(f"     [dim]{o['error']}[/dim]")

    def print_replay_summary(self, summary: Dict[str, Any]):
        table = Table(title="SpecHarvest Replay Report", show_header=True, header_style="bold magenta")
        table.add_column("Spec", style="cyan")
        table.add_column("Passed", justify="right", style="green")
        table.add_column("Failed", justify="right", style="red")

        for name, counts in sorted(summary["files"].items()):
            table.add_row(name, str(counts["passed"]), str(counts["failed"]))

        console.print(table)
        color = "green" if summary["failed"] == 0 else "red"
        console.print(
            f"[bold {color}]{summary['passed']}/{summary['total']} passed[/bold {color}]"
        )
