"""
Display management for the Ariadne CLI with Rich components.
"""

import json
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.text import Text
from rich.align import Align
from rich import box

from ..models.report import RunReport
from ..services.lyrics_sync import LyricsSyncReport


class DisplayManager:
    """Renders run reports as Rich panels and tables."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def create_header_panel(self, title: str, subtitle: Optional[str] = None) -> Panel:
        """Create a styled header panel."""
        header_text = Text(title, style="bold cyan")
        if subtitle:
            header_text.append(f"\n{subtitle}", style="dim")
        return Panel(
            Align.center(header_text),
            border_style="cyan",
            box=box.ROUNDED,
            padding=(1, 2)
        )

    def _mode_subtitle(self, applied: bool) -> str:
        return "Changes written" if applied else "Dry run - nothing written (use --apply)"

    def print_json(self, data: Dict[str, Any]):
        """Print a report as JSON."""
        self.console.print_json(json.dumps(data, ensure_ascii=False))

    def display_run_report(self, report: RunReport, applied: bool = False, title: str = "MERGE REPORT"):
        """Display counts, skip reasons and samples of one batch run."""
        self.console.print()
        source = f" - {report.source}" if report.source else ""
        self.console.print(self.create_header_panel(f"{title}{source}", self._mode_subtitle(applied)))

        table = Table(show_header=True, header_style="bold magenta", box=box.ROUNDED, border_style="blue")
        table.add_column("Outcome", style="white")
        table.add_column("Collections", style="cyan", justify="right")
        table.add_column("Tracks", style="green", justify="right")
        table.add_row("Created", str(report.created.get("collection", 0)), str(report.created.get("track", 0)))
        table.add_row("Merged", str(report.merged.get("collection", 0)), str(report.merged.get("track", 0)))
        self.console.print(table)

        summary = [
            f"[dim blue]ℹ[/dim blue] Unchanged merges: {report.unchanged}",
            f"[dim blue]ℹ[/dim blue] Updated: {report.updated}",
            f"[yellow]⚠[/yellow] Skipped (ambiguous): {report.skipped_ambiguous}",
            f"[yellow]⚠[/yellow] No match: {report.no_match}",
        ]
        for name, value in sorted(report.counters.items()):
            summary.append(f"[dim]{name}: {value}[/dim]")
        self.console.print("\n".join(summary))

        if report.skipped:
            self._display_skips(report)
        if report.ambiguous_samples:
            self._display_ambiguous(report.ambiguous_samples)
        for warning in report.warnings:
            self.console.print(f"[yellow]⚠[/yellow] {warning}")
        self.console.print()

    def _display_skips(self, report: RunReport):
        table = Table(
            title="Skipped records",
            show_header=True,
            header_style="bold magenta",
            box=box.ROUNDED,
            border_style="yellow"
        )
        table.add_column("Id", style="white", no_wrap=False)
        table.add_column("Kind", style="cyan", width=10)
        table.add_column("Reason", style="yellow", width=18)
        table.add_column("Detail", style="dim", no_wrap=False)
        for entry in report.skipped[:report.max_samples]:
            table.add_row(entry.entity_id, entry.kind, entry.reason, entry.detail)
        self.console.print(table)
        hidden = len(report.skipped) - report.max_samples
        if hidden > 0:
            self.console.print(f"[dim]... and {hidden} more[/dim]")

    def _display_ambiguous(self, samples: List[Dict[str, Any]]):
        table = Table(
            title="Ambiguous matches",
            show_header=True,
            header_style="bold magenta",
            box=box.ROUNDED,
            border_style="red"
        )
        table.add_column("Record", style="white")
        table.add_column("Key", style="yellow")
        table.add_column("Candidates", style="dim", no_wrap=False)
        for sample in samples:
            table.add_row(sample["id"], sample["key"], ", ".join(sample["candidates"]))
        self.console.print(table)

    def display_lyrics_sync(self, report: LyricsSyncReport, applied: bool = False):
        """Display lyrics sync tallies and sample failures."""
        self.console.print()
        self.console.print(self.create_header_panel("LYRICS SYNC", self._mode_subtitle(applied)))
        content = (
            f"[dim blue]ℹ[/dim blue] Matched: {report.matched}\n"
            f"[dim blue]ℹ[/dim blue] Fetched: {report.fetched}\n"
            f"[bold green]✓[/bold green] Updated: [green]{report.updated}[/green]\n"
            f"[yellow]⚠[/yellow] No lyrics: {report.no_lyrics}"
        )
        if report.failed:
            content += f"\n[bold red]✗[/bold red] Failed: [red]{report.failed}[/red]"
        if report.not_started:
            content += f"\n[yellow]⚠[/yellow] Not started (deadline): {report.not_started}"
        self.console.print(Panel(content, border_style="cyan", box=box.ROUNDED, padding=(1, 2)))

        if report.sample_failures:
            table = Table(show_header=True, header_style="bold magenta", box=box.ROUNDED, border_style="red")
            table.add_column("Id", style="white")
            table.add_column("Title", style="green")
            table.add_column("Song id", style="cyan")
            table.add_column("Reason", style="yellow")
            for failure in report.sample_failures:
                table.add_row(failure["id"], failure["title"], failure["songId"], failure["reason"])
            self.console.print(table)
        self.console.print()

    def display_missing_lyrics(self, report: Dict[str, Any]):
        """Display the missing-lyrics report grouped by collection."""
        self.console.print()
        self.console.print(self.create_header_panel(
            "MISSING LYRICS",
            f"{report['missingLyricsSongs']} of {report['totalSongs']} songs have no lyrics"
        ))
        table = Table(show_header=True, header_style="bold magenta", box=box.ROUNDED, border_style="blue")
        table.add_column("Album", style="white", no_wrap=False)
        table.add_column("Release Date", style="cyan", width=12, justify="center")
        table.add_column("Missing", style="yellow", justify="right")
        table.add_column("Tracks", style="dim", no_wrap=False)
        for group in report["byAlbum"]:
            titles = ", ".join(track["title"] or track["id"] for track in group["tracks"])
            table.add_row(group["albumTitle"], group["albumReleaseDate"], str(len(group["tracks"])), titles)
        self.console.print(table)
        self.console.print()

    def display_summary(self, title: str, summary: Dict[str, Any], applied: bool = False,
                        samples_key: str = "unmatchedTracks"):
        """Display a flat dict of tallies, then its sample list if any."""
        self.console.print()
        self.console.print(self.create_header_panel(title, self._mode_subtitle(applied)))

        table = Table(show_header=True, header_style="bold magenta", box=box.ROUNDED, border_style="blue")
        table.add_column("Field", style="white")
        table.add_column("Value", style="cyan", no_wrap=False)
        for name, value in summary.items():
            if name == samples_key:
                continue
            if isinstance(value, dict):
                value = ", ".join(f"{k}={v}" for k, v in value.items() if v) or "-"
            table.add_row(name, str(value))
        self.console.print(table)

        samples = summary.get(samples_key) or []
        if samples:
            sample_table = Table(
                title="Unmatched tracks",
                show_header=True,
                header_style="bold magenta",
                box=box.ROUNDED,
                border_style="yellow"
            )
            sample_table.add_column("Id", style="white")
            sample_table.add_column("Title", style="green", no_wrap=False)
            for sample in samples:
                sample_table.add_row(sample["id"], sample["title"])
            self.console.print(sample_table)
        self.console.print()

    def display_error(self, message: str):
        self.console.print(f"[bold red]✗[/bold red] {message}")

    def display_success(self, message: str):
        self.console.print(f"[bold green]✓[/bold green] {message}")
