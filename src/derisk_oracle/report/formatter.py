"""Rich console formatter for dry run reports."""

from __future__ import annotations

from rich.columns import Columns
from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..units import format_usd
from .generator import ScoreReport


def _truncate_address(address: str) -> str:
    """Truncate address for display."""
    if len(address) <= 16:
        return address
    return f"{address[:10]}...{address[-4:]}"


def _score_style(percentage: float) -> str:
    if percentage >= 50:
        return "green"
    if percentage >= 20:
        return "yellow"
    return "red"


def format_summary_table(report: ScoreReport, console: Console | None = None) -> None:
    """Print a rich dashboard for a proven score.

    Args:
        report: The score report to format
        console: Console to print to; a new stdout console when omitted
    """
    console = console or Console()
    journal = report.journal

    protocol_table = Table(show_header=False, box=None, padding=(0, 1))
    protocol_table.add_column("Key", style="dim")
    protocol_table.add_column("Value", style="cyan")
    protocol_table.add_row("Protocol", report.protocol_name)
    protocol_table.add_row("Address", _truncate_address(report.protocol_address))
    protocol_table.add_row("Reserves", str(report.reserve_count))
    protocol_table.add_row("Timestamp", str(journal.timestamp))

    protocol_panel = Panel(
        protocol_table, title="[bold]Protocol[/]", border_style="blue"
    )

    style = _score_style(journal.percentage)
    score_table = Table(show_header=False, box=None, padding=(0, 1))
    score_table.add_column("Key", style="dim")
    score_table.add_column("Value")
    score_table.add_row(
        "Safety Score", f"[bold {style}]{journal.percentage:.4f}%[/]"
    )
    score_table.add_row("Raw Score", f"{journal.safety_score:,} / 1,000,000")
    score_table.add_row("Total Assets", format_usd(journal.total_assets_usd))
    score_table.add_row(
        "Total Liabilities", format_usd(journal.total_liabilities_usd)
    )
    score_table.add_row("Buffer", format_usd(journal.buffer_usd))

    score_panel = Panel(score_table, title="[bold]Score[/]", border_style="green")

    top_row = Columns([protocol_panel, score_panel], equal=True, expand=True)

    proof_table = Table(show_header=False, box=None, padding=(0, 1))
    proof_table.add_column("Key", style="dim")
    proof_table.add_column("Value")
    proof_table.add_row("Journal size", f"{len(report.proof.journal_bytes)} bytes")
    proof_table.add_row("Seal size", f"{len(report.proof.seal)} bytes")
    proof_panel = Panel(proof_table, title="[bold]Proof[/]", border_style="cyan")

    journal_panel = Panel(
        Text(report.proof.journal_bytes.hex(), style="dim", overflow="fold"),
        title="[bold]Journal[/]",
        border_style="dim",
    )

    outer_panel = Panel(
        Group(top_row, "", proof_panel, "", journal_panel),
        title="[bold white]DeRisk Oracle Dry Run[/]",
        border_style="white",
        padding=(1, 2),
    )

    console.print()
    console.print(outer_panel)
    console.print()
