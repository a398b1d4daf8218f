"""Rich terminal output renderer for Vigil."""

from __future__ import annotations

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from vigil.models import ProviderResult, ScanResult, Verdict

console = Console()

VERDICT_COLORS = {
    Verdict.MALICIOUS: "bold red",
    Verdict.SUSPICIOUS: "yellow",
    Verdict.CLEAN: "green",
    Verdict.UNKNOWN: "dim",
}


def render_result(result: ScanResult, verbose: bool = False) -> None:
    """Print the full Rich-formatted scan result to the terminal.

    Args:
        result: The completed ScanResult to render.
        verbose: If True, include permalinks and the local assessment.
    """
    console.print()
    _render_header(result)
    _render_verdict_panel(result)
    _render_provider_table(result.provider_results, verbose)
    _render_narrative(result)
    console.print()


def _render_header(result: ScanResult) -> None:
    """Render the target summary and timestamp."""
    lines = []
    local = result.local_assessment
    if local is not None:
        lines.append(f"[bold]File:[/bold] {local.filename} ({local.size_bytes} bytes)")
        lines.append(f"[bold]SHA-256:[/bold] {local.digest}")
        if local.tags:
            lines.append(f"[bold]Tags:[/bold] {', '.join(sorted(local.tags))}")
        lines.append(f"[bold]Local verdict:[/bold] {local.verdict.value}")
    else:
        lines.append(f"[bold]URL:[/bold] {result.target.display_name}")
    lines.append(f"[bold]Scanned:[/bold] {result.scanned_at}")

    console.print(
        Panel(
            "\n".join(lines),
            title="[bold blue]Vigil Scan Result[/bold blue]",
            border_style="blue",
        )
    )


def _render_verdict_panel(result: ScanResult) -> None:
    """Render the final verdict."""
    color = VERDICT_COLORS.get(result.final_verdict, "white")
    content = Text.assemble("Final verdict: ", Text(result.final_verdict.value.upper(), style=color))
    console.print(Panel(content, border_style=color))


def _render_provider_table(provider_results: list[ProviderResult], verbose: bool) -> None:
    """Render one row per queried provider."""
    table = Table(title="Providers", show_lines=True)
    table.add_column("Provider", min_width=12)
    table.add_column("Verdict", justify="center", width=12)
    table.add_column("Detections", justify="right", width=11)
    table.add_column("Notes", min_width=30)

    for pr in provider_results:
        if pr.error:
            verdict_str = "[red]ERR[/red]"
            notes = f"[red]{pr.error}[/red]"
        elif not pr.found:
            verdict_str = "[dim]not found[/dim]"
            notes = ""
        else:
            color = VERDICT_COLORS.get(pr.verdict, "white")
            verdict_str = f"[{color}]{pr.verdict.value}[/{color}]"
            notes = ""

        if verbose and pr.permalink:
            notes = f"{notes}\n{pr.permalink}".strip()

        detections = (
            f"{pr.detection_count}/{pr.total_engines}"
            if pr.total_engines is not None else "--"
        )
        table.add_row(pr.provider_id, verdict_str, detections, notes)

    console.print(table)


def _render_narrative(result: ScanResult) -> None:
    """Render the AI narrative or its failure notice."""
    if result.narrative:
        console.print(
            Panel(
                Markdown(result.narrative),
                title="[bold]AI Analysis[/bold]",
                border_style=VERDICT_COLORS.get(result.final_verdict, "white"),
            )
        )
    elif result.narrative_error:
        console.print(f"[dim]AI analysis unavailable: {result.narrative_error}[/dim]")
