"""
Functions for formatting and displaying data in the console using Rich.
"""

from pathlib import Path
from typing import Any

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from modbuild.models.config import BuildConfig
from modbuild.models.stats import BuildStats
from modbuild.utils.formatting import format_duration, format_size


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    error_type = type(error).__name__
    error_msg = str(error)

    suggestions_map = {
        "ToolFailedError": [
            "• Read the tool output above for the first reported problem.",
            "• Run `modbuild --dry-run` to review the exact command lines.",
        ],
        "ProcessSpawnError": [
            "• Check that the tool is installed and on your PATH.",
            "• Run `modbuild diagnose` to see how each tool resolves.",
        ],
        "DownloadError": [
            "• Check your internet connection.",
            "• Verify the repository URL and version in `modbuild.ini`.",
            "• The repository may be temporarily unavailable; try again later.",
        ],
        "FileSystemError": [
            "• Check permissions on the source and output directories.",
            "• Make sure no other process holds files under the output directory.",
        ],
        "ConfigurationError": [
            "• Fix the reported keys in `modbuild.ini`.",
            "• Run `modbuild init --force` to write a fresh default configuration.",
        ],
    }

    suggestions = suggestions_map.get(
        error_type, ["• Run the command with -vv for detailed logs."]
    )

    error_text = Text()
    error_text.append(f"{error_type}: ", style="bold red")
    error_text.append(error_msg)

    suggestion_text = Text("\n".join(suggestions))

    content = Table.grid(padding=(1, 0))
    content.add_row(error_text)
    content.add_row()
    content.add_row(Text("Suggestions", style="bold yellow"))
    content.add_row(suggestion_text)

    if context:
        content.add_row()
        content.add_row(Text(f"Context: {context}", style="dim"))

    return Panel(
        content,
        title="[bold red]Build Failed[/bold red]",
        border_style="red",
        expand=False,
    )


def print_config(config_path: Path, config_data: dict[str, Any]):
    """Displays the effective configuration."""
    console = Console()
    content = ""
    for key, value in config_data.items():
        if isinstance(value, list):
            value = "\n    " + "\n    ".join(value)
        content += f"{key} = {escape(str(value))}\n"

    source = str(config_path) if config_path.is_file() else "defaults"
    console.print(
        Panel(
            content.strip(),
            title=f"Configuration ([dim]{source}[/dim])",
            border_style="cyan",
        )
    )


def print_validation_table(config: BuildConfig):
    """Displays a summary of the current settings."""
    console = Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()

    table.add_row("Sources:", f"{config.source_dir} (*{config.source_extension})")
    table.add_row("Output:", str(config.output_dir))
    table.add_row("Dependencies:", f"{config.deps_dir} ({len(config.artifacts)})")
    table.add_row("Compiler:", config.compiler)
    table.add_row("Test Runner:", f"{config.test_runner} -> {config.launcher_module}")

    console.print(
        Panel(
            table,
            title="[bold green]✓ Validated Settings[/bold green]",
            border_style="green",
        )
    )


def print_summary_panel(stats: BuildStats, duration_s: float):
    """Displays the final summary of a build session."""
    console = Console()

    phase_table = Table(box=box.SIMPLE, padding=(0, 2))
    phase_table.add_column("Phase", style="bold cyan")
    phase_table.add_column("Status")
    phase_table.add_column("Time", justify="right", style="blue")
    for phase in stats.phases:
        status = (
            f"[yellow]○ skipped[/yellow] [dim]{escape(phase.skip_reason or '')}[/dim]"
            if phase.skipped
            else "[green]✓ done[/green]"
        )
        phase_table.add_row(phase.name, status, format_duration(phase.duration_seconds))

    stats_table = Table(show_header=False, box=None, padding=(0, 2))
    stats_table.add_column(style="bold cyan", justify="right", width=20)
    stats_table.add_column(style="white", justify="left")
    stats_table.add_row(
        "Downloaded:",
        f"[green]{stats.artifacts_downloaded}[/green] "
        f"[dim]({format_size(stats.bytes_downloaded)})[/dim]",
    )
    if stats.artifacts_cached > 0:
        stats_table.add_row("Cached:", f"[yellow]{stats.artifacts_cached}[/yellow]")
    stats_table.add_row("Tool Runs:", str(len(stats.invocations)))
    stats_table.add_row("Time Elapsed:", f"[blue]{format_duration(duration_s)}[/blue]")

    content = Table.grid(padding=(1, 0))
    content.add_row(phase_table)
    content.add_row(stats_table)

    if stats.dry_run:
        title = "🔍 [bold]Dry Run Summary[/bold]"
        border_color = "yellow"
    else:
        title = "🔨 [bold]Build Complete![/bold]"
        border_color = "green"

    console.print()
    console.print(
        Panel(
            content,
            title=title,
            border_style=border_color,
            box=box.DOUBLE,
            expand=False,
            padding=(1, 2),
        )
    )


def print_diagnostics(checks: list[tuple[str, bool, str]]):
    """Displays the outcome of `diagnose` checks as (name, passed, detail) rows."""
    console = Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column()
    table.add_column(style="bold")
    table.add_column(style="dim")
    for name, passed, detail in checks:
        mark = "[green]✓[/green]" if passed else "[red]✗[/red]"
        table.add_row(mark, escape(name), escape(detail))
    console.print(table)
