"""
Functions for formatting and displaying data in the console using Rich.
"""

from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from tuna.core.compat import GateState
from tuna.models.config import TunaConfig
from tuna.models.stats import SyncStats
from tuna.native.base import ModuleState
from tuna.utils.formatting import format_duration


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    error_type = type(error).__name__
    error_msg = str(error)

    suggestions_map = {
        "ConfigurationError": [
            "• Run `tuna init` to create a configuration file.",
            "• Run `tuna validate` to see which setting is rejected.",
            "• Output sections must be named [output.0], [output.1], ...",
        ],
        "ValidationError": [
            "• Song snapshots must be JSON objects, one per line with --stdin.",
            "• 'state' accepts playing, paused, stopped or unknown.",
        ],
        "ClientResponseError": [
            "• A network connection issue occurred.",
            "• The server hosting the cover or lyrics may be unavailable.",
        ],
        "PermissionError": [
            "• Check that the output and cover paths are writable.",
        ],
    }

    suggestions = suggestions_map.get(
        error_type, ["• Run the command with -vv for detailed logs."]
    )

    error_text = Text()
    error_text.append(f"{error_type}: ", style="bold red")
    error_text.append(error_msg)

    content = Table.grid(padding=(1, 0))
    content.add_row(error_text)
    content.add_row()
    content.add_row(Text("Suggestions", style="bold yellow"))
    content.add_row(Text("\n".join(suggestions)))

    if context:
        content.add_row()
        content.add_row(Text(f"Context: {context}", style="dim"))

    return Panel(
        content,
        title="[bold red]An Error Occurred[/bold red]",
        border_style="red",
        expand=False,
    )


def print_config(config_path: Path, config: TunaConfig):
    """Displays the current configuration."""
    console = Console()
    content = f"placeholder = {config.placeholder!r}\n"
    content += f"vlc_support = {config.vlc_support}\n"
    for key, value in config.assets.model_dump().items():
        content += f"{key} = {value}\n"
    for index, output in enumerate(config.outputs):
        mode = "log" if output.log_mode else "overwrite"
        content += f"output.{index} = {output.path} ({mode}) {output.format!r}\n"

    console.print(
        Panel(
            Text(content.strip()),
            title=f"Configuration ([dim]{config_path}[/dim])",
            border_style="cyan",
        )
    )


def print_validation_table(config: TunaConfig):
    """Displays a summary of the current settings."""
    console = Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()

    table.add_row("Outputs:", str(len(config.outputs)))
    table.add_row("Cover:", f"[dim]{config.assets.cover_path}[/dim]")
    placeholder_state = (
        "[green]✓ found[/green]"
        if config.assets.cover_placeholder.is_file()
        else "[yellow]✗ missing[/yellow]"
    )
    table.add_row(
        "Cover Placeholder:",
        f"[dim]{config.assets.cover_placeholder}[/dim] {placeholder_state}",
    )
    table.add_row("Lyrics:", f"[dim]{config.assets.lyrics_path}[/dim]")
    table.add_row(
        "VLC Support:", "✓ Enabled" if config.vlc_support else "✗ Disabled"
    )
    if config.decision.warning_shown:
        forced = "forced on" if config.decision.force_decision else "declined"
        table.add_row("VLC Decision:", f"[yellow]{forced}[/yellow]")

    console.print(
        Panel(
            table,
            title="[bold green]✓ Validated Settings[/bold green]",
            border_style="green",
        )
    )


def print_summary_panel(stats: SyncStats, duration: float):
    """Displays what a run of refresh cycles did."""
    console = Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column(justify="right")

    table.add_row("Cycles:", str(stats.cycles))
    table.add_row("Covers fetched:", str(stats.covers_fetched))
    table.add_row("Covers reset:", str(stats.covers_reset))
    table.add_row("Lyrics fetched:", str(stats.lyrics_fetched))
    table.add_row("Outputs written:", str(stats.outputs_written))
    table.add_row("Outputs unchanged:", str(stats.outputs_unchanged))
    table.add_row("Log lines suppressed:", str(stats.outputs_suppressed))
    if stats.failures:
        table.add_row("Failures:", f"[red]{stats.failures}[/red]")
    table.add_row("Duration:", format_duration(duration))

    border = "red" if stats.failures else "green"
    console.print(Panel(table, title="[bold]Summary[/bold]", border_style=border))


def print_gate_result(
    state: GateState, module_state: ModuleState, host: str, expected: str
):
    """Displays the outcome of the VLC compatibility check."""
    console = Console()
    colors = {
        GateState.COMPATIBLE: "green",
        GateState.INCOMPATIBLE_FORCED: "yellow",
        GateState.INCOMPATIBLE_DECLINED: "red",
        GateState.UNCHECKED: "dim",
    }
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()
    table.add_row("Host version:", host)
    table.add_row("Expected version:", expected)
    table.add_row("Check:", f"[{colors[state]}]{state.value}[/{colors[state]}]")
    table.add_row("libVLC:", module_state.value)
    console.print(Panel(table, title="[bold]VLC Support[/bold]", border_style="cyan"))
