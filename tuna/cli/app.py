"""
Defines the command-line interface for the application using Typer.
"""

import asyncio
import logging
import os
import sys
import time
from pathlib import Path
from typing import Iterable, Iterator

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from tuna import __version__
from tuna.core.compat import (
    HOST_API_VERSION,
    CompatibilityGate,
    format_version,
    parse_version,
)
from tuna.core.session import SyncSession
from tuna.exceptions import TunaError
from tuna.media.assets import AssetSync
from tuna.media.fetcher import Fetcher
from tuna.models.config import TunaConfig
from tuna.models.song import Song
from tuna.native.libvlc import create_vlc_module
from tuna.storage.config_manager import DEFAULT_OUTPUT_FORMAT, ConfigManager

from .formatters import (
    print_config,
    print_gate_result,
    print_summary_panel,
    print_validation_table,
)

console = Console()

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            markup=True,
        )
    ],
)
log = logging.getLogger("tuna")

app = typer.Typer(
    name="tuna",
    help=(
        "Keeps cover art, lyrics and 'now playing' text files in sync with the"
        " current song. Use 'tuna <command> --help' for more info."
    ),
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)


def get_config_dir() -> Path:
    if override := os.getenv("TUNA_CONFIG_DIR"):
        return Path(override).expanduser()
    if os.name == "nt":
        base_dir = Path(os.getenv("APPDATA", "~\\AppData\\Roaming"))
    else:
        base_dir = Path(os.getenv("XDG_CONFIG_HOME", "~/.config"))
    return base_dir.expanduser() / "tuna"


CONFIG_DIR = get_config_dir()
CONFIG_FILE = CONFIG_DIR / "config.ini"


def _load_config() -> TunaConfig:
    try:
        return ConfigManager(CONFIG_FILE).load_config()
    except TunaError as e:
        console.print(f"[red]✗ {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from e


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-vv for debug).",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
    show_config: bool = typer.Option(
        False, "--show-config", help="Display the current configuration."
    ),
):
    """tuna: now playing sync"""
    if version:
        console.print(f"[bold]tuna[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()

    log_level = "WARNING"
    if verbose == 1:
        log_level = "INFO"
    elif verbose >= 2:
        log_level = "DEBUG"
    logging.getLogger("tuna").setLevel(log_level)

    if show_config:
        if not CONFIG_FILE.is_file():
            console.print(
                "[red]✗ Config file not found.[/] Run [cyan]tuna init[/cyan] first."
            )
            raise typer.Exit(code=1)
        print_config(CONFIG_FILE, _load_config())
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@app.command()
def init(
    outputs: list[Path] | None = typer.Option(  # noqa: B008
        None,
        "--output",
        "-o",
        help="Text file to render the current song into. Repeat for several files.",
    ),
    output_format: str = typer.Option(
        DEFAULT_OUTPUT_FORMAT,
        "--format",
        "-f",
        help="Format template for the outputs, e.g. '{title} - {artists}'.",
    ),
    log_mode: bool = typer.Option(
        False, "--log-mode", help="Append one line per song instead of overwriting."
    ),
    placeholder: str | None = typer.Option(
        None, "--placeholder", help="Text written while no song is playing."
    ),
    force: bool = typer.Option(
        False, "--force", help="Overwrite an existing configuration without asking."
    ),
):
    """Create a configuration file."""
    if (
        CONFIG_FILE.exists()
        and not force
        and not typer.confirm("Configuration file already exists. Overwrite it?")
    ):
        raise typer.Abort()

    settings = {}
    if placeholder is not None:
        settings["placeholder"] = placeholder

    config_manager = ConfigManager(CONFIG_FILE)
    try:
        config_manager.save_new_config(
            settings,
            [
                {"path": path, "format": output_format, "log_mode": log_mode}
                for path in outputs or []
            ],
        )
    except TunaError as e:
        console.print(f"[red]✗ {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from e

    console.print(f"\n[bold green]✓ Configuration saved to '{CONFIG_FILE}'[/bold green]")
    if not outputs:
        console.print(
            "[dim]No outputs configured yet. Add \\[output.0] sections to the file.[/dim]"
        )


def _read_songs(lines: Iterable[str]) -> Iterator[Song]:
    """Parses one JSON song snapshot per line, skipping blanks and comments."""
    for number, line in enumerate(lines, start=1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        try:
            yield Song.model_validate_json(line)
        except ValidationError as e:
            log.error(
                f"[red]✗ Invalid song snapshot on line {number}:[/] {escape(str(e))}"
            )


@app.command(name="update")
def update_command(
    snapshot: Path | None = typer.Argument(  # noqa: B008
        None, help="JSON file holding the current song snapshot."
    ),
    stdin: bool = typer.Option(
        False,
        "--stdin",
        help="Read song snapshots from standard input, one JSON object per line.",
    ),
):
    """Run a refresh cycle for each song snapshot."""
    if stdin and snapshot:
        console.print(
            "[yellow]⚠️  Both a snapshot file and --stdin provided. "
            "Using --stdin only.[/yellow]"
        )
    elif not stdin and snapshot is None:
        console.print(
            "[red]✗ No snapshot provided.[/red] "
            "Use: [cyan]tuna update <FILE>[/cyan] or [cyan]--stdin[/cyan]"
        )
        raise typer.Exit(code=1)

    if stdin:
        songs = _read_songs(sys.stdin)
    else:
        try:
            song = Song.model_validate_json(snapshot.read_text(encoding="utf-8"))
        except OSError as e:
            console.print(
                f"[red]✗ Couldn't read snapshot '{snapshot}': {escape(str(e))}[/red]"
            )
            raise typer.Exit(code=1) from e
        except ValidationError as e:
            console.print(
                f"[red]✗ Invalid song snapshot in '{snapshot}':[/red]\n{escape(str(e))}"
            )
            raise typer.Exit(code=1) from e
        songs = iter([song])

    config = _load_config()

    async def _update_async():
        async with SyncSession(config) as session:
            for song in songs:
                await session.refresh(song)
        return session.stats

    start_time = time.monotonic()
    stats = asyncio.run(_update_async())

    print_summary_panel(stats, time.monotonic() - start_time)
    if stats.failures:
        raise typer.Exit(code=1)


@app.command()
def validate():
    """Validate the current configuration."""
    try:
        config = ConfigManager(CONFIG_FILE).load_config()
        print_validation_table(config)
    except TunaError as e:
        console.print(f"[red]✗ Configuration is invalid: {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from e


@app.command(name="reset-cover")
def reset_cover():
    """Replace the live cover with the placeholder cover."""
    config = _load_config()

    async def _reset_async() -> bool:
        async with Fetcher() as fetcher:
            return await AssetSync(config.assets, fetcher).reset_cover()

    if asyncio.run(_reset_async()):
        console.print("[green]✓ Placeholder cover in place.[/green]")
    else:
        console.print("[red]✗ Failed to reset the cover.[/red]")
        raise typer.Exit(code=1)


@app.command(name="vlc-check")
def vlc_check(
    host_version: str = typer.Option(
        format_version(HOST_API_VERSION),
        "--host-version",
        help="API version reported by the host, as major.minor.patch.",
    ),
    answer: bool | None = typer.Option(
        None,
        "--yes/--no",
        help="Answer the version mismatch question without prompting.",
    ),
):
    """Check whether VLC support can be loaded for a host version."""
    try:
        version = parse_version(host_version)
    except ValueError as e:
        console.print(f"[red]✗ {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from e

    config = _load_config()

    def prompt(title: str, message: str) -> bool:
        if answer is not None:
            return answer
        console.print(f"[bold yellow]{title}[/bold yellow]")
        return typer.confirm(message, default=False)

    gate = CompatibilityGate(
        create_vlc_module(config.vlc_support), ConfigManager(CONFIG_FILE), prompt
    )
    try:
        gate.start(version)
        print_gate_result(
            gate.state,
            gate.module.state,
            format_version(version),
            format_version(gate.expected_version),
        )
    finally:
        gate.unload()
