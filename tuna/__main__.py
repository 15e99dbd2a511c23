"""
Console entry point: runs the Typer app and turns errors escaping a command
into a Rich panel and an exit status.
"""

import logging
import sys

from rich.console import Console

from tuna.cli.app import app
from tuna.cli.formatters import format_error_with_suggestions
from tuna.exceptions import TunaError

log = logging.getLogger("tuna")


def main() -> None:
    console = Console(stderr=True)

    try:
        app(prog_name="tuna")
    except KeyboardInterrupt:
        # Output files keep whatever the last completed cycle wrote
        console.print("\n[yellow]⚠️  Cancelled by user.[/yellow]")
        sys.exit(0)
    except TunaError as e:
        console.print(format_error_with_suggestions(e))
        sys.exit(1)
    except OSError as e:
        console.print(format_error_with_suggestions(e, {"type": "Filesystem"}))
        log.debug("Full traceback:", exc_info=True)
        sys.exit(1)
    except Exception as e:
        console.print(format_error_with_suggestions(e, {"type": "Unexpected"}))
        log.debug("Full traceback:", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
