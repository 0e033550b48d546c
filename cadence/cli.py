"""
Cadence: command-line entry point.

Starts the interactive practice shell:

- cadence                      - start the shell
- cadence --library ./courses  - open a course library on startup
- cadence --backend pkg.mod:B  - use a specific scheduler backend
"""
from __future__ import annotations

import shlex
import sys
from pathlib import Path
from typing import Optional

import typer
from loguru import logger
from rich.console import Console
from rich.panel import Panel

from . import __version__
from .config import Settings, get_settings
from .errors import FatalIoError
from .mantra import MantraCounter
from .repl import Repl, create_line_reader
from .scheduler import load_backend
from .session import SessionState

app = typer.Typer(
    name="cadence",
    help="Interactive shell for a spaced-repetition exercise scheduler",
    add_completion=False,
)
console = Console()


def configure_logging(level: str, log_file: Optional[str] = None) -> None:
    """Send diagnostics to stderr and, optionally, to a rotating file."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format="<level>{message}</level>",
    )
    if log_file:
        logger.add(
            log_file,
            level="DEBUG",
            rotation="1 MB",
            retention=3,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} | {message}",
        )


def show_banner() -> None:
    """Display welcome banner."""
    console.print(Panel(
        f"[bold cyan]Cadence[/bold cyan] {__version__}\n"
        "[dim]An interactive shell for deliberate practice.[/dim]\n\n"
        "Type [bold]help[/bold] for the list of commands, "
        "[bold]quit[/bold] or CTRL-D to exit.",
        border_style="cyan",
        padding=(1, 2),
    ))


def start_shell(settings: Settings, library: Optional[Path] = None) -> int:
    """Wire the shell together and run it. Returns the exit status."""
    try:
        scheduler = load_backend(settings.scheduler_backend)
    except (ImportError, AttributeError, TypeError, ValueError) as exc:
        console.print(f"[red]Cannot load scheduler backend:[/red] {exc}")
        return 1

    history_file = settings.history_file if settings.history_enabled else None
    try:
        reader = create_line_reader(history_file)
    except FatalIoError as exc:
        console.print(f"[red]{exc}[/red]")
        return 1

    mantra = MantraCounter(settings.mantra_interval_seconds)
    state = SessionState(mantra_source=mantra)
    repl = Repl(scheduler, reader, console=console, state=state)

    if settings.show_banner:
        show_banner()
    if settings.mantra_enabled:
        mantra.start()
    try:
        if library is not None:
            repl.process(f"open {shlex.quote(str(library))}")
        return repl.run()
    except FatalIoError as exc:
        logger.error(str(exc))
        return 1
    finally:
        mantra.stop()


@app.command()
def shell(
    library: Optional[Path] = typer.Option(
        None,
        "--library", "-l",
        help="Course library to open on startup",
    ),
    backend: Optional[str] = typer.Option(
        None,
        "--backend", "-b",
        help="Scheduler backend import path (package.module:attr)",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet", "-q",
        help="Do not print the startup banner",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Logging level for stderr (DEBUG, INFO, WARNING, ERROR)",
    ),
) -> None:
    """
    Start the interactive practice shell.

    Reads commands from the terminal (or piped standard input) until
    `quit` or end of input.
    """
    overrides = {}
    if backend:
        overrides["scheduler_backend"] = backend
    if quiet:
        overrides["show_banner"] = False
    if log_level:
        overrides["log_level"] = log_level.upper()
    try:
        settings = Settings(**overrides) if overrides else get_settings()
        configure_logging(settings.log_level, settings.log_file)
    except ValueError as exc:
        console.print(f"[red]Invalid configuration:[/red] {exc}")
        raise typer.Exit(1)

    status = start_shell(settings, library)
    if status:
        raise typer.Exit(status)


# =============================================================================
# Entry Point
# =============================================================================

def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
