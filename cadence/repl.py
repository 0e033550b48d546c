"""
Read-eval-print loop of the shell.

The loop moves between three phases:

    PROMPTING   -> read one line
    PROCESSING  -> parse, dispatch, render, print
    TERMINATING -> flush the staged score and exit

End of input and `quit` terminate with status 0. CTRL-C only discards the
line being typed. Parse and dispatch errors are printed and the loop
continues; a terminal that cannot be read or written raises FatalIoError.
"""

from __future__ import annotations

import sys
from enum import Enum
from pathlib import Path
from typing import Optional, Protocol, TextIO

from loguru import logger
from prompt_toolkit import PromptSession
from prompt_toolkit.history import FileHistory, InMemoryHistory
from prompt_toolkit.styles import Style
from rich.console import Console

from . import commands
from .dispatcher import dispatch, flush_staged_score
from .errors import DispatchError, FatalIoError, ParseError
from .grammar import parse
from .renderer import render, render_error
from .scheduler import SchedulerBackend
from .session import SessionState

PROMPT = "cadence >> "
INTERRUPT_HINT = "Press CTRL-D or use the quit command to exit"

PROMPT_STYLE = Style.from_dict({
    "prompt": "ansired bold",
})


class Phase(Enum):
    PROMPTING = "prompting"
    PROCESSING = "processing"
    TERMINATING = "terminating"


# =============================================================================
# Line readers
# =============================================================================


class LineReader(Protocol):
    def read_line(self, prompt: str) -> str:
        """Return one line. Raises EOFError at end of input and
        KeyboardInterrupt when the user cancels the line."""
        ...


class PromptSessionReader:
    """Interactive reader with line editing and persistent history."""

    def __init__(self, history_file: Optional[Path] = None):
        history = FileHistory(str(history_file)) if history_file else InMemoryHistory()
        self.session: PromptSession = PromptSession(history=history, style=PROMPT_STYLE)

    def read_line(self, prompt: str) -> str:
        return self.session.prompt([("class:prompt", prompt)])


class StreamReader:
    """Reads lines from a non-interactive stream such as piped stdin."""

    def __init__(self, stream: TextIO):
        self.stream = stream

    def read_line(self, prompt: str) -> str:
        line = self.stream.readline()
        if not line:
            raise EOFError
        return line.rstrip("\r\n")


def create_line_reader(
    history_file: Optional[Path] = None,
    stdin: Optional[TextIO] = None,
) -> LineReader:
    """Pick a reader for stdin. Raises FatalIoError if none can be created."""
    stream = stdin or sys.stdin
    if stream is None:
        raise FatalIoError("standard input is not available")
    try:
        interactive = stream.isatty()
    except (OSError, ValueError) as exc:
        raise FatalIoError(f"cannot inspect standard input: {exc}", exc) from exc

    if not interactive:
        return StreamReader(stream)
    try:
        return PromptSessionReader(history_file)
    except Exception as exc:
        raise FatalIoError(f"cannot initialize the terminal line reader: {exc}", exc) from exc


# =============================================================================
# Loop
# =============================================================================


class Repl:
    """One interactive run of the shell."""

    def __init__(
        self,
        scheduler: SchedulerBackend,
        reader: LineReader,
        console: Optional[Console] = None,
        state: Optional[SessionState] = None,
    ):
        self.scheduler = scheduler
        self.reader = reader
        self.console = console or Console()
        self.state = state or SessionState()
        self.phase = Phase.PROMPTING

    def _print(self, renderable) -> None:
        try:
            self.console.print(renderable)
        except OSError as exc:
            raise FatalIoError(f"cannot write to the terminal: {exc}", exc) from exc

    def process(self, line: str) -> Phase:
        """Handle one line and return the phase to continue with."""
        self.phase = Phase.PROCESSING
        try:
            command = parse(line)
            if command is None:
                return Phase.PROMPTING
            item = dispatch(command, self.state, self.scheduler)
        except (ParseError, DispatchError) as exc:
            logger.debug(f"{type(exc).__name__}: {exc}")
            self._print(render_error(exc))
            return Phase.PROMPTING

        self._print(render(item))
        if isinstance(command, commands.Quit):
            return Phase.TERMINATING
        return Phase.PROMPTING

    def _read(self) -> Optional[str]:
        try:
            return self.reader.read_line(PROMPT)
        except KeyboardInterrupt:
            self._print(INTERRUPT_HINT)
            return ""
        except EOFError:
            logger.debug("End of input")
            return None
        except OSError as exc:
            raise FatalIoError(f"cannot read from the terminal: {exc}", exc) from exc

    def run(self) -> int:
        """Run until `quit` or end of input. Returns the exit status."""
        self.phase = Phase.PROMPTING
        while self.phase is not Phase.TERMINATING:
            line = self._read()
            if line is None:
                self.phase = Phase.TERMINATING
                break
            self.phase = self.process(line)
        self.shutdown()
        return 0

    def shutdown(self) -> None:
        flush_staged_score(self.state)
        try:
            self.console.file.flush()
        except OSError as exc:
            raise FatalIoError(f"cannot flush the terminal: {exc}", exc) from exc
