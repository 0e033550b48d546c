"""
Error taxonomy of the shell.

- ParseError: the line could not be turned into a command
- DispatchError: the command was valid but could not be carried out
- FatalIoError: the terminal itself failed; the loop stops

Parse and dispatch errors are recoverable: the loop prints them and prompts
again.
"""

from __future__ import annotations

from typing import Optional


class ShellError(Exception):
    """Base class for errors shown to the user."""


class ParseError(ShellError):
    """Raised when an input line is not a valid command."""

    def __init__(self, message: str, usage: str = ""):
        super().__init__(message)
        self.message = message
        self.usage = usage


class DispatchError(ShellError):
    """Raised when a parsed command cannot be executed."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class NoLibraryOpen(DispatchError):
    def __init__(self) -> None:
        super().__init__("no course library is open; use 'open <path>' first")


class NoCurrentExercise(DispatchError):
    def __init__(self) -> None:
        super().__init__("there is no current exercise; use 'next' to get one")


class InvalidScore(DispatchError):
    def __init__(self, value: int, low: int, high: int):
        super().__init__(f"score must be between {low} and {high}, got {value}")
        self.value = value


class LibraryOpenFailed(DispatchError):
    def __init__(self, path: str, cause: BaseException):
        super().__init__(f"cannot open course library at {path}: {cause}", cause)
        self.path = path


class SchedulerRejected(DispatchError):
    def __init__(self, cause: BaseException):
        super().__init__(f"the scheduler rejected the request: {cause}", cause)


class NotFound(DispatchError):
    """An identifier named by the user does not exist or has the wrong type."""


class FatalIoError(ShellError):
    """Raised when the terminal cannot be read from or written to."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause
