"""
Errors raised while running a script, and how they are shown to the user.

Every user-facing failure carries both the message and the exit code the
process should end with, so callers never have to look in two places.
"""

from __future__ import annotations

from typing import Optional

from rich.console import Console
from rich.text import Text


class RuleError(ValueError):
    """An option rule or parser mode could not be understood."""


class ScriptError(Exception):
    """A failure that ends the invocation with a message and an exit code."""

    code = 1

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def __str__(self) -> str:
        return self.message


class InvalidArgumentError(ScriptError):
    """Flags left over after parsing, or flags in the wrong place."""


class UnknownSubcommandError(ScriptError):
    """The first argument did not name any declared subcommand."""

    def __init__(self, name: str):
        super().__init__(f"Unknown subcommand: {name}")
        self.name = name


class SubcommandLoadError(ScriptError):
    """A declared subcommand matched, but its target could not be loaded."""

    code = 2

    def __init__(self, name: str, cause: BaseException):
        super().__init__(f"Unable to load subcommand {name}: {cause}")
        self.name = name
        self.cause = cause


def stderr_console() -> Console:
    # Built per call: the console must follow whatever sys.stderr is right now.
    return Console(stderr=True, highlight=False, soft_wrap=True)


def report(error: BaseException | str, console: Optional[Console] = None) -> None:
    """
    Write an error message to standard error.

    Args:
        error: The exception (or plain message) to show.
        console: Optional console to write to, mostly for tests.
    """
    console = console or stderr_console()
    message = str(error)
    style = "bold red" if console.is_terminal else ""
    console.print(Text(message, style=style))
