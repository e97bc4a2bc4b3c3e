"""
The invocation context handed to hooks and to the handler.
"""

from __future__ import annotations

import numbers
from typing import TYPE_CHECKING, Any, NamedTuple, Optional, Tuple

if TYPE_CHECKING:
    from scriptapp.complete import CompletionRequest
    from scriptapp.core import Runner
    from scriptapp.rules import OptionRule
    from scriptapp.subcommands import Subcommand


class Invocation(NamedTuple):
    """What the engine knows about the invocation an `App` belongs to."""

    runner: Optional["Runner"] = None
    depth: int = 0
    subcommand: Optional["Subcommand"] = None
    completion: Optional["CompletionRequest"] = None


class App(dict):
    """
    Parsed options, keyed by the first name of each rule.

    Subclass it to add hook methods (`configure`, `pre_process_argv`,
    `post_process_argv`, `post_process_exit_value`, `subcommands`,
    `load_subcommand`, `unknown_subcommand`, `complete_reply`). A fresh
    instance is created for every invocation.
    """

    invocation: Invocation = Invocation()

    @property
    def rules(self) -> Tuple["OptionRule", ...]:
        runner = self.invocation.runner
        return runner.rules if runner is not None else ()

    @property
    def depth(self) -> int:
        """How many subcommands deep this invocation runs (0 at the top)."""
        return self.invocation.depth

    @property
    def subcommand(self) -> Optional["Subcommand"]:
        """The subcommand that dispatched to this invocation, if any."""
        return self.invocation.subcommand

    @property
    def completion(self) -> Optional["CompletionRequest"]:
        return self.invocation.completion

    def __repr__(self) -> str:
        return f"{type(self).__name__}({dict.__repr__(self)})"


def looks_like_number(value: Any) -> bool:
    if isinstance(value, numbers.Real):
        return True
    if isinstance(value, str):
        try:
            float(value)
        except ValueError:
            return False
        return True
    return False


def normalize_exit_value(value: Any) -> int:
    """Non-numeric values become 0, numbers are truncated to an int."""
    if not looks_like_number(value):
        return 0
    try:
        return int(float(value)) if isinstance(value, str) else int(value)
    except (ValueError, OverflowError):
        return 0
