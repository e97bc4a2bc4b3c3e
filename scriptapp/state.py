"""
Per-invocation state shared between a parent script and the scripts it loads.

A parent cannot pass arguments to a loaded script other than the argument
vector, so the depth, the matched subcommand and any completion request travel
in context variables. Each thread and each asyncio task sees its own copy.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any, Iterator, List, NamedTuple, Optional

if TYPE_CHECKING:
    from scriptapp.complete import CompletionRequest
    from scriptapp.subcommands import Subcommand


class Frame(NamedTuple):
    """Where an invocation sits in the subcommand tree."""

    depth: int = 0
    subcommand: Optional["Subcommand"] = None
    completion: Optional["CompletionRequest"] = None


# Frame handed from a dispatching parent to the next invocation it calls.
_pending: ContextVar[Optional[Frame]] = ContextVar("scriptapp_pending", default=None)
# Frame of the invocation currently running.
_active: ContextVar[Optional[Frame]] = ContextVar("scriptapp_active", default=None)
# Runners declared while a loader executes a script.
_declared: ContextVar[Optional[List[Any]]] = ContextVar(
    "scriptapp_declared", default=None
)


@contextmanager
def entering(frame: Frame) -> Iterator[Frame]:
    """Make `frame` the frame of the next invocation started in this block."""
    token = _pending.set(frame)
    try:
        yield frame
    finally:
        _pending.reset(token)


def take_pending() -> Frame:
    return _pending.get() or Frame()


@contextmanager
def activating(frame: Frame) -> Iterator[Frame]:
    """Mark an invocation as running; nothing pending leaks into its callees."""
    active_token = _active.set(frame)
    pending_token = _pending.set(None)
    try:
        yield frame
    finally:
        _pending.reset(pending_token)
        _active.reset(active_token)


def active() -> Optional[Frame]:
    return _active.get()


@contextmanager
def capturing() -> Iterator[List[Any]]:
    """Collect every runner declared by `run()` inside this block."""
    declared: List[Any] = []
    token = _declared.set(declared)
    try:
        yield declared
    finally:
        _declared.reset(token)


def declare(runner: Any) -> None:
    declared = _declared.get()
    if declared is not None:
        declared.append(runner)
