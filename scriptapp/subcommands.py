"""
Subcommand resolution: match the first argument against the declared
subcommands, load the matching script in-process and hand it the rest of the
command line.
"""

from __future__ import annotations

import importlib
import logging
import os
import runpy
from typing import Any, Callable, List, NamedTuple, Sequence

from scriptapp import state
from scriptapp.app import looks_like_number
from scriptapp.errors import ScriptError, SubcommandLoadError, UnknownSubcommandError
from scriptapp.hooks import call_hook, find_hook

log = logging.getLogger(__name__)

NOT_HANDLED = object()


class Subcommand(NamedTuple):
    """A declared subcommand: what to type, what to load, and what it does."""

    name: str
    target: Any
    description: str = ""

    @classmethod
    def coerce(cls, item: Sequence[Any]) -> "Subcommand":
        if isinstance(item, cls):
            return item
        return cls(*item)


def declared_subcommands(app) -> List[Subcommand]:
    return [Subcommand.coerce(item) for item in call_hook(app, "subcommands") or []]


def is_word(token: str) -> bool:
    """Subcommand names start with a word character, never with a dash."""
    return bool(token) and (token[0].isalnum() or token[0] == "_")


def load_target(target: Any, name: str | None = None) -> Callable[..., Any]:
    """
    Turn a subcommand target into something callable with an argument vector.

    Args:
        target: A callable (returned as is), a path to a script, a
            `package.module:attribute` reference, or a module name.
        name: Used to name the module a script is executed as.

    Returns:
        The callable. For executed scripts and modules this is the last
        runner their `run()` call declared.

    Raises:
        LookupError: If an executed script never called `run()`.
    """
    if callable(target):
        return target

    reference = os.fspath(target)
    run_name = f"scriptapp.loaded.{name or os.path.splitext(os.path.basename(reference))[0]}"
    with state.capturing() as declared:
        if reference.endswith(".py") or os.path.isfile(reference):
            log.debug("Executing script %s as %s", reference, run_name)
            runpy.run_path(reference, run_name=run_name)
        elif ":" in reference:
            module_name, _, attribute = reference.partition(":")
            module = importlib.import_module(module_name)
            return getattr(module, attribute)
        else:
            log.debug("Executing module %s as %s", reference, run_name)
            runpy.run_module(reference, run_name=run_name)

    if not declared:
        raise LookupError(f"{reference} does not declare an entry point with run()")
    return declared[-1]


def load(app, subcommand: Subcommand, argv: List[str]) -> Callable[..., Any]:
    """Load a subcommand through the app's `load_subcommand` hook."""
    hook = find_hook(app, "load_subcommand")
    try:
        return hook(subcommand, argv)
    except ScriptError:
        raise
    except Exception as e:
        raise SubcommandLoadError(subcommand.name, e) from e


def dispatch(app, subcommand: Subcommand, argv: List[str]) -> Any:
    """Remove the subcommand name from `argv` and run the subcommand with the rest."""
    del argv[0]
    frame = state.Frame(depth=app.depth + 1, subcommand=subcommand)
    log.debug("Dispatching to subcommand %s at depth %d", subcommand.name, frame.depth)
    with state.entering(frame):
        entry = load(app, subcommand, argv)
        return entry(argv)


def resolve(app, argv: List[str]) -> Any:
    """
    Run the subcommand named by the first argument, if any.

    Returns:
        The subcommand's exit value, the exit value chosen by the app's
        `unknown_subcommand` hook, or `NOT_HANDLED` when the app should parse
        `argv` itself.

    Raises:
        UnknownSubcommandError: If the first argument is a word that names no
            subcommand and the app does not handle unknown subcommands.
        SubcommandLoadError: If the matching subcommand fails to load.
    """
    subcommands = declared_subcommands(app)
    if not subcommands:
        return NOT_HANDLED

    word = argv[0] if argv and is_word(argv[0]) else None
    if word is not None:
        for subcommand in subcommands:
            if subcommand.name == word:
                return dispatch(app, subcommand, argv)

    unknown = find_hook(app, "unknown_subcommand")
    if unknown is not None:
        exit_value = unknown(argv)
        return exit_value if looks_like_number(exit_value) else NOT_HANDLED
    if word is not None:
        raise UnknownSubcommandError(word)
    return NOT_HANDLED
