"""
Hook lookup.

An `App` subclass opts into a hook by defining the method; each hook is a
small protocol, and the dispatcher asks whether the context satisfies it.
Hooks without an override fall back to the defaults below; `subcommands`,
`unknown_subcommand` and `complete_reply` have no default and are skipped.
"""

from __future__ import annotations

import functools
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    runtime_checkable,
)

from scriptapp.errors import InvalidArgumentError
from scriptapp.rules import DEFAULT_MODES


@runtime_checkable
class Configures(Protocol):
    def configure(self) -> Iterable[str]: ...


@runtime_checkable
class PreProcessesArgv(Protocol):
    def pre_process_argv(self, argv: List[str]) -> Any: ...


@runtime_checkable
class PostProcessesArgv(Protocol):
    def post_process_argv(self, argv: List[str], state: Mapping[str, bool]) -> Any: ...


@runtime_checkable
class PostProcessesExitValue(Protocol):
    def post_process_exit_value(self, exit_value: Any) -> Any: ...


@runtime_checkable
class DeclaresSubcommands(Protocol):
    def subcommands(self) -> Optional[Iterable[Sequence[Any]]]: ...


@runtime_checkable
class LoadsSubcommands(Protocol):
    def load_subcommand(self, subcommand: Any, argv: List[str]) -> Callable[..., Any]: ...


@runtime_checkable
class HandlesUnknownSubcommand(Protocol):
    def unknown_subcommand(self, argv: List[str]) -> Any: ...


@runtime_checkable
class CompletesReply(Protocol):
    def complete_reply(self) -> Optional[int]: ...


def _configure(app) -> List[str]:
    return list(DEFAULT_MODES)


def _pre_process_argv(app, argv: List[str]) -> None:
    return None


def _post_process_argv(app, argv: List[str], state: Mapping[str, bool]) -> None:
    """Refuse a flag that pass-through parsing left in front of the operands."""
    if not state.get("valid"):
        return
    if argv and argv[0].startswith("-"):
        raise InvalidArgumentError(f"Invalid argument or argument order: {' '.join(argv)}")


def _post_process_exit_value(app, exit_value: Any) -> Any:
    return exit_value


def _load_subcommand(app, subcommand, argv: List[str]) -> Callable[..., Any]:
    from scriptapp.subcommands import load_target

    return load_target(subcommand.target, name=subcommand.name)


HOOKS: Dict[str, Tuple[type, Optional[Callable[..., Any]]]] = {
    "configure": (Configures, _configure),
    "pre_process_argv": (PreProcessesArgv, _pre_process_argv),
    "post_process_argv": (PostProcessesArgv, _post_process_argv),
    "post_process_exit_value": (PostProcessesExitValue, _post_process_exit_value),
    "subcommands": (DeclaresSubcommands, None),
    "load_subcommand": (LoadsSubcommands, _load_subcommand),
    "unknown_subcommand": (HandlesUnknownSubcommand, None),
    "complete_reply": (CompletesReply, None),
}


def find_hook(app, name: str) -> Optional[Callable[..., Any]]:
    """
    Return the most specific behaviour for a hook.

    Args:
        app: The invocation context.
        name: One of the names in `HOOKS`.

    Returns:
        The app's own method, the default bound to the app, or None when the
        hook has no default and the app does not define it.
    """
    capability, default = HOOKS[name]
    if isinstance(app, capability):
        method = getattr(app, name)
        if callable(method):
            return method
    if default is not None:
        return functools.partial(default, app)
    return None


def call_hook(app, name: str, *args: Any) -> Any:
    hook = find_hook(app, name)
    return hook(*args) if hook is not None else None
