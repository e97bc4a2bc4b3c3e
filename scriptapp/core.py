"""
The run engine.

A script declares its options and its handler with `run()`::

    from scriptapp import App, run

    class Script(App):
        def subcommands(self):
            return [("beans", "beans.py", "Manage beans")]

    def main(app, *extra):
        print(app.get("name", "no name"))
        return 42

    run("h|help", "v+", "name=s", main)

Executed directly, the script runs and exits with the handler's return value.
Imported or loaded, `run()` returns a `Runner` that can be called with any
argument vector, as many times as needed.
"""

from __future__ import annotations

import inspect
import logging
import os
import sys
from typing import Any, Callable, List, NoReturn, Optional, Sequence, Type

from scriptapp import state
from scriptapp.app import App, Invocation, normalize_exit_value
from scriptapp.complete import CompletionRequest
from scriptapp.errors import ScriptError, report
from scriptapp.hooks import call_hook, find_hook
from scriptapp.rules import OptionRule, ParserConfig, parse_argv, parse_rules
from scriptapp.subcommands import NOT_HANDLED, resolve

log = logging.getLogger(__name__)

Handler = Callable[..., Any]


class Runner:
    """
    One declaration (rules, handler, context type) that can be invoked many
    times. Each call gets a fresh context and its own copy of `argv`.
    """

    def __init__(
        self,
        rules: Sequence[str | OptionRule],
        handler: Handler,
        app_class: Type[App] = App,
    ):
        self.rules = parse_rules(rules)
        self.handler = handler
        self.app_class = app_class

    def __repr__(self) -> str:
        name = getattr(self.handler, "__qualname__", repr(self.handler))
        return f"<Runner {self.app_class.__name__} -> {name}>"

    def __call__(self, argv: Optional[Sequence[str]] = None) -> int:
        """Run with `argv` (default: `sys.argv[1:]`) and return the exit value."""
        return self.invoke(argv, state.take_pending())

    def complete(self, line: str, point: Optional[int] = None) -> int:
        """Answer a completion request without going through the environment."""
        point = len(line) if point is None else point
        frame = state.Frame(completion=CompletionRequest(line, point))
        return self.invoke([], frame)

    def main(self, argv: Optional[Sequence[str]] = None) -> NoReturn:
        """Run and exit the process, reporting script errors on stderr."""
        try:
            exit_value = self(argv)
        except ScriptError as e:
            report(e)
            exit_value = e.code
        sys.exit(exit_value)

    def invoke(self, argv: Optional[Sequence[str]], frame: state.Frame) -> int:
        argv = list(sys.argv[1:] if argv is None else argv)
        completion = frame.completion or CompletionRequest.from_environ()
        app = self.app_class()
        app.invocation = Invocation(self, frame.depth, frame.subcommand, completion)

        with state.activating(frame._replace(completion=completion)):
            call_hook(app, "pre_process_argv", argv)
            exit_value = self._complete(app)
            if exit_value is None and frame.completion is not None:
                # A parent is completing into this script, which cannot answer
                log.debug("%s does not complete, nothing to offer", self)
                exit_value = 0
            elif exit_value is None:
                exit_value = resolve(app, argv)
            if exit_value is NOT_HANDLED:
                exit_value = self._handle(app, argv)
            exit_value = call_hook(app, "post_process_exit_value", exit_value)

        return normalize_exit_value(exit_value)

    def _complete(self, app: App) -> Any:
        complete_reply = find_hook(app, "complete_reply")
        return complete_reply() if complete_reply is not None else None

    def _handle(self, app: App, argv: List[str]) -> Any:
        config = ParserConfig.from_modes(call_hook(app, "configure") or ())
        result = parse_argv(self.rules, argv, config)
        app.update(result.values)
        argv[:] = result.argv

        call_hook(app, "post_process_argv", argv, {"valid": result.valid})
        if not result.valid:
            return 1
        log.debug("Calling handler with %d extra arguments", len(argv))
        return self.handler(app, *argv)


def _app_class_of(namespace: dict) -> Type[App]:
    """The App subclass defined in the calling module, or App itself."""
    module = namespace.get("__name__")
    candidates = [
        value
        for value in namespace.values()
        if inspect.isclass(value)
        and issubclass(value, App)
        and value is not App
        and value.__module__ == module
    ]
    if len(candidates) > 1:
        names = ", ".join(candidate.__name__ for candidate in candidates)
        raise TypeError(f"Several App classes in {module} ({names}); pass app_class=")
    return candidates[0] if candidates else App


def run(
    *rules_and_handler: Any,
    app_class: Optional[Type[App]] = None,
    argv: Optional[Sequence[str]] = None,
) -> Any:
    """
    Declare the options and the handler of a script.

    Args:
        *rules_and_handler: Option rules followed by the handler, which is
            called as `handler(app, *extra_args)`.
        app_class: The context type. Defaults to the App subclass defined in
            the calling module.
        argv: Run immediately against this argument vector.

    Returns:
        A reusable `Runner` when the script is imported or loaded, or the exit
        value when `argv` is given. A script executed as `__main__` exits the
        process instead of returning.
    """
    if not rules_and_handler or not callable(rules_and_handler[-1]):
        raise TypeError("run() needs a handler as its last argument")
    *rules, handler = rules_and_handler

    caller = sys._getframe(1).f_globals
    runner = Runner(rules, handler, app_class or _app_class_of(caller))
    top_level = caller.get("__name__") == "__main__" and state.active() is None

    if top_level:
        log.debug("Running %s as %s", runner, os.path.basename(sys.argv[0]))
        runner.main(argv)
    if argv is not None:
        return runner(argv)
    state.declare(runner)
    return runner
