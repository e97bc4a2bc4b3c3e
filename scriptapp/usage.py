"""
Help text for scripts and for whole subcommand trees.

The help for one script comes from `argparse`: its options and their
descriptions, the handler's docstring as the description, and the declared
subcommands as the epilog.
"""

from __future__ import annotations

import inspect
import os
import sys
from typing import Callable, Iterable, List, Literal, Mapping, NamedTuple, Optional, Tuple

import rich.console
import rich.markdown

from scriptapp.app import App, Invocation
from scriptapp.core import Runner
from scriptapp.errors import report
from scriptapp.rules import build_parser
from scriptapp.subcommands import Subcommand, declared_subcommands, load

# Type definitions
FormatType = Literal["text", "md"]


class _UsageNode(NamedTuple):
    """A script in the subcommand tree."""

    path: Tuple[str, ...]
    runner: Runner


def _description(app: App) -> str:
    runner = app.invocation.runner
    doc = inspect.getdoc(runner.handler) if runner is not None else None
    if not doc and "__doc__" in type(app).__dict__:
        doc = inspect.getdoc(type(app))
    return doc or ""


def _epilog(subcommands: List[Subcommand]) -> Optional[str]:
    if not subcommands:
        return None
    width = max(len(subcommand.name) for subcommand in subcommands) + 2
    lines = ["subcommands:"]
    for subcommand in subcommands:
        lines.append(f"  {subcommand.name.ljust(width)}{subcommand.description}".rstrip())
    return "\n".join(lines)


def _prog(app: App, prog: Optional[str] = None) -> str:
    prog = prog or os.path.basename(sys.argv[0]) or "script"
    if app.subcommand is not None:
        prog = f"{prog} {app.subcommand.name}"
    return prog


def extract_usage(app: App, prog: Optional[str] = None) -> str:
    """
    Render the help text for the script `app` belongs to.

    Args:
        app: The context passed to the handler.
        prog: Override the program name shown in the usage line.
    """
    parser = build_parser(
        app.rules,
        prog=_prog(app, prog),
        description=_description(app),
        epilog=_epilog(declared_subcommands(app)),
    )
    return parser.format_help()


def _usage_app(runner: Runner, path: Tuple[str, ...]) -> App:
    app = runner.app_class()
    subcommand = Subcommand(path[-1], runner) if path else None
    app.invocation = Invocation(runner, len(path), subcommand)
    return app


def walk_subcommands(runner: Runner) -> Iterable[_UsageNode]:
    """
    Walk a runner and every subcommand below it, breadth first.

    Only targets that load to a `Runner` are followed; targets that fail to
    load are reported and skipped.
    """
    q: List[_UsageNode] = [_UsageNode(path=(), runner=runner)]
    visited = {id(runner)}

    while q:
        node = q.pop(0)
        yield node

        app = _usage_app(node.runner, node.path)
        for subcommand in declared_subcommands(app):
            try:
                child = load(app, subcommand, [])
            except Exception as e:
                report(f"Warning: {e}")
                continue
            if not isinstance(child, Runner) or id(child) in visited:
                continue
            visited.add(id(child))
            q.append(_UsageNode(path=node.path + (subcommand.name,), runner=child))


def _help_for(node: _UsageNode, prog: str) -> str:
    app = _usage_app(node.runner, node.path)
    return extract_usage(app, prog=" ".join((prog,) + node.path[:-1])).strip()


def _render_text(nodes: List[_UsageNode], prog: str) -> str:
    """Render the collected help nodes as plain text."""
    output: List[str] = []
    for i, node in enumerate(nodes):
        path_str = " ".join((prog,) + node.path)
        title = f"$ {path_str} --help"
        output.append(title)
        output.append("=" * len(title))
        output.append(_help_for(node, prog))
        if i < len(nodes) - 1:
            output.append("\n" + "-" * 78 + "\n")
    return "\n".join(output)


def _render_md(nodes: List[_UsageNode], prog: str) -> str:
    """Render the collected help nodes as Markdown."""
    output: List[str] = [f"# Help for `{prog}`\n"]
    for node in nodes:
        path_str = " ".join((prog,) + node.path)
        level = len(node.path) + 2  # ## for top-level, ### for next, etc.
        heading = "#" * level
        output.append(f"{heading} `{path_str}`\n")
        output.append("```text")
        output.append(_help_for(node, prog))
        output.append("```\n")
    return "\n".join(output)


def full_usage(runner: Runner, prog: Optional[str] = None, fmt: FormatType = "text") -> str:
    """
    Produce one help document for a script and all of its subcommands.

    Args:
        runner: The top-level `Runner`.
        prog: Program name shown at the root (defaults to the running script).
        fmt: The output format ("text" or "md").
    """
    renderers: Mapping[FormatType, Callable] = {
        "text": _render_text,
        "md": _render_md,
    }
    if fmt not in renderers:
        raise ValueError(f"Invalid format '{fmt}'. Must be one of {list(renderers.keys())}")

    program_name = prog or os.path.basename(sys.argv[0]) or "script"
    nodes = list(walk_subcommands(runner))
    return renderers[fmt](nodes, program_name)


def print_usage(doc: str, *, fmt: FormatType = "text", use_rich: Optional[bool] = None) -> None:
    """
    Print a help document.

    Args:
        doc: The document, as returned by `extract_usage` or `full_usage`.
        fmt: The format of the document.
        use_rich: Render Markdown through rich. Auto-detected from the TTY
            when None.
    """
    if use_rich is None:
        use_rich = sys.stdout.isatty()

    if fmt == "md" and use_rich:
        rich.console.Console().print(rich.markdown.Markdown(doc))
    else:
        print(doc)
