"""
scriptapp: run, complete and document scriptapp scripts.

    python -m scriptapp path/to/script.py --name superwoman
    python -m scriptapp --completion-script path/to/script.py
    python -m scriptapp --usage md path/to/script.py
"""

from __future__ import annotations

import argparse
import sys

from scriptapp import __version__
from scriptapp.complete import generate_completion_script
from scriptapp.core import Runner
from scriptapp.errors import report
from scriptapp.subcommands import load_target
from scriptapp.usage import full_usage, print_usage


def main() -> None:
    """Console script entry point for scriptapp."""
    parser = argparse.ArgumentParser(
        prog="scriptapp",
        description="Load a scriptapp script in-process and run it with the given arguments.",
    )
    parser.add_argument("script", help="Path or module name of the script to run.")
    parser.add_argument(
        "args",
        nargs=argparse.REMAINDER,
        help="Arguments passed to the script.",
    )
    parser.add_argument(
        "--completion-script",
        action="store_true",
        help="Print the shell code that enables completion for the script.",
    )
    parser.add_argument(
        "--usage",
        choices=["text", "md"],
        help="Print help for the script and all of its subcommands.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )

    args = parser.parse_args()

    if args.completion_script:
        print(generate_completion_script(args.script), end="")
        sys.exit(0)

    try:
        entry = load_target(args.script)
    except Exception as e:
        report(f"Unable to load {args.script}: {e}")
        sys.exit(2)

    if args.usage:
        if not isinstance(entry, Runner):
            report(f"{args.script} is not a scriptapp script")
            sys.exit(1)
        print_usage(full_usage(entry, prog=args.script, fmt=args.usage), fmt=args.usage)
        sys.exit(0)

    if isinstance(entry, Runner):
        entry.main(args.args)
    sys.exit(entry(args.args))


if __name__ == "__main__":
    main()
