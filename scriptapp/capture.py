"""
Run a script entry point with the standard streams captured, for tests.
"""

from __future__ import annotations

import io
from contextlib import redirect_stderr, redirect_stdout
from typing import Any, Callable, Optional, Sequence, Tuple

from rich.console import Console

from scriptapp.errors import ScriptError, report


def capture(
    entry: Callable[..., Any], argv: Optional[Sequence[str]] = None
) -> Tuple[str, str, int]:
    """
    Call `entry(argv)` and collect what it printed.

    Errors do not escape: a `ScriptError` becomes its message on stderr and
    its exit code, `SystemExit` its code, anything else its message and the
    OS error number when it has one (1 otherwise).

    Returns:
        `(stdout, stderr, exit_value)`.
    """
    stdout, stderr = io.StringIO(), io.StringIO()
    console = Console(file=stderr, color_system=None, highlight=False, soft_wrap=True)

    with redirect_stdout(stdout), redirect_stderr(stderr):
        try:
            exit_value = entry(list(argv or []))
        except ScriptError as e:
            report(e, console=console)
            exit_value = e.code
        except SystemExit as e:
            if e.code is None or isinstance(e.code, int):
                exit_value = e.code or 0
            else:
                report(str(e.code), console=console)
                exit_value = 1
        except Exception as e:
            report(e, console=console)
            exit_value = getattr(e, "errno", None) or 1

    return stdout.getvalue(), stderr.getvalue(), exit_value
