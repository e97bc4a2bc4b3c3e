"""
Shell completion.

The shell runs the script with `COMP_LINE` (the command line typed so far) and
`COMP_POINT` (the cursor offset) set, and reads one candidate per line from
standard output. An app opts in with::

    class Script(App):
        complete_reply = complete_reply

Nested subcommands answer for themselves: the matched subcommand name is cut
out of the line and the subcommand is invoked with the rewritten request.
"""

from __future__ import annotations

import logging
import os
import re
import sys
from typing import Mapping, NamedTuple, Optional

from scriptapp import state
from scriptapp.subcommands import declared_subcommands, is_word, load

log = logging.getLogger(__name__)


class CompletionRequest(NamedTuple):
    line: str
    point: int

    @classmethod
    def from_environ(
        cls, environ: Optional[Mapping[str, str]] = None
    ) -> Optional["CompletionRequest"]:
        """Read the request the shell passed, or None when not completing."""
        environ = os.environ if environ is None else environ
        if "COMP_POINT" not in environ:
            return None
        line = environ.get("COMP_LINE", "")
        try:
            point = int(environ["COMP_POINT"])
        except ValueError:
            point = len(line)
        return cls(line, point)

    def current_word(self) -> str:
        match = re.search(r"(\S+)$", self.line[: self.point])
        return match.group(1) if match else ""

    def without(self, name: str) -> "CompletionRequest":
        """The request as the subcommand `name` should see it."""
        match = re.search(rf"\s+{re.escape(name)}\s+", self.line)
        if not match:
            return CompletionRequest(self.line, len(self.line))
        line = self.line[: match.start()] + " " + self.line[match.end() :]
        return CompletionRequest(line, self.point + 1 - len(match.group(0)))


def complete_reply(app) -> Optional[int]:
    """
    Print the completion candidates for the current request.

    Returns:
        None when the script is not being completed, otherwise 0.
    """
    request = app.completion
    if request is None:
        return None

    subcommands = declared_subcommands(app)
    _, *argv = request.line.split() or [""]

    if argv and is_word(argv[0]):
        for subcommand in subcommands:
            if subcommand.name != argv[0]:
                continue
            nested = request.without(subcommand.name)
            log.debug("Completing inside %s: %r", subcommand.name, nested)
            frame = state.Frame(
                depth=app.depth + 1, subcommand=subcommand, completion=nested
            )
            with state.entering(frame):
                entry = load(app, subcommand, argv[1:])
                entry([])
            return 0

    word = request.current_word()
    for subcommand in subcommands:
        if subcommand.name.startswith(word):
            print(subcommand.name)
    for rule in app.rules:
        if rule.display_name.startswith(word):
            print(rule.display_name)
    return 0


def generate_completion_script(
    script_path: Optional[str] = None, shell: Optional[str] = None
) -> str:
    """
    Return the shell code that registers completion for a script.

    Args:
        script_path: The script to complete. Defaults to the running script.
        shell: "bash" or "zsh". Detected from `$SHELL` when omitted.
    """
    script_path = os.path.abspath(script_path or sys.argv[0])
    script_name = os.path.basename(script_path)
    if shell is None:
        shell = "zsh" if re.search(r"\bzsh\b", os.environ.get("SHELL") or "bash") else "bash"

    if shell == "zsh":
        function = "_" + re.sub(r"\W", "_", script_name)
        return (
            f"{function}() {{\n"
            f'  read -l; local l="$REPLY";\n'
            f'  read -ln; local p="$REPLY";\n'
            f'  reply=($(COMP_LINE="$l" COMP_POINT="$p" COMP_SHELL="zsh" {script_path}));\n'
            f"}};\n"
            f"\n"
            f"compctl -f -K {function} {script_name};\n"
        )
    return f"complete -o default -C {script_path} {script_name};\n"
