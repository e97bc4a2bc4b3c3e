from __future__ import annotations

from scriptapp.app import App
from scriptapp.capture import capture
from scriptapp.complete import complete_reply, generate_completion_script
from scriptapp.core import Runner, run
from scriptapp.errors import (
    InvalidArgumentError,
    RuleError,
    ScriptError,
    SubcommandLoadError,
    UnknownSubcommandError,
)
from scriptapp.subcommands import Subcommand, load_target
from scriptapp.usage import extract_usage, full_usage, print_usage

__version__ = "0.1.0"

# Loading a script is loading it as a subcommand target.
load = load_target

__all__ = [
    "App",
    "Runner",
    "run",
    "load",
    "capture",
    "complete_reply",
    "generate_completion_script",
    "extract_usage",
    "full_usage",
    "print_usage",
    "Subcommand",
    "ScriptError",
    "InvalidArgumentError",
    "UnknownSubcommandError",
    "SubcommandLoadError",
    "RuleError",
]
