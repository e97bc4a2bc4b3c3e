"""
Option rules and their translation to `argparse`.

Rules are written the way Getopt::Long users write them::

    "h|help"                 boolean flag, stored under "h"
    "v+"                     counter
    "name=s # Your name"     required string value, with a description
    "n=i", "ratio=f"         required int / float value
    "color:s"                optional value
    "o=s@"                   list, one item per occurrence
    "define=s%"              mapping built from key=value items
    "verbose!"               --verbose / --no-verbose

`argparse` does the actual parsing; this module decides which tokens it gets
to see, so that the parser modes (require_order, pass_through, ...) behave the
way script authors expect.
"""

from __future__ import annotations

import argparse
import dataclasses
import re
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    List,
    Literal,
    NamedTuple,
    Optional,
    Sequence,
    Tuple,
)

from scriptapp.errors import RuleError, report

Kind = Literal["flag", "negatable", "counter", "value", "optional", "list", "mapping"]

_RULE_RE = re.compile(
    r"""
    ^(?P<names>[\w?][\w?-]*(?:\|[\w?][\w?-]*)*)
    (?P<type>!|\+|[=:][sif][@%]?)?
    (?:\s+\#?\s*(?P<description>.*?))?
    \s*$
    """,
    re.VERBOSE,
)

_VALUE_TYPES: Dict[str, Callable[[str], Any]] = {"s": str, "i": int, "f": float}
_METAVARS = {"s": "STRING", "i": "INT", "f": "NUMBER"}
_CONSTS = {"s": "", "i": 0, "f": 0.0}
# Same shape argparse treats as a negative number rather than an option.
_NEGATIVE_NUMBER_RE = re.compile(r"^-\d+$|^-\d*\.\d+$")

DEFAULT_MODES: Tuple[str, ...] = (
    "bundling",
    "no_auto_abbrev",
    "no_ignore_case",
    "pass_through",
    "require_order",
)


@dataclasses.dataclass(frozen=True)
class OptionRule:
    """A single declared option."""

    names: Tuple[str, ...]
    kind: Kind = "flag"
    value_type: str = "s"
    description: str = ""
    spec: str = ""

    @property
    def key(self) -> str:
        """Where the parsed value is stored in the context."""
        return self.names[0]

    @property
    def takes_value(self) -> bool:
        return self.kind in ("value", "optional", "list", "mapping")

    @property
    def option_strings(self) -> List[str]:
        return [_spell(name) for name in self.names]

    @property
    def display_name(self) -> str:
        """The longest spelling, e.g. `--version` rather than `-v`."""
        return _spell(max(self.names, key=len))


class ParseResult(NamedTuple):
    valid: bool
    values: Dict[str, Any]
    argv: List[str]


@dataclasses.dataclass
class ParserConfig:
    """
    Parser modes. The defaults are those of Getopt::Long before any
    configuration; `DEFAULT_MODES` is what scripts get unless they override
    the `configure` hook.
    """

    auto_abbrev: bool = True
    ignore_case: bool = True
    pass_through: bool = False
    require_order: bool = False

    @classmethod
    def from_modes(cls, modes: Iterable[str]) -> "ParserConfig":
        config = cls()
        for mode in modes:
            name, enabled = mode, True
            if name == "permute":
                name, enabled = "require_order", False
            elif name.startswith("no_"):
                name, enabled = name[3:], False

            if name == "bundling":
                if not enabled:
                    raise RuleError("Option bundling cannot be disabled")
                continue
            if name not in ("auto_abbrev", "ignore_case", "pass_through", "require_order"):
                raise RuleError(f"Unknown parser mode: {mode}")
            setattr(config, name, enabled)
        return config


class ParseFailure(Exception):
    """Raised instead of argparse printing usage and exiting."""


class _Parser(argparse.ArgumentParser):
    def error(self, message: str):  # type: ignore[override]
        raise ParseFailure(message)


class _MappingAction(argparse.Action):
    """Collect `key=value` items into a dict."""

    def __init__(self, option_strings, dest, value_type=str, **kwargs):
        self.value_type = value_type
        super().__init__(option_strings, dest, **kwargs)

    def __call__(self, parser, namespace, values, option_string=None):
        key, sep, value = values.partition("=")
        if not sep:
            raise argparse.ArgumentError(self, f"expected key=value, got {values!r}")
        try:
            converted = self.value_type(value)
        except ValueError:
            raise argparse.ArgumentError(self, f"invalid value: {value!r}")
        items = dict(getattr(namespace, self.dest, None) or {})
        items[key] = converted
        setattr(namespace, self.dest, items)


def _spell(name: str) -> str:
    return f"-{name}" if len(name) == 1 else f"--{name}"


def _looks_like_option(token: str) -> bool:
    return token.startswith("-") and token != "-"


def parse_rule(spec: str) -> OptionRule:
    """
    Parse a single rule string.

    Raises:
        RuleError: If the rule does not follow the rule syntax.
    """
    match = _RULE_RE.match(spec.strip())
    if not match:
        raise RuleError(f"Invalid option rule: {spec!r}")

    names = tuple(match.group("names").split("|"))
    type_spec = match.group("type") or ""
    description = match.group("description") or ""

    kind: Kind = "flag"
    value_type = "s"
    if type_spec == "!":
        kind = "negatable"
    elif type_spec == "+":
        kind = "counter"
    elif type_spec:
        value_type = type_spec[1]
        if type_spec.endswith("@"):
            kind = "list"
        elif type_spec.endswith("%"):
            kind = "mapping"
        elif type_spec[0] == ":":
            kind = "optional"
        else:
            kind = "value"

    return OptionRule(names, kind, value_type, description, spec)


def parse_rules(specs: Iterable[str | OptionRule]) -> Tuple[OptionRule, ...]:
    return tuple(
        spec if isinstance(spec, OptionRule) else parse_rule(spec) for spec in specs
    )


def _argparse_kwargs(rule: OptionRule) -> Dict[str, Any]:
    kwargs: Dict[str, Any] = {"default": argparse.SUPPRESS, "help": rule.description or None}
    value_type = _VALUE_TYPES[rule.value_type]
    metavar = _METAVARS[rule.value_type]

    if rule.kind == "flag":
        kwargs["action"] = "store_true"
    elif rule.kind == "negatable":
        kwargs["action"] = argparse.BooleanOptionalAction
    elif rule.kind == "counter":
        kwargs["action"] = "count"
    elif rule.kind == "value":
        kwargs.update(type=value_type, metavar=metavar)
    elif rule.kind == "optional":
        kwargs.update(
            type=value_type, metavar=metavar, nargs="?", const=_CONSTS[rule.value_type]
        )
    elif rule.kind == "list":
        kwargs.update(action="append", type=value_type, metavar=metavar)
    elif rule.kind == "mapping":
        kwargs.update(action=_MappingAction, value_type=value_type, metavar=f"KEY={metavar}")
    return kwargs


def build_parser(
    rules: Sequence[OptionRule],
    config: Optional[ParserConfig] = None,
    *,
    prog: Optional[str] = None,
    description: Optional[str] = None,
    epilog: Optional[str] = None,
) -> argparse.ArgumentParser:
    """
    Build an `ArgumentParser` for the rules.

    Each rule's value lands in the namespace under `rule_<index>`, so aliases
    with dashes or clashing spellings never collide.
    """
    config = config or ParserConfig.from_modes(DEFAULT_MODES)
    parser = _Parser(
        prog=prog,
        description=description,
        epilog=epilog,
        add_help=False,
        allow_abbrev=config.auto_abbrev,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    for index, rule in enumerate(rules):
        option_strings = rule.option_strings
        if config.ignore_case:
            option_strings = [_fold(option) for option in option_strings]
        parser.add_argument(*option_strings, dest=f"rule_{index}", **_argparse_kwargs(rule))
    return parser


def _fold(token: str) -> str:
    """Lowercase the name part of a long option, leaving any inline value alone."""
    if not token.startswith("--") or token == "--":
        return token
    name, sep, value = token.partition("=")
    return name.lower() + sep + value


class _Matcher:
    """Finds the rule a command line token refers to, honouring the parser modes."""

    def __init__(self, rules: Sequence[OptionRule], config: ParserConfig):
        self.config = config
        self.short: Dict[str, OptionRule] = {}
        self.long: Dict[str, OptionRule] = {}
        for rule in rules:
            for name in rule.names:
                if len(name) == 1:
                    self.short[name] = rule
                else:
                    self.long[name.lower() if config.ignore_case else name] = rule
                    if rule.kind == "negatable":
                        negated = f"no-{name}"
                        self.long[negated.lower() if config.ignore_case else negated] = rule

    def _long(self, name: str) -> Optional[OptionRule]:
        if self.config.ignore_case:
            name = name.lower()
        if name in self.long:
            return self.long[name]
        if self.config.auto_abbrev:
            candidates = {id(rule): rule for key, rule in self.long.items() if key.startswith(name)}
            if len(candidates) == 1:
                return next(iter(candidates.values()))
        return None

    def match(self, token: str) -> Tuple[Optional[OptionRule], bool]:
        """
        Return the rule that consumes a value for this token (or the last flag
        in a bundle), and whether the value is already part of the token.
        """
        if token.startswith("--"):
            name, sep, _ = token[2:].partition("=")
            return self._long(name), bool(sep)

        body = token[1:]
        rule = None
        for position, char in enumerate(body):
            rule = self.short.get(char)
            if rule is None:
                return None, False
            if rule.takes_value:
                return rule, position < len(body) - 1
        return rule, False


def _option_boundary(argv: Sequence[str], matcher: _Matcher) -> int:
    """Index of the first token that ends option processing in require_order mode."""
    index = 0
    while index < len(argv):
        token = argv[index]
        if token == "--" or not _looks_like_option(token):
            return index
        rule, inline = matcher.match(token)
        if rule is None:
            if matcher.config.pass_through:
                return index
        elif rule.takes_value and not inline:
            following = argv[index + 1] if index + 1 < len(argv) else None
            if following is not None and _is_value_for(rule, following):
                index += 1
        index += 1
    return index


def _is_value_for(rule: OptionRule, token: str) -> bool:
    if rule.value_type in ("i", "f") and _NEGATIVE_NUMBER_RE.match(token):
        return True
    return not _looks_like_option(token)


def _restore(extras: Sequence[str], seen: Sequence[str], original: Sequence[str]) -> List[str]:
    """Map tokens argparse left over back to their original spelling."""
    restored = []
    cursor = 0
    for token in extras:
        while cursor < len(seen) and seen[cursor] != token:
            cursor += 1
        if cursor < len(seen):
            restored.append(original[cursor])
            cursor += 1
        else:
            restored.append(token)
    return restored


def parse_argv(
    rules: Sequence[OptionRule], argv: Sequence[str], config: ParserConfig
) -> ParseResult:
    """
    Parse `argv` against `rules`.

    Args:
        rules: The declared option rules.
        argv: Raw command line tokens. Not modified.
        config: Parser modes.

    Returns:
        A `ParseResult` holding whether parsing succeeded, the values of the
        options that were given (keyed by each rule's first name) and the
        tokens that were not consumed, in their original order.
    """
    argv = list(argv)
    matcher = _Matcher(rules, config)

    if config.require_order:
        boundary = _option_boundary(argv, matcher)
        tokens, rest = argv[:boundary], argv[boundary:]
        if rest[:1] == ["--"] and not config.pass_through:
            rest = rest[1:]
    elif "--" in argv:
        boundary = argv.index("--")
        tokens = argv[:boundary]
        rest = argv[boundary:] if config.pass_through else argv[boundary + 1 :]
    else:
        tokens, rest = argv, []

    seen = [_fold(token) for token in tokens] if config.ignore_case else tokens
    parser = build_parser(rules, config)
    try:
        namespace, extras = parser.parse_known_args(seen)
    except ParseFailure as failure:
        report(failure)
        return ParseResult(False, {}, argv)

    extras = _restore(extras, seen, tokens)
    leftover = extras + rest
    valid = True
    if not config.pass_through:
        for token in extras:
            if _looks_like_option(token):
                report(f"Unknown option: {token.lstrip('-')}")
                valid = False

    values = {}
    for index, rule in enumerate(rules):
        dest = f"rule_{index}"
        if hasattr(namespace, dest):
            values[rule.key] = getattr(namespace, dest)
    return ParseResult(valid, values, leftover)
