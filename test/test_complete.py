"""
Tests for shell completion.
"""

from pathlib import Path

import pytest

from scriptapp import App, Runner, capture, complete_reply, generate_completion_script, load
from scriptapp.complete import CompletionRequest

EXAMPLE = Path(__file__).parent.parent / "example"


def complete(monkeypatch, runner, line, point=None):
    monkeypatch.setenv("COMP_LINE", line)
    monkeypatch.setenv("COMP_POINT", str(len(line) if point is None else point))
    return capture(runner, [])


def test_request_from_environ():
    assert CompletionRequest.from_environ({}) is None
    assert CompletionRequest.from_environ({"COMP_LINE": "cmd x", "COMP_POINT": "3"}) == ("cmd x", 3)
    assert CompletionRequest.from_environ({"COMP_LINE": "cmd x", "COMP_POINT": "?"}) == ("cmd x", 5)


@pytest.mark.parametrize(
    "line, point, word",
    [
        ("cmd coff", 8, "coff"),
        ("cmd coff", 6, "co"),
        ("cmd ", 4, ""),
        ("cmd --ve", 8, "--ve"),
    ],
)
def test_current_word(line, point, word):
    assert CompletionRequest(line, point).current_word() == word


def test_request_without_subcommand():
    assert CompletionRequest("cmd coffee --ve", 15).without("coffee") == ("cmd --ve", 8)
    assert CompletionRequest("cmd  coffee  ", 13).without("coffee") == ("cmd ", 4)
    # Nothing after the name: the line stays, the cursor moves to the end
    assert CompletionRequest("cmd coffee", 7).without("coffee") == ("cmd coffee", 10)


def test_complete_subcommand_names(monkeypatch, shop):
    assert complete(monkeypatch, shop, "cmd coff") == ("coffee\n", "", 0)


def test_complete_everything(monkeypatch, shop):
    stdout, _, exit_value = complete(monkeypatch, shop, "cmd ")
    assert stdout.splitlines() == ["beans", "coffee", "invalid", "--help", "--version"]
    assert exit_value == 0


def test_complete_options(monkeypatch, shop):
    assert complete(monkeypatch, shop, "cmd --v") == ("--version\n", "", 0)


def test_complete_at_cursor(monkeypatch, shop):
    assert complete(monkeypatch, shop, "cmd be --help", point=6) == ("beans\n", "", 0)


def test_complete_recurses_into_subcommand(monkeypatch, shop):
    """The coffee subcommand answers with its own options."""
    assert complete(monkeypatch, shop, "cmd coffee --ve") == ("--version\n", "", 0)
    assert complete(monkeypatch, shop, "cmd coffee --s") == ("--size\n", "", 0)


def test_complete_recurses_twice(monkeypatch, shop):
    assert complete(monkeypatch, shop, "cmd beans arabica --da") == ("--dark\n", "", 0)
    assert complete(monkeypatch, shop, "cmd beans ") == ("arabica\nbroken\n--help\n", "", 0)


def test_complete_reports_load_errors(monkeypatch, shop):
    stdout, stderr, exit_value = complete(monkeypatch, shop, "cmd invalid --x")
    assert exit_value == 2
    assert "Unable to load subcommand invalid:" in stderr


def test_runner_complete(shop, capsys):
    assert shop.complete("cmd coffee --ve") == 0
    assert capsys.readouterr().out == "--version\n"


def test_without_completion_script_runs_normally(shop):
    assert capture(shop, ["-v"]) == ("main version=True extra=\n", "", 11)


def test_completion_is_opt_in(monkeypatch):
    """An app without complete_reply runs its handler as usual."""
    runner = Runner(["v|version"], lambda app, *extra: print("ran") or 3)
    assert complete(monkeypatch, runner, "cmd --v") == ("ran\n", "", 3)


def test_complete_reply_outside_completion():
    class Completing(App):
        complete_reply = complete_reply

    assert complete_reply(Completing()) is None


def test_bash_completion_script(monkeypatch):
    monkeypatch.setenv("SHELL", "/bin/bash")
    script = generate_completion_script("/usr/local/bin/my-app")
    assert script == "complete -o default -C /usr/local/bin/my-app my-app;\n"


def test_zsh_completion_script(monkeypatch):
    monkeypatch.setenv("SHELL", "/usr/bin/zsh")
    script = generate_completion_script("/usr/local/bin/my-app")
    assert script.startswith("_my_app() {\n")
    assert 'COMP_LINE="$l" COMP_POINT="$p" COMP_SHELL="zsh" /usr/local/bin/my-app' in script
    assert script.endswith("compctl -f -K _my_app my-app;\n")


def test_complete_does_not_run_handlers_that_cannot_complete(monkeypatch):
    calls = []

    class Completing(App):
        complete_reply = complete_reply

        def subcommands(self):
            return [("list", Runner(["long"], lambda app, *extra: calls.append(extra)), "List")]

    runner = Runner([], lambda app: 0, Completing)
    assert complete(monkeypatch, runner, "cmd list --l") == ("", "", 0)
    assert calls == []


def test_complete_example_registry(monkeypatch):
    shop = load(EXAMPLE / "__main__.py")
    assert complete(monkeypatch, shop, "example beans list") == ("", "", 0)
    assert complete(monkeypatch, shop, "example beans order --b") == ("--bags\n", "", 0)
