"""
Tests for the run engine and the hook defaults.
"""

import runpy
import sys

import pytest

from scriptapp import App, Runner, ScriptError, capture, run
from scriptapp.errors import InvalidArgumentError
from scriptapp.state import active


class Permuting(App):
    def configure(self):
        return ["permute", "pass_through"]


class Verbose(App):
    def pre_process_argv(self, argv):
        argv.insert(0, "-v")


class Doubling(App):
    def post_process_exit_value(self, exit_value):
        return exit_value * 2


class Refusing(App):
    def post_process_argv(self, argv, state):
        raise ScriptError("not today", code=5)


@pytest.fixture
def calls():
    return []


@pytest.fixture
def recorder(calls):
    def handler(app, *extra):
        calls.append((dict(app), extra))
        return 42

    return handler


def test_handler_gets_options_and_extra_args(recorder, calls):
    """Recognized flags land in the context, the rest is passed on in order."""
    runner = Runner(["h|help", "v+", "name=s", "o=s@"], recorder)
    argv = ["-vv", "--name", "superwoman", "-o", "OptX", "cool", "beans"]

    assert runner(argv) == 42
    assert calls == [({"v": 2, "name": "superwoman", "o": ["OptX"]}, ("cool", "beans"))]
    # The caller's list is left alone
    assert argv[0] == "-vv"


def test_flags_are_parsed_without_subcommands(recorder, calls):
    runner = Runner(["h|help"], recorder)
    runner(["-h", "file"])
    assert calls == [({"h": True}, ("file",))]


def test_unrecognized_flag_in_front_is_refused(plain):
    with pytest.raises(InvalidArgumentError, match="Invalid argument or argument order: --invalid") as e:
        plain(["-v", "--invalid"])
    assert e.value.code == 1


def test_unrecognized_flag_in_front_is_reported(plain):
    stdout, stderr, exit_value = capture(plain, ["-v", "--invalid"])
    assert stdout == ""
    assert "Invalid argument or argument order: --invalid" in stderr
    assert exit_value == 1


def test_flags_after_operands_are_passed_on(recorder, calls):
    """Only a flag in front of the operands is refused."""
    runner = Runner(["v"], recorder)
    assert runner(["foo", "--bar", "-v"]) == 42
    assert calls == [({}, ("foo", "--bar", "-v"))]


def test_parse_failure_skips_handler(recorder, calls):
    runner = Runner(["n=i"], recorder)
    stdout, stderr, exit_value = capture(runner, ["-n", "abc"])
    assert exit_value == 1
    assert "invalid int value" in stderr
    assert calls == []


@pytest.mark.parametrize(
    "returned, expected",
    [
        (None, 0),
        ("yes", 0),
        (object(), 0),
        ("12", 12),
        (3.7, 3),
        (True, 1),
        (float("nan"), 0),
    ],
)
def test_exit_value_is_normalized(returned, expected):
    runner = Runner([], lambda app, *extra: returned)
    assert runner([]) == expected


def test_runner_can_be_called_repeatedly():
    """Each call gets a fresh context."""
    runner = Runner(["v+"], lambda app, *extra: app.get("v", 0))
    assert runner(["-vvv"]) == 3
    assert runner([]) == 0
    assert runner(["-v"]) == 1


def test_runner_reads_sys_argv(monkeypatch, recorder, calls):
    monkeypatch.setattr(sys, "argv", ["script", "--name", "x", "rest"])
    Runner(["name=s"], recorder)()
    assert calls == [({"name": "x"}, ("rest",))]


def test_configure_hook(recorder, calls):
    runner = Runner(["v"], recorder, Permuting)
    runner(["a", "-v", "b"])
    assert calls == [({"v": True}, ("a", "b"))]


def test_pre_process_argv_hook(recorder, calls):
    Runner(["v"], recorder, Verbose)(["file"])
    assert calls == [({"v": True}, ("file",))]


def test_post_process_exit_value_hook(recorder):
    assert Runner([], recorder, Doubling)([]) == 84


def test_hook_errors_propagate_with_their_code(recorder, calls):
    runner = Runner([], recorder, Refusing)
    with pytest.raises(ScriptError) as e:
        runner([])
    assert e.value.code == 5
    assert capture(runner, []) == ("", "not today\n", 5)
    assert calls == []


def test_post_process_argv_sees_validity(recorder):
    seen = []

    class Watching(App):
        def post_process_argv(self, argv, state):
            seen.append((list(argv), dict(state)))

    runner = Runner(["n=i"], recorder, Watching)
    capture(runner, ["-n", "abc"])
    runner(["-n", "3", "rest"])
    assert seen == [(["-n", "abc"], {"valid": False}), (["rest"], {"valid": True})]


def test_invocation_state_is_cleared(recorder):
    Runner([], recorder)([])
    assert active() is None


def test_run_with_argv_returns_exit_value():
    def handler(app, *extra):
        return 5 if app.get("name") == "x" else 0

    assert run("name=s", handler, app_class=App, argv=["--name", "x"]) == 5


def test_run_returns_runner_when_imported():
    runner = run("h|help", lambda app: 0, app_class=App)
    assert isinstance(runner, Runner)
    assert runner([]) == 0


def test_run_needs_a_handler():
    with pytest.raises(TypeError):
        run("h|help")


def test_run_refuses_ambiguous_app_class():
    """This module defines several App subclasses."""
    with pytest.raises(TypeError, match="Several App classes"):
        run("h|help", lambda app: 0)


def test_run_finds_app_class_of_script(shop):
    assert shop.app_class.__name__ == "Shop"


def test_script_run_as_main_exits(scripts, monkeypatch, capsys):
    monkeypatch.setattr(sys, "argv", ["plain.py", "--name", "superwoman"])
    with pytest.raises(SystemExit) as e:
        runpy.run_path(str(scripts / "plain.py"), run_name="__main__")
    assert e.value.code == 42
    assert capsys.readouterr().out == "superwoman\n"


def test_main_reports_script_errors(capsys):
    def handler(app):
        raise ScriptError("boom", code=4)

    with pytest.raises(SystemExit) as e:
        Runner([], handler).main([])
    assert e.value.code == 4
    assert capsys.readouterr().err == "boom\n"


def test_capture_converts_other_errors():
    def handler(app):
        raise FileNotFoundError(2, "No such file")

    stdout, stderr, exit_value = capture(Runner([], handler), [])
    assert exit_value == 2
    assert "No such file" in stderr


def test_capture_converts_system_exit():
    def handler(app):
        sys.exit(7)

    assert capture(Runner([], handler), []) == ("", "", 7)
