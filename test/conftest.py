"""
Shared fixtures: the example scripts under test/scripts, loaded in-process.
"""

from pathlib import Path

import pytest

import scriptapp

SCRIPTS = Path(__file__).parent / "scripts"


@pytest.fixture
def scripts() -> Path:
    return SCRIPTS


@pytest.fixture
def plain():
    """A script with options only."""
    return scriptapp.load(SCRIPTS / "plain.py")


@pytest.fixture
def shop():
    """A script with beans/coffee/invalid subcommands."""
    return scriptapp.load(SCRIPTS / "main.py")


@pytest.fixture(autouse=True)
def no_completion(monkeypatch):
    """Tests run outside of shell completion unless they say otherwise."""
    monkeypatch.delenv("COMP_LINE", raising=False)
    monkeypatch.delenv("COMP_POINT", raising=False)
