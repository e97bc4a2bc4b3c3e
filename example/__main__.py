"""
An example script with subcommands, runnable as `python example`.

    python example --help
    python example coffee --size large espresso
    python example beans list
"""
from pathlib import Path

from scriptapp import App, complete_reply, extract_usage, generate_completion_script, run

HERE = Path(__file__).parent


class Shop(App):
    """A pretend coffee shop to demonstrate scriptapp."""

    complete_reply = complete_reply

    def subcommands(self):
        return [
            ("beans", HERE / "beans.py", "Manage the bean inventory."),
            ("coffee", HERE / "coffee.py", "Brew a cup of coffee."),
        ]

    def unknown_subcommand(self, argv):
        # Let the handler see anything that is not a subcommand.
        return None


def main(app, *extra):
    """Run the coffee shop."""
    if app.get("completion-script"):
        print(generate_completion_script(), end="")
        return 0
    if app.get("h") or not extra:
        print(extract_usage(app))
        return 0
    print(f"Don't know what to do with: {' '.join(extra)}")
    return 1


run(
    "h|help # Print this help",
    "completion-script # Print the shell completion script",
    main,
)
