"""Brew a cup of coffee."""
from scriptapp import App, complete_reply, extract_usage, run


class Coffee(App):
    complete_reply = complete_reply


def brew(app, *kinds):
    """Brew one cup per kind given on the command line."""
    if app.get("h"):
        print(extract_usage(app))
        return 0
    for kind in kinds or ("filter",):
        sugar = " with sugar" if app.get("sugar") else ""
        print(f"Brewing a {app.get('size', 'regular')} {kind}{sugar}")
    return 0


run(
    "h|help # Print this help",
    "size=s # small, regular or large",
    "sugar! # Add sugar",
    brew,
)
