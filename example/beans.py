"""Manage the bean inventory."""
from scriptapp import App, Runner, complete_reply, run

INVENTORY = {"arabica": 12, "robusta": 4}


def list_beans(app, *extra):
    for name, bags in sorted(INVENTORY.items()):
        print(f"{name}: {bags} bags")


def order_beans(app, *names):
    for name in names:
        print(f"Ordering {app.get('bags', 1)} bags of {name}")
    return 0 if names else 1


class Completing(App):
    complete_reply = complete_reply


class Beans(Completing):
    def subcommands(self):
        return [
            ("list", Runner([], list_beans, Completing), "List beans in stock"),
            ("order", Runner(["bags=i # Number of bags"], order_beans, Completing), "Order more beans"),
        ]


def main(app, *extra):
    print("beans: list or order")
    return 0


run("h|help", main, app_class=Beans)
