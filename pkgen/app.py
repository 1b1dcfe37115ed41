from __future__ import annotations

from cleo.application import Application as BaseApplication

import pkgen

from . import commands as pkgen_commands


class App(BaseApplication):
    def __init__(self) -> None:
        super().__init__(pkgen.__name__, pkgen.__version__)
        for cmd_name in pkgen_commands.__all__:
            self.add(getattr(pkgen_commands, cmd_name)())


def main() -> int:
    return App().run()
