from __future__ import annotations

from cleo.helpers import argument, option

from pkgen import errors
from pkgen.targets import alternatives

from . import base


class Merge(base.Command):
    name = "merge"
    description = "Merge package archives and resolve alternatives"
    arguments = [
        argument(
            "inputs",
            description="Package archives to merge, in order.",
            multiple=True,
        ),
    ]
    options = [
        option(
            "output",
            "o",
            description="Output file (- for standard output)",
            flag=False,
            default=base.STDIO,
        ),
    ]

    _loggers = ["pkgen.merge"]

    def run_command(self, ctx: base.RunContext) -> int:
        inputs = self.argument("inputs")
        if not inputs:
            raise errors.UsageError("Missing argument: inputs")
        with ctx.open_output(binary=True) as out:
            alternatives.merge_archives(inputs, out)
        return 0
