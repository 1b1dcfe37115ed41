from __future__ import annotations

from pkgen.targets import makefile

from . import base


class Build(base.Command):
    name = "build"
    description = "Generate the build Makefile for the package set"
    help = """Renders a Makefile that builds every package of the set.

Run it with SRCTAR pointing at the archive produced by the source command."""
    options = [*base.INPUT_OPTIONS]

    _loggers = ["pkgen.descriptor", "pkgen.template", "pkgen.build"]

    def run_command(self, ctx: base.RunContext) -> int:
        desc = ctx.load_expanded_descriptor()
        with ctx.open_output() as out:
            makefile.write_makefile(desc, out)
        return 0
