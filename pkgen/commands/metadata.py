from __future__ import annotations

from cleo.helpers import option

from pkgen import errors

from . import base


class BuildDeps(base.Command):
    name = "builddeps"
    aliases = ["bd", "bdeps"]
    description = "List build dependencies of the package set"
    options = [*base.INPUT_OPTIONS, base.SEPARATOR_OPTION]

    _loggers = ["pkgen.descriptor"]

    def run_command(self, ctx: base.RunContext) -> int:
        desc = ctx.load_descriptor()
        with ctx.open_output() as out:
            out.write(self.option("separator").join(desc.build_dependencies))
        return 0


class Pkgs(base.Command):
    name = "pkgs"
    description = "List the packages of the package set, sorted"
    options = [*base.INPUT_OPTIONS, base.SEPARATOR_OPTION]

    _loggers = ["pkgen.descriptor"]

    def run_command(self, ctx: base.RunContext) -> int:
        desc = ctx.load_descriptor()
        with ctx.open_output() as out:
            out.write(self.option("separator").join(desc.package_names()))
        return 0


class Deps(base.Command):
    name = "deps"
    aliases = ["d", "dep"]
    description = "List dependencies of a package"
    options = [
        *base.INPUT_OPTIONS,
        option(
            "package",
            "p",
            description="Package to list dependencies of",
            flag=False,
        ),
        base.SEPARATOR_OPTION,
    ]

    _loggers = ["pkgen.descriptor"]

    def run_command(self, ctx: base.RunContext) -> int:
        pkg = self.option("package")
        if not pkg:
            raise errors.UsageError("Missing flag: --package")
        desc = ctx.load_descriptor()
        with ctx.open_output() as out:
            out.write(
                self.option("separator").join(desc.get_dependencies(pkg))
            )
        return 0


class Builder(base.Command):
    name = "builder"
    description = "Print the builder the package set expects"
    options = [*base.INPUT_OPTIONS]

    _loggers = ["pkgen.descriptor"]

    def run_command(self, ctx: base.RunContext) -> int:
        desc = ctx.load_descriptor()
        with ctx.open_output() as out:
            out.write(desc.builder)
        return 0
