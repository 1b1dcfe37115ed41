from __future__ import annotations

import logging

from pkgen.packages import sources

from . import base


logger = logging.getLogger("pkgen.source")


class Source(base.Command):
    name = "source"
    aliases = ["src"]
    description = "Bundle sources and package metadata into a tar archive"
    options = [*base.INPUT_OPTIONS]

    _loggers = ["pkgen.descriptor", "pkgen.template", "pkgen.source"]

    def run_command(self, ctx: base.RunContext) -> int:
        desc = ctx.load_expanded_descriptor()
        logger.debug(f"Sources: {', '.join(desc.sources) or '(none)'}")
        with ctx.open_output(binary=True) as out:
            sources.write_source_archive(desc, out)
        return 0
