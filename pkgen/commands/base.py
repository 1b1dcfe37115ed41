from __future__ import annotations
from typing import (
    IO,
    Any,
    ClassVar,
    Iterator,
)

import contextlib
import dataclasses
import logging
import sys

from cleo.commands import command as cleo_command
from cleo.formatters.formatter import Formatter
from cleo.helpers import option

from pkgen import errors
from pkgen.packages import descriptor as pkg_desc
from pkgen.tools import arch


STDIO = "-"

INPUT_OPTIONS = [
    option(
        "input",
        "i",
        description="Descriptor file (- for standard input)",
        flag=False,
        default=STDIO,
    ),
    option(
        "output",
        "o",
        description="Output file (- for standard output)",
        flag=False,
        default=STDIO,
    ),
    option(
        "host",
        description="Host architecture [env: HOSTARCH]",
        flag=False,
    ),
    option(
        "build",
        description="Target architecture [env: BUILDARCH]",
        flag=False,
    ),
]

SEPARATOR_OPTION = option(
    "separator",
    "s",
    description="Separator to use for list output",
    flag=False,
    default="\n",
)


@dataclasses.dataclass(frozen=True)
class RunContext:
    input_path: str
    output_path: str
    host_arch: str
    build_arch: str

    def load_descriptor(self) -> pkg_desc.PackageSetDescriptor:
        if self.input_path == STDIO:
            return pkg_desc.load(sys.stdin.buffer)
        return pkg_desc.load_path(self.input_path)

    def load_expanded_descriptor(self) -> pkg_desc.PackageSetDescriptor:
        desc = self.load_descriptor()
        return desc.expand(self.host_arch, self.build_arch)

    @contextlib.contextmanager
    def open_output(self, *, binary: bool = False) -> Iterator[IO[Any]]:
        if self.output_path == STDIO:
            stream = sys.stdout.buffer if binary else sys.stdout
            try:
                yield stream
            finally:
                stream.flush()
            return

        try:
            f = open(self.output_path, "wb" if binary else "w")
        except OSError as e:
            raise errors.ArchiveError(
                f"cannot open output {self.output_path}: {e}"
            ) from e
        with f:
            yield f


class IOHandler(logging.Handler):
    def __init__(self, command: Command) -> None:
        super().__init__()
        self._command = command

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            self._command.io.write_error_line(msg)
        except Exception:
            self.handleError(record)


class IOFormatter(logging.Formatter):

    _colors = {
        "error": "fg=red",
        "warning": "fg=yellow",
        "debug": "comment",
        "info": "fg=blue",
    }

    def format(self, record: logging.LogRecord) -> str:
        if record.exc_info:
            return super().format(record)

        level = record.levelname.lower()
        msg = Formatter.escape(record.getMessage())
        if level in self._colors:
            msg = f"<{self._colors[level]}>{msg}</>"
        return msg


class Command(cleo_command.Command):

    _loggers: ClassVar[list[str]] = []

    def handle(self) -> int:
        for logger in self._loggers:
            self.register_logger(logging.getLogger(logger))

        try:
            return self.run_command(self.get_run_context())
        except errors.PkgenError as e:
            self.io.write_error_line(
                f"<error>{Formatter.escape(str(e))}</error>"
            )
            return e.exit_code

    def run_command(self, ctx: RunContext) -> int:
        raise NotImplementedError

    def get_run_context(self) -> RunContext:
        return RunContext(
            input_path=self._opt("input", STDIO),
            output_path=self._opt("output", STDIO),
            host_arch=arch.resolve_arch(self._opt("host", None), "HOSTARCH"),
            build_arch=arch.resolve_arch(
                self._opt("build", None), "BUILDARCH"
            ),
        )

    def _opt(self, name: str, default: Any) -> Any:
        if not self.definition.has_option(name):
            return default
        value = self.option(name)
        return default if value is None else value

    def register_logger(self, logger: logging.Logger) -> None:
        handler = IOHandler(self)
        handler.setFormatter(IOFormatter())
        logger.handlers = [handler]
        logger.propagate = False

        level = logging.WARNING
        if self.io.is_debug():
            level = logging.DEBUG
        elif self.io.is_very_verbose() or self.io.is_verbose():
            level = logging.INFO

        logger.setLevel(level)
