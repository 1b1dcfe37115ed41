from __future__ import annotations
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    NamedTuple,
    Sequence,
)

import functools
import logging
import posixpath

import jinja2

from pkgen import errors

if TYPE_CHECKING:
    from pkgen.packages import descriptor as pkg_desc


logger = logging.getLogger("pkgen.template")

MAKE = "$(MAKE)"
CONFIGURE_KEY = "configure"


class TemplateContext(NamedTuple):
    descriptor: pkg_desc.PackageSetDescriptor
    host_arch: str
    build_arch: str


def make(ctx: TemplateContext, dir: str, *actions: str) -> str:
    return "\n".join(f"{MAKE} -C {dir} {action}" for action in actions)


def extract(ctx: TemplateContext, name: str, ext: str) -> str:
    versioned = f"{name}-{ctx.descriptor.version}"
    return "\n".join(
        [
            f"tar -xf src/{versioned}.tar.{ext} -C src",
            f"mv src/{versioned} src/{name}",
        ]
    )


def pkmv(ctx: TemplateContext, file: str, src_pkg: str, dest_pkg: str) -> str:
    file = file.rstrip("/")
    dirname = posixpath.dirname(file)
    if dirname:
        dest = f"out/{dest_pkg}/{dirname}"
        return "\n".join(
            [
                f"mkdir -p {dest}",
                f"mv out/{src_pkg}/{file} {dest}",
            ]
        )
    else:
        return f"mv out/{src_pkg}/{file} out/{dest_pkg}/"


def mvman(ctx: TemplateContext, pkg: str) -> str:
    return "\n".join(
        [
            f"mkdir -p out/{pkg}-man/usr/share",
            f"mv out/{pkg}/usr/share/man out/{pkg}-man/usr/share/man",
        ]
    )


def configure(ctx: TemplateContext, dir: str) -> str:
    flags = ctx.descriptor.data.get_list(CONFIGURE_KEY, default=())
    return f"(cd {dir} && {' '.join(['./configure', *flags])})"


def confarch(ctx: TemplateContext) -> str:
    # GNU triplets spell 32-bit x86 as i386.
    if ctx.build_arch == "x86":
        return "i386"
    return ctx.build_arch


def hostarch(ctx: TemplateContext) -> str:
    return ctx.host_arch


def buildarch(ctx: TemplateContext) -> str:
    return ctx.build_arch


BUILDER_FUNCTIONS: dict[str, Callable[..., str]] = {
    "make": make,
    "extract": extract,
    "pkmv": pkmv,
    "mvman": mvman,
    "configure": configure,
    "confarch": confarch,
    "hostarch": hostarch,
    "buildarch": buildarch,
}


_env = jinja2.Environment(
    autoescape=False,
    undefined=jinja2.StrictUndefined,
    keep_trailing_newline=True,
)


def _get_globals(ctx: TemplateContext) -> dict[str, Any]:
    desc = ctx.descriptor
    variables: dict[str, Any] = {
        "version": desc.version,
        "build": desc.build,
        "builder": desc.builder,
        "packages": desc.package_names(),
        "builddependencies": list(desc.build_dependencies),
        "cross": desc.cross,
        "data": desc.data.to_plain(),
    }
    for name, func in BUILDER_FUNCTIONS.items():
        variables[name] = functools.partial(func, ctx)
    return variables


def format_template(text: str, ctx: TemplateContext) -> str:
    try:
        template = _env.from_string(text)
        return template.render(_get_globals(ctx))
    except errors.PkgenError:
        raise
    except jinja2.TemplateSyntaxError as e:
        raise errors.TemplateError(
            f"template syntax error on line {e.lineno}: {e.message}"
        ) from e
    except jinja2.TemplateError as e:
        raise errors.TemplateError(f"template expansion failed: {e}") from e
    except (TypeError, ValueError, AttributeError, KeyError) as e:
        raise errors.TemplateError(f"template function error: {e}") from e


def expand_lines(lines: Sequence[str], ctx: TemplateContext) -> list[str]:
    """Expand a list of lines as a single template document.

    The lines are joined with newlines, so an expression may produce
    several lines or a block statement may span them.  A single trailing
    empty line left behind by a trailing newline is dropped.
    """
    if not lines:
        return []
    result = format_template("\n".join(lines), ctx).split("\n")
    if result and result[-1] == "":
        result.pop()
    logger.debug("expanded %d template lines into %d", len(lines), len(result))
    return result


def expand_line(line: str, ctx: TemplateContext) -> str:
    result = expand_lines([line], ctx)
    if len(result) != 1 or not result[0]:
        raise errors.TemplateError(
            f"{line!r} must expand to exactly one non-empty line, "
            f"got {len(result)}"
        )
    return result[0]
