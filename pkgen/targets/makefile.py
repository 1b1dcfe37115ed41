from __future__ import annotations
from typing import (
    IO,
    TYPE_CHECKING,
    Sequence,
)

import logging
import textwrap

from pkgen import errors

if TYPE_CHECKING:
    from pkgen.packages import descriptor as pkg_desc


logger = logging.getLogger("pkgen.build")


_SKELETON = textwrap.dedent(
    """\
    all: gentars
    .PHONY: all gentars outs sources build
    {oneshell}OUTDIR = $(shell pwd)/out
    PKGS = {pkgs}
    VERSION = {version}
    BUILDNUM = {build}
    TARS = {tars}
    OUTS = {outs}
    INFOS = {infos}
    out tars src:
    \tmkdir -p $@
    $(OUTS): | out
    \tmkdir -p $@
    {info_rules}outs: $(INFOS)
    sources: | src
    \ttest -n "$(SRCTAR)"
    \ttar -xf $(SRCTAR) -C src
    {tar_rules}gentars: $(TARS)
    build: outs sources"""
)


def _info_rule(pkg: str) -> str:
    return (
        f"out/{pkg}/.pkginfo: sources out/{pkg}\n"
        f"\tcp src/.pkginfo/{pkg}.pkginfo $@\n"
    )


def _tar_rule(pkg: str) -> str:
    return (
        f"tars/{pkg}.tar.gz: build outs | tars\n"
        f"\ttar -czf $@ -C out/{pkg} .\n"
    )


def render_skeleton(
    pkgs: Sequence[str], version: str, build: int, *, oneshell: bool = False
) -> str:
    pkgs = sorted(pkgs)
    return _SKELETON.format(
        oneshell=".ONESHELL:\n" if oneshell else "",
        pkgs=" ".join(pkgs),
        version=version,
        build=build,
        tars=" ".join(f"tars/{p}.tar.gz" for p in pkgs),
        outs=" ".join(f"out/{p}" for p in pkgs),
        infos=" ".join(f"out/{p}/.pkginfo" for p in pkgs),
        info_rules="".join(_info_rule(p) for p in pkgs),
        tar_rules="".join(_tar_rule(p) for p in pkgs),
    )


def render(desc: pkg_desc.PackageSetDescriptor) -> str:
    """Render the complete build Makefile for an expanded descriptor.

    The templated script lines become the recipe of the ``build`` goal,
    which is always the last rule.
    """
    if not desc.expanded:
        raise errors.TemplateError(
            "descriptor templates must be expanded before rendering"
        )
    skeleton = render_skeleton(
        desc.package_names(),
        desc.version,
        desc.build,
        oneshell=desc.oneshell,
    )
    return skeleton + "".join(f"\n\t{line}" for line in desc.script) + "\n"


def write_makefile(desc: pkg_desc.PackageSetDescriptor, out: IO[str]) -> None:
    text = render(desc)
    try:
        out.write(text)
        out.flush()
    except OSError as e:
        raise errors.ArchiveError(f"cannot write build script: {e}") from e
    logger.info(
        f"Generated build script for {len(desc.packages)} packages "
        f"({len(desc.script)} script lines)"
    )
