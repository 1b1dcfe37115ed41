from __future__ import annotations
from typing import (
    IO,
    Iterable,
    Union,
)

import collections
import dataclasses
import enum
import io
import logging
import os
import posixpath
import tarfile

from pkgen import errors


logger = logging.getLogger("pkgen.merge")

ALT_DIR = "etc/lpkg.d/alt.d/"
TARGET_FILE = ".target"
PROVIDER_SUFFIX = ".provider"

MergeInput = Union[str, "os.PathLike[str]", IO[bytes]]


@dataclasses.dataclass
class Alternative:
    name: str
    target: str | None = None
    providers: set[str] = dataclasses.field(default_factory=set)

    def select_provider(self) -> str | None:
        """Lexicographically first provider wins."""
        if not self.providers:
            return None
        return sorted(self.providers)[0]

    def link_destination(self) -> str | None:
        provider = self.select_provider()
        if provider is None:
            return None
        return provider[: -len(PROVIDER_SUFFIX)]


class EntryKind(enum.Enum):
    PASSTHROUGH = enum.auto()
    TARGET = enum.auto()
    PROVIDER = enum.auto()


def _normalize(name: str) -> str:
    while name.startswith("./"):
        name = name[2:]
    return name.lstrip("/")


def classify(member: tarfile.TarInfo) -> tuple[EntryKind, str | None]:
    """Return the entry kind and, for alternative entries, its name."""
    path = _normalize(member.name)
    if not member.isreg() or not path.startswith(ALT_DIR):
        return EntryKind.PASSTHROUGH, None

    rest = path[len(ALT_DIR) :]
    altname, sep, filename = rest.partition("/")
    if not altname or not sep or not filename or "/" in filename:
        return EntryKind.PASSTHROUGH, None

    if filename == TARGET_FILE:
        return EntryKind.TARGET, altname
    elif filename.endswith(PROVIDER_SUFFIX):
        return EntryKind.PROVIDER, altname
    else:
        return EntryKind.PASSTHROUGH, None


class AlternativesResolver:
    def __init__(self) -> None:
        self._alternatives: dict[str, Alternative] = {}

    def _get(self, name: str) -> Alternative:
        alt = self._alternatives.get(name)
        if alt is None:
            alt = self._alternatives[name] = Alternative(name)
        return alt

    def set_target(self, name: str, target: str) -> None:
        alt = self._get(name)
        if not target:
            logger.warning(f"Alternative {name}: ignoring empty target")
            return
        if alt.target is not None and alt.target != target:
            logger.info(
                f"Alternative {name}: target {alt.target} "
                f"replaced by {target}"
            )
        alt.target = target

    def add_provider(self, name: str, provider: str) -> None:
        self._get(name).providers.add(provider)

    @property
    def alternatives(self) -> list[Alternative]:
        return [self._alternatives[n] for n in sorted(self._alternatives)]

    def get_links(self) -> list[tarfile.TarInfo]:
        links = []
        for alt in self.alternatives:
            if alt.target is None:
                logger.debug(
                    f"Alternative {alt.name} has providers but no target"
                )
                continue
            dest = alt.link_destination()
            if dest is None:
                # A link with an empty destination would dangle.
                logger.warning(
                    f"Alternative {alt.name} has no providers, "
                    f"not linking {alt.target} (a dangling link to an "
                    f"empty name is never emitted)"
                )
                continue
            link = tarfile.TarInfo(alt.target)
            link.type = tarfile.SYMTYPE
            link.linkname = dest
            link.mode = 0o777
            links.append(link)
            logger.info(f"Alternative {alt.name}: {alt.target} -> {dest}")
        return links


def _open_input(src: MergeInput) -> tarfile.TarFile:
    if isinstance(src, (str, os.PathLike)):
        return tarfile.open(src, mode="r|*")
    return tarfile.open(fileobj=src, mode="r|*")


def _copy_archive(
    tin: tarfile.TarFile,
    tout: tarfile.TarFile,
    resolver: AlternativesResolver,
) -> int:
    count = 0
    for member in tin:
        kind, altname = classify(member)
        if kind is EntryKind.TARGET:
            assert altname is not None
            f = tin.extractfile(member)
            assert f is not None
            data = f.read()
            resolver.set_target(
                altname, data.decode("utf-8", "surrogateescape").strip()
            )
            tout.addfile(member, io.BytesIO(data))
        else:
            if kind is EntryKind.PROVIDER:
                assert altname is not None
                resolver.add_provider(altname, posixpath.basename(member.name))
            if member.isreg():
                tout.addfile(member, tin.extractfile(member))
            else:
                tout.addfile(member)
        count += 1
    return count


def merge_archives(
    inputs: Iterable[MergeInput],
    out: IO[bytes],
) -> AlternativesResolver:
    """Concatenate tar archives into *out* and link resolved alternatives.

    Inputs are read sequentially in the given order; every entry is
    copied unchanged.  Alternative symlinks are appended after the last
    input, sorted by alternative name.
    """
    resolver = AlternativesResolver()
    try:
        with tarfile.open(fileobj=out, mode="w|") as tout:
            for src in inputs:
                with _open_input(src) as tin:
                    count = _copy_archive(tin, tout, resolver)
                logger.info(f"Merged {count} entries from {_describe(src)}")
            for link in resolver.get_links():
                tout.addfile(link)
    except (OSError, tarfile.TarError) as e:
        raise errors.ArchiveError(f"cannot merge archives: {e}") from e
    return resolver


def _describe(src: MergeInput) -> str:
    if isinstance(src, (str, os.PathLike)):
        return os.fspath(src)
    return getattr(src, "name", repr(src))
