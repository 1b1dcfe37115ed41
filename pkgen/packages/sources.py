from __future__ import annotations
from typing import (
    IO,
    TYPE_CHECKING,
    Any,
    Iterable,
)

import io
import json
import logging
import pathlib
import posixpath
import tarfile
import time
import urllib.parse

import requests

from pkgen import errors

if TYPE_CHECKING:
    from . import descriptor as pkg_desc


logger = logging.getLogger("pkgen.source")

MANIFEST_NAME = "manifest.txt"
PKGINFO_DIR = ".pkginfo"
DESCRIPTOR_NAME = "pkgen.yaml"
STDIO_URL = "-"


def _file_info(name: str, size: int, mode: int = 0o600) -> tarfile.TarInfo:
    info = tarfile.TarInfo(name)
    info.size = size
    info.mode = mode
    info.mtime = int(time.time())
    return info


class BaseSource:
    def __init__(self, url: str, name: str) -> None:
        self.url = url
        self.name = name

    def check(self) -> None:
        pass

    def add_to_archive(self, tf: tarfile.TarFile) -> None:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.url}>"


class HttpsSource(BaseSource):
    def __init__(
        self,
        url: str,
        name: str,
        *,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(url, name)
        self._session = session

    def _get(self) -> requests.Response:
        if self._session is not None:
            return self._session.get(self.url, stream=True)
        return requests.get(self.url, stream=True)

    def add_to_archive(self, tf: tarfile.TarFile) -> None:
        logger.info(f"Downloading {self.url}")
        try:
            with self._get() as req:
                if req.status_code < 200 or req.status_code >= 300:
                    raise errors.TransportError(
                        f"download of {self.url} failed: {req.status_code}"
                    )
                length = req.headers.get("content-length")
                encoding = req.headers.get("content-encoding", "identity")
                if length is None or encoding != "identity":
                    # The tar header needs the size up front.
                    data = req.content
                    logger.debug(
                        f"{self.url}: unknown length, buffered {len(data)}"
                        f" bytes"
                    )
                    tf.addfile(
                        _file_info(self.name, len(data)), io.BytesIO(data)
                    )
                else:
                    tf.addfile(_file_info(self.name, int(length)), req.raw)
        except requests.RequestException as e:
            raise errors.TransportError(
                f"download of {self.url} failed: {e}"
            ) from e


class LocalSource(BaseSource):
    def __init__(self, url: str, name: str, path: pathlib.Path) -> None:
        super().__init__(url, name)
        self.path = path

    def check(self) -> None:
        if not self.path.exists() and not self.path.is_symlink():
            raise errors.TransportError(
                f"local source {self.url} not found at {self.path}"
            )

    def add_to_archive(self, tf: tarfile.TarFile) -> None:
        self.check()
        logger.info(f"Copying {self.path}")
        self._add_path(tf, self.path, self.name)

    def _add_path(
        self, tf: tarfile.TarFile, path: pathlib.Path, arcname: str
    ) -> None:
        info = tf.gettarinfo(str(path), arcname=arcname)
        info.uid = info.gid = 0
        info.uname = info.gname = "root"
        if info.isreg():
            with open(path, "rb") as f:
                tf.addfile(info, f)
        else:
            tf.addfile(info)

        if info.isdir():
            for child in sorted(path.iterdir()):
                self._add_path(tf, child, f"{arcname}/{child.name}")


class BytesSource(BaseSource):
    def __init__(self, url: str, name: str, data: bytes) -> None:
        super().__init__(url, name)
        self.data = data

    def add_to_archive(self, tf: tarfile.TarFile) -> None:
        logger.info(f"Adding {self.name} ({len(self.data)} bytes)")
        _add_bytes(tf, self.name, self.data, 0o644)


def source_for_url(
    url: str,
    *,
    base_dir: pathlib.Path,
    session: requests.Session | None = None,
) -> BaseSource:
    parts = urllib.parse.urlparse(url)
    if parts.scheme == "https" or parts.scheme == "http":
        name = posixpath.basename(parts.path.rstrip("/"))
        if not name:
            raise errors.TransportError(f"cannot derive a file name: {url}")
        return HttpsSource(url, name=name, session=session)
    elif parts.scheme == "file":
        relpath = urllib.parse.unquote(parts.netloc + parts.path)
        name = posixpath.basename(relpath.rstrip("/"))
        if not name:
            raise errors.TransportError(f"cannot derive a file name: {url}")
        return LocalSource(url, name, base_dir / relpath)
    else:
        raise errors.UnsupportedSchemeError(parts.scheme, url)


def get_sources(
    desc: pkg_desc.PackageSetDescriptor,
    *,
    session: requests.Session | None = None,
) -> list[BaseSource]:
    """Resolve every source of *desc*, plus the descriptor itself."""
    sources = [
        source_for_url(s, base_dir=desc.base_dir, session=session)
        for s in desc.sources
    ]
    if desc.source_text is not None:
        # Ship the exact bytes that were parsed, stdin included.
        if desc.src_path is not None:
            name = pathlib.PurePath(desc.src_path).name or DESCRIPTOR_NAME
        else:
            name = DESCRIPTOR_NAME
        sources.append(
            BytesSource(desc.src_path or STDIO_URL, name, desc.source_text)
        )
    elif desc.src_path is not None:
        self_path = pathlib.Path(desc.src_path).absolute()
        sources.append(
            LocalSource(self_path.as_uri(), self_path.name, self_path)
        )
    return sources


def get_pkginfo(
    desc: pkg_desc.PackageSetDescriptor, name: str
) -> dict[str, Any]:
    return {
        "name": name,
        "version": desc.version,
        "build": desc.build,
        "dependencies": list(desc.get_dependencies(name)),
    }


def _add_bytes(
    tf: tarfile.TarFile, name: str, data: bytes, mode: int
) -> None:
    tf.addfile(_file_info(name, len(data), mode), io.BytesIO(data))


def _write_metadata(
    tf: tarfile.TarFile, desc: pkg_desc.PackageSetDescriptor
) -> None:
    pkginfo_dir = tarfile.TarInfo(PKGINFO_DIR)
    pkginfo_dir.type = tarfile.DIRTYPE
    pkginfo_dir.mode = 0o755
    pkginfo_dir.mtime = int(time.time())
    tf.addfile(pkginfo_dir)

    for name in desc.package_names():
        record = json.dumps(get_pkginfo(desc, name), indent=2, sort_keys=True)
        _add_bytes(
            tf,
            f"{PKGINFO_DIR}/{name}.pkginfo",
            (record + "\n").encode("utf-8"),
            0o644,
        )


def write_source_archive(
    desc: pkg_desc.PackageSetDescriptor,
    out: IO[bytes],
    *,
    session: requests.Session | None = None,
) -> None:
    """Bundle sources, package metadata and a manifest into a tar stream.

    Every source is resolved and checked before the first byte is
    written, so a bad reference leaves *out* untouched.
    """
    if not desc.expanded:
        raise errors.TemplateError(
            "descriptor templates must be expanded before bundling"
        )

    sources = get_sources(desc, session=session)
    for source in sources:
        source.check()

    try:
        with tarfile.open(fileobj=out, mode="w|") as tf:
            _add_sources(tf, sources)
            _write_metadata(tf, desc)
            _add_bytes(
                tf,
                MANIFEST_NAME,
                "\n".join(desc.sources).encode("utf-8"),
                0o600,
            )
    except (OSError, tarfile.TarError) as e:
        raise errors.ArchiveError(f"cannot write source archive: {e}") from e

    logger.info(
        f"Bundled {len(sources)} sources and "
        f"{len(desc.packages)} package records"
    )


def _add_sources(tf: tarfile.TarFile, sources: Iterable[BaseSource]) -> None:
    for source in sources:
        source.add_to_archive(tf)
