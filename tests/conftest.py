from __future__ import annotations

import io
import tarfile

import pytest

from pkgen.packages import descriptor


def make_tar(entries, *, mode="w"):
    """Build a tar archive in memory.

    *entries* is a list of ``(name, content)`` pairs; content ``None``
    makes a directory.
    """
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode=mode) as tf:
        for name, content in entries:
            info = tarfile.TarInfo(name)
            if content is None:
                info.type = tarfile.DIRTYPE
                info.mode = 0o755
                tf.addfile(info)
            else:
                info.size = len(content)
                info.mode = 0o644
                tf.addfile(info, io.BytesIO(content))
    return buf.getvalue()


def read_tar(data):
    with tarfile.open(fileobj=io.BytesIO(data), mode="r:*") as tf:
        members = tf.getmembers()
        contents = {}
        for m in members:
            if m.isreg():
                contents[m.name] = tf.extractfile(m).read()
    return members, contents


@pytest.fixture
def simple_doc():
    return {
        "version": "1.2.3",
        "build": 4,
        "packages": {
            "zlib": {"dependencies": []},
            "curl": {"dependencies": ["zlib", "openssl"]},
        },
        "builddependencies": ["gcc", "make"],
        "data": {
            "configure": ["--prefix=/usr", "--disable-static"],
            "prefix": "/usr",
        },
    }


@pytest.fixture
def simple_desc(simple_doc):
    return descriptor.from_document(simple_doc)
