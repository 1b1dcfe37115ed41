from __future__ import annotations
from typing import (
    IO,
    Any,
    Mapping,
)

import dataclasses
import logging
import pathlib
import types

import yaml

from pkgen import errors
from pkgen.tools import template

from . import databag


logger = logging.getLogger("pkgen.descriptor")

DEFAULT_BUILDER = "alpine"


@dataclasses.dataclass(frozen=True)
class Package:
    dependencies: tuple[str, ...] = ()


@dataclasses.dataclass(frozen=True)
class PackageSetDescriptor:
    version: str
    build: int = 0
    sources: tuple[str, ...] = ()
    script: tuple[str, ...] = ()
    packages: Mapping[str, Package] = dataclasses.field(
        default_factory=lambda: types.MappingProxyType({})
    )
    builder: str = DEFAULT_BUILDER
    build_dependencies: tuple[str, ...] = ()
    data: databag.DataBag = dataclasses.field(default_factory=databag.DataBag)
    cross: bool = False
    oneshell: bool = False
    src_path: str | None = None
    source_text: bytes | None = dataclasses.field(default=None, repr=False)
    expanded: bool = False

    def package_names(self) -> list[str]:
        return sorted(self.packages)

    def get_dependencies(self, name: str) -> tuple[str, ...]:
        pkg = self.packages.get(name)
        if pkg is None:
            return ()
        return pkg.dependencies

    @property
    def base_dir(self) -> pathlib.Path:
        """Directory that relative ``file:`` sources are resolved against."""
        if self.src_path is None:
            return pathlib.Path.cwd()
        return pathlib.Path(self.src_path).parent

    def expand(
        self, host_arch: str, build_arch: str
    ) -> PackageSetDescriptor:
        """Return a copy with ``sources`` and ``script`` template-expanded."""
        if self.expanded:
            raise errors.TemplateError(
                "descriptor templates have already been expanded"
            )
        ctx = template.TemplateContext(self, host_arch, build_arch)
        sources = tuple(template.expand_line(s, ctx) for s in self.sources)
        script = tuple(template.expand_lines(self.script, ctx))
        logger.info(
            f"Expanded templates for {host_arch}->{build_arch}: "
            f"{len(sources)} sources, {len(script)} script lines"
        )
        return dataclasses.replace(
            self, sources=sources, script=script, expanded=True
        )


def _str_list(doc: Mapping[str, Any], key: str) -> tuple[str, ...]:
    value = doc.get(key)
    if value is None:
        return ()
    if not isinstance(value, list):
        raise errors.DescriptorError(
            f"{key}: expected a list, got {type(value).__name__}"
        )
    result = []
    for i, item in enumerate(value):
        if isinstance(item, (dict, list)) or item is None:
            raise errors.DescriptorError(
                f"{key}[{i}]: expected a string, got {item!r}"
            )
        result.append(str(item))
    return tuple(result)


def _packages(doc: Mapping[str, Any]) -> Mapping[str, Package]:
    raw = doc.get("packages")
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise errors.DescriptorError(
            f"packages: expected a mapping, got {type(raw).__name__}"
        )
    packages = {}
    for name, body in raw.items():
        if body is None:
            body = {}
        if not isinstance(body, dict):
            raise errors.DescriptorError(
                f"packages.{name}: expected a mapping, "
                f"got {type(body).__name__}"
            )
        packages[str(name)] = Package(
            dependencies=_str_list(body, "dependencies")
        )
    return types.MappingProxyType(packages)


def _build_number(doc: Mapping[str, Any]) -> int:
    value = doc.get("build", 0)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise errors.DescriptorError(
            f"build: expected an integer, got {value!r}"
        )
    if value < 0:
        raise errors.DescriptorError(
            f"build: must not be negative, got {value}"
        )
    return value


def from_document(
    doc: Any,
    *,
    src_path: str | None = None,
    source_text: bytes | None = None,
) -> PackageSetDescriptor:
    if doc is None:
        doc = {}
    if not isinstance(doc, dict):
        raise errors.DescriptorError(
            f"descriptor must be a mapping, got {type(doc).__name__}"
        )

    version = doc.get("version")
    builder = doc.get("builder") or DEFAULT_BUILDER
    if src_path is None and doc.get("srcpath") is not None:
        src_path = str(doc["srcpath"])

    return PackageSetDescriptor(
        version="" if version is None else str(version),
        build=_build_number(doc),
        sources=_str_list(doc, "sources"),
        script=_str_list(doc, "script"),
        packages=_packages(doc),
        builder=str(builder),
        build_dependencies=_str_list(doc, "builddependencies"),
        data=databag.DataBag.from_raw(doc.get("data")),
        cross=bool(doc.get("cross", False)),
        oneshell=bool(doc.get("oneshell", False)),
        src_path=src_path,
        source_text=source_text,
    )


def _raw_scalar(node: yaml.Node | None, key: str) -> str | None:
    if not isinstance(node, yaml.MappingNode):
        return None
    for key_node, value_node in node.value:
        if (
            isinstance(key_node, yaml.ScalarNode)
            and key_node.value == key
            and isinstance(value_node, yaml.ScalarNode)
            and value_node.tag != "tag:yaml.org,2002:null"
        ):
            return value_node.value
    return None


def load(
    stream: IO[str] | IO[bytes], *, src_path: str | None = None
) -> PackageSetDescriptor:
    text = stream.read()
    if isinstance(text, str):
        text = text.encode("utf-8")
    try:
        node = yaml.compose(text, Loader=yaml.SafeLoader)
        if node is None:
            doc = None
        else:
            doc = yaml.SafeLoader("").construct_document(node)
    except yaml.YAMLError as e:
        raise errors.DescriptorError(f"cannot parse descriptor: {e}") from e

    # Keep the version as written: 1.10 must not turn into 1.1.
    raw_version = _raw_scalar(node, "version")
    if raw_version is not None and isinstance(doc, dict):
        doc["version"] = raw_version

    return from_document(doc, src_path=src_path, source_text=text)


def load_path(path: str | pathlib.Path) -> PackageSetDescriptor:
    try:
        with open(path, "rb") as f:
            return load(f, src_path=str(path))
    except OSError as e:
        raise errors.DescriptorError(
            f"cannot read descriptor {path}: {e}"
        ) from e
