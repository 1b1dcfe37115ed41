# flake8: noqa

from .databag import DataBag, DataValue, Kind
from .descriptor import (
    DEFAULT_BUILDER,
    Package,
    PackageSetDescriptor,
    from_document,
    load,
    load_path,
)
from .sources import (
    BaseSource,
    HttpsSource,
    LocalSource,
    source_for_url,
    write_source_archive,
)


__all__ = (
    "DEFAULT_BUILDER",
    "DataBag",
    "DataValue",
    "Kind",
    "Package",
    "PackageSetDescriptor",
    "from_document",
    "load",
    "load_path",
    "BaseSource",
    "HttpsSource",
    "LocalSource",
    "source_for_url",
    "write_source_archive",
)
