from __future__ import annotations


class PkgenError(Exception):
    """Base class for all fatal pkgen errors."""

    exit_code = 65


class DescriptorError(PkgenError):
    pass


class TemplateError(PkgenError):
    pass


class DataBagTypeError(TemplateError):
    def __init__(self, key: str, expected: str, actual: str) -> None:
        super().__init__(
            f"data bag type mismatch for {key!r}: "
            f"expected {expected}, got {actual}"
        )
        self.key = key
        self.expected = expected
        self.actual = actual


class TransportError(PkgenError):
    pass


class UnsupportedSchemeError(TransportError):
    def __init__(self, scheme: str, url: str) -> None:
        super().__init__(f"unsupported source URL scheme: {scheme!r} ({url})")
        self.scheme = scheme
        self.url = url


class ArchiveError(PkgenError):
    pass


class UsageError(PkgenError):
    pass
