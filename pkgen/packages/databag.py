from __future__ import annotations
from typing import (
    Any,
    Iterator,
    Mapping,
    Union,
)

import dataclasses
import enum

from pkgen import errors


class Kind(enum.Enum):
    STRING = "string"
    LIST = "list"
    MAPPING = "mapping"


PlainValue = Union[str, list[str], dict[str, Any]]


@dataclasses.dataclass(frozen=True)
class DataValue:
    kind: Kind
    value: Any

    @classmethod
    def of_string(cls, value: str) -> DataValue:
        return cls(Kind.STRING, value)

    @classmethod
    def of_list(cls, values: Any) -> DataValue:
        return cls(Kind.LIST, tuple(values))

    @classmethod
    def of_mapping(cls, values: Mapping[str, DataValue]) -> DataValue:
        return cls(Kind.MAPPING, DataBag(values))

    @classmethod
    def from_raw(cls, raw: Any, *, path: str = "data") -> DataValue:
        if isinstance(raw, Mapping):
            return cls.of_mapping(
                {
                    str(k): cls.from_raw(v, path=f"{path}.{k}")
                    for k, v in raw.items()
                    # A null value reads as an absent key.
                    if v is not None
                }
            )
        elif isinstance(raw, (list, tuple)):
            items = []
            for i, item in enumerate(raw):
                if not _is_scalar(item):
                    raise errors.DescriptorError(
                        f"{path}[{i}]: lists in template data may only "
                        f"contain scalar values"
                    )
                items.append(_scalar_str(item))
            return cls.of_list(items)
        elif _is_scalar(raw):
            return cls.of_string(_scalar_str(raw))
        else:
            raise errors.DescriptorError(
                f"{path}: unsupported template data value {raw!r}"
            )

    def to_plain(self) -> PlainValue:
        if self.kind is Kind.STRING:
            return self.value
        elif self.kind is Kind.LIST:
            return list(self.value)
        else:
            return self.value.to_plain()


def _is_scalar(value: Any) -> bool:
    return value is not None and isinstance(value, (str, int, float, bool))


def _scalar_str(value: Any) -> str:
    if isinstance(value, bool):
        # YAML spelling, not Python's.
        return "true" if value else "false"
    return str(value)


class DataBag(Mapping[str, DataValue]):
    """Free-form template data with typed, fallible accessors."""

    def __init__(self, values: Mapping[str, DataValue] | None = None) -> None:
        self._values: dict[str, DataValue] = dict(values or {})

    @classmethod
    def from_raw(cls, raw: Any) -> DataBag:
        if raw is None:
            return cls()
        if not isinstance(raw, Mapping):
            raise errors.DescriptorError(
                f"data: expected a mapping, got {type(raw).__name__}"
            )
        value = DataValue.from_raw(raw)
        return value.value

    def __getitem__(self, key: str) -> DataValue:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"<DataBag {self.to_plain()!r}>"

    def _get(self, key: str, kind: Kind, default: Any) -> Any:
        try:
            value = self._values[key]
        except KeyError:
            if default is _missing:
                raise errors.TemplateError(
                    f"missing template data key {key!r}"
                ) from None
            return default
        if value.kind is not kind:
            raise errors.DataBagTypeError(key, kind.value, value.kind.value)
        return value.value

    def get_str(self, key: str, default: Any = None) -> str:
        return self._get(key, Kind.STRING, default)

    def get_list(self, key: str, default: Any = None) -> tuple[str, ...]:
        return self._get(key, Kind.LIST, default)

    def get_mapping(self, key: str, default: Any = None) -> DataBag:
        return self._get(key, Kind.MAPPING, default)

    def require_str(self, key: str) -> str:
        return self._get(key, Kind.STRING, _missing)

    def require_list(self, key: str) -> tuple[str, ...]:
        return self._get(key, Kind.LIST, _missing)

    def to_plain(self) -> dict[str, Any]:
        return {k: v.to_plain() for k, v in self._values.items()}


_missing = object()
