"""BoundArguments — named, read-only access to a service's arguments.

The exposed field set is fixed when the binder is built. With no schema
every supplied key is exposed; with a schema only the declared fields
(plus the bound context key) are, so undeclared input cannot leak into
execution logic by accident.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import Any


class BoundArguments(Mapping[str, Any]):
    """Read-only view of the arguments of record over a fixed field set."""

    __slots__ = ("_fields", "_values")

    def __init__(self, values: Mapping[str, Any], fields: frozenset[str]) -> None:
        object.__setattr__(self, "_fields", fields)
        object.__setattr__(
            self,
            "_values",
            MappingProxyType({name: values.get(name) for name in fields}),
        )

    @classmethod
    def unrestricted(cls, values: Mapping[str, Any]) -> BoundArguments:
        """Expose every key of *values*."""
        return cls(values, frozenset(values))

    @property
    def fields(self) -> frozenset[str]:
        return self._fields

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._values[name]
        except KeyError:
            msg = f"argument {name!r} is not exposed"
            raise AttributeError(msg) from None

    def __setattr__(self, name: str, value: Any) -> None:
        msg = "BoundArguments is read-only"
        raise AttributeError(msg)

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"BoundArguments({dict(self._values)!r})"
