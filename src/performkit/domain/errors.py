"""ErrorCollector — append-only, field-keyed error accumulation.

Errors recorded twice under the same key are concatenated, never
overwritten:

    >>> errors = ErrorCollector()
    >>> errors.record({"name": "taken"})
    >>> errors.record({"name": ["too short"]})
    >>> errors.to_dict()
    {'name': ['taken', 'too short']}
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any


def _as_list(value: Any) -> list[Any]:
    if isinstance(value, list):
        return list(value)
    if isinstance(value, tuple):
        return list(value)
    return [value]


class ErrorCollector(Mapping[str, Any]):
    """Read-only mapping of field key to error message(s).

    The only mutation is :meth:`record`; there is no way to remove or
    replace an entry once it exists.
    """

    def __init__(self) -> None:
        self._errors: dict[str, Any] = {}

    def record(self, errors_by_field: Mapping[str, Any]) -> None:
        """Merge *errors_by_field* into the collector.

        Raises:
            TypeError: If *errors_by_field* is not a mapping.
        """
        if not isinstance(errors_by_field, Mapping):
            msg = f"errors must be a mapping, got {type(errors_by_field).__name__}"
            raise TypeError(msg)

        for key, value in errors_by_field.items():
            if key in self._errors:
                self._errors[key] = _as_list(self._errors[key]) + _as_list(value)
            else:
                self._errors[key] = list(value) if isinstance(value, list) else value

    @property
    def has_errors(self) -> bool:
        return bool(self._errors)

    def to_dict(self) -> dict[str, Any]:
        """Plain-dict copy, safe to hand to serializers."""
        return {k: list(v) if isinstance(v, list) else v for k, v in self._errors.items()}

    def __getitem__(self, key: str) -> Any:
        return self._errors[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._errors)

    def __len__(self) -> int:
        return len(self._errors)

    def __repr__(self) -> str:
        return f"ErrorCollector({self._errors!r})"
