"""Schema binding — compile argument schemas and run them against raw input.

Rules themselves are pydantic's business. This module only turns the
three accepted schema sources into a :class:`SchemaHandle` and translates
pydantic's results into the ``field -> [messages]`` shape the rest of the
lifecycle works with.

Accepted sources for :func:`compile_schema`:

- a mapping of field specs, compiled with :func:`pydantic.create_model`
  (``{"email": filled(str), "age": (int | None, None)}``)
- a :class:`pydantic.BaseModel` subclass built elsewhere
- an existing :class:`SchemaHandle` (reused as-is, or re-bound to a
  different context key)

The ambient context (usually the acting user) is handed to pydantic as
validation context, so a validator can read it through
``ValidationInfo.context[<context_key>]`` without it being a field.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, ValidationError, create_model
from pydantic_core import PydanticCustomError

DEFAULT_CONTEXT_KEY = "context"
FILLED_MESSAGE = "must be filled"
ROOT_ERROR_KEY = "__root__"


def _reject_blank(value: Any) -> Any:
    if value is None:
        raise PydanticCustomError("filled", FILLED_MESSAGE)
    if isinstance(value, str) and not value.strip():
        raise PydanticCustomError("filled", FILLED_MESSAGE)
    if isinstance(value, (list, tuple, set, dict)) and not value:
        raise PydanticCustomError("filled", FILLED_MESSAGE)
    return value


def filled(tp: Any) -> Any:
    """Annotate *tp* so that ``None`` and blank values are rejected.

    A plain required pydantic field accepts ``""``; a filled one does not.
    """
    return Annotated[tp, BeforeValidator(_reject_blank)]


@dataclass(frozen=True)
class ValidationOutcome:
    """Result of running a schema against raw arguments."""

    success: bool
    output: dict[str, Any] = field(default_factory=dict)
    errors: dict[str, list[str]] = field(default_factory=dict)


def _error_key(loc: tuple[int | str, ...]) -> str:
    if not loc:
        return ROOT_ERROR_KEY
    return ".".join(str(part) for part in loc)


def errors_from_validation(exc: ValidationError) -> dict[str, list[str]]:
    """Group a pydantic ValidationError into ``field -> [messages]``."""
    grouped: dict[str, list[str]] = {}
    for err in exc.errors(include_url=False):
        grouped.setdefault(_error_key(err["loc"]), []).append(err["msg"])
    return grouped


@dataclass(frozen=True)
class SchemaHandle:
    """A compiled schema bound to a pydantic model.

    Attributes:
        model: The pydantic model that performs validation.
        context_key: Name under which the ambient context is passed to
            validators, and exposed as an argument accessor. ``None``
            means the context is passed as ``"context"`` but not exposed.
    """

    model: type[BaseModel]
    context_key: str | None = None

    @property
    def fields(self) -> frozenset[str]:
        """Names of the declared fields."""
        return frozenset(self.model.model_fields)

    @property
    def exposed_fields(self) -> frozenset[str]:
        """Field names that get argument accessors on a service."""
        if self.context_key is None:
            return self.fields
        return self.fields | {self.context_key}

    def run(self, raw: Mapping[str, Any], auxiliary: Any = None) -> ValidationOutcome:
        """Validate *raw* with *auxiliary* available as validation context."""
        key = self.context_key or DEFAULT_CONTEXT_KEY
        try:
            instance = self.model.model_validate(dict(raw), context={key: auxiliary})
        except ValidationError as exc:
            return ValidationOutcome(success=False, errors=errors_from_validation(exc))
        return ValidationOutcome(success=True, output=instance.model_dump())


def _field_definitions(specs: Mapping[str, Any]) -> dict[str, Any]:
    definitions: dict[str, Any] = {}
    for name, spec in specs.items():
        if isinstance(spec, tuple):
            definitions[name] = spec
        else:
            # A bare annotation means "required"; create_model would
            # otherwise read it as a default value.
            definitions[name] = (spec, ...)
    return definitions


def compile_schema(
    source: Mapping[str, Any] | type[BaseModel] | SchemaHandle,
    *,
    name: str | None = None,
    context_key: str | None = None,
) -> SchemaHandle:
    """Compile *source* into a :class:`SchemaHandle`.

    Raises:
        TypeError: If *source* is not one of the accepted schema sources.
    """
    if isinstance(source, SchemaHandle):
        if context_key is None or context_key == source.context_key:
            return source
        return SchemaHandle(model=source.model, context_key=context_key)

    if isinstance(source, type) and issubclass(source, BaseModel):
        return SchemaHandle(model=source, context_key=context_key)

    if isinstance(source, Mapping):
        model = create_model(
            name or "ArgumentsSchema",
            __config__=ConfigDict(extra="ignore"),
            **_field_definitions(source),
        )
        return SchemaHandle(model=model, context_key=context_key)

    msg = f"Unsupported schema source: {type(source).__name__}"
    raise TypeError(msg)
