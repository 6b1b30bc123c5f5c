"""Service — the lifecycle state machine every business operation follows.

A service is constructed with a context (the acting principal) and an
argument mapping, validates those arguments against the schema declared
on its type, runs ``execute()`` once, settles to success or failure, and
then runs the callbacks registered for that outcome.

Per-type declarations (schema and callbacks) are compiled once, in
``__init_subclass__``, into an immutable :class:`ServiceDefinition`. A
subclass starts from a copy of its parent's definition.

Usage::

    class CreateUser(Service):
        schema = {"email": filled(str), "name": (str | None, None)}

        def execute(self) -> None:
            self.within_transaction(self._insert)

        def _insert(self, conn: Connection) -> bool:
            conn.execute(insert(users).values(email=self.email, name=self.name))
            return True

        @on_success
        def send_welcome(self) -> None:
            mailer.welcome(self.email)

    service = CreateUser(current_user, {"email": "a@example.com"})
    service.execute()
    service.succeeded  # True
"""

from __future__ import annotations

import functools
import logging
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, ClassVar

import structlog

from performkit.domain.arguments import BoundArguments
from performkit.domain.callbacks import (
    CallbackEntry,
    CallbackEvent,
    CallbackRegistry,
    collect_declared,
)
from performkit.domain.errors import ErrorCollector
from performkit.domain.lifecycle import ServiceState, can_transition
from performkit.domain.schema import SchemaHandle, compile_schema
from performkit.infrastructure.runtime import Runtime, current_runtime
from performkit.infrastructure.transactions import (
    Commit,
    Rollback,
    TransactionOutcome,
    as_outcome,
)
from performkit.services.exceptions import MissingTransactionProvider, ServiceUsageError
from performkit.services.result import ServiceError, ServiceResult

logger = logging.getLogger(__name__)

_GUARDED = "__performkit_guarded__"
_SNAKE_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


@dataclass(frozen=True)
class ServiceDefinition:
    """Type-level declarations shared by every instance of a service."""

    schema: SchemaHandle | None = None
    callbacks: CallbackRegistry = field(default_factory=CallbackRegistry)


def _guard_execute(func: Callable[..., Any]) -> Callable[..., Any]:
    """Make *func* a no-op unless the service is still pending."""

    @functools.wraps(func)
    def execute(self: Service, *args: Any, **kwargs: Any) -> Any:
        if self._state.is_settled:
            logger.debug(
                "Skipping execute of %s: already %s", type(self).__name__, self._state
            )
            return None
        with structlog.contextvars.bound_contextvars(service=type(self).__name__):
            return func(self, *args, **kwargs)

    setattr(execute, _GUARDED, True)
    return execute


class Service:
    """Base class for services. Subclasses implement :meth:`execute`.

    Class attributes:
        schema: Optional schema source (field-spec mapping, pydantic model,
            or :class:`SchemaHandle`). Redeclaring it in a subclass replaces
            the inherited schema; ``None`` removes validation.
        schema_context_key: Name under which the context is passed to the
            schema's validators and exposed as an argument accessor.

    Validation runs in ``__init__``, and a failed validation settles the
    service there, so ``on_fail`` callbacks run before ``__init__``
    returns. A subclass ``__init__`` must set any attribute its callbacks
    read *before* calling ``super().__init__()``.
    """

    schema: ClassVar[Any] = None
    schema_context_key: ClassVar[str | None] = None
    __service_definition__: ClassVar[ServiceDefinition] = ServiceDefinition()

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        inherited = cls.__service_definition__

        schema = inherited.schema
        if "schema" in cls.__dict__:
            source = cls.__dict__["schema"]
            schema = (
                None
                if source is None
                else compile_schema(
                    source,
                    name=f"{cls.__name__}Schema",
                    context_key=cls.schema_context_key,
                )
            )
        elif "schema_context_key" in cls.__dict__ and schema is not None:
            schema = SchemaHandle(model=schema.model, context_key=cls.schema_context_key)

        declared = collect_declared(dict(cls.__dict__), inherited.callbacks)
        cls.__service_definition__ = ServiceDefinition(
            schema=schema,
            callbacks=inherited.callbacks.extended(declared),
        )

        own_execute = cls.__dict__.get("execute")
        if own_execute is not None and not getattr(own_execute, _GUARDED, False):
            cls.execute = _guard_execute(own_execute)  # type: ignore[method-assign]

    @classmethod
    def register_callback(
        cls,
        event: CallbackEvent | str,
        handler: str | Callable[[Any], Any],
    ) -> None:
        """Append *handler* to this type's callbacks for *event*.

        Subclasses created before the call keep the registry they copied.
        """
        defn = cls.__service_definition__
        entry = CallbackEntry(event=CallbackEvent(event), handler=handler)
        cls.__service_definition__ = replace(defn, callbacks=defn.callbacks.extended([entry]))

    @classmethod
    def definition(cls) -> ServiceDefinition:
        return cls.__service_definition__

    @classmethod
    def operation_name(cls) -> str:
        """Snake-case class name, e.g. ``CreateUser`` -> ``create_user``."""
        return _SNAKE_BOUNDARY.sub("_", cls.__name__).lower()

    def __init__(
        self,
        context: Any = None,
        arguments: Mapping[str, Any] | None = None,
        /,
        *,
        runtime: Runtime | None = None,
    ) -> None:
        self._context = context
        self._raw_arguments: Mapping[str, Any] = MappingProxyType(dict(arguments or {}))
        self._runtime = runtime if runtime is not None else current_runtime()
        self._state = ServiceState.PENDING
        self._errors = ErrorCollector()
        self._warnings: list[str] = []
        self._validation_failed = False
        self._transaction_open = False
        self._requested: ServiceState | None = None

        self._arguments = self._bind(self.validate())
        if self._validation_failed:
            self._settle(ServiceState.FAILED)

    # ------------------------------------------------------------------
    # Arguments
    # ------------------------------------------------------------------

    def validate(self) -> Mapping[str, Any]:
        """Run the type's schema and return the arguments of record.

        Without a schema the raw arguments are returned untouched. A
        failed validation records its errors and keeps the raw arguments.
        """
        schema = self.definition().schema
        if schema is None:
            return self._raw_arguments

        outcome = schema.run(self._raw_arguments, self._context)
        if not outcome.success:
            logger.debug("Validation failed for %s: %s", type(self).__name__, outcome.errors)
            self._validation_failed = True
            self.record_errors(outcome.errors)
            return self._raw_arguments
        return outcome.output

    def _bind(self, values: Mapping[str, Any]) -> BoundArguments:
        schema = self.definition().schema
        if schema is None:
            return BoundArguments.unrestricted(values)
        if schema.context_key is not None:
            values = {**values, schema.context_key: self._context}
        return BoundArguments(values, schema.exposed_fields)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        arguments = self.__dict__.get("_arguments")
        if arguments is None or name not in arguments.fields:
            msg = f"{type(self).__name__!s} has no argument {name!r}"
            raise AttributeError(msg)
        return arguments[name]

    def __setattr__(self, name: str, value: Any) -> None:
        arguments = self.__dict__.get("_arguments")
        if arguments is not None and name in arguments.fields:
            msg = f"argument {name!r} is read-only"
            raise AttributeError(msg)
        super().__setattr__(name, value)

    @property
    def context(self) -> Any:
        return self._context

    @property
    def raw_arguments(self) -> Mapping[str, Any]:
        return self._raw_arguments

    @property
    def arguments(self) -> BoundArguments:
        """The arguments of record, restricted to the exposed fields."""
        return self._arguments

    @property
    def runtime(self) -> Runtime | None:
        return self._runtime

    # ------------------------------------------------------------------
    # Errors
    # ------------------------------------------------------------------

    @property
    def errors(self) -> ErrorCollector:
        return self._errors

    @property
    def has_errors(self) -> bool:
        return self._errors.has_errors

    def record_errors(self, errors_by_field: Mapping[str, Any]) -> None:
        """Merge field-keyed errors; never changes the lifecycle state.

        Raises:
            TypeError: If *errors_by_field* is not a mapping.
        """
        self._errors.record(errors_by_field)

    @property
    def warnings(self) -> list[str]:
        return list(self._warnings)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> ServiceState:
        return self._state

    @property
    def pending(self) -> bool:
        return self._state is ServiceState.PENDING

    @property
    def succeeded(self) -> bool:
        return self._state is ServiceState.SUCCESS

    @property
    def failed(self) -> bool:
        return self._state is ServiceState.FAILED

    def success(self) -> bool:
        """Settle to success (inside a transaction: request it). False if already settled."""
        return self._settle(ServiceState.SUCCESS)

    def fail(self) -> bool:
        """Settle to failure (inside a transaction: request it). False if already settled."""
        return self._settle(ServiceState.FAILED)

    def _settle(self, target: ServiceState) -> bool:
        if not can_transition(self._state, target):
            logger.debug(
                "Ignoring %s transition of %s: already %s",
                target,
                type(self).__name__,
                self._state,
            )
            return False

        if self._transaction_open:
            # The transaction's actual outcome settles the service.
            if self._requested is not None:
                logger.debug(
                    "Ignoring %s request of %s: %s already requested",
                    target,
                    type(self).__name__,
                    self._requested,
                )
                return False
            self._requested = target
            return True

        self._state = target
        logger.debug(
            "%s settled: %s",
            type(self).__name__,
            target,
            extra={"op": self.operation_name(), "state": target.value},
        )
        self._dispatch()
        return True

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def execute(self) -> None:
        """Run the service's logic. Subclasses must override."""
        raise NotImplementedError(f"{type(self).__name__} must implement execute()")

    def within_transaction(self, block: Callable[[Any], Any]) -> TransactionOutcome | None:
        """Run *block* inside a transaction and settle from its outcome.

        *block* receives the provider's transaction handle. Its return value
        decides the outcome: ``Commit``/``Rollback`` explicitly, otherwise
        truthy commits and falsy rolls back. Calling :meth:`success` or
        :meth:`fail` inside the block only requests that outcome: ``fail()``
        turns a commit into a rollback, ``success()`` a falsy return into a
        commit. The service then settles from what the provider actually
        did, so a rollback always settles to failure. ``RollbackSignal``
        raised inside rolls back quietly; any other exception rolls back and
        propagates, discarding any request and leaving the service pending.

        Returns the outcome, or None when the service was already settled.

        Raises:
            ServiceUsageError: If a transaction is already open for this service.
            MissingTransactionProvider: If no runtime provides transactions.
        """
        if self._state.is_settled:
            logger.debug(
                "Skipping transaction for %s: already %s", type(self).__name__, self._state
            )
            return None
        if self._transaction_open:
            raise ServiceUsageError(f"{type(self).__name__} already has an open transaction")
        if self._runtime is None or not self._runtime.has_transactions:
            raise MissingTransactionProvider(
                f"{type(self).__name__} has no transaction provider; "
                "pass runtime= or use use_runtime()"
            )
        provider = self._runtime.transactions

        self._transaction_open = True
        try:
            outcome = provider.run_in_transaction(functools.partial(self._run_block, block))
        except BaseException:
            if self._requested is not None:
                logger.warning(
                    "Discarding %s requested by %s: transaction raised",
                    self._requested,
                    type(self).__name__,
                )
            raise
        finally:
            self._transaction_open = False
            self._requested = None

        if isinstance(outcome, Commit):
            self._settle(ServiceState.SUCCESS)
        else:
            self._settle(ServiceState.FAILED)
        return outcome

    def _run_block(self, block: Callable[[Any], Any], handle: Any) -> TransactionOutcome:
        outcome = as_outcome(block(handle))
        # A settlement requested inside the block decides the transaction.
        if self._requested is ServiceState.FAILED and isinstance(outcome, Commit):
            return Rollback(reason="service failed inside transaction")
        if self._requested is ServiceState.SUCCESS and isinstance(outcome, Rollback):
            return Commit()
        return outcome

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _dispatch(self) -> None:
        event = CallbackEvent.SUCCESS if self.succeeded else CallbackEvent.FAIL
        for entry in self.definition().callbacks.for_event(event):
            entry.invoke(self)
        self._notify_plugins()

    def _notify_plugins(self) -> None:
        """Tell lifecycle plugins about the settlement.

        INVARIANT: Plugin failures are warnings, never errors.
        """
        plugins = self._runtime.plugins if self._runtime is not None else None
        if plugins is None:
            return
        try:
            plugins.hook.service_settled(
                service=self.operation_name(),
                state=self._state.value,
                errors=self._errors.to_dict(),
            )
        except Exception:
            logger.debug("Plugin notification failed for %s", type(self).__name__, exc_info=True)
            self._warnings.append(f"Plugin notification failed for {self.operation_name()}")

    # ------------------------------------------------------------------
    # Result
    # ------------------------------------------------------------------

    def result_data(self) -> dict[str, Any]:
        """Payload for :meth:`to_result`. Override to expose output."""
        return {}

    def to_result(self) -> ServiceResult:
        """Snapshot the service as a serializable :class:`ServiceResult`."""
        op = self.operation_name()
        error: ServiceError | None = None
        if self.failed:
            code = "VALIDATION_FAILED" if self._validation_failed else "FAILED"
            error = ServiceError(
                code=code,
                message=f"{op} failed",
                detail={"errors": self._errors.to_dict()},
            )
        elif self.pending:
            error = ServiceError(code="NOT_SETTLED", message=f"{op} has not settled")

        return ServiceResult(
            ok=self.succeeded,
            op=op,
            state=self._state.value,
            data=self.result_data(),
            errors=self._errors.to_dict(),
            warnings=list(self._warnings),
            error=error,
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} state={self._state.value}>"


Service.execute = _guard_execute(Service.__dict__["execute"])  # type: ignore[method-assign]
