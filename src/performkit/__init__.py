"""performkit — service objects with a uniform, validated, transactional lifecycle."""

from performkit.domain.callbacks import CallbackEvent, on_fail, on_success
from performkit.domain.errors import ErrorCollector
from performkit.domain.lifecycle import ServiceState
from performkit.domain.schema import SchemaHandle, compile_schema, filled
from performkit.infrastructure.runtime import Runtime, current_runtime, use_runtime
from performkit.infrastructure.transactions import Commit, Rollback, RollbackSignal
from performkit.services.base import Service
from performkit.services.result import ServiceError, ServiceResult

__version__ = "0.1.0"

__all__ = [
    "CallbackEvent",
    "Commit",
    "ErrorCollector",
    "Rollback",
    "RollbackSignal",
    "Runtime",
    "SchemaHandle",
    "Service",
    "ServiceError",
    "ServiceResult",
    "ServiceState",
    "__version__",
    "compile_schema",
    "current_runtime",
    "filled",
    "on_fail",
    "on_success",
    "use_runtime",
]
