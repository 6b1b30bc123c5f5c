"""Exception types raised by the service lifecycle.

These are programmer errors: they are raised to the caller and never
recorded as service errors.
"""

from __future__ import annotations


class PerformkitError(Exception):
    """Base class for performkit errors."""


class ServiceUsageError(PerformkitError):
    """A service was driven in a way the lifecycle does not allow."""


class MissingTransactionProvider(PerformkitError):
    """A transactional block ran without a transaction provider."""
