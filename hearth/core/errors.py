"""Domain errors returned to callers of the core.

None of these are recovered inside the core. StoreUnavailable is the only
retryable kind; the others need a different input.
"""

from __future__ import annotations

from hearth.ports.store_port import StoreUnavailable


class HearthError(Exception):
    """Base class for every failure the core reports."""

    retryable = False


class NotFound(HearthError):
    """A code, household, member, chore or item id does not resolve."""


class ValidationError(HearthError):
    """Input rejected before touching the store (empty name, bad code...)."""


class Conflict(HearthError):
    """Join-code generation kept colliding past the retry bound."""


# Everything the core may raise at a caller, StoreUnavailable included
# (adapters raise it, so it lives with the store port).
CORE_ERRORS: tuple[type[Exception], ...] = (HearthError, StoreUnavailable)

__all__ = [
    "CORE_ERRORS",
    "Conflict",
    "HearthError",
    "NotFound",
    "StoreUnavailable",
    "ValidationError",
]
