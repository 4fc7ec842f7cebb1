"""
Exception taxonomy for the discovery engine.

- InvalidInputError: bad caller input, raised before any side effect.
- StoreUnavailableError: a store call still failing after its retry budget.

Missing entities and empty candidate pools are not exceptions; they degrade
to no-ops and empty results.
"""


class DiscoveryError(Exception):
    """Base class for discovery engine errors."""


class InvalidInputError(DiscoveryError, ValueError):
    """Missing required IDs, negative page sizes, unknown enum values."""


class StoreUnavailableError(DiscoveryError):
    """A signal store read or write failed after retrying."""

    def __init__(self, operation: str, cause: Exception):
        super().__init__(f"{operation} failed: {cause}")
        self.operation = operation
        self.cause = cause
