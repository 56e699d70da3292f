"""
Error taxonomy of the pets provider.

Every error raised by the provider derives from ``PetsProviderError``
so callers (e.g. a presentation layer mapping errors to messages) can
catch the whole family at once.
"""

from typing import Any, Dict, List, Optional


class PetsProviderError(Exception):
    """Base exception for all provider errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class RoutingError(PetsProviderError):
    """Raised when a locator does not match any known shape."""

    def __init__(self, locator: Any, reason: str = "unrecognized locator"):
        super().__init__(
            message=f"{reason}: {locator}", details={"locator": locator}
        )
        self.locator = locator


class ValidationError(PetsProviderError):
    """Raised when a field violates its constraint on insert or update.

    ``errors`` holds one ``{"field": ..., "message": ...}`` entry per
    violation.
    """

    def __init__(self, errors: List[Dict[str, str]]):
        self.errors = errors
        summary = "; ".join(f"{e['field']}: {e['message']}" for e in errors)
        super().__init__(
            message=f"Invalid pet data ({summary})", details={"errors": errors}
        )


class UnsupportedOperationError(PetsProviderError):
    """Raised when a valid locator is used with an operation its shape does not support."""

    def __init__(self, operation: str, locator: str):
        super().__init__(
            message=f"{operation.capitalize()} is not supported for {locator}",
            details={"operation": operation, "locator": locator},
        )


class StoreError(PetsProviderError):
    """The persistence layer rejected a statement."""

    def __init__(self, operation: str, reason: str):
        super().__init__(
            message=f"Store {operation} failed: {reason}",
            details={"operation": operation, "reason": reason},
        )
