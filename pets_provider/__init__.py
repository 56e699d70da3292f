"""
Top‑level package for the pets provider.

The public entry point is ``PetProvider``; the contract (locators,
column names, gender values) and the error taxonomy are re-exported
here so callers need a single import.
"""

from .app.core.contract import CONTRACT, Gender, PetContract
from .app.core.exceptions import (
    PetsProviderError,
    RoutingError,
    StoreError,
    UnsupportedOperationError,
    ValidationError,
)
from .app.services.pet_provider import PetProvider, QueryResult

__all__ = [
    "CONTRACT",
    "Gender",
    "PetContract",
    "PetProvider",
    "PetsProviderError",
    "QueryResult",
    "RoutingError",
    "StoreError",
    "UnsupportedOperationError",
    "ValidationError",
]
