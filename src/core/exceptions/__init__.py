from src.core.exceptions.base import (
    AppException,
    NotFoundError,
    ValidationError,
    PriceNotDefinedError,
    AllocationMismatchError,
    UnknownBillingSourceError,
)

__all__ = [
    "AppException",
    "NotFoundError",
    "ValidationError",
    "PriceNotDefinedError",
    "AllocationMismatchError",
    "UnknownBillingSourceError",
]
