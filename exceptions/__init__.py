"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    DatabaseError,

    # Receptions
    ReceptionNotFoundError,
    InvalidRecordError,

    # Pallets
    PartitionNotFoundError,
    PalletNotFoundError,
    InvalidPalletCapacityError,
    InvalidPalletOverrideError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "DatabaseError",

    # Receptions
    "ReceptionNotFoundError",
    "InvalidRecordError",

    # Pallets
    "PartitionNotFoundError",
    "PalletNotFoundError",
    "InvalidPalletCapacityError",
    "InvalidPalletOverrideError",
]
