"""
Custom exception classes for the application.

Every error carries a stable code, an HTTP status and a details dict so
routes can hand it straight to the client via to_dict().
"""

from typing import Optional, Any
from datetime import datetime, timezone


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "RECEPTION_NOT_FOUND")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class DatabaseError(AppError):
    """Database operation failed (500)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )


# ===================
# RECEPTION ERRORS
# ===================

class ReceptionNotFoundError(NotFoundError):
    """Reception not found for this tenant."""

    def __init__(self, reception_id: str):
        super().__init__(
            resource="Reception",
            identifier=reception_id,
            code="RECEPTION_NOT_FOUND"
        )


class InvalidRecordError(ValidationError):
    """Stored row does not match its schema."""

    def __init__(self, resource: str, record_id: str, errors: list[dict]):
        super().__init__(
            code=f"{resource.upper()}_INVALID_RECORD",
            message=f"Stored {resource.lower()} {record_id} has an invalid shape",
            details={"id": record_id, "errors": errors}
        )


# ===================
# PALLET ERRORS
# ===================

class PartitionNotFoundError(NotFoundError):
    """No persisted pallet partition for this reception."""

    def __init__(self, reception_id: str):
        super().__init__(
            resource="Pallet partition",
            identifier=reception_id,
            code="PARTITION_NOT_FOUND"
        )


class PalletNotFoundError(NotFoundError):
    """Scanned code did not match any pallet."""

    def __init__(self, code: str):
        super().__init__(
            resource="Pallet",
            identifier=code,
            code="PALLET_NOT_FOUND"
        )


class InvalidPalletCapacityError(ValidationError):
    """Crates per pallet must be a positive integer."""

    def __init__(self, crates_per_pallet: Any, maximum: Optional[int] = None):
        if maximum is None:
            message = "Crates per pallet must be at least 1"
        else:
            message = f"Crates per pallet must be between 1 and {maximum}"
        super().__init__(
            code="PALLET_INVALID_CAPACITY",
            message=message,
            details={"provided": crates_per_pallet, "max": maximum}
        )


class InvalidPalletOverrideError(ValidationError):
    """Override ordinal or crate count out of range."""

    def __init__(self, ordinal: Any, crates: Any, reason: str):
        super().__init__(
            code="PALLET_INVALID_OVERRIDE",
            message=reason,
            details={"ordinal": ordinal, "crates": crates}
        )
