"""
Reception Service - read-only access to receptions.

Receptions are written by the reception workflow; this service only
loads and validates them for allocation.
"""

from typing import Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from config import get_supabase_client, settings
from models.reception import Reception
from exceptions import (
    ReceptionNotFoundError,
    InvalidRecordError,
    DatabaseError,
)

logger = structlog.get_logger(__name__)


def reception_from_row(row: dict) -> Reception:
    """
    Validate a stored reception row.

    Raises:
        InvalidRecordError: If the row does not match the schema
    """
    try:
        return Reception.model_validate(row)
    except PydanticValidationError as e:
        raise InvalidRecordError(
            "Reception",
            str(row.get("id")),
            e.errors(include_url=False, include_context=False, include_input=False)
        ) from e


class ReceptionService:
    """
    Reception lookups scoped by tenant.
    """

    def __init__(self):
        self.db = get_supabase_client()
        self.table = settings.receptions_table

    def get_by_id(self, tenant_id: str, reception_id: str) -> Reception:
        """
        Get reception by ID.

        Args:
            tenant_id: Owning tenant
            reception_id: Reception UUID

        Returns:
            Reception

        Raises:
            ReceptionNotFoundError: If not found for this tenant
            InvalidRecordError: If the stored row is malformed
        """
        logger.debug("getting_reception", tenant_id=tenant_id, reception_id=reception_id)

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("tenant_id", tenant_id)
                .eq("id", reception_id)
                .execute()
            )
        except Exception as e:
            logger.error(
                "get_reception_failed",
                tenant_id=tenant_id,
                reception_id=reception_id,
                error=str(e)
            )
            raise DatabaseError("select", str(e))

        if not result.data:
            raise ReceptionNotFoundError(reception_id)

        return reception_from_row(result.data[0])

    def find_by_id(self, tenant_id: str, reception_id: str) -> Optional[Reception]:
        """Like get_by_id(), but None when missing."""
        try:
            return self.get_by_id(tenant_id, reception_id)
        except ReceptionNotFoundError:
            return None


# Singleton instance
_reception_service: Optional[ReceptionService] = None


def get_reception_service() -> ReceptionService:
    """Get or create ReceptionService instance."""
    global _reception_service
    if _reception_service is None:
        _reception_service = ReceptionService()
    return _reception_service
