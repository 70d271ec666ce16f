"""
Partition Service - persistence for pallet partitions.

One record per (tenant_id, reception_id) in the pallet_collections table.
Saving looks the record up first and updates it in place, so repeated
saves never create duplicates. There is no locking: when two operators
save the same reception, the last save wins.
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

import structlog
from pydantic import ValidationError as PydanticValidationError

from config import get_supabase_client, settings
from models.pallet import Partition, PartitionRecord
from exceptions import (
    PartitionNotFoundError,
    InvalidRecordError,
    DatabaseError,
)

logger = structlog.get_logger(__name__)


def partition_record_from_row(row: dict) -> PartitionRecord:
    """
    Validate a stored partition row.

    Raises:
        InvalidRecordError: If the row does not match the schema
    """
    try:
        return PartitionRecord.model_validate(row)
    except PydanticValidationError as e:
        raise InvalidRecordError(
            "Partition",
            str(row.get("id")),
            e.errors(include_url=False, include_context=False, include_input=False)
        ) from e


class PartitionService:
    """
    Load and save pallet partitions.
    """

    def __init__(self):
        self.db = get_supabase_client()
        self.table = settings.pallet_collections_table

    # ===================
    # READ OPERATIONS
    # ===================

    def get_by_reception(self, tenant_id: str, reception_id: str) -> Optional[PartitionRecord]:
        """
        Get the persisted partition for a reception.

        Args:
            tenant_id: Owning tenant
            reception_id: Reception UUID

        Returns:
            PartitionRecord, or None if the reception was never saved

        Raises:
            InvalidRecordError: If the stored row is malformed
            DatabaseError: If the query fails
        """
        logger.debug("getting_partition", tenant_id=tenant_id, reception_id=reception_id)

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("tenant_id", tenant_id)
                .eq("reception_id", reception_id)
                .execute()
            )
        except Exception as e:
            logger.error(
                "get_partition_failed",
                tenant_id=tenant_id,
                reception_id=reception_id,
                error=str(e)
            )
            raise DatabaseError("select", str(e))

        if not result.data:
            return None

        if len(result.data) > 1:
            # Older clients could insert twice; the first row is authoritative.
            logger.warning(
                "duplicate_partitions_found",
                tenant_id=tenant_id,
                reception_id=reception_id,
                count=len(result.data)
            )

        return partition_record_from_row(result.data[0])

    def require_by_reception(self, tenant_id: str, reception_id: str) -> PartitionRecord:
        """
        Like get_by_reception(), but raises when missing.

        Raises:
            PartitionNotFoundError: If the reception was never saved
        """
        record = self.get_by_reception(tenant_id, reception_id)
        if record is None:
            raise PartitionNotFoundError(reception_id)
        return record

    # ===================
    # SAVE
    # ===================

    def save(
        self,
        tenant_id: str,
        reception_id: str,
        partition: Partition,
        client_id: Optional[str] = None,
        client_name: Optional[str] = None
    ) -> str:
        """
        Create or update the partition for a reception.

        An existing record gets crates_per_pallet, custom_pallet_crates,
        pallets and updated_at overwritten and keeps its id. Otherwise a
        new record is created with created_at = updated_at = now.

        Args:
            tenant_id: Owning tenant
            reception_id: Reception UUID
            partition: Partition to persist
            client_id: Stored on creation only
            client_name: Stored on creation only

        Returns:
            Record id

        Raises:
            DatabaseError: If the lookup or write fails
        """
        now = datetime.now(timezone.utc).isoformat()
        payload = {
            "crates_per_pallet": partition.crates_per_pallet,
            "custom_pallet_crates": {str(k): v for k, v in sorted(partition.overrides.items())},
            "pallets": [p.to_record() for p in partition.pallets],
            "updated_at": now,
        }

        existing = self._find_id(tenant_id, reception_id)

        if existing:
            logger.info(
                "updating_partition",
                partition_id=existing,
                tenant_id=tenant_id,
                reception_id=reception_id,
                pallets=len(partition.pallets)
            )
            try:
                self.db.table(self.table).update(payload).eq("id", existing).execute()
            except Exception as e:
                logger.error("update_partition_failed", partition_id=existing, error=str(e))
                raise DatabaseError("update", str(e))

            logger.info("partition_saved", partition_id=existing, created=False)
            return existing

        logger.info(
            "creating_partition",
            tenant_id=tenant_id,
            reception_id=reception_id,
            pallets=len(partition.pallets)
        )
        new_id = str(uuid4())
        try:
            result = self.db.table(self.table).insert({
                "id": new_id,
                "tenant_id": tenant_id,
                "reception_id": reception_id,
                "client_id": client_id,
                "client_name": client_name,
                "total_crates": partition.total_crates,
                "created_at": now,
                **payload,
            }).execute()
        except Exception as e:
            logger.error(
                "create_partition_failed",
                tenant_id=tenant_id,
                reception_id=reception_id,
                error=str(e)
            )
            raise DatabaseError("insert", str(e))

        partition_id = result.data[0]["id"] if result.data else new_id
        logger.info("partition_saved", partition_id=partition_id, created=True)
        return partition_id

    def _find_id(self, tenant_id: str, reception_id: str) -> Optional[str]:
        """Id of the existing record for a reception, without validating it."""
        try:
            result = (
                self.db.table(self.table)
                .select("id")
                .eq("tenant_id", tenant_id)
                .eq("reception_id", reception_id)
                .execute()
            )
        except Exception as e:
            logger.error(
                "find_partition_failed",
                tenant_id=tenant_id,
                reception_id=reception_id,
                error=str(e)
            )
            raise DatabaseError("select", str(e))

        return result.data[0]["id"] if result.data else None


# Singleton instance
_partition_service: Optional[PartitionService] = None


def get_partition_service() -> PartitionService:
    """Get or create PartitionService instance."""
    global _partition_service
    if _partition_service is None:
        _partition_service = PartitionService()
    return _partition_service
