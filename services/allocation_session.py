"""
Allocation session - operator edits for one reception.

Opening a reception without a saved partition starts from the default
capacity and no overrides; the partition stays transient until save().
Opening a saved reception resumes from the stored capacity and overrides,
and keeps the date printed on the stored references so reprinted labels
match the ones already on the pallets.
"""

from datetime import date
from typing import Optional

import structlog

from config import settings
from models.pallet import AllocationRequest, AllocationView, ConsistencyReport, Partition, PartitionRecord
from models.reception import Reception
from exceptions import InvalidPalletCapacityError
from services.allocation_service import compute_partition
from services.consistency_service import check_consistency
from services.override_store import OverrideStore
from services.pallet_reference_service import parse_reference_date
from services.partition_service import PartitionService, get_partition_service
from services.reception_service import ReceptionService, get_reception_service

logger = structlog.get_logger(__name__)


def _stored_reference_date(record: PartitionRecord) -> date:
    """Date already printed on the stored pallets, else the record's creation day."""
    for pallet in record.pallets:
        parsed = parse_reference_date(pallet.reference)
        if parsed is not None:
            return parsed
    return record.created_at.date()


class AllocationSession:
    """
    Editable allocation state for one reception.

    Every read of `partition` recomputes from the current capacity and
    overrides; nothing derived is cached.
    """

    def __init__(
        self,
        tenant_id: str,
        reception: Reception,
        record: Optional[PartitionRecord] = None,
        default_crates_per_pallet: Optional[int] = None,
        today: Optional[date] = None
    ):
        self.tenant_id = tenant_id
        self.reception = reception

        if record is not None:
            self._crates_per_pallet = record.crates_per_pallet
            self.overrides = OverrideStore(record.custom_pallet_crates)
            self.partition_id: Optional[str] = record.id
            self.reference_date = _stored_reference_date(record)
        else:
            self._crates_per_pallet = default_crates_per_pallet or settings.default_crates_per_pallet
            self.overrides = OverrideStore()
            self.partition_id = None
            self.reference_date = today or date.today()

        if self._crates_per_pallet < 1:
            raise InvalidPalletCapacityError(self._crates_per_pallet)

    @classmethod
    def open(
        cls,
        tenant_id: str,
        reception_id: str,
        reception_service: Optional[ReceptionService] = None,
        partition_service: Optional[PartitionService] = None
    ) -> "AllocationSession":
        """
        Load a reception and its saved partition, if any.

        Raises:
            ReceptionNotFoundError: If the reception does not exist
            DatabaseError: If a query fails
        """
        reception_service = reception_service or get_reception_service()
        partition_service = partition_service or get_partition_service()

        reception = reception_service.get_by_id(tenant_id, reception_id)
        record = partition_service.get_by_reception(tenant_id, reception_id)

        logger.info(
            "allocation_session_opened",
            tenant_id=tenant_id,
            reception_id=reception_id,
            resumed=record is not None
        )
        return cls(tenant_id, reception, record)

    # ===================
    # EDITS
    # ===================

    @property
    def crates_per_pallet(self) -> int:
        return self._crates_per_pallet

    def set_crates_per_pallet(self, crates_per_pallet: int) -> None:
        """Change capacity. Overrides are kept."""
        if crates_per_pallet < 1:
            raise InvalidPalletCapacityError(crates_per_pallet)
        if crates_per_pallet != self._crates_per_pallet:
            self._crates_per_pallet = crates_per_pallet
            self.overrides.mark_dirty()

    def set_override(self, ordinal: int, crates: int) -> None:
        self.overrides.set(ordinal, crates)

    def reset_overrides(self) -> None:
        self.overrides.reset_all()

    def apply(self, request: AllocationRequest) -> None:
        """Apply a batch of edits: reset, then capacity, then overrides."""
        if request.reset_overrides:
            self.reset_overrides()
        if request.crates_per_pallet is not None:
            self.set_crates_per_pallet(request.crates_per_pallet)
        for ordinal, crates in sorted(request.overrides.items()):
            self.set_override(ordinal, crates)

    # ===================
    # DERIVED STATE
    # ===================

    @property
    def partition(self) -> Partition:
        return compute_partition(
            self.reception.total_crates,
            self._crates_per_pallet,
            self.overrides.as_dict(),
            client_name=self.reception.client_name,
            reference_date=self.reference_date,
            reception_id=self.reception.id,
        )

    @property
    def consistency(self) -> ConsistencyReport:
        return check_consistency(self.partition)

    @property
    def is_saved(self) -> bool:
        """Persisted and no edits since."""
        return self.partition_id is not None and not self.overrides.is_dirty

    def view(self) -> AllocationView:
        partition = self.partition
        return AllocationView(
            reception=self.reception,
            partition=partition,
            consistency=check_consistency(partition),
            partition_id=self.partition_id,
            saved=self.is_saved,
            reference_date=self.reference_date,
        )

    # ===================
    # PERSISTENCE
    # ===================

    def save(self, partition_service: Optional[PartitionService] = None) -> str:
        """
        Persist the current partition.

        Shortfalls are saved as they are; the consistency report is advisory.

        Returns:
            Partition record id

        Raises:
            DatabaseError: If the write fails (state stays dirty)
        """
        partition_service = partition_service or get_partition_service()
        partition = self.partition

        self.partition_id = partition_service.save(
            self.tenant_id,
            self.reception.id,
            partition,
            client_id=self.reception.client_id,
            client_name=self.reception.client_name,
        )
        self.overrides.mark_saved()
        return self.partition_id
