"""
Business logic services.

Each service handles one domain area.
"""

from services.pallet_reference_service import generate_pallet_reference, client_code
from services.allocation_service import compute_partition, pallet_count
from services.override_store import OverrideStore
from services.consistency_service import check_consistency
from services.reception_service import ReceptionService, get_reception_service
from services.partition_service import PartitionService, get_partition_service
from services.allocation_session import AllocationSession
from services.ticket_service import TicketService, get_ticket_service
from services.pallet_lookup_service import (
    PalletLookupService,
    LookupStrategy,
    get_pallet_lookup_service,
)

__all__ = [
    "generate_pallet_reference",
    "client_code",
    "compute_partition",
    "pallet_count",
    "OverrideStore",
    "check_consistency",
    "ReceptionService",
    "get_reception_service",
    "PartitionService",
    "get_partition_service",
    "AllocationSession",
    "TicketService",
    "get_ticket_service",
    "PalletLookupService",
    "LookupStrategy",
    "get_pallet_lookup_service",
]
