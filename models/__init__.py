"""
Pydantic models for validation and serialization.
"""

from models.base import (
    BaseSchema,
    TimestampMixin,
)
from models.reception import Reception
from models.pallet import (
    Pallet,
    Partition,
    PartitionRecord,
    ConsistencyStatus,
    ConsistencyReport,
    AllocationRequest,
    AllocationView,
    PalletConfigResponse,
    PalletLookupResult,
)
from models.ticket import (
    PalletTicket,
    TicketBatch,
)

__all__ = [
    # Base
    "BaseSchema",
    "TimestampMixin",

    # Reception
    "Reception",

    # Pallets
    "Pallet",
    "Partition",
    "PartitionRecord",
    "ConsistencyStatus",
    "ConsistencyReport",
    "AllocationRequest",
    "AllocationView",
    "PalletConfigResponse",
    "PalletLookupResult",

    # Tickets
    "PalletTicket",
    "TicketBatch",
]
