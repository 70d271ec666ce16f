"""
Ticket Service - printable label payloads for pallets.

Each ticket carries the QR payload the scanner reads back later. Printing
must not wait on storage: tickets are built from the in-memory partition
even when saving it fails.
"""

import json
from typing import Optional

import structlog

from models.pallet import Partition
from models.reception import Reception
from models.ticket import PalletTicket, TicketBatch
from exceptions import AppError
from services.allocation_session import AllocationSession
from services.partition_service import PartitionService, get_partition_service
from services.reception_service import ReceptionService, get_reception_service

logger = structlog.get_logger(__name__)


def qr_payload(reception: Reception, ticket_fields: dict) -> str:
    """
    JSON encoded in each ticket's QR code.

    Keys match what the scanner and earlier printed labels use.
    """
    return json.dumps({
        "date": reception.arrival_time.isoformat(),
        "client": reception.client_name,
        "culture": reception.product_name,
        "variety": reception.product_variety,
        "palletNumber": ticket_fields["number"],
        "palletReference": ticket_fields["reference"],
        "crateCount": ticket_fields["crates"],
        "room": reception.room_name,
        "isFull": ticket_fields["is_full"],
    }, ensure_ascii=False)


class TicketService:
    """
    Builds tickets and runs the save-then-print flow.
    """

    def __init__(self, partition_service: Optional[PartitionService] = None):
        self._partition_service = partition_service

    @property
    def partition_service(self) -> PartitionService:
        if self._partition_service is None:
            self._partition_service = get_partition_service()
        return self._partition_service

    def open_session(
        self,
        tenant_id: str,
        reception_id: str,
        reception_service: Optional[ReceptionService] = None
    ) -> AllocationSession:
        """
        Open a reception for printing.

        Unlike AllocationSession.open(), a failure to load the saved
        partition does not stop printing: the session starts transient and
        the later save reports whatever storage problem remains.

        Raises:
            ReceptionNotFoundError: If the reception does not exist
            DatabaseError: If the reception query fails
        """
        reception_service = reception_service or get_reception_service()
        reception = reception_service.get_by_id(tenant_id, reception_id)

        try:
            record = self.partition_service.get_by_reception(tenant_id, reception_id)
        except AppError as e:
            logger.warning(
                "partition_load_failed_printing_anyway",
                tenant_id=tenant_id,
                reception_id=reception_id,
                error=e.message,
                code=e.code
            )
            record = None

        return AllocationSession(tenant_id, reception, record)

    def build_tickets(self, reception: Reception, partition: Partition) -> list[PalletTicket]:
        """
        One ticket per pallet, in ordinal order.

        Args:
            reception: Reception the pallets belong to
            partition: Partition to print

        Returns:
            List of PalletTicket
        """
        tickets = []
        for pallet in partition.pallets:
            fields = {
                "number": pallet.number,
                "crates": pallet.crates,
                "is_full": pallet.is_full,
                "reference": pallet.reference,
            }
            tickets.append(PalletTicket(
                **fields,
                client_name=reception.client_name,
                product_name=reception.product_name,
                product_variety=reception.product_variety,
                room_name=reception.room_name,
                arrival_time=reception.arrival_time,
                qr_payload=qr_payload(reception, fields),
            ))
        return tickets

    def print_tickets(self, session: AllocationSession) -> TicketBatch:
        """
        Save the session's partition, then build its tickets.

        A failed save is logged and reported on the batch; tickets are
        returned regardless.

        Args:
            session: Allocation session to print

        Returns:
            TicketBatch
        """
        partition = session.partition
        saved = False
        save_error = None

        try:
            session.save(self.partition_service)
            saved = True
        except AppError as e:
            logger.warning(
                "partition_save_failed_printing_anyway",
                tenant_id=session.tenant_id,
                reception_id=session.reception.id,
                error=e.message,
                code=e.code
            )
            save_error = e.to_dict()["error"]

        tickets = self.build_tickets(session.reception, partition)

        logger.info(
            "pallet_tickets_generated",
            tenant_id=session.tenant_id,
            reception_id=session.reception.id,
            count=len(tickets),
            saved=saved
        )

        return TicketBatch(
            reception_id=session.reception.id,
            tickets=tickets,
            total_pallets=len(tickets),
            saved=saved,
            partition_id=session.partition_id,
            save_error=save_error,
        )


# Singleton instance
_ticket_service: Optional[TicketService] = None


def get_ticket_service() -> TicketService:
    """Get or create TicketService instance."""
    global _ticket_service
    if _ticket_service is None:
        _ticket_service = TicketService()
    return _ticket_service
