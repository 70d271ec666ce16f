"""
Pallet ticket schemas.

Tickets are the payloads handed to the label renderer. Layout, QR image
synthesis and printing happen on the renderer's side.
"""

from pydantic import Field
from typing import Optional
from datetime import datetime

from models.base import BaseSchema


class PalletTicket(BaseSchema):
    """One printable label per pallet."""

    number: int = Field(..., ge=1, description="Pallet ordinal")
    crates: int = Field(..., ge=0)
    is_full: bool
    reference: str
    client_name: str
    product_name: Optional[str] = None
    product_variety: Optional[str] = None
    room_name: Optional[str] = None
    arrival_time: datetime
    qr_payload: str = Field(..., description="JSON string encoded in the QR code")


class TicketBatch(BaseSchema):
    """
    Tickets for a whole reception.

    saved is False when persisting the partition failed; tickets are
    still produced from the in-memory partition in that case.
    """

    reception_id: str
    tickets: list[PalletTicket] = Field(default_factory=list)
    total_pallets: int
    saved: bool
    partition_id: Optional[str] = None
    save_error: Optional[dict] = None
