"""
Reception schema.

Receptions are owned by the reception workflow. This service only reads
them, so there are no create/update schemas here.
"""

from pydantic import Field
from typing import Optional
from datetime import datetime

from models.base import BaseSchema


class Reception(BaseSchema):
    """
    A recorded delivery of crates from a client.

    Validated when read from storage; rows with a different shape are
    rejected at the boundary instead of being patched up at each read site.
    """

    id: str = Field(..., description="Reception UUID")
    tenant_id: str = Field(..., description="Owning tenant")
    client_id: Optional[str] = Field(None, description="Client UUID")
    client_name: str = Field("", description="Client display name")
    product_name: Optional[str] = Field(None, description="Product (culture)")
    product_variety: Optional[str] = Field(None, description="Product variety")
    room_name: Optional[str] = Field(None, description="Assigned cold room")
    arrival_time: datetime = Field(..., description="Arrival timestamp")
    total_crates: int = Field(..., ge=0, description="Crates counted on arrival")
