"""
Pallet API Routes - allocation view, save, tickets and scan lookup.

Tenant is explicit in every path; nothing reads an ambient tenant.
"""

from fastapi import APIRouter, HTTPException, Query, status
from typing import Optional

from config import settings
from services.allocation_session import AllocationSession
from services.partition_service import get_partition_service
from services.reception_service import get_reception_service
from services.ticket_service import get_ticket_service
from services.pallet_lookup_service import get_pallet_lookup_service
from models.pallet import (
    AllocationRequest,
    AllocationView,
    PalletConfigResponse,
    PalletLookupResult,
)
from models.ticket import TicketBatch
from exceptions import AppError, InvalidPalletCapacityError

router = APIRouter(prefix="/api", tags=["pallets"])


def _http_error(e: AppError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=e.to_dict())


def _open_session(tenant_id: str, reception_id: str) -> AllocationSession:
    return AllocationSession.open(
        tenant_id,
        reception_id,
        reception_service=get_reception_service(),
        partition_service=get_partition_service(),
    )


def _apply_request(session: AllocationSession, data: Optional[AllocationRequest]) -> None:
    """Apply operator edits; capacity must fall within the configured bound."""
    if data is None:
        return
    cpp = data.crates_per_pallet
    if cpp is not None and not 1 <= cpp <= settings.max_crates_per_pallet:
        raise InvalidPalletCapacityError(cpp, settings.max_crates_per_pallet)
    session.apply(data)


# ===================
# CONFIG
# ===================

@router.get(
    "/pallets/config",
    response_model=PalletConfigResponse,
    summary="Pallet capacity settings"
)
def get_pallet_config():
    """
    Default capacity, upper bound and quick-pick presets.
    """
    return PalletConfigResponse(
        default_crates_per_pallet=settings.default_crates_per_pallet,
        max_crates_per_pallet=settings.max_crates_per_pallet,
        presets=settings.crates_per_pallet_presets,
    )


# ===================
# ALLOCATION
# ===================

@router.get(
    "/tenants/{tenant_id}/receptions/{reception_id}/pallets",
    response_model=AllocationView,
    summary="Open the allocation view for a reception"
)
def get_allocation(tenant_id: str, reception_id: str):
    """
    Saved partition if there is one, otherwise a transient partition with
    the default capacity.

    Args:
        tenant_id: Tenant ID
        reception_id: Reception UUID

    Returns:
        Allocation view with consistency report
    """
    try:
        return _open_session(tenant_id, reception_id).view()
    except AppError as e:
        raise _http_error(e)


@router.post(
    "/tenants/{tenant_id}/receptions/{reception_id}/pallets/preview",
    response_model=AllocationView,
    summary="Recompute with operator edits (not saved)"
)
def preview_allocation(tenant_id: str, reception_id: str, data: AllocationRequest):
    """
    Apply capacity/override edits on top of the current state and return
    the recomputed partition without saving it.
    """
    try:
        session = _open_session(tenant_id, reception_id)
        _apply_request(session, data)
        return session.view()
    except AppError as e:
        raise _http_error(e)


@router.put(
    "/tenants/{tenant_id}/receptions/{reception_id}/pallets",
    response_model=AllocationView,
    summary="Save the partition for a reception"
)
def save_allocation(tenant_id: str, reception_id: str, data: Optional[AllocationRequest] = None):
    """
    Apply edits and persist. Saving again with the same input updates the
    same record.

    A shortfall does not block the save; see the consistency report.
    """
    try:
        session = _open_session(tenant_id, reception_id)
        _apply_request(session, data)
        session.save(get_partition_service())
        return session.view()
    except AppError as e:
        raise _http_error(e)


@router.post(
    "/tenants/{tenant_id}/receptions/{reception_id}/pallets/tickets",
    response_model=TicketBatch,
    summary="Save (best effort) and build pallet tickets"
)
def create_tickets(tenant_id: str, reception_id: str, data: Optional[AllocationRequest] = None):
    """
    Build one ticket per pallet. The partition is saved first; if loading
    or saving it fails the tickets are still returned with saved=false.
    """
    try:
        ticket_service = get_ticket_service()
        session = ticket_service.open_session(
            tenant_id,
            reception_id,
            reception_service=get_reception_service(),
        )
        _apply_request(session, data)
        return ticket_service.print_tickets(session)
    except AppError as e:
        raise _http_error(e)


# ===================
# SCAN LOOKUP
# ===================

@router.get(
    "/tenants/{tenant_id}/pallets/lookup",
    response_model=PalletLookupResult,
    summary="Find a pallet by scanned code"
)
def lookup_pallet(
    tenant_id: str,
    code: str = Query(..., description="Reference, pallet number or QR payload"),
    reception_id: Optional[str] = Query(None, description="Restrict to one reception")
):
    """
    Resolve a scanned reference/number to its pallet and reception.

    Returns 404 PALLET_NOT_FOUND when nothing matches.
    """
    try:
        return get_pallet_lookup_service().lookup(tenant_id, code, reception_id=reception_id)
    except AppError as e:
        raise _http_error(e)
