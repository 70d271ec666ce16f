"""
Pallet Lookup Service - resolve a scanned code to its pallet and reception.

Pallets have been written to more than one place over time: the
pallet_collections table (one row per reception) and, for older data,
a pallets array directly on the reception row. A lookup runs an ordered
list of strategies, each one (storage location, pallet field), and the
first hit wins:

    1. pallet_collections / reference
    2. receptions         / reference
    3. pallet_collections / number
    4. receptions         / number
    5. pallet_collections / palletNumber
    6. receptions         / palletNumber

References match after trimming, ignoring case; number fields match as
integers, whether stored as int or string. No fuzzy matching: an unknown
code raises PalletNotFoundError.
"""

import json
from dataclasses import dataclass
from typing import Iterable, Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from config import get_supabase_client, settings
from models.pallet import Pallet, PalletLookupResult
from exceptions import (
    PalletNotFoundError,
    InvalidRecordError,
    DatabaseError,
    ValidationError,
)
from services.reception_service import ReceptionService, get_reception_service

logger = structlog.get_logger(__name__)

LOOKUP_FIELDS = ("reference", "number", "palletNumber")


# ===================
# STORAGE LOCATIONS
# ===================

class PalletSource:
    """A table whose rows carry a `pallets` array."""

    name = ""
    table = ""
    reception_key = ""

    def __init__(self, db):
        self.db = db

    def fetch_rows(self, tenant_id: str, reception_id: Optional[str] = None) -> list[dict]:
        try:
            query = self.db.table(self.table).select("*").eq("tenant_id", tenant_id)
            if reception_id:
                query = query.eq(self.reception_key, reception_id)
            return query.execute().data or []
        except Exception as e:
            logger.error("pallet_source_query_failed", source=self.name, error=str(e))
            raise DatabaseError("select", str(e), details={"source": self.name})

    def reception_id(self, row: dict) -> str:
        return str(row[self.reception_key])

    def partition_id(self, row: dict) -> Optional[str]:
        return None


class PalletCollectionSource(PalletSource):
    """Partition records saved by the allocation view."""

    name = "pallet_collections"
    reception_key = "reception_id"

    def __init__(self, db):
        super().__init__(db)
        self.table = settings.pallet_collections_table

    def partition_id(self, row: dict) -> Optional[str]:
        return row.get("id")


class ReceptionPalletSource(PalletSource):
    """Pallets embedded on reception rows by older clients."""

    name = "receptions"
    reception_key = "id"

    def __init__(self, db):
        super().__init__(db)
        self.table = settings.receptions_table


# ===================
# STRATEGIES
# ===================

@dataclass(frozen=True)
class LookupHit:
    source: PalletSource
    field: str
    row: dict
    pallet: Pallet


def _field_matches(field: str, value, code: str) -> bool:
    if value is None:
        return False
    if field == "reference":
        return str(value).strip().upper() == code.upper()
    # number / palletNumber: stored as int, sometimes as a string
    if not code.isdigit():
        return False
    try:
        return int(value) == int(code)
    except (TypeError, ValueError):
        return False


@dataclass(frozen=True)
class LookupStrategy:
    """Search one storage location by one pallet field."""

    source: PalletSource
    field: str

    def find(self, code: str, rows: Iterable[dict]) -> Optional[LookupHit]:
        for row in rows:
            for entry in row.get("pallets") or []:
                if not isinstance(entry, dict) or not _field_matches(self.field, entry.get(self.field), code):
                    continue
                try:
                    pallet = Pallet.model_validate(entry)
                except PydanticValidationError:
                    logger.warning(
                        "pallet_entry_invalid",
                        source=self.source.name,
                        row_id=row.get("id"),
                        field=self.field
                    )
                    continue
                return LookupHit(source=self.source, field=self.field, row=row, pallet=pallet)
        return None


def default_strategies(db) -> list[LookupStrategy]:
    """Field-major order: a reference hit anywhere beats a number hit."""
    sources = [PalletCollectionSource(db), ReceptionPalletSource(db)]
    return [
        LookupStrategy(source=source, field=field)
        for field in LOOKUP_FIELDS
        for source in sources
    ]


def parse_scanned_code(raw: str) -> str:
    """
    Normalize scanner input.

    Accepts a plain reference or number, or the JSON payload printed in
    ticket QR codes (palletReference preferred, then palletNumber).

    Raises:
        ValidationError: If the input is empty
    """
    code = (raw or "").strip()
    if code.startswith("{"):
        try:
            payload = json.loads(code)
        except json.JSONDecodeError:
            payload = None
        if isinstance(payload, dict):
            if payload.get("palletReference"):
                code = str(payload["palletReference"]).strip()
            elif payload.get("palletNumber") is not None:
                code = str(payload["palletNumber"]).strip()

    if not code:
        raise ValidationError(
            code="PALLET_CODE_REQUIRED",
            message="Scanned code cannot be empty"
        )
    return code


# ===================
# SERVICE
# ===================

class PalletLookupService:
    """
    Runs the strategy chain and resolves the owning reception.
    """

    def __init__(
        self,
        strategies: Optional[list[LookupStrategy]] = None,
        reception_service: Optional[ReceptionService] = None
    ):
        self.db = get_supabase_client()
        self.strategies = strategies if strategies is not None else default_strategies(self.db)
        self._reception_service = reception_service

    @property
    def reception_service(self) -> ReceptionService:
        if self._reception_service is None:
            self._reception_service = get_reception_service()
        return self._reception_service

    def lookup(
        self,
        tenant_id: str,
        raw_code: str,
        reception_id: Optional[str] = None
    ) -> PalletLookupResult:
        """
        Find a pallet by scanned code.

        Args:
            tenant_id: Owning tenant
            raw_code: Reference, pallet number or QR JSON payload
            reception_id: Restrict the search to one reception

        Returns:
            PalletLookupResult, with reception=None if the owning
            reception no longer exists

        Raises:
            ValidationError: If the code is empty
            PalletNotFoundError: If no strategy matched
            DatabaseError: If a storage query fails
        """
        code = parse_scanned_code(raw_code)
        logger.info("looking_up_pallet", tenant_id=tenant_id, code=code, reception_id=reception_id)

        rows_by_source: dict[str, list[dict]] = {}
        hit = None

        for strategy in self.strategies:
            source = strategy.source
            if source.name not in rows_by_source:
                rows_by_source[source.name] = source.fetch_rows(tenant_id, reception_id)
            hit = strategy.find(code, rows_by_source[source.name])
            if hit:
                break

        if hit is None:
            logger.info("pallet_not_found", tenant_id=tenant_id, code=code)
            raise PalletNotFoundError(code)

        owning_reception_id = hit.source.reception_id(hit.row)
        logger.info(
            "pallet_found",
            tenant_id=tenant_id,
            code=code,
            source=hit.source.name,
            field=hit.field,
            reception_id=owning_reception_id
        )

        return PalletLookupResult(
            code=code,
            matched_field=hit.field,
            source=hit.source.name,
            reception_id=owning_reception_id,
            partition_id=hit.source.partition_id(hit.row),
            pallet=hit.pallet,
            total_crates=hit.row.get("total_crates"),
            crates_per_pallet=hit.row.get("crates_per_pallet"),
            reception=self._resolve_reception(tenant_id, owning_reception_id),
        )

    def _resolve_reception(self, tenant_id: str, reception_id: str):
        try:
            reception = self.reception_service.find_by_id(tenant_id, reception_id)
        except InvalidRecordError as e:
            logger.warning("pallet_reception_invalid", reception_id=reception_id, errors=e.details.get("errors"))
            return None

        if reception is None:
            logger.warning("pallet_reception_missing", tenant_id=tenant_id, reception_id=reception_id)
        return reception


# Singleton instance
_pallet_lookup_service: Optional[PalletLookupService] = None


def get_pallet_lookup_service() -> PalletLookupService:
    """Get or create PalletLookupService instance."""
    global _pallet_lookup_service
    if _pallet_lookup_service is None:
        _pallet_lookup_service = PalletLookupService()
    return _pallet_lookup_service
