"""
Pallet allocation schemas.

Pallets are value objects derived from a partition; they are stored inside
the partition record (camelCase keys, as written by earlier clients) and
never edited directly.
"""

from pydantic import AliasChoices, ConfigDict, Field, computed_field, field_validator
from typing import Optional
from datetime import date
from enum import Enum

from models.base import BaseSchema, TimestampMixin
from models.reception import Reception


# ===================
# PALLET / PARTITION
# ===================

class Pallet(BaseSchema):
    """
    One physical pallet of a reception.

    Accepts both snake_case and the stored camelCase keys; palletNumber is
    an alternate name for number found in older records.
    """

    model_config = ConfigDict(frozen=True)

    number: int = Field(
        ...,
        ge=1,
        validation_alias=AliasChoices("number", "palletNumber"),
        description="1-based ordinal"
    )
    crates: int = Field(..., ge=0, description="Crates on this pallet")
    is_full: bool = Field(
        ...,
        validation_alias=AliasChoices("is_full", "isFull"),
        description="Pallet holds its full intended count"
    )
    is_custom: bool = Field(
        False,
        validation_alias=AliasChoices("is_custom", "isCustom"),
        description="Count comes from an operator override"
    )
    reference: str = Field(..., description="Printed reference, PAL-YYYYMMDD-CCC-NNN")

    def to_record(self) -> dict:
        """Shape stored in the partition record's pallets array."""
        return {
            "number": self.number,
            "crates": self.crates,
            "isFull": self.is_full,
            "isCustom": self.is_custom,
            "reference": self.reference,
        }


class Partition(BaseSchema):
    """
    Full assignment of a reception's crates across its pallets.

    Produced by compute_partition(); the figures besides pallets are kept
    so the allocation view and the consistency check need no recomputation.
    """

    reception_id: Optional[str] = Field(None, description="Reception UUID")
    total_crates: int = Field(..., ge=0)
    crates_per_pallet: int = Field(..., ge=1)
    overrides: dict[int, int] = Field(default_factory=dict)
    full_pallets: int = Field(..., ge=0, description="floor(total / crates_per_pallet)")
    remaining_crates: int = Field(..., ge=0, description="total mod crates_per_pallet")
    pallets: list[Pallet] = Field(default_factory=list)
    total_crates_used: int = Field(..., ge=0, description="Crates placed on some pallet")

    @computed_field
    @property
    def total_pallets(self) -> int:
        return len(self.pallets)


class PartitionRecord(BaseSchema, TimestampMixin):
    """
    Persisted partition, one per (tenant_id, reception_id).
    """

    id: str = Field(..., description="Partition record UUID")
    tenant_id: str
    reception_id: str
    client_id: Optional[str] = None
    client_name: Optional[str] = None
    total_crates: Optional[int] = Field(None, ge=0)
    crates_per_pallet: int = Field(..., ge=1)
    custom_pallet_crates: dict[int, int] = Field(default_factory=dict)
    pallets: list[Pallet] = Field(default_factory=list)

    @field_validator("custom_pallet_crates")
    @classmethod
    def validate_overrides(cls, v: dict[int, int]) -> dict[int, int]:
        """Ordinals start at 1, counts are non-negative."""
        for ordinal, crates in v.items():
            if ordinal < 1 or crates < 0:
                raise ValueError(f"invalid override {ordinal}: {crates}")
        return v


# ===================
# CONSISTENCY
# ===================

class ConsistencyStatus(str, Enum):
    """Outcome of comparing distributed crates to the reception total."""
    BALANCED = "balanced"
    SHORTFALL = "shortfall"
    OVERFLOW = "overflow"


class ConsistencyReport(BaseSchema):
    """Advisory totals for a partition. Never blocks save or print."""

    total_crates: int
    total_crates_used: int
    shortfall: int = Field(..., description="total_crates - total_crates_used")
    status: ConsistencyStatus
    warnings: list[str] = Field(default_factory=list)

    @property
    def is_balanced(self) -> bool:
        return self.status == ConsistencyStatus.BALANCED


# ===================
# API SCHEMAS
# ===================

class AllocationRequest(BaseSchema):
    """
    Operator edits to apply before recomputing.

    Overrides are merged into the current ones; reset_overrides clears
    them first.
    """

    crates_per_pallet: Optional[int] = Field(None, description="New capacity")
    overrides: dict[int, int] = Field(
        default_factory=dict,
        description="Pallet ordinal -> crate count"
    )
    reset_overrides: bool = Field(False, description="Drop all overrides first")


class AllocationView(BaseSchema):
    """State of the allocation view for one reception."""

    reception: Reception
    partition: Partition
    consistency: ConsistencyReport
    partition_id: Optional[str] = Field(None, description="Persisted record id, if any")
    saved: bool = Field(..., description="No unsaved edits")
    reference_date: date = Field(..., description="Date embedded in references")


class PalletConfigResponse(BaseSchema):
    """Capacity settings offered to operators."""

    default_crates_per_pallet: int
    max_crates_per_pallet: int
    presets: list[int]


class PalletLookupResult(BaseSchema):
    """Pallet found by a scanned code."""

    code: str = Field(..., description="Normalized code that matched")
    matched_field: str = Field(..., description="reference, number or palletNumber")
    source: str = Field(..., description="Storage location that answered")
    reception_id: str
    partition_id: Optional[str] = None
    pallet: Pallet
    total_crates: Optional[int] = None
    crates_per_pallet: Optional[int] = None
    reception: Optional[Reception] = None
