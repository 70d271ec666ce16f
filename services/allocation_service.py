"""
Allocation calculator: splits a reception's crates into pallets.

Algorithm:
1. full = total // crates_per_pallet, remainder = total % crates_per_pallet
2. Pallet count = full (+1 if remainder)
3. For each ordinal, in order, with `remaining` starting at total:
   - override set   → min(override, remaining), custom, full iff not clamped
   - ordinal ≤ full → crates_per_pallet, full
   - otherwise      → whatever remains, partial
   - remaining -= crates
4. total_crates_used = total - remaining

Overrides never add or remove pallets. Overrides past the last pallet are
ignored. Crates left over after overrides (shortfall) are reported by the
consistency check, not redistributed.

Pure: no I/O, no logging, no tenant.
"""

from datetime import date
from typing import Mapping, Optional

from exceptions import InvalidPalletCapacityError, InvalidPalletOverrideError, ValidationError
from models.pallet import Pallet, Partition
from services.pallet_reference_service import generate_pallet_reference


def pallet_count(total_crates: int, crates_per_pallet: int) -> int:
    """ceil(total_crates / crates_per_pallet), 0 for an empty reception."""
    if crates_per_pallet < 1:
        raise InvalidPalletCapacityError(crates_per_pallet)
    return -(-total_crates // crates_per_pallet)


def compute_partition(
    total_crates: int,
    crates_per_pallet: int,
    overrides: Optional[Mapping[int, int]] = None,
    *,
    client_name: Optional[str] = None,
    reference_date: Optional[date] = None,
    reception_id: Optional[str] = None
) -> Partition:
    """
    Compute the full partition for a reception.

    Args:
        total_crates: Crates on the reception (>= 0)
        crates_per_pallet: Pallet capacity (>= 1)
        overrides: Pallet ordinal -> operator crate count
        client_name: Used for the reference client code
        reference_date: Date embedded in references (today if omitted)
        reception_id: Carried onto the partition

    Returns:
        Partition with pallets in ordinal order

    Raises:
        InvalidPalletCapacityError: If crates_per_pallet < 1
        ValidationError: If total_crates is negative
        InvalidPalletOverrideError: If an override is negative
    """
    if crates_per_pallet < 1:
        raise InvalidPalletCapacityError(crates_per_pallet)
    if total_crates < 0:
        raise ValidationError(
            code="PALLET_INVALID_TOTAL",
            message="Total crates cannot be negative",
            details={"total_crates": total_crates}
        )

    overrides = dict(overrides or {})
    for ordinal, crates in overrides.items():
        if crates < 0:
            raise InvalidPalletOverrideError(ordinal, crates, "Override crate count cannot be negative")
    reference_date = reference_date or date.today()

    full_pallets, remainder = divmod(total_crates, crates_per_pallet)
    count = pallet_count(total_crates, crates_per_pallet)

    pallets = []
    remaining = total_crates

    for ordinal in range(1, count + 1):
        custom = overrides.get(ordinal)

        if custom is not None:
            crates = min(custom, remaining)
            is_full = crates == custom
        elif ordinal <= full_pallets:
            # Only smaller than capacity when an earlier override took more
            # than its share.
            crates = min(crates_per_pallet, remaining)
            is_full = crates == crates_per_pallet
        else:
            crates = remaining
            is_full = False

        pallets.append(Pallet(
            number=ordinal,
            crates=crates,
            is_full=is_full,
            is_custom=custom is not None,
            reference=generate_pallet_reference(reference_date, client_name, ordinal),
        ))
        remaining -= crates

    return Partition(
        reception_id=reception_id,
        total_crates=total_crates,
        crates_per_pallet=crates_per_pallet,
        overrides=overrides,
        full_pallets=full_pallets,
        remaining_crates=remainder,
        pallets=pallets,
        total_crates_used=total_crates - remaining,
    )
