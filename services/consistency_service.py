"""
Consistency check for a pallet partition.

Compares crates placed on pallets with the reception total. A shortfall
happens when an override is clamped or set below its share and no later
pallet picks up the difference. Whether to add a pallet for those crates
is left to the caller; this module only reports.
"""

import structlog

from models.pallet import ConsistencyReport, ConsistencyStatus, Partition

logger = structlog.get_logger(__name__)


def check_consistency(partition: Partition) -> ConsistencyReport:
    """
    Summarize distributed vs. total crates.

    Args:
        partition: Partition to check

    Returns:
        ConsistencyReport; status is advisory and never blocks a save
    """
    used = sum(p.crates for p in partition.pallets)
    shortfall = partition.total_crates - used
    warnings = []

    if shortfall > 0:
        status = ConsistencyStatus.SHORTFALL
        warnings.append(f"{shortfall} crate(s) are not assigned to any pallet")
    elif shortfall < 0:
        status = ConsistencyStatus.OVERFLOW
        warnings.append(f"Pallets hold {-shortfall} crate(s) more than the reception total")
    else:
        status = ConsistencyStatus.BALANCED

    ignored = sorted(o for o in partition.overrides if o > len(partition.pallets))
    if ignored:
        warnings.append(
            f"Override(s) for pallet(s) {', '.join(map(str, ignored))} ignored: "
            f"only {len(partition.pallets)} pallet(s)"
        )

    empty = [p.number for p in partition.pallets if p.crates == 0]
    if empty:
        warnings.append(f"Pallet(s) {', '.join(map(str, empty))} have no crates")

    if warnings:
        logger.info(
            "partition_consistency_warning",
            reception_id=partition.reception_id,
            status=status.value,
            shortfall=shortfall,
        )

    return ConsistencyReport(
        total_crates=partition.total_crates,
        total_crates_used=used,
        shortfall=shortfall,
        status=status,
        warnings=warnings,
    )
