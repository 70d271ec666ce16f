"""
Unit tests for the partition consistency check.

Run: pytest tests/unit/test_consistency_service.py -v
"""

from datetime import date

from models.pallet import ConsistencyStatus, Pallet, Partition
from services.allocation_service import compute_partition
from services.consistency_service import check_consistency

DAY = date(2025, 10, 19)


class TestCheckConsistency:
    """Tests for check_consistency()"""

    def test_default_partition_is_balanced(self):
        report = check_consistency(compute_partition(100, 42, reference_date=DAY))

        assert report.status == ConsistencyStatus.BALANCED
        assert report.is_balanced
        assert report.total_crates == 100
        assert report.total_crates_used == 100
        assert report.shortfall == 0
        assert report.warnings == []

    def test_override_on_last_pallet_reports_shortfall(self):
        """100 crates at 42, pallet 3 set to 10 → 6 crates unassigned."""
        partition = compute_partition(100, 42, {3: 10}, reference_date=DAY)

        report = check_consistency(partition)

        assert [p.crates for p in partition.pallets] == [42, 42, 10]
        assert [p.is_custom for p in partition.pallets] == [False, False, True]
        assert report.status == ConsistencyStatus.SHORTFALL
        assert report.shortfall == 6
        assert report.total_crates_used == 94
        assert any("6 crate(s)" in w for w in report.warnings)

    def test_empty_reception_is_balanced(self):
        report = check_consistency(compute_partition(0, 42, reference_date=DAY))

        assert report.is_balanced
        assert report.shortfall == 0

    def test_overflow_detected_on_inconsistent_partition(self):
        """Historical records can hold more crates than the reception."""
        partition = Partition(
            total_crates=40,
            crates_per_pallet=42,
            full_pallets=0,
            remaining_crates=40,
            pallets=[Pallet(number=1, crates=42, is_full=True, reference="PAL-20250101-CLI-001")],
            total_crates_used=40,
        )

        report = check_consistency(partition)

        assert report.status == ConsistencyStatus.OVERFLOW
        assert report.shortfall == -2

    def test_ignored_override_warned(self):
        partition = compute_partition(100, 42, {9: 3}, reference_date=DAY)

        report = check_consistency(partition)

        assert report.is_balanced
        assert any("9" in w and "ignored" in w for w in report.warnings)

    def test_empty_pallet_warned(self):
        partition = compute_partition(100, 42, {2: 0}, reference_date=DAY)

        report = check_consistency(partition)

        assert any("no crates" in w for w in report.warnings)
