"""
Unit tests for PalletLookupService.

Run: pytest tests/unit/test_pallet_lookup_service.py -v
"""

import json
import pytest

from services.pallet_lookup_service import (
    PalletLookupService,
    PalletCollectionSource,
    ReceptionPalletSource,
    LookupStrategy,
    default_strategies,
    parse_scanned_code,
    get_pallet_lookup_service,
)
from exceptions import PalletNotFoundError, ValidationError, DatabaseError
from tests.factories import ReceptionFactory, PartitionRecordFactory

COLLECTIONS = "pallet_collections"
RECEPTIONS = "receptions"


@pytest.fixture
def stored_partition(mock_supabase, sample_reception_data, tenant_id):
    """Saved partition PAL-20251018-FER-001..003 for the sample reception."""
    mock_supabase.set_table_data(RECEPTIONS, [sample_reception_data])
    mock_supabase.set_table_data(COLLECTIONS, [
        PartitionRecordFactory.create(
            id="p-1",
            tenant_id=tenant_id,
            reception_id=sample_reception_data["id"],
            code="FER",
        )
    ])


class TestParseScannedCode:
    """Tests for parse_scanned_code()"""

    def test_plain_code_is_stripped(self):
        assert parse_scanned_code("  PAL-20251018-FER-002 \n") == "PAL-20251018-FER-002"

    def test_qr_payload_prefers_reference(self):
        raw = json.dumps({"palletNumber": 2, "palletReference": "PAL-20251018-FER-002"})

        assert parse_scanned_code(raw) == "PAL-20251018-FER-002"

    def test_qr_payload_falls_back_to_number(self):
        assert parse_scanned_code(json.dumps({"palletNumber": 7})) == "7"

    def test_malformed_json_used_as_is(self):
        assert parse_scanned_code("{not json") == "{not json"

    @pytest.mark.parametrize("raw", ["", "   ", None])
    def test_empty_rejected(self, raw):
        with pytest.raises(ValidationError) as exc_info:
            parse_scanned_code(raw)

        assert exc_info.value.code == "PALLET_CODE_REQUIRED"


class TestLookup:
    """Tests for PalletLookupService.lookup()"""

    def test_reference_found_in_collections(self, mock_db, stored_partition, tenant_id):
        result = PalletLookupService().lookup(tenant_id, "PAL-20251018-FER-002")

        assert result.source == "pallet_collections"
        assert result.matched_field == "reference"
        assert result.partition_id == "p-1"
        assert result.reception_id == "reception-uuid-100"
        assert result.pallet.number == 2
        assert result.pallet.crates == 42
        assert result.crates_per_pallet == 42
        assert result.reception.client_name == "Ferme Belle Vue"

    def test_reference_match_ignores_case(self, mock_db, stored_partition, tenant_id):
        result = PalletLookupService().lookup(tenant_id, "pal-20251018-fer-003")

        assert result.pallet.number == 3

    def test_found_by_number(self, mock_db, stored_partition, tenant_id):
        result = PalletLookupService().lookup(tenant_id, "3")

        assert result.matched_field == "number"
        assert result.pallet.crates == 16

    def test_falls_back_to_reception_rows(self, mock_db, mock_supabase, tenant_id):
        mock_supabase.set_table_data(RECEPTIONS, [
            ReceptionFactory.create(
                id="r-old",
                tenant_id=tenant_id,
                client_name="Domaine Atlas",
                total_crates=50,
                pallets=[
                    {"palletNumber": 1, "crates": 42, "isFull": True, "reference": "PAL-20240901-DOM-001"},
                    {"palletNumber": 2, "crates": 8, "isFull": False, "reference": "PAL-20240901-DOM-002"},
                ],
            )
        ])

        result = PalletLookupService().lookup(tenant_id, "PAL-20240901-DOM-002")

        assert result.source == "receptions"
        assert result.reception_id == "r-old"
        assert result.partition_id is None
        assert result.pallet.number == 2
        assert result.pallet.crates == 8
        assert result.reception.total_crates == 50

    def test_number_stored_as_string_matches(self, mock_db, mock_supabase, tenant_id):
        mock_supabase.set_table_data(RECEPTIONS, [
            ReceptionFactory.create(
                id="r-old",
                tenant_id=tenant_id,
                pallets=[{"number": "04", "crates": 10, "isFull": False, "reference": "OLD-4"}],
            )
        ])

        result = PalletLookupService().lookup(tenant_id, "4")

        assert result.matched_field == "number"
        assert result.pallet.number == 4

    def test_pallet_number_field_searched_last(self, mock_db, mock_supabase, tenant_id):
        mock_supabase.set_table_data(RECEPTIONS, [
            ReceptionFactory.create(
                id="r-old",
                tenant_id=tenant_id,
                pallets=[{"palletNumber": 5, "crates": 10, "isFull": False, "reference": "OLD-5"}],
            )
        ])

        result = PalletLookupService().lookup(tenant_id, "5")

        assert result.matched_field == "palletNumber"
        assert result.pallet.number == 5

    def test_reference_hit_beats_number_hit(self, mock_db, mock_supabase, tenant_id):
        """A code that is a number on one pallet and a reference on another."""
        mock_supabase.set_table_data(COLLECTIONS, [
            PartitionRecordFactory.create(id="p-1", tenant_id=tenant_id, reception_id="r-1", crates=[42, 42])
        ])
        mock_supabase.set_table_data(RECEPTIONS, [
            ReceptionFactory.create(
                id="r-old",
                tenant_id=tenant_id,
                pallets=[{"number": 9, "crates": 10, "isFull": False, "reference": "2"}],
            )
        ])

        result = PalletLookupService().lookup(tenant_id, "2")

        assert result.source == "receptions"
        assert result.matched_field == "reference"
        assert result.pallet.number == 9

    def test_qr_payload_input(self, mock_db, stored_partition, tenant_id):
        raw = json.dumps({"palletNumber": 1, "palletReference": "PAL-20251018-FER-001", "crateCount": 42})

        result = PalletLookupService().lookup(tenant_id, raw)

        assert result.code == "PAL-20251018-FER-001"
        assert result.pallet.number == 1

    def test_unknown_code_raises_not_found(self, mock_db, stored_partition, tenant_id):
        with pytest.raises(PalletNotFoundError) as exc_info:
            PalletLookupService().lookup(tenant_id, "PAL-20251018-FER-999")

        assert exc_info.value.code == "PALLET_NOT_FOUND"
        assert exc_info.value.status_code == 404

    def test_other_tenant_not_visible(self, mock_db, stored_partition):
        with pytest.raises(PalletNotFoundError):
            PalletLookupService().lookup("other-tenant", "PAL-20251018-FER-001")

    def test_reception_filter(self, mock_db, mock_supabase, tenant_id):
        mock_supabase.set_table_data(COLLECTIONS, [
            PartitionRecordFactory.create(id="p-1", tenant_id=tenant_id, reception_id="r-1"),
            PartitionRecordFactory.create(id="p-2", tenant_id=tenant_id, reception_id="r-2"),
        ])

        result = PalletLookupService().lookup(tenant_id, "1", reception_id="r-2")

        assert result.partition_id == "p-2"

    def test_missing_reception_returns_none(self, mock_db, mock_supabase, tenant_id):
        mock_supabase.set_table_data(COLLECTIONS, [
            PartitionRecordFactory.create(id="p-1", tenant_id=tenant_id, reception_id="gone")
        ])

        result = PalletLookupService().lookup(tenant_id, "PAL-20251018-CLI-001")

        assert result.reception_id == "gone"
        assert result.reception is None

    def test_invalid_entries_skipped(self, mock_db, mock_supabase, tenant_id):
        row = PartitionRecordFactory.create(id="p-1", tenant_id=tenant_id, reception_id="r-1", crates=[42])
        row["pallets"].insert(0, {"number": 1, "crates": -3, "reference": "PAL-20251018-CLI-001"})
        mock_supabase.set_table_data(COLLECTIONS, [row])

        result = PalletLookupService().lookup(tenant_id, "PAL-20251018-CLI-001")

        assert result.pallet.crates == 42

    def test_query_failure_raises_database_error(self, mock_db, mock_supabase, tenant_id):
        mock_supabase.fail_table(COLLECTIONS, "select")

        with pytest.raises(DatabaseError):
            PalletLookupService().lookup(tenant_id, "PAL-20251018-CLI-001")

    def test_custom_strategy_chain(self, mock_db, mock_supabase, stored_partition, tenant_id):
        strategies = [LookupStrategy(source=ReceptionPalletSource(mock_supabase), field="reference")]

        with pytest.raises(PalletNotFoundError):
            PalletLookupService(strategies=strategies).lookup(tenant_id, "PAL-20251018-FER-001")


class TestDefaultStrategies:
    def test_field_major_order(self, mock_supabase):
        order = [(s.field, s.source.name) for s in default_strategies(mock_supabase)]

        assert order == [
            ("reference", "pallet_collections"),
            ("reference", "receptions"),
            ("number", "pallet_collections"),
            ("number", "receptions"),
            ("palletNumber", "pallet_collections"),
            ("palletNumber", "receptions"),
        ]

    def test_sources_use_configured_tables(self, mock_supabase):
        assert PalletCollectionSource(mock_supabase).table == "pallet_collections"
        assert ReceptionPalletSource(mock_supabase).table == "receptions"


class TestGetPalletLookupService:
    def test_singleton(self, mock_db):
        assert get_pallet_lookup_service() is get_pallet_lookup_service()
