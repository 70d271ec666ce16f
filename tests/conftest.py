"""
Shared test fixtures.
"""

import os
import sys
from pathlib import Path

# Add project root to Python path
project_dir = Path(__file__).parent.parent
sys.path.insert(0, str(project_dir))

# Settings are loaded at import time and require Supabase credentials
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")

import pytest
from unittest.mock import patch
from datetime import datetime, timezone
from typing import Generator
from uuid import uuid4

from tests.factories import ReceptionFactory

# ===================
# MOCK SUPABASE CLIENT
# ===================

class MockSupabaseResponse:
    """Mock Supabase query response."""

    def __init__(self, data: list = None, count: int = None):
        self.data = data or []
        self.count = count if count is not None else len(self.data)


class MockSupabaseQuery:
    """
    Mock Supabase query builder with chainable methods.

    eq() filters are applied on execute(); insert/update/delete change the
    table's rows so that later queries see them.
    """

    def __init__(self, table: "MockSupabaseTable", action: str = "select", payload=None):
        self._table = table
        self._action = action
        self._payload = payload
        self._filters = []
        self._is_single = False

    def select(self, *args, **kwargs):
        return self

    def eq(self, column, value):
        self._filters.append((column, value))
        return self

    def neq(self, column, value):
        return self

    def single(self):
        self._is_single = True
        return self

    def order(self, column, **kwargs):
        return self

    def range(self, start, end):
        return self

    def limit(self, count):
        return self

    def _matching(self) -> list:
        return [
            row for row in self._table.rows
            if all(row.get(column) == value for column, value in self._filters)
        ]

    def execute(self) -> MockSupabaseResponse:
        self._table.calls.append(self._action)
        if self._action in self._table.fail_on:
            raise Exception(f"simulated {self._action} failure")

        if self._action == "insert":
            items = self._payload if isinstance(self._payload, list) else [self._payload]
            now = datetime.now(timezone.utc).isoformat()
            data = []
            for item in items:
                row = dict(item)
                row.setdefault("id", str(uuid4()))
                row.setdefault("created_at", now)
                row.setdefault("updated_at", now)
                self._table.rows.append(row)
                data.append(dict(row))
        elif self._action == "update":
            data = []
            for row in self._matching():
                row.update(self._payload)
                data.append(dict(row))
        elif self._action == "delete":
            data = self._matching()
            self._table.rows[:] = [r for r in self._table.rows if r not in data]
        else:
            data = [dict(row) for row in self._matching()]

        if self._is_single:
            first = data[0] if data else None
            return MockSupabaseResponse(data=first, count=1 if first else 0)
        return MockSupabaseResponse(
            data=data,
            count=self._table.count if self._table.count is not None else len(data)
        )


class MockSupabaseTable:
    """Mock Supabase table holding rows in memory."""

    def __init__(self, data: list = None, count: int = None):
        self.rows = [dict(row) for row in (data or [])]
        self.count = count
        self.fail_on: set = set()
        self.calls: list = []

    def select(self, *args, **kwargs):
        return MockSupabaseQuery(self, "select")

    def insert(self, data):
        return MockSupabaseQuery(self, "insert", data)

    def update(self, data):
        return MockSupabaseQuery(self, "update", data)

    def delete(self):
        return MockSupabaseQuery(self, "delete")


class MockSupabaseClient:
    """Mock Supabase client."""

    def __init__(self):
        self._tables = {}

    def set_table_data(self, table_name: str, data: list, count: int = None):
        """Configure mock data for a table."""
        self._tables[table_name] = MockSupabaseTable(data, count)

    def fail_table(self, table_name: str, *actions: str):
        """Make the given actions (select/insert/update) raise on a table."""
        self.table(table_name).fail_on.update(actions)

    def rows(self, table_name: str) -> list:
        """Current rows of a table."""
        return self.table(table_name).rows

    def table(self, name: str) -> MockSupabaseTable:
        """Get mock table (created empty on first use)."""
        if name not in self._tables:
            self._tables[name] = MockSupabaseTable()
        return self._tables[name]


# ===================
# FIXTURES
# ===================

@pytest.fixture(autouse=True)
def reset_singletons():
    """Service singletons would otherwise keep a previous test's client."""
    import services.reception_service as reception_module
    import services.partition_service as partition_module
    import services.ticket_service as ticket_module
    import services.pallet_lookup_service as lookup_module

    def _reset():
        reception_module._reception_service = None
        partition_module._partition_service = None
        ticket_module._ticket_service = None
        lookup_module._pallet_lookup_service = None

    _reset()
    yield
    _reset()


@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("receptions", [
                {"id": "r-1", "tenant_id": "t-1", ...}
            ])
    """
    return MockSupabaseClient()


@pytest.fixture
def mock_db(mock_supabase) -> Generator:
    """
    Patch the database client with mock.

    Usage:
        def test_something(mock_db, mock_supabase):
            mock_supabase.set_table_data("pallet_collections", [...])
            # Now any service using get_supabase_client() gets the mock
    """
    with patch("config.database.get_supabase_client", return_value=mock_supabase):
        with patch("services.reception_service.get_supabase_client", return_value=mock_supabase):
            with patch("services.partition_service.get_supabase_client", return_value=mock_supabase):
                with patch("services.pallet_lookup_service.get_supabase_client", return_value=mock_supabase):
                    yield mock_supabase


@pytest.fixture
def tenant_id() -> str:
    return "tenant-froid-01"


@pytest.fixture
def sample_reception_data(tenant_id) -> dict:
    """Reception of 100 crates for client 'Ferme Belle Vue'."""
    return ReceptionFactory.create(
        id="reception-uuid-100",
        tenant_id=tenant_id,
        client_name="Ferme Belle Vue",
        total_crates=100,
    )


@pytest.fixture
def sample_reception(sample_reception_data):
    from models.reception import Reception
    return Reception.model_validate(sample_reception_data)


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client_with_mock_db(mock_db):
    """
    Create FastAPI test client with mocked database.

    Usage:
        def test_endpoint(test_client_with_mock_db, mock_supabase):
            mock_supabase.set_table_data("receptions", [...])
            response = test_client_with_mock_db.get("/api/pallets/config")
    """
    from fastapi.testclient import TestClient
    from main import app

    yield TestClient(app)
