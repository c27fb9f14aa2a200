"""
Shared test fixtures.
"""

import os
import sys
from pathlib import Path

# Add backend directory to Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Settings are loaded at import time and need these
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")

import pytest
from unittest.mock import patch
from typing import Generator

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

    Honours eq / in_ filters, order and range so pagination and identifier
    lookups behave like the real client.
    """

    def __init__(self, table: "MockSupabaseTable"):
        self._table = table
        self._data = list(table._data)
        self._range = None
        self._limit = None

    def select(self, *args, **kwargs):
        return self

    def eq(self, column, value):
        self._data = [row for row in self._data if row.get(column) == value]
        return self

    def in_(self, column, values):
        wanted = {str(v) for v in values}
        self._data = [row for row in self._data if str(row.get(column)) in wanted]
        return self

    def order(self, column, **kwargs):
        self._data = sorted(self._data, key=lambda row: str(row.get(column, "")))
        return self

    def range(self, start, end):
        self._range = (start, end)
        return self

    def limit(self, count):
        self._limit = count
        return self

    def execute(self) -> MockSupabaseResponse:
        self._table.calls.append(self)
        if self._table.error is not None:
            raise self._table.error

        total = len(self._data)
        data = self._data
        if self._range is not None:
            start, end = self._range
            data = data[start:end + 1]
        if self._limit is not None:
            data = data[:self._limit]
        return MockSupabaseResponse(data=data, count=total)


class MockSupabaseTable:
    """Mock Supabase table with configurable responses."""

    def __init__(self, data: list = None, error: Exception = None):
        self._data = data or []
        self.error = error
        self.calls: list[MockSupabaseQuery] = []

    def select(self, *args, **kwargs):
        return MockSupabaseQuery(self)


class MockSupabaseClient:
    """Mock Supabase client."""

    def __init__(self):
        self._tables: dict[str, MockSupabaseTable] = {}

    def set_table_data(self, table_name: str, data: list):
        """Configure mock data for a table."""
        self._tables[table_name] = MockSupabaseTable(data)

    def set_table_error(self, table_name: str, error: Exception):
        """Make every query on a table raise."""
        self._tables[table_name] = MockSupabaseTable(error=error)

    def table(self, name: str) -> MockSupabaseTable:
        """Get mock table."""
        if name not in self._tables:
            self._tables[name] = MockSupabaseTable()
        return self._tables[name]

    def calls(self, name: str) -> list[MockSupabaseQuery]:
        """Executed queries against a table."""
        return self.table(name).calls


# ===================
# FIXTURES
# ===================

@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("catalog", [
                {"id": "1", "upc": "012345678905", ...}
            ])
    """
    return MockSupabaseClient()


@pytest.fixture
def mock_db(mock_supabase) -> Generator:
    """
    Patch the database client with mock.

    Usage:
        def test_something(mock_db, mock_supabase):
            mock_supabase.set_table_data("catalog", [...])
            # Now any code using get_supabase_client() gets the mock
    """
    with patch("config.database.get_supabase_client", return_value=mock_supabase):
        with patch("services.catalog_service.get_supabase_client", return_value=mock_supabase):
            yield mock_supabase


@pytest.fixture
def sample_catalog() -> list:
    """Small catalog with a duplicated UPC and a leading-zero-free UPC."""
    return [
        {
            "id": "1",
            "upc": "12345678905",
            "manufacturer": "Acme Corp",
            "model": "X100",
            "type": "Pistol",
            "caliber": "9mm",
            "importer": None,
            "country": "USA",
        },
        {
            "id": "2",
            "upc": "764503022616",
            "manufacturer": "Glock Inc.",
            "model": "Model 19",
            "type": "Pistol",
            "caliber": "9mm Luger",
            "importer": "Glock Inc",
            "country": "Austria",
        },
        {
            "id": "3",
            "upc": "764503022616",
            "manufacturer": "Glock Inc.",
            "model": "Model 19",
            "type": "Pistol",
            "caliber": ".40 S&W",
            "importer": "Glock Inc",
            "country": "Austria",
        },
        {
            "id": "4",
            "upc": None,
            "manufacturer": "Ruger",
            "model": "10/22",
            "type": "Rifle",
            "caliber": ".22 LR",
            "importer": None,
            "country": "USA",
        },
    ]


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client():
    """
    Create FastAPI test client.

    Usage:
        def test_endpoint(test_client):
            response = test_client.get("/")
            assert response.status_code == 200
    """
    from fastapi.testclient import TestClient
    from main import app

    return TestClient(app)


@pytest.fixture
def test_client_with_mock_db(mock_supabase):
    """
    Create FastAPI test client with mocked database.

    Usage:
        def test_endpoint(test_client_with_mock_db, mock_supabase):
            mock_supabase.set_table_data("catalog", [...])
            response = test_client_with_mock_db.post("/api/verify", ...)
    """
    from fastapi.testclient import TestClient
    from main import app
    import services.verification_service as verification_module
    from services.catalog_service import CatalogService
    from services.verification_service import VerificationService

    with patch("config.database.get_supabase_client", return_value=mock_supabase):
        with patch("services.catalog_service.get_supabase_client", return_value=mock_supabase):
            service = VerificationService(catalog=CatalogService())
            with patch.object(verification_module, "_verification_service", service):
                yield TestClient(app)
