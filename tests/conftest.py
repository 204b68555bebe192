"""
Shared test fixtures.
"""

import sys
from pathlib import Path

# Add backend directory to Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

import pytest
from datetime import datetime, timezone
from typing import Optional

from exceptions import RecipeCodeExistsError
from models.recipe import Recipe, RecipeImportRequest
from services.recipe_store import InMemoryRecipeStore
from services.template_service import TemplateRepository
from services.import_log_service import ImportLogService
from services.recipe_import_service import RecipeImportService


# ===================
# MOCK SUPABASE CLIENT
# ===================

class MockSupabaseResponse:
    """Mock Supabase query response."""

    def __init__(self, data=None, count: int = None):
        self.data = data if data is not None else []
        self.count = count if count is not None else len(self.data) if isinstance(self.data, list) else 1


class MockSupabaseQuery:
    """Mock Supabase query builder with chainable methods that filter stored rows."""

    def __init__(self, table: "MockSupabaseTable"):
        self._table = table
        self._filters: list[tuple[str, object]] = []
        self._limit: Optional[int] = None
        self._inserted: Optional[list] = None
        self._deleting = False

    def select(self, *args, **kwargs):
        return self

    def insert(self, data):
        if self._table.insert_error is not None:
            raise self._table.insert_error
        rows = data if isinstance(data, list) else [data]
        now = datetime.now(timezone.utc).isoformat()
        stored = [{**row, "created_at": now} for row in rows]
        self._table.rows.extend(stored)
        self._inserted = stored
        return self

    def delete(self):
        self._deleting = True
        return self

    def eq(self, column, value):
        self._filters.append((column, value))
        return self

    def order(self, column, **kwargs):
        return self

    def limit(self, count):
        self._limit = count
        return self

    def execute(self) -> MockSupabaseResponse:
        if self._inserted is not None:
            return MockSupabaseResponse(data=self._inserted)
        if self._deleting:
            removed = [row for row in self._table.rows if self._matches(row)]
            self._table.rows = [row for row in self._table.rows if not self._matches(row)]
            return MockSupabaseResponse(data=removed)
        rows = [row for row in self._table.rows if self._matches(row)]
        count = len(rows)
        if self._limit is not None:
            rows = rows[:self._limit]
        return MockSupabaseResponse(data=rows, count=count)

    def _matches(self, row: dict) -> bool:
        return all(row.get(column) == value for column, value in self._filters)


class MockSupabaseTable:
    """Mock Supabase table holding rows in memory."""

    def __init__(self):
        self.rows: list[dict] = []
        self.insert_error: Optional[Exception] = None

    def select(self, *args, **kwargs):
        return MockSupabaseQuery(self).select(*args, **kwargs)

    def insert(self, data):
        return MockSupabaseQuery(self).insert(data)

    def delete(self):
        return MockSupabaseQuery(self).delete()


class MockSupabaseClient:
    """Mock Supabase client."""

    def __init__(self):
        self._tables: dict[str, MockSupabaseTable] = {}

    def set_table_data(self, table_name: str, data: list):
        """Configure rows for a table."""
        self.table(table_name).rows = list(data)

    def fail_inserts(self, table_name: str, error: Optional[Exception]):
        """Make every insert into a table raise; None clears the fault."""
        self.table(table_name).insert_error = error

    def rows(self, table_name: str) -> list[dict]:
        return self.table(table_name).rows

    def table(self, name: str) -> MockSupabaseTable:
        if name not in self._tables:
            self._tables[name] = MockSupabaseTable()
        return self._tables[name]


# ===================
# STORE DOUBLES
# ===================

class RecordingRecipeStore(InMemoryRecipeStore):
    """In-memory store that remembers every request it was handed."""

    def __init__(self):
        super().__init__()
        self.requests: list[RecipeImportRequest] = []

    def add_recipe(self, request: RecipeImportRequest) -> Recipe:
        self.requests.append(request)
        return super().add_recipe(request)


class FailingRecipeStore(RecordingRecipeStore):
    """Store that raises for chosen recipe names."""

    def __init__(self, fail_names: set[str], error: Exception = None):
        super().__init__()
        self.fail_names = fail_names
        self.error = error

    def add_recipe(self, request: RecipeImportRequest) -> Recipe:
        if request.name in self.fail_names:
            self.requests.append(request)
            raise self.error or RuntimeError(f"store rejected {request.name}")
        return super().add_recipe(request)


class BrokenImportLog(ImportLogService):
    """Import log whose database insert always fails."""

    def __init__(self):
        client = MockSupabaseClient()
        client.fail_inserts("import_logs", ConnectionError("audit table unavailable"))
        super().__init__(db=client, history_size=10)


# ===================
# FIXTURES
# ===================

@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("recipes", [{"id": "1", "code": "R1"}])
    """
    return MockSupabaseClient()


@pytest.fixture
def template_repository() -> TemplateRepository:
    return TemplateRepository()


@pytest.fixture
def recipe_store() -> RecordingRecipeStore:
    return RecordingRecipeStore()


@pytest.fixture
def import_log() -> ImportLogService:
    return ImportLogService(history_size=50)


@pytest.fixture
def import_service(recipe_store, template_repository, import_log) -> RecipeImportService:
    """Import service wired to in-memory collaborators."""
    return RecipeImportService(
        recipe_store=recipe_store,
        template_repository=template_repository,
        import_log=import_log,
    )


@pytest.fixture
def duplicate_code_error() -> RecipeCodeExistsError:
    return RecipeCodeExistsError("R2")


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client(monkeypatch, import_service, import_log, template_repository):
    """
    FastAPI test client whose routes use the fixture collaborators.

    Usage:
        def test_endpoint(test_client):
            response = test_client.get("/api/templates")
            assert response.status_code == 200
    """
    from fastapi.testclient import TestClient
    from main import app

    monkeypatch.setattr("routes.recipes.get_recipe_import_service", lambda: import_service)
    monkeypatch.setattr("routes.recipes.get_import_log_service", lambda: import_log)
    monkeypatch.setattr("routes.templates.get_template_repository", lambda: template_repository)

    return TestClient(app)
