"""
Unit tests for recipe stores and code generation.

Run: pytest tests/unit/test_recipe_store.py -v
"""

import pytest
from datetime import datetime

from exceptions import DatabaseError, RecipeCodeExistsError
from models.recipe import MaterialImport, RecipeImportRequest
from models.recipe_import import ImportSummary
from services.recipe_import_service import RecipeImportService
from services.recipe_store import (
    InMemoryRecipeStore,
    SupabaseRecipeStore,
    generate_recipe_code,
)
from tests.factories import RecipeRowFactory, build_csv

TODAY = datetime(2025, 1, 7)


def _request(code: str = "R1", name: str = "Mint", category: str = "Flavor", weights=(5, 95)) -> RecipeImportRequest:
    return RecipeImportRequest(
        code=code,
        name=name,
        category=category,
        materials=[
            MaterialImport(name=f"M{i}", weight=w, sequence=i)
            for i, w in enumerate(weights, start=1)
        ],
    )


class TestGenerateRecipeCode:
    """Tests for generate_recipe_code()"""

    def test_format(self):
        code = generate_recipe_code("Flavor", 150.0, lambda c: False, today=TODAY)
        assert code == "FL25010715001"

    def test_counter_skips_taken_codes(self):
        taken = {"AC25010702001", "AC25010702002"}
        code = generate_recipe_code("acid", 20.4, taken.__contains__, today=TODAY)
        assert code == "AC25010702003"

    @pytest.mark.parametrize("category,prefix", [
        ("Sweetener", "SW"),
        ("COLORANT", "CL"),
        (" preservative ", "PS"),
        ("Thickener", "TK"),
        ("Uncategorized", "OT"),
        ("", "OT"),
    ])
    def test_prefix_by_category(self, category, prefix):
        assert generate_recipe_code(category, 1, lambda c: False, today=TODAY).startswith(prefix)

    def test_zero_weight(self):
        assert generate_recipe_code("Flavor", 0, lambda c: False, today=TODAY) == "FL25010700001"


class TestInMemoryRecipeStore:
    """Tests for InMemoryRecipeStore"""

    def test_add_and_lookup(self):
        store = InMemoryRecipeStore()

        recipe = store.add_recipe(_request())

        assert recipe.code == "R1"
        assert recipe.total_weight == 100
        assert [m.sequence for m in recipe.materials] == [1, 2]
        assert store.get_by_code("R1") == recipe
        assert store.count() == 1

    def test_duplicate_code_rejected(self):
        store = InMemoryRecipeStore()
        store.add_recipe(_request())

        with pytest.raises(RecipeCodeExistsError) as exc_info:
            store.add_recipe(_request(name="Other"))

        assert exc_info.value.message == "recipe code R1 already exists, use another code"
        assert store.count() == 1

    def test_empty_code_is_generated(self):
        store = InMemoryRecipeStore()

        first = store.add_recipe(_request(code=""))
        second = store.add_recipe(_request(code=""))

        assert first.code.startswith("FL")
        assert first.code.endswith("10001")
        assert second.code.endswith("10002")
        assert first.code[:-2] == second.code[:-2]

    def test_unknown_code(self):
        assert InMemoryRecipeStore().get_by_code("nope") is None


class TestSupabaseRecipeStore:
    """Tests for SupabaseRecipeStore against the mock client"""

    def test_inserts_recipe_and_materials(self, mock_supabase):
        store = SupabaseRecipeStore(db=mock_supabase)

        recipe = store.add_recipe(_request())

        recipes = mock_supabase.rows("recipes")
        materials = mock_supabase.rows("recipe_materials")
        assert [r["code"] for r in recipes] == ["R1"]
        assert "materials" not in recipes[0]
        assert [m["recipe_id"] for m in materials] == [recipe.id, recipe.id]
        assert store.count() == 1

    def test_get_by_code_reassembles_materials(self, mock_supabase):
        store = SupabaseRecipeStore(db=mock_supabase)
        store.add_recipe(_request())

        fetched = store.get_by_code("R1")

        assert fetched.name == "Mint"
        assert [m.name for m in fetched.materials] == ["M1", "M2"]
        assert store.get_by_code("R9") is None

    def test_duplicate_code_rejected(self, mock_supabase):
        mock_supabase.set_table_data("recipes", [{"id": "recipe_1", "code": "R1"}])
        store = SupabaseRecipeStore(db=mock_supabase)

        with pytest.raises(RecipeCodeExistsError):
            store.add_recipe(_request())

        assert len(mock_supabase.rows("recipes")) == 1

    def test_generated_code_avoids_existing_rows(self, mock_supabase):
        existing = generate_recipe_code("Flavor", 100, lambda c: False)
        mock_supabase.set_table_data("recipes", [{"id": "recipe_1", "code": existing}])
        store = SupabaseRecipeStore(db=mock_supabase)

        recipe = store.add_recipe(_request(code=""))

        assert recipe.code != existing
        assert recipe.code[:-2] == existing[:-2]

    def test_insert_failure_raises_database_error(self, mock_supabase):
        mock_supabase.fail_inserts("recipes", RuntimeError("connection reset"))
        store = SupabaseRecipeStore(db=mock_supabase)

        with pytest.raises(DatabaseError) as exc_info:
            store.add_recipe(_request())

        assert exc_info.value.code == "DATABASE_ERROR"
        assert "connection reset" in exc_info.value.message

    def test_materials_failure_removes_recipe_row(self, mock_supabase):
        mock_supabase.fail_inserts("recipe_materials", RuntimeError("materials table locked"))
        store = SupabaseRecipeStore(db=mock_supabase)

        with pytest.raises(DatabaseError) as exc_info:
            store.add_recipe(_request())

        assert "materials table locked" in exc_info.value.message
        assert mock_supabase.rows("recipes") == []
        assert store.get_by_code("R1") is None

    def test_rollback_leaves_other_recipes_alone(self, mock_supabase):
        store = SupabaseRecipeStore(db=mock_supabase)
        store.add_recipe(_request(code="R0", name="Lemon"))
        mock_supabase.fail_inserts("recipe_materials", RuntimeError("boom"))

        with pytest.raises(DatabaseError):
            store.add_recipe(_request())

        assert [r["code"] for r in mock_supabase.rows("recipes")] == ["R0"]

    def test_reimport_after_materials_failure(self, mock_supabase, template_repository):
        """A failed import does not leave the code taken for the corrected retry."""
        store = SupabaseRecipeStore(db=mock_supabase)
        service = RecipeImportService(recipe_store=store, template_repository=template_repository)
        csv = build_csv(RecipeRowFactory.create_recipe("Mint", "R1", [("Menthol", "5")]))

        mock_supabase.fail_inserts("recipe_materials", RuntimeError("timeout"))
        first = service.import_csv(csv)
        mock_supabase.fail_inserts("recipe_materials", None)
        second = service.import_csv(csv)

        assert (first.success, first.failed) == (0, 1)
        assert second == ImportSummary(total=1, success=1, failed=0, errors=())
        assert [r["code"] for r in mock_supabase.rows("recipes")] == ["R1"]
        assert len(mock_supabase.rows("recipe_materials")) == 1
