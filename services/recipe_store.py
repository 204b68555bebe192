"""
Recipe stores.

A recipe store persists one RecipeImportRequest at a time and returns the
stored Recipe. It rejects a non-empty code that already exists and generates
a code when the request leaves it empty.

Two implementations:
    InMemoryRecipeStore: process-local, used for development and tests
    SupabaseRecipeStore: "recipes" and "recipe_materials" tables
"""

import threading
import uuid
from datetime import datetime
from typing import Callable, Optional, Protocol
import structlog

from config import settings, get_supabase_client
from models.recipe import Material, Recipe, RecipeImportRequest
from exceptions import DatabaseError, RecipeCodeExistsError

logger = structlog.get_logger(__name__)

CODE_PREFIXES = {
    "flavor": "FL",
    "acid": "AC",
    "sweetener": "SW",
    "colorant": "CL",
    "preservative": "PS",
    "thickener": "TK",
}
DEFAULT_CODE_PREFIX = "OT"


class RecipeStore(Protocol):
    """What the import pipeline needs from a recipe store."""

    def add_recipe(self, request: RecipeImportRequest) -> Recipe:
        ...


def generate_recipe_code(
    category: str,
    total_weight: float,
    code_exists: Callable[[str], bool],
    today: Optional[datetime] = None,
) -> str:
    """
    Generate an unused recipe code.

    Format: <prefix><yyMMdd><weight:03d><counter:02d>, e.g. FL25010715001.
    The counter starts at 01 and increments until code_exists() is False.
    """
    prefix = CODE_PREFIXES.get(category.strip().lower(), DEFAULT_CODE_PREFIX)
    date_part = (today or datetime.now()).strftime("%y%m%d")
    weight_part = f"{int(total_weight):03d}" if total_weight > 0 else "000"

    counter = 1
    while True:
        code = f"{prefix}{date_part}{weight_part}{counter:02d}"
        if not code_exists(code):
            return code
        counter += 1


def build_recipe(request: RecipeImportRequest, code: str) -> Recipe:
    """Turn a request into a Recipe with fresh ids and timestamps."""
    now = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    recipe_id = f"recipe_{uuid.uuid4()}"
    materials = [
        Material(
            id=f"material_{uuid.uuid4()}_{index}",
            name=m.name,
            weight=m.weight,
            unit=m.unit,
            sequence=m.sequence,
            notes=m.notes,
            code=m.code,
        )
        for index, m in enumerate(request.materials)
    ]
    return Recipe(
        id=recipe_id,
        code=code,
        name=request.name,
        category=request.category,
        sub_category=request.sub_category,
        customer=request.customer,
        batch_no=request.batch_no,
        version=request.version,
        description=request.description,
        materials=materials,
        total_weight=request.total_weight,
        create_time=now,
        update_time=now,
        status=request.status,
        priority=request.priority,
        tags=list(request.tags),
        creator=request.creator,
        reviewer=request.reviewer,
    )


class InMemoryRecipeStore:
    """Process-local recipe store."""

    def __init__(self):
        self._recipes: dict[str, Recipe] = {}
        self._ids_by_code: dict[str, str] = {}
        self._lock = threading.Lock()

    def add_recipe(self, request: RecipeImportRequest) -> Recipe:
        """
        Store a recipe.

        Raises:
            RecipeCodeExistsError: If request.code is already taken
        """
        with self._lock:
            if request.code and request.code in self._ids_by_code:
                raise RecipeCodeExistsError(request.code)

            code = request.code or generate_recipe_code(
                request.category,
                request.total_weight,
                lambda candidate: candidate in self._ids_by_code,
            )
            recipe = build_recipe(request, code)
            self._recipes[recipe.id] = recipe
            self._ids_by_code[code] = recipe.id

        logger.debug("recipe_stored", recipe_id=recipe.id, code=code)
        return recipe

    def get_by_code(self, code: str) -> Optional[Recipe]:
        recipe_id = self._ids_by_code.get(code)
        return self._recipes.get(recipe_id) if recipe_id else None

    def get_all(self) -> list[Recipe]:
        return list(self._recipes.values())

    def count(self) -> int:
        return len(self._recipes)


class SupabaseRecipeStore:
    """
    Recipe store backed by Supabase.

    Recipe rows go to "recipes", material rows to "recipe_materials".
    """

    def __init__(self, db=None):
        self.db = db if db is not None else get_supabase_client()
        self.table = "recipes"
        self.materials_table = "recipe_materials"

    def add_recipe(self, request: RecipeImportRequest) -> Recipe:
        """
        Insert a recipe and its materials.

        Raises:
            RecipeCodeExistsError: If request.code is already taken
            DatabaseError: If an insert fails
        """
        if request.code and self._code_exists(request.code):
            raise RecipeCodeExistsError(request.code)

        code = request.code or generate_recipe_code(
            request.category,
            request.total_weight,
            self._code_exists,
        )
        recipe = build_recipe(request, code)

        try:
            recipe_row = recipe.model_dump(mode="json", exclude={"materials"})
            self.db.table(self.table).insert(recipe_row).execute()
        except Exception as e:
            logger.error("recipe_insert_failed", code=code, error=str(e))
            raise DatabaseError("insert", str(e))

        material_rows = [
            {**m.model_dump(mode="json"), "recipe_id": recipe.id}
            for m in recipe.materials
        ]
        try:
            if material_rows:
                self.db.table(self.materials_table).insert(material_rows).execute()
        except Exception as e:
            logger.error("recipe_materials_insert_failed", code=code, error=str(e))
            self._delete_recipe_row(recipe.id)
            raise DatabaseError("insert", str(e))

        logger.info(
            "recipe_created",
            recipe_id=recipe.id,
            code=code,
            materials=len(recipe.materials)
        )
        return recipe

    def get_by_code(self, code: str) -> Optional[Recipe]:
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("code", code)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error("get_recipe_failed", code=code, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            return None
        row = result.data[0]
        return Recipe(**{**row, "materials": self._materials_for(row["id"])})

    def count(self) -> int:
        try:
            result = self.db.table(self.table).select("id", count="exact").execute()
        except Exception as e:
            logger.error("count_recipes_failed", error=str(e))
            raise DatabaseError("select", str(e))
        return result.count or 0

    def _materials_for(self, recipe_id: str) -> list[Material]:
        result = (
            self.db.table(self.materials_table)
            .select("*")
            .eq("recipe_id", recipe_id)
            .order("sequence")
            .execute()
        )
        return [Material(**row) for row in result.data]

    def _delete_recipe_row(self, recipe_id: str) -> None:
        """Remove a recipe row whose materials could not be stored."""
        try:
            self.db.table(self.table).delete().eq("id", recipe_id).execute()
        except Exception as e:
            # The original insert error is what the caller reports
            logger.error("recipe_rollback_failed", recipe_id=recipe_id, error=str(e))
            return
        logger.warning("recipe_rolled_back", recipe_id=recipe_id)

    def _code_exists(self, code: str) -> bool:
        try:
            result = (
                self.db.table(self.table)
                .select("id")
                .eq("code", code)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error("recipe_code_check_failed", code=code, error=str(e))
            raise DatabaseError("select", str(e))
        return bool(result.data)


_store: Optional[RecipeStore] = None


def get_recipe_store() -> RecipeStore:
    """Process-wide store chosen by settings.storage_backend."""
    global _store
    if _store is None:
        if settings.storage_backend == "supabase":
            _store = SupabaseRecipeStore()
        else:
            _store = InMemoryRecipeStore()
        logger.info("recipe_store_initialized", backend=settings.storage_backend)
    return _store
