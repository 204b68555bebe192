"""
Business logic services.

Each service handles one domain area.
"""

from services.template_service import TemplateRepository, get_template_repository
from services.recipe_store import (
    RecipeStore,
    InMemoryRecipeStore,
    SupabaseRecipeStore,
    get_recipe_store,
)
from services.import_log_service import ImportLogService, get_import_log_service
from services.recipe_import_service import (
    RecipeImportService,
    get_recipe_import_service,
    detect_file_type,
)

__all__ = [
    "TemplateRepository",
    "get_template_repository",
    "RecipeStore",
    "InMemoryRecipeStore",
    "SupabaseRecipeStore",
    "get_recipe_store",
    "ImportLogService",
    "get_import_log_service",
    "RecipeImportService",
    "get_recipe_import_service",
    "detect_file_type",
]
