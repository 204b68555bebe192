"""
Pydantic models for validation and serialization.
"""

from models.base import BaseSchema, FrozenSchema
from models.recipe import (
    RecipeStatus,
    RecipePriority,
    MaterialImport,
    RecipeImportRequest,
    Material,
    Recipe,
)
from models.template import (
    TemplateFormat,
    TemplateField,
    TemplateDefinition,
    TemplateFieldPayload,
    TemplateUpdateRequest,
)
from models.recipe_import import ImportSummary, ImportLogEntry

__all__ = [
    # Base
    "BaseSchema",
    "FrozenSchema",

    # Recipe
    "RecipeStatus",
    "RecipePriority",
    "MaterialImport",
    "RecipeImportRequest",
    "Material",
    "Recipe",

    # Template
    "TemplateFormat",
    "TemplateField",
    "TemplateDefinition",
    "TemplateFieldPayload",
    "TemplateUpdateRequest",

    # Import
    "ImportSummary",
    "ImportLogEntry",
]
