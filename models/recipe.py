"""
Recipe schemas.

RecipeImportRequest is what the import pipeline hands to a recipe store;
Recipe is what the store gives back after persisting it.
"""

from pydantic import Field
from typing import Optional
from enum import Enum

from models.base import BaseSchema


class RecipeStatus(str, Enum):
    """Recipe lifecycle status."""
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    DRAFT = "DRAFT"
    ARCHIVED = "ARCHIVED"


class RecipePriority(str, Enum):
    """Recipe priority."""
    LOW = "LOW"
    NORMAL = "NORMAL"
    HIGH = "HIGH"
    URGENT = "URGENT"


class MaterialImport(BaseSchema):
    """One material line parsed from an import row."""

    name: str = Field(..., min_length=1, description="Material name")
    code: str = Field("", description="Material code for stock tracing")
    weight: float = Field(..., description="Target weight")
    unit: str = Field("g", description="Weight unit (g, kg, ml, l)")
    sequence: int = Field(1, description="Dosing order")
    notes: str = ""


class RecipeImportRequest(BaseSchema):
    """
    Recipe creation request built from one group of import rows.

    An empty code asks the store to generate one.
    """

    code: str = ""
    name: str = Field(..., min_length=1)
    category: str
    sub_category: str = ""
    customer: str = ""
    batch_no: str = ""
    version: str = "1.0"
    description: str = ""
    materials: list[MaterialImport]
    status: RecipeStatus = RecipeStatus.ACTIVE
    priority: RecipePriority = RecipePriority.NORMAL
    tags: list[str] = Field(default_factory=list)
    creator: str = ""
    reviewer: str = ""

    @property
    def total_weight(self) -> float:
        return sum(m.weight for m in self.materials)


class Material(BaseSchema):
    """Persisted material line."""

    id: str
    name: str
    weight: float
    unit: str = "g"
    sequence: int = 1
    notes: str = ""
    code: str = ""


class Recipe(BaseSchema):
    """Persisted recipe returned by a recipe store."""

    id: str
    code: str
    name: str
    category: str
    sub_category: str = ""
    customer: str = ""
    batch_no: str = ""
    version: str = "1.0"
    description: str = ""
    materials: list[Material]
    total_weight: float
    create_time: str
    update_time: str = ""
    last_used: Optional[str] = None
    usage_count: int = 0
    status: RecipeStatus = RecipeStatus.ACTIVE
    priority: RecipePriority = RecipePriority.NORMAL
    tags: list[str] = Field(default_factory=list)
    creator: str = ""
    reviewer: str = ""
