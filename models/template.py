"""
Import template schemas.

A template's ordered fields define which semantic key each column position of
an uploaded file maps to.
"""

from pydantic import BaseModel, Field
from typing import Optional
from enum import Enum

from models.base import BaseSchema


# Field keys the import pipeline reads from mapped rows
RECIPE_NAME = "recipe_name"
RECIPE_CODE = "recipe_code"
RECIPE_CATEGORY = "recipe_category"
RECIPE_CUSTOMER = "recipe_customer"
BATCH_NO = "batch_no"
DESIGNER = "designer"
MATERIAL_NAME = "material_name"
MATERIAL_CODE = "material_code"
MATERIAL_WEIGHT = "material_weight"
MATERIAL_UNIT = "material_unit"
MATERIAL_SEQUENCE = "material_sequence"
MATERIAL_NOTES = "material_notes"


class TemplateFormat(str, Enum):
    """File formats a template can be downloaded and imported as."""
    CSV = "CSV"
    EXCEL = "EXCEL"


class TemplateField(BaseSchema):
    """One column of an import template."""

    id: str
    key: str = Field(..., min_length=1, description="Semantic key, e.g. recipe_name")
    label: str = Field(..., description="Column header shown in the file")
    description: str = ""
    required: bool = False
    example: str = ""
    order: int = Field(..., ge=1, description="1-based column position")


class TemplateDefinition(BaseSchema):
    """Import template with its ordered column schema."""

    id: str
    name: str
    description: str = ""
    version: int = 1
    updated_at: str
    supported_formats: list[TemplateFormat] = Field(
        default_factory=lambda: [TemplateFormat.CSV, TemplateFormat.EXCEL]
    )
    fields: list[TemplateField]

    def ordered_fields(self) -> list[TemplateField]:
        """Fields sorted by column order."""
        return sorted(self.fields, key=lambda f: f.order)

    def required_labels(self) -> list[str]:
        """Header labels an uploaded file must contain."""
        return [f.label for f in self.ordered_fields() if f.required]


class TemplateFieldPayload(BaseModel):
    """Field as submitted in a template update."""

    id: Optional[str] = None
    key: str = ""
    label: str = ""
    description: str = ""
    required: bool = True
    example: str = ""
    order: int = 0


class TemplateUpdateRequest(BaseModel):
    """Template update request body."""

    name: Optional[str] = None
    description: Optional[str] = None
    fields: list[TemplateFieldPayload]
