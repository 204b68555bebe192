"""
Validation of recipe groups and assembly of recipe import requests.

Failure granularity:
    - a group with no code or name: one error per row, no request
    - first row without a recipe name: one error, group dropped
    - bad material row: one error, only that row's material skipped
    - no valid materials left: one error, group dropped
Errors never leak across groups.
"""

import math
from dataclasses import dataclass, field
from typing import Optional
import structlog

from models.recipe import MaterialImport, RecipeImportRequest
from models.template import (
    RECIPE_NAME,
    RECIPE_CODE,
    RECIPE_CATEGORY,
    RECIPE_CUSTOMER,
    BATCH_NO,
    DESIGNER,
    MATERIAL_NAME,
    MATERIAL_CODE,
    MATERIAL_WEIGHT,
    MATERIAL_UNIT,
    MATERIAL_SEQUENCE,
    MATERIAL_NOTES,
)
from parsers.recipe_grouper import RecipeGroup

logger = structlog.get_logger(__name__)

DEFAULT_CATEGORY = "Uncategorized"
DEFAULT_UNIT = "g"
DEFAULT_CREATOR = "IMPORT"
NOTES_SEPARATOR = "; "


@dataclass
class RecipeBuildResult:
    """Requests built from all groups plus the row-tagged errors."""
    requests: list[RecipeImportRequest] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


def build_recipe_request(
    group: RecipeGroup,
    errors: list[str],
    default_category: str = DEFAULT_CATEGORY,
    default_unit: str = DEFAULT_UNIT,
    default_creator: str = DEFAULT_CREATOR,
) -> Optional[RecipeImportRequest]:
    """
    Validate one group and build its import request.

    Args:
        group: Rows of one recipe
        errors: Shared error list, appended to in row order
        default_category: Category when the first row leaves it blank
        default_unit: Unit when a material row leaves it blank
        default_creator: Creator when the designer column is blank

    Returns:
        RecipeImportRequest, or None if the group was rejected
    """
    if not group.has_key:
        for row in group.rows:
            errors.append(f"row {row.row_number} missing recipe code or name")
        return None

    first = group.first
    name = first.get(RECIPE_NAME)
    if not name.strip():
        errors.append(f"row {first.row_number} missing recipe name")
        logger.debug("recipe_group_rejected", key=group.key, reason="missing_name")
        return None

    materials: list[MaterialImport] = []
    for position, row in enumerate(group.rows, start=1):
        material_name = row.get(MATERIAL_NAME)
        weight = _parse_float(row.get(MATERIAL_WEIGHT))
        if not material_name.strip() or weight is None:
            errors.append(f"row {row.row_number} invalid material name or weight")
            continue

        sequence = _parse_int(row.get(MATERIAL_SEQUENCE))
        materials.append(MaterialImport(
            name=material_name,
            code=row.get(MATERIAL_CODE),
            weight=weight,
            unit=row.get(MATERIAL_UNIT).strip() or default_unit,
            sequence=sequence if sequence is not None else position,
            notes=row.get(MATERIAL_NOTES),
        ))

    if not materials:
        errors.append(f"recipe '{name}' has no valid materials")
        logger.debug("recipe_group_rejected", key=group.key, reason="no_materials")
        return None

    description = NOTES_SEPARATOR.join(
        notes for notes in (row.get(MATERIAL_NOTES).strip() for row in group.rows) if notes
    )

    return RecipeImportRequest(
        code=first.get(RECIPE_CODE),
        name=name,
        category=first.get(RECIPE_CATEGORY).strip() or default_category,
        customer=first.get(RECIPE_CUSTOMER),
        batch_no=first.get(BATCH_NO),
        description=description,
        materials=materials,
        creator=first.get(DESIGNER).strip() or default_creator,
    )


def build_recipe_requests(
    groups: list[RecipeGroup],
    default_category: str = DEFAULT_CATEGORY,
    default_unit: str = DEFAULT_UNIT,
    default_creator: str = DEFAULT_CREATOR,
) -> RecipeBuildResult:
    """Build requests for every group in discovery order."""
    result = RecipeBuildResult()
    for group in groups:
        request = build_recipe_request(
            group,
            result.errors,
            default_category=default_category,
            default_unit=default_unit,
            default_creator=default_creator,
        )
        if request is not None:
            result.requests.append(request)

    logger.debug(
        "recipe_groups_built",
        groups=len(groups),
        requests=len(result.requests),
        errors=len(result.errors),
    )
    return result


# ===================
# HELPER FUNCTIONS
# ===================

def _parse_float(value: str) -> Optional[float]:
    """Parse a finite decimal number, or None."""
    text = value.strip()
    if not text or "_" in text:
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def _parse_int(value: str) -> Optional[int]:
    """Parse an integer, or None ("1.0" is not an integer)."""
    text = value.strip()
    if not text or "_" in text:
        return None
    try:
        return int(text)
    except ValueError:
        return None
