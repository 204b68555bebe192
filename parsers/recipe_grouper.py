"""
Re-aggregation of vertically expanded rows into recipe groups.

A recipe spans one row per material, with recipe-level columns repeated.
Rows are grouped by recipe code when present, otherwise by recipe name, both
compared trimmed and uppercased. The code is authoritative: two rows with the
same code and different names land in the same group.
"""

from dataclasses import dataclass, field
from typing import Optional

from models.template import RECIPE_CODE, RECIPE_NAME
from parsers.row_mapper import MappedRow


@dataclass
class RecipeGroup:
    """Rows belonging to one recipe, in file order."""
    key: Optional[str]  # None when the row has neither code nor name
    rows: list[MappedRow] = field(default_factory=list)

    @property
    def first(self) -> MappedRow:
        return self.rows[0]

    @property
    def has_key(self) -> bool:
        return self.key is not None


def recipe_group_key(row: MappedRow) -> Optional[str]:
    """Normalized code, else normalized name, else None."""
    code = row.get(RECIPE_CODE).strip()
    if code:
        return code.upper()
    name = row.get(RECIPE_NAME).strip()
    if name:
        return name.upper()
    return None


def group_rows(rows: list[MappedRow]) -> list[RecipeGroup]:
    """
    Group mapped rows by recipe key.

    Groups come back in first-seen order and keep row order. Rows without a
    key are never merged: each becomes its own single-row group.
    """
    groups: list[RecipeGroup] = []
    by_key: dict[str, RecipeGroup] = {}

    for row in rows:
        key = recipe_group_key(row)
        if key is None:
            groups.append(RecipeGroup(key=None, rows=[row]))
            continue

        group = by_key.get(key)
        if group is None:
            group = RecipeGroup(key=key)
            by_key[key] = group
            groups.append(group)
        group.rows.append(row)

    return groups
