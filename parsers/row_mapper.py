"""
Positional mapping of raw cells onto template field keys.
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from models.template import TemplateField


@dataclass
class MappedRow:
    """One data row keyed by template field key."""
    row_number: int  # 1-based, header row is 1
    fields: dict[str, str] = field(default_factory=dict)

    def get(self, key: str) -> str:
        return self.fields.get(key, "")


def map_row(fields: Sequence[TemplateField], raw_cells: Sequence[str]) -> dict[str, str]:
    """
    Zip ordered template fields against one row of raw cells.

    Cells are trimmed; positions past the end of the row map to "".
    """
    return {
        template_field.key: raw_cells[index].strip() if index < len(raw_cells) else ""
        for index, template_field in enumerate(fields)
    }


def map_rows(
    fields: Iterable[TemplateField],
    raw_rows: Sequence[Sequence[str]],
    first_row_number: int = 2,
    row_numbers: Optional[Sequence[int]] = None,
) -> list[MappedRow]:
    """
    Map every data row, skipping rows whose cells are all blank.

    Skipped rows still consume a row number so later rows keep the number
    the user sees in the file.

    Args:
        fields: Template fields (sorted by order here)
        raw_rows: Data rows without the header
        first_row_number: Row number of raw_rows[0]
        row_numbers: Explicit row number per raw row; overrides first_row_number

    Returns:
        MappedRow list in input order
    """
    ordered = sorted(fields, key=lambda f: f.order)
    mapped = []
    for offset, cells in enumerate(raw_rows):
        if all(not cell.strip() for cell in cells):
            continue
        mapped.append(MappedRow(
            row_number=row_numbers[offset] if row_numbers is not None else first_row_number + offset,
            fields=map_row(ordered, cells),
        ))
    return mapped
