"""
File parsers for recipe imports.

CSV lines and worksheet XML are reduced to rows of cells, mapped onto
template keys, grouped per recipe and validated into import requests.
"""

from parsers.csv_parser import split_csv_lines, tokenize_csv_line
from parsers.sheet_parser import (
    unzip_entries,
    extract_numbered_rows,
    extract_sheet_rows,
    unescape_xml,
)
from parsers.row_mapper import MappedRow, map_row, map_rows
from parsers.recipe_grouper import RecipeGroup, recipe_group_key, group_rows
from parsers.recipe_builder import (
    RecipeBuildResult,
    build_recipe_request,
    build_recipe_requests,
)

__all__ = [
    "split_csv_lines",
    "tokenize_csv_line",
    "unzip_entries",
    "extract_numbered_rows",
    "extract_sheet_rows",
    "unescape_xml",
    "MappedRow",
    "map_row",
    "map_rows",
    "RecipeGroup",
    "recipe_group_key",
    "group_rows",
    "RecipeBuildResult",
    "build_recipe_request",
    "build_recipe_requests",
]
