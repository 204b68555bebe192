"""
Custom exceptions module.

Structural and collaborator failures only; per-row import problems are
reported through ImportSummary.errors.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    DuplicateError,
    DatabaseError,

    # Recipes
    RecipeCodeExistsError,

    # Templates
    TemplateNotFoundError,
    TemplateValidationError,

    # File parsing
    ExcelParseError,
    UnsupportedFileTypeError,
    FileTooLargeError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "DuplicateError",
    "DatabaseError",

    # Recipes
    "RecipeCodeExistsError",

    # Templates
    "TemplateNotFoundError",
    "TemplateValidationError",

    # File parsing
    "ExcelParseError",
    "UnsupportedFileTypeError",
    "FileTooLargeError",
]
