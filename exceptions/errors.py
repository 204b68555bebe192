"""
Application exceptions.

Only structural and collaborator failures are raised: an unreadable upload,
a missing template, a rejected store write. Problems with individual rows or
recipe groups are collected as messages on the ImportSummary instead.

Every AppError carries an HTTP status so routes can answer with
handle_error(e) without knowing the concrete type.
"""

from typing import Optional, Any
from datetime import datetime, timezone


class AppError(Exception):
    """
    Base exception carrying an error code, HTTP status and context.

    Attributes:
        code: Machine-readable code, e.g. "RECIPE_CODE_EXISTS"
        message: Message shown to API callers and copied into import summaries
        status_code: HTTP status used by the routes
        details: Extra context for the JSON body
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """JSON error body."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """A named resource does not exist (404)."""

    def __init__(self, resource: str, identifier: str, message: Optional[str] = None):
        super().__init__(
            code=f"{resource.upper()}_NOT_FOUND",
            message=message or f"{resource} {identifier} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Input rejected before any work was done (422)."""

    def __init__(self, message: str, code: str = "VALIDATION_ERROR", details: Optional[dict] = None):
        super().__init__(code=code, message=message, status_code=422, details=details)


class DuplicateError(AppError):
    """Unique field already taken (409)."""

    def __init__(self, resource: str, field: str, value: str, message: str):
        super().__init__(
            code=f"{resource.upper()}_{field.upper()}_EXISTS",
            message=message,
            status_code=409,
            details={field: value}
        )


class DatabaseError(AppError):
    """Supabase call failed (500)."""

    def __init__(self, operation: str, message: str):
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation}
        )


# ===================
# RECIPES
# ===================

class RecipeCodeExistsError(DuplicateError):
    """A store already holds a recipe with this code."""

    def __init__(self, code: str):
        super().__init__(
            resource="Recipe",
            field="code",
            value=code,
            message=f"recipe code {code} already exists, use another code"
        )


# ===================
# TEMPLATES
# ===================

class TemplateNotFoundError(NotFoundError):
    """Import template id is unknown to the repository."""

    def __init__(self, template_id: str):
        super().__init__(
            resource="Template",
            identifier=template_id,
            message="standard template not found, initialize template data first"
        )


class TemplateValidationError(ValidationError):
    """Template update rejected."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message, code="TEMPLATE_INVALID", details=details)


# ===================
# UPLOADS
# ===================

class ExcelParseError(ValidationError):
    """Upload is not a readable XLSX archive."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message, code="EXCEL_PARSE_ERROR", details=details)


class UnsupportedFileTypeError(ValidationError):
    """Upload is neither CSV nor XLSX."""

    def __init__(self, filename: Optional[str]):
        super().__init__(
            "Only .csv and .xlsx files can be imported",
            code="UNSUPPORTED_FILE_TYPE",
            details={"filename": filename}
        )


class FileTooLargeError(ValidationError):
    """Upload exceeds settings.max_upload_bytes."""

    def __init__(self, size: int, limit: int):
        super().__init__(
            f"File is {size} bytes, limit is {limit} bytes",
            code="FILE_TOO_LARGE",
            details={"size": size, "limit": limit}
        )
