"""
Import result schemas.
"""

from pydantic import Field
from typing import Literal, Optional

from models.base import BaseSchema, FrozenSchema


class ImportSummary(FrozenSchema):
    """
    Aggregate result of one import call.

    total: requests built plus parse errors
    success: requests the store accepted
    failed: number of error messages (parse and persistence combined)
    errors: human-readable messages, row-tagged where a row is known

    Frozen, and errors is a tuple, so len(errors) == failed cannot drift
    after the summary is returned.
    """

    total: int = Field(0, ge=0)
    success: int = Field(0, ge=0)
    failed: int = Field(0, ge=0)
    errors: tuple[str, ...] = Field(default_factory=tuple)

    @classmethod
    def rejected(cls, message: str) -> "ImportSummary":
        """Zero-activity summary for a structurally unusable file."""
        return cls(total=0, success=0, failed=0, errors=[message])

    @classmethod
    def crashed(cls, message: str) -> "ImportSummary":
        """Summary for an import that raised before producing results."""
        return cls(total=0, success=0, failed=1, errors=[f"import failed: {message}"])


class ImportLogEntry(BaseSchema):
    """Audit entry written after every import."""

    id: str
    file_name: str
    file_size: int
    file_type: Literal["CSV", "EXCEL"]
    success_count: int = 0
    failed_count: int = 0
    error_details: Optional[str] = None
    import_time: str
    import_duration_ms: int = 0
    imported_by: str = "WEB"
