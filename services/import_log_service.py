"""
Audit trail of recipe imports.

Recording is a side channel: a failure to write an entry is logged and
swallowed so it can never change the summary returned to the caller.
"""

import time
from collections import deque
from datetime import datetime
from typing import Optional
import structlog

from config import settings, get_supabase_client
from models.recipe_import import ImportLogEntry, ImportSummary

logger = structlog.get_logger(__name__)

MAX_ERROR_DETAIL_LENGTH = 4000


class ImportLogService:
    """
    Records one audit entry per import.

    When a database client is available each entry is inserted into the
    "import_logs" table first; only entries that were stored reach the
    bounded in-memory history behind recent().
    """

    def __init__(self, db=None, history_size: Optional[int] = None, imported_by: str = "WEB"):
        self.db = db
        self.table = "import_logs"
        self.imported_by = imported_by
        self._history: deque[ImportLogEntry] = deque(
            maxlen=history_size or settings.import_log_history_size
        )

    def record(
        self,
        file_name: str,
        file_size: int,
        file_type: str,
        duration_ms: int,
        summary: ImportSummary,
        error_detail: Optional[str] = None,
    ) -> None:
        """Record an import. Never raises."""
        try:
            entry = self._build_entry(file_name, file_size, file_type, duration_ms, summary, error_detail)
            if self.db is not None:
                self.db.table(self.table).insert(entry.model_dump(mode="json")).execute()
            self._history.append(entry)
            logger.info(
                "import_log_recorded",
                file_name=file_name,
                file_type=file_type,
                success=summary.success,
                failed=summary.failed,
                duration_ms=duration_ms,
            )
        except Exception as log_err:
            # Never let audit logging break the import result
            logger.warning(
                "import_log_write_failed",
                file_name=file_name,
                log_error=str(log_err),
            )

    def recent(self, limit: int = 20) -> list[ImportLogEntry]:
        """Most recent entries first."""
        return list(reversed(self._history))[:limit]

    def _build_entry(
        self,
        file_name: str,
        file_size: int,
        file_type: str,
        duration_ms: int,
        summary: ImportSummary,
        error_detail: Optional[str],
    ) -> ImportLogEntry:
        details = error_detail if error_detail is not None else "\n".join(summary.errors)
        return ImportLogEntry(
            id=f"import_{time.time_ns()}",
            file_name=file_name or "unknown",
            file_size=file_size,
            file_type=file_type,
            success_count=summary.success,
            failed_count=summary.failed,
            error_details=details[:MAX_ERROR_DETAIL_LENGTH] or None,
            import_time=datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            import_duration_ms=duration_ms,
            imported_by=self.imported_by,
        )


_service: Optional[ImportLogService] = None


def get_import_log_service() -> ImportLogService:
    global _service
    if _service is None:
        db = get_supabase_client() if settings.storage_backend == "supabase" else None
        _service = ImportLogService(db=db)
    return _service
