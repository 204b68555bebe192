"""
Recipe import service.

Drives one import pass over a CSV or XLSX upload:

    bytes -> rows of cells -> header check -> template-mapped rows
          -> recipe groups -> import requests + row errors
          -> sequential persistence -> ImportSummary

Requests are persisted one at a time with no enclosing transaction, so a
duplicate code in one recipe does not roll back the recipes stored before
it. Every import is timed and handed to the import log afterwards.
"""

import time
from typing import Optional, Sequence
import structlog

from config import settings
from exceptions import AppError, TemplateNotFoundError, UnsupportedFileTypeError
from models.recipe import RecipeImportRequest
from models.recipe_import import ImportSummary
from models.template import TemplateDefinition
from parsers.csv_parser import split_csv_lines, tokenize_csv_line
from parsers.sheet_parser import unzip_entries, extract_numbered_rows
from parsers.row_mapper import map_rows
from parsers.recipe_grouper import group_rows
from parsers.recipe_builder import (
    build_recipe_requests,
    DEFAULT_CATEGORY,
    DEFAULT_UNIT,
    DEFAULT_CREATOR,
)
from services.recipe_store import RecipeStore, get_recipe_store
from services.template_service import (
    TemplateRepository,
    get_template_repository,
    STANDARD_TEMPLATE_ID,
)
from services.import_log_service import ImportLogService, get_import_log_service

logger = structlog.get_logger(__name__)

FILE_TYPE_CSV = "CSV"
FILE_TYPE_EXCEL = "EXCEL"
DEFAULT_SHEET_PART = "xl/worksheets/sheet1.xml"

MSG_CSV_EMPTY = "CSV content is empty, use the template"
MSG_NO_DATA_ROWS = "no data rows found"
MSG_MISSING_WORKSHEET = "template missing required worksheet"
MSG_NO_VALID_RECIPES = "no valid recipes found, check the template content"

_EXCEL_CONTENT_TYPES = {
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}
_CSV_CONTENT_TYPES = {"text/csv", "application/csv", "text/plain"}


def detect_file_type(file_name: Optional[str], content_type: Optional[str] = None) -> str:
    """
    Decide whether an upload is CSV or EXCEL.

    The extension wins; the content type is only consulted without one.

    Raises:
        UnsupportedFileTypeError: If neither identifies a supported format
    """
    name = (file_name or "").lower()
    if name.endswith(".csv"):
        return FILE_TYPE_CSV
    if name.endswith(".xlsx"):
        return FILE_TYPE_EXCEL
    if "." not in name.rsplit("/", 1)[-1]:
        if content_type in _CSV_CONTENT_TYPES:
            return FILE_TYPE_CSV
        if content_type in _EXCEL_CONTENT_TYPES:
            return FILE_TYPE_EXCEL
    raise UnsupportedFileTypeError(file_name)


class RecipeImportService:
    """
    Import orchestrator.

    Collaborators are injected; get_recipe_import_service() wires the
    process-wide instances for the HTTP layer.
    """

    def __init__(
        self,
        recipe_store: RecipeStore,
        template_repository: TemplateRepository,
        import_log: Optional[ImportLogService] = None,
        template_id: str = STANDARD_TEMPLATE_ID,
        sheet_part: str = DEFAULT_SHEET_PART,
        default_category: str = DEFAULT_CATEGORY,
        default_unit: str = DEFAULT_UNIT,
        default_creator: str = DEFAULT_CREATOR,
    ):
        self.recipe_store = recipe_store
        self.template_repository = template_repository
        self.import_log = import_log
        self.template_id = template_id
        self.sheet_part = sheet_part
        self.default_category = default_category
        self.default_unit = default_unit
        self.default_creator = default_creator

    # ===================
    # ENTRY POINTS
    # ===================

    def import_upload(self, data: bytes, file_name: str, content_type: Optional[str] = None) -> ImportSummary:
        """Dispatch an uploaded file to the CSV or Excel import."""
        if detect_file_type(file_name, content_type) == FILE_TYPE_EXCEL:
            return self.import_excel(data, file_name=file_name)
        return self.import_csv(data, file_name=file_name)

    def import_csv(self, data: bytes, file_name: str = "import.csv") -> ImportSummary:
        """
        Import a UTF-8 CSV file.

        Never raises: unexpected failures become a single-error summary.
        """
        logger.info("recipe_import_started", file_name=file_name, file_type=FILE_TYPE_CSV, size=len(data))
        started = time.perf_counter()
        error_detail = None

        try:
            summary = self.import_csv_text(data.decode("utf-8-sig"))
        except Exception as e:
            error_detail = _error_message(e)
            logger.error("recipe_import_crashed", file_name=file_name, error=error_detail, error_type=type(e).__name__)
            summary = ImportSummary.crashed(error_detail)

        self._finish(file_name, len(data), FILE_TYPE_CSV, started, summary, error_detail)
        return summary

    def import_excel(self, data: bytes, file_name: str = "import.xlsx") -> ImportSummary:
        """
        Import an XLSX file.

        Only the configured worksheet part is read, as inline text.
        Never raises: unexpected failures become a single-error summary.
        """
        logger.info("recipe_import_started", file_name=file_name, file_type=FILE_TYPE_EXCEL, size=len(data))
        started = time.perf_counter()
        error_detail = None

        try:
            template = self._current_template()
            entries = unzip_entries(data)
            sheet_xml = entries.get(self.sheet_part)
            if sheet_xml is None:
                logger.warning("worksheet_missing", file_name=file_name, part=self.sheet_part)
                summary = ImportSummary.rejected(MSG_MISSING_WORKSHEET)
            else:
                summary = self._import_sheet(template, sheet_xml)
        except Exception as e:
            error_detail = _error_message(e)
            logger.error("recipe_import_crashed", file_name=file_name, error=error_detail, error_type=type(e).__name__)
            summary = ImportSummary.crashed(error_detail)

        self._finish(file_name, len(data), FILE_TYPE_EXCEL, started, summary, error_detail)
        return summary

    def import_csv_text(self, text: str) -> ImportSummary:
        """
        Import already-decoded CSV text.

        Raises:
            TemplateNotFoundError: If the configured template is missing
        """
        template = self._current_template()
        lines = split_csv_lines(text)
        if len(lines) <= 1:
            return ImportSummary.rejected(MSG_CSV_EMPTY)

        missing = _missing_headers(template, tokenize_csv_line(lines[0]))
        if missing:
            return ImportSummary.rejected(_missing_headers_message(missing))

        data_lines = lines[1:]
        if not data_lines:
            return ImportSummary.rejected(MSG_NO_DATA_ROWS)

        return self._import_rows(template, [tokenize_csv_line(line) for line in data_lines])

    # ===================
    # PIPELINE STAGES
    # ===================

    def _import_sheet(self, template: TemplateDefinition, sheet_xml: str) -> ImportSummary:
        numbered = extract_numbered_rows(sheet_xml)
        if not numbered:
            return ImportSummary.rejected(MSG_NO_DATA_ROWS)

        missing = _missing_headers(template, numbered[0][1])
        if missing:
            return ImportSummary.rejected(_missing_headers_message(missing))

        data_rows = [cells for _, cells in numbered[1:]]
        if not any(cell.strip() for row in data_rows for cell in row):
            return ImportSummary.rejected(MSG_NO_DATA_ROWS)

        # Excel leaves empty rows out of the file; errors cite the sheet row
        row_numbers = [number for number, _ in numbered[1:]]
        return self._import_rows(template, data_rows, row_numbers)

    def _import_rows(
        self,
        template: TemplateDefinition,
        raw_rows: Sequence[Sequence[str]],
        row_numbers: Optional[Sequence[int]] = None,
    ) -> ImportSummary:
        mapped = map_rows(template.fields, raw_rows, row_numbers=row_numbers)
        groups = group_rows(mapped)
        logger.info("recipe_rows_grouped", rows=len(mapped), groups=len(groups))

        built = build_recipe_requests(
            groups,
            default_category=self.default_category,
            default_unit=self.default_unit,
            default_creator=self.default_creator,
        )
        return self._persist(built.requests, built.errors)

    def _persist(self, requests: list[RecipeImportRequest], parse_errors: list[str]) -> ImportSummary:
        """
        Submit requests one by one; a failure is recorded and the next
        request is still attempted.
        """
        logger.info("recipe_persist_started", requests=len(requests), parse_errors=len(parse_errors))
        errors = list(parse_errors)

        if not requests:
            if not errors:
                errors.append(MSG_NO_VALID_RECIPES)
            return ImportSummary(
                total=len(parse_errors),
                success=0,
                failed=len(errors),
                errors=errors,
            )

        success = 0
        for position, request in enumerate(requests, start=1):
            try:
                self.recipe_store.add_recipe(request)
                success += 1
            except Exception as e:
                message = _error_message(e)
                errors.append(f"entry {position} import failed: {message}")
                logger.warning(
                    "recipe_persist_failed",
                    entry=position,
                    code=request.code,
                    name=request.name,
                    error=message,
                )

        logger.info("recipe_persist_completed", success=success, failed=len(errors))
        return ImportSummary(
            total=len(requests) + len(parse_errors),
            success=success,
            failed=len(errors),
            errors=errors,
        )

    # ===================
    # HELPERS
    # ===================

    def _current_template(self) -> TemplateDefinition:
        template = self.template_repository.get_template_by_id(self.template_id)
        if template is None:
            raise TemplateNotFoundError(self.template_id)
        return template

    def _finish(
        self,
        file_name: str,
        file_size: int,
        file_type: str,
        started: float,
        summary: ImportSummary,
        error_detail: Optional[str],
    ) -> None:
        duration_ms = int((time.perf_counter() - started) * 1000)
        logger.info(
            "recipe_import_completed",
            file_name=file_name,
            total=summary.total,
            success=summary.success,
            failed=summary.failed,
            duration_ms=duration_ms,
        )
        if self.import_log is not None:
            self.import_log.record(file_name, file_size, file_type, duration_ms, summary, error_detail)


def _missing_headers(template: TemplateDefinition, header: Sequence[str]) -> list[str]:
    present = {cell.strip() for cell in header}
    return [label for label in template.required_labels() if label not in present]


def _missing_headers_message(missing: list[str]) -> str:
    return f"header missing required columns: {', '.join(missing)}, use the latest template"


def _error_message(e: Exception) -> str:
    if isinstance(e, AppError):
        return e.message
    return str(e) or type(e).__name__


_service: Optional[RecipeImportService] = None


def get_recipe_import_service() -> RecipeImportService:
    global _service
    if _service is None:
        _service = RecipeImportService(
            recipe_store=get_recipe_store(),
            template_repository=get_template_repository(),
            import_log=get_import_log_service(),
            template_id=settings.recipe_template_id,
            sheet_part=settings.excel_sheet_part,
            default_category=settings.import_default_category,
            default_unit=settings.import_default_unit,
            default_creator=settings.import_default_creator,
        )
    return _service
