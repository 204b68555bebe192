"""
Minimal XLSX reader for recipe uploads.

Only the text needed for import is extracted: the archive is unzipped into
text parts and the worksheet XML is scanned for <row> and <t> elements.
Shared-string tables, styles, merged cells and cell references are ignored,
so cell text must be stored inline (t="inlineStr"), which is what the
downloadable template produces.
"""

import re
import zipfile
from io import BytesIO
import structlog

from exceptions import ExcelParseError

logger = structlog.get_logger(__name__)

_ROW_PATTERN = re.compile(r"<row(\s[^>]*)?(?<!/)>(.*?)</row>", re.DOTALL)
_ROW_NUMBER_PATTERN = re.compile(r'\sr="(\d+)"')
_TEXT_PATTERN = re.compile(r"<t(?:\s[^>]*)?(?<!/)>(.*?)</t>", re.DOTALL)

# Order matters: &amp; last so "&amp;lt;" decodes to "&lt;", not "<".
_XML_ENTITIES = (
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&apos;", "'"),
    ("&amp;", "&"),
)


def unzip_entries(data: bytes) -> dict[str, str]:
    """
    Read every member of an XLSX archive as UTF-8 text.

    Args:
        data: Raw bytes of the uploaded file

    Returns:
        Dict mapping archive member name to its decoded text

    Raises:
        ExcelParseError: If the bytes are not a readable ZIP archive
    """
    try:
        with zipfile.ZipFile(BytesIO(data)) as archive:
            return {
                info.filename: archive.read(info).decode("utf-8", errors="replace")
                for info in archive.infolist()
                if not info.is_dir()
            }
    except (zipfile.BadZipFile, zipfile.LargeZipFile) as e:
        logger.error("xlsx_unzip_failed", error=str(e), size=len(data))
        raise ExcelParseError(
            message="File is not a valid XLSX archive",
            details={"original_error": str(e)}
        )


def unescape_xml(text: str) -> str:
    """Decode the five predefined XML entities."""
    for entity, char in _XML_ENTITIES:
        text = text.replace(entity, char)
    return text


def extract_numbered_rows(xml: str) -> list[tuple[int, list[str]]]:
    """
    Extract rows of cell text with their sheet row numbers.

    The number comes from the row's r attribute. Excel omits empty rows from
    the file, so counting <row> elements would drift after a blank row. A row
    without r is numbered one past the previous row.

    Each <row> yields the decoded text of its <t> nodes in document order.
    Rows without text nodes come back as empty lists; self-closing <row/>
    and <t/> elements are skipped.
    """
    rows = []
    previous = 0
    for match in _ROW_PATTERN.finditer(xml):
        number_match = _ROW_NUMBER_PATTERN.search(match.group(1) or "")
        number = int(number_match.group(1)) if number_match else previous + 1
        cells = [unescape_xml(text) for text in _TEXT_PATTERN.findall(match.group(2))]
        rows.append((number, cells))
        previous = number
    return rows


def extract_sheet_rows(xml: str) -> list[list[str]]:
    """Rows of cell text from worksheet XML, without row numbers."""
    return [cells for _, cells in extract_numbered_rows(xml)]
