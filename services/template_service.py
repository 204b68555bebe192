"""
Import template repository.

Holds the column schemas that drive row mapping, in memory. The standard
template describes the vertically expanded layout: one row per material with
recipe columns repeated on every row of the same recipe.
"""

import uuid
import zipfile
from datetime import datetime, timezone
from io import BytesIO
from typing import Optional
import structlog

from exceptions import TemplateValidationError
from models.template import (
    TemplateDefinition,
    TemplateField,
    TemplateFieldPayload,
    TemplateFormat,
    TemplateUpdateRequest,
    RECIPE_NAME,
    RECIPE_CODE,
    RECIPE_CATEGORY,
    BATCH_NO,
    DESIGNER,
    MATERIAL_NAME,
    MATERIAL_WEIGHT,
    MATERIAL_UNIT,
    MATERIAL_SEQUENCE,
    MATERIAL_NOTES,
)
from utils.text_utils import escape_csv, escape_xml, column_name, sanitize_key

logger = structlog.get_logger(__name__)

STANDARD_TEMPLATE_ID = "standard_recipe_template"

# (key, label, description, required, example)
_STANDARD_FIELDS = [
    (RECIPE_NAME, "Recipe Name",
     "Recipe name; repeat it on every material row of the same recipe", True, "Strawberry Base"),
    (RECIPE_CODE, "Recipe Code",
     "Unique recipe code; repeat it on every material row of the same recipe", False, "S000001"),
    (RECIPE_CATEGORY, "Category", "Category used for reporting", False, "Flavor"),
    (BATCH_NO, "Batch", "Batch or version label", False, "2025-Q1"),
    (DESIGNER, "Designer", "Person who designed or reviewed the recipe", False, "J. Smith"),
    (MATERIAL_NAME, "Material Name", "Material name, one material per row", True, "Strawberry Flavor"),
    (MATERIAL_WEIGHT, "Weight", "Material weight, digits only", True, "50"),
    (MATERIAL_UNIT, "Unit", "Weight unit, e.g. g, kg, ml, l", False, "g"),
    (MATERIAL_SEQUENCE, "Sequence", "Dosing order, optional", False, "1"),
    (MATERIAL_NOTES, "Notes", "Material notes or process remarks", False, ""),
]

_SAMPLE_MATERIALS = [
    {MATERIAL_NAME: "Strawberry Flavor", MATERIAL_WEIGHT: "50", MATERIAL_UNIT: "g",
     MATERIAL_SEQUENCE: "1", MATERIAL_NOTES: ""},
    {MATERIAL_NAME: "Propylene Glycol", MATERIAL_WEIGHT: "150", MATERIAL_UNIT: "ml",
     MATERIAL_SEQUENCE: "2", MATERIAL_NOTES: ""},
    {MATERIAL_NAME: "Citric Acid", MATERIAL_WEIGHT: "10", MATERIAL_UNIT: "g",
     MATERIAL_SEQUENCE: "3", MATERIAL_NOTES: ""},
]


class TemplateRepository:
    """
    In-memory template store.

    Templates start from built-in defaults; updates replace the stored copy
    and reset_template() restores the default.
    """

    def __init__(self):
        self._defaults = {t.id: t for t in _build_default_templates()}
        self._templates = {
            template_id: template.model_copy(deep=True)
            for template_id, template in self._defaults.items()
        }

    # ===================
    # READ OPERATIONS
    # ===================

    def get_templates(self) -> list[TemplateDefinition]:
        return list(self._templates.values())

    def get_template_by_id(self, template_id: str) -> Optional[TemplateDefinition]:
        return self._templates.get(template_id)

    # ===================
    # WRITE OPERATIONS
    # ===================

    def update_template(
        self,
        template_id: str,
        request: TemplateUpdateRequest
    ) -> Optional[TemplateDefinition]:
        """
        Replace a template's fields.

        Keys are sanitized and de-duplicated, fields are renumbered 1..n in
        their requested order, and the version is bumped.

        Returns:
            Updated template, or None if the id is unknown

        Raises:
            TemplateValidationError: If no fields were submitted
        """
        current = self.get_template_by_id(template_id)
        if current is None:
            return None
        if not request.fields:
            raise TemplateValidationError(
                "template fields cannot be empty",
                details={"template_id": template_id}
            )

        updated = current.model_copy(update={
            "name": request.name if request.name and request.name.strip() else current.name,
            "description": request.description if request.description is not None else current.description,
            "version": current.version + 1,
            "updated_at": _now(),
            "fields": _normalize_fields(request.fields),
        })
        self._templates[template_id] = updated

        logger.info(
            "template_updated",
            template_id=template_id,
            version=updated.version,
            field_count=len(updated.fields)
        )
        return updated

    def reset_template(self, template_id: str) -> Optional[TemplateDefinition]:
        default = self._defaults.get(template_id)
        if default is None:
            return None
        self._templates[template_id] = default.model_copy(deep=True)
        logger.info("template_reset", template_id=template_id)
        return self._templates[template_id]

    # ===================
    # DOWNLOADS
    # ===================

    def generate_csv_template(self, template_id: str) -> Optional[tuple[str, bytes]]:
        """Header row plus sample rows of one recipe, as UTF-8 CSV."""
        template = self.get_template_by_id(template_id)
        if template is None:
            return None

        fields = template.ordered_fields()
        lines = [",".join(escape_csv(f.label) for f in fields)]
        lines.extend(
            ",".join(escape_csv(value) for value in row)
            for row in _sample_rows(fields)
        )
        content = "\n".join(lines) + "\n"
        return f"{template.name}_template.csv", content.encode("utf-8")

    def generate_excel_template(self, template_id: str) -> Optional[tuple[str, bytes]]:
        """Single-sheet XLSX with inline-string cells (readable by the importer)."""
        template = self.get_template_by_id(template_id)
        if template is None:
            return None

        fields = template.ordered_fields()
        rows = [[f.label for f in fields]] + _sample_rows(fields)
        return f"{template.name}_template.xlsx", build_xlsx(rows, title=template.name)


# ===================
# HELPER FUNCTIONS
# ===================

def build_xlsx(rows: list[list[str]], title: str = "Recipe Import") -> bytes:
    """
    Write a minimal single-sheet workbook.

    Every cell is an inline string, so the worksheet part carries its own
    text and no shared-string table is written.
    """
    now_iso = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    parts = {
        "[Content_Types].xml": _CONTENT_TYPES_XML,
        "_rels/.rels": _ROOT_RELS_XML,
        "xl/workbook.xml": _WORKBOOK_XML,
        "xl/_rels/workbook.xml.rels": _WORKBOOK_RELS_XML,
        "xl/worksheets/sheet1.xml": _sheet_xml(rows),
        "xl/styles.xml": _STYLES_XML,
        "docProps/core.xml": _CORE_PROPS_XML.format(title=escape_xml(title), now=now_iso),
        "docProps/app.xml": _APP_PROPS_XML,
    }

    output = BytesIO()
    with zipfile.ZipFile(output, "w", zipfile.ZIP_DEFLATED) as archive:
        for name, content in parts.items():
            archive.writestr(name, content.encode("utf-8"))
    return output.getvalue()


def _sheet_xml(rows: list[list[str]]) -> str:
    row_xml = []
    for row_index, row in enumerate(rows, start=1):
        cells = "".join(
            f'<c r="{column_name(col_index)}{row_index}" t="inlineStr">'
            f"<is><t>{escape_xml(value)}</t></is></c>"
            for col_index, value in enumerate(row)
        )
        row_xml.append(f'<row r="{row_index}">{cells}</row>')
    return (
        '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>\n'
        '<worksheet xmlns="http://schemas.openxmlformats.org/spreadsheetml/2006/main">'
        f"<sheetData>{''.join(row_xml)}</sheetData></worksheet>"
    )


def _sample_rows(fields: list[TemplateField]) -> list[list[str]]:
    """Three material rows of one recipe; other columns use field examples."""
    return [
        [material.get(f.key, f.example) for f in fields]
        for material in _SAMPLE_MATERIALS
    ]


def _normalize_fields(payloads: list[TemplateFieldPayload]) -> list[TemplateField]:
    sanitized = []
    for index, payload in enumerate(payloads, start=1):
        raw_key = payload.key.strip() or f"column_{index}"
        sanitized.append(TemplateField(
            id=payload.id or str(uuid.uuid4()),
            key=sanitize_key(raw_key),
            label=payload.label.strip() or payload.key.strip() or f"Field {index}",
            description=payload.description,
            required=payload.required,
            example=payload.example,
            order=payload.order if payload.order > 0 else index,
        ))

    fields = []
    used_keys: set[str] = set()
    # sorted() is stable: equal orders keep submission order
    for position, field in enumerate(sorted(sanitized, key=lambda f: f.order), start=1):
        key = field.key
        suffix = 1
        while key in used_keys:
            key = f"{field.key}_{suffix}"
            suffix += 1
        used_keys.add(key)
        fields.append(field.model_copy(update={"key": key, "order": position}))
    return fields


def _build_default_templates() -> list[TemplateDefinition]:
    fields = [
        TemplateField(
            id=str(uuid.uuid4()),
            key=key,
            label=label,
            description=description,
            required=required,
            example=example,
            order=order,
        )
        for order, (key, label, description, required, example) in enumerate(_STANDARD_FIELDS, start=1)
    ]
    return [
        TemplateDefinition(
            id=STANDARD_TEMPLATE_ID,
            name="Standard Recipe Import",
            description="Standard template for bulk CSV/Excel recipe import, one material per row.",
            version=1,
            updated_at=_now(),
            supported_formats=[TemplateFormat.CSV, TemplateFormat.EXCEL],
            fields=fields,
        )
    ]


def _now() -> str:
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


_CONTENT_TYPES_XML = """<?xml version="1.0" encoding="UTF-8" standalone="yes"?>
<Types xmlns="http://schemas.openxmlformats.org/package/2006/content-types">
<Default Extension="rels" ContentType="application/vnd.openxmlformats-package.relationships+xml"/>
<Default Extension="xml" ContentType="application/xml"/>
<Override PartName="/xl/workbook.xml" ContentType="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet.main+xml"/>
<Override PartName="/xl/worksheets/sheet1.xml" ContentType="application/vnd.openxmlformats-officedocument.spreadsheetml.worksheet+xml"/>
<Override PartName="/xl/styles.xml" ContentType="application/vnd.openxmlformats-officedocument.spreadsheetml.styles+xml"/>
<Override PartName="/docProps/app.xml" ContentType="application/vnd.openxmlformats-officedocument.extended-properties+xml"/>
<Override PartName="/docProps/core.xml" ContentType="application/vnd.openxmlformats-package.core-properties+xml"/>
</Types>"""

_ROOT_RELS_XML = """<?xml version="1.0" encoding="UTF-8" standalone="yes"?>
<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships">
<Relationship Id="rId1" Type="http://schemas.openxmlformats.org/officeDocument/2006/relationships/officeDocument" Target="xl/workbook.xml"/>
<Relationship Id="rId2" Type="http://schemas.openxmlformats.org/package/2006/relationships/metadata/core-properties" Target="docProps/core.xml"/>
<Relationship Id="rId3" Type="http://schemas.openxmlformats.org/officeDocument/2006/relationships/extended-properties" Target="docProps/app.xml"/>
</Relationships>"""

_WORKBOOK_XML = """<?xml version="1.0" encoding="UTF-8" standalone="yes"?>
<workbook xmlns="http://schemas.openxmlformats.org/spreadsheetml/2006/main" xmlns:r="http://schemas.openxmlformats.org/officeDocument/2006/relationships">
<sheets><sheet name="Recipe Import" sheetId="1" r:id="rId1"/></sheets>
</workbook>"""

_WORKBOOK_RELS_XML = """<?xml version="1.0" encoding="UTF-8" standalone="yes"?>
<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships">
<Relationship Id="rId1" Type="http://schemas.openxmlformats.org/officeDocument/2006/relationships/worksheet" Target="worksheets/sheet1.xml"/>
<Relationship Id="rId2" Type="http://schemas.openxmlformats.org/officeDocument/2006/relationships/styles" Target="styles.xml"/>
</Relationships>"""

_STYLES_XML = """<?xml version="1.0" encoding="UTF-8" standalone="yes"?>
<styleSheet xmlns="http://schemas.openxmlformats.org/spreadsheetml/2006/main">
<fonts count="1"><font/></fonts>
<fills count="1"><fill/></fills>
<borders count="1"><border/></borders>
<cellStyleXfs count="1"><xf numFmtId="0" fontId="0" fillId="0" borderId="0"/></cellStyleXfs>
<cellXfs count="1"><xf numFmtId="0" fontId="0" fillId="0" borderId="0" xfId="0"/></cellXfs>
</styleSheet>"""

_CORE_PROPS_XML = """<?xml version="1.0" encoding="UTF-8" standalone="yes"?>
<cp:coreProperties xmlns:cp="http://schemas.openxmlformats.org/package/2006/metadata/core-properties" xmlns:dc="http://purl.org/dc/elements/1.1/" xmlns:dcterms="http://purl.org/dc/terms/" xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance">
<dc:title>{title} template</dc:title>
<dc:creator>Recipe Import</dc:creator>
<dcterms:created xsi:type="dcterms:W3CDTF">{now}</dcterms:created>
<dcterms:modified xsi:type="dcterms:W3CDTF">{now}</dcterms:modified>
</cp:coreProperties>"""

_APP_PROPS_XML = """<?xml version="1.0" encoding="UTF-8" standalone="yes"?>
<Properties xmlns="http://schemas.openxmlformats.org/officeDocument/2006/extended-properties">
<Application>Recipe Import</Application>
</Properties>"""


_repository: Optional[TemplateRepository] = None


def get_template_repository() -> TemplateRepository:
    global _repository
    if _repository is None:
        _repository = TemplateRepository()
    return _repository
