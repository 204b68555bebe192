"""
Import template API routes.
"""

from typing import Literal
from urllib.parse import quote

from fastapi import APIRouter, Query
from fastapi.responses import Response
import structlog

from models.template import TemplateDefinition, TemplateUpdateRequest
from services.template_service import get_template_repository
from exceptions import TemplateNotFoundError
from routes.recipes import handle_error

logger = structlog.get_logger(__name__)

router = APIRouter()

_MEDIA_TYPES = {
    "csv": "text/csv; charset=utf-8",
    "excel": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


@router.get("", response_model=list[TemplateDefinition])
async def list_templates():
    """List all import templates."""
    return get_template_repository().get_templates()


@router.get("/{template_id}", response_model=TemplateDefinition)
async def get_template(template_id: str):
    """
    Get one template with its ordered fields.

    Raises:
        404: Template not found
    """
    template = get_template_repository().get_template_by_id(template_id)
    if template is None:
        return handle_error(TemplateNotFoundError(template_id))
    return template


@router.put("/{template_id}", response_model=TemplateDefinition)
async def update_template(template_id: str, request: TemplateUpdateRequest):
    """
    Replace a template's fields.

    Raises:
        404: Template not found
        422: Empty field list
    """
    try:
        template = get_template_repository().update_template(template_id, request)
        if template is None:
            raise TemplateNotFoundError(template_id)
        return template
    except Exception as e:
        return handle_error(e)


@router.post("/{template_id}/reset", response_model=TemplateDefinition)
async def reset_template(template_id: str):
    """Restore a template to its built-in default."""
    template = get_template_repository().reset_template(template_id)
    if template is None:
        return handle_error(TemplateNotFoundError(template_id))
    return template


@router.get("/{template_id}/download")
async def download_template(
    template_id: str,
    format: Literal["csv", "excel"] = Query("csv", description="File format")
):
    """Download a blank template with sample rows."""
    repository = get_template_repository()
    if format == "excel":
        generated = repository.generate_excel_template(template_id)
    else:
        generated = repository.generate_csv_template(template_id)

    if generated is None:
        return handle_error(TemplateNotFoundError(template_id))

    file_name, content = generated
    logger.info("template_downloaded", template_id=template_id, format=format, size=len(content))
    return Response(
        content=content,
        media_type=_MEDIA_TYPES[format],
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(file_name)}"},
    )
