"""Template edit, reset, validation and preview endpoints."""

from fastapi import APIRouter, HTTPException, Request

from promptpack import storage
from promptpack.catalog import Catalog
from promptpack.errors import (
    AssemblerError,
    EvalError,
    InvalidBundleError,
    InvalidValueError,
    MissingRequiredVariableError,
    ResourceExceededError,
    TemplateNotFoundError,
    TemplateSyntaxError,
    UnknownVariableError,
)
from promptpack.samples import preview as render_preview
from promptpack.validator import friendly_message, validate_template

from .bundles import active, bundle_error_detail, present_findings, refresh_active
from .models import PreviewBody, TemplateBody, ValidateBody

router = APIRouter()


def _error_detail(e: Exception) -> dict:
    detail: dict = {"error": type(e).__name__, "message": str(e)}
    if isinstance(e, TemplateSyntaxError):
        detail.update(message=friendly_message(e), line=e.line, column=e.column)
    elif isinstance(e, UnknownVariableError):
        detail.update(name=e.name, line=e.line, column=e.column)
    elif isinstance(e, ResourceExceededError):
        detail.update(limit=e.limit)
    elif isinstance(e, (MissingRequiredVariableError, InvalidValueError)):
        detail.update(name=e.name)
    return detail


@router.get("/bundles/{bundle_id}/templates/{template_id}")
async def get_template(bundle_id: str, template_id: str):
    """Get one template of a bundle."""
    template = storage.get_template(bundle_id, template_id)
    if template is None:
        raise HTTPException(404, "Template not found")
    return template.model_dump()


@router.put("/bundles/{bundle_id}/templates/{template_id}")
async def set_template(bundle_id: str, template_id: str, body: TemplateBody, request: Request):
    """Replace a template's bodies. The bundle is only saved if it still validates."""
    try:
        updated = storage.set_template(bundle_id, template_id, body.primary_body, body.secondary_body)
    except InvalidBundleError as e:
        raise HTTPException(422, bundle_error_detail(e))
    if updated is None:
        raise HTTPException(404, "Bundle not found")
    refresh_active(request, updated)
    return updated.template(template_id).model_dump()


@router.post("/bundles/{bundle_id}/templates/{template_id}/reset")
async def reset_template(bundle_id: str, template_id: str, request: Request):
    """Restore a template to its shipped version."""
    try:
        updated = storage.reset_template(bundle_id, template_id)
    except TemplateNotFoundError:
        raise HTTPException(404, "No shipped version of this template")
    except InvalidBundleError as e:
        raise HTTPException(422, bundle_error_detail(e))
    if updated is None:
        raise HTTPException(404, "Bundle not found")
    refresh_active(request, updated)
    return updated.template(template_id).model_dump()


@router.post("/bundles/{bundle_id}/templates/{template_id}/preview")
async def preview_template(bundle_id: str, template_id: str, body: PreviewBody):
    """Render a template with sample values, overlaid by the given values."""
    bundle = storage.get_bundle(bundle_id)
    if bundle is None:
        raise HTTPException(404, "Bundle not found")
    if bundle.template(template_id) is None:
        raise HTTPException(404, "Template not found")
    try:
        pair = render_preview(bundle, Catalog.build(bundle.custom_variables), template_id, body.values)
    except (EvalError, AssemblerError) as e:
        raise HTTPException(422, _error_detail(e))
    return pair._asdict()


@router.post("/templates/validate")
async def validate(body: ValidateBody, request: Request):
    """Validate a template body against a bundle's variables (default: the active bundle)."""
    if body.bundle_id is None:
        catalog = active(request).catalog
    else:
        bundle = storage.get_bundle(body.bundle_id)
        if bundle is None:
            raise HTTPException(404, "Bundle not found")
        catalog = Catalog.build(bundle.custom_variables)
    result = validate_template(body.body, catalog)
    return {"valid": result.valid, "errors": present_findings(result.errors)}
