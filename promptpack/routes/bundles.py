"""Bundle CRUD, import/export, validation and change-tracking endpoints."""

import logging

from fastapi import APIRouter, HTTPException, Request, Response

from promptpack import storage
from promptpack.assembler import ActiveBundle
from promptpack.bundles import export_bundle, modified_templates
from promptpack.errors import BundleError, BundleFormatError, InvalidBundleError, UnsupportedSchemaError
from promptpack.models import Bundle
from promptpack.validator import validate_bundle

from .models import CreateBundle, CustomVariablesBody, ImportBody, UpdateBundle

logger = logging.getLogger(__name__)

router = APIRouter()


# ── Shared helpers ───────────────────────────────────────


def active(request: Request) -> ActiveBundle:
    return request.app.state.active


def refresh_active(request: Request, bundle: Bundle) -> None:
    """Re-activate *bundle* if it is the one currently in use."""
    current = active(request)
    if current.bundle.id == bundle.id:
        current.swap(bundle)


def describe_finding(finding) -> str:
    """Plain-language message for one validation finding."""
    kind = finding.kind
    if kind in ("unknown_variable", "unknown_filter"):
        noun = "Variable" if kind == "unknown_variable" else "Filter"
        if finding.suggestion:
            return f"{noun} '{finding.name}' doesn't exist. Did you mean '{finding.suggestion}'?"
        if kind == "unknown_variable":
            return f"Variable '{finding.name}' doesn't exist. Check the available variables list."
        return f"Filter '{finding.name}' doesn't exist."
    if kind == "circular_reference":
        return "Variable defaults reference each other: " + " → ".join(finding.cycle + finding.cycle[:1])
    if kind == "name_collision":
        if finding.origin == "reserved":
            return f"'{finding.name}' is a reserved word and cannot be used as a variable name"
        return f"Variable '{finding.name}' is already defined as a {finding.origin} variable"
    return finding.message


def present_findings(findings: list) -> list[dict]:
    return [{**f.model_dump(), "message": describe_finding(f)} for f in findings]


def bundle_error_detail(e: BundleError) -> dict:
    if isinstance(e, InvalidBundleError):
        return {"message": str(e), "errors": present_findings(e.errors)}
    if isinstance(e, BundleFormatError):
        return {"message": str(e), "problems": e.problems}
    if isinstance(e, UnsupportedSchemaError):
        return {"message": str(e), "schema_version": e.version}
    return {"message": str(e)}


def _summary(bundle: Bundle, active_id: str) -> dict:
    return {
        "id": bundle.id,
        "name": bundle.name,
        "description": bundle.description,
        "author": bundle.author,
        "is_default": bundle.is_default,
        "is_active": bundle.id == active_id,
        "template_count": len(bundle.templates),
        "variable_count": len(bundle.custom_variables),
    }


def _get_or_404(bundle_id: str) -> Bundle:
    bundle = storage.get_bundle(bundle_id)
    if bundle is None:
        raise HTTPException(404, "Bundle not found")
    return bundle


# ── Endpoints ────────────────────────────────────────────


@router.get("/bundles")
async def list_bundles(request: Request):
    """List all bundles (default first)."""
    active_id = active(request).bundle.id
    return [_summary(b, active_id) for b in storage.list_bundles()]


@router.post("/bundles", status_code=201)
async def create_bundle(body: CreateBundle):
    """Create a bundle as a copy of an existing one."""
    try:
        bundle = storage.create_bundle(body.name, body.source_id, body.description, body.author)
    except FileExistsError as e:
        raise HTTPException(409, str(e))
    if bundle is None:
        raise HTTPException(404, "Source bundle not found")
    return bundle.model_dump()


@router.post("/bundles/import", status_code=201)
async def import_bundle(body: ImportBody, request: Request):
    """Import a bundle from its interchange document."""
    try:
        bundle = storage.import_bundle(body.bundle, body.strategy)
    except BundleError as e:
        raise HTTPException(422, bundle_error_detail(e))
    except ValueError as e:
        raise HTTPException(409, str(e))
    refresh_active(request, bundle)
    return bundle.model_dump()


@router.get("/bundles/{bundle_id}")
async def get_bundle(bundle_id: str):
    """Get a bundle with all templates and custom variables."""
    return _get_or_404(bundle_id).model_dump()


@router.patch("/bundles/{bundle_id}")
async def update_bundle(bundle_id: str, body: UpdateBundle, request: Request):
    """Update bundle metadata (name, description, author)."""
    try:
        updated = storage.update_bundle(bundle_id, body.model_dump(exclude_none=True))
    except ValueError as e:
        raise HTTPException(422, str(e))
    if updated is None:
        raise HTTPException(404, "Bundle not found")
    refresh_active(request, updated)
    return updated.model_dump()


@router.delete("/bundles/{bundle_id}")
async def delete_bundle(bundle_id: str, request: Request):
    """Delete a bundle. The default bundle cannot be deleted."""
    try:
        deleted = storage.delete_bundle(bundle_id)
    except ValueError as e:
        raise HTTPException(409, str(e))
    if not deleted:
        raise HTTPException(404, "Bundle not found")
    if active(request).bundle.id == bundle_id:
        active(request).swap(_get_or_404(storage.get_config()["active_bundle"]))
    return {"ok": True}


@router.get("/bundles/{bundle_id}/export")
async def export(bundle_id: str):
    """Download the bundle's interchange document."""
    bundle = _get_or_404(bundle_id)
    return Response(
        export_bundle(bundle),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{bundle.id}.json"'},
    )


@router.get("/bundles/{bundle_id}/validate")
async def validate(bundle_id: str):
    """Validate every template and custom variable of a bundle."""
    result = validate_bundle(_get_or_404(bundle_id))
    return {"valid": result.valid, "errors": present_findings(result.errors)}


@router.get("/bundles/{bundle_id}/modified")
async def modified(bundle_id: str):
    """Ids of templates that differ from the shipped defaults."""
    return {"modified": modified_templates(_get_or_404(bundle_id))}


@router.put("/bundles/{bundle_id}/variables")
async def set_custom_variables(bundle_id: str, body: CustomVariablesBody, request: Request):
    """Replace the bundle's custom variables."""
    try:
        updated = storage.set_custom_variables(bundle_id, body.custom_variables)
    except InvalidBundleError as e:
        raise HTTPException(422, bundle_error_detail(e))
    except ValueError as e:
        raise HTTPException(422, str(e))
    if updated is None:
        raise HTTPException(404, "Bundle not found")
    refresh_active(request, updated)
    return updated.model_dump()
