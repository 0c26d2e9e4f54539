"""Health check and settings endpoints."""

from fastapi import APIRouter, HTTPException, Request

from promptpack import storage
from promptpack.errors import BundleError

from .bundles import active, bundle_error_detail
from .models import UpdateSettings

router = APIRouter()


def _public(config: dict) -> dict:
    return {"active_bundle": config["active_bundle"]}


@router.get("/health")
async def health():
    """Health check."""
    return {"status": "ok"}


@router.get("/settings")
async def get_settings():
    """Get settings (active bundle)."""
    return _public(storage.get_config())


@router.patch("/settings")
async def update_settings(body: UpdateSettings, request: Request):
    """Update settings. Changing the active bundle validates and activates it first."""
    fields = body.model_dump(exclude_none=True)
    if "active_bundle" in fields:
        bundle = storage.get_bundle(fields["active_bundle"])
        if bundle is None:
            raise HTTPException(404, "Bundle not found")
        try:
            active(request).swap(bundle)
        except BundleError as e:
            raise HTTPException(422, bundle_error_detail(e))
    return _public(storage.update_config(fields))
