"""Variable catalog listing."""

from fastapi import APIRouter, HTTPException, Request

from promptpack import storage
from promptpack.catalog import Catalog

from .bundles import active

router = APIRouter()


@router.get("/variables")
async def list_variables(request: Request, bundle_id: str | None = None):
    """All variables a template can reference, grouped by origin.

    Uses the active bundle's custom variables unless bundle_id is given.
    """
    if bundle_id is None:
        catalog = active(request).catalog
    else:
        bundle = storage.get_bundle(bundle_id)
        if bundle is None:
            raise HTTPException(404, "Bundle not found")
        catalog = Catalog.build(bundle.custom_variables)
    return {
        origin: [d.model_dump() for d in catalog.descriptors(origin)]
        for origin in ("derived", "supplied", "custom")
    }
