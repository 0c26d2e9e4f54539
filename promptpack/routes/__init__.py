"""FastAPI API endpoints under /api.

Endpoint groups: settings (health, active bundle), variables (catalog
listing), bundles (CRUD, import/export, validation, change tracking) and
templates (edit, reset, validate, preview). Templates are nested under
/api/bundles/{bundle_id}/templates/.
"""

from fastapi import APIRouter

from .bundles import router as bundles_router
from .settings import router as settings_router
from .templates import router as templates_router
from .variables import router as variables_router

router = APIRouter()
router.include_router(settings_router)
router.include_router(variables_router)
router.include_router(bundles_router)
router.include_router(templates_router)
