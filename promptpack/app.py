import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI

from promptpack import storage
from promptpack.assembler import ActiveBundle
from promptpack.bundles import DEFAULT_BUNDLE_ID
from promptpack.errors import BundleError
from promptpack.routes import router

load_dotenv(Path(__file__).parent.parent / ".env")

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path(__file__).parent.parent / "data"


def load_active_bundle() -> ActiveBundle:
    """Activate the configured bundle, falling back to the default bundle."""
    bundle_id = storage.get_config()["active_bundle"]
    bundle = storage.get_bundle(bundle_id)
    if bundle is not None:
        try:
            return ActiveBundle(bundle)
        except BundleError as e:
            logger.warning("Configured bundle '%s' cannot be activated: %s", bundle_id, e)
    else:
        logger.warning("Configured bundle '%s' not found", bundle_id)
    storage.update_config({"active_bundle": DEFAULT_BUNDLE_ID})
    return ActiveBundle(storage.get_bundle(DEFAULT_BUNDLE_ID))


def create_app(data_dir: Path | None = None) -> FastAPI:
    resolved = data_dir or Path(os.getenv("DATA_DIR", str(DEFAULT_DATA_DIR)))
    storage.init_storage(resolved)

    app = FastAPI(title="promptpack")
    app.state.active = load_active_bundle()
    app.include_router(router, prefix="/api")
    return app
