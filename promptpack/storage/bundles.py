"""Bundle CRUD operations (one interchange-format JSON file per bundle)."""

import logging
from pathlib import Path
from typing import Any

from promptpack.bundles import (
    DEFAULT_BUNDLE_ID,
    copy_bundle,
    default_bundle,
    export_bundle,
    load_bundle,
    reset_template as _reset_template,
    template_hash,
)
from promptpack.defaults import DEFAULT_TEMPLATES
from promptpack.errors import InvalidBundleError
from promptpack.models import Bundle, Template
from promptpack.validator import validate_bundle

from .config import get_config, update_config
from .core import bundles_dir, slugify

logger = logging.getLogger(__name__)

IMPORT_STRATEGIES = ("rename", "replace")


def _bundle_path(bundle_id: str) -> Path:
    return bundles_dir() / f"{bundle_id}.json"


def _write(bundle: Bundle) -> None:
    _bundle_path(bundle.id).write_text(export_bundle(bundle))


def seed_default_bundle() -> None:
    """Create the default bundle on first run and refresh it when the shipped templates change.

    A shipped template only replaces the stored one when the stored one is
    still the previously shipped version; edits made by the user are kept.
    """
    shipped = {t.id: t for t in DEFAULT_TEMPLATES}
    baseline = {tid: template_hash(t) for tid, t in shipped.items()}
    current = get_bundle(DEFAULT_BUNDLE_ID)

    if current is None:
        _write(default_bundle())
        logger.info("Seeded default bundle with %d templates", len(shipped))
    else:
        recorded = get_config()["default_baseline"]
        templates = []
        refreshed = 0
        for t in current.templates:
            new = shipped.get(t.id)
            if new is not None and baseline[t.id] != recorded.get(t.id) and template_hash(t) == recorded.get(t.id):
                templates.append(new)
                refreshed += 1
            else:
                templates.append(t)
        missing = [t for tid, t in shipped.items() if current.template(tid) is None]
        if refreshed or missing:
            _write(current.model_copy(update={"templates": templates + missing}))
            logger.info("Refreshed %d and added %d default template(s)", refreshed, len(missing))
    update_config({"default_baseline": baseline})


def list_bundles() -> list[Bundle]:
    bundles = [load_bundle(path.read_text()) for path in sorted(bundles_dir().glob("*.json"))]
    bundles.sort(key=lambda b: (not b.is_default, b.name.lower()))
    return bundles


def get_bundle(bundle_id: str) -> Bundle | None:
    path = _bundle_path(bundle_id)
    if not path.is_file():
        return None
    return load_bundle(path.read_text())


def get_template(bundle_id: str, template_id: str) -> Template | None:
    bundle = get_bundle(bundle_id)
    if bundle is None:
        return None
    return bundle.template(template_id)


def save_bundle(bundle: Bundle) -> Bundle:
    """Validate and store *bundle*; a bundle with findings is never written."""
    result = validate_bundle(bundle)
    if not result.valid:
        raise InvalidBundleError(result.errors)
    _write(bundle)
    return bundle


def create_bundle(
    name: str,
    source_id: str = DEFAULT_BUNDLE_ID,
    description: str = "",
    author: str = "",
) -> Bundle | None:
    """Create a bundle copying *source_id*. Returns None when the source is missing."""
    bundle_id = slugify(name)
    if _bundle_path(bundle_id).exists():
        raise FileExistsError(f"Bundle '{name}' already exists (id: {bundle_id})")
    source = get_bundle(source_id)
    if source is None:
        return None
    bundle = copy_bundle(source, bundle_id, name, description, author)
    _write(bundle)
    logger.info("Created bundle '%s' from '%s'", bundle_id, source_id)
    return bundle


def update_bundle(bundle_id: str, fields: dict[str, Any]) -> Bundle | None:
    bundle = get_bundle(bundle_id)
    if bundle is None:
        return None
    changes = {k: v for k, v in fields.items() if k in ("name", "description", "author") and v is not None}
    updated = Bundle.model_validate({**bundle.model_dump(), **changes})
    _write(updated)
    return updated


def set_custom_variables(bundle_id: str, variables: list) -> Bundle | None:
    bundle = get_bundle(bundle_id)
    if bundle is None:
        return None
    updated = Bundle.model_validate({**bundle.model_dump(), "custom_variables": variables})
    return save_bundle(updated)


def set_template(
    bundle_id: str,
    template_id: str,
    primary_body: str,
    secondary_body: str,
) -> Bundle | None:
    """Replace (or add) one template. Raises InvalidBundleError if the result does not validate."""
    bundle = get_bundle(bundle_id)
    if bundle is None:
        return None
    existing = bundle.template(template_id)
    if existing is None:
        new = Template(id=template_id, primary_body=primary_body, secondary_body=secondary_body)
        templates = [*bundle.templates, new]
    else:
        new = existing.model_copy(update={"primary_body": primary_body, "secondary_body": secondary_body})
        templates = [new if t.id == template_id else t for t in bundle.templates]
    return save_bundle(bundle.model_copy(update={"templates": templates}))


def reset_template(bundle_id: str, template_id: str) -> Bundle | None:
    bundle = get_bundle(bundle_id)
    if bundle is None:
        return None
    return save_bundle(_reset_template(bundle, template_id))


def delete_bundle(bundle_id: str) -> bool:
    if bundle_id == DEFAULT_BUNDLE_ID:
        raise ValueError("The default bundle cannot be deleted")
    path = _bundle_path(bundle_id)
    if not path.is_file():
        return False
    path.unlink()
    if get_config()["active_bundle"] == bundle_id:
        update_config({"active_bundle": DEFAULT_BUNDLE_ID})
    logger.info("Deleted bundle '%s'", bundle_id)
    return True


def _free_id(base: str) -> str:
    candidate, n = base, 2
    while _bundle_path(candidate).exists():
        candidate = f"{base}-{n}"
        n += 1
    return candidate


def import_bundle(raw: str | bytes | dict[str, Any], strategy: str = "rename") -> Bundle:
    """Store an interchange document as a new bundle.

    On a name clash, "rename" appends " (Imported)", " (Imported 2)", ... and
    "replace" overwrites the bundle of that name (never the default bundle).
    """
    if strategy not in IMPORT_STRATEGIES:
        raise ValueError(f"Unknown import strategy '{strategy}'")
    incoming = load_bundle(raw)
    by_name = {b.name: b for b in list_bundles()}
    name = incoming.name
    clash = by_name.get(name)

    if clash is not None and strategy == "replace":
        if clash.is_default:
            raise ValueError("The default bundle cannot be replaced")
        bundle_id = clash.id
    else:
        if clash is not None:
            name = f"{incoming.name} (Imported)"
            n = 2
            while name in by_name:
                name = f"{incoming.name} (Imported {n})"
                n += 1
        bundle_id = _free_id(slugify(name))

    bundle = incoming.model_copy(update={"id": bundle_id, "name": name, "is_default": False})
    save_bundle(bundle)
    logger.info("Imported bundle '%s' as '%s'", incoming.name, bundle_id)
    return bundle
