"""Bundle interchange, activation and change tracking against the shipped baseline."""

import hashlib
import json
import logging
import re
from typing import Any

import pydantic

from promptpack.builtins import BUILTINS
from promptpack.catalog import Catalog
from promptpack.defaults import DEFAULT_TEMPLATES
from promptpack.errors import BundleFormatError, InvalidBundleError, TemplateNotFoundError, UnsupportedSchemaError
from promptpack.models import SCHEMA_VERSION, Bundle, Template
from promptpack.syntax import DEFAULT_LIMITS, Limits
from promptpack.validator import validate_bundle

logger = logging.getLogger(__name__)

DEFAULT_BUNDLE_ID = "default"
SUPPORTED_SCHEMAS = frozenset({SCHEMA_VERSION})


# ── Interchange ──────────────────────────────────────────


def export_bundle(bundle: Bundle) -> str:
    """Serialise *bundle* to the interchange document (JSON, camelCase keys)."""
    return json.dumps(bundle.model_dump(mode="json", by_alias=True), indent=2, ensure_ascii=False)


def load_bundle(raw: str | bytes | dict[str, Any]) -> Bundle:
    """Parse an interchange document.

    The schema version is checked before anything else, so a document from
    a newer release fails with UnsupportedSchemaError rather than with a
    list of unfamiliar fields.
    """
    if isinstance(raw, (str, bytes)):
        try:
            data = json.loads(raw)
        except ValueError as e:
            raise BundleFormatError([f"not valid JSON: {e}"]) from e
    else:
        data = raw
    if not isinstance(data, dict):
        raise BundleFormatError(["document must be a JSON object"])

    version = data.get("schemaVersion", data.get("schema_version"))
    if isinstance(version, bool) or not isinstance(version, int) or version not in SUPPORTED_SCHEMAS:
        raise UnsupportedSchemaError(version)
    try:
        return Bundle.model_validate(data)
    except pydantic.ValidationError as e:
        problems = [
            f"{'.'.join(str(p) for p in err['loc']) or 'bundle'}: {err['msg']}"
            for err in e.errors()
        ]
        raise BundleFormatError(problems) from e


def activate(bundle: Bundle, limits: Limits = DEFAULT_LIMITS) -> tuple[Bundle, Catalog]:
    """Check *bundle* and return a private copy of it with its catalog.

    Raises UnsupportedSchemaError for an unknown schema version and
    InvalidBundleError carrying every finding when validation fails.
    """
    if bundle.schema_version not in SUPPORTED_SCHEMAS:
        raise UnsupportedSchemaError(bundle.schema_version)
    result = validate_bundle(bundle, BUILTINS, limits)
    if not result.valid:
        logger.warning("Refusing to activate bundle '%s'", bundle.id)
        raise InvalidBundleError(result.errors)
    active = bundle.model_copy(deep=True)
    logger.info("Activated bundle '%s' (%d templates)", active.id, len(active.templates))
    return active, Catalog.build(active.custom_variables)


def same_content(a: Bundle, b: Bundle) -> bool:
    """Order-independent equality of templates and custom variables."""
    def key(bundle: Bundle):
        templates = sorted(json.dumps(t.model_dump(mode="json"), sort_keys=True) for t in bundle.templates)
        variables = sorted(json.dumps(v.model_dump(mode="json"), sort_keys=True) for v in bundle.custom_variables)
        return templates, variables
    return key(a) == key(b)


# ── Default bundle and copies ────────────────────────────


def default_bundle() -> Bundle:
    return Bundle(
        id=DEFAULT_BUNDLE_ID,
        name="Default",
        description="Built-in prompt templates",
        author="promptpack",
        is_default=True,
        templates=[t.model_copy() for t in DEFAULT_TEMPLATES],
    )


def copy_bundle(source: Bundle, bundle_id: str, name: str, description: str = "", author: str = "") -> Bundle:
    """A new custom bundle holding deep copies of *source*'s templates and variables."""
    return Bundle(
        id=bundle_id,
        name=name,
        description=description,
        author=author,
        templates=[t.model_copy(deep=True) for t in source.templates],
        custom_variables=[v.model_copy(deep=True) for v in source.custom_variables],
    )


# ── Modification tracking ────────────────────────────────

_WS_RE = re.compile(r"\s+")
_BASELINE = {t.id: t for t in DEFAULT_TEMPLATES}


def content_hash(text: str) -> str:
    """SHA-256 of *text* with runs of whitespace collapsed and ends trimmed."""
    normalised = _WS_RE.sub(" ", text).strip()
    return hashlib.sha256(normalised.encode("utf-8")).hexdigest()


def template_hash(t: Template) -> str:
    return content_hash(t.primary_body + "\x00" + t.secondary_body)


def modified_templates(bundle: Bundle) -> list[str]:
    """Ids of the bundle's templates that differ from the shipped baseline."""
    modified = []
    for t in bundle.templates:
        base = _BASELINE.get(t.id)
        if base is None or template_hash(t) != template_hash(base):
            modified.append(t.id)
    return modified


def reset_template(bundle: Bundle, template_id: str) -> Bundle:
    """A copy of *bundle* with one template restored to the shipped baseline."""
    base = _BASELINE.get(template_id)
    if base is None:
        raise TemplateNotFoundError(template_id)
    templates = [base.model_copy() if t.id == template_id else t for t in bundle.templates]
    if bundle.template(template_id) is None:
        templates.append(base.model_copy())
    return bundle.model_copy(update={"templates": templates})
