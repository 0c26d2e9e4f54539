"""Prompt template resolution: sandboxed evaluation, a variable catalog,
static validation and per-invocation context assembly."""

from promptpack.assembler import ActiveBundle, Assembler, RenderedPair  # noqa: F401
from promptpack.catalog import Catalog  # noqa: F401
from promptpack.engine import evaluate  # noqa: F401
from promptpack.models import SCHEMA_VERSION, Bundle, Template, ValidationResult, VariableDescriptor  # noqa: F401
from promptpack.validator import validate_bundle, validate_template  # noqa: F401
