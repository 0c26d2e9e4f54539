"""Exception hierarchy for template resolution.

Every error carries the structured data a caller needs to build its own
message (names, positions, cycle paths); only TemplateSyntaxError keeps a
raw message, which the validator rewrites into plain language.
"""

from typing import Any


class PromptError(Exception):
    """Base class for all template resolution failures."""


# ── Evaluation ───────────────────────────────────────────


class EvalError(PromptError):
    """Raised when a template body cannot be evaluated."""


class TemplateSyntaxError(EvalError):
    """Malformed template syntax.

    ``code`` identifies the kind of problem (``"unclosed_block"``,
    ``"mismatched_close"``, ...) and ``params`` holds its details, so the
    validator can phrase it for a non-technical reader.
    """

    def __init__(self, code: str, message: str, line: int, column: int, **params: Any):
        super().__init__(f"{message} (line {line}, column {column})")
        self.code = code
        self.raw_message = message
        self.line = line
        self.column = column
        self.params = params


class UnknownVariableError(EvalError):
    def __init__(self, name: str, line: int | None = None, column: int | None = None):
        where = f" (line {line}, column {column})" if line is not None else ""
        super().__init__(f"Unknown variable '{name}'{where}")
        self.name = name
        self.line = line
        self.column = column


class ResourceExceededError(EvalError):
    def __init__(self, limit: str, detail: str):
        super().__init__(f"Template exceeds the {limit} limit: {detail}")
        self.limit = limit
        self.detail = detail


class RenderError(EvalError):
    """A filter or block could not process the value it was given."""


# ── Catalog ──────────────────────────────────────────────


class CatalogError(PromptError):
    pass


class NameCollisionError(CatalogError):
    def __init__(self, name: str, origin: str):
        super().__init__(f"Variable '{name}' collides with an existing {origin} name")
        self.name = name
        self.origin = origin


# ── Assembler ────────────────────────────────────────────


class AssemblerError(PromptError):
    pass


class MissingRequiredVariableError(AssemblerError):
    def __init__(self, name: str):
        super().__init__(f"Required variable '{name}' has no value and no default")
        self.name = name


class TemplateNotFoundError(AssemblerError):
    def __init__(self, template_id: str, bundle_id: str | None = None):
        where = f" in bundle '{bundle_id}'" if bundle_id else ""
        super().__init__(f"Template '{template_id}' not found{where}")
        self.template_id = template_id
        self.bundle_id = bundle_id


class InvalidValueError(AssemblerError):
    def __init__(self, name: str, value: Any, reason: str):
        super().__init__(f"Invalid value for '{name}': {reason}")
        self.name = name
        self.value = value
        self.reason = reason


class ReadOnlyVariableError(AssemblerError):
    def __init__(self, name: str):
        super().__init__(f"Variable '{name}' is derived from story state and cannot be merged")
        self.name = name


class CircularDefaultError(AssemblerError):
    def __init__(self, cycle: list[str]):
        super().__init__("Variable defaults reference each other: " + " -> ".join(cycle + cycle[:1]))
        self.cycle = cycle


# ── Bundles ──────────────────────────────────────────────


class BundleError(PromptError):
    pass


class UnsupportedSchemaError(BundleError):
    def __init__(self, version: Any):
        super().__init__(f"Unsupported bundle schema version: {version!r}")
        self.version = version


class BundleFormatError(BundleError):
    def __init__(self, problems: list[str]):
        super().__init__("Invalid bundle file: " + "; ".join(problems))
        self.problems = problems


class InvalidBundleError(BundleError):
    def __init__(self, errors: list):
        super().__init__(f"Bundle failed validation with {len(errors)} error(s)")
        self.errors = errors
