"""Core domain models.

Bundles, templates and variable descriptors are pydantic models, so every
data boundary (bundle files, HTTP bodies, activation) validates the same
way. Field names are snake_case in Python and camelCase on the wire.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from promptpack.syntax import NAME_RE

SCHEMA_VERSION = 1

Origin = Literal["derived", "supplied", "custom"]
ValueType = Literal["text", "enum", "number", "boolean"]
Part = Literal["primary", "secondary"]
DefaultValue = str | bool | int | float | None


class _Model(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


def is_templated(value: object) -> bool:
    """True for a string default that references other variables."""
    return isinstance(value, str) and "{{" in value


_TRUE = frozenset({"true", "yes", "1"})
_FALSE = frozenset({"false", "no", "0"})


def parse_number(text: str) -> int | float | None:
    """The number spelled by *text*, or None."""
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        return None


def parse_boolean(text: str) -> bool | None:
    lowered = text.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    return None


class VariableDescriptor(_Model):
    """One variable name the system recognises, with its type and default rule."""

    name: str
    origin: Origin = "custom"
    value_type: ValueType = "text"
    description: str = ""
    display_name: str = ""
    required: bool = False
    default_value: DefaultValue = None
    enum_options: list[str] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def _check_name(cls, v: str) -> str:
        if not NAME_RE.match(v):
            raise ValueError("must start with a letter or underscore and contain only letters, digits and underscores")
        return v

    @model_validator(mode="after")
    def _check_type_rules(self) -> VariableDescriptor:
        default = self.default_value
        if self.value_type == "enum":
            if not self.enum_options:
                raise ValueError("enum variables need at least one option")
            if len(set(self.enum_options)) != len(self.enum_options):
                raise ValueError("enum options must be unique")
            if default is not None and not is_templated(default) and default not in self.enum_options:
                raise ValueError(f"default {default!r} is not one of the enum options")
        elif self.enum_options:
            raise ValueError("only enum variables take enum options")
        if default is None or is_templated(default):
            return self
        if isinstance(default, str):
            if self.value_type == "number" and parse_number(default) is None:
                raise ValueError(f"default {default!r} is not a number")
            if self.value_type == "boolean" and parse_boolean(default) is None:
                raise ValueError(f"default {default!r} is not true or false")
            return self
        if self.value_type == "boolean" and not isinstance(default, bool):
            raise ValueError("boolean default must be true or false")
        if self.value_type == "number" and isinstance(default, bool):
            raise ValueError("number default must be a number")
        if self.value_type in ("text", "enum"):
            raise ValueError(f"{self.value_type} default must be a string")
        return self


class Template(_Model):
    """A named pair of bodies rendered together: the primary (system) and secondary (user) halves."""

    id: str = Field(min_length=1)
    name: str = ""
    description: str = ""
    primary_body: str = ""
    secondary_body: str = ""

    def body(self, part: Part) -> str:
        return self.primary_body if part == "primary" else self.secondary_body


class Bundle(_Model):
    """The versioned unit of templates plus custom variable definitions."""

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    description: str = ""
    author: str = ""
    schema_version: int = SCHEMA_VERSION
    is_default: bool = False
    templates: list[Template] = Field(default_factory=list)
    custom_variables: list[VariableDescriptor] = Field(default_factory=list)

    @field_validator("templates")
    @classmethod
    def _unique_templates(cls, v: list[Template]) -> list[Template]:
        seen: set[str] = set()
        for t in v:
            if t.id in seen:
                raise ValueError(f"duplicate template id '{t.id}'")
            seen.add(t.id)
        return v

    @field_validator("custom_variables")
    @classmethod
    def _custom_only(cls, v: list[VariableDescriptor]) -> list[VariableDescriptor]:
        seen: set[str] = set()
        for var in v:
            if var.origin != "custom":
                raise ValueError(f"variable '{var.name}' must have origin 'custom'")
            if var.name in seen:
                raise ValueError(f"duplicate variable name '{var.name}'")
            seen.add(var.name)
        return v

    def template(self, template_id: str) -> Template | None:
        for t in self.templates:
            if t.id == template_id:
                return t
        return None


# ── Validation findings ──────────────────────────────────


class _Finding(BaseModel):
    model_config = ConfigDict(frozen=True)

    template_id: str | None = None
    part: Part | None = None
    variable: str | None = None


class UnknownVariableFinding(_Finding):
    kind: Literal["unknown_variable"] = "unknown_variable"
    name: str
    suggestion: str | None = None
    line: int | None = None
    column: int | None = None


class UnknownFilterFinding(_Finding):
    kind: Literal["unknown_filter"] = "unknown_filter"
    name: str
    suggestion: str | None = None
    line: int | None = None
    column: int | None = None


class SyntaxFinding(_Finding):
    kind: Literal["syntax"] = "syntax"
    code: str
    message: str
    line: int | None = None
    column: int | None = None


class CircularReferenceFinding(_Finding):
    kind: Literal["circular_reference"] = "circular_reference"
    cycle: list[str]


class NameCollisionFinding(_Finding):
    kind: Literal["name_collision"] = "name_collision"
    name: str
    origin: str


class ResourceFinding(_Finding):
    kind: Literal["resource"] = "resource"
    limit: str
    message: str


Finding = Annotated[
    UnknownVariableFinding
    | UnknownFilterFinding
    | SyntaxFinding
    | CircularReferenceFinding
    | NameCollisionFinding
    | ResourceFinding,
    Field(discriminator="kind"),
]


class ValidationResult(BaseModel):
    valid: bool
    errors: list[Finding] = Field(default_factory=list)

    @classmethod
    def of(cls, errors: list) -> ValidationResult:
        return cls(valid=not errors, errors=errors)
