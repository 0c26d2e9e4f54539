"""Pydantic request models for API endpoints."""

from typing import Any, Literal

from pydantic import BaseModel

from promptpack.models import VariableDescriptor


class UpdateSettings(BaseModel):
    active_bundle: str | None = None


class CreateBundle(BaseModel):
    name: str
    source_id: str = "default"
    description: str = ""
    author: str = ""


class UpdateBundle(BaseModel):
    name: str | None = None
    description: str | None = None
    author: str | None = None


class ImportBody(BaseModel):
    bundle: dict[str, Any]
    strategy: Literal["rename", "replace"] = "rename"


class CustomVariablesBody(BaseModel):
    custom_variables: list[VariableDescriptor]


class TemplateBody(BaseModel):
    primary_body: str = ""
    secondary_body: str = ""


class ValidateBody(BaseModel):
    body: str
    bundle_id: str | None = None


class PreviewBody(BaseModel):
    values: dict[str, Any] = {}
