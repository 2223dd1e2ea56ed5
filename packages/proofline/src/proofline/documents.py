from __future__ import annotations

import importlib.resources as resources
import json
from pathlib import Path
from typing import Any, Literal

from jsonschema import Draft202012Validator
from jsonschema import ValidationError as JsonSchemaValidationError
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import DocumentError
from .hierarchy import HierarchyRegistry

HIERARCHY_DOCUMENT_SCHEMA = "proofline.hierarchy@1"
HIERARCHY_SCHEMA_FILE = "hierarchy.schema.json"


class PredicateDeclaration(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str = Field(min_length=1)
    parents: list[str] = Field(default_factory=list)
    description: str | None = None


class HierarchyDocument(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    schema_id: Literal["proofline.hierarchy@1"] = Field(
        default=HIERARCHY_DOCUMENT_SCHEMA,
        alias="schema",
    )
    predicates: list[PredicateDeclaration] = Field(default_factory=list)

    def apply(self, registry: HierarchyRegistry) -> HierarchyRegistry:
        for declaration in self.predicates:
            registry.register(declaration.id, declaration.parents)
        return registry


def load_hierarchy_schema() -> dict[str, Any]:
    resource = resources.files("proofline").joinpath("schema").joinpath(HIERARCHY_SCHEMA_FILE)
    try:
        return json.loads(resource.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise DocumentError(
            code="PROOFLINE_DOCUMENT_INVALID_SCHEMA",
            message="packaged hierarchy schema is missing",
            context={"resource": HIERARCHY_SCHEMA_FILE},
        ) from exc


def _validate_with_schema(document: Any, schema: dict[str, Any]) -> None:
    try:
        validator = Draft202012Validator(schema)
        errors = sorted(validator.iter_errors(document), key=lambda e: (list(e.path), e.message))
    except JsonSchemaValidationError as exc:
        raise DocumentError(
            code="PROOFLINE_DOCUMENT_INVALID_SCHEMA",
            message="hierarchy document schema validation failed",
            context={"error": str(exc)},
        ) from exc
    if not errors:
        return
    first = errors[0]
    path = "/" + "/".join(str(part) for part in first.path)
    raise DocumentError(
        code="PROOFLINE_DOCUMENT_INVALID",
        message="hierarchy document schema validation failed",
        context={"path": path, "error": first.message},
    )


def validate_hierarchy_document(
    document: Any,
    *,
    schema: dict[str, Any] | None = None,
) -> HierarchyDocument:
    _validate_with_schema(document, schema or load_hierarchy_schema())
    try:
        return HierarchyDocument.model_validate(document)
    except ValidationError as exc:
        raise DocumentError(
            code="PROOFLINE_DOCUMENT_INVALID",
            message="hierarchy document failed model validation",
            context={"error": str(exc)},
        ) from exc


def load_hierarchy_document(path: Path) -> HierarchyDocument:
    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise DocumentError(
            code="PROOFLINE_DOCUMENT_UNREADABLE",
            message="failed reading hierarchy document",
            context={"path": str(path), "error": str(exc)},
        ) from exc
    return validate_hierarchy_document(document)
