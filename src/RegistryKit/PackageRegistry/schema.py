"""JSON Schema generation and validation for registry configuration documents.

The schema is assembled from the pydantic models of the leaf values plus
``patternProperties`` for the identifier-keyed containers.  It is meant for
editors and CI linting; :func:`~RegistryKit.PackageRegistry.codec.decode_configuration`
remains the authority on whether a document is accepted.

Features:
- Deterministic schema generation (sorted keys)
- Scope and package key patterns matching the identity grammar
- Collect-all-errors validation via ``jsonschema``
"""

from __future__ import annotations

from typing import Any, Dict, List, Type

from jsonschema import Draft202012Validator
from pydantic import BaseModel
from pydantic.json_schema import GenerateJsonSchema, JsonSchemaMode

from .codec import CURRENT_VERSION, DEFAULT_REGISTRY_KEY
from .identity import PACKAGE_IDENTITY_PATTERN, SCOPE_PATTERN
from .models import Authentication, Global, Registry, RegistryOverride, ScopePackageOverride

__all__ = [
    "CanonicalJsonSchema",
    "generate_document_schema",
    "validate_document",
]


class CanonicalJsonSchema(GenerateJsonSchema):
    """Schema generator producing recursively sorted keys."""

    def generate(self, schema: Any, mode: JsonSchemaMode = "validation") -> dict[str, Any]:
        result = super().generate(schema, mode)
        return self._sort_dict(result)

    @staticmethod
    def _sort_dict(obj: Any) -> Any:
        if isinstance(obj, dict):
            return {k: CanonicalJsonSchema._sort_dict(obj[k]) for k in sorted(obj.keys())}
        elif isinstance(obj, list):
            return [CanonicalJsonSchema._sort_dict(item) for item in obj]
        return obj


def _model_ref(model: Type[BaseModel], defs: Dict[str, Any]) -> Dict[str, str]:
    schema = model.model_json_schema(
        by_alias=True,
        ref_template="#/$defs/{model}",
        schema_generator=CanonicalJsonSchema,
    )
    defs.update(schema.pop("$defs", {}))
    defs[model.__name__] = schema
    return {"$ref": f"#/$defs/{model.__name__}"}


def _nullable(schema: Dict[str, Any]) -> Dict[str, Any]:
    return {"anyOf": [schema, {"type": "null"}]}


def _keyed(value_schema: Dict[str, Any], pattern: str) -> Dict[str, Any]:
    return {
        "type": ["object", "null"],
        "patternProperties": {pattern: value_schema},
        "additionalProperties": False,
    }


def generate_document_schema() -> dict[str, Any]:
    """Return the Draft 2020-12 JSON Schema of a version 1 document."""

    defs: Dict[str, Any] = {}
    registry = _model_ref(Registry, defs)
    authentication = _model_ref(Authentication, defs)
    global_override = _model_ref(Global, defs)
    registry_override = _model_ref(RegistryOverride, defs)
    scope_package_override = _model_ref(ScopePackageOverride, defs)

    schema = {
        "$schema": "https://json-schema.org/draft/2020-12/schema",
        "title": "RegistryConfiguration",
        "type": "object",
        "required": ["version", "registries"],
        "properties": {
            "version": {"const": int(CURRENT_VERSION)},
            "registries": {
                "type": "object",
                "properties": {DEFAULT_REGISTRY_KEY: _nullable(registry)},
                "patternProperties": {SCOPE_PATTERN: registry},
                "additionalProperties": False,
            },
            "authentication": {"type": ["object", "null"], "additionalProperties": authentication},
            "security": {
                "type": ["object", "null"],
                "properties": {
                    "default": _nullable(global_override),
                    "registryOverrides": {
                        "type": ["object", "null"],
                        "additionalProperties": registry_override,
                    },
                    "scopeOverrides": _keyed(scope_package_override, SCOPE_PATTERN),
                    "packageOverrides": _keyed(scope_package_override, PACKAGE_IDENTITY_PATTERN),
                },
            },
        },
        "$defs": defs,
    }
    return CanonicalJsonSchema._sort_dict(schema)


def validate_document(document: Any) -> List[str]:
    """Validate a parsed document against the schema.

    Returns:
        Sorted ``"<path>: <message>"`` strings; empty when the document is valid.
    """

    validator = Draft202012Validator(generate_document_schema())
    problems = []
    for error in validator.iter_errors(document):
        location = ".".join(str(part) for part in error.absolute_path) or "<root>"
        problems.append(f"{location}: {error.message}")
    return sorted(problems)
