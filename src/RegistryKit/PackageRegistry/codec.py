# === NAVMAP v1 ===
# {
#   "module": "RegistryKit.PackageRegistry.codec",
#   "purpose": "Encode and decode registry configuration documents with mixed fixed and identifier keys",
#   "sections": [
#     {
#       "id": "schemaversion",
#       "name": "SchemaVersion",
#       "anchor": "class-schemaversion",
#       "kind": "class"
#     },
#     {
#       "id": "encode-configuration",
#       "name": "encode_configuration",
#       "anchor": "function-encode-configuration",
#       "kind": "function"
#     },
#     {
#       "id": "decode-configuration",
#       "name": "decode_configuration",
#       "anchor": "function-decode-configuration",
#       "kind": "function"
#     },
#     {
#       "id": "decode-v1",
#       "name": "_decode_v1",
#       "anchor": "function-decode-v1",
#       "kind": "function"
#     },
#     {
#       "id": "decode-security",
#       "name": "_decode_security",
#       "anchor": "function-decode-security",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Versioned document codec for :class:`RegistryConfiguration`.

Document layout (version 1)::

    {
      "version": 1,
      "registries": {"[default]": {...}, "<scope>": {...}},
      "authentication": {"<host>": {"type": "basic" | "token", "loginAPIPath": "..."}},
      "security": {
        "default": {"signing": {...}},
        "registryOverrides": {"<host>": {"signing": {...}}},
        "scopeOverrides": {"<scope>": {"signing": {...}}},
        "packageOverrides": {"<scope>.<name>": {"signing": {...}}}
      }
    }

``registries`` mixes the reserved ``[default]`` key with scope keys.  Decoding
reads the reserved key first and then validates every remaining key against
the scope grammar.  Any invalid key, unsupported version, or malformed value
aborts the whole decode.
"""

from __future__ import annotations

import logging
from enum import IntEnum
from typing import Any, Callable, Dict, Mapping, MutableMapping, Sequence, Tuple, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .errors import (
    DataCorruptedError,
    ErrorCode,
    InvalidIdentifierError,
    UnsupportedVersionError,
)
from .identity import IdentifierError, PackageIdentity, Scope
from .models import (
    Authentication,
    Global,
    Registry,
    RegistryConfiguration,
    RegistryOverride,
    ScopePackageOverride,
    Security,
)

__all__ = [
    "DEFAULT_REGISTRY_KEY",
    "SchemaVersion",
    "CURRENT_VERSION",
    "encode_configuration",
    "decode_configuration",
]

logger = logging.getLogger("RegistryKit.PackageRegistry")

DEFAULT_REGISTRY_KEY = "[default]"

ModelT = TypeVar("ModelT", bound=BaseModel)
KeyT = TypeVar("KeyT")
CodingPath = Tuple[str, ...]


class SchemaVersion(IntEnum):
    V1 = 1


CURRENT_VERSION = SchemaVersion.V1


# --- Encoding ---


def _encode_value(value: BaseModel) -> Dict[str, Any]:
    return value.model_dump(mode="json", by_alias=True, exclude_none=True)


def encode_configuration(configuration: RegistryConfiguration) -> Dict[str, Any]:
    """Serialize ``configuration`` into a plain document mapping.

    The version is always written first.  Absent optional fields are omitted;
    ``authentication`` is always present, ``security`` only when configured.

    Raises:
        InvalidIdentifierError: If a package override key was mutated into a
            non-registry identity after validation.
    """

    document: Dict[str, Any] = {"version": int(CURRENT_VERSION)}

    registries: Dict[str, Any] = {}
    if configuration.default_registry is not None:
        registries[DEFAULT_REGISTRY_KEY] = _encode_value(configuration.default_registry)
    for scope, registry in configuration.scoped_registries.items():
        registries[str(scope)] = _encode_value(registry)
    document["registries"] = registries

    document["authentication"] = {
        host: _encode_value(authentication)
        for host, authentication in configuration.registry_authentication.items()
    }

    if configuration.security is not None:
        document["security"] = _encode_security(configuration.security)
    return document


def _encode_security(security: Security) -> Dict[str, Any]:
    # package_overrides may have been mutated in place after validation.
    for identity in security.package_overrides:
        if not identity.is_registry:
            raise InvalidIdentifierError(
                str(identity),
                "invalid package identifier",
                coding_path=("security", "packageOverrides"),
                error_code=ErrorCode.E_PACKAGE_ID,
            )
    return {
        "default": _encode_value(security.default),
        "registryOverrides": {
            host: _encode_value(override) for host, override in security.registry_overrides.items()
        },
        "scopeOverrides": {
            str(scope): _encode_value(override)
            for scope, override in security.scope_overrides.items()
        },
        "packageOverrides": {
            str(identity): _encode_value(override)
            for identity, override in security.package_overrides.items()
        },
    }


# --- Decoding ---


def decode_configuration(document: Any) -> RegistryConfiguration:
    """Decode a document mapping into a :class:`RegistryConfiguration`.

    Raises:
        UnsupportedVersionError: If ``version`` is not a supported schema version.
        InvalidIdentifierError: If a scope or package key is invalid.
        DataCorruptedError: If the document structure or a value is malformed.
    """

    container = _expect_mapping(document, ())
    if "version" not in container:
        raise DataCorruptedError("missing required key", coding_path=("version",))
    version = _parse_version(container["version"])
    configuration = _DECODERS[version](container)
    logger.debug(
        "Decoded registry configuration v%d (default registry: %s, %d scoped registries)",
        int(version),
        "yes" if configuration.default_registry is not None else "no",
        len(configuration.scoped_registries),
        extra={"stage": "decode"},
    )
    return configuration


def _parse_version(raw: Any) -> SchemaVersion:
    number = raw
    # JSON has a single number type; a whole float such as 1.0 reads as an integer.
    if isinstance(raw, float) and raw.is_integer():
        number = int(raw)
    if isinstance(number, bool) or not isinstance(number, int):
        raise UnsupportedVersionError(raw)
    try:
        return SchemaVersion(number)
    except ValueError:
        raise UnsupportedVersionError(raw) from None


def _decode_v1(container: Mapping[str, Any]) -> RegistryConfiguration:
    if container.get("registries") is None:
        raise DataCorruptedError("missing required key", coding_path=("registries",))
    registries = _expect_mapping(container["registries"], ("registries",))

    # Reserved key first, then every remaining key as a scope.
    default_registry = None
    if registries.get(DEFAULT_REGISTRY_KEY) is not None:
        default_registry = _decode_value(
            Registry, registries[DEFAULT_REGISTRY_KEY], ("registries", DEFAULT_REGISTRY_KEY)
        )

    scoped_registries: Dict[Scope, Registry] = {}
    for key, raw_registry in registries.items():
        if key == DEFAULT_REGISTRY_KEY:
            continue
        path = ("registries", str(key))
        scope = _decode_scope(key, path)
        _insert_unique(scoped_registries, scope, _decode_value(Registry, raw_registry, path), path)

    registry_authentication = _decode_keyed(
        container.get("authentication"),
        ("authentication",),
        _decode_host,
        Authentication,
    )

    security = None
    if container.get("security") is not None:
        security = _decode_security(container["security"], ("security",))

    return RegistryConfiguration(
        default_registry=default_registry,
        scoped_registries=scoped_registries,
        registry_authentication=registry_authentication,
        security=security,
    )


_DECODERS: Dict[SchemaVersion, Callable[[Mapping[str, Any]], RegistryConfiguration]] = {
    SchemaVersion.V1: _decode_v1,
}


def _decode_security(raw: Any, path: CodingPath) -> Security:
    container = _expect_mapping(raw, path)

    default = Global()
    if container.get("default") is not None:
        default = _decode_value(Global, container["default"], (*path, "default"))

    registry_overrides = _decode_keyed(
        container.get("registryOverrides"),
        (*path, "registryOverrides"),
        _decode_host,
        RegistryOverride,
    )
    scope_overrides = _decode_keyed(
        container.get("scopeOverrides"),
        (*path, "scopeOverrides"),
        _decode_scope,
        ScopePackageOverride,
    )
    package_overrides = _decode_keyed(
        container.get("packageOverrides"),
        (*path, "packageOverrides"),
        _decode_package_identity,
        ScopePackageOverride,
    )

    return Security(
        default=default,
        registry_overrides=registry_overrides,
        scope_overrides=scope_overrides,
        package_overrides=package_overrides,
    )


def _decode_keyed(
    raw: Any,
    path: CodingPath,
    decode_key: Callable[[Any, CodingPath], KeyT],
    model: Type[ModelT],
) -> Dict[KeyT, ModelT]:
    """Decode a dynamic-key container; ``None`` reads as an empty container."""

    result: Dict[KeyT, ModelT] = {}
    if raw is None:
        return result
    container = _expect_mapping(raw, path)
    for key, value in container.items():
        item_path = (*path, str(key))
        decoded_key = decode_key(key, item_path)
        _insert_unique(result, decoded_key, _decode_value(model, value, item_path), item_path)
    return result


def _decode_host(key: Any, path: CodingPath) -> str:
    if not isinstance(key, str):
        raise DataCorruptedError(
            f"host key must be a string, found {type(key).__name__}", coding_path=path
        )
    return key


def _decode_scope(key: Any, path: CodingPath) -> Scope:
    if not isinstance(key, str):
        raise InvalidIdentifierError(str(key), "scope key must be a string", coding_path=path[:-1])
    try:
        return Scope(key)
    except IdentifierError as exc:
        raise InvalidIdentifierError(
            key, f"invalid scope ({exc})", coding_path=path[:-1]
        ) from exc


def _decode_package_identity(key: Any, path: CodingPath) -> PackageIdentity:
    identity = PackageIdentity.plain(str(key))
    if not isinstance(key, str) or not identity.is_registry:
        raise InvalidIdentifierError(
            str(key),
            "invalid package identifier",
            coding_path=path[:-1],
            error_code=ErrorCode.E_PACKAGE_ID,
        )
    return identity


def _decode_value(model: Type[ModelT], raw: Any, path: CodingPath) -> ModelT:
    try:
        return model.model_validate(raw)
    except PydanticValidationError as exc:
        errors = exc.errors()
        first = errors[0]
        location = (*path, *(str(part) for part in first["loc"]))
        raise DataCorruptedError(
            first["msg"],
            coding_path=location,
            details={
                "errors": [
                    {"loc": ".".join((*path, *(str(p) for p in e["loc"]))), "msg": e["msg"]}
                    for e in errors
                ]
            },
        ) from exc


def _expect_mapping(value: Any, path: CodingPath) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise DataCorruptedError(
            f"expected a mapping, found {type(value).__name__}", coding_path=path
        )
    return value


def _insert_unique(
    target: MutableMapping[KeyT, Any], key: KeyT, value: Any, path: Sequence[str]
) -> None:
    if key in target or (
        isinstance(key, str)
        and any(isinstance(existing, str) and existing.lower() == key.lower() for existing in target)
    ):
        raise DataCorruptedError(
            f"duplicate key '{key}'",
            coding_path=path,
            error_code=ErrorCode.E_DUPLICATE_KEY,
        )
    target[key] = value
