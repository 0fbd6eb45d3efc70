# === NAVMAP v1 ===
# {
#   "module": "RegistryKit.PackageRegistry",
#   "purpose": "Package initialization for RegistryKit.PackageRegistry",
#   "sections": [
#     {
#       "id": "getattr",
#       "name": "__getattr__",
#       "anchor": "function-getattr",
#       "kind": "function"
#     },
#     {
#       "id": "dir",
#       "name": "__dir__",
#       "anchor": "function-dir",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Public API for package registry configuration.

This facade exposes the registry configuration model, the versioned document
codec, and effective signing policy resolution.  Attributes are imported on
first access so that importing the package stays cheap.
"""

from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING, Any, Dict

__version__ = "0.1.0"

_EXPORT_MAP: Dict[str, str] = {
    # errors
    "ErrorCode": ".errors",
    "RegistryConfigError": ".errors",
    "ConfigurationError": ".errors",
    "DataCorruptedError": ".errors",
    "UnsupportedVersionError": ".errors",
    "InvalidIdentifierError": ".errors",
    "UnsupportedIdentityError": ".errors",
    # identity
    "Scope": ".identity",
    "PackageName": ".identity",
    "PackageIdentity": ".identity",
    "RegistryIdentity": ".identity",
    "parse_scope": ".identity",
    "is_registry_identity": ".identity",
    # models
    "Registry": ".models",
    "Authentication": ".models",
    "AuthenticationType": ".models",
    "Signing": ".models",
    "ScopedSigning": ".models",
    "ValidationChecks": ".models",
    "OnUnsignedAction": ".models",
    "OnUntrustedCertificateAction": ".models",
    "CertificateExpirationCheck": ".models",
    "CertificateRevocationCheck": ".models",
    "Global": ".models",
    "RegistryOverride": ".models",
    "ScopePackageOverride": ".models",
    "Security": ".models",
    "RegistryConfiguration": ".models",
    # signing resolution
    "BASELINE_SIGNING": ".overrides",
    "resolve_signing": ".overrides",
    # codec & documents
    "DEFAULT_REGISTRY_KEY": ".codec",
    "SchemaVersion": ".codec",
    "encode_configuration": ".codec",
    "decode_configuration": ".codec",
    "loads": ".documents",
    "dumps": ".documents",
    "load_configuration": ".documents",
    "dump_configuration": ".documents",
    "load_merged": ".documents",
    # schema, settings & logging
    "generate_document_schema": ".schema",
    "validate_document": ".schema",
    "RegistryKitSettings": ".settings",
    "get_settings": ".settings",
    "setup_logging": ".logging_config",
}

__all__ = [*_EXPORT_MAP, "__version__"]

if TYPE_CHECKING:  # pragma: no cover - import for static analysis only
    from .codec import (
        DEFAULT_REGISTRY_KEY,
        SchemaVersion,
        decode_configuration,
        encode_configuration,
    )
    from .documents import dump_configuration, dumps, load_configuration, load_merged, loads
    from .models import RegistryConfiguration, Signing
    from .overrides import BASELINE_SIGNING, resolve_signing


def __getattr__(name: str) -> Any:
    """Lazily import public exports on first access."""

    module_name = _EXPORT_MAP.get(name)
    if module_name is None:
        raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
    value = getattr(import_module(module_name, __name__), name)
    globals()[name] = value
    return value


def __dir__() -> list[str]:
    """Expose lazily-populated attributes in ``dir()`` results."""

    return sorted(set(globals()) | set(__all__))
