"""Exception hierarchy shared across registry configuration decoding and policy resolution.

Registry configuration spans document parsing, identifier validation, and the
signing policy merge.  This module groups the failure modes into a small
hierarchy so caller code can react to high-level categories (for example,
a corrupted document vs. an unsupported package identity) while still having
access to the canonical error code and the offending value.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional, Sequence

__all__ = [
    "ErrorCode",
    "RegistryConfigError",
    "ConfigurationError",
    "DataCorruptedError",
    "UnsupportedVersionError",
    "InvalidIdentifierError",
    "UnsupportedIdentityError",
]


class ErrorCode(str, Enum):
    """Canonical error codes for registry configuration failures."""

    # Document errors
    E_PARSE = "E_PARSE"  # Text could not be parsed as JSON/YAML
    E_IO = "E_IO"  # Document could not be read or written
    E_CORRUPT = "E_CORRUPT"  # Structure does not match the schema
    E_VERSION = "E_VERSION"  # Unsupported schema version

    # Identifier errors
    E_SCOPE = "E_SCOPE"  # Invalid scope key
    E_PACKAGE_ID = "E_PACKAGE_ID"  # Package key is not a registry identity
    E_DUPLICATE_KEY = "E_DUPLICATE_KEY"  # Two keys normalize to the same identifier

    # Resolution errors
    E_IDENTITY = "E_IDENTITY"  # Signing lookup for a non-registry identity


class RegistryConfigError(RuntimeError):
    """Base exception for registry configuration failures."""

    default_code = ErrorCode.E_CORRUPT

    def __init__(
        self,
        message: str,
        *,
        error_code: Optional[ErrorCode] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.error_code = error_code or self.default_code
        self.message = message
        self.details = dict(details or {})
        super().__init__(message)


class ConfigurationError(RegistryConfigError):
    """Raised when a configuration document cannot be read, parsed, or written."""

    default_code = ErrorCode.E_PARSE


class DataCorruptedError(ConfigurationError):
    """Raised when a decoded document does not match the expected structure.

    Attributes:
        coding_path: Keys leading from the document root to the failing value.
    """

    default_code = ErrorCode.E_CORRUPT

    def __init__(
        self,
        message: str,
        *,
        coding_path: Sequence[str] = (),
        error_code: Optional[ErrorCode] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.coding_path = tuple(coding_path)
        if self.coding_path:
            message = f"{'.'.join(self.coding_path)}: {message}"
        super().__init__(message, error_code=error_code, details=details)


class UnsupportedVersionError(DataCorruptedError):
    """Raised when the document declares a schema version this library cannot read."""

    default_code = ErrorCode.E_VERSION

    def __init__(self, version: Any) -> None:
        self.version = version
        super().__init__(
            f"invalid version: {version!r}",
            coding_path=("version",),
            details={"version": version},
        )


class InvalidIdentifierError(DataCorruptedError):
    """Raised when a scope or package key fails its grammar or family check."""

    default_code = ErrorCode.E_SCOPE

    def __init__(
        self,
        identifier: str,
        reason: str,
        *,
        coding_path: Sequence[str] = (),
        error_code: Optional[ErrorCode] = None,
    ) -> None:
        self.identifier = identifier
        self.reason = reason
        super().__init__(
            f"{reason}: '{identifier}'",
            coding_path=coding_path,
            error_code=error_code,
            details={"identifier": identifier},
        )


class UnsupportedIdentityError(RegistryConfigError):
    """Raised when signing policy is requested for a package outside the registry family."""

    default_code = ErrorCode.E_IDENTITY

    def __init__(self, identity: str) -> None:
        self.identity = identity
        super().__init__(
            f"Only package identity in <scope>.<name> format is supported: '{identity}'",
            details={"identity": identity},
        )


# === NAVMAP v1 ===
# {
#   "module": "RegistryKit.PackageRegistry.errors",
#   "purpose": "Define the exception hierarchy used across registry configuration decoding and policy resolution",
#   "sections": [
#     {"id": "codes", "name": "Error Codes", "anchor": "COD", "kind": "api"},
#     {"id": "base", "name": "Base Exceptions", "anchor": "BAS", "kind": "api"},
#     {"id": "document", "name": "Document Errors", "anchor": "DOC", "kind": "api"},
#     {"id": "identity", "name": "Identity Errors", "anchor": "IDN", "kind": "api"}
#   ]
# }
# === /NAVMAP ===
