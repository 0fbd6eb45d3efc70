# === NAVMAP v1 ===
# {
#   "module": "RegistryKit.PackageRegistry.models",
#   "purpose": "Value types for registries, authentication, and the layered signing policy",
#   "sections": [
#     {"id": "registry", "name": "Registry & Authentication", "anchor": "REG", "kind": "api"},
#     {"id": "signing", "name": "Signing Policy", "anchor": "SIG", "kind": "api"},
#     {"id": "security", "name": "Security Layers", "anchor": "SEC", "kind": "api"},
#     {"id": "configuration", "name": "RegistryConfiguration", "anchor": "CFG", "kind": "api"}
#   ]
# }
# === /NAVMAP ===

"""Registry configuration models.

Leaf values (registries, authentication entries, signing policies) are frozen
pydantic models so they can be shared freely between configurations.  The
root :class:`RegistryConfiguration` and its :class:`Security` section are the
only mutable containers; they change through :meth:`RegistryConfiguration.merge`.

Python attribute names are snake_case; every field carries the camelCase alias
used by the persisted document, and models accept either spelling on input.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import ClassVar, Dict, Mapping, Optional, TypeVar, Union
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr, field_validator

from .identity import PackageIdentity, Scope

__all__ = [
    "AuthenticationType",
    "Authentication",
    "Registry",
    "OnUnsignedAction",
    "OnUntrustedCertificateAction",
    "CertificateExpirationCheck",
    "CertificateRevocationCheck",
    "ValidationChecks",
    "Signing",
    "ScopedSigning",
    "Global",
    "RegistryOverride",
    "ScopePackageOverride",
    "Security",
    "RegistryConfiguration",
    "lookup_host",
]

logger = logging.getLogger("RegistryKit.PackageRegistry")

ValueT = TypeVar("ValueT")

_VALUE_CONFIG = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


# ============================================================================
# Registry & Authentication
# ============================================================================


class Registry(BaseModel):
    """Package source endpoint."""

    model_config = _VALUE_CONFIG

    url: StrictStr = Field(description="Base URL of the registry")
    supports_availability: StrictBool = Field(
        default=False,
        alias="supportsAvailability",
        description="Registry exposes the availability endpoint",
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("url must not be empty")
        return value

    @property
    def host(self) -> Optional[str]:
        return _host_of(self.url)


class AuthenticationType(str, Enum):
    BASIC = "basic"
    TOKEN = "token"


class Authentication(BaseModel):
    """How to authenticate against a registry host."""

    model_config = _VALUE_CONFIG

    type: AuthenticationType
    login_api_path: Optional[StrictStr] = Field(default=None, alias="loginAPIPath")


def _host_of(url: str) -> Optional[str]:
    try:
        return urlsplit(url).hostname
    except ValueError:
        return None


def lookup_host(entries: Mapping[str, ValueT], host: Optional[str]) -> Optional[ValueT]:
    """Return the entry keyed by ``host``, comparing host names case-insensitively."""

    if not host:
        return None
    if host in entries:
        return entries[host]
    wanted = host.lower()
    for key, value in entries.items():
        if key.lower() == wanted:
            return value
    return None


# ============================================================================
# Signing Policy
# ============================================================================


class OnUnsignedAction(str, Enum):
    ERROR = "error"
    PROMPT = "prompt"
    WARN = "warn"
    SILENT_ALLOW = "silentAllow"


class OnUntrustedCertificateAction(str, Enum):
    ERROR = "error"
    PROMPT = "prompt"
    WARN = "warn"
    SILENT_TRUST = "silentTrust"


class CertificateExpirationCheck(str, Enum):
    ENABLED = "enabled"
    DISABLED = "disabled"


class CertificateRevocationCheck(str, Enum):
    STRICT = "strict"
    ALLOW_SOFT_FAIL = "allowSoftFail"
    DISABLED = "disabled"


class ValidationChecks(BaseModel):
    """Certificate validity checks performed during signature verification."""

    model_config = _VALUE_CONFIG

    certificate_expiration: Optional[CertificateExpirationCheck] = Field(
        default=None, alias="certificateExpiration"
    )
    certificate_revocation: Optional[CertificateRevocationCheck] = Field(
        default=None, alias="certificateRevocation"
    )


class Signing(BaseModel):
    """Full signing policy accepted at the default and registry-override layers.

    Every field is optional; an unset field defers to the layer below it.
    """

    model_config = _VALUE_CONFIG

    on_unsigned: Optional[OnUnsignedAction] = Field(default=None, alias="onUnsigned")
    on_untrusted_certificate: Optional[OnUntrustedCertificateAction] = Field(
        default=None, alias="onUntrustedCertificate"
    )
    trusted_root_certificates_path: Optional[StrictStr] = Field(
        default=None, alias="trustedRootCertificatesPath"
    )
    include_default_trusted_root_certificates: Optional[StrictBool] = Field(
        default=None, alias="includeDefaultTrustedRootCertificates"
    )
    validation_checks: Optional[ValidationChecks] = Field(default=None, alias="validationChecks")


class ScopedSigning(BaseModel):
    """Reduced signing policy accepted at the scope and package layers.

    Only trust anchors can be adjusted here; action policy and validation
    checks stay with the registry operator.
    """

    model_config = _VALUE_CONFIG

    trusted_root_certificates_path: Optional[StrictStr] = Field(
        default=None, alias="trustedRootCertificatesPath"
    )
    include_default_trusted_root_certificates: Optional[StrictBool] = Field(
        default=None, alias="includeDefaultTrustedRootCertificates"
    )


# ============================================================================
# Security Layers
# ============================================================================


class Global(BaseModel):
    model_config = _VALUE_CONFIG

    signing: Optional[Signing] = None


class RegistryOverride(BaseModel):
    model_config = _VALUE_CONFIG

    signing: Optional[Signing] = None


class ScopePackageOverride(BaseModel):
    model_config = _VALUE_CONFIG

    signing: Optional[ScopedSigning] = None


class Security(BaseModel):
    """The four precedence layers of signing policy.

    Host keys match registry hosts case-insensitively.  Package override keys
    are checked when the mapping is assigned, not when it is mutated in place;
    the encoder checks them again before writing.
    """

    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    default: Global = Field(default_factory=Global)
    registry_overrides: Dict[str, RegistryOverride] = Field(
        default_factory=dict, alias="registryOverrides"
    )
    scope_overrides: Dict[Scope, ScopePackageOverride] = Field(
        default_factory=dict, alias="scopeOverrides"
    )
    package_overrides: Dict[PackageIdentity, ScopePackageOverride] = Field(
        default_factory=dict, alias="packageOverrides"
    )

    @field_validator("package_overrides")
    @classmethod
    def validate_package_keys(
        cls, value: Dict[PackageIdentity, ScopePackageOverride]
    ) -> Dict[PackageIdentity, ScopePackageOverride]:
        for identity in value:
            if not identity.is_registry:
                raise ValueError(f"invalid package identifier: '{identity}'")
        return value


# ============================================================================
# RegistryConfiguration
# ============================================================================


class RegistryConfiguration(BaseModel):
    """Root registry configuration loaded from one or more documents."""

    version: ClassVar[int] = 1

    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    default_registry: Optional[Registry] = Field(default=None, alias="defaultRegistry")
    scoped_registries: Dict[Scope, Registry] = Field(
        default_factory=dict, alias="scopedRegistries"
    )
    registry_authentication: Dict[str, Authentication] = Field(
        default_factory=dict, alias="registryAuthentication"
    )
    security: Optional[Security] = None

    def merge(self, other: "RegistryConfiguration") -> None:
        """Overlay ``other`` onto this configuration in place.

        A default registry or security section in ``other`` replaces ours;
        scoped registries and authentication entries are replaced per key
        (host keys compared case-insensitively).
        """

        if other.default_registry is not None:
            self.default_registry = other.default_registry

        scoped_registries = dict(self.scoped_registries)
        for scope, registry in other.scoped_registries.items():
            scoped_registries.pop(scope, None)
            scoped_registries[scope] = registry
        self.scoped_registries = scoped_registries

        authentication = dict(self.registry_authentication)
        for host, entry in other.registry_authentication.items():
            for existing in [key for key in authentication if key.lower() == host.lower()]:
                del authentication[existing]
            authentication[host] = entry
        self.registry_authentication = authentication

        if other.security is not None:
            self.security = other.security.model_copy(deep=True)

        logger.debug(
            "Merged registry configuration (%d scoped registries, %d authentication entries)",
            len(self.scoped_registries),
            len(self.registry_authentication),
            extra={"stage": "merge"},
        )

    def registry_for_package(self, package: Union[PackageIdentity, str]) -> Optional[Registry]:
        """Return the registry serving ``package``.

        Identities without a ``<scope>.<name>`` form have no registry.
        """

        if isinstance(package, str):
            package = PackageIdentity.plain(package)
        registry_identity = package.registry
        if registry_identity is None:
            return None
        return self.registry_for_scope(registry_identity.scope)

    def registry_for_scope(self, scope: Union[Scope, str]) -> Optional[Registry]:
        if isinstance(scope, str):
            scope = Scope(scope)
        registry = self.scoped_registries.get(scope)
        if registry is not None:
            return registry
        return self.default_registry

    @property
    def explicitly_configured(self) -> bool:
        return self.default_registry is not None or bool(self.scoped_registries)

    def authentication_for(self, registry_url: str) -> Optional[Authentication]:
        return lookup_host(self.registry_authentication, _host_of(registry_url))

    def signing_for(
        self, package: Union[PackageIdentity, str], registry: Registry
    ) -> Signing:
        """Resolve the effective signing policy for ``package`` served by ``registry``."""

        from .overrides import resolve_signing  # imported lazily to avoid circular dependency

        return resolve_signing(self, package, registry)
