"""Effective signing policy resolution.

The policy for a package is computed by starting from :data:`BASELINE_SIGNING`
and laying four optional overlays on top of it, lowest precedence first:

1. ``security.default.signing``
2. ``security.registryOverrides[<registry host>].signing``
3. ``security.scopeOverrides[<package scope>].signing``
4. ``security.packageOverrides[<package>].signing``

Every overlay is applied with the same rule: a field that is set replaces the
accumulated value, a field that is unset leaves it alone.  Layers 3 and 4 use
:class:`~RegistryKit.PackageRegistry.models.ScopedSigning`, which only carries
the trust anchor fields, so they can never change the unsigned or untrusted
certificate actions or the validation checks.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, TypeVar, Union

from pydantic import BaseModel

from .errors import UnsupportedIdentityError
from .identity import PackageIdentity
from .models import (
    CertificateExpirationCheck,
    CertificateRevocationCheck,
    OnUnsignedAction,
    OnUntrustedCertificateAction,
    Registry,
    RegistryConfiguration,
    ScopedSigning,
    Signing,
    ValidationChecks,
    lookup_host,
)

__all__ = [
    "BASELINE_SIGNING",
    "SIGNING_SCALAR_FIELDS",
    "TRUST_ANCHOR_FIELDS",
    "VALIDATION_CHECK_FIELDS",
    "coalesce",
    "merge_validation_checks",
    "merge_signing",
    "merge_scoped_signing",
    "resolve_signing",
]

logger = logging.getLogger("RegistryKit.PackageRegistry")

ModelT = TypeVar("ModelT", bound=BaseModel)

TRUST_ANCHOR_FIELDS = (
    "trusted_root_certificates_path",
    "include_default_trusted_root_certificates",
)
SIGNING_SCALAR_FIELDS = ("on_unsigned", "on_untrusted_certificate", *TRUST_ANCHOR_FIELDS)
VALIDATION_CHECK_FIELDS = ("certificate_expiration", "certificate_revocation")

BASELINE_SIGNING = Signing(
    on_unsigned=OnUnsignedAction.PROMPT,
    on_untrusted_certificate=OnUntrustedCertificateAction.PROMPT,
    trusted_root_certificates_path=None,
    include_default_trusted_root_certificates=True,
    validation_checks=ValidationChecks(
        certificate_expiration=CertificateExpirationCheck.DISABLED,
        certificate_revocation=CertificateRevocationCheck.DISABLED,
    ),
)


def coalesce(base: ModelT, overlay: BaseModel, fields: Sequence[str]) -> ModelT:
    """Return ``base`` with every named field that is set on ``overlay`` copied over.

    Args:
        base: Accumulated value.
        overlay: Partial value from a higher precedence layer.
        fields: Field names shared by both models.

    Returns:
        A new instance when anything changed, otherwise ``base`` itself.
    """

    updates = {}
    for name in fields:
        value = getattr(overlay, name)
        if value is not None:
            updates[name] = value
    if not updates:
        return base
    return base.model_copy(update=updates)


def merge_validation_checks(
    base: Optional[ValidationChecks], overlay: ValidationChecks
) -> ValidationChecks:
    if base is None:
        return overlay
    return coalesce(base, overlay, VALIDATION_CHECK_FIELDS)


def merge_signing(base: Signing, overlay: Signing) -> Signing:
    """Apply a full signing overlay from the default or registry-override layer."""

    merged = coalesce(base, overlay, SIGNING_SCALAR_FIELDS)
    if overlay.validation_checks is not None:
        merged = merged.model_copy(
            update={
                "validation_checks": merge_validation_checks(
                    merged.validation_checks, overlay.validation_checks
                )
            }
        )
    return merged


def merge_scoped_signing(base: Signing, overlay: ScopedSigning) -> Signing:
    """Apply a scope or package overlay; only trust anchor fields can change."""

    return coalesce(base, overlay, TRUST_ANCHOR_FIELDS)


def resolve_signing(
    configuration: RegistryConfiguration,
    package: Union[PackageIdentity, str],
    registry: Registry,
) -> Signing:
    """Compute the effective signing policy for ``package`` served by ``registry``.

    Raises:
        UnsupportedIdentityError: If ``package`` is not a ``<scope>.<name>``
            registry identity.
    """

    if isinstance(package, str):
        package = PackageIdentity.plain(package)
    registry_identity = package.registry
    if registry_identity is None:
        raise UnsupportedIdentityError(str(package))

    signing = BASELINE_SIGNING
    applied: List[str] = []
    security = configuration.security
    if security is None:
        logger.debug(
            "Resolved signing for %s from baseline only",
            package,
            extra={"stage": "signing"},
        )
        return signing

    if security.default.signing is not None:
        signing = merge_signing(signing, security.default.signing)
        applied.append("default")

    host = registry.host
    registry_override = lookup_host(security.registry_overrides, host)
    if registry_override is not None and registry_override.signing is not None:
        signing = merge_signing(signing, registry_override.signing)
        applied.append(f"registry:{host}")

    scope_override = security.scope_overrides.get(registry_identity.scope)
    if scope_override is not None and scope_override.signing is not None:
        signing = merge_scoped_signing(signing, scope_override.signing)
        applied.append(f"scope:{registry_identity.scope}")

    package_override = security.package_overrides.get(package)
    if package_override is not None and package_override.signing is not None:
        signing = merge_scoped_signing(signing, package_override.signing)
        applied.append(f"package:{package}")

    logger.debug(
        "Resolved signing for %s (layers: %s)",
        package,
        ", ".join(applied) or "baseline",
        extra={"stage": "signing"},
    )
    return signing
