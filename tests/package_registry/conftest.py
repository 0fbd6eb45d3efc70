"""Shared fixtures for the package_registry test suite."""

from __future__ import annotations

import copy
from typing import Any, Dict, Iterator

import pytest

from RegistryKit.PackageRegistry.settings import invalidate_settings_cache

SAMPLE_DOCUMENT: Dict[str, Any] = {
    "version": 1,
    "registries": {
        "[default]": {"url": "https://packages.example.com", "supportsAvailability": True},
        "acme": {"url": "https://acme.example.com/registry", "supportsAvailability": False},
    },
    "authentication": {
        "packages.example.com": {"type": "token"},
        "acme.example.com": {"type": "basic", "loginAPIPath": "/v1/login"},
    },
    "security": {
        "default": {
            "signing": {
                "onUnsigned": "warn",
                "validationChecks": {"certificateExpiration": "enabled"},
            }
        },
        "registryOverrides": {
            "acme.example.com": {
                "signing": {
                    "onUnsigned": "error",
                    "onUntrustedCertificate": "error",
                    "validationChecks": {"certificateRevocation": "strict"},
                }
            }
        },
        "scopeOverrides": {
            "acme": {"signing": {"trustedRootCertificatesPath": "/etc/acme/roots"}}
        },
        "packageOverrides": {
            "acme.widget": {"signing": {"includeDefaultTrustedRootCertificates": False}}
        },
    },
}


@pytest.fixture
def sample_document() -> Dict[str, Any]:
    """Return a fresh copy of a fully populated, canonical version 1 document."""

    return copy.deepcopy(SAMPLE_DOCUMENT)


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Isolate tests from REGISTRYKIT_* variables in the developer environment."""

    import os

    for key in list(os.environ):
        if key.upper().startswith("REGISTRYKIT_"):
            monkeypatch.delenv(key, raising=False)
    invalidate_settings_cache()
    yield
    invalidate_settings_cache()
