"""Registry configuration model regression tests.

Covers registry lookup by scope and package, authentication lookup by host,
``explicitly_configured`` and the in-place ``merge`` used when combining a
global document with a local one.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from RegistryKit.PackageRegistry.identity import PackageIdentity, Scope
from RegistryKit.PackageRegistry.models import (
    Authentication,
    AuthenticationType,
    Global,
    Registry,
    RegistryConfiguration,
    ScopedSigning,
    ScopePackageOverride,
    Security,
    Signing,
)

DEFAULT = Registry(url="https://packages.example.com")
ACME = Registry(url="https://acme.example.com/registry", supports_availability=True)


def _configuration(**kwargs) -> RegistryConfiguration:
    return RegistryConfiguration(**kwargs)


# --- Registry & Authentication ---


def test_registry_defaults_and_host() -> None:
    registry = Registry(url="https://Packages.Example.com:8443/api")

    assert registry.supports_availability is False
    assert registry.host == "packages.example.com"


def test_registry_accepts_wire_alias() -> None:
    registry = Registry.model_validate({"url": "https://r.example", "supportsAvailability": True})

    assert registry.supports_availability is True


def test_registry_rejects_non_boolean_availability() -> None:
    with pytest.raises(ValidationError):
        Registry.model_validate({"url": "https://r.example", "supportsAvailability": "yes"})


def test_registry_rejects_empty_url() -> None:
    with pytest.raises(ValidationError):
        Registry(url="  ")


def test_registry_is_immutable() -> None:
    with pytest.raises(ValidationError):
        DEFAULT.url = "https://other.example"  # type: ignore[misc]


def test_authentication_type_uses_wire_values() -> None:
    auth = Authentication.model_validate({"type": "basic", "loginAPIPath": "/login"})

    assert auth.type is AuthenticationType.BASIC
    assert auth.login_api_path == "/login"
    with pytest.raises(ValidationError):
        Authentication.model_validate({"type": "oauth"})


# --- Lookups ---


def test_registry_for_scope_prefers_scoped_registry() -> None:
    config = _configuration(default_registry=DEFAULT, scoped_registries={Scope("acme"): ACME})

    assert config.registry_for_scope(Scope("ACME")) == ACME
    assert config.registry_for_scope("other") == DEFAULT


def test_registry_for_scope_without_default_returns_none() -> None:
    config = _configuration(scoped_registries={Scope("acme"): ACME})

    assert config.registry_for_scope("other") is None


def test_registry_for_package_uses_scope() -> None:
    config = _configuration(default_registry=DEFAULT, scoped_registries={Scope("acme"): ACME})

    assert config.registry_for_package(PackageIdentity.plain("acme.widget")) == ACME
    assert config.registry_for_package("other.widget") == DEFAULT


def test_registry_for_non_registry_package_is_none() -> None:
    config = _configuration(default_registry=DEFAULT)

    assert config.registry_for_package("https://github.com/acme/widget") is None


def test_authentication_for_uses_url_host() -> None:
    token = Authentication(type=AuthenticationType.TOKEN)
    config = _configuration(registry_authentication={"packages.example.com": token})

    assert config.authentication_for("https://packages.example.com/api") == token
    assert config.authentication_for("https://other.example.com") is None
    assert config.authentication_for("not a url") is None


@pytest.mark.parametrize(
    "key, url",
    [
        ("Packages.Example.com", "https://packages.example.com/api"),
        ("packages.example.com", "https://Packages.EXAMPLE.com/api"),
        ("Packages.Example.com", "https://PACKAGES.example.COM"),
    ],
)
def test_authentication_for_matches_host_case_insensitively(key: str, url: str) -> None:
    token = Authentication(type=AuthenticationType.TOKEN)
    config = _configuration(registry_authentication={key: token})

    assert config.authentication_for(url) == token


def test_explicitly_configured() -> None:
    assert not RegistryConfiguration().explicitly_configured
    assert _configuration(default_registry=DEFAULT).explicitly_configured
    assert _configuration(scoped_registries={Scope("acme"): ACME}).explicitly_configured
    assert not _configuration(
        registry_authentication={"h": Authentication(type=AuthenticationType.BASIC)}
    ).explicitly_configured


def test_scoped_registry_keys_are_validated() -> None:
    config = _configuration(scoped_registries={"acme": ACME})

    assert Scope("acme") in config.scoped_registries
    with pytest.raises(ValidationError):
        _configuration(scoped_registries={"not a scope": ACME})


def test_security_rejects_non_registry_package_keys() -> None:
    with pytest.raises(ValidationError, match="invalid package identifier"):
        Security(package_overrides={"widget": ScopePackageOverride()})


def test_version_is_a_class_constant() -> None:
    assert RegistryConfiguration.version == 1
    assert "version" not in RegistryConfiguration.model_fields


# --- Merge ---


def test_merge_replaces_default_and_upserts_maps() -> None:
    other_acme = Registry(url="https://mirror.example.com")
    base = _configuration(
        default_registry=DEFAULT,
        scoped_registries={Scope("acme"): ACME, Scope("keep"): ACME},
        registry_authentication={"a.example": Authentication(type=AuthenticationType.BASIC)},
    )
    local = _configuration(
        default_registry=other_acme,
        scoped_registries={Scope("ACME"): other_acme},
        registry_authentication={"a.example": Authentication(type=AuthenticationType.TOKEN)},
    )

    base.merge(local)

    assert base.default_registry == other_acme
    assert base.scoped_registries[Scope("acme")] == other_acme
    assert base.scoped_registries[Scope("keep")] == ACME
    assert base.registry_authentication["a.example"].type is AuthenticationType.TOKEN


def test_merge_keeps_default_when_other_has_none() -> None:
    base = _configuration(default_registry=DEFAULT)

    base.merge(RegistryConfiguration())

    assert base.default_registry == DEFAULT


def test_merge_replaces_authentication_entry_whole() -> None:
    base = _configuration(
        registry_authentication={
            "h": Authentication(type=AuthenticationType.BASIC, login_api_path="/login")
        }
    )
    base.merge(
        _configuration(registry_authentication={"h": Authentication(type=AuthenticationType.TOKEN)})
    )

    assert base.registry_authentication["h"].login_api_path is None


def test_merge_replaces_authentication_entry_regardless_of_host_case() -> None:
    base = _configuration(
        registry_authentication={
            "Acme.Example.com": Authentication(type=AuthenticationType.BASIC)
        }
    )
    base.merge(
        _configuration(
            registry_authentication={"acme.example.com": Authentication(type=AuthenticationType.TOKEN)}
        )
    )

    assert list(base.registry_authentication) == ["acme.example.com"]
    assert base.authentication_for("https://acme.example.com").type is AuthenticationType.TOKEN


def test_merge_adopts_security_section() -> None:
    security = Security(default=Global(signing=Signing(on_unsigned="error")))
    base = RegistryConfiguration()
    other = _configuration(security=security)

    base.merge(other)

    assert base.security == security
    assert base.security is not security


def test_merge_with_itself_is_idempotent(sample_document) -> None:
    from RegistryKit.PackageRegistry.codec import decode_configuration

    config = decode_configuration(sample_document)
    expected = config.model_copy(deep=True)

    config.merge(config)

    assert config == expected


def test_scoped_signing_ignores_action_fields() -> None:
    scoped = ScopedSigning.model_validate(
        {"onUnsigned": "silentAllow", "trustedRootCertificatesPath": "/roots"}
    )

    assert scoped.trusted_root_certificates_path == "/roots"
    assert not hasattr(scoped, "on_unsigned")
