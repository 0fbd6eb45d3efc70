"""JSON/YAML document I/O tests.

Ensures text parsing, format detection, duplicate key rejection, atomic file
writes, and layered loading of several documents behave as documented.
"""

from __future__ import annotations

import json
import textwrap
from pathlib import Path

import pytest
import yaml

from RegistryKit.PackageRegistry.codec import decode_configuration
from RegistryKit.PackageRegistry.documents import (
    detect_format,
    dump_configuration,
    dumps,
    load_configuration,
    load_merged,
    loads,
)
from RegistryKit.PackageRegistry.errors import (
    ConfigurationError,
    DataCorruptedError,
    ErrorCode,
    UnsupportedVersionError,
)
from RegistryKit.PackageRegistry.identity import Scope
from RegistryKit.PackageRegistry.models import Registry, RegistryConfiguration
from RegistryKit.PackageRegistry.settings import RegistryKitSettings


def test_loads_json(sample_document) -> None:
    config = loads(json.dumps(sample_document))

    assert config == decode_configuration(sample_document)


def test_loads_yaml_with_quoted_default_key() -> None:
    text = textwrap.dedent(
        """
        version: 1
        registries:
          "[default]":
            url: https://packages.example.com
          acme:
            url: https://acme.example.com
            supportsAvailability: true
        security:
          scopeOverrides:
            acme:
              signing:
                trustedRootCertificatesPath: /etc/acme
        """
    )

    config = loads(text, "yaml")

    assert config.default_registry == Registry(url="https://packages.example.com")
    assert config.scoped_registries[Scope("acme")].supports_availability is True


def test_loads_yaml_keeps_scope_keys_as_text() -> None:
    text = textwrap.dedent(
        """
        version: 1
        registries:
          no:
            url: https://no.example.com
          on:
            url: https://on.example.com
          123:
            url: https://digits.example.com
        security:
          scopeOverrides:
            yes:
              signing:
                includeDefaultTrustedRootCertificates: no
        """
    )

    config = loads(text, "yaml")

    assert [str(scope) for scope in config.scoped_registries] == ["no", "on", "123"]
    assert config.registry_for_scope("123") == Registry(url="https://digits.example.com")
    assert config.security is not None
    override = config.security.scope_overrides[Scope("yes")]
    assert override.signing is not None
    assert override.signing.include_default_trusted_root_certificates is False


def test_loads_rejects_invalid_json() -> None:
    with pytest.raises(ConfigurationError, match="not valid JSON") as exc_info:
        loads("{version: 1")

    assert exc_info.value.error_code is ErrorCode.E_PARSE


def test_loads_rejects_invalid_yaml() -> None:
    with pytest.raises(ConfigurationError, match="not valid YAML"):
        loads("version: [1", "yaml")


def test_loads_rejects_duplicate_json_keys() -> None:
    text = '{"version": 1, "registries": {"acme": {"url": "a"}, "acme": {"url": "b"}}}'

    with pytest.raises(ConfigurationError, match="duplicate key"):
        loads(text)


def test_loads_rejects_duplicate_yaml_keys() -> None:
    text = "version: 1\nregistries:\n  acme: {url: a}\n  acme: {url: b}\n"

    with pytest.raises(ConfigurationError, match="duplicate key"):
        loads(text, "yaml")


def test_loads_propagates_version_errors() -> None:
    with pytest.raises(UnsupportedVersionError, match="invalid version: 2"):
        loads('{"version": 2, "registries": {}}')


def test_loads_unknown_format() -> None:
    with pytest.raises(ValueError, match="Unsupported document format"):
        loads("{}", "toml")


def test_dumps_json_round_trip(sample_document) -> None:
    config = decode_configuration(sample_document)

    text = dumps(config, "json")

    assert json.loads(text) == sample_document
    assert text.endswith("\n")
    assert loads(text) == config


def test_dumps_yaml_round_trip(sample_document) -> None:
    config = decode_configuration(sample_document)

    text = dumps(config, "yaml")

    assert yaml.safe_load(text) == sample_document
    assert loads(text, "yaml") == config


def test_dumps_respects_settings(sample_document) -> None:
    config = decode_configuration(sample_document)
    settings = RegistryKitSettings(document_format="json", indent=0, sort_keys=True)

    text = dumps(config, settings=settings)

    assert "\n" not in text.rstrip("\n")
    assert text.index('"authentication"') < text.index('"registries"')


def test_dumps_uses_configured_default_format(monkeypatch, sample_document) -> None:
    monkeypatch.setenv("REGISTRYKIT_DOCUMENT_FORMAT", "yaml")
    from RegistryKit.PackageRegistry.settings import invalidate_settings_cache

    invalidate_settings_cache()
    text = dumps(decode_configuration(sample_document))

    assert text.startswith("version: 1\n")


@pytest.mark.parametrize(
    "name, expected",
    [("registries.json", "json"), ("registries.YAML", "yaml"), ("registries.yml", "yaml")],
)
def test_detect_format_from_suffix(name: str, expected: str) -> None:
    assert detect_format(Path(name)) == expected


def test_detect_format_falls_back_to_settings() -> None:
    settings = RegistryKitSettings(document_format="yaml")

    assert detect_format(Path("registries.conf"), settings) == "yaml"


def test_dump_and_load_configuration(tmp_path: Path, sample_document) -> None:
    config = decode_configuration(sample_document)
    target = tmp_path / "nested" / "registries.json"

    written = dump_configuration(config, target)

    assert written == target
    assert json.loads(target.read_text(encoding="utf-8")) == sample_document
    assert load_configuration(target) == config
    assert [p.name for p in target.parent.iterdir()] == ["registries.json"]


def test_load_configuration_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="not found") as exc_info:
        load_configuration(tmp_path / "missing.json")

    assert exc_info.value.error_code is ErrorCode.E_IO


def test_load_configuration_reports_corruption(tmp_path: Path) -> None:
    path = tmp_path / "registries.yaml"
    path.write_text("version: 1\nregistries: []\n", encoding="utf-8")

    with pytest.raises(DataCorruptedError, match="registries: expected a mapping"):
        load_configuration(path)


def test_load_merged_later_documents_win(tmp_path: Path) -> None:
    global_path = tmp_path / "global.json"
    local_path = tmp_path / "local.yaml"
    global_path.write_text(
        json.dumps(
            {
                "version": 1,
                "registries": {
                    "[default]": {"url": "https://global.example"},
                    "acme": {"url": "https://acme-global.example"},
                    "tools": {"url": "https://tools.example"},
                },
                "authentication": {"global.example": {"type": "basic"}},
            }
        ),
        encoding="utf-8",
    )
    local_path.write_text(
        textwrap.dedent(
            """
            version: 1
            registries:
              acme:
                url: https://acme-local.example
            security:
              default:
                signing:
                  onUnsigned: error
            """
        ),
        encoding="utf-8",
    )

    merged = load_merged([global_path, tmp_path / "absent.json", local_path])

    assert merged.default_registry == Registry(url="https://global.example")
    assert merged.registry_for_scope("acme") == Registry(url="https://acme-local.example")
    assert merged.registry_for_scope("tools") == Registry(url="https://tools.example")
    assert set(merged.registry_authentication) == {"global.example"}
    assert merged.security is not None
    assert merged.signing_for("acme.widget", Registry(url="https://x.example")).on_unsigned == "error"


def test_load_merged_without_documents_is_empty(tmp_path: Path) -> None:
    assert load_merged([tmp_path / "none.json"]) == RegistryConfiguration()


def test_load_merged_aborts_on_invalid_document(tmp_path: Path) -> None:
    good = tmp_path / "good.json"
    bad = tmp_path / "bad.json"
    good.write_text('{"version": 1, "registries": {}}', encoding="utf-8")
    bad.write_text('{"version": 3, "registries": {}}', encoding="utf-8")

    with pytest.raises(UnsupportedVersionError):
        load_merged([good, bad])


EXAMPLES_DIR = Path(__file__).resolve().parents[2] / "examples"


def test_bundled_example_document_loads() -> None:
    config = load_configuration(EXAMPLES_DIR / "registries.json")

    assert config.explicitly_configured
    registry = config.registry_for_package("acme.widget")
    assert registry is not None
    signing = config.signing_for("acme.widget", registry)
    assert signing.trusted_root_certificates_path == "/etc/acme/roots"
    assert signing.include_default_trusted_root_certificates is False


def test_resolve_signing_example_script(capsys) -> None:
    import importlib.util
    import logging

    spec = importlib.util.spec_from_file_location(
        "resolve_signing", EXAMPLES_DIR / "resolve_signing.py"
    )
    assert spec is not None and spec.loader is not None
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    try:
        assert module.main([str(EXAMPLES_DIR / "registries.json"), "acme.widget"]) == 0
        assert module.main([str(EXAMPLES_DIR / "registries.json"), "widget"]) == 1
    finally:
        logger = logging.getLogger("RegistryKit.PackageRegistry")
        for handler in list(logger.handlers):
            if getattr(handler, "_registrykit_managed", False):
                logger.removeHandler(handler)
                handler.close()

    out = capsys.readouterr().out
    assert "registry: https://acme.example.com/registry" in out
    assert '"onUnsigned": "error"' in out
