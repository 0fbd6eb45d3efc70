# === NAVMAP v1 ===
# {
#   "module": "RegistryKit.PackageRegistry.documents",
#   "purpose": "Read and write registry configuration documents as JSON or YAML text",
#   "sections": [
#     {"id": "text", "name": "Text Codec", "anchor": "TXT", "kind": "api"},
#     {"id": "files", "name": "File I/O", "anchor": "FIO", "kind": "api"},
#     {"id": "merge", "name": "Layered Documents", "anchor": "MRG", "kind": "api"}
#   ]
# }
# === /NAVMAP ===

"""Text and file front-end for the configuration codec.

Callers decide where documents live; this module only turns a given path or
string into a :class:`RegistryConfiguration` and back.  Both JSON and YAML
documents share the layout described in :mod:`.codec`.  Duplicate mapping keys
are rejected in either format rather than silently keeping the last value.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import Hashable
from pathlib import Path
from typing import Any, Iterable, List, Optional, Tuple

try:  # pragma: no cover - dependency check
    import yaml  # type: ignore
except ModuleNotFoundError as exc:  # pragma: no cover - explicit guidance for users
    raise ImportError(
        "PyYAML is required for configuration parsing. Install it with: pip install pyyaml"
    ) from exc

from .codec import decode_configuration, encode_configuration
from .errors import ConfigurationError, ErrorCode
from .models import RegistryConfiguration
from .settings import RegistryKitSettings, get_settings

__all__ = [
    "detect_format",
    "loads",
    "dumps",
    "load_configuration",
    "dump_configuration",
    "load_merged",
]

logger = logging.getLogger("RegistryKit.PackageRegistry")

_SUFFIX_FORMATS = {".json": "json", ".yaml": "yaml", ".yml": "yaml"}


class _UniqueKeyLoader(yaml.SafeLoader):
    """Safe YAML loader that refuses duplicate mapping keys.

    Scalar mapping keys are kept as the text written, so scopes such as
    ``no``, ``on`` or ``123`` do not turn into booleans or integers.
    """

    def construct_mapping(self, node: yaml.MappingNode, deep: bool = False) -> Any:
        if not isinstance(node, yaml.MappingNode):
            raise yaml.constructor.ConstructorError(
                None, None, f"expected a mapping node, but found {node.id}", node.start_mark
            )
        self.flatten_mapping(node)
        mapping: dict = {}
        for key_node, value_node in node.value:
            if isinstance(key_node, yaml.ScalarNode):
                key = self.construct_scalar(key_node)
            else:
                key = self.construct_object(key_node, deep=deep)
            if not isinstance(key, Hashable):
                raise yaml.constructor.ConstructorError(
                    "while constructing a mapping",
                    node.start_mark,
                    "found unhashable key",
                    key_node.start_mark,
                )
            if key in mapping:
                raise yaml.constructor.ConstructorError(
                    "while constructing a mapping",
                    node.start_mark,
                    f"found duplicate key {key!r}",
                    key_node.start_mark,
                )
            mapping[key] = self.construct_object(value_node, deep=deep)
        return mapping


def _reject_duplicate_pairs(pairs: List[Tuple[str, Any]]) -> dict:
    result: dict = {}
    for key, value in pairs:
        if key in result:
            raise ValueError(f"found duplicate key {key!r}")
        result[key] = value
    return result


def detect_format(path: Path, settings: Optional[RegistryKitSettings] = None) -> str:
    """Return ``"json"`` or ``"yaml"`` based on the suffix of ``path``."""

    detected = _SUFFIX_FORMATS.get(Path(path).suffix.lower())
    if detected is not None:
        return detected
    return (settings or get_settings()).document_format


# --- Text Codec ---


def loads(text: str, fmt: str = "json") -> RegistryConfiguration:
    """Parse ``text`` in the given format and decode it.

    Raises:
        ConfigurationError: If the text is not valid JSON/YAML.
        DataCorruptedError: If the parsed document is not a valid configuration.
    """

    if fmt == "json":
        try:
            document = json.loads(text, object_pairs_hook=_reject_duplicate_pairs)
        except ValueError as exc:
            raise ConfigurationError(f"Configuration is not valid JSON: {exc}") from exc
    elif fmt == "yaml":
        try:
            document = yaml.load(text, Loader=_UniqueKeyLoader)  # noqa: S506 - SafeLoader subclass
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Configuration is not valid YAML: {exc}") from exc
    else:
        raise ValueError(f"Unsupported document format: {fmt!r}")
    return decode_configuration(document)


def dumps(
    configuration: RegistryConfiguration,
    fmt: Optional[str] = None,
    *,
    settings: Optional[RegistryKitSettings] = None,
) -> str:
    """Encode ``configuration`` and render it as JSON or YAML text."""

    settings = settings or get_settings()
    fmt = fmt or settings.document_format
    document = encode_configuration(configuration)
    if fmt == "json":
        return (
            json.dumps(document, indent=settings.indent or None, sort_keys=settings.sort_keys)
            + "\n"
        )
    if fmt == "yaml":
        return yaml.safe_dump(
            document,
            sort_keys=settings.sort_keys,
            indent=settings.indent if settings.indent >= 2 else None,
            default_flow_style=False,
            allow_unicode=True,
        )
    raise ValueError(f"Unsupported document format: {fmt!r}")


# --- File I/O ---


def load_configuration(
    path: Path, *, settings: Optional[RegistryKitSettings] = None
) -> RegistryConfiguration:
    """Read and decode the configuration document at ``path``."""

    path = Path(path).expanduser()
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ConfigurationError(
            f"Configuration file not found: {path}", error_code=ErrorCode.E_IO
        ) from exc
    except OSError as exc:
        raise ConfigurationError(
            f"Configuration file '{path}' could not be read: {exc}", error_code=ErrorCode.E_IO
        ) from exc

    configuration = loads(text, detect_format(path, settings))
    logger.info("Loaded registry configuration from %s", path, extra={"stage": "io"})
    return configuration


def dump_configuration(
    configuration: RegistryConfiguration,
    path: Path,
    *,
    settings: Optional[RegistryKitSettings] = None,
) -> Path:
    """Atomically write ``configuration`` to ``path`` and return the path."""

    path = Path(path).expanduser()
    content = dumps(configuration, detect_format(path, settings), settings=settings)
    try:
        _atomic_write_text(path, content)
    except OSError as exc:
        raise ConfigurationError(
            f"Configuration file '{path}' could not be written: {exc}", error_code=ErrorCode.E_IO
        ) from exc
    logger.info("Wrote registry configuration to %s", path, extra={"stage": "io"})
    return path


def _atomic_write_text(path: Path, content: str) -> None:
    """Atomically replace ``path`` with ``content`` to avoid partial writes."""

    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        "w",
        encoding="utf-8",
        dir=path.parent,
        delete=False,
    ) as handle:
        handle.write(content)
        handle.flush()
        try:
            os.fsync(handle.fileno())
        except (AttributeError, OSError):
            # Some filesystems do not support fsync on text handles.
            pass
        temp_name = handle.name
    Path(temp_name).replace(path)


# --- Layered Documents ---


def load_merged(
    paths: Iterable[Path], *, settings: Optional[RegistryKitSettings] = None
) -> RegistryConfiguration:
    """Load each document in order and merge them; later documents win per key.

    Missing files are skipped so a caller can pass both a global and a local
    location without checking for them first.  Any other failure aborts.
    """

    merged = RegistryConfiguration()
    for path in paths:
        path = Path(path).expanduser()
        if not path.exists():
            logger.debug("Skipping missing configuration %s", path, extra={"stage": "io"})
            continue
        merged.merge(load_configuration(path, settings=settings))
    return merged
