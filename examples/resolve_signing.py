"""Resolve the effective signing policy for a package from a configuration file.

Usage:
    python examples/resolve_signing.py examples/registries.json acme.widget
"""

from __future__ import annotations

import sys
from pathlib import Path

from RegistryKit.PackageRegistry import load_configuration, setup_logging


def main(argv: list[str]) -> int:
    if len(argv) != 2:
        print(__doc__, file=sys.stderr)
        return 2

    setup_logging()
    config_path, package = Path(argv[0]), argv[1]
    config = load_configuration(config_path)

    registry = config.registry_for_package(package)
    if registry is None:
        print(f"No registry configured for {package}", file=sys.stderr)
        return 1

    signing = config.signing_for(package, registry)
    print(f"registry: {registry.url}")
    print(signing.model_dump_json(by_alias=True, indent=2))
    return 0


if __name__ == "__main__":  # pragma: no cover - script entry point
    raise SystemExit(main(sys.argv[1:]))
