# === NAVMAP v1 ===
# {
#   "module": "scripts.generate_config_schema",
#   "purpose": "Utility script for generate config schema workflows",
#   "sections": [
#     {
#       "id": "main",
#       "name": "main",
#       "anchor": "function-main",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Generate JSON Schema for registry configuration documents."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

# --- Globals ---

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = PROJECT_ROOT / "src"
DEFAULT_OUTPUT = PROJECT_ROOT / "docs" / "schemas" / "registry-configuration.schema.json"

if str(SRC_ROOT) not in sys.path:  # pragma: no cover - runtime path fix
    sys.path.insert(0, str(SRC_ROOT))

from RegistryKit.PackageRegistry.schema import generate_document_schema  # noqa: E402

# --- Module Entry Points ---


def main(argv: list[str] | None = None) -> int:
    """Write the document schema, or compare it with the committed copy."""

    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--output", type=Path, default=DEFAULT_OUTPUT)
    parser.add_argument(
        "--check",
        action="store_true",
        help="Exit non-zero when the file on disk differs from the generated schema",
    )
    args = parser.parse_args(argv)

    rendered = json.dumps(generate_document_schema(), indent=2) + "\n"

    if args.check:
        current = args.output.read_text(encoding="utf-8") if args.output.exists() else ""
        if current != rendered:
            print(f"Schema drift detected: {args.output}", file=sys.stderr)
            return 1
        print(f"Schema up to date: {args.output}")
        return 0

    args.output.parent.mkdir(parents=True, exist_ok=True)
    args.output.write_text(rendered, encoding="utf-8")
    print(f"Schema written to {args.output}")
    return 0


if __name__ == "__main__":  # pragma: no cover - script entry point
    raise SystemExit(main())
