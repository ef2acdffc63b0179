#!/usr/bin/env python3
"""Database + extension healthcheck (no secrets).

- Reads DATABASE_URL (or POSTGRES_* variables) from the environment and never
  prints it.
- Verifies connectivity, that every bundled extension is installed with a
  version, and that the preload libraries are active.

Usage:
  python scripts/healthcheck.py

Exit codes:
  0 = OK
  2 = missing configuration
  3 = database connectivity error
  4 = extension or preload problem detected
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path

_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

from core.errors import ConfigError  # noqa: E402
from core.extensions.catalog import EXTENSIONS, preload_libraries  # noqa: E402
from core.storage.postgres.config import PostgresConfig  # noqa: E402
from core.storage.postgres.stores import ExtensionStore  # noqa: E402
from core.types import InstalledExtension  # noqa: E402


@dataclass(frozen=True)
class CheckResult:
    ok: bool
    message: str


def _check_connectivity(store: ExtensionStore) -> tuple[CheckResult, list[InstalledExtension]]:
    try:
        installed = store.list_installed()
    except Exception as exc:
        return CheckResult(False, f"db connectivity: failed ({type(exc).__name__})"), []
    return CheckResult(True, "db connectivity: ok"), installed


def _check_extensions(installed: list[InstalledExtension]) -> CheckResult:
    versions_by_name = {ext.name: ext.version for ext in installed}
    missing = [spec.name for spec in EXTENSIONS if versions_by_name.get(spec.name) is None]
    if missing:
        return CheckResult(False, f"extension check: missing: {', '.join(missing)}")

    versions = ", ".join(f"{spec.name}={versions_by_name[spec.name]}" for spec in EXTENSIONS)
    return CheckResult(True, f"extension check: ok ({versions})")


def _check_preload(store: ExtensionStore) -> CheckResult:
    try:
        active = store.preload_libraries()
    except Exception as exc:
        return CheckResult(False, f"preload check: failed ({type(exc).__name__})")

    missing = [name for name in preload_libraries() if name not in active]
    if missing:
        return CheckResult(False, f"preload check: not loaded: {', '.join(missing)}")

    return CheckResult(True, f"preload check: ok ({','.join(active)})")


def main() -> int:
    try:
        config = PostgresConfig.from_env()
    except ConfigError as exc:
        print(str(exc))
        return 2

    store = ExtensionStore(config=config)
    checks: list[CheckResult] = []

    try:
        connectivity, installed = _check_connectivity(store)
        checks.append(connectivity)
        if not checks[-1].ok:
            for c in checks:
                print(c.message)
            return 3

        checks.append(_check_extensions(installed))
        checks.append(_check_preload(store))
    finally:
        store.dispose()

    for c in checks:
        print(c.message)

    return 0 if all(c.ok for c in checks) else 4


if __name__ == "__main__":
    sys.exit(main())
