"""Reading package.json manifests and detecting the package manager in use."""

from __future__ import annotations

import json
import re
from pathlib import Path

from patchfleet.utils.app_logging import logger

TRACKED_DEPENDENCIES = ("react", "next")

_RANGE_PREFIX = re.compile(r"^[\^~=<>v\s]+")

# Checked in order; the first lockfile found wins
_LOCKFILES = (
    ("bun.lockb", "bun"),
    ("bun.lock", "bun"),
    ("pnpm-lock.yaml", "pnpm"),
    ("yarn.lock", "yarn"),
    ("package-lock.json", "npm"),
)


def read_manifest(manifest_path: Path) -> dict:
    """Load a package.json, returning an empty dict if it is missing or unreadable."""
    try:
        with open(manifest_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as e:
        logger.warning(f"Could not read {manifest_path}: {e}")
        return {}
    return data if isinstance(data, dict) else {}


def clean_version(spec: str) -> str:
    """Strip range operators from a dependency spec: "^18.2.0" -> "18.2.0"."""
    return _RANGE_PREFIX.sub("", spec.strip())


def dependency_versions(manifest_path: Path) -> dict[str, str | None]:
    """Return the declared versions of the tracked dependencies.

    ``dependencies`` takes precedence over ``devDependencies``. Dependencies
    the package does not use map to None.
    """
    manifest = read_manifest(manifest_path)
    versions: dict[str, str | None] = {}
    for name in TRACKED_DEPENDENCIES:
        spec = None
        for section in ("dependencies", "devDependencies"):
            declared = manifest.get(section) or {}
            if isinstance(declared, dict) and isinstance(declared.get(name), str):
                spec = declared[name]
                break
        versions[name] = clean_version(spec) if spec else None
    return versions


def detect_package_manager(package_dir: Path) -> str | None:
    """Detect the package manager from the ``packageManager`` field or a lockfile."""
    declared = read_manifest(package_dir / "package.json").get("packageManager")
    if isinstance(declared, str) and declared:
        return declared.split("@", 1)[0]

    for lockfile, manager in _LOCKFILES:
        if (package_dir / lockfile).exists():
            return manager
    return None
