"""Reading and writing the plugin metadata files.

A plugin keeps its version in three JSON documents:

- manifest.json: ``id``, ``version`` and ``minAppVersion``
- package.json: ``version`` and optionally ``scripts``
- versions.json: released version → minimum app version

They must agree before a release starts, and a release rewrites all three.
Files are written tab-indented with a trailing newline, keeping key order.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from .config import ReleaseConfig
from .errors import ProjectMetadataError, ProjectStateInconsistentError
from .models import ProjectInfo, ProjectMeta


def load_json(path: Path) -> Any:
    """Load a JSON document.

    Raises:
        ProjectMetadataError: If the file is missing, unreadable, or not valid
                              JSON.
    """
    if not path.is_file():
        raise ProjectMetadataError(f"{path.name} not found.")
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ProjectMetadataError(f"Failed to read {path.name}: {exc}") from exc
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ProjectMetadataError(f"Failed to parse {path.name}: {exc}") from exc


def save_json(path: Path, data: Any) -> None:
    """Write a JSON document the way npm tooling formats it."""
    text = json.dumps(data, indent="\t", ensure_ascii=False)
    path.write_text(text + "\n", encoding="utf-8")


def _require(doc: Any, key: str, filename: str) -> str:
    value = doc.get(key) if isinstance(doc, dict) else None
    if not value or not isinstance(value, str):
        raise ProjectMetadataError(f"No {key} found in {filename}")
    return value


def get_project_info(root: Path, config: ReleaseConfig) -> ProjectInfo:
    """Read the version facts from the three metadata files.

    Raises:
        ProjectMetadataError: If a file is missing, malformed, or lacks a
                              required field.
    """
    manifest = load_json(root / config.manifest)
    package = load_json(root / config.package)
    versions = load_json(root / config.versions)

    if not isinstance(versions, dict):
        raise ProjectMetadataError(f"{config.versions} must contain a JSON object.")

    return ProjectInfo(
        id=_require(manifest, "id", config.manifest),
        version=_require(manifest, "version", config.manifest),
        min_app_version=_require(manifest, "minAppVersion", config.manifest),
        pkg_version=_require(package, "version", config.package),
        versions={str(k): str(v) for k, v in versions.items()},
    )


def check_version_coherency(info: ProjectInfo) -> None:
    """Ensure manifest, package and versions map agree on the version.

    Raises:
        ProjectStateInconsistentError: On any disagreement.
    """
    if info.version != info.pkg_version:
        raise ProjectStateInconsistentError(
            f"Version mismatch: manifest.json has {info.version}, "
            f"but package.json has {info.pkg_version}."
        )
    if info.version not in info.versions:
        raise ProjectStateInconsistentError(
            f"Version {info.version} not found in versions.json."
        )


def set_version(path: Path, version: str) -> None:
    """Replace the top-level "version" field of a JSON document."""
    doc = load_json(path)
    doc["version"] = version
    save_json(path, doc)


def add_version_mapping(path: Path, version: str, min_app_version: str) -> bool:
    """Map a version to its minimum app version, unless already mapped.

    Returns:
        True if the mapping was added, False if the version was present.
    """
    doc = load_json(path)
    if version in doc:
        return False
    doc[version] = min_app_version
    save_json(path, doc)
    return True


def get_project_meta(root: Path, config: ReleaseConfig) -> ProjectMeta:
    """Summarize the project for CI: id, version and build task presence.

    Raises:
        ProjectMetadataError: If manifest or package descriptor is unusable.
    """
    manifest = load_json(root / config.manifest)
    package = load_json(root / config.package)

    scripts = package.get("scripts") if isinstance(package, dict) else None
    return ProjectMeta(
        tool_name=_require(manifest, "id", config.manifest),
        tool_version=_require(manifest, "version", config.manifest),
        has_build_task=isinstance(scripts, dict) and "build" in scripts,
    )


def read_package_version(root: Path, config: ReleaseConfig) -> str | None:
    """Return the package.json version, or None if it cannot be read."""
    try:
        package = load_json(root / config.package)
    except ProjectMetadataError:
        return None
    version = package.get("version") if isinstance(package, dict) else None
    return version if isinstance(version, str) else None
