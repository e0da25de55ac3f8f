"""Release configuration.

Every setting has a default that matches a standard Obsidian-style plugin
layout, so most projects need no configuration at all. A project can override
settings with a ``release.toml`` file at its root, e.g.::

    check_command = ["npm", "run", "lint"]
    remote = "upstream"

The file is read with tomlkit, like the rest of our TOML handling.
"""

from __future__ import annotations

from pathlib import Path

import tomlkit
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from tomlkit.exceptions import TOMLKitError

from .errors import ConfigError

CONFIG_FILENAME = "release.toml"


class ReleaseConfig(BaseModel):
    """Settings for a release run.

    Attributes:
        changelog: Changelog path, relative to the project root.
        manifest: Plugin manifest (id, version, minAppVersion).
        package: Package descriptor (version, scripts).
        versions: Map of released versions to minimum app versions.
        check_command: Command that must succeed before committing.
        remote: Remote queried for the default branch.
        commit_prefix: Prefix of the release commit subject.
        placeholder: Release notes used when [Unreleased] is empty.
        current_branch_env: Env var that overrides the current branch lookup.
        default_branch_env: Env var that overrides the default branch lookup.
    """

    model_config = ConfigDict(extra="forbid")

    changelog: str = "CHANGELOG.md"
    manifest: str = "manifest.json"
    package: str = "package.json"
    versions: str = "versions.json"
    check_command: list[str] = Field(default_factory=lambda: ["npm", "run", "check"])
    remote: str = "origin"
    commit_prefix: str = "chore: release"
    placeholder: str = "- _No changes recorded._"
    current_branch_env: str = "TEST_CURRENT_BRANCH"
    default_branch_env: str = "TEST_DEFAULT_BRANCH"

    def tracked_files(self) -> list[str]:
        """Files a release rewrites, in the order they are updated."""
        return [self.manifest, self.package, self.versions, self.changelog]


def load_config(root: Path) -> ReleaseConfig:
    """Load release.toml from the project root, falling back to defaults.

    Raises:
        ConfigError: If the file cannot be parsed or holds unknown keys or
                     values of the wrong type.
    """
    path = root / CONFIG_FILENAME
    if not path.is_file():
        return ReleaseConfig()

    try:
        doc = tomlkit.parse(path.read_text(encoding="utf-8"))
    except TOMLKitError as exc:
        raise ConfigError(f"Failed to parse {CONFIG_FILENAME}: {exc}") from exc

    try:
        return ReleaseConfig.model_validate(doc.unwrap())
    except ValidationError as exc:
        raise ConfigError(f"Invalid settings in {CONFIG_FILENAME}:\n{exc}") from exc
