"""Shared test fixtures."""

from __future__ import annotations

import json
import subprocess
from collections.abc import Callable
from pathlib import Path

import pytest

DEFAULT_CHANGELOG = """\
# Changelog

## [Unreleased]

- New feature

## [1.2.0] - 2024-01-01

- Old
"""


class FakeRunner:
    """CommandRunner that records commands instead of running them.

    Commands whose arguments start with any tuple in ``fail`` report failure.
    ``capture`` returns the entry in ``outputs`` for the exact arguments and
    raises CalledProcessError when there is none.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, ...]] = []
        self.fail: set[tuple[str, ...]] = set()
        self.outputs: dict[tuple[str, ...], str] = {}

    def _fails(self, args: tuple[str, ...]) -> bool:
        return any(args[: len(prefix)] == prefix for prefix in self.fail)

    def run(self, *args: str) -> bool:
        self.calls.append(args)
        return not self._fails(args)

    def capture(self, *args: str) -> str:
        self.calls.append(args)
        if self._fails(args) or args not in self.outputs:
            raise subprocess.CalledProcessError(128, list(args))
        return self.outputs[args]


def write_project(
    root: Path,
    version: str = "1.2.3",
    changelog: str | None = DEFAULT_CHANGELOG,
    versions: dict[str, str] | None = None,
) -> Path:
    """Write a minimal plugin project into root."""
    (root / "manifest.json").write_text(
        json.dumps(
            {
                "id": "sample-plugin",
                "name": "Sample Plugin",
                "version": version,
                "minAppVersion": "1.4.0",
            },
            indent="\t",
        )
        + "\n"
    )
    (root / "package.json").write_text(
        json.dumps(
            {
                "name": "sample-plugin",
                "version": version,
                "scripts": {"build": "node esbuild.config.mjs", "check": "tsc"},
            },
            indent="\t",
        )
        + "\n"
    )
    (root / "versions.json").write_text(
        json.dumps(versions if versions is not None else {version: "1.4.0"}, indent="\t")
        + "\n"
    )
    if changelog is not None:
        (root / "CHANGELOG.md").write_text(changelog)
    return root


@pytest.fixture
def make_project(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing a plugin project into a fresh temporary directory."""

    def _make(**kwargs) -> Path:
        return write_project(tmp_path, **kwargs)

    return _make


@pytest.fixture
def project(make_project: Callable[..., Path]) -> Path:
    """A coherent project at 1.2.3 with one pending change."""
    return make_project()


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


def read_json(path: Path) -> dict:
    return json.loads(path.read_text())
