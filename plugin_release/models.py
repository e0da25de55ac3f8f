"""Data models for plugin-release.

These Pydantic models represent the structures passed between the project
reader, the changelog parser, the version resolver and the release pipeline.
None of them is persisted; each run rebuilds them from the files on disk.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

UNRELEASED = "unreleased"
UNRELEASED_HEADER = "## [Unreleased]"


class ProjectInfo(BaseModel):
    """Version facts gathered from the three metadata files.

    Attributes:
        id: Plugin id from manifest.json.
        version: Current version from manifest.json.
        min_app_version: Minimum host application version from manifest.json.
        pkg_version: Current version from package.json. Must equal `version`.
        versions: Contents of versions.json, mapping each released version to
                  the minimum application version it supports.
    """

    id: str
    version: str
    min_app_version: str
    pkg_version: str
    versions: dict[str, str] = Field(default_factory=dict)


class ChangelogEntry(BaseModel):
    """One second-level section of the changelog.

    Attributes:
        version: SemVer string, the literal "unreleased" for the pending
                 section, or None when the heading could not be classified.
        header: The heading line, verbatim apart from surrounding whitespace.
        content: Body text below the heading, trimmed.
    """

    version: str | None = None
    header: str
    content: str = ""

    @property
    def is_unreleased(self) -> bool:
        return self.version == UNRELEASED

    @property
    def is_release(self) -> bool:
        """True for entries carrying a real version number."""
        return self.version is not None and self.version != UNRELEASED


class ParsedChangelog(BaseModel):
    """A changelog split into title, preamble and ordered entries.

    Attributes:
        title: The level-one heading line.
        description: Free text between the title and the first entry.
        entries: Entries in document order, the unreleased entry first.
        warnings: Problems found while parsing. Never fatal on their own.
    """

    title: str
    description: str = ""
    entries: list[ChangelogEntry] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def unreleased(self) -> ChangelogEntry | None:
        return next((e for e in self.entries if e.is_unreleased), None)

    @property
    def released_versions(self) -> list[str]:
        """Versions of all released entries, in document order."""
        return [e.version for e in self.entries if e.is_release]

    def find(self, version: str) -> ChangelogEntry | None:
        """Return the first entry whose version matches, ignoring case."""
        wanted = version.strip().lower()
        return next(
            (e for e in self.entries if (e.version or "").lower() == wanted), None
        )


class ReleasePlan(BaseModel):
    """The resolved parameters of a single release run.

    Attributes:
        current_version: Version recorded in the metadata files.
        next_version: Version being released, already normalized.
        is_prerelease: Whether the bump was classified as a pre-release.
        no_push: Stop after tagging instead of pushing.
        strict: Treat changelog warnings as fatal.
    """

    current_version: str
    next_version: str
    is_prerelease: bool = False
    no_push: bool = False
    strict: bool = False


class ProjectMeta(BaseModel):
    """Summary of the project used by CI workflow steps."""

    tool_name: str
    tool_version: str
    has_build_task: bool = False

    def to_output(self) -> str:
        """Render as key=value lines, the format GitHub step outputs expect."""
        return "\n".join(
            [
                f"tool_name={self.tool_name}",
                f"tool_version={self.tool_version}",
                f"has_build_task={'true' if self.has_build_task else 'false'}",
            ]
        )


class ReleaseOutcome(str, Enum):
    """How a release run ended without an error."""

    RELEASED = "released"
    DECLINED = "declined"
    STOPPED_BEFORE_PUSH = "stopped-before-push"
