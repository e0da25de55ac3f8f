"""Exceptions raised by the release tooling.

Library code raises these; only the CLI turns them into a message on stderr
and a non-zero exit. Every subclass corresponds to one way a release run can
stop.
"""

from __future__ import annotations


class ReleaseError(Exception):
    """Base class for every condition that aborts a release run."""


class ConfigError(ReleaseError):
    """release.toml could not be read or holds invalid settings."""


class ProjectMetadataError(ReleaseError):
    """A metadata file is missing, unparseable, or lacks a required field."""


class ProjectStateInconsistentError(ReleaseError):
    """The metadata files disagree about the current version."""


class ChangelogNotFoundError(ReleaseError):
    """The changelog file does not exist."""


class ChangelogReadError(ReleaseError):
    """The changelog exists but cannot be read as UTF-8 text."""


class MissingUnreleasedContentError(ReleaseError):
    """There is no [Unreleased] entry, or it has no content to release."""


class ReleaseNotesNotFoundError(ReleaseError):
    """No changelog entry with content exists for the requested version."""


class InvalidVersionError(ReleaseError):
    """The version argument is neither a bump keyword nor valid SemVer."""


class ChangelogVersionConflictError(ReleaseError):
    """The changelog already records a version at or above the target."""

    def __init__(self, target: str, conflicts: list[str]) -> None:
        self.target = target
        self.conflicts = conflicts
        super().__init__(
            "Changelog contains versions higher than or equal to the target "
            f"version {target}: {', '.join(conflicts)}"
        )


class StrictModeAbortedError(ReleaseError):
    """Strict mode turned a changelog warning into a failure."""


class PrereleaseOnDefaultBranchError(ReleaseError):
    """A pre-release was requested from the default branch."""


class NonInteractiveWithoutConsentError(ReleaseError):
    """Confirmation is required but stdin is not a terminal."""


class ChecksFailedError(ReleaseError):
    """The project's checks command exited non-zero."""


class GitCommitFailedError(ReleaseError):
    """Creating the release commit failed."""


class GitTagFailedError(ReleaseError):
    """Creating the release tag failed."""


class GitPushFailedError(ReleaseError):
    """Pushing the branch or tags failed."""
