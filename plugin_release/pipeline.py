"""Release pipeline: verify → parse → resolve → confirm → write → check → tag → push.

This module orchestrates a plugin release:
1. Verify that manifest.json, package.json and versions.json agree
2. Parse CHANGELOG.md, reporting (or, in strict mode, failing on) warnings
3. Make sure there are release notes, injecting a placeholder if allowed
4. Resolve the next version, enforcing the pre-release branch policy and
   the changelog monotonicity check
5. Ask for confirmation
6. Write the new version into the metadata files
7. Promote the [Unreleased] changelog section to a dated release
8. Run the project's checks command
9. Commit and create an annotated tag named after the version
10. Push, or stop and print how to finish or undo the release

Every step either advances or raises a ReleaseError. Nothing is retried and
nothing is rolled back: once step 6 has run, undoing a failed release is a
manual git operation.
"""

from __future__ import annotations

import os
import re
import subprocess
from collections.abc import Callable, Mapping
from pathlib import Path

from .changelog import read_changelog, update_changelog
from .config import ReleaseConfig
from .errors import (
    ChecksFailedError,
    GitCommitFailedError,
    GitPushFailedError,
    GitTagFailedError,
    NonInteractiveWithoutConsentError,
    PrereleaseOnDefaultBranchError,
    StrictModeAbortedError,
)
from .models import (
    UNRELEASED,
    UNRELEASED_HEADER,
    ChangelogEntry,
    ParsedChangelog,
    ProjectInfo,
    ReleaseOutcome,
    ReleasePlan,
)
from .project import (
    add_version_mapping,
    check_version_coherency,
    get_project_info,
    set_version,
)
from .shell import CommandRunner, Reporter
from .versions import is_prerelease_bump, resolve_next_version

_SYMREF_HEAD = re.compile(r"ref: refs/heads/(\S+)\s+HEAD")


def verify_project(
    root: Path, config: ReleaseConfig, reporter: Reporter
) -> ProjectInfo:
    """Load the metadata files and check they agree on the version."""
    reporter.step("Verifying project state")
    info = get_project_info(root, config)
    check_version_coherency(info)
    reporter.success(f"Project state is coherent ({info.id} {info.version}).")
    return info


def load_changelog(path: Path, strict: bool, reporter: Reporter) -> ParsedChangelog:
    """Parse the changelog and report its warnings.

    Raises:
        StrictModeAbortedError: In strict mode, if there was any warning.
    """
    parsed = read_changelog(path)
    for warning in parsed.warnings:
        reporter.warn(warning)
    if parsed.warnings and strict:
        raise StrictModeAbortedError(
            "Strict mode: aborting due to changelog warnings:\n"
            + "\n".join(f"  - {w}" for w in parsed.warnings)
        )
    return parsed


def ensure_releasable(
    parsed: ParsedChangelog,
    strict: bool,
    placeholder: str,
    reporter: Reporter,
    source: str = "CHANGELOG.md",
) -> ChangelogEntry:
    """Return the unreleased entry, making sure it has content.

    The parser already guarantees an unreleased entry; it is checked again
    here because the parsed model is mutable.

    Raises:
        StrictModeAbortedError: In strict mode, if the entry is missing or
                                empty.
    """
    unreleased = parsed.unreleased
    if unreleased is None:
        message = f"{source}: Unable to locate or create [Unreleased] section."
        if strict:
            raise StrictModeAbortedError(message)
        reporter.warn(message)
        unreleased = ChangelogEntry(version=UNRELEASED, header=UNRELEASED_HEADER)
        parsed.entries.insert(0, unreleased)

    if not unreleased.content.strip():
        message = (
            f"{source}: [Unreleased] section is empty; "
            "using placeholder entry for release notes."
        )
        if strict:
            raise StrictModeAbortedError(message)
        reporter.warn(message)
        unreleased.content = placeholder

    return unreleased


def get_current_branch(
    runner: CommandRunner, config: ReleaseConfig, environ: Mapping[str, str]
) -> str | None:
    """Return the checked-out branch, or None if git cannot tell."""
    override = environ.get(config.current_branch_env)
    if override:
        return override
    try:
        return runner.capture("git", "rev-parse", "--abbrev-ref", "HEAD") or None
    except (subprocess.CalledProcessError, OSError):
        return None


def get_default_branch(
    runner: CommandRunner, config: ReleaseConfig, environ: Mapping[str, str]
) -> str | None:
    """Return the remote's default branch, or None if it cannot be resolved."""
    override = environ.get(config.default_branch_env)
    if override:
        return override
    try:
        output = runner.capture("git", "ls-remote", "--symref", config.remote, "HEAD")
    except (subprocess.CalledProcessError, OSError):
        return None
    match = _SYMREF_HEAD.search(output)
    return match.group(1) if match else None


def check_branch_policy(
    runner: CommandRunner, config: ReleaseConfig, environ: Mapping[str, str]
) -> None:
    """Refuse pre-releases from the default branch.

    Best effort: when either branch cannot be determined the check passes.

    Raises:
        PrereleaseOnDefaultBranchError: If both are known and equal.
    """
    default_branch = get_default_branch(runner, config, environ)
    current_branch = get_current_branch(runner, config, environ)
    if default_branch and current_branch and default_branch == current_branch:
        raise PrereleaseOnDefaultBranchError(
            "Pre-releases must be created from a non-default branch "
            f"(currently on {current_branch})."
        )


def plan_release(
    info: ProjectInfo,
    parsed: ParsedChangelog,
    target: str,
    *,
    preid: str | None,
    no_push: bool,
    strict: bool,
    runner: CommandRunner,
    config: ReleaseConfig,
    environ: Mapping[str, str],
) -> ReleasePlan:
    """Resolve the next version and check it against policy and history."""
    prerelease = is_prerelease_bump(target.strip(), info.version)
    if prerelease:
        check_branch_policy(runner, config, environ)

    next_version = resolve_next_version(
        info.version, target, preid, parsed.released_versions
    )
    return ReleasePlan(
        current_version=info.version,
        next_version=next_version,
        is_prerelease=prerelease,
        no_push=no_push,
        strict=strict,
    )


def confirm_release(
    plan: ReleasePlan,
    *,
    yes: bool,
    interactive: bool,
    confirm: Callable[[str], bool] | None,
    reporter: Reporter,
) -> bool:
    """Show the planned bump and ask whether to go ahead.

    Raises:
        NonInteractiveWithoutConsentError: If a prompt is needed but there is
            no terminal to ask on.
    """
    reporter.blank()
    reporter.info(f"Version bump: {plan.current_version} -> {plan.next_version}")
    reporter.blank()

    if yes:
        return True
    if not interactive or confirm is None:
        raise NonInteractiveWithoutConsentError(
            "Running in non-interactive mode without --yes flag. "
            "Use --yes to auto-confirm."
        )
    return confirm("Proceed with version update?")


def update_metadata(
    root: Path,
    config: ReleaseConfig,
    info: ProjectInfo,
    next_version: str,
    reporter: Reporter,
) -> None:
    """Write the new version into manifest, package and versions files."""
    reporter.step("Updating metadata files")

    for filename in (config.manifest, config.package):
        set_version(root / filename, next_version)
        reporter.success(f"Updated {filename} to {next_version}")

    if add_version_mapping(root / config.versions, next_version, info.min_app_version):
        reporter.success(f"Added {next_version} to {config.versions}")
    else:
        reporter.warn(f"Version {next_version} already exists in {config.versions}")


def run_checks(
    runner: CommandRunner, config: ReleaseConfig, reporter: Reporter
) -> None:
    """Run the project's checks command.

    Raises:
        ChecksFailedError: If the command exits non-zero.
    """
    reporter.step("Running checks")
    if not runner.run(*config.check_command):
        raise ChecksFailedError(
            f"Checks failed ({' '.join(config.check_command)}). "
            "Please fix issues before releasing."
        )
    reporter.success("All checks passed!")


def commit_and_tag(
    runner: CommandRunner,
    config: ReleaseConfig,
    version: str,
    notes: str,
    reporter: Reporter,
) -> None:
    """Commit the release files and create an annotated tag.

    The tag is the bare version (no "v" prefix), which is what Obsidian's
    plugin release tooling expects.

    Raises:
        GitCommitFailedError: If staging or committing fails.
        GitTagFailedError: If the tag cannot be created.
    """
    reporter.step("Creating release commit and tag")

    message = f"{config.commit_prefix} {version}\n\n{notes}"
    if not (
        runner.run("git", "add", "--", *config.tracked_files())
        and runner.run("git", "commit", "-m", message)
    ):
        raise GitCommitFailedError("Git commit failed. Please check git status.")
    reporter.success("Changes committed")

    if not runner.run("git", "tag", "-a", version, "-m", notes):
        raise GitTagFailedError(f"Git tag creation failed for {version}.")
    reporter.success(f"Tag {version} created")


def print_manual_steps(version: str, reporter: Reporter) -> None:
    """Tell the user how to undo or finish a release stopped before push."""
    reporter.blank()
    reporter.warn("no-push mode - stopping before push")
    reporter.essential("To revert:")
    reporter.essential(f"  git reset --hard HEAD~1 && git tag -d {version}")
    reporter.essential("To complete release:")
    reporter.essential("  git push && git push --tags")


def push_release(runner: CommandRunner, reporter: Reporter) -> None:
    """Push the release commit, then the tags.

    Raises:
        GitPushFailedError: If either push fails.
    """
    reporter.step("Pushing to remote")
    if not runner.run("git", "push"):
        raise GitPushFailedError("Git push failed.")
    if not runner.run("git", "push", "--tags"):
        raise GitPushFailedError("Git push tags failed.")
    reporter.success("Pushed to remote")


def run_release(
    target: str,
    *,
    root: Path,
    config: ReleaseConfig,
    runner: CommandRunner,
    reporter: Reporter,
    preid: str | None = None,
    no_push: bool = False,
    strict: bool = False,
    yes: bool = False,
    interactive: bool = False,
    confirm: Callable[[str], bool] | None = None,
    environ: Mapping[str, str] | None = None,
) -> ReleaseOutcome:
    """Execute the full release pipeline.

    Args:
        target: Explicit version or bump keyword.
        root: Project root holding the metadata files and changelog.
        config: Release settings.
        runner: Runs git and the checks command.
        reporter: Console output.
        preid: Pre-release identifier for pre* keywords.
        no_push: Stop after tagging.
        strict: Treat changelog warnings as fatal.
        yes: Skip the confirmation prompt.
        interactive: Whether a prompt can be shown.
        confirm: Asks a yes/no question, used when not auto-confirming.
        environ: Environment for branch overrides. Defaults to os.environ.

    Returns:
        How the run ended. Failures raise instead.
    """
    environ = os.environ if environ is None else environ
    if no_push:
        reporter.warn(
            "Running in no-push mode. No changes will be pushed to the remote."
        )
    else:
        reporter.info("Running in push mode. Changes will be pushed to the remote.")

    # Phase 1: Validation (no side effects)
    info = verify_project(root, config, reporter)
    changelog_path = root / config.changelog
    parsed = load_changelog(changelog_path, strict, reporter)
    ensure_releasable(parsed, strict, config.placeholder, reporter, changelog_path.name)
    plan = plan_release(
        info,
        parsed,
        target,
        preid=preid,
        no_push=no_push,
        strict=strict,
        runner=runner,
        config=config,
        environ=environ,
    )

    if not confirm_release(
        plan, yes=yes, interactive=interactive, confirm=confirm, reporter=reporter
    ):
        reporter.info("Cancelled.")
        return ReleaseOutcome.DECLINED

    # Phase 2: Local changes
    update_metadata(root, config, info, plan.next_version, reporter)
    reporter.step(f"Updating {changelog_path.name}")
    notes = update_changelog(changelog_path, parsed, plan.next_version)
    reporter.success(f"Updated {changelog_path.name}")
    run_checks(runner, config, reporter)
    commit_and_tag(runner, config, plan.next_version, notes, reporter)

    # Phase 3: Publish
    if plan.no_push:
        print_manual_steps(plan.next_version, reporter)
        return ReleaseOutcome.STOPPED_BEFORE_PUSH

    push_release(runner, reporter)
    reporter.blank()
    reporter.success(f"Release {plan.next_version} complete!")
    return ReleaseOutcome.RELEASED
