"""Version parsing, bumping and resolution.

Bump keywords follow the same increment rules as npm's ``semver.inc`` so the
tool behaves like the JavaScript release scripts plugin authors are used to.
Resolved pre-release versions are then normalized for BRAT, which only
understands ``1.2.3-beta0`` and not ``1.2.3-beta.0``.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

import semver

from .errors import ChangelogVersionConflictError, InvalidVersionError

BUMP_KEYWORDS = (
    "major",
    "minor",
    "patch",
    "premajor",
    "preminor",
    "prepatch",
    "prerelease",
)

# A normalized identifier such as "beta0": letters (or hyphens) then digits.
_JOINED_PRERELEASE = re.compile(r"^(.*[A-Za-z-])(\d+)$")
_DOT_BEFORE_NUMBER = re.compile(r"(?<=[A-Za-z-])\.(?=\d+$)")


def is_valid(version_str: str) -> bool:
    """Return True if the string is a strict SemVer 2.0 version."""
    return semver.Version.is_valid(version_str)


def parse_version(version_str: str) -> semver.Version:
    """Parse a version string, tolerating a leading "v" and whitespace.

    Raises:
        InvalidVersionError: If the string is not valid SemVer.
    """
    cleaned = version_str.strip()
    if cleaned.startswith("v"):
        cleaned = cleaned[1:]
    try:
        return semver.Version.parse(cleaned)
    except (TypeError, ValueError) as exc:
        raise InvalidVersionError(f"Invalid version: {version_str}") from exc


def _prerelease_ids(version: semver.Version) -> list[str]:
    """Split the pre-release into identifiers, undoing BRAT normalization.

    "beta0" comes back as ["beta", "0"] so it can be incremented.
    """
    if not version.prerelease:
        return []
    ids = version.prerelease.split(".")
    match = _JOINED_PRERELEASE.match(ids[-1])
    if match:
        ids[-1:] = [match.group(1), match.group(2)]
    return ids


def _increment_prerelease(ids: list[str], preid: str | None) -> list[str]:
    ids = list(ids)
    for i in range(len(ids) - 1, -1, -1):
        if ids[i].isdigit():
            ids[i] = str(int(ids[i]) + 1)
            break
    else:
        ids.append("0")

    if preid:
        # Switching identifier (alpha -> beta) restarts the counter.
        if ids[0] != preid or len(ids) < 2 or not ids[1].isdigit():
            ids = [preid, "0"]
    return ids


def _start_prerelease(base: semver.Version, preid: str | None) -> str:
    ids = [preid, "0"] if preid else ["0"]
    return str(base.replace(prerelease=".".join(ids)))


def bump(current: str, keyword: str, preid: str | None = None) -> str:
    """Apply a bump keyword to a version.

    Examples:
        bump("1.2.3", "patch") → "1.2.4"
        bump("1.2.3", "premajor", "beta") → "2.0.0-beta.0"
        bump("1.0.0-rc.1", "major") → "1.0.0"
        bump("1.0.1-beta0", "prerelease") → "1.0.1-beta.1"

    Raises:
        InvalidVersionError: If the keyword is unknown or current is invalid.
    """
    v = parse_version(current)
    pre = _prerelease_ids(v)
    release = semver.Version(v.major, v.minor, v.patch)

    if keyword == "major":
        if pre and v.minor == 0 and v.patch == 0:
            return str(release)
        return str(release.bump_major())
    if keyword == "minor":
        if pre and v.patch == 0:
            return str(release)
        return str(release.bump_minor())
    if keyword == "patch":
        if pre:
            return str(release)
        return str(release.bump_patch())
    if keyword == "premajor":
        return _start_prerelease(release.bump_major(), preid)
    if keyword == "preminor":
        return _start_prerelease(release.bump_minor(), preid)
    if keyword == "prepatch":
        return _start_prerelease(release.bump_patch(), preid)
    if keyword == "prerelease":
        if not pre:
            return _start_prerelease(release.bump_patch(), preid)
        ids = _increment_prerelease(pre, preid)
        return str(release.replace(prerelease=".".join(ids)))

    raise InvalidVersionError(f"Unknown bump keyword: {keyword}")


def normalize_prerelease(version_str: str) -> str:
    """Drop the dot before a trailing pre-release number (beta.0 → beta0)."""
    v = parse_version(version_str)
    if not v.prerelease:
        return str(v)
    return str(v.replace(prerelease=_DOT_BEFORE_NUMBER.sub("", v.prerelease)))


def _ordering_key(version_str: str) -> semver.Version:
    # Compare "beta10" and "beta9" numerically, as "beta.10" and "beta.9".
    v = parse_version(version_str)
    if not v.prerelease:
        return v
    return v.replace(prerelease=".".join(_prerelease_ids(v)))


def compare(a: str, b: str) -> int:
    """Compare two versions. Returns -1, 0 or 1."""
    return _ordering_key(a).compare(_ordering_key(b))


def is_prerelease_bump(target: str, current: str) -> bool:
    """Return True if a bump keyword produces or continues a pre-release.

    Explicit versions are never bumps, so they are never classified as
    pre-release bumps.
    """
    if target not in BUMP_KEYWORDS:
        return False
    return target.startswith("pre") or parse_version(current).prerelease is not None


def check_monotonic(next_version: str, recorded: Iterable[str]) -> None:
    """Ensure no recorded changelog version is at or above the next version.

    Raises:
        ChangelogVersionConflictError: Listing every conflicting version.
    """
    conflicts = [v for v in recorded if compare(v, next_version) >= 0]
    if conflicts:
        raise ChangelogVersionConflictError(next_version, conflicts)


def resolve_next_version(
    current: str,
    target: str,
    preid: str | None = None,
    recorded: Iterable[str] = (),
) -> str:
    """Resolve the version to release.

    Args:
        current: Version currently recorded in the metadata files.
        target: An explicit version or one of BUMP_KEYWORDS.
        preid: Pre-release identifier (e.g., "beta") for pre* keywords.
        recorded: Versions already present in the changelog.

    Returns:
        The normalized next version.

    Raises:
        InvalidVersionError: If target is neither a keyword nor valid SemVer.
        ChangelogVersionConflictError: If the changelog already records a
            version at or above the result.
    """
    target = target.strip()
    if target in BUMP_KEYWORDS:
        next_version = bump(current, target, preid)
    else:
        next_version = str(parse_version(target))

    next_version = normalize_prerelease(next_version)
    check_monotonic(next_version, recorded)
    return next_version


def preview_bumps(current: str, preid: str = "beta") -> dict[str, str]:
    """Compute example results for the common keywords, for help output."""
    return {
        "patch": bump(current, "patch"),
        "minor": bump(current, "minor"),
        "major": bump(current, "major"),
        "prerelease": normalize_prerelease(bump(current, "prerelease", preid)),
    }
