"""Changelog parsing and rewriting.

The changelog is hand-edited, so the parser is tolerant: malformed headings,
a missing, empty or duplicated [Unreleased] section become warnings on the
parsed result instead of exceptions. Whether a warning is fatal is decided by
the caller (see strict mode in the pipeline).

Only second-level headings (``## ...``) start entries. Deeper headings are
part of an entry's content.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from pathlib import Path

from .errors import (
    ChangelogNotFoundError,
    ChangelogReadError,
    MissingUnreleasedContentError,
    ReleaseNotesNotFoundError,
)
from .models import UNRELEASED, UNRELEASED_HEADER, ChangelogEntry, ParsedChangelog
from .versions import is_valid

DEFAULT_TITLE = "# Changelog"

_HEADING = re.compile(r"^##(?!#)\s*(.*)")
# Accepts "[1.2.3]", "(v1.2.3)", "1.2.3-beta.1", "1.2.3+build" ...
_VERSION_TOKEN = re.compile(
    r"(?:\(|\[)?\s*v?([0-9]+\.[0-9]+\.[0-9]+(?:[-+._][0-9A-Za-z.-]+)?)\s*(?:\)|\])?"
)


def _classify_heading(
    header: str, heading_text: str, source: str, warnings: list[str]
) -> str | None:
    match = _VERSION_TOKEN.search(heading_text)
    if match:
        token = match.group(1).strip()
        if is_valid(token):
            return token
        warnings.append(
            f'{source}: Header "{header}" does not contain a valid SemVer identifier.'
        )
        return None
    if "unreleased" in heading_text.lower():
        return UNRELEASED
    return None


def parse_changelog(text: str, source: str = "CHANGELOG.md") -> ParsedChangelog:
    """Parse changelog text into title, description and ordered entries.

    Never raises on malformed input. After parsing there is exactly one
    unreleased entry at the front: free text above the first heading is
    promoted to it, and an empty placeholder is created when there is none.

    Args:
        text: Full changelog document.
        source: File name used to prefix warnings.
    """
    lines = re.split(r"\r?\n", text)

    title = next((line.strip() for line in lines if line.startswith("# ")), "")
    description_lines: list[str] = []
    entries: list[ChangelogEntry] = []
    warnings: list[str] = []

    current: ChangelogEntry | None = None
    body: list[str] = []

    for line in lines:
        match = _HEADING.match(line)
        if match:
            if current is not None:
                current.content = "\n".join(body).strip()
                entries.append(current)

            header = line.strip()
            heading_text = match.group(1).strip()
            version = _classify_heading(header, heading_text, source, warnings)
            current = ChangelogEntry(version=version, header=header)
            body = []
        elif current is not None:
            body.append(line)
        elif not line.startswith("# "):
            description_lines.append(line)

    if current is not None:
        current.content = "\n".join(body).strip()
        entries.append(current)

    # Extra unreleased sections are folded into the first one, which moves to
    # the front.
    pending = [e for e in entries if e.is_unreleased]
    if pending:
        first = pending[0]
        for extra in pending[1:]:
            warnings.append(
                f'{source}: Duplicate unreleased section "{extra.header}"; '
                f'merging it into "{first.header}".'
            )
        first.content = "\n\n".join(e.content for e in pending if e.content)
        entries = [first] + [e for e in entries if not e.is_unreleased]

    description = "\n".join(description_lines).strip()
    has_unreleased = bool(pending)

    # Content above the first heading is treated as pending changes.
    if description and not has_unreleased:
        entries.insert(
            0,
            ChangelogEntry(
                version=UNRELEASED, header=UNRELEASED_HEADER, content=description
            ),
        )
        description = ""
        has_unreleased = True

    if not has_unreleased:
        warnings.append(
            f"{source}: Missing [Unreleased] section; creating an empty placeholder."
        )
        entries.insert(0, ChangelogEntry(version=UNRELEASED, header=UNRELEASED_HEADER))

    unreleased = next(e for e in entries if e.is_unreleased)
    if not unreleased.content.strip():
        warnings.append(f"{source}: [Unreleased] section is empty.")

    return ParsedChangelog(
        title=title or DEFAULT_TITLE,
        description=description,
        entries=entries,
        warnings=warnings,
    )


def read_changelog(path: Path) -> ParsedChangelog:
    """Read and parse a changelog file.

    Raises:
        ChangelogNotFoundError: If the file does not exist.
        ChangelogReadError: If the file cannot be read as UTF-8 text.
    """
    if not path.is_file():
        raise ChangelogNotFoundError(f"{path.name} not found in {path.parent}")
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ChangelogReadError(f"Failed to read {path.name}: {exc}") from exc
    return parse_changelog(text, source=path.name)


def render_release(
    parsed: ParsedChangelog, next_version: str, today: str | None = None
) -> tuple[str, str]:
    """Promote the unreleased entry to a dated release.

    Every other entry is kept verbatim and in order, below a fresh empty
    [Unreleased] heading and the new release entry.

    Args:
        parsed: Parsed changelog. Not modified.
        next_version: Version the unreleased content is released as.
        today: ISO date for the heading. Defaults to the current UTC date.

    Returns:
        Tuple of (new changelog text, release notes of the new entry).

    Raises:
        MissingUnreleasedContentError: If there is nothing to release.
    """
    pending = [e.content for e in parsed.entries if e.is_unreleased and e.content]
    if not pending:
        raise MissingUnreleasedContentError("No unreleased changes found in changelog.")

    date = today or datetime.now(timezone.utc).date().isoformat()
    released = ChangelogEntry(
        version=next_version,
        header=f"## [{next_version}] - {date}",
        content="\n\n".join(pending),
    )
    entries = [released] + [e for e in parsed.entries if not e.is_unreleased]

    parts = [parsed.title, ""]
    if parsed.description:
        parts += [parsed.description, ""]
    parts += [UNRELEASED_HEADER, ""]
    for entry in entries:
        parts += [entry.header, "", entry.content, ""]

    return "\n".join(parts).strip() + "\n", released.content


def update_changelog(path: Path, parsed: ParsedChangelog, next_version: str) -> str:
    """Write the released changelog to disk and return the release notes."""
    text, notes = render_release(parsed, next_version)
    path.write_text(text, encoding="utf-8")
    return notes


def release_notes(parsed: ParsedChangelog, version: str) -> str:
    """Return the heading and body of the entry for a version.

    Raises:
        ReleaseNotesNotFoundError: If no entry with content matches.
    """
    entry = parsed.find(version)
    if entry is None or not entry.content:
        raise ReleaseNotesNotFoundError(
            f"Could not find changelog entry for version {version}."
        )
    return f"{entry.header}\n\n{entry.content}".rstrip()
