"""CLI entry points for plugin-release."""

from __future__ import annotations

import sys
from importlib.metadata import version as pkg_version
from pathlib import Path
from typing import Any

import click

from .changelog import read_changelog, release_notes
from .config import ReleaseConfig, load_config
from .errors import ConfigError, InvalidVersionError, ReleaseError
from .pipeline import run_release
from .project import get_project_info, get_project_meta, read_package_version
from .shell import Reporter, SubprocessRunner, fatal
from .versions import BUMP_KEYWORDS, preview_bumps

__version__ = pkg_version("plugin-release")

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}

# Eager, so "-C DIR --help" has the directory in ctx.params for the epilog.
project_dir_option = click.option(
    "-C",
    "--project-dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    is_eager=True,
    help="Project root. Defaults to the current directory.",
)


def _stdin_is_interactive() -> bool:
    return sys.stdin.isatty()


def _confirm(question: str) -> bool:
    return click.confirm(question, default=True)


def _examples(root: Path, prog: str) -> tuple[str | None, list[tuple[str, str]]]:
    """Build help examples from the project's current version, if readable."""
    try:
        config = load_config(root)
    except ConfigError:
        config = ReleaseConfig()
    current = read_package_version(root, config)
    try:
        bumps = preview_bumps(current) if current else None
    except InvalidVersionError:
        bumps = None

    if bumps is None:
        current = None
        bumps = {
            "patch": "1.2.4",
            "minor": "1.3.0",
            "major": "2.0.0",
            "prerelease": "1.2.4-beta0",
        }
    base = current or "1.2.3"

    rows = [
        (f"{prog} {bumps['patch']}", "Set explicit version"),
        (f"{prog} patch", f"{base} -> {bumps['patch']}"),
        (f"{prog} minor", f"{base} -> {bumps['minor']}"),
        (f"{prog} major", f"{base} -> {bumps['major']}"),
        (f"{prog} prerelease --preid beta", f"{base} -> {bumps['prerelease']}"),
        (f"{prog} --no-push patch", "Stop before pushing"),
        (f"{prog} --strict patch", "Fail if changelog is not ready"),
        (f"{prog} --yes --quiet patch", "Non-interactive mode"),
    ]
    return current, rows


class ReleaseCommand(click.Command):
    """Command whose usage errors exit 1 and show the full help on stdout."""

    def make_context(
        self,
        info_name: str | None,
        args: list[str],
        parent: click.Context | None = None,
        **extra: Any,
    ) -> click.Context:
        try:
            return super().make_context(info_name, args, parent=parent, **extra)
        except click.UsageError as exc:
            if exc.ctx is not None:
                click.echo(exc.ctx.get_help())
            fatal(exc.format_message())

    def format_epilog(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        root = ctx.params.get("project_dir") or Path.cwd()
        current, rows = _examples(root, ctx.info_name or "plugin-release")
        if current:
            formatter.write_paragraph()
            formatter.write_text(f"Current version: {current}")
        with formatter.section("Examples"):
            formatter.write_dl(rows)


@click.command(cls=ReleaseCommand, context_settings=CONTEXT_SETTINGS)
@click.argument(
    "target", metavar=f"<version|{'|'.join(BUMP_KEYWORDS)}>", required=False
)
@click.option(
    "-n", "--no-push", is_flag=True, help="Stop before pushing to the remote."
)
@click.option(
    "-y", "--yes", is_flag=True, help="Skip confirmation prompt (auto-confirm)."
)
@click.option("-q", "--quiet", is_flag=True, help="Suppress non-essential output.")
@click.option(
    "--preid",
    metavar="ID",
    default=None,
    help="Identifier for pre-release versions (e.g., 'alpha', 'beta').",
)
@click.option(
    "--strict",
    is_flag=True,
    help="Fail on changelog warnings instead of auto-recovering.",
)
@project_dir_option
@click.version_option(__version__, "-v", "--version", prog_name="plugin-release")
@click.pass_context
def release(
    ctx: click.Context,
    target: str | None,
    no_push: bool,
    yes: bool,
    quiet: bool,
    preid: str | None,
    strict: bool,
    project_dir: Path | None,
) -> None:
    """Bump the plugin version, update CHANGELOG.md, commit, tag and push."""
    if not target:
        click.echo(ctx.get_help())
        fatal("Missing version argument.")

    root = project_dir or Path.cwd()
    try:
        config = load_config(root)
        run_release(
            target,
            root=root,
            config=config,
            runner=SubprocessRunner(root),
            reporter=Reporter(quiet=quiet),
            preid=preid,
            no_push=no_push,
            strict=strict,
            yes=yes,
            interactive=_stdin_is_interactive(),
            confirm=_confirm,
        )
    except ReleaseError as exc:
        fatal(str(exc))


@click.command(context_settings=CONTEXT_SETTINGS)
@project_dir_option
def meta(project_dir: Path | None) -> None:
    """Print plugin id, version and build task presence as step outputs."""
    root = project_dir or Path.cwd()
    try:
        config = load_config(root)
        click.echo(get_project_meta(root, config).to_output())
    except ReleaseError as exc:
        fatal(str(exc))


@click.command(context_settings=CONTEXT_SETTINGS)
@click.argument("version", required=False)
@project_dir_option
def notes(version: str | None, project_dir: Path | None) -> None:
    """Print the changelog entry for VERSION (default: the current version)."""
    root = project_dir or Path.cwd()
    try:
        config = load_config(root)
        target = (version or "").strip() or get_project_info(root, config).version
        parsed = read_changelog(root / config.changelog)
        click.echo(release_notes(parsed, target))
    except ReleaseError as exc:
        fatal(str(exc))
