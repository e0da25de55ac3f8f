"""Shell, git and console utilities.

Provides the command-runner used for git and the checks command, plus the
console helpers the pipeline reports progress with. The runner is passed into
the pipeline rather than imported there, so tests can substitute a fake that
records commands instead of running them.
"""

from __future__ import annotations

import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import NoReturn, Protocol

import click


class CommandRunner(Protocol):
    """What the release pipeline needs from the outside world."""

    def run(self, *args: str) -> bool:
        """Run a command, streaming its output. Return True on exit code 0."""
        ...

    def capture(self, *args: str) -> str:
        """Run a command and return its stripped stdout.

        Raises subprocess.CalledProcessError on a non-zero exit and OSError
        when the executable cannot be started.
        """
        ...


class SubprocessRunner:
    """CommandRunner backed by subprocess, rooted at the project directory."""

    def __init__(self, cwd: Path) -> None:
        self.cwd = cwd

    def run(self, *args: str) -> bool:
        # Output streams straight to the terminal so users can follow the
        # checks command.
        try:
            result = subprocess.run(args, cwd=self.cwd, check=False)
        except OSError as exc:
            click.echo(f"Could not start {args[0]}: {exc}", err=True)
            return False
        return result.returncode == 0

    def capture(self, *args: str) -> str:
        result = subprocess.run(
            args, cwd=self.cwd, capture_output=True, text=True, check=True
        )
        return result.stdout.strip()


@dataclass
class Reporter:
    """Console output for a release run.

    ``quiet`` suppresses progress output. Warnings and errors always print.
    """

    quiet: bool = False

    def step(self, msg: str) -> None:
        """Print a visually distinct step header."""
        if not self.quiet:
            click.echo(f"\n{'─' * 60}\n{click.style(msg, bold=True)}\n{'─' * 60}")

    def info(self, msg: str) -> None:
        if not self.quiet:
            click.echo(f"  {msg}")

    def success(self, msg: str) -> None:
        if not self.quiet:
            click.echo(f"{click.style('✓', fg='green')} {msg}")

    def essential(self, msg: str) -> None:
        """Print regardless of quiet mode."""
        click.echo(f"  {msg}")

    def warn(self, msg: str) -> None:
        click.echo(f"{click.style('⚠', fg='yellow')} {msg}")

    def blank(self) -> None:
        if not self.quiet:
            click.echo()


def fatal(msg: str) -> NoReturn:
    """Print an error message and exit with code 1.

    Use for unrecoverable errors that should halt the run.
    """
    click.echo(f"ERROR: {msg}", err=True)
    sys.exit(1)
