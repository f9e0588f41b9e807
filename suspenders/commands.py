"""
commands.py

Responsibility: The single seam through which external programs are executed.

Everything that shells out (bundler, rails, git, spring, heroku) goes through an
`ExternalCommand`, so tests can substitute a recording fake for real processes.
"""

from __future__ import annotations

import logging
import os
import subprocess
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    argv: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandError(RuntimeError):
    def __init__(self, result: CommandResult) -> None:
        self.result = result
        output = "\n".join(part for part in (result.stdout.strip(), result.stderr.strip()) if part)
        message = f"Command failed ({result.returncode}): {' '.join(result.argv)}"
        if output:
            message = f"{message}\n\n{output}"
        super().__init__(message)


class ExternalCommand(Protocol):
    def run(
        self,
        argv: Sequence[str],
        *,
        cwd: Path,
        env: Mapping[str, str] | None = None,
    ) -> CommandResult: ...


class SubprocessCommand:
    """Run commands with `subprocess.run`, capturing output."""

    def run(
        self,
        argv: Sequence[str],
        *,
        cwd: Path,
        env: Mapping[str, str] | None = None,
    ) -> CommandResult:
        merged_env = {**os.environ, **env} if env else None
        logger.debug("Executing: %s (cwd=%s)", " ".join(argv), cwd)
        try:
            proc = subprocess.run(
                list(argv),
                cwd=str(cwd),
                env=merged_env,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
            )
        except FileNotFoundError:
            return CommandResult(argv=tuple(argv), returncode=127, stderr=f"{argv[0]}: command not found")
        return CommandResult(argv=tuple(argv), returncode=proc.returncode, stdout=proc.stdout, stderr=proc.stderr)


def check(result: CommandResult) -> CommandResult:
    """Raise `CommandError` unless the command exited with status 0."""
    if not result.ok:
        raise CommandError(result)
    return result
