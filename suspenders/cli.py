"""
cli.py

Responsibility: CLI entrypoint for suspenders.

High-level flow (single command):
1) Parse flags (and optional YAML defaults) -> `Configuration`
2) Check preconditions that must hold before anything touches the disk
3) `rails new` + the customization pipeline (`pipeline.generate_app`)
4) Report the first failure on stderr and exit non-zero

Exit codes: 0 success, 1 generation failure, 2 usage error.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from pathlib import Path

from rich.console import Console

from suspenders.commands import CommandError, SubprocessCommand
from suspenders.github_client import TOKEN_ENV_VAR, GitHubClient, token_from_env
from suspenders.logging_config import setup_logging
from suspenders.options import Configuration, build_parser, log_level, parse_args
from suspenders.pipeline import generate_app
from suspenders.runner import StepFailed

logger = logging.getLogger(__name__)


class CLIError(RuntimeError):
    pass


def _ensure_fresh_destination(path: Path) -> None:
    if not path.exists():
        return
    if not path.is_dir() or any(path.iterdir()):
        raise CLIError(f"Destination already exists and is not empty: {path}")


def main(argv: Sequence[str] | None = None) -> int:
    environ = dict(os.environ)
    parser = build_parser()
    args = parse_args(argv, parser)

    setup_logging(
        level=log_level(args, environ.get("SUSPENDERS_LOG_LEVEL", "WARNING")),
        log_file=environ.get("SUSPENDERS_LOG_FILE"),
    )

    config = Configuration.from_namespace(args, environ)
    token = token_from_env(environ)
    if config.github and not config.skip_git and not token:
        parser.error(f"--github requires a GitHub token in {TOKEN_ENV_VAR}")

    err = Console(stderr=True, highlight=False)
    destination = Path(args.app_path).resolve()
    try:
        _ensure_fresh_destination(destination)
        destination.parent.mkdir(parents=True, exist_ok=True)
        generate_app(
            config,
            destination,
            command=SubprocessCommand(),
            github=lambda: GitHubClient(token),
        )
    except (CLIError, CommandError, StepFailed) as e:
        logger.debug("Generation failed", exc_info=True)
        err.print(f"error: {e}", markup=False, style="bold red", soft_wrap=True)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
