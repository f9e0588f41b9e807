"""
rails.py

Responsibility: The wrapped framework generator, treated as an opaque collaborator.

`new_app` runs `rails new` to create the target directory before the customization
pipeline; `finish_template` is the framework's own remaining step once the pipeline
has run.
"""

from __future__ import annotations

import logging
from pathlib import Path

from suspenders.actions import Project
from suspenders.commands import ExternalCommand, check
from suspenders.options import Configuration

logger = logging.getLogger(__name__)


def new_app_argv(config: Configuration, destination: Path) -> list[str]:
    argv = ["rails", "new", str(destination), "--skip-bundle", f"--database={config.database}"]
    if config.skip_test:
        argv.append("--skip-test")
    if config.skip_system_test:
        argv.append("--skip-system-test")
    if config.skip_turbolinks:
        argv.append("--skip-turbolinks")
    if config.skip_git:
        argv.append("--skip-git")
    return argv


def new_app(config: Configuration, destination: Path, command: ExternalCommand) -> None:
    """Create the target project with the framework's own generator."""
    argv = new_app_argv(config, destination)
    logger.info("Creating %s with: %s", destination, " ".join(argv))
    check(command.run(argv, cwd=destination.parent))


def finish_template(project: Project) -> None:
    """Apply the user's application template, when one was given."""
    template = project.config.template
    if not template:
        logger.debug("No application template given")
        return
    project.run(["bin/rails", "app:template", f"LOCATION={template}"])
