"""
runner.py

Responsibility: Execute an ordered list of named steps against one `Project`.

A step has an optional progress message, an optional guard evaluated against the
`Configuration`, and a body that is either a callable taking the project or a nested
list of steps. Execution is sequential and single-pass; the first failure stops the run.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Union

from suspenders.actions import Project
from suspenders.options import Configuration

logger = logging.getLogger(__name__)

Guard = Callable[[Configuration], bool]
Body = Union[Callable[[Project], object], Sequence["Step"]]


class StepFailed(RuntimeError):
    """A step body raised; `path` names the failing step and its parents."""

    def __init__(self, path: tuple[str, ...], cause: BaseException) -> None:
        self.path = path
        self.cause = cause
        super().__init__(f"{' > '.join(path)}: {cause}")


@dataclass(frozen=True)
class Step:
    name: str
    body: Body
    message: str | None = None
    guard: Guard | None = None

    def enabled(self, config: Configuration) -> bool:
        return self.guard is None or bool(self.guard(config))


def action(fn: Callable[..., object], *args: object, name: str | None = None, guard: Guard | None = None) -> Step:
    """Wrap a build action `fn(project, *args)` as a step."""
    return Step(name=name or fn.__name__, body=lambda project: fn(project, *args), guard=guard)


class StepRunner:
    def __init__(self, project: Project) -> None:
        self.project = project
        self.completed: list[str] = []

    def run(self, steps: Sequence[Step]) -> list[str]:
        """Run `steps` in order; returns the dotted names of every completed step."""
        for step in steps:
            self._run_step(step, ())
        return list(self.completed)

    def _run_step(self, step: Step, parents: tuple[str, ...]) -> None:
        path = (*parents, step.name)
        if not step.enabled(self.project.config):
            logger.info("Skipping %s", ".".join(path))
            return

        if step.message:
            self.project.say(step.message)
        logger.debug("Running %s", ".".join(path))

        if callable(step.body):
            try:
                step.body(self.project)
            except StepFailed:
                raise
            except Exception as e:
                logger.debug("Step %s failed", ".".join(path), exc_info=True)
                raise StepFailed(path, e) from e
        else:
            for child in step.body:
                self._run_step(child, path)

        self.completed.append(".".join(path))
