"""
actions.py

Responsibility: Build actions against the target project directory.

Three kinds of action live here:
- template-copy: `template`, `copy_file`, `directory`, `create_file`
- file-patch: `replace_in_file`, `inject_into_file`, `inject_into_class`, `uncomment_lines`,
  `append_file`, `prepend_file` and the Rails-specific helpers built on them
- shell-command: `run`, `bundle_command`, `generate`

A patch whose anchor cannot be found is an error, never a silent no-op.
"""

from __future__ import annotations

import hashlib
import logging
import re
import secrets
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.text import Text

from suspenders import RAILS_VERSION, RUBY_VERSION, __version__
from suspenders.commands import CommandResult, ExternalCommand, check
from suspenders.options import DATABASE_GEMS, Configuration
from suspenders.renderer import copy_template_dir, copy_template_file, render_template_file

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATES_ROOT = Path(__file__).resolve().parent / "templates"

Anchor = str | re.Pattern[str]


class ActionError(RuntimeError):
    pass


class PatchError(ActionError):
    pass


def templates_root_for(config: Configuration) -> Path:
    """Packaged templates, or those of a local checkout given with `--path`."""
    if config.path:
        return Path(config.path).expanduser().resolve() / "suspenders" / "templates"
    return DEFAULT_TEMPLATES_ROOT


def _find(content: str, anchor: Anchor) -> re.Match[str] | None:
    if isinstance(anchor, re.Pattern):
        return anchor.search(content)
    return re.search(re.escape(anchor), content)


def _describe(anchor: Anchor) -> str:
    return repr(anchor.pattern if isinstance(anchor, re.Pattern) else anchor)


class Project:
    """The target project: its root directory plus everything actions need to act on it."""

    def __init__(
        self,
        root: str | Path,
        config: Configuration,
        *,
        command: ExternalCommand,
        templates_root: Path | None = None,
        console: Console | None = None,
    ) -> None:
        self.root = Path(root).resolve()
        self.config = config
        self.command = command
        self.templates_root = templates_root or templates_root_for(config)
        self.console = console or Console(highlight=False)

    # -- Output ----------------------------------------------------------

    def say(self, message: str) -> None:
        self.console.print(message, markup=False)

    def status(self, action: str, detail: str) -> None:
        self.console.print(Text.assemble((f"{action:>12}", "bold green"), "  ", detail))

    # -- Paths and context -------------------------------------------------

    def path(self, relative: str | Path) -> Path:
        return self.root / relative

    def template_path(self, source: str) -> Path:
        return self.templates_root / source

    def context(self) -> dict[str, Any]:
        config = self.config
        return {
            "app_name": config.app_name,
            "app_class": config.app_class,
            "database": config.database,
            "database_gem": DATABASE_GEMS[config.database],
            "heroku": config.heroku,
            "heroku_app_name": config.heroku_app_name,
            "suspenders_path": config.path,
            "suspenders_version": __version__,
            "rails_version": RAILS_VERSION,
            "ruby_version": RUBY_VERSION,
            "skip_turbolinks": config.skip_turbolinks,
        }

    def generate_secret(self, purpose: str = "secret_key_base") -> str:
        if self.config.testing:
            return hashlib.sha512(f"{self.config.app_name}:{purpose}".encode()).hexdigest()
        return secrets.token_hex(64)

    # -- Template copy -----------------------------------------------------

    def template(self, source: str, dest: str | None = None, *, context: Mapping[str, Any] | None = None) -> Path:
        target = self.path(dest or source)
        render_template_file(self.template_path(source), target, {**self.context(), **(context or {})})
        self.status("create", str(target.relative_to(self.root)))
        return target

    def copy_file(self, source: str, dest: str | None = None) -> Path:
        target = self.path(dest or source)
        copy_template_file(self.template_path(source), target)
        self.status("create", str(target.relative_to(self.root)))
        return target

    def directory(self, source: str, dest: str = ".", *, rename: Callable[[Path], Path] | None = None) -> list[Path]:
        written = copy_template_dir(self.template_path(source), self.path(dest), self.context(), rename=rename)
        for target in written:
            self.status("create", str(target.relative_to(self.root)))
        return written

    def create_file(self, dest: str, content: str) -> Path:
        target = self.path(dest)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8", newline="\n")
        self.status("create", dest)
        return target

    def empty_directory(self, dest: str) -> Path:
        target = self.path(dest)
        target.mkdir(parents=True, exist_ok=True)
        self.status("create", dest)
        return target

    def empty_directory_with_keep_file(self, dest: str) -> Path:
        self.empty_directory(dest)
        return self.create_file(f"{dest}/.keep", "")

    def remove_file(self, dest: str) -> None:
        target = self.path(dest)
        if target.exists():
            target.unlink()
            self.status("remove", dest)

    def chmod(self, dest: str, mode: int) -> None:
        target = self.path(dest)
        if not target.exists():
            raise ActionError(f"Cannot chmod missing file: {dest}")
        target.chmod(mode)
        self.status("chmod", dest)

    # -- File patch --------------------------------------------------------

    def read(self, dest: str) -> str:
        target = self.path(dest)
        if not target.is_file():
            raise PatchError(f"File not found: {dest}")
        return target.read_text(encoding="utf-8")

    def _write(self, dest: str, content: str) -> None:
        self.path(dest).write_text(content, encoding="utf-8", newline="\n")

    def replace_in_file(self, dest: str, find: Anchor, replace: str) -> None:
        content = self.read(dest)
        if isinstance(find, re.Pattern):
            new_content, count = find.subn(replace, content)
        else:
            count = content.count(find)
            new_content = content.replace(find, replace)
        if count == 0:
            raise PatchError(f"{_describe(find)} not found in {dest}")
        self._write(dest, new_content)
        self.status("gsub", dest)

    def inject_into_file(self, dest: str, content: str, *, after: Anchor | None = None, before: Anchor | None = None) -> None:
        """Insert `content` after or before the first match of the anchor."""
        if after is not None and before is None:
            anchor, use_end = after, True
        elif before is not None and after is None:
            anchor, use_end = before, False
        else:
            raise ValueError("inject_into_file needs exactly one of after= or before=")
        existing = self.read(dest)
        match = _find(existing, anchor)
        if match is None:
            raise PatchError(f"{_describe(anchor)} not found in {dest}")
        at = match.end() if use_end else match.start()
        self._write(dest, existing[:at] + content + existing[at:])
        self.status("insert", dest)

    def inject_into_class(self, dest: str, klass: str, content: str) -> None:
        anchor = re.compile(rf"^\s*class {re.escape(klass)}\b.*\n", re.MULTILINE)
        self.inject_into_file(dest, content, after=anchor)

    def uncomment_lines(self, dest: str, flag: str) -> None:
        pattern = re.compile(rf"^(\s*)#\s*(.*{re.escape(flag)})", re.MULTILINE)
        self.replace_in_file(dest, pattern, r"\1\2")

    def append_file(self, dest: str, content: str) -> None:
        existing = self.read(dest)
        self._write(dest, existing + content)
        self.status("append", dest)

    def prepend_file(self, dest: str, content: str) -> None:
        existing = self.read(dest)
        self._write(dest, content + existing)
        self.status("prepend", dest)

    def configure_environment(self, rails_env: str, config: str) -> None:
        self.inject_into_file(f"config/environments/{rails_env}.rb", f"\n  {config}", before="\nend")

    def configure_application_file(self, config: str) -> None:
        self.inject_into_file("config/application.rb", f"\n\n    {config}", before="\n  end")

    def add_gem(self, name: str, *, version: str | None = None, group: Sequence[str] | None = None) -> None:
        parts = [f'gem "{name}"']
        if version:
            parts.append(f'"{version}"')
        if group:
            parts.append("group: [" + ", ".join(f":{g}" for g in group) + "]")
        self.append_file("Gemfile", ", ".join(parts) + "\n")

    # -- Shell command -----------------------------------------------------

    def run(self, argv: Sequence[str], *, env: Mapping[str, str] | None = None) -> CommandResult:
        self.status("run", " ".join(argv))
        return check(self.command.run(list(argv), cwd=self.root, env=env))

    def bundle_command(self, *args: str) -> CommandResult:
        return self.run(["bundle", *args])

    def generate(self, *args: str) -> CommandResult:
        return self.run(["bin/rails", "generate", *args])
