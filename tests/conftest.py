"""Shared fixtures: a recording stand-in for external commands and a minimal Rails skeleton."""

from __future__ import annotations

import io
from collections.abc import Mapping, Sequence
from pathlib import Path

import pytest
from rich.console import Console

from suspenders.actions import Project
from suspenders.commands import CommandResult
from suspenders.options import Configuration

RAILS_SKELETON: dict[str, str] = {
    "Gemfile": 'source "https://rubygems.org"\n\ngem "rails"\n',
    "README.md": "# README\n",
    "Rakefile": "require_relative 'config/application'\n\nRails.application.load_tasks\n",
    "app/assets/stylesheets/application.css": "/*\n *= require_self\n */\n",
    "config/application.rb": (
        "require_relative 'boot'\n"
        "\n"
        "require 'rails/all'\n"
        "\n"
        "# Require the gems listed in Gemfile, including any gems\n"
        "# you've limited to :test, :development, or :production.\n"
        "Bundler.require(*Rails.groups)\n"
        "\n"
        "module TestProject\n"
        "  class Application < Rails::Application\n"
        "    # Initialize configuration defaults for originally generated Rails version.\n"
        "    config.load_defaults 5.2\n"
        "  end\n"
        "end\n"
    ),
    "config/environment.rb": (
        "# Load the Rails application.\n"
        "require_relative 'application'\n"
        "\n"
        "# Initialize the Rails application.\n"
        "Rails.application.initialize!\n"
    ),
    "config/environments/development.rb": (
        "Rails.application.configure do\n"
        "  # Settings specified here will take precedence over those in config/application.rb.\n"
        "  config.cache_classes = false\n"
        "\n"
        "  # Don't care if the mailer can't send.\n"
        "  config.action_mailer.raise_delivery_errors = false\n"
        "\n"
        "  # Raises error for missing translations\n"
        "  # config.action_view.raise_on_missing_translations = true\n"
        "end\n"
    ),
    "config/environments/test.rb": (
        "Rails.application.configure do\n"
        "  config.cache_classes = true\n"
        "\n"
        "  # Raises error for missing translations\n"
        "  # config.action_view.raise_on_missing_translations = true\n"
        "end\n"
    ),
    "config/environments/production.rb": (
        "Rails.application.configure do\n"
        "  config.cache_classes = true\n"
        "\n"
        "  # Disable serving static files from the `/public` folder by default since\n"
        "  # Apache or NGINX already handles this.\n"
        "  config.public_file_server.enabled = ENV['RAILS_SERVE_STATIC_FILES'].present?\n"
        "\n"
        "  # Enable serving of images, stylesheets, and JavaScripts from an asset server.\n"
        "  # config.action_controller.asset_host = 'http://assets.example.com'\n"
        "\n"
        "  # Ignore bad email addresses and do not raise email delivery errors.\n"
        "  # config.action_mailer.raise_delivery_errors = false\n"
        "end\n"
    ),
    "config/initializers/assets.rb": (
        "# Version of your assets, change this if you want to expire all your assets.\n"
        "Rails.application.config.assets.version = '1.0'\n"
    ),
    "config/locales/en.yml": "en:\n  hello: \"Hello world\"\n",
    "config/routes.rb": (
        "Rails.application.routes.draw do\n"
        "  # For details on the DSL available within this file, see http://guides.rubyonrails.org/routing.html\n"
        "end\n"
    ),
    "public/404.html": (
        "<!DOCTYPE html>\n<html>\n<head>\n  <title>The page you were looking for doesn't exist (404)</title>\n"
        "</head>\n\n<body>\n  <!-- This file lives in public/404.html -->\n  <div class=\"dialog\"></div>\n</body>\n</html>\n"
    ),
    "public/422.html": (
        "<!DOCTYPE html>\n<html>\n<head>\n  <title>The change you wanted was rejected (422)</title>\n"
        "</head>\n\n<body>\n  <!-- This file lives in public/422.html -->\n  <div class=\"dialog\"></div>\n</body>\n</html>\n"
    ),
    "public/500.html": (
        "<!DOCTYPE html>\n<html>\n<head>\n  <title>We're sorry, but something went wrong (500)</title>\n"
        "</head>\n\n<body>\n  <!-- This file lives in public/500.html -->\n  <div class=\"dialog\"></div>\n</body>\n</html>\n"
    ),
}

GITIGNORE = "/.bundle\n/log/*\n/tmp/*\n"


def write_rails_skeleton(root: Path, *, skip_git: bool = False, overrides: Mapping[str, str] | None = None) -> None:
    files = {**RAILS_SKELETON, **(overrides or {})}
    if not skip_git:
        files[".gitignore"] = GITIGNORE
    for relative, content in files.items():
        target = root / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")


class FakeCommand:
    """Records every argv instead of running it; simulates `rails new` and `heroku help`."""

    def __init__(self, *, skeleton_overrides: Mapping[str, str] | None = None) -> None:
        self.calls: list[tuple[tuple[str, ...], Path]] = []
        self.skeleton_overrides = dict(skeleton_overrides or {})
        self._responses: list[tuple[tuple[str, ...], CommandResult]] = []
        self.heroku_help = "Usage: heroku COMMAND\n\n  apps\n  pipelines\n  pg\n"

    def set_failure(self, prefix: Sequence[str], *, returncode: int = 1, stderr: str = "Mock failure") -> None:
        key = tuple(prefix)
        self._responses.append((key, CommandResult(argv=key, returncode=returncode, stderr=stderr)))

    def run(self, argv: Sequence[str], *, cwd: Path, env: Mapping[str, str] | None = None) -> CommandResult:
        argv = tuple(argv)
        self.calls.append((argv, Path(cwd)))

        for prefix, response in self._responses:
            if argv[: len(prefix)] == prefix:
                return CommandResult(argv=argv, returncode=response.returncode, stderr=response.stderr)

        if argv[:2] == ("rails", "new"):
            write_rails_skeleton(Path(argv[2]), skip_git="--skip-git" in argv, overrides=self.skeleton_overrides)
        if argv[:2] == ("heroku", "help"):
            return CommandResult(argv=argv, returncode=0, stdout=self.heroku_help)
        return CommandResult(argv=argv, returncode=0, stdout="[fake] executed")

    @property
    def argvs(self) -> list[tuple[str, ...]]:
        return [argv for argv, _cwd in self.calls]

    def invoked(self, *prefix: str) -> list[tuple[str, ...]]:
        return [argv for argv in self.argvs if argv[: len(prefix)] == prefix]


class FakeGitHub:
    def __init__(self) -> None:
        self.created: list[dict[str, object]] = []

    def create_repo(self, *, owner, name, private, description=""):
        from suspenders.github_client import RepoInfo

        self.created.append({"owner": owner, "name": name, "private": private})
        owner = owner or "octocat"
        return RepoInfo(
            owner=owner,
            name=name,
            html_url=f"https://github.com/{owner}/{name}",
            clone_url=f"https://github.com/{owner}/{name}.git",
            ssh_url=f"git@github.com:{owner}/{name}.git",
        )


def make_config(**overrides) -> Configuration:
    values = {"app_name": "test_project", "testing": True}
    values.update(overrides)
    return Configuration(**values)


def quiet_console() -> Console:
    return Console(file=io.StringIO(), highlight=False, width=200)


@pytest.fixture
def fake_command() -> FakeCommand:
    return FakeCommand()


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    root = tmp_path / "test_project"
    write_rails_skeleton(root)
    return root


@pytest.fixture
def project(project_root: Path, fake_command: FakeCommand) -> Project:
    return Project(project_root, make_config(), command=fake_command, console=quiet_console())
