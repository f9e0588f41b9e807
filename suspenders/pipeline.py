"""
pipeline.py

Responsibility: The fixed, ordered application pipeline.

High-level flow (`generate_app`):
1) `rails new` creates the target project
2) `suspenders_customization` runs the named steps below, in declaration order
3) the framework's own `finish_template` step runs last

Conditional steps (`create_github_repo`, `create_heroku_apps`) are skipped through guards.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from rich.console import Console

from suspenders import app_builder as build
from suspenders import rails
from suspenders.actions import Project
from suspenders.commands import ExternalCommand
from suspenders.generators import DEFAULT_GENERATORS, invoke_generator
from suspenders.github_client import GitHubClient
from suspenders.heroku import HerokuAdapter
from suspenders.options import Configuration
from suspenders.runner import Step, StepRunner, action

logger = logging.getLogger(__name__)

GitHubFactory = Callable[[], GitHubClient]


def _wants_github(config: Configuration) -> bool:
    return bool(config.github) and not config.skip_git


def _wants_heroku(config: Configuration) -> bool:
    return config.heroku


def _heroku(method_name: str) -> Step:
    return Step(name=method_name, body=lambda project: getattr(HerokuAdapter(project), method_name)())


def _create_heroku_apps(project: Project) -> None:
    HerokuAdapter(project).create_heroku_apps(project.config.heroku_flags)


def customization_steps(github: GitHubFactory) -> list[Step]:
    """The named customization sequence, in the order it must run."""

    def create_github_repo(project: Project) -> None:
        repo_name = project.config.github or ""
        build.create_github_repo(project, repo_name, github())

    def setup_database(project: Project) -> None:
        if project.config.database == "postgresql":
            build.use_postgres_config_template(project)
        build.create_database(project)

    return [
        Step(
            "customize_gemfile",
            body=[
                action(build.replace_gemfile),
                action(build.set_ruby_to_version_being_used),
                action(Project.bundle_command, "install", name="bundle_install"),
            ],
        ),
        Step(
            "setup_development_environment",
            message="Setting up the development environment",
            body=[
                action(build.raise_on_missing_assets_in_test),
                action(build.raise_on_delivery_errors),
                action(build.set_test_delivery_method),
                action(build.raise_on_unpermitted_parameters),
                action(build.provide_setup_script),
                action(build.configure_generators),
                action(build.configure_i18n_for_missing_translations),
                action(build.configure_quiet_assets),
            ],
        ),
        Step(
            "setup_test_environment",
            message="Setting up the test environment",
            body=[
                action(build.generate_rspec),
                action(build.configure_rspec),
                action(build.provide_shoulda_matchers_config),
                action(build.configure_spec_support_features),
                action(build.configure_i18n_for_test_environment),
                action(build.configure_action_mailer_in_specs),
                action(build.configure_capybara_webkit),
            ],
        ),
        Step(
            "setup_production_environment",
            message="Setting up the production environment",
            body=[
                action(build.configure_smtp),
                action(build.configure_rack_timeout),
                action(build.enable_rack_canonical_host),
                action(build.enable_rack_deflater),
                action(build.setup_asset_host),
            ],
        ),
        Step(
            "setup_secret_token",
            message="Moving secret token out of version control",
            body=build.setup_secret_token,
        ),
        Step(
            "create_suspenders_views",
            message="Creating suspenders views",
            body=[
                action(build.create_partials_directory),
                action(build.create_shared_flashes),
                action(build.create_shared_javascripts),
                action(build.create_shared_css_overrides),
                action(build.create_application_layout),
            ],
        ),
        Step(
            "configure_app",
            message="Configuring app",
            body=[
                action(build.configure_action_mailer),
                action(build.configure_time_formats),
                action(build.setup_default_rake_task),
                action(build.replace_default_puma_configuration),
                action(build.set_up_forego),
                action(build.setup_rack_mini_profiler),
            ],
        ),
        Step(
            "copy_miscellaneous_files",
            message="Copying miscellaneous support files",
            body=build.copy_miscellaneous_files,
        ),
        Step(
            "customize_error_pages",
            message="Customizing the 500/404/422 pages",
            body=build.customize_error_pages,
        ),
        Step("remove_config_comment_lines", body=build.remove_config_comment_lines),
        Step("remove_routes_comment_lines", body=build.remove_routes_comment_lines),
        Step("setup_dotfiles", body=build.copy_dotfiles),
        Step("setup_database", message="Setting up database", body=setup_database),
        Step(
            "create_github_repo",
            message="Creating Github repo",
            body=create_github_repo,
            guard=_wants_github,
        ),
        Step("setup_segment", message="Setting up Segment", body=build.setup_segment),
        Step("setup_bundler_audit", message="Setting up bundler-audit", body=build.setup_bundler_audit),
        Step("setup_spring", message="Springifying binstubs", body=build.setup_spring),
        Step(
            "generate_default",
            body=[action(build.stop_spring)] + [invoke_generator(name) for name in DEFAULT_GENERATORS],
        ),
        Step("setup_default_directories", body=build.setup_default_directories),
        Step(
            "create_local_heroku_setup",
            message="Creating local Heroku setup",
            body=[
                action(build.create_review_apps_setup_script),
                action(build.create_deploy_script),
                action(build.create_heroku_application_manifest_file),
            ],
        ),
        Step(
            "create_heroku_apps",
            message="Creating Heroku apps",
            guard=_wants_heroku,
            body=[
                Step("create_heroku_apps", body=_create_heroku_apps),
                _heroku("set_heroku_remotes"),
                _heroku("set_heroku_rails_secrets"),
                _heroku("set_heroku_application_host"),
                _heroku("set_heroku_honeybadger_env"),
                _heroku("set_heroku_backup_schedule"),
                _heroku("create_heroku_pipeline"),
                _heroku("configure_automatic_deployment"),
            ],
        ),
        Step("outro", body=build.outro),
    ]


def app_steps(github: GitHubFactory) -> list[Step]:
    return [
        Step("suspenders_customization", body=customization_steps(github)),
        Step("finish_template", body=rails.finish_template),
    ]


def generate_app(
    config: Configuration,
    destination: str | Path,
    *,
    command: ExternalCommand,
    github: GitHubFactory,
    console: Console | None = None,
    templates_root: Path | None = None,
) -> list[str]:
    """
    Create the application at `destination` and run the full pipeline.

    Returns the dotted names of the completed steps. The first failure raises
    (`CommandError` from `rails new`, `StepFailed` from the pipeline); whatever
    was generated before it stays on disk.
    """
    destination = Path(destination).resolve()
    rails.new_app(config, destination, command)

    project = Project(destination, config, command=command, templates_root=templates_root, console=console)
    completed = StepRunner(project).run(app_steps(github))
    logger.info("Generated %s (%d steps)", destination, len(completed))
    return completed
