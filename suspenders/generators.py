"""
generators.py

Responsibility: The second tier of small, single-concern generators.

Each generator is an ordered list of steps; `invoke_generator(name)` wraps one as a
single named step so the customization pipeline can run them in sequence.
"""

from __future__ import annotations

from collections.abc import Callable

from suspenders.actions import Project
from suspenders.runner import Step, action


# -- initialize_active_job -----------------------------------------------------


def configure_active_job(project: Project) -> None:
    project.configure_application_file("config.active_job.queue_adapter = :delayed_job")
    project.configure_environment("test", "config.active_job.queue_adapter = :inline")


def generate_delayed_job(project: Project) -> None:
    project.generate("delayed_job:active_record")


def configure_background_jobs_for_rspec(project: Project) -> None:
    project.copy_file("background_jobs_rspec.rb", "spec/support/background_jobs.rb")


# -- enforce_ssl ---------------------------------------------------------------


def enforce_ssl(project: Project) -> None:
    project.configure_environment("production", "config.force_ssl = true")


# -- static --------------------------------------------------------------------


def serve_static_files(project: Project) -> None:
    project.replace_in_file(
        "config/environments/production.rb",
        "config.public_file_server.enabled = ENV['RAILS_SERVE_STATIC_FILES'].present?",
        'config.public_file_server.enabled = ENV.fetch("RAILS_SERVE_STATIC_FILES", "true") == "true"',
    )


# -- stylesheet_base -----------------------------------------------------------


def add_stylesheet_gems(project: Project) -> None:
    project.add_gem("bourbon", version="~> 5.0")
    project.add_gem("neat", version="~> 2.1")
    project.bundle_command("install")


def add_css_config(project: Project) -> None:
    project.remove_file("app/assets/stylesheets/application.css")
    project.directory("stylesheets", "app/assets/stylesheets")


# -- ci ------------------------------------------------------------------------


def configure_ci(project: Project) -> None:
    project.template("circle.yml.j2", "circle.yml")


# -- forms ---------------------------------------------------------------------


def add_simple_form(project: Project) -> None:
    project.add_gem("simple_form")
    project.bundle_command("install")


def configure_simple_form(project: Project) -> None:
    project.generate("simple_form:install", "--skip")


# -- db_optimizations ----------------------------------------------------------


def add_bullet_gem(project: Project) -> None:
    project.add_gem("bullet", group=("development", "test"))
    project.bundle_command("install")


def configure_bullet(project: Project) -> None:
    project.configure_environment(
        "development",
        "config.after_initialize do\n"
        "    Bullet.enable = true\n"
        "    Bullet.bullet_logger = true\n"
        "    Bullet.rails_logger = true\n"
        "  end",
    )


# -- factories -----------------------------------------------------------------


def set_up_factory_bot_for_rspec(project: Project) -> None:
    project.copy_file("factory_bot_rspec.rb", "spec/support/factory_bot.rb")


def generate_factories_file(project: Project) -> None:
    project.copy_file("factories.rb", "spec/factories.rb")


def add_factory_linting_task(project: Project) -> None:
    project.copy_file("dev.rake", "lib/tasks/dev.rake")


# -- lint ----------------------------------------------------------------------


def copy_lint_config(project: Project) -> None:
    project.copy_file("hound.yml", ".hound.yml")
    project.copy_file("rubocop.yml", ".rubocop.yml")


GENERATORS: dict[str, Callable[[], list[Step]]] = {
    "initialize_active_job": lambda: [
        action(configure_active_job),
        action(generate_delayed_job),
        action(configure_background_jobs_for_rspec),
    ],
    "enforce_ssl": lambda: [action(enforce_ssl)],
    "static": lambda: [action(serve_static_files)],
    "stylesheet_base": lambda: [action(add_stylesheet_gems), action(add_css_config)],
    "ci": lambda: [action(configure_ci)],
    "forms": lambda: [action(add_simple_form), action(configure_simple_form)],
    "db_optimizations": lambda: [action(add_bullet_gem), action(configure_bullet)],
    "factories": lambda: [
        action(set_up_factory_bot_for_rspec),
        action(generate_factories_file),
        action(add_factory_linting_task),
    ],
    "lint": lambda: [action(copy_lint_config)],
}

# Order in which the application generator runs them.
DEFAULT_GENERATORS = (
    "initialize_active_job",
    "enforce_ssl",
    "static",
    "stylesheet_base",
    "ci",
    "forms",
    "db_optimizations",
    "factories",
    "lint",
)


def invoke_generator(name: str) -> Step:
    """Return the named generator as one step; unknown names raise KeyError."""
    try:
        factory = GENERATORS[name]
    except KeyError:
        raise KeyError(f"Unknown generator: suspenders:{name}") from None
    return Step(name=f"suspenders:{name}", body=factory())
