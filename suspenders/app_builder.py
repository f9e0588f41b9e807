"""
app_builder.py

Responsibility: The named build actions the customization pipeline is made of.

Each action is a plain function of the target `Project` (and, for a few, a value derived
from the configuration). Actions never return data to later steps; the only thing shared
between them is the project directory itself.
"""

from __future__ import annotations

import logging
import re

from suspenders import RUBY_VERSION
from suspenders.actions import Project
from suspenders.github_client import GitHubClient

logger = logging.getLogger(__name__)

EXECUTABLE = 0o755

DEFAULT_DIRECTORIES = (
    "app/views/pages",
    "spec/lib",
    "spec/controllers",
    "spec/helpers",
    "spec/support/matchers",
    "spec/support/mixins",
    "spec/support/shared_examples",
)

CONFIG_FILES_WITHOUT_COMMENTS = (
    "application.rb",
    "environment.rb",
    "environments/development.rb",
    "environments/production.rb",
    "environments/test.rb",
)

ERROR_PAGES = ("500", "404", "422")

ERROR_PAGE_META_TAGS = """\
  <meta charset="utf-8" />
  <meta name="ROBOTS" content="NOODP" />
  <meta name="viewport" content="initial-scale=1" />
"""


# -- Dependencies ------------------------------------------------------------


def replace_gemfile(project: Project) -> None:
    project.template("Gemfile.j2", "Gemfile")


def set_ruby_to_version_being_used(project: Project) -> None:
    project.create_file(".ruby-version", f"{RUBY_VERSION}\n")


# -- Development environment -------------------------------------------------


def raise_on_missing_assets_in_test(project: Project) -> None:
    project.configure_environment("test", "config.assets.raise_runtime_errors = true")


def raise_on_delivery_errors(project: Project) -> None:
    project.replace_in_file(
        "config/environments/development.rb",
        "raise_delivery_errors = false",
        "raise_delivery_errors = true",
    )


def set_test_delivery_method(project: Project) -> None:
    project.inject_into_file(
        "config/environments/development.rb",
        "\n  config.action_mailer.delivery_method = :file",
        after="config.action_mailer.raise_delivery_errors = true",
    )


def raise_on_unpermitted_parameters(project: Project) -> None:
    project.inject_into_class(
        "config/application.rb",
        "Application",
        "    config.action_controller.action_on_unpermitted_parameters = :raise\n",
    )


def provide_setup_script(project: Project) -> None:
    project.template("bin_setup.j2", "bin/setup")
    project.chmod("bin/setup", EXECUTABLE)


def configure_generators(project: Project) -> None:
    config = """
    config.generators do |generate|
      generate.helper false
      generate.javascripts false
      generate.request_specs false
      generate.routing_specs false
      generate.stylesheets false
      generate.test_framework :rspec
      generate.view_specs false
    end

"""
    project.inject_into_class("config/application.rb", "Application", config)


def configure_i18n_for_missing_translations(project: Project) -> None:
    for environment in ("development", "test"):
        project.uncomment_lines(
            f"config/environments/{environment}.rb",
            "config.action_view.raise_on_missing_translations = true",
        )


def configure_quiet_assets(project: Project) -> None:
    project.inject_into_class("config/application.rb", "Application", "    config.assets.quiet = true\n")


# -- Test environment ----------------------------------------------------------


def generate_rspec(project: Project) -> None:
    project.generate("rspec:install")


def configure_rspec(project: Project) -> None:
    project.remove_file("spec/rails_helper.rb")
    project.remove_file("spec/spec_helper.rb")
    project.copy_file("rails_helper.rb", "spec/rails_helper.rb")
    project.copy_file("spec_helper.rb", "spec/spec_helper.rb")


def provide_shoulda_matchers_config(project: Project) -> None:
    project.copy_file("shoulda_matchers_config_rspec.rb", "spec/support/shoulda_matchers.rb")


def configure_spec_support_features(project: Project) -> None:
    project.empty_directory_with_keep_file("spec/features")
    project.empty_directory_with_keep_file("spec/support/features")


def configure_i18n_for_test_environment(project: Project) -> None:
    project.copy_file("i18n.rb", "spec/support/i18n.rb")


def configure_action_mailer_in_specs(project: Project) -> None:
    project.copy_file("action_mailer.rb", "spec/support/action_mailer.rb")


def configure_capybara_webkit(project: Project) -> None:
    project.copy_file("capybara_webkit.rb", "spec/support/capybara_webkit.rb")


# -- Production environment ----------------------------------------------------


def configure_smtp(project: Project) -> None:
    project.copy_file("smtp.rb", "config/smtp.rb")
    project.prepend_file(
        "config/environments/production.rb",
        'require Rails.root.join("config/smtp")\n',
    )
    config = """

  config.action_mailer.delivery_method = :smtp
  config.action_mailer.smtp_settings = SMTP_SETTINGS"""
    project.inject_into_file(
        "config/environments/production.rb",
        config,
        after="config.action_mailer.raise_delivery_errors = false",
    )


def configure_rack_timeout(project: Project) -> None:
    project.append_file(
        "config/environments/production.rb",
        'Rack::Timeout.timeout = (ENV["RACK_TIMEOUT"] || 10).to_i\n',
    )


def enable_rack_canonical_host(project: Project) -> None:
    config = """
  if ENV.fetch("HEROKU_APP_NAME", "").include?("staging-pr-")
    ENV["APPLICATION_HOST"] = ENV["HEROKU_APP_NAME"] + ".herokuapp.com"
  end

  config.middleware.use Rack::CanonicalHost, ENV.fetch("APPLICATION_HOST")"""
    project.configure_environment("production", config.lstrip("\n"))


def enable_rack_deflater(project: Project) -> None:
    project.configure_environment("production", "config.middleware.use Rack::Deflater")


def setup_asset_host(project: Project) -> None:
    project.replace_in_file(
        "config/environments/production.rb",
        "# config.action_controller.asset_host = 'http://assets.example.com'",
        'config.action_controller.asset_host = ENV.fetch("ASSET_HOST", ENV.fetch("APPLICATION_HOST"))',
    )
    project.replace_in_file(
        "config/initializers/assets.rb",
        "config.assets.version = '1.0'",
        'config.assets.version = (ENV["ASSETS_VERSION"] || "1.0")',
    )
    project.configure_environment(
        "production",
        'config.public_file_server.headers = {\n    "Cache-Control" => "public, max-age=31557600",\n  }',
    )


# -- Secrets ---------------------------------------------------------------------


def setup_secret_token(project: Project) -> None:
    """Keep the secret out of git: `secrets.yml` reads it from the (ignored) `.env`."""
    project.template("secrets.yml", "config/secrets.yml")
    project.create_file(".env", f"SECRET_KEY_BASE={project.generate_secret()}\n")
    if not project.config.skip_git:
        project.append_file(".gitignore", "\n# Local environment, holds SECRET_KEY_BASE\n.env\n")


# -- Views -----------------------------------------------------------------------


def create_partials_directory(project: Project) -> None:
    project.empty_directory("app/views/application")


def create_shared_flashes(project: Project) -> None:
    project.copy_file("_flashes.html.erb", "app/views/application/_flashes.html.erb")
    project.copy_file("flashes_helper.rb", "app/helpers/flashes_helper.rb")


def create_shared_javascripts(project: Project) -> None:
    project.copy_file("_javascript.html.erb", "app/views/application/_javascript.html.erb")


def create_shared_css_overrides(project: Project) -> None:
    project.copy_file("_css_overrides.html.erb", "app/views/application/_css_overrides.html.erb")


def create_application_layout(project: Project) -> None:
    project.template("suspenders_layout.html.erb.j2", "app/views/layouts/application.html.erb")


# -- App configuration -----------------------------------------------------------


def _action_mailer_host(project: Project, rails_env: str, host: str) -> None:
    project.configure_environment(rails_env, f"config.action_mailer.default_url_options = {{ host: {host} }}")


def _action_mailer_asset_host(project: Project, rails_env: str, host: str) -> None:
    project.configure_environment(rails_env, f"config.action_mailer.asset_host = {host}")


def configure_action_mailer(project: Project) -> None:
    _action_mailer_host(project, "development", '"localhost:3000"')
    _action_mailer_asset_host(project, "development", '"http://localhost:3000"')
    _action_mailer_host(project, "test", '"www.example.com"')
    _action_mailer_asset_host(project, "test", '"http://www.example.com"')
    _action_mailer_host(project, "production", 'ENV.fetch("APPLICATION_HOST")')
    _action_mailer_asset_host(project, "production", 'ENV.fetch("ASSET_HOST", ENV.fetch("APPLICATION_HOST"))')


def configure_time_formats(project: Project) -> None:
    project.remove_file("config/locales/en.yml")
    project.template("config_locales_en.yml.j2", "config/locales/en.yml")


def setup_default_rake_task(project: Project) -> None:
    project.append_file(
        "Rakefile",
        """
task(:default).clear
task default: [:spec]

if defined? RSpec
  task(:spec).clear
  RSpec::Core::RakeTask.new(:spec) do |t|
    t.verbose = false
  end
end
""",
    )


def replace_default_puma_configuration(project: Project) -> None:
    project.copy_file("puma.rb", "config/puma.rb")


def set_up_forego(project: Project) -> None:
    project.copy_file("Procfile", "Procfile")


def setup_rack_mini_profiler(project: Project) -> None:
    project.copy_file("rack_mini_profiler.rb", "config/initializers/rack_mini_profiler.rb")


def copy_miscellaneous_files(project: Project) -> None:
    project.copy_file("browserslist", "browserslist")
    project.copy_file("errors.rb", "config/initializers/errors.rb")
    project.copy_file("json_encoding.rb", "config/initializers/json_encoding.rb")


def customize_error_pages(project: Project) -> None:
    for page in ERROR_PAGES:
        project.inject_into_file(f"public/{page}.html", ERROR_PAGE_META_TAGS, after="<head>\n")
        project.replace_in_file(f"public/{page}.html", re.compile(r"<!--.+-->\n"), "")


def remove_config_comment_lines(project: Project) -> None:
    for config_file in CONFIG_FILES_WITHOUT_COMMENTS:
        relative = f"config/{config_file}"
        accepted = [
            line
            for line in project.read(relative).splitlines()
            if "#" not in line and line.strip() != ""
        ]
        project.create_file(relative, "".join(f"{line}\n" for line in accepted))


def remove_routes_comment_lines(project: Project) -> None:
    project.replace_in_file(
        "config/routes.rb",
        re.compile(r"Rails\.application\.routes\.draw do.*end", re.DOTALL),
        "Rails.application.routes.draw do\nend",
    )


def copy_dotfiles(project: Project) -> None:
    project.directory("dotfiles", ".", rename=lambda rel: rel.with_name(f".{rel.name}"))


# -- Database --------------------------------------------------------------------


def use_postgres_config_template(project: Project) -> None:
    project.template("postgresql_database.yml.j2", "config/database.yml")


def create_database(project: Project) -> None:
    project.bundle_command("exec", "rake", "db:create", "db:migrate")


# -- Github ----------------------------------------------------------------------


def create_github_repo(project: Project, repo_name: str, client: GitHubClient) -> None:
    owner, _, name = repo_name.rpartition("/")
    repo = client.create_repo(owner=owner or None, name=name, private=False)
    logger.info("Created GitHub repository %s", repo.html_url)
    project.run(["git", "remote", "add", "origin", repo.ssh_url])


# -- Misc ------------------------------------------------------------------------


def setup_segment(project: Project) -> None:
    project.copy_file("_analytics.html.erb", "app/views/application/_analytics.html.erb")


def setup_bundler_audit(project: Project) -> None:
    project.copy_file("bundler_audit.rake", "lib/tasks/bundler_audit.rake")
    project.append_file("Rakefile", '\ntask default: "bundle:audit"\n')


def setup_spring(project: Project) -> None:
    project.bundle_command("exec", "spring", "binstub", "--all")


def stop_spring(project: Project) -> None:
    project.run(["spring", "stop"])


def setup_default_directories(project: Project) -> None:
    for directory in DEFAULT_DIRECTORIES:
        project.empty_directory_with_keep_file(directory)


# -- Local Heroku setup ----------------------------------------------------------


def create_review_apps_setup_script(project: Project) -> None:
    project.template("bin_setup_review_app.j2", "bin/setup_review_app")
    project.chmod("bin/setup_review_app", EXECUTABLE)


def create_deploy_script(project: Project) -> None:
    project.copy_file("bin_deploy", "bin/deploy")
    instructions = """
## Deploying

If you have previously run the `./bin/setup` script,
you can deploy to staging and production with:

    % ./bin/deploy staging
    % ./bin/deploy production
"""
    project.append_file("README.md", instructions)
    project.chmod("bin/deploy", EXECUTABLE)


def create_heroku_application_manifest_file(project: Project) -> None:
    project.template("app.json.j2", "app.json")


# -- Outro -----------------------------------------------------------------------


def honeybadger_outro(heroku: bool) -> str:
    suffix = " unless you're using the Heroku Honeybadger add-on" if heroku else ""
    return f"Run 'bundle exec honeybadger heroku install' with your API key{suffix}."


def outro(project: Project) -> None:
    project.say("Congratulations! You just pulled our suspenders.")
    project.say(honeybadger_outro(project.config.heroku))
