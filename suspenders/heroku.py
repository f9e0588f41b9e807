"""
heroku.py

Responsibility: Provision staging and production Heroku apps through the `heroku` CLI.

Every toolbelt command is run in the project directory and scoped with
`--remote <environment>`. Nothing here checks whether resources already exist:
re-running against provisioned apps surfaces the toolbelt's own error.
"""

from __future__ import annotations

import logging
import shlex

from suspenders.actions import Project

logger = logging.getLogger(__name__)

ENVIRONMENTS = ("staging", "production")

BACKUP_SCHEDULE = "10:00 America/New_York"


class HerokuError(RuntimeError):
    pass


class HerokuAdapter:
    def __init__(self, project: Project) -> None:
        self.project = project
        self.config = project.config

    @property
    def app_name(self) -> str:
        return self.config.heroku_app_name

    def app_name_for(self, environment: str) -> str:
        return self.config.heroku_app_name_for(environment)

    def run_toolbelt_command(self, args: list[str], environment: str) -> None:
        self.project.run(["heroku", *args, "--remote", environment])

    # -- Provisioning ------------------------------------------------------

    def create_heroku_apps(self, flags: str) -> None:
        extra = shlex.split(flags)
        for environment in ENVIRONMENTS:
            self.run_toolbelt_command(["create", self.app_name_for(environment), *extra], environment)

    def set_heroku_remotes(self) -> None:
        remotes = "".join(self._command_to_join_heroku_app(env) for env in ENVIRONMENTS)
        self.project.append_file("bin/setup", f"{remotes}\ngit config heroku.remote staging\n")

    def set_heroku_rails_secrets(self) -> None:
        for environment in ENVIRONMENTS:
            secret = self.project.generate_secret(f"heroku-{environment}")
            self.run_toolbelt_command(["config:add", f"SECRET_KEY_BASE={secret}"], environment)

    def set_heroku_application_host(self) -> None:
        for environment in ENVIRONMENTS:
            host = f"{self.app_name_for(environment)}.herokuapp.com"
            self.run_toolbelt_command(["config:add", f"APPLICATION_HOST={host}"], environment)

    def set_heroku_honeybadger_env(self) -> None:
        for environment in ENVIRONMENTS:
            self.run_toolbelt_command(["config:add", f"HONEYBADGER_ENV={environment}"], environment)

    def set_heroku_backup_schedule(self) -> None:
        for environment in ENVIRONMENTS:
            self.run_toolbelt_command(
                ["pg:backups:schedule", "DATABASE_URL", "--at", BACKUP_SCHEDULE],
                environment,
            )

    def create_heroku_pipeline(self) -> None:
        help_text = self.project.run(["heroku", "help"]).stdout
        if "pipelines" not in help_text:
            raise HerokuError("You need the heroku pipelines plugin. Run: heroku update")

        self.run_toolbelt_command(
            ["pipelines:create", self.app_name, "-a", self.app_name_for("staging"), "--stage", "staging"],
            "staging",
        )
        self.run_toolbelt_command(
            ["pipelines:add", self.app_name, "-a", self.app_name_for("production"), "--stage", "production"],
            "production",
        )
        logger.info("Created Heroku pipeline %s", self.app_name)

    def configure_automatic_deployment(self) -> None:
        deploy_command = """
deployment:
  staging:
    branch: master
    commands:
      - bin/deploy staging
"""
        self.project.append_file("circle.yml", deploy_command)

    # -- Helpers -----------------------------------------------------------

    def _command_to_join_heroku_app(self, environment: str) -> str:
        app = self.app_name_for(environment)
        return f"""
if heroku join --app {app} > /dev/null 2>&1; then
  git remote add {environment} git@heroku.com:{app}.git || true
  printf 'You are a collaborator on the "{app}" Heroku app\\n'
else
  printf 'Ask for access to the "{app}" Heroku app\\n'
fi
"""
