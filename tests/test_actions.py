"""
Tests for build actions: template copy, file patch and shell command.
"""

from __future__ import annotations

import re
import stat

import pytest

from conftest import FakeCommand, make_config, quiet_console
from suspenders.actions import DEFAULT_TEMPLATES_ROOT, Project, PatchError, templates_root_for
from suspenders.commands import CommandError
from suspenders.renderer import MissingTemplateError


class TestTemplateCopy:
    def test_template_renders_context(self, project):
        project.template("config_locales_en.yml.j2", "config/locales/en.yml")
        content = project.path("config/locales/en.yml").read_text()
        assert "application: TestProject" in content
        assert "%m/%d/%Y" in content

    def test_copy_file_is_byte_for_byte(self, project):
        project.copy_file("Procfile")
        assert project.path("Procfile").read_bytes() == (DEFAULT_TEMPLATES_ROOT / "Procfile").read_bytes()

    def test_copy_file_creates_parent_directories(self, project):
        project.copy_file("i18n.rb", "spec/support/deep/i18n.rb")
        assert project.path("spec/support/deep/i18n.rb").is_file()

    def test_missing_template(self, project):
        with pytest.raises(MissingTemplateError, match="no_such_file"):
            project.copy_file("no_such_file.rb", "config/no_such_file.rb")
        assert not project.path("config/no_such_file.rb").exists()

    def test_directory_with_rename(self, project):
        written = project.directory("dotfiles", ".", rename=lambda rel: rel.with_name(f".{rel.name}"))
        assert project.path(".ctags").is_file()
        assert project.path(".sample.env").is_file()
        assert [p.name for p in written] == [".ctags", ".sample.env"]

    def test_empty_directory_with_keep_file(self, project):
        project.empty_directory_with_keep_file("spec/lib")
        assert project.path("spec/lib/.keep").read_text() == ""

    def test_remove_missing_file_is_noop(self, project):
        project.remove_file("does/not/exist.rb")

    def test_chmod(self, project):
        project.create_file("bin/tool", "#!/bin/sh\n")
        project.chmod("bin/tool", 0o755)
        assert project.path("bin/tool").stat().st_mode & stat.S_IXUSR


class TestFilePatch:
    def test_replace_in_file(self, project):
        project.replace_in_file(
            "config/environments/development.rb",
            "raise_delivery_errors = false",
            "raise_delivery_errors = true",
        )
        assert "raise_delivery_errors = true" in project.read("config/environments/development.rb")

    def test_replace_in_file_missing_anchor(self, project):
        before = project.read("config/routes.rb")
        with pytest.raises(PatchError, match="not found in config/routes.rb"):
            project.replace_in_file("config/routes.rb", "no such text", "x")
        assert project.read("config/routes.rb") == before

    def test_replace_in_file_with_regex(self, project):
        project.replace_in_file("public/404.html", re.compile(r"<!--.+-->\n"), "")
        assert "<!--" not in project.read("public/404.html")

    def test_replace_in_missing_file(self, project):
        with pytest.raises(PatchError, match="File not found"):
            project.replace_in_file("config/nope.rb", "a", "b")

    def test_inject_after(self, project):
        project.inject_into_file("public/500.html", "  <meta charset=\"utf-8\" />\n", after="<head>\n")
        assert "<head>\n  <meta charset=\"utf-8\" />\n  <title>" in project.read("public/500.html")

    def test_inject_before(self, project):
        project.configure_environment("test", "config.force_ssl = true")
        content = project.read("config/environments/test.rb")
        assert content.endswith("  config.force_ssl = true\nend\n")

    def test_inject_missing_anchor(self, project):
        with pytest.raises(PatchError):
            project.inject_into_file("config/routes.rb", "x", after="<body>")

    def test_inject_requires_one_anchor(self, project):
        before = project.read("config/routes.rb")
        with pytest.raises(ValueError):
            project.inject_into_file("config/routes.rb", "x")
        with pytest.raises(ValueError):
            project.inject_into_file("config/routes.rb", "x", after="do\n", before="end")
        assert project.read("config/routes.rb") == before

    def test_inject_into_class(self, project):
        project.inject_into_class("config/application.rb", "Application", "    config.assets.quiet = true\n")
        content = project.read("config/application.rb")
        assert "class Application < Rails::Application\n    config.assets.quiet = true\n" in content

    def test_configure_application_file(self, project):
        project.configure_application_file("config.active_job.queue_adapter = :delayed_job")
        content = project.read("config/application.rb")
        assert "config.load_defaults 5.2\n\n    config.active_job.queue_adapter = :delayed_job\n  end\nend\n" in content

    def test_uncomment_lines(self, project):
        project.uncomment_lines(
            "config/environments/test.rb",
            "config.action_view.raise_on_missing_translations = true",
        )
        content = project.read("config/environments/test.rb")
        assert "\n  config.action_view.raise_on_missing_translations = true\n" in content

    def test_uncomment_lines_missing(self, project):
        with pytest.raises(PatchError):
            project.uncomment_lines("config/environments/test.rb", "config.not_there = true")

    def test_append_and_prepend(self, project):
        project.append_file("Rakefile", "task default: :spec\n")
        project.prepend_file("Rakefile", "# generated\n")
        content = project.read("Rakefile")
        assert content.startswith("# generated\n")
        assert content.endswith("task default: :spec\n")

    def test_add_gem(self, project):
        project.add_gem("bullet", group=("development", "test"))
        project.add_gem("neat", version="~> 2.1")
        content = project.read("Gemfile")
        assert 'gem "bullet", group: [:development, :test]\n' in content
        assert 'gem "neat", "~> 2.1"\n' in content


class TestShellCommand:
    def test_run_in_project_root(self, project, fake_command):
        project.bundle_command("install")
        assert fake_command.calls == [(("bundle", "install"), project.root)]

    def test_generate(self, project, fake_command):
        project.generate("rspec:install")
        assert fake_command.argvs == [("bin/rails", "generate", "rspec:install")]

    def test_failure_raises_with_output(self, project, fake_command):
        fake_command.set_failure(["bundle"], returncode=7, stderr="Could not find gem 'pg'")
        with pytest.raises(CommandError) as exc:
            project.bundle_command("install")
        assert exc.value.result.returncode == 7
        assert "Could not find gem 'pg'" in str(exc.value)


class TestProjectSettings:
    def test_deterministic_secret_when_testing(self, tmp_path):
        a = Project(tmp_path, make_config(testing=True), command=FakeCommand(), console=quiet_console())
        assert a.generate_secret() == a.generate_secret()
        assert len(a.generate_secret()) == 128
        assert a.generate_secret("x") != a.generate_secret("y")

    def test_random_secret(self, tmp_path):
        a = Project(tmp_path, make_config(testing=False), command=FakeCommand(), console=quiet_console())
        assert a.generate_secret() != a.generate_secret()

    def test_templates_root_from_path(self, tmp_path):
        assert templates_root_for(make_config()) == DEFAULT_TEMPLATES_ROOT
        root = templates_root_for(make_config(path=str(tmp_path)))
        assert root == tmp_path.resolve() / "suspenders" / "templates"

    def test_status_lines(self, project):
        project.create_file("a.txt", "x")
        output = project.console.file.getvalue()
        assert "create" in output
        assert "a.txt" in output
