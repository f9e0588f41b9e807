"""
suspenders package

This package implements suspenders as a CLI-first Rails application generator.

Key responsibilities are split across modules:
- `options.py`: parse command-line flags (and an optional YAML defaults file) into a `Configuration`
- `runner.py`: ordered, guarded execution of named steps
- `actions.py`: template copy / file patch / shell command actions against the target project
- `renderer.py`: deterministic template rendering/copying
- `app_builder.py` / `generators.py`: the build actions and sub-generators
- `pipeline.py`: the fixed customization pipeline wrapped around `rails new`
- `heroku.py` / `github_client.py`: Heroku toolbelt and GitHub REST API interactions
- `cli.py`: CLI entrypoint and error reporting
"""

from __future__ import annotations

__all__ = ["__version__", "RAILS_VERSION", "RUBY_VERSION"]

__version__ = "1.48.0"

RAILS_VERSION = "~> 5.2.0"
RUBY_VERSION = "2.5.1"
