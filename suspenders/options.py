"""
options.py

Responsibility: Turn command-line tokens into an immutable `Configuration`.

- Flags are declared with argparse; usage errors exit with status 2 before any side effect.
- An optional YAML file (`--config`) supplies defaults; explicit flags always win.
- The resulting `Configuration` is the single source of truth for every step guard.
"""

from __future__ import annotations

import argparse
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from suspenders import __version__

# Supported databases and the adapter gem each one needs in the Gemfile.
DATABASE_GEMS = {
    "mysql": "mysql2",
    "postgresql": "pg",
    "sqlite3": "sqlite3",
    "oracle": "activerecord-oracle_enhanced-adapter",
    "frontbase": "ruby-frontbase",
    "ibm_db": "ibm_db",
    "sqlserver": "activerecord-sqlserver-adapter",
    "jdbcmysql": "activerecord-jdbcmysql-adapter",
    "jdbcsqlite3": "activerecord-jdbcsqlite3-adapter",
    "jdbcpostgresql": "activerecord-jdbcpostgresql-adapter",
    "jdbc": "activerecord-jdbc-adapter",
}

DATABASES = tuple(DATABASE_GEMS)

_FALSY = ("", "0", "false", "no")


class OptionsError(ValueError):
    pass


@dataclass(frozen=True)
class Configuration:
    """Resolved options for one generator run."""

    app_name: str
    database: str = "postgresql"
    heroku: bool = False
    heroku_flags: str = ""
    github: str | None = None
    path: str | None = None
    skip_test: bool = True
    skip_system_test: bool = True
    skip_turbolinks: bool = True
    skip_git: bool = False
    template: str | None = None
    testing: bool = False

    @property
    def app_class(self) -> str:
        return "".join(part[:1].upper() + part[1:] for part in re.split(r"[_\-]+", self.app_name) if part)

    @property
    def heroku_app_name(self) -> str:
        return self.app_name.replace("_", "-")

    def heroku_app_name_for(self, environment: str) -> str:
        return f"{self.heroku_app_name}-{environment}"

    @classmethod
    def from_namespace(cls, ns: argparse.Namespace, environ: Mapping[str, str] | None = None) -> Configuration:
        env = environ or {}
        return cls(
            app_name=app_name_from_path(ns.app_path),
            database=ns.database,
            heroku=bool(ns.heroku),
            heroku_flags=ns.heroku_flags or "",
            github=ns.github or None,
            path=ns.path or None,
            skip_test=bool(ns.skip_test),
            skip_system_test=bool(ns.skip_system_test),
            skip_turbolinks=bool(ns.skip_turbolinks),
            skip_git=bool(ns.skip_git),
            template=ns.template or None,
            testing=str(env.get("TESTING", "")).strip().lower() not in _FALSY,
        )


def app_name_from_path(app_path: str | Path) -> str:
    name = Path(app_path).resolve().name
    return re.sub(r"[. ]", "_", name.replace("\\", ""))


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="suspenders",
        usage="suspenders APP_PATH [options]",
        description="Generate a Rails app with thoughtbot's defaults",
    )
    p.add_argument("app_path", help="Directory to create the application in")

    p.add_argument(
        "-d",
        "--database",
        default="postgresql",
        choices=DATABASES,
        metavar="DATABASE",
        help=f"Configure for selected database (options: {'/'.join(DATABASES)})",
    )
    p.add_argument("-H", "--heroku", action="store_true", default=False, help="Create staging and production Heroku apps")
    p.add_argument("--heroku-flags", default="", help="Set extra Heroku flags (use --heroku-flags=\"...\")")
    p.add_argument("--github", default=None, help="Create Github repository and add remote origin pointed to repo")
    p.add_argument("--path", default=None, help="Path to a suspenders checkout")
    p.add_argument("-m", "--template", default=None, help="Path to an application template (passed to bin/rails app:template)")

    p.add_argument("--skip-test", dest="skip_test", action="store_true", default=True, help="Skip Test Unit (default)")
    p.add_argument("--no-skip-test", dest="skip_test", action="store_false", help="Keep Test Unit")
    p.add_argument(
        "--skip-system-test", dest="skip_system_test", action="store_true", default=True, help="Skip system test files (default)"
    )
    p.add_argument("--no-skip-system-test", dest="skip_system_test", action="store_false", help="Keep system test files")
    p.add_argument(
        "--skip-turbolinks", dest="skip_turbolinks", action="store_true", default=True, help="Skip turbolinks gem (default)"
    )
    p.add_argument("--no-skip-turbolinks", dest="skip_turbolinks", action="store_false", help="Keep turbolinks gem")
    p.add_argument("--skip-git", action="store_true", default=False, help="Skip .gitignore file and git init")

    p.add_argument("--config", default=None, help="YAML file with default option values")
    p.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--quiet", action="store_true", help="Only log errors")
    p.add_argument("-v", "--version", action="version", version=f"suspenders {__version__}", help="Show Suspenders version number and quit")
    return p


# Options that may be given defaults from the YAML file, with the type each value must have.
_CONFIGURABLE: dict[str, type] = {
    "database": str,
    "heroku": bool,
    "heroku_flags": str,
    "github": str,
    "path": str,
    "template": str,
    "skip_test": bool,
    "skip_system_test": bool,
    "skip_turbolinks": bool,
    "skip_git": bool,
}


def load_defaults(config_path: str | Path) -> dict[str, Any]:
    """
    Load option defaults from a YAML mapping such as:

        database: mysql
        heroku-flags: --region eu
    """
    path = Path(config_path)
    if not path.is_file():
        raise OptionsError(f"Config file does not exist: {path}")
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise OptionsError(f"Config file must contain a mapping at the top level: {path}")

    out: dict[str, Any] = {}
    for raw_key, value in data.items():
        key = str(raw_key).strip().replace("-", "_")
        if key not in _CONFIGURABLE:
            raise OptionsError(f"Unknown option in {path}: {raw_key}")
        expected = _CONFIGURABLE[key]
        if not isinstance(value, expected):
            raise OptionsError(
                f"Invalid value for {raw_key} in {path}: expected {expected.__name__}, got {value!r}"
            )
        out[key] = value
    if "database" in out and out["database"] not in DATABASES:
        raise OptionsError(f"Invalid database in {path}: {out['database']}")
    return out


def parse_args(argv: Sequence[str] | None = None, parser: argparse.ArgumentParser | None = None) -> argparse.Namespace:
    """
    Parse argv, applying YAML defaults first when `--config` is present.

    Exits with status 2 (argparse usage error) on bad input.
    """
    parser = parser or build_parser()
    pre = argparse.ArgumentParser(add_help=False)
    pre.add_argument("--config", default=None)
    known, _rest = pre.parse_known_args(argv)

    if known.config:
        try:
            parser.set_defaults(**load_defaults(known.config))
        except OptionsError as e:
            parser.error(str(e))

    return parser.parse_args(argv)


def log_level(ns: argparse.Namespace, default: str) -> str:
    if ns.debug:
        return "DEBUG"
    if ns.verbose:
        return "INFO"
    if ns.quiet:
        return "ERROR"
    return default
