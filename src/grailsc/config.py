"""Compiler settings.

Settings come from an optional grailsc.ini in the project directory,
overridden by command-line values:

    [grailsc]
    srcdirs = src/groovy src/java grails-app/domain
    destdir = target/classes
    encoding = UTF-8
    groovyc = groovyc -cp lib/*
    plugin_dirs = plugins/acme-1.0
    verbose = false
    list_files = false
    fail_on_error = true

Relative paths resolve against the project directory. The GRAILSC_GROOVYC
environment variable overrides the compiler command from the file.
"""

from __future__ import annotations

import configparser
import logging
import os
import shlex
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Optional

from grailsc.compiler.backend import DEFAULT_GROOVYC_COMMAND
from grailsc.compiler.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "grailsc.ini"
CONFIG_SECTION = "grailsc"
GROOVYC_ENV_VAR = "GRAILSC_GROOVYC"

DEFAULT_SRCDIRS = ("src/groovy", "src/java", "grails-app")
DEFAULT_DESTDIR = "target/classes"


@dataclass(frozen=True)
class CompilerSettings:
    """Resolved settings for one compile.

    Attributes:
        project_dir: Application root
        src_dirs: Source roots to scan, in scan order
        dest_dir: Destination directory for compiled classes
        encoding: Source file encoding
        groovyc: Compiler command and leading arguments
        plugin_dirs: Plugin roots contributing artefact resources
        verbose: Verbose console output
        list_files: List each stale file while scanning
        fail_on_error: Treat compiler diagnostics as a failed build
    """

    project_dir: Path
    src_dirs: tuple[Path, ...]
    dest_dir: Path
    encoding: str = "UTF-8"
    groovyc: tuple[str, ...] = DEFAULT_GROOVYC_COMMAND
    plugin_dirs: tuple[Path, ...] = field(default_factory=tuple)
    verbose: bool = False
    list_files: bool = False
    fail_on_error: bool = True

    def validate(self) -> None:
        """Check that the settings describe a compilable project.

        Raises:
            ConfigError: If no source directory exists or the destination is a file
        """
        if not any(d.is_dir() for d in self.src_dirs):
            raise ConfigError(f"No source directory found among: {', '.join(str(d) for d in self.src_dirs)}")
        if self.dest_dir.exists() and not self.dest_dir.is_dir():
            raise ConfigError(f"Destination is not a directory: {self.dest_dir}")
        if not self.groovyc:
            raise ConfigError("Compiler command is empty")


def _resolve(project_dir: Path, value: str) -> Path:
    path = Path(value)
    return path if path.is_absolute() else project_dir / path


def _read_config_file(config_file: Path) -> dict[str, str]:
    parser = configparser.ConfigParser()
    try:
        with open(config_file, "r", encoding="utf-8") as f:
            parser.read_file(f)
    except configparser.Error as e:
        raise ConfigError(f"Invalid config file {config_file}: {e}") from e
    if not parser.has_section(CONFIG_SECTION):
        logger.warning(f"No [{CONFIG_SECTION}] section in {config_file}")
        return {}
    return dict(parser.items(CONFIG_SECTION))


def _parse_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    lowered = str(value).strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ConfigError(f"Invalid boolean for {key}: {value!r}")


def load_settings(project_dir: Path, config_file: Optional[Path] = None, **overrides: Any) -> CompilerSettings:
    """Build CompilerSettings from the project's config file and overrides.

    Args:
        project_dir: Application root
        config_file: Explicit config file (defaults to <project_dir>/grailsc.ini if present)
        **overrides: Values that win over the file; None values are ignored.
            Accepts src_dirs, dest_dir, encoding, groovyc, plugin_dirs,
            verbose, list_files, fail_on_error

    Returns:
        Resolved settings with absolute paths

    Raises:
        ConfigError: If the config file is missing, malformed, or has invalid values
    """
    project_dir = Path(project_dir).absolute()
    if config_file is None:
        default = project_dir / CONFIG_FILENAME
        config_file = default if default.exists() else None
    elif not Path(config_file).exists():
        raise ConfigError(f"Config file not found: {config_file}")

    values: dict[str, Any] = _read_config_file(Path(config_file)) if config_file else {}
    if config_file:
        logger.debug(f"Loaded settings from {config_file}")

    env_groovyc = os.environ.get(GROOVYC_ENV_VAR)
    if env_groovyc:
        values["groovyc"] = env_groovyc

    srcdirs = values.get("srcdirs")
    src_dirs = tuple(_resolve(project_dir, s) for s in (shlex.split(srcdirs) if srcdirs else DEFAULT_SRCDIRS))
    plugin_dirs = tuple(_resolve(project_dir, p) for p in shlex.split(values.get("plugin_dirs", "")))
    groovyc = tuple(shlex.split(values["groovyc"])) if values.get("groovyc") else DEFAULT_GROOVYC_COMMAND

    settings = CompilerSettings(
        project_dir=project_dir,
        src_dirs=src_dirs,
        dest_dir=_resolve(project_dir, values.get("destdir", DEFAULT_DESTDIR)),
        encoding=values.get("encoding", "UTF-8"),
        groovyc=groovyc,
        plugin_dirs=plugin_dirs,
        verbose=_parse_bool("verbose", values.get("verbose", False)),
        list_files=_parse_bool("list_files", values.get("list_files", False)),
        fail_on_error=_parse_bool("fail_on_error", values.get("fail_on_error", True)),
    )
    return apply_overrides(settings, **overrides)


def apply_overrides(settings: CompilerSettings, **overrides: Any) -> CompilerSettings:
    """Return settings with non-None overrides applied (paths resolved, commands split)."""
    changes: dict[str, Any] = {}
    for key, value in overrides.items():
        if value is None:
            continue
        if key in ("src_dirs", "plugin_dirs"):
            value = tuple(_resolve(settings.project_dir, str(v)) for v in value)
            if not value:
                continue
        elif key == "dest_dir":
            value = _resolve(settings.project_dir, str(value))
        elif key == "groovyc" and isinstance(value, str):
            value = tuple(shlex.split(value))
        elif key in ("verbose", "list_files", "fail_on_error"):
            value = _parse_bool(key, value)
        elif key != "encoding":
            raise ConfigError(f"Unknown setting: {key}")
        changes[key] = value
    return replace(settings, **changes) if changes else settings
