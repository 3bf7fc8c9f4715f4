"""Runtime settings for the dbbox sandbox dispatcher."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml

from dbsandbox import __version__
from dbsandbox.domain.errors import ConfigError

CONFIG_FILENAME = "config.yaml"
DEFAULT_SANDBOX = "sandbox"
DEFAULT_DB_USER = "dbbox"
DEFAULT_SUPERUSER = "postgres"
DEFAULT_DATABASE = "dbbox"
DEFAULT_PG_VERSION = "16"
DEFAULT_PG_BIN_TEMPLATE = "/usr/lib/postgresql/{version}/bin"
DEFAULT_RUNNER = "lein"
DEFAULT_OPEN_PROVISIONER = "ext/bin/sandbox-init"
DEFAULT_ENTERPRISE_PROVISIONER = "ext/bin/pe-sandbox-init"

# Keys accepted in config.yaml; everything else is rejected.
_CONFIGURABLE = (
    "sandbox_root",
    "default_sandbox",
    "db_user",
    "superuser",
    "database",
    "pg_version",
    "pg_bin_template",
    "runner",
    "open_provisioner",
    "enterprise_provisioner",
)


@dataclass(frozen=True)
class RuntimeSettings:
    home_dir: Path
    sandbox_root: Path
    log_dir: Path
    default_sandbox: str = DEFAULT_SANDBOX
    db_user: str = DEFAULT_DB_USER
    superuser: str = DEFAULT_SUPERUSER
    database: str = DEFAULT_DATABASE
    pg_version: str = DEFAULT_PG_VERSION
    pg_bin_template: str = DEFAULT_PG_BIN_TEMPLATE
    runner: str = DEFAULT_RUNNER
    open_provisioner: str = DEFAULT_OPEN_PROVISIONER
    enterprise_provisioner: str = DEFAULT_ENTERPRISE_PROVISIONER
    cli_version: str = __version__

    @property
    def config_file(self) -> Path:
        return self.home_dir / CONFIG_FILENAME

    def pg_bin_dir(self, version: str | None = None) -> Path:
        return Path(self.pg_bin_template.format(version=version or self.pg_version))


def _default_home_dir() -> Path:
    override = os.environ.get("DBBOX_HOME")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".dbbox"


def _read_overrides(path: Path, home_dir: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping, got {type(data).__name__}")
    unknown = sorted(set(data) - set(_CONFIGURABLE))
    if unknown:
        raise ConfigError(f"Unknown settings in {path}: {', '.join(map(str, unknown))}")
    overrides: dict[str, Any] = {}
    for key, value in data.items():
        if value is None:
            continue
        if key == "sandbox_root":
            root = Path(str(value)).expanduser()
            overrides[key] = root if root.is_absolute() else home_dir / root
        else:
            overrides[key] = str(value)
    return overrides


def load_settings(home_dir: Path | None = None) -> RuntimeSettings:
    base = home_dir or _default_home_dir()
    settings = RuntimeSettings(
        home_dir=base,
        sandbox_root=base / "sandboxes",
        log_dir=base / "logs",
    )
    overrides = _read_overrides(settings.config_file, base)
    known = {item.name for item in fields(RuntimeSettings)}
    return replace(settings, **{key: value for key, value in overrides.items() if key in known})


__all__ = ["RuntimeSettings", "load_settings", "CONFIG_FILENAME"]
