"""Value objects describing a named sandbox under the sandbox root."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict

from dbsandbox.domain.errors import ParseError
from dbsandbox.domain.project import ProjectVariant

SANDBOX_USER_ENV = "PGUSER"
SANDBOX_PATH_ENV = "DBBOX_SANDBOX"

PG_DATA_DIRNAME = "pg"
PG_LOG_FILENAME = "pg.log"
PG_PORT_FILENAME = "pg-port"
PE_PORT_FILENAME = "pe-port"
PE_SSL_PORT_FILENAME = "pe-port-ssl"
OPEN_CONFIG_DIRNAME = "conf.d"
ENTERPRISE_CONFIG_DIRNAME = "pe-conf.d"
OPEN_CONFIG_FILENAME = "config.ini"
ENTERPRISE_CONFIG_FILENAME = "pe.ini"


@dataclass(frozen=True)
class SandboxContext:
    """Identity of one sandbox; derived paths never touch the filesystem."""

    name: str
    root_path: Path
    db_user: str

    @property
    def full_path(self) -> Path:
        return self.root_path / self.name

    @property
    def pg_data(self) -> Path:
        return self.full_path / PG_DATA_DIRNAME

    @property
    def pg_log(self) -> Path:
        return self.full_path / PG_LOG_FILENAME

    @property
    def pg_port_file(self) -> Path:
        return self.full_path / PG_PORT_FILENAME

    @property
    def pe_port_file(self) -> Path:
        return self.full_path / PE_PORT_FILENAME

    @property
    def pe_ssl_port_file(self) -> Path:
        return self.full_path / PE_SSL_PORT_FILENAME

    @property
    def ssl_dir(self) -> Path:
        return self.full_path / "ssl"

    @property
    def enterprise_config(self) -> Path:
        return self.config_dir(ProjectVariant.ENTERPRISE) / ENTERPRISE_CONFIG_FILENAME

    def config_dir(self, variant: ProjectVariant) -> Path:
        if variant is ProjectVariant.ENTERPRISE:
            return self.full_path / ENTERPRISE_CONFIG_DIRNAME
        return self.full_path / OPEN_CONFIG_DIRNAME

    def config_file(self, variant: ProjectVariant) -> Path:
        if variant is ProjectVariant.ENTERPRISE:
            return self.enterprise_config
        return self.config_dir(variant) / OPEN_CONFIG_FILENAME

    def exported_env(self) -> Dict[str, str]:
        return {
            SANDBOX_USER_ENV: self.db_user,
            SANDBOX_PATH_ENV: str(self.full_path),
        }


def resolve_sandbox(name: str, root: Path, db_user: str) -> SandboxContext:
    if not name or name in {".", ".."} or "/" in name or "\\" in name:
        raise ParseError(f"invalid sandbox name '{name}'")
    return SandboxContext(name=name, root_path=root, db_user=db_user)


__all__ = ["SandboxContext", "resolve_sandbox", "SANDBOX_USER_ENV", "SANDBOX_PATH_ENV"]
