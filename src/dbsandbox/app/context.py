"""Immutable execution context handed to every subcommand executor."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable

from dbsandbox.app.process import ExternalCommandSpec, ProcessLauncher
from dbsandbox.domain.errors import SandboxStateError
from dbsandbox.domain.invocation import Invocation
from dbsandbox.domain.project import ProjectDetector
from dbsandbox.domain.sandbox import SANDBOX_USER_ENV, SandboxContext, resolve_sandbox
from dbsandbox.settings import RuntimeSettings
from dbsandbox.utils.output import OutputChannel


@dataclass(frozen=True)
class CommandContext:
    settings: RuntimeSettings
    invocation: Invocation
    sandbox: SandboxContext
    output: OutputChannel
    launcher: ProcessLauncher = field(default_factory=ProcessLauncher)
    cwd: Path = field(default_factory=Path.cwd)
    input_fn: Callable[[str], str] = input

    @classmethod
    def build(
        cls,
        settings: RuntimeSettings,
        invocation: Invocation,
        output: OutputChannel,
        **kwargs,
    ) -> "CommandContext":
        sandbox = resolve_sandbox(invocation.sandbox_name, settings.sandbox_root, settings.db_user)
        return cls(settings=settings, invocation=invocation, sandbox=sandbox, output=output, **kwargs)

    def for_sandbox(self, name: str, *, trailing_args: tuple[str, ...] | None = None) -> "CommandContext":
        invocation = self.invocation.with_sandbox(name, trailing_args=trailing_args)
        sandbox = resolve_sandbox(name, self.settings.sandbox_root, self.settings.db_user)
        return CommandContext(
            settings=self.settings,
            invocation=invocation,
            sandbox=sandbox,
            output=self.output,
            launcher=self.launcher,
            cwd=self.cwd,
            input_fn=self.input_fn,
        )

    @property
    def detector(self) -> ProjectDetector:
        return ProjectDetector(self.cwd)

    @property
    def pg_bin_dir(self) -> Path:
        return self.settings.pg_bin_dir(self.invocation.pg_version)

    def pg_tool(self, name: str) -> str:
        return str(self.pg_bin_dir / name)

    def env(self, *, user: str | None = None, port: int | None = None) -> Dict[str, str]:
        env = self.sandbox.exported_env()
        if user is not None:
            env[SANDBOX_USER_ENV] = user
        search_path = os.environ.get("PATH", "")
        env["PATH"] = os.pathsep.join(filter(None, [str(self.pg_bin_dir), search_path]))
        if port is not None:
            env["PGHOST"] = "localhost"
            env["PGPORT"] = str(port)
        return env

    def command(
        self,
        executable: str,
        args: Iterable[str] = (),
        *,
        env: Dict[str, str] | None = None,
        wrap: bool = True,
    ) -> ExternalCommandSpec:
        argv = [executable, *args]
        if wrap and self.invocation.nice_wrapper:
            argv = [*self.invocation.nice_wrapper, *argv]
        return ExternalCommandSpec(
            executable=argv[0],
            args=tuple(argv[1:]),
            env=self.env() if env is None else env,
            cwd=self.cwd,
        )

    def run(self, spec: ExternalCommandSpec) -> int:
        self.output.debug(f"running: {' '.join(spec.argv)}")
        code = self.launcher.run(spec)
        if code != 0:
            self.output.debug(f"{spec.executable} exited with status {code}")
        return code

    def pg_port(self) -> int:
        if self.invocation.port is not None:
            return self.invocation.port
        return read_port_file(self.sandbox.pg_port_file)


def read_port_file(path: Path) -> int:
    try:
        raw = path.read_text(encoding="utf-8").strip()
    except FileNotFoundError as exc:
        raise SandboxStateError(f"{path} is missing; run 'dbbox init' first") from exc
    try:
        return int(raw)
    except ValueError as exc:
        raise SandboxStateError(f"{path} does not contain a port number: {raw!r}") from exc


__all__ = ["CommandContext", "read_port_file"]
