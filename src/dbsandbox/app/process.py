"""Process-launch primitive shared by every subcommand executor."""

from __future__ import annotations

import os
import socket
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Sequence, Tuple

from dbsandbox.domain.errors import DelegatedToolError, InternalArgumentError


@dataclass(frozen=True)
class ExternalCommandSpec:
    executable: str
    args: Tuple[str, ...] = ()
    env: Mapping[str, str] = field(default_factory=dict)
    cwd: Path | None = None

    @property
    def argv(self) -> List[str]:
        return [self.executable, *self.args]

    def merged_env(self) -> dict[str, str]:
        env = os.environ.copy()
        env.update(self.env)
        return env


def expect_arity(name: str, args: Sequence[object], count: int) -> None:
    if len(args) != count:
        raise InternalArgumentError(f"{name} expects {count} argument(s), got {len(args)}")


class ProcessLauncher:
    """Runs delegated executables; replaced by a recording fake in tests."""

    def run(self, spec: ExternalCommandSpec) -> int:
        try:
            result = subprocess.run(spec.argv, cwd=spec.cwd, env=spec.merged_env())
        except FileNotFoundError as exc:
            raise DelegatedToolError(f"executable not found: {spec.executable}") from exc
        return result.returncode

    def spawn(self, spec: ExternalCommandSpec, log_path: Path) -> subprocess.Popen:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        with log_path.open("ab") as log:
            try:
                return subprocess.Popen(
                    spec.argv,
                    cwd=spec.cwd,
                    env=spec.merged_env(),
                    stdin=subprocess.DEVNULL,
                    stdout=log,
                    stderr=subprocess.STDOUT,
                    start_new_session=True,
                )
            except FileNotFoundError as exc:
                raise DelegatedToolError(f"executable not found: {spec.executable}") from exc

    def allocate_port(self, host: str = "127.0.0.1") -> int:
        # Another process may grab the port between close() and its use.
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.bind((host, 0))
            return sock.getsockname()[1]


__all__ = ["ExternalCommandSpec", "ProcessLauncher", "expect_arity"]
