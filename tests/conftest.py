from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Callable, Iterable, List, Sequence

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
SANDBOX_HOME = ROOT / ".test_place" / "global-home"
os.environ.setdefault("DBBOX_HOME", str(SANDBOX_HOME))
os.environ.setdefault("DBBOX_TELEMETRY", "0")
PYTEST_TEMP = Path(os.environ.get("PYTEST_DEBUG_TEMPROOT", "/tmp/dbsandbox-pytest")).resolve()
os.environ.setdefault("PYTEST_DEBUG_TEMPROOT", str(PYTEST_TEMP))
PYTEST_TEMP.mkdir(parents=True, exist_ok=True)
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from dbsandbox.app.context import CommandContext  # noqa: E402
from dbsandbox.app.process import ExternalCommandSpec, ProcessLauncher  # noqa: E402
from dbsandbox.cli.parser import parse_args  # noqa: E402
from dbsandbox.domain.project import ENTERPRISE_MARKER, OPEN_MARKER  # noqa: E402
from dbsandbox.settings import RuntimeSettings  # noqa: E402
from dbsandbox.utils.output import OutputChannel  # noqa: E402


def _flag(args: Sequence[str], name: str) -> str | None:
    if name in args:
        return args[args.index(name) + 1]
    return None


def provisioner_responder(spec: ExternalCommandSpec) -> int:
    """Mimics the provisioning scripts: lays out the sandbox on disk."""
    if not spec.executable.endswith("sandbox-init"):
        return 0
    sandbox = Path(_flag(spec.args, "--sandbox") or "")
    (sandbox / "pg").mkdir(parents=True, exist_ok=True)
    (sandbox / "conf.d").mkdir(parents=True, exist_ok=True)
    (sandbox / "conf.d" / "config.ini").write_text("[global]\n", encoding="utf-8")
    http_port = _flag(spec.args, "--http-port")
    if http_port is not None:
        (sandbox / "pe-conf.d").mkdir(parents=True, exist_ok=True)
        (sandbox / "pe-conf.d" / "pe.ini").write_text("[global]\n", encoding="utf-8")
        (sandbox / "pe-port").write_text(f"{http_port}\n", encoding="utf-8")
        (sandbox / "pe-port-ssl").write_text(f"{_flag(spec.args, '--https-port')}\n", encoding="utf-8")
    return 0


class FakeLauncher(ProcessLauncher):
    """Records launches instead of executing them."""

    def __init__(
        self,
        responder: Callable[[ExternalCommandSpec], int] | None = None,
        ports: Iterable[int] = range(41000, 42000),
    ) -> None:
        self.responder = responder or (lambda spec: 0)
        self.calls: List[ExternalCommandSpec] = []
        self.spawned: List[tuple[ExternalCommandSpec, Path]] = []
        self._ports = iter(ports)

    def run(self, spec: ExternalCommandSpec) -> int:
        self.calls.append(spec)
        return self.responder(spec)

    def spawn(self, spec: ExternalCommandSpec, log_path: Path):
        self.spawned.append((spec, log_path))
        return None

    def allocate_port(self, host: str = "127.0.0.1") -> int:
        return next(self._ports)

    def executables(self) -> List[str]:
        return [Path(call.executable).name for call in self.calls]


@pytest.fixture()
def settings(tmp_path: Path) -> RuntimeSettings:
    home = tmp_path / "home"
    for directory in (home, home / "sandboxes", home / "logs"):
        directory.mkdir(parents=True, exist_ok=True)
    return RuntimeSettings(
        home_dir=home,
        sandbox_root=home / "sandboxes",
        log_dir=home / "logs",
        pg_bin_template=str(tmp_path / "pg" / "{version}" / "bin"),
    )


@pytest.fixture()
def launcher() -> FakeLauncher:
    return FakeLauncher(responder=provisioner_responder)


def _write_project(root: Path, marker: str) -> Path:
    root.mkdir(parents=True, exist_ok=True)
    (root / "project.clj").write_text(f'{marker} "8.1.0-SNAPSHOT"\n  :description "test"\n', encoding="utf-8")
    return root


@pytest.fixture()
def open_project(tmp_path: Path) -> Path:
    return _write_project(tmp_path / "puppetdb", OPEN_MARKER)


@pytest.fixture()
def enterprise_project(tmp_path: Path) -> Path:
    root = _write_project(tmp_path / "pe-puppetdb", ENTERPRISE_MARKER)
    provisioner = root / "ext" / "bin" / "pe-sandbox-init"
    provisioner.parent.mkdir(parents=True, exist_ok=True)
    provisioner.write_text("#!/bin/sh\n", encoding="utf-8")
    return root


@pytest.fixture()
def make_context(settings: RuntimeSettings, launcher: FakeLauncher) -> Callable[..., CommandContext]:
    def factory(argv: Sequence[str], cwd: Path, answers: Sequence[str] = ()) -> CommandContext:
        output = OutputChannel()
        invocation = parse_args(argv, output, default_sandbox=settings.default_sandbox)
        replies = iter(answers)
        return CommandContext.build(
            settings,
            invocation,
            output,
            launcher=launcher,
            cwd=cwd,
            input_fn=lambda prompt: next(replies),
        )

    return factory
