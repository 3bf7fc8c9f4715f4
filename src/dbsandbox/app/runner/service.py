"""Subcommands that hand off to the build/test runner (lein by default)."""

from __future__ import annotations

from pathlib import Path
from typing import List

import yaml

from dbsandbox.app.context import CommandContext, read_port_file
from dbsandbox.domain.project import ProjectVariant

TEST_SELECTOR = ":only"
INTEGRATION_SELECTOR = ":integration"
BENCHMARK_CONFIG_FILENAME = "benchmark.yaml"


class RunnerService:
    def __init__(self, context: CommandContext) -> None:
        self.ctx = context

    @property
    def runner(self) -> str:
        return self.ctx.settings.runner

    def run(self) -> int:
        variant = self.ctx.detector.require_known()
        sandbox = self.ctx.sandbox
        if variant is ProjectVariant.ENTERPRISE and sandbox.pe_port_file.exists():
            self.ctx.output.info(f"service will listen on http://localhost:{read_port_file(sandbox.pe_port_file)}")
        args = ["run", "services", "--config", str(sandbox.config_dir(variant)), *self.ctx.invocation.trailing_args]
        return self._delegate(args)

    def test(self) -> int:
        self.ctx.detector.require_known()
        return self._delegate(["test", *self._selection(), *self.ctx.invocation.trailing_args])

    def integration_test(self) -> int:
        self.ctx.detector.require_open()
        args = ["test", INTEGRATION_SELECTOR, *self._selection(), *self.ctx.invocation.trailing_args]
        return self._delegate(args)

    def repl(self) -> int:
        self.ctx.detector.require_known()
        return self._delegate(["repl", *self.ctx.invocation.trailing_args])

    def benchmark(self) -> int:
        variant = self.ctx.detector.require_known()
        if variant is ProjectVariant.ENTERPRISE:
            config = self.write_benchmark_config()
            args = ["run", "benchmark", "--benchmark-config", str(config)]
        else:
            args = [
                "run", "benchmark",
                "--config", str(self.ctx.sandbox.config_dir(variant)),
                "--pgport", str(self.ctx.pg_port()),
            ]
        return self._delegate([*args, *self.ctx.invocation.trailing_args])

    def write_benchmark_config(self) -> Path:
        """Render the enterprise benchmark config from the ports init issued."""
        sandbox = self.ctx.sandbox
        ssl_port = read_port_file(sandbox.pe_ssl_port_file)
        payload = {
            "config": str(sandbox.config_dir(ProjectVariant.ENTERPRISE)),
            "url": f"https://localhost:{ssl_port}",
            "ssl": {
                "cert": str(sandbox.ssl_dir / "certs" / "localhost.pem"),
                "key": str(sandbox.ssl_dir / "private_keys" / "localhost.pem"),
                "ca-cert": str(sandbox.ssl_dir / "certs" / "ca.pem"),
            },
        }
        target = sandbox.full_path / BENCHMARK_CONFIG_FILENAME
        target.write_text(yaml.safe_dump(payload, sort_keys=True), encoding="utf-8")
        return target

    def _selection(self) -> List[str]:
        selected = self.ctx.invocation.test_filter
        if not selected:
            return []
        return [TEST_SELECTOR, *selected]

    def _delegate(self, args: List[str]) -> int:
        return self.ctx.run(self.ctx.command(self.runner, args))


__all__ = ["RunnerService", "TEST_SELECTOR", "INTEGRATION_SELECTOR"]
