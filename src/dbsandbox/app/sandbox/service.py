"""Sandbox lifecycle subcommands: init, init-sync, start, stop, clean, pglog, edit."""

from __future__ import annotations

import os
import shlex
import shutil
from enum import Enum
from pathlib import Path
from typing import List, Sequence

from dbsandbox.app.context import CommandContext, read_port_file
from dbsandbox.app.process import expect_arity
from dbsandbox.domain.errors import DelegatedToolError, WorkingDirectoryMismatchError

ENTERPRISE_CHOICE = "pe"
OPEN_CHOICE = "foss"
SYNC_SANDBOXES = ("sync-1", "sync-2")
SYNC_INTERVAL = "120s"


class InitOutcome(str, Enum):
    PROVISIONED = "provisioned"
    DECLINED = "declined"
    FAILED = "failed"


class SandboxService:
    """Creates, starts, stops and tears down named sandboxes."""

    def __init__(self, context: CommandContext) -> None:
        self.ctx = context

    # ------------------------------------------------------------------
    # Subcommands
    # ------------------------------------------------------------------

    def init(self) -> int:
        outcome, code = self._init_sandbox()
        return code if outcome is InitOutcome.FAILED else 0

    def init_sync(self) -> int:
        contexts: List[CommandContext] = []
        for name in SYNC_SANDBOXES:
            sub = self.ctx.for_sandbox(name, trailing_args=(ENTERPRISE_CHOICE,))
            outcome, code = SandboxService(sub)._init_sandbox()
            if outcome is InitOutcome.FAILED:
                return code
            if outcome is InitOutcome.DECLINED:
                self.ctx.output.info("init-sync aborted; sync configuration left unchanged")
                return 0
            contexts.append(sub)
        self._link_sync_pair(contexts)
        return 0

    def start(self) -> int:
        sandbox = self.ctx.sandbox
        spec = self.ctx.command(
            self.ctx.pg_tool("pg_ctl"),
            ["-D", str(sandbox.pg_data), "-l", str(sandbox.pg_log), "start"],
        )
        return self.ctx.run(spec)

    def stop(self) -> int:
        spec = self.ctx.command(self.ctx.pg_tool("pg_ctl"), ["-D", str(self.ctx.sandbox.pg_data), "stop"])
        return self.ctx.run(spec)

    def clean(self) -> int:
        path = self.ctx.sandbox.full_path
        if not path.exists():
            self.ctx.output.info(f"sandbox {path} does not exist; nothing to clean")
            return 0
        self._stop_quietly()
        shutil.rmtree(path)
        self.ctx.output.info(f"removed sandbox {path}")
        return 0

    def pglog(self) -> int:
        pager, *pager_args = shlex.split(os.environ.get("PAGER", "")) or ["less"]
        args = [*pager_args, *self.ctx.invocation.trailing_args, str(self.ctx.sandbox.pg_log)]
        return self.ctx.run(self.ctx.command(pager, args, wrap=False))

    def edit(self) -> int:
        variant = self.ctx.detector.require_known()
        editor, *editor_args = shlex.split(os.environ.get("EDITOR", "")) or ["vi"]
        target = self.ctx.sandbox.config_file(variant)
        return self.ctx.run(self.ctx.command(editor, [*editor_args, str(target)], wrap=False))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _init_sandbox(self) -> tuple[InitOutcome, int]:
        ctx = self.ctx
        sandbox = ctx.sandbox
        if sandbox.full_path.exists():
            try:
                answer = ctx.input_fn(f"Sandbox {sandbox.full_path} exists; replace it? [y/N] ")
            except EOFError:
                answer = ""
            if not answer.strip().lower().startswith("y"):
                ctx.output.info(f"leaving {sandbox.full_path} untouched")
                return InitOutcome.DECLINED, 0
            self._stop_quietly()
            shutil.rmtree(sandbox.full_path)

        enterprise = self._wants_enterprise()
        provisioner = ctx.settings.enterprise_provisioner if enterprise else ctx.settings.open_provisioner
        pg_port = ctx.invocation.port if ctx.invocation.port is not None else ctx.launcher.allocate_port()
        args = [
            "--sandbox", str(sandbox.full_path),
            "--pgbin", str(ctx.pg_bin_dir),
            "--pgport", str(pg_port),
        ]
        if enterprise:
            args += [
                "--http-port", str(ctx.launcher.allocate_port()),
                "--https-port", str(ctx.launcher.allocate_port()),
            ]
        ctx.output.info(
            f"provisioning {'enterprise' if enterprise else 'open'} sandbox {sandbox.full_path} (pg port {pg_port})"
        )
        sandbox.root_path.mkdir(parents=True, exist_ok=True)
        code = ctx.run(ctx.command(str(ctx.cwd / provisioner), args, wrap=False))
        if code != 0:
            ctx.output.error(f"provisioning {sandbox.full_path} failed with status {code}")
            return InitOutcome.FAILED, code

        sandbox.full_path.mkdir(parents=True, exist_ok=True)
        sandbox.pg_port_file.write_text(f"{pg_port}\n", encoding="utf-8")
        postgres = ctx.command(
            ctx.pg_tool("postgres"),
            ["-D", str(sandbox.pg_data), "-p", str(pg_port)],
            wrap=False,
        )
        ctx.launcher.spawn(postgres, sandbox.pg_log)
        ctx.output.info(f"postgres starting in the background; log: {sandbox.pg_log}")
        return InitOutcome.PROVISIONED, 0

    def _wants_enterprise(self) -> bool:
        trailing = self.ctx.invocation.trailing_args
        choice = trailing[0] if trailing else None
        if choice == ENTERPRISE_CHOICE:
            return True
        if choice == OPEN_CHOICE:
            return False
        return (self.ctx.cwd / self.ctx.settings.enterprise_provisioner).exists()

    def _stop_quietly(self) -> None:
        try:
            code = self.stop()
        except DelegatedToolError as exc:
            self.ctx.output.info(f"could not stop existing instance: {exc}")
            return
        if code != 0:
            self.ctx.output.info(f"no running instance stopped (pg_ctl status {code})")

    def _link_sync_pair(self, contexts: Sequence[CommandContext]) -> None:
        expect_arity("sync pairing", contexts, 2)
        for ctx in contexts:
            if not ctx.sandbox.enterprise_config.exists():
                raise WorkingDirectoryMismatchError(
                    f"{ctx.sandbox.enterprise_config} is missing; was the enterprise provisioner used?"
                )
        ports = [read_port_file(ctx.sandbox.pe_port_file) for ctx in contexts]
        for ctx, remote_port in zip(contexts, reversed(ports)):
            _append_sync_block(ctx.sandbox.enterprise_config, remote_port)
            self.ctx.output.info(f"{ctx.sandbox.name} syncs from http://localhost:{remote_port}")


def _append_sync_block(config: Path, remote_port: int) -> None:
    block = (
        "\n[sync]\n"
        "allow-unsafe-cleartext-sync = true\n"
        f"server_urls = http://localhost:{remote_port}\n"
        f"intervals = {SYNC_INTERVAL}\n"
    )
    with config.open("a", encoding="utf-8") as fh:
        fh.write(block)


__all__ = ["SandboxService", "InitOutcome", "SYNC_SANDBOXES", "SYNC_INTERVAL"]
