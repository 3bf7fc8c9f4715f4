"""Maps each subcommand onto the executor that implements it."""

from __future__ import annotations

from typing import Callable, Dict

from dbsandbox.app.context import CommandContext
from dbsandbox.app.database import DatabaseService
from dbsandbox.app.runner import RunnerService
from dbsandbox.app.sandbox import SandboxService
from dbsandbox.domain.errors import ParseError
from dbsandbox.domain.invocation import Subcommand

Handler = Callable[[CommandContext], int]

HANDLERS: Dict[Subcommand, Handler] = {
    Subcommand.BENCHMARK: lambda ctx: RunnerService(ctx).benchmark(),
    Subcommand.CLEAN: lambda ctx: SandboxService(ctx).clean(),
    Subcommand.EDIT: lambda ctx: SandboxService(ctx).edit(),
    Subcommand.EXT: lambda ctx: DatabaseService(ctx).ext(),
    Subcommand.INIT: lambda ctx: SandboxService(ctx).init(),
    Subcommand.INIT_SYNC: lambda ctx: SandboxService(ctx).init_sync(),
    Subcommand.INTEGRATION_TEST: lambda ctx: RunnerService(ctx).integration_test(),
    Subcommand.NEW_DB: lambda ctx: DatabaseService(ctx).new_db(),
    Subcommand.PE_DB: lambda ctx: DatabaseService(ctx).pe_db(),
    Subcommand.PGENV: lambda ctx: DatabaseService(ctx).pgenv(),
    Subcommand.PGLOG: lambda ctx: SandboxService(ctx).pglog(),
    Subcommand.PSQL: lambda ctx: DatabaseService(ctx).psql(),
    Subcommand.REPL: lambda ctx: RunnerService(ctx).repl(),
    Subcommand.RUN: lambda ctx: RunnerService(ctx).run(),
    Subcommand.START: lambda ctx: SandboxService(ctx).start(),
    Subcommand.STOP: lambda ctx: SandboxService(ctx).stop(),
    Subcommand.TEST: lambda ctx: RunnerService(ctx).test(),
}

_missing = set(Subcommand) - set(HANDLERS)
if _missing:  # pragma: no cover - guarded by tests
    raise RuntimeError(f"Subcommands without handlers: {sorted(item.value for item in _missing)}")


def resolve_subcommand(token: str | None) -> Subcommand:
    subcommand = Subcommand.from_token(token)
    if subcommand is None:
        raise ParseError(f"unknown subcommand: {token}")
    return subcommand


def dispatch(context: CommandContext) -> int:
    subcommand = resolve_subcommand(context.invocation.subcommand)
    context.output.debug(f"dispatching {subcommand.value} in sandbox {context.sandbox.full_path}")
    return HANDLERS[subcommand](context)


__all__ = ["HANDLERS", "dispatch", "resolve_subcommand"]
