"""Database-level subcommands run through psql: new-db, pe-db, psql, pgenv, ext."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

from dbsandbox.app.context import CommandContext
from dbsandbox.domain.errors import ParseError

NEW_DB_EXTENSIONS = ("pg_trgm", "pgcrypto", "btree_gist")
# Databases created by pe-db, each with the extensions it needs.
PE_AUX_DATABASES = (
    ("dbbox_sync", ("pgcrypto", "citext")),
    ("dbbox_activity", ("pg_trgm", "citext")),
)
PE_PRIMARY_EXTENSIONS = ("pg_trgm", "pgcrypto")


@dataclass(frozen=True)
class SqlStep:
    database: str
    statement: str

    @property
    def label(self) -> str:
        return f"{self.database}: {self.statement}"


@dataclass(frozen=True)
class StepResult:
    step: SqlStep
    exit_code: int

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


def _extension_steps(database: str, extensions: Sequence[str]) -> List[SqlStep]:
    return [SqlStep(database, f"CREATE EXTENSION IF NOT EXISTS {name}") for name in extensions]


def new_db_steps(database: str, owner: str) -> List[SqlStep]:
    return [
        SqlStep("postgres", f'DROP DATABASE IF EXISTS "{database}"'),
        SqlStep("postgres", f'CREATE DATABASE "{database}" OWNER "{owner}"'),
        *_extension_steps(database, NEW_DB_EXTENSIONS),
    ]


def pe_db_steps(primary: str, owner: str) -> List[SqlStep]:
    steps: List[SqlStep] = []
    for name, _ in PE_AUX_DATABASES:
        steps.append(SqlStep("postgres", f'CREATE DATABASE "{name}" OWNER "{owner}"'))
    steps.extend(_extension_steps(primary, PE_PRIMARY_EXTENSIONS))
    for name, extensions in PE_AUX_DATABASES:
        steps.extend(_extension_steps(name, extensions))
    return steps


class DatabaseService:
    """Runs SQL and arbitrary commands against a sandbox's postgres."""

    def __init__(self, context: CommandContext) -> None:
        self.ctx = context

    def new_db(self) -> int:
        steps = new_db_steps(self.ctx.settings.database, self.ctx.sandbox.db_user)
        return self._summarise("new-db", self.run_steps(steps))

    def pe_db(self) -> int:
        steps = pe_db_steps(self.ctx.settings.database, self.ctx.sandbox.db_user)
        return self._summarise("pe-db", self.run_steps(steps))

    def psql(self) -> int:
        env = self.ctx.env(port=self.ctx.pg_port())
        args = ["-d", self.ctx.settings.database, *self.ctx.invocation.trailing_args]
        return self.ctx.run(self.ctx.command(self.ctx.pg_tool("psql"), args, env=env))

    def pgenv(self) -> int:
        command = self.ctx.invocation.trailing_args
        if not command:
            raise ParseError("pgenv needs a command after '--'")
        env = self.ctx.env(port=self._known_port())
        return self.ctx.run(self.ctx.command(command[0], command[1:], env=env, wrap=False))

    def ext(self) -> int:
        trailing = self.ctx.invocation.trailing_args
        if not trailing:
            raise ParseError("ext needs a script name after '--'")
        script = self.ctx.cwd / "ext" / "bin" / trailing[0]
        env = self.ctx.env(port=self._known_port())
        return self.ctx.run(self.ctx.command(str(script), trailing[1:], env=env))

    def run_steps(self, steps: Sequence[SqlStep]) -> Tuple[StepResult, ...]:
        """Run every step as the superuser, continuing past failures.

        Steps are independent; a failing DROP or CREATE does not stop the
        extension statements that follow.
        """
        port = self.ctx.pg_port()
        env = self.ctx.env(user=self.ctx.settings.superuser, port=port)
        results: List[StepResult] = []
        for step in steps:
            spec = self.ctx.command(
                self.ctx.pg_tool("psql"),
                ["-d", step.database, "-v", "ON_ERROR_STOP=1", "-c", step.statement],
                env=env,
            )
            code = self.ctx.run(spec)
            if code != 0:
                self.ctx.output.warn(f"step failed ({code}): {step.label}")
            results.append(StepResult(step, code))
        return tuple(results)

    def _summarise(self, name: str, results: Sequence[StepResult]) -> int:
        failed = [result for result in results if not result.ok]
        if not failed:
            self.ctx.output.info(f"{name}: {len(results)} statements applied")
            return 0
        self.ctx.output.error(f"{name}: {len(failed)} of {len(results)} statements failed")
        return failed[0].exit_code

    def _known_port(self) -> int | None:
        if self.ctx.invocation.port is not None:
            return self.ctx.invocation.port
        if self.ctx.sandbox.pg_port_file.exists():
            return self.ctx.pg_port()
        return None


__all__ = ["DatabaseService", "SqlStep", "StepResult", "new_db_steps", "pe_db_steps"]
