"""Parsed command-line invocation and the closed set of subcommands."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Tuple


class Subcommand(str, Enum):
    BENCHMARK = "benchmark"
    CLEAN = "clean"
    EDIT = "edit"
    EXT = "ext"
    INIT = "init"
    INIT_SYNC = "init-sync"
    INTEGRATION_TEST = "integration-test"
    NEW_DB = "new-db"
    PE_DB = "pe-db"
    PGENV = "pgenv"
    PGLOG = "pglog"
    PSQL = "psql"
    REPL = "repl"
    RUN = "run"
    START = "start"
    STOP = "stop"
    TEST = "test"

    @classmethod
    def from_token(cls, token: str | None) -> Optional["Subcommand"]:
        return cls._value2member_map_.get(token)


# Subcommands that accept a ``--only`` test selection.
FILTERABLE = frozenset({Subcommand.TEST.value, Subcommand.INTEGRATION_TEST.value})


@dataclass(frozen=True)
class Invocation:
    sandbox_name: str
    subcommand: str | None = None
    nice_wrapper: Tuple[str, ...] = ()
    port: int | None = None
    pg_version: str | None = None
    verbose: bool = False
    test_filter: Tuple[str, ...] | None = None
    trailing_args: Tuple[str, ...] = ()

    def with_sandbox(self, name: str, *, trailing_args: Tuple[str, ...] | None = None) -> "Invocation":
        """Copy used when one subcommand drives another against a different sandbox."""
        return replace(
            self,
            sandbox_name=name,
            port=None,
            trailing_args=self.trailing_args if trailing_args is None else trailing_args,
        )


__all__ = ["Invocation", "Subcommand", "FILTERABLE"]
