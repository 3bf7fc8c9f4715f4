from __future__ import annotations

import pytest

from dbsandbox.app.dispatch import HANDLERS, resolve_subcommand
from dbsandbox.domain.errors import ParseError
from dbsandbox.domain.invocation import Subcommand

DOCUMENTED = {
    "benchmark", "clean", "edit", "integration-test", "init", "init-sync", "new-db", "pe-db",
    "pgenv", "pglog", "psql", "repl", "run", "start", "stop", "test", "ext",
}


def test_every_subcommand_has_a_handler() -> None:
    assert set(HANDLERS) == set(Subcommand)
    assert {item.value for item in Subcommand} == DOCUMENTED


def test_resolve_known_and_unknown() -> None:
    assert resolve_subcommand("init-sync") is Subcommand.INIT_SYNC
    with pytest.raises(ParseError, match="unknown subcommand: nope"):
        resolve_subcommand("nope")


def test_from_token_lookup() -> None:
    assert Subcommand.from_token("pe-db") is Subcommand.PE_DB
    assert Subcommand.from_token("PE-DB") is None
    assert Subcommand.from_token(None) is None
