from __future__ import annotations

from pathlib import Path

import pytest

from dbsandbox.app.database import DatabaseService
from dbsandbox.app.database.service import new_db_steps, pe_db_steps
from dbsandbox.domain.errors import ParseError, SandboxStateError


def _statements(launcher) -> list[tuple[str, str]]:
    pairs = []
    for call in launcher.calls:
        args = list(call.args)
        pairs.append((args[args.index("-d") + 1], args[args.index("-c") + 1]))
    return pairs


def _with_port(ctx, port: int = 5432) -> None:
    ctx.sandbox.full_path.mkdir(parents=True, exist_ok=True)
    ctx.sandbox.pg_port_file.write_text(f"{port}\n", encoding="utf-8")


def test_new_db_plan() -> None:
    steps = new_db_steps("dbbox", "dbbox")
    assert [step.database for step in steps] == ["postgres", "postgres", "dbbox", "dbbox", "dbbox"]
    assert steps[0].statement.startswith("DROP DATABASE")
    assert steps[1].statement.startswith("CREATE DATABASE")
    assert [step.statement.split()[-1] for step in steps[2:]] == ["pg_trgm", "pgcrypto", "btree_gist"]


def test_pe_db_plan_uses_distinct_extension_subsets() -> None:
    steps = pe_db_steps("dbbox", "dbbox")
    by_db: dict[str, set[str]] = {}
    for step in steps:
        if step.statement.startswith("CREATE EXTENSION"):
            by_db.setdefault(step.database, set()).add(step.statement.split()[-1])
    assert len(by_db["dbbox"]) == 2
    assert len(by_db["dbbox_sync"]) == 2
    assert len(by_db["dbbox_activity"]) == 2
    assert by_db["dbbox_sync"] != by_db["dbbox_activity"]


def test_new_db_runs_as_superuser(make_context, launcher, tmp_path: Path) -> None:
    ctx = make_context(["new-db"], tmp_path)
    _with_port(ctx, 6000)
    assert DatabaseService(ctx).new_db() == 0
    assert len(launcher.calls) == 5
    for call in launcher.calls:
        assert call.env["PGUSER"] == "postgres"
        assert call.env["PGPORT"] == "6000"
    # The sandbox identity itself is unchanged for later commands.
    assert ctx.env()["PGUSER"] == "dbbox"


def test_new_db_continues_after_failure(make_context, launcher, tmp_path: Path, capsys) -> None:
    ctx = make_context(["new-db"], tmp_path)
    _with_port(ctx)
    launcher.responder = lambda spec: 2 if "DROP DATABASE" in " ".join(spec.args) else 0

    assert DatabaseService(ctx).new_db() == 2
    assert len(launcher.calls) == 5
    err = capsys.readouterr().err
    assert "step failed (2)" in err
    assert "1 of 5 statements failed" in err


def test_pe_db_reports_first_failure(make_context, launcher, tmp_path: Path) -> None:
    ctx = make_context(["pe-db"], tmp_path)
    _with_port(ctx)
    codes = iter([0, 3, 0, 0, 0, 4, 0, 0])
    launcher.responder = lambda spec: next(codes)
    assert DatabaseService(ctx).pe_db() == 3
    assert len(_statements(launcher)) == 8


def test_new_db_requires_port(make_context, tmp_path: Path) -> None:
    ctx = make_context(["new-db"], tmp_path)
    with pytest.raises(SandboxStateError, match="pg-port"):
        DatabaseService(ctx).new_db()


def test_psql_passes_trailing_args(make_context, launcher, tmp_path: Path) -> None:
    ctx = make_context(["-p", "5999", "psql", "--", "-c", "select 1"], tmp_path)
    assert DatabaseService(ctx).psql() == 0
    call = launcher.calls[0]
    assert Path(call.executable).name == "psql"
    assert call.args == ("-d", "dbbox", "-c", "select 1")
    assert call.env["PGPORT"] == "5999"
    assert call.env["DBBOX_SANDBOX"] == str(ctx.sandbox.full_path)


def test_pgenv_runs_command_unmodified(make_context, launcher, tmp_path: Path) -> None:
    ctx = make_context(["nice", "nice", "--pgver", "13", "pgenv", "--", "pg_dump", "-Fc"], tmp_path)
    assert DatabaseService(ctx).pgenv() == 0
    call = launcher.calls[0]
    assert call.argv == ["pg_dump", "-Fc"]
    assert call.env["PATH"].startswith(str(tmp_path / "pg" / "13" / "bin"))
    assert "PGPORT" not in call.env


def test_pgenv_requires_command(make_context, tmp_path: Path) -> None:
    ctx = make_context(["pgenv"], tmp_path)
    with pytest.raises(ParseError):
        DatabaseService(ctx).pgenv()


def test_ext_runs_project_script(make_context, launcher, tmp_path: Path) -> None:
    ctx = make_context(["ext", "--", "load-data", "--fast"], tmp_path)
    assert DatabaseService(ctx).ext() == 0
    assert launcher.calls[0].argv == [str(tmp_path / "ext" / "bin" / "load-data"), "--fast"]
