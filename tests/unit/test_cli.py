from __future__ import annotations

import pytest
from typer.testing import CliRunner

from pg_ninja import main as cli
from pg_ninja.client import PgNinja

runner = CliRunner()


@pytest.fixture
def patched_cli(monkeypatch, fake_connection, unit_settings):
    def fake_client(dsn=None, log=None) -> PgNinja:
        del dsn, log
        return PgNinja(connection=fake_connection, settings=unit_settings, log=False)

    monkeypatch.setattr(cli, "PgNinja", fake_client)
    monkeypatch.setattr(cli, "configure_logging", lambda **kwargs: None)
    return fake_connection


def test_info_shows_connection_target() -> None:
    result = runner.invoke(cli.app, ["info"])

    assert result.exit_code == 0
    assert "DB=" in result.stdout


def test_query_prints_rows(patched_cli) -> None:
    patched_cli.committed = [1, 2]

    result = runner.invoke(cli.app, ["query", "SELECT id FROM t"])

    assert result.exit_code == 0
    assert "2 rows" in result.stdout


def test_query_error_exits_nonzero(patched_cli) -> None:
    result = runner.invoke(cli.app, ["query", "INVALID SQL"])

    assert result.exit_code == 1


def test_transaction_commits_statements(patched_cli) -> None:
    result = runner.invoke(
        cli.app,
        ["transaction", "-q", "INSERT INTO t VALUES (1)", "-q", "INSERT INTO t VALUES (2)"],
    )

    assert result.exit_code == 0
    assert patched_cli.committed == [1, 2]


def test_transaction_rollback_exits_nonzero(patched_cli) -> None:
    result = runner.invoke(
        cli.app, ["transaction", "-q", "INSERT INTO t VALUES (1)", "-q", "INVALID SQL"]
    )

    assert result.exit_code == 1
    assert patched_cli.committed == []


def test_batch_exit_code_follows_overall_success(patched_cli) -> None:
    patched_cli.committed = [1]

    ok = runner.invoke(cli.app, ["batch", "-q", "SELECT id FROM t", "--retain"])
    failed = runner.invoke(cli.app, ["batch", "-q", "SELECT id FROM t", "-q", "INVALID SQL"])

    assert ok.exit_code == 0
    assert "Multi-query 1/1" in ok.stdout
    assert failed.exit_code == 1
    assert "Multi-query 1/2" in failed.stdout
