"""End-to-end CLI coverage for the public commands exposed by lib_sql_config.

These tests exercise the documented CLI workflows (parse, render, seed,
metadata lookups) against a seeded SQLite database and double as regression
tests for the README examples.
"""

from __future__ import annotations

import json
from pathlib import Path

from click.testing import CliRunner

import lib_cli_exit_tools

from lib_sql_config import cli
from lib_sql_config.domain.errors import DescriptorSyntaxError, SchemaError
from lib_sql_config.examples import EXAMPLE_RENDERING, example_descriptor, seed_example_database


def _runner() -> CliRunner:
    """Return a fresh CLI runner so each test starts from a clean state."""

    return CliRunner()


def test_cli_parse_outputs_json() -> None:
    """`cli parse` should emit the decoded descriptor with the password masked."""

    result = _runner().invoke(
        cli.cli,
        ["parse", "sql://ftp:hunter2@db?db=proftpd/ctx:ftpctxt:id,parent_id,type,info/conf:ftpconf/map:ftpmap/base_id=2", "--indent", "2"],
    )
    assert result.exit_code == 0
    payload = json.loads(result.output)
    assert payload["connection"] == {"user": "ftp", "password": "***", "server": "db", "database": "proftpd"}
    assert payload["contexts"]["key"] == "type"
    assert payload["contexts"]["base_id"] == "2"
    assert payload["directives"]["key"] == "key"
    assert "hunter2" not in result.output


def test_cli_parse_reports_syntax_errors() -> None:
    result = _runner().invoke(cli.cli, ["parse", "sql://u:p@h/ctx:c:a,b/conf:d/map:m"])
    assert result.exit_code != 0
    assert isinstance(result.exception, DescriptorSyntaxError)
    assert result.exception.segment == "contexts"


def test_cli_seed_and_render_round_trip(tmp_path: Path) -> None:
    """`cli seed-example` prints a descriptor that `cli render` turns into the example text."""

    database = tmp_path / "proftpd.db"
    seeded = _runner().invoke(cli.cli, ["seed-example", "--database", str(database)])
    assert seeded.exit_code == 0
    descriptor = seeded.output.strip()
    assert descriptor == example_descriptor(database.resolve())

    rendered = _runner().invoke(cli.cli, ["render", descriptor])
    assert rendered.exit_code == 0
    assert rendered.output == EXAMPLE_RENDERING


def test_cli_render_base_context(tmp_path: Path) -> None:
    database = tmp_path / "proftpd.db"
    seed_example_database(database)

    result = _runner().invoke(cli.cli, ["render", example_descriptor(database, base_id="2"), "--trace-id", "cli-1"])
    assert result.exit_code == 0
    assert result.output == "User ftp\nGroup ftp\nMaxClients 10\n<Limit WRITE>\nDenyAll\n</Limit>\n"


def test_cli_render_regular_file(tmp_path: Path) -> None:
    conf = tmp_path / "proftpd.conf"
    conf.write_text("Port 2121\n", encoding="utf-8")

    result = _runner().invoke(cli.cli, ["render", str(conf)])
    assert result.exit_code == 0
    assert result.output == "Port 2121\n"


def test_cli_render_missing_base_context_fails(tmp_path: Path) -> None:
    database = tmp_path / "proftpd.db"
    seed_example_database(database)

    result = _runner().invoke(cli.cli, ["render", example_descriptor(database, base_id="99")])
    assert result.exit_code != 0
    assert isinstance(result.exception, SchemaError)


def test_cli_render_dialect_option_overrides_environment(tmp_path: Path) -> None:
    database = tmp_path / "proftpd.db"
    seed_example_database(database)

    result = _runner().invoke(
        cli.cli,
        ["render", example_descriptor(database), "--dialect", "sqlite"],
        env={"LIB_SQL_CONFIG_DIALECT": "nosuchdialect"},
    )
    assert result.exit_code == 0
    assert result.output == EXAMPLE_RENDERING


def test_cli_seed_example_respects_force(tmp_path: Path) -> None:
    database = tmp_path / "proftpd.db"
    database.write_text("not a database", encoding="utf-8")

    kept = _runner().invoke(cli.cli, ["seed-example", "--database", str(database)])
    assert kept.exit_code == 0
    assert database.read_text(encoding="utf-8") == "not a database"

    forced = _runner().invoke(cli.cli, ["seed-example", "--database", str(database), "--force"])
    assert forced.exit_code == 0
    assert database.read_bytes().startswith(b"SQLite format 3")


def test_cli_info_handles_missing_metadata(monkeypatch) -> None:
    """`cli info` must degrade gracefully when package metadata is unavailable."""

    def _raise_pkg_not_found(*_args, **_kwargs):
        raise cli.metadata.PackageNotFoundError()

    monkeypatch.setattr(cli.metadata, "metadata", _raise_pkg_not_found)
    result = _runner().invoke(cli.cli, ["info"])
    assert result.exit_code == 0
    assert "metadata unavailable" in result.output


def test_cli_main_restores_traceback_flag() -> None:
    """`cli main` should restore lib_cli_exit_tools tracebacks after execution."""

    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    exit_code = cli.main(
        ["--traceback", "parse", "sql://u:p@h/ctx:c/conf:d/map:m"],
        restore_traceback=True,
    )
    assert exit_code == 0
    assert getattr(lib_cli_exit_tools.config, "traceback", False) == previous_traceback


def test_cli_main_returns_non_zero_on_failure() -> None:
    exit_code = cli.main(["parse", "sql://u:p@h"])
    assert exit_code != 0
