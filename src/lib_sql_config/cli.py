"""CLI adapter for ``lib_sql_config`` built on ``lib_cli_exit_tools``.

Purpose
-------
Let operators inspect a ``sql://`` descriptor and the configuration it
materializes without writing Python code.

Contents
--------
* :data:`CLICK_CONTEXT_SETTINGS` – shared Click settings ensuring ``-h`` works.
* :func:`cli` – root command that wires global traceback handling into
  ``lib_cli_exit_tools``.
* :func:`cli_info` – prints distribution metadata for quick diagnostics.
* :func:`cli_parse` – prints the decoded descriptor as JSON.
* :func:`cli_render` – prints the configuration text behind a path.
* :func:`cli_seed_example` – creates the example SQLite database.
* :func:`main` – entry point used by ``console_scripts`` registration.

System Role
-----------
Outermost layer. Calls the composition root (:mod:`lib_sql_config.core`) and
leaves exit-code policy to ``lib_cli_exit_tools``.
"""

from __future__ import annotations

import dataclasses
import json
import sys
from importlib import metadata
from pathlib import Path
from typing import Final, Optional, Sequence

import lib_cli_exit_tools
import rich_click as click

from .adapters.env.default import load_gateway_settings
from .core import parse_descriptor, read_config_text
from .examples import seed_example_database

CLICK_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
_TRACEBACK_SUMMARY_LIMIT: Final[int] = 500
_TRACEBACK_VERBOSE_LIMIT: Final[int] = 10_000


def _resolve_version() -> str:
    """Return the installed package version, ``"0.0.0"`` when not installed."""

    try:
        return metadata.version("lib_sql_config")
    except metadata.PackageNotFoundError:
        return "0.0.0"


@click.group(
    help="Render database-backed configuration files",
    context_settings=CLICK_CONTEXT_SETTINGS,
    invoke_without_command=False,
)
@click.version_option(
    version=_resolve_version(),
    prog_name="lib_sql_config",
    message="lib_sql_config version %(version)s",
)
@click.option(
    "--traceback/--no-traceback",
    is_flag=True,
    default=False,
    help="Show full Python traceback on errors",
)
@click.pass_context
def cli(ctx: click.Context, traceback: bool) -> None:
    """Root command configuring traceback handling for all subcommands.

    Side Effects
        Mutates ``lib_cli_exit_tools.config.traceback`` and
        ``lib_cli_exit_tools.config.traceback_force_color``.
    """

    ctx.ensure_object(dict)
    ctx.obj["traceback"] = traceback
    lib_cli_exit_tools.config.traceback = traceback
    lib_cli_exit_tools.config.traceback_force_color = traceback


@cli.command("info", context_settings=CLICK_CONTEXT_SETTINGS)
def cli_info() -> None:
    """Print basic distribution metadata so users can confirm installation."""

    try:
        meta = metadata.metadata("lib_sql_config")
    except metadata.PackageNotFoundError:
        click.echo("lib_sql_config (metadata unavailable)")
        return
    click.echo(f"Info for {meta.get('Name', 'lib_sql_config')}:")
    click.echo(f"  Version         : {meta.get('Version', _resolve_version())}")
    click.echo(f"  Requires-Python : {meta.get('Requires-Python', '>=3.10')}")
    summary = meta.get("Summary")
    if summary:
        click.echo(f"  Summary         : {summary}")
    for entry in meta.get_all("Project-URL") or []:
        click.echo(f"  {entry}")


@cli.command("parse", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("descriptor")
@click.option(
    "--indent",
    type=int,
    default=None,
    help="Pretty-print JSON output with the provided indent size",
)
def cli_parse(descriptor: str, indent: Optional[int]) -> None:
    """Decode DESCRIPTOR and print its parts as JSON (password masked).

    Examples
    --------
    >>> from click.testing import CliRunner
    >>> result = CliRunner().invoke(cli, ["parse", "sql://u:p@h/ctx:c/conf:d/map:m"])
    >>> json.loads(result.output)["mapping"]["conf_id"]
    'conf_id'
    """

    spec = parse_descriptor(descriptor)
    click.echo(json.dumps(spec.describe(), indent=indent))


@cli.command("render", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("path")
@click.option(
    "--dialect",
    default=None,
    help="SQLAlchemy dialect[+driver] (defaults to LIB_SQL_CONFIG_DIALECT or sqlite)",
)
@click.option("--trace-id", default=None, help="Trace identifier attached to log events")
def cli_render(path: str, dialect: Optional[str], trace_id: Optional[str]) -> None:
    """Print the configuration text behind PATH (``sql://`` descriptor or regular file)."""

    settings = load_gateway_settings()
    if dialect:
        settings = dataclasses.replace(settings, dialect=dialect)
    click.echo(read_config_text(path, settings=settings, trace_id=trace_id), nl=False)


@cli.command("seed-example", context_settings=CLICK_CONTEXT_SETTINGS)
@click.option(
    "--database",
    type=click.Path(path_type=Path, file_okay=True, dir_okay=False, resolve_path=True),
    required=True,
    help="SQLite file that will receive the example tables",
)
@click.option(
    "--force/--no-force",
    default=False,
    help="Replace an existing database file if set",
    show_default=True,
)
def cli_seed_example(database: Path, force: bool) -> None:
    """Create the example configuration database and print its descriptor."""

    click.echo(seed_example_database(database, force=force))


def main(argv: Optional[Sequence[str]] = None, *, restore_traceback: bool = True) -> int:
    """Execute the CLI with shared exit handling and return the exit code."""

    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    previous_force_color = getattr(lib_cli_exit_tools.config, "traceback_force_color", False)
    try:
        try:
            return lib_cli_exit_tools.run_cli(
                cli,
                argv=list(argv) if argv is not None else None,
                prog_name="lib_sql_config",
            )
        except BaseException as exc:  # noqa: BLE001 - funnel through shared printers
            lib_cli_exit_tools.print_exception_message(
                trace_back=lib_cli_exit_tools.config.traceback,
                length_limit=(
                    _TRACEBACK_VERBOSE_LIMIT if lib_cli_exit_tools.config.traceback else _TRACEBACK_SUMMARY_LIMIT
                ),
            )
            return lib_cli_exit_tools.get_system_exit_code(exc)
    finally:
        if restore_traceback:
            lib_cli_exit_tools.config.traceback = previous_traceback
            lib_cli_exit_tools.config.traceback_force_color = previous_force_color


if __name__ == "__main__":  # pragma: no cover - exercised via console entry point
    raise SystemExit(main(sys.argv[1:]))
