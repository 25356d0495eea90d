"""
Command-line interface for dbnav.

Provides one-shot commands and an interactive shell for exploring a
PostgreSQL database: list tables, show the schema, find join paths, and run
lookups across foreign-key relationships.
"""

from __future__ import annotations

import json
import logging
import shlex
from pathlib import Path
from typing import Optional

import click
import psycopg2
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from dbnav import __version__
from dbnav.config import Settings, load_settings
from dbnav.exceptions import DbnavError
from dbnav.session import Session

try:
    import readline
except ImportError:  # Windows
    readline = None

console = Console()
logger = logging.getLogger(__name__)

PROMPT = "dbnav> "
HISTORY_LENGTH = 1000


def setup_logging(verbose: bool = False) -> None:
    """Configure logging with Rich handler."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


class AppContext:
    """Shared state for commands: settings and a lazily started session."""

    def __init__(self, settings: Settings, session: Optional[Session] = None):
        self.settings = settings
        self._session = session
        self.exit_requested = False

    @property
    def session(self) -> Session:
        if self._session is None:
            from dbnav.metadata import PostgresMetadataExtractor

            extractor = PostgresMetadataExtractor(
                self.settings.require_database_url(),
                schema=self.settings.schema,
                statement_timeout_ms=self.settings.statement_timeout_ms,
            )
            self._session = Session.start(extractor)
        return self._session

    def close(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None


def _fail(error: Exception) -> None:
    raise click.ClickException(str(error)) from error


# Commands shared by the top-level CLI and the interactive shell.

@click.command("list-tables")
@click.pass_obj
def list_tables(app: AppContext) -> None:
    """List tables in the database."""
    try:
        tables = app.session.list_tables()
    except (DbnavError, psycopg2.Error) as e:
        _fail(e)

    if not tables:
        console.print("No tables found.")
        return

    console.print("Tables:")
    for table in tables:
        console.print(f"  - {escape(table)}")


@click.command("show-schema")
@click.option("--json", "as_json", is_flag=True, help="Print the snapshot as JSON")
@click.pass_obj
def show_schema(app: AppContext, as_json: bool) -> None:
    """Show tables, columns and foreign keys from the loaded snapshot."""
    try:
        session = app.session
    except (DbnavError, psycopg2.Error) as e:
        _fail(e)

    if as_json:
        click.echo(json.dumps(session.schema.to_dict(), indent=2))
        return

    schema_table = Table(title="Schema")
    schema_table.add_column("Table", style="cyan")
    schema_table.add_column("Columns", style="green")
    schema_table.add_column("Foreign Keys", style="yellow")

    for table in session.describe():
        schema_table.add_row(
            escape(table.name),
            escape(", ".join(table.columns)) if table.columns else "-",
            escape("\n".join(str(fk) for fk in table.foreign_keys)) if table.foreign_keys else "-",
        )

    console.print(schema_table)


@click.command("path")
@click.argument("from_table")
@click.argument("to_table")
@click.pass_obj
def path(app: AppContext, from_table: str, to_table: str) -> None:
    """Show the shortest join path between two tables."""
    try:
        edges = app.session.join_path(from_table, to_table)
    except (DbnavError, psycopg2.Error) as e:
        _fail(e)

    if not edges:
        console.print(f"{escape(from_table)} and {escape(to_table)} are the same table; no joins needed.")
        return

    console.print(f"Join path ({len(edges)} hop(s)):")
    for i, fk in enumerate(edges, 1):
        console.print(f"  {i}: {escape(str(fk))}")


def _lookup_options(func):
    func = click.option("-w", "--where", "where", required=True,
                        help="Filter column as table.column")(func)
    func = click.option("-v", "--value", default=None, help="Value the filter column must equal")(func)
    func = click.option("-c", "--column", default=None, help="Column to return")(func)
    func = click.argument("table")(func)
    return func


def _require(column: Optional[str], value: Optional[str]) -> None:
    if column is None:
        raise click.UsageError("Column name is required (use -c or --column)")
    if value is None:
        raise click.UsageError("Value is required (use -v or --value)")


@click.command("query")
@_lookup_options
@click.pass_obj
def query(app: AppContext, table: str, column: Optional[str], value: Optional[str], where: str) -> None:
    """
    Look up TABLE.COLUMN for rows matching a filter on a related table.

    Example:

        dbnav query customers -c email -w order_items.id -v 42
    """
    _require(column, value)
    console.print(
        f"Querying table '{escape(table)}' for column '{escape(column)}' "
        f"where {escape(where)} = '{escape(value)}'"
    )

    try:
        rows = app.session.query(table, column, where, value)
    except (DbnavError, psycopg2.Error) as e:
        _fail(e)

    if not rows:
        console.print("No results found.")
        return

    console.print(f"Results ({len(rows)} found):")
    for i, row in enumerate(rows, 1):
        console.print(f"  {i}: {escape(row)}", soft_wrap=True)


@click.command("sql")
@_lookup_options
@click.option("--literal", is_flag=True,
              help="Inline the value instead of a placeholder (not escaped)")
@click.pass_obj
def sql(app: AppContext, table: str, column: Optional[str], value: Optional[str],
        where: str, literal: bool) -> None:
    """Print the SQL a query would run, without executing it."""
    _require(column, value)
    try:
        if literal:
            click.echo(app.session.build_literal_sql(table, column, where, value))
        else:
            generated = app.session.build_query(table, column, where, value)
            click.echo(generated.sql)
            click.echo(f"-- params: {list(generated.params)!r}")
    except (DbnavError, psycopg2.Error) as e:
        _fail(e)


SHARED_COMMANDS = [list_tables, show_schema, path, query, sql]


@click.group(name="dbnav", context_settings={"help_option_names": ["-h", "--help"]})
def shell_commands() -> None:
    """Commands available at the dbnav> prompt."""


@shell_commands.command("exit")
@click.pass_obj
def exit_shell(app: AppContext) -> None:
    """Leave the shell."""
    app.exit_requested = True


for _command in SHARED_COMMANDS:
    shell_commands.add_command(_command)


def _load_history(history_file: Path) -> None:
    if readline is None:
        return
    try:
        readline.read_history_file(str(history_file))
    except OSError as e:
        logger.info(f"No previous history found: {e}")


def _save_history(history_file: Path) -> None:
    if readline is None:
        return
    try:
        readline.set_history_length(HISTORY_LENGTH)
        readline.write_history_file(str(history_file))
    except OSError as e:
        logger.error(f"Failed to save history: {e}")


def run_shell(app: AppContext) -> None:
    """Read commands from the prompt until ``exit`` or end of input."""
    history_file = app.settings.history_file
    _load_history(history_file)

    console.print("Welcome to dbnav! Type 'exit' to quit or 'help' for available commands.")

    while not app.exit_requested:
        try:
            line = input(PROMPT)
        except KeyboardInterrupt:
            console.print("^C")
            continue
        except EOFError:
            break

        line = line.strip()
        if not line:
            continue
        if line == "help":
            line = "--help"

        try:
            args = shlex.split(line)
        except ValueError as e:
            console.print(f"[red]Invalid command: {escape(str(e))}[/red]")
            continue

        try:
            shell_commands.main(args=args, prog_name="dbnav", standalone_mode=False, obj=app)
        except click.UsageError as e:
            console.print(f"[red]Invalid command: {escape(e.format_message())}[/red]")
        except click.ClickException as e:
            logger.error(f"Command failed: {e.format_message()}")
        except click.Abort:
            console.print("^C")

    console.print("Goodbye!")
    _save_history(history_file)


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="dbnav")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.option("-d", "--db-url", type=str, default=None,
              help="Database connection URL (default: $DATABASE_URL)")
@click.option("--schema", type=str, default=None, help="Database schema to explore (default: public)")
@click.option("--config", "config_file", type=click.Path(exists=True, path_type=Path), default=None,
              help="YAML config file")
@click.option("--history-file", type=click.Path(path_type=Path), default=None,
              help="Shell history file (default: .dbnav_history)")
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    db_url: Optional[str],
    schema: Optional[str],
    config_file: Optional[Path],
    history_file: Optional[Path],
) -> None:
    """
    dbnav - explore a relational database through its foreign keys.

    Run without a command to start the interactive shell.
    """
    setup_logging(verbose)

    if ctx.obj is None:
        try:
            settings = load_settings(
                config_file,
                database_url=db_url,
                schema=schema,
                history_file=history_file,
            )
        except DbnavError as e:
            _fail(e)
        ctx.obj = AppContext(settings)
    ctx.call_on_close(ctx.obj.close)

    if ctx.invoked_subcommand is None:
        run_shell(ctx.obj)


@cli.command()
@click.pass_obj
def shell(app: AppContext) -> None:
    """Start the interactive shell."""
    run_shell(app)


for _command in SHARED_COMMANDS:
    cli.add_command(_command)


def main() -> None:
    cli(prog_name="dbnav")


if __name__ == "__main__":
    main()
