"""
Tests for the command-line interface.

Commands run against a session backed by a fake extractor, so no database is
needed.
"""

import json

import pytest
from click.testing import CliRunner

from dbnav import cli as cli_module
from dbnav.cli import AppContext, cli
from dbnav.config import Settings
from dbnav.models import ForeignKey, Schema
from dbnav.session import Session


class FakeExtractor:
    def __init__(self, schema, rows=None):
        self.schema = schema
        self.rows = rows or []
        self.executed = []
        self.disconnected = False

    def load_schema(self):
        return self.schema

    def fetch_tables(self):
        return self.schema.table_names()

    def execute(self, sql, params=()):
        self.executed.append((sql, params))
        return self.rows

    def disconnect(self):
        self.disconnected = True


@pytest.fixture
def shop_schema():
    return Schema.build(
        ["customers", "orders", "order_items", "audit_log"],
        {
            "customers": ["id", "email"],
            "orders": ["id", "customer_id"],
            "order_items": ["id", "order_id"],
            "audit_log": ["id"],
        },
        {
            "orders": [ForeignKey("orders", "customer_id", "customers", "id")],
            "order_items": [ForeignKey("order_items", "order_id", "orders", "id")],
        },
    )


@pytest.fixture
def extractor(shop_schema):
    return FakeExtractor(shop_schema, rows=[("a@example.com",), ("b@example.com",)])


@pytest.fixture
def app(extractor, tmp_path):
    settings = Settings(history_file=tmp_path / "history")
    return AppContext(settings, session=Session.start(extractor))


@pytest.fixture
def runner():
    return CliRunner()


class TestCommands:
    """One-shot commands."""

    def test_list_tables(self, runner, app):
        result = runner.invoke(cli, ["list-tables"], obj=app)
        assert result.exit_code == 0
        assert "Tables:" in result.output
        assert "  - order_items" in result.output

    def test_list_tables_empty(self, runner, tmp_path):
        empty = AppContext(Settings(), session=Session.start(FakeExtractor(Schema())))
        result = runner.invoke(cli, ["list-tables"], obj=empty)
        assert result.exit_code == 0
        assert "No tables found." in result.output

    def test_show_schema_json(self, runner, app, shop_schema):
        result = runner.invoke(cli, ["show-schema", "--json"], obj=app)
        assert result.exit_code == 0
        assert json.loads(result.output) == shop_schema.to_dict()

    def test_show_schema_table(self, runner, app):
        result = runner.invoke(cli, ["show-schema"], obj=app)
        assert result.exit_code == 0
        assert "audit_log" in result.output

    def test_path(self, runner, app):
        result = runner.invoke(cli, ["path", "order_items", "customers"], obj=app)
        assert result.exit_code == 0
        assert "2 hop(s)" in result.output
        assert "order_items.order_id -> orders.id" in result.output

    def test_path_not_found(self, runner, app):
        result = runner.invoke(cli, ["path", "audit_log", "customers"], obj=app)
        assert result.exit_code == 1
        assert "No join path found" in result.output

    def test_query(self, runner, app, extractor):
        result = runner.invoke(
            cli, ["query", "customers", "-c", "email", "-w", "order_items.id", "-v", "42"], obj=app,
        )
        assert result.exit_code == 0
        assert "Results (2 found):" in result.output
        assert "1: a@example.com" in result.output
        assert extractor.executed[0][1] == ("42",)

    def test_query_no_results(self, runner, shop_schema, tmp_path):
        app = AppContext(Settings(), session=Session.start(FakeExtractor(shop_schema)))
        result = runner.invoke(
            cli, ["query", "customers", "-c", "email", "-w", "order_items.id", "-v", "42"], obj=app,
        )
        assert result.exit_code == 0
        assert "No results found." in result.output

    def test_query_requires_column(self, runner, app):
        result = runner.invoke(cli, ["query", "customers", "-w", "order_items.id", "-v", "42"], obj=app)
        assert result.exit_code == 2
        assert "Column name is required" in result.output

    def test_query_bad_condition(self, runner, app):
        result = runner.invoke(
            cli, ["query", "customers", "-c", "email", "-w", "order_items", "-v", "42"], obj=app,
        )
        assert result.exit_code == 1
        assert "expected the form table.column" in result.output

    def test_sql_parameterized(self, runner, app, extractor):
        result = runner.invoke(
            cli, ["sql", "customers", "-c", "id", "-w", "order_items.id", "-v", "42"], obj=app,
        )
        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert lines[0].endswith("WHERE order_items.id = %s")
        assert lines[1] == "-- params: ['42']"
        assert extractor.executed == []

    def test_sql_literal(self, runner, app):
        result = runner.invoke(
            cli, ["sql", "customers", "-c", "id", "-w", "order_items.id", "-v", "42", "--literal"], obj=app,
        )
        assert result.exit_code == 0
        assert result.output.strip() == (
            "SELECT customers.id FROM order_items "
            "JOIN orders ON order_items.order_id = orders.id "
            "JOIN customers ON orders.customer_id = customers.id "
            "WHERE order_items.id = '42'"
        )

    def test_session_closed_after_command(self, runner, app, extractor):
        runner.invoke(cli, ["list-tables"], obj=app)
        assert extractor.disconnected

    def test_missing_database_url(self, runner, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("DATABASE_URL", "")
        result = runner.invoke(cli, ["list-tables"])
        assert result.exit_code == 1
        assert "No database URL configured" in result.output


class TestShell:
    """The interactive shell."""

    def test_commands_and_exit(self, runner, app):
        result = runner.invoke(
            cli, ["shell"], obj=app,
            input="\nlist-tables\npath order_items customers\nexit\nlist-tables\n",
        )
        assert result.exit_code == 0
        assert "Welcome to dbnav!" in result.output
        assert result.output.count("Tables:") == 1
        assert "order_items.order_id -> orders.id" in result.output
        assert "Goodbye!" in result.output

    def test_default_command_is_shell(self, runner, app):
        result = runner.invoke(cli, [], obj=app, input="exit\n")
        assert result.exit_code == 0
        assert "Welcome to dbnav!" in result.output

    def test_eof_ends_shell(self, runner, app):
        result = runner.invoke(cli, ["shell"], obj=app, input="list-tables\n")
        assert result.exit_code == 0
        assert result.output.rstrip().endswith("Goodbye!")

    def test_errors_do_not_end_shell(self, runner, app):
        result = runner.invoke(
            cli, ["shell"], obj=app,
            input="bogus\npath audit_log customers\nquery customers -w order_items.id -v 1\n"
                  "query 'unterminated\nlist-tables\nexit\n",
        )
        assert result.exit_code == 0
        assert result.output.count("Invalid command") == 3
        assert "Tables:" in result.output

    def test_query_with_quoted_value(self, runner, app, extractor):
        result = runner.invoke(
            cli, ["shell"], obj=app,
            input="query customers -c email -w order_items.id -v \"O'Brien\"\nexit\n",
        )
        assert result.exit_code == 0
        assert extractor.executed[0][1] == ("O'Brien",)

    def test_history_saved(self, runner, app, tmp_path):
        pytest.importorskip("readline")
        runner.invoke(cli, ["shell"], obj=app, input="exit\n")
        assert (tmp_path / "history").exists()

    def test_help_names_program(self, runner, app):
        result = runner.invoke(cli, ["shell"], obj=app, input="help\nexit\n")
        assert result.exit_code == 0
        assert "Usage: dbnav [OPTIONS] COMMAND" in result.output
        assert "Usage:  [OPTIONS]" not in result.output


class FakeReadline:
    def __init__(self):
        self.calls = []

    def read_history_file(self, path):
        self.calls.append(("read", path))

    def set_history_length(self, length):
        self.calls.append(("length", length))

    def write_history_file(self, path):
        self.calls.append(("write", path))


class TestHistory:
    """Shell history persistence."""

    def test_history_length_capped_before_write(self, runner, app, tmp_path, monkeypatch):
        fake = FakeReadline()
        monkeypatch.setattr(cli_module, "readline", fake)

        runner.invoke(cli, ["shell"], obj=app, input="exit\n")

        history = str(tmp_path / "history")
        assert fake.calls == [
            ("read", history),
            ("length", cli_module.HISTORY_LENGTH),
            ("write", history),
        ]

    def test_history_skipped_without_readline(self, runner, app, tmp_path, monkeypatch):
        monkeypatch.setattr(cli_module, "readline", None)
        result = runner.invoke(cli, ["shell"], obj=app, input="exit\n")
        assert result.exit_code == 0
        assert not (tmp_path / "history").exists()
