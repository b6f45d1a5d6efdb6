"""Interactive CLI answering DataTables requests against configured tables."""

from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import click
import duckdb
from prompt_toolkit import PromptSession
from prompt_toolkit.auto_suggest import AutoSuggestFromHistory
from prompt_toolkit.history import FileHistory

from ..config import (
    ColumnConfig,
    Config,
    DataSourceConfig,
    TableConfig,
    TableDefinition,
    load_config,
)
from ..datasources import DataSource, DuckDBDataSource, PostgreSQLDataSource
from ..response import DataTablesResponse, json_default
from ..table import DataTable, QueryableDataTable
from ..utils.logging import setup_logging


class TableRuntime:
    """Connected data sources and the tables declared over them."""

    def __init__(self, config: Config):
        self.config = config
        self.datasources: Dict[str, DataSource] = {}
        self.tables: Dict[str, DataTable] = {}

    def connect(self) -> None:
        for ds_config in self.config.datasources.values():
            datasource = _create_datasource(ds_config)
            datasource.connect()
            self.datasources[ds_config.name] = datasource

    def build_tables(self) -> None:
        for definition in self.config.tables.values():
            self.tables[definition.name] = self._build_table(definition)

    def stop(self) -> None:
        for datasource in self.datasources.values():
            datasource.disconnect()

    def _build_table(self, definition: TableDefinition) -> DataTable:
        datasource = self.datasources.get(definition.datasource)
        if datasource is None:
            raise ValueError(
                f"Table '{definition.name}' uses unknown data source '{definition.datasource}'"
            )
        queryable = datasource.queryable(definition.table, definition.schema)
        columns = []
        for column in definition.columns:
            columns.append(column.to_descriptor())
        return QueryableDataTable(columns, queryable, config=definition.table_config)

    def table(self, name: str) -> DataTable:
        if name not in self.tables:
            raise ValueError(f"Unknown table: '{name}'")
        return self.tables[name]

    def render(self, table_name: str, query_string: str) -> DataTablesResponse:
        return self.table(table_name).render_response(query_string)


class ResponsePrinter:
    """Formats responses as JSON or as a bordered text table."""

    def __init__(self, emit, output_format: str = "json"):
        self.emit = emit
        self.output_format = output_format

    def display(self, response: DataTablesResponse, elapsed_ms: float) -> None:
        if self.output_format == "table":
            self._display_table(response)
        else:
            self.emit(response.to_json(indent=2))
        summary = (
            f"{len(response.result)} rows of {response.records_filtered} matching "
            f"(page {response.result.page_number}/{response.result.pages_count}) "
            f"in {elapsed_ms:.2f} ms"
        )
        self.emit(summary)

    def _display_table(self, response: DataTablesResponse) -> None:
        rows = response.data
        headers = self._collect_headers(rows)
        if not headers:
            self.emit("(no rows)")
            return
        cells = []
        for row in rows:
            cells.append([self._stringify_cell(row.get(header)) for header in headers])
        widths = [len(header) for header in headers]
        for row_cells in cells:
            for index, text in enumerate(row_cells):
                widths[index] = max(widths[index], len(text))

        border = "+" + "+".join("-" * (width + 2) for width in widths) + "+"
        self.emit(border)
        self.emit(self._format_row(headers, widths))
        self.emit(border)
        for row_cells in cells:
            self.emit(self._format_row(row_cells, widths))
        self.emit(border)

    def _collect_headers(self, rows: List[Dict[str, Any]]) -> List[str]:
        headers: List[str] = []
        for row in rows:
            for key in row:
                if key not in headers:
                    headers.append(key)
        return headers

    def _format_row(self, values: List[str], widths: List[int]) -> str:
        parts = []
        for value, width in zip(values, widths):
            parts.append(f" {value.ljust(width)} ")
        return "|" + "|".join(parts) + "|"

    def _stringify_cell(self, value: object) -> str:
        if value is None:
            return "NULL"
        if isinstance(value, (dict, list)):
            return json.dumps(value, default=json_default)
        return str(value)


class DtqRepl:
    """Interactive loop: each line is a DataTables query string."""

    def __init__(self, runtime: TableRuntime, printer: ResponsePrinter, table: Optional[str]):
        self.runtime = runtime
        self.printer = printer
        self.current_table = table
        self.session = self._create_session()

    def _create_session(self) -> PromptSession:
        """Create prompt session backed by persistent history."""
        history_path = Path(".history")
        if not history_path.exists():
            history_path.touch()
        return PromptSession(
            history=FileHistory(str(history_path)),
            auto_suggest=AutoSuggestFromHistory(),
        )

    def run(self) -> None:
        while True:
            line, should_continue = self._read_line()
            if not should_continue:
                break
            if line is None or not line.strip():
                continue
            if self._is_exit_command(line):
                break
            if line.strip().startswith("."):
                self.execute_shortcut(line)
                continue
            self.execute_request(line.strip())

    def _read_line(self) -> Tuple[Optional[str], bool]:
        try:
            return self.session.prompt(self._get_prompt()), True
        except EOFError:
            click.echo("")
            return None, False
        except KeyboardInterrupt:
            click.echo("")
            return None, True

    def _get_prompt(self) -> str:
        if self.current_table:
            return f"dtq[{self.current_table}]> "
        return "dtq> "

    def _is_exit_command(self, line: str) -> bool:
        return line.strip().lower() in ("\\q", "quit", "exit")

    def execute_shortcut(self, line: str) -> None:
        parts = line.strip().split()
        command = parts[0].lower()
        argument = parts[1] if len(parts) > 1 else None
        if command == ".tables":
            self._show_tables()
        elif command == ".columns":
            self._show_columns(argument or self.current_table)
        elif command == ".use" and argument:
            self._use_table(argument)
        elif command == ".distinct" and argument:
            self._show_distinct(argument)
        elif command == ".format" and argument in ("json", "table"):
            self.printer.output_format = argument
        else:
            click.echo(f"Unknown shortcut: {line.strip()}")
            click.echo(
                "Available shortcuts: .tables, .columns [table], .use <table>, "
                ".distinct <column>, .format json|table"
            )

    def _show_tables(self) -> None:
        if not self.runtime.tables:
            click.echo("No tables configured.")
            return
        for name in sorted(self.runtime.tables):
            marker = "*" if name == self.current_table else " "
            click.echo(f"{marker} {name}")

    def _show_columns(self, table_name: Optional[str]) -> None:
        if not table_name:
            click.echo("No table selected. Use .use <table> first.")
            return
        try:
            table = self.runtime.table(table_name)
        except ValueError as exc:
            click.echo(f"error: {exc}")
            return
        for column in table.catalog:
            flags = []
            if column.is_searchable:
                flags.append("searchable")
            if column.is_orderable:
                flags.append("orderable")
            if column.search_regex:
                flags.append("regex")
            click.echo(
                f"  - {column.public_name}: {column.storage_path or '-'} "
                f"[{', '.join(flags) or 'display only'}]"
            )

    def _use_table(self, table_name: str) -> None:
        if table_name not in self.runtime.tables:
            click.echo(f"error: Unknown table: '{table_name}'")
            return
        self.current_table = table_name

    def _show_distinct(self, public_name: str) -> None:
        if not self.current_table:
            click.echo("No table selected. Use .use <table> first.")
            return
        try:
            values = self.runtime.table(self.current_table).get_distinct_column_values(public_name)
        except (ValueError, duckdb.Error) as exc:
            click.echo(f"error: {exc}")
            return
        for value in values:
            click.echo(f"  {value}")

    def execute_request(self, query_string: str) -> None:
        if not self.current_table:
            click.echo("No table selected. Use .use <table> first.")
            return
        try:
            start = time.time()
            response = self.runtime.render(self.current_table, query_string)
            elapsed = (time.time() - start) * 1000
            self.printer.display(response, elapsed)
        except (ValueError, TypeError, RuntimeError, duckdb.Error) as exc:
            click.echo(f"error: {exc}")


def _load_config_bundle(config_path: Optional[str]) -> Tuple[Config, Optional[str]]:
    if config_path:
        return load_config(config_path), None
    note = "Using in-memory DuckDB data source with the demo_users table."
    return _build_default_config(), note


def _build_default_config() -> Config:
    config = Config()
    ds_config = DataSourceConfig(
        name="duckdb_mem",
        type="duckdb",
        config={"path": ":memory:", "read_only": False},
    )
    config.datasources[ds_config.name] = ds_config
    config.tables["demo_users"] = TableDefinition(
        name="demo_users",
        datasource=ds_config.name,
        table="demo_users",
        columns=[
            ColumnConfig("id", "id", orderable=True),
            ColumnConfig("name", "name", searchable=True, orderable=True,
                         search_case_insensitive=True, ordering_case_insensitive=True),
            ColumnConfig("age", "age", searchable=True, orderable=True),
            ColumnConfig("city", "city", searchable=True, orderable=True, search_regex=True),
        ],
        table_config=TableConfig(default_page_size=10, table_identifier="demo_users"),
    )
    return config


def _create_datasource(ds_config: DataSourceConfig) -> DataSource:
    if ds_config.type == "duckdb":
        return DuckDBDataSource(ds_config.name, ds_config.config)
    if ds_config.type == "postgresql":
        return PostgreSQLDataSource(ds_config.name, ds_config.config)
    raise ValueError(f"Unsupported data source type: {ds_config.type}")


def _seed_demo_data(runtime: TableRuntime) -> None:
    datasource = runtime.datasources.get("duckdb_mem")
    if datasource is None or datasource.connection is None:
        return
    connection = datasource.connection
    connection.execute(
        """
        CREATE TABLE IF NOT EXISTS demo_users (
            id INTEGER,
            name VARCHAR,
            age INTEGER,
            city VARCHAR
        )
        """
    )
    connection.execute("DELETE FROM demo_users")
    connection.execute(
        """
        INSERT INTO demo_users VALUES
        (1, 'Alice', 30, 'New York'),
        (2, 'bob', 34, 'Boston'),
        (3, 'Carlos', 28, 'Austin'),
        (4, 'Diana', 41, 'Chicago'),
        (5, 'Eve', 25, 'Seattle'),
        (6, 'Anna', NULL, 'Boston')
        """
    )


def _prepare_runtime(config_path: Optional[str]) -> Tuple[TableRuntime, Optional[str]]:
    config, note = _load_config_bundle(config_path)
    setup_logging(config.logging.level, config.logging.structured, config.logging.log_file)
    runtime = TableRuntime(config)
    runtime.connect()
    if note:
        _seed_demo_data(runtime)
    runtime.build_tables()
    return runtime, note


@click.command()
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, readable=True),
    help="Path to YAML config file. Defaults to an in-memory DuckDB demo.",
)
@click.option("-t", "--table", "table_name", help="Table to query.")
@click.option(
    "-q",
    "--query",
    "query_string",
    help="Answer one DataTables query string and exit.",
)
@click.option(
    "-f",
    "--format",
    "output_format",
    type=click.Choice(["json", "table"]),
    default="json",
    show_default=True,
)
def cli(
    config_path: Optional[str],
    table_name: Optional[str],
    query_string: Optional[str],
    output_format: str,
) -> None:
    """Entry point for the dtq CLI."""
    runtime, note = _prepare_runtime(config_path)
    if table_name is None and len(runtime.tables) == 1:
        table_name = next(iter(runtime.tables))
    printer = ResponsePrinter(click.echo, output_format)
    try:
        if query_string is not None:
            if table_name is None:
                raise click.UsageError("--table is required when several tables are configured")
            response = runtime.render(table_name, query_string)
            click.echo(response.to_json(indent=2))
            return
        if note:
            click.echo(note)
        click.echo("Type DataTables query strings, e.g. start=0&length=5&search[value]=bo")
        click.echo("Use .tables to list tables and \\q to exit.")
        repl = DtqRepl(runtime, printer, table_name)
        repl.run()
    finally:
        runtime.stop()
