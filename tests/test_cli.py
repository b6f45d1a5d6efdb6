"""Tests for the dtq CLI helpers."""

import json
import logging

import pytest
from click.testing import CliRunner

from datatables_query.cli.dtq import (
    ResponsePrinter,
    TableRuntime,
    _build_default_config,
    _seed_demo_data,
    cli,
)


def start_demo_runtime():
    runtime = TableRuntime(_build_default_config())
    runtime.connect()
    _seed_demo_data(runtime)
    runtime.build_tables()
    return runtime


def test_runtime_renders_requests():
    runtime = start_demo_runtime()
    try:
        response = runtime.render(
            "demo_users",
            "draw=2&columns[0][data]=name&columns[1][data]=age"
            "&order[0][column]=1&order[0][dir]=desc&length=3",
        )
    finally:
        runtime.stop()

    assert response.draw == 2
    assert response.records_filtered == 6
    assert [row["name"] for row in response.data] == ["Diana", "bob", "Alice"]


def test_runtime_case_insensitive_search_and_order():
    runtime = start_demo_runtime()
    try:
        response = runtime.render(
            "demo_users",
            "columns[0][data]=name&search[value]=B&order[0][column]=0",
        )
    finally:
        runtime.stop()

    assert [row["name"] for row in response.data] == ["bob"]


def test_runtime_unknown_table():
    runtime = start_demo_runtime()
    try:
        runtime.table("missing")
    except ValueError as exc:
        assert "missing" in str(exc)
    else:
        raise AssertionError("expected ValueError")
    finally:
        runtime.stop()


def test_printer_table_format():
    runtime = start_demo_runtime()
    try:
        response = runtime.render("demo_users", "columns[0][data]=id&order[0][column]=0&length=2")
    finally:
        runtime.stop()

    lines = []
    ResponsePrinter(lines.append, "table").display(response, 1.5)

    assert lines[0].startswith("+")
    assert "| id " in lines[1]
    assert "| Alice " in lines[3]
    assert lines[-1] == "2 rows of 6 matching (page 1/3) in 1.50 ms"


def test_printer_json_format():
    runtime = start_demo_runtime()
    try:
        response = runtime.render("demo_users", "draw=9&length=1")
    finally:
        runtime.stop()

    lines = []
    ResponsePrinter(lines.append).display(response, 2)

    assert json.loads(lines[0])["draw"] == 9


@pytest.fixture
def restore_logging():
    """The CLI configures the root logger; put the previous handlers back."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


def test_cli_one_shot_query(restore_logging):
    runner = CliRunner()
    result = runner.invoke(
        cli,
        ["-q", "draw=3&columns[0][data]=city&search[value]=Boston"],
    )

    assert result.exit_code == 0, result.output
    start = result.output.index("{\n")
    document, _ = json.JSONDecoder().raw_decode(result.output[start:])
    assert document["draw"] == 3
    assert document["recordsFiltered"] == 2
    assert {row["name"] for row in document["data"]} == {"bob", "Anna"}
